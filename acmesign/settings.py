# base urls of acme servers, the directory path is appended by the connector
LETSENCRYPT_PRODUCTION = "https://acme-v02.api.letsencrypt.org"
LETSENCRYPT_STAGING = "https://acme-staging-v02.api.letsencrypt.org"

# run a test pebble server in docker
# https://github.com/letsencrypt/pebble

# pebble serves its directory at /dir instead of /directory, pass
# `directory_path=PEBBLE_DIRECTORY_PATH` when connecting to it; its minica root
# is self signed, so either use `verify=False` or point `verify` to
# test/certs/pebble.minica.pem
# see https://github.com/letsencrypt/pebble/tree/master/test/certs
PEBBLE_TEST = "https://127.0.0.1:14000"
PEBBLE_DIRECTORY_PATH = "/dir"

DIRECTORY_PATH = "/directory"

# see https://tools.ietf.org/html/rfc8555#section-6.5
NONCE_HEADER = "Replay-Nonce"
JSON_CONTENT_TYPE = "application/json"

# see https://tools.ietf.org/html/rfc7518#section-3.1
ALG_RS256 = "RS256"
