import hashlib
import json

from acmesign.base import _JWKBase, b64_encode


def get_jwk_thumbprint(jwk: _JWKBase) -> str:
    """
    b64 encoded sha256 digest of the jwk, member names sorted and no
    whitespace; see https://tools.ietf.org/html/rfc7638#section-3
    """
    # see https://github.com/diafygi/acme-tiny/blob/master/acme_tiny.py#L86
    s_jwk = json.dumps(jwk._container, sort_keys=True, separators=(',', ':'))
    return b64_encode(hashlib.sha256(s_jwk.encode(encoding='utf-8')).digest())


def get_keyAuthorization(token: str, jwk: _JWKBase) -> str:
    """
    construct auth string by joining challenge token and key thumbprint,
    served as is for `http-01`.

    see https://tools.ietf.org/html/rfc8555#section-8.1
    """
    return f'{token}.{get_jwk_thumbprint(jwk)}'


def get_dns_chall_txt_record(token: str, jwk: _JWKBase) -> str:
    """
    value of the `_acme-challenge` TXT record for `dns-01`

    see https://tools.ietf.org/html/rfc8555#section-8.4
    """
    key_auth = get_keyAuthorization(token, jwk)
    return b64_encode(hashlib.sha256(key_auth.encode('utf-8')).digest())
