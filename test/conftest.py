import pytest

from pathlib import Path
import sys
sys.path.append(str(Path(__file__).parents[1].absolute()))

import responses
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.backends import default_backend

from acmesign.connector import SigningConnector
from acmesign.jwk import AccountKeys

from test_common import *


DEFAULT_KEYSIZE = 2048


def _new_rsa_privkey() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(
        public_exponent=65537,
        key_size=DEFAULT_KEYSIZE,
        backend=default_backend()
    )


def _write_privkey(privkey, path: Path) -> str:
    privkey_b = privkey.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption()
    )
    path.write_bytes(privkey_b)
    return str(path)


@pytest.fixture(scope='session')
def key_dir(tmp_path_factory) -> Path:
    return tmp_path_factory.mktemp('keys')


@pytest.fixture(scope='session')
def rsa_privkey() -> rsa.RSAPrivateKey:
    return _new_rsa_privkey()


@pytest.fixture(scope='session')
def rsa_privkey_i() -> rsa.RSAPrivateKey:
    # independent of the account key
    return _new_rsa_privkey()


@pytest.fixture(scope='session')
def privkey_path(key_dir: Path, rsa_privkey: rsa.RSAPrivateKey) -> str:
    return _write_privkey(rsa_privkey, key_dir / 'account.key')


@pytest.fixture(scope='session')
def privkey_path_i(key_dir: Path, rsa_privkey_i: rsa.RSAPrivateKey) -> str:
    return _write_privkey(rsa_privkey_i, key_dir / 'other.key')


@pytest.fixture(scope='session')
def ec_privkey_path(key_dir: Path) -> str:
    ec_key = ec.generate_private_key(ec.SECP256R1(), default_backend())
    ec_key_b = ec_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )
    path = key_dir / 'ec.key'
    path.write_bytes(ec_key_b)
    return str(path)


@pytest.fixture(scope='function')
def mocked_ca():
    """
    mocked acme server with directory and one nonce queued; more responses
    are added by each test
    """
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(responses.GET, DIRECTORY_URL, json=DIRECTORY)
        add_nonce(rsps, FIRST_NONCE)
        yield rsps


@pytest.fixture(scope='function')
def connector(mocked_ca, privkey_path: str) -> SigningConnector:
    return SigningConnector(
        BASE_URL, AccountKeys(privkey_path), account_url=ACCOUNT_URL
    )
