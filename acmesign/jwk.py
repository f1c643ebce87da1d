from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.backends import default_backend

from acmesign.base import _JWKBase
from acmesign.exceptions import SigningError


class AccountKeys:
    """
    locations of the account key pair; keys are generated and stored by the
    caller, the connector only reads the private key when signing
    """

    def __init__(self, private_key: str, public_key: str = ''):
        self.private_key = private_key
        self.public_key = public_key

    def __str__(self):
        return f'AccountKeys(private_key={self.private_key!r})'

    __repr__ = __str__


def load_rsa_privkey(privkey_path: str) -> rsa.RSAPrivateKey:
    """load an unencrypted PEM RSA private key"""
    if not privkey_path:
        raise SigningError('no private key given for signing')
    try:
        with open(privkey_path, 'rb') as f:
            priv_key = serialization.load_pem_private_key(
                f.read(),
                password=None,
                backend=default_backend()
            )
    except OSError as e:
        raise SigningError(
            f'failed to read private key "{privkey_path}": {e}'
        ) from e
    except (ValueError, TypeError) as e:
        raise SigningError(
            f'failed to parse private key "{privkey_path}": {e}'
        ) from e
    if not isinstance(priv_key, rsa.RSAPrivateKey):
        raise SigningError(
            f'private key "{privkey_path}" is not an RSA key'
        )
    return priv_key


class JWKRSA(_JWKBase):

    kty = 'RSA'

    def __init__(self, priv_key: rsa.RSAPrivateKey, **kwargs):
        """
        private key is need for RSA JWK to generate signature.

        following keyword param must be supplied:
         * n: int
         * e: int
        """
        self.n: int
        self.e: int
        self.priv_key = priv_key
        super().__init__(self.kty, **kwargs)

    @classmethod
    def from_privkey(cls, priv_key: rsa.RSAPrivateKey) -> 'JWKRSA':
        """derive modulus and exponent from the private key"""
        pub_numbers = priv_key.public_key().public_numbers()
        return cls(priv_key=priv_key, n=pub_numbers.n, e=pub_numbers.e)

    def _check_kty_param(self, kwargs: dict) -> None:
        for param in ('n', 'e'):
            if param not in kwargs:
                raise TypeError(
                    f'missing param "{param}" for key type {self.kty}'
                )
            if not isinstance(kwargs[param], int):
                raise TypeError(f'param "{param}" should be int')

    def _update_container(self) -> None:
        self._container['kty'] = self.kty
        self._container['n'] = self._b64_encode_int(self.n)
        self._container['e'] = self._b64_encode_int(self.e)
