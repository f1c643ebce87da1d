from typing import Any, Dict, List, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from acmesign.base import _JWSBase, b64_encode
from acmesign.jwk import JWKRSA
from acmesign.settings import ALG_RS256


__all__ = ['JWSRS256']


class JWSRS256(_JWSBase):

    alg = ALG_RS256

    def __init__(self,
                 url: str,
                 nonce: str,
                 jwk: JWKRSA,
                 kid: str = '',
                 payload: Union[Dict[str, Any], List[Any], str, None] = None):
        if not isinstance(jwk, JWKRSA):
            raise TypeError(
                f'jwk type "{type(jwk)}" not compatible with {self.alg}'
            )
        super().__init__(self.alg, url, nonce, payload, jwk, kid)

    def sign(self) -> None:
        self.jwk: JWKRSA
        sign_input = self.get_sign_input()
        sig = self.jwk.priv_key.sign(
            data=sign_input,
            # PKCS padding for `RS256` signature
            # see https://tools.ietf.org/html/rfc7518#section-3.3
            padding=padding.PKCS1v15(),
            algorithm=hashes.SHA256()
        )
        self.signature = b64_encode(sig)
        self.post_body['signature'] = self.signature
