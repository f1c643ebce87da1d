from typing import Dict, Any, List, Tuple, Union
import base64
import json

from acmesign.exceptions import FormatError


def b64_encode(b: bytes) -> str:
    """urlsafe base64 without padding, see rfc7515 section 2"""
    return str(base64.urlsafe_b64encode(b).strip(b'='), encoding='utf-8')


def json_dumps(obj: Any) -> str:
    """compact json, no whitespace between separators"""
    return json.dumps(obj, separators=(',', ':'))


class _JWKBase:
    """JWK object is a memeber of protected header and then encoded by b64"""

    def __init__(self, kty: str, **kwargs):
        # _container will be serialised by json then b64 encoded
        self._container: Dict[str, Any] = dict()
        self.kty = kty
        self._check_kty_param(kwargs)
        self.__dict__.update(kwargs)
        self._update_container()

    def _check_kty_param(self, kwargs: dict) -> None:
        raise NotImplementedError

    def _update_container(self) -> None:
        raise NotImplementedError

    @staticmethod
    def _b64_encode_int(i: int) -> str:
        """
        encode an int using urlsafe base64, big endian bytes without leading
        zero; see https://tools.ietf.org/html/rfc7518#section-6.3.1
        """
        i_bytes = i.to_bytes((i.bit_length() + 7) // 8 or 1, 'big')
        return b64_encode(i_bytes)

    def __str__(self):
        return str(self._container)

    __repr__ = __str__


class _JWSBase:

    def __init__(self,
                 alg: str,
                 url: str,
                 nonce: str,
                 payload: Union[Dict[str, Any], List[Any], str, None],
                 jwk: _JWKBase,
                 kid: str = ''):
        self.alg = alg

        # jwk and kid are exclusive, one of them goes into protected header
        # see https://tools.ietf.org/html/rfc8555#section-6.2, page 12

        # `jwk` is always given since it holds the private key; if `kid` is
        # presented, use `kid` for protected header
        self.jwk = jwk
        self.kid = kid

        self.protected: Dict[str, Any] = {'alg': alg}
        if kid:
            self.protected['kid'] = kid
        else:
            self.protected['jwk'] = jwk._container
        self.protected['nonce'] = nonce
        self.protected['url'] = url

        self.url = url
        self.nonce = nonce
        # `None` and `""` both give an empty payload segment (POST-as-GET),
        # an empty dict is still serialized to `{}`
        # see https://tools.ietf.org/html/rfc8555#section-7.5.1 for empty {}
        self.payload = payload
        self.signature = ''
        self.post_body: Dict[str, str] = dict()

    def get_sign_input(self) -> bytes:
        """
        see https://tools.ietf.org/html/rfc7515#section-2 Signing Input
        """
        protected_b64 = b64_encode(
            bytes(json_dumps(self.protected), encoding='utf-8'))

        # empty payload, see rfc8555 p54 POST example
        # this should not be the literal b'""'
        payload_b64 = ''

        if isinstance(self.payload, (dict, list)):
            payload_b64 = b64_encode(
                bytes(json_dumps(self.payload), encoding='utf-8'))
        elif isinstance(self.payload, str) and self.payload:
            # already serialized payload, see rfc8555 section-6.3
            payload_b64 = b64_encode(bytes(self.payload, encoding='utf-8'))

        self.post_body['protected'] = protected_b64
        self.post_body['payload'] = payload_b64
        self.sign_input = bytes(f'{protected_b64}.{payload_b64}', 'ascii')
        return self.sign_input

    def sign(self) -> None:
        # update signature to self.post_body, str type signature generated
        raise NotImplementedError

    def to_json(self) -> str:
        """the flattened jws json serialization sent as request body"""
        if not self.signature:
            self.sign()
        return json_dumps(self.post_body)


class _ACMERespObject:
    """represent an object returned by an acme server"""

    # (field_name, default_value if server not provided)
    _attrs: List[Tuple[str, Any]] = []
    # fields that must be presented in server response
    _required: Tuple[str, ...] = ()

    def __init__(self, resp_body: Any = None):
        self._set_initial(resp_body)
        self._update_attr()

    @classmethod
    def _check_body(cls, resp_body: Any) -> Dict[str, Any]:
        # some response may not have content
        if resp_body is None:
            resp_body = dict()
        if not isinstance(resp_body, dict):
            raise FormatError(
                f'{cls.__name__} expects a json object, got {resp_body!r}'
            )
        missing = [f for f in cls._required if f not in resp_body]
        if missing:
            raise FormatError(
                f'{cls.__name__} missing field(s) {missing} in {resp_body!r}'
            )
        return resp_body

    def _set_initial(self, resp_body: Any) -> None:
        self._raw_resp_body = self._check_body(resp_body)

    def _update_attr(self) -> None:
        rfc_attrs = [attr for attr, _ in self._attrs]
        for attr, default in self._attrs:
            setattr(self, attr, self._raw_resp_body.get(attr, default))
        # in case server return some attrs which are not included in rfc8555
        for k, v in self._raw_resp_body.items():
            if k not in rfc_attrs and not k.startswith('_'):
                setattr(self, k, v)

    def _public_attrs(self) -> Dict[str, Any]:
        return {
            k : v for (k, v) in self.__dict__.items() if not k.startswith('_')
        }

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._public_attrs() == other._public_attrs()  # type: ignore

    def __str__(self):
        cls = type(self).__name__
        return f'{cls}({str(self._public_attrs())})'

    __repr__ = __str__
