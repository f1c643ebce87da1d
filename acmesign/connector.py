from typing import Any, Dict, Optional, Union
import json
import logging
import re

import requests

from acmesign import settings
from acmesign.ACMEobj import ACMEDirectory, NormalizedResponse
from acmesign.exceptions import (
    AccountDeactivatedError, FormatError, SetupError, SigningError,
    TransportError
)
from acmesign.jwk import AccountKeys, JWKRSA, load_rsa_privkey
from acmesign.jws import JWSRS256


__all__ = ['Nonce', 'SigningConnector']


log = logging.getLogger(__name__)

# absolute urls start with a scheme, e.g. `https://`
_ABSOLUTE_URL = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.-]*://')

Body = Union[str, bytes, Dict[str, Any], list, None]
Payload = Union[Dict[str, Any], list, str, None]


class Nonce:
    """
    Replay-Nonce http header, it can be get from /newNonce or
    returned by the latest response header; a nonce is used only once
    see https://tools.ietf.org/html/rfc8555#section-7.2
    """

    def __init__(self, nonce: str = ''):
        self.latest = nonce

    def update(self, nonce: str) -> None:
        self.latest = nonce

    def update_from_resp(self, resp: requests.Response) -> bool:
        """take the nonce from response header, return `False` if absent"""
        if settings.NONCE_HEADER not in resp.headers:
            return False
        self.latest = resp.headers[settings.NONCE_HEADER]
        return True

    def consume(self) -> str:
        nonce, self.latest = self.latest, ''
        return nonce

    def __bool__(self):
        return bool(self.latest)

    def __str__(self):
        return self.latest

    __repr__ = __str__


class SigningConnector:
    """
    Connection to one acme server for one account session. Fetch the
    directory and a first nonce on construction, then sign and send every
    request of that account.

    The http client only needs a `send(prepared_request)` method returning a
    `requests.Response`, a `requests.Session` is created if not given. A
    connector is not meant to be shared between threads: the nonce is replaced
    by each response and used by the next signed request.
    """

    def __init__(self,
                 base_url: str,
                 account_keys: AccountKeys,
                 http_client: Any = None,
                 logger: Optional[logging.Logger] = None,
                 account_url: str = '',
                 directory_path: str = settings.DIRECTORY_PATH,
                 verify: Union[bool, str] = True,
                 timeout: Optional[float] = None):
        self.base_url = base_url.rstrip('/')
        self.account_keys = account_keys
        # the `kid` of signed requests once the account is created
        self.account_url = account_url
        if http_client is None:
            http_client = requests.Session()
            http_client.verify = verify
        self.http_client = http_client
        self.timeout = timeout
        self._log = logger or log
        self._nonce = Nonce()
        self._account_deactivated = False

        self.directory = self._query_dir(directory_path)
        self.new_nonce()

    @property
    def nonce(self) -> str:
        return self._nonce.latest

    @property
    def account_deactivated(self) -> bool:
        return self._account_deactivated

    def mark_deactivated(self) -> None:
        """
        called once the account is deactivated, any further request is
        refused; see https://tools.ietf.org/html/rfc8555#section-7.3.6
        """
        self._account_deactivated = True
        self._log.debug('account %s deactivated', self.account_url)

    def _query_dir(self, directory_path: str) -> ACMEDirectory:
        """
        get acme server resources, use GET request
        see https://tools.ietf.org/html/rfc8555#section-7.1
        """
        try:
            resp = self.get(directory_path)
            return ACMEDirectory(resp.body)
        except (TransportError, FormatError) as e:
            raise SetupError(
                f'cannot get directory from {self.base_url}: {e}'
            ) from e

    def new_nonce(self) -> None:
        """get new nonce explicitly, use HEAD method, expect 204"""
        url = self.directory.newNonce
        try:
            resp = self.head(url)
        except TransportError as e:
            raise SetupError(f'no new nonce - fetched {url}: {e}') from e
        if resp.status != 204 or settings.NONCE_HEADER not in resp.headers:
            raise SetupError(
                f'no new nonce - fetched {url} got {resp.header}'
            )

    def _resolve_url(self, url: str) -> str:
        if _ABSOLUTE_URL.match(url):
            return url
        return f'{self.base_url}/{url.lstrip("/")}'

    def _request(self, method: str, url: str,
                 body: Body = None) -> NormalizedResponse:
        """send request, normalize the response and keep the nonce fresh"""
        if self._account_deactivated:
            raise AccountDeactivatedError(
                'the account was deactivated, no further requests can be made'
            )

        request_url = self._resolve_url(url)
        headers = {'Accept': settings.JSON_CONTENT_TYPE}
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        if body:
            headers['Content-Type'] = settings.JSON_CONTENT_TYPE
        else:
            body = None

        prepared = requests.Request(
            method, request_url, headers=headers, data=body
        ).prepare()
        if method == 'POST':
            # signed body used the nonce already
            self._nonce.consume()

        send_kwargs: Dict[str, Any] = {}
        if self.timeout is not None:
            send_kwargs['timeout'] = self.timeout
        try:
            resp = self.http_client.send(prepared, **send_kwargs)
            resp.raise_for_status()
        except requests.HTTPError as e:
            raise self._transport_error(method, request_url, e) from e
        except requests.RequestException as e:
            raise TransportError(f'{method} {request_url} failed') from e

        self._maintain_nonce(method, resp)
        return self._format_response(method, request_url, resp)

    def _transport_error(self, method: str, request_url: str,
                         e: requests.HTTPError) -> TransportError:
        resp = e.response
        msg = f'{method} {request_url} failed'
        if resp is None:
            return TransportError(msg)
        # error responses carry a fresh nonce as well
        self._nonce.update_from_resp(resp)
        detail = ''
        try:
            problem = json.loads(resp.text)
        except ValueError:
            problem = None
        if isinstance(problem, dict) \
                and isinstance(problem.get('detail'), str):
            detail = problem['detail']
            msg += f' ({detail})'
        return TransportError(
            msg, status=resp.status_code, detail=detail, response=resp
        )

    def _format_response(self, method: str, request_url: str,
                         resp: requests.Response) -> NormalizedResponse:
        header = f'{resp.status_code} {resp.reason}\n'
        for name, value in resp.headers.items():
            header += f'{name}: {value}\n'

        raw = resp.text
        body: Any = raw
        if resp.headers.get('Content-Type') == settings.JSON_CONTENT_TYPE:
            try:
                body = json.loads(raw)
            except ValueError as e:
                raise FormatError(
                    f'bad json received from {method} {request_url}: {raw!r}'
                ) from e

        self._log.debug('%s %s got %s', method, request_url, resp.status_code)
        return NormalizedResponse(
            request=f'{method} {request_url}',
            header=header,
            body=body,
            raw=raw,
            status=resp.status_code,
            headers=resp.headers,
        )

    def _maintain_nonce(self, method: str, resp: requests.Response) -> None:
        if self._nonce.update_from_resp(resp):
            self._log.debug('got new nonce %s', self._nonce)
        elif method == 'POST':
            # GET and HEAD responses are not expected to carry a nonce
            self.new_nonce()

    def get(self, url: str) -> NormalizedResponse:
        """GET `url`, relative urls are appended to `base_url`"""
        return self._request('GET', url)

    def post(self, url: str, body: Body = None) -> NormalizedResponse:
        """POST `body`, usually a signed jws from `sign_jwk`/`sign_kid`"""
        return self._request('POST', url, body)

    def head(self, url: str) -> NormalizedResponse:
        return self._request('HEAD', url)

    def get_jwk(self, privkey_path: str = '') -> JWKRSA:
        """public jwk of the account key, or of the key at `privkey_path`"""
        return JWKRSA.from_privkey(
            load_rsa_privkey(privkey_path or self.account_keys.private_key)
        )

    def _current_nonce(self) -> str:
        if not self._nonce:
            # last nonce consumed by a failed POST
            self.new_nonce()
        return self._nonce.latest

    def sign_jwk(self, payload: Payload, url: str,
                 privkey_path: str = '') -> str:
        """
        sign with the public key embedded as `jwk` in protected header, used
        before an account exists (newAccount, and the inner jws of keyChange).

        see https://tools.ietf.org/html/rfc8555#section-6.2
        """
        jwk = self.get_jwk(privkey_path)
        jws = JWSRS256(
            url=url, nonce=self._current_nonce(), jwk=jwk, payload=payload
        )
        jws.sign()
        return jws.to_json()

    def sign_kid(self, payload: Payload, kid: str, url: str,
                 privkey_path: str = '') -> str:
        """
        sign with the account url as `kid` in protected header, used by all
        requests once the account is created
        """
        jwk = self.get_jwk(privkey_path)
        if not kid:
            raise SigningError(f'no kid given for signing request to {url}')
        jws = JWSRS256(
            url=url, nonce=self._current_nonce(), jwk=jwk, kid=kid,
            payload=payload
        )
        jws.sign()
        return jws.to_json()
