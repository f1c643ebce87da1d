from typing import Any, Dict, List, Mapping, Optional, TYPE_CHECKING
import logging

from acmesign.base import _ACMERespObject
from acmesign.exceptions import (
    ChallengeNotFoundError, FormatError, TransportError
)

if TYPE_CHECKING:
    from acmesign.connector import SigningConnector


log = logging.getLogger(__name__)


class NormalizedResponse:
    """
    uniform result of every request made by the connector, whatever the
    http method:
     * `request`: `"<METHOD> <url>"`
     * `header`: status line and one `Name: value` line per header
     * `body`: decoded json if content type is `application/json`, else the
     raw text
     * `raw`: response text as received
     * `status`: http status code
     * `headers`: response header mapping, e.g. for `Location`
    """

    def __init__(self,
                 request: str,
                 header: str,
                 body: Any,
                 raw: str,
                 status: int,
                 headers: Mapping[str, str]):
        self.request = request
        self.header = header
        self.body = body
        self.raw = raw
        self.status = status
        self.headers = headers

    def __str__(self):
        return f'NormalizedResponse({self.request!r}, status={self.status})'

    __repr__ = __str__


class ACMEDirectory(_ACMERespObject):
    """
    urls of acme server resources, `meta` is optional.

    see https://tools.ietf.org/html/rfc8555#section-7.1.1
    """
    _attrs = [
        ('keyChange', ''),
        ('newAccount', ''),
        ('newNonce', ''),
        ('newOrder', ''),
        ('revokeCert', ''),
        ('meta', None),
    ]
    _required = ('keyChange', 'newAccount', 'newNonce', 'newOrder',
                 'revokeCert')


class ACMEIdentifier(_ACMERespObject):
    """`{"type": "dns", "value": "example.org"}`, see rfc8555 p29"""
    _attrs = [('type', ''), ('value', '')]
    _required = ('type', 'value')


class ACMEChallenge(_ACMERespObject):
    """
    read-only snapshot of one challenge listed in an authorization; fields
    other than the ones below (decided by challenge type) are kept as attrs.

    see https://tools.ietf.org/html/rfc8555#section-8
    """
    _attrs = [
        # required below
        ('type', ''),
        ('url', ''),
        ('status', ''),
        # optional below
        ('token', ''),
        ('validated', ''),
        ('error', None),
    ]
    _required = ('type', 'url', 'status')


class ACMEAuthorization(_ACMERespObject):
    """
    An acme authorization object, attr `auth_location` is the url it is
    fetched from, given by the `authorizations` field of an order.

    Fields are fetched on construction and by `update()`, each time using a
    POST-as-GET signed with the account `kid`. A fetch that fails or does not
    return 200 is logged and leaves all fields untouched; on construction they
    stay unset (`None` and an empty challenge list).

    see https://tools.ietf.org/html/rfc8555#section-7.1.4
    """
    _attrs = [
        ('status', None),               # required
        ('expires', None),
        # identifier and challenges are replaced by their parsed objects
        ('identifier', None),           # required, object
        ('challenges', None),           # required, array of objects
        ('wildcard', False),            # boolean
    ]
    _required = ('identifier', 'status', 'challenges')

    def __init__(self,
                 connector: 'SigningConnector',
                 auth_url: str,
                 logger: Optional[logging.Logger] = None):
        self._connector = connector
        self._log = logger or log
        self._raw_resp_body: Dict[str, Any] = dict()
        self.auth_location = auth_url
        self.identifier: Optional[ACMEIdentifier] = None
        self.status: Optional[str] = None
        self.expires: Optional[str] = None
        self.wildcard = False
        self.challenges: List[ACMEChallenge] = []
        self._fetch()

    def _fetch(self) -> bool:
        jws = self._connector.sign_kid(
            None, self._connector.account_url, self.auth_location
        )
        try:
            resp = self._connector.post(self.auth_location, jws)
        except TransportError as e:
            self._log.error(
                'cannot fetch authorization %s: %s', self.auth_location, e
            )
            return False
        if resp.status != 200:
            self._log.error(
                'cannot find authorization %s, got status %s',
                self.auth_location, resp.status
            )
            return False

        # parse everything before touching any attr
        resp_body = self._check_body(resp.body)
        if not isinstance(resp_body['challenges'], list):
            raise FormatError(
                f'challenges of {self.auth_location} should be a list, '
                f'got {resp_body["challenges"]!r}'
            )
        identifier = ACMEIdentifier(resp_body['identifier'])
        challenges = [ACMEChallenge(c) for c in resp_body['challenges']]

        self._raw_resp_body = resp_body
        self._update_attr()
        self.identifier = identifier
        self.challenges = challenges
        return True

    def update(self) -> bool:
        """
        re-fetch the authorization, return `True` if fields are updated;
        polling cadence is decided by the caller
        """
        return self._fetch()

    def get_challenge(self, chall_type: str) -> ACMEChallenge:
        """
        return the challenge of `chall_type` like `"http-01"`, `"dns-01"`;
        raise `ChallengeNotFoundError` if the server did not offer it
        """
        for chall in self.challenges:
            if chall.type == chall_type:
                return chall
        value = self.identifier.value if self.identifier else ''
        raise ChallengeNotFoundError(chall_type, value)

    @property
    def chall_http(self) -> ACMEChallenge:
        return self.get_challenge('http-01')

    @property
    def chall_dns(self) -> ACMEChallenge:
        return self.get_challenge('dns-01')
