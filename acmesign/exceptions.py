from typing import Any, Optional


class ACMEError(Exception):
    """base class of all errors raised by acmesign"""


class SetupError(ACMEError):
    """
    the connector could not be set up: directory can not be fetched or is
    incomplete, or the nonce endpoint did not hand out a nonce
    """


class TransportError(ACMEError):
    """
    request failed on the network or the server answered with an error
    status; `detail` is taken from an rfc7807 problem document if any.

    see https://tools.ietf.org/html/rfc8555#section-6.7
    """

    def __init__(self,
                 message: str,
                 status: Optional[int] = None,
                 detail: str = '',
                 response: Any = None):
        super().__init__(message)
        self.status = status
        self.detail = detail
        self.response = response


class FormatError(ACMEError):
    """server response can not be parsed into the expected shape"""


class AccountDeactivatedError(ACMEError):
    """no request can be made once the account is deactivated"""


class SigningError(ACMEError):
    """private key for signing is missing or can not be used"""


class ChallengeNotFoundError(ACMEError):
    """an authorization does not offer the requested challenge type"""

    def __init__(self, chall_type: str, identifier: str):
        super().__init__(
            f"no challenge found for type '{chall_type}' "
            f"and identifier '{identifier}'"
        )
        self.chall_type = chall_type
        self.identifier = identifier
