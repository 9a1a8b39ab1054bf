"""Cookie manager with current/previous secret rotation."""

import base64
import binascii
import logging
from dataclasses import dataclass
from enum import Enum
from http.cookies import CookieError
from typing import Optional, Union

from starlette.requests import Request
from starlette.responses import Response

from tegata.core.signer import (
    DEFAULT_MAX_AGE,
    VALID_SECRET_LENGTHS,
    SecureCookieSigner,
    VerificationError,
)

logger = logging.getLogger(__name__)

DEFAULT_PATH = "/"


class SameSite(str, Enum):
    STRICT = "strict"
    LAX = "lax"
    NONE = "none"

    @classmethod
    def parse(cls, value: Union["SameSite", str, None]) -> "SameSite":
        """Resolve a configured policy; unset values fall back to lax."""
        if isinstance(value, cls):
            return value
        if not value or str(value).lower() == "unset":
            return cls.LAX
        return cls(str(value).lower())


class DecodingError(Exception):
    """Raised when a configured secret is not valid base64."""

    def __init__(self, which: str) -> None:
        self.which = which
        super().__init__(f"{which} cookie secret is not valid base64")


class InvalidSecretLength(Exception):
    """Raised when a decoded secret is not 32 or 64 bytes long."""

    def __init__(self, which: str, length: int) -> None:
        self.which = which
        self.length = length
        super().__init__(f"{which} cookie secret must be 32 or 64 bytes, got {length}")


class CookieNotFound(Exception):
    """Raised when the request carries no cookie with the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"cookie '{name}' not found")


class InvalidCookieName(Exception):
    """Raised when a cookie name cannot appear in a Set-Cookie header."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"'{name}' is not a valid cookie name")


@dataclass(frozen=True)
class ManagerOptions:
    """Construction options for a CookieManager."""

    current_secret: str
    previous_secret: str
    same_site: Union[SameSite, str, None] = None
    path: str = ""
    max_age: Optional[int] = DEFAULT_MAX_AGE


def decode_secret(encoded: str, which: str) -> bytes:
    """
    Decode a base64 secret and check its length.

    Args:
        encoded: Standard base64 string (padding required).
        which: "current" or "previous", used in error messages.

    Returns:
        Raw secret bytes.

    Raises:
        DecodingError: If the string is not valid base64
        InvalidSecretLength: If the decoded secret is not 32 or 64 bytes
    """
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError, TypeError) as exc:
        raise DecodingError(which) from exc
    if len(raw) not in VALID_SECRET_LENGTHS:
        raise InvalidSecretLength(which, len(raw))
    return raw


@dataclass(frozen=True)
class CookieManager:
    """
    Signs cookies with the current secret and verifies them against the
    current secret, then the previous one.

    Build with from_options(); instances are immutable and may be shared
    across requests.
    """

    current: SecureCookieSigner
    previous: SecureCookieSigner
    same_site: SameSite = SameSite.LAX
    path: str = DEFAULT_PATH

    @classmethod
    def from_options(cls, options: ManagerOptions) -> "CookieManager":
        """
        Build a manager from base64 secrets and cookie attribute defaults.

        Raises:
            DecodingError: If either secret is not valid base64
            InvalidSecretLength: If either secret is not 32 or 64 bytes
        """
        current_bytes = decode_secret(options.current_secret, "current")
        previous_bytes = decode_secret(options.previous_secret, "previous")
        return cls(
            current=SecureCookieSigner(current_bytes, options.max_age, label="current"),
            previous=SecureCookieSigner(previous_bytes, options.max_age, label="previous"),
            same_site=SameSite.parse(options.same_site),
            path=options.path or DEFAULT_PATH,
        )

    # ── Raw tokens ───────────────────────────────────────────────────────────

    def sign(self, name: str, value: str) -> str:
        """Sign *value* for cookie *name* with the current secret."""
        return self.current.encode(name, value)

    def read(self, name: str, token: str) -> str:
        """
        Verify *token* for cookie *name* and return its value.

        Tries the current secret first and falls back to the previous one on
        any failure. If both reject the token, the previous signer's
        VerificationError propagates.
        """
        try:
            return self.current.decode(name, token)
        except VerificationError as exc:
            logger.info("Falling back to previous cookie secret for %r (%s)", name, exc.reason)
        return self.previous.decode(name, token)

    # ── Cookie transport ─────────────────────────────────────────────────────

    def set_cookie(self, response: Response, name: str, value: str) -> None:
        """
        Sign *value* and attach it to *response* as cookie *name*.

        Raises:
            SigningError: If the value cannot be signed
            InvalidCookieName: If *name* is not a legal cookie name
        """
        token = self.sign(name, value)
        try:
            response.set_cookie(
                name,
                token,
                path=self.path,
                secure=True,
                httponly=True,
                samesite=self.same_site.value,
            )
        except CookieError as exc:
            raise InvalidCookieName(name) from exc

    def get_cookie_value(self, request: Request, name: str) -> str:
        """
        Return the verified value of cookie *name* from *request*.

        Raises:
            CookieNotFound: If the request has no such cookie
            VerificationError: If neither secret accepts the token
        """
        token = request.cookies.get(name)
        if token is None:
            raise CookieNotFound(name)
        return self.read(name, token)

    def delete_cookie(self, response: Response, name: str) -> None:
        """
        Instruct the client to discard cookie *name* immediately.

        An illegal name can never have been set, so it is skipped with a warning.
        """
        try:
            response.set_cookie(
                name,
                "",
                max_age=-1,
                path=self.path,
                secure=True,
                httponly=True,
                samesite=self.same_site.value,
            )
        except CookieError:
            logger.warning("Not deleting cookie with invalid name %r", name)


def new_manager(options: ManagerOptions) -> CookieManager:
    """Shorthand for CookieManager.from_options()."""
    return CookieManager.from_options(options)
