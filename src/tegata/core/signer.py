"""Cookie value signing (itsdangerous)."""

import hashlib
import logging
from typing import Any, Callable

from itsdangerous import BadData, TimestampSigner, URLSafeTimedSerializer
from itsdangerous.encoding import base64_decode, base64_encode, want_bytes

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = 86400 * 30  # 30 days
MAX_TOKEN_LENGTH = 4096  # browsers drop larger cookies

# Secret length (bytes) -> HMAC digest
_DIGESTS: dict[int, Callable[..., Any]] = {
    32: hashlib.sha256,
    64: hashlib.sha512,
}

VALID_SECRET_LENGTHS = tuple(_DIGESTS)


class SigningError(Exception):
    """Raised when a value cannot be encoded into a token."""

    def __init__(self, name: str, reason: str = "") -> None:
        self.name = name
        self.reason = reason
        msg = f"failed to sign value for cookie '{name}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class VerificationError(Exception):
    """Raised when a token does not decode under a signer's secret."""

    def __init__(self, name: str, key: str, reason: str = "") -> None:
        self.name = name
        self.key = key
        self.reason = reason
        msg = f"cookie '{name}' rejected by {key} secret"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class _CanonicalTimestampSigner(TimestampSigner):
    """TimestampSigner that only accepts canonically encoded signatures.

    base64 leaves a few unused bits in the final character of the signature,
    so several spellings decode to the same digest. Only the one this signer
    would have produced is accepted.
    """

    def verify_signature(self, value: Any, sig: Any) -> bool:
        sig = want_bytes(sig)
        try:
            canonical = base64_encode(base64_decode(sig)) == sig
        except Exception:
            return False
        return canonical and super().verify_signature(value, sig)


class SecureCookieSigner:
    """
    Sign and verify string values bound to a cookie name.

    The cookie name is used as the itsdangerous salt, so a token issued for
    one cookie never verifies as another.

    Args:
        secret: Raw key material, 32 bytes (HMAC-SHA256) or 64 bytes (HMAC-SHA512).
        max_age: Maximum token age in seconds; 0 or None disables the check.
        label: Name used in errors to identify this signer ("current"/"previous").
    """

    def __init__(
        self, secret: bytes, max_age: int | None = DEFAULT_MAX_AGE, label: str = "current"
    ) -> None:
        digest = _DIGESTS.get(len(secret))
        if digest is None:
            raise ValueError(f"secret must be 32 or 64 bytes, got {len(secret)}")
        if max_age is not None and max_age < 0:
            raise ValueError(f"max_age must be non-negative, got {max_age}")
        self._serializer = URLSafeTimedSerializer(
            secret,
            signer=_CanonicalTimestampSigner,
            signer_kwargs={"digest_method": digest},
        )
        self.max_age = max_age or None
        self.label = label
        self.digest_name: str = digest().name

    def encode(self, name: str, value: str) -> str:
        """
        Return a signed token carrying *value* for cookie *name*.

        Raises:
            SigningError: If encoding fails or the token exceeds MAX_TOKEN_LENGTH.
        """
        try:
            token = self._serializer.dumps(value, salt=name)
        except Exception as exc:
            raise SigningError(name) from exc
        if len(token) > MAX_TOKEN_LENGTH:
            raise SigningError(name, f"token is {len(token)} bytes, limit is {MAX_TOKEN_LENGTH}")
        return token

    def decode(self, name: str, token: str) -> str:
        """
        Verify *token* for cookie *name* and return the original value.

        Raises:
            VerificationError: If the signature, age or payload is invalid.
        """
        try:
            value = self._serializer.loads(token, salt=name, max_age=self.max_age)
        except BadData as exc:
            logger.debug("Cookie %r rejected by %s secret: %s", name, self.label, exc)
            raise VerificationError(name, self.label, type(exc).__name__) from exc
        if not isinstance(value, str):
            raise VerificationError(name, self.label, "payload is not a string")
        return value
