from tegata.core.manager import (
    CookieManager,
    CookieNotFound,
    DecodingError,
    InvalidCookieName,
    InvalidSecretLength,
    ManagerOptions,
    SameSite,
    new_manager,
)
from tegata.core.signer import SecureCookieSigner, SigningError, VerificationError

__all__ = [
    "CookieManager",
    "CookieNotFound",
    "DecodingError",
    "InvalidCookieName",
    "InvalidSecretLength",
    "ManagerOptions",
    "SameSite",
    "SecureCookieSigner",
    "SigningError",
    "VerificationError",
    "new_manager",
]
