"""YAML configuration loader and validator."""

from pathlib import Path
from typing import Any, Optional

import yaml

from tegata.core.manager import (
    CookieManager,
    DecodingError,
    InvalidSecretLength,
    ManagerOptions,
    SameSite,
    decode_secret,
)
from tegata.core.signer import DEFAULT_MAX_AGE

_SAME_SITE_VALUES = {s.value for s in SameSite} | {"unset"}


class ConfigError(Exception):
    """Raised for invalid or missing configuration."""


def load_config(path: Path) -> Optional[dict[str, Any]]:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the YAML config file

    Returns:
        Parsed configuration dictionary, or None if file is empty

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    with open(path) as f:
        result: Optional[dict[str, Any]] = yaml.safe_load(f)
        return result


def validate_config(config: dict[str, Any]) -> list[str]:
    """
    Validate a loaded configuration dictionary.

    Returns:
        List of validation error messages (empty list = valid)
    """
    errors: list[str] = []

    if not isinstance(config, dict):
        return ["Config root must be a YAML mapping"]

    cookies = config.get("cookies")
    if not cookies:
        errors.append("'cookies' key is required and must be a mapping")
        return errors

    if not isinstance(cookies, dict):
        errors.append("'cookies' must be a mapping")
        return errors

    for which in ("current", "previous"):
        field = f"{which}_secret"
        encoded = cookies.get(field)
        if not encoded:
            errors.append(f"cookies: missing required field '{field}'")
            continue
        if not isinstance(encoded, str):
            errors.append(f"cookies.{field}: must be a base64 string")
            continue
        try:
            decode_secret(encoded, which)
        except (DecodingError, InvalidSecretLength) as exc:
            errors.append(f"cookies.{field}: {exc}")

    same_site = cookies.get("same_site")
    if same_site and str(same_site).lower() not in _SAME_SITE_VALUES:
        errors.append(
            f"cookies.same_site: unrecognized policy '{same_site}' "
            "(expected 'strict', 'lax' or 'none')"
        )

    path = cookies.get("path")
    if path and not (isinstance(path, str) and path.startswith("/")):
        errors.append(f"cookies.path: must start with '/', got '{path}'")

    max_age = cookies.get("max_age")
    if max_age is not None and (
        isinstance(max_age, bool) or not isinstance(max_age, int) or max_age < 0
    ):
        errors.append(f"cookies.max_age: must be a non-negative integer, got '{max_age}'")

    return errors


def options_from_config(config: dict[str, Any]) -> ManagerOptions:
    """
    Construct ManagerOptions from a validated config dict.

    Args:
        config: Parsed and validated config dictionary

    Returns:
        ManagerOptions instance
    """
    raw = config.get("cookies", {})
    max_age = raw.get("max_age")
    return ManagerOptions(
        current_secret=raw["current_secret"],
        previous_secret=raw["previous_secret"],
        same_site=raw.get("same_site"),
        path=raw.get("path") or "",
        max_age=DEFAULT_MAX_AGE if max_age is None else int(max_age),
    )


def manager_from_config(config: dict[str, Any]) -> CookieManager:
    """
    Validate a config dict and build the CookieManager it describes.

    Raises:
        ConfigError: If the config has validation errors
    """
    errors = validate_config(config)
    if errors:
        raise ConfigError("; ".join(errors))
    return CookieManager.from_options(options_from_config(config))


def load_manager(path: Path) -> CookieManager:
    """
    Load a config file and build its CookieManager.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigError: If the file is empty or invalid
    """
    raw = load_config(path)
    if not raw:
        raise ConfigError(f"Config file is empty: {path}")
    return manager_from_config(raw)
