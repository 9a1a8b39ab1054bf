"""Secret generation and atomic YAML config write-back for Tegata."""

import base64
import copy
import os
import secrets
from pathlib import Path
from typing import Any, Optional

import yaml

from tegata.core.signer import DEFAULT_MAX_AGE, VALID_SECRET_LENGTHS


def generate_secret(size: int = 32) -> str:
    """
    Generate a cryptographically secure base64 cookie secret.

    Args:
        size: Raw secret length in bytes, 32 or 64.

    Returns:
        Standard base64 string suitable for current_secret/previous_secret.
    """
    if size not in VALID_SECRET_LENGTHS:
        raise ValueError(f"secret size must be 32 or 64 bytes, got {size}")
    return base64.b64encode(secrets.token_bytes(size)).decode()


def build_config_dict(
    secret: str,
    same_site: str = "lax",
    path: str = "/",
    max_age: int = DEFAULT_MAX_AGE,
) -> dict[str, Any]:
    """
    Build a fresh config dict with *secret* in both the current and previous slots.

    Returns:
        Config dict ready for write_config().
    """
    return {
        "cookies": {
            "current_secret": secret,
            "previous_secret": secret,
            "same_site": same_site,
            "path": path,
            "max_age": max_age,
        }
    }


def rotate_secrets(config: dict[str, Any], new_secret: Optional[str] = None) -> dict[str, Any]:
    """
    Demote the current secret to previous and install a new current secret.

    The input dict is left untouched; the oldest secret is dropped.

    Args:
        config: Loaded config dict with a 'cookies' section.
        new_secret: Secret to install; a fresh 32-byte one when None.

    Returns:
        Rotated copy of the config.
    """
    rotated = copy.deepcopy(config)
    cookies: dict[str, Any] = rotated.setdefault("cookies", {})
    current = cookies.get("current_secret")
    if not current:
        raise ValueError("config has no current_secret to rotate")
    cookies["previous_secret"] = current
    cookies["current_secret"] = new_secret or generate_secret()
    return rotated


def write_config(path: Path, config: dict[str, Any]) -> None:
    """
    Atomically write a config dict to a YAML file.

    Uses a temp-file + os.replace so a crash mid-write never leaves a
    half-written file.

    Args:
        path: Destination config.yaml path.
        config: Full config dict.
    """
    tmp = path.with_suffix(".yaml.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            yaml.dump(
                config,
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
        os.chmod(tmp, 0o600)
        os.replace(tmp, path)
    except Exception:
        # Clean up temp file on failure
        if tmp.exists():
            tmp.unlink(missing_ok=True)
        raise
