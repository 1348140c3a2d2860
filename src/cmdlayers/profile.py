"""Profile management: loading, creation, and validation."""

import json
import unicodedata
from pathlib import Path
from typing import Any

from cmdlayers.errors import ConfigError
from cmdlayers.models import Profile

TRANSPORT_CHOICES = ("console", "serial")
_KNOWN_FIELDS = frozenset(Profile().to_dict())


def map_path(path: str, profile_dir: str | None = None) -> str:
    """Resolve a path string to an absolute path string.

    ~ or ~/...  -> user home directory
    Absolute    -> used as-is
    Relative    -> resolved relative to profile_dir if given, else the cwd
    """
    normalized = unicodedata.normalize("NFC", path)
    if "\0" in normalized:
        raise ConfigError("Path cannot contain NUL bytes")

    candidate = Path(normalized).expanduser()
    if candidate.is_absolute():
        return str(candidate.resolve())
    if profile_dir is not None:
        return str((Path(profile_dir) / candidate).resolve())
    return str(candidate.resolve())


def _validate_optional_bool_field(profile: dict[str, Any], field_name: str) -> None:
    if field_name in profile and not isinstance(profile[field_name], bool):
        raise ConfigError(f"{field_name} must be a boolean")


def _validate_optional_positive_int(profile: dict[str, Any], field_name: str) -> None:
    if field_name not in profile:
        return
    value = profile[field_name]
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{field_name} must be a positive integer")


def _validate_optional_string(profile: dict[str, Any], field_name: str) -> None:
    value = profile.get(field_name)
    if value is not None and (not isinstance(value, str) or not value.strip()):
        raise ConfigError(f"{field_name} must be a non-empty string or null")


def validate_profile(profile: dict[str, Any]) -> None:
    """Validate profile structure.

    Args:
        profile: Profile dictionary to validate

    Raises:
        ConfigError: If profile is invalid
    """
    if not isinstance(profile, dict):
        raise ConfigError("Profile must be a JSON object")

    unknown = sorted(set(profile) - _KNOWN_FIELDS)
    if unknown:
        raise ConfigError(f"Unknown profile fields: {', '.join(unknown)}")

    transport = profile.get("transport", "console")
    if transport not in TRANSPORT_CHOICES:
        raise ConfigError(
            f"transport must be one of: {', '.join(TRANSPORT_CHOICES)}"
        )

    _validate_optional_string(profile, "serial_port")
    _validate_optional_string(profile, "log_file")
    if transport == "serial" and not profile.get("serial_port"):
        raise ConfigError("serial_port is required when transport is 'serial'")

    _validate_optional_positive_int(profile, "baud_rate")
    _validate_optional_positive_int(profile, "report_period_seconds")
    for field_name in ("reporting", "prompt", "echo", "debug"):
        _validate_optional_bool_field(profile, field_name)


def load_profile(path: str) -> Profile:
    """Load and validate profile from JSON file.

    Raises:
        FileNotFoundError: If profile doesn't exist
        ConfigError: If profile data is invalid or not JSON
    """
    profile_path = Path(map_path(path))

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    try:
        with open(profile_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Profile is not valid JSON: {e}") from e

    validate_profile(raw)

    if raw.get("log_file"):
        raw["log_file"] = map_path(raw["log_file"], str(profile_path.parent))

    return Profile.from_dict(raw)


def create_profile(path: str) -> Profile:
    """Write a profile with every field at its default value.

    Raises:
        ConfigError: If a file already exists at ``path``
    """
    profile_path = Path(map_path(path))
    if profile_path.exists():
        raise ConfigError(f"Profile already exists: {profile_path}")

    profile_path.parent.mkdir(parents=True, exist_ok=True)

    prof = Profile()
    with open(profile_path, "w", encoding="utf-8") as f:
        json.dump(prof.to_dict(), f, indent=2, ensure_ascii=False)
        f.write("\n")

    return prof
