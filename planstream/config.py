from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - py<3.11
    import tomli as tomllib

from planstream.errors import ConfigError

CONFIG_DIR = Path.home() / ".planstream"
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_ADDRESS = "https://app.terraform.io"
DEFAULT_BASE_PATH = "/api/v2/"


@dataclass
class Profile:
    name: str
    address: str = DEFAULT_ADDRESS
    base_path: str = DEFAULT_BASE_PATH
    token: Optional[str] = None
    timeout: float = 30.0
    chunk_size: int = 65536
    poll_min: float = 0.5
    poll_max: float = 2.0

    @property
    def base_url(self) -> str:
        return self.address.rstrip("/") + "/" + self.base_path.strip("/") + "/"


def load_config() -> Dict[str, Any]:
    if not CONFIG_PATH.exists():
        return {}
    try:
        return tomllib.loads(CONFIG_PATH.read_text())
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid config file {CONFIG_PATH}: {exc}") from exc


def save_config() -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    lines = [
        "# planstream configuration",
        "",
        "[profile.default]",
        f"address = \"{DEFAULT_ADDRESS}\"",
        "# token = \"...\"  (or set PLANSTREAM_TOKEN)",
        "timeout = 30",
        "chunk_size = 65536",
        "poll_min = 0.5",
        "poll_max = 2.0",
        "",
    ]
    CONFIG_PATH.write_text("\n".join(lines))


def _number(profile_name: str, data: Dict[str, Any], key: str, default, kind):
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"Profile '{profile_name}' has non-numeric {key}: {value!r}")
    if kind is int and not isinstance(value, int):
        raise ConfigError(f"Profile '{profile_name}' has non-integer {key}: {value!r}")
    value = kind(value)
    if value < 0:
        raise ConfigError(f"Profile '{profile_name}' has negative {key}: {value!r}")
    return value


def get_profile(name: str | None) -> Profile:
    data = load_config()
    profiles = data.get("profile", {})
    profile_name = name or os.environ.get("PLANSTREAM_PROFILE", "default")
    profile = profiles.get(profile_name)
    if profile is None:
        if name is not None or profiles:
            raise ConfigError(f"Profile '{profile_name}' not found in {CONFIG_PATH}")
        profile = {}
    token = profile.get("token") or os.environ.get("PLANSTREAM_TOKEN") or None
    chunk_size = _number(profile_name, profile, "chunk_size", 65536, int)
    if chunk_size == 0:
        raise ConfigError(f"Profile '{profile_name}' chunk_size must be positive")
    poll_min = _number(profile_name, profile, "poll_min", 0.5, float)
    poll_max = _number(profile_name, profile, "poll_max", 2.0, float)
    if poll_max < poll_min:
        raise ConfigError(f"Profile '{profile_name}' poll_max is lower than poll_min")
    return Profile(
        name=profile_name,
        address=profile.get("address", DEFAULT_ADDRESS),
        base_path=profile.get("base_path", DEFAULT_BASE_PATH),
        token=token,
        timeout=_number(profile_name, profile, "timeout", 30, float),
        chunk_size=chunk_size,
        poll_min=poll_min,
        poll_max=poll_max,
    )
