"""Per-invocation configuration.

Values are resolved once, in increasing priority: built-in defaults, the
optional ``~/.config/nanobanana/config.toml`` file, environment variables, and
finally command-line flags. The resulting ``Config`` is passed explicitly to
every command handler.
"""

from __future__ import annotations

import argparse
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

DEFAULT_MODEL = "flash"
DEFAULT_TIMEOUT_S = 120.0
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "NANOBANANA_API_KEY", "GOOGLE_API_KEY")
MODEL_ENV_VAR = "NANOBANANA_MODEL"
TIMEOUT_ENV_VAR = "NANOBANANA_TIMEOUT"
CONFIG_PATH_ENV_VAR = "NANOBANANA_CONFIG"


@dataclass(frozen=True)
class Config:
    api_key: str | None = None
    model: str = DEFAULT_MODEL
    timeout_s: float = DEFAULT_TIMEOUT_S
    json_mode: bool = False
    quiet: bool = False
    verbose: bool = False
    no_color: bool = False


def default_config_path(environ: Mapping[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ
    override = env.get(CONFIG_PATH_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "nanobanana" / "config.toml"


def read_config_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def load_config(
    args: argparse.Namespace | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: Path | None = None,
) -> Config:
    env = os.environ if environ is None else environ
    file_values = read_config_file(config_path or default_config_path(env))

    api_key = _first_non_empty(
        getattr(args, "api_key", None),
        *(env.get(name) for name in API_KEY_ENV_VARS),
        file_values.get("api_key"),
    )
    model = _first_non_empty(
        getattr(args, "model", None),
        env.get(MODEL_ENV_VAR),
        file_values.get("model"),
        DEFAULT_MODEL,
    )
    timeout_s = _parse_timeout(env.get(TIMEOUT_ENV_VAR))
    if timeout_s is None:
        timeout_s = _parse_timeout(file_values.get("timeout"))

    no_color = bool(getattr(args, "no_color", False)) or bool(env.get("NO_COLOR"))
    return Config(
        api_key=api_key,
        model=str(model),
        timeout_s=timeout_s if timeout_s is not None else DEFAULT_TIMEOUT_S,
        json_mode=bool(getattr(args, "json", False)),
        quiet=bool(getattr(args, "quiet", False)),
        verbose=bool(getattr(args, "verbose", False)),
        no_color=no_color,
    )


def _first_non_empty(*values: Any) -> str | None:
    for value in values:
        text = str(value).strip() if value is not None else ""
        if text:
            return text
    return None


def _parse_timeout(value: Any) -> float | None:
    if value is None or value == "":
        return None
    raw = str(value).strip().lower()
    if raw.endswith("ms"):
        scale, raw = 0.001, raw[:-2]
    elif raw.endswith("m"):
        scale, raw = 60.0, raw[:-1]
    elif raw.endswith("s"):
        scale, raw = 1.0, raw[:-1]
    else:
        scale = 1.0
    try:
        seconds = float(raw) * scale
    except ValueError:
        return None
    return seconds if seconds > 0 else None
