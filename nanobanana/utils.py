"""Shared utilities for nanobanana."""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import MutableMapping


def parse_dotenv(text: str) -> dict[str, str]:
    """``KEY=value`` pairs from dotenv text; comments and malformed lines are skipped."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip().removeprefix("export ").strip()
        if line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        key, value = key.strip(), value.strip()
        if not sep or not key:
            continue
        if len(value) >= 2 and value[0] in "\"'" and value[-1] == value[0]:
            value = value[1:-1]
        values[key] = value
    return values


def load_dotenv(
    path: Path | None = None,
    override: bool = False,
    environ: MutableMapping[str, str] | None = None,
) -> bool:
    env = os.environ if environ is None else environ
    env_path = path or Path.cwd() / ".env"
    if not env_path.is_file():
        return False
    for key, value in parse_dotenv(env_path.read_text(encoding="utf-8")).items():
        if override or key not in env:
            env[key] = value
    return True


def split_output_path(path: str | Path, index: int) -> Path:
    """``out.png`` -> ``out_<index>.png`` for multi-image results."""
    target = Path(path)
    return target.with_name(f"{target.stem}_{index}{target.suffix}")


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)
