"""Terminal and JSON output helpers."""

from __future__ import annotations

import json
import os
import shutil
import sys
import threading
import time
from typing import Any, Mapping, TextIO

from .errors import NanobananaError

_BOLD = "\x1b[1m"
_DIM = "\x1b[2m"
_RED = "\x1b[31m"
_GREEN = "\x1b[32m"
_YELLOW = "\x1b[33m"
_CYAN = "\x1b[36m"
_GREY = "\x1b[38;2;150;157;165m"
_RESET = "\x1b[0m"


class Formatter:
    """Writes human-readable lines or a single JSON envelope per command."""

    def __init__(
        self,
        json_mode: bool = False,
        quiet: bool = False,
        no_color: bool = False,
        verbose: bool = False,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self.json_mode = json_mode
        self.quiet = quiet
        self.verbose = verbose
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.color = not no_color and _is_tty(self.stdout)

    def _paint(self, code: str, text: str) -> str:
        if not self.color:
            return text
        return f"{code}{text}{_RESET}"

    @property
    def interactive(self) -> bool:
        return not (self.json_mode or self.quiet)

    def info(self, message: str) -> None:
        if not self.interactive:
            return
        print(message, file=self.stdout)

    def progress(self, message: str) -> None:
        if not self.interactive:
            return
        print(f"{self._paint(_CYAN, '→')} {message}", file=self.stdout)

    def detail(self, message: str) -> None:
        if not self.verbose or self.json_mode:
            return
        print(self._paint(_DIM, f"  {message}"), file=self.stderr)

    def image_saved(self, path: str, width: int | None, height: int | None) -> None:
        if not self.interactive:
            return
        dims = f"({width}x{height})" if width and height else ""
        print(f"{self._paint(_GREEN, '✓')} Saved: {path} {self._paint(_DIM, dims)}".rstrip(), file=self.stdout)

    def success(
        self,
        command: str,
        data: Mapping[str, Any] | None = None,
        timing: Mapping[str, Any] | None = None,
    ) -> None:
        if self.json_mode:
            payload: dict[str, Any] = {"success": True, "command": command}
            if data is not None:
                payload["data"] = data
            if timing:
                payload["timing"] = {k: v for k, v in timing.items() if v is not None}
            self._write_json(payload)
            return
        if not self.quiet:
            print(f"{self._paint(_GREEN, '✓')} Success", file=self.stdout)

    def error(self, command: str, code: str, message: str, hint: str | None = None) -> None:
        if self.json_mode:
            error: dict[str, Any] = {"code": code, "message": message}
            if hint:
                error["hint"] = hint
            self._write_json({"success": False, "command": command, "error": error})
            return
        print(f"{self._paint(_RED, 'Error:')} [{code}] {message}", file=self.stderr)
        if hint:
            print(f"{self._paint(_YELLOW, 'Hint:')} {hint}", file=self.stderr)

    def failure(self, command: str, exc: NanobananaError) -> None:
        self.error(command, exc.code.value, exc.message, exc.hint)

    def ticker(self, label: str) -> "ProgressTicker | None":
        if not self.interactive:
            return None
        return ProgressTicker(label, stream=self.stdout, color=self.color)

    def _write_json(self, payload: Mapping[str, Any]) -> None:
        print(json.dumps(payload, indent=2, default=str), file=self.stdout)


class ProgressTicker:
    """Elapsed-time line shown while a blocking API call is in flight."""

    def __init__(
        self,
        label: str,
        start: float | None = None,
        stream: TextIO | None = None,
        interval_s: float = 1.0,
        color: bool = True,
    ) -> None:
        self.label = label
        self.start = start
        self.stream = stream or sys.stdout
        self.interval_s = max(0.2, interval_s)
        self.color = color
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._live = _is_tty(self.stream)
        self._started = False

    def __enter__(self) -> "ProgressTicker":
        self.start_ticking()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop(done=exc_type is None)

    def start_ticking(self) -> None:
        self.start = self.start if self.start is not None else time.monotonic()
        self._write_line(self._progress_line(), newline=not self._live)
        if self._live:
            self._started = True
            self._thread.start()

    def stop(self, done: bool = True) -> None:
        if self._started:
            self._stop.set()
            self._thread.join()
        if done:
            width = _terminal_width(self.stream, 80)
            line = _separator_line(f"Generated in {format_duration(self.elapsed_s())}", width)
            self._write_line(self._style(_GREY, line), newline=True)
        elif self._live:
            self._write_line(self._progress_line(), newline=True)

    def elapsed_s(self) -> int:
        origin = self.start if self.start is not None else time.monotonic()
        return max(0, int(time.monotonic() - origin))

    def _progress_line(self) -> str:
        return self._style(_BOLD, f"• {self.label} ({format_duration(self.elapsed_s())})")

    def _style(self, code: str, text: str) -> str:
        return f"{code}{text}{_RESET}" if self.color else text

    def _run(self) -> None:
        while not self._stop.wait(self.interval_s):
            self._write_line(self._progress_line(), newline=False)

    def _write_line(self, line: str, newline: bool) -> None:
        if self._live:
            self.stream.write("\r")
            self.stream.write(line)
            self.stream.write("\033[K")
        else:
            self.stream.write(line)
        if newline:
            self.stream.write("\n")
        self.stream.flush()


def format_duration(seconds: int) -> str:
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m {secs:02d}s"
    return f"{minutes}m {secs:02d}s" if minutes else f"{secs}s"


def _separator_line(label: str, width: int) -> str:
    content = f" {label} "
    if width < len(content) + 3:
        return label
    return content.center(width, "─")


def _is_tty(stream: TextIO) -> bool:
    return bool(getattr(stream, "isatty", lambda: False)())


def _terminal_width(stream: TextIO | None, fallback: int) -> int:
    if stream is not None and _is_tty(stream) and hasattr(stream, "fileno"):
        try:
            return os.get_terminal_size(stream.fileno()).columns
        except OSError:
            pass
    return shutil.get_terminal_size(fallback=(fallback, 20)).columns
