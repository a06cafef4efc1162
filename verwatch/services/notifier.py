from __future__ import annotations

import logging
import os
import platform
import shutil
import subprocess

from verwatch.errors import NotificationError

logger = logging.getLogger(__name__)

BACKENDS = {"auto", "osascript", "notify-send", "log", "disabled"}


def _backend_mode() -> str:
    mode = os.getenv("VERWATCH_NOTIFIER_BACKEND", "auto").strip().lower()
    if mode in BACKENDS:
        return mode
    return "auto"


def backend_name() -> str:
    mode = _backend_mode()
    if mode != "auto":
        return mode
    if platform.system() == "Darwin" and shutil.which("osascript"):
        return "osascript"
    if shutil.which("notify-send"):
        return "notify-send"
    return "disabled"


def _escape_applescript(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', "'").replace("\n", " ")


def _run(cmd: list[str]) -> None:
    try:
        proc = subprocess.run(cmd, check=False, capture_output=True, text=True, timeout=10)
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise NotificationError(f"Failed to run {cmd[0]}: {exc}") from exc
    if proc.returncode != 0:
        raise NotificationError(f"{cmd[0]} exited with status {proc.returncode}: {proc.stderr.strip()}")


def send_notification(title: str, body: str) -> None:
    active = backend_name()
    if active == "osascript":
        script = f'display notification "{_escape_applescript(body)}" with title "{_escape_applescript(title)}"'
        _run(["osascript", "-e", script])
        return
    if active == "notify-send":
        _run(["notify-send", "--app-name=verwatch", title, body])
        return
    if active == "log":
        logger.info("%s: %s", title, body.replace("\n", " | "))
        return
    raise NotificationError("No desktop notification backend available")
