from __future__ import annotations

import re
import subprocess

from verwatch.errors import ProbeError

DEFAULT_VERSION_ARG = "--version"
VERSION_PATTERN = re.compile(r"\d+\.\d+(?:\.\d+)?(?:-[\w.]+)?")


def extract_version(output: str) -> str | None:
    match = VERSION_PATTERN.search(output or "")
    return match.group(0) if match else None


def run_local_version(command: str, version_arg: str | None = None, *, timeout: float = 10.0) -> str:
    """Run ``command <version_arg>`` and pull the first version number from its output."""
    arg = version_arg or DEFAULT_VERSION_ARG
    try:
        proc = subprocess.run(
            [command, arg],
            check=False,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise ProbeError(f"{command} {arg} timed out after {timeout:g}s") from exc
    except OSError as exc:
        raise ProbeError(f"Failed to execute {command}: {exc}") from exc

    output = f"{proc.stdout or ''}{proc.stderr or ''}"
    if proc.returncode != 0:
        raise ProbeError(f"{command} {arg} exited with status {proc.returncode}: {output.strip()[:200]}")

    version = extract_version(output)
    if version is None:
        raise ProbeError(f"Could not parse version from: {output.strip()[:200]}")
    return version
