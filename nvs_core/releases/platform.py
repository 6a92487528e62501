"""Platform detection and release-asset name patterns."""

from __future__ import annotations

import platform

from .errors import UnsupportedPlatformError

_MACHINE_ALIASES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "arm64",
    "aarch64": "arm64",
}

ASSET_PATTERNS: dict[tuple[str, str], tuple[str, ...]] = {
    ("linux", "x86_64"): ("linux-x86_64", "linux64"),
    ("linux", "arm64"): ("linux-arm64",),
    ("darwin", "arm64"): ("macos-arm64", "macos"),
    ("darwin", "x86_64"): ("macos-x86_64", "macos"),
}

WINDOWS_PATTERNS: tuple[str, ...] = ("win64.zip",)


def current_platform() -> tuple[str, str]:
    return platform.system(), platform.machine()


def normalize_platform(system: str, machine: str) -> tuple[str, str]:
    os_name = system.strip().lower()
    if os_name.startswith(("win", "cygwin", "msys")):
        os_name = "windows"
    arch = _MACHINE_ALIASES.get(machine.strip().lower(), machine.strip().lower())
    return os_name, arch


def asset_patterns(system: str | None = None, machine: str | None = None) -> tuple[str, ...]:
    detected_system, detected_machine = current_platform()
    os_name, arch = normalize_platform(system or detected_system, machine or detected_machine)
    if os_name == "windows":
        return WINDOWS_PATTERNS
    patterns = ASSET_PATTERNS.get((os_name, arch))
    if patterns is None:
        raise UnsupportedPlatformError(os_name, arch)
    return patterns
