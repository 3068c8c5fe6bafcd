"""Library naming and ABI candidate helpers.

This module maps logical library names onto platform file names and
bundle entry keys. All helpers are pure and perform no I/O.
"""

from __future__ import annotations

import platform as platform_module
import sys
from typing import Sequence

from core.constants import BUNDLE_LIB_PREFIX

_ABIS_BY_MACHINE: dict[str, tuple[str, ...]] = {
    "aarch64": ("arm64-v8a", "armeabi-v7a"),
    "arm64": ("arm64-v8a", "armeabi-v7a"),
    "armv8l": ("armeabi-v7a", "armeabi"),
    "armv7l": ("armeabi-v7a", "armeabi"),
    "armv7": ("armeabi-v7a", "armeabi"),
    "x86_64": ("x86_64", "x86"),
    "amd64": ("x86_64", "x86"),
    "i686": ("x86",),
    "i386": ("x86",),
    "x86": ("x86",),
}


def platform_library_name(library_name: str, platform: str | None = None) -> str:
    """Map a logical library name to the platform shared-library file name.

    Args:
        library_name: Logical name such as "yahoo_ymagine".
        platform: Optional ``sys.platform`` override.

    Returns:
        Platform file name such as "libyahoo_ymagine.so".
    """
    current_platform = platform or sys.platform
    if current_platform.startswith("win") or current_platform == "cygwin":
        return f"{library_name}.dll"
    if current_platform == "darwin":
        return f"lib{library_name}.dylib"
    return f"lib{library_name}.so"


def detect_abis(machine: str | None = None) -> tuple[str, ...]:
    """Return ordered ABI candidates for the host, most preferred first."""
    raw_machine = (machine if machine is not None else platform_module.machine()).lower()
    if raw_machine in _ABIS_BY_MACHINE:
        return _ABIS_BY_MACHINE[raw_machine]
    if not raw_machine:
        return ()
    return (raw_machine,)


def bundle_entry_name(abi: str, file_name: str) -> str:
    """Return the bundle entry key for one ABI."""
    return f"{BUNDLE_LIB_PREFIX}/{abi}/{file_name}"


def bundle_entry_names(file_name: str, abis: Sequence[str]) -> tuple[str, ...]:
    """Return one bundle entry key per ABI, primary ABI first."""
    return tuple(bundle_entry_name(abi, file_name) for abi in abis)
