"""Unit tests for library naming helpers."""

from __future__ import annotations

from deploy.naming import bundle_entry_names, detect_abis, platform_library_name


def test_platform_library_name_follows_platform_conventions() -> None:
    """Logical names should gain platform prefixes and suffixes."""
    names = (
        platform_library_name("foo", platform="linux"),
        platform_library_name("foo", platform="darwin"),
        platform_library_name("foo", platform="win32"),
    )

    assert names == ("libfoo.so", "libfoo.dylib", "foo.dll")


def test_bundle_entry_names_keep_abi_order() -> None:
    """Entry keys should be generated primary ABI first."""
    entries = bundle_entry_names("libfoo.so", ("arm64", "armeabi"))

    assert entries == ("lib/arm64/libfoo.so", "lib/armeabi/libfoo.so")


def test_detect_abis_maps_known_machines_to_primary_and_secondary() -> None:
    """Known machine names should map to ordered ABI candidates."""
    assert detect_abis("aarch64") == ("arm64-v8a", "armeabi-v7a") and detect_abis(
        "x86_64"
    ) == ("x86_64", "x86")


def test_detect_abis_passes_unknown_machine_through() -> None:
    """Unknown machines should be used verbatim as the only ABI."""
    assert detect_abis("riscv64") == ("riscv64",) and detect_abis("") == ()
