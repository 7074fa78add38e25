"""Tests for target platform resolution."""

import pytest

from grd.platform import (
    Architecture,
    HostInfo,
    OperatingSystem,
    PlatformDescriptor,
    normalize_arch,
    normalize_os,
    resolve,
    supported_platforms,
)


@pytest.mark.parametrize(
    "name", ["x86_64", "amd64", "x64", "AMD64", "X64", "X86_64"]
)
def test_x86_64_aliases(name):
    assert normalize_arch(name) is Architecture.X86_64


@pytest.mark.parametrize("name", ["aarch64", "arm64", "ARM64", "AArch64"])
def test_aarch64_aliases(name):
    assert normalize_arch(name) is Architecture.AARCH64


@pytest.mark.parametrize("name", ["riscv64", "i686", "", "sparc"])
def test_unknown_arch_maps_to_other(name):
    assert normalize_arch(name) is Architecture.OTHER


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Linux", OperatingSystem.LINUX),
        ("Darwin", OperatingSystem.MACOS),
        ("macos", OperatingSystem.MACOS),
        ("OSX", OperatingSystem.MACOS),
        ("Windows", OperatingSystem.WINDOWS),
        ("win32", OperatingSystem.WINDOWS),
        ("FreeBSD", OperatingSystem.OTHER),
    ],
)
def test_os_aliases(name, expected):
    assert normalize_os(name) is expected


def test_resolve_infers_from_injected_host():
    host = HostInfo(system="Darwin", machine="arm64")

    descriptor = resolve(host=host)

    assert descriptor == PlatformDescriptor(
        os=OperatingSystem.MACOS, arch=Architecture.AARCH64
    )


def test_resolve_flags_override_host():
    host = HostInfo(system="Darwin", machine="arm64")

    descriptor = resolve("linux", "amd64", host=host)

    assert descriptor.os is OperatingSystem.LINUX
    assert descriptor.arch is Architecture.X86_64


def test_resolve_mixes_flag_and_host():
    host = HostInfo(system="Windows", machine="AMD64")

    descriptor = resolve(arch_flag="arm64", host=host)

    assert descriptor.os is OperatingSystem.WINDOWS
    assert descriptor.arch is Architecture.AARCH64


def test_resolve_never_fails_on_unknown_names():
    descriptor = resolve("plan9", "mips", host=HostInfo("Linux", "x86_64"))

    assert descriptor.os is OperatingSystem.OTHER
    assert descriptor.arch is Architecture.OTHER


def test_resolve_uses_detected_host(monkeypatch):
    monkeypatch.setattr(
        "grd.platform.detect_host", lambda: HostInfo("Linux", "aarch64")
    )

    assert str(resolve()) == "linux-aarch64"


def test_executable_suffix():
    windows = PlatformDescriptor(OperatingSystem.WINDOWS, Architecture.X86_64)
    linux = PlatformDescriptor(OperatingSystem.LINUX, Architecture.X86_64)

    assert windows.executable_suffix == ".exe"
    assert linux.executable_suffix == ""


def test_supported_platforms_excludes_other():
    platforms = supported_platforms()

    assert len(platforms) == 6
    assert all(p.os is not OperatingSystem.OTHER for p in platforms)
    assert all(p.arch is not Architecture.OTHER for p in platforms)
    assert "linux-x86_64" in {str(p) for p in platforms}
