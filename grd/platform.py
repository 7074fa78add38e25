"""Target platform resolution.

This module normalizes operating system and CPU architecture names into a
``PlatformDescriptor``. Host detection is kept behind ``HostInfo`` so
callers (and tests) can supply any host without touching the real one.

Resolution is total: unknown names map to ``other`` and never fail, the
asset matcher simply finds fewer hits for them.
"""

import platform as _host_platform
from dataclasses import dataclass
from enum import Enum

from .logger import get_logger

logger = get_logger(__name__)


class OperatingSystem(str, Enum):
    """Operating systems grd knows matching rules for."""

    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"
    OTHER = "other"


class Architecture(str, Enum):
    """CPU architectures grd knows matching rules for."""

    X86_64 = "x86_64"
    AARCH64 = "aarch64"
    OTHER = "other"


OS_ALIASES: dict[str, OperatingSystem] = {
    "linux": OperatingSystem.LINUX,
    "macos": OperatingSystem.MACOS,
    "darwin": OperatingSystem.MACOS,
    "osx": OperatingSystem.MACOS,
    "mac": OperatingSystem.MACOS,
    "windows": OperatingSystem.WINDOWS,
    "win": OperatingSystem.WINDOWS,
    "win32": OperatingSystem.WINDOWS,
    "win64": OperatingSystem.WINDOWS,
}

ARCH_ALIASES: dict[str, Architecture] = {
    "x86_64": Architecture.X86_64,
    "amd64": Architecture.X86_64,
    "x64": Architecture.X86_64,
    "aarch64": Architecture.AARCH64,
    "arm64": Architecture.AARCH64,
}


@dataclass(slots=True, frozen=True)
class HostInfo:
    """Raw identification of a host, as reported by ``platform``.

    Attributes:
        system: Operating system name (e.g. "Linux", "Darwin")
        machine: Machine type (e.g. "x86_64", "arm64")

    """

    system: str
    machine: str


@dataclass(slots=True, frozen=True)
class PlatformDescriptor:
    """Normalized target platform for asset matching."""

    os: OperatingSystem
    arch: Architecture

    @property
    def executable_suffix(self) -> str:
        """File suffix executables carry on this platform."""
        return ".exe" if self.os is OperatingSystem.WINDOWS else ""

    def __str__(self) -> str:
        return f"{self.os.value}-{self.arch.value}"


def detect_host() -> HostInfo:
    """Read the running host's identification."""
    return HostInfo(
        system=_host_platform.system(), machine=_host_platform.machine()
    )


def normalize_os(name: str) -> OperatingSystem:
    """Map an OS name or alias to an ``OperatingSystem``, case-insensitively."""
    return OS_ALIASES.get(name.strip().lower(), OperatingSystem.OTHER)


def normalize_arch(name: str) -> Architecture:
    """Map an architecture name or alias to an ``Architecture``.

    Examples:
        >>> normalize_arch("AMD64")
        <Architecture.X86_64: 'x86_64'>
        >>> normalize_arch("riscv64")
        <Architecture.OTHER: 'other'>

    """
    return ARCH_ALIASES.get(name.strip().lower(), Architecture.OTHER)


def resolve(
    os_flag: str | None = None,
    arch_flag: str | None = None,
    host: HostInfo | None = None,
) -> PlatformDescriptor:
    """Resolve the target platform from explicit flags or the host.

    Args:
        os_flag: Requested operating system, inferred from the host if None
        arch_flag: Requested architecture, inferred from the host if None
        host: Host identification; detected from the running system if None

    Returns:
        The normalized platform descriptor

    """
    if os_flag is None or arch_flag is None:
        host = host or detect_host()

    os_name = os_flag if os_flag is not None else host.system
    arch_name = arch_flag if arch_flag is not None else host.machine

    descriptor = PlatformDescriptor(
        os=normalize_os(os_name), arch=normalize_arch(arch_name)
    )
    if descriptor.os is OperatingSystem.OTHER:
        logger.warning("Unrecognized operating system '%s'", os_name)
    if descriptor.arch is Architecture.OTHER:
        logger.warning("Unrecognized architecture '%s'", arch_name)
    logger.debug("Resolved platform %s", descriptor)
    return descriptor


def supported_platforms() -> list[PlatformDescriptor]:
    """List every os/arch combination with real matching rules."""
    return [
        PlatformDescriptor(os=os_value, arch=arch_value)
        for os_value in OperatingSystem
        if os_value is not OperatingSystem.OTHER
        for arch_value in Architecture
        if arch_value is not Architecture.OTHER
    ]
