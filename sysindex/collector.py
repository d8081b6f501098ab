"""Host information collection for sysindex.

``collect()`` queries psutil (plus ``platform``/``socket`` for identity
facts) and returns one immutable :class:`Snapshot`. Nothing is carried over
between calls; rates are derived by the views from two snapshots.
"""

from __future__ import annotations

import logging
import platform
import socket
import subprocess
import time
from collections.abc import Callable
from dataclasses import dataclass

import psutil

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


# ── Errors ─────────────────────────────────────────────────────────────────


class SysindexError(Exception):
    """Base class for sysindex failures."""


class CollectionError(SysindexError):
    """The OS query facility is unavailable or refused the query."""


class PartialDataError(SysindexError):
    """A single disk or interface entry could not be read."""

    def __init__(self, kind: str, name: str, reason: str) -> None:
        super().__init__(f"skipped {kind} {name}: {reason}")
        self.kind = kind
        self.name = name
        self.reason = reason


# ── Data types ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DiskInfo:
    device: str
    mount_point: str
    total_bytes: int
    used_bytes: int
    filesystem_kind: str

    def __post_init__(self) -> None:
        if self.used_bytes > self.total_bytes:
            raise ValueError(
                f"disk {self.mount_point}: used {self.used_bytes} exceeds total {self.total_bytes}"
            )

    @property
    def available_bytes(self) -> int:
        return self.total_bytes - self.used_bytes

    @property
    def percent(self) -> float:
        return self.used_bytes / self.total_bytes * 100.0 if self.total_bytes else 0.0


@dataclass(frozen=True)
class NetworkInfo:
    interface_name: str
    bytes_received: int
    bytes_transmitted: int
    addresses: tuple[str, ...] = ()

    @property
    def bytes_total(self) -> int:
        return self.bytes_received + self.bytes_transmitted


@dataclass(frozen=True)
class Snapshot:
    """One point-in-time view of the host. Replaced wholesale on refresh."""

    hostname: str
    os_name: str
    os_version: str
    kernel_version: str
    uptime_seconds: int
    cpu_brand: str
    cpu_core_count: int
    memory_total_bytes: int
    memory_used_bytes: int
    swap_total_bytes: int
    swap_used_bytes: int
    disks: tuple[DiskInfo, ...]
    interfaces: tuple[NetworkInfo, ...]
    process_count: int
    collected_at: float = 0.0  # time.monotonic() at collection

    def __post_init__(self) -> None:
        if self.memory_used_bytes > self.memory_total_bytes:
            raise ValueError("memory used exceeds memory total")
        if self.swap_used_bytes > self.swap_total_bytes:
            raise ValueError("swap used exceeds swap total")

    @property
    def memory_free_bytes(self) -> int:
        return self.memory_total_bytes - self.memory_used_bytes

    @property
    def swap_free_bytes(self) -> int:
        return self.swap_total_bytes - self.swap_used_bytes

    @property
    def memory_percent(self) -> float:
        if not self.memory_total_bytes:
            return 0.0
        return self.memory_used_bytes / self.memory_total_bytes * 100.0

    @property
    def swap_percent(self) -> float:
        if not self.swap_total_bytes:
            return 0.0
        return self.swap_used_bytes / self.swap_total_bytes * 100.0

    @property
    def primary_address(self) -> str | None:
        """First non-loopback IPv4 address across interfaces, if any."""
        for nic in self.interfaces:
            for addr in nic.addresses:
                if not addr.startswith("127."):
                    return addr
        return None


# ── Identity facts (never fatal) ───────────────────────────────────────────


def _read_cpu_brand() -> str:
    """Human CPU model string: /proc/cpuinfo, sysctl, then platform."""
    system = platform.system()
    if system == "Linux":
        try:
            with open("/proc/cpuinfo", encoding="utf-8", errors="ignore") as f:
                for line in f:
                    if line.lower().startswith("model name"):
                        return line.split(":", 1)[1].strip()
        except OSError:
            pass
    elif system == "Darwin":
        try:
            result = subprocess.run(
                ["sysctl", "-n", "machdep.cpu.brand_string"],
                capture_output=True,
                text=True,
                timeout=3,
            )
            if result.returncode == 0 and result.stdout.strip():
                return result.stdout.strip()
        except (OSError, subprocess.TimeoutExpired):
            pass
    return platform.processor().strip() or UNKNOWN


def _read_os_release() -> dict[str, str]:
    try:
        return platform.freedesktop_os_release()
    except OSError:
        return {}


def _read_os_identity() -> tuple[str, str]:
    """Return (os_name, os_version)."""
    system = platform.system() or UNKNOWN
    if system == "Linux":
        release = _read_os_release()
        if release:
            return release.get("NAME", system), release.get("VERSION_ID", UNKNOWN)
    if system == "Darwin":
        mac_version = platform.mac_ver()[0]
        return "macOS", mac_version or UNKNOWN
    return system, platform.version() or UNKNOWN


def _read_hostname() -> str:
    try:
        return socket.gethostname() or UNKNOWN
    except OSError:
        return UNKNOWN


# ── Per-entry collection (partial data tolerated) ──────────────────────────


def _report_partial(
    error: PartialDataError,
    on_partial: Callable[[PartialDataError], None] | None,
) -> None:
    logger.warning("%s", error)
    if on_partial is not None:
        on_partial(error)


def _collect_disks(
    on_partial: Callable[[PartialDataError], None] | None,
) -> tuple[DiskInfo, ...]:
    disks: list[DiskInfo] = []
    seen: set[str] = set()
    try:
        partitions = psutil.disk_partitions(all=False)
    except (OSError, psutil.Error) as e:
        raise CollectionError(f"disk enumeration failed: {e}") from e

    for part in partitions:
        if part.mountpoint in seen:
            continue
        try:
            usage = psutil.disk_usage(part.mountpoint)
        except OSError as e:
            # Unmounted between listing and query, or not readable by us
            _report_partial(
                PartialDataError("disk", part.mountpoint, e.strerror or str(e)),
                on_partial,
            )
            continue
        seen.add(part.mountpoint)
        total = int(usage.total)
        # Root-reserved blocks count as used; available equals usage.free
        used = max(0, min(total, total - int(usage.free)))
        disks.append(
            DiskInfo(
                device=part.device,
                mount_point=part.mountpoint,
                total_bytes=total,
                used_bytes=used,
                filesystem_kind=part.fstype or UNKNOWN,
            )
        )
    return tuple(disks)


def _collect_interfaces(
    on_partial: Callable[[PartialDataError], None] | None,
) -> tuple[NetworkInfo, ...]:
    try:
        counters = psutil.net_io_counters(pernic=True)
    except (OSError, psutil.Error) as e:
        _report_partial(PartialDataError("interface", "*", str(e)), on_partial)
        return ()
    try:
        addrs = psutil.net_if_addrs()
    except (OSError, psutil.Error) as e:
        logger.debug("interface addresses unavailable: %s", e)
        addrs = {}

    interfaces: list[NetworkInfo] = []
    for name in sorted(counters):
        io = counters[name]
        ipv4 = tuple(
            a.address for a in addrs.get(name, []) if a.family == socket.AF_INET
        )
        interfaces.append(
            NetworkInfo(
                interface_name=name,
                bytes_received=int(io.bytes_recv),
                bytes_transmitted=int(io.bytes_sent),
                addresses=ipv4,
            )
        )
    return tuple(interfaces)


# ── Snapshot ───────────────────────────────────────────────────────────────


def collect(
    on_partial: Callable[[PartialDataError], None] | None = None,
) -> Snapshot:
    """Gather every fact in one pass and return a fresh Snapshot.

    Raises:
        CollectionError: if memory, boot time, CPU or process enumeration is
            unavailable, or the mounted partitions cannot be listed.
            Unreadable disks and missing interface counters are logged,
            reported to *on_partial* and dropped instead.
    """
    try:
        ram = psutil.virtual_memory()
        swap = psutil.swap_memory()
        boot = psutil.boot_time()
        cores = psutil.cpu_count(logical=True) or 0
        process_count = len(psutil.pids())
    except (OSError, psutil.Error) as e:
        raise CollectionError(f"system query failed: {e}") from e

    os_name, os_version = _read_os_identity()
    memory_total = int(ram.total)
    swap_total = int(swap.total)

    snapshot = Snapshot(
        hostname=_read_hostname(),
        os_name=os_name,
        os_version=os_version,
        kernel_version=platform.release() or UNKNOWN,
        uptime_seconds=max(0, int(time.time() - boot)),
        cpu_brand=_read_cpu_brand(),
        cpu_core_count=cores,
        memory_total_bytes=memory_total,
        memory_used_bytes=min(int(ram.used), memory_total),
        swap_total_bytes=swap_total,
        swap_used_bytes=min(int(swap.used), swap_total),
        disks=_collect_disks(on_partial),
        interfaces=_collect_interfaces(on_partial),
        process_count=process_count,
        collected_at=time.monotonic(),
    )
    logger.debug(
        "collected snapshot: %d disks, %d interfaces, %d processes",
        len(snapshot.disks),
        len(snapshot.interfaces),
        snapshot.process_count,
    )
    return snapshot
