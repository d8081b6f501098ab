"""Plain-text report views for the one-shot CLI commands.

Every ``render_*`` function is pure: it maps a Snapshot to the exact text
printed on stdout.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from sysindex.collector import Snapshot

BANNER_WIDTH = 55
BAR_FILL = "█"
BAR_EMPTY = "░"
PROGRESS_BAR_WIDTH = 50


# ── Formatting helpers ─────────────────────────────────────────────────────


def fmt_bytes(n: int | float) -> str:
    """Human-readable byte count (binary steps, two decimals)."""
    v = float(n)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(v) < 1024:
            return f"{v:.2f} {unit}"
        v /= 1024
    return f"{v:.2f} TB"


def fmt_uptime(seconds: int) -> str:
    days, rem = divmod(int(seconds), 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)
    if days:
        return f"{days}d {hours}h {minutes}m {secs}s"
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def usage_percent(used: int, total: int) -> float:
    return used / total * 100.0 if total > 0 else 0.0


def progress_bar(percent: float, width: int = PROGRESS_BAR_WIDTH) -> str:
    """``████░░░░`` of *width* cells, clamped to 0-100%."""
    filled = int(width * max(0.0, min(percent, 100.0)) / 100.0)
    return BAR_FILL * filled + BAR_EMPTY * (width - filled)


def _banner(title: str) -> list[str]:
    inner = BANNER_WIDTH
    return [
        "╔" + "═" * inner + "╗",
        "║" + f"  {title}".ljust(inner) + "║",
        "╚" + "═" * inner + "╝",
        "",
    ]


def _row(label: str, value: object) -> str:
    return f"  {label:<20s} {value}"


# ── Views ──────────────────────────────────────────────────────────────────


def render_overview(snapshot: Snapshot) -> str:
    s = snapshot
    lines = _banner("SYSTEM OVERVIEW")
    lines += [
        _row("Hostname:", s.hostname),
        _row("Operating System:", f"{s.os_name} {s.os_version}"),
        _row("Kernel Version:", s.kernel_version),
        _row("System Uptime:", fmt_uptime(s.uptime_seconds)),
        "",
        _row("CPU:", s.cpu_brand),
        _row("CPU Cores:", s.cpu_core_count),
        "",
        _row("Total Memory:", fmt_bytes(s.memory_total_bytes)),
        _row("Used Memory:", fmt_bytes(s.memory_used_bytes)),
        "",
        _row("Mounted Disks:", len(s.disks)),
        _row("Network Interfaces:", len(s.interfaces)),
    ]
    if s.primary_address:
        lines.append(_row("Local IP:", s.primary_address))
    lines.append(_row("Running Processes:", s.process_count))
    return "\n".join(lines)


def render_cpu(snapshot: Snapshot) -> str:
    lines = _banner("CPU INFORMATION")
    lines += [
        _row("CPU Brand:", snapshot.cpu_brand),
        _row("Number of Cores:", snapshot.cpu_core_count),
    ]
    return "\n".join(lines)


def render_memory(snapshot: Snapshot) -> str:
    s = snapshot
    mem_pct = usage_percent(s.memory_used_bytes, s.memory_total_bytes)
    swap_pct = usage_percent(s.swap_used_bytes, s.swap_total_bytes)
    lines = _banner("MEMORY INFORMATION")
    lines += [
        "═══ RAM MEMORY ═══",
        _row("Total Memory:", fmt_bytes(s.memory_total_bytes)),
        _row("Used Memory:", f"{fmt_bytes(s.memory_used_bytes)} ({mem_pct:.2f}%)"),
        _row("Free Memory:", fmt_bytes(s.memory_free_bytes)),
        "",
        "═══ SWAP MEMORY ═══",
        _row("Total Swap:", fmt_bytes(s.swap_total_bytes)),
        _row("Used Swap:", f"{fmt_bytes(s.swap_used_bytes)} ({swap_pct:.2f}%)"),
        _row("Free Swap:", fmt_bytes(s.swap_free_bytes)),
    ]
    return "\n".join(lines)


def render_disks(snapshot: Snapshot) -> str:
    lines = _banner("DISK INFORMATION")
    if not snapshot.disks:
        lines.append("No disk information available.")
        return "\n".join(lines)

    for idx, disk in enumerate(snapshot.disks, start=1):
        lines += [
            f"═══ Disk {idx} ═══",
            _row("Name:", disk.device),
            _row("Mount Point:", disk.mount_point),
            _row("File System:", disk.filesystem_kind),
            _row("Total Space:", fmt_bytes(disk.total_bytes)),
            _row("Used Space:", f"{fmt_bytes(disk.used_bytes)} ({disk.percent:.2f}%)"),
            _row("Available Space:", fmt_bytes(disk.available_bytes)),
            "",
        ]
    return "\n".join(lines).rstrip("\n")


def render_network(snapshot: Snapshot) -> str:
    lines = _banner("NETWORK INFORMATION")
    lines += [
        "═══ NETWORK DETAILS ═══",
        _row("Local IP:", snapshot.primary_address or "Not available"),
        "",
    ]
    if not snapshot.interfaces:
        lines.append("No network interfaces available.")
        return "\n".join(lines)

    lines.append("═══ NETWORK INTERFACES ═══")
    for idx, nic in enumerate(snapshot.interfaces, start=1):
        lines.append(f"Interface {idx}: {nic.interface_name}")
        if nic.addresses:
            lines.append(_row("Addresses:", ", ".join(nic.addresses)))
        lines += [
            _row("Received:", fmt_bytes(nic.bytes_received)),
            _row("Transmitted:", fmt_bytes(nic.bytes_transmitted)),
            _row("Total:", fmt_bytes(nic.bytes_total)),
            "",
        ]
    return "\n".join(lines).rstrip("\n")


def render_all(snapshot: Snapshot) -> str:
    return "\n\n".join(view(snapshot) for view in REPORTS.values() if view is not render_all)


REPORTS = {
    "overview": render_overview,
    "cpu": render_cpu,
    "memory": render_memory,
    "disks": render_disks,
    "network": render_network,
    "all": render_all,
}


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    """Snapshot as plain JSON-ready data, derived percentages included."""
    data: dict[str, Any] = asdict(snapshot)
    data.pop("collected_at")
    data["memory_percent"] = round(snapshot.memory_percent, 2)
    data["swap_percent"] = round(snapshot.swap_percent, 2)
    data["disks"] = [
        {**asdict(d), "available_bytes": d.available_bytes, "percent": round(d.percent, 2)}
        for d in snapshot.disks
    ]
    data["interfaces"] = [
        {**asdict(n), "addresses": list(n.addresses)} for n in snapshot.interfaces
    ]
    return data
