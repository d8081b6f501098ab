"""Shared fixtures: a snapshot factory for a simulated host."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from sysindex.collector import DiskInfo, NetworkInfo, Snapshot


def _snapshot(**overrides: Any) -> Snapshot:
    fields: dict[str, Any] = {
        "hostname": "testhost",
        "os_name": "Ubuntu",
        "os_version": "24.04",
        "kernel_version": "6.8.0-31-generic",
        "uptime_seconds": 90061,
        "cpu_brand": "Intel(R) Core(TM) i7-9700K CPU @ 3.60GHz",
        "cpu_core_count": 8,
        "memory_total_bytes": 16_000_000_000,
        "memory_used_bytes": 4_000_000_000,
        "swap_total_bytes": 2 * 1024**3,
        "swap_used_bytes": 0,
        "disks": (
            DiskInfo(
                device="/dev/nvme0n1p2",
                mount_point="/",
                total_bytes=500 * 1024**3,
                used_bytes=150 * 1024**3,
                filesystem_kind="ext4",
            ),
        ),
        "interfaces": (
            NetworkInfo("eth0", 1024**3, 512 * 1024**2, ("192.168.1.20",)),
            NetworkInfo("lo", 4096, 4096, ("127.0.0.1",)),
        ),
        "process_count": 312,
        "collected_at": 100.0,
    }
    fields.update(overrides)
    return Snapshot(**fields)


@pytest.fixture
def make_snapshot() -> Callable[..., Snapshot]:
    return _snapshot
