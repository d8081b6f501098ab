"""Tests for the plain-text report views."""

from __future__ import annotations

import json

import pytest

from sysindex.collector import NetworkInfo
from sysindex.report import (
    REPORTS,
    fmt_bytes,
    fmt_uptime,
    progress_bar,
    render_all,
    render_cpu,
    render_disks,
    render_memory,
    render_network,
    render_overview,
    snapshot_to_dict,
    usage_percent,
)

# ── fmt_bytes ──────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "0.00 B"),
        (512, "512.00 B"),
        (1024, "1.00 KB"),
        (1048576, "1.00 MB"),
        (1073741824, "1.00 GB"),
        (1099511627776, "1.00 TB"),
        (1536, "1.50 KB"),
    ],
)
def test_fmt_bytes(value: int, expected: str) -> None:
    assert fmt_bytes(value) == expected


# ── fmt_uptime ─────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (0, "0s"),
        (30, "30s"),
        (60, "1m 0s"),
        (90, "1m 30s"),
        (3600, "1h 0m 0s"),
        (3661, "1h 1m 1s"),
        (86400, "1d 0h 0m 0s"),
        (90061, "1d 1h 1m 1s"),
    ],
)
def test_fmt_uptime(seconds: int, expected: str) -> None:
    assert fmt_uptime(seconds) == expected


# ── usage / bars ───────────────────────────────────────────────────────────


def test_usage_percent() -> None:
    assert usage_percent(4_000_000_000, 16_000_000_000) == pytest.approx(25.0)
    assert usage_percent(5, 0) == 0.0


def test_progress_bar_width_and_fill() -> None:
    bar = progress_bar(50.0, width=10)
    assert bar == "█████░░░░░"
    assert len(progress_bar(250.0)) == 50
    assert progress_bar(-5.0, width=4) == "░░░░"


# ── Views ──────────────────────────────────────────────────────────────────


@pytest.mark.parametrize("command", ["overview", "cpu", "memory", "disks", "network", "all"])
def test_every_view_produces_text(make_snapshot, command: str) -> None:
    output = REPORTS[command](make_snapshot())
    assert output.strip()


def test_views_are_deterministic(make_snapshot) -> None:
    snapshot = make_snapshot()
    assert render_all(snapshot) == render_all(snapshot)


def test_overview_contents(make_snapshot) -> None:
    output = render_overview(make_snapshot())
    assert "SYSTEM OVERVIEW" in output
    assert "testhost" in output
    assert "Ubuntu 24.04" in output
    assert "1d 1h 1m 1s" in output
    assert "192.168.1.20" in output
    assert "312" in output


def test_cpu_contents(make_snapshot) -> None:
    output = render_cpu(make_snapshot())
    assert "i7-9700K" in output
    assert "Number of Cores:" in output
    assert "8" in output


def test_memory_view_shows_quarter_used(make_snapshot) -> None:
    output = render_memory(make_snapshot())
    assert "(25.00%)" in output
    assert "RAM MEMORY" in output
    assert "SWAP MEMORY" in output
    assert "(0.00%)" in output


def test_disks_view(make_snapshot) -> None:
    output = render_disks(make_snapshot())
    assert "Disk 1" in output
    assert "/dev/nvme0n1p2" in output
    assert "ext4" in output
    assert "(30.00%)" in output


def test_disks_view_empty(make_snapshot) -> None:
    assert "No disk information available." in render_disks(make_snapshot(disks=()))


def test_network_view(make_snapshot) -> None:
    output = render_network(make_snapshot())
    assert "Interface 1: eth0" in output
    assert "Interface 2: lo" in output
    assert "1.00 GB" in output
    assert "1.50 GB" in output  # eth0 total


def test_network_view_empty(make_snapshot) -> None:
    output = render_network(make_snapshot(interfaces=()))
    assert "Not available" in output
    assert "No network interfaces available." in output


def test_network_view_without_addresses(make_snapshot) -> None:
    snapshot = make_snapshot(interfaces=(NetworkInfo("eth0", 1, 2),))
    assert "Addresses:" not in render_network(snapshot)


def test_all_contains_every_section(make_snapshot) -> None:
    output = render_all(make_snapshot())
    for title in ("SYSTEM OVERVIEW", "CPU INFORMATION", "MEMORY INFORMATION",
                  "DISK INFORMATION", "NETWORK INFORMATION"):
        assert title in output


# ── JSON ───────────────────────────────────────────────────────────────────


def test_snapshot_to_dict_is_json_ready(make_snapshot) -> None:
    data = snapshot_to_dict(make_snapshot())
    decoded = json.loads(json.dumps(data))
    assert decoded["hostname"] == "testhost"
    assert decoded["memory_percent"] == 25.0
    assert decoded["disks"][0]["percent"] == 30.0
    assert decoded["interfaces"][0]["addresses"] == ["192.168.1.20"]
    assert "collected_at" not in decoded
