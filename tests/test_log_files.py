"""Tests for log file discovery (infra/log_files.py).

Files are created under ``tmp_path`` and aged with :func:`os.utime`;
the scanner's clock is pinned so ages are exact.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from disk_space_optimizer.core.models import CandidateItem
from disk_space_optimizer.exceptions import EnumerationError
from disk_space_optimizer.infra.log_files import SECONDS_PER_DAY, LogFileScanner, is_log_name

NOW = 1_700_000_000.0


def _make(root: Path, relative: str, *, days_old: float, content: str = "x") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    stamp = NOW - days_old * SECONDS_PER_DAY
    os.utime(path, (stamp, stamp))
    return path


def _scanner() -> LogFileScanner:
    return LogFileScanner(clock=lambda: NOW)


class TestIsLogName:
    @pytest.mark.parametrize(
        "name",
        ["dnf.log", "messages.1", "syslog.2.gz", "Xorg.0.log.old", "boot.log-20240101.xz", "kern.log.3"],
    )
    def test_rotated_and_plain_logs_match(self, name: str) -> None:
        assert is_log_name(name)

    @pytest.mark.parametrize("name", ["wtmp", "lastlog", "README", "journal"])
    def test_other_files_do_not_match(self, name: str) -> None:
        assert not is_log_name(name)


class TestScan:
    def test_only_files_older_than_retention(self, tmp_path: Path) -> None:
        _make(tmp_path, "old.log", days_old=40)
        _make(tmp_path, "fresh.log", days_old=2)
        scan = _scanner().scan(tmp_path, 30)
        assert [Path(item.name).name for item in scan.items] == ["old.log"]

    def test_all_newer_yields_empty(self, tmp_path: Path) -> None:
        for name in ("a.log", "b.log.1", "c.gz"):
            _make(tmp_path, name, days_old=3)
        scan = _scanner().scan(tmp_path, 30)
        assert scan.items == ()
        assert scan.unreadable == ()

    def test_zero_days_offers_everything_older_than_now(self, tmp_path: Path) -> None:
        _make(tmp_path, "a.log", days_old=0.5)
        assert len(_scanner().scan(tmp_path, 0).items) == 1

    def test_recurses_and_sorts_by_path(self, tmp_path: Path) -> None:
        _make(tmp_path, "z.log.1", days_old=10)
        _make(tmp_path, "nginx/access.log.2.gz", days_old=10)
        _make(tmp_path, "audit/audit.log.1", days_old=10)
        names = [item.name for item in _scanner().scan(tmp_path, 5).items]
        assert names == sorted(names)
        assert len(names) == 3

    def test_age_and_size_are_populated(self, tmp_path: Path) -> None:
        _make(tmp_path, "big.log", days_old=12.5, content="x" * 300)
        (item,) = _scanner().scan(tmp_path, 7).items
        assert isinstance(item, CandidateItem)
        assert item.age_days == 12
        assert item.size == 300

    def test_non_log_names_ignored(self, tmp_path: Path) -> None:
        _make(tmp_path, "wtmp", days_old=90)
        assert _scanner().scan(tmp_path, 7).items == ()

    def test_symlinks_are_not_offered(self, tmp_path: Path) -> None:
        target = _make(tmp_path, "real/app.log", days_old=50)
        link = tmp_path / "link.log"
        link.symlink_to(target)
        names = [item.name for item in _scanner().scan(tmp_path, 7).items]
        assert str(link) not in names
        assert str(target) in names

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(EnumerationError, match="not found"):
            _scanner().scan(tmp_path / "nope", 7)


class TestCommands:
    def test_delete_command(self) -> None:
        item = CandidateItem("/var/log/-odd.log")
        assert LogFileScanner().delete_command(item) == ["rm", "-f", "--", "/var/log/-odd.log"]

    def test_vacuum_command(self) -> None:
        assert LogFileScanner().vacuum_command(14) == ["journalctl", "--vacuum-time=14d"]
