import logging

import requests

from dbbackup.cleanup import remove_file, remove_files
from dbbackup.heartbeat import send_heartbeat


def test_remove_files_continues_after_failure(tmp_path, caplog):
    present = tmp_path / "a.sql"
    present.write_text("x", encoding="utf-8")
    missing = tmp_path / "b.sql"

    with caplog.at_level(logging.WARNING):
        removed = remove_files([missing, present])

    assert removed == 1
    assert not present.exists()
    assert "b.sql" in caplog.text


def test_remove_file_missing_returns_false(tmp_path):
    assert remove_file(tmp_path / "absent") is False


def test_heartbeat_skipped_without_url(monkeypatch):
    calls = []
    monkeypatch.setattr("dbbackup.heartbeat.requests.get", lambda *a, **kw: calls.append(a))

    send_heartbeat(None)
    send_heartbeat("")

    assert calls == []


def test_heartbeat_issues_get(monkeypatch):
    calls = []
    monkeypatch.setattr(
        "dbbackup.heartbeat.requests.get",
        lambda url, timeout: calls.append((url, timeout)),
    )

    send_heartbeat("https://example.com/ping", timeout=3)

    assert calls == [("https://example.com/ping", 3)]


def test_heartbeat_errors_are_ignored(monkeypatch):
    def broken(url, timeout):
        raise requests.ConnectionError("down")

    monkeypatch.setattr("dbbackup.heartbeat.requests.get", broken)

    send_heartbeat("https://example.com/ping")
