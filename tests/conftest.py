import subprocess
from datetime import datetime
from pathlib import Path

import pytest

from dbbackup.config import AppConfig, DatabaseConfig, S3Config

RUN_STARTED = datetime(2024, 1, 2, 3, 4, 5)
RUN_TIMESTAMP = "2024-01-02_03-04-05"


class FakeMysqldump:
    """Stands in for ``subprocess.run`` inside :mod:`dbbackup.dump`."""

    def __init__(self):
        self.calls = []
        self.failing = set()

    def __call__(self, command, **kwargs):
        self.calls.append(command)
        target = command[-1]
        result_file = next(arg for arg in command if arg.startswith("--result-file="))
        path = Path(result_file.split("=", 1)[1])
        path.write_text(f"-- dump of {target}\n", encoding="utf-8")
        if target in self.failing:
            return subprocess.CompletedProcess(command, 2, stdout="", stderr="Access denied")
        return subprocess.CompletedProcess(command, 0, stdout="", stderr="")


class FakeUploader:
    def __init__(self, error=None):
        self.uploads = []
        self.error = error

    def upload(self, file_path, key):
        if self.error is not None:
            raise self.error
        self.uploads.append((Path(file_path), key, Path(file_path).read_bytes()))


@pytest.fixture
def fake_mysqldump(monkeypatch):
    fake = FakeMysqldump()
    monkeypatch.setattr("dbbackup.dump.subprocess.run", fake)
    return fake


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "backups").mkdir()
    (tmp_path / "temp").mkdir()
    return tmp_path


def make_source(host="h1", **kwargs):
    kwargs.setdefault("username", "backup")
    kwargs.setdefault("password", "s3cret")
    return DatabaseConfig(host=host, **kwargs)


def make_config(*sources, **kwargs):
    s3 = S3Config(access_key="key", access_secret="secret", region="eu-west-1", bucket="bucket")
    return AppConfig(s3=s3, databases=tuple(sources), **kwargs)
