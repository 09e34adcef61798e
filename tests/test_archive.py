import gzip
import io
import tarfile

import pytest

from dbbackup.archive import ArchiveError, create_archive, write_archive


@pytest.fixture
def dumps(workdir):
    first = workdir / "backups" / "a.sql"
    second = workdir / "backups" / "b.sql"
    first.write_text("first", encoding="utf-8")
    second.write_text("second", encoding="utf-8")
    return ["backups/b.sql", "backups/a.sql"]


def test_entries_keep_given_paths_and_order(dumps):
    out = io.BytesIO()

    create_archive(dumps, out)

    assert not out.closed
    out.seek(0)
    with tarfile.open(fileobj=out, mode="r:gz") as archive:
        assert archive.getnames() == ["backups/b.sql", "backups/a.sql"]
        assert archive.extractfile("backups/a.sql").read() == b"first"


def test_same_inputs_give_same_archive(dumps):
    first, second = io.BytesIO(), io.BytesIO()

    create_archive(dumps, first)
    create_archive(dumps, second)

    # Only the gzip header timestamp may differ.
    assert gzip.decompress(first.getvalue()) == gzip.decompress(second.getvalue())


def test_missing_file_fails(dumps):
    with pytest.raises(ArchiveError):
        create_archive(dumps + ["backups/missing.sql"], io.BytesIO())


def test_empty_file_list_gives_valid_archive():
    out = io.BytesIO()

    create_archive([], out)

    out.seek(0)
    with tarfile.open(fileobj=out, mode="r:gz") as archive:
        assert archive.getnames() == []


def test_write_archive_to_file(dumps, workdir):
    path = write_archive(dumps, workdir / "temp" / "backup.tar.gz")

    with tarfile.open(path, mode="r:gz") as archive:
        assert len(archive.getmembers()) == 2


def test_write_archive_unwritable_output(dumps, workdir):
    with pytest.raises(ArchiveError):
        write_archive(dumps, workdir / "missing-dir" / "backup.tar.gz")
