import os
import sqlite3
from pathlib import Path
from unittest import mock

import pytest

from src.deposits.exceptions import LedgerUnavailableError
from src.deposits.ledger import (
    CLAIM_SUFFIX,
    MARKER_SUFFIX,
    DatabaseCompletionLedger,
    FileCompletionLedger,
)

PUBLIC_KEY = 'a1' * 48
OTHER_PUBLIC_KEY = 'b2' * 48


@pytest.fixture(params=['file', 'database'])
def ledger(request, markers_dir: Path):
    if request.param == 'file':
        instance = FileCompletionLedger(markers_dir)
    else:
        instance = DatabaseCompletionLedger(markers_dir / 'markers.db')
    instance.setup()
    return instance


class TestCompletionLedger:
    def test_mark_complete(self, ledger):
        assert ledger.is_complete(PUBLIC_KEY) is False

        assert ledger.mark_complete(PUBLIC_KEY) is True
        assert ledger.is_complete(PUBLIC_KEY) is True
        assert ledger.is_complete(OTHER_PUBLIC_KEY) is False

    def test_mark_complete_twice(self, ledger):
        assert ledger.mark_complete(PUBLIC_KEY) is True
        assert ledger.mark_complete(PUBLIC_KEY) is False
        assert ledger.is_complete(PUBLIC_KEY) is True

    def test_claim_release(self, ledger):
        assert ledger.claim(PUBLIC_KEY) is True
        assert ledger.claim(PUBLIC_KEY) is False
        assert ledger.claim(OTHER_PUBLIC_KEY) is True

        ledger.release(PUBLIC_KEY)
        assert ledger.claim(PUBLIC_KEY) is True

        # claims do not mark deposits as complete
        assert ledger.is_complete(PUBLIC_KEY) is False

    def test_release_missing_claim(self, ledger):
        ledger.release(PUBLIC_KEY)

    def test_setup_twice(self, ledger):
        ledger.mark_complete(PUBLIC_KEY)
        ledger.setup()
        assert ledger.is_complete(PUBLIC_KEY) is True


class TestFileCompletionLedger:
    def test_marker_files(self, markers_dir: Path):
        ledger = FileCompletionLedger(markers_dir)
        ledger.setup()
        assert markers_dir.is_dir()

        ledger.claim(PUBLIC_KEY)
        assert (markers_dir / f'{PUBLIC_KEY}{CLAIM_SUFFIX}').exists()

        ledger.mark_complete(PUBLIC_KEY)
        ledger.release(PUBLIC_KEY)
        assert (markers_dir / f'{PUBLIC_KEY}{MARKER_SUFFIX}').exists()
        assert not (markers_dir / f'{PUBLIC_KEY}{CLAIM_SUFFIX}').exists()

    def test_existing_marker_file(self, markers_dir: Path):
        # markers left by earlier runs
        markers_dir.mkdir()
        (markers_dir / f'{PUBLIC_KEY}{MARKER_SUFFIX}').touch()

        ledger = FileCompletionLedger(markers_dir)
        ledger.setup()
        assert ledger.is_complete(PUBLIC_KEY) is True

    def test_markers_persist(self, markers_dir: Path):
        FileCompletionLedger(markers_dir).setup()
        first = FileCompletionLedger(markers_dir)
        first.mark_complete(PUBLIC_KEY)

        second = FileCompletionLedger(markers_dir)
        assert second.is_complete(PUBLIC_KEY) is True

    def test_setup_not_a_directory(self, temp_dir: Path):
        path = temp_dir / 'markers'
        path.touch()

        with pytest.raises(LedgerUnavailableError, match="Can't create markers directory"):
            FileCompletionLedger(path).setup()

    def test_setup_not_writable(self, markers_dir: Path):
        ledger = FileCompletionLedger(markers_dir)
        with mock.patch('src.deposits.ledger.os.access', return_value=False):
            with pytest.raises(LedgerUnavailableError, match='is not writable'):
                ledger.setup()

    def test_is_complete_unreadable(self, markers_dir: Path):
        ledger = FileCompletionLedger(markers_dir)
        ledger.setup()

        with mock.patch('src.deposits.ledger.os.stat', side_effect=PermissionError('denied')):
            with pytest.raises(LedgerUnavailableError, match="Can't read"):
                ledger.is_complete(PUBLIC_KEY)

    def test_mark_complete_unwritable(self, markers_dir: Path):
        ledger = FileCompletionLedger(markers_dir)
        ledger.setup()

        with mock.patch('src.deposits.ledger.os.open', side_effect=OSError(28, 'No space left')):
            with pytest.raises(LedgerUnavailableError, match="Can't create"):
                ledger.mark_complete(PUBLIC_KEY)

    def test_missing_directory(self, markers_dir: Path):
        # setup was never called
        ledger = FileCompletionLedger(markers_dir)

        assert ledger.is_complete(PUBLIC_KEY) is False
        with pytest.raises(LedgerUnavailableError):
            ledger.claim(PUBLIC_KEY)

    def test_marker_is_synced(self, markers_dir: Path):
        ledger = FileCompletionLedger(markers_dir)
        ledger.setup()

        with mock.patch('src.deposits.ledger.os.fsync', wraps=os.fsync) as fsync_mock:
            ledger.mark_complete(PUBLIC_KEY)
        fsync_mock.assert_called_once()


class TestDatabaseCompletionLedger:
    def test_tables(self, markers_dir: Path):
        db_path = markers_dir / 'markers.db'
        ledger = DatabaseCompletionLedger(db_path)
        ledger.setup()
        ledger.mark_complete(PUBLIC_KEY)
        ledger.claim(OTHER_PUBLIC_KEY)

        with sqlite3.connect(db_path) as conn:
            markers = conn.execute('SELECT public_key FROM deposit_markers').fetchall()
            claims = conn.execute('SELECT public_key FROM deposit_claims').fetchall()
        assert markers == [(PUBLIC_KEY,)]
        assert claims == [(OTHER_PUBLIC_KEY,)]

    def test_not_set_up(self, temp_dir: Path):
        ledger = DatabaseCompletionLedger(temp_dir / 'markers.db')

        with pytest.raises(LedgerUnavailableError, match="Can't read marker"):
            ledger.is_complete(PUBLIC_KEY)
        with pytest.raises(LedgerUnavailableError, match="Can't write"):
            ledger.mark_complete(PUBLIC_KEY)

    def test_setup_failure(self, temp_dir: Path):
        parent = temp_dir / 'file'
        parent.touch()

        with pytest.raises(LedgerUnavailableError, match="Can't set up database"):
            DatabaseCompletionLedger(parent / 'markers.db').setup()
