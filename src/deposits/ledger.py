import abc
import os
import sqlite3
from pathlib import Path

from src.deposits.exceptions import LedgerUnavailableError

MARKER_SUFFIX = '.lock'
CLAIM_SUFFIX = '.pending'


class BaseCompletionLedger(abc.ABC):
    """
    Persistent set of public keys whose deposit transaction was sent.
    Markers are only ever created, never updated or deleted.
    Claims guard the window between sending a transaction and recording it.
    Keys are lowercase hex public keys without prefix.
    """

    @abc.abstractmethod
    def setup(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def is_complete(self, public_key: str) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    def mark_complete(self, public_key: str) -> bool:
        """Returns False when the marker already existed."""
        raise NotImplementedError

    @abc.abstractmethod
    def claim(self, public_key: str) -> bool:
        """Returns False when the key is already claimed."""
        raise NotImplementedError

    @abc.abstractmethod
    def release(self, public_key: str) -> None:
        raise NotImplementedError


class FileCompletionLedger(BaseCompletionLedger):
    def __init__(self, markers_dir: Path):
        self.markers_dir = markers_dir

    def setup(self) -> None:
        try:
            self.markers_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LedgerUnavailableError(
                f"Can't create markers directory {self.markers_dir}: {e}"
            ) from e
        if not os.access(self.markers_dir, os.R_OK | os.W_OK | os.X_OK):
            raise LedgerUnavailableError(f'Markers directory {self.markers_dir} is not writable')

    def is_complete(self, public_key: str) -> bool:
        return self._exists(self._marker_path(public_key))

    def mark_complete(self, public_key: str) -> bool:
        return self._create_exclusive(self._marker_path(public_key))

    def claim(self, public_key: str) -> bool:
        return self._create_exclusive(self._claim_path(public_key))

    def release(self, public_key: str) -> None:
        try:
            self._claim_path(public_key).unlink(missing_ok=True)
        except OSError as e:
            raise LedgerUnavailableError(f"Can't release claim for {public_key}: {e}") from e

    def _marker_path(self, public_key: str) -> Path:
        return self.markers_dir / f'{public_key}{MARKER_SUFFIX}'

    def _claim_path(self, public_key: str) -> Path:
        return self.markers_dir / f'{public_key}{CLAIM_SUFFIX}'

    @staticmethod
    def _exists(path: Path) -> bool:
        # os.path.exists hides permission errors
        try:
            os.stat(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise LedgerUnavailableError(f"Can't read {path}: {e}") from e
        return True

    @staticmethod
    def _create_exclusive(path: Path) -> bool:
        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        except OSError as e:
            raise LedgerUnavailableError(f"Can't create {path}: {e}") from e
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
        return True


class DatabaseCompletionLedger(BaseCompletionLedger):
    MARKERS_TABLE = 'deposit_markers'
    CLAIMS_TABLE = 'deposit_claims'

    def __init__(self, db_path: Path):
        self.db_path = db_path

    def get_db_connection(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise LedgerUnavailableError(f"Can't open database {self.db_path}: {e}") from e

    def setup(self) -> None:
        """Creates tables."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self.get_db_connection() as conn:
                for table in (self.MARKERS_TABLE, self.CLAIMS_TABLE):
                    conn.execute(
                        f"""
                        CREATE TABLE IF NOT EXISTS {table} (
                            public_key VARCHAR(96) PRIMARY KEY
                        )
                        """
                    )
        except (OSError, sqlite3.Error) as e:
            raise LedgerUnavailableError(f"Can't set up database {self.db_path}: {e}") from e

    def is_complete(self, public_key: str) -> bool:
        try:
            with self.get_db_connection() as conn:
                res = conn.execute(
                    f'SELECT public_key FROM {self.MARKERS_TABLE} WHERE (public_key = ?)',
                    (public_key,),
                )
                return res.fetchone() is not None
        except sqlite3.Error as e:
            raise LedgerUnavailableError(f"Can't read marker for {public_key}: {e}") from e

    def mark_complete(self, public_key: str) -> bool:
        return self._insert(self.MARKERS_TABLE, public_key)

    def claim(self, public_key: str) -> bool:
        return self._insert(self.CLAIMS_TABLE, public_key)

    def release(self, public_key: str) -> None:
        try:
            with self.get_db_connection() as conn:
                conn.execute(
                    f'DELETE FROM {self.CLAIMS_TABLE} WHERE (public_key = ?)', (public_key,)
                )
        except sqlite3.Error as e:
            raise LedgerUnavailableError(f"Can't release claim for {public_key}: {e}") from e

    def _insert(self, table: str, public_key: str) -> bool:
        try:
            with self.get_db_connection() as conn:
                conn.execute(f'INSERT INTO {table} VALUES(?)', (public_key,))
        except sqlite3.IntegrityError:
            return False
        except sqlite3.Error as e:
            raise LedgerUnavailableError(f"Can't write {table} row for {public_key}: {e}") from e
        return True
