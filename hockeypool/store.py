"""Document store with per-document optimistic transactions.

Documents live at ``/``-separated paths (``collection/doc_id``, with
subcollections nested under a document). Every write goes through
``_commit``, which atomically checks the versions of the documents a
transaction read and applies its writes. A transaction that loses a race is
re-run with fresh reads, the same "refetch and retry" loop used for
conflicting file updates elsewhere in the league tooling.
"""

import copy
import fcntl
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from .errors import DataIntegrityError, DocumentNotFound, TransactionConflict
from .utils import load_json, save_json

logger = logging.getLogger('hockeypool.store')

M = TypeVar('M', bound=BaseModel)
R = TypeVar('R')

# Collections
LEAGUES = 'leagues'
DRAFTS = 'drafts'
DRAFTED_PLAYERS = 'drafted_players'
DAILY_STATS = 'daily_stats'


def doc_id(value: Any) -> str:
    """Encode a value (team names may contain spaces or slashes) as a document id."""
    return quote(str(value), safe='')


def league_path(league_id: str) -> str:
    return f'{LEAGUES}/{doc_id(league_id)}'


def draft_path(league_id: str) -> str:
    return f'{DRAFTS}/{doc_id(league_id)}'


def drafted_player_path(league_id: str, player_id: int) -> str:
    # One id per (league, player): the uniqueness check is a versioned read
    return f'{DRAFTED_PLAYERS}/{doc_id(f"{league_id}_{player_id}")}'


def processed_dates_collection(league_id: str) -> str:
    return f'{league_path(league_id)}/processed_dates'


def processed_date_path(league_id: str, date: str) -> str:
    return f'{processed_dates_collection(league_id)}/{doc_id(date)}'


def team_scores_collection(league_id: str) -> str:
    return f'{league_path(league_id)}/team_scores'


def team_score_path(league_id: str, team_name: str) -> str:
    return f'{team_scores_collection(league_id)}/{doc_id(team_name)}'


def player_daily_scores_collection(league_id: str) -> str:
    return f'{league_path(league_id)}/player_daily_scores'


def player_daily_score_path(league_id: str, player_id: int, date: str) -> str:
    return f'{player_daily_scores_collection(league_id)}/{doc_id(f"{player_id}-{date}")}'


def live_stats_collection(league_id: str) -> str:
    return f'{league_path(league_id)}/live_stats'


def live_stat_path(league_id: str, date: str, player_id: int) -> str:
    return f'{live_stats_collection(league_id)}/{doc_id(f"{date}_{player_id}")}'


def daily_stats_path(date: str) -> str:
    return f'{DAILY_STATS}/{doc_id(date)}'


def validate_document(data: dict, schema: type[M], path: str) -> M:
    """
    Validate a stored document against its schema.

    Raises:
        DataIntegrityError: If required fields are absent or malformed
    """
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        logger.error(f'Invalid document at {path}: {e}')
        raise DataIntegrityError(f'Invalid document at {path}: {e}') from e


def _check_document_path(path: str) -> None:
    parts = path.split('/')
    if len(parts) % 2 != 0 or not all(parts):
        raise ValueError(f'Not a document path: {path!r}')


def _to_document(data: Any) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump()
    if not isinstance(data, dict):
        raise TypeError(f'Documents must be dicts or models, got {type(data).__name__}')
    return copy.deepcopy(data)


class Transaction:
    """
    Reads and buffered writes for one attempt of ``run_transaction``.

    Documents read with ``get`` are version-checked at commit. ``query``
    results are not tracked; callers that need a serialization point read a
    document that every competing writer also writes.
    """

    def __init__(self, store: 'DocumentStore'):
        self._store = store
        self.reads: dict[str, int] = {}
        self.writes: dict[str, Optional[dict]] = {}

    def get(self, path: str) -> Optional[dict]:
        _check_document_path(path)
        if path in self.writes:
            return copy.deepcopy(self.writes[path])
        version, data = self._store._read(path)
        self.reads.setdefault(path, version)
        return data

    def get_model(self, path: str, schema: type[M]) -> Optional[M]:
        data = self.get(path)
        if data is None:
            return None
        return validate_document(data, schema, path)

    def query(self, collection: str, **equals: Any) -> list[tuple[str, dict]]:
        return self._store.query(collection, **equals)

    def set(self, path: str, data: Any) -> None:
        _check_document_path(path)
        self.writes[path] = _to_document(data)

    def update(self, path: str, fields: dict) -> dict:
        current = self.get(path)
        if current is None:
            raise DocumentNotFound(path)
        current.update(copy.deepcopy(fields))
        self.writes[path] = current
        return current

    def delete(self, path: str) -> None:
        _check_document_path(path)
        self.writes[path] = None


class DocumentStore:
    """
    Base class for document stores.

    Subclasses implement ``_read``, ``_list_ids`` and ``_commit``; everything
    else, including transaction retries, is shared.
    """

    def __init__(self, max_attempts: int = 5):
        self.max_attempts = max_attempts

    # Backend hooks

    def _read(self, path: str) -> tuple[int, Optional[dict]]:
        """Return (version, data); a document that never existed is (0, None)."""
        raise NotImplementedError

    def _list_ids(self, collection: str) -> list[str]:
        raise NotImplementedError

    def _commit(self, reads: dict[str, int], writes: dict[str, Optional[dict]]) -> None:
        """Atomically verify read versions and apply writes (None deletes)."""
        raise NotImplementedError

    # Single-document operations

    def get(self, path: str) -> Optional[dict]:
        _check_document_path(path)
        return self._read(path)[1]

    def get_model(self, path: str, schema: type[M]) -> Optional[M]:
        data = self.get(path)
        if data is None:
            return None
        return validate_document(data, schema, path)

    def exists(self, path: str) -> bool:
        return self.get(path) is not None

    def set(self, path: str, data: Any) -> None:
        _check_document_path(path)
        self._commit({}, {path: _to_document(data)})

    def update(self, path: str, fields: dict) -> dict:
        """Merge fields into an existing document."""
        return self.run_transaction(lambda txn: txn.update(path, fields))

    def delete(self, path: str) -> None:
        _check_document_path(path)
        self._commit({}, {path: None})

    # Collections

    def list_documents(self, collection: str) -> list[tuple[str, dict]]:
        results = []
        for document_id in sorted(self._list_ids(collection)):
            data = self._read(f'{collection}/{document_id}')[1]
            if data is not None:
                results.append((document_id, data))
        return results

    def query(self, collection: str, **equals: Any) -> list[tuple[str, dict]]:
        """List documents whose fields equal every given value."""
        return [
            (document_id, data)
            for document_id, data in self.list_documents(collection)
            if all(data.get(field) == value for field, value in equals.items())
        ]

    def delete_collection(self, collection: str) -> int:
        """Delete every document in a collection, returning the count."""
        document_ids = [document_id for document_id, _ in self.list_documents(collection)]
        for document_id in document_ids:
            self.delete(f'{collection}/{document_id}')
        return len(document_ids)

    # Transactions

    def run_transaction(
        self, fn: Callable[[Transaction], R], max_attempts: Optional[int] = None
    ) -> R:
        """
        Run ``fn`` against a fresh Transaction and commit its writes atomically.

        If a document read by ``fn`` changed before the commit, ``fn`` is run
        again with fresh reads. Exceptions raised by ``fn`` propagate and
        nothing is written.

        Raises:
            TransactionConflict: If every attempt lost a race
        """
        attempts = max_attempts or self.max_attempts
        for attempt in range(1, attempts + 1):
            txn = Transaction(self)
            result = fn(txn)
            if not txn.writes:
                return result
            try:
                self._commit(txn.reads, txn.writes)
                return result
            except TransactionConflict as e:
                logger.info(f'Transaction conflict, retrying ({attempt}/{attempts}): {e}')
        raise TransactionConflict(f'Transaction failed after {attempts} attempts')


class MemoryStore(DocumentStore):
    """In-process store; documents are deep-copied in and out."""

    def __init__(self, max_attempts: int = 5):
        super().__init__(max_attempts)
        self._docs: dict[str, tuple[int, Optional[dict]]] = {}
        self._lock = threading.RLock()

    def _read(self, path: str) -> tuple[int, Optional[dict]]:
        with self._lock:
            version, data = self._docs.get(path, (0, None))
            return version, copy.deepcopy(data)

    def _list_ids(self, collection: str) -> list[str]:
        prefix = f'{collection}/'
        with self._lock:
            return [
                path[len(prefix):]
                for path, (_, data) in self._docs.items()
                if path.startswith(prefix) and '/' not in path[len(prefix):] and data is not None
            ]

    def _commit(self, reads: dict[str, int], writes: dict[str, Optional[dict]]) -> None:
        with self._lock:
            for path, version in reads.items():
                current = self._docs.get(path, (0, None))[0]
                if current != version:
                    raise TransactionConflict(f'{path} changed (read v{version}, now v{current})')
            for path, data in writes.items():
                current = self._docs.get(path, (0, None))[0]
                # Deletes keep a tombstone version
                self._docs[path] = (current + 1, copy.deepcopy(data))


class JsonFileStore(DocumentStore):
    """
    One JSON file per document under ``root``.

    Each file holds ``{"version": n, "data": {...}}``. Commits are serialized
    across processes with an exclusive lock on ``root/.lock`` and are
    journaled, so a crash mid-commit is rolled forward by the next commit.
    """

    def __init__(self, root: Path | str, max_attempts: int = 5):
        super().__init__(max_attempts)
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock_path = self.root / '.lock'
        self._journal_path = self.root / '.journal.json'
        self._thread_lock = threading.Lock()

    def _file(self, path: str) -> Path:
        parts = path.split('/')
        return self.root.joinpath(*parts[:-1]) / f'{parts[-1]}.json'

    def _read(self, path: str) -> tuple[int, Optional[dict]]:
        file_path = self._file(path)
        if not file_path.exists():
            return 0, None
        envelope = load_json(file_path)
        return envelope.get('version', 0), envelope.get('data')

    def _list_ids(self, collection: str) -> list[str]:
        directory = self.root.joinpath(*collection.split('/'))
        if not directory.is_dir():
            return []
        return [
            entry.name[: -len('.json')]
            for entry in directory.iterdir()
            if entry.is_file() and entry.name.endswith('.json') and not entry.name.startswith('.')
        ]

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        with self._thread_lock:
            with open(self._lock_path, 'a+') as handle:
                fcntl.flock(handle, fcntl.LOCK_EX)
                try:
                    self._replay_journal()
                    yield
                finally:
                    fcntl.flock(handle, fcntl.LOCK_UN)

    def _replay_journal(self) -> None:
        if not self._journal_path.exists():
            return
        journal = load_json(self._journal_path)
        logger.warning(f'Rolling forward interrupted commit of {len(journal)} documents')
        self._apply(journal)

    def _apply(self, journal: list[dict]) -> None:
        for entry in journal:
            save_json(
                self._file(entry['path']),
                {'version': entry['version'], 'data': entry['data']},
                atomic=True,
            )
        self._journal_path.unlink(missing_ok=True)

    def _commit(self, reads: dict[str, int], writes: dict[str, Optional[dict]]) -> None:
        with self._exclusive():
            for path, version in reads.items():
                current = self._read(path)[0]
                if current != version:
                    raise TransactionConflict(f'{path} changed (read v{version}, now v{current})')
            journal = [
                {'path': path, 'version': self._read(path)[0] + 1, 'data': data}
                for path, data in writes.items()
            ]
            save_json(self._journal_path, journal, atomic=True)
            self._apply(journal)
