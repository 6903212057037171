# ============================================================================
# FILE: musicvault/db/store.py
# ============================================================================
"""
Whole-document JSON persistence.

Each resource (tracks, playlists, users, token blocklist) is a single JSON
array in its own file. The file is the unit of atomicity: every repository
operation is one load, some in-memory mutation, and at most one save.

Writers to the same file are serialized through a per-file asyncio lock so
two concurrent read-modify-write cycles cannot overwrite each other. Reads
take no lock; saves go through a temp file and ``os.replace`` so a reader
never sees a half-written document.
"""
import asyncio
import contextlib
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Generic, List, Tuple, Type, TypeVar

import anyio
from pydantic import BaseModel, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

DocT = TypeVar("DocT", bound=BaseModel)


class StoreError(Exception):
    """Unexpected I/O or parse failure in a document file"""


class Transaction(Generic[DocT]):
    """Snapshot of a document file held under its write lock"""

    def __init__(self, documents: List[DocT]):
        self.documents = documents
        self.dirty = False

    def mark_dirty(self) -> None:
        self.dirty = True


class JsonDocumentStore(Generic[DocT]):
    """Load/mutate/persist cycle over a JSON array stored in one file"""

    def __init__(self, path: Path, model: Type[DocT]):
        self.path = Path(path)
        self.model = model
        self._adapter = TypeAdapter(List[model])
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self.path.name

    async def load_all(self) -> List[DocT]:
        """Parse the backing file; a missing file is an empty collection"""
        return await anyio.to_thread.run_sync(self._read)

    async def save_all(self, documents: List[DocT]) -> None:
        """Overwrite the backing file with documents"""
        async with self._lock:
            await anyio.to_thread.run_sync(self._write, documents)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction[DocT]]:
        """
        Hold the write lock across a full read-modify-write cycle.

        The documents are written back on exit only if the block called
        ``mark_dirty()`` and did not raise.
        """
        async with self._lock:
            txn = Transaction(await self.load_all())
            yield txn
            if txn.dirty:
                await anyio.to_thread.run_sync(self._write, txn.documents)

    def _read(self) -> List[DocT]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error(f"Error reading {self.name}: {e}")
            raise StoreError(f"Failed to read {self.name}") from e

        try:
            return self._adapter.validate_json(raw)
        except ValidationError as e:
            logger.error(f"Error parsing {self.name}: {e}")
            raise StoreError(f"Failed to parse {self.name}") from e

    def _write(self, documents: List[DocT]) -> None:
        payload = self._adapter.dump_json(documents, by_alias=True, indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.name}.", suffix=".tmp")
        except OSError as e:
            logger.error(f"Error preparing write of {self.name}: {e}")
            raise StoreError(f"Failed to write {self.name}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            logger.error(f"Error writing {self.name}: {e}")
            raise StoreError(f"Failed to write {self.name}") from e


_stores: Dict[Tuple[Path, type], JsonDocumentStore] = {}


def get_store(path: Path, model: Type[DocT]) -> JsonDocumentStore[DocT]:
    """
    Return the shared store for a file.

    Every caller touching the same file must share one store so they share
    its write lock.
    """
    key = (Path(path).resolve(), model)
    store = _stores.get(key)
    if store is None:
        store = JsonDocumentStore(path, model)
        _stores[key] = store
    return store
