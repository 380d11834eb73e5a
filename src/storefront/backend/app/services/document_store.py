"""Document storage backends shared by the catalogue and cart services.

Documents are JSON-compatible mappings grouped into named collections and
addressed by a string ``_id``. Both backends expose the same small surface:
equality-filtered reads, inserts and :meth:`modify`, an atomic
read-modify-write used for every cart mutation so that concurrent requests on
the same cart cannot lose updates.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import sqlite3
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from threading import Lock
from typing import Any, Protocol
from uuid import uuid4

Document = dict[str, Any]
Mutation = Callable[[Document | None], Document | None]

_LOGGER = logging.getLogger(__name__)

# Carts are looked up by owner on every request; the SQLite backend indexes it.
_USER_ID_EXPRESSION = "json_extract(body, '$.userId')"


class StorageError(RuntimeError):
    """Raised when the underlying storage engine fails."""


class DocumentStore(Protocol):
    """Interface implemented by every document storage backend."""

    def find(
        self, collection: str, filter: Mapping[str, Any] | None = None
    ) -> list[Document]: ...

    def find_one(self, collection: str, filter: Mapping[str, Any]) -> Document | None: ...

    def find_by_ids(self, collection: str, ids: Iterable[str]) -> dict[str, Document]: ...

    def insert_one(self, collection: str, document: Mapping[str, Any]) -> str: ...

    def modify(
        self, collection: str, filter: Mapping[str, Any], mutation: Mutation
    ) -> Document | None: ...


def _matches(document: Mapping[str, Any], filter: Mapping[str, Any] | None) -> bool:
    if not filter:
        return True
    return all(document.get(key) == value for key, value in filter.items())


def _prepare_document(document: Mapping[str, Any]) -> Document:
    prepared = copy.deepcopy(dict(document))
    identifier = prepared.get("_id")
    prepared["_id"] = str(identifier) if identifier not in (None, "") else uuid4().hex
    return prepared


class InMemoryDocumentStore:
    """Thread-safe, process-local document store."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = {}
        self._lock = Lock()

    def _collection_locked(self, name: str) -> dict[str, Document]:
        return self._collections.setdefault(name, {})

    def find(
        self, collection: str, filter: Mapping[str, Any] | None = None
    ) -> list[Document]:
        with self._lock:
            documents = self._collection_locked(collection).values()
            return [copy.deepcopy(doc) for doc in documents if _matches(doc, filter)]

    def find_one(self, collection: str, filter: Mapping[str, Any]) -> Document | None:
        with self._lock:
            for document in self._collection_locked(collection).values():
                if _matches(document, filter):
                    return copy.deepcopy(document)
        return None

    def find_by_ids(self, collection: str, ids: Iterable[str]) -> dict[str, Document]:
        wanted = {str(identifier) for identifier in ids}
        with self._lock:
            documents = self._collection_locked(collection)
            return {
                identifier: copy.deepcopy(documents[identifier])
                for identifier in wanted
                if identifier in documents
            }

    def insert_one(self, collection: str, document: Mapping[str, Any]) -> str:
        prepared = _prepare_document(document)
        with self._lock:
            documents = self._collection_locked(collection)
            if prepared["_id"] in documents:
                raise StorageError(
                    f"Duplicate _id {prepared['_id']!r} in collection {collection!r}"
                )
            documents[prepared["_id"]] = prepared
        return prepared["_id"]

    def modify(
        self, collection: str, filter: Mapping[str, Any], mutation: Mutation
    ) -> Document | None:
        """Apply ``mutation`` to the first match of ``filter`` atomically.

        ``mutation`` receives a copy of the current document (``None`` when no
        document matches) and returns the replacement, or ``None`` to leave the
        collection untouched. The persisted document is returned.
        """

        with self._lock:
            documents = self._collection_locked(collection)
            current = next(
                (doc for doc in documents.values() if _matches(doc, filter)), None
            )
            updated = mutation(copy.deepcopy(current) if current is not None else None)
            if updated is None:
                return copy.deepcopy(current) if current is not None else None

            if current is not None:
                updated = {**updated, "_id": current["_id"]}
            prepared = _prepare_document(updated)
            documents[prepared["_id"]] = prepared
            return copy.deepcopy(prepared)


class SQLiteDocumentStore:
    """SQLite-backed document store persisting JSON bodies per collection."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = str(path)
        self._lock = Lock()
        self._initialise()

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self._path,
            check_same_thread=False,
            isolation_level=None,
        )
        try:
            connection.execute("PRAGMA journal_mode=WAL")
            connection.execute("PRAGMA synchronous=NORMAL")
        except sqlite3.Error:
            connection.close()
            raise
        return connection

    @contextmanager
    def _transaction(self, *, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        try:
            connection = self._connect()
        except sqlite3.Error as exc:
            raise StorageError(f"Unable to open document store at {self._path}") from exc

        try:
            connection.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            yield connection
            connection.execute("COMMIT")
        except sqlite3.Error as exc:
            self._rollback(connection)
            raise StorageError(f"Document store operation failed: {exc}") from exc
        except BaseException:
            self._rollback(connection)
            raise
        finally:
            connection.close()

    @staticmethod
    def _rollback(connection: sqlite3.Connection) -> None:
        if connection.in_transaction:
            connection.execute("ROLLBACK")

    def _initialise(self) -> None:
        with self._transaction() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    body TEXT NOT NULL,
                    PRIMARY KEY (collection, id)
                )
                """
            )
            connection.execute(
                f"""
                CREATE INDEX IF NOT EXISTS documents_user_id
                ON documents (collection, {_USER_ID_EXPRESSION})
                """
            )

    @staticmethod
    def _decode(body: str) -> Document:
        try:
            document = json.loads(body)
        except json.JSONDecodeError as exc:
            raise StorageError("Stored document is not valid JSON") from exc
        if not isinstance(document, dict):
            raise StorageError("Stored document is not a JSON object")
        return document

    @staticmethod
    def _encode(document: Mapping[str, Any]) -> str:
        try:
            return json.dumps(document, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Document is not JSON serialisable: {exc}") from exc

    def _scan(
        self,
        connection: sqlite3.Connection,
        collection: str,
        filter: Mapping[str, Any] | None,
    ) -> Iterator[Document]:
        identifier = filter.get("_id") if filter else None
        user_id = filter.get("userId") if filter else None
        if identifier is not None:
            rows = connection.execute(
                "SELECT body FROM documents WHERE collection = ? AND id = ?",
                (collection, str(identifier)),
            ).fetchall()
        elif isinstance(user_id, (str, int)) and not isinstance(user_id, bool):
            rows = connection.execute(
                "SELECT body FROM documents "
                f"WHERE collection = ? AND {_USER_ID_EXPRESSION} = ? ORDER BY rowid",
                (collection, user_id),
            ).fetchall()
        else:
            rows = connection.execute(
                "SELECT body FROM documents WHERE collection = ? ORDER BY rowid",
                (collection,),
            ).fetchall()
        for (body,) in rows:
            document = self._decode(body)
            if _matches(document, filter):
                yield document

    def find(
        self, collection: str, filter: Mapping[str, Any] | None = None
    ) -> list[Document]:
        with self._lock, self._transaction() as connection:
            return list(self._scan(connection, collection, filter))

    def find_one(self, collection: str, filter: Mapping[str, Any]) -> Document | None:
        with self._lock, self._transaction() as connection:
            return next(self._scan(connection, collection, filter), None)

    def find_by_ids(self, collection: str, ids: Iterable[str]) -> dict[str, Document]:
        wanted = sorted({str(identifier) for identifier in ids})
        if not wanted:
            return {}

        placeholders = ", ".join("?" for _ in wanted)
        with self._lock, self._transaction() as connection:
            rows = connection.execute(
                f"SELECT id, body FROM documents WHERE collection = ? AND id IN ({placeholders})",
                (collection, *wanted),
            ).fetchall()
        return {identifier: self._decode(body) for identifier, body in rows}

    def insert_one(self, collection: str, document: Mapping[str, Any]) -> str:
        prepared = _prepare_document(document)
        body = self._encode(prepared)
        with self._lock, self._transaction(immediate=True) as connection:
            connection.execute(
                "INSERT INTO documents (collection, id, body) VALUES (?, ?, ?)",
                (collection, prepared["_id"], body),
            )
        return prepared["_id"]

    def modify(
        self, collection: str, filter: Mapping[str, Any], mutation: Mutation
    ) -> Document | None:
        """Atomic read-modify-write inside a ``BEGIN IMMEDIATE`` transaction."""

        with self._lock, self._transaction(immediate=True) as connection:
            current = next(self._scan(connection, collection, filter), None)
            updated = mutation(copy.deepcopy(current) if current is not None else None)
            if updated is None:
                return current

            if current is not None:
                updated = {**updated, "_id": current["_id"]}
            prepared = _prepare_document(updated)
            connection.execute(
                "INSERT OR REPLACE INTO documents (collection, id, body) VALUES (?, ?, ?)",
                (collection, prepared["_id"], self._encode(prepared)),
            )
            _LOGGER.debug("Persisted %s/%s", collection, prepared["_id"])
            return prepared


__all__ = [
    "Document",
    "DocumentStore",
    "InMemoryDocumentStore",
    "Mutation",
    "SQLiteDocumentStore",
    "StorageError",
]
