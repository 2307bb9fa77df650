"""Document store adapter for todos and users.

Two backends share one async interface:
  - InMemoryDocumentStore: used when DATABASE_URL is unset and in tests.
  - PostgresDocumentStore: one JSONB row per document, used when DATABASE_URL is set.

Filters use JSON containment semantics (Postgres ``@>``): a document matches
when every key in the filter is present with a contained value, and a list in
the filter matches when each of its items is contained in some item of the
document's list.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import asyncpg

from .identifiers import new_object_id

logger = logging.getLogger(__name__)

TODOS = "todos"
USERS = "users"

UNIQUE_FIELDS: Dict[str, Sequence[str]] = {USERS: ("email",)}


class StoreError(RuntimeError):
    """The store could not complete an operation."""


class DuplicateKeyError(Exception):
    def __init__(self, collection: str, field: str) -> None:
        self.collection = collection
        self.field = field
        super().__init__(f"Duplicate value for {collection}.{field}")


def matches(value: Any, criteria: Any) -> bool:
    if isinstance(criteria, Mapping):
        if not isinstance(value, Mapping):
            return False
        return all(key in value and matches(value[key], expected) for key, expected in criteria.items())
    if isinstance(criteria, list):
        if not isinstance(value, list):
            return False
        return all(any(matches(item, expected) for item in value) for expected in criteria)
    return value == criteria


def _with_id(doc_id: str, document: Mapping[str, Any]) -> Dict[str, Any]:
    return {"id": doc_id, **document}


class DocumentStore:
    """Async persistence boundary over named collections."""

    async def connect(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def insert(self, collection: str, document: Mapping[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    async def find(self, collection: str, criteria: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def find_one(self, collection: str, criteria: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def find_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def update_by_id(
        self,
        collection: str,
        doc_id: str,
        *,
        set_fields: Optional[Mapping[str, Any]] = None,
        unset_fields: Iterable[str] = (),
        push: Optional[Mapping[str, Any]] = None,
        pull: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Apply all changes atomically and return the updated document, or None if absent."""
        raise NotImplementedError

    async def remove_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Delete a document and return its last state, or None if absent."""
        raise NotImplementedError

    async def count(self, collection: str, criteria: Optional[Mapping[str, Any]] = None) -> int:
        raise NotImplementedError


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store. Each operation runs without awaiting, so it is atomic on the event loop."""

    def __init__(self, unique_fields: Optional[Mapping[str, Sequence[str]]] = None) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._unique_fields = dict(UNIQUE_FIELDS if unique_fields is None else unique_fields)

    def clear(self) -> None:
        """Drop every collection (testing helper)."""
        self._collections.clear()

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def _check_unique(self, collection: str, document: Mapping[str, Any], doc_id: Optional[str] = None) -> None:
        for field in self._unique_fields.get(collection, ()):
            if field not in document:
                continue
            for other_id, other in self._collection(collection).items():
                if other_id != doc_id and other.get(field) == document[field]:
                    raise DuplicateKeyError(collection, field)

    async def insert(self, collection: str, document: Mapping[str, Any]) -> Dict[str, Any]:
        stored = copy.deepcopy(dict(document))
        stored.pop("id", None)
        self._check_unique(collection, stored)
        doc_id = new_object_id()
        self._collection(collection)[doc_id] = stored
        return _with_id(doc_id, copy.deepcopy(stored))

    async def find(self, collection: str, criteria: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        return [
            _with_id(doc_id, copy.deepcopy(document))
            for doc_id, document in self._collection(collection).items()
            if matches(document, criteria or {})
        ]

    async def find_one(self, collection: str, criteria: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        for doc_id, document in self._collection(collection).items():
            if matches(document, criteria):
                return _with_id(doc_id, copy.deepcopy(document))
        return None

    async def find_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        document = self._collection(collection).get(doc_id)
        if document is None:
            return None
        return _with_id(doc_id, copy.deepcopy(document))

    async def update_by_id(
        self,
        collection: str,
        doc_id: str,
        *,
        set_fields: Optional[Mapping[str, Any]] = None,
        unset_fields: Iterable[str] = (),
        push: Optional[Mapping[str, Any]] = None,
        pull: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        documents = self._collection(collection)
        current = documents.get(doc_id)
        if current is None:
            return None

        updated = copy.deepcopy(current)
        updated.update(copy.deepcopy(dict(set_fields or {})))
        for field in unset_fields:
            updated.pop(field, None)
        for field, value in (push or {}).items():
            updated[field] = list(updated.get(field) or []) + [copy.deepcopy(value)]
        for field, criteria in (pull or {}).items():
            updated[field] = [item for item in updated.get(field) or [] if not matches(item, criteria)]

        self._check_unique(collection, updated, doc_id=doc_id)
        documents[doc_id] = updated
        return _with_id(doc_id, copy.deepcopy(updated))

    async def remove_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        document = self._collection(collection).pop(doc_id, None)
        if document is None:
            return None
        return _with_id(doc_id, document)

    async def count(self, collection: str, criteria: Optional[Mapping[str, Any]] = None) -> int:
        return len(await self.find(collection, criteria))


def _json_payload(payload: Any) -> str:
    if payload is None:
        payload = {}
    return json.dumps(payload, default=str)


def _coerce_json_value(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def _row_to_document(row: Optional[asyncpg.Record]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    return _with_id(row["id"], _coerce_json_value(row["doc"]) or {})


def _log_db_error(action: str, details: Mapping[str, Any]) -> None:
    summary = {key: type(value).__name__ for key, value in details.items()}
    logger.exception("Database %s failed (types=%s)", action, summary)


class PostgresDocumentStore(DocumentStore):
    """Documents kept as JSONB rows in a single ``documents`` table."""

    def __init__(
        self,
        database_url: str,
        *,
        min_size: int = 1,
        max_size: int = 5,
        unique_fields: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> None:
        self._database_url = database_url
        self._min_size = min_size
        self._max_size = max_size
        self._unique_fields = dict(UNIQUE_FIELDS if unique_fields is None else unique_fields)
        self._pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> None:
        if self._pool is not None:
            return

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self._database_url,
                min_size=self._min_size,
                max_size=self._max_size,
            )
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS documents (
                        seq BIGSERIAL,
                        collection TEXT NOT NULL,
                        id TEXT NOT NULL,
                        doc JSONB NOT NULL,
                        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                        PRIMARY KEY (collection, id)
                    );
                    """
                )
                for collection, fields in self._unique_fields.items():
                    for field in fields:
                        await conn.execute(
                            f"""
                            CREATE UNIQUE INDEX IF NOT EXISTS documents_{collection}_{field}_uidx
                            ON documents ((doc->>'{field}'))
                            WHERE collection = '{collection}';
                            """
                        )
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
            _log_db_error("connect", {"dsn": self._database_url})
            raise StoreError("Failed to initialize the document store") from exc
        logger.info("Database initialized for document persistence")

    async def close(self) -> None:
        if self._pool is None:
            return

        await self._pool.close()
        self._pool = None
        logger.info("Database pool closed")

    async def _run(self, action: str, method: str, query: str, *args: Any) -> Any:
        if self._pool is None:
            raise StoreError("Database pool is not initialized")
        try:
            return await getattr(self._pool, method)(query, *args)
        except asyncpg.UniqueViolationError:
            raise
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
            _log_db_error(action, {f"arg{idx}": value for idx, value in enumerate(args)})
            raise StoreError(f"Database {action} failed") from exc

    def _duplicate_key_error(self, collection: str, exc: asyncpg.UniqueViolationError) -> DuplicateKeyError:
        constraint = getattr(exc, "constraint_name", None) or ""
        for field in self._unique_fields.get(collection, ()):
            if constraint == f"documents_{collection}_{field}_uidx":
                return DuplicateKeyError(collection, field)
        return DuplicateKeyError(collection, "id")

    async def insert(self, collection: str, document: Mapping[str, Any]) -> Dict[str, Any]:
        stored = dict(document)
        stored.pop("id", None)
        try:
            row = await self._run(
                "insert",
                "fetchrow",
                """
                INSERT INTO documents (collection, id, doc)
                VALUES ($1, $2, $3::jsonb)
                RETURNING id, doc;
                """,
                collection,
                new_object_id(),
                _json_payload(stored),
            )
        except asyncpg.UniqueViolationError as exc:
            raise self._duplicate_key_error(collection, exc) from exc
        return _row_to_document(row) or {}

    async def find(self, collection: str, criteria: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        rows = await self._run(
            "find",
            "fetch",
            """
            SELECT id, doc
            FROM documents
            WHERE collection = $1 AND doc @> $2::jsonb
            ORDER BY seq;
            """,
            collection,
            _json_payload(criteria or {}),
        )
        return [_row_to_document(row) for row in rows]

    async def find_one(self, collection: str, criteria: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        row = await self._run(
            "find_one",
            "fetchrow",
            """
            SELECT id, doc
            FROM documents
            WHERE collection = $1 AND doc @> $2::jsonb
            ORDER BY seq
            LIMIT 1;
            """,
            collection,
            _json_payload(criteria),
        )
        return _row_to_document(row)

    async def find_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        row = await self._run(
            "find_by_id",
            "fetchrow",
            "SELECT id, doc FROM documents WHERE collection = $1 AND id = $2;",
            collection,
            doc_id,
        )
        return _row_to_document(row)

    async def update_by_id(
        self,
        collection: str,
        doc_id: str,
        *,
        set_fields: Optional[Mapping[str, Any]] = None,
        unset_fields: Iterable[str] = (),
        push: Optional[Mapping[str, Any]] = None,
        pull: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        values: List[Any] = [collection, doc_id]
        expr = "doc"
        if set_fields:
            values.append(_json_payload(dict(set_fields)))
            expr = f"({expr} || ${len(values)}::jsonb)"
        unset = list(unset_fields)
        if unset:
            values.append(unset)
            expr = f"({expr} - ${len(values)}::text[])"
        for field, value in (push or {}).items():
            values.append(field)
            field_idx = len(values)
            values.append(json.dumps(value, default=str))
            value_idx = len(values)
            expr = (
                f"jsonb_set({expr}, ARRAY[${field_idx}::text], "
                f"COALESCE({expr} -> ${field_idx}::text, '[]'::jsonb) "
                f"|| jsonb_build_array(${value_idx}::jsonb))"
            )
        for field, criteria in (pull or {}).items():
            values.append(field)
            field_idx = len(values)
            values.append(json.dumps(criteria, default=str))
            criteria_idx = len(values)
            expr = (
                f"jsonb_set({expr}, ARRAY[${field_idx}::text], COALESCE(("
                f"SELECT jsonb_agg(item ORDER BY ord) "
                f"FROM jsonb_array_elements(COALESCE({expr} -> ${field_idx}::text, '[]'::jsonb)) "
                f"WITH ORDINALITY AS elements(item, ord) "
                f"WHERE NOT item @> ${criteria_idx}::jsonb"
                f"), '[]'::jsonb))"
            )

        if expr == "doc":
            return await self.find_by_id(collection, doc_id)

        query = (
            f"UPDATE documents SET doc = {expr}, updated_at = NOW() "
            "WHERE collection = $1 AND id = $2 RETURNING id, doc;"
        )
        try:
            row = await self._run("update_by_id", "fetchrow", query, *values)
        except asyncpg.UniqueViolationError as exc:
            raise self._duplicate_key_error(collection, exc) from exc
        return _row_to_document(row)

    async def remove_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        row = await self._run(
            "remove_by_id",
            "fetchrow",
            "DELETE FROM documents WHERE collection = $1 AND id = $2 RETURNING id, doc;",
            collection,
            doc_id,
        )
        return _row_to_document(row)

    async def count(self, collection: str, criteria: Optional[Mapping[str, Any]] = None) -> int:
        value = await self._run(
            "count",
            "fetchval",
            "SELECT COUNT(*) FROM documents WHERE collection = $1 AND doc @> $2::jsonb;",
            collection,
            _json_payload(criteria or {}),
        )
        return int(value or 0)


def create_store(database_url: Optional[str]) -> DocumentStore:
    if database_url:
        logger.info("DATABASE_URL detected, enabling Postgres persistence")
        return PostgresDocumentStore(database_url)
    logger.info("DATABASE_URL not set, using in-memory document storage")
    return InMemoryDocumentStore()
