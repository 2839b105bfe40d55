"""Persistence backends holding one subscription record per user."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional, Protocol, Union

import psycopg2
import psycopg2.extras
from psycopg2 import sql
from psycopg2.extensions import connection as PgConnection
from psycopg2.extensions import cursor as PgCursor
from pydantic import ValidationError

from .exceptions import StorageFailure
from .models import Subscription

logger = logging.getLogger(__name__)


class SubscriptionStore(Protocol):
    """Exact-key storage for subscription records."""

    def get(self, user_id: str) -> Optional[Subscription]:
        ...

    def put(self, user_id: str, subscription: Subscription) -> None:
        ...


def serialize_subscription(subscription: Subscription) -> Dict[str, object]:
    return subscription.model_dump(mode="json")


def deserialize_subscription(payload: object) -> Subscription:
    try:
        return Subscription.model_validate(payload)
    except ValidationError as exc:
        raise StorageFailure(f"Malformed subscription record: {exc}") from exc


class InMemorySubscriptionStore:
    """Simple in-memory store suitable for tests and local development."""

    def __init__(self) -> None:
        self._records: Dict[str, Subscription] = {}

    def get(self, user_id: str) -> Optional[Subscription]:
        record = self._records.get(user_id)
        if record is None:
            return None
        return record.model_copy(deep=True)

    def put(self, user_id: str, subscription: Subscription) -> None:
        self._records[user_id] = subscription.model_copy(deep=True)

    def __len__(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        self._records.clear()


class JsonFileSubscriptionStore:
    """Stores every record in one JSON document keyed by user id.

    The document is re-read on each access and rewritten atomically on each
    ``put`` so that separate processes sharing the file see each other's
    writes. A missing file is an empty store; an unreadable one is an error.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            logger.exception("Failed to read subscription store %s", self._path)
            raise StorageFailure(f"Could not read subscription store {self._path}") from exc
        if not isinstance(data, dict):
            raise StorageFailure(f"Subscription store {self._path} is not a JSON object")
        return data

    def _save(self, data: Dict[str, object]) -> None:
        directory = self._path.parent
        tmp_name: Optional[str] = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".subscriptions-", suffix=".json", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, sort_keys=True, indent=2)
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as exc:
            logger.exception("Failed to write subscription store %s", self._path)
            raise StorageFailure(f"Could not write subscription store {self._path}") from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def get(self, user_id: str) -> Optional[Subscription]:
        payload = self._load().get(user_id)
        if payload is None:
            return None
        return deserialize_subscription(payload)

    def put(self, user_id: str, subscription: Subscription) -> None:
        data = self._load()
        data[user_id] = serialize_subscription(subscription)
        self._save(data)


DEFAULT_TABLE_NAME = "entitlement_subscriptions"


@contextmanager
def managed_connection(
    connection_factory: Callable[[], PgConnection],
    conn: Optional[PgConnection] = None,
) -> Iterator[tuple[PgConnection, bool]]:
    """Context manager that manages transaction boundaries for optional connections."""

    if conn is not None:
        yield conn, False
        return

    connection = connection_factory()
    try:
        yield connection, True
        connection.commit()
    except Exception:
        connection.rollback()
        raise
    finally:
        connection.close()


class PostgresSubscriptionStore:
    """Persists subscription records as JSONB rows keyed by user id."""

    def __init__(
        self,
        *,
        dsn: Optional[str] = None,
        conn: Optional[PgConnection] = None,
        connection_factory: Optional[Callable[[], PgConnection]] = None,
        table_name: str = DEFAULT_TABLE_NAME,
    ) -> None:
        if conn is None and connection_factory is None and not dsn:
            raise ValueError("PostgresSubscriptionStore requires a dsn, conn or connection_factory")
        self._conn = conn
        self._connection_factory = connection_factory or (lambda: psycopg2.connect(dsn))
        self._table = sql.Identifier(table_name)

    @contextmanager
    def _cursor(self) -> Iterator[PgCursor]:
        try:
            with managed_connection(self._connection_factory, self._conn) as (connection, _managed):
                cursor = connection.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
                try:
                    yield cursor
                finally:
                    cursor.close()
        except psycopg2.Error as exc:
            logger.exception("Subscription store query failed")
            raise StorageFailure(f"Subscription store query failed: {exc}") from exc

    def ensure_schema(self) -> None:
        """Create the backing table when it does not exist yet."""

        with self._cursor() as cursor:
            cursor.execute(
                sql.SQL(
                    """
                    CREATE TABLE IF NOT EXISTS {table} (
                        user_id TEXT PRIMARY KEY,
                        record JSONB NOT NULL,
                        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                    )
                    """
                ).format(table=self._table)
            )

    def get(self, user_id: str) -> Optional[Subscription]:
        with self._cursor() as cursor:
            cursor.execute(
                sql.SQL(
                    """
                    SELECT record
                    FROM {table}
                    WHERE user_id = %s
                    LIMIT 1
                    """
                ).format(table=self._table),
                (user_id,),
            )
            row = cursor.fetchone()
        if not row:
            return None
        record = row["record"]
        if isinstance(record, str):
            try:
                record = json.loads(record)
            except ValueError as exc:
                logger.exception("Failed to decode subscription record for %s", user_id)
                raise StorageFailure(f"Malformed subscription record for {user_id}") from exc
        return deserialize_subscription(record)

    def put(self, user_id: str, subscription: Subscription) -> None:
        with self._cursor() as cursor:
            cursor.execute(
                sql.SQL(
                    """
                    INSERT INTO {table} (user_id, record)
                    VALUES (%(user_id)s, %(record)s)
                    ON CONFLICT (user_id) DO UPDATE SET
                        record = EXCLUDED.record,
                        updated_at = NOW()
                    """
                ).format(table=self._table),
                {
                    "user_id": user_id,
                    "record": psycopg2.extras.Json(serialize_subscription(subscription)),
                },
            )
