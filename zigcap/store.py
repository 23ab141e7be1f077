"""Durable device-scoped key/value storage."""

from __future__ import annotations

import json
import logging
import typing

import aiosqlite

LOGGER = logging.getLogger(__name__)

DB_VERSION = 1
DB_V = f"_v{DB_VERSION}"


class DeviceStore:
    """Key/value store of a single device.

    Reads are served from memory so they can be synchronous, writes are awaited.
    """

    def __init__(self, device_id: str) -> None:
        self.device_id = device_id
        self._data: dict[str, typing.Any] = {}

    def get(self, key: str, default: typing.Any = None) -> typing.Any:
        return self._data.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def as_dict(self) -> dict[str, typing.Any]:
        return dict(self._data)

    async def set(self, key: str, value: typing.Any) -> None:
        self._data[key] = value
        await self._persist(key, value)

    async def _persist(self, key: str, value: typing.Any) -> None:
        pass

    async def load(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass


class MemoryStore(DeviceStore):
    """Store living as long as the process."""

    def __init__(
        self, device_id: str, initial: dict[str, typing.Any] | None = None
    ) -> None:
        super().__init__(device_id)
        self._data.update(initial or {})


class SQLiteStore(DeviceStore):
    """Store persisting every value as JSON in an SQLite database."""

    def __init__(self, device_id: str, connection: aiosqlite.Connection) -> None:
        super().__init__(device_id)
        self._db = connection

    @classmethod
    async def new(cls, database_file: str, device_id: str) -> SQLiteStore:
        """Open the database and load the device's values."""
        connection = await aiosqlite.connect(database_file)
        store = cls(device_id, connection)

        try:
            await store.initialize_tables()
            await store.load()
        except Exception:
            await connection.close()
            raise

        return store

    def execute(self, *args, **kwargs):
        return self._db.execute(*args, **kwargs)

    async def initialize_tables(self) -> None:
        await self.execute("PRAGMA journal_mode = WAL")
        await self.execute("PRAGMA synchronous = normal")
        await self.execute(
            f"CREATE TABLE IF NOT EXISTS device_store{DB_V} ("
            " device_id TEXT NOT NULL,"
            " key TEXT NOT NULL,"
            " value TEXT NOT NULL,"
            " PRIMARY KEY (device_id, key)"
            ")"
        )
        await self._db.commit()

    async def load(self) -> None:
        async with self.execute(
            f"SELECT key, value FROM device_store{DB_V} WHERE device_id = ?",
            (self.device_id,),
        ) as cursor:
            rows = await cursor.fetchall()

        self._data.clear()

        for key, value in rows:
            try:
                self._data[key] = json.loads(value)
            except ValueError:
                LOGGER.warning(
                    "[%s] Ignoring corrupt store value for %r: %r",
                    self.device_id,
                    key,
                    value,
                )

        LOGGER.debug("[%s] Loaded %d store values", self.device_id, len(self._data))

    async def _persist(self, key: str, value: typing.Any) -> None:
        await self.execute(
            f"INSERT INTO device_store{DB_V} (device_id, key, value) VALUES (?, ?, ?)"
            " ON CONFLICT (device_id, key) DO UPDATE SET value=excluded.value",
            (self.device_id, key, json.dumps(value)),
        )
        await self._db.commit()

    async def shutdown(self) -> None:
        """Shutdown connection."""
        await self.execute("PRAGMA wal_checkpoint;")
        await self._db.close()
