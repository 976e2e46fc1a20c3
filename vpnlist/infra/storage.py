"""SQLite-backed catalog of advertised servers."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock
from typing import Any, Iterable

import structlog

from ..config.models import QueryFilter
from ..engine.records import CatalogRecord, ConfigEntry, ProbeTarget
from ..errors import NotFoundError, PersistenceError

_COLUMNS = (
    "host_name",
    "ip",
    "score",
    "ping",
    "speed",
    "country_long",
    "country_short",
    "num_vpn_sessions",
    "uptime",
    "total_users",
    "total_traffic",
    "log_type",
    "operator",
    "message",
    "openvpn_config",
)

_UPSERT_SQL = (
    f"INSERT INTO servers ({', '.join(_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _COLUMNS)}) "
    "ON CONFLICT (host_name) DO UPDATE SET "
    + ", ".join(f"{column} = excluded.{column}" for column in _COLUMNS[1:])
)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _build_where(query: QueryFilter) -> tuple[str, list[Any]]:
    """Translate a filter into a parameterised WHERE clause."""

    clauses: list[str] = []
    params: list[Any] = []
    if query.countries:
        codes = sorted(query.countries)
        clauses.append(f"country_short IN ({', '.join('?' for _ in codes)})")
        params.extend(codes)
    if query.min_speed_mbps > 0:
        clauses.append("speed > ?")
        params.append(query.min_speed_bps)
    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


class RecordStore:
    """Keyed catalog with merge-upsert and filtered read queries."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = Lock()
        self.logger = structlog.get_logger("vpnlist.storage")
        try:
            if str(path) != ":memory:":
                path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            self._ensure_schema(conn)
        except (OSError, sqlite3.Error) as exc:
            raise PersistenceError(f"cannot open catalog at {path}: {exc}") from exc
        self._conn = conn

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS servers (
                id INTEGER PRIMARY KEY,
                host_name TEXT NOT NULL UNIQUE,
                ip TEXT,
                score INTEGER,
                ping INTEGER,
                speed INTEGER,
                country_long TEXT,
                country_short TEXT,
                num_vpn_sessions INTEGER,
                uptime INTEGER,
                total_users INTEGER,
                total_traffic INTEGER,
                log_type TEXT,
                operator TEXT,
                message TEXT,
                openvpn_config BLOB NOT NULL
            )
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS servers_country_host ON servers (country_short, host_name)"
        )
        conn.commit()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def upsert(self, record: CatalogRecord) -> None:
        """Insert ``record`` or fully replace the row sharing its host name."""

        with self._lock:
            try:
                with self._conn:
                    self._conn.execute(_UPSERT_SQL, self._row_values(record))
            except sqlite3.Error as exc:
                raise PersistenceError(f"cannot store {record.host_name!r}: {exc}") from exc

    def upsert_all(self, records: Iterable[CatalogRecord]) -> int:
        """Upsert every record in input order as a single transaction.

        The first failure rolls back the whole batch and is re-raised as
        :class:`PersistenceError`.
        """

        written = 0
        current: str | None = None
        with self._lock:
            try:
                with self._conn:
                    for record in records:
                        current = record.host_name
                        self._conn.execute(_UPSERT_SQL, self._row_values(record))
                        written += 1
            except sqlite3.Error as exc:
                raise PersistenceError(f"cannot store {current!r}: {exc}") from exc
        self.logger.info("records_upserted", count=written, path=str(self.path))
        return written

    @staticmethod
    def _row_values(record: CatalogRecord) -> tuple[Any, ...]:
        return tuple(getattr(record, column) for column in _COLUMNS)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def query_filtered(self, query: QueryFilter | None = None) -> list[ProbeTarget]:
        """Return probe projections matching ``query`` ordered by country then host."""

        where, params = _build_where(query or QueryFilter())
        rows = self._fetchall(
            "SELECT host_name, ip, ping, speed, country_short FROM servers"
            + where
            + " ORDER BY country_short, host_name",
            params,
        )
        return [
            ProbeTarget(
                host_name=row["host_name"],
                ip=row["ip"],
                country_short=row["country_short"],
                speed=row["speed"],
                ping=row["ping"],
            )
            for row in rows
        ]

    def query_random(self, query: QueryFilter | None = None) -> ConfigEntry:
        where, params = _build_where(query or QueryFilter())
        rows = self._fetchall(
            "SELECT openvpn_config, host_name, ip, country_long FROM servers"
            + where
            + " ORDER BY RANDOM() LIMIT 1",
            params,
        )
        if not rows:
            raise NotFoundError("no server matches the given filter")
        return self._config_entry(rows[0])

    def query_specific(self, search: str) -> ConfigEntry:
        """Return the config of the first host whose name contains ``search``."""

        rows = self._fetchall(
            "SELECT openvpn_config, host_name, ip, country_long FROM servers "
            "WHERE host_name LIKE ? ESCAPE '\\' ORDER BY host_name LIMIT 1",
            [f"%{_escape_like(search)}%"],
        )
        if not rows:
            raise NotFoundError(f"no server host name matches {search!r}")
        return self._config_entry(rows[0])

    def query_records(self, query: QueryFilter | None = None) -> list[CatalogRecord]:
        """Return full records matching ``query``, in listing order."""

        where, params = _build_where(query or QueryFilter())
        rows = self._fetchall(
            f"SELECT {', '.join(_COLUMNS)} FROM servers"
            + where
            + " ORDER BY country_short, host_name",
            params,
        )
        return [
            CatalogRecord(**{column: row[column] for column in _COLUMNS})
            for row in rows
        ]

    def distinct_countries(self) -> list[str]:
        rows = self._fetchall(
            "SELECT DISTINCT (country_long || ' (' || country_short || ')') AS country "
            "FROM servers ORDER BY country",
            [],
        )
        return [row["country"] for row in rows]

    def count(self) -> int:
        rows = self._fetchall("SELECT COUNT(*) AS total FROM servers", [])
        return int(rows[0]["total"])

    def _fetchall(self, sql: str, params: list[Any]) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as exc:
                raise PersistenceError(f"catalog query failed: {exc}") from exc

    @staticmethod
    def _config_entry(row: sqlite3.Row) -> ConfigEntry:
        config = row["openvpn_config"]
        if isinstance(config, str):
            config = config.encode("utf-8")
        return ConfigEntry(
            host_name=row["host_name"],
            ip=row["ip"],
            country_long=row["country_long"],
            openvpn_config=bytes(config),
        )

    # ------------------------------------------------------------------
    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["RecordStore"]
