from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Optional

SIZE_INCREMENTS_KEY = "size-price-increments"
GAIN_PCT_PREFIX = "product-gain-pct:"
SIZE_PRICE_PREFIX = "size-price:"


def size_price_key(product_id: int, size: str) -> str:
    return f"{SIZE_PRICE_PREFIX}{int(product_id)}:{str(size).strip().upper()}"


def gain_pct_key(product_id: int) -> str:
    return f"{GAIN_PCT_PREFIX}{int(product_id)}"


class SqliteSettingsRepository:
    """Local key->value store. Non-authoritative: values only sit in front of backend fields."""

    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def init_db(self) -> None:
        self.run_migrations()

    def run_migrations(self) -> None:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            migrations = [
                (1, self._migration_v1_settings),
            ]

            for version, migration in migrations:
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _migration_v1_settings(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        )
        """
        )

    # ---------------- raw key/value ----------------
    def get_value(self, key: str) -> Optional[str]:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT value FROM settings WHERE key=?", (key,))
            row = cur.fetchone()
            return None if row is None else str(row[0])
        finally:
            conn.close()

    def set_value(self, key: str, value: str) -> None:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO settings (key, value, updated_at) VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """,
                (key, str(value)),
            )
            conn.commit()
        finally:
            conn.close()

    def values_with_prefix(self, prefix: str) -> dict[str, str]:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "SELECT key, value FROM settings WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            )
            return {str(k): str(v) for k, v in cur.fetchall()}
        finally:
            conn.close()

    # ---------------- typed maps ----------------
    def get_size_increments(self) -> dict[str, float]:
        raw = self.get_value(SIZE_INCREMENTS_KEY)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            return {}
        if not isinstance(data, dict):
            return {}
        out: dict[str, float] = {}
        for size, pct in data.items():
            try:
                out[str(size).strip().upper()] = float(pct)
            except (TypeError, ValueError):
                continue
        return out

    def set_size_increments(self, increments: dict[str, float]) -> None:
        payload = {str(k).strip().upper(): float(v) for k, v in increments.items()}
        self.set_value(SIZE_INCREMENTS_KEY, json.dumps(payload, sort_keys=True))

    def get_gain_percents(self) -> dict[int, str]:
        out: dict[int, str] = {}
        for key, value in self.values_with_prefix(GAIN_PCT_PREFIX).items():
            suffix = key[len(GAIN_PCT_PREFIX):]
            if suffix.isdigit():
                out[int(suffix)] = value
        return out

    def set_gain_percent(self, product_id: int, percent: float) -> None:
        self.set_value(gain_pct_key(product_id), repr(float(percent)))

    def get_size_prices(self) -> dict[tuple[int, str], float]:
        out: dict[tuple[int, str], float] = {}
        for key, value in self.values_with_prefix(SIZE_PRICE_PREFIX).items():
            pid, _, size = key[len(SIZE_PRICE_PREFIX):].partition(":")
            if not pid.isdigit() or not size:
                continue
            try:
                out[(int(pid), size)] = float(value)
            except ValueError:
                continue
        return out

    def set_size_price(self, product_id: int, size: str, price: float) -> None:
        self.set_value(size_price_key(product_id, size), repr(float(price)))
