from __future__ import annotations

import os
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any

from app.billing.models import OPTIONAL_FIELDS, BillingDetails
from app.core.config import settings

_conn: sqlite3.Connection | None = None
_conn_lock = threading.RLock()
_db_path: str | None = None

_COLUMNS = (
    "full_name",
    "country",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "phone_number",
    "tax_id",
    "company_name",
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _open_connection(db_path: str) -> sqlite3.Connection:
    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    conn = sqlite3.connect(
        db_path,
        check_same_thread=False,
        timeout=5,
        isolation_level=None,
    )
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS user_billing_details (
            user_id TEXT PRIMARY KEY,
            full_name TEXT NOT NULL,
            country TEXT NOT NULL,
            address_line1 TEXT NOT NULL,
            address_line2 TEXT NOT NULL DEFAULT '',
            city TEXT NOT NULL,
            state TEXT NOT NULL,
            postal_code TEXT NOT NULL,
            phone_number TEXT NOT NULL DEFAULT '',
            tax_id TEXT NOT NULL DEFAULT '',
            company_name TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        """
    )
    return conn


def _get_connection() -> sqlite3.Connection:
    global _conn
    with _conn_lock:
        if _conn is None:
            _conn = _open_connection(_db_path or settings.billing_db_path)
        return _conn


def init_billing_store(db_path: str | None = None) -> None:
    """(Re)open the store, optionally moving it to a different path than configured."""
    global _conn, _db_path
    with _conn_lock:
        if _conn is not None:
            _conn.close()
            _conn = None
        if db_path is not None:
            _db_path = db_path
        _get_connection()


def close_billing_store() -> None:
    global _conn
    with _conn_lock:
        if _conn is not None:
            _conn.close()
            _conn = None


def sanitize_billing_data(details: BillingDetails) -> dict[str, str]:
    data = details.model_dump()
    for field in OPTIONAL_FIELDS:
        if not data.get(field):
            data[field] = ""
    data["country"] = (data.get("country") or "").strip().upper()
    return {column: data.get(column) or "" for column in _COLUMNS}


def _row_to_record(row: sqlite3.Row | tuple[Any, ...]) -> dict[str, Any]:
    details = BillingDetails(**dict(zip(_COLUMNS, row[1:11])))
    return {
        "user_id": row[0],
        "details": details,
        "created_at": datetime.fromisoformat(row[11]),
        "updated_at": datetime.fromisoformat(row[12]),
    }


def get_billing_details(user_id: str) -> dict[str, Any] | None:
    with _conn_lock:
        conn = _get_connection()
        cur = conn.execute(
            f"""
            SELECT user_id, {", ".join(_COLUMNS)}, created_at, updated_at
            FROM user_billing_details
            WHERE user_id = ?
            """,
            (user_id,),
        )
        row = cur.fetchone()

    if not row:
        return None
    return _row_to_record(row)


def save_billing_details(user_id: str, details: BillingDetails) -> dict[str, Any]:
    data = sanitize_billing_data(details)
    now_iso = _utc_now().isoformat()
    assignments = ", ".join(f"{column} = excluded.{column}" for column in _COLUMNS)

    with _conn_lock:
        conn = _get_connection()
        conn.execute(
            f"""
            INSERT INTO user_billing_details (
                user_id, {", ".join(_COLUMNS)}, created_at, updated_at
            ) VALUES ({", ".join("?" for _ in range(len(_COLUMNS) + 3))})
            ON CONFLICT(user_id) DO UPDATE SET {assignments}, updated_at = excluded.updated_at
            """,
            (user_id, *(data[column] for column in _COLUMNS), now_iso, now_iso),
        )
        conn.commit()
        record = get_billing_details(user_id)

    if record is None:
        raise RuntimeError(f"Billing details for user '{user_id}' were not persisted.")
    return record


def delete_billing_details(user_id: str) -> bool:
    with _conn_lock:
        conn = _get_connection()
        cur = conn.execute("DELETE FROM user_billing_details WHERE user_id = ?", (user_id,))
        conn.commit()
    return cur.rowcount > 0
