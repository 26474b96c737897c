from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import mysql.connector


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str


def _as_target(db_config: dict) -> DBTarget:
    return DBTarget(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "geo_attendance")),
    )


def _connect(target: DBTarget, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql usable regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal splitter: ';' ends a statement unless it sits inside quotes; '--' lines are dropped.
    buf: list[str] = []
    quote = None
    escape = False

    for line in sql.splitlines(keepends=True):
        if quote is None and line.lstrip().startswith("--"):
            continue
        for ch in line:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif quote is not None:
                if ch == quote:
                    quote = None
            elif ch in ("'", '"'):
                quote = ch
            elif ch == ";":
                stmt = "".join(buf).strip()
                buf.clear()
                if stmt:
                    yield stmt
                continue
            buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    target = _as_target(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_demo_data(db_config: dict) -> None:
    """Idempotently seed one branch, one staff member and an approved device."""
    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor(dictionary=True)

        cur.execute("SELECT branch_id FROM branches WHERE name=%s", ("Head Office",))
        row = cur.fetchone()
        if row:
            branch_id = int(row["branch_id"])
        else:
            cur.execute(
                """
                INSERT INTO branches(name, geofence_lat, geofence_lon, geofence_radius)
                VALUES(%s, %s, %s, %s)
                """,
                ("Head Office", 28.6139, 77.2090, 250),
            )
            branch_id = int(cur.lastrowid)

        cur.execute("SELECT person_id FROM staff WHERE email=%s", ("demo.staff@example.com",))
        row = cur.fetchone()
        if row:
            person_id = int(row["person_id"])
        else:
            cur.execute(
                "INSERT INTO staff(full_name, email, branch_id) VALUES(%s, %s, %s)",
                ("Demo Staff", "demo.staff@example.com", branch_id),
            )
            person_id = int(cur.lastrowid)

        cur.execute(
            """
            INSERT INTO devices(device_id, owner_id, device_type, name, is_approved, approved_at)
            VALUES(%s, %s, 'mobile', 'Demo phone', 1, UTC_TIMESTAMP())
            ON DUPLICATE KEY UPDATE is_approved=1, is_blocked=0
            """,
            ("demo-device", person_id),
        )

        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(_as_target(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
