"""protoclass Quickstart Example.

Demonstrates basic usage:
- Class synthesis from declarative configs (with inheritance)
- Typed accessors and array properties
- insert/load/update/delete against a query(sql, params) service
- CREATE TABLE generation

Usage:
    export PROTOCLASS_DB=demo.db
    python examples/quickstart.py
"""

from __future__ import annotations

import asyncio
import os
import sqlite3
from typing import Any

from protoclass import build_create_table_sql, create_class, instance_of


# =============================================================================
# Query Service
# =============================================================================

class SqliteService:
    """Minimal query service on top of sqlite3."""

    def __init__(self, path: str):
        self.connection = sqlite3.connect(path)

    async def query(self, sql: str, params: Any = None) -> Any:
        cursor = self.connection.execute(sql, list(params or []))
        if cursor.description is not None:
            columns = [column[0] for column in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]
        self.connection.commit()
        return {"insert_id": cursor.lastrowid}

    def close(self) -> None:
        self.connection.close()


# =============================================================================
# Class Definitions
# =============================================================================

PERSON = {
    "className": "Person",
    "properties": [
        {"name": "name", "type": "varchar", "length": 40},
        {"name": "email", "type": "varchar", "length": 80, "allowNull": True},
    ],
}

WORKER = {
    "className": "Worker",
    "extends": PERSON,
    "tableName": "workers",
    "alternateLookup": "email",
    "properties": [
        {"name": "id", "type": "int", "unsigned": True},
        {"name": "salary", "type": "decimal", "length": 10, "decimals": 2},
        {"name": "skills", "type": "array", "arrayOf": {"type": "varchar", "length": 20}},
    ],
}

Worker = create_class(WORKER)


async def setup_tables(db: SqliteService) -> None:
    """sqlite does not speak the generated MySQL dialect, so build a plain table."""
    await db.query("""
        CREATE TABLE IF NOT EXISTS workers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT,
            salary REAL NOT NULL,
            skills TEXT
        )
    """)


# =============================================================================
# Main Demo
# =============================================================================

async def main() -> None:
    db = SqliteService(os.getenv("PROTOCLASS_DB", ":memory:"))

    try:
        await setup_tables(db)

        print("=" * 60)
        print("protoclass Quickstart")
        print("=" * 60)

        # ---------------------------------------------------------------------
        # CREATE
        # ---------------------------------------------------------------------
        print("\n1. Creating records...")

        ada = Worker({"name": "Ada Lovelace", "email": "ada@example.com", "salary": 1200.50})
        ada.skills(["math", "poetry"])
        ada.skills().append("engines")
        await ada.insert(db)
        print(f"   Inserted {ada!r}")
        print(f"   Worker is a Person: {instance_of(ada, 'Person')}")

        # ---------------------------------------------------------------------
        # READ
        # ---------------------------------------------------------------------
        print("\n2. Loading records...")

        by_id = await Worker().load(ada.id(), db)
        print(f"   By id: {by_id.name()} knows {list(by_id.skills())}")

        by_email = await Worker().load("ada@example.com", db)
        print(f"   By email: {by_email.name()} (id={by_email.id()})")

        missing = await Worker().load(9999, db)
        print(f"   Missing worker: {missing}")

        # ---------------------------------------------------------------------
        # UPDATE
        # ---------------------------------------------------------------------
        print("\n3. Updating records...")

        by_id.name("Augusta Ada King").salary(1500)
        await by_id.update(db)
        reloaded = await Worker().load(ada.id(), db)
        print(f"   Updated name to: {reloaded.name()} (salary={reloaded.salary()})")

        # ---------------------------------------------------------------------
        # DELETE
        # ---------------------------------------------------------------------
        print("\n4. Deleting records...")

        await reloaded.delete(db)
        print(f"   Gone after delete: {await Worker().load(ada.id(), db) is None}")

        # ---------------------------------------------------------------------
        # DDL
        # ---------------------------------------------------------------------
        print("\n5. Generated DDL...")
        print(f"   {build_create_table_sql(WORKER)}")

        print("\n" + "=" * 60)
        print("Done!")
        print("=" * 60)

    finally:
        db.close()


if __name__ == "__main__":
    asyncio.run(main())
