"""Create the payroll ledger tables.

Run with:
    python scripts/create_schema.py

Uses DATABASE_URL from the environment (or .env). Existing tables are left
untouched.
"""

from __future__ import annotations

import asyncio

from payroll_ledger.database import create_schema, dispose_db, init_db


async def main():
    """Create all tables."""
    engine, _ = init_db()
    print(f"Creating schema on {engine.url.render_as_string(hide_password=True)}...")
    try:
        await create_schema(engine)
    finally:
        await dispose_db()
    print("Done! Schema created.")


if __name__ == "__main__":
    asyncio.run(main())
