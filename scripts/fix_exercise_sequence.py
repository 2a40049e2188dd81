"""Re-sync the exercises id sequence after catalog rows were inserted with explicit ids.

The resolver assigns ``max(id) + 1`` itself, which leaves PostgreSQL's sequence
behind. Run this after bulk imports or when a plain INSERT hits a duplicate key.
"""
import asyncio

from sqlalchemy import text

from helf.db.database import engine


async def fix_sequence():
    if engine.dialect.name != "postgresql":
        print(f"Nothing to do on {engine.dialect.name}")
        return

    async with engine.begin() as conn:
        print("Checking current max id...")
        result = await conn.execute(text("SELECT COALESCE(MAX(id), 0) FROM exercises"))
        max_id = result.scalar_one()
        print(f"Current max id: {max_id}")

        print("\nCreating sequence...")
        await conn.execute(text("CREATE SEQUENCE IF NOT EXISTS exercises_id_seq INCREMENT BY 1 CACHE 1"))
        await conn.execute(text("ALTER TABLE exercises ALTER COLUMN id SET DEFAULT nextval('exercises_id_seq')"))
        await conn.execute(text("ALTER SEQUENCE exercises_id_seq OWNED BY exercises.id"))

        print("\nSetting sequence position...")
        # is_called=false when empty so the next value is 1
        await conn.execute(
            text("SELECT setval('exercises_id_seq', :value, :is_called)"),
            {"value": max(max_id, 1), "is_called": max_id > 0},
        )

        result = await conn.execute(text("SELECT pg_get_serial_sequence('exercises', 'id')"))
        print(f"Sequence: {result.scalar_one()}")
        print("\nSequence setup complete!")


if __name__ == "__main__":
    asyncio.run(fix_sequence())
