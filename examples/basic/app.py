import asyncio
import logging

from trenchdb import TrenchDB


async def run():
    async with TrenchDB(
        dsn="mysql://root@localhost:3306/trenches", capture_preimages=True
    ) as db:
        await db.insert("players", {"name": "rubidium", "score": 10})
        await db.update("players", {"score": 25}, {"name": "rubidium"})
        print(
            await db.scalar(
                "SELECT score FROM players WHERE name = ?", ["rubidium"]
            )
        )

        for record in db.get_query_history():
            print(record.statement_text, record.bound_values)

        await db.rollback()
        print(
            await db.scalar(
                "SELECT score FROM players WHERE name = ?", ["rubidium"]
            )
        )


logging.basicConfig(level=logging.INFO)
asyncio.run(run())
