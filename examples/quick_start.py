#!/usr/bin/env python3
# Example usage of jse_db_engine

import asyncio

from rich.console import Console

from jse_db_engine import Database, PoliteModeError

_console = Console()


def progress_printer(evt):
    phase = evt.get("phase", "")
    pct = int(evt.get("pct", 0))
    msg = evt.get("msg", "")
    line = f"[progress] {phase} {pct}%"
    if msg:
        line += f" - {msg}"
    _console.print(line, markup=False, highlight=False)


async def main() -> None:
    # Throwaway, polite database: printed and deleted on close
    async with Database(
        "Demo", ".", persistent=False, polite=True, print_on_exit=True,
        on_progress=progress_printer,
    ) as db:
        users = await db.create_collection("Users")
        await users.set("alice", {"age": 33, "tags": ["admin"]})
        await users.set("bob", {"age": 27})

        print("alice:", await users.get("alice"))

        try:
            await users.set("alice", {"age": 34})
        except PoliteModeError as exc:
            print("Refused:", exc)

        print("Removed:", await users.delete_many(["bob", "carol"]))
        print("Collections:", db.collections)


if __name__ == "__main__":
    asyncio.run(main())
