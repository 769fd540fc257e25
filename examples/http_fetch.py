import asyncio
import sys
from typing import Any, Dict

import aiohttp

from task_runner import AsyncScheduler, TaskError, setup_logging

setup_logging("INFO")


def fetch(session: aiohttp.ClientSession, url: str):
    async def task() -> Dict[str, Any]:
        async with session.get(url) as response:
            return {"url": url, "status": response.status, "bytes": len(await response.read())}
    return task


async def main(urls):
    async with aiohttp.ClientSession() as session:
        async with AsyncScheduler(limit=3) as scheduler:
            handles = [scheduler.submit(fetch(session, url)) for url in urls]
            for handle in handles:
                try:
                    print(await handle)
                except TaskError as e:
                    print(f"Error: {e}")

if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:] or ["https://example.com", "https://www.python.org", "https://pypi.org"]))
