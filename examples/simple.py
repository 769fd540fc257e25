import asyncio

from task_runner import AsyncScheduler, TaskError, setup_logging

setup_logging("DEBUG")
scheduler = AsyncScheduler(limit=2)


def make_task(label: str, seconds: float, fail: bool = False):
    async def task():
        print(f"Task {label} started (status: {scheduler.status().model_dump()})")
        await asyncio.sleep(seconds)
        if fail:
            raise RuntimeError(f"Task {label} failed!")
        return label
    return task


async def main():
    handles = [
        scheduler.submit(make_task("A", 0.3)),
        scheduler.submit(make_task("B", 0.1)),
        scheduler.submit(make_task("C", 0.2, fail=True)),
        scheduler.submit(make_task("D", 0.1)),
    ]
    print(f"Submitted 4 tasks: {scheduler.status().model_dump()}")

    for handle in handles:
        try:
            print(f"Result: {await handle}")
        except TaskError as e:
            print(f"Error: {e}")

    await scheduler.wait_for_idle()
    for entry in scheduler.recent_entries():
        print(f"{entry.id}: {entry.status.value} (waited {entry.wait_time:.2f}s)")
    await scheduler.shutdown()

if __name__ == "__main__":
    asyncio.run(main())
