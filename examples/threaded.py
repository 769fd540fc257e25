import time

from task_runner import SchedulerConfig, ThreadScheduler, setup_logging

config = SchedulerConfig.from_env()
setup_logging(config.log_level)


def work(i: int) -> int:
    time.sleep(0.1)
    return i * i


def main():
    with ThreadScheduler.from_config(config) as scheduler:
        futures = [scheduler.submit(lambda i=i: work(i)) for i in range(10)]
        print(f"Submitted 10 tasks: {scheduler.status().model_dump()}")
        scheduler.set_limit(scheduler.limit * 2)
        print(f"Raised limit: {scheduler.status().model_dump()}")
        print(f"Results: {[future.result() for future in futures]}")

if __name__ == "__main__":
    main()
