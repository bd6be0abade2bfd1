# priorart/workers/worker_main.py

from rq import Queue, SimpleWorker

from priorart.core.config import settings
from priorart.core.logging_config import setup_logging
from priorart.workers.queue import get_redis_connection


def main():
    setup_logging()
    redis_conn = get_redis_connection()

    queues = [Queue(settings.RECOMPUTE_QUEUE_NAME, connection=redis_conn)]

    worker = SimpleWorker(queues, connection=redis_conn)
    worker.work()


if __name__ == "__main__":
    main()
