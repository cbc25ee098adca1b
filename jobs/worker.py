"""
Reward worker entry point.

Runs the dramatiq worker for the reward-emission queue with a fixed pool
of one process and reward_worker_threads threads.
"""

import sys

from dramatiq.cli import main as dramatiq_main
from dramatiq.cli import make_argument_parser
from loguru import logger

from referrals.config.business_constants import REWARD_QUEUE_NAME
from referrals.config.settings import settings
from referrals.utils.logging_config import setup_logging


def worker_arguments() -> list[str]:
    """Command line handed to the dramatiq CLI."""
    return [
        "jobs.broker",
        "jobs.tasks.reward_emission",
        "--processes",
        "1",
        "--threads",
        str(settings.reward_worker_threads),
        "--queues",
        REWARD_QUEUE_NAME,
    ]


def main() -> int:
    """Start the reward worker."""
    setup_logging("reward-worker")

    if not settings.queue_configured:
        logger.error("REDIS_HOST is required to run the reward worker. Exiting.")
        return 1

    args = make_argument_parser().parse_args(worker_arguments())
    return dramatiq_main(args)


if __name__ == "__main__":
    sys.exit(main())
