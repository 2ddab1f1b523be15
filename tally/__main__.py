"""
Entry point.

Run: python -m tally
"""

import asyncio

from tally.cli import run_cli
from tally.config import configure_logging, load_settings


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level_number)
    asyncio.run(run_cli(settings))


if __name__ == "__main__":
    main()
