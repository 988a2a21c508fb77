"""
SmartTask — Entry Point.

`python main.py` loads both record files and reports what was found.
Front ends import `build_repositories` and share the returned container.
"""

import logging

from smarttask.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from smarttask.core.bootstrap import build_repositories

logger = logging.getLogger("smarttask")


def main() -> None:
    repos = build_repositories(settings)
    stats = repos.accounts.stats()
    logger.info(
        "SmartTask ready: %d accounts (%d active, %d inactive), %d tasks",
        stats.total, stats.active, stats.inactive, len(repos.tasks.all_tasks()),
    )


if __name__ == "__main__":
    main()
