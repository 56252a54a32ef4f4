"""Main entry point: open a progression session and print the user's progress"""
import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from jobquest.config import DEFAULT_USER_ID, LOG_LEVEL, validate_config
from jobquest.services.container import build_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
)

logger = logging.getLogger(__name__)


async def run(user_id: str, data_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Initialize the user's progression (counting today's login) and return a snapshot

    Args:
        user_id: User identifier
        data_path: Storage root (defaults to DATA_PATH)

    Returns:
        Progress snapshot (see ProgressionEngine.get_progress())
    """
    logger.info("Validating configuration...")
    validate_config()

    container = build_container(data_path)
    try:
        engine = await container.open_session(user_id)
        progress = engine.get_progress()

        stats = progress["stats"]
        logger.info(
            f"User {user_id}: level {stats['level']} ({stats['title']}), "
            f"{stats['total_xp']} XP, streak {stats['current_streak']} days, "
            f"{progress['achievements']['unlocked']}/{progress['achievements']['total']} achievements"
        )
        return progress
    finally:
        await container.close_session(user_id)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Job application progression tracker")
    parser.add_argument("user_id", nargs="?", default=DEFAULT_USER_ID, help="User to load")
    parser.add_argument("--data-path", type=Path, default=None, help="Storage directory")
    args = parser.parse_args(argv)

    progress = asyncio.run(run(args.user_id, args.data_path))
    print(json.dumps(progress, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
