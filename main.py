# ============================
# RAPIDAPI ROTATOR ENTRY POINT
# ============================

# Load environment variables FIRST (before any other imports)
from dotenv import load_dotenv
load_dotenv()

import sys
import json
import asyncio
import argparse

from utils.logger import get_logger
from src.rapidapi_pool import build_pool, BatchMode

logger = get_logger("MAIN")


# ============================
# COMMANDS
# ============================

# Usage counters live in the running process only: a one-shot CLI has
# nothing to report or reset. Long-running hosts call pool.stats() and
# pool.reset_monthly() themselves.

async def run_scrape(keyword: str, count=None, mode=None) -> int:
    async with build_pool() as pool:
        outcomes = await pool.scrape(keyword, count, mode)

        # One JSON line per call, payload included, for the ingestion side
        for o in outcomes:
            print(json.dumps(o.to_dict(include_data=True)))

        success_count = sum(1 for o in outcomes if o.success)
        logger.info(f"Batch for '{keyword}': {success_count}/{len(outcomes)} successful")

    # Nothing usable at all → non-zero for the caller's cron
    return 0 if success_count > 0 else 1


def run_check() -> int:
    """Configured keys and the mode the current time window recommends"""
    pool = build_pool()
    status = pool.get_status()

    print(json.dumps({
        "keys": [k.id for k in pool.registry.list_keys()],
        "active_keys": status["active_keys"],
        "mode": status["mode"],
    }, indent=2))

    return 0 if status["active_keys"] > 0 else 1


# ============================
# ENTRY POINT
# ============================

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="RapidAPI key rotator")
    sub = parser.add_subparsers(dest="command", required=True)

    scrape = sub.add_parser("scrape", help="Run one search batch")
    scrape.add_argument("keyword", help="Search term")
    scrape.add_argument("--count", type=int, default=None, help="Videos wanted (default: 90 peak / 60 conserve)")
    scrape.add_argument("--mode", choices=[m.value for m in BatchMode], default=None,
                        help="Force parallel/sequential (default: from time of day)")

    sub.add_parser("check", help="List configured keys and the current mode")

    args = parser.parse_args(argv)

    if args.command == "scrape":
        mode = BatchMode(args.mode) if args.mode else None
        return asyncio.run(run_scrape(args.keyword, args.count, mode))

    return run_check()


if __name__ == "__main__":
    sys.exit(main())
