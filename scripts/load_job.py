"""
Run one ingestion job.

Reads a single JSON job description from stdin, replaces the group's data,
and exits 0 on success or 255 on failure.

Usage:
    echo '{"groupId": "g1", "carelink": {...}}' | python scripts/load_job.py [TASK_STORAGE_DIR]

If TASK_STORAGE_DIR is given, a failed job writes error.json there.
"""

import argparse
import asyncio
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.logging import setup_logging
from ingestion.runner import run_job


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Ingest one group's device data from stdin.")
    p.add_argument(
        "storage_dir",
        nargs="?",
        default=None,
        help="Existing directory where error.json is written on failure."
    )
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging()
    return asyncio.run(run_job(sys.stdin.buffer, args.storage_dir))


if __name__ == "__main__":
    sys.exit(main())
