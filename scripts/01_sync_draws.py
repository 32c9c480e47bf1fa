"""
scripts/01_sync_draws.py
Bring the draw archive up to date with the Caixa results API.
Only concourses newer than the latest stored one are fetched.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.crawlers.lotofacil_crawler import LotofacilCrawler
from src.pipeline.draw_archive import DrawArchive
from src.pipeline.retry_policy import RetryPolicy
from src.pipeline.sync_controller import SyncController
from src.utils.exceptions import LotteryError
from src.utils.logger import get_logger
from src.utils.supabase_client import build_store

log = get_logger("sync_draws")


def main() -> int:
    parser = argparse.ArgumentParser(description="Lotofácil incremental draw sync")
    parser.add_argument("--window", type=int, default=50, help="Draws to fetch when the archive is empty")
    parser.add_argument("--attempts", type=int, default=3, help="Max attempts per remote call")
    args = parser.parse_args()

    archive = DrawArchive(build_store())
    controller = SyncController(
        archive,
        LotofacilCrawler(),
        retry=RetryPolicy(max_attempts=args.attempts),
        history_window=args.window,
    )

    try:
        archive.load()
        report = controller.sync()
    except LotteryError as exc:
        log.error(f"Sync failed, archive left at #{archive.latest_sequence_number()}: {exc}")
        print(f"SYNC FAILED: {exc}")
        return 1

    print("\n" + "=" * 60)
    print("SYNC SUMMARY")
    print("=" * 60)
    if report.fetched_count == 0:
        print(f"  Already up to date at #{report.latest_sequence_number}")
    else:
        print(f"  fetched={report.fetched_count:4d} | rejected={report.rejected_count:2d} "
              f"| #{report.since} → #{report.latest_sequence_number}")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
