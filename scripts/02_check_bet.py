"""
scripts/02_check_bet.py
Check a bet (up to 19 numbers) against every archived draw.

    python scripts/02_check_bet.py "01 02 03 04 05 06 07 08 09 10 11 14 15 24 25"
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console
from rich.table import Table

from src.models.draw import Tier
from src.pipeline.checker_session import CheckerSession
from src.pipeline.scoring_engine import summarize
from src.utils.exceptions import LotteryError
from src.utils.logger import get_logger

log = get_logger("check_bet")

_TIER_STYLE = {
    Tier.JACKPOT: "bold white on green",
    Tier.SECOND_TIER: "bold green",
    Tier.THIRD_TIER: "blue",
    Tier.NO_TIER: "dim",
}


def main() -> int:
    parser = argparse.ArgumentParser(description="Lotofácil bet checker")
    parser.add_argument("numbers", help="Numbers to check, any separator")
    parser.add_argument("--sync", action="store_true", help="Sync the archive before checking")
    parser.add_argument("--limit", type=int, default=30, help="Rows to print")
    parser.add_argument("--prized-only", action="store_true", help="Only print draws with 11+ hits")
    args = parser.parse_args()

    session = CheckerSession.from_config()
    console = Console()
    try:
        session.start()
        if args.sync:
            session.sync()
        if not session.selection.paste(args.numbers):
            console.print("[red]No numbers between 1 and 25 found in input[/red]")
            return 2
        results = session.scoreboard.results
    except LotteryError as exc:
        log.error(f"Check failed: {exc}")
        return 1
    finally:
        session.close()

    chosen = set(session.selection.numbers)
    table = Table(title=f"Aposta: {' '.join(f'{n:02d}' for n in sorted(chosen))}")
    table.add_column("Concurso", justify="right")
    table.add_column("Data")
    table.add_column("Dezenas")
    table.add_column("Acertos", justify="right")
    table.add_column("Faixa")

    shown = [r for r in results if r.tier is not Tier.NO_TIER] if args.prized_only else results
    for r in shown[: args.limit]:
        balls = " ".join(
            f"[bold]{n:02d}[/bold]" if n in chosen else f"{n:02d}" for n in r.draw.sorted_numbers()
        )
        table.add_row(
            f"#{r.draw.sequence_number}",
            r.draw.occurred_on.strftime("%d/%m/%Y"),
            balls,
            str(r.hit_count),
            r.tier.value,
            style=_TIER_STYLE[r.tier],
        )
    console.print(table)

    summary = summarize(results)
    hits = " | ".join(f"{h} pts: {c}" for h, c in summary["hits"].items())
    console.print(f"{summary['draws']} concursos | premiados: {summary['prized']} | {hits}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
