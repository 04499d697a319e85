#!/usr/bin/env python3
"""
Print the static progression of one exercise across a mesocycle.

Usage:
    python scripts/preview_cycle.py --weight 100 --reps 8 --sets 3
    python scripts/preview_cycle.py --weight 135 --reps 10 --sets 4 --increment 2.5 --weeks 4
    python scripts/preview_cycle.py --weight 100 --reps 8 --sets 3 --missed 2

No database access.
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import settings
from core.exceptions import DomainError
from core.logging import setup_logging
from services.progression import (
    CompletionStatus,
    ExerciseProgression,
    ProgressionCalculator,
    describe_reason,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Preview week-by-week targets for one exercise.")
    parser.add_argument("--weight", type=float, required=True, help="Base weight")
    parser.add_argument("--reps", type=int, required=True, help="Base reps")
    parser.add_argument("--sets", type=int, required=True, help="Base sets")
    parser.add_argument("--increment", type=float, default=settings.DEFAULT_WEIGHT_INCREMENT,
                        help=f"Weight increment (default: {settings.DEFAULT_WEIGHT_INCREMENT})")
    parser.add_argument("--min-reps", type=int, default=settings.DEFAULT_MIN_REPS)
    parser.add_argument("--max-reps", type=int, default=settings.DEFAULT_MAX_REPS)
    parser.add_argument("--weeks", type=int, default=settings.MESOCYCLE_WORKING_WEEKS,
                        help="Working weeks before the deload week")
    parser.add_argument("--missed", type=int, action="append", default=[],
                        help="0-based week that was not completed (repeatable)")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level="DEBUG" if args.verbose else None)

    try:
        exercise = ExerciseProgression(
            exercise_id=0,
            plan_exercise_id=None,
            base_weight=args.weight,
            base_reps=args.reps,
            base_sets=args.sets,
            weight_increment=args.increment,
            min_reps=args.min_reps,
            max_reps=args.max_reps,
        )
        calculator = ProgressionCalculator(deload_week=args.weeks)
    except DomainError as e:
        raise SystemExit(f"error: {e.detail}")

    history = [
        CompletionStatus(
            exercise_id=0,
            week_number=week,
            all_sets_completed=False,
            completed_sets=0,
            prescribed_sets=args.sets,
        )
        for week in args.missed
    ]

    print(f"{'Week':>4}  {'Weight':>7}  {'Reps':>4}  {'Sets':>4}  Reason")
    for targets in calculator.calculate_progression_history(exercise, history):
        label = f"{targets.week_number}{'D' if targets.is_deload else ''}"
        print(
            f"{label:>4}  {targets.target_weight:>7.1f}  {targets.target_reps:>4}  "
            f"{targets.target_sets:>4}  {describe_reason(targets.reason)}"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
