"""
Work Item Plan (dry run)

Loads a connector configuration and resume state, schedules the work items
and prints the resulting plan without fetching anything.

Useful to check what a resumed run will do before starting it.

Usage:
    # Plan from the files in DATA_PATH
    python scripts/plan_work_items.py

    # Explicit files, export the plan
    python scripts/plan_work_items.py --config config.json --state state.json --output plan.csv
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from connector_sdk.cli import create_connector_parser, options_from_args
from connector_sdk.config import load_config_file, load_state_file
from connector_sdk.errors import ConnectorError
from connector_sdk.models import WorkItem, plan_rows
from connector_sdk.scheduler import get_work_items

logger = logging.getLogger(__name__)

PLAN_COLUMNS = ['requestId', 'date', 'accountId']


def build_plan_frame(items: List[WorkItem]) -> pd.DataFrame:
    """One row per work item, in execution order."""
    return pd.DataFrame(plan_rows(items), columns=PLAN_COLUMNS)


def print_plan_summary(plan: pd.DataFrame) -> None:
    """Print totals per request and the first rows of the plan."""
    print(f"\n{'='*60}")
    print("  WORK ITEM PLAN")
    print(f"{'='*60}\n")

    if plan.empty:
        print("  Nothing left to do.")
        return

    print(f"  Total work items: {len(plan):,}")
    print("")
    per_request = plan.groupby('requestId', sort=False).size()
    for request_id, count in per_request.items():
        print(f"  {request_id}: {count:,} items")
    print("")
    print(plan.head(20).to_string(index=False))


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = create_connector_parser("Print the work item plan of a connector run")
    parser.add_argument(
        "--output",
        type=Path,
        metavar="PATH",
        help="Write the full plan as CSV",
    )
    args = parser.parse_args(argv)
    options = options_from_args(args)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = load_config_file(options.config_path, options)
        state = load_state_file(options.state_path, options)
        items = get_work_items(config, state)
    except ConnectorError as e:
        logger.error(f"Cannot build plan: {e}")
        return 1

    plan = build_plan_frame(items)
    print_plan_summary(plan)

    if args.output:
        plan.to_csv(args.output, index=False)
        logger.info(f"Plan written to {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
