import argparse
import json
import logging
import sys
from pathlib import Path

from servicecrm.adapters.clock import SystemClock
from servicecrm.adapters.sqlite.repos import SQLiteRecordStore, SQLiteUserRepo
from servicecrm.adapters.sqlite.schema import ensure_schema
from servicecrm.api.auth_utils import get_password_hash
from servicecrm.components.finance import SeriesInput, SummaryInput, run
from servicecrm.components.finance.models import SeriesOutput
from servicecrm.domain.entities import Role, User
from servicecrm.domain.errors import ConfigurationError, DataUnavailable
from servicecrm.rules.loader import load_rules
from servicecrm.rules.models import Rules

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")

DB_PATH = "data/crm.db"
RULES_PATH = "rules.yaml"


def get_rules(path: str) -> Rules:
    try:
        return load_rules(Path(path))
    except ConfigurationError as e:
        logger.error("%s", e)
        sys.exit(1)


def handle_init_db(args: argparse.Namespace) -> None:
    Path(args.db).parent.mkdir(parents=True, exist_ok=True)
    ensure_schema(args.db)
    print(f"Schema ready at {args.db}")


def handle_create_user(args: argparse.Namespace) -> None:
    repo = SQLiteUserRepo(args.db)
    if repo.get_by_email(args.email):
        logger.error("User %s already exists.", args.email)
        sys.exit(1)

    user = User(
        email=args.email,
        name=args.name,
        password_hash=get_password_hash(args.password),
        role=Role(args.role),
    )
    repo.save(user)
    print(f"Created {user.role.value} user {user.email} ({user.id})")


def handle_report(args: argparse.Namespace) -> None:
    rules = get_rules(args.rules)
    store = SQLiteRecordStore(args.db, timeout=rules.ops.db_timeout_seconds)
    clock = SystemClock(rules.finance.timezone)

    inp = SeriesInput(mode=args.mode) if args.kind == "series" else SummaryInput(range=args.range)
    try:
        result = run(inp, store=store, time_port=clock)
    except DataUnavailable as e:
        logger.error("Report failed: %s", e)
        sys.exit(1)

    if isinstance(result, SeriesOutput):
        print(json.dumps({"labels": list(result.labels), "data": list(result.data)}, indent=2))
    else:
        print(
            json.dumps(
                {
                    "totalQuotation": str(result.total_quotation),
                    "totalExpense": str(result.total_expense),
                    "totalExpectedExpense": str(result.total_expected_expense),
                    "profitLoss": str(result.profit_loss),
                    "range": result.range,
                    "start": result.start.isoformat(),
                    "end": result.end.isoformat(),
                },
                indent=2,
            )
        )


def main() -> None:
    parser = argparse.ArgumentParser(description="Service CRM CLI")
    parser.add_argument("--db", default=DB_PATH, help="SQLite database path")
    parser.add_argument("--rules", default=RULES_PATH, help="Rules file path")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables")

    user_parser = subparsers.add_parser("create-user", help="Create a login user")
    user_parser.add_argument("email")
    user_parser.add_argument("--password", required=True)
    user_parser.add_argument("--role", required=True, choices=[r.value for r in Role])
    user_parser.add_argument("--name", default="")

    report_parser = subparsers.add_parser("report", help="Print a profit/loss report")
    report_parser.add_argument("kind", choices=["summary", "series"])
    report_parser.add_argument("--range", default="today", help="today, week or month")
    report_parser.add_argument("--mode", default="year", help="year or month")

    args = parser.parse_args()

    if args.command == "init-db":
        handle_init_db(args)
    elif args.command == "create-user":
        handle_create_user(args)
    elif args.command == "report":
        handle_report(args)


if __name__ == "__main__":
    main()
