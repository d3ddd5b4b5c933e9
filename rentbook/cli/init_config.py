"""CLI entry point for creating the base configuration.

Writes the default rate table, security deposit and WiFi charge to the
configured database and sets the first billing month. Running it again on an
initialized database changes nothing.

Usage:
    rentbook-init-config [--billing-month YYYY-MM]
    python -m rentbook.cli.init_config

Exit Codes:
    0 - Success: Base configuration exists
    1 - Failure: Error encountered
"""

import argparse
import sys
from datetime import date, datetime

from dotenv import load_dotenv

from rentbook.services.config import get_settings
from rentbook.services.logging import setup_logging


def parse_billing_month(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m").date()
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid billing month {value!r}, expected YYYY-MM") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rentbook-init-config",
        description="Initialize default rents and billing months",
    )
    parser.add_argument(
        "--billing-month",
        type=parse_billing_month,
        default=None,
        help="First month bills will be generated for (default: current month)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for base configuration CLI.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    args = build_parser().parse_args(argv)

    # Environment must be loaded before settings are read
    load_dotenv()
    settings = get_settings()
    logger = setup_logging(settings.log_file)

    try:
        from rentbook.services.db import create_db_engine, create_session_factory, session_scope
        from rentbook.services.settings_service import SettingsService

        engine = create_db_engine(settings.database_url, echo=settings.database_echo)
        SessionLocal = create_session_factory(engine)

        with session_scope(SessionLocal) as db:
            service = SettingsService(db, max_admins=settings.max_admins)
            global_settings = service.initialize_defaults(args.billing_month or date.today())
            logger.info(
                "Base configuration ready: current=%s, next=%s",
                global_settings.current_billing_month,
                global_settings.next_billing_month,
            )
        return 0

    except KeyboardInterrupt:
        logger.warning("Initialization interrupted by user")
        return 1
    except Exception as e:
        logger.error("Initialization failed: %s", e, exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
