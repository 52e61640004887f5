"""
Main entry point for the extraordinary duty roster.
Provides both CLI and web server interfaces.
"""

import argparse
import logging
import sys
from datetime import date

from conflict_scanner import ConflictReport, build_conflict_report
from data_loader import (
    SAMPLE_MONTH, generate_sample_data, load_group_roster, load_operation_set,
    load_ordinary_calendar, load_personnel, validate_reference_data
)
from entities import MonthKey, OperationSet
from errors import DataUnavailable
from schedule_summary import busiest_group, operation_statistics, summarize_by_group


def resolve_month(year, month) -> MonthKey:
    """Month from CLI flags; the current month when none is given"""
    today = date.today()
    return MonthKey(year or today.year, month or today.month)


def run_conflict_check(month: MonthKey, use_sample_data: bool = False, db_path: str = "escala.db") -> int:
    """
    Check ordinary duty against the extraordinary rosters of a month.

    Returns:
        0 when the report was generated (with or without conflicts),
        2 when it could not be generated
    """
    print("=" * 60)
    print("CONFLICT CHECK - Ordinary duty vs extraordinary rosters")
    print("=" * 60)
    print()

    if use_sample_data:
        print("Loading sample data...")
        directory, group_roster, duty_calendar = generate_sample_data()
        if duty_calendar.month != month:
            print(f"  - Sample calendar covers {duty_calendar.month}, not {month}")
            duty_calendar = None
        # Rosters are never bundled with the sample data
        operation_set = OperationSet(month)
        validate_reference_data(group_roster, duty_calendar)
        report = build_conflict_report(month, duty_calendar, group_roster, operation_set.all_rosters())
    else:
        print(f"Loading data from database: {db_path}")
        try:
            directory = load_personnel(db_path)
            group_roster = load_group_roster(db_path)
            duty_calendar = load_ordinary_calendar(db_path, month)
            operation_set = load_operation_set(db_path, month)
        except DataUnavailable as e:
            report = ConflictReport(month, error=str(e))
        else:
            print(f"  - Loaded {len(directory)} persons")
            print(f"  - Loaded {len(duty_calendar.days())} ordinary-duty days")
            validate_reference_data(group_roster, duty_calendar)
            report = build_conflict_report(month, duty_calendar, group_roster, operation_set.all_rosters())

    report.print_report()
    print(report.summary())
    return 0 if report.is_available else 2


def run_summary(month: MonthKey, db_path: str = "escala.db") -> int:
    """Print occupancy and per-group totals of a month"""
    try:
        directory = load_personnel(db_path)
        operation_set = load_operation_set(db_path, month)
    except DataUnavailable as e:
        print(f"✗ {e}")
        return 2

    stats = operation_statistics(operation_set)

    print("=" * 60)
    print(f"ROSTER SUMMARY - {month}")
    print("=" * 60)
    for code, op_stats in stats["operations"].items():
        print(f"\n{op_stats['name']}:")
        print(f"  Slots filled: {op_stats['filled']}/{op_stats['capacity']} ({op_stats['occupancyPercent']}%)")
        group_summaries = summarize_by_group(operation_set.roster(code), directory)
        for group, summary in group_summaries.items():
            print(f"  {group}: {summary.total} assignments on {len(summary.days)} days")
        busiest = busiest_group(group_summaries)
        if busiest:
            print(f"  Most assignments: {busiest}")

    print("\n" + "=" * 60)
    print("PERSONS AT OR NEAR THE LIMIT")
    print("=" * 60)
    for name in stats["atLimit"]:
        print(f"  ⛔ {name}: {stats['persons'][name]['total']}")
    for name in stats["nearLimit"]:
        print(f"  ⚠ {name}: {stats['persons'][name]['total']}")
    if not stats["atLimit"] and not stats["nearLimit"]:
        print("  None")
    print("=" * 60)
    return 0


def start_web_server(host: str = "0.0.0.0", port: int = 5000, db_path: str = "escala.db", debug: bool = False):
    """
    Start Flask web server with REST API.

    Args:
        host: Host to bind to
        port: Port to bind to
        db_path: Path to SQLite database
        debug: Enable debug mode (WARNING: Only use in development!)
    """
    import os
    from web_api import create_app

    print("=" * 60)
    print("EXTRAORDINARY DUTY ROSTER - WEB SERVER")
    print("=" * 60)
    print(f"Starting web server on http://{host}:{port}")
    print(f"Database: {db_path}")
    if debug:
        print("⚠️  WARNING: Debug mode enabled - DO NOT use in production!")
    print()

    if not os.path.exists(db_path):
        print(f"ℹ️  No database found at {db_path}")
        print("   Initializing new database with default structure...")
        print()
        from db_init import initialize_database
        initialize_database(db_path, with_sample_data=False)
        print()

    app = create_app(db_path)
    app.run(host=host, port=port, debug=debug)


def main(argv=None):
    """Main entry point with argument parsing"""
    parser = argparse.ArgumentParser(
        description="Extraordinary duty roster - limits, conflicts and summaries"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Database initialization command
    init_parser = subparsers.add_parser("init-db", help="Initialize database schema")
    init_parser.add_argument(
        "--db",
        type=str,
        default="escala.db",
        help="Path to SQLite database (default: escala.db)"
    )
    init_parser.add_argument(
        "--with-sample-data",
        action="store_true",
        help="Include sample personnel and ordinary-duty calendar"
    )

    # Conflict check command
    check_parser = subparsers.add_parser("check-conflicts", help="Report ordinary-duty conflicts")
    check_parser.add_argument("--year", type=int, help="Year (default: current year)")
    check_parser.add_argument("--month", type=int, help="Month 1-12 (default: current month)")
    check_parser.add_argument(
        "--sample-data",
        action="store_true",
        help=f"Use generated sample data instead of database (covers {SAMPLE_MONTH})"
    )
    check_parser.add_argument(
        "--db",
        type=str,
        default="escala.db",
        help="Path to SQLite database (default: escala.db)"
    )

    # Summary command
    summary_parser = subparsers.add_parser("summary", help="Print month occupancy and totals")
    summary_parser.add_argument("--year", type=int, help="Year (default: current year)")
    summary_parser.add_argument("--month", type=int, help="Month 1-12 (default: current month)")
    summary_parser.add_argument(
        "--db",
        type=str,
        default="escala.db",
        help="Path to SQLite database (default: escala.db)"
    )

    # Web server command
    server_parser = subparsers.add_parser("serve", help="Start web server")
    server_parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)"
    )
    server_parser.add_argument(
        "--port",
        type=int,
        default=5000,
        help="Port to bind to (default: 5000)"
    )
    server_parser.add_argument(
        "--db",
        type=str,
        default="escala.db",
        help="Path to SQLite database (default: escala.db)"
    )
    server_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (WARNING: Only for development!)"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "debug", False) else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    if args.command == "init-db":
        from db_init import initialize_database
        initialize_database(args.db, with_sample_data=args.with_sample_data)
        return 0

    elif args.command == "check-conflicts":
        try:
            month = resolve_month(args.year, args.month)
        except ValueError as e:
            parser.error(str(e))
        return run_conflict_check(month, args.sample_data, args.db)

    elif args.command == "summary":
        try:
            month = resolve_month(args.year, args.month)
        except ValueError as e:
            parser.error(str(e))
        return run_summary(month, args.db)

    elif args.command == "serve":
        start_web_server(args.host, args.port, args.db, args.debug)
        return 0

    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
