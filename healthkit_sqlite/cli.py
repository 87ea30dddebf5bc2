"""Command-line interface: convert an Apple Health export into a SQLite database

Usage:
    healthkit-to-sqlite export.zip [healthkit.db] [--drop] [--yes] [--quiet]

The database location defaults to DATABASE_URL / DATABASE_PATH (a .env
file is honoured).
"""

import argparse
import logging
import sys

from healthkit_sqlite import create_converter
from healthkit_sqlite.database import database_exists, drop_db
from healthkit_sqlite.utils.database_helpers import format_duration
from healthkit_sqlite.utils.errors import ConverterError


def positive_int(value):
    """argparse type for options that need a count of at least 1"""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv, default_db):
    parser = argparse.ArgumentParser(
        prog='healthkit-to-sqlite',
        description='Convert Apple HealthKit data to a SQLite database.'
    )
    parser.add_argument('export', help='Path to the HealthKit export.zip (or export.xml)')
    parser.add_argument('database', nargs='?', default=default_db,
                        help=f'Path or sqlite:// URL of the database (default: {default_db})')
    parser.add_argument('-d', '--drop', action='store_true',
                        help='Drop the database if it already exists (asks first)')
    parser.add_argument('-y', '--yes', action='store_true', help='Respond yes to all prompts')
    parser.add_argument('-q', '--quiet', action='store_true', help='Minimize stdout output')
    parser.add_argument('-b', '--batch-size', type=positive_int, default=None,
                        help='Rows per table committed in one transaction')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    return parser.parse_args(argv)


def confirm(prompt):
    """Ask a yes/no question on stdin, defaulting to no"""
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ('y', 'yes')


def strip_sqlite_url(database):
    for prefix in ('sqlite:///', 'sqlite://', 'sqlite:'):
        if database.startswith(prefix):
            return database[len(prefix):]
    return database


def print_summary(summary, database):
    print(f"\n{'='*50}")
    print(f"Created SQLite database {database}")
    for table, count in sorted(summary.rows_per_table.items()):
        print(f"  {table}: {count}")
    print(f"  Rows:     {summary.total_rows}")
    print(f"  Errors:   {summary.error_count}")
    print(f"  Elapsed:  {format_duration(summary.elapsed_seconds)}")
    if summary.errors:
        print(f"\nFirst errors:")
        for error in summary.errors[:10]:
            print(f"  {error.message}")


def main(argv=None):
    """Entry point of the healthkit-to-sqlite command

    Returns:
        Process exit status
    """
    converter = create_converter()
    settings = converter.config
    args = parse_args(sys.argv[1:] if argv is None else argv, settings['DATABASE_PATH'])

    level = logging.DEBUG if args.verbose else getattr(logging, str(settings['LOG_LEVEL']).upper(), logging.WARNING)
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    if args.batch_size is not None:
        settings['BATCH_SIZE'] = args.batch_size

    database = strip_sqlite_url(args.database)

    # Refuse to touch an existing database unless asked to drop it
    if database_exists(database):
        prompt = (f'The database at "{database}" already exists. Do you want to drop it? '
                  'This will delete all data in the database.')
        if args.drop and (args.yes or confirm(prompt)):
            if not args.quiet:
                print(f'Dropping database at "{database}"...')
            drop_db(database)
        else:
            print(f'The database at "{database}" already exists. '
                  'Please delete it or specify a different database URL.')
            return 0

    if not args.quiet:
        print(f'Creating SQLite database "{database}" from "{args.export}"...')

    progress_every = settings['PROGRESS_EVERY']
    written = {'rows': 0, 'reported': 0}

    def on_progress(table, batch_rows, total_rows):
        written['rows'] += batch_rows
        if not args.quiet and written['rows'] - written['reported'] >= progress_every:
            written['reported'] = written['rows']
            print(f"  Progress: {written['rows']} rows written...")

    try:
        summary = converter.convert(args.export, database, on_progress=on_progress)
    except ConverterError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return e.exit_code

    if not args.quiet:
        print_summary(summary, database)
    return 0


if __name__ == '__main__':
    sys.exit(main())
