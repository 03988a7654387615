import argparse
import datetime
import logging
import sys
import textwrap
from pathlib import Path

from . import Scanner, Processor, ClusterReporter, ReportManifest, ReportStore

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def finddup_main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        prog='finddup',
        description='Find files with identical content in one or more directory trees. Files are grouped by size '
                    'first and then by a hash of their content.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Output:
              Each group of duplicates is printed one path per line, followed by a blank line.
              Unreadable directories and files are reported on standard error, followed by
              the number of bytes that removing all but one copy of each group would free.

            Examples:
              finddup ~/Pictures
              finddup --hash md5 /mnt/backup1 /mnt/backup2
            ''').strip()
    )
    parser.add_argument(
        'directories',
        nargs='+',
        metavar='DIRECTORY',
        help='Directories to search recursively')
    parser.add_argument(
        '--hash',
        choices=Scanner.HASH_ALGORITHMS,
        default='sha256',
        help='Content digest used to group files of equal size (default: sha256)')
    parser.add_argument(
        '--verify',
        action='store_true',
        help='Compare files with equal digests byte by byte before reporting them as duplicates')
    parser.add_argument(
        '--jobs',
        type=int,
        metavar='N',
        help='Number of worker processes reading files (default: number of CPUs)')
    parser.add_argument(
        '--report',
        metavar='PATH',
        help='Also write the duplicate groups to PATH in msgpack format')
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Log progress to standard error when no log file is given')
    parser.add_argument(
        '--log-file',
        metavar='PATH',
        help='Path to log file for operation logging')
    parser.add_argument(
        '--log-level',
        metavar='LEVEL',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to INFO when logging is enabled.')

    args = parser.parse_args(argv)

    if args.jobs is not None and args.jobs < 1:
        parser.error(f"--jobs must be at least 1: {args.jobs}")

    log_level = args.log_level if args.log_level is not None else 'INFO'
    if args.log_file:
        logging.basicConfig(filename=args.log_file, level=getattr(logging, log_level), format=LOG_FORMAT,
                            errors='backslashreplace')
    elif args.verbose:
        logging.basicConfig(stream=sys.stderr, level=getattr(logging, log_level), format=LOG_FORMAT)

    store = None
    if args.report:
        store = ReportStore(Path(args.report))
        try:
            store.open_for_writing(ReportManifest(
                roots=list(args.directories),
                hash_algorithm=args.hash,
                timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat()
            ))
        except OSError as e:
            parser.error(f"can not create report '{args.report}': {e.strerror or e}")

    try:
        with Processor(args.jobs) as processor:
            scanner = Scanner(processor, args.hash, verify_content=args.verify)
            reporter = ClusterReporter(store=store)
            scanner.scan(args.directories, reporter)
            reporter.finish()
    finally:
        if store is not None:
            store.close()


if __name__ == '__main__':
    finddup_main()
