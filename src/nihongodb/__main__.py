"""The nihongodb main script."""

import argparse
import json
import logging
import os
import sys

from typing import Any, List

from .exceptions import NihongoDBError
from .services import EntryService, ReadService, read_entries, write_entries
from .store import Neo4jDocumentStore
from .validation import validate_and_prepare

logger = logging.getLogger('nihongodb')


def get_parser() -> argparse.ArgumentParser:
    """Gets an argument parser for the main program.

    Connection options fall back to the ``NEO4J_URI``, ``NEO4J_USER``,
    ``NEO4J_PASSWORD`` and ``NEO4J_DATABASE`` environment variables.

    Returns:
        The argument parser.
    """

    parser = argparse.ArgumentParser(
        description='Japanese reference database on Neo4j',
    )
    parser.add_argument(
        '-n',
        '--neo4j-uri',
        default=os.environ.get('NEO4J_URI', 'neo4j://localhost:7687'),
        help='Neo4j URI string',
    )
    parser.add_argument('-u', '--user',
                        default=os.environ.get('NEO4J_USER', 'neo4j'),
                        help='Neo4j user')
    parser.add_argument('-p', '--pw',
                        default=os.environ.get('NEO4J_PASSWORD', 'japanese'),
                        help='Neo4j pw')
    parser.add_argument('--database',
                        default=os.environ.get('NEO4J_DATABASE'),
                        help='Neo4j database name')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('-d', '--debug', action='store_true',
                       help='Display debug log messages')
    group.add_argument('-s', '--silent', action='store_true',
                       help='Display only warning log messages')

    parser.add_argument('--neo4j-debug', action='store_true',
                        help='Display Neo4j driver debug messages')

    commands = parser.add_subparsers(dest='command', required=True)
    commands.add_parser(
        'init', help='Create ID constraints and full-text indexes',
    )

    validate = commands.add_parser(
        'validate', help='Validate an entry without writing it',
    )
    validate.add_argument('collection', help='Collection name')
    validate.add_argument('entry_file',
                          help="JSON file holding the entry ('-' for stdin)")

    read = commands.add_parser('read', help='Run a read request')
    read.add_argument('request_file',
                      help="JSON file holding the request ('-' for stdin)")

    write = commands.add_parser('write', help='Run a write request')
    write.add_argument('request_file',
                       help="JSON file holding the request ('-' for stdin)")
    write.add_argument('--no-validate', action='store_true',
                       help='Write entries without validating them')

    return parser


def configure_logger(
    level: str,
    log: logging.Logger,
):
    """Configures `log` to use logging level `level`.

    Args:
        level: The logging level to use.
        log: The logger to configure.
    """

    # Set the log level
    log.setLevel(level)

    # Create the handler and set its level
    handler = logging.StreamHandler()
    handler.setLevel(level)

    # Create the formatter and add it to the handler
    formatter = logging.Formatter(fmt='%(levelname)s: %(message)s')
    handler.setFormatter(formatter)

    # Add the configured handler to the logger
    log.addHandler(handler)


def load_json(path: str) -> Any:
    """Loads JSON from the file at `path`, or from stdin for ``'-'``."""

    if path == '-':
        return json.load(sys.stdin)
    with open(path, encoding='utf-8') as jsonf:
        return json.load(jsonf)


def dump_json(value: Any):
    """Writes `value` to stdout as JSON."""

    json.dump(value, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write('\n')


def run(args: argparse.Namespace):
    """The central run function of :mod:`nihongodb`.

    Args:
        args: Namespace of run function arguments.
    """

    if args.command == 'validate':
        entry = validate_and_prepare(
            args.collection, load_json(args.entry_file),
        )
        dump_json(entry)
        return

    logger.info('Connecting to DB (URI = %s)', args.neo4j_uri)
    with Neo4jDocumentStore(
        args.neo4j_uri, args.user, args.pw, database=args.database,
    ) as store:
        if args.command == 'init':
            store.create_constraints()
            store.create_search_indexes()
            logger.info('Created constraints and full-text indexes')
        elif args.command == 'read':
            dump_json(read_entries(ReadService(store),
                                   load_json(args.request_file)))
        elif args.command == 'write':
            dump_json(write_entries(
                EntryService(store),
                load_json(args.request_file),
                validate=not args.no_validate,
            ))


def main(argv: List[str] = sys.argv[1:]) -> int:
    """The :mod:`nihongodb` main function.

    Args:
        argv: The list of input arguments.

    Return:
        ``0`` upon successful completion, ``1`` otherwise.
    """

    # Parse input argv
    args = get_parser().parse_args(argv)

    # Configure logging
    level = 'DEBUG' if args.debug else 'WARNING' if args.silent else 'INFO'
    configure_logger(level, logger)

    neo4j_level = 'DEBUG' if args.neo4j_debug else 'WARNING'
    configure_logger(neo4j_level, logging.getLogger('neo4j'))

    # Run the program
    try:
        run(args)
    except KeyboardInterrupt:
        logger.critical('Interrupted by user, exiting')
        return 1
    except NihongoDBError as exc:
        logger.error('%s: %s', type(exc).__name__, exc)
        return 1
    except Exception as exc:
        logger.exception('Caught Exception: %s', exc)
        return 1

    # Success
    return 0


if __name__ == '__main__':
    sys.exit(main())
