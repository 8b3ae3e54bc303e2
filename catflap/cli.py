"""
Command line access to the event store's JSON files.

Run:
    python -m catflap.cli import --file events.json
    python -m catflap.cli export --out events.json
"""
import argparse
import logging
import sys

from catflap.core import config
from catflap.core.database import SessionLocal, init_db
from catflap.modules.storage.service import EventStore

logger = logging.getLogger(__name__)


def _cmd_import(args: argparse.Namespace) -> int:
    db = SessionLocal()
    try:
        count = EventStore(db).import_json(args.file)
    except (OSError, ValueError) as e:
        logger.error(f"Import of {args.file} failed, store unchanged: {e}")
        return 1
    finally:
        db.close()

    print(f"Imported {count} events from {args.file}")
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    db = SessionLocal()
    try:
        count = EventStore(db).export_json(args.out)
    finally:
        db.close()

    print(f"Exported {count} events to {args.out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="catflap")
    sub = p.add_subparsers(dest="command", required=True)

    p_imp = sub.add_parser("import", help="Replace the stored events with an events.json file")
    p_imp.add_argument("--file", type=str, default="events.json", help="JSON file to read")
    p_imp.set_defaults(func=_cmd_import)

    p_exp = sub.add_parser("export", help="Write every stored event to a JSON file")
    p_exp.add_argument("--out", type=str, default="events.json", help="JSON file to write")
    p_exp.set_defaults(func=_cmd_export)

    return p


def main(argv=None) -> int:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format='[%(asctime)s] %(name)s %(levelname)s: %(message)s'
    )
    args = build_parser().parse_args(argv)
    init_db()
    return int(args.func(args))


if __name__ == "__main__":
    sys.exit(main())
