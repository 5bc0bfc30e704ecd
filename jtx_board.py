#!/usr/bin/env python3
"""
jtx Board - journals, notes and to-dos stored as iCalendar records.

This is the command line entry point.
"""

import sys
import argparse
from pathlib import Path

from jtx.collection import ICalCollection
from jtx.config import Config
from jtx.database import ICalDatabase
from jtx.ical_object import ICalObject, ICalObjectPatch, InvalidArgumentError
from jtx.ics_transfer import ICSSource, export_collection, import_ical_text
from jtx.vocabulary import Component


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="jtx Board - journals, notes and to-dos in iCalendar format"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: auto-detect)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    new = commands.add_parser("new", help="Create a journal, note or to-do")
    new.add_argument("kind", choices=["journal", "note", "todo"])
    new.add_argument("--summary")
    new.add_argument("--description")
    new.add_argument("--collection", type=int, default=1)

    progress = commands.add_parser("progress", help="Set the progress of a to-do")
    progress.add_argument("id", type=int)
    progress.add_argument("percent", type=int)

    show = commands.add_parser("show", help="Print a record as iCalendar")
    show.add_argument("id", type=int)

    list_cmd = commands.add_parser("list", help="List the records of a collection")
    list_cmd.add_argument("--collection", type=int, default=1)

    export = commands.add_parser("export", help="Export a collection as .ics")
    export.add_argument("collection", type=int)
    export.add_argument("-o", "--output", type=Path)

    import_cmd = commands.add_parser("import", help="Import an .ics file or URL")
    import_cmd.add_argument("source")
    import_cmd.add_argument("--collection", type=int, default=1)

    commands.add_parser("subscriptions", help="Import all configured subscriptions")

    delete = commands.add_parser("delete-collection", help="Delete a collection and its records")
    delete.add_argument("id", type=int)

    return parser.parse_args(argv)


def load_config(config_path):
    """Load the config file; without an explicit path a missing file means defaults."""
    try:
        return Config.load(config_path)
    except FileNotFoundError:
        if config_path is not None:
            raise
        return Config.default()


def ensure_collections(db: ICalDatabase, config: Config) -> dict[str, int]:
    """Make sure the local and all configured collections exist."""
    db.ensure_local_collection_sync()
    existing = {c.display_name: c.collection_id for c in db.get_all_collections_sync()}
    ids = {}
    for collection_config in config.collections:
        collection_id = existing.get(collection_config.display_name)
        if collection_id is None:
            collection = ICalCollection(
                url="LOCAL",
                display_name=collection_config.display_name,
                description=collection_config.description,
                color=collection_config.color,
                supports_vtodo=collection_config.supports_vtodo,
                supports_vjournal=collection_config.supports_vjournal,
                account_name="LOCAL",
            )
            collection_id = db.insert_collection_sync(collection)
        ids[collection_config.name] = collection_id
    return ids


def run(args, config: Config, db: ICalDatabase) -> int:
    collection_ids = ensure_collections(db, config)

    if args.command == "new":
        patch = ICalObjectPatch(
            component=Component[args.kind.upper()].value,
            summary=args.summary,
            description=args.description,
            collection_id=args.collection,
        )
        icalobject = ICalObject.from_patch(patch)
        db.insert_icalobject_sync(icalobject)
        print(icalobject.id)

    elif args.command == "progress":
        icalobject = db.get_icalobject_by_id_sync(args.id)
        if icalobject is None:
            print(f"Error: no record with id {args.id}", file=sys.stderr)
            return 1
        db.update_icalobject_sync(icalobject.set_progress(args.percent))
        print(f"{icalobject.percent}% {icalobject.status}")

    elif args.command == "show":
        entity = db.get_entity_by_id_sync(args.id)
        if entity is None:
            print(f"Error: no record with id {args.id}", file=sys.stderr)
            return 1
        sys.stdout.write(entity.get_ical_string())

    elif args.command == "list":
        for icalobject in db.get_icalobjects_by_collection_sync(args.collection):
            print(f"{icalobject.id}\t{icalobject.component}\t{icalobject.status}\t{icalobject.summary or ''}")

    elif args.command == "export":
        text = export_collection(db, args.collection)
        if args.output:
            args.output.write_text(text, encoding='utf-8')
        else:
            sys.stdout.write(text)

    elif args.command == "import":
        source = ICSSource(args.source)
        if not source.fetch():
            print(f"Error: {source.error}", file=sys.stderr)
            return 1
        ids = import_ical_text(db, source.raw_data, args.collection)
        print(f"Imported {len(ids)} records")

    elif args.command == "subscriptions":
        for subscription in config.subscriptions:
            collection_id = collection_ids.get(subscription.collection, 1)
            source = ICSSource(subscription.url, name=subscription.name)
            ids = source.import_into(db, collection_id)
            if source.error:
                print(f"{subscription.name}: {source.error}", file=sys.stderr)
            else:
                print(f"{subscription.name}: imported {len(ids)} records")

    elif args.command == "delete-collection":
        if not db.delete_collection_sync(args.id):
            print(f"Error: no collection with id {args.id}", file=sys.stderr)
            return 1

    return 0


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("\nExample configuration:")
        print("""
[General]
database_file = "~/.local/share/jtx-board/jtx.db"
timezone = "Europe/Vienna"

[Collection.Work]
display_name = "Work"
color = "#4285f4"
""")
        sys.exit(1)
    except Exception as e:
        print(f"Error loading configuration: {e}")
        sys.exit(1)

    config.apply()

    if args.debug:
        print(f"Loaded configuration from: {args.config or Config.get_default_config_path()}")
        print(f"  Database: {config.database_file}")
        print(f"  Collections: {len(config.collections)}")
        print(f"  Subscriptions: {len(config.subscriptions)}")

    db = ICalDatabase(config.database_file)
    try:
        sys.exit(run(args, config, db))
    except InvalidArgumentError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
