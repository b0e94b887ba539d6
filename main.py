#!/usr/bin/env python3
"""
BoxScan inventory - command line interface.

Usage:
    python main.py <command> [options]

Examples:
    # Show all containers
    python main.py list

    # Manual entry
    python main.py add-container SHELF-A3
    python main.py add-item SHELF-A3 "Soldering iron"
    python main.py remove-item SHELF-A3 0
    python main.py remove-container SHELF-A3 --yes

    # Search across every container
    python main.py search resistor

    # Backup / restore
    python main.py export --output-dir backups/
    python main.py import backups/inventory-backup-2026-10-19.json

    # AI capture from a photo or the camera
    python main.py upload photo.jpg
    python main.py scan --source 0
"""

import argparse
import asyncio
import logging
import mimetypes
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from boxscan.capture.CapturePipeline import CapturePipeline, CaptureState
from boxscan.config.settings import get_config, update_config
from boxscan.detection.DetectorFactory import DetectorFactory
from boxscan.errors import DeviceUnavailable, InventoryError, ModelUnavailable
from boxscan.inventory.ContainerStore import ContainerStore
from boxscan.inventory.SearchIndex import search
from boxscan.inventory.transfer import export_collection, import_collection
from boxscan.storage.Database import DatabaseManager
from boxscan.utils.AppLogging import logger, reconfigure_console_level


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="BoxScan container inventory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--database', type=str, help='Path to SQLite database file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug output on console')

    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('list', help='List containers and their items')

    p = sub.add_parser('add-container', help='Create an empty container manually')
    p.add_argument('container_id')

    p = sub.add_parser('add-item', help='Add an item to a container')
    p.add_argument('container_id')
    p.add_argument('item')

    p = sub.add_parser('remove-item', help='Remove an item by its position (0-based)')
    p.add_argument('container_id')
    p.add_argument('index', type=int)

    p = sub.add_parser('remove-container', help='Remove a container and all its items')
    p.add_argument('container_id')
    p.add_argument('--yes', '-y', action='store_true', help='Do not ask for confirmation')

    p = sub.add_parser('search', help='Find items across all containers')
    p.add_argument('query')

    p = sub.add_parser('export', help='Write the collection to a dated JSON backup')
    p.add_argument('--output-dir', default='.', help='Directory for the backup file')

    p = sub.add_parser('import', help='Replace the collection with a JSON backup')
    p.add_argument('file')

    p = sub.add_parser('upload', help='Create a container from objects detected in a photo')
    p.add_argument('image')

    p = sub.add_parser('scan', help='Create a container from a camera snapshot')
    p.add_argument('--source', '-s', default=None, help='Camera index or stream URL')

    return parser.parse_args(argv)


def _print_containers(store: ContainerStore):
    containers = store.containers()
    print(f"Containers ({len(containers)})")
    for container in containers:
        badge = " [AI Generated]" if container.ai_generated else ""
        print(f"  {container.id}{badge} - {container.created_at:%Y-%m-%d %H:%M} ({len(container.items)} items)")
        for index, item in enumerate(container.items):
            print(f"    [{index}] {item}")


def _report(result):
    print(result.message)
    if result.outcome is CaptureState.NO_DETECTIONS:
        print("Try a different image, camera angle or lighting.")


def _build_pipeline(store: ContainerStore) -> CapturePipeline:
    detector = DetectorFactory.create(get_config())
    detector.load()
    return CapturePipeline(detector, store, config=get_config())


def run_command(args, store: ContainerStore) -> int:
    if args.command == 'list':
        _print_containers(store)

    elif args.command == 'add-container':
        container = store.create_manual(args.container_id)
        print(f"Container {container.id} added successfully!")

    elif args.command == 'add-item':
        store.add_item(args.container_id, args.item)
        print(f"Added '{args.item.strip()}' to {args.container_id}")

    elif args.command == 'remove-item':
        removed = store.remove_item(args.container_id, args.index)
        print(f"Removed '{removed}' from {args.container_id}")

    elif args.command == 'remove-container':
        if not args.yes:
            answer = input(f"Remove {args.container_id} and all its items? [y/N] ")
            if answer.strip().lower() not in ('y', 'yes'):
                print("Cancelled")
                return 0
        store.remove_container(args.container_id)
        print(f"Removed {args.container_id}")

    elif args.command == 'search':
        matches = search(store, args.query)
        if not matches:
            print("No items found")
        for match in matches:
            print(f"{match.item}  ->  {match.container_id}")

    elif args.command == 'export':
        filename, payload = export_collection(store)
        os.makedirs(args.output_dir, exist_ok=True)
        path = os.path.join(args.output_dir, filename)
        with open(path, 'wb') as f:
            f.write(payload)
        print(f"Exported {len(store)} containers to {path}")

    elif args.command == 'import':
        with open(args.file, 'rb') as f:
            count = import_collection(store, f.read())
        print(f"Data imported successfully! ({count} containers)")

    elif args.command == 'upload':
        with open(args.image, 'rb') as f:
            data = f.read()
        content_type, _ = mimetypes.guess_type(args.image)
        pipeline = _build_pipeline(store)
        _report(asyncio.run(pipeline.analyze_upload(data, content_type)))

    elif args.command == 'scan':
        if args.source is not None:
            update_config(camera_source=int(args.source) if args.source.isdigit() else args.source)
        pipeline = _build_pipeline(store)
        try:
            _report(asyncio.run(pipeline.capture_camera()))
        except DeviceUnavailable as e:
            print(f"Camera not available ({e}). Add the container manually with: add-container <ID>")
            return 1

    return 0


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    if args.verbose:
        reconfigure_console_level(logging.DEBUG)
    if args.database:
        update_config(db_path=args.database)

    config = get_config()
    db = DatabaseManager(config.db_path)
    try:
        store = ContainerStore(db, recover_corrupt=config.recover_corrupt_storage)
        return run_command(args, store)
    except ModelUnavailable as e:
        print(f"AI model failed to load. Manual mode only. ({e})")
        return 1
    except InventoryError as e:
        logger.debug(f"[CLI] {type(e).__name__}: {e}")
        print(f"Error: {e}")
        return 1
    except OSError as e:
        print(f"Error: {e}")
        return 1
    finally:
        db.close()


if __name__ == '__main__':
    sys.exit(main())
