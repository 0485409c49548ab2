"""Operate a topic chain dataset from the command line.

Stores are selected from a YAML settings file (``stores:`` and
``committer:`` sections) or TOPIC_CHAIN_* environment variables.

Usage:
    python scripts/topic_chain_admin.py --config settings.yaml provision
    python scripts/topic_chain_admin.py --config settings.yaml publish orders events.jsonl
    python scripts/topic_chain_admin.py --config settings.yaml show orders
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from topic_chain_storage import (
    CommitterConfig,
    EpochCommitter,
    StoreConfig,
    TopicStorageError,
    build_stores,
    configure_structured_logging,
    provision_root,
)

logger = logging.getLogger(__name__)


def load_configs(config_path: Path | None) -> tuple[CommitterConfig, StoreConfig]:
    if config_path is not None:
        return CommitterConfig.from_yaml(config_path), StoreConfig.from_yaml(config_path)
    return CommitterConfig.from_env(), StoreConfig.from_env()


async def cmd_provision(config: CommitterConfig, store_config: StoreConfig) -> None:
    stores = build_stores(store_config)
    try:
        directory_hash = await provision_root(stores.pointers, stores.directory, config.root_address)
    finally:
        await stores.close()
    print(f"Provisioned {config.root_address} -> {directory_hash}")


async def cmd_publish(
    config: CommitterConfig, store_config: StoreConfig, topic: str, source: Path
) -> None:
    """Stage every JSON line of ``source`` under ``topic`` and run one epoch."""
    stores = build_stores(store_config)
    try:
        committer = await EpochCommitter.create(
            stores.chunks, stores.directory, stores.pointers, config
        )
        staged = 0
        with open(source, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    committer.append_data(topic, json.loads(line))
                    staged += 1

        result = await committer.run_epoch()
    finally:
        await stores.close()

    print(f"Staged {staged} entries, epoch {result.status.value}")
    if result.committed:
        print(f"Directory: {result.directory_hash}")
        print(f"Tip for {topic}: {result.topic_hashes[topic]}")


async def cmd_show(config: CommitterConfig, store_config: StoreConfig, topic: str | None) -> None:
    stores = build_stores(store_config)
    try:
        committer = await EpochCommitter.create(
            stores.chunks, stores.directory, stores.pointers, config
        )
        print(f"Root: {config.root_address} -> {committer.root_hash}")
        if topic is None:
            for name, tip in sorted(committer.topic_hashes.items()):
                print(f"  {name}: {tip}")
            return

        contents = await committer.get_topic_contents(topic)
    finally:
        await stores.close()

    print(f"Topic {topic} (tip {contents.hash}, {len(contents.data)} entries)")
    for entry in contents.data:
        print(json.dumps(entry, sort_keys=True))


async def main() -> int:
    parser = argparse.ArgumentParser(
        description="Provision, publish to and inspect a topic chain dataset",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Local stores under ./data
    TOPIC_CHAIN_ROOT_ADDRESS=root:dev \\
    TOPIC_CHAIN_BLOB_BACKEND=local TOPIC_CHAIN_BLOB_PATH=./data/blobs \\
    TOPIC_CHAIN_POINTER_BACKEND=local TOPIC_CHAIN_POINTER_PATH=./data/pointers.json \\
    python scripts/topic_chain_admin.py provision

NOTE: Only one process may publish to a root address at a time.
        """,
    )
    parser.add_argument("--config", type=Path, help="YAML settings file")
    parser.add_argument("--verbose", action="store_true", help="Emit JSON debug logs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("provision", help="Create an empty root")

    publish = subparsers.add_parser("publish", help="Append a JSONL file to a topic")
    publish.add_argument("topic")
    publish.add_argument("source", type=Path)

    show = subparsers.add_parser("show", help="List topics or print one topic")
    show.add_argument("topic", nargs="?")

    args = parser.parse_args()
    configure_structured_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config, store_config = load_configs(args.config)
        if args.command == "provision":
            await cmd_provision(config, store_config)
        elif args.command == "publish":
            await cmd_publish(config, store_config, args.topic, args.source)
        else:
            await cmd_show(config, store_config, args.topic)
    except TopicStorageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
