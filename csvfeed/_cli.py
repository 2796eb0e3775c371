# Licensed to Elasticsearch B.V. under one or more contributor
# license agreements. See the NOTICE file distributed with
# this work for additional information regarding copyright
# ownership. Elasticsearch B.V. licenses this file to you under
# the Apache License, Version 2.0 (the "License"); you may
# not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# 	http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.
from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Mapping
from typing import TypedDict

import tabulate

from csvfeed import exceptions, log, server
from csvfeed.checkpoint import CheckpointRecord
from csvfeed.context import RunContext
from csvfeed.store import CoordinationStore, RedisStore
from csvfeed.utils import convert

LOG = logging.getLogger(__name__)

_POD_SEPARATOR = "_pod_num_"


class ProgressDict(TypedDict):
    file: str
    pod: str
    start_position: int
    read_position: int
    end_position: int
    percent: float


def parse_progress(fields: Mapping[str, str]) -> list[ProgressDict]:
    """It converts the raw checkpoint fields of a scene into progress entries sorted by file and pod.

    Fields that can't be parsed are logged and skipped.
    """
    entries: list[ProgressDict] = []
    for field, raw in fields.items():
        file_name, sep, pod = field.rpartition(_POD_SEPARATOR)
        if not sep:
            LOG.warning("Skipping unknown checkpoint field [%s].", field)
            continue
        try:
            record = CheckpointRecord.from_json(raw)
        except exceptions.DataError as ex:
            LOG.warning("Skipping checkpoint field [%s]: %s", field, ex)
            continue
        entries.append(
            ProgressDict(
                file=file_name,
                pod=pod,
                start_position=record.start_position,
                read_position=record.read_position,
                end_position=record.end_position,
                percent=convert.to_percent(record.read_position - record.start_position, record.end_position - record.start_position),
            )
        )
    return sorted(entries, key=lambda e: (e["file"], e["pod"]))


def read_progress(store: CoordinationStore, run: RunContext) -> list[ProgressDict]:
    return parse_progress(store.get_all(run.checkpoint_key))


def format_progress(entries: list[ProgressDict]) -> str:
    return tabulate.tabulate(
        [[e["file"], e["pod"], e["start_position"], e["read_position"], e["end_position"], f"{e['percent']:.1f}%"] for e in entries],
        headers=["File", "Pod", "Start", "Read", "End", "Done"],
    )


def main(argv: list[str] | None = None) -> None:
    cfg = server.load_default_config()

    parser = argparse.ArgumentParser(prog="csvfeed", description="Inspects data files shared by the pods of a load test run.")
    subparsers = parser.add_subparsers(dest="command")
    progress_parser = subparsers.add_parser("progress", help="It shows how far each pod has read its share of every file.")

    for p in (parser, progress_parser):
        p.add_argument("-v", "--verbose", action="count", required=False, default=0, help="It increases the verbosity level.")
        p.add_argument("-q", "--quiet", action="count", required=False, default=0, help="It decreases the verbosity level.")

    progress_parser.add_argument("--scene-id", type=str, default=cfg.scene_id, help="It specifies the scene of the run.")
    progress_parser.add_argument("--json", action="store_true", help="It prints progress entries as JSON.")

    args = parser.parse_args(argv)
    log.install_default_log_config()
    log.configure_logging()
    logging_level = (args.quiet - args.verbose) * (logging.INFO - logging.DEBUG) + logging.INFO
    root = logging.getLogger()
    root.setLevel(logging_level)
    # problems are reported on the console too, details stay in the log file
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.WARNING)
    console.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    root.addHandler(console)

    match args.command:
        case "progress":
            if not args.scene_id:
                LOG.critical("No scene id given, use --scene-id or set SCENE_ID.")
                sys.exit(1)
            cfg.scene_id = args.scene_id
            progress(cfg, as_json=args.json)
        case None:
            parser.print_help()
        case _:
            LOG.critical("Invalid command: %r", args.command)
            sys.exit(3)


def progress(cfg, *, as_json: bool = False, store_factory=RedisStore.from_config) -> None:
    try:
        store = store_factory(cfg)
    except exceptions.ConnectionInitFailed as ex:
        LOG.critical("%s", ex.full_message)
        sys.exit(1)
    try:
        entries = read_progress(store, RunContext.from_config(cfg))
    except exceptions.StoreReadFailed as ex:
        LOG.critical("Failed to read progress: %s", ex.full_message)
        sys.exit(2)
    finally:
        store.close()

    if as_json:
        json.dump(entries, sys.stdout, indent=2, sort_keys=True)
        sys.stdout.write("\n")
    elif entries:
        sys.stdout.write(format_progress(entries) + "\n")
    else:
        LOG.info("No progress published for scene [%s].", cfg.scene_id)
