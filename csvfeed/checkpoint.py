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

import dataclasses
import functools
import json
import logging
import threading

from typing_extensions import Self

from csvfeed import exceptions
from csvfeed.config import FeedConfig
from csvfeed.context import RunContext
from csvfeed.ranges import RangeResolver
from csvfeed.registry import PositionRegistry
from csvfeed.share import FileIdentity
from csvfeed.store import CoordinationStore
from csvfeed.utils.threads import ContinuousTimer

LOG = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class CheckpointRecord:
    """Read progress of one file on one pod, as published for the controller."""

    start_position: int
    read_position: int
    end_position: int

    def to_json(self) -> str:
        # sorted keys make equal records serialize to equal strings
        return json.dumps(
            {"startPosition": self.start_position, "readPosition": self.read_position, "endPosition": self.end_position},
            sort_keys=True,
        )

    @classmethod
    def from_json(cls, raw: str) -> Self:
        try:
            value = json.loads(raw)
            return cls(int(value["startPosition"]), int(value["readPosition"]), int(value["endPosition"]))
        except (ValueError, TypeError, KeyError) as ex:
            raise exceptions.DataError(f"Invalid checkpoint record [{raw}]", ex) from ex


class CheckpointScheduler:
    """
    CheckpointScheduler periodically publishes how far each input file has been read.

    There is at most one background timer per physical file, started by the first reader that claims it. Each tick
    takes a copy of the cursor and writes it to the coordination store; failures are logged and the write is attempted
    again on the next tick.
    """

    def __init__(
        self,
        store: CoordinationStore,
        resolver: RangeResolver,
        registry: PositionRegistry,
        run: RunContext,
        interval: float = FeedConfig.DEFAULT_CHECKPOINT_INTERVAL,
        timer_class=ContinuousTimer,
    ):
        if interval <= 0:
            raise ValueError(f"invalid checkpoint interval: {interval} <= 0")
        self._store = store
        self._resolver = resolver
        self._registry = registry
        self._run = run
        self._interval = interval
        self._timer_class = timer_class
        self._lock = threading.Lock()
        # base name -> path of the first claim, matching the one store field per file and pod
        self._claimed: dict[str, str] = {}
        self._timers: dict[str, ContinuousTimer] = {}
        self._shut_down = False

    @property
    def interval(self) -> float:
        return self._interval

    def claim(self, identity: FileIdentity) -> bool:
        """
        Claims are per base name, since the read position is published under it.

        :return: True only for the first caller claiming the file name in this process.
        """
        with self._lock:
            if self._shut_down:
                return False
            claimed_path = self._claimed.get(identity.name)
            if claimed_path is None:
                self._claimed[identity.name] = identity.path
                return True
        if claimed_path != identity.path:
            LOG.warning(
                "[%s] has the same name as [%s], only the read position of [%s] is published.", identity, claimed_path, claimed_path
            )
        return False

    def start(self, identity: FileIdentity, alias: str) -> bool:
        """
        Starts publishing the progress of the cursor of `alias` unless the file has already been claimed.

        :return: True iff this call started the timer.
        """
        if not self.claim(identity):
            return False
        timer = self._timer_class(self._interval, functools.partial(self._tick, identity, alias), name=f"csvfeed-checkpoint-{identity.name}")
        with self._lock:
            if self._shut_down:
                return False
            self._timers[identity.name] = timer
            timer.start()
        LOG.info("Publishing read position of [%s] (alias [%s]) every [%.1f] s.", identity, alias, self._interval)
        return True

    def _tick(self, identity: FileIdentity, alias: str) -> None:
        try:
            self.publish(identity, alias)
        except Exception:
            LOG.exception("Unexpected error publishing read position of [%s].", identity)

    def publish(self, identity: FileIdentity, alias: str) -> CheckpointRecord | None:
        """
        Publishes the current read position of a file once.

        :return: The published record, or None if nothing could be published.
        """
        try:
            snapshot = self._registry.snapshot(alias)
        except exceptions.NotReserved as ex:
            LOG.debug("Skipping checkpoint of [%s]: %s", identity, ex)
            return None

        try:
            byte_range = self._resolver.resolve(identity)
        except exceptions.RangeUnavailable as ex:
            LOG.warning("Could not resolve range of [%s], publishing cursor bounds: %s", identity, ex.full_message)
            byte_range = snapshot.byte_range
        if byte_range != snapshot.byte_range:
            LOG.warning("Range %s of [%s] differs from the one it was opened with, publishing cursor bounds.", byte_range, identity)
            byte_range = snapshot.byte_range

        if byte_range is not None:
            start, end = byte_range.start, byte_range.end
        else:
            start, end = snapshot.start, snapshot.end
        remaining = max(end - snapshot.offset, 0)
        record = CheckpointRecord(start_position=start, read_position=end - remaining, end_position=end)

        key = self._run.checkpoint_key
        field = self._run.checkpoint_field(identity.name)
        try:
            self._store.set_field(key, field, record.to_json())
        except exceptions.StoreWriteFailed as ex:
            LOG.error("Could not publish read position of [%s], retrying in [%.1f] s: %s", identity, self._interval, ex.full_message)
            return None
        LOG.info("Published read position of [%s] to [%s/%s]: %s", identity, key, field, record)
        return record

    def shutdown(self, timeout: float | None = 5.0) -> None:
        with self._lock:
            self._shut_down = True
            timers, self._timers = self._timers, {}
        for timer in timers.values():
            timer.cancel()
        for timer in timers.values():
            timer.join(timeout=timeout)
        LOG.debug("Checkpoint scheduler shut down.")
