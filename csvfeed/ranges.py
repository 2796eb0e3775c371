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
import json
import logging
import threading

import jsonschema

from csvfeed import exceptions
from csvfeed.context import RunContext
from csvfeed.share import FileIdentity
from csvfeed.store import CoordinationStore

LOG = logging.getLogger(__name__)

# Field of the run hash where the controller publishes the run variables, byte ranges included.
DESCRIPTOR_FIELD = "__ENGINE_GLOBAL_VARIABLES__"

DESCRIPTOR_SCHEMA = {"type": "object"}

RANGE_SCHEMA = {
    "type": "object",
    "properties": {
        "start": {"type": "integer", "minimum": 0},
        "end": {"type": "integer", "minimum": 0},
    },
    "required": ["start", "end"],
}


@dataclasses.dataclass(frozen=True)
class ByteRange:
    """Half open interval [start, end) of bytes of a file assigned to this worker."""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"invalid range start: {self.start} < 0")
        if self.end < self.start:
            raise ValueError(f"invalid range end: {self.end} < {self.start}")

    @property
    def size(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f"[{self.start};{self.end})"


def parse_descriptor(raw: str | None, file_name: str) -> ByteRange | None:
    """
    Extracts the range assigned to a file from the run descriptor.

    :param raw: The descriptor as stored by the controller. May be None.
    :param file_name: The base name of the file.
    :return: The assigned range, or None when the descriptor is missing, malformed or does not mention the file.
    """
    if not raw:
        LOG.debug("No run descriptor found, file [%s] will be read without range.", file_name)
        return None
    try:
        descriptor = json.loads(raw)
        jsonschema.validate(descriptor, DESCRIPTOR_SCHEMA)
    except (ValueError, jsonschema.ValidationError) as ex:
        LOG.warning("Ignoring malformed run descriptor: %s", ex)
        return None

    entry = descriptor.get(file_name)
    if entry is None:
        LOG.debug("Run descriptor has no range for file [%s].", file_name)
        return None
    try:
        jsonschema.validate(entry, RANGE_SCHEMA)
        return ByteRange(entry["start"], entry["end"])
    except (ValueError, jsonschema.ValidationError) as ex:
        LOG.warning("Ignoring malformed range for file [%s]: %s", file_name, ex)
        return None


class RangeResolver:
    """It looks up the byte range assigned to each input file in the run descriptor.

    Resolved ranges don't change for the whole run so they are looked up once per file. Store failures are not
    remembered, so a later call may still succeed.
    """

    def __init__(self, store: CoordinationStore, run: RunContext):
        self._store = store
        self._run = run
        self._lock = threading.Lock()
        self._ranges: dict[str, ByteRange | None] = {}

    def resolve(self, identity: FileIdentity) -> ByteRange | None:
        """
        :param identity: The file to look up.
        :return: The range assigned to the file or None when the file has to be read as a whole.
        :raise RangeUnavailable: when the coordination store can't be read.
        """
        name = identity.name
        with self._lock:
            if name in self._ranges:
                return self._ranges[name]
        try:
            raw = self._store.get_field(self._run.master_key, DESCRIPTOR_FIELD)
        except exceptions.StoreReadFailed as ex:
            raise exceptions.RangeUnavailable(f"Could not look up the range of file [{name}]", ex) from ex
        byte_range = parse_descriptor(raw, name)
        with self._lock:
            if name not in self._ranges:
                self._ranges[name] = byte_range
                if byte_range is not None:
                    LOG.info("File [%s] is assigned range %s.", name, byte_range)
            return self._ranges[name]
