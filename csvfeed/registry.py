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

import codecs
import dataclasses
import enum
import logging
import threading
import time

from csvfeed import exceptions
from csvfeed.parsing import LineParser, split_line
from csvfeed.ranges import ByteRange
from csvfeed.utils import convert, io

LOG = logging.getLogger(__name__)


class State(enum.Enum):
    UNRESERVED = "unreserved"
    RESERVED = "reserved"
    EXHAUSTED = "exhausted"
    CLOSED = "closed"


@dataclasses.dataclass(frozen=True)
class CursorSnapshot:
    """A copy of the cursor of one alias taken at some point in time."""

    start: int
    offset: int
    end: int
    recycle: bool
    exhausted: bool
    byte_range: ByteRange | None = None

    @property
    def remaining(self) -> int:
        return max(self.end - self.offset, 0)

    @property
    def read_position(self) -> int:
        return self.end - self.remaining


def check_line_terminator(encoding: str) -> None:
    """
    Lines are split on the byte \\n before they are decoded, so only encodings writing a newline as that single byte
    can be read.

    :raise LookupError: if the encoding is unknown.
    :raise FileOpenFailed: if the encoding writes a newline differently (e.g. UTF-16 or UTF-32).
    """
    encoder = codecs.getincrementalencoder(encoding)()
    # skip any byte order mark
    encoder.encode("a")
    newline = encoder.encode("\n")
    if newline != b"\n":
        raise exceptions.FileOpenFailed(
            f"Encoding [{encoding}] is not supported: a line break is encoded as {newline!r}, expected a single newline byte"
        )


class _Entry:
    def __init__(self, alias: str):
        self.alias = alias
        self.lock = threading.Lock()
        self.state = State.UNRESERVED
        self.source: io.PositionFileSource | None = None
        self.byte_range: ByteRange | None = None
        self.data_start = 0
        self.encoding = "utf-8"
        self.recycle = True
        self.parser: LineParser = lambda line: split_line(line, ",")
        self.header: list[str] | None = None

    def read_line(self) -> bytes | None:
        source = self.source
        if self.byte_range is not None and source.offset >= self.byte_range.end:
            return None
        line = source.readline()
        if not line:
            return None
        return line

    def end(self) -> int:
        if self.byte_range is not None:
            return self.byte_range.end
        return self.source.size()


class PositionRegistry:
    """
    PositionRegistry owns one positioned file cursor per alias.

    Every logical reader resolving to the same alias reads through the same cursor, so rows are handed out exactly once
    in the physical order of the file. Reservation and reads are serialized per alias; readers of unrelated aliases never
    wait for each other.
    """

    def __init__(self, source_class=io.PositionFileSource):
        self._source_class = source_class
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def _get(self, alias: str) -> _Entry:
        with self._lock:
            entry = self._entries.get(alias)
        if entry is None:
            raise exceptions.NotReserved(f"Alias [{alias}] has not been reserved")
        return entry

    def state(self, alias: str) -> State:
        with self._lock:
            entry = self._entries.get(alias)
        if entry is None:
            return State.UNRESERVED
        return entry.state

    def reserve(
        self,
        alias: str,
        path: str,
        byte_range: ByteRange | None = None,
        *,
        encoding: str = "utf-8",
        parser: LineParser | None = None,
        read_header: bool = False,
        skip_first_line: bool = False,
        recycle: bool = True,
    ) -> list[str] | None:
        """
        Opens the file for an alias and positions the cursor at the start of its data. Only the first call for an alias
        has any effect, later calls return what the first one found.

        :param alias: The sharing key of the cursor.
        :param path: The path of the file to open.
        :param byte_range: The range assigned to the file. None reads the whole file.
        :param encoding: The character encoding of the file.
        :param parser: Splits a line into fields. Defaults to splitting on commas.
        :param read_header: Whether the first line of the file holds the field names.
        :param skip_first_line: Whether the first line of the file has to be skipped although it is not used as header.
        :param recycle: Whether to start over at the end of the data instead of reporting the end of the input.
        :return: The fields of the header line if ``read_header`` is set, otherwise None.
        :raise FileOpenFailed: if the file can't be opened or positioned.
        """
        with self._lock:
            entry = self._entries.get(alias)
            if entry is None:
                entry = self._entries[alias] = _Entry(alias)

        with entry.lock:
            if entry.state != State.UNRESERVED:
                return entry.header

            parser = parser or entry.parser
            source = self._source_class(path)
            start = time.perf_counter()
            try:
                check_line_terminator(encoding)
                source.open()
                header = None
                first_line_end = 0
                if read_header or skip_first_line:
                    line = source.readline()
                    if read_header:
                        if not line:
                            raise exceptions.FileOpenFailed(f"Could not read header line from file [{path}]")
                        header = parser(line.decode(encoding, errors="replace"))
                    first_line_end = source.offset
                range_start = byte_range.start if byte_range is not None else 0
                data_start = max(range_start, first_line_end)
                source.seek(data_start)
            except (OSError, LookupError) as ex:
                if source.opened:
                    source.close()
                raise exceptions.FileOpenFailed(f"Could not open file [{path}] for alias [{alias}]", ex) from ex
            except exceptions.FileOpenFailed:
                if source.opened:
                    source.close()
                raise

            entry.source = source
            entry.byte_range = byte_range
            entry.data_start = data_start
            entry.encoding = encoding
            entry.parser = parser
            entry.recycle = recycle
            entry.header = header
            entry.state = State.RESERVED
            LOG.info(
                "Reserved [%s] for alias [%s] reading [%s] starting at offset [%d] (recycle: %s) in [%f] s.",
                path,
                alias,
                convert.size(entry.end() - data_start),
                data_start,
                recycle,
                time.perf_counter() - start,
            )
            return header

    def next_row(self, alias: str) -> list[str]:
        """
        Advances the cursor of an alias by one line.

        :param alias: A reserved alias.
        :return: The fields of the next line, or an empty list at the end of the input.
        :raise NotReserved: if the alias was never reserved or has been closed.
        """
        entry = self._get(alias)
        with entry.lock:
            if entry.state == State.EXHAUSTED:
                return []
            if entry.state != State.RESERVED:
                raise exceptions.NotReserved(f"Alias [{alias}] is {entry.state.value}")

            line = entry.read_line()
            if line is None and entry.recycle:
                LOG.debug("End of input reached for alias [%s], starting over at offset [%d].", alias, entry.data_start)
                entry.source.seek(entry.data_start)
                line = entry.read_line()
            if line is None:
                if not entry.recycle:
                    entry.state = State.EXHAUSTED
                    LOG.info("End of input reached for alias [%s] at offset [%d].", alias, entry.source.offset)
                return []
            return entry.parser(line.decode(entry.encoding, errors="replace"))

    def snapshot(self, alias: str) -> CursorSnapshot:
        """
        :return: A copy of the current cursor of a reserved alias.
        :raise NotReserved: if the alias is not open.
        """
        entry = self._get(alias)
        with entry.lock:
            if entry.state not in (State.RESERVED, State.EXHAUSTED):
                raise exceptions.NotReserved(f"Alias [{alias}] is {entry.state.value}")
            return CursorSnapshot(
                start=entry.data_start,
                offset=entry.source.offset,
                end=entry.end(),
                recycle=entry.recycle,
                exhausted=entry.state == State.EXHAUSTED,
                byte_range=entry.byte_range,
            )

    def close(self, alias: str) -> None:
        with self._lock:
            entry = self._entries.get(alias)
        if entry is None:
            return
        with entry.lock:
            if entry.source is not None:
                entry.source.close()
                entry.source = None
            entry.state = State.CLOSED

    def close_all(self) -> None:
        with self._lock:
            aliases = list(self._entries)
        for alias in aliases:
            self.close(alias)
