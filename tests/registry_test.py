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
# pylint: disable=protected-access

import os
import threading

import pytest

from csvfeed import exceptions, parsing
from csvfeed.ranges import ByteRange
from csvfeed.registry import PositionRegistry, State
from csvfeed.utils import io
from tests import write_file

# each line is 10 bytes long including the line terminator
ROWS = [f"row-{i:05d}" for i in range(10)]


@pytest.fixture
def rows_file(tmp_path):
    return write_file(tmp_path, "rows.csv", ROWS)


@pytest.fixture
def header_file(tmp_path):
    return write_file(tmp_path, "data.csv", ["id,name", "1,alice", "2,bob", "3,carol"])


@pytest.fixture
def registry():
    registry = PositionRegistry()
    yield registry
    registry.close_all()


def read_all(registry, alias, limit=100):
    rows = []
    for _ in range(limit):
        row = registry.next_row(alias)
        if not row:
            return rows
        rows.append(row)
    raise AssertionError(f"no end of input after {limit} rows")


class CountingSource(io.PositionFileSource):
    opened = 0

    def open(self):
        CountingSource.opened += 1
        return super().open()


class TestReserve:
    def test_reads_rows_in_order_then_eof(self, registry, rows_file):
        assert registry.reserve("rows", rows_file, recycle=False) is None
        assert read_all(registry, "rows") == [[r] for r in ROWS]
        assert registry.state("rows") == State.EXHAUSTED
        # end of input is terminal
        assert registry.next_row("rows") == []
        assert registry.next_row("rows") == []

    def test_header_is_not_data(self, registry, header_file):
        header = registry.reserve("data", header_file, read_header=True, recycle=False)
        assert header == ["id", "name"]
        assert read_all(registry, "data") == [["1", "alice"], ["2", "bob"], ["3", "carol"]]

    def test_skip_first_line(self, registry, header_file):
        assert registry.reserve("data", header_file, skip_first_line=True, recycle=False) is None
        assert read_all(registry, "data") == [["1", "alice"], ["2", "bob"], ["3", "carol"]]

    def test_reserve_once_per_alias(self, header_file):
        CountingSource.opened = 0
        registry = PositionRegistry(source_class=CountingSource)
        try:
            first = registry.reserve("data", header_file, read_header=True)
            second = registry.reserve("data", header_file, read_header=True)
            assert first == second == ["id", "name"]
            assert CountingSource.opened == 1
            registry.reserve("other", header_file, read_header=True)
            assert CountingSource.opened == 2
        finally:
            registry.close_all()

    def test_later_reservations_do_not_reset_cursor(self, registry, rows_file):
        registry.reserve("rows", rows_file)
        assert registry.next_row("rows") == [ROWS[0]]
        registry.reserve("rows", rows_file)
        assert registry.next_row("rows") == [ROWS[1]]

    def test_missing_file(self, registry, tmp_path):
        with pytest.raises(exceptions.FileOpenFailed):
            registry.reserve("missing", os.path.join(tmp_path, "missing.csv"))
        assert registry.state("missing") == State.UNRESERVED

    def test_unknown_encoding(self, registry, header_file):
        with pytest.raises(exceptions.FileOpenFailed):
            registry.reserve("data", header_file, encoding="no-such-encoding", read_header=True)

    def test_header_of_empty_file(self, registry, tmp_path):
        empty = write_file(tmp_path, "empty.csv", [])
        with pytest.raises(exceptions.FileOpenFailed):
            registry.reserve("empty", empty, read_header=True)

    def test_not_reserved(self, registry):
        with pytest.raises(exceptions.NotReserved):
            registry.next_row("unknown")
        with pytest.raises(exceptions.NotReserved):
            registry.snapshot("unknown")

    def test_quoted_fields(self, registry, tmp_path):
        path = write_file(tmp_path, "quoted.csv", ['name;comment', '"doe; john";"said ""hi"""'])
        parser = parsing.line_parser(";", quoted=True)
        assert registry.reserve("quoted", path, parser=parser, read_header=True) == ["name", "comment"]
        assert registry.next_row("quoted") == ["doe; john", 'said "hi"']

    def test_encoding(self, registry, tmp_path):
        path = write_file(tmp_path, "latin.csv", ["café,crème"], encoding="latin-1")
        registry.reserve("latin", path, encoding="latin-1")
        assert registry.next_row("latin") == ["café", "crème"]

    @pytest.mark.parametrize("encoding", ["utf-16", "utf-16-le", "utf-16-be", "utf-32"])
    def test_multi_byte_line_break(self, registry, tmp_path, encoding):
        path = write_file(tmp_path, "wide.csv", ["name", "alice", "bob"], encoding=encoding)
        with pytest.raises(exceptions.FileOpenFailed) as exc:
            registry.reserve("wide", path, encoding=encoding, read_header=True)
        assert f"Encoding [{encoding}] is not supported" in exc.value.message
        assert registry.state("wide") == State.UNRESERVED

    def test_byte_order_mark(self, registry, tmp_path):
        path = write_file(tmp_path, "bom.csv", ["name", "alice", "bob"], encoding="utf-8-sig")
        assert registry.reserve("bom", path, encoding="utf-8-sig", read_header=True, recycle=False) == ["name"]
        assert read_all(registry, "bom") == [["alice"], ["bob"]]


class TestRange:
    def test_reads_assigned_range_only(self, registry, rows_file):
        registry.reserve("rows", rows_file, ByteRange(20, 50), recycle=False)
        assert registry.snapshot("rows").offset == 20
        assert read_all(registry, "rows") == [[ROWS[2]], [ROWS[3]], [ROWS[4]]]

    def test_empty_range(self, registry, rows_file):
        registry.reserve("rows", rows_file, ByteRange(30, 30), recycle=False)
        assert registry.next_row("rows") == []
        assert registry.state("rows") == State.EXHAUSTED

    def test_range_past_end_of_file(self, registry, rows_file):
        registry.reserve("rows", rows_file, ByteRange(90, 500), recycle=False)
        assert read_all(registry, "rows") == [[ROWS[9]]]

    def test_header_before_range(self, registry, header_file):
        # "id,name\n" is 8 bytes, "1,alice\n" 8 more
        header = registry.reserve("data", header_file, ByteRange(16, 22), read_header=True, recycle=False)
        assert header == ["id", "name"]
        assert read_all(registry, "data") == [["2", "bob"]]

    def test_range_including_header(self, registry, header_file):
        registry.reserve("data", header_file, ByteRange(0, 16), read_header=True, recycle=False)
        assert registry.snapshot("data").start == 8
        assert read_all(registry, "data") == [["1", "alice"]]


class TestRecycle:
    def test_starts_over_after_last_row(self, registry, rows_file):
        registry.reserve("rows", rows_file, recycle=True)
        for row in ROWS:
            assert registry.next_row("rows") == [row]
        assert registry.next_row("rows") == [ROWS[0]]
        assert registry.next_row("rows") == [ROWS[1]]
        assert registry.state("rows") == State.RESERVED

    def test_starts_over_after_header(self, registry, header_file):
        registry.reserve("data", header_file, read_header=True, recycle=True)
        got = [registry.next_row("data") for _ in range(4)]
        assert got == [["1", "alice"], ["2", "bob"], ["3", "carol"], ["1", "alice"]]

    def test_starts_over_at_range_start(self, registry, rows_file):
        registry.reserve("rows", rows_file, ByteRange(70, 90), recycle=True)
        got = [registry.next_row("rows") for _ in range(3)]
        assert got == [[ROWS[7]], [ROWS[8]], [ROWS[7]]]

    def test_no_data(self, registry, tmp_path):
        path = write_file(tmp_path, "header-only.csv", ["id,name"])
        registry.reserve("data", path, read_header=True, recycle=True)
        assert registry.next_row("data") == []
        assert registry.next_row("data") == []
        assert registry.state("data") == State.RESERVED


class TestSnapshot:
    def test_tracks_consumed_bytes(self, registry, rows_file):
        registry.reserve("rows", rows_file, recycle=False)
        snapshot = registry.snapshot("rows")
        assert (snapshot.start, snapshot.offset, snapshot.end) == (0, 0, 100)
        assert snapshot.remaining == 100
        registry.next_row("rows")
        registry.next_row("rows")
        snapshot = registry.snapshot("rows")
        assert snapshot.offset == 20
        assert snapshot.remaining == 80
        assert snapshot.read_position == 20
        assert snapshot.byte_range is None
        assert not snapshot.exhausted

    def test_scoped(self, registry, rows_file):
        registry.reserve("rows", rows_file, ByteRange(100 - 50, 100), recycle=False)
        registry.next_row("rows")
        snapshot = registry.snapshot("rows")
        assert (snapshot.start, snapshot.offset, snapshot.end) == (50, 60, 100)
        assert snapshot.byte_range == ByteRange(50, 100)

    def test_exhausted(self, registry, rows_file):
        registry.reserve("rows", rows_file, recycle=False)
        read_all(registry, "rows")
        snapshot = registry.snapshot("rows")
        assert snapshot.exhausted
        assert snapshot.remaining == 0
        assert snapshot.read_position == 100

    def test_closed(self, registry, rows_file):
        registry.reserve("rows", rows_file)
        registry.close("rows")
        assert registry.state("rows") == State.CLOSED
        with pytest.raises(exceptions.NotReserved):
            registry.snapshot("rows")
        with pytest.raises(exceptions.NotReserved):
            registry.next_row("rows")


class TestConcurrency:
    def test_shared_alias_delivers_each_row_once(self, registry, tmp_path):
        lines = [str(i) for i in range(2000)]
        path = write_file(tmp_path, "numbers.csv", lines)
        registry.reserve("numbers", path, recycle=False)

        got = []
        got_lock = threading.Lock()

        def reader():
            rows = []
            while row := registry.next_row("numbers"):
                rows.append(row[0])
            with got_lock:
                got.extend(rows)

        threads = [threading.Thread(target=reader) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)
        assert sorted(got, key=int) == lines
        assert len(set(got)) == len(lines)

    def test_aliases_have_independent_cursors(self, registry, rows_file):
        registry.reserve("a", rows_file, recycle=False)
        registry.reserve("b", rows_file, recycle=False)
        assert registry.next_row("a") == [ROWS[0]]
        assert registry.next_row("a") == [ROWS[1]]
        assert registry.next_row("b") == [ROWS[0]]
