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

from dataclasses import dataclass

from csvfeed.utils import convert
from csvfeed.utils.cases import cases


@dataclass()
class SizeCase:
    value: float | int
    want: int
    want_unit: convert.Size.Unit
    want_str: str
    unit: convert.Size.Unit = convert.Size.Unit.B


@cases(
    zero=SizeCase(0, 0, convert.Size.Unit.B, "0B"),
    line=SizeCase(42, 42, convert.Size.Unit.B, "42B"),
    kilos=SizeCase(3800, 3800, convert.Size.Unit.KB, "3.7KB"),
    from_kilos=SizeCase(1.5, 1536, convert.Size.Unit.KB, "1.5KB", unit=convert.Size.Unit.KB),
    megas=SizeCase(5000000, 5000000, convert.Size.Unit.MB, "4.8MB"),
    gigas=SizeCase(2, 2147483648, convert.Size.Unit.GB, "2.0GB", unit=convert.Size.Unit.GB),
)
def test_size(case: SizeCase):
    got = convert.size(case.value, unit=case.unit)
    assert got == case.want
    assert got.unit == case.want_unit
    assert str(got) == case.want_str


@dataclass()
class ToStringsCase:
    value: str | list[str] | None
    want: tuple[str, ...]
    sep: str = ","


@cases(
    none=ToStringsCase(None, ()),
    empty=ToStringsCase("", ()),
    single=ToStringsCase("redis-1:26379", ("redis-1:26379",)),
    blanks=ToStringsCase(" a , ,b,", ("a", "b")),
    iterable=ToStringsCase(["a,b", "c"], ("a", "b", "c")),
    other_separator=ToStringsCase("a;b", ("a", "b"), sep=";"),
)
def test_to_strings(case: ToStringsCase):
    assert convert.to_strings(case.value, sep=case.sep) == case.want


def test_to_percent():
    assert convert.to_percent(50, 100) == 50.0
    assert convert.to_percent(150, 100) == 100.0
    assert convert.to_percent(-5, 100) == 0.0
    assert convert.to_percent(0, 0) == 100.0
