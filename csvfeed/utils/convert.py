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

import enum
import math
from collections.abc import Iterable


class Size(int):

    class Unit(enum.IntEnum):
        B = 1
        KB = 1024 * B
        MB = 1024 * KB
        GB = 1024 * MB
        TB = 1024 * GB

        def __str__(self) -> str:
            return self.name.upper()

    @property
    def unit(self) -> Unit:
        it = iter(Size.Unit)
        last = next(it)
        x = math.fabs(self)
        for unit in it:
            if x < unit:
                return last
            last = unit
        return last

    def to_unit(self, unit: Unit) -> float:
        return float(self / unit)

    def __str__(self):
        unit = self.unit
        if unit == Size.Unit.B:
            return f"{int(self)}B"
        x = self.to_unit(unit)
        return f"{x:.1f}{unit}"


def size(x: int | float, unit: Size.Unit = Size.Unit.B) -> Size:
    if isinstance(x, Size):
        return x
    return Size(x * unit)


def to_strings(value: str | Iterable[str] | None, sep: str = ",") -> tuple[str, ...]:
    """It splits a separated string (or flattens an iterable of them) into a tuple of non-blank, stripped items."""
    if value is None:
        return tuple()
    if isinstance(value, str):
        value = value.split(sep)
    return tuple(item.strip() for v in value for item in v.split(sep) if item.strip())


def to_percent(part: int | float, total: int | float) -> float:
    if total <= 0:
        return 100.0
    return max(0.0, min(100.0, 100.0 * part / total))
