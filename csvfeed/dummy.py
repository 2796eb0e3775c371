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

import threading
from collections import defaultdict

from typing_extensions import Self

from csvfeed import exceptions, types


class DummyStore:
    """It implements the coordination store contract in memory.

    It is intended for tests and dry runs. Reads and writes can be made to fail by setting `read_error` or `write_error`
    to an exception instance.
    """

    @classmethod
    def from_config(cls, cfg: types.Config | None = None) -> Self:
        return cls()

    def __init__(self, data: dict[str, dict[str, str]] | None = None):
        self._lock = threading.Lock()
        self.data: dict[str, dict[str, str]] = defaultdict(dict)
        for key, fields in (data or {}).items():
            self.data[key].update(fields)
        self.read_error: Exception | None = None
        self.write_error: Exception | None = None
        self.reads = 0
        self.writes = 0
        self.closed = False

    def get_field(self, key: str, field: str) -> str | None:
        with self._lock:
            self.reads += 1
            if self.read_error is not None:
                raise exceptions.StoreReadFailed(f"Could not read field [{field}] of [{key}]", self.read_error)
            return self.data.get(key, {}).get(field)

    def set_field(self, key: str, field: str, value: str) -> None:
        with self._lock:
            self.writes += 1
            if self.write_error is not None:
                raise exceptions.StoreWriteFailed(f"Could not write field [{field}] of [{key}]", self.write_error)
            self.data[key][field] = value

    def get_all(self, key: str) -> dict[str, str]:
        with self._lock:
            self.reads += 1
            if self.read_error is not None:
                raise exceptions.StoreReadFailed(f"Could not read [{key}]", self.read_error)
            return dict(self.data.get(key, {}))

    def close(self) -> None:
        self.closed = True
