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

from typing import Any, Literal, Protocol, runtime_checkable

Section = Literal[
    "feed",
    "run",
    "store",
]
Key = Literal[
    "checkpoint.interval",
    "customer.id",
    "eof.string",
    "pod.number",
    "report.id",
    "scene.id",
    "store.host",
    "store.max_idle",
    "store.max_total",
    "store.password",
    "store.port",
    "store.sentinel.master",
    "store.sentinel.nodes",
    "store.timeout",
]


@runtime_checkable
class Config(Protocol):

    name: str | None = None

    def add(self, scope, section: Section, key: Key, value: Any) -> None: ...

    def add_all(self, source: Config, section: Section) -> None: ...

    def opts(self, section: Section, key: Key, default_value=None, mandatory: bool = True) -> Any: ...

    def all_sections(self) -> list[Section]: ...

    def all_opts(self, section: Section) -> dict: ...

    def exists(self, section: Section, key: Key) -> bool: ...
