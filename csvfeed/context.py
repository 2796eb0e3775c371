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
import threading

from typing_extensions import Self

from csvfeed import types
from csvfeed.config import FeedConfig


@dataclasses.dataclass(frozen=True)
class RunContext:
    """Identifiers of the load test run, known to the process before any file is opened."""

    scene_id: str | None = None
    report_id: str | None = None
    customer_id: str | None = None
    pod_number: str = FeedConfig.DEFAULT_POD_NUMBER

    @classmethod
    def from_config(cls, cfg: types.Config | None = None) -> Self:
        cfg = FeedConfig.from_config(cfg)
        return cls(
            scene_id=cfg.scene_id,
            report_id=cfg.report_id,
            customer_id=cfg.customer_id,
            pod_number=cfg.pod_number,
        )

    @property
    def master_key(self) -> str:
        """It returns the key of the hash where the controller stores the variables of this run."""
        return f"PRESSURE:ENGINE:INSTANCE:{self.scene_id}:{self.report_id}:{self.customer_id}"

    @property
    def checkpoint_key(self) -> str:
        return f"CSV_READ_POSITION_{self.scene_id}"

    def checkpoint_field(self, file_name: str) -> str:
        return f"{file_name}_pod_num_{self.pod_number}"


def _current_thread_id() -> str:
    return str(threading.get_ident())


@dataclasses.dataclass
class ThreadContext:
    """What a logical reader knows about the worker thread executing it.

    `group_id` identifies the thread group instance, `thread_id` the single worker thread. `variables` receives the
    values of every row read by the thread.
    """

    group_id: str = "default"
    thread_id: str = dataclasses.field(default_factory=_current_thread_id)
    variables: dict[str, str] = dataclasses.field(default_factory=dict)
