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
from collections.abc import Callable


class ContinuousTimer(threading.Thread):
    """It calls a function every specified number of seconds:

        t = ContinuousTimer(30.0, f)
        t.start()
        t.cancel()     # stop the timer's action if it's still waiting

    This implementation is inspired by threading.Timer but with following differences:
        - the thread is daemonic by default, so it will not block the process to terminate.
        - the function is called periodically until the timer is cancelled.
        - the first call happens after one interval, not immediately.
    """

    def __init__(self, interval: float, function: Callable[[], None], name: str | None = None, daemon: bool = True):
        super().__init__(name=name, daemon=daemon)
        if interval <= 0:
            raise ValueError(f"invalid interval: {interval} <= 0")
        self._interval = interval
        self._function = function
        self._finished = threading.Event()

    @property
    def interval(self) -> float:
        return self._interval

    def cancel(self):
        """Stop the timer if it hasn't finished yet."""
        self._finished.set()

    def run(self):
        """It executes the function every interval seconds until the timer is cancelled."""
        self._finished.wait(self._interval)
        while not self._finished.is_set():
            self._function()
            self._finished.wait(self._interval)

    def wait(self, timeout: float | None) -> bool:
        return self._finished.wait(timeout=timeout)
