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

import atexit
import logging
import sys
import threading
from collections.abc import Callable

from typing_extensions import Self

from csvfeed import exceptions, types
from csvfeed.checkpoint import CheckpointScheduler
from csvfeed.config import FeedConfig
from csvfeed.context import RunContext
from csvfeed.ranges import RangeResolver
from csvfeed.registry import PositionRegistry
from csvfeed.store import CoordinationStore, RedisStore

LOG = logging.getLogger(__name__)

StoreFactory = Callable[[FeedConfig], CoordinationStore]


class FeedServer:
    """It holds the components shared by every reader of the process, all wired to the same coordination store."""

    @classmethod
    def from_config(cls, cfg: types.Config | None = None, store_factory: StoreFactory | None = None) -> Self:
        """
        :raise ConnectionInitFailed: when the coordination store can't be reached.
        """
        cfg = FeedConfig.from_config(cfg)
        store = (store_factory or RedisStore.from_config)(cfg)
        run = RunContext.from_config(cfg)
        registry = PositionRegistry()
        resolver = RangeResolver(store, run)
        scheduler = CheckpointScheduler(store, resolver, registry, run, interval=cfg.checkpoint_interval)
        return cls(cfg=cfg, store=store, run=run, resolver=resolver, registry=registry, scheduler=scheduler)

    def __init__(
        self,
        cfg: FeedConfig,
        store: CoordinationStore,
        run: RunContext,
        resolver: RangeResolver,
        registry: PositionRegistry,
        scheduler: CheckpointScheduler,
    ):
        self.cfg = cfg
        self.store = store
        self.run = run
        self.resolver = resolver
        self.registry = registry
        self.scheduler = scheduler

    def shutdown(self) -> None:
        LOG.debug("Shutting down feed server...")
        self.scheduler.shutdown()
        self.registry.close_all()
        self.store.close()
        LOG.debug("Feed server shut down.")


def load_default_config() -> FeedConfig:
    """It reads the configuration file, if any, and then the environment."""
    cfg = FeedConfig()
    try:
        cfg.load_file()
    except FileNotFoundError:
        LOG.info("No configuration file found, using default configuration")
    cfg.load_environ()
    return cfg


_LOCK = threading.Lock()
_SERVER: FeedServer | None = None


def init_feed_server(
    *, cfg: types.Config | None = None, store_factory: StoreFactory | None = None, shutdown_at_exit: bool = True
) -> FeedServer:
    """
    It creates the process wide feed server the first time it is called and returns it afterwards.

    :raise ConnectionInitFailed: when the coordination store can't be reached.
    """
    global _SERVER
    with _LOCK:
        if _SERVER is not None:
            return _SERVER
        if cfg is None:
            cfg = load_default_config()
        server = FeedServer.from_config(cfg, store_factory=store_factory)
        _SERVER = server
    if shutdown_at_exit:
        atexit.register(shutdown_feed_server)
    return server


def ensure_feed_server(*, cfg: types.Config | None = None, store_factory: StoreFactory | None = None) -> FeedServer:
    """
    Like `init_feed_server`, but the process exits when the coordination store can't be reached: the run can't be
    coordinated without it.
    """
    try:
        return init_feed_server(cfg=cfg, store_factory=store_factory)
    except exceptions.ConnectionInitFailed as ex:
        LOG.critical("Coordination store is unavailable, terminating: %s", ex.full_message)
        sys.exit(1)


def get_feed_server() -> FeedServer:
    with _LOCK:
        server = _SERVER
    if server is None:
        raise RuntimeError("Feed server not initialized.")
    return server


def shutdown_feed_server() -> None:
    global _SERVER
    with _LOCK:
        server, _SERVER = _SERVER, None
    if server is not None:
        server.shutdown()
