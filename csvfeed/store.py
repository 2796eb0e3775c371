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

import logging
from typing import Protocol, runtime_checkable

import redis
import redis.sentinel
from typing_extensions import Self

from csvfeed import exceptions, types
from csvfeed.config import FeedConfig
from csvfeed.utils import convert

LOG = logging.getLogger(__name__)


@runtime_checkable
class CoordinationStore(Protocol):
    """Minimal hash based key-value contract the feed needs from the coordination store.

    Every operation is idempotent and last-write-wins. Implementations are shared by every thread of the process and
    have to be thread safe.
    """

    def get_field(self, key: str, field: str) -> str | None:
        """It returns the value of `field` in the hash stored at `key`, or None if any of them is missing.

        :raise StoreReadFailed: when the store does not answer.
        """

    def set_field(self, key: str, field: str, value: str) -> None:
        """It sets `field` in the hash stored at `key` to `value`, overwriting any previous value.

        :raise StoreWriteFailed: when the store does not answer.
        """

    def get_all(self, key: str) -> dict[str, str]:
        """It returns every field of the hash stored at `key`.

        :raise StoreReadFailed: when the store does not answer.
        """

    def close(self) -> None:
        """It releases the connections held by this store."""


def parse_sentinel_nodes(value: str) -> list[tuple[str, int]]:
    """It parses a list of sentinel addresses in the form 'host1:port1,host2:port2'."""
    nodes = []
    for node in convert.to_strings(value):
        host, sep, port = node.rpartition(":")
        if not sep or not host:
            raise exceptions.ConfigError(f"Invalid sentinel node [{node}], expected host:port")
        try:
            nodes.append((host, int(port)))
        except ValueError:
            raise exceptions.ConfigError(f"Invalid port in sentinel node [{node}]") from None
    if not nodes:
        raise exceptions.ConfigError(f"No sentinel nodes in [{value}]")
    return nodes


def _masked(password: str | None) -> str:
    return "*****" if password else "None"


class RedisStore:
    """It implements the coordination store contract on top of a Redis server, either standalone or behind sentinels."""

    @classmethod
    def from_config(cls, cfg: types.Config | None = None) -> Self:
        """It connects to Redis using the store parameters found in given configuration.

        The connection is verified before returning.

        :raise ConnectionInitFailed: when the server can't be reached.
        """
        cfg = FeedConfig.from_config(cfg)
        LOG.info(
            "Connecting to coordination store: host=%s, port=%s, sentinel_nodes=%s, sentinel_master=%s, password=%s, "
            "max_idle=%d, max_total=%d, timeout=%.1fs",
            cfg.store_host,
            cfg.store_port,
            cfg.sentinel_nodes,
            cfg.sentinel_master,
            _masked(cfg.password),
            cfg.max_idle,
            cfg.max_total,
            cfg.timeout,
        )
        try:
            if cfg.sentinel_nodes and cfg.sentinel_master:
                sentinel = redis.sentinel.Sentinel(
                    parse_sentinel_nodes(cfg.sentinel_nodes),
                    socket_timeout=cfg.timeout,
                    socket_connect_timeout=cfg.timeout,
                )
                client = sentinel.master_for(
                    cfg.sentinel_master,
                    password=cfg.password,
                    socket_timeout=cfg.timeout,
                    socket_connect_timeout=cfg.timeout,
                    max_connections=cfg.max_total,
                    decode_responses=True,
                )
            else:
                pool = redis.BlockingConnectionPool(
                    host=cfg.store_host,
                    port=cfg.store_port,
                    password=cfg.password,
                    max_connections=cfg.max_total,
                    timeout=cfg.timeout,
                    socket_timeout=cfg.timeout,
                    socket_connect_timeout=cfg.timeout,
                    decode_responses=True,
                )
                client = redis.Redis(connection_pool=pool)
            client.ping()
        except (redis.exceptions.RedisError, OSError) as ex:
            raise exceptions.ConnectionInitFailed(
                f"Could not connect to coordination store at host=[{cfg.store_host}], port=[{cfg.store_port}], "
                f"sentinel_nodes=[{cfg.sentinel_nodes}], sentinel_master=[{cfg.sentinel_master}]",
                ex,
            ) from ex
        LOG.info("Coordination store connected.")
        return cls(client)

    def __init__(self, client: redis.Redis):
        self._client = client

    def get_field(self, key: str, field: str) -> str | None:
        try:
            return self._client.hget(key, field)
        except (redis.exceptions.RedisError, OSError) as ex:
            raise exceptions.StoreReadFailed(f"Could not read field [{field}] of [{key}]", ex) from ex

    def set_field(self, key: str, field: str, value: str) -> None:
        try:
            self._client.hset(key, field, value)
        except (redis.exceptions.RedisError, OSError) as ex:
            raise exceptions.StoreWriteFailed(f"Could not write field [{field}] of [{key}]", ex) from ex

    def get_all(self, key: str) -> dict[str, str]:
        try:
            return self._client.hgetall(key)
        except (redis.exceptions.RedisError, OSError) as ex:
            raise exceptions.StoreReadFailed(f"Could not read [{key}]", ex) from ex

    def close(self) -> None:
        self._client.close()
        self._client.connection_pool.disconnect()
