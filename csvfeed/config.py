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

import configparser
import logging
import os
from collections.abc import Mapping
from enum import Enum
from typing import NamedTuple, Optional, Union

from typing_extensions import Self

from csvfeed import exceptions, types
from csvfeed.types import Key, Section

LOG = logging.getLogger(__name__)


class Scope(Enum):
    # Valid for the whole process, typically read from the configuration file
    application = 1
    # Valid for the whole process, intended to allow overriding of values in the config file from the environment
    applicationOverride = 2
    # A single load test run
    run = 3


Value = Union[int, float, str, bool]


def value_to_string(value: Value):
    if isinstance(value, bool):
        return boolean_to_string(value)
    return str(value)


def boolean_to_string(value: bool):
    if value:
        return "true"
    else:
        return "false"


# Copied from configparser.py
_BOOLEAN_STATES = {"1": True, "yes": True, "true": True, "on": True, "0": False, "no": False, "false": False, "off": False}


def boolean_from_string(value: str) -> bool:
    value = value.strip().lower()
    ret = _BOOLEAN_STATES.get(value)
    if ret is None:
        raise ValueError(f"Can't get boolean value from string: '{value}'")
    return ret


def integer_from_string(value: str) -> int:
    return int(value.strip())


def csvfeed_confdir() -> str:
    default_home = os.path.expanduser("~")
    return os.path.join(os.getenv("CSVFEED_HOME", default_home), ".csvfeed")


# Environment variables (or process properties) understood by the load test engine, mapped to their configuration keys.
ENVIRON: dict[str, tuple[Section, Key]] = {
    "ENGINE_REDIS_ADDRESS": ("store", "store.host"),
    "ENGINE_REDIS_PORT": ("store", "store.port"),
    "ENGINE_REDIS_SENTINEL_NODES": ("store", "store.sentinel.nodes"),
    "ENGINE_REDIS_SENTINEL_MASTER": ("store", "store.sentinel.master"),
    "ENGINE_REDIS_PASSWORD": ("store", "store.password"),
    "SCENE_ID": ("run", "scene.id"),
    "REPORT_ID": ("run", "report.id"),
    "CUSTOMER_ID": ("run", "customer.id"),
    "POD_NUMBER": ("run", "pod.number"),
    "CSVFEED_CHECKPOINT_INTERVAL": ("feed", "checkpoint.interval"),
    "CSVFEED_EOF_STRING": ("feed", "eof.string"),
}


class _ConfigKey(NamedTuple):
    scope: Scope
    section: Section
    key: Key


class Config:
    """
    Config is the main entry point to retrieve and set feed properties. It provides multiple scopes to allow overriding of values on
    different levels (e.g. an environment variable can override the same configuration property in the config file). These levels are
    transparently resolved when a property is retrieved and the value on the most specific level is returned.
    """

    def __init__(self, config_name=None):
        self.name = config_name
        self._opts: dict[_ConfigKey, str] = {}

    @classmethod
    def from_config(cls, cfg: types.Config | None = None) -> Self:
        """It returns `cfg` when it is already an instance of this class, otherwise a copy of it."""
        if isinstance(cfg, cls):
            return cfg
        new = cls()
        if cfg is not None:
            for section in cfg.all_sections():
                new.add_all(cfg, section)
        return new

    def add(self, scope: Optional[Scope], section: Section, key: Key, value: Value):
        """
        Adds or overrides a new configuration property.

        :param scope: The scope of this property. More specific scopes (higher values) override more generic ones (lower values).
        :param section: The configuration section.
        :param key: The configuration key within this section. Same keys in different sections will not collide.
        :param value: The associated value.
        """
        self._opts[self._key(scope, section, key)] = value_to_string(value)

    def add_all(self, source: types.Config, section: Section):
        """
        Adds all config items within the given `section` from the `source` config object.

        :param source: The source config object.
        :param section: A section in the source config object. Ignored if it does not exist.
        """
        # pylint: disable=protected-access
        if isinstance(source, Config):
            for k, v in source._opts.items():
                scope, source_section, key = k
                if source_section == section:
                    self.add(scope, source_section, key, v)
        else:
            for key, v in source.all_opts(section).items():
                self.add(Scope.application, section, key, v)

    def opts(self, section: Section, key: Key, default_value: Optional[Value] = None, mandatory=True) -> Optional[str]:
        """
        Resolves a configuration property.

        :param section: The configuration section.
        :param key: The configuration key.
        :param default_value: The default value to use for optional properties as a fallback. Default: None
        :param mandatory: Whether a value is expected to exist for the given section and key. Note that the default_value is ignored for
        mandatory properties. It must be ensured that a value exists. Default: True
        :return: The associated value.
        """
        if mandatory and default_value is not None:
            raise exceptions.ConfigError("Can't specify a default value when the option is mandatory")
        default_string: Optional[str] = None
        if default_value is not None:
            default_string = value_to_string(default_value)

        scope = self._resolve_scope(section, key)
        value = self._opts.get(self._key(scope, section, key), default_string)
        if value is None and mandatory:
            raise exceptions.ConfigError(f"No value for mandatory configuration: section='{section}', key='{key}'")
        return value

    def string(self, section: Section, key: Key, default: Optional[str] = None) -> str:
        ret = self.opts(section=section, key=key, default_value=default, mandatory=default is None)
        if ret is None:
            raise exceptions.ConfigError(f"No value for mandatory string: section='{section}', key='{key}'")
        return ret

    def boolean(self, section: Section, key: Key, default: Optional[bool] = None) -> bool:
        default_string: Optional[str] = None
        if default is not None:
            default_string = boolean_to_string(default)
        value_string = self.string(section, key, default_string).strip()
        try:
            return boolean_from_string(value_string)
        except ValueError:
            raise exceptions.ConfigError(f"Can't parse boolean value of '{value_string}': section='{section}', key='{key}'") from None

    def integer(self, section: Section, key: Key, default: Optional[int] = None) -> int:
        default_string: Optional[str] = None
        if default is not None:
            default_string = str(default)
        value_string = self.string(section, key, default_string).strip()
        try:
            return integer_from_string(value_string)
        except ValueError:
            raise exceptions.ConfigError(f"Can't parse integer value of '{value_string}': section='{section}', key='{key}'") from None

    def all_sections(self) -> list[Section]:
        return sorted({k.section for k in self._opts})

    def all_opts(self, section: Section) -> dict[Key, str]:
        """
        Finds all options in a section and returns them in a dict.

        :param section: The configuration section.
        :return: A dict of matching key-value pairs. If the section is not found or no keys are in this section, an empty dict is returned.
        """
        opts_in_section: dict[Key, str] = {}
        scopes_per_key: dict[Key, Scope] = {}
        for k, v in self._opts.items():
            scope, source_section, key = k
            if source_section == section:
                existing_scope = scopes_per_key.get(key)
                if existing_scope is None or existing_scope.value < scope.value:
                    opts_in_section[key] = v
                    scopes_per_key[key] = scope
        return opts_in_section

    def exists(self, section: Section, key: Key) -> bool:
        """
        :param section: The configuration section.
        :param key: The configuration key.
        :return: True iff a value for the specified key exists in the specified configuration section.
        """
        return self.opts(section, key, mandatory=False) is not None

    def load_file(self, path: str | None = None) -> None:
        """
        Loads an INI file into the application scope. By default it reads ``~/.csvfeed/csvfeed.ini``.

        :raise FileNotFoundError: if the file does not exist.
        """
        if path is None:
            path = os.path.join(csvfeed_confdir(), "csvfeed.ini")
        parser = configparser.ConfigParser()
        with open(path, encoding="utf-8") as src:
            parser.read_file(src, source=path)
        for section in parser.sections():
            for key in parser[section]:
                self.add(Scope.application, section, key, parser[section][key])
        LOG.debug("Loaded configuration file [%s].", path)

    def load_environ(self, environ: Mapping[str, str] | None = None) -> None:
        """
        Copies the known environment variables into the application override scope. Blank values are ignored.
        """
        if environ is None:
            environ = os.environ
        for name, (section, key) in ENVIRON.items():
            value = environ.get(name)
            if value is not None and value.strip():
                self.add(Scope.applicationOverride, section, key, value.strip())

    # recursively find the most narrow scope for a key
    def _resolve_scope(self, section: Section, key: Key, start_from=Scope.run) -> Scope:
        for v in range(start_from.value, Scope.application.value, -1):
            scope = Scope(v)
            if self._key(scope, section, key) in self._opts:
                return scope
        return Scope.application

    def _key(self, scope: Optional[Scope], section: Section, key: Key) -> _ConfigKey:
        if scope is None:
            scope = Scope.application
        return _ConfigKey(scope, section, key)


class FeedConfig(Config):

    DEFAULT_STORE_HOST = "localhost"

    @property
    def store_host(self) -> str:
        return self.opts("store", "store.host", self.DEFAULT_STORE_HOST, False)

    @store_host.setter
    def store_host(self, value: str) -> None:
        self.add(Scope.applicationOverride, "store", "store.host", value)

    DEFAULT_STORE_PORT = 6379

    @property
    def store_port(self) -> int:
        return self.integer("store", "store.port", self.DEFAULT_STORE_PORT)

    @store_port.setter
    def store_port(self, value: int) -> None:
        self.add(Scope.applicationOverride, "store", "store.port", value)

    DEFAULT_SENTINEL_NODES = None

    @property
    def sentinel_nodes(self) -> str | None:
        return self.opts("store", "store.sentinel.nodes", self.DEFAULT_SENTINEL_NODES, False)

    @sentinel_nodes.setter
    def sentinel_nodes(self, value: str | None) -> None:
        self.add(Scope.applicationOverride, "store", "store.sentinel.nodes", value or "")

    DEFAULT_SENTINEL_MASTER = None

    @property
    def sentinel_master(self) -> str | None:
        return self.opts("store", "store.sentinel.master", self.DEFAULT_SENTINEL_MASTER, False)

    @sentinel_master.setter
    def sentinel_master(self, value: str | None) -> None:
        self.add(Scope.applicationOverride, "store", "store.sentinel.master", value or "")

    DEFAULT_PASSWORD = None

    @property
    def password(self) -> str | None:
        return self.opts("store", "store.password", self.DEFAULT_PASSWORD, False) or None

    @password.setter
    def password(self, value: str | None) -> None:
        self.add(Scope.applicationOverride, "store", "store.password", value or "")

    DEFAULT_MAX_IDLE = 4

    @property
    def max_idle(self) -> int:
        return self.integer("store", "store.max_idle", self.DEFAULT_MAX_IDLE)

    @max_idle.setter
    def max_idle(self, value: int) -> None:
        self.add(Scope.applicationOverride, "store", "store.max_idle", value)

    DEFAULT_MAX_TOTAL = 10

    @property
    def max_total(self) -> int:
        return self.integer("store", "store.max_total", self.DEFAULT_MAX_TOTAL)

    @max_total.setter
    def max_total(self, value: int) -> None:
        self.add(Scope.applicationOverride, "store", "store.max_total", value)

    DEFAULT_TIMEOUT = 3.0

    @property
    def timeout(self) -> float:
        return self._float("store", "store.timeout", self.DEFAULT_TIMEOUT)

    @timeout.setter
    def timeout(self, value: float) -> None:
        self.add(Scope.applicationOverride, "store", "store.timeout", value)

    DEFAULT_SCENE_ID = None

    @property
    def scene_id(self) -> str | None:
        return self.opts("run", "scene.id", self.DEFAULT_SCENE_ID, False)

    @scene_id.setter
    def scene_id(self, value: str | int) -> None:
        self.add(Scope.applicationOverride, "run", "scene.id", value)

    DEFAULT_REPORT_ID = None

    @property
    def report_id(self) -> str | None:
        return self.opts("run", "report.id", self.DEFAULT_REPORT_ID, False)

    @report_id.setter
    def report_id(self, value: str | int) -> None:
        self.add(Scope.applicationOverride, "run", "report.id", value)

    DEFAULT_CUSTOMER_ID = None

    @property
    def customer_id(self) -> str | None:
        return self.opts("run", "customer.id", self.DEFAULT_CUSTOMER_ID, False)

    @customer_id.setter
    def customer_id(self, value: str | int) -> None:
        self.add(Scope.applicationOverride, "run", "customer.id", value)

    DEFAULT_POD_NUMBER = "1"

    @property
    def pod_number(self) -> str:
        return self.opts("run", "pod.number", self.DEFAULT_POD_NUMBER, False) or self.DEFAULT_POD_NUMBER

    @pod_number.setter
    def pod_number(self, value: str | int) -> None:
        self.add(Scope.applicationOverride, "run", "pod.number", value)

    DEFAULT_CHECKPOINT_INTERVAL = 5.0

    @property
    def checkpoint_interval(self) -> float:
        return self._float("feed", "checkpoint.interval", self.DEFAULT_CHECKPOINT_INTERVAL)

    @checkpoint_interval.setter
    def checkpoint_interval(self, value: float) -> None:
        self.add(Scope.applicationOverride, "feed", "checkpoint.interval", value)

    DEFAULT_EOF_STRING = "<EOF>"

    @property
    def eof_string(self) -> str:
        return self.opts("feed", "eof.string", self.DEFAULT_EOF_STRING, False)

    @eof_string.setter
    def eof_string(self, value: str) -> None:
        self.add(Scope.applicationOverride, "feed", "eof.string", value)

    def _float(self, section: Section, key: Key, default: float) -> float:
        value_string = self.string(section, key, str(default)).strip()
        try:
            return float(value_string)
        except ValueError:
            raise exceptions.ConfigError(f"Can't parse float value of '{value_string}': section='{section}', key='{key}'") from None
