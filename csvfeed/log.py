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
import copy
import json
import logging
import logging.config
import logging.handlers
import os
import time
from collections.abc import Callable
from typing import Any

import ecs_logging

from csvfeed import config
from csvfeed.utils import io

LOG = logging.getLogger(__name__)


# pylint: disable=unused-argument
def configure_utc_formatter(*args: Any, **kwargs: Any) -> logging.Formatter:
    """
    Logging formatter that renders timestamps UTC, or in the local system time zone when the user requests it.
    """
    formatter = logging.Formatter(fmt=kwargs["format"], datefmt=kwargs["datefmt"])
    user_tz = kwargs.get("timezone", None)
    if user_tz == "localtime":
        formatter.converter = time.localtime
    else:
        formatter.converter = time.gmtime

    return formatter


MutatorType = Callable[[logging.LogRecord, dict[str, Any]], None]


class FeedEcsFormatter(ecs_logging.StdlibFormatter):
    def __init__(
        self,
        *args: Any,
        mutators: list[MutatorType] | None = None,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.mutators = mutators or []

    def format_to_ecs(self, record: logging.LogRecord) -> dict[str, Any]:
        log_dict = super().format_to_ecs(record)
        self.apply_mutators(record, log_dict)
        return log_dict

    def apply_mutators(self, record: logging.LogRecord, log_dict: dict[str, Any]) -> None:
        for mutator in self.mutators:
            mutator(record, log_dict)


def add_run_fields(record: logging.LogRecord, log_dict: dict[str, Any], environ=os.environ) -> None:
    """It tags every document with the run identifiers so logs of many pods can be told apart once collected."""
    fields = {}
    if scene_id := environ.get("SCENE_ID"):
        fields["scene_id"] = scene_id
    if pod_number := environ.get("POD_NUMBER"):
        fields["pod_number"] = pod_number
    if fields:
        log_dict.setdefault("csvfeed", {}).update(fields)


def configure_ecs_formatter(*args: Any, **kwargs: Any) -> ecs_logging.StdlibFormatter:
    """
    ECS Logging formatter
    """
    fmt = kwargs.pop("format", None)
    configurator = logging.config.BaseConfigurator({})
    mutators = kwargs.pop("mutators", [add_run_fields])
    mutators = [fn if callable(fn) else configurator.resolve(fn) for fn in mutators]

    formatter = FeedEcsFormatter(fmt=fmt, mutators=mutators, *args, **kwargs)
    return formatter


def log_config_path():
    """
    :return: The absolute path to the log configuration file.
    """
    return os.path.join(config.csvfeed_confdir(), "logging.json")


def logs():
    """
    :return: The absolute path to the directory that contains the log file.
    """
    return os.path.join(config.csvfeed_confdir(), "logs")


TEMPLATE_PATH = io.normalize_path(os.path.join(os.path.dirname(__file__), "resources", "logging.json"))


def update_logger_config(
    *,
    config_path: str | None = None,
    template_path: str = TEMPLATE_PATH,
):
    """It appends any missing top level loggers found in resources/logging.json to current log configuration.

    It also ensures "disable_existing_loggers" is set to False by default.
    """
    if config_path is None:
        config_path = log_config_path()

    with open(template_path, encoding="UTF-8") as fd:
        template: dict[str, Any] = json.load(fd)

    with open(config_path, encoding="UTF-8") as fd:
        original: dict[str, Any] = json.load(fd)

    if original == template:
        return

    updated = copy.deepcopy(original)
    updated.setdefault("disable_existing_loggers", template.get("disable_existing_loggers", False))

    template_loggers: dict[str, Any] = template.get("loggers", {})
    config_loggers: dict[str, Any] = updated.setdefault("loggers", template_loggers)
    for name, logger in template_loggers.items():
        config_loggers.setdefault(name, logger)

    if original != updated:
        LOG.info("Update logging configuration file with new values from template: '%s' -> '%s'", template_path, config_path)
        with open(config_path, "w", encoding="UTF-8") as fd:
            json.dump(updated, fd, indent=2)


def install_default_log_config():
    """
    Ensures a log configuration file is present on this machine. The default
    log configuration is based on the template in resources/logging.json.

    It also ensures that the default log path has been created so log files
    can be successfully opened in that directory.
    """
    log_config: str = log_config_path()
    if not io.exists(log_config):
        io.ensure_dir(io.dirname(log_config))
        with open(log_config, "w", encoding="UTF-8") as target:
            with open(TEMPLATE_PATH, encoding="UTF-8") as src:
                target.write(src.read())
    update_logger_config()
    io.ensure_dir(logs())


# pylint: disable=unused-argument
def configure_file_handler(*, filename: str, encoding: str = "UTF-8", delay: bool = False, **kwargs: Any) -> logging.Handler:
    """
    Configures the WatchedFileHandler supporting expansion of `${LOG_PATH}` to the log path.
    """
    filename = filename.replace("${LOG_PATH}", logs())
    return logging.handlers.WatchedFileHandler(filename=filename, encoding=encoding, delay=delay, **kwargs)


def load_configuration() -> dict[str, Any]:
    """
    Loads the logging configuration. This is a low-level method and usually
    `configure_logging()` should be used instead.

    :return: The logging configuration as `dict` instance.
    """
    with open(log_config_path(), encoding="UTF-8") as f:
        return json.load(f)


def configure_logging() -> None:
    """
    Configures logging for the current process.
    """

    logging.config.dictConfig(load_configuration())

    # Route warnings (e.g. deprecations raised by the redis client) to the log files instead of stderr.
    logging.captureWarnings(True)
