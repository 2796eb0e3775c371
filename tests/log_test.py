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
import os
import time
from typing import Any

import pytest

from csvfeed import log


@pytest.fixture
def template() -> dict[str, Any]:
    with open(log.TEMPLATE_PATH) as fd:
        return json.load(fd)


@pytest.fixture
def config(tmpdir, template: dict[str, Any]) -> dict[str, Any]:
    config = copy.deepcopy(template)
    # change existing to differ from source template, showing that we don't overwrite any existing loggers config
    config["loggers"]["csvfeed.checkpoint"]["level"] = "DEBUG"
    # simulate user missing 'redis' in logging.json
    del config["loggers"]["redis"]
    del config["disable_existing_loggers"]
    return config


@pytest.fixture
def config_path(tmpdir, config: dict[str, Any]) -> str:
    path = os.path.join(tmpdir, "config.json")
    with open(path, "w") as fd:
        json.dump(config, fd)
    return path


def test_update_logger_config(template: dict[str, Any], config: dict[str, Any], config_path: str) -> None:
    log.update_logger_config(config_path=config_path)

    with open(config_path) as fd:
        got = json.load(fd)

    want = copy.deepcopy(config)
    want["loggers"].update((k, v) for k, v in template["loggers"].items() if k not in config["loggers"])

    assert got["loggers"] == want["loggers"]
    assert got["loggers"]["csvfeed.checkpoint"]["level"] == "DEBUG"
    assert got["disable_existing_loggers"] is False


def test_update_logger_config_unchanged(template: dict[str, Any], tmpdir) -> None:
    path = os.path.join(tmpdir, "config.json")
    with open(path, "w") as fd:
        json.dump(template, fd)
    mtime = os.path.getmtime(path)

    log.update_logger_config(config_path=path)

    assert os.path.getmtime(path) == mtime


def test_install_default_log_config(tmpdir, monkeypatch) -> None:
    monkeypatch.setenv("CSVFEED_HOME", str(tmpdir))

    log.install_default_log_config()

    assert os.path.isfile(os.path.join(tmpdir, ".csvfeed", "logging.json"))
    assert os.path.isdir(os.path.join(tmpdir, ".csvfeed", "logs"))
    assert log.load_configuration()["root"]["level"] == "INFO"


def test_configure_file_handler(tmpdir, monkeypatch) -> None:
    monkeypatch.setenv("CSVFEED_HOME", str(tmpdir))
    os.makedirs(log.logs())

    handler = log.configure_file_handler(filename="${LOG_PATH}/csvfeed.log", delay=True)
    try:
        assert handler.baseFilename == os.path.join(tmpdir, ".csvfeed", "logs", "csvfeed.log")
    finally:
        handler.close()


LOG_FORMAT = "%(asctime)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def test_configure_formatter_utc():
    formatter = log.configure_utc_formatter(format=LOG_FORMAT, datefmt=DATE_FORMAT)
    assert formatter.converter is time.gmtime


def test_configure_formatter_localtime():
    formatter = log.configure_utc_formatter(format=LOG_FORMAT, datefmt=DATE_FORMAT, timezone="localtime")
    assert formatter.converter is time.localtime


def test_add_run_fields():
    log_dict: dict[str, Any] = {}
    log.add_run_fields(None, log_dict, environ={"SCENE_ID": "42", "POD_NUMBER": "2"})
    assert log_dict == {"csvfeed": {"scene_id": "42", "pod_number": "2"}}

    log_dict = {}
    log.add_run_fields(None, log_dict, environ={})
    assert log_dict == {}


def test_ecs_formatter_applies_mutators():
    def add_label(record, log_dict):
        log_dict["labels"] = {"logger": record.name}

    formatter = log.configure_ecs_formatter(mutators=[add_label])
    record = logging.LogRecord("csvfeed.registry", logging.INFO, __file__, 1, "reserved %s", ("data.csv",), None)

    doc = json.loads(formatter.format(record))

    assert doc["message"] == "reserved data.csv"
    assert doc["labels"] == {"logger": "csvfeed.registry"}
