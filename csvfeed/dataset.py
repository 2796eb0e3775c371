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

from csvfeed import exceptions, parsing, server, types
from csvfeed.context import ThreadContext
from csvfeed.server import StoreFactory
from csvfeed.share import FileIdentity, ShareMode, resolve_alias

LOG = logging.getLogger(__name__)


class CSVDataSet:
    """
    Reads lines from a delimited file and assigns their fields to the variables of the calling thread.

    By default, the same file cursor is shared between all threads of the run. `share_mode` restricts sharing to the
    current thread group, to the current thread or to all the readers configured with the same custom tag.

    Like any per-thread test element, an instance is meant to be used by a single logical reader: the variable names and
    the alias are resolved on the first iteration and kept afterwards.
    """

    def __init__(
        self,
        filename: str,
        *,
        name: str = "CSV Data Set Config",
        file_encoding: str = "utf-8",
        variable_names: str = "",
        delimiter: str = ",",
        quoted_data: bool = False,
        recycle: bool = True,
        stop_thread: bool = False,
        share_mode: str | ShareMode | None = None,
        ignore_first_line: bool = False,
        cfg: types.Config | None = None,
        store_factory: StoreFactory | None = None,
    ):
        self.identity = FileIdentity.from_filename(filename)
        self.name = name
        self.file_encoding = file_encoding or "utf-8"
        self.variable_names = variable_names
        self.delimiter = parsing.normalize_delimiter(delimiter)
        self.quoted_data = quoted_data
        self.recycle = recycle
        self.stop_thread = stop_thread
        self.share_mode = share_mode if isinstance(share_mode, ShareMode) else ShareMode.parse(share_mode)
        self.ignore_first_line = ignore_first_line
        self.cfg = cfg
        self.store_factory = store_factory
        self.alias: str | None = None
        self.vars: list[str] | None = None
        self._feed: server.FeedServer | None = None
        self._checkpointed = False

    def iteration_start(self, ctx: ThreadContext) -> list[str]:
        """
        Reads the next row and stores its fields into ``ctx.variables``.

        :param ctx: The context of the calling thread.
        :return: The values read, an empty list at the end of the input.
        :raise EndOfInput: at the end of the input when configured to stop the thread.
        :raise FileOpenFailed: when the file can't be opened on the first iteration.
        """
        if self.vars is None:
            self._init_vars(ctx)
        feed = self._feed

        try:
            values = feed.registry.next_row(self.alias)
        except OSError as ex:
            # treat the same as EOF
            LOG.error("Could not read from [%s]: %s", self.identity, ex)
            values = []
        for name, value in zip(self.vars, values):
            ctx.variables[name] = value

        if not self._checkpointed:
            feed.scheduler.start(self.identity, self.alias)
            self._checkpointed = True

        if not values:
            if self.stop_thread:
                raise exceptions.EndOfInput(self.identity.path, self.name, self.recycle, self.stop_thread)
            for name in self.vars:
                ctx.variables[name] = feed.cfg.eof_string
        return values

    def _init_vars(self, ctx: ThreadContext) -> None:
        feed = self._feed = server.ensure_feed_server(cfg=self.cfg, store_factory=self.store_factory)
        self.alias = resolve_alias(self.identity, self.share_mode, ctx)
        try:
            byte_range = feed.resolver.resolve(self.identity)
        except exceptions.RangeUnavailable as ex:
            LOG.warning("Reading [%s] without range: %s", self.identity, ex.full_message)
            byte_range = None

        parser = parsing.line_parser(self.delimiter, self.quoted_data)
        names = self.variable_names.strip() if self.variable_names else ""
        if not names:
            header = feed.registry.reserve(
                self.alias,
                self.identity.path,
                byte_range,
                encoding=self.file_encoding,
                parser=parser,
                read_header=True,
                recycle=self.recycle,
            )
            if header is None:
                raise exceptions.FileOpenFailed(f"Alias [{self.alias}] of [{self.identity}] has been reserved without header line")
            variables = header
        else:
            feed.registry.reserve(
                self.alias,
                self.identity.path,
                byte_range,
                encoding=self.file_encoding,
                parser=parser,
                skip_first_line=self.ignore_first_line,
                recycle=self.recycle,
            )
            variables = names.split(",")
        self.vars = [v.strip() for v in variables]
        LOG.debug("Reader [%s] reads [%s] through alias [%s] into %s.", self.name, self.identity, self.alias, self.vars)
