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
import enum

from typing_extensions import Self

from csvfeed.context import ThreadContext
from csvfeed.utils import io


@dataclasses.dataclass(frozen=True)
class FileIdentity:
    """A shared input file. `path` locates it on disk, `name` is its directory independent base name used in store keys."""

    path: str

    @classmethod
    def from_filename(cls, filename: str) -> Self:
        filename = filename.strip()
        if not filename:
            raise ValueError("file name can't be blank")
        return cls(path=filename)

    @property
    def name(self) -> str:
        return io.basename(self.path)

    def __str__(self) -> str:
        return self.path


class ShareKind(enum.Enum):
    ALL = "all"
    GROUP = "group"
    THREAD = "thread"
    CUSTOM = "custom"


# Values stored by older test plans, kept readable
_LEGACY_TAGS = {
    "shareMode.all": ShareKind.ALL,
    "shareMode.group": ShareKind.GROUP,
    "shareMode.thread": ShareKind.THREAD,
}


@dataclasses.dataclass(frozen=True)
class ShareMode:
    """ShareMode decides which logical readers collapse onto the same file cursor."""

    kind: ShareKind
    tag: str | None = None

    def __post_init__(self):
        if self.kind == ShareKind.CUSTOM:
            if not self.tag:
                raise ValueError("custom share mode requires a tag")
        elif self.tag is not None:
            raise ValueError(f"share mode {self.kind.value} does not accept a tag")

    @classmethod
    def all(cls) -> Self:
        return cls(ShareKind.ALL)

    @classmethod
    def group(cls) -> Self:
        return cls(ShareKind.GROUP)

    @classmethod
    def thread(cls) -> Self:
        return cls(ShareKind.THREAD)

    @classmethod
    def custom(cls, tag: str) -> Self:
        return cls(ShareKind.CUSTOM, tag)

    @classmethod
    def parse(cls, value: str | None) -> Self:
        """It parses a configured share mode. Blank means all, unknown values are custom tags."""
        if value is None or not value.strip():
            return cls.all()
        value = value.strip()
        kind = _LEGACY_TAGS.get(value)
        if kind is None:
            try:
                kind = ShareKind(value.lower())
            except ValueError:
                return cls.custom(value)
            if kind == ShareKind.CUSTOM:
                return cls.custom(value)
        return cls(kind)

    def __str__(self) -> str:
        if self.kind == ShareKind.CUSTOM:
            return f"custom({self.tag})"
        return self.kind.value


def resolve_alias(identity: FileIdentity, mode: ShareMode, ctx: ThreadContext) -> str:
    """It computes the key under which the cursor of `identity` is shared.

    All readers of the run share the bare file path; otherwise the path gets a suffix naming the thread group
    instance, the single thread or the user tag. It is a pure function of its arguments.
    """
    if mode.kind == ShareKind.ALL:
        return identity.path
    if mode.kind == ShareKind.GROUP:
        return f"{identity.path}@{ctx.group_id}"
    if mode.kind == ShareKind.THREAD:
        return f"{identity.path}@{ctx.thread_id}"
    return f"{identity.path}@{mode.tag}"
