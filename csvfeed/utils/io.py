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

# pylint: disable=consider-using-with

import os


class PositionFileSource:
    """
    PositionFileSource is a wrapper around a plain file opened in binary mode which keeps track of the byte offset of its
    read cursor. The offset only advances by the length of the lines actually handed out, so it never depends on how much
    the underlying buffered reader has prefetched.
    """

    def __init__(self, file_name, mode="rb"):
        self.file_name = file_name
        self.mode = mode
        self.f = None
        self.offset = 0

    def open(self):
        self.f = open(self.file_name, mode=self.mode)
        self.offset = 0
        # allow for chaining
        return self

    @property
    def opened(self):
        return self.f is not None

    def seek(self, offset):
        self.f.seek(offset)
        self.offset = offset

    def readline(self):
        line = self.f.readline()
        self.offset += len(line)
        return line

    def size(self):
        """
        :return: The current size in bytes of the underlying file.
        """
        return os.fstat(self.f.fileno()).st_size

    def close(self):
        self.f.close()
        self.f = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __str__(self, *args, **kwargs):
        return self.file_name


def ensure_dir(directory, mode=0o777):
    """
    Ensure that the provided directory and all of its parent directories exist.
    This function is safe to execute on existing directories (no op).

    :param directory: The directory to create (if it does not exist).
    :param mode: The permission flags to use (if it does not exist).
    """
    if directory:
        os.makedirs(directory, mode, exist_ok=True)


def exists(path):
    return os.path.exists(path)


def dirname(path):
    return os.path.dirname(path)


def basename(path):
    """
    :return: The last path component, accepting both '/' and '\\' as separators so names are stable across platforms.
    """
    return path.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]


def normalize_path(path, cwd="."):
    """
    Normalizes a path by removing redundant "../" and also expanding the "~" character to the user home directory.
    :param path: A possibly non-normalized path.
    :param cwd: The current working directory. "." by default.
    :return: A normalized path.
    """
    normalized = os.path.normpath(os.path.expanduser(path))
    # user specified only a file name? -> treat as relative to the current directory
    if dirname(normalized) == "":
        return os.path.join(cwd, normalized)
    else:
        return normalized
