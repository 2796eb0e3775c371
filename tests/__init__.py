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
import json
import os

from csvfeed import ranges


def write_file(directory, name, lines, encoding="utf-8"):
    """
    Writes one line per item (each terminated by a newline) to a file in the given directory.

    :return: The path of the written file.
    """
    path = os.path.join(directory, name)
    with open(path, "w", encoding=encoding, newline="") as f:
        for line in lines:
            f.write(f"{line}\n")
    return path


def descriptor(**file_ranges):
    """
    Builds a run descriptor assigning the given (start, end) tuples to file names, e.g. ``descriptor(**{"data.csv": (0, 10)})``.
    """
    return json.dumps({name: {"start": start, "end": end} for name, (start, end) in file_ranges.items()})


def store_data(run, raw_descriptor):
    """
    :return: The store content holding the run descriptor of `run`.
    """
    return {run.master_key: {ranges.DESCRIPTOR_FIELD: raw_descriptor}}
