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
import csv
import logging
from collections.abc import Callable

LOG = logging.getLogger(__name__)

LineParser = Callable[[str], list[str]]


def normalize_delimiter(delimiter):
    """
    :param delimiter: The configured delimiter. The two characters ``\\t`` stand for a tab, blank means a comma.
    :return: The single character delimiter to split lines with.
    """
    if delimiter == "\\t":
        return "\t"
    if not delimiter:
        LOG.debug("Empty delimiter, will use ','")
        return ","
    return delimiter


def split_line(line, delimiter):
    """
    Splits a line on every occurrence of the delimiter, keeping empty fields.
    """
    return line.rstrip("\r\n").split(delimiter)


def parse_quoted_line(line, delimiter):
    """
    Splits a line honouring double quoted fields. Quoted fields may contain the delimiter and escaped ("") quotes, but
    they can't span several lines.
    """
    line = line.rstrip("\r\n")
    if not line:
        return [""]
    return next(csv.reader([line], delimiter=delimiter[0], quotechar='"', doublequote=True, strict=False))


def line_parser(delimiter, quoted) -> LineParser:
    if quoted:
        return lambda line: parse_quoted_line(line, delimiter)
    return lambda line: split_line(line, delimiter)
