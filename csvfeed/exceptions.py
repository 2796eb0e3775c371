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


class CsvFeedError(Exception):
    """
    Base class for all csvfeed exceptions
    """

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    @property
    def full_message(self):
        msg = str(self.message)
        nesting = 0
        current_exc = self
        while hasattr(current_exc, "cause") and current_exc.cause:
            nesting += 1
            current_exc = current_exc.cause
            if hasattr(current_exc, "message"):
                msg += "\n%s%s" % ("\t" * nesting, current_exc.message)
            else:
                msg += "\n%s%s" % ("\t" * nesting, str(current_exc))
        return msg


class ConfigError(CsvFeedError):
    pass


class DataError(CsvFeedError):
    """
    Thrown when something is wrong with the data read from the coordination store
    """


class RangeUnavailable(CsvFeedError):
    """
    Thrown when the byte range assigned to a file cannot be looked up because the coordination store failed to answer.
    """


class StoreError(CsvFeedError):
    """
    Base class for failures talking to the coordination store after the connection has been established.
    """


class StoreReadFailed(StoreError):
    """
    Thrown when a value cannot be read from the coordination store.
    """


class StoreWriteFailed(StoreError):
    """
    Thrown when a value cannot be written to the coordination store.
    """


class ConnectionInitFailed(CsvFeedError):
    """
    Thrown when the connection to the coordination store cannot be established at first use.
    """


class FileOpenFailed(CsvFeedError):
    """
    Thrown when an input file cannot be opened or positioned at reservation time.
    """


class NotReserved(CsvFeedError):
    """
    Thrown when rows are requested for an alias that has never been reserved.
    """


class EndOfInput(CsvFeedError):
    """
    Thrown when a reader configured to stop its thread reaches the end of its input.
    """

    def __init__(self, file_name, reader_name, recycle, stop_thread):
        super().__init__(
            f"End of file:{file_name} detected for CSV DataSet:{reader_name} configured with stopThread:{stop_thread}, recycle:{recycle}"
        )
        self.file_name = file_name
        self.reader_name = reader_name
        self.recycle = recycle
        self.stop_thread = stop_thread
