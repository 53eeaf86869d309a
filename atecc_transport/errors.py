# This file is part of atecc-transport
#
# atecc-transport is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.
#
#
# Copyright 2026 The atecc-transport authors

"""Exceptions raised by the transport layer."""

from typing import Optional


class TransportError(Exception):
    """Base class for all errors raised by the transport layer."""


class TimeoutError(TransportError):
    """
    Thrown when the device did not answer in time, or answered with a frame
    which cannot be a valid response.
    """

    def __init__(self, message: Optional[str] = None, data: Optional[bytes] = None):
        """
        :param message: Optional description of what timed out.
        :param data: The data received until timeout, if any.
        """
        super().__init__(message)
        self.message = message
        self.data = data

    def __str__(self):
        result = self.message or "Device timeout"
        if self.data is not None:
            if len(self.data):
                return f"{result}: partially received {len(self.data)} bytes {self.data.hex()}."
            return f"{result}: no data received."
        return result + "."


class BusError(TransportError):
    """
    Thrown when the bus or serial port failed, or could not be opened. The
    OS or serial exception is chained as the cause.
    """

    def __init__(self, message: str):
        super().__init__(message)
