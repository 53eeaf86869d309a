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

import ctypes
import pytest

# Linux i2c-dev read flag.
I2C_M_RD = 0x0001


class FakeBus:
    """
    Stands for an smbus2.SMBus. Read messages are filled from `responses`,
    an item being either bytes or an exception to be raised.
    """

    def __init__(self, responses=(), write_error=None):
        self.responses = list(responses)
        self.write_error = write_error
        self.messages = []
        self.closed = False

    def i2c_rdwr(self, *msgs):
        for msg in msgs:
            if msg.flags & I2C_M_RD:
                self.messages.append((msg.addr, msg.flags, msg.len))
                response = self.responses.pop(0)
                if isinstance(response, Exception):
                    raise response
                ctypes.memmove(msg.buf, response, msg.len)
            else:
                self.messages.append((msg.addr, msg.flags, bytes(msg)))
                if self.write_error is not None:
                    raise self.write_error

    def close(self):
        self.closed = True


class FakeSerial:
    """
    Stands for a serial.Serial. Each read returns the next item of `reads`,
    or nothing once exhausted. All calls are recorded in `calls`.
    """

    def __init__(self, reads=(), calls=None):
        self.reads = list(reads)
        self.calls = [] if calls is None else calls
        self.baudrate_error = None
        self.__baudrate = 230400
        self.is_open = True

    @property
    def baudrate(self):
        return self.__baudrate

    @baudrate.setter
    def baudrate(self, value):
        self.calls.append(("baudrate", value))
        if self.baudrate_error is not None:
            raise self.baudrate_error
        self.__baudrate = value

    def write(self, data):
        self.calls.append(("write", bytes(data)))
        return len(data)

    def read(self, size):
        self.calls.append(("read", size))
        if self.reads:
            return self.reads.pop(0)[:size]
        return b""

    def reset_input_buffer(self):
        self.calls.append(("reset_input_buffer",))

    def reset_output_buffer(self):
        self.calls.append(("reset_output_buffer",))

    def close(self):
        self.is_open = False


@pytest.fixture
def sleeps(monkeypatch):
    """Replaces all transport delays, recording them."""
    from atecc_transport import i2c, swi, transport

    recorded = []
    for module in (i2c, swi, transport):
        monkeypatch.setattr(module, "sleep", recorded.append)
    return recorded
