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

"""I2C transport through the Linux i2c-dev interface."""

import logging
from time import sleep
from typing import Optional
from smbus2 import SMBus, i2c_msg
from .constants import (
    DEFAULT_I2C_ADDRESS,
    I2C_M_NOSTART,
    I2C_NO_RESPONSE,
    RECV_RETRIES,
    RECV_RETRY_WAIT,
)
from .errors import BusError, TimeoutError

logger = logging.getLogger(__name__)


class I2CLink:
    """
    Byte transport to an ATECC on an I2C bus.

    Responses are length-prefixed: the first byte read is the total response
    size, including itself.
    """

    RECV_RETRIES = RECV_RETRIES
    RECV_RETRY_WAIT = RECV_RETRY_WAIT

    def __init__(
        self,
        bus: SMBus,
        address: int = DEFAULT_I2C_ADDRESS,
        recv_retries: Optional[int] = None,
        recv_retry_wait: Optional[float] = None,
    ):
        """
        :param bus: Opened I2C bus.
        :param address: 7-bit slave address of the device.
        :param recv_retries: Number of length probes before giving up. Default
            is RECV_RETRIES.
        :param recv_retry_wait: Delay in seconds between two length probes.
            Default is RECV_RETRY_WAIT.
        """
        if address not in range(0x80):
            raise ValueError(f"Invalid I2C address 0x{address:x}")
        self.__bus: Optional[SMBus] = bus
        self.address = address
        if recv_retries is not None:
            self.RECV_RETRIES = recv_retries
        if recv_retry_wait is not None:
            self.RECV_RETRY_WAIT = recv_retry_wait

    @classmethod
    def open(cls, path: str, address: int = DEFAULT_I2C_ADDRESS, **kwargs) -> "I2CLink":
        """
        Open an I2C bus device.

        :param path: Bus device path, for instance '/dev/i2c-1'.
        :param address: 7-bit slave address of the device.
        :raises BusError: if the bus device cannot be opened, or if the
            address is not a 7-bit address.
        """
        if address not in range(0x80):
            raise BusError(f"Invalid I2C address 0x{address:x}")
        try:
            bus = SMBus(path)
        except OSError as e:
            raise BusError(f"Failed to open I2C bus {path}") from e
        logger.debug("Opened I2C link on %s, address 0x%02x", path, address)
        return cls(bus, address, **kwargs)

    @property
    def bus(self) -> SMBus:
        """Underlying I2C bus. Read-only."""
        if self.__bus is None:
            raise BusError("I2C link is closed")
        return self.__bus

    def close(self):
        if self.__bus is not None:
            self.__bus.close()
            self.__bus = None

    def write(self, data: bytes, address: Optional[int] = None):
        """
        Write a buffer in a single I2C transaction.

        :param data: Bytes to be written.
        :param address: Slave address. Default is the device address.
        :raises BusError: if the transfer fails.
        """
        if address is None:
            address = self.address
        logger.debug("I2C tx 0x%02x: %s", address, bytes(data).hex())
        try:
            self.bus.i2c_rdwr(i2c_msg.write(address, bytes(data)))
        except OSError as e:
            raise BusError(f"I2C write to 0x{address:02x} failed") from e

    def read(self, buffer: bytearray) -> int:
        """
        Read a length-prefixed response.

        :param buffer: Replaced by the response, length byte included. On
            timeout it only holds the 0xFF no-response marker.
        :return: Response length.
        :raises TimeoutError: if no valid length byte could be read.
        :raises BusError: if reading the response body fails.
        """
        buffer[:] = bytes((I2C_NO_RESPONSE,))
        for attempt in range(self.RECV_RETRIES):
            if attempt:
                sleep(self.RECV_RETRY_WAIT)
            probe = i2c_msg.read(self.address, 1)
            try:
                self.bus.i2c_rdwr(probe)
            except OSError as e:
                logger.debug("Length probe %d failed: %s", attempt, e)
                continue
            buffer[0] = bytes(probe)[0]
            if buffer[0] != I2C_NO_RESPONSE:
                break
            logger.debug("Length probe %d: device busy", attempt)

        size = buffer[0]
        if size == I2C_NO_RESPONSE:
            raise TimeoutError(f"No response from I2C device 0x{self.address:02x}")
        if size == 0:
            raise TimeoutError("Invalid I2C response length 0")
        if size > 1:
            # Continue the transaction started by the length probe.
            body = i2c_msg.read(self.address, size - 1)
            body.flags |= I2C_M_NOSTART
            try:
                self.bus.i2c_rdwr(body)
            except OSError as e:
                raise BusError(f"I2C read from 0x{self.address:02x} failed") from e
            buffer += bytes(body)
        logger.debug("I2C rx 0x%02x: %s", self.address, bytes(buffer).hex())
        return size
