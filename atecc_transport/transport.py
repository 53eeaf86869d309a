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

"""
Protocol independent access to an ATECC device.

Typical usage::

    with open_transport("/dev/i2c-1", 0x60) as transport:
        transport.wake()
        buffer = bytearray(command)
        transport.send_receive(5e-3, buffer)
        transport.sleep()
"""

import logging
from enum import Enum
from time import sleep
from typing import Optional, Union
from .constants import ATECCWordAddress, DEFAULT_I2C_ADDRESS, I2C_WAKE_ADDRESS
from .errors import BusError
from .i2c import I2CLink
from .swi import SWILink, encode

logger = logging.getLogger(__name__)

# Device paths containing this are serial ports, hence SWI.
SWI_PATH_MARKER = "/dev/tty"


class TransportProtocol(Enum):
    I2C = 1
    SWI = 2


class Transport:
    """
    Moves command and response buffers between the host and an ATECC device,
    over I2C or SWI.

    The transport does not check the order of operations: callers must wake
    the device before :meth:`send_receive`, and should put it back to sleep
    when done.
    """

    def __init__(
        self, link: Union[I2CLink, SWILink], address: Optional[int] = None
    ):
        """
        :param link: Opened I2C or SWI link. The transport takes ownership of
            it.
        :param address: I2C address of the device. Default is the address of
            the I2C link, or DEFAULT_I2C_ADDRESS for SWI.
        """
        if not isinstance(link, (I2CLink, SWILink)):
            raise TypeError("link must be an I2CLink or SWILink instance")
        self.__link = link
        if address is None:
            address = getattr(link, "address", DEFAULT_I2C_ADDRESS)
        self.address = address

    @classmethod
    def open(cls, path: str, address: int = DEFAULT_I2C_ADDRESS) -> "Transport":
        """
        Open a transport. Serial port paths select SWI, any other path is
        considered an I2C bus device.

        :param path: Device path, for instance '/dev/ttyUSB0' or '/dev/i2c-1'.
        :param address: I2C address of the device.
        :raises BusError: if the device cannot be opened.
        """
        if SWI_PATH_MARKER in path:
            link = SWILink.open(path)
        else:
            link = I2CLink.open(path, address)
        return cls(link, address)

    @property
    def link(self) -> Union[I2CLink, SWILink]:
        """Underlying physical link. Read-only."""
        return self.__link

    @property
    def protocol(self) -> TransportProtocol:
        """Protocol of the underlying link. Read-only."""
        if isinstance(self.__link, I2CLink):
            return TransportProtocol.I2C
        return TransportProtocol.SWI

    def close(self):
        """Release the bus or serial port."""
        self.__link.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):  # type: ignore
        self.close()

    def wake(self):
        """
        Wake up the device.

        :raises TimeoutError: if the SWI wake pulse cannot be generated.
        """
        if self.protocol == TransportProtocol.I2C:
            try:
                self.__link.write(b"\x00", address=I2C_WAKE_ADDRESS)
            except BusError as e:
                # The device does not acknowledge while waking up.
                logger.debug("Ignored error during wake: %s", e)
        elif self.protocol == TransportProtocol.SWI:
            self.__link.wake()

    def __i2c_word_address(self, word_address: ATECCWordAddress):
        try:
            self.__link.write(bytes((word_address.value,)))
        except BusError as e:
            logger.debug("Ignored error on %s: %s", word_address.name, e)

    def sleep(self):
        """Put the device in sleep mode. Best-effort, never raises."""
        if self.protocol == TransportProtocol.I2C:
            self.__i2c_word_address(ATECCWordAddress.SLEEP)
        elif self.protocol == TransportProtocol.SWI:
            self.__link.sleep()

    def idle(self):
        """
        Put the device in idle mode. Unlike sleep, the volatile state of the
        device is retained. Best-effort, never raises.
        """
        if self.protocol == TransportProtocol.I2C:
            self.__i2c_word_address(ATECCWordAddress.IDLE)
        elif self.protocol == TransportProtocol.SWI:
            self.__link.idle()

    def send_receive(self, delay: float, buffer: bytearray) -> int:
        """
        Send a command and read the response.

        :param delay: Command execution time in seconds.
        :param buffer: Command bytes, including the word address or I/O flag
            and CRC. Replaced by the response, which starts with its length
            byte for both protocols.
        :return: Response length, equal to `len(buffer)`.
        :raises TimeoutError: if the device does not answer correctly.
        :raises BusError: if the bus fails.
        """
        if self.protocol == TransportProtocol.I2C:
            self.__link.write(buffer)
            sleep(delay)
            return self.__link.read(buffer)
        else:
            self.__link.flush()
            self.__link.send(encode(buffer))
            sleep(delay)
            return self.__link.receive(buffer)


def open_transport(path: str, address: int = DEFAULT_I2C_ADDRESS) -> Transport:
    """Shortcut for :meth:`Transport.open`."""
    return Transport.open(path, address)
