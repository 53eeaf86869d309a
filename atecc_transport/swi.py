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
Single Wire Interface (SWI) emulated over a UART.

The ATECC SWI line is open-drain and half-duplex. It is driven from a UART
whose Tx and Rx are tied together: every logical bit is sent as one UART
character, and everything transmitted is echoed back on Rx.
"""

import logging
from time import sleep
from typing import Optional
import serial
from .constants import (
    ATECCIOFlag,
    RECV_RETRIES,
    RECV_RETRY_WAIT,
    SWI_BAUDRATE,
    SWI_BIT_ONE,
    SWI_BIT_TOGGLED,
    SWI_BIT_ZERO,
    SWI_BITS_PER_BYTE,
    SWI_BYTE_TX_TIME,
    SWI_CMD_SIZE_MAX,
    SWI_SLEEP_DELAY,
    SWI_TIMEOUT,
    SWI_TRANSMIT_DELAY,
    SWI_WAKE_BAUDRATE,
    WAKE_DELAY,
)
from .errors import BusError, TimeoutError

logger = logging.getLogger(__name__)


def swi_bits(byte: int) -> bytearray:
    """
    :param byte: Logical byte.
    :return: The 8 UART characters transmitting the byte, LSB first.
    """
    result = bytearray()
    for i in range(SWI_BITS_PER_BYTE):
        result.append(SWI_BIT_ONE if (byte >> i) & 1 else SWI_BIT_ZERO)
    return result


def encode(data: bytes) -> bytes:
    """
    Encode a logical buffer into its SWI representation.

    :param data: Logical bytes.
    :return: Encoded bytes, 8 times longer than `data`.
    """
    result = bytearray()
    for byte in data:
        result += swi_bits(byte)
    return bytes(result)


def decode(data: bytes) -> bytes:
    """
    Decode SWI characters received on the UART into logical bytes.

    For each bit slot, a character read as 0x7E or 0x7F means the device
    toggled the line and the bit is set. The UART uses 7 data bits, so only
    the 7 least significant bits of each character are compared.

    :param data: Encoded bytes. Length must be a multiple of 8.
    :return: Decoded bytes.
    :raises ValueError: if the length of `data` is not a multiple of 8.
    """
    if len(data) % SWI_BITS_PER_BYTE:
        raise ValueError(
            f"SWI buffer length must be a multiple of {SWI_BITS_PER_BYTE}"
            f" ({len(data)} bytes given)."
        )
    result = bytearray()
    for i in range(0, len(data), SWI_BITS_PER_BYTE):
        byte = 0
        for b in data[i : i + SWI_BITS_PER_BYTE]:
            if (b & 0x7F) in SWI_BIT_TOGGLED:
                byte ^= 1
            # Rotate right: bits are clocked LSB first.
            byte = (byte >> 1) | ((byte & 1) << 7)
        result.append(byte)
    return bytes(result)


class SWILink:
    """
    Byte transport to an ATECC over a UART emulating SWI.

    The device never sends data on its own: the host must send a TRANSMIT
    flag and poll for the answer.
    """

    BAUDRATE = SWI_BAUDRATE
    WAKE_BAUDRATE = SWI_WAKE_BAUDRATE
    TIMEOUT = SWI_TIMEOUT
    RECV_RETRIES = RECV_RETRIES
    RECV_RETRY_WAIT = RECV_RETRY_WAIT

    def __init__(
        self,
        ser: serial.Serial,
        recv_retries: Optional[int] = None,
        recv_retry_wait: Optional[float] = None,
    ):
        """
        :param ser: Opened serial port. Its Tx and Rx lines must be wired
            together to the device SDA pin.
        :param recv_retries: Number of transmit requests before giving up.
            Default is RECV_RETRIES.
        :param recv_retry_wait: Delay in seconds between two transmit requests
            when the device has not answered yet. Default is RECV_RETRY_WAIT.
        """
        self.ser = ser
        if recv_retries is not None:
            self.RECV_RETRIES = recv_retries
        if recv_retry_wait is not None:
            self.RECV_RETRY_WAIT = recv_retry_wait

    @classmethod
    def open(cls, path: str, **kwargs) -> "SWILink":
        """
        Open the serial port and configure it for SWI.

        :param path: Serial port device path, for instance '/dev/ttyUSB0'.
        :raises BusError: if the serial port cannot be opened.
        """
        try:
            ser = serial.Serial(
                path,
                cls.BAUDRATE,
                bytesize=serial.SEVENBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=cls.TIMEOUT,
            )
        except (serial.SerialException, ValueError) as e:
            raise BusError(f"Failed to open serial port {path}") from e
        logger.debug("Opened SWI link on %s", path)
        return cls(ser, **kwargs)

    def close(self):
        self.ser.close()

    def flush(self):
        """Discard all pending input and output data of the serial port."""
        try:
            self.ser.reset_input_buffer()
            self.ser.reset_output_buffer()
        except serial.SerialException as e:
            raise BusError("Failed to flush serial port") from e

    def __set_baudrate(self, value: int):
        try:
            self.ser.baudrate = value
        except (serial.SerialException, ValueError) as e:
            raise TimeoutError(f"Failed to set baudrate to {value}") from e

    def wake(self):
        """
        Generate the wake pulse. A zero character sent at a lower baudrate
        holds the line low long enough.

        :raises TimeoutError: if the baudrate cannot be changed.
        """
        self.__set_baudrate(self.WAKE_BAUDRATE)
        try:
            self.ser.write(b"\x00")
        except serial.SerialException as e:
            logger.debug("Wake pulse write failed: %s", e)
        sleep(WAKE_DELAY)
        self.__set_baudrate(self.BAUDRATE)
        self.flush()

    def __send_flag(self, flag: ATECCIOFlag, delay: float):
        try:
            self.ser.write(encode(bytes((flag.value,))))
        except serial.SerialException as e:
            logger.debug("Failed to send %s flag: %s", flag.name, e)
        sleep(delay)

    def sleep(self):
        """Put the device in sleep mode. Errors are ignored."""
        self.__send_flag(ATECCIOFlag.SLEEP, SWI_SLEEP_DELAY)

    def idle(self):
        """Put the device in idle mode. Errors are ignored."""
        self.__send_flag(ATECCIOFlag.IDLE, SWI_SLEEP_DELAY)

    def send(self, data: bytes) -> int:
        """
        Transmit an already encoded buffer and drop its echo from Rx.

        :param data: Encoded bytes, see :func:`encode`.
        :return: Number of echoed bytes discarded, equal to the number of bytes
            written.
        :raises BusError: if the serial port fails.
        """
        try:
            size = self.ser.write(data)
        except serial.SerialException as e:
            raise BusError("SWI write failed") from e
        if size is None:
            size = len(data)
        sleep(len(data) * SWI_BYTE_TX_TIME)
        # Tx and Rx share the wire: everything sent comes back.
        try:
            echo = self.ser.read(size)
        except serial.SerialException as e:
            raise BusError("SWI echo read failed") from e
        if len(echo) != size:
            logger.debug("Incomplete echo: %d/%d bytes", len(echo), size)
        return size

    def receive(self, buffer: bytearray) -> int:
        """
        Request and read the device response.

        :param buffer: Replaced by the response, starting with its length
            byte. The transmit flag is removed.
        :return: Response length.
        :raises TimeoutError: if the device does not answer, or if the
            response is too large or incomplete.
        :raises BusError: if the serial port fails.
        """
        request = encode(bytes((ATECCIOFlag.TRANSMIT.value,)))
        try:
            self.ser.reset_input_buffer()
        except serial.SerialException as e:
            raise BusError("Failed to flush serial input") from e
        encoded = b""
        for attempt in range(self.RECV_RETRIES):
            try:
                self.ser.write(request)
                sleep(SWI_TRANSMIT_DELAY)
                encoded = self.ser.read(SWI_CMD_SIZE_MAX)
            except serial.SerialException as e:
                logger.debug("Transmit request %d failed: %s", attempt, e)
                continue
            if len(encoded) > 2 * len(request):
                break
            logger.debug(
                "Transmit request %d: %d bytes received", attempt, len(encoded)
            )
            if len(encoded) == len(request):
                # Only the echo of the request, device is still busy.
                sleep(self.RECV_RETRY_WAIT)
        else:
            raise TimeoutError("No response to SWI transmit request", data=encoded)

        # A trailing partial bit group cannot be decoded.
        encoded = encoded[: len(encoded) - len(encoded) % SWI_BITS_PER_BYTE]
        decoded = decode(encoded)
        logger.debug("SWI rx: %s", decoded.hex())
        # decoded[0] is the transmit flag.
        size = decoded[1]
        if size > SWI_CMD_SIZE_MAX // SWI_BITS_PER_BYTE:
            raise TimeoutError(f"Invalid SWI response length {size}", data=decoded)
        if len(decoded) < size + 1:
            raise TimeoutError("Incomplete SWI response", data=decoded)
        buffer[:] = decoded[1 : size + 1]
        return size
