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
Timing, baudrate and marker constants of the ATECC508/608 family.

Values come from the device datasheets and were checked on hardware. Do not
change them without verifying on a real chip.
"""

from enum import Enum


class ATECCIOFlag(Enum):
    """SWI I/O flags, sent as the first byte of every SWI token group."""

    COMMAND = 0x77
    TRANSMIT = 0x88
    IDLE = 0xBB
    SLEEP = 0xCC


class ATECCWordAddress(Enum):
    """Possible word-address for ATECC I2C writes."""

    RESET = 0x00
    SLEEP = 0x01
    IDLE = 0x02
    COMMAND = 0x03


# Factory default 7-bit I2C address (0xC0 in 8-bit notation).
DEFAULT_I2C_ADDRESS = 0x60
# Writing to the general call address holds SDA low long enough to wake.
I2C_WAKE_ADDRESS = 0x00
# Linux i2c-dev flag: do not issue a (repeated) start for this message.
I2C_M_NOSTART = 0x4000
# Value of the length byte when nothing was read from the bus.
I2C_NO_RESPONSE = 0xFF

RECV_RETRIES = 2
RECV_RETRY_WAIT = 50e-3

SWI_BAUDRATE = 230400
# Lower baudrate used to stretch a zero byte into the wake pulse.
SWI_WAKE_BAUDRATE = 115200
SWI_TIMEOUT = 50e-3
# Wake pulse width (tWLO) plus wake delay (tWHI).
WAKE_DELAY = 1300e-6
# Time needed by the UART to shift out one encoded byte.
SWI_BYTE_TX_TIME = 45e-6
# Settle time between a transmit request and the device response.
SWI_TRANSMIT_DELAY = 40e-3
SWI_SLEEP_DELAY = 300e-6

# Encoded bytes for one bit. Logical zero gets a short low pulse.
SWI_BIT_ZERO = 0xFD
SWI_BIT_ONE = 0xFF
# Values read back on Rx when the device toggled the line during a bit slot.
SWI_BIT_TOGGLED = (0x7E, 0x7F)
SWI_BITS_PER_BYTE = 8

# Maximum I/O group size (4 * 36 + 7), scaled by 8 for the SWI bit encoding.
SWI_CMD_SIZE_MAX = 1208
