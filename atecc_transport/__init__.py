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

"""Python3 API for ATECC secure elements, transport layer."""

from .errors import TransportError, TimeoutError, BusError
from .swi import SWILink, encode, decode
from .i2c import I2CLink
from .transport import Transport, TransportProtocol, open_transport

# Version of the atecc-transport API
__version__ = "0.1.0"

__all__ = [
    "TransportError",
    "TimeoutError",
    "BusError",
    "SWILink",
    "encode",
    "decode",
    "I2CLink",
    "Transport",
    "TransportProtocol",
    "open_transport",
]
