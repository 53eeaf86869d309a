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

"""Command line tool to exercise an ATECC device through the transport layer."""

import argparse
import glob
import logging
import sys
from typing import List, Optional

import crcmod
import serial.tools.list_ports
from rich.console import Console
from rich.logging import RichHandler

from .constants import ATECCIOFlag, ATECCWordAddress, DEFAULT_I2C_ADDRESS
from .errors import TransportError
from .transport import Transport, TransportProtocol

console = Console()

# CRC-16 with polynomial 0x8005 on bit-reflected input.
reflected_crc16 = crcmod.mkCrcFun(0x18005, 0, rev=True)

INFO_OPCODE = 0x30
# Max execution time of the INFO command.
INFO_DELAY = 1e-3


def command_checksum(data: bytes) -> bytes:
    """
    :param data: Count, opcode, parameters and data of a command.
    :return: The two checksum bytes closing the command, low byte first.
    """
    crc = int(f"{reflected_crc16(data):016b}"[::-1], 2)
    return crc.to_bytes(2, "little")


def frame_command(
    protocol: TransportProtocol, opcode: int, p1: int = 0, p2: int = 0, data: bytes = b""
) -> bytearray:
    """
    Build a complete command buffer, ready for :meth:`Transport.send_receive`.

    :param protocol: Selects the leading word address (I2C) or I/O flag (SWI).
    :param opcode: Command opcode.
    :param p1: First command parameter. 8-bits.
    :param p2: Second command parameter. 16-bits.
    :param data: Command data.
    """
    buf = bytearray()
    if protocol == TransportProtocol.I2C:
        buf.append(ATECCWordAddress.COMMAND.value)
    elif protocol == TransportProtocol.SWI:
        buf.append(ATECCIOFlag.COMMAND.value)
    buf.append(7 + len(data))
    buf.append(opcode)
    buf.append(p1)
    buf += p2.to_bytes(2, "little")
    buf += data
    buf += command_checksum(buf[1:])
    return buf


class CLI:
    """Command Line Interface for interacting with an ATECC device."""

    def __init__(self):
        self.parser = self.create_parser()

    def create_parser(self):
        """Create the argument parser for the CLI."""
        parser = argparse.ArgumentParser(prog="atecc-transport")
        parser.add_argument(
            "--dev",
            help="I2C bus or serial port of the device (default: /dev/i2c-1)",
            default="/dev/i2c-1",
        )
        parser.add_argument(
            "--address",
            help=f"I2C address of the device (default: 0x{DEFAULT_I2C_ADDRESS:02x})",
            type=lambda x: int(x, 0),
            default=DEFAULT_I2C_ADDRESS,
        )
        parser.add_argument(
            "-v", "--verbose", action="store_true", help="Log wire traffic"
        )
        subparsers = parser.add_subparsers(dest="command", required=True)

        # atecc-transport list
        subparsers.add_parser("list", help="List serial ports and I2C buses")

        # atecc-transport wake/sleep/idle
        subparsers.add_parser("wake", help="Wake up the device")
        subparsers.add_parser("sleep", help="Put the device in sleep mode")
        subparsers.add_parser("idle", help="Put the device in idle mode")

        # atecc-transport raw <hexstr>
        raw_parser = subparsers.add_parser("raw", help="Send a raw command buffer")
        raw_parser.add_argument(
            "hexstr", help="Complete command, with word address or flag and CRC"
        )
        raw_parser.add_argument(
            "--delay",
            type=float,
            default=50e-3,
            help="Execution delay in seconds (default: 0.05)",
        )

        # atecc-transport info
        subparsers.add_parser("info", help="Read the device revision")

        return parser

    def handle_list(self) -> None:
        """
        Handle the 'list' command to list serial ports and I2C buses.
        """
        found = False
        for port in serial.tools.list_ports.comports():
            console.print(
                f"[green]Serial port: [/green][bold yellow]{port.device}[/bold yellow]"
                f"[green] - {port.description} ({port.hwid})[/green]"
            )
            found = True
        for path in sorted(glob.glob("/dev/i2c-*")):
            console.print(f"[green]I2C bus: [/green][bold yellow]{path}[/bold yellow]")
            found = True
        if not found:
            console.print("[red]No serial port or I2C bus found.[/red]")

    def transact(
        self, transport: Transport, buffer: bytearray, delay: float
    ) -> bytearray:
        """Wake the device, send a command, read the response and sleep."""
        console.print(
            f"[green]Sending [/green][bold yellow]{buffer.hex()}[/bold yellow]"
        )
        transport.wake()
        try:
            transport.send_receive(delay, buffer)
        finally:
            transport.sleep()
        console.print(
            f"[green]Response: [/green][bold yellow]{buffer.hex()}[/bold yellow]"
        )
        return buffer

    def handle_raw(self, transport: Transport, args: argparse.Namespace) -> None:
        """
        Handle the 'raw' command, sending a command buffer verbatim.

        :param args: Parsed command-line arguments.
        """
        self.transact(transport, bytearray.fromhex(args.hexstr), args.delay)

    def handle_info(self, transport: Transport) -> None:
        """
        Handle the 'info' command, reading the device revision.
        """
        buffer = frame_command(transport.protocol, INFO_OPCODE)
        response = self.transact(transport, buffer, INFO_DELAY)
        # Length byte, 4 bytes revision, CRC.
        if len(response) == 7:
            console.print(
                f"[green]Revision: [/green][bold yellow]{response[1:5].hex()}[/bold yellow]"
            )

    def run(self, argv: Optional[List[str]] = None) -> int:
        """
        Parse command-line arguments, open the transport if needed and dispatch
        to the appropriate handler.

        :return: Process exit status.
        """
        args = self.parser.parse_args(argv)
        if args.verbose:
            logging.basicConfig(
                level=logging.DEBUG,
                format="%(message)s",
                handlers=[RichHandler(console=console)],
            )

        if args.command == "list":
            self.handle_list()
            return 0

        try:
            transport = Transport.open(args.dev, args.address)
        except TransportError as e:
            console.print(f"[red]Error: {e}[/red]")
            return 1

        console.print(
            f"[yellow]Using {transport.protocol.name} device: [/yellow]"
            f"[bold yellow]{args.dev}[/bold yellow]"
        )
        try:
            if args.command == "wake":
                transport.wake()
            elif args.command == "sleep":
                transport.sleep()
            elif args.command == "idle":
                transport.idle()
            elif args.command == "raw":
                self.handle_raw(transport, args)
            elif args.command == "info":
                self.handle_info(transport)
        except TransportError as e:
            console.print(f"[red]Error: {e}[/red]")
            return 1
        finally:
            transport.close()
        return 0


def main() -> None:
    sys.exit(CLI().run())


if __name__ == "__main__":
    main()
