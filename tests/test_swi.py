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

import pytest
import serial
from conftest import FakeSerial
from atecc_transport import swi
from atecc_transport.swi import SWILink, encode, decode
from atecc_transport.errors import BusError, TimeoutError


def wire(data: bytes) -> bytes:
    """What the UART receives, on 7 data bits, when `data` is on the line."""
    return bytes(b & 0x7F for b in encode(data))


def broken_write(data):
    raise serial.SerialException("device disconnected")


def test_encode_lsb_first():
    assert encode(b"\x01") == bytes([0xFF] + [0xFD] * 7)
    assert encode(b"\x80") == bytes([0xFD] * 7 + [0xFF])
    assert encode(b"") == b""


def test_encode_length_and_alphabet():
    data = bytes(range(256))
    encoded = encode(data)
    assert len(encoded) == 8 * len(data)
    assert set(encoded) == {0xFD, 0xFF}


def test_decode_round_trip():
    data = bytes(range(256))
    assert decode(encode(data)) == data
    assert decode(wire(data)) == data
    assert decode(wire(b"\x88\x07\x30")) == b"\x88\x07\x30"


def test_decode_toggle_markers():
    assert decode(bytes([0x7E] + [0x7D] * 7)) == b"\x01"
    assert decode(bytes([0x7F] * 8)) == b"\xff"
    assert decode(bytes([0x00] * 8)) == b"\x00"


def test_decode_rejects_partial_group():
    with pytest.raises(ValueError):
        decode(bytes(7))
    with pytest.raises(ValueError):
        decode(encode(b"\x12\x34") + b"\xff")


def test_send_discards_echo(sleeps):
    ser = FakeSerial()
    link = SWILink(ser)
    data = encode(b"\x77\x07")
    assert link.send(data) == 16
    assert ser.calls == [("write", data), ("read", 16)]
    assert sleeps == pytest.approx([16 * 45e-6])


def test_send_error(sleeps):
    ser = FakeSerial()
    ser.write = broken_write
    with pytest.raises(BusError):
        SWILink(ser).send(encode(b"\x00"))


def broken_read(size):
    raise serial.SerialException("device disconnected")


def broken_reset():
    raise serial.SerialException("device disconnected")


def test_send_echo_read_error(sleeps):
    ser = FakeSerial()
    ser.read = broken_read
    with pytest.raises(BusError) as e:
        SWILink(ser).send(encode(b"\x77\x07"))
    assert isinstance(e.value.__cause__, serial.SerialException)


def test_receive_input_reset_error(sleeps):
    ser = FakeSerial()
    ser.reset_input_buffer = broken_reset
    with pytest.raises(BusError):
        SWILink(ser).receive(bytearray())
    assert ser.calls == []


def test_receive(sleeps):
    ser = FakeSerial(reads=[wire(b"\x88\x04\x00\x03\x40")])
    link = SWILink(ser)
    buffer = bytearray(b"\x77\x07\x30\x00\x00\x00\x03\x5d")
    assert link.receive(buffer) == 4
    assert buffer == bytearray(b"\x04\x00\x03\x40")
    assert ser.calls[0] == ("reset_input_buffer",)
    assert ser.calls[1] == ("write", encode(b"\x88"))


def test_receive_polls_until_response(sleeps):
    ser = FakeSerial(reads=[wire(b"\x88"), wire(b"\x88\x04\x11\x33\x43")])
    link = SWILink(ser)
    buffer = bytearray()
    assert link.receive(buffer) == 4
    assert buffer == bytearray(b"\x04\x11\x33\x43")
    assert ser.calls.count(("write", encode(b"\x88"))) == 2
    assert SWILink.RECV_RETRY_WAIT in sleeps


def test_receive_timeout(sleeps):
    ser = FakeSerial(reads=[wire(b"\x88"), wire(b"\x88")])
    buffer = bytearray(b"\x01\x02")
    with pytest.raises(TimeoutError):
        SWILink(ser).receive(buffer)
    assert buffer == bytearray(b"\x01\x02")


def test_receive_retries_override(sleeps):
    ser = FakeSerial(reads=[b"", b"", wire(b"\x88\x04\x00\x03\x40")])
    link = SWILink(ser, recv_retries=3, recv_retry_wait=0)
    buffer = bytearray()
    assert link.receive(buffer) == 4


def test_receive_length_too_large(sleeps):
    ser = FakeSerial(reads=[wire(b"\x88\xc8\x00")])
    with pytest.raises(TimeoutError):
        SWILink(ser).receive(bytearray())


def test_receive_incomplete_frame(sleeps):
    # Trailing partial bit group is dropped, then 7 bytes are missing.
    ser = FakeSerial(reads=[wire(b"\x88\x07\x01\x02") + b"\x7f\x7f"])
    with pytest.raises(TimeoutError):
        SWILink(ser).receive(bytearray())


def test_wake_sequence(monkeypatch):
    calls = []
    monkeypatch.setattr(swi, "sleep", lambda t: calls.append(("sleep", t)))
    ser = FakeSerial(calls=calls)
    SWILink(ser).wake()
    assert calls == [
        ("baudrate", 115200),
        ("write", b"\x00"),
        ("sleep", 1300e-6),
        ("baudrate", 230400),
        ("reset_input_buffer",),
        ("reset_output_buffer",),
    ]


def test_wake_baudrate_failure(sleeps):
    ser = FakeSerial()
    ser.baudrate_error = serial.SerialException("cannot configure port")
    with pytest.raises(TimeoutError):
        SWILink(ser).wake()
    assert ("write", b"\x00") not in ser.calls


def test_sleep_and_idle_flags(sleeps):
    ser = FakeSerial()
    link = SWILink(ser)
    link.sleep()
    link.idle()
    assert ser.calls == [("write", encode(b"\xcc")), ("write", encode(b"\xbb"))]


def test_sleep_ignores_errors(sleeps):
    ser = FakeSerial()
    ser.write = broken_write
    SWILink(ser).sleep()


def test_open_failure(monkeypatch):
    def fail(*args, **kwargs):
        raise serial.SerialException("could not open port")

    monkeypatch.setattr(swi.serial, "Serial", fail)
    with pytest.raises(BusError):
        SWILink.open("/dev/ttyUSB9")


def test_open_configuration(monkeypatch):
    opened = {}

    def fake_serial(*args, **kwargs):
        opened["args"] = args
        opened.update(kwargs)
        return FakeSerial()

    monkeypatch.setattr(swi.serial, "Serial", fake_serial)
    link = SWILink.open("/dev/ttyUSB0")
    assert isinstance(link.ser, FakeSerial)
    assert opened["args"] == ("/dev/ttyUSB0", 230400)
    assert opened["bytesize"] == serial.SEVENBITS
    assert opened["parity"] == serial.PARITY_NONE
    assert opened["stopbits"] == serial.STOPBITS_ONE
    assert opened["timeout"] == 50e-3
