import pytest

from sllp.errors import InvalidArgument, Malformed
from sllp.protocol import frame, protocol
from sllp.protocol.frame import Frame
from sllp.protocol.protocol import Command


def test_build_and_parse_round_trip() -> None:
    payload = b"\x01\x02\x03"
    raw = Frame.build(Command.VAR_WRITE, payload)

    assert len(raw) == protocol.HEADER_SIZE + len(payload)

    parsed_code, parsed_payload = Frame.parse(raw)
    assert parsed_code == Command.VAR_WRITE
    assert parsed_payload == payload


def test_header_layout_is_code_then_big_endian_length() -> None:
    raw = frame.encode(0x11, b"\xaa\xbb")

    assert raw == b"\x11\x00\x02\xaa\xbb"


def test_build_accepts_maximum_payload() -> None:
    raw = Frame.build(Command.CURVE_BLOCK, bytes(protocol.MAX_PAYLOAD_SIZE))

    assert len(raw) == protocol.MAX_MESSAGE_SIZE
    assert raw[1:3] == b"\xff\xff"


def test_build_rejects_large_payload() -> None:
    payload = b"a" * (protocol.MAX_PAYLOAD_SIZE + 1)

    with pytest.raises(InvalidArgument):
        Frame.build(Command.VAR_WRITE, payload)


def test_build_rejects_invalid_code() -> None:
    with pytest.raises(ValueError):
        Frame.build(protocol.UINT8_MAX + 1, b"")


def test_parse_rejects_short_frame() -> None:
    with pytest.raises(Malformed):
        frame.decode(b"\x01\x00")


def test_parse_ignores_bytes_past_declared_length() -> None:
    raw = Frame.build(Command.VAR_VALUE, b"\x07") + b"\xde\xad"

    code, payload = frame.decode(raw)

    assert code == Command.VAR_VALUE
    assert payload == b"\x07"


def test_parse_rejects_declared_length_beyond_buffer() -> None:
    raw = b"\x11\x00\x08\x01\x02"

    with pytest.raises(Malformed) as excinfo:
        Frame.parse(raw)

    assert "Declared payload of 8 bytes" in str(excinfo.value)


def test_empty_payload_frame() -> None:
    parsed = Frame.from_bytes(Frame(code=Command.OK).to_bytes())

    assert parsed == Frame(code=Command.OK, payload=b"")
    assert repr(parsed) == "Frame(code=0xE0, payload=(empty))"
