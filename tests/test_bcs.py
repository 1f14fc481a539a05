import pytest

from codec.bcs import DeserializationError, Deserializer, Serializer
from codec.hexutil import hex_preview, parse_hex, to_hex


def test_uleb128_multi_byte_encoding():
    ser = Serializer()
    ser.uleb128(300)
    assert ser.output() == b"\xac\x02"
    assert Deserializer(b"\xac\x02").uleb128() == 300


def test_uleb128_overflow_rejected():
    with pytest.raises(DeserializationError):
        Deserializer(b"\xff\xff\xff\xff\xff\x01").uleb128()


@pytest.mark.parametrize("data", [b"\xa0\x00", b"\x80\x00", b"\x81\x80\x00"])
def test_uleb128_padded_encodings_rejected(data):
    with pytest.raises(DeserializationError) as e:
        Deserializer(data).uleb128()
    assert "non-canonical" in str(e.value)


def test_uleb128_minimal_encodings_accepted():
    assert Deserializer(b"\x00").uleb128() == 0
    assert Deserializer(b"\x7f").uleb128() == 127
    assert Deserializer(b"\x80\x01").uleb128() == 128


def test_truncated_input_raises():
    des = Deserializer(b"\x01\x02\x03")
    with pytest.raises(DeserializationError) as e:
        des.u64()
    assert "unexpected end of input" in str(e.value)


def test_invalid_bool_raises():
    with pytest.raises(DeserializationError):
        Deserializer(b"\x02").bool()


def test_trailing_bytes_detected():
    des = Deserializer(b"\x05\x00")
    assert des.u8() == 5
    with pytest.raises(DeserializationError):
        des.assert_finished()


def test_strings_are_length_prefixed_utf8():
    ser = Serializer()
    ser.str("transfer")
    out = ser.output()
    assert out[0] == 8
    assert Deserializer(out).str() == "transfer"
    with pytest.raises(DeserializationError):
        Deserializer(b"\x02\xff\xfe").str()


def test_serializer_range_checks():
    with pytest.raises(ValueError):
        Serializer().u8(256)
    with pytest.raises(ValueError):
        Serializer().u64(-1)


def test_option_and_sequence():
    ser = Serializer()
    ser.option(None, Serializer.u8)
    ser.option(7, Serializer.u8)
    ser.sequence([1, 2], Serializer.u16)
    des = Deserializer(ser.output())
    assert des.option(Deserializer.u8) is None
    assert des.option(Deserializer.u8) == 7
    assert des.sequence(Deserializer.u16) == [1, 2]
    des.assert_finished()


def test_parse_hex_accepts_either_prefix_and_case():
    assert parse_hex("0xAbCd") == b"\xab\xcd"
    assert parse_hex("abcd") == b"\xab\xcd"
    assert parse_hex("  0XABCD\n") == b"\xab\xcd"


def test_parse_hex_rejects_garbage():
    with pytest.raises(ValueError):
        parse_hex("0xabc")
    with pytest.raises(ValueError):
        parse_hex("0xzz")


def test_to_hex_is_prefixed_lowercase():
    assert to_hex(b"\xab\xcd") == "0xabcd"
    assert hex_preview(bytes(100), limit=10) == "0x00000000..."
