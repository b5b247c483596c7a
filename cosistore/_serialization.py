from typing import Any

from msgspec.json import Decoder, Encoder

__all__ = ("decode_json", "encode_json")


def _type_to_string(value: Any) -> Any:
    if isinstance(value, BaseException):
        return repr(value)
    return str(value)


_encoder = Encoder(enc_hook=_type_to_string)
_decoder = Decoder()


def encode_json(data: Any) -> str:
    """Encode ``data`` to a JSON string, stringifying types msgspec cannot handle natively."""
    return _encoder.encode(data).decode("utf-8")


def decode_json(data: "str | bytes") -> Any:
    """Decode a JSON document into builtin Python objects."""
    return _decoder.decode(data)
