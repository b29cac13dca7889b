from __future__ import annotations
from typing import Optional, Tuple, Union
import base64

DATA_URI_PREFIX = "data:"


def to_base64(data: Union[bytes, bytearray, str]) -> str:
    if isinstance(data, (bytes, bytearray)):
        return base64.b64encode(bytes(data)).decode('utf-8')
    elif isinstance(data, str):
        # already encoded, possibly as a data URI
        return strip_data_uri(data)
    else:
        raise ValueError(f"Unsupported data type: {type(data)}")


def to_data_uri(data: Union[bytes, bytearray, str], media_type: str) -> str:
    return f"data:{media_type};base64,{to_base64(data)}"


def split_data_uri(value: str) -> Tuple[Optional[str], str]:
    """Split ``data:<type>;base64,<payload>`` into (type, payload).

    Plain base64 strings come back as ``(None, value)``.
    """
    if not value.startswith(DATA_URI_PREFIX) or "," not in value:
        return None, value
    header, payload = value.split(",", 1)
    media_type = header[len(DATA_URI_PREFIX):].split(";", 1)[0] or None
    return media_type, payload


def strip_data_uri(value: str) -> str:
    return split_data_uri(value)[1]
