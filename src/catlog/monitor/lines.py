"""Turning raw bytes from a source into lines."""

ENCODING = "utf-8"


def decode_line(raw: bytes) -> str:
    """Decode one raw line and drop its terminator (\\n or \\r\\n).

    Undecodable bytes are replaced rather than failing the whole source.
    """
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw.decode(ENCODING, errors="replace")
