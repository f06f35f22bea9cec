"""
Identifier generation

Incident and event ids are UUIDv7-style strings: the leading 48 bits carry a
millisecond timestamp so ids created later sort later, which keeps the
incident ledger and event log naturally ordered.
"""

import secrets
import time


def generate_id() -> str:
    """
    Generate a UUIDv7-like identifier

    Layout: 48-bit unix millis, version nibble 7, 12 random bits,
    variant bits 10, 62 random bits.

    Returns:
        36-character hyphenated hex string
    """
    timestamp_ms = int(time.time() * 1000) & 0xFFFFFFFFFFFF
    rand_a = secrets.randbits(12)
    rand_b = secrets.randbits(62)

    value = (timestamp_ms << 80) | (0x7 << 76) | (rand_a << 64) | (0b10 << 62) | rand_b
    hex_str = f"{value:032x}"
    return f"{hex_str[:8]}-{hex_str[8:12]}-{hex_str[12:16]}-{hex_str[16:20]}-{hex_str[20:]}"
