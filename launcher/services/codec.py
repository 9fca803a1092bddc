"""
launcher/services/codec.py

Percent-escape decoding for the obfuscated configuration constants.
"""

import string

_HEX_DIGITS = frozenset(string.hexdigits)


def decode_percent_ascii(value: str) -> str:
    """
    Decode %XX escapes into the characters they name.

    Any '%' that is not followed by two hex digits fails the whole decode and
    returns an empty string, so a malformed unlock date or base destination
    never decodes into something plausible but wrong.
    """
    result: list[str] = []
    i = 0
    length = len(value)

    while i < length:
        char = value[i]
        if char != "%":
            result.append(char)
            i += 1
            continue

        hex_pair = value[i + 1 : i + 3]
        if len(hex_pair) != 2 or not all(c in _HEX_DIGITS for c in hex_pair):
            return ""
        result.append(chr(int(hex_pair, 16)))
        i += 3

    return "".join(result)
