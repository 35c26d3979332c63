"""
Output decoding for Windows console tools.

``wsl.exe`` writes UTF-16-LE, PowerShell follows the console code page
and most Linux tools write UTF-8. Every captured stream is normalised
to ``str`` here before anyone searches it for keywords.
"""

from __future__ import annotations

import codecs
import locale


def _looks_like_utf16le(raw: bytes) -> bool:
    """Heuristic: ASCII text encoded as UTF-16-LE has NUL at odd offsets."""
    sample = raw[:200]
    if len(sample) < 4:
        return False
    odd = sample[1::2]
    return odd.count(0) >= len(odd) * 0.6


def decode_output(raw: bytes | None) -> str:
    """Decode raw process output into text.

    Order: UTF-16 BOM, UTF-8 BOM, UTF-16-LE heuristic, strict UTF-8,
    then the platform's preferred encoding with replacement characters.
    Embedded NULs are stripped and CRLF is normalised to LF.
    """
    if not raw:
        return ""

    if raw.startswith(codecs.BOM_UTF16_LE):
        text = raw[len(codecs.BOM_UTF16_LE):].decode("utf-16-le", errors="replace")
    elif raw.startswith(codecs.BOM_UTF16_BE):
        text = raw[len(codecs.BOM_UTF16_BE):].decode("utf-16-be", errors="replace")
    elif raw.startswith(codecs.BOM_UTF8):
        text = raw[len(codecs.BOM_UTF8):].decode("utf-8", errors="replace")
    elif _looks_like_utf16le(raw):
        text = raw.decode("utf-16-le", errors="replace")
    else:
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            native = locale.getpreferredencoding(False) or "utf-8"
            text = raw.decode(native, errors="replace")

    return text.replace("\x00", "").replace("\r\n", "\n")
