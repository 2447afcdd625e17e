"""
Sanitizer — Strip terminal markup from log text

CI logs are written for terminals: colour codes, cursor movement,
hyperlinks, Buildkite timestamp markers and carriage-return progress bars.
None of that helps a reader that only sees characters, so it is removed
before content is handed out.

sanitize() is idempotent: its output never contains ESC, CR or other
control characters (tab and newline aside), so a second pass finds
nothing left to remove.
"""

import re


# ESC [ params intermediates final  (colours, cursor movement)
CSI_PATTERN = re.compile(r'\x1b\[[0-?]*[ -/]*[@-~]')

# ESC ] ... BEL|ST  (titles, hyperlinks)
OSC_PATTERN = re.compile(r'\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)?')

# ESC _ ... BEL|ST  (Buildkite "_bk;t=" timestamps), plus DCS/PM/SOS strings
STRING_PATTERN = re.compile(r'\x1b[_P^X][^\x07\x1b]*(?:\x07|\x1b\\)?')

# Remaining two-character escapes (ESC 7, ESC =, ESC (B ...)
SHORT_ESCAPE_PATTERN = re.compile(r'\x1b[()*+][0-9A-Za-z]|\x1b[0-~]')

# Control characters other than tab and newline
CONTROL_PATTERN = re.compile(r'[\x00-\x08\x0b-\x1f\x7f]')


def strip_escapes(text: str) -> str:
    """Remove escape sequences, leaving any stray ESC bytes in place."""
    text = STRING_PATTERN.sub('', text)
    text = OSC_PATTERN.sub('', text)
    text = CSI_PATTERN.sub('', text)
    return SHORT_ESCAPE_PATTERN.sub('', text)


def collapse_carriage_returns(text: str) -> str:
    """
    Keep what a terminal would finally show for each line.

    "10%\\r50%\\r100%" renders as "100%". A trailing CR (CRLF endings)
    does not blank the line.
    """
    if '\r' not in text:
        return text

    lines = []
    for line in text.split('\n'):
        segments = [s for s in line.split('\r') if s]
        lines.append(segments[-1] if segments else '')
    return '\n'.join(lines)


def sanitize(text: str) -> str:
    """
    Return text with terminal markup removed.

    Args:
        text: Raw log content or group label

    Returns:
        Plain text; sanitize(sanitize(x)) == sanitize(x)
    """
    if not text:
        return ""

    text = strip_escapes(text)
    text = collapse_carriage_returns(text)
    return CONTROL_PATTERN.sub('', text)
