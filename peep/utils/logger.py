"""Safe logging utility that handles Unicode/emoji characters.

Friendly names carry emoji, so every log line goes through here.
"""
import sys
from typing import Any

# Configure stdout/stderr for UTF-8 on Windows
if sys.platform == 'win32':
    for stream in (sys.stdout, sys.stderr):
        if hasattr(stream, 'reconfigure'):
            try:
                stream.reconfigure(encoding='utf-8', errors='replace')
            except (ValueError, OSError):
                pass


def _ascii(value: Any) -> str:
    return str(value).encode('ascii', errors='replace').decode('ascii')


def safe_print(*args, **kwargs):
    """
    Print that never fails on emoji.
    Falls back to an ASCII rendering when the console cannot encode the text.
    """
    try:
        print(*args, **kwargs)
    except (UnicodeEncodeError, UnicodeDecodeError):
        print(*[_ascii(arg) for arg in args], **kwargs)


def log(component: str, message: str, *details: Any):
    """Log a line prefixed with the component name, e.g. ``StatusBroadcaster: Stopped``."""
    line = f"{component}: {message}"
    if details:
        line += " " + " ".join(safe_repr(d) if not isinstance(d, str) else d for d in details)
    safe_print(line)


def log_error(component: str, message: str, error: BaseException = None):
    if error is not None:
        safe_print(f"{component}: {message}: {error}", file=sys.stderr)
    else:
        safe_print(f"{component}: {message}", file=sys.stderr)


def safe_repr(obj: Any) -> str:
    """
    Safe representation function that handles Unicode characters.
    """
    try:
        return repr(obj)
    except (UnicodeEncodeError, UnicodeDecodeError):
        return _ascii(obj)
