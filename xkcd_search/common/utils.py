"""
Utility functions for the xkcd search tool.
"""
import logging
import math
import os
import re
import sys

_DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)')

_DURATION_UNITS = {
    'ns': 1e-9,
    'us': 1e-6,
    'µs': 1e-6,
    'ms': 1e-3,
    's': 1.0,
    'm': 60.0,
    'h': 3600.0,
}


def parse_duration(value):
    """Parse a duration such as '100ms', '1.5s' or '1m30s' into seconds.

    A bare number is read as seconds.
    """
    text = str(value).strip()
    if not text:
        raise ValueError("empty duration")
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            raise ValueError(f"invalid duration: {value!r}")
        return seconds

    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


def default_index_dir(app_name):
    """Return the platform-local config directory for app_name."""
    if sys.platform == 'win32':
        base = os.environ.get('LOCALAPPDATA') or os.path.expanduser('~')
    elif sys.platform == 'darwin':
        base = os.path.expanduser('~/Library/Application Support')
    else:
        base = os.environ.get('XDG_CONFIG_HOME') or os.path.expanduser('~/.config')
    return os.path.join(base, app_name)


def comic_page_url(num, base_url="https://xkcd.com"):
    """Return the human-facing page URL of a comic."""
    return f"{base_url.rstrip('/')}/{num}"


def setup_logging(verbose=False, log_file=None, log_format=None):
    """Configure root logging for command line use."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=log_format or '%(asctime)s [%(levelname)s] %(message)s',
        handlers=handlers,
        force=True,
    )
