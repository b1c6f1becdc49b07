"""
CommunityOS Bot - Logging Utilities
Console logging with emoji indicators, level set from LOG_LEVEL.
"""

import os
from datetime import datetime

# Log levels
QUIET = 0   # Only errors
NORMAL = 1  # Errors + important events
VERBOSE = 2 # Everything

_LEVEL_NAMES = {"quiet": QUIET, "normal": NORMAL, "verbose": VERBOSE}

LOG_LEVEL = _LEVEL_NAMES.get(os.getenv('LOG_LEVEL', 'normal').lower(), NORMAL)


class Colors:
    """ANSI color codes for terminal output."""
    OK = '\033[92m'      # Green
    WARN = '\033[93m'    # Yellow
    FAIL = '\033[91m'    # Red
    INFO = '\033[94m'    # Blue
    DIM = '\033[90m'     # Gray
    BOLD = '\033[1m'
    END = '\033[0m'


def _timestamp():
    return datetime.now().strftime("%H:%M:%S")


def _log(icon: str, color: str, msg: str, scope: str = None, level: int = NORMAL):
    if level > LOG_LEVEL:
        return

    ts = f"{Colors.DIM}{_timestamp()}{Colors.END}"
    prefix = f"[{scope}] " if scope else ""
    print(f"{ts} {color}{icon}{Colors.END} {prefix}{msg}")


# Public logging functions
def ok(msg: str, scope: str = None):
    """Log success message."""
    _log("✓", Colors.OK, msg, scope, NORMAL)


def warn(msg: str, scope: str = None):
    """Log warning message."""
    _log("⚠", Colors.WARN, msg, scope, NORMAL)


def error(msg: str, scope: str = None):
    """Log error message."""
    _log("✗", Colors.FAIL, msg, scope, QUIET)


def info(msg: str, scope: str = None):
    """Log info message."""
    _log("ℹ", Colors.INFO, msg, scope, NORMAL)


def debug(msg: str, scope: str = None):
    """Log debug message (only in verbose mode)."""
    _log("•", Colors.DIM, msg, scope, VERBOSE)


def startup(msg: str):
    """Log startup message (always shown)."""
    print(f"{Colors.BOLD}{msg}{Colors.END}")


def online(msg: str, scope: str = None):
    """Log online status (always shown)."""
    ts = f"{Colors.DIM}{_timestamp()}{Colors.END}"
    prefix = f"[{scope}] " if scope else ""
    print(f"{ts} {Colors.OK}●{Colors.END} {prefix}{msg}")


def divider():
    print(f"{Colors.DIM}{'─' * 50}{Colors.END}")
