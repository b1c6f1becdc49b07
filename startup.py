"""
CommunityOS Bot - Startup Validation
Checks the environment, token, backends and data directory before the bot connects.
"""

import os
import sys
import json
from pathlib import Path
from typing import Callable, List, Tuple

from dotenv import load_dotenv


class Colors:
    OK = '\033[92m'
    WARN = '\033[93m'
    FAIL = '\033[91m'
    INFO = '\033[94m'
    BOLD = '\033[1m'
    DIM = '\033[2m'
    END = '\033[0m'


def ok(msg): print(f"{Colors.OK}✓{Colors.END} {msg}")
def warn(msg): print(f"{Colors.WARN}⚠{Colors.END} {msg}")
def fail(msg): print(f"{Colors.FAIL}✗{Colors.END} {msg}")
def info(msg): print(f"{Colors.INFO}ℹ{Colors.END} {msg}")


BASE_DIR = Path(__file__).parent

ENV_TEMPLATE = """# CommunityOS Discord Bot
DISCORD_TOKEN=
BOT_NAME=Paco
PACO_HUB_URL=http://localhost:3010

# Direct providers (optional, used when the Hub is down)
ANTHROPIC_API_KEY=
OPENROUTER_API_KEY=

# DATA_DIR=bot_data
# LOG_LEVEL=normal
"""

# Issue markers that stop the bot from starting
CRITICAL_MARKERS = ("missing", "invalid")

CheckResult = Tuple[bool, List[str]]


def check_env_file(interactive: bool = True, base_dir: Path = BASE_DIR) -> CheckResult:
    """A .env file, or DISCORD_TOKEN already in the environment."""
    env_file = base_dir / ".env"
    if env_file.exists():
        ok(".env file found")
        return True, []
    if os.getenv("DISCORD_TOKEN"):
        info("No .env file, using environment variables")
        return True, []

    fail(".env file missing!")
    if not interactive:
        return False, ["missing .env"]

    try:
        answer = input(f"\n{Colors.BOLD}Write a template .env now?{Colors.END} [Y/n]: ").strip().lower()
    except (EOFError, KeyboardInterrupt):
        return False, ["missing .env"]
    if answer not in ('', 'y', 'yes'):
        return False, ["missing .env"]

    env_file.write_text(ENV_TEMPLATE, encoding="utf-8")
    ok(f"Wrote {env_file}")
    warn("Add your DISCORD_TOKEN to .env, then restart")
    return False, ["new .env created - needs editing"]


def check_discord_token() -> CheckResult:
    load_dotenv()
    token = os.getenv("DISCORD_TOKEN")

    if not token:
        fail("DISCORD_TOKEN not set!")
        return False, ["missing DISCORD_TOKEN"]
    # Bot tokens are three dot-separated base64 segments
    if len(token) < 50 or token.count('.') < 2:
        warn("DISCORD_TOKEN doesn't look like a bot token")
        return False, ["DISCORD_TOKEN looks invalid"]

    ok("DISCORD_TOKEN is set")
    return True, []


def check_backends() -> CheckResult:
    """Report which AI backends are configured. The static fallback always works."""
    load_dotenv()

    ok(f"Paco Hub: {os.getenv('PACO_HUB_URL', 'http://localhost:3010')}")

    configured = 0
    for name, key_env in (("Anthropic", "ANTHROPIC_API_KEY"), ("OpenRouter", "OPENROUTER_API_KEY")):
        if os.getenv(key_env):
            ok(f"  [{name}] Key: ✓")
            configured += 1
        else:
            warn(f"  [{name}] {key_env} not set - provider will be skipped")

    if not configured:
        warn("No direct providers configured; replies fall back to static text when the Hub is down")
        return False, ["no direct providers"]
    return True, []


def check_data_dir() -> CheckResult:
    """Make sure the data directory and any existing JSON files are usable."""
    from config import DATA_DIR, CHATBOT_CONFIG_FILE, LEADERBOARD_FILE

    data_dir = Path(DATA_DIR)
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        fail(f"Cannot create {data_dir}: {e}")
        return False, [f"invalid data directory {data_dir}"]
    ok(f"Data directory: {data_dir}")

    issues = []
    for path in (Path(CHATBOT_CONFIG_FILE), Path(LEADERBOARD_FILE)):
        if not path.exists():
            info(f"  {path.name} will be created on first use")
            continue
        try:
            with open(path, encoding="utf-8") as f:
                json.load(f)
            ok(f"  {path.name} OK")
        except json.JSONDecodeError as e:
            warn(f"  {path.name} is invalid JSON ({e}) - defaults will be used")
            issues.append(f"{path.name} unreadable")

    return not issues, issues


def critical(issues: List[str]) -> List[str]:
    return [i for i in issues if any(marker in i.lower() for marker in CRITICAL_MARKERS)]


def validate_startup(interactive: bool = True) -> bool:
    """Run every check and print a summary. False means the bot should not start."""
    checks: List[Tuple[str, Callable[[], CheckResult]]] = [
        ("Configuration Files", lambda: check_env_file(interactive)),
        ("Discord Token", check_discord_token),
        ("AI Backends", check_backends),
        ("Data Directory", check_data_dir),
    ]

    rule = '=' * 50
    print(f"\n{Colors.BOLD}{rule}\nCommunityOS Bot - Startup Validation\n{rule}{Colors.END}")

    all_issues = []
    for number, (title, check) in enumerate(checks, 1):
        print(f"\n{Colors.BOLD}[{number}/{len(checks)}] {title}{Colors.END}")
        _, issues = check()
        all_issues.extend(issues)

    print(f"\n{Colors.BOLD}{rule}{Colors.END}")
    blocking = critical(all_issues)

    if blocking:
        print(f"{Colors.FAIL}{Colors.BOLD}✗ {len(blocking)} critical issue(s):{Colors.END}")
        for issue in blocking:
            print(f"  • {issue}")
        return False

    if all_issues:
        print(f"{Colors.WARN}{Colors.BOLD}⚠ Starting with {len(all_issues)} warning(s):{Colors.END}")
        for issue in all_issues:
            print(f"  • {issue}")
    else:
        print(f"{Colors.OK}{Colors.BOLD}✓ All checks passed! Starting bot...{Colors.END}")
    return True


if __name__ == "__main__":
    sys.exit(0 if validate_startup(interactive=True) else 1)
