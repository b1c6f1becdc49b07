"""
Test configuration
"""
import pytest
import sys
import os
import tempfile
from pathlib import Path

# Add project root to path
root_path = Path(__file__).parent.parent
sys.path.insert(0, str(root_path))

# Set minimal environment variables for testing
os.environ.setdefault("DISCORD_TOKEN", "test_token")
os.environ.setdefault("PACO_HUB_URL", "http://hub.test")
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="communityos-test-"))

from models import IncomingMessage  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_message():
    """Factory for pipeline messages with sensible defaults"""
    counter = {"n": 0}

    def _make(content="hello", channel_name="general", author_id="u1", author_name="Alice", **kwargs):
        counter["n"] += 1
        kwargs.setdefault("message_id", f"m{counter['n']}")
        kwargs.setdefault("channel_id", "c1")
        return IncomingMessage(
            channel_name=channel_name,
            author_id=author_id,
            author_name=author_name,
            content=content,
            **kwargs,
        )

    return _make
