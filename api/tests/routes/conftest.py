"""Route tests run with rate limiting switched off."""

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def _disable_rate_limiter():
    """Lets tests call decorated endpoints directly and send bursts of requests."""
    with patch("core.ratelimit.limiter.enabled", False):
        yield
