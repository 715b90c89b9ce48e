import pytest

import config


class FakeAI:
    """Stands in for AIService; replays scripted replies in call order."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []
        self.model = "fake-model"

    def invoke(self, prompt, schema=None, **kwargs):
        self.calls.append({"prompt": prompt, "schema": schema, **kwargs})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture(autouse=True)
def clear_api_key_cache():
    config.resolve_api_key.cache_clear()
    yield
    config.resolve_api_key.cache_clear()


@pytest.fixture
def fake_ai():
    return FakeAI
