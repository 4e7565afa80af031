import pytest

from wondernav.config import Settings
from wondernav.errors import StorageError
from wondernav.handlers import chat_handler
from wondernav.services.chat_engine import ChatRequestHandler

# Tests may monkeypatch get_handler; keep the cached original to reset it
_get_handler = chat_handler.get_handler


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeStore:
    """In-memory stand-in for DynamoChatStore, keyed by input like the real table."""

    def __init__(self):
        self.records = {}
        self.put_calls = 0
        self.get_calls = 0
        self.fail_put = False
        self.fail_get = False

    def put_record(self, record):
        self.put_calls += 1
        if self.fail_put:
            raise StorageError("Could not save chat: simulated outage")
        self.records[record.input] = record

    def get_record(self, input_text):
        self.get_calls += 1
        if self.fail_get:
            raise StorageError("Could not read chat: simulated outage")
        return self.records.get(input_text)


class FakeCompletion:
    model_id = "fake-model"

    def __init__(self, output="Day 1: Fushimi Inari...", error=None, clock=None, takes_s=0.0):
        self.output = output
        self.error = error
        self.clock = clock
        self.takes_s = takes_s
        self.calls = []

    def complete(self, prompt, timeout_s):
        self.calls.append((prompt, timeout_s))
        if self.clock is not None:
            self.clock.now += self.takes_s
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture(autouse=True)
def aws_env(monkeypatch):
    """Fake credentials so no test can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    for name in ("AWS_PROFILE", "AWS_REGION", "CHATS_TABLE", "USERS_TABLE", "COMPLETION_PROVIDER",
                 "MODEL_ID", "OPENAI_API_KEY", "REQUEST_TIMEOUT_SECONDS", "MAX_INPUT_LENGTH",
                 "CACHE_LOOKUP", "CHAT_TTL_SECONDS", "DYNAMODB_ENDPOINT_URL", "LOG_LEVEL",
                 "TEMPERATURE", "MAX_TOKENS", "SYSTEM_PROMPT", "OPENAI_BASE_URL"):
        monkeypatch.delenv(name, raising=False)
    _get_handler.cache_clear()
    yield
    _get_handler.cache_clear()


@pytest.fixture
def settings():
    return Settings(table_name="test-Chats", request_timeout_seconds=25)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def completion(clock):
    return FakeCompletion(clock=clock)


@pytest.fixture
def handler(store, completion, settings, clock):
    return ChatRequestHandler(store, completion, settings, clock=clock)
