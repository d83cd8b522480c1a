import os
import tempfile
from types import SimpleNamespace

# Must run before anything imports the settings singleton.
_DB_DIR = tempfile.mkdtemp(prefix="anymo-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'chats.db')}"
os.environ["API_KEY"] = ""

import pytest

from anymo_backend.database.config.connection_engine import connection_engine
from anymo_backend.database.core.funcs import init_schema
from anymo_backend.database.entities.chats import Chat
from anymo_backend.enrichment.analyzers import RemoteTextAnalyzer


class FakeAnalyzer(RemoteTextAnalyzer):
    def __init__(self, name: str, result=None, error: Exception | None = None):
        self.name = name
        self.result = result
        self.error = error
        self.calls: list[str] = []

    def analyze(self, text: str):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.result


class FakeChatModel:
    def __init__(self, content="", error: Exception | None = None):
        self.content = content
        self.error = error
        self.prompts: list[str] = []

    def invoke(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.content)


@pytest.fixture(autouse=True)
def clean_chats():
    init_schema()
    with connection_engine.begin() as connection:
        connection.execute(Chat.__table__.delete())
    yield


@pytest.fixture
def fake_analyzer():
    return FakeAnalyzer


@pytest.fixture
def fake_chat_model():
    return FakeChatModel
