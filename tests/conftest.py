"""
Shared fakes: a Supabase query chain and an OpenAI chat client.
Neither touches the network.
"""

from types import SimpleNamespace

import pytest

from rosterdesk.common.context import AppState, AssistantConfig, SupabaseConfig
from rosterdesk.common.students import Student


class FakeQuery:
    """Records the builder calls and answers execute() from the client's queue."""

    def __init__(self, client, table):
        self.client = client
        self.table_name = table
        self.calls = []

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        return self

    def select(self, *args, **kwargs):
        return self._record("select", *args, **kwargs)

    def insert(self, *args, **kwargs):
        return self._record("insert", *args, **kwargs)

    def update(self, *args, **kwargs):
        return self._record("update", *args, **kwargs)

    def delete(self, *args, **kwargs):
        return self._record("delete", *args, **kwargs)

    def eq(self, *args, **kwargs):
        return self._record("eq", *args, **kwargs)

    def order(self, *args, **kwargs):
        return self._record("order", *args, **kwargs)

    def limit(self, *args, **kwargs):
        return self._record("limit", *args, **kwargs)

    def execute(self):
        pending = self.client.responses.get(self.table_name) or []
        outcome = pending.pop(0) if pending else []
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(data=outcome)

    def called(self, name):
        return [(args, kwargs) for n, args, kwargs in self.calls if n == name]


class FakeSupabase:
    def __init__(self):
        self.responses = {}
        self.queries = []

    def respond(self, table, *outcomes):
        """Queue execute() results for a table; an Exception instance is raised instead."""
        self.responses.setdefault(table, []).extend(outcomes)

    def table(self, name):
        q = FakeQuery(self, name)
        self.queries.append(q)
        return q

    def queries_for(self, table):
        return [q for q in self.queries if q.table_name == table]


class FakeCompletions:
    def __init__(self):
        self.replies = []
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


class FakeOpenAI:
    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def roster():
    """Two classes, first seen y7 then y8, plus one student with no class."""
    return [
        Student(id="s1", full_name="ada lovelace", school_year="y7", interests="maths, looms"),
        Student(id="s2", full_name="alan turing", school_year="y8", interests="running"),
        Student(id="s3", full_name="grace hopper", school_year="y7", interests="ships",
                learning_difficulties="dyslexia"),
        Student(id="s4", full_name="", school_year=None, interests="chess"),
    ]


@pytest.fixture
def app_state(tmp_path):
    return AppState(
        supabase=SupabaseConfig(url="https://demo.supabase.co", key="anon", teacher_id="t-1"),
        assistant=AssistantConfig(api_key="sk-test"),
        settings_path=str(tmp_path / "settings.yml"),
        profile_path=str(tmp_path / "profile.json"),
    )
