from types import SimpleNamespace

import httpx
import pytest

pytest.importorskip("tkinter")

from rosterdesk.common.assistant import Assistant  # noqa: E402
from rosterdesk.common.supabase_io import CONVERSATIONS_TABLE, MESSAGES_TABLE  # noqa: E402
from rosterdesk.tabs import prompts_tab  # noqa: E402
from rosterdesk.tabs.prompts_tab import PromptsTab  # noqa: E402

STUDENTS = [{"id": "s1", "interests": "football", "learning_difficulties": None, "school_year": "y7"}]


@pytest.fixture
def tab(app_state, fake_supabase, fake_openai, monkeypatch):
    """Just the attributes the adaptation worker reads; no window is created."""
    monkeypatch.setattr(prompts_tab, "get_client", lambda cfg: fake_supabase)
    monkeypatch.setattr(prompts_tab, "Assistant", lambda cfg: Assistant(cfg, client=fake_openai))
    fake_openai.completions.replies = ["ADAPTED REPLY", "Fractions For Footballers"]
    return SimpleNamespace(app_state=app_state, _request=("What is 3/4 of 20?", STUDENTS, None))


class TestRunAdaptation:
    """The reply survives whatever happens while saving it"""

    def test_saves_new_conversation(self, tab, fake_supabase):
        fake_supabase.respond(CONVERSATIONS_TABLE, [{"id": "c1"}], [], [{"id": "c1", "title": "x"}], [])
        fake_supabase.respond(MESSAGES_TABLE, [{"id": "m1"}], [{"id": "m2"}])

        result = PromptsTab._run_adaptation(tab)

        assert result == {"reply": "ADAPTED REPLY", "conversation_id": "c1", "saved": True}
        inserts = [q.called("insert")[0][0][0] for q in fake_supabase.queries_for(MESSAGES_TABLE)]
        assert [m["sender"] for m in inserts] == ["user", "assistant"]

    def test_network_error_keeps_reply(self, tab, fake_supabase):
        fake_supabase.respond(CONVERSATIONS_TABLE, httpx.ConnectError("connection refused"))

        result = PromptsTab._run_adaptation(tab)

        assert result["reply"] == "ADAPTED REPLY"
        assert result["saved"] is False
        assert "connection refused" in result["error"]
        assert result["conversation_id"] is None

    def test_existing_conversation_gets_both_messages(self, tab, fake_supabase):
        tab._request = ("Next question", STUDENTS, "c7")
        fake_supabase.respond(MESSAGES_TABLE, [{"id": "m1"}], [{"id": "m2"}])

        result = PromptsTab._run_adaptation(tab)

        assert result["conversation_id"] == "c7"
        assert result["saved"] is True
        assert all(q.called("insert") == [] for q in fake_supabase.queries_for(CONVERSATIONS_TABLE))

    def test_without_teacher_nothing_is_saved(self, tab, fake_supabase):
        tab.app_state.supabase.teacher_id = ""

        result = PromptsTab._run_adaptation(tab)

        assert result == {"reply": "ADAPTED REPLY", "conversation_id": None, "saved": False}
        assert fake_supabase.queries == []


class FakeListbox:
    def __init__(self):
        self.deleted = []

    def delete(self, first, last):
        self.deleted.append((first, last))


class TestConnectionChanged:
    @pytest.fixture
    def tab(self, app_state):
        started = []
        return SimpleNamespace(
            app_state=app_state,
            _conversations=[{"id": "c1"}],
            _conversations_teacher="t-1",
            lst_conversations=FakeListbox(),
            on_new_conversation=lambda: started.append(True),
            started=started,
        )

    def test_same_teacher_keeps_list(self, tab):
        PromptsTab.on_connection_changed(tab)
        assert tab._conversations == [{"id": "c1"}]
        assert tab.lst_conversations.deleted == []
        assert tab.started == []

    def test_new_teacher_clears_list(self, tab):
        tab.app_state.supabase.teacher_id = "t-2"

        PromptsTab.on_connection_changed(tab)

        assert tab._conversations == []
        assert tab._conversations_teacher == "t-2"
        assert tab.lst_conversations.deleted == [(0, "end")]
        assert tab.started == [True]
