import pytest

from rosterdesk.common.context import AppState

ENV_VARS = (
    "SUPABASE_URL", "SUPABASE_ANON_KEY", "ROSTERDESK_TEACHER_ID", "ROSTERDESK_STUDENTS_TABLE",
    "OPENAI_API_KEY", "OPENAI_BASE_URL", "ROSTERDESK_MODEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Unset the app's variables; whatever load_dotenv writes is undone afterwards."""
    for name in ENV_VARS:
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    return monkeypatch


class TestAppState:
    def test_defaults(self):
        st = AppState()
        assert st.supabase.students_table == "students"
        assert st.assistant.model == "gpt-4o-mini"
        assert st.students == [] and st.conversation_id is None
        assert AppState().students is not st.students

    def test_from_env(self, clean_env, tmp_path):
        clean_env.setenv("SUPABASE_URL", " https://demo.supabase.co ")
        clean_env.setenv("ROSTERDESK_TEACHER_ID", "t-1")
        clean_env.setenv("OPENAI_BASE_URL", "https://api.x.ai/v1")

        st = AppState.from_env(str(tmp_path / "missing.env"))

        assert st.supabase.url == "https://demo.supabase.co"
        assert st.supabase.teacher_id == "t-1"
        assert st.supabase.key == ""
        assert st.assistant.base_url == "https://api.x.ai/v1"
        assert st.assistant.model == "gpt-4o-mini"

    def test_dotenv_file(self, clean_env, tmp_path):
        env = tmp_path / ".env"
        env.write_text("SUPABASE_ANON_KEY=anon\nROSTERDESK_MODEL=grok-3-mini\n", encoding="utf-8")

        st = AppState.from_env(str(env))

        assert st.supabase.key == "anon"
        assert st.assistant.model == "grok-3-mini"

    def test_environment_wins_over_dotenv(self, clean_env, tmp_path):
        clean_env.setenv("ROSTERDESK_MODEL", "gpt-4o")
        env = tmp_path / ".env"
        env.write_text("ROSTERDESK_MODEL=grok-3-mini\n", encoding="utf-8")

        assert AppState.from_env(str(env)).assistant.model == "gpt-4o"
