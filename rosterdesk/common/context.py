# common/context.py
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from rosterdesk.common.students import Student

APP_DIR = os.path.join(os.path.expanduser("~"), ".rosterdesk")


@dataclass
class SupabaseConfig:
    url: str = ""
    key: str = ""
    teacher_id: str = ""
    students_table: str = "students"


@dataclass
class AssistantConfig:
    api_key: str = ""
    base_url: str = ""            # empty -> OpenAI default; set for Grok/xAI etc.
    model: str = "gpt-4o-mini"
    title_model: str = ""         # empty -> same as model
    temperature: float = 0.7


@dataclass
class AppState:
    # Use default_factory for mutables!
    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)
    assistant: AssistantConfig = field(default_factory=AssistantConfig)

    settings_path: str = os.path.join(APP_DIR, "settings.yml")
    profile_path: str = os.path.join(APP_DIR, "profile.json")

    # last delivered roster snapshot
    students: List[Student] = field(default_factory=list)
    roster_source: str = ""

    # conversation currently shown in the Prompts tab
    conversation_id: Optional[str] = None

    ui: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_env(dotenv_path: Optional[str] = None) -> "AppState":
        """Seed configs from the environment (.env is read first when present)."""
        load_dotenv(dotenv_path)
        st = AppState()
        st.supabase.url = os.getenv("SUPABASE_URL", "").strip()
        st.supabase.key = os.getenv("SUPABASE_ANON_KEY", "").strip()
        st.supabase.teacher_id = os.getenv("ROSTERDESK_TEACHER_ID", "").strip()
        st.supabase.students_table = os.getenv("ROSTERDESK_STUDENTS_TABLE", "students").strip() or "students"
        st.assistant.api_key = os.getenv("OPENAI_API_KEY", "").strip()
        st.assistant.base_url = os.getenv("OPENAI_BASE_URL", "").strip()
        st.assistant.model = os.getenv("ROSTERDESK_MODEL", st.assistant.model).strip()
        return st
