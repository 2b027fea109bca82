# app.py
import logging
import os
import tkinter as tk
from tkinter import ttk

from rosterdesk.common.context import AppState
from rosterdesk.common.loader import BackgroundLoader
from rosterdesk.common.notify import toast_error
from rosterdesk.common.supabase_io import fetch_students, get_client
from rosterdesk.common.yaml_rt import load_settings
from rosterdesk.tabs.connection_tab import ConnectionTab
from rosterdesk.tabs.prompts_tab import PromptsTab
from rosterdesk.tabs.students_tab import StudentsTab

logger = logging.getLogger(__name__)


class App(tk.Tk):
    def __init__(self, state: AppState = None):
        super().__init__()
        self.title("RosterDesk (classes, students, adapted questions)")
        self.geometry("1180x820")
        self.minsize(960, 680)

        self.app_state = state or AppState.from_env()
        try:
            load_settings(self.app_state)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable settings file: %s", e)

        nb = ttk.Notebook(self)
        nb.pack(fill=tk.BOTH, expand=True)

        self.tab_conn = ConnectionTab(nb, self.app_state)
        self.tab_students = StudentsTab(nb, self.app_state)
        self.tab_prompts = PromptsTab(nb, self.app_state)

        self.app_state.ui = {
            "connection_tab": self.tab_conn,
            "students_tab": self.tab_students,
            "prompts_tab": self.tab_prompts,
        }

        nb.add(self.tab_conn, text="1) Connection")
        nb.add(self.tab_students, text="2) Students")
        nb.add(self.tab_prompts, text="3) Prompts")
        self.notebook = nb

        # One roster fetch at a time; a failure keeps the previous roster and selection.
        self.roster_loader = BackgroundLoader(self._fetch_roster, self._on_roster_loaded, self._on_roster_failed)
        self.roster_loader.poll(self)

        for tab in (self.tab_conn, self.tab_students):
            tab.bind("<<LoadStudents>>", self._on_load_students)
        self.tab_students.bind("<<StudentsLoaded>>", self._on_students_loaded)
        self.tab_conn.bind("<<ConnectionChanged>>", self.tab_prompts.on_connection_changed)

    def _fetch_roster(self):
        cfg = self.app_state.supabase
        return fetch_students(get_client(cfg), cfg.teacher_id or None, table=cfg.students_table)

    def _on_load_students(self, _evt=None):
        self.roster_loader.start()

    def _on_roster_loaded(self, students):
        self.app_state.students = students
        self.app_state.roster_source = "database"
        self._on_students_loaded()

    def _on_roster_failed(self, exc):
        toast_error(self, "Could not load students", exc)

    def _on_students_loaded(self, _evt=None):
        # Let tabs re-render the latest roster snapshot
        for tab in (self.tab_students, self.tab_prompts):
            if hasattr(tab, "refresh"):
                tab.refresh()
        if self.app_state.supabase.teacher_id and self.app_state.roster_source == "database":
            self.tab_prompts.refresh_conversations()


def main():
    logging.basicConfig(
        level=os.getenv("ROSTERDESK_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    App().mainloop()


if __name__ == "__main__":
    main()
