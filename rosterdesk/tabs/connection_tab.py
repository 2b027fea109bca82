from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk, messagebox

from rosterdesk.common.context import AppState
from rosterdesk.common.loader import BackgroundLoader
from rosterdesk.common.supabase_io import fetch_students, get_client
from rosterdesk.common.yaml_rt import load_settings, save_settings
from rosterdesk.profile_integration import (
    load_connection_from_profile,
    save_connection_to_profile,
)

logger = logging.getLogger(__name__)


class ConnectionTab(ttk.Frame):
    """
    Connection / Settings Tab

    - Binds to AppState (self.app_state) and edits self.app_state.supabase / self.app_state.assistant.
    - Saves non-secret settings to settings.yml, keys to the encrypted profile.
    - "Load students" emits <<LoadStudents>>; the app runs the fetch.
    - Emits <<ConnectionChanged>> whenever fields are applied.
    """

    def __init__(self, parent, state: AppState):
        super().__init__(parent)
        self.app_state = state

        self.var_url = tk.StringVar()
        self.var_key = tk.StringVar()
        self.var_teacher = tk.StringVar()
        self.var_table = tk.StringVar()
        self.var_ai_url = tk.StringVar()
        self.var_ai_key = tk.StringVar()
        self.var_model = tk.StringVar()
        self.var_profile_path = tk.StringVar(value=state.profile_path)
        self.var_settings_path = tk.StringVar(value=state.settings_path)

        self._tester = BackgroundLoader(
            lambda: fetch_students(get_client(self.app_state.supabase), self.app_state.supabase.teacher_id or None,
                                   table=self.app_state.supabase.students_table),
            self._on_test_ok, self._on_test_failed, label="connection test",
        )

        self._build()
        self._sync_ui_from_state()
        self._tester.poll(self)

    # ---------------------------------------------------------------------
    # UI
    # ---------------------------------------------------------------------
    def _build(self):
        outer = ttk.Frame(self)
        outer.pack(fill=tk.BOTH, expand=True, padx=10, pady=10)

        ttk.Label(outer, text="1) Connect to your roster and AI assistant", font=("Segoe UI", 12, "bold")).pack(
            anchor="w", pady=(0, 8)
        )

        db = ttk.LabelFrame(outer, text="Supabase"); db.pack(fill=tk.X, pady=(0, 8))
        db.columnconfigure(1, weight=1)
        self._row(db, 0, "Project URL", self.var_url)
        self._row(db, 1, "Anon key", self.var_key, show="•")
        self._row(db, 2, "Teacher id", self.var_teacher)
        self._row(db, 3, "Students table", self.var_table)

        ai = ttk.LabelFrame(outer, text="AI assistant (OpenAI-compatible)"); ai.pack(fill=tk.X, pady=(0, 8))
        ai.columnconfigure(1, weight=1)
        self._row(ai, 0, "Base URL (blank = OpenAI)", self.var_ai_url)
        self._row(ai, 1, "API key", self.var_ai_key, show="•")
        self._row(ai, 2, "Model", self.var_model)

        row_btns = ttk.Frame(outer); row_btns.pack(fill=tk.X, pady=(4, 6))
        ttk.Button(row_btns, text="Apply", command=self.on_apply).pack(side=tk.LEFT)
        ttk.Button(row_btns, text="Test connection", command=self.on_test).pack(side=tk.LEFT, padx=(8, 0))
        ttk.Button(row_btns, text="Load students", command=self.on_load_students).pack(side=tk.LEFT, padx=(8, 0))

        row_set = ttk.Frame(outer); row_set.pack(fill=tk.X, pady=(10, 4))
        ttk.Label(row_set, text="Settings File").pack(side=tk.LEFT)
        ttk.Entry(row_set, textvariable=self.var_settings_path, width=60).pack(side=tk.LEFT, padx=(4, 8))
        ttk.Button(row_set, text="Load Settings", command=self._on_load_settings).pack(side=tk.LEFT)
        ttk.Button(row_set, text="Save Settings", command=self._on_save_settings).pack(side=tk.LEFT, padx=(8, 0))

        row_prof = ttk.Frame(outer); row_prof.pack(fill=tk.X, pady=(4, 6))
        ttk.Label(row_prof, text="Profile File").pack(side=tk.LEFT)
        ttk.Entry(row_prof, textvariable=self.var_profile_path, width=60).pack(side=tk.LEFT, padx=(4, 8))
        ttk.Button(row_prof, text="Load From Profile", command=self._on_load_profile).pack(side=tk.LEFT)
        ttk.Button(row_prof, text="Save To Profile", command=self._on_save_profile).pack(side=tk.LEFT, padx=(8, 0))

        self._lbl_status = ttk.Label(outer, text="", foreground="#227722")
        self._lbl_status.pack(anchor="w", pady=(8, 4))

    def _row(self, parent, r, label, var, show=None):
        ttk.Label(parent, text=label).grid(row=r, column=0, sticky="w", padx=6, pady=2)
        ttk.Entry(parent, textvariable=var, show=show or "").grid(row=r, column=1, sticky="ew", padx=6, pady=2)

    def _set_status(self, msg, ok=True):
        self._lbl_status.configure(text=msg, foreground=("#157347" if ok else "#B00020"))

    # ---------------------------------------------------------------------
    # State <-> UI
    # ---------------------------------------------------------------------
    def _sync_ui_from_state(self) -> None:
        s, a = self.app_state.supabase, self.app_state.assistant
        self.var_url.set(s.url); self.var_key.set(s.key)
        self.var_teacher.set(s.teacher_id); self.var_table.set(s.students_table)
        self.var_ai_url.set(a.base_url); self.var_ai_key.set(a.api_key); self.var_model.set(a.model)

    def _sync_state_from_ui(self) -> None:
        s, a = self.app_state.supabase, self.app_state.assistant
        s.url = (self.var_url.get() or "").strip()
        s.key = (self.var_key.get() or "").strip()
        s.teacher_id = (self.var_teacher.get() or "").strip()
        s.students_table = (self.var_table.get() or "").strip() or "students"
        a.base_url = (self.var_ai_url.get() or "").strip()
        a.api_key = (self.var_ai_key.get() or "").strip()
        a.model = (self.var_model.get() or "").strip() or a.model
        self.app_state.profile_path = (self.var_profile_path.get() or "").strip() or self.app_state.profile_path
        self.app_state.settings_path = (self.var_settings_path.get() or "").strip() or self.app_state.settings_path
        self.event_generate("<<ConnectionChanged>>", when="tail")

    # ---------------------------------------------------------------------
    # Actions
    # ---------------------------------------------------------------------
    def on_apply(self):
        self._sync_state_from_ui()
        self._set_status("Settings applied.")

    def on_test(self):
        self._sync_state_from_ui()
        if self._tester.busy:
            self._set_status("Connection test already running…", ok=False); return
        self._set_status("Testing connection…")
        self._tester.start()

    def _on_test_ok(self, students):
        self._set_status(f"Connected. {len(students)} student(s) visible.")
        messagebox.showinfo("Connection OK", f"Supabase reachable; {len(students)} student(s) visible.")

    def _on_test_failed(self, exc):
        self._set_status(f"Connection failed: {exc}", ok=False)
        messagebox.showerror("Connection Error", str(exc))

    def on_load_students(self):
        self._sync_state_from_ui()
        self._set_status("Loading students…")
        self.event_generate("<<LoadStudents>>", when="tail")

    def _on_load_settings(self):
        path = (self.var_settings_path.get() or "").strip()
        try:
            found = load_settings(self.app_state, path)
        except (OSError, ValueError) as e:
            logger.warning("Settings load failed: %s", e)
            messagebox.showerror("Settings", f"Failed to read settings:\n{e}"); return
        if not found:
            self._set_status(f"No settings file at {path}", ok=False); return
        self._sync_ui_from_state()
        self.event_generate("<<ConnectionChanged>>", when="tail")
        self._set_status(f"Settings loaded from {path}")

    def _on_save_settings(self):
        self._sync_state_from_ui()
        try:
            path = save_settings(self.app_state, self.app_state.settings_path)
        except OSError as e:
            messagebox.showerror("Settings", f"Failed to save settings:\n{e}"); return
        self._set_status(f"Settings saved to {path} (keys are not stored there).")

    def _on_load_profile(self):
        path = (self.var_profile_path.get() or "").strip()
        if load_connection_from_profile(self, path, self.app_state):
            self._sync_ui_from_state()
            self.event_generate("<<ConnectionChanged>>", when="tail")
            self._set_status("Connection fields loaded from profile.")

    def _on_save_profile(self):
        self._sync_state_from_ui()
        save_connection_to_profile(self, self.app_state.profile_path, self.app_state)
