from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk, messagebox, filedialog

from rosterdesk.common.context import AppState
from rosterdesk.common.loader import BackgroundLoader
from rosterdesk.common.notify import toast, toast_error
from rosterdesk.common.students import (
    SCHOOL_YEARS,
    RosterFileError,
    class_label,
    format_name,
    load_roster_yaml,
    validate_new_student,
)
from rosterdesk.common.supabase_io import create_student, get_client
from rosterdesk.tabs.prompts.model import group

logger = logging.getLogger(__name__)


class StudentsTab(ttk.Frame):
    """
    Roster view grouped by class (sorted), plus Add student and YAML import.
    Emits <<LoadStudents>> after a successful add, <<StudentsLoaded>> after an import.
    """

    def __init__(self, master, state: AppState):
        super().__init__(master)
        self.app_state = state
        self._creator = BackgroundLoader(self._create_pending, self._on_created, self._on_create_failed,
                                         label="new student")
        self._pending_row = None
        self._build()
        self._creator.poll(self)

    def _build(self):
        outer = ttk.Frame(self); outer.pack(fill=tk.BOTH, expand=True, padx=10, pady=10)

        top = ttk.Frame(outer); top.pack(fill=tk.X)
        ttk.Button(top, text="Add student…", command=self.on_add).pack(side=tk.LEFT)
        ttk.Button(top, text="Import roster (YAML)…", command=self.on_import).pack(side=tk.LEFT, padx=6)
        ttk.Button(top, text="Reload", command=lambda: self.event_generate("<<LoadStudents>>", when="tail"))\
            .pack(side=tk.LEFT)
        self.lbl_summary = ttk.Label(top, text="No students loaded.", foreground="#777")
        self.lbl_summary.pack(side=tk.LEFT, padx=(12, 0))

        wrap = ttk.Frame(outer); wrap.pack(fill=tk.BOTH, expand=True, pady=8)
        cols = ("interests", "difficulties")
        self.tree = ttk.Treeview(wrap, columns=cols, show="tree headings")
        self.tree.heading("#0", text="Class / Student")
        self.tree.heading("interests", text="Interests")
        self.tree.heading("difficulties", text="Learning difficulties")
        self.tree.column("#0", width=240, anchor=tk.W)
        for col, w in (("interests", 320), ("difficulties", 320)):
            self.tree.column(col, width=w, anchor=tk.W)
        vs = ttk.Scrollbar(wrap, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscrollcommand=vs.set)
        self.tree.grid(row=0, column=0, sticky="nsew"); vs.grid(row=0, column=1, sticky="ns")
        wrap.columnconfigure(0, weight=1); wrap.rowconfigure(0, weight=1)

    # ---- outer app hook after <<StudentsLoaded>>
    def refresh(self):
        self.tree.delete(*self.tree.get_children())
        classes = group(self.app_state.students, lambda s: s.school_year, class_label, sort_keys=True)
        for grp in classes:
            gid = self.tree.insert("", tk.END, text=f"{grp.label} ({len(grp)})", open=True)
            for st in grp.members:
                self.tree.insert(gid, tk.END, text=st.display_name,
                                 values=(st.interests or "", st.learning_difficulties or ""))
        src = self.app_state.roster_source or "database"
        self.lbl_summary.configure(
            text=f"{len(self.app_state.students)} student(s) in {len(classes)} class(es) from {src}"
        )

    # ---- import ----
    def on_import(self):
        path = filedialog.askopenfilename(
            title="Import roster", filetypes=[("YAML", "*.yml *.yaml"), ("All files", "*.*")]
        )
        if not path:
            return
        try:
            students = load_roster_yaml(path)
        except (OSError, RosterFileError) as e:
            toast_error(self, "Roster import failed", e); return
        self.app_state.students = students
        self.app_state.roster_source = path
        logger.info("Imported %d students from %s", len(students), path)
        self.event_generate("<<StudentsLoaded>>", when="tail")

    # ---- add ----
    def on_add(self):
        AddStudentDialog(self, self._submit_new_student)

    def _submit_new_student(self, row: dict) -> bool:
        if self._creator.busy:
            messagebox.showwarning("Add Student", "Still saving the previous student."); return False
        self._pending_row = row
        self._creator.start()
        return True

    def _create_pending(self):
        row = self._pending_row
        cfg = self.app_state.supabase
        return create_student(get_client(cfg), cfg.teacher_id, row["full_name"], row["school_year"],
                              row["interests"], row["learning_difficulties"], table=cfg.students_table)

    def _on_created(self, student):
        toast(self, "Student added", f"{student.display_name} → {class_label(student.school_year or '?')}",
              timeout_ms=4000)
        self.event_generate("<<LoadStudents>>", when="tail")

    def _on_create_failed(self, exc):
        toast_error(self, "Could not add student", exc)


class AddStudentDialog(tk.Toplevel):
    """Full name, class, interests (required) and learning difficulties (optional)."""

    def __init__(self, master, on_submit):
        super().__init__(master)
        self.title("Add New Student")
        self.transient(master.winfo_toplevel())
        self.resizable(False, False)
        self.on_submit = on_submit

        frm = ttk.Frame(self, padding=12); frm.pack(fill=tk.BOTH, expand=True)
        frm.columnconfigure(1, weight=1)

        ttk.Label(frm, text="Full Name").grid(row=0, column=0, sticky="w", pady=3)
        self.ent_name = ttk.Entry(frm, width=36); self.ent_name.grid(row=0, column=1, sticky="ew", pady=3)

        ttk.Label(frm, text="Class").grid(row=1, column=0, sticky="w", pady=3)
        self.cbo_year = ttk.Combobox(frm, values=[format_name(y, capitalize_last_letter=True) for y in SCHOOL_YEARS],
                                     state="readonly")
        self.cbo_year.grid(row=1, column=1, sticky="ew", pady=3)

        ttk.Label(frm, text="Interests").grid(row=2, column=0, sticky="nw", pady=3)
        self.txt_interests = tk.Text(frm, height=3, width=36, wrap=tk.WORD)
        self.txt_interests.grid(row=2, column=1, sticky="ew", pady=3)
        ttk.Label(frm, text="Separate with commas (e.g., BMX, skateboarding)", foreground="#777")\
            .grid(row=3, column=1, sticky="w")

        ttk.Label(frm, text="Learning Difficulties").grid(row=4, column=0, sticky="nw", pady=3)
        self.txt_difficulties = tk.Text(frm, height=3, width=36, wrap=tk.WORD)
        self.txt_difficulties.grid(row=4, column=1, sticky="ew", pady=3)

        self.lbl_error = ttk.Label(frm, text="", foreground="#B00020")
        self.lbl_error.grid(row=5, column=0, columnspan=2, sticky="w", pady=(6, 0))

        btns = ttk.Frame(frm); btns.grid(row=6, column=0, columnspan=2, sticky="e", pady=(8, 0))
        ttk.Button(btns, text="Cancel", command=self.destroy).pack(side=tk.RIGHT)
        ttk.Button(btns, text="Add Student", command=self._on_save).pack(side=tk.RIGHT, padx=(0, 6))

        self.bind("<Escape>", lambda _e: self.destroy())
        self.ent_name.focus_set()
        self.grab_set()

    def _on_save(self):
        try:
            row = validate_new_student(
                self.ent_name.get(),
                self.cbo_year.get(),
                self.txt_interests.get("1.0", tk.END),
                self.txt_difficulties.get("1.0", tk.END),
            )
        except ValueError as e:
            self.lbl_error.configure(text=str(e)); return
        if self.on_submit(row):
            self.destroy()
