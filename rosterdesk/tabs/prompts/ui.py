# tabs/prompts/ui.py
from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from typing import Callable, Dict, List, Optional, Tuple

from rosterdesk.common.students import Student, class_label
from .notifier import ChangeNotifier
from .selection import ALL, SOME, SelectionStore
from .tooltips import Tooltip

GLYPHS = {ALL: "☑", SOME: "▣"}
EMPTY_BOX = "☐"


def glyph(state: str) -> str:
    return GLYPHS.get(state, EMPTY_BOX)


class ClassStudentSelector(ttk.Frame):
    """
    Trigger button ("👥 N ▾") that opens a panel of classes, each expandable
    to its students, with tri-state class checkboxes and a Clear All action.
    on_selection_change receives [Student.payload(), ...] after every change.
    """

    def __init__(self, master, on_selection_change: Optional[Callable[[List[dict]], None]] = None,
                 **kwargs):
        super().__init__(master, **kwargs)
        self.store = SelectionStore(
            key_fn=lambda s: s.school_year,
            id_of=lambda s: s.id,
            label_fn=class_label,
            notifier=ChangeNotifier(on_selection_change, project=Student.payload),
        )
        # tree iid -> ("group", key) | ("student", (student_id, key))
        self._rows: Dict[str, Tuple[str, object]] = {}
        self._panel: Optional[tk.Toplevel] = None
        self.tree: Optional[ttk.Treeview] = None

        self.btn_trigger = ttk.Button(self, command=self.toggle_panel, width=8)
        self.btn_trigger.pack(side=tk.LEFT)
        Tooltip(self.btn_trigger, lambda: f"Select students ({self.store.total_selected()} selected)")
        self._render_trigger()

    # ---- data in ----
    def set_students(self, students: List[Student]) -> None:
        self.store.set_entities(students)
        self._render()

    @property
    def selected_payloads(self) -> List[dict]:
        return list(self.store.notifier.last)

    # ---- panel ----
    def toggle_panel(self):
        if self._panel is not None and self._panel.winfo_viewable():
            self._panel.withdraw()
            return
        if self._panel is None:
            self._build_panel()
        self._render()
        self.update_idletasks()
        x = self.btn_trigger.winfo_rootx()
        y = self.btn_trigger.winfo_rooty() + self.btn_trigger.winfo_height() + 2
        self._panel.geometry(f"300x320+{x}+{y}")
        self._panel.deiconify()
        self._panel.lift()
        self.tree.focus_set()

    def _build_panel(self):
        win = tk.Toplevel(self)
        win.title("Select Students")
        win.transient(self.winfo_toplevel())
        win.protocol("WM_DELETE_WINDOW", win.withdraw)
        win.bind("<Escape>", lambda _e: win.withdraw())

        hdr = ttk.Frame(win, padding=(8, 6)); hdr.pack(fill=tk.X)
        ttk.Label(hdr, text="Select Students", font=("Segoe UI", 10, "bold")).pack(side=tk.LEFT)
        ttk.Button(hdr, text="Clear All", command=self.clear_all).pack(side=tk.RIGHT)

        body = ttk.Frame(win); body.pack(fill=tk.BOTH, expand=True, padx=6, pady=(0, 6))
        self.tree = ttk.Treeview(body, columns=("count",), show="tree", selectmode="none")
        self.tree.column("#0", width=210, anchor=tk.W)
        self.tree.column("count", width=50, anchor=tk.E, stretch=False)
        self.tree.tag_configure("picked", background="#E8F0FE")
        self.tree.tag_configure("group", font=("Segoe UI", 9, "bold"))
        vs = ttk.Scrollbar(body, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscrollcommand=vs.set)
        self.tree.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        vs.pack(side=tk.RIGHT, fill=tk.Y)

        self.tree.bind("<Button-1>", self._on_click)
        self.tree.bind("<space>", self._on_space)
        self._panel = win

    # ---- interaction ----
    def _on_click(self, evt):
        iid = self.tree.identify_row(evt.y)
        if not iid or iid not in self._rows:
            return "break"
        kind, ref = self._rows[iid]
        if kind == "group" and self.tree.identify_element(evt.x, evt.y) == "Treeitem.indicator":
            self.store.toggle_expanded(ref)
        elif kind == "group":
            self.store.toggle_group(ref)
        else:
            student_id, key = ref
            self.store.toggle_item(student_id, key)
        self._render()
        return "break"

    def _on_space(self, _evt=None):
        iid = self.tree.focus()
        if iid in self._rows:
            kind, ref = self._rows[iid]
            if kind == "group":
                self.store.toggle_group(ref)
            else:
                self.store.toggle_item(*ref)
            self._render()
        return "break"

    def clear_all(self):
        self.store.clear_all()
        self._render()

    # ---- rendering ----
    def _render_trigger(self):
        self.btn_trigger.configure(text=f"👥 {self.store.total_selected()} ▾")

    def _render(self):
        self._render_trigger()
        if self.tree is None:
            return
        focus = self.tree.focus()
        top = self.tree.yview()[0]
        self.tree.delete(*self.tree.get_children())
        self._rows.clear()

        items = self.store.snapshot.items
        for grp in self.store.groups:
            state = self.store.group_state(grp.key)
            gid = f"g:{grp.key}"
            self.tree.insert(
                "", tk.END, iid=gid,
                text=f"{glyph(state)} {grp.label}",
                values=(f"{self.store.selected_count(grp.key)}/{len(grp)}",),
                open=self.store.is_expanded(grp.key),
                tags=("group", "picked") if state == ALL else ("group",),
            )
            self._rows[gid] = ("group", grp.key)
            for st in grp.members:
                sid = f"s:{st.id}"
                picked = items.get(st.id) is True
                self.tree.insert(
                    gid, tk.END, iid=sid,
                    text=f"{GLYPHS[ALL] if picked else EMPTY_BOX} {st.display_name}",
                    tags=("picked",) if picked else (),
                )
                self._rows[sid] = ("student", (st.id, grp.key))

        if focus and self.tree.exists(focus):
            self.tree.focus(focus)
        self.tree.yview_moveto(top)
