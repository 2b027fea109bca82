from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk, messagebox, simpledialog
from tkinter.scrolledtext import ScrolledText

from rosterdesk.common.assistant import Assistant, build_adaptation_messages
from rosterdesk.common.context import AppState
from rosterdesk.common.loader import BackgroundLoader
from rosterdesk.common.notify import toast_error
from rosterdesk.common.supabase_io import (
    SupabaseError,
    add_message,
    create_conversation_with_first_message,
    delete_conversation,
    get_client,
    list_conversations,
    update_conversation_title,
)
from rosterdesk.tabs.prompts.tooltips import Tooltip
from rosterdesk.tabs.prompts.ui import ClassStudentSelector

logger = logging.getLogger(__name__)


class PromptsTab(ttk.Frame):
    """
    Pick students by class, type a question, and ask the assistant to adapt it
    for each selected student. Replies are saved as conversations when a teacher
    id is configured.
    """

    def __init__(self, master, state: AppState):
        super().__init__(master)
        self.app_state = state
        self.selected: list[dict] = []
        self._conversations: list[dict] = []
        self._conversations_teacher = state.supabase.teacher_id
        self._request = None
        self._adapter = BackgroundLoader(self._run_adaptation, self._on_adapted, self._on_adapt_failed,
                                         label="adapted question")
        self._build()
        self._adapter.poll(self)

    # ---- UI ----
    def _build(self):
        root = ttk.Frame(self); root.pack(fill="both", expand=True, padx=8, pady=8)
        root.columnconfigure(0, weight=3); root.columnconfigure(1, weight=1)
        root.rowconfigure(3, weight=1)

        ctrl = ttk.Frame(root); ctrl.grid(row=0, column=0, sticky="ew", pady=(0, 6))
        self.selector = ClassStudentSelector(ctrl, on_selection_change=self._on_selection_change)
        self.selector.pack(side=tk.LEFT)
        self.lbl_status = ttk.Label(ctrl, text="Load students on the Connection tab, then pick who to adapt for.",
                                    foreground="#777")
        self.lbl_status.pack(side=tk.LEFT, padx=(10, 0))

        ttk.Label(root, text="Question or task").grid(row=1, column=0, sticky="w")
        self.txt_question = tk.Text(root, height=5, wrap=tk.WORD)
        self.txt_question.grid(row=2, column=0, sticky="ew", pady=(2, 6))

        out = ttk.LabelFrame(root, text="Adapted for selected students")
        out.grid(row=3, column=0, sticky="nsew")
        out.columnconfigure(0, weight=1); out.rowconfigure(1, weight=1)
        obtns = ttk.Frame(out); obtns.grid(row=0, column=0, sticky="ew", pady=4)
        self.btn_adapt = ttk.Button(obtns, text="Adapt for selected students", command=self.on_adapt)
        self.btn_adapt.pack(side=tk.LEFT, padx=(4, 6))
        Tooltip(self.btn_adapt, "Sends the question plus each selected student's class, interests and needs.")
        ttk.Button(obtns, text="New conversation", command=self.on_new_conversation).pack(side=tk.LEFT)
        ttk.Button(obtns, text="Copy", command=self._copy_output).pack(side=tk.RIGHT, padx=4)
        self.txt_output = ScrolledText(out, height=16, wrap=tk.WORD)
        self.txt_output.grid(row=1, column=0, sticky="nsew", padx=4, pady=(0, 4))
        self.txt_output.config(state="disabled")

        side = ttk.LabelFrame(root, text="Conversations")
        side.grid(row=1, column=1, rowspan=3, sticky="nsew", padx=(8, 0))
        side.columnconfigure(0, weight=1); side.rowconfigure(1, weight=1)
        sbtns = ttk.Frame(side); sbtns.grid(row=0, column=0, sticky="ew", pady=4)
        ttk.Button(sbtns, text="Refresh", command=self.refresh_conversations).pack(side=tk.LEFT, padx=(4, 4))
        ttk.Button(sbtns, text="Rename", command=self.on_rename).pack(side=tk.LEFT)
        ttk.Button(sbtns, text="Delete", command=self.on_delete).pack(side=tk.LEFT, padx=4)
        self.lst_conversations = tk.Listbox(side, exportselection=False)
        self.lst_conversations.grid(row=1, column=0, sticky="nsew", padx=4, pady=(0, 4))
        self.lst_conversations.bind("<<ListboxSelect>>", self._on_conversation_selected)

    def _set_status(self, msg, ok=True):
        self.lbl_status.configure(text=msg, foreground=("#157347" if ok else "#B00020"))

    def _show_output(self, text: str):
        self.txt_output.config(state="normal")
        self.txt_output.delete("1.0", "end")
        self.txt_output.insert("end", text)
        self.txt_output.config(state="disabled")

    def _copy_output(self):
        self.clipboard_clear(); self.clipboard_append(self.txt_output.get("1.0", "end").strip())
        self._set_status("Copied to clipboard.")

    # ---- outer app hook after <<StudentsLoaded>>
    def refresh(self):
        self.selector.set_students(self.app_state.students)
        self._set_status(f"{len(self.app_state.students)} student(s) available.")

    def _on_selection_change(self, payloads):
        self.selected = payloads
        n = len(payloads)
        self._set_status("No students selected." if n == 0 else f"{n} student(s) selected.")

    # ---- adaptation ----
    def on_adapt(self):
        question = self.txt_question.get("1.0", "end").strip()
        try:
            build_adaptation_messages(question, self.selected)
        except ValueError as e:
            self._set_status(str(e), ok=False); return
        if self._adapter.busy:
            self._set_status("Still waiting for the previous reply…", ok=False); return
        self._request = (question, list(self.selected), self.app_state.conversation_id)
        self.btn_adapt.state(["disabled"])
        self._set_status(f"Adapting for {len(self.selected)} student(s)…")
        self._adapter.start()

    def _run_adaptation(self):
        """Worker thread: model call, then best-effort persistence."""
        question, students, conversation_id = self._request
        assistant = Assistant(self.app_state.assistant)
        reply = assistant.adapt_question(question, students)

        cfg = self.app_state.supabase
        if not (cfg.url and cfg.key and cfg.teacher_id):
            return {"reply": reply, "conversation_id": conversation_id, "saved": False}
        try:
            client = get_client(cfg)
            if conversation_id is None:
                conv = create_conversation_with_first_message(client, cfg.teacher_id, question)
                conversation_id = conv["id"]
                title = assistant.generate_title([{"role": "user", "content": question}])
                update_conversation_title(client, cfg.teacher_id, conversation_id, title)
            else:
                add_message(client, conversation_id, question, sender="user")
            add_message(client, conversation_id, reply, sender="assistant")
        except SupabaseError as e:
            logger.warning("Reply not saved: %s", e)
            return {"reply": reply, "conversation_id": conversation_id, "saved": False, "error": str(e)}
        return {"reply": reply, "conversation_id": conversation_id, "saved": True}

    def _on_adapted(self, result):
        self.btn_adapt.state(["!disabled"])
        self._show_output(result["reply"])
        self.app_state.conversation_id = result["conversation_id"]
        if result.get("error"):
            self._set_status(f"Adapted, but not saved: {result['error']}", ok=False)
        else:
            self._set_status("Adapted and saved." if result["saved"] else "Adapted (not saved: no teacher id).")
        if result["saved"]:
            self.refresh_conversations()

    def _on_adapt_failed(self, exc):
        self.btn_adapt.state(["!disabled"])
        self._set_status("Adaptation failed.", ok=False)
        toast_error(self, "Adaptation failed", exc)

    # ---- conversations ----
    def _client_and_teacher(self):
        cfg = self.app_state.supabase
        return get_client(cfg), cfg.teacher_id

    def on_new_conversation(self):
        self.app_state.conversation_id = None
        self.lst_conversations.selection_clear(0, "end")
        self._show_output("")
        self._set_status("Next reply starts a new conversation.")

    # ---- outer app hook after <<ConnectionChanged>>
    def on_connection_changed(self, _evt=None):
        """The conversation list belongs to one teacher; drop it when the teacher id changes."""
        teacher = self.app_state.supabase.teacher_id
        if teacher == self._conversations_teacher:
            return
        logger.info("Teacher changed, clearing conversation list")
        self._conversations = []
        self._conversations_teacher = teacher
        self.lst_conversations.delete(0, "end")
        self.on_new_conversation()

    def refresh_conversations(self):
        try:
            client, teacher = self._client_and_teacher()
            self._conversations = list_conversations(client, teacher)
        except SupabaseError as e:
            self._set_status(str(e), ok=False); return
        self._conversations_teacher = teacher
        self.lst_conversations.delete(0, "end")
        for conv in self._conversations:
            self.lst_conversations.insert("end", conv.get("title") or "Untitled")
            if conv.get("id") == self.app_state.conversation_id:
                self.lst_conversations.selection_set("end")

    def _selected_conversation(self):
        sel = self.lst_conversations.curselection()
        return self._conversations[sel[0]] if sel else None

    def _on_conversation_selected(self, _evt=None):
        conv = self._selected_conversation()
        if conv is not None:
            self.app_state.conversation_id = conv["id"]
            self._set_status(f"Continuing “{conv.get('title') or 'Untitled'}”.")

    def on_rename(self):
        conv = self._selected_conversation()
        if conv is None:
            self._set_status("Select a conversation first.", ok=False); return
        title = simpledialog.askstring("Rename", "New title:", initialvalue=conv.get("title") or "", parent=self)
        if not title or not title.strip():
            return
        try:
            client, teacher = self._client_and_teacher()
            update_conversation_title(client, teacher, conv["id"], title.strip())
        except SupabaseError as e:
            messagebox.showerror("Rename", str(e)); return
        self.refresh_conversations()

    def on_delete(self):
        conv = self._selected_conversation()
        if conv is None:
            self._set_status("Select a conversation first.", ok=False); return
        if not messagebox.askyesno("Delete", f"Delete “{conv.get('title') or 'Untitled'}” and its messages?"):
            return
        try:
            client, teacher = self._client_and_teacher()
            delete_conversation(client, teacher, conv["id"])
        except SupabaseError as e:
            messagebox.showerror("Delete", str(e)); return
        if self.app_state.conversation_id == conv["id"]:
            self.on_new_conversation()
        self.refresh_conversations()
