# tabs/prompts/tooltips.py
import tkinter as tk


class Tooltip:
    """Hover tooltip. text may be a string or a zero-arg callable read at show time."""
    def __init__(self, widget, text, delay: int = 500):
        self.widget = widget
        self.text = text
        self.delay = delay
        self._after_id = None
        self._tip = None
        widget.bind("<Enter>", self._schedule, add="+")
        widget.bind("<Leave>", self._hide, add="+")
        widget.bind("<ButtonPress>", self._hide, add="+")

    def _current_text(self) -> str:
        return (self.text() if callable(self.text) else self.text) or ""

    def _schedule(self, _evt=None):
        self._unschedule()
        self._after_id = self.widget.after(self.delay, self._show)

    def _unschedule(self):
        if self._after_id is not None:
            self.widget.after_cancel(self._after_id)
            self._after_id = None

    def _show(self):
        self._after_id = None
        text = self._current_text()
        if self._tip or not text or not self.widget.winfo_exists():
            return
        x = self.widget.winfo_rootx() + 8
        y = self.widget.winfo_rooty() + self.widget.winfo_height() + 4

        tw = tk.Toplevel(self.widget)
        tw.wm_overrideredirect(True)
        tw.wm_geometry(f"+{x}+{y}")
        tk.Label(
            tw, text=text, justify=tk.LEFT,
            background="#F4F4F5", relief=tk.SOLID, borderwidth=1,
            font=("Segoe UI", 9),
        ).pack(ipadx=6, ipady=2)
        self._tip = tw

    def _hide(self, _evt=None):
        self._unschedule()
        if self._tip is not None:
            self._tip.destroy()
            self._tip = None
