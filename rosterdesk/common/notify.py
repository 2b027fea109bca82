# common/notify.py
import logging
import tkinter as tk
from tkinter import ttk

logger = logging.getLogger(__name__)

OK_COLORS = ("#e7f7ee", "#0b6b3a")
ERR_COLORS = ("#fdeaea", "#8a0a0a")


def toast(parent, title, message, ok=True, timeout_ms=None):
    """Small always-on-top pop-up in the parent's bottom-right corner."""
    win = tk.Toplevel(parent)
    win.title(title)
    win.attributes("-topmost", True)
    win.resizable(False, False)

    bg, fg = OK_COLORS if ok else ERR_COLORS

    frm = ttk.Frame(win, padding=10)
    frm.pack(fill=tk.BOTH, expand=True)

    ttk.Label(frm, text=("✓ " if ok else "✗ ") + title, foreground=fg).pack(anchor="w", pady=(0, 6))

    txt = tk.Text(frm, height=6, wrap=tk.WORD, bg=bg, relief="flat")
    txt.insert("1.0", (message or "").strip() or "(no details)")
    txt.configure(state=tk.DISABLED)
    txt.pack(fill=tk.BOTH, expand=True)

    btns = ttk.Frame(frm)
    btns.pack(fill=tk.X, pady=(8, 0))
    ttk.Button(btns, text="Close", command=win.destroy).pack(side=tk.RIGHT)

    parent.update_idletasks()
    x = parent.winfo_rootx() + parent.winfo_width() - 380
    y = parent.winfo_rooty() + parent.winfo_height() - 200
    win.geometry(f"360x180+{x}+{y}")

    if timeout_ms:
        win.after(timeout_ms, win.destroy)
    return win


def toast_error(parent, title, exc, timeout_ms=8000):
    """Log a handled failure and show it without interrupting the user."""
    logger.warning("%s: %s", title, exc)
    return toast(parent, title, str(exc), ok=False, timeout_ms=timeout_ms)
