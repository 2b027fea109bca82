# profile_integration.py
from __future__ import annotations

import logging
import os
from typing import Optional

from tkinter import messagebox, simpledialog

from rosterdesk.common.context import AppState
from rosterdesk.session_profile import TeacherProfile

logger = logging.getLogger(__name__)


def _ask_password(parent_widget, prompt: str) -> Optional[str]:
    return simpledialog.askstring("Profile Password", prompt, show="•", parent=parent_widget) or None


def save_connection_to_profile(parent_widget, profile_path: str, state: AppState) -> bool:
    """
    Merge the current connection settings and keys into the profile.
    Existing encrypted fields must be opened with the same password.
    """
    profile_path = (profile_path or "").strip()
    if not profile_path:
        messagebox.showwarning("Profile", "Profile path is empty.")
        return False

    if os.path.exists(profile_path):
        try:
            tp = TeacherProfile.load(profile_path)
        except (OSError, ValueError) as e:
            messagebox.showerror("Profile", f"Failed to load profile:\n{e}")
            return False
    else:
        tp = TeacherProfile()

    pwd = _ask_password(parent_widget, "Enter a password to encrypt this profile (remember it!).")
    if not pwd:
        return False
    try:
        tp.check_password(pwd)
    except ValueError as e:
        messagebox.showerror(
            "Profile",
            "Password does not match existing encrypted data in the profile.\n"
            "Use the same password you used previously.\n\n"
            f"Details: {e}"
        )
        return False

    tp.set_connection(state.supabase.url, state.supabase.teacher_id, state.assistant.base_url)
    tp.set_supabase_key(pwd, state.supabase.key)
    tp.set_ai_key(pwd, state.assistant.api_key)

    try:
        tp.save(profile_path)
    except OSError as e:
        messagebox.showerror("Profile", f"Failed to save profile:\n{e}")
        return False
    logger.info("Saved profile to %s", profile_path)
    messagebox.showinfo("Profile", f"Saved connection details to:\n{profile_path}")
    return True


def load_connection_from_profile(parent_widget, profile_path: str, state: AppState) -> bool:
    """Apply the profile to state; prompts for the password only when keys are stored."""
    if not os.path.exists(profile_path or ""):
        messagebox.showwarning("Profile", "Profile file not found.")
        return False
    try:
        tp = TeacherProfile.load(profile_path)
    except (OSError, ValueError) as e:
        messagebox.showerror("Profile", f"Failed to load profile:\n{e}")
        return False

    if tp.supabase_url:
        state.supabase.url = tp.supabase_url
    if tp.teacher_id:
        state.supabase.teacher_id = tp.teacher_id
    if tp.ai_base_url:
        state.assistant.base_url = tp.ai_base_url

    if not tp.has_secrets():
        return True

    pwd = _ask_password(parent_widget, "Enter your profile password to decrypt the stored keys:")
    if not pwd:
        return True
    try:
        state.supabase.key = tp.get_supabase_key(pwd) or state.supabase.key
        state.assistant.api_key = tp.get_ai_key(pwd) or state.assistant.api_key
    except ValueError as e:
        messagebox.showerror("Profile", f"Unable to decrypt keys:\n{e}")
        return False
    logger.info("Loaded profile %s", profile_path)
    return True
