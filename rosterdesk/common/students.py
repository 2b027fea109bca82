# common/students.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import yaml

SCHOOL_YEARS = [f"y{n}" for n in range(1, 14)]


class RosterFileError(ValueError):
    pass


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def format_name(text: str, capitalize_last_letter: bool = False) -> str:
    """'jane doe' -> 'Jane Doe'; with capitalize_last_letter, 'y7b' -> 'Y7B'."""
    words = []
    for w in (text or "").split():
        w = w[:1].upper() + w[1:].lower()
        if capitalize_last_letter and w[-1:].isalpha():
            w = w[:-1] + w[-1].upper()
        words.append(w)
    return " ".join(words)


def class_label(key: str) -> str:
    return f"Class {key.upper()}"


@dataclass
class Student:
    id: str
    full_name: str = ""
    school_year: Optional[str] = None
    interests: Optional[str] = None
    learning_difficulties: Optional[str] = None

    @staticmethod
    def from_record(rec: Dict[str, Any]) -> "Student":
        """Build from a students-table row; tolerant of missing columns."""
        if rec.get("id") in (None, ""):
            raise ValueError("Student record has no id.")
        return Student(
            id=str(rec["id"]),
            full_name=_clean(rec.get("full_name")) or "",
            school_year=_clean(rec.get("school_year")),
            interests=_clean(rec.get("interests")),
            learning_difficulties=_clean(rec.get("learning_difficulties")),
        )

    @property
    def display_name(self) -> str:
        return format_name(self.full_name) if self.full_name else "Unnamed"

    def payload(self) -> Dict[str, Optional[str]]:
        """The subset handed to prompt building."""
        return {
            "id": self.id,
            "interests": self.interests,
            "learning_difficulties": self.learning_difficulties,
            "school_year": self.school_year,
        }


def validate_new_student(full_name: str, school_year: str, interests: str,
                         learning_difficulties: Optional[str] = None) -> Dict[str, Optional[str]]:
    """Checks the add-student form and returns a normalised row (lowercase name/class)."""
    if not (full_name or "").strip():
        raise ValueError("Full name is required")
    if not (school_year or "").strip():
        raise ValueError("Year in school is required")
    if not (interests or "").strip():
        raise ValueError("Interests are required")
    return {
        "full_name": full_name.strip().lower(),
        "school_year": school_year.strip().lower(),
        "interests": interests.strip(),
        "learning_difficulties": _clean(learning_difficulties),
    }


def load_roster_yaml(path: str) -> List[Student]:
    """
    Offline roster file:
      students:
        - {id: s1, full_name: ada lovelace, school_year: y7, interests: maths}
    """
    if not path or not os.path.isfile(path):
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise RosterFileError(f"Could not parse roster file {path}: {e}") from e
    if not isinstance(cfg, dict):
        raise RosterFileError(f"Roster file {path} must be a mapping with a 'students' list.")

    out = []
    for rec in cfg.get("students") or []:
        if not isinstance(rec, dict):
            raise RosterFileError(f"Roster entry is not a mapping: {rec!r}")
        try:
            out.append(Student.from_record(rec))
        except ValueError as e:
            raise RosterFileError(str(e)) from e
    return out
