# common/assistant.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from openai import OpenAI

from rosterdesk.common.context import AssistantConfig
from rosterdesk.common.students import class_label

logger = logging.getLogger(__name__)

FALLBACK_TITLE = "Educational Conversation"

ADAPT_SYSTEM_PROMPT = (
    "You are an experienced teaching assistant. A teacher gives you one question or task "
    "and a list of students. Rewrite the question once per student so it stays at the same "
    "learning objective but connects to that student's interests and is accessible given any "
    "learning difficulties listed. Keep the year group in mind for vocabulary. "
    "Answer with one section per student, headed by the student reference."
)

TITLE_SYSTEM_PROMPT = (
    "Generate a short, clear title (3-6 words) based on the user's first message. "
    "Make it personal and professional."
)


def describe_student(idx: int, student: Dict[str, Any]) -> str:
    year = student.get("school_year")
    parts = [f"Student {idx}"]
    parts.append(class_label(year) if year else "class unknown")
    parts.append(f"interests: {student.get('interests') or 'not recorded'}")
    if student.get("learning_difficulties"):
        parts.append(f"learning difficulties: {student['learning_difficulties']}")
    return " | ".join(parts)


def build_adaptation_messages(question: str, students: Sequence[Dict[str, Any]]) -> List[Dict[str, str]]:
    """
    students are payload dicts (id, interests, learning_difficulties, school_year).
    Ids are not sent to the model; students are referenced by position.
    """
    question = (question or "").strip()
    if not question:
        raise ValueError("Question is empty.")
    if not students:
        raise ValueError("Select at least one student.")
    roster = "\n".join(describe_student(i, s) for i, s in enumerate(students, start=1))
    user_prompt = (
        f"Question:\n{question}\n\n"
        f"Students ({len(students)}):\n{roster}\n\n"
        "Adapt the question for each student."
    )
    return [
        {"role": "system", "content": ADAPT_SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


class Assistant:
    def __init__(self, cfg: AssistantConfig, client: Optional[Any] = None):
        if client is None:
            if not cfg.api_key:
                raise ValueError("AI API key not set (Connection tab or OPENAI_API_KEY).")
            client = OpenAI(api_key=cfg.api_key, base_url=cfg.base_url or None)
        self.client = client
        self.cfg = cfg

    def _complete(self, messages, model: str, **kwargs) -> str:
        response = self.client.chat.completions.create(model=model, messages=messages, **kwargs)
        return (response.choices[0].message.content or "").strip()

    def adapt_question(self, question: str, students: Sequence[Dict[str, Any]]) -> str:
        messages = build_adaptation_messages(question, students)
        logger.info("Adapting question for %d students with %s", len(students), self.cfg.model)
        return self._complete(messages, self.cfg.model, temperature=self.cfg.temperature)

    def generate_title(self, messages: Sequence[Dict[str, str]]) -> str:
        first = next((m.get("content") for m in messages if m.get("role") == "user"), "") or ""
        if not first.strip():
            return FALLBACK_TITLE
        try:
            title = self._complete(
                [
                    {"role": "system", "content": TITLE_SYSTEM_PROMPT},
                    {"role": "user", "content": f'Generate a title for this educational request: "{first}"'},
                ],
                self.cfg.title_model or self.cfg.model,
                max_tokens=30,
                temperature=0.4,
            )
        except Exception as e:
            logger.warning("Failed to generate conversation title: %s", e)
            return FALLBACK_TITLE
        return title.strip('"') or FALLBACK_TITLE
