import pytest

from rosterdesk.common.assistant import (
    ADAPT_SYSTEM_PROMPT,
    FALLBACK_TITLE,
    Assistant,
    build_adaptation_messages,
    describe_student,
)
from rosterdesk.common.context import AssistantConfig

STUDENTS = [
    {"id": "s1", "interests": "football", "learning_difficulties": None, "school_year": "y7"},
    {"id": "s2", "interests": None, "learning_difficulties": "dyslexia", "school_year": None},
]


class TestPromptBuilding:
    def test_messages(self):
        system, user = build_adaptation_messages("  What is 3/4 of 20?  ", STUDENTS)
        assert system == {"role": "system", "content": ADAPT_SYSTEM_PROMPT}
        assert user["role"] == "user"
        assert "What is 3/4 of 20?" in user["content"]
        assert "Students (2)" in user["content"]
        # ids stay local
        assert "s1" not in user["content"]

    def test_describe_student(self):
        assert describe_student(1, STUDENTS[0]) == "Student 1 | Class Y7 | interests: football"
        assert describe_student(2, STUDENTS[1]) == (
            "Student 2 | class unknown | interests: not recorded | learning difficulties: dyslexia"
        )

    @pytest.mark.parametrize("question,students,message", [
        ("   ", STUDENTS, "Question is empty."),
        ("Why?", [], "Select at least one student."),
    ])
    def test_rejects(self, question, students, message):
        with pytest.raises(ValueError, match=message):
            build_adaptation_messages(question, students)


class TestAssistant:
    def test_requires_key_without_client(self):
        with pytest.raises(ValueError):
            Assistant(AssistantConfig(api_key=""))

    def test_adapt_question(self, fake_openai):
        fake_openai.completions.replies = ["  Student 1: ...  "]
        cfg = AssistantConfig(api_key="sk", model="grok-3-mini", temperature=0.3)

        reply = Assistant(cfg, client=fake_openai).adapt_question("Why?", STUDENTS)

        assert reply == "Student 1: ..."
        (call,) = fake_openai.completions.calls
        assert call["model"] == "grok-3-mini"
        assert call["temperature"] == 0.3
        assert len(call["messages"]) == 2

    def test_generate_title(self, fake_openai):
        fake_openai.completions.replies = ['"Fractions For Footballers"']
        cfg = AssistantConfig(api_key="sk", title_model="gpt-4o-mini")
        title = Assistant(cfg, client=fake_openai).generate_title(
            [{"role": "assistant", "content": "hi"}, {"role": "user", "content": "fractions"}]
        )
        assert title == "Fractions For Footballers"
        assert fake_openai.completions.calls[0]["max_tokens"] == 30
        assert "fractions" in fake_openai.completions.calls[0]["messages"][1]["content"]

    def test_title_fallbacks(self, fake_openai):
        a = Assistant(AssistantConfig(api_key="sk"), client=fake_openai)
        assert a.generate_title([]) == FALLBACK_TITLE
        assert fake_openai.completions.calls == []

        fake_openai.completions.replies = [RuntimeError("rate limited")]
        assert a.generate_title([{"role": "user", "content": "x"}]) == FALLBACK_TITLE

        fake_openai.completions.replies = ['""']
        assert a.generate_title([{"role": "user", "content": "x"}]) == FALLBACK_TITLE
