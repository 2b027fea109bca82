import pytest

from rosterdesk.common.students import (
    SCHOOL_YEARS,
    RosterFileError,
    Student,
    class_label,
    format_name,
    load_roster_yaml,
    validate_new_student,
)


class TestStudent:
    def test_from_record(self):
        st = Student.from_record({"id": 12, "full_name": " jane doe ", "school_year": "y7",
                                  "interests": "bmx", "learning_difficulties": "  ", "teacher_id": "t"})
        assert st.id == "12"
        assert st.full_name == "jane doe"
        assert st.learning_difficulties is None
        assert st.display_name == "Jane Doe"

    def test_from_record_requires_id(self):
        with pytest.raises(ValueError):
            Student.from_record({"full_name": "no id"})

    def test_unnamed(self):
        assert Student(id="x").display_name == "Unnamed"

    def test_payload(self):
        st = Student(id="s1", full_name="ada", school_year="y7", interests="maths")
        assert st.payload() == {"id": "s1", "interests": "maths", "learning_difficulties": None,
                                "school_year": "y7"}


class TestFormatting:
    def test_format_name(self):
        assert format_name("jANE   doe") == "Jane Doe"
        assert format_name("y7b", capitalize_last_letter=True) == "Y7B"
        assert format_name("y10", capitalize_last_letter=True) == "Y10"
        assert format_name("") == ""

    def test_class_label(self):
        assert class_label("y7") == "Class Y7"

    def test_school_years(self):
        assert SCHOOL_YEARS[0] == "y1" and SCHOOL_YEARS[-1] == "y13"


class TestValidateNewStudent:
    def test_normalises(self):
        row = validate_new_student(" Jane Doe ", "Y7", " bmx, chess ", "")
        assert row == {"full_name": "jane doe", "school_year": "y7", "interests": "bmx, chess",
                       "learning_difficulties": None}

    @pytest.mark.parametrize("args,message", [
        (("", "y7", "bmx"), "Full name is required"),
        (("jane", " ", "bmx"), "Year in school is required"),
        (("jane", "y7", "\n"), "Interests are required"),
    ])
    def test_required_fields(self, args, message):
        with pytest.raises(ValueError, match=message):
            validate_new_student(*args)


class TestLoadRosterYaml:
    def test_missing_file(self, tmp_path):
        assert load_roster_yaml(str(tmp_path / "nope.yml")) == []

    def test_loads_students(self, tmp_path):
        p = tmp_path / "roster.yml"
        p.write_text(
            "students:\n"
            "  - {id: s1, full_name: ada lovelace, school_year: y7, interests: maths}\n"
            "  - id: s2\n"
            "    full_name: alan turing\n"
            "    school_year: y8\n",
            encoding="utf-8",
        )
        students = load_roster_yaml(str(p))
        assert [s.id for s in students] == ["s1", "s2"]
        assert students[1].interests is None

    def test_empty_file(self, tmp_path):
        p = tmp_path / "roster.yml"
        p.write_text("", encoding="utf-8")
        assert load_roster_yaml(str(p)) == []

    @pytest.mark.parametrize("body", [
        "students: [unclosed\n",
        "- just\n- a list\n",
        "students:\n  - plain string\n",
        "students:\n  - {full_name: no id}\n",
    ])
    def test_bad_files(self, tmp_path, body):
        p = tmp_path / "roster.yml"
        p.write_text(body, encoding="utf-8")
        with pytest.raises(RosterFileError):
            load_roster_yaml(str(p))
