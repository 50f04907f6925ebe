"""Unit tests for editor state transitions and completion tracking."""

import pytest

from cvforge.contexts.editing.cv_data_structure import CVDocument, PersonalInfo, SkillLevel, WorkExperience
from cvforge.contexts.editing.editor_state import (
    EditorState,
    add_entry,
    clear_template,
    display_value,
    edit_field,
    focus_field,
    remove_entry,
    select_template,
    set_color,
    toggle_preview,
)
from cvforge.contexts.editing.progress import compute_progress, sanitize_for_progress
from cvforge.contexts.editing.rich_text import RichText
from cvforge.contexts.editing.sample_data import placeholder_document


@pytest.mark.unit
def test_select_template_loads_placeholder_and_template_color():
    state = select_template(EditorState(), "executive")

    assert state.template_id == "executive"
    assert state.color == "green"
    assert state.document == placeholder_document()
    assert state.edited_fields == frozenset()


@pytest.mark.unit
def test_select_template_with_explicit_color_and_unknown_id():
    state = select_template(EditorState(), "no-such-template", color="rose")

    assert state.template_id == "professional"
    assert state.color == "rose"


@pytest.mark.unit
def test_transitions_return_new_snapshots():
    original = EditorState()
    colored = set_color(original, "emerald")
    previewing = toggle_preview(colored)

    assert original.color == "blue"
    assert colored.color == "emerald"
    assert previewing.preview_mode is True
    assert toggle_preview(previewing).preview_mode is False
    assert clear_template(select_template(previewing, "minimal")).template_id is None


@pytest.mark.unit
def test_edit_field_marks_field_and_group():
    state = edit_field(select_template(EditorState(), "minimal"), "personalInfo.fullName", "Ada")

    assert state.document.personal_info.full_name == "Ada"
    assert state.is_edited("personalInfo.fullName")
    assert state.is_edited("personalInfo")
    assert display_value(state, "personalInfo.fullName") == "Ada"


@pytest.mark.unit
def test_unedited_fields_display_empty():
    state = select_template(EditorState(), "minimal")

    assert state.document.personal_info.full_name == "Your Name"
    assert display_value(state, "personalInfo.fullName") == ""


@pytest.mark.unit
def test_first_focus_clears_placeholder_only_once():
    state = select_template(EditorState(), "minimal")

    focused = focus_field(state, "workExperience.0.company")
    assert focused.document.work_experience[0].company == ""
    assert focused.is_edited("work")

    typed = edit_field(focused, "workExperience.0.company", "Acme")
    assert focus_field(typed, "workExperience.0.company").document.work_experience[0].company == "Acme"


@pytest.mark.unit
def test_first_focus_keeps_enumerated_values():
    state = select_template(EditorState(), "minimal")

    focused = focus_field(state, "skills.0.level")

    assert focused.document.skills[0].level == SkillLevel.ADVANCED
    assert focused.document.skills[0].name == "Skill 1"
    assert focused.is_edited("skills.0.level")
    assert focused.is_edited("skills")


@pytest.mark.unit
def test_first_focus_empties_rich_text():
    state = select_template(EditorState(), "professional")

    focused = focus_field(state, "workExperience.0.responsibilities")
    responsibilities = focused.document.work_experience[0].responsibilities

    assert isinstance(responsibilities, RichText)
    assert responsibilities.is_empty
    assert focused.document.work_experience[1].responsibilities.to_plaintext()


@pytest.mark.unit
def test_add_and_remove_entries():
    state = EditorState()
    state = add_entry(state, "workExperience", job_title="Engineer", company="Acme")

    job = state.document.work_experience[0]
    assert job.company == "Acme"
    assert len(job.id) == 8
    assert state.is_edited("work")

    state = remove_entry(state, "workExperience", job.id)
    assert state.document.work_experience == ()
    assert state.is_edited("work.none")


@pytest.mark.unit
def test_add_entry_with_explicit_id():
    state = add_entry(EditorState(), "skills", id="python", name="Python")
    assert state.document.skills[0].id == "python"
    assert state.is_edited("skills")


@pytest.mark.unit
def test_placeholder_document_counts_as_incomplete():
    placeholder = placeholder_document()
    report = compute_progress(sanitize_for_progress(placeholder))

    assert report.percentage == 0
    assert report.incomplete_sections == [
        "Personal Information",
        "Summary",
        "Work Experience",
        "Education",
        "Skills",
    ]


@pytest.mark.unit
def test_progress_counts_real_sections():
    document = CVDocument(
        personal_info=PersonalInfo(
            full_name="Ada Byron", job_title="Analyst", email="ada@example.com", phone="555-0100"
        ),
        summary="Short",
        work_experience=(
            WorkExperience(id="1", job_title="Analyst", company="Engines Ltd", start_date="1843-01-01"),
        ),
    )

    report = compute_progress(document)

    assert dict(report.sections) == {
        "Personal Information": True,
        "Summary": False,
        "Work Experience": True,
        "Education": False,
        "Skills": False,
    }
    assert report.completed == 2
    assert report.percentage == 40


@pytest.mark.unit
def test_removing_all_jobs_completes_work_section():
    report = compute_progress(CVDocument())
    assert dict(report.sections)["Work Experience"] is True
