"""Unit tests for the CV document model."""

from dataclasses import FrozenInstanceError

import pytest

from cvforge.contexts.editing.cv_data_structure import (
    CVDocument,
    Education,
    EducationType,
    InvalidDocumentError,
    PersonalInfo,
    Skill,
    SkillLevel,
    WorkExperience,
    load_document,
    save_document,
)
from cvforge.contexts.editing.sample_data import placeholder_document, sample_document

WIRE = {
    "personalInfo": {"fullName": "Grace Hopper", "jobTitle": "Rear Admiral", "email": "grace@navy.mil"},
    "summary": "Compiler pioneer.",
    "workExperience": [
        {
            "id": "w1",
            "jobTitle": "Programmer",
            "company": "Harvard",
            "startDate": "1944-07-01",
            "current": "true",
            "responsibilities": ["Programmed the Mark I"],
        }
    ],
    "education": [{"id": "e1", "educationType": "tertiary", "degree": "PhD", "institution": "Yale"}],
    "skills": [{"id": "s1", "name": "COBOL", "level": "Expert"}],
}


@pytest.mark.unit
def test_from_dict_maps_camel_case_fields():
    document = CVDocument.from_dict(WIRE)

    assert document.personal_info.full_name == "Grace Hopper"
    job = document.work_experience[0]
    assert job.job_title == "Programmer"
    assert job.current is True
    assert job.responsibilities.lines() == ["• Programmed the Mark I"]
    assert document.education[0].education_type == EducationType.TERTIARY
    assert document.skills[0].level == SkillLevel.EXPERT
    assert document.languages == ()


@pytest.mark.unit
def test_to_dict_serializes_rich_text_and_enums():
    data = CVDocument.from_dict(WIRE).to_dict()

    assert data["workExperience"][0]["responsibilities"] == "<ul><li>Programmed the Mark I</li></ul>"
    assert data["skills"][0]["level"] == "Expert"
    assert data["education"][0]["educationType"] == "tertiary"
    assert data["personalInfo"]["provinceState"] == ""
    assert CVDocument.from_dict(data) == CVDocument.from_dict(WIRE)


@pytest.mark.unit
@pytest.mark.parametrize(
    "data",
    [
        "not a mapping",
        {"skills": [{"name": "Go", "level": "Wizard"}]},
        {"education": [{"educationType": "primary"}]},
        {"languages": [{"name": "French", "proficiency": "Some"}]},
        {"workExperience": "not a list"},
    ],
)
def test_invalid_documents_rejected(data):
    with pytest.raises(InvalidDocumentError):
        CVDocument.from_dict(data)


@pytest.mark.unit
def test_location_line_formats_address():
    full = PersonalInfo(address="1 Main St", city="Austin", province_state="TX", postcode="78701")
    partial = PersonalInfo(city="Austin", postcode="78701")

    assert full.location_line == "1 Main St, Austin, TX 78701"
    assert partial.location_line == "Austin, 78701"
    assert PersonalInfo().location_line == ""


@pytest.mark.unit
def test_snapshots_are_immutable():
    document = CVDocument()
    with pytest.raises(FrozenInstanceError):
        document.summary = "changed"


@pytest.mark.unit
def test_field_paths():
    document = CVDocument.from_dict(WIRE)

    updated = document.with_field("workExperience.0.company", "Remington Rand")
    updated = updated.with_field("personalInfo.city", "Arlington")
    updated = updated.with_field("summary", "Invented the compiler.")

    assert updated.get_field("workExperience.0.company") == "Remington Rand"
    assert updated.get_field("personalInfo.city") == "Arlington"
    assert updated.summary == "Invented the compiler."
    assert document.get_field("workExperience.0.company") == "Harvard"


@pytest.mark.unit
@pytest.mark.parametrize(
    "path", ["personalInfo.nickname", "workExperience.5.company", "workExperience.x.company", "hobbies"]
)
def test_unknown_field_paths_raise_key_error(path):
    document = CVDocument.from_dict(WIRE)
    with pytest.raises(KeyError):
        document.get_field(path)
    with pytest.raises(KeyError):
        document.with_field(path, "value")


@pytest.mark.unit
def test_entry_add_and_remove():
    document = CVDocument()
    document = document.with_entry_added("skills", Skill(id="a", name="Rust"))
    document = document.with_entry_added("education", Education(id="b", degree="BSc"))

    assert [s.name for s in document.entries("skills")] == ["Rust"]
    assert document.with_entry_removed("skills", "a").skills == ()

    with pytest.raises(KeyError):
        document.entries("hobbies")


@pytest.mark.unit
def test_save_and_load_yaml(tmp_path):
    document = CVDocument(
        personal_info=PersonalInfo(full_name="Ada"),
        work_experience=(WorkExperience(id="1", job_title="Analyst", current=True),),
    )

    path = save_document(document, tmp_path / "cv.yaml")

    assert load_document(path) == document


@pytest.mark.unit
def test_save_and_load_keeps_interpolation_syntax_literal(tmp_path):
    document = CVDocument(
        personal_info=PersonalInfo(full_name="Ada"),
        summary="Cut template costs using ${VAR} placeholders",
    )

    path = save_document(document, tmp_path / "cv.yaml")

    assert load_document(path) == document


@pytest.mark.unit
def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_document(tmp_path / "missing.yaml")


@pytest.mark.unit
def test_placeholder_and_samples_load():
    placeholder = placeholder_document()
    assert placeholder.personal_info.full_name == "Your Name"
    assert len(placeholder.work_experience) == 2

    professional = sample_document("professional")
    assert professional.personal_info.full_name
    assert sample_document("no-such-template") == professional
