"""
Resume completeness tracking.

Heuristics decide which of five sections the user has genuinely filled in.
Values still equal to the placeholder document do not count.
"""

from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from cvforge.contexts.editing.cv_data_structure import CVDocument
from cvforge.contexts.editing.rich_text import RichText
from cvforge.contexts.editing.sample_data import placeholder_document

MIN_SUMMARY_LENGTH = 20


def _trim(value: Optional[str]) -> str:
    return (value or "").strip()


def _is_real(value: Optional[str], sample: Optional[str] = None) -> bool:
    text = _trim(value)
    if not text:
        return False
    if sample is not None and text == _trim(sample):
        return False
    return True


def sanitize_for_progress(document: CVDocument, placeholder: CVDocument = None) -> CVDocument:
    """
    Strip placeholder values so progress starts at 0%.

    Personal info, summary, work experience, education and skills fields that
    still match the placeholder document are blanked.
    """
    placeholder = placeholder or placeholder_document()

    info, sample_info = document.personal_info, placeholder.personal_info
    info = replace(
        info,
        full_name="" if _trim(info.full_name) == _trim(sample_info.full_name) else info.full_name,
        job_title="" if _trim(info.job_title) == _trim(sample_info.job_title) else info.job_title,
        email="" if _trim(info.email) == _trim(sample_info.email) else info.email,
        phone="" if _trim(info.phone) == _trim(sample_info.phone) else info.phone,
    )

    summary = "" if _trim(document.summary) == _trim(placeholder.summary) else document.summary

    titles = {_trim(job.job_title) for job in placeholder.work_experience}
    companies = {_trim(job.company) for job in placeholder.work_experience}
    starts = {_trim(job.start_date) for job in placeholder.work_experience}
    responsibilities = {job.responsibilities for job in placeholder.work_experience}
    work = tuple(
        replace(
            job,
            job_title="" if _trim(job.job_title) in titles else job.job_title,
            company="" if _trim(job.company) in companies else job.company,
            start_date="" if _trim(job.start_date) in starts else job.start_date,
            responsibilities=RichText()
            if job.responsibilities in responsibilities
            else job.responsibilities,
        )
        for job in document.work_experience
    )

    degrees = {_trim(edu.degree) for edu in placeholder.education}
    institutions = {_trim(edu.institution) for edu in placeholder.education}
    education = tuple(
        replace(
            edu,
            degree="" if _trim(edu.degree) in degrees else edu.degree,
            institution="" if _trim(edu.institution) in institutions else edu.institution,
        )
        for edu in document.education
    )

    skill_names = {_trim(skill.name) for skill in placeholder.skills}
    skills = tuple(
        replace(skill, name="" if _trim(skill.name) in skill_names else skill.name)
        for skill in document.skills
    )

    return replace(
        document,
        personal_info=info,
        summary=summary,
        work_experience=work,
        education=education,
        skills=skills,
    )


@dataclass(frozen=True)
class ProgressReport:
    """
    Completion state per section.

    Attributes:
        sections: (section name, complete) pairs in display order
    """

    sections: Tuple[Tuple[str, bool], ...]

    @property
    def completed(self) -> int:
        return sum(1 for _, complete in self.sections if complete)

    @property
    def percentage(self) -> int:
        if not self.sections:
            return 0
        return int(round(self.completed / len(self.sections) * 100))

    @property
    def incomplete_sections(self) -> List[str]:
        return [name for name, complete in self.sections if not complete]


def compute_progress(document: CVDocument, placeholder: CVDocument = None) -> ProgressReport:
    """
    Compute section completion for a (sanitized) document.

    Work experience counts as complete when it is empty (the user removed all
    jobs) or when at least one job has a real title, company and start date.
    """
    placeholder = placeholder or placeholder_document()
    sample_info = placeholder.personal_info
    info = document.personal_info

    personal_complete = (
        _is_real(info.full_name)
        and _is_real(info.job_title, sample_info.job_title)
        and _is_real(info.email, sample_info.email)
        and _is_real(info.phone, sample_info.phone)
    )

    summary_complete = (
        _is_real(document.summary, placeholder.summary)
        and len(_trim(document.summary)) >= MIN_SUMMARY_LENGTH
    )

    sample_job = placeholder.work_experience[0] if placeholder.work_experience else None
    any_real_job = any(
        _is_real(job.job_title, sample_job.job_title if sample_job else None)
        and _is_real(job.company, sample_job.company if sample_job else None)
        and _is_real(job.start_date, sample_job.start_date if sample_job else None)
        for job in document.work_experience
    )
    work_complete = any_real_job or len(document.work_experience) == 0

    sample_edu = placeholder.education[0] if placeholder.education else None
    education_complete = any(
        _is_real(edu.degree, sample_edu.degree if sample_edu else None)
        and _is_real(edu.institution, sample_edu.institution if sample_edu else None)
        for edu in document.education
    )

    sample_skill_names = {_trim(skill.name) for skill in placeholder.skills}
    skills_complete = any(
        _trim(skill.name) and _trim(skill.name) not in sample_skill_names
        for skill in document.skills
    )

    return ProgressReport(
        sections=(
            ("Personal Information", personal_complete),
            ("Summary", summary_complete),
            ("Work Experience", work_complete),
            ("Education", education_complete),
            ("Skills", skills_complete),
        )
    )
