"""
Default values for cvforge rendering.

Provides shared defaults used by:
- template_catalog.py (fallback template and palette)
- renderer.py (display fallbacks, skill bars, section titles, column split)
"""

DEFAULT_TEMPLATE_ID = "professional"
DEFAULT_PALETTE = "slate"

DEFAULT_AVATAR_URL = (
    "https://encrypted-tbn0.gstatic.com/images?q=tbn:ANd9GcSUqDBA8jnL_ezUoa8s_GgnboMkEeE4M7-LyA&s"
)

# Shown in the header while the user has not entered a name or title
NAME_FALLBACK = "Your Name"
JOB_TITLE_FALLBACK = "Your Job Title"
PRESENT_LABEL = "Present"

# Skill level -> bar width percentage
SKILL_LEVEL_PERCENT = {
    "Beginner": 25,
    "Intermediate": 50,
    "Advanced": 75,
    "Expert": 100,
}
DEFAULT_SKILL_PERCENT = 50

SECTION_TITLES = {
    "contact": "Contact",
    "summary": "Professional Summary",
    "workExperience": "Work Experience",
    "education": "Education",
    "skills": "Skills",
    "languages": "Languages",
    "certifications": "Certifications",
    "references": "References",
}

# Single-column templates label the contact section differently
SINGLE_COLUMN_CONTACT_TITLE = "Contact Information"

# Two-column templates: sections placed in the left sidebar
SIDEBAR_SECTIONS = ("contact", "skills", "languages", "certifications", "references")

# Sidebar share of the page width in two-column templates
SIDEBAR_FRACTION = 1 / 3

# Templates whose skills render as a bullet grid instead of level bars
BULLET_SKILL_TEMPLATES = ("modern-bullets",)


def skill_percent(level) -> int:
    """Bar width for a skill level; unknown levels render at 50%."""
    value = getattr(level, "value", level)
    return SKILL_LEVEL_PERCENT.get(value, DEFAULT_SKILL_PERCENT)
