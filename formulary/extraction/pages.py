"""Builders turning a page snapshot into a sub-page record."""

from __future__ import annotations

import re

from formulary.common.data_models import (
    ContentSection,
    MedicineAbout,
    MedicineCommonQuestions,
    MedicineContentPage,
)
from formulary.common.page_element import PageElement
from formulary.extraction.landing import (
    extract_description,
    extract_last_reviewed,
)
from formulary.extraction.questions import extract_questions
from formulary.extraction.sections import extract_sections

_KEY_FACTS = re.compile(r"key facts", re.IGNORECASE)
_USED_FOR = re.compile(r"used for|what it", re.IGNORECASE)


def _bullets_under(
    sections: list[ContentSection], pattern: re.Pattern[str]
) -> list[str]:
    for section in sections:
        if pattern.search(section.heading):
            return list(section.bullets)
    return []


def build_about_page(
    page: PageElement, fallback_description: str = ""
) -> MedicineAbout:
    """Build the about record of a medicine.

    Args:
        page: Snapshot of the about page (or the landing page when the
            medicine has no separate about page).
        fallback_description: Used when the page has no description of its
            own, normally the landing page description.
    """
    content = extract_sections(page)
    return MedicineAbout(
        description=extract_description(page, default=fallback_description),
        key_facts=_bullets_under(content, _KEY_FACTS),
        used_for=_bullets_under(content, _USED_FOR),
        content=content,
        last_reviewed=extract_last_reviewed(page),
    )


def build_content_page(page: PageElement) -> MedicineContentPage:
    return MedicineContentPage(
        content=extract_sections(page),
        last_reviewed=extract_last_reviewed(page),
    )


def build_questions_page(page: PageElement) -> MedicineCommonQuestions:
    return MedicineCommonQuestions(
        questions=extract_questions(page),
        last_reviewed=extract_last_reviewed(page),
    )
