"""Question and answer extraction for "common questions" pages.

Questions are usually rendered as <details> accordions. Pages without
accordions are segmented by heading instead, each heading being a question.
"""

from __future__ import annotations

from formulary.common.data_models import QuestionAnswer
from formulary.common.page_element import PageElement
from formulary.extraction.sections import segment
from formulary.extraction.text import element_text, find_main

# Cross-navigation block headings, e.g. "More in Aciclovir"
_NAVIGATION_PREFIX = "more in"


def _accordion_questions(main: PageElement) -> list[QuestionAnswer]:
    questions: list[QuestionAnswer] = []

    for details in main.query_xpath(
        ".//details", "question accordions", min_count=0
    ):
        summaries = details.query_xpath(
            ".//summary", "accordion summary", min_count=0
        )
        question = element_text(summaries[0]) if summaries else ""

        paragraphs = [
            element_text(p) for p in details.iter_descendants("p")
        ]
        items = [element_text(li) for li in details.iter_descendants("li")]
        answer = "\n".join(part for part in paragraphs + items if part)

        if question and answer:
            questions.append(QuestionAnswer(question=question, answer=answer))

    return questions


def _heading_questions(page: PageElement) -> list[QuestionAnswer]:
    questions: list[QuestionAnswer] = []

    for seg in segment(page):
        answer = "\n".join(seg.parts)
        if not seg.heading or not answer:
            continue
        if seg.heading.lower().startswith(_NAVIGATION_PREFIX):
            continue
        questions.append(QuestionAnswer(question=seg.heading, answer=answer))

    return questions


def extract_questions(page: PageElement) -> list[QuestionAnswer]:
    """Extract question/answer pairs from a page.

    Args:
        page: Snapshot of a rendered page.

    Returns:
        Accordion pairs when the main region has any with both a question
        and an answer, otherwise heading-delimited pairs.
    """
    main = find_main(page)
    if main is None:
        return []

    return _accordion_questions(main) or _heading_questions(page)
