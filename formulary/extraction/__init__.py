"""Pure extraction functions over PageElement snapshots.

Nothing in this package touches the browser: every function takes an
already-rendered page and returns plain values or records, so it can be
tested against static HTML.
"""

from formulary.extraction.landing import (
    extract_description,
    extract_last_reviewed,
    extract_title,
    parse_brand_names,
    parse_review_date,
)
from formulary.extraction.links import (
    SubpageUrls,
    extract_medicine_links,
    extract_related_links,
    parse_catalog_index,
    resolve_subpage_urls,
    to_catalog_url,
)
from formulary.extraction.pages import (
    build_about_page,
    build_content_page,
    build_questions_page,
)
from formulary.extraction.questions import extract_questions
from formulary.extraction.sections import extract_sections

__all__ = [
    "SubpageUrls",
    "build_about_page",
    "build_content_page",
    "build_questions_page",
    "extract_description",
    "extract_last_reviewed",
    "extract_medicine_links",
    "extract_questions",
    "extract_related_links",
    "extract_sections",
    "extract_title",
    "parse_brand_names",
    "parse_catalog_index",
    "parse_review_date",
    "resolve_subpage_urls",
    "to_catalog_url",
]
