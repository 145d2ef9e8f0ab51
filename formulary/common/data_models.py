"""Pydantic data models for scraped medicines and the metadata index.

Field names are snake_case in Python and camelCase on disk. Optional
sub-pages are ``None`` in memory and omitted from the JSON entirely; use
:func:`dump_json` rather than calling ``model_dump_json`` directly so that
the serialization options stay consistent.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class ScrapedModel(BaseModel):
    """Base class for everything written to the output directory."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ContentSection(ScrapedModel):
    """Text between one h2/h3 heading and the next."""

    heading: str
    paragraphs: list[str] = Field(default_factory=list)
    bullets: list[str] = Field(default_factory=list)


class QuestionAnswer(ScrapedModel):
    question: str
    answer: str


class NamedLink(ScrapedModel):
    """A labelled outbound link (related condition or useful resource)."""

    label: str
    url: str


class MedicineAbout(ScrapedModel):
    description: str
    key_facts: list[str] = Field(default_factory=list)
    used_for: list[str] = Field(default_factory=list)
    content: list[ContentSection] = Field(default_factory=list)
    last_reviewed: date | None = None


class MedicineContentPage(ScrapedModel):
    content: list[ContentSection] = Field(default_factory=list)
    last_reviewed: date | None = None


class MedicineCommonQuestions(ScrapedModel):
    questions: list[QuestionAnswer] = Field(default_factory=list)
    last_reviewed: date | None = None


class MedicineMetadata(ScrapedModel):
    scraped_at: datetime
    source: Literal["nhs"] = "nhs"


class Medicine(ScrapedModel):
    """A fully scraped medicine.

    ``about`` is always present. Each optional sub-page is either a complete
    page record or ``None``; there are no partially filled sub-pages.
    """

    name: str
    slug: str
    url: str
    brand_names: list[str] = Field(default_factory=list)
    about: MedicineAbout
    dosage: MedicineContentPage | None = None
    side_effects: MedicineContentPage | None = None
    pregnancy: MedicineContentPage | None = None
    interactions: MedicineContentPage | None = None
    common_questions: MedicineCommonQuestions | None = None
    related_conditions: list[NamedLink] = Field(default_factory=list)
    useful_resources: list[NamedLink] = Field(default_factory=list)
    metadata: MedicineMetadata


class CatalogMetadataEntry(ScrapedModel):
    """One row of ``metadata.json``: where a slug's medicine file lives.

    ``slug`` may be missing, null or empty in index files written by older
    versions; the loader backfills it from the file name.
    """

    slug: str | None = None
    medicine_name: str
    medicine_file_path: str


MetadataIndex = TypeAdapter(list[CatalogMetadataEntry])


def dump_json(model: ScrapedModel) -> str:
    """Serialize a model the way it is written to disk."""
    return model.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def dump_metadata_index(entries: list[CatalogMetadataEntry]) -> str:
    return MetadataIndex.dump_json(entries, by_alias=True, indent=2).decode(
        "utf-8"
    )
