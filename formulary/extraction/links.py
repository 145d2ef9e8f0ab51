"""Link extraction: catalog discovery, sub-page roles and outbound links."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urljoin, urlsplit, urlunsplit

from formulary.common.data_models import NamedLink
from formulary.common.page_element import PageElement
from formulary.data_types import CatalogTask

CATALOG_NAMESPACE = "medicines"
CONDITIONS_MARKER = "/conditions/"

# Checked in this order; the first link containing any keyword wins the role
SUBPAGE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "about": ("about",),
    "dosage": ("how-and-when", "dosage"),
    "side_effects": ("side-effects",),
    "pregnancy": ("pregnancy", "breastfeeding", "fertility"),
    "interactions": ("interactions", "other-medicines", "herbal"),
    "common_questions": ("common-questions",),
}


@dataclass(frozen=True)
class SubpageUrls:
    """Sub-page URLs of one medicine. ``about`` is always set."""

    about: str
    dosage: str | None = None
    side_effects: str | None = None
    pregnancy: str | None = None
    interactions: str | None = None
    common_questions: str | None = None


def _namespace_links(
    page: PageElement, base_url: str, namespace: str
) -> list[str]:
    links = page.find_links(
        f'main a[href*="/{namespace}/"]',
        f"{namespace} links",
        base_url=base_url,
        min_count=0,
    )
    return [link.url for link in links]


def to_catalog_url(
    href: str, base_url: str, namespace: str = CATALOG_NAMESPACE
) -> tuple[str, str] | None:
    """Canonicalize a catalog href to ``{base}/{namespace}/{slug}/``.

    Args:
        href: Raw or absolute href.
        base_url: Site base URL for resolving relative hrefs.
        namespace: First path segment of catalog items.

    Returns:
        Tuple of (slug, canonical URL) or None when the href is not exactly
        one path segment below the namespace.
    """
    parts = urlsplit(urljoin(base_url, href))
    segments = [segment for segment in parts.path.split("/") if segment]
    if len(segments) != 2 or segments[0] != namespace:
        return None

    slug = segments[1]
    url = urlunsplit(
        (parts.scheme, parts.netloc, f"/{namespace}/{slug}/", "", "")
    )
    return slug, url


def parse_catalog_index(
    page: PageElement,
    base_url: str,
    namespace: str = CATALOG_NAMESPACE,
) -> list[CatalogTask]:
    """Build the task list from the catalog index page.

    Hrefs that don't canonicalize are dropped silently. Tasks are unique by
    slug and keep the position where the slug was first seen.
    """
    tasks: dict[str, CatalogTask] = {}

    for url in _namespace_links(page, base_url, namespace):
        canonical = to_catalog_url(url, base_url, namespace)
        if canonical is None:
            continue

        slug, task_url = canonical
        tasks[slug] = CatalogTask(slug=slug, url=task_url)

    return list(tasks.values())


def extract_medicine_links(
    page: PageElement,
    slug: str,
    base_url: str,
    namespace: str = CATALOG_NAMESPACE,
) -> list[str]:
    """Distinct links under the medicine's own path, in document order."""
    own_path = f"/{namespace}/{slug}/"
    return [
        url
        for url in dict.fromkeys(_namespace_links(page, base_url, namespace))
        if urlsplit(url).path.startswith(own_path)
    ]


def find_link(links: list[str], keywords: tuple[str, ...]) -> str | None:
    return next(
        (
            link
            for link in links
            if any(keyword in link for keyword in keywords)
        ),
        None,
    )


def resolve_subpage_urls(
    medicine_links: list[str], fallback_url: str
) -> SubpageUrls:
    """Assign the medicine's links to sub-page roles.

    Args:
        medicine_links: Links under the medicine's own path.
        fallback_url: Used as the about page when no link matches it.
    """
    found = {
        role: find_link(medicine_links, keywords)
        for role, keywords in SUBPAGE_KEYWORDS.items()
    }
    found["about"] = found["about"] or fallback_url
    return SubpageUrls(**found)


def extract_related_links(
    page: PageElement,
    base_url: str,
    namespace: str = CATALOG_NAMESPACE,
) -> tuple[list[NamedLink], list[NamedLink]]:
    """Classify labelled <main> links as related conditions or resources.

    Returns:
        Tuple of (related conditions, useful resources). Links into the
        catalog namespace are neither.
    """
    links = [
        NamedLink(label=link.text, url=link.url)
        for link in page.find_links(
            "main a[href]", "main links", base_url=base_url, min_count=0
        )
        if link.text
    ]

    namespace_marker = f"/{namespace}/"
    conditions = [link for link in links if CONDITIONS_MARKER in link.url]
    resources = [
        link
        for link in links
        if namespace_marker not in link.url
        and CONDITIONS_MARKER not in link.url
    ]
    return conditions, resources
