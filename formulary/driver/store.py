"""Output store: medicine files plus the ``metadata.json`` index.

Layout under the output directory::

    metadata.json
    medicines/<slugified-name>.json

The index maps each slug to the medicine file written for it. It is held in
memory for the whole run and rewritten after every persisted medicine, under
one lock, so concurrent tasks never interleave a read-modify-write.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import tempfile
from pathlib import Path

from pydantic import ValidationError

from formulary.common.data_models import (
    CatalogMetadataEntry,
    Medicine,
    MetadataIndex,
    dump_json,
    dump_metadata_index,
)
from formulary.common.exceptions import (
    MetadataLoadException,
    PersistenceException,
)
from formulary.data_types import CatalogTask

logger = logging.getLogger(__name__)

MEDICINES_DIR_NAME = "medicines"
METADATA_FILE_NAME = "metadata.json"

_UNSAFE_FILE_CHARS = re.compile(r"[^a-zA-Z0-9]+")


def to_medicine_file_name(medicine: Medicine) -> str:
    """File name stem for a medicine, derived from its display name.

    Runs of characters outside ``[a-zA-Z0-9]`` become a single hyphen and
    leading/trailing hyphens are trimmed. Falls back to the slug when
    nothing is left.
    """
    return (
        _UNSAFE_FILE_CHARS.sub("-", medicine.name).strip("-") or medicine.slug
    )


def upsert_metadata(
    entries: list[CatalogMetadataEntry],
    slug: str,
    medicine_name: str,
    medicine_file_path: str,
) -> None:
    """Replace the entry for ``slug`` in place, or append a new one.

    Other entries keep their positions.
    """
    entry = CatalogMetadataEntry(
        slug=slug,
        medicine_name=medicine_name,
        medicine_file_path=medicine_file_path,
    )
    for index, existing in enumerate(entries):
        if existing.slug == slug:
            entries[index] = entry
            return
    entries.append(entry)


def load_metadata(metadata_path: Path) -> list[CatalogMetadataEntry]:
    """Read the metadata index, backfilling slugs from file names.

    Args:
        metadata_path: Path to ``metadata.json``.

    Returns:
        The index entries, or an empty list if the file doesn't exist.

    Raises:
        MetadataLoadException: The file exists but cannot be read or is not
            a valid index.
    """
    if not metadata_path.exists():
        return []

    try:
        raw = metadata_path.read_text(encoding="utf-8")
        entries = MetadataIndex.validate_json(raw)
    except (OSError, ValidationError) as e:
        raise MetadataLoadException(str(metadata_path), str(e)) from e

    return [
        entry
        if entry.slug
        else entry.model_copy(
            update={"slug": Path(entry.medicine_file_path).stem}
        )
        for entry in entries
    ]


def _atomic_write(path: Path, content: str) -> None:
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _read_existing(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def _restore(path: Path, content: str | None) -> None:
    """Put back what was at ``path`` before a write, or remove it."""
    if content is None:
        path.unlink(missing_ok=True)
    else:
        _atomic_write(path, content)


class OutputStore:
    """Owns the output directory and the in-memory metadata index.

    Attributes:
        output_dir: Absolute output directory.
        medicines_dir: Directory holding one JSON file per medicine.
        metadata_path: Location of ``metadata.json``.
        metadata: The index entries, in insertion order.
    """

    def __init__(
        self,
        output_dir: Path,
        metadata: list[CatalogMetadataEntry] | None = None,
    ):
        self.output_dir = output_dir
        self.medicines_dir = output_dir / MEDICINES_DIR_NAME
        self.metadata_path = output_dir / METADATA_FILE_NAME
        self.metadata: list[CatalogMetadataEntry] = list(metadata or [])
        self.write_lock = asyncio.Lock()

    def resolve(self, medicine_file_path: str) -> Path:
        """Absolute path of an index entry's root-relative file path."""
        return self.output_dir / medicine_file_path

    async def persist(self, task: CatalogTask, medicine: Medicine) -> Path:
        """Write a medicine file and record it in the index.

        The medicine file is written first, then the index entry for
        ``task.slug`` is upserted and the whole index rewritten. Both writes
        replace their target atomically. If the index cannot be written, the
        in-memory index and the medicine file are rolled back, so a failed
        persist leaves nothing behind.

        Returns:
            Path of the written medicine file.

        Raises:
            PersistenceException: Either file could not be written.
        """
        async with self.write_lock:
            file_path = (
                self.medicines_dir / f"{to_medicine_file_name(medicine)}.json"
            )
            try:
                previous_content = await asyncio.to_thread(
                    _read_existing, file_path
                )
            except OSError as e:
                raise PersistenceException(str(file_path), str(e)) from e
            await self._write(file_path, dump_json(medicine))

            previous_metadata = list(self.metadata)
            relative_path = file_path.relative_to(self.output_dir).as_posix()
            upsert_metadata(
                self.metadata, task.slug, medicine.name, relative_path
            )
            try:
                await self._write(
                    self.metadata_path, dump_metadata_index(self.metadata)
                )
            except PersistenceException:
                self.metadata[:] = previous_metadata
                await self._rollback(file_path, previous_content)
                raise

            logger.debug(
                f"Persisted {task.slug} to {relative_path}",
                extra={"slug": task.slug, "path": relative_path},
            )
            return file_path

    async def _rollback(self, path: Path, content: str | None) -> None:
        try:
            await asyncio.to_thread(_restore, path, content)
        except OSError as e:
            logger.error(
                f"Could not roll back {path.name}: {e}",
                extra={"path": str(path)},
            )

    async def _write(self, path: Path, content: str) -> None:
        try:
            await asyncio.to_thread(_atomic_write, path, content)
        except OSError as e:
            raise PersistenceException(str(path), str(e)) from e


def prepare_output_store(output_dir: Path | str) -> OutputStore:
    """Create the output directories and load the existing index.

    Safe to call repeatedly. A corrupt index is logged and treated as empty;
    it is overwritten by the first persisted medicine.

    Args:
        output_dir: Output directory, relative paths resolved against the
            working directory.
    """
    root = Path(output_dir).resolve()
    (root / MEDICINES_DIR_NAME).mkdir(parents=True, exist_ok=True)

    metadata_path = root / METADATA_FILE_NAME
    try:
        metadata = load_metadata(metadata_path)
    except MetadataLoadException as e:
        logger.warning(
            f"Ignoring unreadable metadata index: {e.reason}",
            extra={"path": e.path},
        )
        metadata = []

    return OutputStore(root, metadata)
