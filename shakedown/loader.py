"""
Catalog Loader

Parses the two catalog documents into a validated, read-only ``Catalog``:

  show_categories.json   optional  facet name -> bucket -> identifiers
  enriched_shows.json    mandatory document key -> show record

Usage:
    catalog = load(category_bytes, enriched_bytes)
    catalog = load_files(Settings.from_env())
    catalog = await load_async(category_bytes, enriched_bytes)
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from .catalog import Catalog
from .config import Settings
from .exceptions import EmptyDatasetError, SchemaError
from .models import CategoryDocument, CategoryIndex, EnrichedShowsDocument, FacetName


Blob = Union[bytes, bytearray, str]

_KNOWN_FACETS = frozenset(f.value for f in FacetName)
_FACET_SHAPE = TypeAdapter(Union[Dict[str, List[str]], List[str]])


def _decode_json(raw: Blob, label: str) -> Any:
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        preview = raw[:500] if isinstance(raw, str) else bytes(raw[:500]).decode("utf-8", "replace")
        logger.error(f"Error decoding {label}: {exc}. First 500 characters: {preview}")
        raise SchemaError(f"{label} is not valid JSON: {exc}") from exc


def _validation_summary(exc: ValidationError, limit: int = 5) -> str:
    lines = []
    for err in exc.errors()[:limit]:
        loc = ".".join(str(p) for p in err.get("loc", ()))
        lines.append(f"{loc}: {err.get('msg', '')}")
    more = exc.error_count() - limit
    if more > 0:
        lines.append(f"... and {more} more")
    return "; ".join(lines)


def parse_category_index(raw: Optional[Blob]) -> CategoryIndex:
    """
    Parse the category document. Absent or empty input yields an empty index.

    A facet whose value is a flat identifier list becomes one bucket named
    after the facet itself. Known facets must have a valid shape; unknown
    ones that don't are skipped with a warning.
    """
    if raw is None or (isinstance(raw, (bytes, bytearray, str)) and not raw.strip()):
        logger.info("No category document supplied; using an empty category index.")
        return CategoryIndex()

    data = _decode_json(raw, "category document")
    try:
        doc = CategoryDocument.model_validate(data)
    except ValidationError as exc:
        raise SchemaError(f"Invalid category document: {_validation_summary(exc)}") from exc

    facets: dict[str, dict[str, frozenset[str]]] = {}
    for facet_name, raw_buckets in doc.categories.items():
        try:
            buckets = _FACET_SHAPE.validate_python(raw_buckets)
        except ValidationError as exc:
            if facet_name in _KNOWN_FACETS:
                raise SchemaError(
                    f"Invalid category facet {facet_name}: {_validation_summary(exc)}"
                ) from exc
            logger.warning(f"Skipping category facet {facet_name}: not a bucket map or identifier list")
            continue
        if isinstance(buckets, list):
            facets[facet_name] = {facet_name: frozenset(buckets)}
        else:
            facets[facet_name] = {value: frozenset(ids) for value, ids in buckets.items()}

    index = CategoryIndex(
        format_version=doc.format_version,
        description=doc.description,
        generated_at=doc.generated_at,
        facets=facets,
    )
    if index.unknown_facets:
        logger.info(f"Category document has unrecognised facets: {', '.join(index.unknown_facets)}")
    logger.info(
        f"Loaded category index v{index.format_version}: {len(facets)} facets, "
        f"{len(index.facet('by_year'))} years"
    )
    return index


def parse_enriched_shows(raw: Blob) -> EnrichedShowsDocument:
    """Parse and validate the enriched-show document."""
    data = _decode_json(raw, "enriched-show document")
    try:
        doc = EnrichedShowsDocument.model_validate(data)
    except ValidationError as exc:
        raise SchemaError(f"Invalid enriched-show document: {_validation_summary(exc)}") from exc

    if not doc.best_shows:
        raise EmptyDatasetError("Enriched-show document contains no shows")
    return doc


def load(category_bytes: Optional[Blob], enriched_bytes: Blob) -> Catalog:
    """
    Build a ``Catalog`` from the two raw documents.

    Raises:
        SchemaError:       either document is malformed or misses required keys.
        EmptyDatasetError: the enriched-show collection is empty.
    """
    if enriched_bytes is None:
        raise EmptyDatasetError("Enriched-show document is required")

    categories = parse_category_index(category_bytes)
    shows_doc = parse_enriched_shows(enriched_bytes)

    catalog = Catalog(
        shows=shows_doc.best_shows,
        categories=categories,
        last_updated=shows_doc.last_updated,
        stats=shows_doc.stats,
    )
    logger.info(f"Loaded enriched shows: {len(catalog)} shows")
    return catalog


async def load_async(category_bytes: Optional[Blob], enriched_bytes: Blob) -> Catalog:
    """Run ``load`` on a worker thread; parsing is pure over the inputs."""
    return await asyncio.to_thread(load, category_bytes, enriched_bytes)


def _read_optional(path: Path, label: str) -> Optional[bytes]:
    if not path.exists():
        logger.warning(f"{label} not found at {path}, skipping.")
        return None
    logger.info(f"Found {label} at {path}")
    return path.read_bytes()


def load_files(settings: Optional[Settings] = None) -> Catalog:
    """Read the catalog documents from the configured paths and ``load`` them."""
    settings = settings or Settings.from_env()

    category_bytes = _read_optional(settings.categories_path, "show categories")
    enriched_bytes = _read_optional(settings.shows_path, "enriched shows")
    if enriched_bytes is None:
        raise EmptyDatasetError(f"Enriched-show document not found at {settings.shows_path}")
    return load(category_bytes, enriched_bytes)
