"""Load product and translation seed data from YAML into a document store.

Seed files look like::

    products:
      - id: p-red-shoes
        title: Red Shoes
        price: 49.9
        category: shoes
    translations:
      - title: Red Shoes
        fr: Chaussures Rouges

Products are inserted once per ``id``; translation entries are merged into the
entry for the same canonical ``title`` so that new languages can be added by
re-running the import.
"""

from __future__ import annotations

import argparse
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from typing_extensions import Self

from storefront.backend.app.localization import TRANSLATIONS_COLLECTION
from storefront.backend.app.services.catalog_service import PRODUCTS_COLLECTION
from storefront.backend.app.services.document_store import (
    Document,
    DocumentStore,
    SQLiteDocumentStore,
)

from .settings import load_settings

DATA_DIRECTORY = Path(__file__).resolve().parent / "data"
DEMO_CATALOG_FILE = DATA_DIRECTORY / "demo_catalog.yaml"


class SeedError(ValueError):
    """Raised when a seed file cannot be parsed or violates the schema."""


class SeedProduct(BaseModel):
    """A catalogue product; extra attributes are stored as given."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    price: int | float
    category: str | None = None

    def as_document(self) -> Document:
        document = self.model_dump(exclude_none=True)
        document["_id"] = document.pop("id")
        return document


class SeedTranslation(BaseModel):
    """Localized titles for one canonical product title."""

    model_config = ConfigDict(frozen=True, extra="allow")

    title: str = Field(min_length=1)

    @model_validator(mode="after")
    def _require_string_titles(self) -> Self:
        for language, value in (self.model_extra or {}).items():
            if not isinstance(value, str):
                raise ValueError(f"translation for '{language}' must be a string")
        return self

    @property
    def languages(self) -> dict[str, str]:
        return dict(self.model_extra or {})


class SeedCatalogue(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    products: list[SeedProduct] = Field(default_factory=list)
    translations: list[SeedTranslation] = Field(default_factory=list)


@dataclass(frozen=True)
class SeedResult:
    """Counts of documents written by :func:`apply_seed`."""

    products: int
    translations: int


def load_seed_file(path: Path) -> SeedCatalogue:
    """Parse and validate the YAML seed file at ``path``."""

    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            raw: Any = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise SeedError(f"Seed file {path} is not valid YAML: {error}") from error

    if not isinstance(raw, dict):
        raise SeedError("Seed file must define a mapping at the top level")

    try:
        return SeedCatalogue.model_validate(raw)
    except ValidationError as error:
        raise SeedError(f"Seed validation failed for {path}: {error}") from error


def validate_seed_catalogue(catalogue: SeedCatalogue) -> list[str]:
    """Return consistency issues that the schema alone does not catch."""

    issues: list[str] = []

    duplicate_ids = [
        value for value, count in Counter(p.id for p in catalogue.products).items() if count > 1
    ]
    if duplicate_ids:
        issues.append(f"products: duplicate ids {sorted(duplicate_ids)}")

    for product in catalogue.products:
        if product.price <= 0:
            issues.append(f"products.{product.id}: price must be positive")

    duplicate_titles = [
        value
        for value, count in Counter(t.title for t in catalogue.translations).items()
        if count > 1
    ]
    if duplicate_titles:
        issues.append(f"translations: duplicate titles {sorted(duplicate_titles)}")

    known_titles = {product.title for product in catalogue.products}
    for entry in catalogue.translations:
        if known_titles and entry.title not in known_titles:
            issues.append(f"translations.{entry.title}: no product has this title")
        for language, value in entry.languages.items():
            if not value.strip():
                issues.append(f"translations.{entry.title}.{language}: empty translation")

    return issues


def apply_seed(store: DocumentStore, catalogue: SeedCatalogue) -> SeedResult:
    """Write ``catalogue`` into ``store`` without overwriting existing data.

    Products are only inserted when their ``id`` is unknown. Translation
    entries only gain the languages they do not carry yet, so titles edited
    after an earlier import are kept.
    """

    inserted_products = 0
    for product in catalogue.products:
        document = product.as_document()
        created: list[bool] = []

        def insert_missing(current: Document | None, document: Document = document) -> Document | None:
            if current is not None:
                return None
            created.append(True)
            return document

        store.modify(PRODUCTS_COLLECTION, {"_id": document["_id"]}, insert_missing)
        inserted_products += len(created)

    written_translations = 0
    for entry in catalogue.translations:
        changed: list[bool] = []

        def add_missing(current: Document | None, entry: SeedTranslation = entry) -> Document | None:
            stored = current or {"title": entry.title}
            missing = {
                language: value
                for language, value in entry.languages.items()
                if language not in stored
            }
            if current is not None and not missing:
                return None
            changed.append(True)
            return {**stored, **missing}

        store.modify(TRANSLATIONS_COLLECTION, {"title": entry.title}, add_missing)
        written_translations += len(changed)

    return SeedResult(products=inserted_products, translations=written_translations)


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate a catalogue seed file and load it into the document store."
    )
    parser.add_argument(
        "file",
        nargs="?",
        type=Path,
        default=DEMO_CATALOG_FILE,
        help="YAML seed file (defaults to the bundled demo catalogue)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="SQLite document store path (defaults to STOREFRONT_DB)",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only validate the seed file, do not write anything",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for seeding from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)

    try:
        catalogue = load_seed_file(args.file)
    except (OSError, SeedError) as error:
        print(f"failed to load {args.file}: {error}")
        return 1

    issues = validate_seed_catalogue(catalogue)
    if issues:
        print(f"{len(issues)} issue(s) detected in {args.file}:")
        for issue in issues:
            print(f"  - {issue}")
        return 1

    if args.check:
        print(f"{args.file}: OK")
        return 0

    database = args.db or load_settings().database_path
    if database is None:
        print("No document store configured; pass --db or set STOREFRONT_DB")
        return 1

    result = apply_seed(SQLiteDocumentStore(database), catalogue)
    print(
        f"Inserted {result.products} product(s), "
        f"wrote {result.translations} translation entr{'y' if result.translations == 1 else 'ies'}"
    )
    return 0


__all__ = [
    "DEMO_CATALOG_FILE",
    "SeedCatalogue",
    "SeedError",
    "SeedProduct",
    "SeedResult",
    "SeedTranslation",
    "apply_seed",
    "load_seed_file",
    "main",
    "validate_seed_catalogue",
]


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
