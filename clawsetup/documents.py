"""Whole-file JSON document stores for openclaw.json and auth-profiles.json."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import jsonschema
import structlog

from clawsetup.errors import IOFailure, MalformedDocument

logger = structlog.get_logger("clawsetup.documents")

SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"


def encode_document(document: Dict[str, Any]) -> str:
    """Serialize a document the way it is written to disk."""
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


class JsonDocumentStore:
    """
    Repository for one JSON document on disk.

    Reads the whole file, parses and validates it; writes the whole file
    back. A missing file loads as an empty document.
    """

    schema_name: str = ""

    def __init__(self, path: Path | str, schema_path: Path | str | None = None) -> None:
        """Initialize with document path and optional schema path."""
        self._path = Path(path)
        if schema_path is None:
            self._schema_path = SCHEMA_DIR / self.schema_name
        else:
            self._schema_path = Path(schema_path)
        self._schema: Dict[str, Any] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> Dict[str, Any]:
        """Load and validate the document."""
        if not self._path.exists():
            return {}

        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise IOFailure(f"Unable to read {self._path}: {exc}") from exc

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedDocument(f"Invalid JSON in {self._path}: {exc}") from exc

        self._validate(raw)
        return raw

    def save(self, document: Dict[str, Any]) -> None:
        """Validate and write the whole document."""
        self._validate(document)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(encode_document(document), encoding="utf-8")
        except OSError as exc:
            raise IOFailure(f"Unable to write {self._path}: {exc}") from exc
        logger.debug("document_saved", path=str(self._path))

    def _validate(self, raw: Any) -> None:
        """Validate the shape of the sections this package manages."""
        if not isinstance(raw, dict):
            raise MalformedDocument(f"{self._path} must contain a JSON object")

        try:
            jsonschema.validate(instance=raw, schema=self._load_schema())
        except jsonschema.ValidationError as exc:
            location = "/".join(str(part) for part in exc.absolute_path) or "<root>"
            raise MalformedDocument(
                f"{self._path} failed validation at {location}: {exc.message}"
            ) from exc

    def _load_schema(self) -> Dict[str, Any]:
        if self._schema is None:
            self._schema = json.loads(self._schema_path.read_text(encoding="utf-8"))
        return self._schema


class ConfigRepository(JsonDocumentStore):
    """openclaw.json, the service configuration document."""

    schema_name = "config_document.schema.json"


class ProfileRepository(JsonDocumentStore):
    """auth-profiles.json, the provider credential document."""

    schema_name = "profile_document.schema.json"
