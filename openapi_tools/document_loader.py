"""
Discovery and parsing of OpenAPI spec files

Scans a directory tree for .json/.yaml/.yml specs, parses each one and extracts its
endpoints. Parsed documents are kept per project so schemas can be re-resolved later
(tool descriptions, input schemas, tool catalogue logging).
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from .errors import SpecDirectoryError, SpecParseError
from .models import Endpoint
from .openapi_parser import OpenAPIParser
from .schema_resolver import schema_as_json, to_json_schema

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".json", ".yaml", ".yml")


def is_supported_file(path: Path) -> bool:
    """Regular file with a .json, .yaml or .yml extension (case-insensitive)"""
    return path.is_file() and path.suffix.lower() in SUPPORTED_EXTENSIONS


def read_document(path: Path) -> dict[str, Any]:
    """
    Read and parse one spec file

    Args:
        path: Spec file (.json is parsed as JSON, anything else as YAML)

    Returns:
        Parsed document

    Raises:
        SpecParseError: If the file cannot be read or is not an OpenAPI document
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SpecParseError(path, str(e)) from e

    try:
        if path.suffix.lower() == ".json":
            document = json.loads(text)
        else:
            document = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SpecParseError(path, str(e)) from e

    if not isinstance(document, dict):
        raise SpecParseError(path, "document root is not a mapping")

    if not any(key in document for key in ("openapi", "swagger", "paths")):
        raise SpecParseError(path, "not an OpenAPI document (no 'openapi', 'swagger' or 'paths' key)")

    return document


class DocumentLoader:
    """Load every spec file under a directory and cache the parsed documents by project"""

    def __init__(self, specs_directory: str | Path, parser: OpenAPIParser | None = None):
        """
        Initialize the loader

        Args:
            specs_directory: Root directory scanned recursively for spec files
            parser: Endpoint extractor (default: OpenAPIParser with the default fallback URL)
        """
        self.specs_directory = Path(specs_directory)
        self.parser = parser or OpenAPIParser()
        self._documents: dict[str, dict[str, Any]] = {}

    def discover_files(self) -> list[Path]:
        """
        List supported spec files under the spec directory, in a stable order

        Raises:
            SpecDirectoryError: If the directory does not exist or cannot be walked
        """
        directory = self.specs_directory
        if not directory.is_dir():
            raise SpecDirectoryError(f"OpenAPI spec directory not found: {directory.absolute()}")

        try:
            return sorted(path for path in directory.rglob("*") if is_supported_file(path))
        except OSError as e:
            raise SpecDirectoryError(f"Cannot read OpenAPI spec directory {directory.absolute()}: {e}") from e

    def load_all(self) -> list[Endpoint]:
        """
        Parse every spec file and aggregate their endpoints

        A file that fails to parse is logged and skipped.

        Returns:
            Endpoints of all documents, in file order
        """
        files = self.discover_files()
        logger.info(f"📂 Scanning {self.specs_directory.absolute()} - {len(files)} OpenAPI file(s) found")

        endpoints: list[Endpoint] = []
        for path in files:
            try:
                file_endpoints = self.load_file(path)
            except SpecParseError as e:
                logger.error(f"❌ {e}")
                continue
            except Exception:
                logger.exception(f"❌ Unexpected error while processing OpenAPI file {path}")
                continue

            endpoints.extend(file_endpoints)
            logger.info(f"✓ Extracted {len(file_endpoints)} endpoints from {path.name}")

        logger.info(f"✓ Parsing finished: {len(endpoints)} endpoints extracted from all files")
        return endpoints

    def load_file(self, path: str | Path) -> list[Endpoint]:
        """Parse a single spec file, cache its document and extract its endpoints."""
        path = Path(path)
        logger.debug(f"Parsing OpenAPI file: {path}")
        document = read_document(path)
        project = self.parser.project_name(document, path)
        self.register_document(project, document)
        return self.parser.extract_endpoints(document, project)

    def register_document(self, project: str, document: dict[str, Any]) -> None:
        if project in self._documents and self._documents[project] is not document:
            logger.warning(f"⚠️  Project '{project}' is defined by more than one document; the last one is used for schema lookups")
        self._documents[project] = document

    def get_document(self, project: str) -> dict[str, Any] | None:
        return self._documents.get(project)

    @property
    def projects(self) -> list[str]:
        return list(self._documents)

    def resolved_schema(self, project: str, schema: Any) -> dict[str, Any] | None:
        """
        Expand a schema of a project's document into a plain JSON tree

        Returns:
            Expanded schema, or None if the project has no cached document
        """
        document = self._documents.get(project)
        if document is None:
            logger.warning(f"⚠️  No OpenAPI document cached for project: {project}")
            return None
        return to_json_schema(schema, document)

    def schema_as_json(self, project: str, schema: Any) -> str:
        """Expanded schema of a project's document as pretty-printed JSON."""
        document = self._documents.get(project)
        if document is None:
            return json.dumps({"error": f"OpenAPI document not found for project: {project}"})
        return schema_as_json(schema, document)
