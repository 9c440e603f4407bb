#!/usr/bin/env python3
"""
Test discovery and parsing of spec files
"""

import json

import pytest
import yaml

from openapi_tools.document_loader import DocumentLoader, read_document
from openapi_tools.errors import SpecDirectoryError, SpecParseError


def _minimal(title: str, path: str = "/ping") -> dict:
    return {
        "openapi": "3.0.0",
        "info": {"title": title},
        "paths": {path: {"get": {"operationId": "ping", "responses": {"200": {"description": "pong"}}}}},
    }


class TestReadDocument:
    """Test single file parsing"""

    @pytest.mark.unit
    def test_json_file(self, tmp_path):
        """Test loading a JSON spec file"""
        path = tmp_path / "a.json"
        path.write_text(json.dumps(_minimal("A")))
        assert read_document(path)["info"]["title"] == "A"

    @pytest.mark.unit
    def test_yaml_file(self, tmp_path):
        """Test loading a YAML spec file"""
        path = tmp_path / "a.yml"
        path.write_text(yaml.safe_dump(_minimal("A")))
        assert read_document(path)["openapi"] == "3.0.0"

    @pytest.mark.unit
    def test_invalid_json_raises(self, tmp_path):
        """Test that a malformed file raises a parse error"""
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(SpecParseError) as exc_info:
            read_document(path)
        assert exc_info.value.path == path

    @pytest.mark.unit
    def test_non_openapi_document_raises(self, tmp_path):
        """Test that a document without paths is rejected"""
        path = tmp_path / "config.yaml"
        path.write_text("name: something\nversion: 2\n")
        with pytest.raises(SpecParseError):
            read_document(path)

    @pytest.mark.unit
    def test_scalar_root_raises(self, tmp_path):
        """Test that a document whose root is not a mapping is rejected"""
        path = tmp_path / "scalar.yaml"
        path.write_text("just a string\n")
        with pytest.raises(SpecParseError):
            read_document(path)


class TestDocumentLoader:
    """Test directory scanning and document caching"""

    @pytest.mark.unit
    def test_loads_json_and_yaml_recursively(self, tmp_path):
        """Test that spec files are found in nested directories"""
        (tmp_path / "nested").mkdir()
        (tmp_path / "a.json").write_text(json.dumps(_minimal("Alpha")))
        (tmp_path / "nested" / "b.YAML").write_text(yaml.safe_dump(_minimal("Beta", "/pong")))
        (tmp_path / "notes.txt").write_text("ignored")

        loader = DocumentLoader(tmp_path)
        endpoints = loader.load_all()

        assert sorted(e.project for e in endpoints) == ["alpha", "beta"]
        assert sorted(loader.projects) == ["alpha", "beta"]
        assert loader.get_document("beta")["info"]["title"] == "Beta"

    @pytest.mark.unit
    def test_bad_file_is_skipped(self, tmp_path, caplog):
        """Test that a bad file is logged and skipped"""
        (tmp_path / "good.json").write_text(json.dumps(_minimal("Good")))
        (tmp_path / "bad.json").write_text("{")

        endpoints = DocumentLoader(tmp_path).load_all()

        assert [e.project for e in endpoints] == ["good"]
        assert "bad.json" in caplog.text

    @pytest.mark.unit
    def test_empty_directory_gives_no_endpoints(self, tmp_path):
        """Test that an empty directory yields no endpoints"""
        assert DocumentLoader(tmp_path).load_all() == []

    @pytest.mark.unit
    def test_missing_directory_raises(self, tmp_path):
        """Test that a missing directory is fatal"""
        with pytest.raises(SpecDirectoryError):
            DocumentLoader(tmp_path / "does-not-exist").load_all()

    @pytest.mark.unit
    def test_files_processed_in_sorted_order(self, tmp_path):
        """Test that files are processed in sorted path order"""
        (tmp_path / "b.json").write_text(json.dumps(_minimal("Second")))
        (tmp_path / "a.json").write_text(json.dumps(_minimal("First")))

        endpoints = DocumentLoader(tmp_path).load_all()

        assert [e.project for e in endpoints] == ["first", "second"]

    @pytest.mark.unit
    def test_duplicate_project_last_wins(self, tmp_path, caplog):
        """Test that the last document wins for a duplicate project name"""
        first = _minimal("Same")
        second = _minimal("Same", "/other")
        (tmp_path / "1.json").write_text(json.dumps(first))
        (tmp_path / "2.json").write_text(json.dumps(second))

        loader = DocumentLoader(tmp_path)
        loader.load_all()

        assert "/other" in loader.get_document("same")["paths"]
        assert "more than one document" in caplog.text

    @pytest.mark.unit
    def test_schema_as_json_for_unknown_project(self, tmp_path):
        """Test schema rendering for a project that was never loaded"""
        loader = DocumentLoader(tmp_path)
        assert json.loads(loader.schema_as_json("nope", {"type": "string"})) == {
            "error": "OpenAPI document not found for project: nope"
        }

    @pytest.mark.unit
    def test_resolved_schema(self, loaded_shop):
        """Test rendering a referenced schema as JSON"""
        loader, _ = loaded_shop
        schema = loader.resolved_schema("shop", {"$ref": "#/components/schemas/Order"})
        assert schema["required"] == ["sku", "qty"]
