"""Tests for writer event sinks."""

import json

import pytest
import yaml

from oagraph.output import JsonWriter, TreeWriter, YamlWriter, create_writer


class TestTreeWriter:
    """Test building trees from writer events."""

    def test_nested_structure(self):
        """Test objects, arrays and scalars."""
        w = TreeWriter()
        w.start_object()
        w.write_property("title", "Pets")
        w.write_property_name("tags")
        w.start_array()
        w.write_value("a")
        w.write_value("b")
        w.end_array()
        w.end_object()
        assert w.result == {"title": "Pets", "tags": ["a", "b"]}

    def test_pointer_tracks_position(self):
        """Test the pointer of the next value."""
        w = TreeWriter()
        w.start_object()
        w.write_property_name("paths")
        w.start_object()
        w.write_property_name("/pets")
        assert w.pointer == "/paths/~1pets"
        w.start_array()
        assert w.pointer == "/paths/~1pets/0"

    def test_property_helpers(self):
        """Test the omission rules of the write helpers."""
        w = TreeWriter()
        w.start_object()
        w.write_property("skipped", None)
        w.write_property("deprecated", False, False)
        w.write_property("required", True, False)
        w.write_property("explode", False)
        w.write_required_property("url", None)
        w.write_optional_collection("servers", [], w.write_value)
        w.write_required_collection("security", [], w.write_value)
        w.write_optional_map("variables", {}, lambda key, value: w.write_value(value))
        w.write_required_object("info", None, lambda value: None)
        w.write_extensions({"x-logo": {"url": "logo.png"}})
        w.end_object()
        assert w.result == {
            "required": True,
            "explode": False,
            "url": "",
            "security": [],
            "info": {},
            "x-logo": {"url": "logo.png"},
        }

    def test_raw_values_copied(self):
        """Test that raw values are not shared with the caller."""
        value = {"nested": [1, 2]}
        w = TreeWriter()
        w.write_raw(value)
        value["nested"].append(3)
        assert w.result == {"nested": [1, 2]}

    def test_unclosed_result(self):
        """Test that an unfinished tree has no result."""
        w = TreeWriter()
        w.start_object()
        with pytest.raises(ValueError, match="unclosed"):
            w.result

    @pytest.mark.parametrize("events", [
        lambda w: w.end_object(),
        lambda w: (w.start_array(), w.end_object()),
        lambda w: (w.start_array(), w.write_property_name("a")),
        lambda w: (w.start_object(), w.write_value(1)),
        lambda w: (w.start_object(), w.write_property_name("a"), w.write_property_name("b")),
        lambda w: (w.start_object(), w.write_property_name("a"), w.end_object()),
        lambda w: (w.write_value(1), w.write_value(2)),
    ])
    def test_misuse_rejected(self, events):
        """Test that unbalanced or misplaced events raise."""
        with pytest.raises(ValueError):
            events(TreeWriter())


class TestTextWriters:
    """Test JSON and YAML rendering."""

    def _write(self, writer):
        writer.start_object()
        writer.write_property("openapi", "3.0.4")
        writer.write_property_name("servers")
        writer.start_array()
        for url in ("https://a.example.com", "https://b.example.com"):
            writer.start_object()
            writer.write_property("url", url)
            writer.end_object()
        writer.end_array()
        writer.write_property("title", "Café")
        writer.end_object()
        return writer.getvalue()

    def test_json(self):
        """Test JSON text with indentation and non-ASCII kept."""
        text = self._write(JsonWriter(indent=4))
        assert text.endswith("}\n")
        assert '\n    "openapi": "3.0.4"' in text
        assert "Café" in text
        assert json.loads(text)["servers"][1]["url"] == "https://b.example.com"

    def test_yaml(self):
        """Test block YAML in insertion order."""
        text = self._write(YamlWriter())
        assert text.startswith("openapi: 3.0.4\n")
        assert text.endswith("\n")
        assert "Café" in text
        assert yaml.safe_load(text)["servers"][0]["url"] == "https://a.example.com"

    def test_yaml_repeated_values_not_aliased(self):
        """Test that a value written twice is not emitted as an anchor."""
        shared = {"type": "string"}
        w = YamlWriter()
        w.start_object()
        w.write_raw_property("a", shared)
        w.write_raw_property("b", shared)
        w.end_object()
        text = w.getvalue()
        assert "&" not in text and "*" not in text

    def test_create_writer(self):
        """Test writer lookup by format name."""
        assert isinstance(create_writer("json"), JsonWriter)
        assert isinstance(create_writer("yaml", indent=4), YamlWriter)
        with pytest.raises(ValueError, match="Unknown output format"):
            create_writer("xml")
