"""Integration tests for the oagraph command line."""

import json

import pytest
import yaml
from typer.testing import CliRunner

from oagraph import __version__
from oagraph.cli import app

runner = CliRunner()


@pytest.fixture
def petstore_file(tmp_path, petstore_v3):
    path = tmp_path / "petstore.json"
    path.write_text(json.dumps(petstore_v3), encoding="utf-8")
    return path


@pytest.fixture
def swagger_file(tmp_path, petstore_v2):
    path = tmp_path / "swagger.yaml"
    path.write_text(yaml.safe_dump(petstore_v2, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture
def split_api_files(tmp_path):
    api = {
        "openapi": "3.0.3",
        "info": {"title": "Split", "version": "1.0.0"},
        "paths": {
            "/pets": {
                "get": {
                    "responses": {
                        "200": {
                            "description": "A pet",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "common.yaml#/components/schemas/Pet"}
                                }
                            },
                        }
                    }
                }
            }
        },
    }
    common = {
        "openapi": "3.0.3",
        "info": {"title": "Common", "version": "1.0.0"},
        "paths": {},
        "components": {
            "schemas": {
                "Pet": {
                    "type": "object",
                    "properties": {"owner": {"$ref": "#/components/schemas/Owner"}},
                },
                "Owner": {
                    "type": "object",
                    "properties": {"name": {"type": "string"}},
                },
            }
        },
    }
    api_file = tmp_path / "api.yaml"
    common_file = tmp_path / "common.yaml"
    api_file.write_text(yaml.safe_dump(api, sort_keys=False), encoding="utf-8")
    common_file.write_text(yaml.safe_dump(common, sort_keys=False), encoding="utf-8")
    return api_file, common_file


@pytest.mark.integration
class TestConvertCommand:
    """Test the convert command."""

    def test_version(self):
        """Test the version option."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"oagraph version {__version__}" in result.output

    def test_convert_to_stdout(self, petstore_file):
        """Test default conversion writes 3.0 JSON to stdout."""
        result = runner.invoke(app, ["convert", str(petstore_file)])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["openapi"] == "3.0.4"
        assert data["paths"]["/pets"]["get"]["parameters"] == [{"$ref": "#/components/parameters/Limit"}]

    def test_convert_to_v2_yaml_file(self, tmp_path, petstore_file):
        """Test dialect and format options with an output file."""
        output = tmp_path / "out" / "swagger.yaml"
        result = runner.invoke(app, [
            "convert", str(petstore_file),
            "--to", "2.0",
            "--format", "yaml",
            "--output", str(output),
        ])
        assert result.exit_code == 0
        assert "Wrote" in result.output
        data = yaml.safe_load(output.read_text(encoding="utf-8"))
        assert data["swagger"] == "2.0"
        assert data["host"] == "api.example.com"
        assert "Pet" in data["definitions"]

    def test_convert_swagger_to_v31(self, tmp_path, swagger_file):
        """Test lifting a 2.0 YAML document into 3.1."""
        output = tmp_path / "openapi.json"
        result = runner.invoke(app, ["convert", str(swagger_file), "-t", "3.1", "-o", str(output)])
        assert result.exit_code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["openapi"] == "3.1.1"
        assert data["servers"][0]["url"] == "https://api.example.com/v1"
        assert "requestBody" in data["paths"]["/pets"]["post"]

    def test_inline_local(self, tmp_path, petstore_file):
        """Test the inline option."""
        output = tmp_path / "inlined.json"
        result = runner.invoke(app, ["convert", str(petstore_file), "--inline-local", "-o", str(output)])
        assert result.exit_code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["paths"]["/pets"]["get"]["parameters"][0]["name"] == "limit"

    def test_config_file_defaults(self, tmp_path, petstore_file):
        """Test that writer defaults come from the configuration file."""
        config_file = tmp_path / ".oagraph.json"
        config_file.write_text(json.dumps({"writer": {"specVersion": "3.1", "indent": 4}}), encoding="utf-8")
        output = tmp_path / "configured.json"

        result = runner.invoke(app, ["convert", str(petstore_file), "-c", str(config_file), "-o", str(output)])
        assert result.exit_code == 0
        text = output.read_text(encoding="utf-8")
        assert text.startswith('{\n    "openapi": "3.1.1"')

    def test_invalid_config(self, tmp_path, petstore_file):
        """Test that a broken configuration file exits with an error."""
        config_file = tmp_path / ".oagraph.json"
        config_file.write_text("{broken", encoding="utf-8")
        result = runner.invoke(app, ["convert", str(petstore_file), "-c", str(config_file)])
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_missing_input(self, tmp_path):
        """Test that a missing input file exits with an error."""
        result = runner.invoke(app, ["convert", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1
        assert "Input file not found" in result.output

    def test_strict_fails_on_reader_errors(self, tmp_path, minimal_yaml):
        """Test that strict mode stops on reader errors."""
        path = tmp_path / "minimal.yaml"
        path.write_text(minimal_yaml, encoding="utf-8")

        result = runner.invoke(app, ["convert", str(path), "--strict"])
        assert result.exit_code == 1
        assert "[ERROR] required_field: Paths is a REQUIRED field" in result.output

        lenient = runner.invoke(app, ["convert", str(path), "-o", str(tmp_path / "out.json")])
        assert lenient.exit_code == 0

    def test_invalid_target_version(self, petstore_file):
        """Test that an unknown dialect is rejected by option parsing."""
        result = runner.invoke(app, ["convert", str(petstore_file), "--to", "4.0"])
        assert result.exit_code != 0


@pytest.mark.integration
class TestInspectCommand:
    """Test the inspect command."""

    def test_inspect_json(self, petstore_file):
        """Test machine-readable output."""
        result = runner.invoke(app, ["inspect", str(petstore_file), "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["title"] == "Petstore"
        assert data["paths"] == 2
        assert data["components"]["schemas"] == 3
        assert data["diagnostic"]["specification_version"] == "3.0"
        assert data["diagnostic"]["counts"] == {"error": 0, "warning": 0, "info": 0}

    def test_inspect_table(self, petstore_file):
        """Test the table output."""
        result = runner.invoke(app, ["inspect", str(petstore_file)])
        assert result.exit_code == 0
        assert "Document:" in result.stdout
        assert "Paths: 2" in result.stdout
        assert "Components" in result.stdout
        assert "No issues found!" in result.stdout

    def test_inspect_reports_diagnostics(self, tmp_path, minimal_yaml):
        """Test that reader issues are listed."""
        path = tmp_path / "minimal.yaml"
        path.write_text(minimal_yaml, encoding="utf-8")
        result = runner.invoke(app, ["inspect", str(path), "--format", "json"])
        assert result.exit_code == 0
        errors = json.loads(result.stdout)["diagnostic"]["errors"]
        assert errors == [{
            "kind": "required_field",
            "severity": "error",
            "message": "Paths is a REQUIRED field at #/",
            "pointer": "",
        }]

    def test_inspect_invalid_format(self, petstore_file):
        """Test that an unknown format is rejected."""
        result = runner.invoke(app, ["inspect", str(petstore_file), "--format", "xml"])
        assert result.exit_code == 1
        assert "Invalid format" in result.output


@pytest.mark.integration
class TestConsolidateCommand:
    """Test the consolidate command."""

    def test_consolidate_keeps_input_dialect(self, tmp_path, swagger_file):
        """Test that output defaults to the dialect that was read."""
        output = tmp_path / "consolidated.json"
        result = runner.invoke(app, ["consolidate", str(swagger_file), "-o", str(output)])
        assert result.exit_code == 0
        assert "Consolidated 0 components" in result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["swagger"] == "2.0"
        assert list(data["definitions"]) == ["Pet"]

    def test_consolidate_copies_external_components(self, tmp_path, split_api_files):
        """Test that targets in a --with document are copied into the registry."""
        api_file, common_file = split_api_files
        output = tmp_path / "bundled.json"
        result = runner.invoke(app, [
            "consolidate", str(api_file), "--with", str(common_file), "-o", str(output)
        ])
        assert result.exit_code == 0
        assert "Consolidated 2 components" in result.output

        data = json.loads(output.read_text(encoding="utf-8"))
        schemas = data["components"]["schemas"]
        assert list(schemas) == ["Pet", "Owner"]
        assert schemas["Pet"]["properties"]["owner"] == {"$ref": "#/components/schemas/Owner"}
        assert schemas["Owner"]["properties"]["name"] == {"type": "string"}

    def test_consolidate_without_workspace_documents(self, tmp_path, split_api_files):
        """Test that external references stay unresolved without --with."""
        api_file, _ = split_api_files
        output = tmp_path / "unbundled.json"
        result = runner.invoke(app, ["consolidate", str(api_file), "-o", str(output)])
        assert result.exit_code == 0
        assert "Consolidated 0 components" in result.output
        assert "components" not in json.loads(output.read_text(encoding="utf-8"))

    def test_base_url_from_config(self, tmp_path, split_api_files):
        """Test that relative resources resolve against reader.baseUrl."""
        api_file, common_file = split_api_files
        shared = tmp_path / "shared"
        shared.mkdir()
        moved = common_file.rename(shared / "common.yaml")
        config_file = tmp_path / ".oagraph.json"
        config_file.write_text(json.dumps({"reader": {"baseUrl": str(shared)}}), encoding="utf-8")

        result = runner.invoke(app, [
            "consolidate", str(api_file), "-w", str(moved), "-c", str(config_file),
            "-o", str(tmp_path / "out.json"),
        ])
        assert result.exit_code == 0
        assert "Consolidated 2 components" in result.output

    def test_missing_workspace_document(self, tmp_path, split_api_files):
        """Test that a missing --with document exits with an error."""
        api_file, _ = split_api_files
        result = runner.invoke(app, ["consolidate", str(api_file), "--with", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1
        assert "Input file not found" in result.output

    def test_consolidate_to_other_dialect(self, tmp_path, petstore_file):
        """Test the target dialect option."""
        output = tmp_path / "consolidated.yaml"
        result = runner.invoke(app, [
            "consolidate", str(petstore_file), "--to", "3.1", "--format", "yaml", "-o", str(output)
        ])
        assert result.exit_code == 0
        data = yaml.safe_load(output.read_text(encoding="utf-8"))
        assert data["openapi"] == "3.1.1"
        assert list(data["components"]["schemas"]) == ["Pet", "Owner", "Error"]
