"""Tests for document reading: decoding, dialect detection and diagnostics."""

import json

import pytest

from oagraph.config import OagraphConfig
from oagraph.diagnostics import DiagnosticKind
from oagraph.exceptions import ReaderError
from oagraph.models import (
    NodeKind,
    OperationType,
    ParameterLocation,
    ParameterReference,
    ParameterStyle,
    RequestBodyReference,
    ResponseReference,
    SchemaReference,
    SecuritySchemeReference,
    SecuritySchemeType,
    SpecVersion,
    Workspace,
)
from oagraph.parser import (
    ReaderRegistry,
    create_default_registry,
    detect_version,
    load_document,
    read_document,
)


class TestDetectVersion:
    """Test dialect detection from the version marker."""

    @pytest.mark.parametrize("data,expected", [
        ({"openapi": "3.0.3"}, SpecVersion.V3),
        ({"openapi": "3.0"}, SpecVersion.V3),
        ({"openapi": 3.0}, SpecVersion.V3),
        ({"openapi": "3.1.0"}, SpecVersion.V3_1),
        ({"swagger": "2.0"}, SpecVersion.V2),
        ({"swagger": 2.0}, SpecVersion.V2),
    ])
    def test_supported_versions(self, data, expected):
        """Test the supported markers."""
        assert detect_version(data) == expected

    def test_unsupported_openapi(self):
        """Test that an unknown openapi version is rejected at its field."""
        with pytest.raises(ReaderError) as exc_info:
            detect_version({"openapi": "4.0.0"})
        assert exc_info.value.pointer == "/openapi"

    def test_missing_marker(self):
        """Test that a document without a marker is rejected."""
        with pytest.raises(ReaderError, match="no 'openapi' or 'swagger'"):
            detect_version({"info": {}})

    def test_non_mapping(self):
        """Test that a non-mapping root is rejected."""
        with pytest.raises(ReaderError):
            detect_version(["openapi"])


class TestReaderRegistry:
    """Test format decoders."""

    def test_default_formats(self):
        """Test the built-in decoders."""
        assert create_default_registry().formats == ["json", "yaml", "yml"]

    def test_unknown_format(self):
        """Test that an unregistered format is an error."""
        with pytest.raises(ReaderError, match="No reader registered"):
            ReaderRegistry().get("toml")

    def test_custom_decoder(self):
        """Test registering an additional decoder."""
        registry = ReaderRegistry()
        registry.register("JSON5", json.loads)
        assert registry.decode('{"a": 1}', "json5") == {"a": 1}

    def test_decode_error_wrapped(self):
        """Test that decoder failures become reader errors."""
        with pytest.raises(ReaderError, match="Invalid json input"):
            create_default_registry().decode("{broken", "json")

    def test_yaml_dates_stay_strings(self):
        """Test that date-like scalars are not turned into date objects."""
        data = create_default_registry().decode("version: 2024-01-31\n", "yaml")
        assert data == {"version": "2024-01-31"}


class TestReadDocument:
    """Test the read entry point and its diagnostics."""

    def test_minimal_document(self, minimal_yaml):
        """Test a document without paths reports exactly one required-field error."""
        result = read_document(minimal_yaml)

        assert result.document.info.title == "Simple Document"
        assert result.document.info.version == "0.9.1"
        assert len(result.document.paths) == 0
        assert len(result.diagnostic.issues) == 1
        issue = result.diagnostic.errors[0]
        assert issue.message == "Paths is a REQUIRED field at #/"
        assert issue.kind == DiagnosticKind.REQUIRED_FIELD
        assert issue.pointer == ""
        assert result.diagnostic.specification_version == "3.0"

    def test_missing_info(self):
        """Test that a missing info object is reported."""
        result = read_document({"openapi": "3.0.0", "paths": {}})
        assert [issue.message for issue in result.diagnostic.errors] == ["Info is a REQUIRED field at #/"]

    def test_undecodable_input(self):
        """Test that undecodable text gives an empty document and an error."""
        result = read_document("openapi: [unclosed")
        assert result.has_errors
        assert len(result.document.paths) == 0
        assert result.diagnostic.specification_version is None

    def test_unsupported_version(self):
        """Test that an unsupported version is reported at its field."""
        result = read_document({"openapi": "4.0.0", "info": {}})
        assert result.has_errors
        assert result.diagnostic.errors[0].pointer == "/openapi"

    def test_json_text_sniffed(self):
        """Test that text starting with a brace is read as JSON."""
        result = read_document('{"openapi": "3.0.0", "info": {"title": "T", "version": "1"}, "paths": {}}')
        assert not result.has_errors
        assert result.document.info.title == "T"

    def test_unknown_field_warning(self):
        """Test that an unknown property is a warning at its own pointer."""
        result = read_document({
            "openapi": "3.0.0",
            "info": {"title": "T", "version": "1", "bogus": True},
            "paths": {},
        })
        assert not result.has_errors
        warning = result.diagnostic.warnings[0]
        assert warning.kind == DiagnosticKind.UNKNOWN_FIELD
        assert warning.message == "bogus is not a valid property at #/info"
        assert warning.pointer == "/info/bogus"

    def test_extensions_kept(self):
        """Test that x- properties are kept as extensions."""
        result = read_document({
            "openapi": "3.0.0",
            "info": {"title": "T", "version": "1", "x-logo": {"url": "logo.png"}},
            "paths": {"x-internal": True},
        })
        assert result.document.info.extensions == {"x-logo": {"url": "logo.png"}}
        assert result.document.paths.extensions == {"x-internal": True}
        assert result.diagnostic.issues == []

    def test_wrong_shape_drops_field_only(self):
        """Test that a bad field is recorded and its siblings are still read."""
        result = read_document({
            "openapi": "3.0.0",
            "info": {"title": ["not", "a", "string"], "version": "1"},
            "paths": {},
        })
        assert result.diagnostic.errors[0].pointer == "/info/title"
        assert result.diagnostic.errors[0].kind == DiagnosticKind.PARSE_ERROR
        assert result.document.info.version == "1"

    def test_malformed_reference(self):
        """Test that an unparseable $ref is recorded as a malformed reference."""
        result = read_document({
            "openapi": "3.0.0",
            "info": {"title": "T", "version": "1"},
            "paths": {},
            "components": {
                "schemas": {
                    "Bad": {"$ref": "#components/schemas/Pet"},
                    "Good": {"type": "string"},
                }
            },
        })
        errors = result.diagnostic.of_kind(DiagnosticKind.MALFORMED_REFERENCE)
        assert len(errors) == 1
        assert errors[0].pointer == "/components/schemas/Bad"
        assert result.document.components.get(NodeKind.SCHEMA, "Good") is not None
        assert result.document.components.get(NodeKind.SCHEMA, "Bad") is None

    def test_reference_check_from_config(self):
        """Test that configured local resolution reports dangling references."""
        config = OagraphConfig(reader={"referenceResolution": "local"})
        data = {
            "openapi": "3.0.0",
            "info": {"title": "T", "version": "1"},
            "paths": {
                "/pets": {
                    "get": {
                        "responses": {
                            "200": {
                                "description": "ok",
                                "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Pet"}}},
                            }
                        }
                    }
                }
            },
        }
        unchecked = read_document(data)
        checked = read_document(data, config=config)

        assert unchecked.diagnostic.issues == []
        unresolved = checked.diagnostic.of_kind(DiagnosticKind.UNRESOLVED_REFERENCE)
        assert len(unresolved) == 1
        assert unresolved[0].message == "Unresolved reference #/components/schemas/Pet"

    def test_workspace_registration(self, petstore_v3):
        """Test that a located read adds the document to the workspace."""
        workspace = Workspace()
        result = read_document(petstore_v3, workspace=workspace, location="petstore.yaml")
        assert workspace.get_document("petstore.yaml") is result.document
        assert result.document.external_resolver is workspace


class TestReadV3:
    """Test reading a 3.0 document into the graph."""

    def test_components_registered(self, petstore_v3):
        """Test that component definitions fill the registry."""
        result = read_document(petstore_v3)
        assert not result.has_errors
        assert result.document.components.counts() == {
            "schemas": 3,
            "responses": 1,
            "parameters": 1,
            "securitySchemes": 1,
        }
        pet = result.document.components.get(NodeKind.SCHEMA, "Pet")
        assert pet.reference.id == "Pet"
        assert pet.required == ["id", "name"]

    def test_references_resolve(self, petstore_v3):
        """Test that holders bind to registered components."""
        document = read_document(petstore_v3).document
        operation = document.paths["/pets"].operations[OperationType.GET]

        limit = operation.parameters[0]
        assert isinstance(limit, ParameterReference)
        assert limit.name == "limit"
        assert limit.location == ParameterLocation.QUERY

        default = operation.responses["default"]
        assert isinstance(default, ResponseReference)
        assert default.description == "Unexpected error"

        items = operation.responses["200"].content["application/json"].schema.items
        assert isinstance(items, SchemaReference)
        assert items.target is document.components.get(NodeKind.SCHEMA, "Pet")

    def test_reference_overrides(self, petstore_v3):
        """Test that a description next to $ref becomes a local override."""
        document = read_document(petstore_v3).document
        operation = document.paths["/pets/{petId}"].operations[OperationType.GET]
        schema = operation.responses["200"].content["application/json"].schema

        assert schema.description == "The requested pet"
        assert schema.target.description is None

    def test_security_and_tags(self, petstore_v3):
        """Test security requirement keys and operation tags."""
        document = read_document(petstore_v3).document
        scheme = next(iter(document.security[0]))
        assert isinstance(scheme, SecuritySchemeReference)
        assert scheme.type == SecuritySchemeType.API_KEY

        operation = document.paths["/pets"].operations[OperationType.GET]
        assert operation.tags[0].description == "Pet operations"

    def test_path_level_parameters(self, petstore_v3):
        """Test parameters declared on the path item."""
        item = read_document(petstore_v3).document.paths["/pets/{petId}"]
        assert item.parameters[0].name == "petId"
        assert item.parameters[0].required is True

    def test_non_boolean_exclusive_bound_rejected(self):
        """Test that 3.0 exclusive bounds must be booleans."""
        result = read_document({
            "openapi": "3.0.0",
            "info": {"title": "T", "version": "1"},
            "paths": {},
            "components": {"schemas": {"N": {"type": "number", "exclusiveMaximum": 10}}},
        })
        assert result.diagnostic.errors[0].pointer == "/components/schemas/N/exclusiveMaximum"

    def test_callbacks_and_links(self):
        """Test runtime expressions in callbacks and links."""
        result = read_document({
            "openapi": "3.0.0",
            "info": {"title": "T", "version": "1"},
            "paths": {
                "/subscribe": {
                    "post": {
                        "callbacks": {
                            "onEvent": {
                                "{$request.body#/callbackUrl}": {
                                    "post": {"responses": {"200": {"description": "ok"}}}
                                }
                            }
                        },
                        "responses": {
                            "201": {
                                "description": "created",
                                "links": {
                                    "GetSubscription": {
                                        "operationId": "getSubscription",
                                        "parameters": {"id": "$response.body#/id", "fixed": 5},
                                    }
                                },
                            }
                        },
                    }
                }
            },
        })
        assert result.diagnostic.issues == []
        operation = result.document.paths["/subscribe"].operations[OperationType.POST]
        expression, item = next(iter(operation.callbacks["onEvent"].path_items.items()))
        assert expression.expression == "{$request.body#/callbackUrl}"
        assert OperationType.POST in item.operations

        link = operation.responses["201"].links["GetSubscription"]
        assert link.parameters["id"].expression == "$response.body#/id"
        assert link.parameters["fixed"] == 5

    def test_invalid_runtime_expression(self):
        """Test that a bad link expression is recorded and only that entry dropped."""
        result = read_document({
            "openapi": "3.0.0",
            "info": {"title": "T", "version": "1"},
            "paths": {},
            "components": {
                "links": {"Partial": {"parameters": {"bad": "$request.cookie.x", "good": "$url"}}}
            },
        })
        assert result.has_errors
        assert result.diagnostic.errors[0].pointer == "/components/links/Partial/parameters/bad"
        link = result.document.components.get(NodeKind.LINK, "Partial")
        assert list(link.parameters) == ["good"]


class TestReadV31:
    """Test 3.1 specific reading."""

    def test_json_schema_keywords(self):
        """Test type lists, numeric exclusive bounds, const and examples."""
        result = read_document({
            "openapi": "3.1.0",
            "info": {"title": "T", "version": "1", "summary": "Short"},
            "paths": {},
            "components": {
                "schemas": {
                    "Count": {
                        "type": ["integer", "null"],
                        "exclusiveMinimum": 0,
                        "const": 3,
                        "examples": [1, 2],
                        "$defs": {"Inner": {"type": "string"}},
                    }
                }
            },
        })
        assert result.diagnostic.issues == []
        assert result.document.info.summary == "Short"
        count = result.document.components.get(NodeKind.SCHEMA, "Count")
        assert count.type_names == ["integer", "null"]
        assert count.v31_exclusive_minimum == 0
        assert count.const == 3
        assert count.examples == [1, 2]
        assert count.definitions["Inner"].type == "string"

    def test_webhooks_without_paths(self):
        """Test that paths are optional when webhooks are present."""
        result = read_document({
            "openapi": "3.1.0",
            "info": {"title": "T", "version": "1"},
            "webhooks": {
                "newPet": {"post": {"responses": {"200": {"description": "ok"}}}}
            },
        })
        assert result.diagnostic.issues == []
        assert "newPet" in result.document.webhooks

    def test_path_item_components(self):
        """Test the 3.1 pathItems component section."""
        result = read_document({
            "openapi": "3.1.0",
            "info": {"title": "T", "version": "1"},
            "paths": {"/pets": {"$ref": "#/components/pathItems/Pets"}},
            "components": {"pathItems": {"Pets": {"get": {"responses": {"200": {"description": "ok"}}}}}},
        })
        assert result.diagnostic.issues == []
        item = result.document.paths["/pets"]
        assert OperationType.GET in item.operations


class TestReadV2:
    """Test lifting Swagger 2.0 documents into the 3.x model."""

    def test_servers_from_host(self, petstore_v2):
        """Test host, basePath and schemes become servers."""
        result = read_document(petstore_v2)
        assert not result.has_errors
        assert [server.url for server in result.document.servers] == [
            "https://api.example.com/v1",
            "http://api.example.com/v1",
        ]
        assert result.diagnostic.specification_version == "2.0"

    def test_servers_without_scheme(self):
        """Test a host without schemes."""
        result = read_document({"swagger": "2.0", "info": {}, "paths": {}, "host": "example.com"})
        assert [server.url for server in result.document.servers] == ["//example.com"]

    def test_components_registered(self, petstore_v2):
        """Test definitions, parameters and security definitions."""
        counts = read_document(petstore_v2).document.components.counts()
        assert counts == {"schemas": 1, "parameters": 1, "securitySchemes": 2}

    def test_body_parameter_becomes_request_body(self, petstore_v2):
        """Test that an in: body parameter is lifted into a request body."""
        document = read_document(petstore_v2).document
        operation = document.paths["/pets"].operations[OperationType.POST]

        assert operation.parameters == []
        body = operation.request_body
        assert body.required is True
        assert body.extensions == {"x-bodyName": "pet"}
        assert list(body.content) == ["application/json"]
        assert isinstance(body.content["application/json"].schema, SchemaReference)

    def test_form_parameters_become_form_body(self, petstore_v2):
        """Test that formData fields merge into one object schema."""
        document = read_document(petstore_v2).document
        operation = document.paths["/pets/{petId}/photo"].operations[OperationType.POST]

        assert [parameter.name for parameter in operation.parameters] == ["petId"]
        media = operation.request_body.content["multipart/form-data"]
        assert media.schema.type == "object"
        assert media.schema.required == ["file"]
        assert media.schema.properties["file"].type == "string"
        assert media.schema.properties["file"].format == "binary"
        assert media.schema.properties["caption"].description == "Caption"

    def test_collection_format(self, petstore_v2):
        """Test that collectionFormat becomes style and explode."""
        document = read_document(petstore_v2).document
        tags = document.paths["/pets"].operations[OperationType.GET].parameters[0]

        assert tags.style == ParameterStyle.FORM
        assert tags.explode is True
        assert tags.schema.type == "array"
        assert tags.schema.items.type == "string"

    def test_tsv_is_lossy(self):
        """Test that tsv has no 3.x equivalent and is recorded."""
        result = read_document({
            "swagger": "2.0",
            "info": {"title": "T", "version": "1"},
            "paths": {
                "/pets": {
                    "get": {
                        "parameters": [
                            {"name": "ids", "in": "query", "type": "array", "items": {"type": "integer"}, "collectionFormat": "tsv"}
                        ],
                        "responses": {"200": {"description": "ok"}},
                    }
                }
            },
        })
        lossy = result.diagnostic.of_kind(DiagnosticKind.VERSION_DOWNGRADE_LOSSY)
        assert len(lossy) == 1
        assert lossy[0].pointer == "/paths/~1pets/get/parameters/0/collectionFormat"

    def test_response_content_from_produces(self, petstore_v2):
        """Test that a response schema gets one media type per produced type."""
        document = read_document(petstore_v2).document
        response = document.paths["/pets"].operations[OperationType.GET].responses["200"]
        assert list(response.content) == ["application/json"]
        assert response.content["application/json"].schema.type == "array"

    def test_schema_dialect_differences(self, petstore_v2):
        """Test string discriminators and x-nullable."""
        pet = read_document(petstore_v2).document.components.get(NodeKind.SCHEMA, "Pet")
        assert pet.discriminator.property_name == "petType"
        assert pet.properties["nickname"].nullable is True

    def test_security_definitions(self, petstore_v2):
        """Test basic and oauth2 security definitions."""
        components = read_document(petstore_v2).document.components
        basic = components.get(NodeKind.SECURITY_SCHEME, "basicAuth")
        oauth = components.get(NodeKind.SECURITY_SCHEME, "oauth")

        assert basic.type == SecuritySchemeType.HTTP
        assert basic.scheme == "basic"
        assert oauth.type == SecuritySchemeType.OAUTH2
        assert oauth.flows.authorization_code.token_url == "https://auth.example.com/token"
        assert oauth.flows.authorization_code.scopes == {"read": "Read access"}

    def test_invalid_oauth_flow(self):
        """Test that an unknown flow is reported."""
        result = read_document({
            "swagger": "2.0",
            "info": {"title": "T", "version": "1"},
            "paths": {},
            "securityDefinitions": {"o": {"type": "oauth2", "flow": "magic", "scopes": {}}},
        })
        assert result.diagnostic.errors[0].pointer == "/securityDefinitions/o/flow"

    def test_global_body_parameter_reference(self):
        """Test that a $ref to a global body parameter becomes a request body holder."""
        result = read_document({
            "swagger": "2.0",
            "info": {"title": "T", "version": "1"},
            "parameters": {
                "PetBody": {"name": "pet", "in": "body", "schema": {"type": "object"}},
            },
            "paths": {
                "/pets": {
                    "post": {
                        "parameters": [{"$ref": "#/parameters/PetBody"}],
                        "responses": {"201": {"description": "ok"}},
                    }
                }
            },
        })
        assert result.diagnostic.issues == []
        body = result.document.paths["/pets"].operations[OperationType.POST].request_body
        assert isinstance(body, RequestBodyReference)
        assert body.content["application/json"].schema.type == "object"
        assert result.document.components.counts() == {"requestBodies": 1}

    def test_v3_only_keywords_not_read_in_v2(self):
        """Test that 3.x-only schema keywords are kept as unrecognized in 2.0."""
        result = read_document({
            "swagger": "2.0",
            "info": {"title": "T", "version": "1"},
            "paths": {},
            "definitions": {"A": {"type": "string", "nullable": True}},
        })
        schema = result.document.components.get(NodeKind.SCHEMA, "A")
        assert schema.nullable is False
        assert schema.unrecognized_keywords == {"nullable": True}


class TestLoadDocument:
    """Test reading from files."""

    def test_load_json_file(self, tmp_path, petstore_v3):
        """Test the format is taken from the suffix."""
        path = tmp_path / "petstore.json"
        path.write_text(json.dumps(petstore_v3), encoding="utf-8")
        result = load_document(path)
        assert not result.has_errors
        assert result.document.info.title == "Petstore"

    def test_load_into_workspace(self, tmp_path, minimal_yaml):
        """Test a loaded document is added under its resolved path."""
        path = tmp_path / "minimal.yaml"
        path.write_text(minimal_yaml, encoding="utf-8")
        workspace = Workspace()
        result = load_document(path, workspace=workspace)
        assert workspace.get_document(str(path.resolve())) is result.document
