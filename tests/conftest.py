"""Pytest configuration and fixtures for oagraph tests."""

import pytest

from oagraph.models import (
    Document,
    Info,
    MediaType,
    NodeKind,
    Operation,
    OperationType,
    PathItem,
    Response,
    Schema,
    SchemaReference,
    SpecVersion,
)
from oagraph.output import TreeWriter, serialize
from oagraph.parser import read_document


@pytest.fixture
def minimal_yaml():
    """3.0 document with info only."""
    return """openapi: 3.0.0
info:
  title: Simple Document
  version: 0.9.1
"""


@pytest.fixture
def petstore_v3():
    """Small 3.0 document exercising components, references and security."""
    return {
        "openapi": "3.0.3",
        "info": {"title": "Petstore", "version": "1.0.0"},
        "servers": [{"url": "https://api.example.com/v1"}],
        "paths": {
            "/pets": {
                "get": {
                    "tags": ["pets"],
                    "operationId": "listPets",
                    "parameters": [
                        {"$ref": "#/components/parameters/Limit"},
                    ],
                    "responses": {
                        "200": {
                            "description": "A list of pets",
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "type": "array",
                                        "items": {"$ref": "#/components/schemas/Pet"},
                                    }
                                }
                            },
                        },
                        "default": {"$ref": "#/components/responses/Error"},
                    },
                },
                "post": {
                    "operationId": "createPet",
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Pet"}
                            }
                        },
                    },
                    "responses": {"201": {"description": "Created"}},
                },
            },
            "/pets/{petId}": {
                "parameters": [
                    {"name": "petId", "in": "path", "required": True, "schema": {"type": "string"}},
                ],
                "get": {
                    "operationId": "showPet",
                    "responses": {
                        "200": {
                            "description": "A pet",
                            "content": {
                                "application/json": {
                                    "schema": {
                                        "$ref": "#/components/schemas/Pet",
                                        "description": "The requested pet",
                                    }
                                }
                            },
                        }
                    },
                },
            },
        },
        "components": {
            "schemas": {
                "Pet": {
                    "type": "object",
                    "required": ["id", "name"],
                    "properties": {
                        "id": {"type": "integer", "format": "int64", "readOnly": True},
                        "name": {"type": "string"},
                        "tag": {"type": "string", "nullable": True},
                        "owner": {"$ref": "#/components/schemas/Owner"},
                    },
                },
                "Owner": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "pets": {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}},
                    },
                },
                "Error": {
                    "type": "object",
                    "properties": {"message": {"type": "string"}},
                },
            },
            "responses": {
                "Error": {
                    "description": "Unexpected error",
                    "content": {
                        "application/json": {"schema": {"$ref": "#/components/schemas/Error"}}
                    },
                }
            },
            "parameters": {
                "Limit": {
                    "name": "limit",
                    "in": "query",
                    "schema": {"type": "integer", "maximum": 100},
                }
            },
            "securitySchemes": {
                "apiKey": {"type": "apiKey", "name": "X-API-Key", "in": "header"},
            },
        },
        "security": [{"apiKey": []}],
        "tags": [{"name": "pets", "description": "Pet operations"}],
    }


@pytest.fixture
def petstore_v2():
    """Swagger 2.0 document with body, form and collection parameters."""
    return {
        "swagger": "2.0",
        "info": {"title": "Petstore", "version": "1.0.0"},
        "host": "api.example.com",
        "basePath": "/v1",
        "schemes": ["https", "http"],
        "consumes": ["application/json"],
        "produces": ["application/json"],
        "paths": {
            "/pets": {
                "get": {
                    "operationId": "listPets",
                    "parameters": [
                        {
                            "name": "tags",
                            "in": "query",
                            "type": "array",
                            "items": {"type": "string"},
                            "collectionFormat": "multi",
                        },
                        {"$ref": "#/parameters/Limit"},
                    ],
                    "responses": {
                        "200": {
                            "description": "A list of pets",
                            "schema": {"type": "array", "items": {"$ref": "#/definitions/Pet"}},
                        }
                    },
                },
                "post": {
                    "operationId": "createPet",
                    "parameters": [
                        {
                            "name": "pet",
                            "in": "body",
                            "required": True,
                            "schema": {"$ref": "#/definitions/Pet"},
                        }
                    ],
                    "responses": {"201": {"description": "Created"}},
                },
            },
            "/pets/{petId}/photo": {
                "post": {
                    "operationId": "uploadPhoto",
                    "consumes": ["multipart/form-data"],
                    "parameters": [
                        {"name": "petId", "in": "path", "required": True, "type": "string"},
                        {"name": "file", "in": "formData", "required": True, "type": "file"},
                        {"name": "caption", "in": "formData", "type": "string", "description": "Caption"},
                    ],
                    "responses": {"204": {"description": "Uploaded"}},
                }
            },
        },
        "definitions": {
            "Pet": {
                "type": "object",
                "required": ["id"],
                "discriminator": "petType",
                "properties": {
                    "id": {"type": "integer", "format": "int64"},
                    "petType": {"type": "string"},
                    "nickname": {"type": "string", "x-nullable": True},
                },
            }
        },
        "parameters": {
            "Limit": {"name": "limit", "in": "query", "type": "integer", "maximum": 100},
        },
        "securityDefinitions": {
            "basicAuth": {"type": "basic"},
            "oauth": {
                "type": "oauth2",
                "flow": "accessCode",
                "authorizationUrl": "https://auth.example.com/authorize",
                "tokenUrl": "https://auth.example.com/token",
                "scopes": {"read": "Read access"},
            },
        },
    }


@pytest.fixture
def read():
    """Read decoded data or text and return the ReadResult."""
    def _read(source, **kwargs):
        return read_document(source, **kwargs)
    return _read


@pytest.fixture
def write():
    """Serialize a node to a plain tree for one dialect."""
    def _write(node, version=SpecVersion.V3, settings=None, diagnostic=None):
        writer = serialize(node, version, settings, TreeWriter(), diagnostic)
        return writer.result
    return _write


@pytest.fixture
def cyclic_document():
    """Document whose Node schema refers to itself through a holder."""
    document = Document(info=Info(title="Cycles", version="1"))
    node = Schema(type="object")
    node.properties["next"] = SchemaReference("Node", document)
    document.register_component(NodeKind.SCHEMA, "Node", node)

    operation = Operation()
    operation.responses["200"] = Response(
        description="ok",
        content={"application/json": MediaType(schema=SchemaReference("Node", document))},
    )
    document.paths["/nodes"] = PathItem(operations={OperationType.GET: operation})
    return document
