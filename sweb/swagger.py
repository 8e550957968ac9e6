"""OpenAPI document generation with per-route documentation overrides."""

from __future__ import annotations

import copy
import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

SWAGGER_UI_ASSETS = "https://unpkg.com/swagger-ui-dist@5.9.0"

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


@dataclass
class Schema:
    """A JSON schema fragment."""

    type_: str = "string"
    format: Optional[str] = None
    example: Any = None
    properties: Optional[dict[str, Schema]] = None
    items: Optional[Schema] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_,
            "format": self.format,
            "example": self.example,
            "properties": (
                None
                if self.properties is None
                else {name: schema.to_dict() for name, schema in self.properties.items()}
            ),
            "items": None if self.items is None else self.items.to_dict(),
        }


@dataclass
class Parameter:
    """An operation parameter; ``in_`` is path, query, header or cookie."""

    name: str
    in_: str
    description: Optional[str] = None
    required: bool = False
    schema: Schema = field(default_factory=Schema)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "in": self.in_,
            "description": self.description,
            "required": self.required,
            "schema": self.schema.to_dict(),
        }


@dataclass
class MediaType:
    """The schema and example for one content type."""

    schema: Schema
    example: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"schema": self.schema.to_dict(), "example": self.example}


@dataclass
class ApiResponse:
    """A documented response for one status code."""

    description: str
    content: Optional[dict[str, MediaType]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "content": (
                None
                if self.content is None
                else {kind: media.to_dict() for kind, media in self.content.items()}
            ),
        }


@dataclass
class RequestBody:
    """A documented request body."""

    content: dict[str, MediaType]
    description: Optional[str] = None
    required: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "content": {kind: media.to_dict() for kind, media in self.content.items()},
            "required": self.required,
        }


@dataclass
class SecurityRequirement:
    """A named security scheme and the scopes it needs."""

    name: str
    scopes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "scopes": list(self.scopes)}


@dataclass
class SwaggerInfo:
    """Documentation for a single route."""

    summary: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    parameters: list[Parameter] = field(default_factory=list)
    responses: dict[str, ApiResponse] = field(default_factory=dict)
    request_body: Optional[RequestBody] = None
    security: list[SecurityRequirement] = field(default_factory=list)


def _json_media(example: Any) -> dict[str, MediaType]:
    return {
        "application/json": MediaType(
            schema=Schema(type_="object", example=copy.deepcopy(example)),
            example=example,
        )
    }


class SwaggerBuilder:
    """Builds a :class:`SwaggerInfo` through chained calls."""

    def __init__(self) -> None:
        self._info = SwaggerInfo()

    def summary(self, summary: str) -> SwaggerBuilder:
        self._info.summary = summary
        return self

    def description(self, description: str) -> SwaggerBuilder:
        self._info.description = description
        return self

    def tag(self, tag: str) -> SwaggerBuilder:
        self._info.tags.append(tag)
        return self

    def parameter(
        self, name: str, in_: str, description: Optional[str], required: bool
    ) -> SwaggerBuilder:
        self._info.parameters.append(
            Parameter(name=name, in_=in_, description=description, required=required)
        )
        return self

    def path_param(self, name: str, description: str) -> SwaggerBuilder:
        return self.parameter(name, "path", description, True)

    def query_param(self, name: str, description: str, required: bool) -> SwaggerBuilder:
        return self.parameter(name, "query", description, required)

    def response(self, status: str, description: str) -> SwaggerBuilder:
        self._info.responses[str(status)] = ApiResponse(description=description)
        return self

    def json_response(self, status: str, description: str, example: Any = None) -> SwaggerBuilder:
        self._info.responses[str(status)] = ApiResponse(
            description=description, content=_json_media(example)
        )
        return self

    def request_body(self, example: Any) -> SwaggerBuilder:
        self._info.request_body = RequestBody(
            content=_json_media(example), description="Request body", required=True
        )
        return self

    def security(self, name: str, scopes: Iterable[str]) -> SwaggerBuilder:
        self._info.security.append(SecurityRequirement(name=name, scopes=list(scopes)))
        return self

    def bearer_auth(self) -> SwaggerBuilder:
        self._info.security.append(SecurityRequirement(name="bearerAuth"))
        return self.response("401", "Unauthorized - Bearer token required")

    def success_responses(self) -> SwaggerBuilder:
        return self.response("200", "Success").response("500", "Internal Server Error")

    def crud_responses(self) -> SwaggerBuilder:
        return (
            self.response("200", "Success")
            .response("400", "Bad Request")
            .response("401", "Unauthorized")
            .response("404", "Not Found")
            .response("500", "Internal Server Error")
        )

    def build(self) -> SwaggerInfo:
        return copy.deepcopy(self._info)


def swagger() -> SwaggerBuilder:
    """Start a new :class:`SwaggerBuilder`."""
    return SwaggerBuilder()


def convert_path_format(path: str) -> str:
    """Rewrite ``:name`` and ``*name`` segments as OpenAPI ``{name}``."""
    return "/".join(
        f"{{{part[1:]}}}" if part.startswith((":", "*")) else part for part in path.split("/")
    )


def _path_params(path: str) -> Iterable[tuple[str, str]]:
    """Yield (name, description) for each parameter segment of ``path``."""
    for part in path.split("/"):
        if part.startswith(":"):
            yield part[1:], f"The {part[1:]} parameter"
        elif part.startswith("*"):
            yield part[1:], f"The {part[1:]} wildcard parameter"


def _custom_operation(custom: SwaggerInfo, path: str) -> dict[str, Any]:
    operation: dict[str, Any] = {
        "summary": custom.summary,
        "description": custom.description,
        "tags": list(custom.tags),
    }

    parameters = list(custom.parameters)
    for name, description in _path_params(path):
        if not any(param.name == name for param in parameters):
            parameters.append(
                Parameter(name=name, in_="path", description=description, required=True)
            )
    if parameters:
        operation["parameters"] = [param.to_dict() for param in parameters]

    if custom.responses:
        operation["responses"] = {
            status: response.to_dict() for status, response in custom.responses.items()
        }
    else:
        operation["responses"] = {"200": {"description": "Success"}}

    if custom.request_body is not None:
        operation["requestBody"] = custom.request_body.to_dict()

    if custom.security:
        operation["security"] = [{req.name: list(req.scopes)} for req in custom.security]

    return operation


def _default_operation(method: str, path: str) -> dict[str, Any]:
    operation: dict[str, Any] = {
        "summary": f"{method} {path}",
        "responses": {"200": {"description": "Success"}},
    }

    parameters = [
        {
            "name": name,
            "in": "path",
            "required": True,
            "schema": {"type": "string"},
            "description": description,
        }
        for name, description in _path_params(path)
    ]
    if parameters:
        operation["parameters"] = parameters

    if method in _BODY_METHODS:
        operation["requestBody"] = {
            "required": True,
            "content": {"application/json": {"schema": {"type": "object"}}},
        }

    return operation


def generate_enhanced_swagger_json(
    routes: Iterable[tuple[str, str]], custom_info: Mapping[str, SwaggerInfo]
) -> str:
    """Render an OpenAPI 3.0 document for ``routes``.

    ``custom_info`` is keyed by ``"METHOD-pattern"``; routes without an entry
    get a generated default operation.
    """
    paths: dict[str, dict[str, Any]] = {}
    for method, path in routes:
        custom = custom_info.get(f"{method.upper()}-{path}")
        operation = (
            _custom_operation(custom, path)
            if custom is not None
            else _default_operation(method, path)
        )
        paths.setdefault(convert_path_format(path), {})[method.lower()] = operation

    document = {
        "openapi": "3.0.0",
        "info": {
            "title": "s_web API",
            "version": "1.0.0",
            "description": "API documentation generated by s_web framework",
        },
        "components": {
            "securitySchemes": {
                "bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
            }
        },
        "paths": paths,
    }
    return json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False)


def generate_swagger_ui(json_url: str) -> str:
    """An HTML page showing Swagger UI for the document at ``json_url``."""
    return f"""
<!DOCTYPE html>
<html>
<head>
    <title>s_web API Documentation</title>
    <link rel="stylesheet" type="text/css" href="{SWAGGER_UI_ASSETS}/swagger-ui.css" />
    <style>
        body {{ margin: 0; padding: 0; }}
        .swagger-ui .topbar {{ display: none; }}
    </style>
</head>
<body>
    <div id="swagger-ui"></div>
    <script src="{SWAGGER_UI_ASSETS}/swagger-ui-bundle.js"></script>
    <script>
        SwaggerUIBundle({{
            url: '{json_url}',
            dom_id: '#swagger-ui',
            presets: [SwaggerUIBundle.presets.apis, SwaggerUIBundle.presets.standalone],
            tryItOutEnabled: true,
            showRequestHeaders: true,
            docExpansion: 'list',
            filter: true,
            showExtensions: true,
            showCommonExtensions: true
        }});
    </script>
</body>
</html>
    """