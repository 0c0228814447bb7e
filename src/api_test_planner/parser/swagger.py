"""OpenAPI / Swagger document parser.

Parses OpenAPI 3.x and Swagger 2.0 documents (YAML or JSON) into
EndpointConfig builders. JSON request-body properties become BODY-location
parameters; form fields become formData parameters.
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from api_test_planner.errors import ConfigurationError
from api_test_planner.model.constraint import ConstraintBuilder
from api_test_planner.model.tiers import BusinessCriticality, tier_by_name
from api_test_planner.profile.analysis import PerformanceProfile
from api_test_planner.profile.endpoint import (
    HTTP_METHODS,
    EndpointConfig,
    EndpointProfile,
    RequestBodySpec,
    ResponseSpec,
)
from api_test_planner.profile.parameter import ParameterConfig

logger = logging.getLogger(__name__)

_MAX_REF_DEPTH = 16

# schema key -> ConstraintBuilder field
_SCHEMA_FIELDS = {
    "format": "format",
    "pattern": "pattern",
    "description": "description",
    "default": "default",
    "example": "example",
    "minimum": "minimum",
    "maximum": "maximum",
    "multipleOf": "multiple_of",
    "minLength": "min_length",
    "maxLength": "max_length",
    "minItems": "min_items",
    "maxItems": "max_items",
    "uniqueItems": "unique_items",
    "minProperties": "min_properties",
    "maxProperties": "max_properties",
}


def parse_openapi(file_path: Path) -> list[EndpointConfig]:
    """Parse an OpenAPI/Swagger file into a list of EndpointConfig."""
    text = Path(file_path).read_text(encoding="utf-8")
    doc = yaml.safe_load(text)
    if not isinstance(doc, dict) or not isinstance(doc.get("paths"), dict):
        raise ConfigurationError(f"{file_path}: document has no 'paths' mapping")

    endpoints = []
    for path, methods in doc["paths"].items():
        if not isinstance(methods, dict):
            continue
        shared = methods.get("parameters", [])
        for method, operation in methods.items():
            if method.upper() not in HTTP_METHODS or not isinstance(operation, dict):
                continue
            try:
                endpoints.append(_parse_operation(doc, path, method.upper(), operation, shared))
            except (ConfigurationError, ValidationError) as exc:
                logger.warning("Skipping %s %s: %s", method.upper(), path, exc)

    logger.info("Parsed %d operations from %s", len(endpoints), file_path)
    return endpoints


def build_endpoints(configs: list[EndpointConfig]) -> list[EndpointProfile]:
    """Build every config; one that fails is logged and skipped."""
    profiles = []
    for config in configs:
        try:
            profiles.append(config.build())
        except ConfigurationError as exc:
            logger.warning("Skipping %s %s: %s", config.method, config.path, exc)
    return profiles


def _parse_operation(doc: dict, path: str, method: str, operation: dict, shared: list) -> EndpointConfig:
    config = EndpointConfig(
        method=method,
        path=path,
        operation_id=operation.get("operationId", ""),
        summary=operation.get("summary", ""),
        tags=list(operation.get("tags", [])),
        security_schemes=_security_schemes(doc, operation),
        responses=_parse_responses(doc, operation.get("responses", {})),
    )

    declared = {}
    for raw in [*shared, *operation.get("parameters", [])]:
        p = _resolve(doc, raw)
        declared[(p.get("name"), p.get("in"))] = p
    for p in declared.values():
        if p.get("in") == "body":
            config.request_body = RequestBodySpec(
                required=p.get("required", False),
                constraint=schema_to_constraint(doc, p.get("schema", {})),
            )
            config.parameters.extend(_body_parameters(doc, p.get("schema", {}), "body"))
        else:
            config.parameters.append(_parse_parameter(doc, p))

    body = operation.get("requestBody")
    if body:
        body = _resolve(doc, body)
        content_type, schema = _pick_content(body.get("content", {}))
        config.request_body = RequestBodySpec(
            required=body.get("required", False),
            content_type=content_type,
            constraint=schema_to_constraint(doc, schema) if schema else None,
        )
        location = "formData" if content_type in ("multipart/form-data", "application/x-www-form-urlencoded") else "body"
        config.parameters.extend(_body_parameters(doc, schema or {}, location))

    _apply_extensions(config, operation)
    return config


def _parse_parameter(doc: dict, p: dict) -> ParameterConfig:
    # OpenAPI 3 nests the schema; Swagger 2 puts it on the parameter itself.
    builder = schema_to_constraint(doc, p.get("schema", p))
    return ParameterConfig(
        name=p.get("name"),
        location=p.get("in", "query"),
        type=builder.type,
        format=builder.format,
        required=p.get("required", False) or p.get("in") == "path",
        description=p.get("description", ""),
        constraint=builder,
    )


def _body_parameters(doc: dict, schema: dict, location: str) -> list[ParameterConfig]:
    expanding = _expanding(schema, frozenset())
    schema = _resolve(doc, schema)
    required = set(schema.get("required", []))
    params = []
    for name, raw in schema.get("properties", {}).items():
        prop = _resolve(doc, raw)
        if prop.get("readOnly"):
            continue
        builder = schema_to_constraint(doc, raw, expanding=expanding)
        params.append(ParameterConfig(
            name=name,
            location=location,
            type=builder.type,
            format=builder.format,
            required=name in required,
            description=prop.get("description", ""),
            constraint=builder,
        ))
    return params


def schema_to_constraint(
    doc: dict,
    schema: dict,
    depth: int = 0,
    expanding: frozenset[str] = frozenset(),
) -> ConstraintBuilder:
    """Translate a JSON schema fragment into a ConstraintBuilder.

    ``expanding`` holds the ``$ref`` targets already open on the current
    path. A reference back to one of them (a recursive schema) becomes an
    opaque object instead of being expanded again.
    """
    ref = schema.get("$ref") if isinstance(schema, dict) else None
    if isinstance(ref, str) and ref in expanding:
        logger.debug("Not expanding recursive reference %s", ref)
        return ConstraintBuilder(type="object")
    expanding = _expanding(schema, expanding)
    schema = _resolve(doc, schema or {})
    builder = ConstraintBuilder(type=_schema_type(schema))
    for key, field in _SCHEMA_FIELDS.items():
        if key in schema:
            setattr(builder, field, schema[key])
    _apply_exclusive_bounds(builder, schema)
    if "enum" in schema:
        builder.enum_values = [v for v in schema["enum"] if v is not None]
    if schema.get("type") == "file":
        builder.format = "binary"
    if depth < _MAX_REF_DEPTH:
        if "items" in schema:
            builder.items = schema_to_constraint(doc, schema["items"], depth + 1, expanding)
        for name, prop in schema.get("properties", {}).items():
            builder.properties[name] = schema_to_constraint(doc, prop, depth + 1, expanding)
    # Swagger 2 parameters carry a boolean "required" of their own
    if isinstance(schema.get("required"), list):
        builder.required_properties = list(schema["required"])
    return builder


def _apply_exclusive_bounds(builder: ConstraintBuilder, schema: dict) -> None:
    # OpenAPI 3.0 uses booleans; 3.1 (JSON Schema) carries the bound itself.
    for key, bound, flag in (
        ("exclusiveMinimum", "minimum", "exclusive_minimum"),
        ("exclusiveMaximum", "maximum", "exclusive_maximum"),
    ):
        value = schema.get(key)
        if isinstance(value, bool):
            setattr(builder, flag, value)
        elif isinstance(value, (int, float)):
            setattr(builder, bound, value)
            setattr(builder, flag, True)


def _schema_type(schema: dict) -> str:
    declared = schema.get("type")
    if isinstance(declared, list):
        declared = next((t for t in declared if t != "null"), None)
    if declared == "file":
        return "string"
    if declared:
        return declared
    if "properties" in schema:
        return "object"
    if "items" in schema:
        return "array"
    if schema.get("enum"):
        first = schema["enum"][0]
        if isinstance(first, bool):
            return "boolean"
        if isinstance(first, int):
            return "integer"
        if isinstance(first, float):
            return "number"
    return "string"


def _expanding(node: dict, expanding: frozenset[str]) -> frozenset[str]:
    ref = node.get("$ref") if isinstance(node, dict) else None
    return expanding | {ref} if isinstance(ref, str) else expanding


def _resolve(doc: dict, node: dict) -> dict:
    """Follow local ``$ref`` pointers such as ``#/components/schemas/Pet``."""
    seen = 0
    while isinstance(node, dict) and "$ref" in node:
        ref = node["$ref"]
        if not ref.startswith("#/") or seen >= _MAX_REF_DEPTH:
            raise ConfigurationError(f"cannot resolve reference {ref!r}")
        target = doc
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(target, dict) or part not in target:
                raise ConfigurationError(f"dangling reference {ref!r}")
            target = target[part]
        node = target
        seen += 1
    return node if isinstance(node, dict) else {}


def _pick_content(content: dict) -> tuple[str, dict | None]:
    for content_type in ("application/json", "multipart/form-data", "application/x-www-form-urlencoded"):
        if content_type in content:
            return content_type, content[content_type].get("schema")
    for content_type, ct_data in content.items():
        return content_type, (ct_data or {}).get("schema")
    return "application/json", None


def _security_schemes(doc: dict, operation: dict) -> list[str]:
    requirements = operation["security"] if "security" in operation else doc.get("security", [])
    names = []
    for requirement in requirements or []:
        for name in requirement:
            if name not in names:
                names.append(name)
    return names


def _parse_responses(doc: dict, responses: dict) -> dict[str, ResponseSpec]:
    result = {}
    for status_code, resp in responses.items():
        resp = _resolve(doc, resp)
        content_type, schema = _pick_content(resp.get("content", {}))
        if schema is None:
            schema = resp.get("schema")  # Swagger 2
            content_type = None if schema is None else "application/json"
        result[str(status_code)] = ResponseSpec(
            description=resp.get("description", ""),
            content_type=content_type,
            body_schema=schema,
        )
    return result


def _apply_extensions(config: EndpointConfig, operation: dict) -> None:
    criticality = operation.get("x-business-criticality")
    if criticality is not None:
        try:
            config.business_criticality = tier_by_name(BusinessCriticality, criticality)
        except ValueError as exc:
            raise ConfigurationError(f"{config.method} {config.path}: {exc}") from exc
    profile = operation.get("x-performance-profile")
    if profile is not None:
        try:
            config.performance_profile = PerformanceProfile(str(profile).strip().lower().replace("-", "_"))
        except ValueError:
            raise ConfigurationError(
                f"{config.method} {config.path}: unknown performance profile {profile!r}"
            ) from None
