"""OpenAPI customization.

Adds the ``X-API-Key`` security scheme, marks every operation as requiring
it, then exempts the public ones (package reads, lead submission, health).
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

# (path suffix, HTTP method) pairs that do not need an API key
PUBLIC_OPERATIONS: frozenset[tuple[str, str]] = frozenset(
    {
        ("/packages", "get"),
        ("/packages/{package_id}", "get"),
        ("/leads", "post"),
        ("/health", "get"),
    }
)

TAGS_METADATA = [
    {"name": "Packages", "description": "Tour packages; mutations are admin-only and rate limited."},
    {"name": "Leads", "description": "Website form submissions."},
    {"name": "Health", "description": "Liveness checks."},
]


def _is_public(path: str, method: str) -> bool:
    return any(path.endswith(suffix) and method == m for suffix, m in PUBLIC_OPERATIONS)


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and API key security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Admin API key.",
            },
        )
        schema.setdefault("security", [{"ApiKeyAuth": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        tags.extend(t for t in TAGS_METADATA if t["name"] not in existing_tag_names)

        for path, methods in schema.get("paths", {}).items():
            for method, operation in methods.items():
                if isinstance(operation, dict) and _is_public(path, method):
                    operation["security"] = []

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
