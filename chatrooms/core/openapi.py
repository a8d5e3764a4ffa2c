"""OpenAPI metadata and customization utilities.

Enriches the generated schema with:
- a Bearer security scheme plus the ``X-Username`` identity header
- tags metadata
- ``security: []`` on public endpoints (health, reads, leave, switch)
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_PUBLIC_OPERATIONS = {
    ("/health", "get"),
    ("/v1/rooms", "get"),
    ("/v1/rooms/{room_id}", "get"),
    ("/v1/rooms/{room_id}/users", "get"),
    ("/v1/rooms/{room_id}/messages", "get"),
    ("/v1/rooms/{room_id}/leave", "post"),
    ("/v1/rooms/switch", "post"),
    ("/v1/ai/quota", "post"),
}

_TAGS = [
    {"name": "Rooms", "description": "Room lifecycle: create, leave, delete and switch."},
    {"name": "Messages", "description": "Room message log."},
    {"name": "Quota", "description": "Rate limit primitive and privileged-feature quotas."},
    {"name": "Health", "description": "Liveness and readiness checks."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata and security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "description": "Session token issued for the user named in the X-Username header.",
            },
        )
        security_schemes.setdefault(
            "UsernameHeader",
            {"type": "apiKey", "in": "header", "name": "X-Username"},
        )

        schema.setdefault("security", [{"BearerAuth": [], "UsernameHeader": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in _TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            for method, method_obj in methods.items():
                if (path, method) in _PUBLIC_OPERATIONS and isinstance(method_obj, dict):
                    method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
