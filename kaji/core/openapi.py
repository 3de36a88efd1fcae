"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- Bearer (JWT) security scheme with per-path overrides

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

# Operations that never require a token, as (method, path suffix)
PUBLIC_OPERATIONS = {
    ("get", "/health"),
    ("get", "/docs"),
    ("post", "/auth/register"),
    ("post", "/auth/login"),
    ("post", "/chat/suggestions"),
    ("get", "/stats/overview"),
}

TAGS_METADATA = [
    {"name": "Health", "description": "Liveness and database readiness."},
    {"name": "Docs", "description": "Index of the API's resource collections."},
    {"name": "Auth", "description": "Registration and login returning bearer tokens."},
    {"name": "Users", "description": "The authenticated user's profile, password and statistics."},
    {"name": "Exploits", "description": "Public ChromeOS exploit catalogue."},
    {"name": "Versions", "description": "ChromeOS releases and their exploits."},
    {"name": "AI", "description": "One-off questions to the security assistant."},
    {"name": "Chat", "description": "Persistent chat sessions with the assistant."},
    {"name": "Reports", "description": "User reports with AI triage and review."},
    {"name": "Admin", "description": "Platform statistics, logs, AI training data and accounts."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata and security.

    - Injects components.securitySchemes for bearer auth (``Authorization``)
    - Marks all operations as accepting a bearer token by default, then
      exempts the public ones by setting ``security: []``
    - Adds tags metadata if not present
    """

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
                "bearerFormat": "JWT",
                "description": "Token returned by /auth/login or /auth/register.",
            },
        )
        schema.setdefault("security", [{"BearerAuth": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            for method, method_obj in methods.items():
                if not isinstance(method_obj, dict):
                    continue
                if any(method == m and path.endswith(suffix) for m, suffix in PUBLIC_OPERATIONS):
                    method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
