"""API Documentation — OpenAPI 3.0.0 document and Swagger UI page.

Invariants:
    - GET /api-docs.json serves the OpenAPI document (openapi == "3.0.0")
    - GET /api-docs/ serves the interactive Swagger UI (no auth)
    - basicAuth security scheme is always declared, even before any protected route exists
    - The document is generated once per app and cached on app.openapi_schema
"""

from fastapi import FastAPI
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.openapi.utils import get_openapi
from fastapi.responses import HTMLResponse, JSONResponse

from carbon_api.config import Settings

OPENAPI_VERSION = "3.0.0"
OPENAPI_URL = "/api-docs.json"
DOCS_URL = "/api-docs/"
API_DESCRIPTION = (
    "API for calculating and tracking carbon footprint of food items"
)


def build_openapi_schema(app: FastAPI, settings: Settings) -> dict:
    schema = get_openapi(
        title=app.title,
        version=app.version,
        openapi_version=OPENAPI_VERSION,
        description=API_DESCRIPTION,
        routes=app.routes,
        servers=[{
            "url": settings.public_url,
            "description": f"{settings.environment.capitalize()} server",
        }],
    )
    components = schema.setdefault("components", {})
    components.setdefault("securitySchemes", {})["basicAuth"] = {
        "type": "http", "scheme": "basic",
    }
    return schema


def install_docs(app: FastAPI, settings: Settings) -> None:
    """Replace FastAPI's default docs with the public documentation routes."""
    app.openapi_version = OPENAPI_VERSION

    def openapi() -> dict:
        if app.openapi_schema is None:
            app.openapi_schema = build_openapi_schema(app, settings)
        return app.openapi_schema

    app.openapi = openapi

    @app.get(OPENAPI_URL, include_in_schema=False)
    async def openapi_document() -> JSONResponse:
        return JSONResponse(app.openapi())

    @app.get(DOCS_URL, include_in_schema=False)
    async def swagger_ui() -> HTMLResponse:
        return get_swagger_ui_html(
            openapi_url=OPENAPI_URL, title=f"{app.title} - Swagger UI",
        )
