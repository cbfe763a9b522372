"""
Write the marketplace OpenAPI document to stdout.

The output feeds client type generation, so paths are emitted exactly as the
application mounts them (under /api/v1).
"""

import json

from services.gateway_service.app.main import app


def build_openapi_schema() -> dict:
    """Return the OpenAPI schema with a stable title and version."""
    schema = app.openapi()
    schema["info"]["title"] = "Marketplace API"
    schema["info"]["description"] = "Combined API schema for the marketplace backend."
    return schema


if __name__ == "__main__":
    print(json.dumps(build_openapi_schema(), indent=2))
