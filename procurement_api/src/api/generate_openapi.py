"""
Write the OpenAPI schema of the service to interfaces/openapi.json.

Usage:
    python -m src.api.generate_openapi [output_path]
"""
import json
import os
import sys

from src.api.main import app


def main(output_path: str = os.path.join("interfaces", "openapi.json")) -> str:
    # All REST routes are under /api/v1
    openapi_schema = app.openapi()

    # Document the Basic-Auth scheme used by the TI webhook routes
    components = openapi_schema.setdefault("components", {})
    schemes = components.setdefault("securitySchemes", {})
    schemes.setdefault("HTTPBasic", {"type": "http", "scheme": "basic"})

    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(openapi_schema, f, indent=2)
    return output_path


if __name__ == "__main__":
    print(main(*sys.argv[1:2]))
