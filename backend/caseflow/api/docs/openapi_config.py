"""
OpenAPI schema customization for ReDoc documentation.

This module contains tag metadata and custom OpenAPI extensions
for organizing the API documentation.
"""

# Tag metadata for organizing endpoints in documentation
tags_metadata = [
    {
        "name": "Workflow Stages",
        "description": "Per-case-type stage registry, ordering and stage bindings",
    },
    {
        "name": "Cases",
        "description": "Case permissions, counselor assignment and workflow actions",
    },
    {
        "name": "Case Types",
        "description": "Case types that scope the workflow stages",
    },
    {
        "name": "Roles",
        "description": "Roles and their resource permissions",
    },
    {
        "name": "Users",
        "description": "Users, their role and area assignments",
    },
]

# ReDoc-specific extension: x-tagGroups for hierarchical organization
tag_groups = [
    {"name": "Workflow", "tags": ["Workflow Stages", "Cases"]},
    {"name": "Administration", "tags": ["Case Types", "Roles", "Users"]},
]


def customize_openapi_schema(openapi_schema: dict) -> dict:
    """
    Add custom OpenAPI extensions to the schema.

    Args:
        openapi_schema: The base OpenAPI schema from FastAPI

    Returns:
        The customized OpenAPI schema with x-tagGroups
    """
    openapi_schema["x-tagGroups"] = tag_groups
    return openapi_schema
