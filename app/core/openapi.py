"""
OpenAPI schema customizations for drf-spectacular.

Tags follow the pattern [App Name] - [Group Name]:
- Auth (register, login, logout, me)
- Chat - Chats / Chat - Messages (set via tags= in chat views)
- AI - Completions (set via tags= in ai views)
- Uploads (set via tags= in uploads views)
"""

# Natural language summaries for dj-rest-auth endpoints
# Maps operation_id to (summary, description)
DJ_REST_AUTH_SUMMARIES = {
    "auth_login_create": (
        "Log in",
        "Authenticate with email and password to receive JWT tokens.",
    ),
    "auth_logout_create": (
        "Log out",
        "Blacklist the supplied refresh token.",
    ),
    "auth_me_retrieve": (
        "Get current user",
        "Retrieve the currently authenticated user's details.",
    ),
    "auth_me_update": (
        "Update current user",
        "Full update of the currently authenticated user's details.",
    ),
    "auth_me_partial_update": (
        "Partially update current user",
        "Partial update of the currently authenticated user's details.",
    ),
}


def group_auth_endpoints(result, generator, request, public):
    """
    Postprocessing hook grouping dj-rest-auth endpoints under "Auth".

    dj-rest-auth views carry no tags of their own, so operation ids
    starting with ``auth_`` are tagged here and given readable summaries.
    """
    paths = result.get("paths", {})

    for path, methods in paths.items():
        for method, operation in methods.items():
            if not isinstance(operation, dict):
                continue

            operation_id = operation.get("operationId", "")

            if operation_id in DJ_REST_AUTH_SUMMARIES:
                summary, description = DJ_REST_AUTH_SUMMARIES[operation_id]
                operation["summary"] = summary
                operation["description"] = description

            if operation_id.startswith("auth_"):
                operation["tags"] = ["Auth"]

    result["tags"] = [
        {
            "name": "Auth",
            "description": "Registration, login, logout and current user.",
        },
        {
            "name": "Chat - Chats",
            "description": "Chat CRUD. Every operation requires chat participation.",
        },
        {
            "name": "Chat - Messages",
            "description": "Appending messages and incremental fetch for polling clients.",
        },
        {
            "name": "AI - Completions",
            "description": "Blocking and SSE-streamed assistant replies, and file analysis.",
        },
        {
            "name": "Uploads",
            "description": "Attachment upload; returns the descriptor messages reference.",
        },
    ]

    return result
