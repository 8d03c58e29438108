# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, URLs and the ASGI/WSGI applications for the chat service.
# =============================================================================
