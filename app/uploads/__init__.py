"""
Uploads app: attachment storage for chat messages.

A client uploads a file first and then sends a message whose
``attachments`` carry the returned descriptor:

    POST /api/upload  ->  {"filename": ..., "path": "/media/...", "mimetype": ...}
"""
