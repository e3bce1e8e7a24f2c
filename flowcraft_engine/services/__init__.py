"""Collaborators used by the engine: HTTP caller, credentials, email and storage."""
