"""Client-side collaborators: the HTTP auth client and session storage."""

from ghub.client.auth_client import HttpAuthClient, create_auth_client
from ghub.client.storage import FileSessionStorage, MemorySessionStorage

__all__ = [
    "FileSessionStorage",
    "HttpAuthClient",
    "MemorySessionStorage",
    "create_auth_client",
]
