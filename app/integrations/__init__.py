# app/integrations/__init__.py
"""
StreakFit Integrations Package.

Clients for the session operations.
"""

from app.integrations.session_client import (
    SessionClient,
    LocalSessionClient,
    HttpSessionClient,
)

__all__ = [
    "SessionClient",
    "LocalSessionClient",
    "HttpSessionClient",
]
