# todo_api/auth/__init__.py
"""
Authentication modules for the Todo API.

This package contains:
- identity.py: identity records (provider-verified identity, session claims, resolved caller)
- firebase.py: Firebase ID token verification against Google's published keys
"""
from todo_api.auth.identity import Identity, SessionClaims, VerifiedIdentity

__all__ = ["Identity", "SessionClaims", "VerifiedIdentity"]
