"""
Firebase Admin SDK initialization and token verification.
Initialized once in the application lifespan when a project is configured.
"""
import json
import os
import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, auth

from tubely.config import settings

logger = logging.getLogger(__name__)


# Global Firebase app instance
_firebase_app: Optional[firebase_admin.App] = None


def _load_credentials():
    """
    Resolve credentials from FIREBASE_CREDENTIALS_JSON.

    Accepts a file path or an inline JSON string; falls back to application
    default credentials when unset.
    """
    raw = settings.firebase_credentials_json
    if not raw:
        return credentials.ApplicationDefault()

    if os.path.exists(raw):
        logger.info(f"Loaded Firebase credentials from file: {raw}")
        return credentials.Certificate(raw)

    try:
        cred_dict = json.loads(raw)
    except json.JSONDecodeError:
        raise ValueError("FIREBASE_CREDENTIALS_JSON must be a valid file path or JSON string")
    logger.info("Loaded Firebase credentials from JSON string")
    return credentials.Certificate(cred_dict)


def initialize_firebase() -> None:
    """Initialize the Firebase Admin SDK (idempotent)."""
    global _firebase_app

    if _firebase_app is not None:
        return

    if not settings.firebase_project_id:
        raise ValueError("FIREBASE_PROJECT_ID must be set")

    _firebase_app = firebase_admin.initialize_app(
        _load_credentials(),
        {"projectId": settings.firebase_project_id}
    )


def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token and return its claims.

    Raises:
        ValueError: If the token is invalid, expired or revoked
    """
    if _firebase_app is None:
        raise RuntimeError("Firebase Admin SDK not initialized. Call initialize_firebase() first.")

    try:
        return auth.verify_id_token(token)
    except ValueError:
        raise
    except Exception as e:
        # Firebase raises its own exception types for revoked/expired tokens
        raise ValueError(f"Token verification failed: {str(e)}")
