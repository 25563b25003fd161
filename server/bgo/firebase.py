"""
B-Go Admin — Firebase Admin SDK
Identity side of the backend: Auth accounts and ID token verification.
"""
import os
import logging

import firebase_admin
from firebase_admin import auth, credentials, exceptions

from bgo.config import settings

logger = logging.getLogger("bgo-api")

_app = None


class EmailAlreadyExistsError(Exception):
    """Raised when an Auth account with the given email already exists."""


class AuthAccountError(Exception):
    """Any other Auth account failure (invalid email, weak password, ...)."""


def get_app() -> firebase_admin.App:
    """Initialize the default Firebase app once."""
    global _app
    if _app is None:
        try:
            _app = firebase_admin.get_app()
        except ValueError:
            cred_path = settings.GOOGLE_APPLICATION_CREDENTIALS or os.getenv(
                "GOOGLE_APPLICATION_CREDENTIALS", ""
            )
            options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
            if cred_path and os.path.isfile(cred_path):
                _app = firebase_admin.initialize_app(credentials.Certificate(cred_path), options)
            else:
                _app = firebase_admin.initialize_app(options=options)
            logger.info("Firebase Admin app initialized")
    return _app


def create_auth_user(email: str, password: str, display_name: str) -> str:
    """Create an email/password account and return its uid."""
    try:
        record = auth.create_user(
            email=email,
            password=password,
            display_name=display_name,
            app=get_app(),
        )
    except auth.EmailAlreadyExistsError as e:
        raise EmailAlreadyExistsError(email) from e
    except (ValueError, exceptions.FirebaseError) as e:
        raise AuthAccountError(str(e)) from e
    logger.info(f"Auth account created: {email} ({record.uid})")
    return record.uid


def verify_id_token(token: str) -> dict:
    """Verify a Firebase ID token and return its decoded claims."""
    return auth.verify_id_token(token, app=get_app())
