"""Invigil Infra Firebase -- Firebase Authentication identity directory."""

from invigil.infra.firebase.app import initialize_firebase_app
from invigil.infra.firebase.identity_directory import FirebaseIdentityDirectory
from invigil.infra.firebase.settings import FirebaseSettings, get_firebase_settings

__all__ = [
    "FirebaseIdentityDirectory",
    "FirebaseSettings",
    "get_firebase_settings",
    "initialize_firebase_app",
]
