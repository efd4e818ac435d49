"""Shared Firebase app / credential helpers for the Firestore store and Firebase identity."""

import json
from pathlib import Path
from typing import Optional, Union

import firebase_admin
from firebase_admin import credentials


def project_id_from_credentials_file(credentials_path: Union[Path, str]) -> Optional[str]:
    """Read project_id from a Google service account JSON file if present."""
    try:
        path = Path(credentials_path)
        if not path.is_file():
            return None
        with open(path) as f:
            data = json.load(f)
        return data.get("project_id") or data.get("projectId")
    except (OSError, json.JSONDecodeError):
        return None


def ensure_firebase_app(
    project_id: Optional[str] = None,
    credentials_path: Optional[Union[Path, str]] = None,
) -> firebase_admin.App:
    """Initialize the default Firebase app once; later calls reuse it."""
    if firebase_admin._apps:
        return firebase_admin.get_app()
    if credentials_path:
        cred = credentials.Certificate(str(Path(credentials_path).resolve()))
        opts = {"projectId": project_id} if project_id else None
        return firebase_admin.initialize_app(cred, opts)
    return firebase_admin.initialize_app(options={"projectId": project_id} if project_id else None)
