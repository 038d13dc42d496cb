"""On-disk authentication artifacts, one directory per user."""

import shutil
from pathlib import Path

AUTH_DIR_PREFIX = "session-"


def get_auth_dir(auth_path: str, user_id: str) -> Path:
    """Get the directory holding the backend's stored login for a user.

    Args:
        auth_path: Root directory for all users' auth artifacts
        user_id: User identifier, already validated as a safe path component

    Returns:
        Path to the user's auth directory (may not exist)
    """
    return Path(auth_path) / f"{AUTH_DIR_PREFIX}{user_id}"


def has_auth_artifacts(auth_path: str, user_id: str) -> bool:
    return get_auth_dir(auth_path, user_id).is_dir()


def purge_auth_artifacts(auth_path: str, user_id: str) -> bool:
    """Delete a user's auth directory so the next login asks for a fresh QR code.

    Returns:
        True if a directory was removed, False if there was nothing to remove
    """
    auth_dir = get_auth_dir(auth_path, user_id)
    if not auth_dir.exists():
        return False
    shutil.rmtree(auth_dir)
    return True
