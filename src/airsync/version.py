"""
Version management for airsync.
"""

import os
import subprocess
from importlib.metadata import PackageNotFoundError, version as package_version
from typing import Optional

# Base version - keep in step with pyproject.toml
BASE_VERSION = "0.3.0"

_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def get_git_commit_sha() -> Optional[str]:
    """Short SHA of the checked-out commit, if running from a git checkout."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            cwd=_REPO_ROOT,
        )
    except OSError:
        return None
    if result.returncode == 0:
        return result.stdout.strip() or None
    return None


def get_version() -> str:
    """
    Get the current version.

    - Installed distribution metadata when available
    - Otherwise base version + git commit SHA
    - Fallback to base version
    """
    try:
        return package_version("airsync")
    except PackageNotFoundError:
        pass

    commit_sha = get_git_commit_sha()
    if commit_sha:
        return f"{BASE_VERSION}+{commit_sha}"
    return BASE_VERSION


__version__ = get_version()
