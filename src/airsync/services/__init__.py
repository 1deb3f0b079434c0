"""
Services for airsync.
"""

from .secrets import SecretManagerService

__all__ = [
    "SecretManagerService",
]
