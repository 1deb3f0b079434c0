"""
airsync: keeps a PostgreSQL table in step with Airtable record changes.
"""

from .version import __version__

__all__ = ["__version__"]
