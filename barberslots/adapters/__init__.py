"""
Adapters layer - Store integrations (JSON file, PostgREST).
"""

from .json_store import JsonFileStore
from .rest_store import RestStore

__all__ = ["JsonFileStore", "RestStore"]
