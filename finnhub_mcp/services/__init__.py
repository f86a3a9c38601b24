"""
Service layer - search orchestration.
"""

from .query_builder import build_search_query, generate_query_id
from .search_service import SearchService

__all__ = ["SearchService", "build_search_query", "generate_query_id"]
