"""
Router utility functions.

Contains helpers extracted from router endpoints to keep them clean.
"""

from backend.api.routers.router_utils.pagination import PageParams, page_params

__all__ = [
    "PageParams",
    "page_params",
]
