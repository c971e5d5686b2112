"""
Brotherhood KOS - API Utilities
================================

Utility functions for the API.
"""

from .pagination import paginate, create_paginated_response

__all__ = [
    "paginate",
    "create_paginated_response",
]
