"""
Shared utilities for PRESSROOM.

Common functionality used across contexts:
- Deadline scopes for bounded-time operations
- Logger setup with provenance tracking
- PDF inspection helpers
"""

from pressroom.utils.pdf_processing import page_count, page_sizes
from pressroom.utils.timeout import Deadline, scope

__all__ = ["Deadline", "scope", "page_count", "page_sizes"]
