"""
Local repository sync and manifest inspection.
"""

from .repository_manager import (
    RepositoryManager, build_authenticated_url, redact_url, DOCKERFILE, PLACEHOLDER_REQUIREMENTS
)

__all__ = [
    "RepositoryManager",
    "build_authenticated_url",
    "redact_url",
    "DOCKERFILE",
    "PLACEHOLDER_REQUIREMENTS"
]
