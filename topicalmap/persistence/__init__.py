"""
Persistence: file-backed project store.
"""

from .projects import ProjectStore

__all__ = ["ProjectStore"]
