"""Visibility of objects to clients that may only browse certain refs."""

from revscope.visibility.cache import VisibilityCache
from revscope.visibility.checker import VisibilityChecker

__all__ = ["VisibilityCache", "VisibilityChecker"]
