"""
revscope: revision parsing and visibility for browsable git repositories.

Turns revision expressions taken from URLs into resolved revisions, refusing
anything that is not reachable from a browsable ref, and pages through the
resulting history.
"""

from revscope.errors import RevscopeError, StorageError
from revscope.paginator import Page, Paginator
from revscope.parser import RevisionParser
from revscope.revision import NULL, ObjectType, ParseResult, Revision
from revscope.time_cache import TimeCache
from revscope.visibility import VisibilityCache, VisibilityChecker

__version__ = "0.1.0"

__all__ = [
	"NULL",
	"ObjectType",
	"Page",
	"Paginator",
	"ParseResult",
	"RevisionParser",
	"RevscopeError",
	"Revision",
	"StorageError",
	"TimeCache",
	"VisibilityCache",
	"VisibilityChecker",
	"__version__",
]
