"""Commit history for a parsed revision, one page at a time."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pygit2 import GitError
from pygit2.enums import SortMode

from revscope.errors import StorageError
from revscope.paginator import Page, Paginator
from revscope.revision import ObjectType, is_null

if TYPE_CHECKING:
	from pygit2 import Oid, Walker
	from pygit2.repository import Repository

	from revscope.revision import ParseResult

logger = logging.getLogger(__name__)


def new_log_walk(repo: Repository, result: ParseResult, topo_sort: bool = False) -> Walker | None:
	"""
	Create a walk over the history named by ``result``.

	For ``A..B`` the walk yields commits reachable from ``B`` but not from
	``A``; for a single revision, its full history.

	Args:
		repo: Repository handle of the current request.
		result: Parse result whose revisions have already passed the
			visibility check.
		topo_sort: Never show a parent before all of its children.

	Returns:
		The seeded walk, or None if the revision does not peel to a commit.

	Raises:
		StorageError: If the walk cannot be started.
	"""
	if result.revision.peeled_type is not ObjectType.COMMIT:
		return None
	sort_mode = SortMode.TIME | SortMode.TOPOLOGICAL if topo_sort else SortMode.TIME
	try:
		walker = repo.walk(result.revision.peeled_id, sort_mode)
		old = result.old_revision
		if not is_null(old) and old.peeled_type is ObjectType.COMMIT:
			walker.hide(old.peeled_id)
	except (GitError, KeyError) as e:
		msg = f"Failed to start walk for {result.revision.name}: {e}"
		logger.exception(msg)
		raise StorageError(msg) from e
	return walker


def log_page(
	repo: Repository,
	result: ParseResult,
	page_size: int,
	start: Oid | None = None,
	topo_sort: bool = False,
) -> Page | None:
	"""Get one page of history for ``result``, or None if it has no history."""
	walker = new_log_walk(repo, result, topo_sort)
	if walker is None:
		return None
	return Paginator(walker, page_size, start).page()
