"""
Reachability primitives over the commit graph.

Objects are visible if they are reachable from any of the refs a client is
allowed to browse. This module only answers the two underlying questions;
policy (which refs count, caching) lives in :mod:`revscope.visibility.cache`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pygit2 import GitError
from pygit2.enums import SortMode

from revscope.errors import StorageError
from revscope.revision import ObjectType
from revscope.utils.git_utils import find

if TYPE_CHECKING:
	from collections.abc import Iterable

	from pygit2 import Oid
	from pygit2.repository import Repository

	from revscope.utils.git_utils import RefTip

logger = logging.getLogger(__name__)


class VisibilityChecker:
	"""
	Checks for object visibility.

	Args:
		topo_sort: Whether to walk in topological order. Slower, but
			more thorough on histories with skewed commit timestamps.
	"""

	def __init__(self, topo_sort: bool = False) -> None:
		self.topo_sort = topo_sort

	def is_tip_of_branch(self, refs: Iterable[RefTip], oid: Oid) -> bool:
		"""
		Check if any ref points directly at ``oid``.

		Every namespace counts here, including ones excluded from the
		ancestry search: a client that already has the exact id learns
		nothing new. Common for pending patch sets in code review, or for
		links to the commit a tag points at.

		Args:
			refs: Snapshot of the repository's refs.
			oid: Object we are looking for.

		Returns:
			True if a ref's target or peeled target is ``oid``.
		"""
		return any(oid in (tip.target, tip.peeled) for tip in refs)

	def is_reachable_from(
		self,
		repo: Repository,
		description: str,
		target: Oid,
		starters: Iterable[Oid],
	) -> bool:
		"""
		Check if commit ``target`` is reachable starting from ``starters``.

		The walk starts at ``target`` and hides every starter. If ``target``
		is an ancestor of (or equal to) any starter it is hidden too, so the
		walk produces nothing; the first commit it does produce proves the
		opposite.

		Args:
			repo: Repository to walk.
			description: Description of the starters (e.g. "heads"), for logging.
			target: Commit to look for.
			starters: Visible commits. Missing ids and ids of non-commits are
				ignored, as they do not affect reachability.

		Returns:
			True if ``target`` is reachable from any starter.

		Raises:
			StorageError: If the walk hits a missing or corrupt object.
		"""
		commits = [oid for oid in starters if self._is_commit(repo, oid)]
		if not commits:
			return False

		sort_mode = SortMode.TOPOLOGICAL if self.topo_sort else SortMode.NONE
		try:
			walker = repo.walk(target, sort_mode)
			for oid in commits:
				walker.hide(oid)
			reachable = next(walker, None) is None
		except (GitError, KeyError) as e:
			msg = f"Failed to walk from {target} against {description}: {e}"
			logger.exception(msg)
			raise StorageError(msg) from e
		logger.debug("%s reachable from %d %s: %s", target, len(commits), description, reachable)
		return reachable

	@staticmethod
	def _is_commit(repo: Repository, oid: Oid) -> bool:
		obj = find(repo, oid)
		return obj is not None and obj.type == ObjectType.COMMIT
