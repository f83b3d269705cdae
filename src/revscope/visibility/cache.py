"""Cache of object visibility, shared across requests."""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING

from revscope.revision import ObjectType
from revscope.utils.cache import BoundedCache
from revscope.utils.git_utils import R_HEADS, R_TAGS, iter_refs, lookup
from revscope.visibility.checker import VisibilityChecker

if TYPE_CHECKING:
	from collections.abc import Iterable, Sequence

	from pygit2 import Oid
	from pygit2.repository import Repository

	from revscope.config.schema import VisibilitySchema
	from revscope.utils.git_utils import RefTip

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_NAMESPACES = ("refs/changes/",)


def ref_generation(refs: Iterable[RefTip]) -> str:
	"""Digest of every ref name and target; changes whenever any ref is updated."""
	h = hashlib.sha1()  # noqa: S324
	for tip in sorted(refs):
		h.update(f"{tip.name} {tip.target}\n".encode())
	return h.hexdigest()


class VisibilityCache:
	"""
	Answers whether an object may be resolved and exposed to a client.

	An object is visible if a ref points at it, or if it is a commit
	reachable from a browsable tip: branch and tag tips, other refs outside
	the excluded namespaces, and any ``known_roots`` the caller has already
	proven visible.

	Positive answers are cached by object id alone and never flip, since
	ancestry in an append-only graph cannot become false. Negative answers
	can flip as soon as a new ref is created, so they are only cached
	together with the ref generation they were computed against.

	Args:
		checker: Reachability primitives (default: a plain ``VisibilityChecker``).
		excluded_namespaces: Ref prefixes left out of the ancestry search.
		max_size: Maximum cached entries per polarity.
		expire_after: Seconds before a cached entry is recomputed, or None.
		cache_negative: Whether to cache negative answers per ref generation.
	"""

	def __init__(
		self,
		checker: VisibilityChecker | None = None,
		*,
		excluded_namespaces: Sequence[str] = DEFAULT_EXCLUDED_NAMESPACES,
		max_size: int = 1 << 10,
		expire_after: float | None = 30 * 60,
		cache_negative: bool = True,
	) -> None:
		self.checker = checker or VisibilityChecker()
		self.excluded_namespaces = tuple(excluded_namespaces)
		self._visible: BoundedCache[tuple[str, Oid], bool] = BoundedCache(max_size, expire_after)
		self._hidden: BoundedCache[tuple[str, Oid, str], bool] | None = (
			BoundedCache(max_size, expire_after) if cache_negative else None
		)

	@classmethod
	def from_config(cls, config: VisibilitySchema) -> VisibilityCache:
		"""Create a cache from the ``visibility`` configuration section."""
		return cls(
			VisibilityChecker(topo_sort=config.topo_sort),
			excluded_namespaces=config.excluded_namespaces,
			max_size=config.max_size,
			expire_after=config.expire_after_seconds,
			cache_negative=config.cache_negative,
		)

	def is_visible(self, repo: Repository, target: Oid, known_roots: Iterable[Oid] = ()) -> bool:
		"""
		Check whether ``target`` may be exposed.

		Args:
			repo: Repository handle of the current request.
			target: Object to check.
			known_roots: Commits already proven visible in this request.

		Returns:
			True if the object is visible. Not being visible is an ordinary
			False, never an exception.

		Raises:
			StorageError: If the target is missing or the object graph cannot be read.
		"""
		known = tuple(known_roots)
		key = (repo.path, target)
		if self._visible.get(key):
			return True

		refs = list(iter_refs(repo))
		hidden_key = (repo.path, target, ref_generation(refs))
		use_hidden = self._hidden is not None and not known
		if use_hidden and hidden_key in self._hidden:
			logger.debug("%s hidden (cached)", target)
			return False

		visible = self._is_visible(repo, target, refs, known)
		if visible:
			self._visible.put(key, True)
		elif use_hidden:
			self._hidden.put(hidden_key, False)
		return visible

	def clear(self) -> None:
		self._visible.clear()
		if self._hidden is not None:
			self._hidden.clear()

	def _is_visible(self, repo: Repository, target: Oid, refs: list[RefTip], known: tuple[Oid, ...]) -> bool:
		if self.checker.is_tip_of_branch(refs, target):
			return True

		obj = lookup(repo, target)
		if obj.type != ObjectType.COMMIT:
			return False

		browsable = [tip for tip in refs if not self._is_excluded(tip.name)]
		heads = [tip.peeled for tip in browsable if tip.name.startswith(R_HEADS)]
		tags = [tip.peeled for tip in browsable if tip.name.startswith(R_TAGS)]
		other = [tip.peeled for tip in browsable if not tip.name.startswith((R_HEADS, R_TAGS))]

		# Heads first, then tags, then everything else.
		return (
			self.checker.is_reachable_from(repo, "known roots", target, known)
			or self.checker.is_reachable_from(repo, "heads", target, heads)
			or self.checker.is_reachable_from(repo, "tags", target, tags)
			or self.checker.is_reachable_from(repo, "other", target, other)
		)

	def _is_excluded(self, name: str) -> bool:
		return name.startswith(self.excluded_namespaces)
