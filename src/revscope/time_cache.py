"""
Cache of the time associated with git objects.

Annotated tags use their own tagger time when they have one, otherwise the
time of the object they point at. Commits use their commit time. Trees and
blobs get :data:`MIN_TIME` instead of searching the repository for the
commits that contain them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from revscope.revision import ObjectType
from revscope.utils.cache import BoundedCache
from revscope.utils.git_utils import lookup, object_type

if TYPE_CHECKING:
	from pygit2 import Oid
	from pygit2.repository import Repository

	from revscope.config.schema import TimeCacheSchema

logger = logging.getLogger(__name__)

MIN_TIME = -(2**63)


class TimeCache:
	"""Thread-safe, bounded memo of object times, shared across requests."""

	def __init__(self, max_size: int = 10 << 10) -> None:
		self._cache: BoundedCache[Oid, int] = BoundedCache(max_size)

	@classmethod
	def from_config(cls, config: TimeCacheSchema) -> TimeCache:
		return cls(config.max_size)

	def get_time(self, repo: Repository, oid: Oid) -> int:
		"""
		Get the time of an object in seconds since the epoch.

		Args:
			repo: Repository handle of the current request.
			oid: Object to date.

		Returns:
			The tagger or commit time, or ``MIN_TIME`` for trees and blobs.

		Raises:
			StorageError: If the object or a tag target is missing.
		"""
		return self._cache.get_or_load(oid, lambda: self._load(repo, oid))

	def clear(self) -> None:
		self._cache.clear()

	@staticmethod
	def _load(repo: Repository, oid: Oid) -> int:
		obj = lookup(repo, oid)
		while True:
			match object_type(obj):
				case ObjectType.TAG:
					if obj.tagger is not None:
						return obj.tagger.time
					obj = lookup(repo, obj.target)
				case ObjectType.COMMIT:
					return obj.commit_time
				case ObjectType.TREE | ObjectType.BLOB:
					return MIN_TIME
