"""
Pagination over commit walks.

A page of history is defined by a walk (e.g. ``master`` or ``master..next``),
a page size and a start commit. The distance between the top of the walk and
the start may be arbitrarily long, but the page is always computed by walking
from the top: merges between the top and the start can insert arbitrary
commits into the history below the start, so resuming the walk at the start
commit would not reproduce the same listing.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pygit2 import GitError

from revscope.errors import StorageError

if TYPE_CHECKING:
	from collections.abc import Iterator

	from pygit2 import Commit, Oid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
	"""One page of commits with links to its neighbours."""

	items: tuple[Commit, ...]
	previous_start: Oid | None
	next_start: Oid | None


class Paginator:
	"""
	Wraps a seeded commit walk and yields a single page of it.

	The walk is advanced eagerly to the start commit on construction, keeping
	the last ``limit`` skipped commits so the previous page can be linked
	without a second walk.

	Args:
		walk: Fully initialized walk, e.g. a ``pygit2.Walker``.
		limit: Page size, must be positive.
		start: Commit at which the page starts, or None for the top.

	Raises:
		ValueError: If ``limit`` is not positive.
		StorageError: If the walk fails.
	"""

	def __init__(self, walk: Iterator[Commit], limit: int, start: Oid | None = None) -> None:
		if limit <= 0:
			msg = f"limit must be positive: {limit}"
			raise ValueError(msg)
		self.walk = walk
		self.limit = limit
		self._first: Commit | None = None
		self._done = False
		self._count = 0
		self._next_start: Oid | None = None

		prev_buffer: deque[Oid] = deque(maxlen=limit)
		while True:
			commit = self._next_from_walk()
			if commit is None:
				self._done = True
				if start is not None:
					logger.debug("Start commit %s not found in walk", start)
				break
			if start is None or commit.id == start:
				self._first = commit
				break
			prev_buffer.append(commit.id)
		self._previous_start = prev_buffer[0] if prev_buffer else None

	@property
	def previous_start(self) -> Oid | None:
		"""Start of the preceding page, or None on the first page."""
		return self._previous_start

	@property
	def next_start(self) -> Oid | None:
		"""
		Start of the following page, or None on the last page.

		Raises:
			RuntimeError: If the page has not been fully iterated yet.
		"""
		if not self._done:
			msg = "next_start invalid before walk done"
			raise RuntimeError(msg)
		return self._next_start

	def __iter__(self) -> Iterator[Commit]:
		while (commit := self._next()) is not None:
			yield commit

	def page(self) -> Page:
		"""Consume the remainder of the page and return it with its links."""
		items = tuple(self)
		return Page(items, self.previous_start, self.next_start)

	def _next(self) -> Commit | None:
		if self._done:
			return None
		if self._first is not None:
			commit, self._first = self._first, None
		else:
			commit = self._next_from_walk()
		self._count += 1
		if self._count == self.limit:
			next_commit = self._next_from_walk()
			self._next_start = next_commit.id if next_commit is not None else None
			self._done = True
		elif commit is None:
			self._done = True
		return commit

	def _next_from_walk(self) -> Commit | None:
		try:
			return next(self.walk, None)
		except (GitError, KeyError) as e:
			msg = f"Failed to advance commit walk: {e}"
			logger.exception(msg)
			raise StorageError(msg) from e
