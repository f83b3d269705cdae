"""
Parsing of revision expressions embedded in URLs.

Supported forms, each optionally followed by ``/path``:

- ``A``: a ref name or (abbreviated) object id, followed by any number of
  ``^``, ``^N`` and ``~N`` operators;
- ``A..B``: a diff between two such expressions;
- ``A^!``: a diff between ``A`` and its first parent.

Dereference markers (``^{}``, ``^{type}``), ``rev:path`` and reflog entries
(``@{n}``) are rejected even though git itself understands them. URLs only
ever use the forms above.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from revscope.revision import NULL, ParseResult, Revision
from revscope.utils.git_utils import find, lookup, peel_to_commit, resolve_ref

if TYPE_CHECKING:
	from collections.abc import Iterable

	from pygit2 import Commit, Object, Oid
	from pygit2.repository import Repository

	from revscope.visibility.cache import VisibilityCache

logger = logging.getLogger(__name__)

_HEX_ID = re.compile(r"[0-9a-fA-F]{4,40}")
_OPERATORS = re.compile(r"(?:[\^~]\d*)+")
_OPERATOR = re.compile(r"([\^~])(\d*)")
_UNSUPPORTED = (":", "^{", "@{")


def _is_valid_expression(expr: str) -> bool:
	if not expr or expr == "@":
		return False
	if expr.startswith("/") or expr.endswith("/") or "//" in expr:
		return False
	return not any(marker in expr for marker in _UNSUPPORTED)


def _split_points(expr: str) -> list[int]:
	"""Candidate ends of the revision part, longest first."""
	return [len(expr)] + [i for i in range(len(expr) - 1, 0, -1) if expr[i] == "/"]


class RevisionParser:
	"""
	Turns revision expressions into visibility-checked revisions.

	Args:
		repo: Repository handle of the current request. Not thread safe.
		cache: Visibility cache shared across requests.
	"""

	def __init__(self, repo: Repository, cache: VisibilityCache) -> None:
		self.repo = repo
		self.cache = cache

	def parse(self, expr: str) -> ParseResult | None:
		"""
		Parse ``expr`` into one or two revisions and a residual path.

		The longest prefix that resolves wins, so refs containing slashes
		are preferred over shorter refs followed by a path.

		Args:
			expr: Expression, e.g. ``master``, ``v1.0^..v1.1/docs`` or
				``c0ffee^!``. A single leading ``/`` is ignored.

		Returns:
			The parse result, or None if the expression is malformed,
			unsupported, does not resolve, or resolves to an object that is
			not visible. These cases are deliberately indistinguishable.

		Raises:
			StorageError: If the object graph cannot be read.
		"""
		if expr.startswith("/"):
			expr = expr[1:]
		for end in _split_points(expr):
			head = expr[:end]
			if not _is_valid_expression(head):
				continue
			result = self._parse_head(head, expr[end:])
			if result is not None:
				return result
		logger.debug("Revision expression did not resolve: %r", expr)
		return None

	def _parse_head(self, head: str, path: str) -> ParseResult | None:
		dots = head.find("..")
		if dots == 0:
			return None
		if dots > 0:
			new = self._resolve(head[dots + 2 :])
			if new is None:
				return None
			old = self._resolve(head[:dots], known_roots=(new.peeled_id,))
			if old is None:
				return None
			return ParseResult(new, old, path)

		first_parent = head.find("^!")
		if first_parent == 0:
			return None
		if first_parent > 0:
			if first_parent != len(head) - 2:
				return None
			return self._parse_first_parent(head[:-2], path)

		revision = self._resolve(head)
		return ParseResult(revision, NULL, path) if revision is not None else None

	def _parse_first_parent(self, name: str, path: str) -> ParseResult | None:
		revision = self._resolve(name)
		if revision is None:
			return None
		commit = peel_to_commit(self.repo, lookup(self.repo, revision.peeled_id))
		if commit is None:
			return None  # Not a commit, ^! is invalid.
		parents = commit.parent_ids
		if parents:
			old = Revision.peeled(f"{name}^", lookup(self.repo, parents[0]))
		else:
			old = NULL
		return ParseResult(Revision.peeled(name, commit), old, path)

	def _resolve(self, expr: str, known_roots: Iterable[Oid] = ()) -> Revision | None:
		"""Resolve a single expression: a base name plus ancestor operators."""
		split = len(expr)
		for op in "^~":
			i = expr.find(op)
			if i >= 0:
				split = min(split, i)
		base, operators = expr[:split], expr[split:]
		if not base or (operators and not _OPERATORS.fullmatch(operators)):
			return None

		obj = self._resolve_base(base, known_roots)
		if obj is None:
			return None
		if not operators:
			return Revision.peel(expr, obj, self.repo)

		commit = peel_to_commit(self.repo, obj)
		if commit is None:
			return None
		for op, digits in _OPERATOR.findall(operators):
			n = int(digits) if digits else 1
			if op == "^":
				commit = self._parent(commit, n)
			else:
				commit = self._first_parent_ancestor(commit, n)
			if commit is None:
				return None
		return Revision.peeled(expr, commit)

	def _resolve_base(self, name: str, known_roots: Iterable[Oid]) -> Object | None:
		ref = resolve_ref(self.repo, name)
		if ref is not None:
			return ref[1]
		if not _HEX_ID.fullmatch(name):
			return None
		try:
			obj = find(self.repo, name)
		except ValueError:
			logger.debug("Ambiguous object id %s", name)
			return None
		if obj is None:
			return None
		if not self.cache.is_visible(self.repo, obj.id, known_roots):
			logger.debug("Object %s is not visible", obj.id)
			return None
		return obj

	def _parent(self, commit: Commit, n: int) -> Commit | None:
		parents = commit.parent_ids
		if n < 1 or n > len(parents):
			return None
		return lookup(self.repo, parents[n - 1])

	def _first_parent_ancestor(self, commit: Commit, n: int) -> Commit | None:
		for _ in range(n):
			parents = commit.parent_ids
			if not parents:
				return None
			commit = lookup(self.repo, parents[0])
		return commit
