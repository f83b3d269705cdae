"""
Revisions as seen by revscope.

A revision is a name, the object it resolved to and, for annotated tags,
the object the tag ultimately points at. Name parsing happens once per
request in :mod:`revscope.parser`; everything downstream works with the
immutable values defined here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, ClassVar

from pygit2 import Oid

if TYPE_CHECKING:
	from pygit2 import Object
	from pygit2.repository import Repository


class ObjectType(IntEnum):
	"""Kinds of objects in the graph, numbered like git's own type codes."""

	COMMIT = 1
	TREE = 2
	BLOB = 3
	TAG = 4


@dataclass(frozen=True)
class Revision:
	"""A single resolved revision."""

	name: str
	id: Oid | None
	type: ObjectType | None
	peeled_id: Oid | None
	peeled_type: ObjectType | None

	NULL: ClassVar[Revision]

	@classmethod
	def peeled(cls, name: str, obj: Object) -> Revision:
		"""Build a revision for an object that is not an annotated tag."""
		obj_type = ObjectType(obj.type)
		if obj_type is ObjectType.TAG:
			msg = f"expected non-tag for {name}/{obj.id}"
			raise ValueError(msg)
		return cls(name, obj.id, obj_type, obj.id, obj_type)

	@classmethod
	def unpeeled(cls, name: str, oid: Oid) -> Revision:
		"""Build a revision whose type has not been looked up yet."""
		return cls(name, oid, None, oid, None)

	@classmethod
	def peel(cls, name: str, obj: Object, repo: Repository) -> Revision:
		"""
		Build a revision for ``obj``, fully unwinding annotated tag chains.

		Args:
			name: Expression that produced the object.
			obj: Resolved object, possibly an annotated tag.
			repo: Repository used to read tag targets.

		Returns:
			A revision whose ``peeled_id`` is the first non-tag object.

		Raises:
			StorageError: If a tag in the chain points at a missing object.
		"""
		from revscope.utils.git_utils import peel_tag  # Local import to avoid cycles

		target = peel_tag(repo, obj)
		return cls(name, obj.id, ObjectType(obj.type), target.id, ObjectType(target.type))

	def __str__(self) -> str:
		parts = [f"name={self.name!r}"]
		if self.id is not None:
			parts.append(f"id={self.id}")
		if self.type is not None:
			parts.append(f"type={self.type.name.lower()}")
		if self.peeled_id is not None and self.peeled_id != self.id:
			parts.append(f"peeled_id={self.peeled_id}")
		if self.peeled_type is not None and self.peeled_type is not self.type:
			parts.append(f"peeled_type={self.peeled_type.name.lower()}")
		return f"Revision({', '.join(parts)})"


# Sentinel for a missing or empty revision, e.g. the old side of a diff
# against a root commit.
NULL = Revision("", Oid(raw=bytes(20)), None, Oid(raw=bytes(20)), None)
Revision.NULL = NULL


def is_null(rev: Revision | None) -> bool:
	return rev is NULL


@dataclass(frozen=True)
class ParseResult:
	"""
	One outcome of parsing a revision expression.

	Either a single revision, or a diff pair when ``old_revision`` is set,
	followed by an optional residual repository path. ``path`` is empty or
	starts with ``/``.
	"""

	revision: Revision
	old_revision: Revision = field(default=NULL)
	path: str = ""
