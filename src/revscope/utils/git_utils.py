"""Utilities for reading refs and objects through pygit2."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

from pygit2 import GitError, Oid, discover_repository, reference_is_valid_name
from pygit2.repository import Repository

from revscope.errors import StorageError
from revscope.revision import ObjectType

if TYPE_CHECKING:
	from collections.abc import Iterator

	from pygit2 import Commit, Object

logger = logging.getLogger(__name__)

R_HEADS = "refs/heads/"
R_TAGS = "refs/tags/"
HEAD = "HEAD"


class RefTip(NamedTuple):
	"""A ref together with the object it points at and that object's peeled form."""

	name: str
	target: Oid
	peeled: Oid


def get_repo_root(path: Path | None = None) -> Path:
	"""Get the git directory of the repository containing ``path``."""
	git_dir = discover_repository(str(path or Path.cwd()))
	if git_dir is None:
		msg = f"Not a git repository: {path or Path.cwd()}"
		logger.error(msg)
		raise StorageError(msg)
	return Path(git_dir)


def open_repository(path: Path | None = None) -> Repository:
	"""
	Open the repository containing ``path`` (default: the working directory).

	Raises:
		StorageError: If no repository is found or it cannot be opened.
	"""
	repo_root = get_repo_root(path)
	try:
		return Repository(str(repo_root))
	except GitError as e:
		msg = f"Failed to open repository at {repo_root}: {e}"
		logger.exception(msg)
		raise StorageError(msg) from e


def object_type(obj: Object) -> ObjectType:
	return ObjectType(obj.type)


def find(repo: Repository, oid: Oid | str) -> Object | None:
	"""
	Read an object that may not exist; None if it is missing.

	Raises:
		ValueError: If ``oid`` is a prefix that is too short or matches more than one object.
		StorageError: If the object database cannot be read.
	"""
	try:
		return repo.get(oid)
	except ValueError:
		# AmbiguousError derives from both ValueError and GitError.
		raise
	except GitError as e:
		msg = f"Failed to read object {oid}: {e}"
		logger.exception(msg)
		raise StorageError(msg) from e


def lookup(repo: Repository, oid: Oid) -> Object:
	"""
	Read an object that must exist.

	Args:
		repo: Repository to read from.
		oid: Id of the object.

	Returns:
		The parsed object.

	Raises:
		StorageError: If the object is missing or unreadable.
	"""
	obj = find(repo, oid)
	if obj is None:
		msg = f"Missing object {oid}"
		logger.error(msg)
		raise StorageError(msg)
	return obj


def peel_tag(repo: Repository, obj: Object) -> Object:
	"""Follow annotated tags until reaching a commit, tree or blob."""
	while True:
		match object_type(obj):
			case ObjectType.TAG:
				obj = lookup(repo, obj.target)
			case ObjectType.COMMIT | ObjectType.TREE | ObjectType.BLOB:
				return obj


def peel_to_commit(repo: Repository, obj: Object) -> Commit | None:
	"""Peel ``obj`` and return it if it is a commit, else None."""
	peeled = peel_tag(repo, obj)
	match object_type(peeled):
		case ObjectType.COMMIT:
			return peeled
		case _:
			return None


def ref_candidates(name: str) -> list[str]:
	"""
	Full ref names tried for ``name``, in resolution order.

	Fully qualified names and ``HEAD`` are taken as is. Short names are
	tried as a tag before a branch; any other namespace must be spelled out.
	"""
	if name == HEAD or name.startswith("refs/"):
		return [name]
	return [f"{R_TAGS}{name}", f"{R_HEADS}{name}"]


def resolve_ref(repo: Repository, name: str) -> tuple[str, Object] | None:
	"""
	Resolve a ref name using :func:`ref_candidates`.

	Returns:
		``(full ref name, target object)`` for the first ref that exists, or
		None if no candidate names an existing ref.

	Raises:
		StorageError: If the ref points at a missing object.
	"""
	for candidate in ref_candidates(name):
		if not reference_is_valid_name(candidate):
			continue
		ref = repo.references.get(candidate)
		if ref is None:
			continue
		try:
			target = ref.resolve().target
		except KeyError:
			# Symbolic ref to a branch that does not exist yet.
			logger.debug("Skipping dangling symbolic ref %s", candidate)
			continue
		return candidate, lookup(repo, target)
	return None


def iter_refs(repo: Repository) -> Iterator[RefTip]:
	"""Yield every resolvable ref in the repository with its direct and peeled target."""
	for name in repo.references:
		ref = repo.references.get(name)
		if ref is None:
			continue
		try:
			target = ref.resolve().target
		except KeyError:
			continue
		peeled = peel_tag(repo, lookup(repo, target))
		yield RefTip(name, target, peeled.id)
