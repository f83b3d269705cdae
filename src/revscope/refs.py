"""Listings of branches and tags, as shown on a repository index."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from revscope.revision import Revision
from revscope.utils.git_utils import HEAD, R_HEADS, R_TAGS, iter_refs, resolve_ref

if TYPE_CHECKING:
	from pygit2.repository import Repository

	from revscope.time_cache import TimeCache
	from revscope.utils.git_utils import RefTip

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefEntry:
	"""A branch or tag in a listing."""

	name: str
	full_name: str
	revision: Revision
	is_head: bool = False


def _head_target(repo: Repository) -> str | None:
	"""Full name of the branch HEAD points at, or None if HEAD is detached or missing."""
	ref = repo.references.get(HEAD)
	if ref is None or not isinstance(ref.target, str):
		return None
	return ref.target


def _entry(repo: Repository, tip: RefTip, prefix: str, head: str | None) -> RefEntry:
	short = tip.name[len(prefix) :]
	# Links must resolve back to this ref, so fall back to the full name
	# when a tag shadows a branch of the same name.
	resolved = resolve_ref(repo, short)
	rev_name = short if resolved is not None and resolved[0] == tip.name else tip.name
	return RefEntry(short, tip.name, Revision.unpeeled(rev_name, tip.target), tip.name == head)


def _truncate(entries: list[RefEntry], limit: int) -> list[RefEntry]:
	return entries[:limit] if limit > 0 else entries


def list_branches(repo: Repository, limit: int = 0) -> list[RefEntry]:
	"""
	List branches, the one HEAD points at first, the rest by name.

	Args:
		repo: Repository to list.
		limit: Maximum number of entries, or 0 for all of them.

	Returns:
		Branch entries in display order.
	"""
	head = _head_target(repo)
	tips = [tip for tip in iter_refs(repo) if tip.name.startswith(R_HEADS)]
	tips.sort(key=lambda tip: (tip.name != head, tip.name))
	return _truncate([_entry(repo, tip, R_HEADS, head) for tip in tips], limit)


def list_tags(repo: Repository, time_cache: TimeCache, limit: int = 0) -> list[RefEntry]:
	"""
	List tags, newest first.

	Tags are dated with :class:`~revscope.time_cache.TimeCache`, so
	annotated tags sort by tagger time and lightweight tags by the time of
	the commit they point at. Ties are broken by name.

	Args:
		repo: Repository to list.
		time_cache: Shared time cache.
		limit: Maximum number of entries, or 0 for all of them.

	Returns:
		Tag entries in display order.

	Raises:
		StorageError: If a tag points at a missing object.
	"""
	tips = [tip for tip in iter_refs(repo) if tip.name.startswith(R_TAGS)]
	tips.sort(key=lambda tip: (-time_cache.get_time(repo, tip.target), tip.name))
	logger.debug("Listing %d tags", len(tips))
	return _truncate([_entry(repo, tip, R_TAGS, None) for tip in tips], limit)
