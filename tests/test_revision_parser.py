"""Tests for the revision parser."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from pygit2 import GitError

from revscope.errors import StorageError
from revscope.parser import RevisionParser
from revscope.revision import NULL, ObjectType, ParseResult, Revision
from revscope.visibility.cache import VisibilityCache
from tests.base import GitTestBase


def result(revision: Revision, old: Revision = NULL, path: str = "") -> ParseResult:
	return ParseResult(revision, old, path)


@pytest.mark.unit
@pytest.mark.git
class TestRevisionParser(GitTestBase):
	"""Parsing against a fresh repository per test."""

	def setup_repo(self) -> None:
		self.parser = RevisionParser(self.repo, VisibilityCache(max_size=0))

	def test_parse_ref(self) -> None:
		master = self.builder.branch("master", self.builder.commit())
		assert self.parser.parse("master") == result(Revision.peeled("master", master))
		assert self.parser.parse("refs/heads/master") == result(Revision.peeled("refs/heads/master", master))
		assert self.parser.parse("HEAD") == result(Revision.peeled("HEAD", master))
		assert self.parser.parse("refs//heads//master") is None
		assert self.parser.parse("refs heads master") is None

	def test_leading_slash_ignored(self) -> None:
		master = self.builder.branch("master", self.builder.commit())
		assert self.parser.parse("/master/docs") == result(Revision.peeled("master", master), path="/docs")

	def test_parse_ref_parent_expression(self) -> None:
		b = self.builder
		root = b.commit()
		parent1 = b.commit(root)
		parent2 = b.commit(root)
		merge = b.branch("master", b.commit(parent1, parent2))
		assert self.parser.parse("master") == result(Revision.peeled("master", merge))
		assert self.parser.parse("master^") == result(Revision.peeled("master^", parent1))
		assert self.parser.parse("master^1") == result(Revision.peeled("master^1", parent1))
		assert self.parser.parse("master~1") == result(Revision.peeled("master~1", parent1))
		assert self.parser.parse("master^2") == result(Revision.peeled("master^2", parent2))
		assert self.parser.parse("master^3") is None
		assert self.parser.parse("master~2") == result(Revision.peeled("master~2", root))
		assert self.parser.parse("master^2~1") == result(Revision.peeled("master^2~1", root))
		assert self.parser.parse("master~0") == result(Revision.peeled("master~0", merge))
		assert self.parser.parse("master~3") is None
		assert self.parser.parse("master^0") is None

	def test_parse_commit_sha_visible_from_head(self) -> None:
		parent = self.builder.commit()
		commit = self.builder.branch("master", self.builder.commit(parent))
		assert self.parser.parse(str(commit.id)) == result(Revision.peeled(str(commit.id), commit))
		assert self.parser.parse(str(parent.id)) == result(Revision.peeled(str(parent.id), parent))
		abbrev = str(commit.id)[:6]
		assert self.parser.parse(abbrev) == result(Revision.peeled(abbrev, commit))

	def test_short_hex_rejected(self) -> None:
		commit = self.builder.branch("master", self.builder.commit())
		assert self.parser.parse(str(commit.id)[:3]) is None

	def test_ambiguous_abbreviation_not_found(self) -> None:
		b = self.builder
		b.branch("master", b.commit())
		prefix, first, second = b.colliding_blobs()
		b.update("refs/tags/first", first.id)
		b.update("refs/tags/second", second.id)
		assert self.parser.parse(prefix) is None
		assert self.parser.parse(f"{prefix}/docs") is None
		assert self.parser.parse(str(first.id)) == result(Revision.peeled(str(first.id), first))

	def test_parse_commit_sha_visible_from_tag(self) -> None:
		b = self.builder
		parent = b.commit()
		commit = b.commit(parent)
		b.branch("master", b.commit())
		b.update("refs/tags/tag", b.tag("tag", commit).id)
		assert self.parser.parse(str(commit.id)) == result(Revision.peeled(str(commit.id), commit))
		assert self.parser.parse(str(parent.id)) == result(Revision.peeled(str(parent.id), parent))

	def test_parse_commit_sha_visible_from_other(self) -> None:
		b = self.builder
		parent = b.commit()
		commit = b.commit(parent)
		b.branch("master", b.commit())
		b.update("refs/tags/tag", b.tag("tag", b.commit()).id)
		b.update("refs/meta/config", commit.id)
		assert self.parser.parse(str(commit.id)) == result(Revision.peeled(str(commit.id), commit))
		assert self.parser.parse(str(parent.id)) == result(Revision.peeled(str(parent.id), parent))

	def test_parse_commit_sha_visible_from_change(self) -> None:
		b = self.builder
		parent = b.commit()
		commit = b.commit(parent)
		b.branch("master", b.commit())
		b.update("refs/changes/01/0001", commit.id)
		assert self.parser.parse(str(commit.id)) == result(Revision.peeled(str(commit.id), commit))
		assert self.parser.parse(str(parent.id)) is None

	def test_parse_non_visible_commit_sha(self) -> None:
		other = self.builder.commit()
		self.builder.branch("master", self.builder.commit())
		assert self.parser.parse(str(other.id)) is None
		self.builder.branch("other", other)
		assert self.parser.parse(str(other.id)) == result(Revision.peeled(str(other.id), other))

	def test_parse_unknown(self) -> None:
		self.builder.branch("master", self.builder.commit())
		assert self.parser.parse("deadbeef") is None
		assert self.parser.parse("nope") is None
		assert self.parser.parse("") is None
		assert self.parser.parse("/") is None

	def test_parse_diff_revisions(self) -> None:
		b = self.builder
		parent = b.commit()
		commit = b.branch("master", b.commit(parent))
		other = b.branch("other", b.commit())
		new, old = Revision.peeled("master", commit), Revision.peeled("master^", parent)
		assert self.parser.parse("master^..master") == result(new, old)
		assert self.parser.parse("master^..master/") == result(new, old, "/")
		assert self.parser.parse("master^..master/path/to/a/file") == result(new, old, "/path/to/a/file")
		assert self.parser.parse("master^..master/path/to/a/..file") == result(new, old, "/path/to/a/..file")
		assert self.parser.parse("refs/heads/master^..refs/heads/master") == result(
			Revision.peeled("refs/heads/master", commit),
			Revision.peeled("refs/heads/master^", parent),
		)
		assert self.parser.parse("master~1..master") == result(new, Revision.peeled("master~1", parent))
		assert self.parser.parse("master~2..master") is None
		assert self.parser.parse("other..master") == result(new, Revision.peeled("other", other))
		assert self.parser.parse("..master") is None
		assert self.parser.parse("master..") is None

	def test_diff_old_side_visible_through_new_side(self) -> None:
		b = self.builder
		parent = b.commit()
		commit = b.commit(parent)
		b.branch("master", b.commit())
		b.update("refs/changes/01/0001", commit.id)
		expr = f"{parent.id}..{commit.id}"
		assert self.parser.parse(expr) == result(
			Revision.peeled(str(commit.id), commit),
			Revision.peeled(str(parent.id), parent),
		)
		assert self.parser.parse(f"{commit.id}..{parent.id}") is None

	def test_parse_first_parent_expression(self) -> None:
		b = self.builder
		parent = b.commit()
		commit = b.branch("master", b.commit(parent))
		assert self.parser.parse("master^!") == result(
			Revision.peeled("master", commit), Revision.peeled("master^", parent)
		)
		assert self.parser.parse("master^^!") == result(Revision.peeled("master^", parent), NULL)
		assert self.parser.parse(f"{parent.id}^!") == result(Revision.peeled(str(parent.id), parent), NULL)

		b.update("refs/tags/tag", b.tag("tag", commit).id)
		assert self.parser.parse("tag^!") == result(Revision.peeled("tag", commit), Revision.peeled("tag^", parent))
		assert self.parser.parse("tag^^!") == result(Revision.peeled("tag^", parent), NULL)
		assert self.parser.parse("master^!/docs") == result(
			Revision.peeled("master", commit), Revision.peeled("master^", parent), "/docs"
		)
		assert self.parser.parse("master^!^") is None
		assert self.parser.parse("^!") is None

	def test_first_parent_of_non_commit(self) -> None:
		b = self.builder
		b.branch("master", b.commit())
		b.update("refs/tags/blob", b.blob("blob").id)
		assert self.parser.parse("blob^!") is None
		assert self.parser.parse("blob^") is None

	def test_non_visible_diff_shas(self) -> None:
		other = self.builder.commit()
		master = self.builder.branch("master", self.builder.commit())
		assert self.parser.parse("other..master") is None
		assert self.parser.parse("master..other") is None
		self.builder.branch("other", other)
		assert self.parser.parse("other..master") == result(
			Revision.peeled("master", master), Revision.peeled("other", other)
		)
		assert self.parser.parse("master..other") == result(
			Revision.peeled("other", other), Revision.peeled("master", master)
		)

	def test_parse_tag(self) -> None:
		b = self.builder
		master = b.branch("master", b.commit())
		master_tag = b.tag("master-tag", master)
		b.update("refs/tags/master-tag", master_tag.id)
		master_tag_tag = b.tag("master-tag-tag", master_tag)
		b.update("refs/tags/master-tag-tag", master_tag_tag.id)
		assert self.parser.parse("master-tag") == result(
			Revision("master-tag", master_tag.id, ObjectType.TAG, master.id, ObjectType.COMMIT)
		)
		assert self.parser.parse("master-tag-tag") == result(
			Revision("master-tag-tag", master_tag_tag.id, ObjectType.TAG, master.id, ObjectType.COMMIT)
		)

		blob = b.blob("blob")
		b.update("refs/tags/blob", blob.id)
		blob_tag = b.tag("blob-tag", blob)
		b.update("refs/tags/blob-tag", blob_tag.id)
		assert self.parser.parse("blob") == result(Revision.peeled("blob", blob))
		assert self.parser.parse("blob-tag") == result(
			Revision("blob-tag", blob_tag.id, ObjectType.TAG, blob.id, ObjectType.BLOB)
		)

	def test_tags_shadow_branches(self) -> None:
		b = self.builder
		branch_commit = b.branch("release", b.commit())
		tag_commit = b.commit()
		b.update("refs/tags/release", tag_commit.id)
		assert self.parser.parse("release") == result(Revision.peeled("release", tag_commit))
		assert self.parser.parse("refs/heads/release") == result(
			Revision.peeled("refs/heads/release", branch_commit)
		)

	def test_other_namespaces_require_full_name(self) -> None:
		b = self.builder
		b.branch("master", b.commit())
		commit = b.commit()
		b.update("refs/meta/config", commit.id)
		assert self.parser.parse("meta/config") is None
		assert self.parser.parse("config") is None
		assert self.parser.parse("refs/meta/config") == result(Revision.peeled("refs/meta/config", commit))

	def test_ref_with_slashes_preferred_over_path(self) -> None:
		b = self.builder
		short = b.commit()
		b.update("refs/tags/foo", short.id)
		long = b.branch("foo/bar", b.commit())
		assert self.parser.parse("foo/bar/baz") == result(Revision.peeled("foo/bar", long), path="/baz")
		assert self.parser.parse("foo/baz") == result(Revision.peeled("foo", short), path="/baz")

	def test_ref_containing_at_sign(self) -> None:
		commit = self.builder.commit()
		self.builder.update("refs/experimental/author@example.com/foo", commit.id)
		assert self.parser.parse("refs/experimental/author@example.com/foo") == result(
			Revision.peeled("refs/experimental/author@example.com/foo", commit)
		)

	def test_parse_unsupported_revision_expressions(self) -> None:
		b = self.builder
		b.branch("master", b.commit(files={"blob": "blob contents"}))
		assert self.parser.parse("master^{}") is None
		assert self.parser.parse("master^{commit}") is None
		assert self.parser.parse("master:blob") is None
		assert self.parser.parse("master@{0}") is None
		assert self.parser.parse("@") is None

	def test_reparsing_canonical_name_is_stable(self) -> None:
		b = self.builder
		master = b.branch("master", b.commit(b.commit()))
		tag = b.tag("v1", master)
		b.update("refs/tags/v1", tag.id)
		for expr in ("master", "master~1", "v1", str(master.id)[:8]):
			first = self.parser.parse(expr)
			assert first is not None
			again = self.parser.parse(first.revision.name)
			assert again is not None
			assert (again.revision.id, again.revision.type) == (first.revision.id, first.revision.type)

	def test_ref_to_missing_object_is_storage_error(self) -> None:
		self.builder.branch("master", self.builder.commit())
		with (
			patch("revscope.utils.git_utils.find", return_value=None),
			pytest.raises(StorageError, match="Missing object"),
		):
			self.parser.parse("master")

	def test_corrupt_object_is_storage_error(self) -> None:
		commit = self.builder.branch("master", self.builder.commit())
		with (
			patch.object(type(self.repo), "get", side_effect=GitError("corrupt")),
			pytest.raises(StorageError, match="corrupt"),
		):
			self.parser.parse(str(commit.id)[:8])
