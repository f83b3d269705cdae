"""Tests for the revision value types."""

from __future__ import annotations

import pytest
from pygit2 import Oid

from revscope.revision import NULL, ObjectType, ParseResult, Revision, is_null
from tests.base import GitTestBase

ID = Oid(hex="c0ffee" + "0" * 34)


@pytest.mark.unit
class TestRevision:
	"""Revision construction and display."""

	def test_null_sentinel(self) -> None:
		assert is_null(NULL)
		assert Revision.NULL is NULL
		assert NULL.name == ""
		assert NULL.id == Oid(raw=bytes(20))
		assert NULL.type is None
		assert not is_null(Revision("", NULL.id, None, NULL.peeled_id, None))

	def test_unpeeled(self) -> None:
		rev = Revision.unpeeled("master", ID)
		assert rev.id == ID
		assert rev.peeled_id == ID
		assert rev.type is None

	def test_parse_result_defaults(self) -> None:
		result = ParseResult(Revision.unpeeled("master", ID))
		assert is_null(result.old_revision)
		assert result.path == ""

	def test_str_omits_redundant_fields(self) -> None:
		text = str(Revision("master", ID, ObjectType.COMMIT, ID, ObjectType.COMMIT))
		assert text == f"Revision(name='master', id={ID}, type=commit)"


@pytest.mark.unit
@pytest.mark.git
class TestRevisionFromObjects(GitTestBase):
	"""Revisions built from real objects."""

	def test_peeled_commit(self) -> None:
		commit = self.builder.commit()
		rev = Revision.peeled("master", commit)
		assert rev == Revision("master", commit.id, ObjectType.COMMIT, commit.id, ObjectType.COMMIT)

	def test_peeled_rejects_tag(self) -> None:
		tag = self.builder.tag("v1", self.builder.commit())
		with pytest.raises(ValueError, match="expected non-tag"):
			Revision.peeled("v1", tag)

	def test_peel_unwinds_tag_chains(self) -> None:
		commit = self.builder.commit()
		inner = self.builder.tag("inner", commit)
		outer = self.builder.tag("outer", inner)
		rev = Revision.peel("outer", outer, self.repo)
		assert rev.id == outer.id
		assert rev.type is ObjectType.TAG
		assert rev.peeled_id == commit.id
		assert rev.peeled_type is ObjectType.COMMIT

	def test_peel_non_tag_is_peeled(self) -> None:
		blob = self.builder.blob("contents")
		assert Revision.peel("blob", blob, self.repo) == Revision.peeled("blob", blob)
