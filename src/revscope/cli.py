"""Command-line interface for inspecting revisions in a local repository."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.text import Text

from revscope import __version__
from revscope.config.loader import ConfigLoader
from revscope.errors import RevscopeError
from revscope.history import log_page
from revscope.parser import RevisionParser
from revscope.refs import list_branches, list_tags
from revscope.revision import is_null
from revscope.time_cache import TimeCache
from revscope.utils.git_utils import find, open_repository
from revscope.utils.log_setup import display_error_summary, setup_logging
from revscope.visibility.cache import VisibilityCache

if TYPE_CHECKING:
	from pygit2 import Oid
	from pygit2.repository import Repository

	from revscope.config.schema import AppConfigSchema
	from revscope.refs import RefEntry
	from revscope.revision import Revision

logger = logging.getLogger(__name__)

EXIT_NOT_FOUND = 1
EXIT_ERROR = 2

console = Console()

app = typer.Typer(
	help=f"revscope - Resolve revision expressions against browsable refs\n\nVersion: {__version__}",
	no_args_is_help=True,
	context_settings={"help_option_names": ["-h", "--help"]},
)


@dataclass
class CliState:
	"""Options shared by every command."""

	repo_path: Path | None = None
	config_file: Path | None = None

	def load(self) -> tuple[Repository, AppConfigSchema]:
		config = ConfigLoader(self.config_file).get
		return open_repository(self.repo_path), config


RepoOpt = Annotated[
	Path | None,
	typer.Option("--repo", "-r", help="Path inside the repository (default: current directory)"),
]

ConfigOpt = Annotated[
	Path | None,
	typer.Option("--config", "-c", help="Path to config file"),
]

LimitOpt = Annotated[
	int | None,
	typer.Option("--limit", "-n", min=1, help="Page size (default: log.page_size from config)"),
]


def _version_callback(value: bool) -> None:
	if value:
		typer.echo(f"revscope version: {__version__}")
		raise typer.Exit


@app.callback()
def global_options(
	ctx: typer.Context,
	repo: RepoOpt = None,
	config: ConfigOpt = None,
	is_verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose logging.")] = False,
	_version: Annotated[
		bool | None,
		typer.Option("--version", help="Show version and exit.", callback=_version_callback, is_eager=True),
	] = None,
) -> None:
	"""Global CLI options and logging setup."""
	setup_logging(is_verbose=is_verbose)
	ctx.obj = CliState(repo, config)


def _fail(message: str, code: int) -> typer.Exit:
	if code == EXIT_NOT_FOUND:
		console.print(Text(message, style="yellow"))
	else:
		display_error_summary(message)
	return typer.Exit(code)


def _print(text: str | Text) -> None:
	console.print(text, soft_wrap=True, highlight=False, markup=False)


def _print_revision(label: str, rev: Revision) -> None:
	line = Text(f"{label}: ", style="bold")
	line.append(f"{rev.name} {rev.id}")
	if rev.type is not None:
		line.append(f" {rev.type.name.lower()}")
	if rev.peeled_id != rev.id and rev.peeled_type is not None:
		line.append(f" -> {rev.peeled_id} {rev.peeled_type.name.lower()}")
	_print(line)


def _print_ref(entry: RefEntry) -> None:
	marker = "*" if entry.is_head else " "
	_print(f"{marker} {entry.name} {entry.revision.id}")


def _resolve_start(repo: Repository, start: str) -> Oid:
	try:
		obj = find(repo, start)
	except ValueError as e:
		msg = f"Invalid or ambiguous start: {start}"
		raise typer.BadParameter(msg, param_hint="--start") from e
	if obj is None:
		raise _fail(f"Start not found: {start}", EXIT_NOT_FOUND)
	return obj.id


@app.command()
def parse(
	ctx: typer.Context,
	expr: Annotated[str, typer.Argument(help="Revision expression, e.g. master, v1.0..v1.1/docs or c0ffee^!")],
) -> None:
	"""Resolve a revision expression and print what it names."""
	state: CliState = ctx.obj
	try:
		repo, config = state.load()
		parser = RevisionParser(repo, VisibilityCache.from_config(config.visibility))
		result = parser.parse(expr)
	except RevscopeError as e:
		raise _fail(str(e), EXIT_ERROR) from e
	if result is None:
		raise _fail(f"Not found: {expr}", EXIT_NOT_FOUND)

	_print_revision("revision", result.revision)
	if not is_null(result.old_revision):
		_print_revision("old", result.old_revision)
	if result.path:
		_print(Text("path: ", style="bold") + Text(result.path))


@app.command()
def log(
	ctx: typer.Context,
	expr: Annotated[str, typer.Argument(help="Revision or range, e.g. master or v1.0..master")],
	start: Annotated[str | None, typer.Option("--start", "-s", help="First commit of the page")] = None,
	limit: LimitOpt = None,
) -> None:
	"""Print one page of history for a revision or range."""
	state: CliState = ctx.obj
	try:
		repo, config = state.load()
		parser = RevisionParser(repo, VisibilityCache.from_config(config.visibility))
		result = parser.parse(expr)
		if result is None:
			raise _fail(f"Not found: {expr}", EXIT_NOT_FOUND)
		start_id = _resolve_start(repo, start) if start else None
		page = log_page(repo, result, limit or config.log.page_size, start_id, config.log.topo_sort)
	except RevscopeError as e:
		raise _fail(str(e), EXIT_ERROR) from e
	if page is None:
		raise _fail(f"Not a commit: {expr}", EXIT_NOT_FOUND)

	for commit in page.items:
		summary = commit.message.splitlines()[0] if commit.message else ""
		_print(Text(str(commit.id)[:12], style="yellow") + Text(f" {summary}"))
	if page.previous_start is not None:
		_print(f"previous: {page.previous_start}")
	if page.next_start is not None:
		_print(f"next: {page.next_start}")


@app.command()
def refs(
	ctx: typer.Context,
	limit: Annotated[int, typer.Option("--limit", "-n", min=0, help="Maximum entries per list (0 for all)")] = 0,
) -> None:
	"""List branches and tags the way a repository index shows them."""
	state: CliState = ctx.obj
	try:
		repo, config = state.load()
		branches = list_branches(repo, limit)
		tags = list_tags(repo, TimeCache.from_config(config.time_cache), limit)
	except RevscopeError as e:
		raise _fail(str(e), EXIT_ERROR) from e

	_print(Text("Branches", style="bold"))
	for entry in branches:
		_print_ref(entry)
	_print(Text("Tags", style="bold"))
	for entry in tags:
		_print_ref(entry)


def main() -> int:
	"""Run the CLI application."""
	return app()


if __name__ == "__main__":
	sys.exit(main())
