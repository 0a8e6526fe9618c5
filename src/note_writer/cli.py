"""Command-line entry points for the article workflows."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich import print as rprint
from rich.logging import RichHandler
from rich.markup import escape

from .config import get_settings
from .exceptions import NoteWriterError
from .generator import build_generator
from .git_ops import GitRepository
from .github import GitHubClient
from .workflow import export_for_note, generate_from_issue, regenerate_from_feedback

PREVIEW_CHARS = 500
RULE = "━" * 52

logger = logging.getLogger(__name__)

app = typer.Typer(help="Draft note.com articles from GitHub issues and review them in PRs.")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


@contextmanager
def _abort_on_error() -> Iterator[None]:
    """Log any failure and exit non-zero; completed side effects are kept."""
    try:
        yield
    except NoteWriterError as exc:
        logger.error("%s", exc.message)
        raise typer.Exit(code=1)
    except Exception:
        logger.exception("Unexpected error")
        raise typer.Exit(code=1)


def _github_client(settings) -> GitHubClient:
    return GitHubClient(
        token=settings.github_token or "",
        repository=settings.github_repository or "",
        base_url=settings.github_api_url,
    )


@app.command("generate")
def generate_command(
    issue_number: int = typer.Option(
        0, "--issue", "-i", envvar="ISSUE_NUMBER", help="Issue to draft an article from."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """Draft an article from an issue, commit it on a new branch and open a draft PR."""
    setup_logging(verbose)
    with _abort_on_error():
        settings = get_settings()
        generator = build_generator(settings)
        with _github_client(settings) as github:
            result = generate_from_issue(
                issue_number,
                github=github,
                generator=generator,
                git=GitRepository(),
                articles_dir=Path(settings.articles_dir),
                base_branch=settings.base_branch,
            )
    article = result.article
    rprint(f"[green]Drafted {escape(article.title)} ({article.word_count} chars)[/green]")
    rprint(f"[cyan]PR: {escape(result.pull_request_url)}[/cyan]")


@app.command("regenerate")
def regenerate_command(
    pr_number: int = typer.Option(
        0, "--pr", "-p", envvar="PR_NUMBER", help="Pull request holding the article."
    ),
    comment: str = typer.Option(
        "", "--comment", "-c", envvar="COMMENT_BODY", help="Review comment text."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """Revise the article on a PR branch from a review comment."""
    setup_logging(verbose)
    with _abort_on_error():
        settings = get_settings()
        generator = build_generator(settings)
        with _github_client(settings) as github:
            result = regenerate_from_feedback(
                pr_number,
                comment,
                github=github,
                generator=generator,
                git=GitRepository(),
                articles_dir=Path(settings.articles_dir),
            )
    rprint(
        f"[green]Updated {escape(str(result.article_path))} "
        f"({result.article.word_count} chars)[/green]"
    )


@app.command("publish")
def publish_command(
    path: Optional[Path] = typer.Option(
        None,
        "--path",
        envvar="ARTICLE_PATH",
        help="Article to export; defaults to the latest file in the articles directory.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """Export an article as note.com-ready plain text and print posting steps."""
    setup_logging(verbose)
    with _abort_on_error():
        settings = get_settings()
        result = export_for_note(
            path,
            articles_dir=Path(settings.articles_dir),
            exports_dir=Path(settings.exports_dir),
        )

    rprint(f"[green]Exported {escape(str(result.export_path))}[/green]")
    rprint(f"[cyan]{result.article.word_count} chars[/cyan]")
    rprint(RULE)
    rprint("note.comへの投稿手順:")
    rprint("1. https://note.com/new にアクセス")
    rprint("2. 「テキスト」を選択")
    rprint(f"3. 次のファイルの内容をコピー＆ペースト: {escape(str(result.export_path))}")
    rprint("4. プレビューを確認")
    rprint("5. 「公開」または「下書き保存」をクリック")
    rprint(RULE)
    if result.article.metadata.suggested_tags:
        rprint("推奨タグ:")
        for tag in result.article.metadata.suggested_tags:
            rprint(f"   #{escape(tag)}")
    rprint(f"[dim]{escape(result.text[:PREVIEW_CHARS])}...[/dim]")


def main():
    app()


if __name__ == "__main__":
    main()
