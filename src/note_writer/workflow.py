"""Issue-to-article review workflow.

Three one-shot entry points:
- generate: issue -> article request -> draft -> branch, commit, draft PR
- regenerate: PR comment -> feedback + directive -> revised draft on the PR branch
- export: persisted article -> note.com plain text

Collaborators (GitHub client, article generator, git repository) are passed in
so tests can substitute fakes; nothing here talks to the network directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .exceptions import MissingInputError, NoArticleFoundError
from .export import format_for_note
from .frontmatter import ParseMode
from .generator import ArticleGenerator, extract_feedback, parse_command
from .git_ops import GitRepository
from .github import GitHubClient, branch_name
from .issue_parser import parse_issue_to_request
from .models import ArticleRequest, FeedbackCommand, FeedbackRequest, GeneratedArticle
from .storage import (
    find_latest_article,
    load_article,
    save_article,
    write_export,
)

logger = logging.getLogger(__name__)

DRAFT_LABEL = "📝 draft"
REVIEW_LABEL = "👀 needs-review"
FEEDBACK_LOG_CHARS = 100

COMMAND_HELP: tuple[tuple[str, str], ...] = (
    ("/regenerate", "フィードバックを反映して再生成"),
    ("/shorter", "文字数を減らす"),
    ("/longer", "文字数を増やす"),
    ("/casual", "トーンをカジュアルに"),
    ("/formal", "トーンをフォーマルに"),
    ("/publish", "承認してnote用にエクスポート"),
)

CHANGE_NOTES: dict[Optional[FeedbackCommand], str] = {
    FeedbackCommand.SHORTER: "文字数を減らしました",
    FeedbackCommand.LONGER: "文字数を増やしました",
    FeedbackCommand.CASUAL: "トーンをカジュアルに変更しました",
    FeedbackCommand.FORMAL: "トーンをフォーマルに変更しました",
}


# --- Data containers -------------------------------------------------------


@dataclass
class GenerateResult:
    article: GeneratedArticle
    request: ArticleRequest
    article_path: Path
    branch: str
    pull_request_url: str


@dataclass
class RegenerateResult:
    article: GeneratedArticle
    article_path: Path
    command: Optional[FeedbackCommand]
    feedback: str


@dataclass
class ExportResult:
    article: GeneratedArticle
    article_path: Path
    export_path: Path
    text: str


# --- Message builders ------------------------------------------------------


def build_pull_request_body(article: GeneratedArticle, issue_number: int) -> str:
    meta = article.metadata
    tags = " ".join(f"`{tag}`" for tag in meta.suggested_tags)
    command_rows = [f"| `{cmd}` | {text} |" for cmd, text in COMMAND_HELP]
    lines = [
        "## 📝 生成された記事",
        "",
        f"**タイトル**: {article.title}",
        f"**文字数**: {article.word_count}文字",
        f"**トーン**: {meta.tone}",
        f"**ターゲット読者**: {meta.target_audience}",
        "",
        "### 要約",
        article.summary,
        "",
        "### タグ候補",
        tags,
        "",
        "---",
        "",
        "### レビュー方法",
        "",
        "1. 記事の内容を確認してください",
        "2. 修正が必要な場合はコメントでフィードバックしてください",
        "3. 問題なければApproveしてマージしてください",
        "",
        "### 使えるコマンド",
        "| コマンド | 説明 |",
        "|----------|------|",
        *command_rows,
        "",
        "---",
        "",
        f"Closes #{issue_number}",
    ]
    return "\n".join(lines)


def build_issue_comment(article: GeneratedArticle, pull_request_url: str) -> str:
    lines = [
        "## 🤖 記事を生成しました！",
        "",
        f"**タイトル**: {article.title}",
        f"**文字数**: {article.word_count}文字",
        "",
        "PRをレビューしてください。フィードバックがあればPRにコメントしてください。",
        "",
        "### 使えるコマンド",
        *[f"- `{cmd}` - {text}" for cmd, text in COMMAND_HELP],
        "",
        f"[PRを確認する]({pull_request_url})",
    ]
    return "\n".join(lines)


def build_feedback_comment(
    command: Optional[FeedbackCommand], article: GeneratedArticle
) -> str:
    note = CHANGE_NOTES.get(command, "フィードバック内容を反映しました")
    lines = [
        "## 🔄 フィードバックを反映しました！",
        "",
        "**変更点**:",
        f"- {note}",
        "",
        f"**新しい文字数**: {article.word_count}文字",
        "",
        "ご確認ください。",
    ]
    return "\n".join(lines)


# --- Workflows -------------------------------------------------------------


def generate_from_issue(
    issue_number: int,
    *,
    github: GitHubClient,
    generator: ArticleGenerator,
    git: GitRepository,
    articles_dir: Path,
    base_branch: str = "main",
) -> GenerateResult:
    """Draft an article for an issue and open a draft PR for review.

    Side effects already applied stay in place when a later step fails.
    """
    if not issue_number:
        raise MissingInputError("ISSUE_NUMBER is required.")

    issue = github.get_issue(issue_number)
    logger.info("Issue #%d: %s", issue_number, issue.title)

    request = parse_issue_to_request(issue)
    logger.info(
        "Theme=%r tone=%s target_length=%d",
        request.theme,
        request.tone,
        request.target_length,
    )

    github.add_labels(issue_number, [DRAFT_LABEL])

    article = generator.generate_article(request, issue_number=issue_number)

    branch = branch_name(issue_number, article.title)
    git.create_branch(branch)
    article_path = save_article(article, articles_dir)
    logger.info("Saved %s", article_path)

    git.add(article_path)
    git.commit(f"feat: 記事生成 - {article.title}\n\nCloses #{issue_number}")
    git.push(branch)

    pull_request = github.create_pull_request(
        title=f"📝 記事: {article.title}",
        body=build_pull_request_body(article, issue_number),
        head=branch,
        base=base_branch,
        draft=True,
    )
    logger.info("Opened PR %s", pull_request.html_url)

    github.remove_label(issue_number, DRAFT_LABEL)
    github.add_labels(issue_number, [REVIEW_LABEL])
    github.add_comment(issue_number, build_issue_comment(article, pull_request.html_url))

    return GenerateResult(
        article=article,
        request=request,
        article_path=article_path,
        branch=branch,
        pull_request_url=pull_request.html_url,
    )


def regenerate_from_feedback(
    pr_number: int,
    comment_body: str,
    *,
    github: GitHubClient,
    generator: ArticleGenerator,
    git: GitRepository,
    articles_dir: Path,
) -> RegenerateResult:
    """Apply a review comment to the article on a PR branch and push the revision."""
    if not pr_number:
        raise MissingInputError("PR_NUMBER is required.")

    command = parse_command(comment_body)
    feedback = extract_feedback(comment_body)
    logger.info("Command: %s", command.value if command else "none")
    logger.info("Feedback: %s", feedback[:FEEDBACK_LOG_CHARS])

    pull_request = github.get_pull_request(pr_number)
    git.fetch(pull_request.head_ref)
    git.checkout(pull_request.head_ref)

    article_path = find_latest_article(articles_dir)
    if article_path is None:
        raise NoArticleFoundError(f"No article files found under {articles_dir}.")
    logger.info("Loading %s", article_path)

    original = load_article(article_path, ParseMode.REGENERATE)
    request = FeedbackRequest(
        feedback=feedback, command=command, original_article=original
    )
    article = generator.regenerate_with_feedback(request)
    # The service never sees the issue number; keep it explicitly.
    article = article.model_copy(
        update={
            "metadata": article.metadata.model_copy(
                update={"issue_number": original.metadata.issue_number}
            )
        }
    )

    save_article(article, articles_dir, path=article_path)
    git.add(article_path)
    label = command.value if command else "update"
    git.commit(f"refactor: フィードバック反映 - {label}\n\n{feedback[:FEEDBACK_LOG_CHARS]}")
    git.push()

    github.add_comment(pr_number, build_feedback_comment(command, article))

    return RegenerateResult(
        article=article, article_path=article_path, command=command, feedback=feedback
    )


def export_for_note(
    article_path: Optional[Path],
    *,
    articles_dir: Path,
    exports_dir: Path,
) -> ExportResult:
    """Render an article (default: the latest one) as note.com plain text."""
    path = Path(article_path) if article_path else find_latest_article(articles_dir)
    if path is None or not path.is_file():
        raise NoArticleFoundError(
            f"Article file not found: {path or articles_dir}"
        )

    article = load_article(path, ParseMode.EXPORT)
    text = format_for_note(article)
    export_path = write_export(text, path, exports_dir)
    logger.info("Exported %s -> %s", path, export_path)
    return ExportResult(
        article=article, article_path=path, export_path=export_path, text=text
    )
