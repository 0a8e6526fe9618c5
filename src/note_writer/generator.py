"""Article drafting and feedback-driven revision via the OpenAI Responses API.

The OpenAI client is passed in explicitly, so tests can hand a fake object
that only implements `responses.create`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from openai import APIStatusError, OpenAI

from .config import Settings, get_settings
from .exceptions import GenerationError, MissingInputError
from .models import (
    ArticleMetadata,
    ArticleRequest,
    FeedbackCommand,
    FeedbackRequest,
    GeneratedArticle,
)

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"
DEFAULT_AUDIENCE = "一般読者"
TAG_EXCERPT_CHARS = 1500

TONE_INSTRUCTIONS: dict[str, str] = {
    "casual": (
        "親しみやすく、カジュアルなトーンで書いてください。"
        "「〜ですよね」「〜しましょう！」などの表現を使ってOKです。"
    ),
    "business": (
        "ビジネスパーソン向けの落ち着いたトーンで書いてください。"
        "専門用語は適度に使いつつ、わかりやすさを重視してください。"
    ),
    "technical": (
        "技術者向けの正確なトーンで書いてください。"
        "専門用語を適切に使用し、具体的なコード例や技術的な詳細を含めてください。"
    ),
}

# Commands without an entry apply the feedback text alone.
COMMAND_DIRECTIVES: dict[FeedbackCommand, str] = {
    FeedbackCommand.SHORTER: "文字数を減らしてより簡潔にしてください。",
    FeedbackCommand.LONGER: "内容を充実させて文字数を増やしてください。",
    FeedbackCommand.CASUAL: "トーンをよりカジュアルに、親しみやすくしてください。",
    FeedbackCommand.FORMAL: "トーンをよりフォーマルに、ビジネス向けにしてください。",
}

FEEDBACK_SECTION_HEADING = "## フィードバック"


# --- Text helpers ---------------------------------------------------------


def split_title_and_body(text: str) -> Tuple[str, str]:
    """Separate a leading `# Title` line from the body of generated text."""
    lines = text.strip().splitlines()
    for index, raw in enumerate(lines):
        line = raw.strip()
        if line.startswith("# "):
            body = "\n".join(lines[index + 1 :]).strip()
            return line[2:].strip(), body
    if not lines:
        return "", ""
    title = lines[0].strip().lstrip("#").strip()
    return title, "\n".join(lines[1:]).strip()


def parse_command(comment: str) -> Optional[FeedbackCommand]:
    """Return the first directive, in FeedbackCommand order, found in the comment."""
    for command in FeedbackCommand:
        if command.value in comment:
            return command
    return None


def extract_feedback(comment: str) -> str:
    """Strip directive tokens; prefer the text under `## フィードバック` if present."""
    text = comment
    for command in FeedbackCommand:
        text = text.replace(command.value, "")
    text = text.strip()

    lines = text.splitlines()
    for index, line in enumerate(lines):
        if line.rstrip() != FEEDBACK_SECTION_HEADING:
            continue
        section: List[str] = []
        for follow in lines[index + 1 :]:
            if follow.startswith("##"):
                break
            section.append(follow)
        return "\n".join(section).strip()
    return text


def _load_prompt_file(filename: str) -> str:
    path = PROMPTS_DIR / filename
    return path.read_text(encoding="utf-8")


def build_article_prompt(request: ArticleRequest) -> str:
    parts = [
        "以下のテーマで記事を書いてください。",
        "",
        "## テーマ",
        request.theme,
        "",
        "## トーン",
        TONE_INSTRUCTIONS.get(request.tone, TONE_INSTRUCTIONS["casual"]),
        "",
        "## 文字数",
        f"目標文字数は{request.target_length}文字程度です。",
    ]
    if request.target_audience:
        parts.extend(["", "## ターゲット読者", request.target_audience])
    if request.additional_instructions:
        parts.extend(["", "## 追加の指示", request.additional_instructions])
    if request.references:
        parts.extend(["", "## 参考URL", *request.references])
    parts.extend(["", "記事全文をMarkdown形式で出力してください。"])
    return "\n".join(parts)


def build_feedback_prompt(request: FeedbackRequest) -> str:
    """Merge the stored article, reviewer feedback and any canned directive."""
    parts = [
        "以下の記事に対してフィードバックがありました。"
        "フィードバックを反映して記事を改善してください。",
        "",
        "## 元の記事",
        f"# {request.original_article.title}",
        "",
        request.original_article.content,
        "",
        "## フィードバック",
        request.feedback or "(フィードバック本文なし)",
    ]
    directive = COMMAND_DIRECTIVES.get(request.command) if request.command else None
    if directive:
        parts.extend(["", directive])
    parts.extend(["", "改善した記事全文をMarkdown形式で出力してください。"])
    return "\n".join(parts)


def _parse_summary_payload(text: str) -> Tuple[str, List[str]]:
    """Read `{"summary": ..., "tags": [...]}`; plain text becomes the summary."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`").strip()
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:].strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        return text.strip(), []
    if not isinstance(data, dict):
        return text.strip(), []
    summary = str(data.get("summary") or "").strip()
    raw_tags = data.get("tags") or []
    if isinstance(raw_tags, str):
        raw_tags = raw_tags.split(",")
    tags = [str(tag).strip().lstrip("#") for tag in raw_tags if str(tag).strip()]
    return summary, tags


def _response_text_or_raise(response: object, *, step: str) -> str:
    """Extract response text or raise a clear error when output is missing."""
    text = getattr(response, "output_text", None)
    if isinstance(text, str) and text.strip():
        return text

    status = getattr(response, "status", None)
    if status == "incomplete":
        details = getattr(response, "incomplete_details", None)
        reason = getattr(details, "reason", None) if details else None
        hint = ""
        if reason == "max_output_tokens":
            hint = " Increase MAX_TOKENS or unset it (0) to remove the cap."
        raise GenerationError(f"{step} response incomplete (reason={reason}).{hint}")

    err = getattr(response, "error", None)
    if err:
        raise GenerationError(f"{step} response error: {err}", payload=err)

    raise GenerationError(f"{step} response missing output text.")


# --- Client construction --------------------------------------------------


def build_client(api_key: Optional[str] = None) -> OpenAI:
    """Create an OpenAI client; separated for easier testing."""
    return OpenAI(api_key=api_key)


def _require_api_key(settings: Settings) -> str:
    if not settings.openai_api_key:
        raise MissingInputError(
            "OPENAI_API_KEY is required. Set it in the environment or .env file."
        )
    return settings.openai_api_key


class ArticleGenerator:
    """Drafts and revises articles through a single injected OpenAI client."""

    def __init__(self, client: OpenAI, settings: Settings | None = None):
        self.client = client
        self.settings = settings or get_settings()

    def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        *,
        max_output_tokens: int | None = None,
        step: str = "Generation",
    ) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        request_kwargs = {
            "model": self.settings.generator_model,
            "input": messages,
            "temperature": self.settings.temperature,
        }
        limit = self.settings.max_tokens if max_output_tokens is None else max_output_tokens
        if limit and limit > 0:
            request_kwargs["max_output_tokens"] = limit

        logger.debug("%s request to %s", step, self.settings.generator_model)
        try:
            response = self.client.responses.create(**request_kwargs)
        except APIStatusError as exc:
            raise GenerationError(
                f"{step} request failed with status {exc.status_code}",
                status_code=exc.status_code,
                payload=exc.body,
            ) from exc
        return _response_text_or_raise(response, step=step)

    def summarize(self, title: str, body: str) -> Tuple[str, List[str]]:
        """Ask once for both the summary and the suggested tags."""
        prompt = f"タイトル: {title}\n\n{body[:TAG_EXCERPT_CHARS]}"
        text = self.generate(
            prompt,
            _load_prompt_file("summary.txt"),
            max_output_tokens=self.settings.summary_max_tokens,
            step="Summary",
        )
        return _parse_summary_payload(text)

    def _finish(self, raw_text: str, metadata: ArticleMetadata) -> GeneratedArticle:
        title, body = split_title_and_body(raw_text)
        summary, tags = self.summarize(title, body)
        return GeneratedArticle(
            title=title,
            content=body,
            summary=summary,
            metadata=metadata.model_copy(update={"suggested_tags": tags}),
        )

    def generate_article(
        self, request: ArticleRequest, issue_number: int = 0
    ) -> GeneratedArticle:
        raw = self.generate(
            build_article_prompt(request),
            _load_prompt_file("system.txt"),
            step="Article",
        )
        metadata = ArticleMetadata(
            issue_number=issue_number,
            tone=request.tone,
            target_audience=request.target_audience or DEFAULT_AUDIENCE,
        )
        article = self._finish(raw, metadata)
        logger.info("Drafted %r (%d chars)", article.title, article.word_count)
        return article

    def regenerate_with_feedback(self, request: FeedbackRequest) -> GeneratedArticle:
        """Revise an article; issue number, tone and audience carry forward."""
        raw = self.generate(
            build_feedback_prompt(request),
            _load_prompt_file("system.txt"),
            step="Revision",
        )
        original = request.original_article.metadata
        metadata = ArticleMetadata(
            issue_number=original.issue_number,
            tone=original.tone,
            target_audience=original.target_audience,
        )
        article = self._finish(raw, metadata)
        logger.info("Revised %r (%d chars)", article.title, article.word_count)
        return article


def build_generator(settings: Settings | None = None) -> ArticleGenerator:
    settings = settings or get_settings()
    client = build_client(_require_api_key(settings))
    return ArticleGenerator(client, settings)

