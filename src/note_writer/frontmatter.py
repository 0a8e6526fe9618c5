"""Serialize articles to front-matter Markdown documents and read them back.

Document layout::

    ---
    title: "..."
    summary: "..."
    tags: ["...", "..."]
    issueNumber: 12
    generatedAt: "2025-01-15T09:30:00+00:00"
    wordCount: 1834
    tone: "casual"
    targetAudience: "..."
    ---

    # Title

    body

    ---

    *attribution*

Quoted values are JSON string literals so quotes and newlines survive a round
trip. Loading is lenient: a document without a header block is read through
the degraded path instead of failing.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List

from .models import DEFAULT_TONE, ArticleMetadata, GeneratedArticle

DELIMITER = "---"
FOOTER_ATTRIBUTION = "*この記事はAIによって生成されました。*"


class ParseMode(str, Enum):
    """How much of the header a load keeps.

    REGENERATE drops suggested tags (the revision asks for fresh ones);
    EXPORT keeps them for the publishing checklist.
    """

    REGENERATE = "regenerate"
    EXPORT = "export"


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _heading_text(title: str) -> str:
    """Collapse a multi-line title onto the single `# ` heading line."""
    return " ".join(part.strip() for part in title.split("\n") if part.strip())


def _split_lines(document: str) -> List[str]:
    """Split on LF only (CRLF tolerated).

    `str.splitlines()` also breaks on U+2028, U+2029 and NEL, which JSON
    leaves unescaped inside quoted header values and which may appear in
    the body.
    """
    return [line[:-1] if line.endswith("\r") else line for line in document.split("\n")]


def serialize_article(article: GeneratedArticle) -> str:
    meta = article.metadata
    header = [
        DELIMITER,
        f"title: {_quote(article.title)}",
        f"summary: {_quote(article.summary)}",
        f"tags: {json.dumps(list(meta.suggested_tags), ensure_ascii=False)}",
        f"issueNumber: {meta.issue_number}",
        f"generatedAt: {_quote(_format_timestamp(article.generated_at))}",
        f"wordCount: {article.word_count}",
        f"tone: {_quote(meta.tone)}",
        f"targetAudience: {_quote(meta.target_audience)}",
        DELIMITER,
    ]
    lines = header + [
        "",
        f"# {_heading_text(article.title)}",
        "",
        article.content,
        "",
        DELIMITER,
        "",
        FOOTER_ATTRIBUTION,
    ]
    return "\n".join(lines) + "\n"


def _format_timestamp(value: datetime) -> str:
    """Return an ISO 8601 timestamp; assume UTC when naive."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


# --- Header decoding -------------------------------------------------------


def _scan_header(lines: List[str]) -> Dict[str, str]:
    """Read `key: value` lines; the first occurrence of a key wins."""
    fields: Dict[str, str] = {}
    for line in lines:
        key, sep, value = line.partition(":")
        if not sep:
            continue
        fields.setdefault(key.strip(), value.strip())
    return fields


def _decode_text(raw: str | None) -> str:
    if not raw:
        return ""
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = None
    if isinstance(value, str):
        return value
    # Hand-edited headers: strip the outer quotes only.
    if len(raw) >= 2 and raw[0] == raw[-1] == '"':
        raw = raw[1:-1]
    return raw.replace('\\"', '"')


def _decode_tags(raw: str | None) -> List[str]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = None
    if isinstance(value, list):
        return [str(tag).strip() for tag in value if str(tag).strip()]
    inner = raw.strip()
    if inner.startswith("[") and inner.endswith("]"):
        inner = inner[1:-1]
    tags = [piece.strip().strip('"').strip() for piece in inner.split(",")]
    return [tag for tag in tags if tag]


def _decode_int(raw: str | None) -> int:
    digits = ""
    for char in raw or "":
        if not "0" <= char <= "9":
            break
        digits += char
    return int(digits) if digits else 0


def _decode_timestamp(raw: str | None) -> datetime:
    text = _decode_text(raw)
    if text:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc)


# --- Body cleanup ----------------------------------------------------------


def _is_attribution(line: str) -> bool:
    stripped = line.strip()
    return (
        len(stripped) > 2
        and stripped.startswith("*")
        and stripped.endswith("*")
        and not stripped.startswith("**")
    )


def _strip_title_line(lines: List[str]) -> List[str]:
    index = 0
    while index < len(lines) and not lines[index].strip():
        index += 1
    if index < len(lines) and lines[index].startswith("# "):
        return lines[index + 1 :]
    return lines[index:]


def _strip_footer(lines: List[str]) -> List[str]:
    """Drop a trailing horizontal rule followed by an italic attribution."""
    end = len(lines)
    while end and not lines[end - 1].strip():
        end -= 1
    if not end or not _is_attribution(lines[end - 1]):
        return lines[:end]
    rule = end - 2
    while rule >= 0 and not lines[rule].strip():
        rule -= 1
    if rule >= 0 and lines[rule].strip() == DELIMITER:
        return lines[:rule]
    return lines[:end]


def _degraded_article(document: str) -> GeneratedArticle:
    """Best-effort load of a document that has no header block."""
    content = document.strip()
    first_line = _split_lines(content)[0] if content else ""
    return GeneratedArticle(
        title=first_line.lstrip("#").strip(),
        content=content,
        summary="",
        metadata=ArticleMetadata(),
    )


def deserialize_article(
    document: str, mode: ParseMode = ParseMode.EXPORT
) -> GeneratedArticle:
    """Parse a persisted document; the word count is recomputed from the body."""
    lines = _split_lines(document)
    if not lines or lines[0].strip() != DELIMITER:
        return _degraded_article(document)

    closing = next(
        (idx for idx in range(1, len(lines)) if lines[idx].strip() == DELIMITER),
        None,
    )
    if closing is None:
        return _degraded_article(document)

    fields = _scan_header(lines[1:closing])
    body_lines = _strip_footer(_strip_title_line(lines[closing + 1 :]))
    tags = _decode_tags(fields.get("tags")) if mode is ParseMode.EXPORT else []

    return GeneratedArticle(
        title=_decode_text(fields.get("title")),
        content="\n".join(body_lines).strip(),
        summary=_decode_text(fields.get("summary")),
        generated_at=_decode_timestamp(fields.get("generatedAt")),
        metadata=ArticleMetadata(
            issue_number=_decode_int(fields.get("issueNumber")),
            tone=_decode_text(fields.get("tone")) or DEFAULT_TONE,
            target_audience=_decode_text(fields.get("targetAudience")),
            suggested_tags=tags,
        ),
    )
