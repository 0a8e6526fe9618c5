"""Turn free-form issue bodies into structured article requests.

Issue templates use `## Heading` lines to mark sections. Each logical field
accepts a Japanese heading and an English synonym; the Japanese one wins when
both are filled in. Every field has a safe default, so parsing never fails.
"""

from __future__ import annotations

import re
from typing import Dict, List

from .models import DEFAULT_TARGET_LENGTH, ArticleRequest, Issue, Tone

THEME_HEADINGS = ("テーマ", "theme")
AUDIENCE_HEADINGS = ("ターゲット読者", "target")
TONE_HEADINGS = ("トーン", "tone")
LENGTH_HEADINGS = ("文字数", "length")
INSTRUCTION_HEADINGS = ("追加指示", "参考にしてほしいこと")

BUSINESS_KEYWORDS = ("ビジネス", "business")
TECHNICAL_KEYWORDS = ("技術", "technical")

TITLE_PREFIX_PATTERN = re.compile(r"^(?:記事作成|article)[:：]\s*")
URL_PATTERN = re.compile(r"https?://[^\s()<>\[\]]+")


def _heading_name(line: str) -> str | None:
    """Return the section name when the line is a `## name` heading.

    A heading with a blank name returns "".
    """
    if not line.startswith("##") or len(line) < 3 or not line[2].isspace():
        return None
    return line[2:].strip()


def parse_issue_sections(body: str) -> Dict[str, str]:
    """Split an issue body into `{heading: trimmed text}`.

    Lines before the first heading are dropped. A heading that appears twice
    keeps the text of its last occurrence. A blank `##` heading closes the
    current section and its own lines are dropped.
    """
    sections: Dict[str, str] = {}
    current: str | None = None
    buffer: List[str] = []

    for line in body.splitlines():
        name = _heading_name(line)
        if name is not None:
            if current is not None:
                sections[current] = "\n".join(buffer).strip()
            current = name or None
            buffer = []
        elif current is not None:
            buffer.append(line)

    if current is not None:
        sections[current] = "\n".join(buffer).strip()
    return sections


def _first_section(sections: Dict[str, str], names: tuple[str, ...]) -> str:
    for name in names:
        value = sections.get(name)
        if value:
            return value
    return ""


def detect_tone(text: str) -> Tone:
    if any(keyword in text for keyword in BUSINESS_KEYWORDS):
        return "business"
    if any(keyword in text for keyword in TECHNICAL_KEYWORDS):
        return "technical"
    return "casual"


def parse_target_length(text: str) -> int:
    """Return the first ASCII digit run in `text`, or the default length."""
    digits = ""
    for char in text:
        if "0" <= char <= "9":
            digits += char
        elif digits:
            break
    value = int(digits) if digits else 0
    return value if value > 0 else DEFAULT_TARGET_LENGTH


def extract_references(body: str) -> List[str]:
    """Collect every http(s) URL in the body, in order, duplicates kept."""
    return URL_PATTERN.findall(body)


def strip_title_prefix(title: str) -> str:
    return TITLE_PREFIX_PATTERN.sub("", title.strip(), count=1).strip()


def parse_issue_to_request(issue: Issue) -> ArticleRequest:
    """Build an ArticleRequest from an issue's title and body."""
    body = issue.body or ""
    sections = parse_issue_sections(body)

    theme = _first_section(sections, THEME_HEADINGS) or strip_title_prefix(issue.title)

    return ArticleRequest(
        theme=theme,
        target_audience=_first_section(sections, AUDIENCE_HEADINGS),
        tone=detect_tone(_first_section(sections, TONE_HEADINGS)),
        target_length=parse_target_length(_first_section(sections, LENGTH_HEADINGS)),
        additional_instructions=_first_section(sections, INSTRUCTION_HEADINGS),
        references=extract_references(body),
    )
