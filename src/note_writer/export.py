"""Plain-text rendering of an article for pasting into the note.com editor."""

from __future__ import annotations

import re

from .models import GeneratedArticle

# note.com code blocks ignore language hints.
CODE_FENCE_LANG_PATTERN = re.compile(r"```[\w+-]+\n")


def format_for_note(article: GeneratedArticle) -> str:
    """Return `# title` followed by the body with fence languages removed.

    Image markdown is left as written; note.com accepts `![alt](url)` as is.
    """
    content = CODE_FENCE_LANG_PATTERN.sub("```\n", article.content)
    return f"# {article.title}\n\n{content}"
