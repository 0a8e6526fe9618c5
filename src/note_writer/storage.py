"""Whole-file persistence of article documents and exports."""

from __future__ import annotations

import re
from datetime import date
from pathlib import Path
from typing import List, Optional

from .frontmatter import ParseMode, deserialize_article, serialize_article
from .models import GeneratedArticle

# Keep ASCII letters/digits, hiragana, katakana and CJK ideographs.
_SLUG_STRIP_PATTERN = re.compile(r"[^a-z0-9\u3040-\u309f\u30a0-\u30ff\u4e00-\u9faf]+")
FILENAME_SLUG_LENGTH = 50
EXPORT_SUFFIX = "-note.txt"


def slugify(text: str, max_length: int = FILENAME_SLUG_LENGTH) -> str:
    slug = _SLUG_STRIP_PATTERN.sub("-", text.lower()).strip("-")
    slug = slug[:max_length].strip("-")
    return slug or "article"


def article_filename(title: str, today: Optional[date] = None) -> str:
    """Return `<YYYY-MM-DD>-<slug>.md` for a new article."""
    day = today or date.today()
    return f"{day.isoformat()}-{slugify(title)}.md"


def save_article(
    article: GeneratedArticle, directory: Path, path: Optional[Path] = None
) -> Path:
    """Write the serialized article; a new dated filename is used unless `path` is given."""
    target = path or Path(directory) / article_filename(article.title)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(serialize_article(article), encoding="utf-8")
    return target


def load_article(path: Path, mode: ParseMode = ParseMode.EXPORT) -> GeneratedArticle:
    return deserialize_article(Path(path).read_text(encoding="utf-8"), mode)


def find_article_files(directory: Path) -> List[Path]:
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == ".md")


def find_latest_article(directory: Path) -> Optional[Path]:
    """Return the newest article by its date-prefixed name, or None."""
    files = find_article_files(directory)
    return files[-1] if files else None


def export_path_for(article_path: Path, exports_dir: Path) -> Path:
    return Path(exports_dir) / f"{Path(article_path).stem}{EXPORT_SUFFIX}"


def write_export(text: str, article_path: Path, exports_dir: Path) -> Path:
    target = export_path_for(article_path, exports_dir)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    return target
