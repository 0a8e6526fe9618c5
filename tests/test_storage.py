from datetime import date

from note_writer.frontmatter import ParseMode
from note_writer.storage import (
    article_filename,
    export_path_for,
    find_article_files,
    find_latest_article,
    load_article,
    save_article,
    slugify,
)


def test_slugify_keeps_japanese_and_ascii():
    assert slugify("Hello, World! 朝活のススメ") == "hello-world-朝活のススメ"
    assert slugify("!!!") == "article"
    assert len(slugify("a" * 80)) == 50


def test_article_filename_is_date_prefixed():
    assert article_filename("My Post", date(2025, 3, 4)) == "2025-03-04-my-post.md"


def test_save_and_load_article(tmp_path, sample_article):
    path = save_article(sample_article, tmp_path / "articles")

    assert path.parent == tmp_path / "articles"
    assert path.name.endswith("-リモートワークを続けるコツ.md")
    loaded = load_article(path, ParseMode.EXPORT)
    assert loaded.title == sample_article.title
    assert loaded.metadata.suggested_tags == sample_article.metadata.suggested_tags


def test_save_article_overwrites_explicit_path(tmp_path, sample_article):
    target = tmp_path / "articles" / "2024-12-31-old.md"
    target.parent.mkdir()
    target.write_text("old", encoding="utf-8")

    path = save_article(sample_article, tmp_path / "articles", path=target)

    assert path == target
    assert target.read_text(encoding="utf-8").startswith("---\n")
    assert find_article_files(tmp_path / "articles") == [target]


def test_find_latest_article(tmp_path):
    assert find_latest_article(tmp_path / "missing") is None
    for name in ("2025-01-02-b.md", "2025-01-10-c.md", "2024-12-01-a.md", "notes.txt"):
        (tmp_path / name).write_text("x", encoding="utf-8")

    assert [p.name for p in find_article_files(tmp_path)] == [
        "2024-12-01-a.md",
        "2025-01-02-b.md",
        "2025-01-10-c.md",
    ]
    assert find_latest_article(tmp_path).name == "2025-01-10-c.md"


def test_export_path_for(tmp_path):
    path = export_path_for(tmp_path / "articles" / "2025-01-10-c.md", tmp_path / "exports")

    assert path == tmp_path / "exports" / "2025-01-10-c-note.txt"
