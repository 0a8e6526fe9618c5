from note_writer.export import format_for_note
from note_writer.models import GeneratedArticle


def test_format_for_note_prepends_title_and_strips_fence_languages():
    article = GeneratedArticle(
        title="Python入門",
        content="コード:\n\n```python\nprint('hi')\n```\n\n![図](https://example.com/a.png)",
    )

    text = format_for_note(article)

    assert text.startswith("# Python入門\n\n")
    assert "```python" not in text
    assert "```\nprint('hi')\n```" in text
    assert "![図](https://example.com/a.png)" in text


def test_format_for_note_is_idempotent(sample_article):
    assert format_for_note(sample_article) == format_for_note(sample_article)
