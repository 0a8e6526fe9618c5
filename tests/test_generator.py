import json
from types import SimpleNamespace

import pytest

from conftest import FakeOpenAI
from note_writer.exceptions import GenerationError, MissingInputError
from note_writer.generator import (
    ArticleGenerator,
    build_article_prompt,
    build_feedback_prompt,
    build_generator,
    extract_feedback,
    parse_command,
    split_title_and_body,
)
from note_writer.config import Settings
from note_writer.models import ArticleRequest, FeedbackCommand, FeedbackRequest

SUMMARY_JSON = json.dumps(
    {"summary": "要約です。", "tags": ["朝活", "#習慣", " "]}, ensure_ascii=False
)


def test_split_title_and_body_uses_first_h1():
    assert split_title_and_body("# Hello\n\nWorld") == ("Hello", "World")
    assert split_title_and_body("intro\n  # Title  \n\nbody\n") == ("Title", "body")


def test_split_title_and_body_falls_back_to_first_line():
    assert split_title_and_body("No heading\nmore text") == ("No heading", "more text")
    assert split_title_and_body("## Sub\ntext") == ("Sub", "text")


def test_split_title_and_body_empty_input():
    assert split_title_and_body("") == ("", "")


def test_parse_command_prefers_listed_order():
    assert parse_command("please /casual and /shorter") is FeedbackCommand.SHORTER
    assert parse_command("/publish") is FeedbackCommand.PUBLISH
    assert parse_command("just text") is None


def test_extract_feedback_removes_commands_and_reads_section():
    assert extract_feedback("/shorter 導入を短く") == "導入を短く"
    comment = "/regenerate\n## フィードバック\n例を増やして\n## その他\n無視"
    assert extract_feedback(comment) == "例を増やして"


def test_build_article_prompt_includes_optional_sections():
    request = ArticleRequest(
        theme="朝活",
        tone="business",
        target_length=1200,
        target_audience="会社員",
        references=["https://example.com"],
    )

    prompt = build_article_prompt(request)

    assert "## テーマ\n朝活" in prompt
    assert "目標文字数は1200文字程度です。" in prompt
    assert "ビジネスパーソン向け" in prompt
    assert "## ターゲット読者\n会社員" in prompt
    assert "## 参考URL\nhttps://example.com" in prompt
    assert "## 追加の指示" not in prompt


def test_build_feedback_prompt_adds_directive_only_for_known_commands(sample_article):
    shorter = FeedbackRequest(
        feedback="導入が長い", command=FeedbackCommand.SHORTER, original_article=sample_article
    )
    plain = FeedbackRequest(
        feedback="導入が長い", command=FeedbackCommand.REGENERATE, original_article=sample_article
    )

    assert "文字数を減らしてより簡潔にしてください。" in build_feedback_prompt(shorter)
    plain_prompt = build_feedback_prompt(plain)
    assert "簡潔に" not in plain_prompt
    assert sample_article.content in plain_prompt
    assert "## フィードバック\n導入が長い" in plain_prompt


def test_generate_article_makes_two_calls(settings):
    client = FakeOpenAI(["# 朝活のすすめ\n\n早起きは三文の徳。", SUMMARY_JSON])
    generator = ArticleGenerator(client, settings)
    request = ArticleRequest(theme="朝活", tone="technical")

    article = generator.generate_article(request, issue_number=9)

    assert article.title == "朝活のすすめ"
    assert article.content == "早起きは三文の徳。"
    assert article.word_count == 9
    assert article.summary == "要約です。"
    assert article.metadata.suggested_tags == ["朝活", "習慣"]
    assert article.metadata.issue_number == 9
    assert article.metadata.tone == "technical"
    assert article.metadata.target_audience == "一般読者"

    calls = client.responses.calls
    assert len(calls) == 2
    assert calls[0]["model"] == "test-model"
    assert calls[0]["input"][0]["role"] == "system"
    assert calls[0]["max_output_tokens"] == settings.max_tokens
    assert calls[1]["max_output_tokens"] == settings.summary_max_tokens


def test_summary_reply_that_is_not_json_becomes_summary(settings):
    client = FakeOpenAI(["タイトル\n本文", "ただの要約です。"])
    article = ArticleGenerator(client, settings).generate_article(ArticleRequest(theme="x"))

    assert article.summary == "ただの要約です。"
    assert article.metadata.suggested_tags == []


def test_summary_reply_in_code_fence_is_parsed(settings):
    fenced = f"```json\n{SUMMARY_JSON}\n```"
    client = FakeOpenAI(["# T\nbody", fenced])

    article = ArticleGenerator(client, settings).generate_article(ArticleRequest(theme="x"))

    assert article.summary == "要約です。"


def test_regenerate_carries_metadata_forward(settings, sample_article):
    client = FakeOpenAI(["# 新タイトル\n\n短くしました。", SUMMARY_JSON])
    request = FeedbackRequest(
        feedback="短く", command=FeedbackCommand.SHORTER, original_article=sample_article
    )

    article = ArticleGenerator(client, settings).regenerate_with_feedback(request)

    assert article.title == "新タイトル"
    assert article.metadata.issue_number == 42
    assert article.metadata.tone == "business"
    assert article.metadata.target_audience == "新社会人"
    assert "文字数を減らして" in client.responses.calls[0]["input"][1]["content"]


def test_empty_output_raises_generation_error(settings):
    class EmptyResponses:
        def create(self, **kwargs):
            return SimpleNamespace(output_text="", status="completed", error=None)

    generator = ArticleGenerator(SimpleNamespace(responses=EmptyResponses()), settings)

    with pytest.raises(GenerationError) as excinfo:
        generator.generate("prompt")
    assert "missing output text" in str(excinfo.value)


def test_incomplete_output_reports_reason(settings):
    class IncompleteResponses:
        def create(self, **kwargs):
            return SimpleNamespace(
                output_text=None,
                status="incomplete",
                incomplete_details=SimpleNamespace(reason="max_output_tokens"),
            )

    generator = ArticleGenerator(SimpleNamespace(responses=IncompleteResponses()), settings)

    with pytest.raises(GenerationError, match="max_output_tokens"):
        generator.generate("prompt")


def test_build_generator_requires_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(MissingInputError):
        build_generator(Settings(_env_file=None))
