from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from note_writer.config import Settings
from note_writer.models import ArticleMetadata, GeneratedArticle


class FakeResponses:
    """Returns queued `output_text` values and records each request."""

    def __init__(self, outputs):
        self.outputs = list(outputs)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(output_text=self.outputs.pop(0), status="completed")


class FakeOpenAI:
    def __init__(self, outputs):
        self.responses = FakeResponses(outputs)


@pytest.fixture
def settings():
    return Settings(
        openai_api_key="test-key",
        github_token="gh-token",
        github_repository="octo/articles",
        generator_model="test-model",
    )


@pytest.fixture
def sample_article():
    return GeneratedArticle(
        title="リモートワークを続けるコツ",
        content="## はじめに\n\n在宅勤務は楽しい。\n\n## まとめ\n\n続けよう！",
        summary="在宅勤務を続ける3つのコツを紹介します。",
        generated_at=datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc),
        metadata=ArticleMetadata(
            issue_number=42,
            tone="business",
            target_audience="新社会人",
            suggested_tags=["リモートワーク", "働き方"],
        ),
    )
