"""Configuration helpers for the article workflows."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", populate_by_name=True
    )

    openai_api_key: str | None = Field(None, alias="OPENAI_API_KEY")
    github_token: str | None = Field(None, alias="GITHUB_TOKEN")
    github_repository: str | None = Field(
        None,
        alias="GITHUB_REPOSITORY",
        description="Target repository as 'owner/repo'.",
    )
    github_api_url: str = Field(
        "https://api.github.com", description="Base URL of the GitHub REST API."
    )
    base_branch: str = Field("main", description="Branch that article PRs target.")
    generator_model: str = Field(
        "gpt-4.1", description="Model used for article drafting and revisions."
    )
    max_tokens: int = Field(
        4096,
        description="Max output tokens for the article call; 0 removes the cap.",
    )
    summary_max_tokens: int = Field(
        400, description="Max output tokens for the summary/tags call."
    )
    temperature: float = Field(0.7, description="Generation temperature.")
    articles_dir: str = Field(
        "articles", description="Directory holding persisted article documents."
    )
    exports_dir: str = Field(
        "exports", description="Directory receiving note.com plain-text exports."
    )


def get_settings() -> Settings:
    """Return a settings instance read from the current environment."""
    return Settings()
