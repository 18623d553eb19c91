"""Configuration loaded from the environment."""

import os
from typing import List, Optional
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from project root
project_root = Path(__file__).parent.parent.parent
env_file = project_root / ".env"

# Existing environment variables take precedence over .env
load_dotenv(dotenv_path=env_file, override=False)


def parse_model_list(value: Optional[str]) -> List[str]:
    """Split a comma-separated model allow-list, dropping blanks."""
    if not value:
        return []
    return [entry.strip() for entry in value.split(",") if entry.strip()]


class Config:
    """Application configuration.

    Values are read when the object is built, so tests can construct a
    Config after patching the environment and hand it to components.
    """

    def __init__(self):
        # Catalog database
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./toolforge.db")

        # Sampled data store (defaults to the catalog database)
        self.DATA_SOURCE_URL: str = os.getenv("DATA_SOURCE_URL") or self.DATABASE_URL
        self.DEFAULT_DB_NAME: str = os.getenv("DEFAULT_DB_NAME", "")

        # OpenAI
        self.OPENAI_API_KEY: Optional[str] = os.getenv("OPENAI_API_KEY")
        self.OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        self.OPENAI_MODELS: Optional[str] = os.getenv("OPENAI_MODELS")

        # Anthropic
        self.ANTHROPIC_API_KEY: Optional[str] = os.getenv("ANTHROPIC_API_KEY")
        self.ANTHROPIC_MODELS: Optional[str] = os.getenv("ANTHROPIC_MODELS")

        # IBM watsonx
        self.WATSONX_API_KEY: Optional[str] = os.getenv("WATSONX_API_KEY")
        self.WATSONX_URL: Optional[str] = os.getenv("WATSONX_URL")
        self.WATSONX_PROJECT_ID: Optional[str] = os.getenv("WATSONX_PROJECT_ID")
        self.IBM_WATSON_MODELS: Optional[str] = os.getenv("IBM_WATSON_MODELS")

        # Outbound call budget in seconds
        self.LLM_CALL_TIMEOUT: float = float(os.getenv("LLM_CALL_TIMEOUT", "120"))

        # Application
        self.APP_ENV: str = os.getenv("APP_ENV", "development")
        self.DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    @property
    def default_model(self) -> str:
        """Model selector used when a request names none."""
        return f"openai:{self.OPENAI_MODEL}"


config = Config()
