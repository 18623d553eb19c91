"""OpenAI vendor adapter: schema-constrained chat completions and model listing."""

import logging
import re
from typing import Any, Dict, List, Optional
from openai import AsyncOpenAI

from toolforge.infra.config import Config, config as default_config, parse_model_list
from toolforge.infra.errors import ConfigurationError

logger = logging.getLogger("toolforge.adapters.openai")

# Model ids that cannot produce JSON text
EXCLUDED_MODEL_PATTERN = re.compile(
    r"(audio|speech|tts|image|vision|dall-e|whisper|realtime|transcribe)", re.IGNORECASE
)


class OpenAIChatClient:
    """Chat completions with a JSON-schema response format."""

    provider = "openai"

    def __init__(self, config: Optional[Config] = None):
        self.config = config or default_config
        self._client = None

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy initialization of OpenAI client."""
        if self._client is None:
            if not self.config.OPENAI_API_KEY:
                raise ConfigurationError("OPENAI_API_KEY not configured", provider=self.provider)
            self._client = AsyncOpenAI(
                api_key=self.config.OPENAI_API_KEY,
                timeout=self.config.LLM_CALL_TIMEOUT,
                max_retries=0,
            )
        return self._client

    async def complete(
        self,
        model_id: str,
        system_prompt: str,
        instruction: str,
        schema: Dict[str, Any],
    ) -> Optional[str]:
        """
        Request one completion constrained to ``schema``.

        Returns:
            The message content, or None when the reply is empty
        """
        client = self.client
        completion = await client.chat.completions.create(
            model=model_id,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": instruction},
            ],
            temperature=0.3,
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": "tool_spec",
                    "schema": schema,
                },
            },
        )

        if not completion.choices:
            return None
        return completion.choices[0].message.content


async def list_openai_models(limit: int, config: Optional[Config] = None) -> Dict[str, Any]:
    """
    List OpenAI model ids, newest first.

    Disabled (empty) unless both the API key and OPENAI_MODELS are set; a
    non-empty OPENAI_MODELS allow-list is returned without calling the API.
    """
    config = config or default_config
    if not config.OPENAI_API_KEY or not config.OPENAI_MODELS:
        return {"models": []}

    env_models = parse_model_list(config.OPENAI_MODELS)[:limit]
    if env_models:
        return {"models": env_models}

    try:
        client = AsyncOpenAI(api_key=config.OPENAI_API_KEY, timeout=config.LLM_CALL_TIMEOUT)
        response = await client.models.list()
        models = [
            model for model in response.data
            if isinstance(getattr(model, "created", None), int)
            and not EXCLUDED_MODEL_PATTERN.search(model.id)
        ]
        models.sort(key=lambda model: model.created, reverse=True)
        return {"models": [model.id for model in models[:limit]]}
    except Exception as e:
        logger.warning(f"Failed to list OpenAI models: {e}")
        return {"models": [], "error": str(e) or "Failed to list OpenAI models"}
