"""Anthropic vendor adapter: forced tool-call completions and model listing."""

import json
import logging
import re
from typing import Any, Dict, Optional
import anthropic

from toolforge.infra.config import Config, config as default_config, parse_model_list
from toolforge.infra.errors import ConfigurationError

logger = logging.getLogger("toolforge.adapters.anthropic")

MAX_OUTPUT_TOKENS = 4096
TOOL_NAME = "tool_spec"

EXCLUDED_MODEL_PATTERN = re.compile(r"(audio|speech|tts|image|vision|dall-e|whisper)", re.IGNORECASE)


class AnthropicChatClient:
    """
    Messages API client.

    The output schema is enforced by forcing a single tool call whose input
    schema is the tool spec schema; the tool input is returned as JSON text.
    """

    provider = "anthropic"

    def __init__(self, config: Optional[Config] = None):
        self.config = config or default_config
        self._client = None

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        """Lazy initialization of Anthropic client."""
        if self._client is None:
            if not self.config.ANTHROPIC_API_KEY:
                raise ConfigurationError("ANTHROPIC_API_KEY not configured", provider=self.provider)
            self._client = anthropic.AsyncAnthropic(
                api_key=self.config.ANTHROPIC_API_KEY,
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
        client = self.client
        try:
            message = await client.messages.create(
                model=model_id,
                max_tokens=MAX_OUTPUT_TOKENS,
                temperature=0.3,
                system=system_prompt,
                messages=[{"role": "user", "content": instruction}],
                tools=[
                    {
                        "name": TOOL_NAME,
                        "description": "Emit the generated tool specification.",
                        "input_schema": schema,
                    }
                ],
                tool_choice={"type": "tool", "name": TOOL_NAME},
            )
        except anthropic.APIError as e:
            logger.error(f"Anthropic API error: {e}")
            raise

        for block in message.content:
            if block.type == "tool_use" and block.input is not None:
                return json.dumps(block.input)

        text = "".join(block.text for block in message.content if block.type == "text")
        return text or None


async def list_anthropic_models(limit: int, config: Optional[Config] = None) -> Dict[str, Any]:
    """List Anthropic model ids (allow-list first, then the live API)."""
    config = config or default_config
    if not config.ANTHROPIC_API_KEY or not config.ANTHROPIC_MODELS:
        return {"models": []}

    env_models = parse_model_list(config.ANTHROPIC_MODELS)[:limit]
    if env_models:
        return {"models": env_models}

    try:
        client = anthropic.AsyncAnthropic(api_key=config.ANTHROPIC_API_KEY, timeout=config.LLM_CALL_TIMEOUT)
        page = await client.models.list(limit=100)
        models = sorted(
            model.id for model in page.data
            if model.id and not EXCLUDED_MODEL_PATTERN.search(model.id)
        )
        return {"models": models[:limit]}
    except anthropic.APIError as e:
        logger.warning(f"Failed to list Anthropic models: {e}")
        return {"models": [], "error": f"Anthropic API error: {e}"}
    except Exception as e:
        logger.warning(f"Failed to list Anthropic models: {e}")
        return {"models": [], "error": str(e) or "Failed to list Anthropic models"}
