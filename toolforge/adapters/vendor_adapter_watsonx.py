"""IBM watsonx vendor adapter over the REST API."""

import logging
import re
from typing import Any, Dict, Optional
import httpx

from toolforge.infra.config import Config, config as default_config, parse_model_list
from toolforge.infra.errors import ConfigurationError, GenerationFailure

logger = logging.getLogger("toolforge.adapters.watsonx")

IAM_TOKEN_URL = "https://iam.cloud.ibm.com/identity/token"
API_VERSION = "2024-03-20"
MAX_OUTPUT_TOKENS = 4096

EXCLUDED_MODEL_PATTERN = re.compile(r"(audio|speech|tts|image|vision|dall-e|whisper)", re.IGNORECASE)


class WatsonxTokenError(Exception):
    """The IAM token exchange failed."""


async def fetch_iam_token(http_client: httpx.AsyncClient, api_key: str) -> str:
    """Exchange an IBM Cloud API key for a bearer token."""
    response = await http_client.post(
        IAM_TOKEN_URL,
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        data={
            "grant_type": "urn:ibm:params:oauth:grant-type:apikey",
            "apikey": api_key,
        },
    )
    if response.status_code != 200:
        raise WatsonxTokenError(f"Watsonx IAM error: {response.text}")

    access_token = response.json().get("access_token")
    if not access_token:
        raise WatsonxTokenError("Watsonx IAM token missing access_token")
    return access_token


def _base_url(config: Config) -> str:
    return config.WATSONX_URL.rstrip("/")


class WatsonxChatClient:
    """watsonx.ai chat endpoint with a JSON-object response format."""

    provider = "watsonx"

    def __init__(self, config: Optional[Config] = None):
        self.config = config or default_config

    async def complete(
        self,
        model_id: str,
        system_prompt: str,
        instruction: str,
        schema: Dict[str, Any],
    ) -> Optional[str]:
        # The chat endpoint only takes a JSON-object format; the schema
        # itself travels in the instruction.
        if not self.config.WATSONX_API_KEY or not self.config.WATSONX_URL:
            raise ConfigurationError("WATSONX_API_KEY and WATSONX_URL must be configured", provider=self.provider)
        if not self.config.WATSONX_PROJECT_ID:
            raise ConfigurationError("WATSONX_PROJECT_ID not configured", provider=self.provider)

        async with httpx.AsyncClient(timeout=self.config.LLM_CALL_TIMEOUT) as http_client:
            try:
                access_token = await fetch_iam_token(http_client, self.config.WATSONX_API_KEY)
            except WatsonxTokenError as e:
                raise GenerationFailure(str(e), provider=self.provider)

            response = await http_client.post(
                f"{_base_url(self.config)}/ml/v1/text/chat",
                params={"version": API_VERSION},
                headers={"Authorization": f"Bearer {access_token}"},
                json={
                    "model_id": model_id,
                    "project_id": self.config.WATSONX_PROJECT_ID,
                    "messages": [
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": instruction},
                    ],
                    "response_format": {"type": "json_object"},
                    "temperature": 0.3,
                    "max_tokens": MAX_OUTPUT_TOKENS,
                },
            )

        if response.status_code != 200:
            raise GenerationFailure(
                f"Watsonx chat error: {response.text}",
                provider=self.provider,
                status_code=response.status_code,
            )

        choices = response.json().get("choices") or []
        if not choices:
            return None
        return (choices[0].get("message") or {}).get("content")


async def list_watsonx_models(limit: int, config: Optional[Config] = None) -> Dict[str, Any]:
    """List watsonx foundation model ids (allow-list first, then the live API)."""
    config = config or default_config
    if not config.WATSONX_API_KEY or not config.WATSONX_URL or not config.IBM_WATSON_MODELS:
        return {"models": []}

    env_models = parse_model_list(config.IBM_WATSON_MODELS)[:limit]
    if env_models:
        return {"models": env_models}

    try:
        async with httpx.AsyncClient(timeout=config.LLM_CALL_TIMEOUT) as http_client:
            try:
                access_token = await fetch_iam_token(http_client, config.WATSONX_API_KEY)
            except WatsonxTokenError as e:
                return {"models": [], "error": str(e)}

            response = await http_client.get(
                f"{_base_url(config)}/ml/v1/models",
                params={"version": API_VERSION},
                headers={"Authorization": f"Bearer {access_token}"},
            )
        if response.status_code != 200:
            return {"models": [], "error": f"Watsonx models error: {response.text}"}

        resources = response.json().get("resources") or []
        model_ids = [
            model.get("model_id") or model.get("name") or model.get("id")
            for model in resources
        ]
        models = sorted(
            model_id for model_id in model_ids
            if model_id and not EXCLUDED_MODEL_PATTERN.search(model_id)
        )
        return {"models": models[:limit]}
    except Exception as e:
        logger.warning(f"Failed to list watsonx models: {e}")
        return {"models": [], "error": str(e) or "Failed to list Watsonx models"}
