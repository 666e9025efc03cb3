"""
OpenRouter Provider - Async Version
====================================

Async implementation using httpx. Requests structured JSON output with a
``json_schema`` response format.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

import httpx

from providers.llm_client import GenerationOutput
from sectionEngine.exceptions import MalformedOutputError
from sectionEngine.usage_ledger import TokenUsage

logger = logging.getLogger(__name__)


def extract_json_object(content: str) -> Dict[str, Any]:
    """
    Parse the JSON object in a model reply.

    Accepts bare JSON, a ```json fenced block, or JSON surrounded by prose.

    Raises:
        MalformedOutputError: when no JSON object can be parsed
    """
    if not content or not content.strip():
        raise MalformedOutputError("Model returned empty content")

    text = content.strip()
    if "```json" in text:
        text = text.split("```json", 1)[1].split("```", 1)[0].strip()
    elif text.startswith("```"):
        text = text.strip("`").strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}") + 1
        if start < 0 or end <= start:
            raise MalformedOutputError("No JSON object found in model output") from None
        try:
            data = json.loads(text[start:end])
        except json.JSONDecodeError as e:
            raise MalformedOutputError(f"Invalid JSON in model output: {e}") from None

    if not isinstance(data, dict):
        raise MalformedOutputError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class AsyncOpenRouterProvider:
    """
    Async LLM provider using OpenRouter API with httpx.

    Supports:
    - Async chat completion
    - Structured generation against a JSON schema
    - Concurrent requests (one short-lived client per call)
    """

    def __init__(
        self,
        model: str = "openai/gpt-5.2",
        api_key: Optional[str] = None,
        base_url: str = "https://openrouter.ai/api/v1",
        temperature: float = 0.7,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize async OpenRouter provider.

        Args:
            model: Model name
            api_key: OpenRouter API key
            base_url: API base URL
            temperature: Sampling temperature
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.model = model
        self.api_key = api_key or os.getenv("OPENROUTER_API_KEY")
        if not self.api_key:
            raise ValueError(
                "OpenRouter API key required. "
                "Set OPENROUTER_API_KEY env var or pass api_key parameter."
            )

        self.base_url = base_url
        self.temperature = temperature
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "Section Engine"
        }

    async def chat(
        self,
        messages: List[Dict[str, str]],
        response_format: Optional[Dict[str, Any]] = None
    ) -> Dict:
        """
        Async chat completion.

        Args:
            messages: List of message dicts
            response_format: Optional OpenAI-style response_format

        Returns:
            Dict with 'content', 'usage' and 'model'
        """
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "stream": False
        }

        if response_format:
            payload["response_format"] = response_format

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=self._headers()
            )

            if not response.is_success:
                logger.error(f"❌ [OpenRouter] {response.status_code}: {response.text}")

            response.raise_for_status()

            data = response.json()
            return {
                "content": data["choices"][0]["message"].get("content") or "",
                "usage": data.get("usage", {}),
                "model": data.get("model", self.model)
            }

    async def generate(self, prompt: str, output_schema: Optional[Dict[str, Any]] = None) -> GenerationOutput:
        """
        Single-prompt structured generation.

        Args:
            prompt: Full prompt text
            output_schema: JSON schema the reply must follow

        Returns:
            GenerationOutput with the parsed object and token usage

        Raises:
            httpx.HTTPError: transport or HTTP status errors
            MalformedOutputError: reply is not a JSON object
        """
        response_format = None
        if output_schema:
            response_format = {
                "type": "json_schema",
                "json_schema": {
                    "name": output_schema.get("title", "output"),
                    "strict": False,
                    "schema": output_schema
                }
            }

        response = await self.chat(
            [{"role": "user", "content": prompt}],
            response_format=response_format
        )
        return GenerationOutput(
            output=extract_json_object(response["content"]),
            usage=TokenUsage.from_provider(response["usage"]),
            model=response["model"]
        )
