"""
LLM summarizer for thoughts.

Summarizes saved web pages. Supports both Anthropic and OpenAI APIs.
Summaries are an enhancement: any failure returns None and the caller
keeps the plain note.
"""

import json
import logging
import os
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from thoughts.config import load_config

logger = logging.getLogger(__name__)


class Summary(BaseModel):
    """Schema for LLM summary output."""

    summary: str = Field(description="A few paragraphs summarizing the page")
    key_points: list[str] = Field(default_factory=list, description="Main takeaways")
    tags: list[str] = Field(default_factory=list, description="Short topical tags")


# Per-provider endpoint, credentials and default model
PROVIDERS: dict[str, dict[str, str]] = {
    "anthropic": {
        "base_url": "https://api.anthropic.com/v1",
        "path": "/messages",
        "key_setting": "anthropic_api_key",
        "key_env": "ANTHROPIC_API_KEY",
        "model": "claude-haiku-4-5-20251001",
    },
    "openai": {
        "base_url": "https://api.openai.com/v1",
        "path": "/chat/completions",
        "key_setting": "openai_api_key",
        "key_env": "OPENAI_API_KEY",
        "model": "gpt-4o-mini",
    },
}

# Pages are long and summaries are slower than short completions
SUMMARY_TIMEOUT = 60.0
SUMMARY_MAX_TOKENS = 1024

# Keep prompts well inside the model's context window
MAX_INPUT_CHARS = 12000

SUMMARY_PROMPT = """Summarize the following web page for a personal notes archive.

## Title
{title}

## Content
```
{content}
```

## Output
Return ONLY valid JSON matching this schema:
```json
{{
  "summary": "2-4 short paragraphs",
  "key_points": ["point 1", "point 2"],
  "tags": ["tag1", "tag2"]
}}
```

Return ONLY the JSON object, no explanation or markdown."""


class Summarizer:
    """Summarizes page text through the configured LLM provider."""

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        config = config if config is not None else load_config()
        llm = config.get("llm", {})

        self.provider = llm.get("provider", "anthropic")
        if self.provider not in PROVIDERS:
            raise ValueError(f"Unknown LLM provider: {self.provider}")
        settings = PROVIDERS[self.provider]

        self.api_key = llm.get(settings["key_setting"]) or os.environ.get(settings["key_env"])
        if not self.api_key:
            raise ValueError(
                f"No API key for {self.provider}. Set {settings['key_env']} "
                f"or llm.{settings['key_setting']} in config."
            )

        self.model = llm.get("model", settings["model"])
        self.url = llm.get("base_url", settings["base_url"]).rstrip("/") + settings["path"]
        self.timeout = llm.get("summary_timeout", SUMMARY_TIMEOUT)
        self.max_tokens = llm.get("summary_max_tokens", llm.get("max_tokens", SUMMARY_MAX_TOKENS))
        self.transport = transport

    def summarize(self, title: str, text: str) -> Summary | None:
        """
        Summarize page text.

        Returns None if the API call or the response parsing fails.
        """
        prompt = SUMMARY_PROMPT.format(title=title, content=text[:MAX_INPUT_CHARS])
        try:
            data = self._post(prompt)
            return self._parse_response(self._reply_text(data))
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning("Summary unavailable for %r: %s", title, e)
            return None

    def _post(self, prompt: str) -> dict[str, Any]:
        """Send one user message and return the decoded JSON reply."""
        messages = [{"role": "user", "content": prompt}]
        if self.provider == "anthropic":
            headers = {"x-api-key": self.api_key, "anthropic-version": "2023-06-01"}
            payload = {"model": self.model, "max_tokens": self.max_tokens, "messages": messages}
        else:
            headers = {"Authorization": f"Bearer {self.api_key}"}
            payload = {
                "model": self.model,
                "max_tokens": self.max_tokens,
                "messages": messages,
                "response_format": {"type": "json_object"},
            }
        payload["temperature"] = 0.3

        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            response = client.post(self.url, headers=headers, json=payload)
            response.raise_for_status()
            return response.json()

    def _reply_text(self, data: dict[str, Any]) -> str:
        if self.provider == "anthropic":
            return data["content"][0]["text"]
        return data["choices"][0]["message"]["content"]

    def _parse_response(self, response: str) -> Summary:
        """Parse and validate LLM response. Raises ValueError."""
        text = response.strip()
        if text.startswith("```"):
            # Remove opening ``` and optional language tag
            lines = text.split("\n")[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            text = "\n".join(lines)

        try:
            return Summary(**json.loads(text))
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            raise ValueError(f"Unparsable summary: {e}") from e
