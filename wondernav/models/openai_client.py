import httpx

from wondernav.errors import UpstreamError, UpstreamTimeoutError
from wondernav.models.base import CompletionClient
from wondernav.utils.util import logger


class OpenAICompletionClient(CompletionClient):
    """Completion backend for any OpenAI-compatible ``/chat/completions`` API."""

    def __init__(self, http: httpx.Client, base_url: str, api_key: str, model_id: str,
                 system_prompt: str, max_tokens: int = 900, temperature: float = 0.7):
        self.http = http
        self.url = f"{base_url}/chat/completions"
        self.api_key = api_key
        self.model_id = model_id
        self.system_prompt = system_prompt
        self.max_tokens = max_tokens
        self.temperature = temperature

    def complete(self, prompt: str, timeout_s: float) -> str:
        try:
            response = self.http.post(
                self.url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model_id,
                    "messages": [
                        {"role": "system", "content": self.system_prompt},
                        {"role": "user", "content": prompt},
                    ],
                    "temperature": self.temperature,
                    "max_tokens": self.max_tokens,
                },
                timeout=timeout_s,
            )
        except httpx.TimeoutException as e:
            logger.error("LLM API timed out after %.1fs", timeout_s)
            raise UpstreamTimeoutError("Completion service timed out") from e
        except httpx.HTTPError as e:
            logger.error("LLM API request failed: %s", e)
            raise UpstreamError(f"Completion service unreachable: {e}") from e

        if response.status_code != 200:
            logger.error("LLM API error %s: %s", response.status_code, response.text[:200])
            raise UpstreamError(f"Completion service returned HTTP {response.status_code}")

        try:
            result = response.json()
            text = result["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamError("Completion service returned a malformed response") from e

        if not isinstance(text, str) or not text.strip():
            raise UpstreamError("Completion service returned no text")
        logger.info("LLM API completion: %d chars, %s tokens",
                    len(text), result.get("usage", {}).get("total_tokens", "?"))
        return text
