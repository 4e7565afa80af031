from typing import Any, Callable, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

from wondernav.errors import UpstreamError, UpstreamTimeoutError
from wondernav.models.base import CompletionClient
from wondernav.utils.util import get_max_tokens, logger


def create_bedrock_runtime(region: str, timeout_s: float):
    """Build the bedrock-runtime client; retries are disabled so one request makes one call."""
    return boto3.client(
        service_name="bedrock-runtime",
        region_name=region,
        config=Config(
            connect_timeout=min(timeout_s, 2),
            read_timeout=timeout_s,
            retries={"total_max_attempts": 1, "mode": "standard"},
        ),
    )


class BedrockCompletionClient(CompletionClient):
    """
    Invoke Claude via AWS Bedrock's Converse API.
    The system prompt goes in the ``system`` block and the user input is sent
    as a single user message:
    [{"role": "user", "content": [{"text": "3 days in Kyoto"}]}]
    """

    def __init__(self, bedrock, model_id: str, system_prompt: str,
                 max_tokens: int = 900, temperature: float = 0.7,
                 read_timeout: Optional[float] = None,
                 runtime_factory: Optional[Callable[[float], Any]] = None):
        self.bedrock = bedrock
        self.read_timeout = read_timeout
        self.runtime_factory = runtime_factory
        # Shorter-timeout clients, keyed by whole seconds
        self._runtimes: Dict[int, Any] = {}
        self.model_id = model_id
        self.system_prompt = system_prompt
        self.max_tokens = get_max_tokens(model_id, max_tokens)
        self.temperature = temperature

    def runtime_for(self, timeout_s: float):
        """
        Pick a bedrock-runtime client whose read timeout fits ``timeout_s``.
        The shared client is used when its own timeout already fits.
        """
        if self.runtime_factory is None or self.read_timeout is None or timeout_s >= self.read_timeout:
            return self.bedrock
        seconds = max(1, int(timeout_s))
        if seconds not in self._runtimes:
            self._runtimes[seconds] = self.runtime_factory(seconds)
        return self._runtimes[seconds]

    def complete(self, prompt: str, timeout_s: float) -> str:
        # Structure the conversation properly as a list
        conversation = [
            {
                "role": "user",
                "content": [{"text": prompt}]
            }
        ]

        try:
            response = self.runtime_for(timeout_s).converse(
                modelId=self.model_id,
                messages=conversation,
                system=[{"text": self.system_prompt}],
                inferenceConfig={
                    "maxTokens": self.max_tokens,
                    "temperature": self.temperature,
                },
            )
        except (ReadTimeoutError, ConnectTimeoutError) as e:
            logger.error("Bedrock timed out after %.1fs: %s", timeout_s, e)
            raise UpstreamTimeoutError(f"Completion service timed out: {e}") from e
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error("Bedrock converse failed (%s): %s", code, e)
            raise UpstreamError(f"Completion service error: {code}") from e
        except BotoCoreError as e:
            logger.error("Bedrock converse failed: %s", e)
            raise UpstreamError(f"Completion service unreachable: {e}") from e

        # Extract the response text
        try:
            blocks = response["output"]["message"]["content"]
            text = "".join(block["text"] for block in blocks if "text" in block)
        except (KeyError, TypeError) as e:
            raise UpstreamError("Completion service returned a malformed response") from e

        if not text.strip():
            raise UpstreamError("Completion service returned no text")
        logger.info("Bedrock completion: %d chars, stop reason %s",
                    len(text), response.get("stopReason"))
        return text
