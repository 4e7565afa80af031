"""
Chat Engine Module

Handles one ``POST /chats`` request: validate the input, generate an itinerary
with the completion service, save it in DynamoDB and return it.
"""

import time
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from wondernav.config import Settings
from wondernav.errors import UpstreamTimeoutError, ValidationError
from wondernav.models.base import CompletionClient
from wondernav.models.schemas import ChatRecord, ChatRequest, ChatResponse
from wondernav.services.chat_store import DynamoChatStore
from wondernav.utils.util import logger


def parse_request(payload: Any) -> ChatRequest:
    """Validate a decoded JSON body into a ``ChatRequest``."""
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    try:
        return ChatRequest.model_validate(dict(payload))
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "body"
        raise ValidationError(f"{field}: {first['msg']}") from e


class ChatRequestHandler:
    """
    Stateless request handler. One instance is built per process and shared by
    every invocation; it only holds read-only client handles and settings.
    """

    def __init__(self, store: DynamoChatStore, completion: CompletionClient, settings: Settings,
                 clock: Callable[[], float] = time.monotonic):
        self.store = store
        self.completion = completion
        self.settings = settings
        self.clock = clock

    def handle(self, request: Union[ChatRequest, Mapping[str, Any]],
               budget_s: Optional[float] = None) -> ChatResponse:
        """
        Generate, persist and return the output for ``request.input``.

        Args:
            request: a ChatRequest, or the decoded JSON body
            budget_s: seconds this invocation may still spend; defaults to
                REQUEST_TIMEOUT_SECONDS

        Raises:
            ValidationError: bad input, before any side effect
            UpstreamError / UpstreamTimeoutError: completion failed, nothing written
            StorageError: cache read or final write failed
        """
        started = self.clock()
        if budget_s is None:
            budget_s = float(self.settings.request_timeout_seconds)
        deadline = started + budget_s

        if not isinstance(request, ChatRequest):
            request = parse_request(request)
        input_text = request.input
        if len(input_text) > self.settings.max_input_length:
            raise ValidationError(
                f"input: must be at most {self.settings.max_input_length} characters"
            )

        if self.settings.cache_lookup:
            cached = self.store.get_record(input_text)
            if cached is not None:
                logger.info("Cache hit for input (%d chars)", len(input_text))
                return ChatResponse(output=cached.output)

        remaining = deadline - self.clock()
        if remaining <= 0:
            raise UpstreamTimeoutError("No time left to call the completion service")

        output = self.completion.complete(input_text, timeout_s=remaining)

        # Never write after the budget is gone: the caller has already given up
        if self.clock() > deadline:
            logger.warning("Completion finished after the %.1fs budget; not saving", budget_s)
            raise UpstreamTimeoutError("Completion service exceeded the request time budget")

        self.store.put_record(self._build_record(input_text, output))
        logger.info("Handled chat in %.2fs", self.clock() - started)
        return ChatResponse(output=output)

    def _build_record(self, input_text: str, output: str) -> ChatRecord:
        now = datetime.now(timezone.utc)
        expires_at = None
        if self.settings.chat_ttl_seconds:
            expires_at = int(now.timestamp()) + self.settings.chat_ttl_seconds
        return ChatRecord(
            input=input_text,
            output=output,
            model_id=self.completion.model_id,
            created_at=now,
            expires_at=expires_at,
        )
