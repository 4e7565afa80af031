# wondernav/handlers/chat_handler.py

import base64
import binascii
import json
from functools import lru_cache, partial

import httpx

from wondernav.config import Settings
from wondernav.errors import ChatServiceError, ConfigurationError, ValidationError
from wondernav.models.bedrock_client import BedrockCompletionClient, create_bedrock_runtime
from wondernav.models.openai_client import OpenAICompletionClient
from wondernav.services.chat_engine import ChatRequestHandler
from wondernav.services.chat_store import DynamoChatStore, create_dynamodb
from wondernav.utils.util import logger

# Time kept back from Lambda's remaining time so we can still answer
RESPONSE_MARGIN_S = 1.0

HEADERS = {
    'Content-Type': 'application/json',
    'Access-Control-Allow-Origin': '*'  # For CORS if needed
}


def build_handler(settings: Settings) -> ChatRequestHandler:
    """Create the clients for ``settings`` and wire them into a handler."""
    store = DynamoChatStore(
        create_dynamodb(settings.aws_region, settings.dynamodb_endpoint_url),
        settings.table_name,
    )
    if settings.completion_provider == "openai":
        completion = OpenAICompletionClient(
            http=httpx.Client(timeout=settings.request_timeout_seconds),
            base_url=settings.openai_base_url,
            api_key=settings.openai_api_key,
            model_id=settings.model_id,
            system_prompt=settings.system_prompt,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
        )
    else:
        completion = BedrockCompletionClient(
            create_bedrock_runtime(settings.aws_region, settings.request_timeout_seconds),
            model_id=settings.model_id,
            system_prompt=settings.system_prompt,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            read_timeout=settings.request_timeout_seconds,
            runtime_factory=partial(create_bedrock_runtime, settings.aws_region),
        )
    logger.setLevel(settings.log_level)
    logger.info("Using %s model %s, table %s",
                settings.completion_provider, settings.model_id, settings.table_name)
    return ChatRequestHandler(store, completion, settings)


@lru_cache(maxsize=1)
def get_handler() -> ChatRequestHandler:
    """Process-wide handler, built on the first invocation and reused after."""
    return build_handler(Settings.from_env())


def decode_body(event: dict):
    body = event.get("body")
    if body is None or body == "":
        raise ValidationError("Request body is required")
    if isinstance(body, (dict, list)):
        # Direct invocations may pass the body already decoded
        return body
    if not isinstance(body, str):
        raise ValidationError("Request body must be a JSON string")
    if event.get("isBase64Encoded"):
        try:
            body = base64.b64decode(body, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ValidationError("Request body is not valid base64 UTF-8") from e
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Request body is not valid JSON: {e.msg}") from e


def remaining_budget(context, settings: Settings) -> float:
    budget = float(settings.request_timeout_seconds)
    get_remaining = getattr(context, "get_remaining_time_in_millis", None)
    if callable(get_remaining):
        budget = min(budget, get_remaining() / 1000.0 - RESPONSE_MARGIN_S)
    return budget


def response(status_code: int, body: dict) -> dict:
    return {
        'statusCode': status_code,
        'headers': HEADERS,
        'body': json.dumps(body),
    }


def handle_chat(event: dict, context, handler: ChatRequestHandler) -> dict:
    """
    Serve one API Gateway proxy event for ``POST /chats``.

    Expected event format:
    {
        "httpMethod": "POST",
        "path": "/chats",
        "body": "{\"input\": \"3 days in Kyoto\"}",
        "isBase64Encoded": false
    }
    """
    try:
        payload = decode_body(event)
        result = handler.handle(payload, budget_s=remaining_budget(context, handler.settings))
        return response(200, result.model_dump())

    except ChatServiceError as e:
        logger.error("Chat request failed with %s (%d): %s", e.kind, e.status_code, e.message)
        return response(e.status_code, e.to_body())

    except Exception as e:
        logger.exception("Unhandled error in chat handler")
        return response(500, {
            'error': 'internal_error',
            'message': f'Internal server error: {str(e)}'
        })


def lambda_handler(event, context):
    """AWS Lambda entrypoint for POST /chats."""
    try:
        handler = get_handler()
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return response(500, {'error': 'configuration_error', 'message': str(e)})
    return handle_chat(event, context, handler)
