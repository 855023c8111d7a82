"""
Handles tool-call webhooks from the telephony platform.

The platform posts handshake messages and batched tool calls to one endpoint.
Tool calls run through the same ToolExecutor as live voice sessions, so timeouts
and error shaping are identical. The handler never signals failure through the
HTTP status: malformed bodies are acknowledged as ignored so the platform does
not retry them.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from voice_relay.bot.prompts import get_system_instructions
from voice_relay.bot.tool_executor import ToolExecutor
from voice_relay.config.constants import LOGGER_NAME
from voice_relay.config.settings import Settings
from voice_relay.models.webhook_schemas import (
    ASSISTANT_REQUEST_TYPES,
    MESSAGE_TYPE_TOOL_CALLS,
    AssistantResponse,
    WebhookRequest,
    WebhookToolCall,
    WebhookToolResponse,
    WebhookToolResult,
    acknowledgement,
)

logger = logging.getLogger(LOGGER_NAME)


def parse_arguments(raw: Any) -> Dict[str, Any]:
    """Return tool arguments as a dict, decoding JSON strings when needed."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Could not parse tool arguments: {raw[:100]}")
            return {}
    return raw if isinstance(raw, dict) else {}


async def handle_tool_call(tool_call: WebhookToolCall, executor: ToolExecutor) -> WebhookToolResult:
    name = tool_call.function.name
    args = parse_arguments(tool_call.function.arguments)
    result = await executor.execute(name, args)
    return WebhookToolResult(toolCallId=tool_call.id, result=json.dumps(result))


async def handle_tool_calls(
    tool_calls: List[WebhookToolCall], executor: ToolExecutor
) -> WebhookToolResponse:
    """Execute a batch of tool calls concurrently, keeping input order in the results."""
    logger.info(f"Webhook received {len(tool_calls)} tool call(s)")
    results = await asyncio.gather(*(handle_tool_call(tc, executor) for tc in tool_calls))
    return WebhookToolResponse(results=list(results))


def handle_assistant_request(message_type: str, settings: Settings) -> AssistantResponse:
    """Answer handshake messages with the current system instructions."""
    logger.info(f"Injecting assistant instructions for message type: {message_type}")
    return AssistantResponse.from_instructions(get_system_instructions(settings))


async def handle_webhook(body: Any, executor: ToolExecutor, settings: Settings) -> Dict[str, Any]:
    """
    Route one webhook body.

    Args:
        body: The decoded JSON request body
        executor: Shared tool executor
        settings: Process settings used to render assistant instructions

    Returns:
        The JSON response body; the HTTP status is always 200
    """
    message = body.get("message") if isinstance(body, dict) else None
    if not isinstance(message, dict):
        logger.warning("Ignoring webhook body without a message object")
        return acknowledgement("ignored")

    message_type = message.get("type")
    if message_type in ASSISTANT_REQUEST_TYPES:
        return handle_assistant_request(message_type, settings).model_dump()

    if message_type != MESSAGE_TYPE_TOOL_CALLS:
        logger.debug(f"Acknowledging webhook message type: {message_type}")
        return acknowledgement("processed")

    try:
        request = WebhookRequest.model_validate(body)
    except ValidationError as e:
        logger.warning(f"Invalid tool-calls webhook: {e}")
        return acknowledgement("ignored")

    response = await handle_tool_calls(request.message.toolCalls, executor)
    return response.model_dump()
