import json
import logging
import re
from dataclasses import dataclass, field

import anthropic

from storewizard.models.schemas import AssistantReply, HistoryTurn, NoneAction, parse_action
from storewizard.services.normalization import RemoteCategory, RemoteProduct
from storewizard.services.prompts import (
    BASE_SYSTEM_PROMPT,
    render_existing_categories,
    render_store_snapshot,
)

logger = logging.getLogger(__name__)

FENCE_START_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
FENCE_END_RE = re.compile(r"```\s*$")
JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class AssistantUnavailableError(Exception):
    """The language model could not produce a turn."""


@dataclass
class StoreContext:
    store_name: str | None = None
    store_id: str | None = None
    categories: list[RemoteCategory] = field(default_factory=list)
    products: list[RemoteProduct] = field(default_factory=list)

    def metadata(self) -> dict:
        """Out-of-band context kept next to the prompt, never inside it."""
        return {
            "existingCategoryCount": len(self.categories),
            "existingCategoryIds": [c.id for c in self.categories],
        }


@dataclass
class AssistantTurn:
    reply: AssistantReply
    raw: str
    parsed: bool
    context: dict = field(default_factory=dict)


def window_history(history: list[HistoryTurn], size: int) -> list[dict]:
    """Keep the last ``size`` turns; older ones are dropped, not summarized."""
    recent = history[-size:] if size > 0 else []
    return [{"role": turn.role, "content": turn.content} for turn in recent]


def enrich_message(message: str, categories: list[RemoteCategory]) -> str:
    if not categories:
        return message
    return f"{message}\n\n{render_existing_categories(categories)}"


def parse_assistant_output(raw: str) -> tuple[AssistantReply, bool]:
    """Extract ``{message, action}`` from model text.

    Returns the reply and whether a JSON object was actually parsed. Anything
    unparseable becomes the raw text with a ``none`` action.
    """
    cleaned = FENCE_END_RE.sub("", FENCE_START_RE.sub("", raw.strip())).strip()
    match = JSON_OBJECT_RE.search(cleaned)
    if match is None:
        return AssistantReply(message=raw, action=NoneAction()), False

    try:
        payload = json.loads(match.group(0))
    except ValueError:
        logger.info("Assistant output is not valid JSON, returning raw text")
        return AssistantReply(message=raw, action=NoneAction()), False
    if not isinstance(payload, dict):
        return AssistantReply(message=raw, action=NoneAction()), False

    message = payload.get("message")
    if not isinstance(message, str):
        message = raw if message is None else str(message)

    action, error = parse_action(payload.get("action"))
    if error:
        logger.warning("Dropping invalid assistant action: %s", error)
    return AssistantReply(message=message, action=action), True


class AssistantGateway:
    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        model: str,
        max_tokens: int = 1024,
        history_window: int = 10,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.history_window = history_window

    def build_request(self, message: str, history: list[HistoryTurn], context: StoreContext) -> dict:
        system = BASE_SYSTEM_PROMPT + "\n\n" + render_store_snapshot(
            context.store_name, context.store_id, context.categories, context.products
        )
        messages = window_history(history, self.history_window)
        messages.append({"role": "user", "content": enrich_message(message, context.categories)})
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "messages": messages,
        }

    async def respond(self, message: str, history: list[HistoryTurn], context: StoreContext) -> AssistantTurn:
        """Produce one structured turn for ``message``."""
        request = self.build_request(message, history, context)
        try:
            response = await self.client.messages.create(**request)
        except anthropic.APIError as exc:
            logger.error("Assistant call failed: %s", exc)
            raise AssistantUnavailableError(str(exc)) from exc

        raw = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        reply, parsed = parse_assistant_output(raw)
        logger.info(
            "Assistant turn: action=%s parsed=%s history=%d",
            reply.action.type,
            parsed,
            len(request["messages"]) - 1,
        )
        return AssistantTurn(reply=reply, raw=raw, parsed=parsed, context=context.metadata())
