from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from storewizard.dependencies import get_assistant_gateway
from storewizard.models.schemas import HistoryTurn, parse_action
from storewizard.services.assistant import (
    AssistantGateway,
    AssistantUnavailableError,
    StoreContext,
    parse_assistant_output,
    window_history,
)
from storewizard.services.localization import detect_language, translate
from storewizard.services.normalization import BilingualName, RemoteCategory


def _fake_client(text: str) -> MagicMock:
    client = MagicMock()
    client.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])
    )
    return client


def _context() -> StoreContext:
    return StoreContext(
        store_name="Desert Threads",
        store_id="777",
        categories=[
            RemoteCategory(id="1", name=BilingualName(ar="ملابس", en="Clothing"), products_count=4),
            RemoteCategory(id="2", name=BilingualName(ar="أحذية", en="Shoes")),
        ],
    )


# --- Output parsing ---

def test_parses_fenced_json():
    raw = '```json\n{"message": "Here you go", "action": {"type": "suggest_categories", "data": {"categories": [{"nameAr": "عطور", "nameEn": "Perfumes"}]}}}\n```'

    reply, parsed = parse_assistant_output(raw)

    assert parsed
    assert reply.message == "Here you go"
    assert reply.action.type == "suggest_categories"
    assert reply.action.data.categories[0].name_en == "Perfumes"


def test_greedy_region_between_first_and_last_brace():
    raw = 'Sure! {"message": "ok", "action": {"type": "none", "data": {}}} hope that helps'

    reply, parsed = parse_assistant_output(raw)

    assert parsed
    assert reply.message == "ok"


def test_unparseable_output_degrades_to_raw_text():
    raw = "I think {this is not json}"

    reply, parsed = parse_assistant_output(raw)

    assert not parsed
    assert reply.message == raw
    assert reply.action.type == "none"


def test_missing_action_and_missing_data_default():
    reply, _ = parse_assistant_output('{"message": "hello"}')
    assert reply.action.type == "none"
    assert reply.action.data == {}

    reply, _ = parse_assistant_output('{"message": "themes", "action": {"type": "suggest_themes"}}')
    assert reply.action.type == "suggest_themes"


def test_unknown_action_type_degrades_to_none():
    reply, parsed = parse_assistant_output('{"message": "x", "action": {"type": "launch_rocket", "data": {}}}')

    assert parsed
    assert reply.message == "x"
    assert reply.action.type == "none"


def test_delete_actions_are_recognized():
    action, error = parse_action({"type": "delete_category", "data": {"categoryId": "12", "nameEn": "Bags"}})

    assert error is None
    assert action.data.category_id == "12"


# --- Prompt assembly ---

def test_window_history_drops_oldest_turns():
    history = [HistoryTurn(role="user" if i % 2 == 0 else "assistant", content=str(i)) for i in range(14)]

    window = window_history(history, 10)

    assert [turn["content"] for turn in window] == [str(i) for i in range(4, 14)]


def test_request_enriches_message_but_keeps_metadata_out_of_prompt():
    gateway = AssistantGateway(_fake_client(""), model="test-model")

    request = gateway.build_request("add categories", [], _context())

    user_message = request["messages"][-1]["content"]
    assert user_message.startswith("add categories")
    assert "[EXISTING STORE CATEGORIES]" in user_message
    assert "- ملابس / Clothing (4 products)" in user_message
    assert "[LIVE STORE SNAPSHOT]" in request["system"]
    assert "ID:1" in request["system"]
    assert "existingCategoryIds" not in request["system"]
    assert "existingCategoryIds" not in user_message


def test_message_without_categories_is_not_enriched():
    gateway = AssistantGateway(_fake_client(""), model="test-model")

    request = gateway.build_request("hello", [], StoreContext())

    assert request["messages"] == [{"role": "user", "content": "hello"}]


@pytest.mark.asyncio
async def test_respond_returns_structured_turn_with_context():
    client = _fake_client('{"message": "Let us add perfumes", "action": {"type": "none", "data": {}}}')
    gateway = AssistantGateway(client, model="test-model", history_window=2)
    history = [HistoryTurn(role="user", content=f"m{i}") for i in range(5)]

    turn = await gateway.respond("next", history, _context())

    assert turn.parsed
    assert turn.reply.message == "Let us add perfumes"
    assert turn.context == {"existingCategoryCount": 2, "existingCategoryIds": ["1", "2"]}
    sent = client.messages.create.await_args.kwargs
    assert sent["model"] == "test-model"
    assert [m["content"] for m in sent["messages"][:-1]] == ["m3", "m4"]


@pytest.mark.asyncio
async def test_respond_raises_when_model_unavailable():
    client = MagicMock()
    client.messages.create = AsyncMock(
        side_effect=anthropic.APIConnectionError(request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"))
    )
    gateway = AssistantGateway(client, model="test-model")

    with pytest.raises(AssistantUnavailableError):
        await gateway.respond("hello", [], StoreContext())


# --- Localization ---

def test_detect_language():
    assert detect_language("أريد متجر عطور") == "ar"
    assert detect_language("I sell perfume") == "en"
    assert detect_language("Perfume عطر") == "ar"
    assert detect_language("") == "en"


def test_translate_falls_back_and_formats():
    assert translate("coupon_created", "en", code="EID10") == "Coupon EID10 created!"
    assert "EID10" in translate("coupon_created", "ar", code="EID10")
    assert translate("categories_summary", "en", kept=2, added=3, removed=1) == "2 kept · 3 new · 1 removed"


@pytest.mark.asyncio
async def test_gateway_dependency_closes_model_client(test_settings):
    dependency = get_assistant_gateway(test_settings)
    gateway = await anext(dependency)
    assert gateway.model == test_settings.CLAUDE_MODEL
    assert not gateway.client.is_closed()

    with pytest.raises(StopAsyncIteration):
        await anext(dependency)

    assert gateway.client.is_closed()


def test_prefixed_output_without_action_defaults_to_none():
    reply, parsed = parse_assistant_output('Sure! {"message":"ok"}')

    assert parsed
    assert reply.message == "ok"
    assert reply.action.type == "none"
