import asyncio

import pytest

from vegan_guides.client.api import ApiError, ChatStreamError, StreamInterruptedError
from vegan_guides.client.chat import APOLOGY_MESSAGE, ChatConversation


class FakeChatApi:

    def __init__(self, fragments=(), error=None, gate=None):
        self.fragments = list(fragments)
        self.error = error
        self.gate = gate
        self.requests = []

    async def stream_chat(self, messages, restaurants):
        self.requests.append((messages, list(restaurants)))
        if self.gate is not None:
            await self.gate.wait()
        for fragment in self.fragments:
            yield fragment
        if self.error is not None:
            raise self.error


@pytest.mark.asyncio
async def test_fragments_accumulate_into_one_reply(make_record):
    api = FakeChatApi(fragments=["Try ", "Distrito ", "Vegano."])
    on_screen = [make_record("A", vegan=True)]
    chat = ChatConversation(api, lambda: on_screen)
    reply = await chat.send("  Best vegan spot?  ")
    assert reply.content == "Try Distrito Vegano."
    assert reply.interrupted is False
    assert [(m.role, m.content) for m in chat.messages] == [
        ("user", "Best vegan spot?"),
        ("assistant", "Try Distrito Vegano."),
    ]
    messages, restaurants = api.requests[0]
    assert messages == [{"role": "user", "content": "Best vegan spot?"}]
    assert restaurants == on_screen
    assert chat.streaming is False


@pytest.mark.asyncio
async def test_history_is_sent_on_follow_up():
    api = FakeChatApi(fragments=["ok"])
    chat = ChatConversation(api, list)
    await chat.send("first")
    await chat.send("second")
    messages, _ = api.requests[1]
    assert [m["role"] for m in messages] == ["user", "assistant", "user"]
    assert messages[1]["content"] == "ok"


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [ChatStreamError("AI error"), ApiError(0, "connection refused")])
async def test_failure_replaces_reply_with_apology(error):
    api = FakeChatApi(fragments=["Partial"], error=error)
    chat = ChatConversation(api, list)
    reply = await chat.send("hello")
    assert reply.content == APOLOGY_MESSAGE
    assert chat.streaming is False


@pytest.mark.asyncio
async def test_interrupted_stream_keeps_partial_reply():
    api = FakeChatApi(fragments=["Half ", "an answer"], error=StreamInterruptedError("closed"))
    chat = ChatConversation(api, list)
    reply = await chat.send("hello")
    assert reply.content == "Half an answer"
    assert reply.interrupted is True


@pytest.mark.asyncio
async def test_blank_input_is_ignored():
    api = FakeChatApi()
    chat = ChatConversation(api, list)
    assert await chat.send("   ") is None
    assert chat.messages == []
    assert api.requests == []


@pytest.mark.asyncio
async def test_send_while_streaming_is_ignored():
    gate = asyncio.Event()
    api = FakeChatApi(fragments=["done"], gate=gate)
    chat = ChatConversation(api, list)
    first = asyncio.create_task(chat.send("one"))
    await asyncio.sleep(0)
    assert chat.streaming is True
    assert await chat.send("two") is None
    gate.set()
    reply = await first
    assert reply.content == "done"
    assert len(chat.messages) == 2
