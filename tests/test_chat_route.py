import json

import pytest

from vegan_guides.providers.base import ProviderResponseError
from vegan_guides.src import app as quart_app_module
from vegan_guides.src.routes import chat as chat_routes


class FakeChatClient:

    def __init__(self, texts=(), error=None):
        self.texts = list(texts)
        self.error = error
        self.calls = []

    async def stream_completion(self, messages, restaurants):
        self.calls.append((messages, restaurants))
        for text in self.texts:
            yield {"choices": [{"delta": {"content": text}}]}
        if self.error is not None:
            raise self.error


def _events(body):
    return [frame for frame in body.split("\n\n") if frame]


async def _post_chat(payload):
    async with quart_app_module.app.test_app() as test_app:
        async with test_app.test_client() as client:
            resp = await client.post("/api/chat", json=payload)
            return resp, await resp.get_data(as_text=True)


@pytest.mark.asyncio
async def test_chat_streams_text_events_then_done(monkeypatch):
    fake = FakeChatClient(texts=["Try ", "Veggie Garden", "!"])
    monkeypatch.setattr(chat_routes, "get_chat_client", lambda: fake)
    restaurants = [{"id": "A", "name": "Veggie Garden", "rating": 4.6, "isFullyVegan": True}]
    resp, body = await _post_chat({
        "messages": [{"role": "user", "content": "Where for lunch?"}],
        "restaurants": restaurants,
    })
    assert resp.status_code == 200
    assert resp.headers["Content-Type"].startswith("text/event-stream")
    assert resp.headers["Cache-Control"] == "no-cache"

    events = _events(body)
    assert events[-1] == "data: [DONE]"
    texts = [json.loads(e[len("data: "):])["text"] for e in events[:-1]]
    assert "".join(texts) == "Try Veggie Garden!"
    assert fake.calls == [([{"role": "user", "content": "Where for lunch?"}], restaurants)]


@pytest.mark.asyncio
async def test_model_failure_ends_with_error_event(monkeypatch):
    fake = FakeChatClient(texts=["Par"], error=ProviderResponseError("Groq API error: 429"))
    monkeypatch.setattr(chat_routes, "get_chat_client", lambda: fake)
    resp, body = await _post_chat({"messages": [{"role": "user", "content": "hi"}]})
    assert resp.status_code == 200
    events = _events(body)
    assert events[-1] == 'data: {"error": "AI error"}'
    assert "data: [DONE]" not in events


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"messages": []}, {"messages": "hi"}])
async def test_chat_requires_messages(monkeypatch, payload):
    fake = FakeChatClient()
    monkeypatch.setattr(chat_routes, "get_chat_client", lambda: fake)
    async with quart_app_module.app.test_app() as test_app:
        async with test_app.test_client() as client:
            resp = await client.post("/api/chat", json=payload)
            assert resp.status_code == 400
            assert await resp.get_json() == {"error": "messages required"}
    assert fake.calls == []


@pytest.mark.asyncio
async def test_restaurants_default_to_empty_list(monkeypatch):
    fake = FakeChatClient(texts=["ok"])
    monkeypatch.setattr(chat_routes, "get_chat_client", lambda: fake)
    await _post_chat({"messages": [{"role": "user", "content": "hi"}], "restaurants": "nope"})
    assert fake.calls[0][1] == []
