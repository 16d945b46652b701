"""
Chat routes: streaming vegan food guide grounded in the restaurants on screen
"""
from quart import Blueprint, jsonify, make_response, request

from vegan_guides.groq.guide_chat import GuideChatClient
from vegan_guides.services.stream_relay import relay_stream
from vegan_guides.src.metrics import increment

bp = Blueprint('chat', __name__)


def get_chat_client() -> GuideChatClient:
    from vegan_guides.src import app as app_module
    return GuideChatClient(session=app_module.aiohttp_session)


@bp.route("/api/chat", methods=["POST"])
async def api_chat():
    """
    Request JSON: {"messages": [{"role": "user"|"assistant", "content": "..."}], "restaurants": [...]}
    Response: text/event-stream of `data: {"text": "..."}` lines ending with `data: [DONE]`
    """
    data = await request.get_json(silent=True) or {}
    messages = data.get("messages")
    restaurants = data.get("restaurants") or []
    if not isinstance(messages, list) or not messages:
        return jsonify({"error": "messages required"}), 400
    if not isinstance(restaurants, list):
        restaurants = []

    await increment('chat.requests')
    client = get_chat_client()

    async def send_events():
        async for event in relay_stream(client.stream_completion(messages, restaurants)):
            yield event.encode("utf-8")

    response = await make_response(
        send_events(),
        {
            'Content-Type': 'text/event-stream',
            'Cache-Control': 'no-cache',
        },
    )
    response.timeout = None
    return response


def register(app):
    """Register chat blueprint with app"""
    app.register_blueprint(bp)
