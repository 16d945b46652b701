"""
Re-frames model stream chunks into the chat wire protocol.

Each text fragment becomes one ``data: {"text": ...}`` event. A normal end
of the model stream is signalled with ``data: [DONE]``; a model failure
emits one ``data: {"error": ...}`` event and ends without the marker.
Fragments are forwarded as they arrive, never buffered or reordered.
"""
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_MARKER = "[DONE]"
ERROR_MESSAGE = "AI error"


def format_event(payload: str) -> str:
    return f"{DATA_PREFIX}{payload}\n\n"


def text_event(text: str) -> str:
    return format_event(json.dumps({"text": text}))


def extract_text(chunk: Dict[str, Any]) -> Optional[str]:
    """Text delta of an OpenAI-compatible streaming chunk, if any."""
    choices = chunk.get("choices") or []
    if not choices:
        return None
    delta = choices[0].get("delta") or {}
    return delta.get("content") or None


async def relay_stream(chunks: AsyncIterator[Dict[str, Any]]) -> AsyncIterator[str]:
    """Yield wire events for every text-bearing chunk of ``chunks``."""
    try:
        async for chunk in chunks:
            text = extract_text(chunk)
            if text:
                yield text_event(text)
    except Exception:
        logger.exception("Model stream failed")
        yield format_event(json.dumps({"error": ERROR_MESSAGE}))
        return
    yield format_event(DONE_MARKER)
