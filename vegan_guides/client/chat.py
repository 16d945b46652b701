"""
Chat conversation state for the assistant panel.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from vegan_guides.models import RestaurantRecord
from .api import ApiError, ChatStreamError, DiscoveryApiClient, StreamInterruptedError

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "Sorry, something went wrong. Please try again."


@dataclass
class ChatMessage:
    role: str
    content: str
    # set when the stream closed before its completion marker
    interrupted: bool = False

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class ChatConversation:
    """Sends the conversation plus the restaurants on screen and accumulates
    the streamed reply into the last assistant message."""

    def __init__(self, api: DiscoveryApiClient, restaurants: Callable[[], List[RestaurantRecord]]):
        self.api = api
        self._restaurants = restaurants
        self.messages: List[ChatMessage] = []
        self.streaming = False

    async def send(self, text: str) -> Optional[ChatMessage]:
        """Send ``text`` and stream the answer; returns the assistant message.

        Blank input, or a call while a reply is still streaming, is ignored.
        """
        text = (text or "").strip()
        if not text or self.streaming:
            return None

        self.messages.append(ChatMessage("user", text))
        history = [m.to_dict() for m in self.messages]
        reply = ChatMessage("assistant", "")
        self.messages.append(reply)
        self.streaming = True
        try:
            async for fragment in self.api.stream_chat(history, self._restaurants()):
                reply.content += fragment
        except StreamInterruptedError:
            logger.info("Chat stream closed early after %d chars", len(reply.content))
            reply.interrupted = True
        except (ChatStreamError, ApiError) as e:
            logger.warning("Chat failed: %s", e)
            reply.content = APOLOGY_MESSAGE
        finally:
            self.streaming = False
        return reply
