"""Routes chat-network callbacks into the username resolver and message assembler."""

import logging
import queue

from PySide6.QtCore import QObject, QThread, Signal

from .assembler import MessageAssembler
from .models import BanEvent, ChatEvent, ChatMessage, MessageType
from .usernames import UsernameResolver

logger = logging.getLogger(__name__)


class ChatEventDispatcher(QObject):
    """Turns typed network events into assembled messages.

    Ban and unban notifications skip the assembler and go straight out on
    ``user_banned`` / ``user_unbanned``.
    """

    # Emitted for every assembled message
    message_ready = Signal(object)  # ChatMessage
    # Host-mask of a banned / unbanned user
    user_banned = Signal(str)
    user_unbanned = Signal(str)
    # True on connect, False on disconnect
    connection_changed = Signal(bool)

    def __init__(
        self,
        resolver: UsernameResolver,
        assembler: MessageAssembler,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._resolver = resolver
        self._assembler = assembler

    def dispatch(self, event: ChatEvent) -> ChatMessage:
        """Resolve the sender, assemble the message and emit it."""
        display_name = self._resolver.resolve(event.sender, event.body, event.type)
        message = self._assembler.assemble(event.type, display_name, event.body)
        self.message_ready.emit(message)
        return message

    def post(self, username: str, body: str, message_type: MessageType = MessageType.NORMAL) -> ChatMessage:
        return self.dispatch(ChatEvent(type=message_type, sender=username, body=body))

    def handle_ban(self, event: BanEvent) -> None:
        if event.banned:
            self.user_banned.emit(event.hostmask)
        else:
            self.user_unbanned.emit(event.hostmask)

    # Network collaborator callbacks

    def on_connected(self) -> None:
        logger.info("Connected")
        self.connection_changed.emit(True)

    def on_disconnected(self) -> None:
        logger.info("Disconnected")
        self.connection_changed.emit(False)

    def on_join(self, channel: str, sender: str) -> ChatMessage:
        return self.dispatch(
            ChatEvent(type=MessageType.JOIN, sender=sender, body=f"joined {channel}.", channel=channel)
        )

    def on_action(self, sender: str, action: str, channel: str = "") -> ChatMessage:
        return self.dispatch(
            ChatEvent(type=MessageType.ACTION, sender=sender, body=action, channel=channel)
        )

    def on_message(self, sender: str, body: str, channel: str = "") -> ChatMessage:
        return self.dispatch(
            ChatEvent(type=MessageType.NORMAL, sender=sender, body=body, channel=channel)
        )

    def on_private_message(self, sender: str, body: str) -> None:
        logger.info(f"Private message from {sender}: {body}")

    def on_ban(self, hostmask: str, channel: str = "") -> None:
        self.handle_ban(BanEvent(hostmask=hostmask, banned=True, channel=channel))

    def on_unban(self, hostmask: str, channel: str = "") -> None:
        self.handle_ban(BanEvent(hostmask=hostmask, banned=False, channel=channel))


class ChatEventWorker(QThread):
    """Background thread that feeds queued events to a dispatcher in arrival order.

    Username lookups can block on the network, so events are never dispatched
    on the GUI thread. Messages reach the GUI through the dispatcher's queued
    signals.
    """

    def __init__(self, dispatcher: ChatEventDispatcher, parent: QObject | None = None):
        super().__init__(parent)
        self._dispatcher = dispatcher
        self._queue: queue.Queue[ChatEvent | BanEvent | None] = queue.Queue()

    def enqueue(self, event: ChatEvent | BanEvent) -> None:
        self._queue.put(event)

    def pending(self) -> int:
        return self._queue.qsize()

    def stop(self) -> None:
        """Finish the events already queued, then exit."""
        self._queue.put(None)

    def run(self) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                return
            try:
                if isinstance(item, BanEvent):
                    self._dispatcher.handle_ban(item)
                else:
                    self._dispatcher.dispatch(item)
            except Exception as e:
                logger.error(f"Failed to dispatch chat event {item!r}: {e}")
