# pawhaven/realtime/gateway.py
"""
Socket.IO signaling for conversations: presence, typing, read receipts and
message relay between the members of a conversation room. Nothing here is
persisted; every payload is relayed as-is to the room.
"""

import uuid
import logging
import threading
from typing import Any, Dict, Optional

from flask import request, current_app
from flask_socketio import SocketIO, ConnectionRefusedError, emit, join_room, leave_room

from pawhaven.core.errors import Unauthenticated
from pawhaven.core.security import Principal, authenticate_handshake
from pawhaven.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

socketio = SocketIO()


class ConnectionRegistry:
    """sid -> Principal for every live socket."""

    def __init__(self):
        self._connections: Dict[str, Principal] = {}
        self._lock = threading.Lock()

    def add(self, sid: str, principal: Principal) -> None:
        with self._lock:
            self._connections[sid] = principal

    def get(self, sid: str) -> Optional[Principal]:
        with self._lock:
            return self._connections.get(sid)

    def remove(self, sid: str) -> Optional[Principal]:
        with self._lock:
            return self._connections.pop(sid, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)


registry = ConnectionRegistry()


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def conversation_room(conversation_id: Any) -> str:
    return f"conv:{conversation_id}"


def _conversation_id(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    conversation_id = data.get("conversationId")
    if conversation_id is None or conversation_id == "":
        return None
    return str(conversation_id)


def _principal() -> Optional[Principal]:
    return registry.get(request.sid)


def build_message_envelope(conversation_id: str, sender: Principal, text: Any, attachments: Any) -> Dict[str, Any]:
    return {
        "id": str(uuid.uuid4()),
        "conversationId": conversation_id,
        "sender": {
            "id": sender.id,
            "username": sender.username,
            "fullname": sender.fullname,
        },
        "text": text.strip() if isinstance(text, str) else "",
        "attachments": attachments if isinstance(attachments, list) else [],
        "createdAt": DateTimeUtils.to_iso_string(DateTimeUtils.now()),
    }


@socketio.on('connect')
def handle_connect(auth=None):
    try:
        principal = authenticate_handshake(auth, request.headers, current_app.services['tokens'])
    except Unauthenticated as e:
        logger.info(f"Socket handshake rejected: {e.message}")
        raise ConnectionRefusedError(e.message)

    registry.add(request.sid, principal)
    join_room(user_room(principal.id))
    logger.info(f"Socket connected (user_id: {principal.id}, sid: {request.sid})")


@socketio.on('disconnect')
def handle_disconnect(*args):
    principal = registry.remove(request.sid)
    if principal:
        logger.info(f"Socket disconnected (user_id: {principal.id}, sid: {request.sid})")


@socketio.on('chat:join')
def handle_join(data=None):
    conversation_id = _conversation_id(data)
    principal = _principal()
    if not conversation_id or not principal:
        return
    room = conversation_room(conversation_id)
    join_room(room)
    emit('chat:presence', {"conversationId": conversation_id, "userId": principal.id, "online": True},
         to=room, include_self=False)


@socketio.on('chat:leave')
def handle_leave(data=None):
    conversation_id = _conversation_id(data)
    principal = _principal()
    if not conversation_id or not principal:
        return
    room = conversation_room(conversation_id)
    leave_room(room)
    emit('chat:presence', {"conversationId": conversation_id, "userId": principal.id, "online": False},
         to=room, include_self=False)


@socketio.on('chat:typing')
def handle_typing(data=None):
    conversation_id = _conversation_id(data)
    principal = _principal()
    if not conversation_id or not principal:
        return
    emit('chat:typing', {
        "conversationId": conversation_id,
        "userId": principal.id,
        "isTyping": bool(data.get("isTyping")),
    }, to=conversation_room(conversation_id), include_self=False)


@socketio.on('chat:read')
def handle_read(data=None):
    conversation_id = _conversation_id(data)
    principal = _principal()
    if not conversation_id or not principal:
        return
    read_at = DateTimeUtils.parse_iso_or_now(data.get("at"))
    emit('chat:read', {
        "conversationId": conversation_id,
        "userId": principal.id,
        "at": DateTimeUtils.to_iso_string(read_at),
    }, to=conversation_room(conversation_id), include_self=False)


@socketio.on('chat:message')
def handle_message(data=None):
    """
    Relay a message to everyone in the conversation, sender included.
    The returned envelope is the acknowledgement.
    """
    conversation_id = _conversation_id(data)
    principal = _principal()
    if not conversation_id or not principal:
        return None

    text = data.get("text")
    attachments = data.get("attachments")
    has_text = isinstance(text, str) and bool(text.strip())
    has_attachments = isinstance(attachments, list) and len(attachments) > 0
    if not has_text and not has_attachments:
        return None

    try:
        envelope = build_message_envelope(conversation_id, principal, text, attachments)
        emit('chat:message', envelope, to=conversation_room(conversation_id))
        return envelope
    except Exception as e:
        logger.error(f"chat:message relay failed (conversation: {conversation_id}): {e}", exc_info=True)
        emit('chat:error', {"message": "Failed to send message"})
        return {"error": "send_failed"}
