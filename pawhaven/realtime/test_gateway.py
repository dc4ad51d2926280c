# pawhaven/realtime/test_gateway.py
"""Socket.IO handshake and conversation relays."""

from pawhaven.realtime.gateway import registry


def _events(client, name):
    return [event['args'][0] for event in client.get_received() if event['name'] == name]


def test_handshake_requires_token(socket_client_for):
    assert not socket_client_for().is_connected()
    assert not socket_client_for("junk").is_connected()


def test_handshake_accepts_header_and_cookie(socket_client_for, register):
    _, token = register('alice')
    assert socket_client_for(token).is_connected()
    assert socket_client_for(headers={"Authorization": f"Bearer {token}"}).is_connected()
    assert socket_client_for(headers={"Cookie": f"accessToken={token}"}).is_connected()


def test_registry_tracks_connections(socket_client_for, register):
    _, token = register('alice')
    before = len(registry)
    client = socket_client_for(token)
    assert len(registry) == before + 1
    client.disconnect()
    assert len(registry) == before


def test_presence_and_typing_reach_others_only(socket_client_for, register):
    alice, alice_token = register('alice')
    bob, bob_token = register('bob')
    alice_socket = socket_client_for(alice_token)
    bob_socket = socket_client_for(bob_token)

    alice_socket.emit('chat:join', {"conversationId": "c1"})
    bob_socket.emit('chat:join', {"conversationId": "c1"})
    assert _events(alice_socket, 'chat:presence') == [{"conversationId": "c1", "userId": bob['id'], "online": True}]
    assert _events(bob_socket, 'chat:presence') == []

    bob_socket.emit('chat:typing', {"conversationId": "c1", "isTyping": 1})
    assert _events(alice_socket, 'chat:typing') == [{"conversationId": "c1", "userId": bob['id'], "isTyping": True}]
    assert _events(bob_socket, 'chat:typing') == []

    bob_socket.emit('chat:leave', {"conversationId": "c1"})
    assert _events(alice_socket, 'chat:presence') == [{"conversationId": "c1", "userId": bob['id'], "online": False}]


def test_read_receipts_normalize_timestamp(socket_client_for, register):
    _, alice_token = register('alice')
    _, bob_token = register('bob')
    alice_socket = socket_client_for(alice_token)
    bob_socket = socket_client_for(bob_token)
    for client in (alice_socket, bob_socket):
        client.emit('chat:join', {"conversationId": "c1"})
    alice_socket.get_received()

    bob_socket.emit('chat:read', {"conversationId": "c1", "at": "2024-01-15T10:30:00+09:00"})
    bob_socket.emit('chat:read', {"conversationId": "c1", "at": "yesterday-ish"})
    receipts = _events(alice_socket, 'chat:read')
    assert receipts[0]['at'] == "2024-01-15T01:30:00Z"
    assert receipts[1]['at'].endswith("Z")


def test_message_goes_to_whole_room_and_is_acked(socket_client_for, register):
    alice, alice_token = register('alice')
    _, bob_token = register('bob')
    _, carol_token = register('carol')
    alice_socket = socket_client_for(alice_token)
    bob_socket = socket_client_for(bob_token)
    outsider = socket_client_for(carol_token)
    for client in (alice_socket, bob_socket):
        client.emit('chat:join', {"conversationId": "c1"})
    alice_socket.get_received()

    ack = alice_socket.emit('chat:message', {"conversationId": "c1", "text": "  hi bob  "}, callback=True)
    assert ack['conversationId'] == "c1"
    assert ack['text'] == "hi bob"
    assert ack['sender']['id'] == alice['id']
    assert ack['attachments'] == []
    assert ack['id'] and ack['createdAt'].endswith("Z")

    assert _events(bob_socket, 'chat:message') == [ack]
    assert _events(alice_socket, 'chat:message') == [ack]
    assert _events(outsider, 'chat:message') == []


def test_empty_or_unaddressed_messages_are_ignored(socket_client_for, register):
    _, token = register('alice')
    client = socket_client_for(token)
    client.emit('chat:join', {"conversationId": "c1"})

    assert not client.emit('chat:message', {"conversationId": "c1", "text": "   "}, callback=True)
    assert not client.emit('chat:message', {"text": "hello"}, callback=True)
    client.emit('chat:join', {})
    assert _events(client, 'chat:message') == []

    ack = client.emit('chat:message', {"conversationId": "c1", "attachments": ["/uploads/x.png"]}, callback=True)
    assert ack['attachments'] == ["/uploads/x.png"]
    assert ack['text'] == ""
