import pytest
from asgiref.sync import async_to_sync
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser

from market.consumers import ChatConsumer
from market.models import Message, Notification
from market.services import messaging
from market.services.errors import NotFound, Unauthorized, ValidationFailed


@pytest.fixture
def conversation(customer, tasker):
    conversation, _ = messaging.create_conversation(customer, tasker.pk)
    return conversation


@pytest.mark.django_db
def test_create_conversation_reuses_existing_pair(customer, tasker, conversation):
    again, created = messaging.create_conversation(tasker, customer.pk)

    assert created is False
    assert again.pk == conversation.pk


@pytest.mark.django_db
def test_conversation_context_makes_a_new_thread(customer, tasker, booking, conversation):
    about_booking, created = messaging.create_conversation(customer, tasker.pk, booking=booking.pk,
                                                           initial_message="Bonjour, à quelle heure ?")

    assert created is True
    assert about_booking.pk != conversation.pk
    assert about_booking.last_message_at is not None
    assert about_booking.messages.count() == 1


@pytest.mark.django_db
def test_booking_context_must_match_participants(customer, other_tasker, booking):
    with pytest.raises(Unauthorized):
        messaging.create_conversation(customer, other_tasker.pk, booking=booking.pk)


@pytest.mark.django_db
def test_cannot_talk_to_yourself(customer):
    with pytest.raises(ValidationFailed):
        messaging.create_conversation(customer, customer.pk)


@pytest.mark.django_db
def test_send_message_notifies_receiver(customer, tasker, conversation):
    message = messaging.send_message(customer, conversation.pk, "  Vous êtes disponible samedi ?  ")

    assert message.content == "Vous êtes disponible samedi ?"
    assert message.receiver_id == tasker.pk
    conversation.refresh_from_db()
    assert conversation.last_message_at == message.created_at
    note = Notification.objects.get(user=tasker, type='message_received')
    assert "samedi" in note.message


@pytest.mark.django_db
def test_send_message_validation(customer, other_tasker, conversation):
    with pytest.raises(ValidationFailed):
        messaging.send_message(customer, conversation.pk, "   ")
    with pytest.raises(ValidationFailed):
        messaging.send_message(customer, conversation.pk, "x" * 5001)
    with pytest.raises(Unauthorized):
        messaging.send_message(other_tasker, conversation.pk, "Bonjour")


@pytest.mark.django_db
def test_get_messages_pages_and_marks_read(customer, tasker, conversation):
    sent = [messaging.send_message(customer, conversation.pk, f"Message {i}") for i in range(5)]

    first = messaging.get_messages(tasker, conversation.pk, limit=2)

    assert [m.pk for m in first["messages"]] == [sent[4].pk, sent[3].pk]
    assert first["has_more"] is True
    assert all(m.is_read and m.read_at for m in first["messages"])
    assert Message.objects.filter(receiver=tasker, is_read=False).count() == 3

    rest = messaging.get_messages(tasker, conversation.pk, limit=10, before=sent[3].pk)
    assert [m.pk for m in rest["messages"]] == [sent[2].pk, sent[1].pk, sent[0].pk]
    assert rest["has_more"] is False
    assert messaging.get_unread_message_count(tasker) == 0


@pytest.mark.django_db
def test_sender_reading_does_not_mark_read(customer, tasker, conversation):
    messaging.send_message(customer, conversation.pk, "Bonjour")
    messaging.get_messages(customer, conversation.pk)
    assert messaging.get_unread_message_count(tasker) == 1


@pytest.mark.django_db
def test_mark_as_read_and_conversation_summary(customer, tasker, conversation):
    messaging.send_message(customer, conversation.pk, "Premier")
    messaging.send_message(customer, conversation.pk, "Second")

    summary = messaging.get_conversations(tasker).get(pk=conversation.pk)
    assert summary.unread_count == 2
    assert summary.last_message_content == "Second"

    assert messaging.mark_messages_as_read(tasker, conversation.pk) == 2
    assert messaging.get_conversations(tasker).get(pk=conversation.pk).unread_count == 0


@pytest.mark.django_db
def test_unknown_conversation(customer):
    with pytest.raises(NotFound):
        messaging.get_messages(customer, 987654)


# ---- API ----

@pytest.mark.django_db
def test_api_conversation_flow(customer_client, tasker_client, tasker):
    created = customer_client.post("/api/conversations/", {"other_user_id": tasker.pk,
                                                           "initial_message": "Bonjour"}, format="json")
    assert created.status_code == 201
    conversation_id = created.data["conversation"]["id"]
    assert created.data["conversation"]["other_participant"]["id"] == tasker.pk

    reused = customer_client.post("/api/conversations/", {"other_user_id": tasker.pk}, format="json")
    assert reused.status_code == 200
    assert reused.data["created"] is False

    count = tasker_client.get("/api/conversations/unread-count/")
    assert count.data["count"] == 1

    listing = tasker_client.get("/api/conversations/")
    assert listing.data["conversations"][0]["last_message"]["content"] == "Bonjour"
    assert listing.data["conversations"][0]["unread_count"] == 1

    reply = tasker_client.post(f"/api/conversations/{conversation_id}/messages/", {"content": "Salut"},
                               format="json")
    assert reply.status_code == 201

    page = customer_client.get(f"/api/conversations/{conversation_id}/messages/?limit=1")
    assert page.data["has_more"] is True
    assert page.data["messages"][0]["content"] == "Salut"


# ---- Websocket ----

def _connect_and_chat(user, conversation_id, payload=None):
    async def scenario():
        communicator = WebsocketCommunicator(ChatConsumer.as_asgi(), f"/ws/chat/{conversation_id}/")
        communicator.scope['user'] = user
        communicator.scope['url_route'] = {'kwargs': {'conversation_id': str(conversation_id)}}
        connected, _ = await communicator.connect()
        event = None
        if connected:
            await communicator.send_json_to(payload or {})
            event = await communicator.receive_json_from(timeout=3)
        await communicator.disconnect()
        return connected, event

    return async_to_sync(scenario)()


@pytest.mark.django_db(transaction=True)
def test_websocket_message_is_saved_and_broadcast(customer, tasker, conversation):
    connected, event = _connect_and_chat(customer, conversation.pk, {'message': "En route !"})

    assert connected is True
    assert event["message"] == "En route !"
    assert event["sender_id"] == customer.pk
    assert Message.objects.filter(conversation=conversation, receiver=tasker).count() == 1


@pytest.mark.django_db(transaction=True)
def test_websocket_reports_invalid_message(customer, conversation):
    connected, event = _connect_and_chat(customer, conversation.pk, {'message': "   "})

    assert connected is True
    assert event == {'error': "Message cannot be empty", 'code': 'validation_failed'}


@pytest.mark.django_db(transaction=True)
def test_websocket_refuses_outsiders(other_tasker, conversation):
    connected, _ = _connect_and_chat(other_tasker, conversation.pk)
    assert connected is False

    anonymous, _ = _connect_and_chat(AnonymousUser(), conversation.pk)
    assert anonymous is False

