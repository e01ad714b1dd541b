# services/messaging.py
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.db.models import Count, OuterRef, Q, Subquery
from django.utils import timezone

from market.models import Conversation, Job, Message, ServiceBooking, TaskerService, User
from market.services.errors import NotFound, Unauthorized, ValidationFailed, require_auth
from market.services.notifications import notify

logger = logging.getLogger(__name__)

MESSAGE_MAX_LENGTH = 5000
PREVIEW_LENGTH = 80


def chat_group_name(conversation_id) -> str:
    return f"chat_{conversation_id}"


def serialize_for_socket(message: Message) -> dict:
    return {
        "id": message.pk,
        "conversation_id": message.conversation_id,
        "sender_id": message.sender_id,
        "sender": message.sender.get_full_name() or message.sender.email,
        "message": message.content,
        "attachment_url": message.attachment_url,
        "created_at": message.created_at.isoformat(),
    }


def broadcast_message(message: Message):
    """Diffusion temps réel ; un échec du channel layer n'annule pas l'envoi."""
    try:
        layer = get_channel_layer()
        if layer is None:
            return
        async_to_sync(layer.group_send)(
            chat_group_name(message.conversation_id),
            {"type": "chat_message", **serialize_for_socket(message)},
        )
    except Exception:
        logger.exception("Diffusion websocket impossible pour le message %s", message.pk)


def _get_conversation(user, conversation_id):
    try:
        conversation = Conversation.objects.select_related('participant1', 'participant2').get(pk=conversation_id)
    except (Conversation.DoesNotExist, ValueError):
        raise NotFound("Conversation not found")
    if not conversation.has_participant(user):
        raise Unauthorized()
    return conversation


def _clean_content(content) -> str:
    content = (content or '').strip()
    if not content:
        raise ValidationFailed("Message cannot be empty")
    if len(content) > MESSAGE_MAX_LENGTH:
        raise ValidationFailed(f"Message cannot exceed {MESSAGE_MAX_LENGTH} characters")
    return content


def _context_filter(context):
    return {name: context.get(name) for name in ('job', 'booking', 'tasker_service')}


def create_conversation(user, other_user_id, job=None, booking=None, tasker_service=None, initial_message=None):
    """Retourne (conversation, created). Réutilise la conversation existante pour la même paire et le même contexte."""
    require_auth(user)
    try:
        other = User.objects.get(pk=other_user_id, is_active=True)
    except (User.DoesNotExist, ValueError, TypeError):
        raise NotFound("User not found")
    if other.pk == user.pk:
        raise ValidationFailed("You cannot start a conversation with yourself")

    context = {}
    for name, model, value in (('job', Job, job), ('booking', ServiceBooking, booking),
                               ('tasker_service', TaskerService, tasker_service)):
        if value:
            try:
                context[name] = model.objects.get(pk=value)
            except (model.DoesNotExist, ValueError):
                raise NotFound(f"{model._meta.verbose_name.capitalize()} not found")
    booking_obj = context.get('booking')
    if booking_obj and {user.pk, other.pk} != {booking_obj.customer_id, booking_obj.tasker_id}:
        raise Unauthorized()

    with transaction.atomic():
        pair = Q(participant1=user, participant2=other) | Q(participant1=other, participant2=user)
        conversation = Conversation.objects.filter(pair, **_context_filter(context)).first()
        created = conversation is None
        if created:
            conversation = Conversation.objects.create(participant1=user, participant2=other, **context)

    if initial_message:
        send_message(user, conversation.pk, initial_message)
        conversation.refresh_from_db()
    return conversation, created


def get_conversations(user):
    """Conversations de l'utilisateur avec dernier message et nombre de non-lus."""
    require_auth(user)
    last = Message.objects.filter(conversation=OuterRef('pk')).order_by('-created_at', '-id')
    return (Conversation.objects
            .filter(Q(participant1=user) | Q(participant2=user))
            .select_related('participant1', 'participant2', 'job', 'booking', 'tasker_service')
            .annotate(
                last_message_content=Subquery(last.values('content')[:1]),
                last_message_sender=Subquery(last.values('sender_id')[:1]),
                unread_count=Count('messages', filter=Q(messages__receiver=user, messages__is_read=False)),
            )
            .order_by('-last_message_at', '-created_at'))


def get_messages(user, conversation_id, limit=50, before=None):
    """
    Page de messages du plus récent au plus ancien. `before` est l'id du
    dernier message déjà chargé. Les messages reçus de la page sont marqués lus.
    """
    require_auth(user)
    conversation = _get_conversation(user, conversation_id)
    limit = max(1, min(int(limit or 50), 100))

    qs = conversation.messages.select_related('sender').order_by('-created_at', '-id')
    if before:
        try:
            cursor = conversation.messages.get(pk=before)
        except (Message.DoesNotExist, ValueError):
            raise NotFound("Message not found")
        qs = qs.filter(Q(created_at__lt=cursor.created_at) | Q(created_at=cursor.created_at, id__lt=cursor.pk))

    rows = list(qs[:limit + 1])
    page = rows[:limit]

    unread_ids = [m.pk for m in page if m.receiver_id == user.pk and not m.is_read]
    if unread_ids:
        now = timezone.now()
        Message.objects.filter(pk__in=unread_ids).update(is_read=True, read_at=now)
        for message in page:
            if message.pk in unread_ids:
                message.is_read, message.read_at = True, now
    return {"conversation": conversation, "messages": page, "has_more": len(rows) > limit}


def send_message(user, conversation_id, content, attachment_url=None) -> Message:
    require_auth(user)
    content = _clean_content(content)
    conversation = _get_conversation(user, conversation_id)
    receiver = conversation.other_participant(user)

    with transaction.atomic():
        message = Message.objects.create(
            conversation=conversation,
            sender=user,
            receiver=receiver,
            content=content,
            attachment_url=attachment_url or None,
        )
        Conversation.objects.filter(pk=conversation.pk).update(last_message_at=message.created_at)

    broadcast_message(message)
    preview = content if len(content) <= PREVIEW_LENGTH else content[:PREVIEW_LENGTH - 1] + "…"
    notify(receiver, 'message_received', 'message_received', related_user=user,
           sender=user.get_full_name() or user.email, preview=preview)
    return message


def mark_messages_as_read(user, conversation_id) -> int:
    require_auth(user)
    conversation = _get_conversation(user, conversation_id)
    return conversation.messages.filter(receiver=user, is_read=False).update(is_read=True, read_at=timezone.now())


def get_unread_message_count(user) -> int:
    require_auth(user)
    return Message.objects.filter(receiver=user, is_read=False).count()
