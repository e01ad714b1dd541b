import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from .models import Conversation
from .services.errors import ActionError
from .services.messaging import chat_group_name, send_message

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncWebsocketConsumer):
    async def connect(self):
        self.conversation_id = self.scope['url_route']['kwargs']['conversation_id']
        self.room_group_name = chat_group_name(self.conversation_id)

        # Vérifie que l’utilisateur est bien participant de la conversation
        if await self.is_valid_conversation():
            await self.channel_layer.group_add(
                self.room_group_name,
                self.channel_name
            )
            await self.accept()
        else:
            await self.close()

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(
            self.room_group_name,
            self.channel_name
        )

    # Réception d’un message du WebSocket ; la diffusion est faite par le service
    async def receive(self, text_data=None, bytes_data=None):
        try:
            data = json.loads(text_data or '{}')
        except ValueError:
            await self.send(text_data=json.dumps({'error': "Invalid payload"}))
            return

        try:
            await self.save_message(data.get('message'), data.get('attachment_url'))
        except ActionError as exc:
            await self.send(text_data=json.dumps({'error': exc.message, 'code': exc.code}))

    # Réception du broadcast et renvoi au client
    async def chat_message(self, event):
        payload = {key: value for key, value in event.items() if key != 'type'}
        await self.send(text_data=json.dumps(payload))

    @database_sync_to_async
    def is_valid_conversation(self):
        user = self.scope.get('user')
        if user is None or not user.is_authenticated:
            return False
        conversation = Conversation.objects.filter(pk=self.conversation_id).first()
        return conversation is not None and conversation.has_participant(user)

    @database_sync_to_async
    def save_message(self, content, attachment_url=None):
        return send_message(self.scope['user'], self.conversation_id, content, attachment_url)
