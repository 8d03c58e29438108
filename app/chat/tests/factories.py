"""
Factory Boy factories for chat models.

Usage:
    from chat.tests.factories import ChatFactory, MessageFactory

    # Chat with two participants
    chat = ChatFactory(participants=[user, other_user])

    # Message from a participant
    message = MessageFactory(chat=chat, sender=user)

    # AI reply
    reply = AIMessageFactory(chat=chat)
"""

import factory

from authentication.tests.factories import UserFactory
from chat.models import Chat, Message, MessageAttachment


class ChatFactory(factory.django.DjangoModelFactory):
    """
    Factory for Chat model.

    ``participants`` accepts a list of users; without it a fresh user is
    created and added.
    """

    class Meta:
        model = Chat
        skip_postgeneration_save = True

    title = factory.Sequence(lambda n: f"Chat {n}")

    @factory.post_generation
    def participants(self, create, extracted, **kwargs):
        if not create:
            return
        if extracted is None:
            extracted = [UserFactory()]
        self.participants.add(*extracted)


class MessageFactory(factory.django.DjangoModelFactory):
    """
    Factory for user-authored messages.

    The sender is added to the chat's participants when missing, so the
    message is always valid.
    """

    class Meta:
        model = Message

    chat = factory.SubFactory(ChatFactory)
    sender = factory.SubFactory(UserFactory)
    content = factory.Faker("sentence")
    is_ai = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        chat = kwargs["chat"]
        sender = kwargs.get("sender")
        if sender is not None and not chat.participants.filter(pk=sender.pk).exists():
            chat.participants.add(sender)
        return super()._create(model_class, *args, **kwargs)


class AIMessageFactory(MessageFactory):
    """Factory for AI-authored messages (no sender)."""

    sender = None
    is_ai = True


class MessageAttachmentFactory(factory.django.DjangoModelFactory):
    """Factory for message attachments."""

    class Meta:
        model = MessageAttachment

    message = factory.SubFactory(MessageFactory)
    filename = factory.Sequence(lambda n: f"notes_{n}.txt")
    path = factory.LazyAttribute(lambda o: f"/media/uploads/{o.filename}")
    mimetype = "text/plain"
