import logging

import storage
from auth import require_authenticated
from errors import NotFoundError

logger = logging.getLogger(__name__)


def public_profile(username):
    user = storage.get_user_by_username(username)
    if user is None:
        raise NotFoundError("User not found")
    return user


def send_message(recipient_id, content, sender_info=None):
    recipient = storage.get_user(recipient_id)
    if recipient is None:
        raise NotFoundError("Recipient not found")
    return storage.create_message(recipient.id, content, sender_info or None)


def list_inbox(identity):
    require_authenticated(identity)
    if identity.user_id is None:
        return []
    return storage.messages_for_recipient(identity.user_id)


def _owned_message(identity, message_id):
    require_authenticated(identity)
    msg = None
    if identity.user_id is not None:
        msg = storage.get_message_for_recipient(message_id, identity.user_id)
    if msg is None:
        raise NotFoundError("Message not found")
    return msg


def delete_message(identity, message_id):
    msg = _owned_message(identity, message_id)
    storage.delete_message(msg)
    logger.info("Message %s deleted by its recipient", message_id)


def mark_read(identity, message_id):
    return storage.mark_message_read(_owned_message(identity, message_id))
