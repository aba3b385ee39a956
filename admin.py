import logging

import storage
from auth import require_admin
from errors import NotFoundError
from relay import relay

logger = logging.getLogger(__name__)


def get_stats(identity):
    require_admin(identity)
    total_users = storage.count_users()
    return {
        "totalUsers": total_users,
        # No activity tracking exists yet; every account counts as active.
        "activeUsers": total_users,
        "totalMessages": storage.count_messages() + storage.count_chat_messages(),
    }


def list_users(identity):
    require_admin(identity)
    return storage.list_users()


def delete_user(identity, user_id):
    require_admin(identity)
    user = storage.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")

    username = user.username
    storage.delete_user(user)
    relay.evict_user(user_id)
    logger.info("User %s (id=%s) deleted by %s", username, user_id, identity.username)


def delete_message(identity, message_id):
    require_admin(identity)
    msg = storage.get_message(message_id)
    if msg is None:
        raise NotFoundError("Message not found")

    storage.delete_message(msg)
    logger.info("Message %s removed by %s", message_id, identity.username)


def get_site_settings():
    settings = storage.get_site_settings()
    if settings is None:
        return storage.default_site_settings()
    return settings.to_dict()


def update_site_settings(identity, site_name, footer_text, logo_url=None):
    require_admin(identity)
    settings = storage.upsert_site_settings(site_name, footer_text, logo_url or None)
    logger.info("Site settings updated by %s", identity.username)
    return settings
