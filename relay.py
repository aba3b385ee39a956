"""Presence & Broadcast Relay for the public chat room.

Each Socket.IO connection is a channel. A channel starts unidentified,
becomes joined once its session resolves to a logged-in identity, and is
forgotten on disconnect. All presence state lives on ``PresenceRelay`` and
every mutation is followed by its broadcast under the same lock, so
broadcasts leave in the order events were accepted.
"""
import logging
import threading
from collections import namedtuple

from flask import request
from flask_login import current_user
from flask_socketio import SocketIO, emit

import storage
from errors import AppError, AuthRequiredError, ForbiddenError
from forms import ChatMessageForm, load_form
from models import db, initials_for, isoformat

logger = logging.getLogger(__name__)

socketio = SocketIO()

Member = namedtuple("Member", ["user_id", "username"])


class PresenceRelay:
    def __init__(self, server):
        self.server = server
        self._lock = threading.RLock()
        self._members = {}

    @property
    def online_usernames(self):
        with self._lock:
            return {member.username for member in self._members.values()}

    @property
    def user_count(self):
        return len(self.online_usernames)

    def _broadcast_count(self):
        self.server.emit("user_count", self.user_count)

    def join(self, sid, identity):
        if identity is None or not identity.is_authenticated:
            raise AuthRequiredError()

        with self._lock:
            self._members[sid] = Member(identity.user_id, identity.username)
            logger.info("Channel %s joined as %s", sid, identity.username)
            self._broadcast_count()

    def leave(self, sid):
        with self._lock:
            member = self._members.pop(sid, None)
            if member is None:
                return
            logger.info("Channel %s (%s) left", sid, member.username)
            self._broadcast_count()

    def evict_user(self, user_id):
        with self._lock:
            sids = [sid for sid, member in self._members.items() if member.user_id == user_id]
            if not sids:
                return
            for sid in sids:
                del self._members[sid]
            logger.info("Evicted %d channel(s) of deleted user %s", len(sids), user_id)
            self._broadcast_count()

    def submit(self, sid, payload):
        with self._lock:
            member = self._members.get(sid)
            if member is None:
                raise AuthRequiredError()

            form = load_form(ChatMessageForm, payload or {}, message="Message content is required")

            if member.user_id is None:
                raise ForbiddenError("Administrator cannot post to chat")
            if storage.get_user(member.user_id) is None:
                raise AuthRequiredError()

            chat = storage.create_chat_message(member.user_id, form.content.data)
            event = {
                "id": chat.id,
                "username": member.username,
                "content": chat.content,
                "createdAt": isoformat(chat.created_at),
                "initials": initials_for(member.username),
            }
            self.server.emit("new_chat_message", event)
            return event


relay = PresenceRelay(socketio)


# --------------------
# SOCKET EVENTS
# --------------------
@socketio.on("connect")
def on_connect(auth=None):
    logger.info("Channel %s connected", request.sid)


@socketio.on("join")
def on_join(data=None):
    try:
        relay.join(request.sid, current_user._get_current_object())
    except AppError as exc:
        emit("error", exc.message)


@socketio.on("chat_message")
def on_chat_message(data=None):
    try:
        relay.submit(request.sid, data)
    except AppError as exc:
        emit("error", exc.message)
    except Exception:
        db.session.rollback()
        logger.exception("Chat message from %s failed", request.sid)
        emit("error", "Failed to send message")


@socketio.on("disconnect")
def on_disconnect(reason=None):
    relay.leave(request.sid)
