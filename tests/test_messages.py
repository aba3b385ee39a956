import storage
from models import Message


def send(client, recipient_id, content="you are great", sender_info=None):
    payload = {"recipientId": recipient_id, "content": content}
    if sender_info is not None:
        payload["senderInfo"] = sender_info
    return client.post("/api/messages", json=payload)


def test_profile_lookup_hides_private_fields(user_client, client):
    alice = user_client("alice")

    response = client.get("/api/users/alice")

    assert response.status_code == 200
    user = response.get_json()["user"]
    assert user["id"] == alice.user["id"]
    assert user["username"] == "alice"
    assert "email" not in user
    assert "passwordHash" not in user


def test_profile_lookup_unknown_user(client):
    response = client.get("/api/users/nobody")

    assert response.status_code == 404
    assert response.get_json()["message"] == "User not found"


def test_anonymous_visitor_can_leave_a_message(user_client, client):
    alice = user_client("alice")

    response = send(client, alice.user["id"], "  hello there  ", sender_info="Secret Fan")

    assert response.status_code == 200
    msg = response.get_json()["message"]
    assert msg["content"] == "hello there"
    assert msg["senderInfo"] == "Secret Fan"
    assert msg["isRead"] is False

    inbox = alice.get("/api/messages").get_json()["messages"]
    assert [m["id"] for m in inbox] == [msg["id"]]


def test_blank_sender_label_is_stored_as_none(user_client, client):
    alice = user_client("alice")

    msg = send(client, alice.user["id"], sender_info="   ").get_json()["message"]

    assert msg["senderInfo"] is None


def test_message_to_unknown_recipient(client, app):
    response = send(client, 999)

    assert response.status_code == 404
    with app.app_context():
        assert Message.query.count() == 0


def test_message_requires_content(user_client, client):
    alice = user_client("alice")

    response = send(client, alice.user["id"], "   ")

    assert response.status_code == 400
    assert "content" in response.get_json()["errors"]


def test_message_requires_numeric_recipient(client):
    response = client.post("/api/messages", json={"recipientId": "abc", "content": "hi"})

    assert response.status_code == 400
    assert "recipient_id" in response.get_json()["errors"]


def test_message_recipient_is_not_coerced(user_client, client, app):
    alice = user_client("alice")
    assert alice.user["id"] == 1

    for bogus in (True, 1.9, "1.5"):
        response = client.post("/api/messages", json={"recipientId": bogus, "content": "hi"})
        assert response.status_code == 400, bogus
        assert "recipient_id" in response.get_json()["errors"]

    with app.app_context():
        assert Message.query.count() == 0

    digits = client.post("/api/messages", json={"recipientId": "1", "content": "hi"})
    assert digits.status_code == 200
    assert digits.get_json()["message"]["recipientId"] == 1


def test_inbox_is_newest_first_and_private(user_client, client):
    alice = user_client("alice")
    bob = user_client("bob")
    first = send(client, alice.user["id"], "first").get_json()["message"]
    second = send(client, alice.user["id"], "second").get_json()["message"]
    send(client, bob.user["id"], "for bob")

    inbox = alice.get("/api/messages").get_json()["messages"]

    assert [m["id"] for m in inbox] == [second["id"], first["id"]]


def test_inbox_requires_login(client):
    response = client.get("/api/messages")

    assert response.status_code == 401
    assert response.get_json()["message"] == "Authentication required"


def test_recipient_marks_read_and_deletes(user_client, client, app):
    alice = user_client("alice")
    msg = send(client, alice.user["id"]).get_json()["message"]

    assert alice.patch(f"/api/messages/{msg['id']}/read").status_code == 200
    assert alice.get("/api/messages").get_json()["messages"][0]["isRead"] is True

    assert alice.delete(f"/api/messages/{msg['id']}").status_code == 200
    assert alice.get("/api/messages").get_json()["messages"] == []


def test_only_recipient_can_touch_a_message(user_client, client, app):
    alice = user_client("alice")
    bob = user_client("bob")
    msg = send(client, alice.user["id"]).get_json()["message"]

    assert bob.patch(f"/api/messages/{msg['id']}/read").status_code == 404
    assert bob.delete(f"/api/messages/{msg['id']}").status_code == 404

    with app.app_context():
        stored = storage.get_message(msg["id"])
        assert stored is not None
        assert stored.is_read is False


def test_admin_has_an_empty_inbox(admin_client):
    response = admin_client.get("/api/messages")

    assert response.status_code == 200
    assert response.get_json()["messages"] == []


def test_recent_chat_messages(user_client, client, app):
    alice = user_client("alice")
    with app.app_context():
        storage.create_chat_message(alice.user["id"], "one")
        storage.create_chat_message(alice.user["id"], "two")

    messages = client.get("/api/chat/messages").get_json()["messages"]

    assert [m["content"] for m in messages] == ["two", "one"]
    assert messages[0]["username"] == "alice"
    assert messages[0]["initials"] == "AL"


def test_unknown_route_is_json(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert "message" in response.get_json()


def test_api_responses_are_not_cached(client):
    response = client.get("/api/chat/messages")

    assert response.headers["Cache-Control"].startswith("no-store")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
