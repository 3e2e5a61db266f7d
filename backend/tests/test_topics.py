"""Tests for the topic vault and per-user topic notes."""
from podplanner.models.topic import TopicComment
from tests.conftest import create_group, create_topic, join_with_code, register_user


class TestTopicVault:

    def test_create_topic(self, client):
        register_user(client, "alice")
        group = create_group(client)
        topic = create_topic(client, group["id"], "AI news", url="https://example.com/ai")
        assert topic["name"] == "AI news"
        assert topic["url"] == "https://example.com/ai"
        assert topic["is_archived"] is False
        assert topic["is_deleted"] is False

    def test_name_falls_back_to_url(self, client):
        register_user(client, "alice")
        group = create_group(client)
        resp = client.post(f"/api/groups/{group['id']}/topics", json={"url": "https://example.com/story"})
        assert resp.status_code == 201
        assert resp.json()["name"] == "https://example.com/story"

    def test_empty_topic_rejected(self, client):
        register_user(client, "alice")
        group = create_group(client)
        resp = client.post(f"/api/groups/{group['id']}/topics", json={"name": " ", "url": ""})
        assert resp.status_code == 422

    def test_bad_url_rejected(self, client):
        register_user(client, "alice")
        group = create_group(client)
        resp = client.post(f"/api/groups/{group['id']}/topics", json={"name": "x", "url": "ftp://example.com"})
        assert resp.status_code == 422

    def test_flags_are_independent(self, client):
        register_user(client, "alice")
        group = create_group(client)
        topic = create_topic(client, group["id"])

        resp = client.patch(f"/api/topics/{topic['id']}", json={"is_archived": True})
        assert resp.json()["is_archived"] is True
        assert resp.json()["is_deleted"] is False

        resp = client.patch(f"/api/topics/{topic['id']}", json={"is_deleted": True})
        assert resp.json()["is_archived"] is True
        assert resp.json()["is_deleted"] is True

        resp = client.patch(f"/api/topics/{topic['id']}", json={"is_archived": False})
        assert resp.json()["is_archived"] is False
        assert resp.json()["is_deleted"] is True

    def test_list_includes_flagged_topics(self, client):
        register_user(client, "alice")
        group = create_group(client)
        first = create_topic(client, group["id"], "First")
        create_topic(client, group["id"], "Second")
        client.patch(f"/api/topics/{first['id']}", json={"is_deleted": True})

        topics = client.get(f"/api/groups/{group['id']}/topics").json()
        assert [t["name"] for t in topics] == ["First", "Second"]

    def test_rename_keeps_url(self, client):
        register_user(client, "alice")
        group = create_group(client)
        topic = create_topic(client, group["id"], "Old", url="https://example.com")
        resp = client.patch(f"/api/topics/{topic['id']}", json={"name": "New"})
        assert resp.json()["name"] == "New"
        assert resp.json()["url"] == "https://example.com"

    def test_outsider_cannot_edit(self, client, make_client):
        register_user(client, "alice")
        group = create_group(client)
        topic = create_topic(client, group["id"])
        outsider = make_client()
        register_user(outsider, "mallory")
        assert outsider.patch(f"/api/topics/{topic['id']}", json={"name": "x"}).status_code == 403
        assert outsider.get(f"/api/topics/{topic['id']}/comments").status_code == 403

    def test_missing_topic(self, client):
        register_user(client, "alice")
        assert client.patch("/api/topics/999", json={"name": "x"}).status_code == 404


class TestTopicNotes:

    def test_second_post_overwrites(self, client, db):
        user = register_user(client, "alice")
        group = create_group(client)
        topic = create_topic(client, group["id"])

        first = client.post(f"/api/topics/{topic['id']}/comments", json={"content": "first draft"})
        assert first.status_code == 200
        second = client.post(f"/api/topics/{topic['id']}/comments", json={"content": "final notes"})
        assert second.status_code == 200
        assert second.json()["id"] == first.json()["id"]

        rows = db.query(TopicComment).filter(
            TopicComment.user_id == user["id"], TopicComment.topic_id == topic["id"],
        ).all()
        assert len(rows) == 1
        assert rows[0].content == "final notes"

    def test_notes_listed_with_authors(self, client, make_client):
        register_user(client, "alice")
        group = create_group(client)
        bob = make_client()
        register_user(bob, "bob")
        join_with_code(client, bob, group["id"])
        topic = create_topic(client, group["id"])

        client.post(f"/api/topics/{topic['id']}/comments", json={"content": "from alice"})
        bob.post(f"/api/topics/{topic['id']}/comments", json={"content": "from bob"})

        notes = client.get(f"/api/topics/{topic['id']}/comments").json()
        assert {(n["user"]["username"], n["content"]) for n in notes} == {
            ("alice", "from alice"),
            ("bob", "from bob"),
        }

    def test_empty_note_rejected(self, client):
        register_user(client, "alice")
        group = create_group(client)
        topic = create_topic(client, group["id"])
        resp = client.post(f"/api/topics/{topic['id']}/comments", json={"content": "   "})
        assert resp.status_code == 422
