"""Tests for attaching, ordering and detaching topics on an episode."""
import threading

from sqlalchemy.orm import sessionmaker

from podplanner.models.episode import EpisodeTopic
from podplanner.services import episode_topic_service
from tests.conftest import create_episode, create_group, create_topic, join_with_code, register_user


def _setup(client, topics=("A", "B", "C")):
    register_user(client, "alice")
    group = create_group(client)
    episode = create_episode(client, group["id"])
    created = [create_topic(client, group["id"], name) for name in topics]
    return group, episode, created


class TestAttach:

    def test_attach_twice_keeps_one_row(self, client, db):
        _, episode, (topic,) = _setup(client, topics=("A",))
        url = f"/api/episodes/{episode['id']}/topics/{topic['id']}"

        assert client.post(url, json={"order": 3}).status_code == 200
        resp = client.post(url, json={"order": 7})
        assert resp.status_code == 200
        assert [(t["id"], t["order"]) for t in resp.json()] == [(topic["id"], 7)]

        rows = db.query(EpisodeTopic).filter(EpisodeTopic.episode_id == episode["id"]).all()
        assert len(rows) == 1
        assert rows[0].order == 7

    def test_listing_follows_order(self, client):
        _, episode, (a, b, c) = _setup(client)
        for topic, order in ((a, 2), (b, 0), (c, 1)):
            client.post(f"/api/episodes/{episode['id']}/topics/{topic['id']}", json={"order": order})
        listed = client.get(f"/api/episodes/{episode['id']}/topics").json()
        assert [t["name"] for t in listed] == ["B", "C", "A"]

    def test_negative_order_rejected(self, client):
        _, episode, (topic, _, _) = _setup(client)
        resp = client.post(f"/api/episodes/{episode['id']}/topics/{topic['id']}", json={"order": -1})
        assert resp.status_code == 422

    def test_topic_from_other_group_rejected(self, client):
        _, episode, _ = _setup(client)
        other_group = create_group(client, "Other")
        foreign = create_topic(client, other_group["id"], "Foreign")
        resp = client.post(f"/api/episodes/{episode['id']}/topics/{foreign['id']}", json={"order": 0})
        assert resp.status_code == 422

    def test_missing_topic(self, client):
        _, episode, _ = _setup(client)
        resp = client.post(f"/api/episodes/{episode['id']}/topics/999", json={"order": 0})
        assert resp.status_code == 404

    def test_detach_removes_only_link(self, client):
        group, episode, (a, b, _) = _setup(client)
        client.post(f"/api/episodes/{episode['id']}/topics/{a['id']}", json={"order": 0})
        client.post(f"/api/episodes/{episode['id']}/topics/{b['id']}", json={"order": 1})

        resp = client.delete(f"/api/episodes/{episode['id']}/topics/{a['id']}")
        assert resp.status_code == 200
        assert [t["id"] for t in resp.json()] == [b["id"]]
        assert a["id"] in [t["id"] for t in client.get(f"/api/groups/{group['id']}/topics").json()]

    def test_new_attachment_notifies_members(self, client, make_client, outbox):
        group, episode, (a, _, _) = _setup(client)
        bob = make_client()
        register_user(bob, "bob")
        join_with_code(client, bob, group["id"])
        outbox.clear()

        client.post(f"/api/episodes/{episode['id']}/topics/{a['id']}", json={"order": 0})
        assert [m["to"] for m in outbox] == ["bob@example.com"]
        assert outbox[0]["subject"].startswith("New Topic Assignment")

        outbox.clear()
        client.post(f"/api/episodes/{episode['id']}/topics/{a['id']}", json={"order": 1})
        assert outbox == []


class TestReorder:

    def _attach_all(self, client, episode, topics):
        for order, topic in enumerate(topics):
            client.post(f"/api/episodes/{episode['id']}/topics/{topic['id']}", json={"order": order})

    def test_reorder_rewrites_positions(self, client):
        _, episode, (a, b, c) = _setup(client)
        self._attach_all(client, episode, (a, b, c))

        resp = client.put(f"/api/episodes/{episode['id']}/topics/order", json={
            "topic_ids": [c["id"], a["id"], b["id"]],
        })
        assert resp.status_code == 200
        assert [(t["name"], t["order"]) for t in resp.json()] == [("C", 0), ("A", 1), ("B", 2)]

        listed = client.get(f"/api/episodes/{episode['id']}/topics").json()
        assert [(t["name"], t["order"]) for t in listed] == [("C", 0), ("A", 1), ("B", 2)]

    def test_stale_list_is_rejected_without_changes(self, client):
        _, episode, (a, b, c) = _setup(client)
        self._attach_all(client, episode, (a, b, c))

        resp = client.put(f"/api/episodes/{episode['id']}/topics/order", json={"topic_ids": [b["id"], a["id"]]})
        assert resp.status_code == 409
        assert resp.json()["detail"]["error"] == "STALE_ORDER"

        listed = client.get(f"/api/episodes/{episode['id']}/topics").json()
        assert [(t["name"], t["order"]) for t in listed] == [("A", 0), ("B", 1), ("C", 2)]

    def test_duplicate_ids_rejected(self, client):
        _, episode, (a, b, c) = _setup(client)
        self._attach_all(client, episode, (a, b, c))
        resp = client.put(f"/api/episodes/{episode['id']}/topics/order", json={
            "topic_ids": [a["id"], a["id"], b["id"]],
        })
        assert resp.status_code == 422

    def test_sequential_reorders_last_wins(self, client, make_client):
        group, episode, (a, b, c) = _setup(client)
        self._attach_all(client, episode, (a, b, c))
        bob = make_client()
        register_user(bob, "bob")
        join_with_code(client, bob, group["id"])

        client.put(f"/api/episodes/{episode['id']}/topics/order", json={"topic_ids": [c["id"], a["id"], b["id"]]})
        bob.put(f"/api/episodes/{episode['id']}/topics/order", json={"topic_ids": [b["id"], c["id"], a["id"]]})

        listed = client.get(f"/api/episodes/{episode['id']}/topics").json()
        assert [(t["name"], t["order"]) for t in listed] == [("B", 0), ("C", 1), ("A", 2)]

    def test_concurrent_reorders_never_interleave(self, client, db_engine):
        _, episode, (a, b, c) = _setup(client)
        self._attach_all(client, episode, (a, b, c))
        submitted = [
            [c["id"], a["id"], b["id"]],
            [b["id"], c["id"], a["id"]],
        ]
        Session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
        barrier = threading.Barrier(len(submitted))
        errors = []

        def _reorder(topic_ids):
            session = Session()
            try:
                barrier.wait()
                episode_topic_service.reorder(session, episode["id"], topic_ids)
            except Exception as exc:  # a locked database loses the race
                errors.append(exc)
            finally:
                session.close()

        threads = [threading.Thread(target=_reorder, args=(ids,)) for ids in submitted]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(errors) < len(submitted)
        listed = client.get(f"/api/episodes/{episode['id']}/topics").json()
        assert [t["id"] for t in listed] in submitted
        assert [t["order"] for t in listed] == [0, 1, 2]

    def test_deleted_episode_keeps_order(self, client):
        _, episode, (a, b, c) = _setup(client)
        self._attach_all(client, episode, (a, b, c))
        client.delete(f"/api/episodes/{episode['id']}")
        listed = client.get(f"/api/episodes/{episode['id']}/topics").json()
        assert [(t["name"], t["order"]) for t in listed] == [("A", 0), ("B", 1), ("C", 2)]
