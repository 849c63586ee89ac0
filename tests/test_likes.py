"""
Tests for the like toggle, including the version-counter conflict between
two sessions that read the same post.
"""
import pytest
from sqlalchemy.orm import sessionmaker

from auth.models import User
from database import Base, build_engine
from exceptions import ConflictError, NotFoundError
from posts.models import Post
from posts.services import PostService
from conftest import create_post


class TestToggleLike:

    def test_like_then_unlike(self, client, alice):
        user, headers = alice
        post = create_post(client, headers, "hello")

        resp = client.put(f"/api/posts/{post['id']}/like", headers=headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["liked"] is True
        assert body["message"] == "Post liked"
        assert body["likesCount"] == 1
        assert body["post"]["likes"] == [user["id"]]

        resp = client.put(f"/api/posts/{post['id']}/like", headers=headers)
        body = resp.json()
        assert body["liked"] is False
        assert body["message"] == "Post unliked"
        assert body["likesCount"] == 0
        assert body["post"]["likes"] == []

    def test_toggle_alternates(self, client, alice):
        _, headers = alice
        post = create_post(client, headers, "hello")
        states = [client.put(f"/api/posts/{post['id']}/like", headers=headers).json()["liked"] for _ in range(5)]
        assert states == [True, False, True, False, True]

    def test_likes_keep_order_and_are_unique(self, client, alice, bob):
        alice_user, alice_headers = alice
        bob_user, bob_headers = bob
        post = create_post(client, alice_headers, "hello")

        client.put(f"/api/posts/{post['id']}/like", headers=bob_headers)
        body = client.put(f"/api/posts/{post['id']}/like", headers=alice_headers).json()
        assert body["post"]["likes"] == [bob_user["id"], alice_user["id"]]
        assert body["likesCount"] == 2

        body = client.put(f"/api/posts/{post['id']}/like", headers=bob_headers).json()
        assert body["post"]["likes"] == [alice_user["id"]]
        assert body["post"]["likes_count"] == 1

    def test_like_is_visible_in_feed(self, client, alice):
        user, headers = alice
        post = create_post(client, headers, "hello")
        client.put(f"/api/posts/{post['id']}/like", headers=headers)
        feed = client.get("/api/posts").json()
        assert feed["posts"][0]["likes"] == [user["id"]]

    def test_missing_post(self, client, alice):
        _, headers = alice
        resp = client.put("/api/posts/12345/like", headers=headers)
        assert resp.status_code == 404

    def test_missing_post_in_service(self, db):
        with pytest.raises(NotFoundError):
            PostService.toggle_like(12345, 1, db)

    def test_requires_auth(self, client, alice):
        _, headers = alice
        post = create_post(client, headers, "hello")
        assert client.put(f"/api/posts/{post['id']}/like").status_code == 401


class TestConcurrentToggle:

    @pytest.fixture
    def session_factory(self, tmp_path):
        engine = build_engine(f"sqlite:///{tmp_path / 'race.db'}")
        Base.metadata.create_all(bind=engine)
        yield sessionmaker(bind=engine, autoflush=False)
        engine.dispose()

    def test_stale_toggle_is_rejected(self, session_factory):
        setup = session_factory()
        alice = User(username="alice", email="alice@example.com", password_hash="x")
        bob = User(username="bob", email="bob@example.com", password_hash="x")
        setup.add_all([alice, bob])
        setup.commit()
        post = Post(user_id=alice.id, content="race", like_count=0)
        setup.add(post)
        setup.commit()
        post_id, alice_id, bob_id = post.id, alice.id, bob.id
        setup.close()

        first = session_factory()
        second = session_factory()
        stale = first.query(Post).filter(Post.id == post_id).first()
        assert stale.version_id == 1

        _, liked = PostService.toggle_like(post_id, alice_id, second)
        assert liked is True
        second.close()

        with pytest.raises(ConflictError):
            PostService.toggle_like(post_id, bob_id, first)
        first.close()

        check = session_factory()
        stored = check.query(Post).filter(Post.id == post_id).first()
        assert stored.likes == [alice_id]
        assert stored.like_count == 1
        check.close()

    def test_conflict_maps_to_409(self, client, alice, monkeypatch):
        _, headers = alice
        post = create_post(client, headers, "hello")

        def lose_race(post_id, user_id, db):
            raise ConflictError()

        monkeypatch.setattr(PostService, "toggle_like", staticmethod(lose_race))
        resp = client.put(f"/api/posts/{post['id']}/like", headers=headers)
        assert resp.status_code == 409
