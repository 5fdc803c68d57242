"""Tests for tweet creation, deletion, listing and search.

Covers:
- Content length rules (1-280) and that rejected input stores nothing
- Validation runs before the session check
- Ownership on delete, with missing and foreign tweets answered alike
- Stale sessions whose user row is gone
- Listing order and case-insensitive search
"""
import pytest

from tweeter.models.tweet import Tweet
from tweeter.models.user import User
from tests.conftest import create_test_user, login, post_tweet


class TestCreateTweet:
    """Tweet creation and validation."""

    @pytest.mark.parametrize("length", [1, 2, 140, 279, 280])
    def test_valid_lengths(self, client, db, length):
        create_test_user(client)
        content = "x" * length
        resp = post_tweet(client, content)
        assert resp.status_code == 201
        data = resp.json()
        assert data["success"] is True
        assert data["message"] == "Tweet created successfully!"
        stored = db.query(Tweet).filter(Tweet.id == data["tweetId"]).one()
        assert stored.content == content

    def test_content_is_stored_exactly(self, client, db):
        create_test_user(client)
        content = "  spaced 한국어 & <tags> 100%  "
        tweet_id = post_tweet(client, content).json()["tweetId"]
        assert db.query(Tweet).filter(Tweet.id == tweet_id).one().content == content

    @pytest.mark.parametrize("content, message", [
        ("", "Tweet content cannot be empty"),
        ("x" * 281, "Tweet cannot exceed 280 characters"),
        ("x" * 1000, "Tweet cannot exceed 280 characters"),
    ])
    def test_invalid_lengths(self, client, db, content, message):
        create_test_user(client)
        resp = post_tweet(client, content)
        assert resp.status_code == 400
        assert resp.json()["errors"] == {"content": [message]}
        assert db.query(Tweet).count() == 0

    def test_requires_login(self, client, db):
        resp = post_tweet(client, "hello")
        assert resp.status_code == 401
        data = resp.json()
        assert data["message"] == "Authentication required."
        assert data["errors"] == {"server": ["You must be logged in to tweet"]}
        assert db.query(Tweet).count() == 0

    def test_validation_runs_before_session_check(self, client):
        resp = post_tweet(client, "")
        assert resp.status_code == 400
        assert "content" in resp.json()["errors"]

    def test_unreadable_session(self, client):
        resp = client.post("/api/tweets/", data={"content": "hi"},
                           headers={"cookie": "session=not-a-token"})
        assert resp.status_code == 401
        data = resp.json()
        assert data["message"] == "Authentication error."
        assert data["errors"] == {"server": ["Invalid session data"]}

    def test_session_of_deleted_user(self, client, db):
        create_test_user(client)
        db.query(User).delete()
        db.commit()

        resp = post_tweet(client, "hello")
        assert resp.status_code == 404
        assert resp.json()["message"] == "User not found."
        assert db.query(Tweet).count() == 0


class TestDeleteTweet:
    """Only the owner can delete; the row is untouched otherwise."""

    def test_delete_own_tweet(self, client, db):
        create_test_user(client)
        tweet_id = post_tweet(client).json()["tweetId"]
        resp = client.delete(f"/api/tweets/{tweet_id}")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Tweet deleted successfully!", "success": True}
        assert db.query(Tweet).count() == 0

    def test_delete_other_users_tweet(self, client, other_client, db):
        create_test_user(client)
        tweet_id = post_tweet(client).json()["tweetId"]
        create_test_user(other_client, email="other@b.com", username="other")

        resp = other_client.delete(f"/api/tweets/{tweet_id}")
        assert resp.status_code == 403
        data = resp.json()
        assert data["message"] == "Unauthorized or tweet not found"
        assert data["errors"] == {"authorization": ["You cannot delete this tweet."]}

        stored = db.query(Tweet).filter(Tweet.id == tweet_id).one()
        assert stored.content == "hello"

    def test_delete_missing_tweet_looks_like_foreign_tweet(self, client):
        create_test_user(client)
        resp = client.delete("/api/tweets/9999")
        assert resp.status_code == 403
        assert resp.json()["message"] == "Unauthorized or tweet not found"

    def test_delete_requires_login(self, client, other_client, db):
        create_test_user(client)
        tweet_id = post_tweet(client).json()["tweetId"]
        resp = other_client.delete(f"/api/tweets/{tweet_id}")
        assert resp.status_code == 401
        assert resp.json()["errors"] == {"server": ["You must be logged in to delete a tweet"]}
        assert db.query(Tweet).count() == 1

    def test_bad_tweet_id(self, client):
        create_test_user(client)
        resp = client.delete("/api/tweets/not-a-number")
        assert resp.status_code == 400
        assert "tweet_id" in resp.json()["errors"]


class TestListAndSearch:
    """Public listings."""

    def test_list_newest_first(self, client, other_client):
        create_test_user(client)
        create_test_user(other_client, email="other@b.com", username="other")
        post_tweet(client, "first")
        post_tweet(other_client, "second")
        post_tweet(client, "third")

        resp = client.get("/api/tweets/")
        assert resp.status_code == 200
        tweets = resp.json()
        assert [t["content"] for t in tweets] == ["third", "second", "first"]
        assert tweets[1]["user"] == {"username": "other"}
        assert set(tweets[0]) == {"id", "content", "createdAt", "userId", "user"}

    def test_list_needs_no_login(self, client, other_client):
        create_test_user(client)
        post_tweet(client, "visible")
        resp = other_client.get("/api/tweets/")
        assert resp.status_code == 200
        assert len(resp.json()) == 1

    def test_search_is_case_insensitive(self, client):
        create_test_user(client)
        post_tweet(client, "Hello World")
        post_tweet(client, "something else")
        post_tweet(client, "oh HELLO again")

        resp = client.get("/api/tweets/search", params={"query": "hello"})
        assert resp.status_code == 200
        assert [t["content"] for t in resp.json()] == ["oh HELLO again", "Hello World"]

    def test_search_treats_wildcards_literally(self, client):
        create_test_user(client)
        post_tweet(client, "100% sure")
        post_tweet(client, "100 percent")
        resp = client.get("/api/tweets/search", params={"query": "100%"})
        assert [t["content"] for t in resp.json()] == ["100% sure"]

    def test_search_requires_query(self, client):
        resp = client.get("/api/tweets/search")
        assert resp.status_code == 400
        assert resp.json()["errors"] == {"query": ["Query is required"]}

    def test_search_query_too_long(self, client):
        resp = client.get("/api/tweets/search", params={"query": "x" * 281})
        assert resp.status_code == 400
        assert "query" in resp.json()["errors"]


class TestScenario:
    """Create, log in, tweet, failed foreign delete, list by username."""

    def test_end_to_end(self, client, other_client, db):
        created = create_test_user(client, email="a@b.com", username="abc", password="Abc123!")
        assert isinstance(created["userId"], int)

        client.post("/api/auth/logout")
        resp = login(client, email="a@b.com", password="Abc123!")
        assert resp.status_code == 200
        assert "session" in client.cookies

        tweet = post_tweet(client, "hello").json()
        assert isinstance(tweet["tweetId"], int)

        create_test_user(other_client, email="other@b.com", username="other")
        denied = other_client.delete(f"/api/tweets/{tweet['tweetId']}")
        assert denied.status_code == 403
        assert db.query(Tweet).filter(Tweet.id == tweet["tweetId"]).count() == 1

        resp = client.get("/api/users/by-username/abc/tweets")
        assert resp.status_code == 200
        rows = resp.json()
        assert len(rows) == 1
        assert rows[0]["content"] == "hello"
        assert rows[0]["userId"] == created["userId"]
