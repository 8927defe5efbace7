"""End-to-end tests for the tweet, like, retweet and bookmark endpoints."""

import pytest
from sqlalchemy import func, select

from staync.controllers.engagement import BookmarkController, LikeController, RetweetController
from staync.controllers.tweets import TweetController
from staync.db.models.notification import Notification


@pytest.fixture
async def client(make_api, clean_hooks, clean_realtime):
    async with make_api(TweetController, LikeController, RetweetController, BookmarkController) as client:
        yield client


async def _post_tweet(client, **body):
    response = await client.post("/api/tweets", json=body)
    assert response.status_code == 201, response.text
    return response.json()["tweet"]


class TestAuthRequired:
    @pytest.mark.parametrize(
        "method, path",
        [
            ("POST", "/api/tweets"),
            ("PATCH", "/api/tweets"),
            ("DELETE", "/api/tweets"),
            ("POST", "/api/likes"),
            ("POST", "/api/retweets"),
            ("GET", "/api/bookmarks"),
        ],
    )
    async def test_anonymous_mutations_are_rejected(self, client, method, path):
        response = await client.request(method, path, json={})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}

    async def test_feed_is_public(self, client):
        response = await client.get("/api/tweets")
        assert response.status_code == 200
        assert response.json() == {"tweets": []}


class TestCreate:
    async def test_json_body(self, client, make_user, api_login):
        author = await make_user()
        await api_login(client, author.id)

        tweet = await _post_tweet(
            client,
            content="Hallasan at dawn",
            location={"name": "Hallasan", "country": "South Korea", "city": "Jeju", "latitude": 33.36},
            tags=["Jeju", "hiking"],
            media=[{"url": "/storage/uploads/ab/cd/x.jpg"}],
        )

        assert tweet["content"] == "Hallasan at dawn"
        assert tweet["user"]["id"] == str(author.id)
        assert tweet["location"]["city"] == "Jeju"
        assert sorted(t["slug"] for t in tweet["tags"]) == ["hiking", "jeju"]
        assert tweet["media"][0]["order"] == 0
        assert tweet["stats"] == {"likes": 0, "replies": 0, "retweets": 0}
        assert tweet["isLiked"] is False

    async def test_form_body(self, client, make_user, api_login):
        author = await make_user()
        await api_login(client, author.id)

        response = await client.post(
            "/api/tweets",
            data={"content": "From a form", "tags": ["a", "b"], "visibility": "FOLLOWERS"},
        )

        assert response.status_code == 201
        tweet = response.json()["tweet"]
        assert tweet["visibility"] == "FOLLOWERS"
        assert len(tweet["tags"]) == 2

    async def test_empty_tweet_is_rejected(self, client, make_user, api_login):
        await api_login(client, (await make_user()).id)

        response = await client.post("/api/tweets", json={"content": "   "})

        assert response.status_code == 400
        assert response.json()["error"] == "Content or media is required"

    async def test_reply_to_missing_parent(self, client, make_user, api_login):
        await api_login(client, (await make_user()).id)

        response = await client.post(
            "/api/tweets", json={"content": "reply", "parentId": "00000000-0000-0000-0000-000000000000"}
        )

        assert response.status_code == 404

    async def test_reply_shows_on_detail(self, client, make_user, api_login):
        await api_login(client, (await make_user()).id)
        parent = await _post_tweet(client, content="Best noodles in Busan?")
        await _post_tweet(client, content="Milmyeon!", parentId=parent["id"])

        detail = (await client.get(f"/api/tweets/{parent['id']}")).json()
        feed = (await client.get("/api/tweets")).json()["tweets"]

        assert [r["content"] for r in detail["replies"]] == ["Milmyeon!"]
        assert detail["tweet"]["stats"]["replies"] == 1
        assert [t["id"] for t in feed] == [parent["id"]]


class TestVisibility:
    async def test_followers_only_tweet_is_hidden_from_strangers(self, client, make_user, api_login):
        author, stranger = await make_user(), await make_user()
        await api_login(client, author.id)
        tweet = await _post_tweet(client, content="friends only", visibility="FOLLOWERS")

        await api_login(client, stranger.id)

        assert (await client.get(f"/api/tweets/{tweet['id']}")).status_code == 404
        assert (await client.get("/api/tweets")).json()["tweets"] == []

    @pytest.mark.parametrize(
        "path, extra",
        [
            ("/api/likes", {}),
            ("/api/retweets", {}),
            ("/api/bookmarks", {}),
            ("/api/bookmarks/collections", {"_action": "update-bookmark"}),
        ],
    )
    async def test_hidden_tweet_cannot_be_engaged(self, client, db, make_user, api_login, path, extra):
        author, stranger = await make_user(), await make_user()
        await api_login(client, author.id)
        tweet = await _post_tweet(client, content="just me", visibility="PRIVATE")

        await api_login(client, stranger.id)
        response = await client.post(path, json={"tweetId": tweet["id"], **extra})

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Tweet not found"}
        assert (await db.execute(select(func.count()).select_from(Notification))).scalar_one() == 0

    async def test_hidden_tweet_cannot_be_replied_to(self, client, db, make_user, api_login):
        author, stranger = await make_user(), await make_user()
        await api_login(client, author.id)
        tweet = await _post_tweet(client, content="friends only", visibility="FOLLOWERS")

        await api_login(client, stranger.id)
        response = await client.post("/api/tweets", json={"content": "nice", "parentId": tweet["id"]})

        assert response.status_code == 404
        assert (await db.execute(select(func.count()).select_from(Notification))).scalar_one() == 0

    async def test_own_private_tweet_can_be_liked(self, client, make_user, api_login):
        author = await make_user()
        await api_login(client, author.id)
        tweet = await _post_tweet(client, content="note to self", visibility="PRIVATE")

        response = await client.post("/api/likes", json={"tweetId": tweet["id"]})

        assert response.json()["liked"] is True


class TestUpdateAndDelete:
    async def test_update(self, client, make_user, api_login):
        await api_login(client, (await make_user()).id)
        tweet = await _post_tweet(client, content="typo", tags=["old"])

        response = await client.patch(
            "/api/tweets", json={"tweetId": tweet["id"], "content": "fixed", "tags": ["new"]}
        )

        assert response.status_code == 200
        updated = response.json()["tweet"]
        assert updated["content"] == "fixed"
        assert [t["name"] for t in updated["tags"]] == ["new"]

    async def test_update_requires_content(self, client, make_user, api_login):
        await api_login(client, (await make_user()).id)
        tweet = await _post_tweet(client, content="x")

        response = await client.patch("/api/tweets", json={"tweetId": tweet["id"], "content": " "})

        assert response.status_code == 400
        assert response.json()["error"] == "Content is required"

    async def test_update_requires_tweet_id(self, client, make_user, api_login):
        await api_login(client, (await make_user()).id)

        response = await client.patch("/api/tweets", json={"content": "x"})

        assert response.status_code == 400
        assert response.json()["error"] == "Tweet ID is required"

    async def test_only_owner_can_delete(self, client, make_user, api_login):
        owner, other = await make_user(), await make_user()
        await api_login(client, owner.id)
        tweet = await _post_tweet(client, content="mine")

        await api_login(client, other.id)
        forbidden = await client.request("DELETE", "/api/tweets", json={"tweetId": tweet["id"]})

        await api_login(client, owner.id)
        deleted = await client.request("DELETE", "/api/tweets", json={"tweetId": tweet["id"]})
        again = await client.request("DELETE", "/api/tweets", json={"tweetId": tweet["id"]})

        assert forbidden.status_code == 403
        assert deleted.json() == {"success": True, "message": "Tweet deleted"}
        assert again.status_code == 404
        assert (await client.get(f"/api/tweets/{tweet['id']}")).status_code == 404


class TestEngagement:
    async def test_like_toggle(self, client, make_user, api_login):
        author, fan = await make_user(), await make_user()
        await api_login(client, author.id)
        tweet = await _post_tweet(client, content="like me")

        await api_login(client, fan.id)
        liked = (await client.post("/api/likes", json={"tweetId": tweet["id"]})).json()
        feed = (await client.get("/api/tweets")).json()["tweets"]
        unliked = (await client.post("/api/likes", json={"tweetId": tweet["id"]})).json()

        assert liked == {"success": True, "liked": True, "count": 1, "message": "Liked"}
        assert feed[0]["isLiked"] is True
        assert feed[0]["stats"]["likes"] == 1
        assert unliked["liked"] is False
        assert unliked["count"] == 0

    async def test_like_missing_tweet(self, client, make_user, api_login):
        await api_login(client, (await make_user()).id)

        missing = await client.post("/api/likes", json={"tweetId": "00000000-0000-0000-0000-000000000000"})
        no_id = await client.post("/api/likes", json={})

        assert missing.status_code == 404
        assert no_id.status_code == 400

    async def test_retweet_toggle(self, client, make_user, api_login):
        await api_login(client, (await make_user()).id)
        tweet = await _post_tweet(client, content="share me")

        first = (await client.post("/api/retweets", json={"tweetId": tweet["id"]})).json()
        second = (await client.post("/api/retweets", json={"tweetId": tweet["id"]})).json()

        assert (first["retweeted"], first["count"], first["message"]) == (True, 1, "Retweeted")
        assert (second["retweeted"], second["count"], second["message"]) == (False, 0, "Retweet removed")


class TestBookmarks:
    async def test_collections_flow(self, client, make_user, api_login):
        await api_login(client, (await make_user()).id)
        filed = await _post_tweet(client, content="ramen spot")
        loose = await _post_tweet(client, content="cafe")

        created = (await client.post("/api/bookmarks/collections", json={"_action": "create", "name": "Food"})).json()
        collection_id = created["collection"]["id"]
        await client.post("/api/bookmarks", json={"tweetId": filed["id"], "collectionId": collection_id})
        await client.post("/api/bookmarks", json={"tweetId": loose["id"]})

        in_collection = (await client.get("/api/bookmarks", params={"collectionId": collection_id})).json()
        uncategorised = (await client.get("/api/bookmarks", params={"collectionId": "none"})).json()
        collections = (await client.get("/api/bookmarks/collections")).json()["collections"]

        assert [t["id"] for t in in_collection["tweets"]] == [filed["id"]]
        assert [t["id"] for t in uncategorised["tweets"]] == [loose["id"]]
        assert in_collection["tweets"][0]["isBookmarked"] is True
        assert [(c["name"], c["bookmarkCount"]) for c in collections] == [("Food", 1)]

        moved = await client.post(
            "/api/bookmarks/collections",
            json={"_action": "update-bookmark", "tweetId": loose["id"], "collectionId": collection_id},
        )
        assert moved.json() == {"success": True}
        collections = (await client.get("/api/bookmarks/collections")).json()["collections"]
        assert collections[0]["bookmarkCount"] == 2

    async def test_other_users_collection_is_not_found(self, client, make_user, api_login):
        owner, other = await make_user(), await make_user()
        await api_login(client, owner.id)
        tweet = await _post_tweet(client, content="x")
        collection_id = (
            await client.post("/api/bookmarks/collections", json={"_action": "create", "name": "Mine"})
        ).json()["collection"]["id"]

        await api_login(client, other.id)
        bookmark = await client.post("/api/bookmarks", json={"tweetId": tweet["id"], "collectionId": collection_id})
        delete = await client.post("/api/bookmarks/collections", json={"_action": "delete", "id": collection_id})

        assert bookmark.status_code == 404
        assert delete.status_code == 404

    async def test_invalid_collection_id(self, client, make_user, api_login):
        await api_login(client, (await make_user()).id)
        tweet = await _post_tweet(client, content="x")

        response = await client.post("/api/bookmarks", json={"tweetId": tweet["id"], "collectionId": "nope"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid collection ID"

    async def test_collection_name_required(self, client, make_user, api_login):
        await api_login(client, (await make_user()).id)

        response = await client.post("/api/bookmarks/collections", json={"_action": "create", "name": "  "})

        assert response.status_code == 400
