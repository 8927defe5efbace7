"""Tests for tweet creation, editing, visibility and counts."""

from datetime import UTC, datetime

from sqlalchemy import select

from staync.db.models.notification import NOTIFY_REPLY, Notification
from staync.db.services import follow_service, like_service, tag_service, tweet_service
from staync.schemas import MediaIn, TweetCreate, TweetUpdate


def _create(**body) -> TweetCreate:
    return TweetCreate.model_validate(body)


class TestCreateTweet:
    async def test_media_order_and_location(self, db, make_user, clean_hooks):
        author = await make_user()
        data = _create(
            content="Sunrise at Seongsan",
            location={"name": "Seongsan Ilchulbong", "country": "South Korea", "city": "Jeju"},
            media=[{"url": "/a.jpg"}, {"url": "/b.mp4", "type": "video"}],
            tags=["Jeju", "#sunrise", "Jeju"],
        )

        tweet = await tweet_service.create_tweet(
            db, author.id, data, leading_media=[MediaIn(url="/ai.png")]
        )

        assert [(m.url, m.order) for m in sorted(tweet.media, key=lambda m: m.order)] == [
            ("/ai.png", 0),
            ("/a.jpg", 1),
            ("/b.mp4", 2),
        ]
        assert tweet.country == "South Korea"
        assert tweet.city == "Jeju"
        assert sorted(tag.name for tag in tweet.tags) == ["Jeju", "sunrise"]

    async def test_reply_notifies_parent_author(self, db, make_user, clean_hooks):
        author, replier = await make_user(), await make_user()
        parent = await tweet_service.create_tweet(db, author.id, _create(content="Where to eat?"))

        reply = await tweet_service.create_tweet(db, replier.id, _create(content="Dongmun market"), parent=parent)

        result = await db.execute(select(Notification).where(Notification.recipient_id == author.id))
        notification = result.scalar_one()
        assert (notification.type, notification.tweet_id) == (NOTIFY_REPLY, reply.id)
        assert reply.parent_id == parent.id

    async def test_reply_to_self_is_silent(self, db, make_user, clean_hooks):
        author = await make_user()
        parent = await tweet_service.create_tweet(db, author.id, _create(content="Day one"))

        await tweet_service.create_tweet(db, author.id, _create(content="Day two"), parent=parent)

        result = await db.execute(select(Notification))
        assert result.scalars().all() == []


class TestUpdateTweet:
    async def test_partial_update_keeps_other_fields(self, db, make_user, clean_hooks):
        author = await make_user()
        tweet = await tweet_service.create_tweet(
            db,
            author.id,
            _create(content="Original", location={"name": "Busan", "city": "Busan"}, media=[{"url": "/a.jpg"}]),
        )

        updated, removed = await tweet_service.update_tweet(
            db, tweet, TweetUpdate.model_validate({"visibility": "FOLLOWERS"})
        )

        assert removed == []
        assert updated.content == "Original"
        assert updated.city == "Busan"
        assert updated.visibility == "FOLLOWERS"
        assert len(updated.media) == 1

    async def test_replace_media_and_clear_location(self, db, make_user, clean_hooks):
        author = await make_user()
        tweet = await tweet_service.create_tweet(
            db,
            author.id,
            _create(content="Trip", location={"name": "Seoul"}, media=[{"url": "/a.jpg"}, {"url": "/b.jpg"}]),
        )
        first = min(tweet.media, key=lambda m: m.order)

        updated, removed = await tweet_service.update_tweet(
            db,
            tweet,
            TweetUpdate.model_validate(
                {"content": "Trip, edited", "deletedMediaIds": [str(first.id)], "newMedia": [{"url": "/c.jpg"}], "location": None}
            ),
        )

        assert [m.url for m in removed] == ["/a.jpg"]
        assert sorted((m.url, m.order) for m in updated.media) == [("/b.jpg", 1), ("/c.jpg", 2)]
        assert updated.location_name is None
        assert updated.content == "Trip, edited"

    async def test_tags_replaced(self, db, make_user, clean_hooks):
        author = await make_user()
        tweet = await tweet_service.create_tweet(db, author.id, _create(content="Tags", tags=["old"]))

        updated, _ = await tweet_service.update_tweet(db, tweet, TweetUpdate.model_validate({"tags": ["new"]}))

        assert [tag.name for tag in updated.tags] == ["new"]


class TestVisibility:
    async def test_feed_filters_by_visibility(self, db, make_user, make_tweet, clean_hooks):
        author, follower, stranger = await make_user(), await make_user(), await make_user()
        public = await make_tweet(author, "public")
        followers_only = await make_tweet(author, "followers", visibility="FOLLOWERS")
        private = await make_tweet(author, "private", visibility="PRIVATE")
        await follow_service.toggle_follow(db, follower.id, author)

        async def feed_for(viewer):
            return {t.id for t in await tweet_service.list_feed(db, viewer.id if viewer else None)}

        assert await feed_for(None) == {public.id}
        assert await feed_for(stranger) == {public.id}
        assert await feed_for(follower) == {public.id, followers_only.id}
        assert await feed_for(author) == {public.id, followers_only.id, private.id}

    async def test_can_view(self, db, make_user, make_tweet, clean_hooks):
        author, follower, stranger = await make_user(), await make_user(), await make_user()
        tweet = await make_tweet(author, visibility="FOLLOWERS")
        await follow_service.toggle_follow(db, follower.id, author)

        assert await tweet_service.can_view(db, tweet, author.id)
        assert await tweet_service.can_view(db, tweet, follower.id)
        assert not await tweet_service.can_view(db, tweet, stranger.id)
        assert not await tweet_service.can_view(db, tweet, None)

    async def test_pending_follow_does_not_unlock(self, db, make_user, make_tweet, clean_hooks):
        author, requester = await make_user(is_private=True), await make_user()
        tweet = await make_tweet(author, visibility="FOLLOWERS")
        await follow_service.toggle_follow(db, requester.id, author)

        assert not await tweet_service.can_view(db, tweet, requester.id)

    async def test_replies_stay_out_of_feed(self, db, make_user, make_tweet):
        author = await make_user()
        parent = await make_tweet(author, "parent")
        reply = await make_tweet(author, "reply", parent_id=parent.id)

        assert [t.id for t in await tweet_service.list_feed(db, None)] == [parent.id]
        assert [t.id for t in await tweet_service.get_replies(db, parent.id)] == [reply.id]
        assert await tweet_service.count_user_posts(db, author.id) == 1


class TestSoftDelete:
    async def test_deleted_tweet_disappears(self, db, make_user, make_tweet, clean_hooks):
        author = await make_user()
        tweet = await make_tweet(author)

        await tweet_service.soft_delete_tweet(db, tweet)

        assert tweet.deleted_at is not None
        assert await tweet_service.get_tweet_by_id(db, tweet.id) is None
        assert await tweet_service.get_tweet_by_id(db, tweet.id, include_deleted=True) is not None
        assert await tweet_service.list_feed(db, author.id) == []

    async def test_deleted_replies_not_counted(self, db, make_user, make_tweet, clean_hooks):
        author, fan = await make_user(), await make_user()
        parent = await make_tweet(author)
        await make_tweet(fan, "kept", parent_id=parent.id)
        await make_tweet(fan, "gone", parent_id=parent.id, deleted_at=datetime.now(UTC))
        await like_service.toggle_like(db, fan.id, parent)

        stats = await tweet_service.get_tweet_stats(db, [parent.id])

        assert stats[parent.id] == {"likes": 1, "replies": 1, "retweets": 0}


class TestViewerState:
    async def test_anonymous_viewer(self, db):
        assert await tweet_service.get_viewer_state(db, None, []) == {
            "liked": set(),
            "retweeted": set(),
            "bookmarked": set(),
        }

    async def test_liked(self, db, make_user, make_tweet, clean_hooks):
        author, fan = await make_user(), await make_user()
        tweet = await make_tweet(author)
        await like_service.toggle_like(db, fan.id, tweet)

        state = await tweet_service.get_viewer_state(db, fan.id, [tweet.id])

        assert state["liked"] == {tweet.id}
        assert state["bookmarked"] == set()


class TestTags:
    def test_slugify(self):
        assert tag_service.slugify_tag("New York City") == "new-york-city"
        assert tag_service.slugify_tag("제주") == "제주"

    def test_clean_tag_names(self):
        assert tag_service.clean_tag_names([" #Jeju ", "", "Jeju", 3, "food"]) == ["Jeju", "food"]

    async def test_search_and_lookup(self, db, make_user, clean_hooks):
        author = await make_user()
        tweet = await tweet_service.create_tweet(db, author.id, _create(content="Night view", tags=["Busan Tower"]))
        await tweet_service.create_tweet(
            db, author.id, _create(content="Hidden", tags=["Busan Tower"], visibility="PRIVATE")
        )

        found = await tag_service.search_tags(db, "busan")
        tag = await tag_service.get_tag_by_slug(db, "busan-tower")

        assert [t.name for t in found] == ["Busan Tower"]
        assert tag is not None
        assert [t.id for t in await tag_service.list_tweets_for_tag(db, tag.id)] == [tweet.id]
        assert await tag_service.search_tags(db, "   ") == []

    async def test_names_sharing_a_slug_are_one_tag(self, db, make_user, clean_hooks):
        author = await make_user()
        first = await tweet_service.create_tweet(db, author.id, _create(content="a", tags=["Jeju"]))
        second = await tweet_service.create_tweet(db, author.id, _create(content="b", tags=["jeju", "JEJU"]))

        tag = await tag_service.get_tag_by_slug(db, "jeju")

        assert [t.id for t in second.tags] == [first.tags[0].id] == [tag.id]
        assert tag.name == "Jeju"
        assert {t.id for t in await tag_service.list_tweets_for_tag(db, tag.id)} == {first.id, second.id}
