from uuid import UUID

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from staync.db.models.engagement import Bookmark, BookmarkCollection
from staync.db.models.tweet import Tweet

UNCATEGORISED = "none"


async def get_bookmark(db_session: AsyncSession, user_id: UUID, tweet_id: UUID) -> Bookmark | None:
    result = await db_session.execute(
        select(Bookmark).where(and_(Bookmark.user_id == user_id, Bookmark.tweet_id == tweet_id))
    )
    return result.scalar_one_or_none()


async def toggle_bookmark(
    db_session: AsyncSession,
    user_id: UUID,
    tweet_id: UUID,
    collection_id: UUID | None = None,
) -> bool:
    """Toggle a bookmark. Returns True if the tweet is now bookmarked."""
    if await get_bookmark(db_session, user_id, tweet_id):
        await db_session.execute(
            delete(Bookmark).where(and_(Bookmark.user_id == user_id, Bookmark.tweet_id == tweet_id))
        )
        await db_session.commit()
        return False

    db_session.add(Bookmark(user_id=user_id, tweet_id=tweet_id, collection_id=collection_id))
    await db_session.commit()
    return True


async def get_bookmarked_tweet_ids(db_session: AsyncSession, user_id: UUID, tweet_ids: list[UUID]) -> set[UUID]:
    if not tweet_ids:
        return set()
    result = await db_session.execute(
        select(Bookmark.tweet_id).where(and_(Bookmark.user_id == user_id, Bookmark.tweet_id.in_(tweet_ids)))
    )
    return set(result.scalars().all())


async def list_bookmarked_tweets(
    db_session: AsyncSession,
    user_id: UUID,
    collection: UUID | str | None = None,
    limit: int = 50,
) -> list[Tweet]:
    """Bookmarked, non-deleted tweets, newest bookmark first.

    ``collection`` filters to one collection; the string ``"none"`` selects
    bookmarks outside any collection.
    """
    stmt = (
        select(Tweet)
        .join(Bookmark, Bookmark.tweet_id == Tweet.id)
        .where(and_(Bookmark.user_id == user_id, Tweet.deleted_at.is_(None)))
    )
    if collection == UNCATEGORISED:
        stmt = stmt.where(Bookmark.collection_id.is_(None))
    elif collection is not None:
        stmt = stmt.where(Bookmark.collection_id == collection)
    result = await db_session.execute(stmt.order_by(Bookmark.created_at.desc()).limit(limit))
    return list(result.scalars().all())


async def list_collections(db_session: AsyncSession, user_id: UUID) -> list[tuple[BookmarkCollection, int]]:
    """The user's collections, oldest first, each with its bookmark count."""
    counts = (
        select(Bookmark.collection_id, func.count(Bookmark.id).label("bookmark_count"))
        .where(Bookmark.collection_id.is_not(None))
        .group_by(Bookmark.collection_id)
        .subquery()
    )
    result = await db_session.execute(
        select(BookmarkCollection, func.coalesce(counts.c.bookmark_count, 0))
        .outerjoin(counts, counts.c.collection_id == BookmarkCollection.id)
        .where(BookmarkCollection.user_id == user_id)
        .order_by(BookmarkCollection.created_at.asc())
    )
    return [(collection, count) for collection, count in result.all()]


async def get_collection(db_session: AsyncSession, collection_id: UUID) -> BookmarkCollection | None:
    result = await db_session.execute(select(BookmarkCollection).where(BookmarkCollection.id == collection_id))
    return result.scalar_one_or_none()


async def create_collection(db_session: AsyncSession, user_id: UUID, name: str) -> BookmarkCollection:
    collection = BookmarkCollection(user_id=user_id, name=name)
    db_session.add(collection)
    await db_session.commit()
    return collection


async def delete_collection(db_session: AsyncSession, user_id: UUID, collection_id: UUID) -> bool:
    """Delete one of the user's collections; its bookmarks become uncategorised."""
    result = await db_session.execute(
        delete(BookmarkCollection).where(
            and_(BookmarkCollection.id == collection_id, BookmarkCollection.user_id == user_id)
        )
    )
    await db_session.commit()
    return bool(result.rowcount)


async def move_bookmark(
    db_session: AsyncSession,
    user_id: UUID,
    tweet_id: UUID,
    collection_id: UUID | None,
) -> Bookmark:
    """File a bookmark under a collection, bookmarking the tweet first if needed."""
    bookmark = await get_bookmark(db_session, user_id, tweet_id)
    if bookmark is None:
        bookmark = Bookmark(user_id=user_id, tweet_id=tweet_id, collection_id=collection_id)
        db_session.add(bookmark)
    else:
        bookmark.collection_id = collection_id
    await db_session.commit()
    return bookmark
