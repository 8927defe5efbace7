import re
from uuid import UUID

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from staync.db.models.travel import TravelTag, TweetTravelTag
from staync.db.models.tweet import VISIBILITY_PUBLIC, Tweet

_WHITESPACE = re.compile(r"\s+")
_NON_SLUG = re.compile(r"[^a-z0-9-]")


def slugify_tag(name: str) -> str:
    """ASCII slug for a tag name, falling back to the name itself when nothing survives."""
    slug = _NON_SLUG.sub("", _WHITESPACE.sub("-", name.lower()))
    return slug or name


def clean_tag_names(names: list) -> list[str]:
    """Trimmed, non-empty, de-duplicated names in their original order."""
    seen: set[str] = set()
    cleaned = []
    for raw in names:
        if not isinstance(raw, str):
            continue
        name = raw.strip().lstrip("#").strip()
        if name and name not in seen:
            seen.add(name)
            cleaned.append(name)
    return cleaned


async def get_or_create_tags(db_session: AsyncSession, names: list[str]) -> list[TravelTag]:
    """Look tags up by slug, creating the missing ones (not committed).

    Names that share a slug ("Jeju", "jeju") resolve to the same tag, which
    keeps the name it was first created with. The result holds each tag once.
    """
    if not names:
        return []
    slugs = {name: slugify_tag(name) for name in names}
    result = await db_session.execute(select(TravelTag).where(TravelTag.slug.in_(set(slugs.values()))))
    existing = {tag.slug: tag for tag in result.scalars().all()}

    tags = []
    for name in names:
        slug = slugs[name]
        tag = existing.get(slug)
        if tag is None:
            tag = TravelTag(name=name, slug=slug)
            db_session.add(tag)
            existing[slug] = tag
        if tag not in tags:
            tags.append(tag)
    await db_session.flush()
    return tags


async def set_tweet_tags(db_session: AsyncSession, tweet_id: UUID, names: list[str]) -> list[TravelTag]:
    """Replace a tweet's tags with ``names`` (not committed)."""
    await db_session.execute(delete(TweetTravelTag).where(TweetTravelTag.tweet_id == tweet_id))
    tags = await get_or_create_tags(db_session, clean_tag_names(names))
    for tag in tags:
        db_session.add(TweetTravelTag(tweet_id=tweet_id, travel_tag_id=tag.id))
    return tags


async def search_tags(db_session: AsyncSession, query: str, limit: int = 10) -> list[TravelTag]:
    query = query.strip()
    if not query:
        return []
    pattern = f"%{query}%"
    result = await db_session.execute(
        select(TravelTag)
        .where(or_(TravelTag.name.ilike(pattern), TravelTag.slug.ilike(pattern)))
        .order_by(TravelTag.name)
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_tag_by_slug(db_session: AsyncSession, slug: str) -> TravelTag | None:
    result = await db_session.execute(select(TravelTag).where(TravelTag.slug == slug))
    return result.scalar_one_or_none()


async def list_tweets_for_tag(db_session: AsyncSession, tag_id: UUID, limit: int = 20) -> list[Tweet]:
    result = await db_session.execute(
        select(Tweet)
        .join(TweetTravelTag, TweetTravelTag.tweet_id == Tweet.id)
        .where(
            and_(
                TweetTravelTag.travel_tag_id == tag_id,
                Tweet.deleted_at.is_(None),
                Tweet.visibility == VISIBILITY_PUBLIC,
            )
        )
        .order_by(Tweet.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
