"""Travel tag search and tag timelines. Public."""

from litestar import Controller, Request, get
from litestar.exceptions import NotFoundException
from sqlalchemy.ext.asyncio import AsyncSession

from staync.auth.guards import get_session_user_id
from staync.controllers.helpers import serialize_tweets
from staync.db.services import tag_service


class TagController(Controller):
    path = "/api/tags"

    @get("/")
    async def search(self, db_session: AsyncSession, q: str | None = None) -> dict:
        tags = await tag_service.search_tags(db_session, q or "")
        return {"tags": [{"id": str(t.id), "name": t.name, "slug": t.slug} for t in tags]}

    @get("/{slug:str}/tweets")
    async def tweets(self, request: Request, db_session: AsyncSession, slug: str) -> dict:
        tag = await tag_service.get_tag_by_slug(db_session, slug)
        if tag is None:
            raise NotFoundException("Tag not found")
        tweets = await tag_service.list_tweets_for_tag(db_session, tag.id)
        return {
            "tag": {"id": str(tag.id), "name": tag.name, "slug": tag.slug},
            "tweets": await serialize_tweets(db_session, tweets, get_session_user_id(request)),
        }
