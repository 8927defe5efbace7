from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from staync.db.models.travel import TravelPlan, TravelPlanItem
from staync.db.models.tweet import Tweet

TOP_COUNTRIES = 5
RECENT_MONTHS = 12


@dataclass
class TravelStats:
    total_countries: int = 0
    total_cities: int = 0
    total_travel_days: int = 0
    total_travel_posts: int = 0
    top_countries: list[dict] = field(default_factory=list)
    yearly_stats: list[dict] = field(default_factory=list)
    monthly_stats: list[dict] = field(default_factory=list)
    countries: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "totalCountries": self.total_countries,
            "totalCities": self.total_cities,
            "totalTravelDays": self.total_travel_days,
            "totalTravelPosts": self.total_travel_posts,
            "topCountries": self.top_countries,
            "yearlyStats": self.yearly_stats,
            "monthlyStats": self.monthly_stats,
            "countries": self.countries,
        }


async def list_plans(db_session: AsyncSession, user_id: UUID, status: str | None = None) -> list[TravelPlan]:
    stmt = select(TravelPlan).where(TravelPlan.user_id == user_id)
    if status:
        stmt = stmt.where(TravelPlan.status == status)
    result = await db_session.execute(stmt.order_by(TravelPlan.created_at.desc()))
    return list(result.scalars().all())


async def get_plan_tweet_counts(db_session: AsyncSession, plan_ids: list[UUID]) -> dict[UUID, int]:
    if not plan_ids:
        return {}
    result = await db_session.execute(
        select(Tweet.travel_plan_id, func.count())
        .where(and_(Tweet.travel_plan_id.in_(plan_ids), Tweet.deleted_at.is_(None)))
        .group_by(Tweet.travel_plan_id)
    )
    return {plan_id: count for plan_id, count in result.all()}


async def get_plan(db_session: AsyncSession, plan_id: UUID) -> TravelPlan | None:
    result = await db_session.execute(
        select(TravelPlan).where(TravelPlan.id == plan_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_plan(db_session: AsyncSession, user_id: UUID, values: dict) -> TravelPlan:
    plan = TravelPlan(user_id=user_id, items=[], **values)
    db_session.add(plan)
    await db_session.commit()
    return plan


async def update_plan(db_session: AsyncSession, plan: TravelPlan, changes: dict) -> TravelPlan:
    for key, value in changes.items():
        setattr(plan, key, value)
    await db_session.commit()
    return plan


async def delete_plan(db_session: AsyncSession, plan: TravelPlan) -> None:
    await db_session.delete(plan)
    await db_session.commit()


async def get_item(db_session: AsyncSession, item_id: UUID) -> TravelPlanItem | None:
    result = await db_session.execute(select(TravelPlanItem).where(TravelPlanItem.id == item_id))
    return result.scalar_one_or_none()


async def create_item(db_session: AsyncSession, plan: TravelPlan, values: dict) -> TravelPlanItem:
    """Append an item to the plan; it goes after the current last one."""
    result = await db_session.execute(
        select(func.max(TravelPlanItem.order)).where(TravelPlanItem.travel_plan_id == plan.id)
    )
    current_max = result.scalar()
    item = TravelPlanItem(
        travel_plan_id=plan.id,
        order=0 if current_max is None else current_max + 1,
        **values,
    )
    db_session.add(item)
    await db_session.commit()
    return item


async def update_item(db_session: AsyncSession, item: TravelPlanItem, changes: dict) -> TravelPlanItem:
    for key, value in changes.items():
        setattr(item, key, value)
    await db_session.commit()
    return item


async def delete_item(db_session: AsyncSession, item: TravelPlanItem) -> None:
    await db_session.delete(item)
    await db_session.commit()


def compute_travel_stats(rows: list[tuple[str | None, str | None, datetime | None, datetime]]) -> TravelStats:
    """Aggregate ``(country, city, travel_date, created_at)`` rows.

    A post's date is its travel date, or its creation date when none was given.
    """
    countries: Counter[str] = Counter()
    cities: set[str] = set()
    years: Counter[str] = Counter()
    months: Counter[str] = Counter()
    days: set[str] = set()

    for country, city, travel_date, created_at in rows:
        if country:
            countries[country] += 1
        if city:
            cities.add(city)
        when = travel_date or created_at
        years[f"{when.year}"] += 1
        months[f"{when.year}-{when.month:02d}"] += 1
        days.add(when.date().isoformat())

    return TravelStats(
        total_countries=len(countries),
        total_cities=len(cities),
        total_travel_days=len(days),
        total_travel_posts=len(rows),
        top_countries=[
            {"country": name, "count": count} for name, count in countries.most_common(TOP_COUNTRIES)
        ],
        yearly_stats=[{"year": year, "count": years[year]} for year in sorted(years, reverse=True)],
        monthly_stats=[
            {"month": month, "count": months[month]} for month in sorted(months, reverse=True)[:RECENT_MONTHS]
        ],
        countries=sorted(countries),
    )


async def get_travel_stats(db_session: AsyncSession, user_id: UUID) -> TravelStats:
    """Stats over the user's non-deleted tweets that carry a country or city."""
    result = await db_session.execute(
        select(Tweet.country, Tweet.city, Tweet.travel_date, Tweet.created_at)
        .where(
            and_(
                Tweet.user_id == user_id,
                Tweet.deleted_at.is_(None),
                or_(Tweet.country.is_not(None), Tweet.city.is_not(None)),
            )
        )
        .order_by(Tweet.travel_date.desc())
    )
    return compute_travel_stats([tuple(row) for row in result.all()])
