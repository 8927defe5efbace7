"""Tests for travel plans, plan items and travel statistics."""

from datetime import UTC, datetime

from staync.db.services import travel_service


def _at(year, month, day):
    return datetime(year, month, day, 12, tzinfo=UTC)


class TestComputeTravelStats:
    def test_empty(self):
        assert travel_service.compute_travel_stats([]).to_dict() == {
            "totalCountries": 0,
            "totalCities": 0,
            "totalTravelDays": 0,
            "totalTravelPosts": 0,
            "topCountries": [],
            "yearlyStats": [],
            "monthlyStats": [],
            "countries": [],
        }

    def test_aggregates(self):
        rows = [
            ("Japan", "Tokyo", _at(2025, 3, 1), _at(2025, 4, 1)),
            ("Japan", "Osaka", _at(2025, 3, 1), _at(2025, 4, 1)),
            ("Korea", "Seoul", None, _at(2026, 1, 5)),
            (None, "Seoul", _at(2024, 12, 31), _at(2025, 1, 2)),
        ]

        stats = travel_service.compute_travel_stats(rows)

        assert stats.total_countries == 2
        assert stats.total_cities == 3
        assert stats.total_travel_days == 3
        assert stats.total_travel_posts == 4
        assert stats.top_countries == [{"country": "Japan", "count": 2}, {"country": "Korea", "count": 1}]
        assert stats.yearly_stats == [
            {"year": "2026", "count": 1},
            {"year": "2025", "count": 2},
            {"year": "2024", "count": 1},
        ]
        assert [m["month"] for m in stats.monthly_stats] == ["2026-01", "2025-03", "2024-12"]
        assert stats.countries == ["Japan", "Korea"]

    def test_top_countries_and_months_are_capped(self):
        rows = [(f"C{i}", None, _at(2020 + i // 12, i % 12 + 1, 1), _at(2030, 1, 1)) for i in range(15)]

        stats = travel_service.compute_travel_stats(rows)

        assert len(stats.top_countries) == travel_service.TOP_COUNTRIES
        assert len(stats.monthly_stats) == travel_service.RECENT_MONTHS
        assert stats.monthly_stats[0]["month"] == "2021-03"


class TestPlans:
    async def test_create_list_and_filter(self, db, make_user):
        user = await make_user()
        planning = await travel_service.create_plan(db, user.id, {"title": "Jeju"})
        done = await travel_service.create_plan(db, user.id, {"title": "Busan", "status": "COMPLETED"})

        assert planning.status == "PLANNING"
        assert {p.id for p in await travel_service.list_plans(db, user.id)} == {planning.id, done.id}
        assert [p.id for p in await travel_service.list_plans(db, user.id, "COMPLETED")] == [done.id]

    async def test_update_and_delete(self, db, make_user):
        user = await make_user()
        plan = await travel_service.create_plan(db, user.id, {"title": "Jeju"})

        await travel_service.update_plan(db, plan, {"title": "Jeju in spring", "status": "ONGOING"})
        assert (await travel_service.get_plan(db, plan.id)).title == "Jeju in spring"

        await travel_service.delete_plan(db, plan)
        assert await travel_service.get_plan(db, plan.id) is None

    async def test_tweet_counts(self, db, make_user, make_tweet):
        user = await make_user()
        plan = await travel_service.create_plan(db, user.id, {"title": "Jeju"})
        await make_tweet(user, travel_plan_id=plan.id)
        await make_tweet(user, travel_plan_id=plan.id, deleted_at=datetime.now(UTC))

        assert await travel_service.get_plan_tweet_counts(db, [plan.id]) == {plan.id: 1}


class TestItems:
    async def test_items_are_appended_in_order(self, db, make_user):
        user = await make_user()
        plan = await travel_service.create_plan(db, user.id, {"title": "Jeju"})

        first = await travel_service.create_item(db, plan, {"title": "Hallasan"})
        second = await travel_service.create_item(db, plan, {"title": "Udo"})

        assert (first.order, second.order) == (0, 1)
        reloaded = await travel_service.get_plan(db, plan.id)
        assert [item.title for item in reloaded.items] == ["Hallasan", "Udo"]

    async def test_update_and_delete_item(self, db, make_user):
        user = await make_user()
        plan = await travel_service.create_plan(db, user.id, {"title": "Jeju"})
        item = await travel_service.create_item(db, plan, {"title": "Hallasan"})

        await travel_service.update_item(db, item, {"status": "DONE"})
        assert (await travel_service.get_item(db, item.id)).status == "DONE"

        await travel_service.delete_item(db, item)
        assert await travel_service.get_item(db, item.id) is None


class TestTravelStats:
    async def test_only_located_live_tweets_count(self, db, make_user, make_tweet):
        user = await make_user()
        await make_tweet(user, country="Japan", city="Kyoto", travel_date=_at(2025, 4, 2))
        await make_tweet(user, city="Kyoto", travel_date=_at(2025, 4, 3))
        await make_tweet(user, "no location")
        await make_tweet(user, country="France", deleted_at=datetime.now(UTC))

        stats = await travel_service.get_travel_stats(db, user.id)

        assert stats.total_travel_posts == 2
        assert stats.countries == ["Japan"]
        assert stats.total_cities == 1
        assert stats.total_travel_days == 2
