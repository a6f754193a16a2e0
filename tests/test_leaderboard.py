from datetime import date

import pytest

from ortprep.gamification.leaderboard import Leaderboard


@pytest.fixture
async def ranked(make_profile):
    await make_profile("alice", points=300, last_activity_date=date(2024, 1, 10))
    await make_profile("bob", points=300, last_activity_date=date(2024, 1, 1))
    await make_profile("carol", points=100, last_activity_date=date(2024, 1, 9))
    await make_profile("dave", points=50)


@pytest.mark.asyncio
async def test_rank_counts_strictly_greater(db_session, ranked):
    board = Leaderboard(db_session)

    assert await board.rank_of("alice") == 1
    assert await board.rank_of("bob") == 1
    assert await board.rank_of("carol") == 3
    assert await board.rank_of("dave") == 4


@pytest.mark.asyncio
async def test_rank_of_unknown_user(db_session, ranked):
    assert await Leaderboard(db_session).rank_of("nobody") is None


@pytest.mark.asyncio
async def test_top_orders_by_points(db_session, ranked):
    entries = await Leaderboard(db_session).top(limit=3)

    assert [e["points"] for e in entries] == [300, 300, 100]
    assert [e["rank"] for e in entries] == [1, 1, 3]
    assert {e["user_id"] for e in entries[:2]} == {"alice", "bob"}
    assert entries[2]["level"] == 1


@pytest.mark.asyncio
async def test_weekly_only_counts_recent_activity(db_session, ranked):
    entries = await Leaderboard(db_session).weekly(today=date(2024, 1, 10))

    # bob's last activity is ten days back; dave was never active
    assert [e["user_id"] for e in entries] == ["alice", "carol"]


@pytest.mark.asyncio
async def test_empty_board(db_session):
    assert await Leaderboard(db_session).top() == []
