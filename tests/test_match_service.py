import asyncio
from datetime import timedelta

import pytest
from sqlmodel import select

from clutchline_backend.core.ratings import ELO_K_FACTOR, elo_delta, elo_win_probability
from clutchline_backend.models.match_model import Game, Match, MatchCompetitor, MatchResult, MatchStatus
from clutchline_backend.models.team_model import Team
from clutchline_backend.services import match_service

from factories import TODAY, add_federation, add_profile, add_team, context, open_db


def test_equal_ratings_are_a_coin_flip():
    assert elo_win_probability(1000, 1000) == 0.5
    assert elo_delta(1000, 1000, 1.0) == ELO_K_FACTOR / 2


def test_four_hundred_points_is_ten_to_one():
    assert elo_win_probability(1400, 1000) == pytest.approx(10 / 11, abs=1e-3)
    assert elo_win_probability(1400, 1000) == pytest.approx(0.909, abs=1e-3)
    assert elo_win_probability(1000, 1400) == pytest.approx(1 / 11, abs=1e-3)


def test_winner_gains_what_the_loser_drops():
    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            home = await add_team(db, europa, "Home", elo=1000, starters=0)
            away = await add_team(db, europa, "Away", elo=1200, starters=0)

            await match_service.apply_elo(db, home, away, MatchResult.WIN)

            gain = home.elo - 1000
            loss = 1200 - away.elo
            assert gain > ELO_K_FACTOR / 2
            assert gain == pytest.approx(loss)

    asyncio.run(scenario())


def test_draw_between_equals_leaves_ratings_alone():
    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            home = await add_team(db, europa, "Home", starters=0)
            away = await add_team(db, europa, "Away", starters=0)

            await match_service.apply_elo(db, home, away, MatchResult.DRAW)

            assert home.elo == away.elo == 1000

    asyncio.run(scenario())


async def add_match(db, home, away, maps):
    match = Match(payload="friendly", round=1, total_rounds=1, status=MatchStatus.READY, date=TODAY + timedelta(days=1))
    db.add(match)
    await db.flush()
    db.add(MatchCompetitor(match_id=match.id, team_id=home.id, seed=1))
    db.add(MatchCompetitor(match_id=match.id, team_id=away.id, seed=2))
    for num, name in enumerate(maps, start=1):
        db.add(Game(match_id=match.id, num=num, map=name))
    await db.flush()
    return match


async def games_of(db, match):
    result = await db.execute(select(Game).where(Game.match_id == match.id).order_by(Game.num))
    return result.scalars().all()


def scripted(monkeypatch, winners):
    """Make each simulated map go to the next team in `winners` (home or away)."""
    queue = list(winners)

    def generate(self, home, home_players, away, away_players):
        winner = queue.pop(0)
        loser = away if winner == "home" else home
        winner = home if winner == "home" else away
        return {winner.id: 13, loser.id: 7}

    monkeypatch.setattr(match_service.Score, "generate", generate)
    return queue


def test_best_of_three_stores_each_map_and_counts_maps_won(monkeypatch):
    scripted(monkeypatch, ["home", "away", "home"])

    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            home = await add_team(db, europa, "Home")
            away = await add_team(db, europa, "Away")
            match = await add_match(db, home, away, ["de_dust2", "de_inferno", "de_nuke"])
            ctx = context(db, await add_profile(db))

            scores = await match_service.play_match(ctx, match)

            assert scores == {home.id: 2, away.id: 1}
            assert match.status == MatchStatus.COMPLETED
            games = await games_of(db, match)
            assert [(g.home_score, g.away_score) for g in games] == [(13, 7), (7, 13), (13, 7)]
            assert [g.winner_id for g in games] == [home.id, away.id, home.id]
            assert all(g.status == MatchStatus.COMPLETED for g in games)

            sides = await match_service.match_sides(db, match.id)
            assert [(s.score, s.result) for s in sides] == [(2, MatchResult.WIN), (1, MatchResult.LOSS)]

    asyncio.run(scenario())


def test_decided_series_leaves_the_last_map_unplayed(monkeypatch):
    queue = scripted(monkeypatch, ["away", "away", "home"])

    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            home = await add_team(db, europa, "Home")
            away = await add_team(db, europa, "Away")
            match = await add_match(db, home, away, ["de_dust2", "de_inferno", "de_nuke"])
            ctx = context(db, await add_profile(db))

            scores = await match_service.play_match(ctx, match)

            assert scores == {home.id: 0, away.id: 2}
            decider = (await games_of(db, match))[-1]
            assert decider.status == MatchStatus.COMPLETED
            assert (decider.home_score, decider.away_score, decider.winner_id) == (None, None, None)

    asyncio.run(scenario())
    assert queue == ["home"]


def test_single_map_score_is_the_match_score():
    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            home = await add_team(db, europa, "Home")
            away = await add_team(db, europa, "Away")
            match = await add_match(db, home, away, ["de_mirage"])
            ctx = context(db, await add_profile(db))

            scores = await match_service.play_match(ctx, match)

            game = (await games_of(db, match))[0]
            assert (game.home_score, game.away_score) == (scores[home.id], scores[away.id])
            if scores[home.id] == scores[away.id]:
                assert game.winner_id is None
            else:
                assert game.winner_id == max(scores, key=scores.get)

    asyncio.run(scenario())


def test_played_series_moves_both_ratings():
    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            home = await add_team(db, europa, "Home", elo=1100)
            away = await add_team(db, europa, "Away", elo=1000)
            match = await add_match(db, home, away, ["de_dust2", "de_inferno", "de_nuke"])
            ctx = context(db, await add_profile(db))

            scores = await match_service.play_match(ctx, match)

            result = await db.execute(select(Team.id, Team.elo).where(Team.id.in_([home.id, away.id])))
            ratings = dict(result.all())
            winner = max(scores, key=scores.get)
            loser = min(scores, key=scores.get)
            start = {home.id: 1100, away.id: 1000}
            assert ratings[winner] > start[winner]
            assert ratings[loser] < start[loser]
            assert sum(ratings.values()) == pytest.approx(2100)

    asyncio.run(scenario())


def test_only_ready_matches_are_played():
    async def scenario():
        async with open_db() as db:
            europa = await add_federation(db)
            home = await add_team(db, europa, "Home")
            away = await add_team(db, europa, "Away")
            match = await add_match(db, home, away, ["de_mirage"])
            match.status = MatchStatus.WAITING
            ctx = context(db, await add_profile(db))

            assert await match_service.play_match(ctx, match) is None
            assert (await games_of(db, match))[0].home_score is None

    asyncio.run(scenario())
