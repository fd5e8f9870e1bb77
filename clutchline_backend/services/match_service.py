# clutchline_backend/services/match_service.py
# Plays scheduled matches: NPC matchdays are simulated straight away, the
# user's matchdays stop the day loop until the user plays (or simulates) them.

import logging
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlmodel import select

from clutchline_backend.core.career_config import PLAYER_CONTRACT_SETTINGS
from clutchline_backend.core.competition_config import WIN_AWARD_AMOUNT
from clutchline_backend.core.ratings import ELO_SCORE, elo_delta
from clutchline_backend.core.simulator import Score, get_match_result
from clutchline_backend.models.calendar_model import Calendar, CalendarEntry
from clutchline_backend.models.competition_model import Competition
from clutchline_backend.models.league_model import Tier
from clutchline_backend.models.match_model import Game, Match, MatchCompetitor, MatchResult, MatchStatus, PlayerMatchStat
from clutchline_backend.models.player_model import Player
from clutchline_backend.models.profile_model import SimulationMode
from clutchline_backend.models.team_model import Team
from clutchline_backend.services.calendar_service import TickSignal, decode_payload
from clutchline_backend.services.game_context import GameContext

logger = logging.getLogger(__name__)


async def lineup(db, team_id: int) -> List[Player]:
    """The team's starters, topped up with the best bench players."""
    result = await db.execute(
        select(Player).where(Player.team_id == team_id).order_by(Player.starter.desc(), Player.xp.desc(), Player.id)
    )
    return result.scalars().all()[:PLAYER_CONTRACT_SETTINGS["STARTERS"]]


async def match_sides(db, match_id: int) -> List[MatchCompetitor]:
    result = await db.execute(
        select(MatchCompetitor).where(MatchCompetitor.match_id == match_id).order_by(MatchCompetitor.seed, MatchCompetitor.id)
    )
    return result.scalars().all()


async def allows_draw(db, match: Match) -> bool:
    """Group stages can end level, elimination brackets cannot."""
    if match.competition_id is None:
        return True
    competition = await db.get(Competition, match.competition_id)
    tier = await db.get(Tier, competition.tier_id)
    return tier.group_size is not None


async def apply_elo(db, home: Team, away: Team, home_result: MatchResult):
    away_result = {MatchResult.WIN: MatchResult.LOSS, MatchResult.LOSS: MatchResult.WIN}.get(home_result, MatchResult.DRAW)
    home_delta = elo_delta(home.elo, away.elo, ELO_SCORE[home_result.value])
    away_delta = elo_delta(away.elo, home.elo, ELO_SCORE[away_result.value])
    home.elo += home_delta
    away.elo += away_delta
    db.add(home)
    db.add(away)


def record_game(db, game: Game, home_id: int, away_id: int, scores: Dict[int, int]):
    """Store one map's round score and winner (none on a draw)."""
    game.home_score = scores[home_id]
    game.away_score = scores[away_id]
    game.winner_id = {"win": home_id, "loss": away_id}.get(get_match_result(home_id, scores))
    game.status = MatchStatus.COMPLETED
    db.add(game)


async def play_match(ctx: GameContext, match: Match, user: bool = False) -> Optional[Dict[int, int]]:
    """
    Simulate a READY match and store scores, results, Elo changes and, when
    the user's team plays, each starter's stat line. Returns {team_id: score}.
    """
    db = ctx.db
    if match.status != MatchStatus.READY:
        return None

    sides = await match_sides(db, match.id)
    if len(sides) != 2:
        return None

    home, away = [await db.get(Team, side.team_id) for side in sides]
    home_players = await lineup(db, home.id)
    away_players = await lineup(db, away.id)

    result = await db.execute(select(Game).where(Game.match_id == match.id).order_by(Game.num))
    games = result.scalars().all()
    series = len(games) > 1

    mode = ctx.settings.simulation_mode.value if user else SimulationMode.DEFAULT.value
    simulator = Score(
        # a single map may end level, a best-of series always has a winner
        allow_draw=await allows_draw(db, match) and not series,
        mode=mode,
        user_team_id=ctx.profile.team_id if user else None,
        rng=ctx.rng,
    )

    if not series:
        scores = simulator.generate(home, home_players, away, away_players)
        rounds = sum(scores.values())
        for game in games:
            record_game(db, game, home.id, away.id, scores)
    else:
        # match score is maps won; maps left once the series is decided are not played
        scores = {home.id: 0, away.id: 0}
        rounds = 0
        needed = len(games) // 2 + 1
        for game in games:
            if max(scores.values()) >= needed:
                game.status = MatchStatus.COMPLETED
                db.add(game)
                continue
            game_scores = simulator.generate(home, home_players, away, away_players)
            record_game(db, game, home.id, away.id, game_scores)
            rounds += sum(game_scores.values())
            scores[game.winner_id] += 1

    results = {}
    for side in sides:
        side.score = scores[side.team_id]
        side.result = MatchResult(get_match_result(side.team_id, scores))
        results[side.team_id] = side.result
        db.add(side)

    match.status = MatchStatus.COMPLETED
    db.add(match)

    user_team_id = ctx.profile.team_id
    if user_team_id in results and results[user_team_id] == MatchResult.WIN:
        await db.execute(
            update(Team).where(Team.id == user_team_id).values(earnings=Team.earnings + WIN_AWARD_AMOUNT)
        )

    await apply_elo(db, home, away, results[home.id])

    if user_team_id in results:
        for team, players in ((home, home_players), (away, away_players)):
            for line in simulator.player_lines(players, results[team.id].value, rounds):
                db.add(PlayerMatchStat(match_id=match.id, team_id=team.id, date=match.date, **line))

    await db.commit()
    logger.debug("⚔️ %s %d - %d %s", home.name, scores[home.id], scores[away.id], away.name)
    return scores


async def on_matchday_npc(ctx: GameContext, entry: Calendar):
    payload = decode_payload(entry.type, entry.payload)
    match = await ctx.db.get(Match, payload.match_id)
    if match is None or match.status != MatchStatus.READY:
        return TickSignal.CONTINUE
    await play_match(ctx, match)
    return TickSignal.CONTINUE


async def on_matchday_user(ctx: GameContext, entry: Calendar):
    """Hold the day loop until the user's match has been played."""
    payload = decode_payload(entry.type, entry.payload)
    match = await ctx.db.get(Match, payload.match_id)
    if match is None or match.status == MatchStatus.COMPLETED:
        return TickSignal.CONTINUE

    sides = await match_sides(ctx.db, match.id)
    if ctx.profile.team_id is None or ctx.profile.team_id not in {side.team_id for side in sides}:
        # the user left this team after the matchday was handed to them
        await play_match(ctx, match)
        return TickSignal.CONTINUE

    if match.status != MatchStatus.READY:
        return TickSignal.CONTINUE
    return TickSignal.DEFER


async def todays_user_match(ctx: GameContext) -> Optional[Match]:
    result = await ctx.db.execute(
        select(Calendar)
        .where(Calendar.date == ctx.today, Calendar.type == CalendarEntry.MATCHDAY_USER)
        .order_by(Calendar.id)
    )
    for entry in result.scalars().all():
        match = await ctx.db.get(Match, decode_payload(entry.type, entry.payload).match_id)
        if match is not None and match.status == MatchStatus.READY:
            return match
    return None


async def sim_user_match(ctx: GameContext) -> Optional[Dict[int, int]]:
    """Simulate today's user match using the profile's simulation mode."""
    match = await todays_user_match(ctx)
    if match is None:
        return None
    return await play_match(ctx, match, user=True)


async def player_kd(db, player_id: int, since=None, limit: Optional[int] = None) -> Optional[float]:
    """Kills/deaths ratio, optionally limited to matches since a date or the last N matches."""
    query = select(PlayerMatchStat).where(PlayerMatchStat.player_id == player_id)
    if since is not None:
        query = query.where(PlayerMatchStat.date >= since)
    query = query.order_by(PlayerMatchStat.date.desc(), PlayerMatchStat.id.desc())
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    lines = result.scalars().all()
    if not lines:
        return None
    return sum(line.kills for line in lines) / max(1, sum(line.deaths for line in lines))


async def matches_played(db, player_id: int, since=None) -> int:
    query = select(PlayerMatchStat.id).where(PlayerMatchStat.player_id == player_id)
    if since is not None:
        query = query.where(PlayerMatchStat.date >= since)
    result = await db.execute(query)
    return len(result.scalars().all())


async def team_form(db, team_id: int, before, window: int) -> Optional[float]:
    """Win rate over the team's last `window` completed matches up to `before`."""
    result = await db.execute(
        select(MatchCompetitor.result)
        .join(Match, Match.id == MatchCompetitor.match_id)
        .where(MatchCompetitor.team_id == team_id, Match.status == MatchStatus.COMPLETED,
               Match.date <= before, MatchCompetitor.result.is_not(None))
        .order_by(Match.date.desc(), Match.id.desc())
        .limit(window)
    )
    results = result.scalars().all()
    if not results:
        return None
    return sum(1 for r in results if r == MatchResult.WIN) / len(results)
