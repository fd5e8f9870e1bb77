# clutchline_backend/services/competition_service.py
# Season and competition orchestration: creating each season's competitions,
# starting them, laying out matchdays, and recording results back into the
# bracket once matches are played.

import json
import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlmodel import select

from clutchline_backend.core import autofill_config
from clutchline_backend.core.chance import pluck, roll, sample
from clutchline_backend.core.competition_config import (
    AWARDS,
    DEFAULT_GAMES_PER_MATCH,
    FEDERATION_WORLD,
    MATCHDAY_WEIGHTS,
    PRIZE_POOL,
    TIER_MATCH_CONFIG,
)
from clutchline_backend.core.database import atomic
from clutchline_backend.core.tournament import BYE, Tournament, match_key
from clutchline_backend.models.calendar_model import Calendar, CalendarEntry
from clutchline_backend.models.competition_model import Competition, CompetitionStatus, Competitor, GameMap
from clutchline_backend.models.league_model import Federation, League, LeagueFederationLink, Tier
from clutchline_backend.models.match_model import Game, Match, MatchCompetitor, MatchStatus
from clutchline_backend.models.team_model import Team
from clutchline_backend.services import autofill, economy_service, mail_service
from clutchline_backend.services.calendar_service import (
    MATCHDAY_TYPES,
    CompetitionRef,
    MatchRef,
    decode_payload,
    encode_payload,
    find_entry,
    schedule,
)
from clutchline_backend.services.game_context import GameContext

logger = logging.getLogger(__name__)


# =====================================
# HELPERS
# =====================================
def add_years(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # 29 February
        return day.replace(year=day.year + years, day=28)


def matchday_date(today: date, weeks: int, weekday: int) -> date:
    """
    `weekday` uses 0 = Sunday ... 6 = Saturday; weeks start on Monday.
    Always lands after `today` for weeks >= 1.
    """
    week = today + timedelta(weeks=weeks)
    monday = week - timedelta(days=week.weekday())
    return monday + timedelta(days=(weekday - 1) % 7)


def games_for_round(tier_slug: str, total_rounds: int, round_number: int) -> int:
    config = TIER_MATCH_CONFIG.get(tier_slug, [])
    index = total_rounds - round_number
    if 0 <= index < len(config):
        return config[index]
    return DEFAULT_GAMES_PER_MATCH


async def load_structure(db, competition: Competition):
    tier = await db.get(Tier, competition.tier_id)
    league = await db.get(League, tier.league_id)
    federation = await db.get(Federation, competition.federation_id)
    return tier, league, federation


async def load_competitors(db, competition_id: int) -> List[Competitor]:
    result = await db.execute(
        select(Competitor).where(Competitor.competition_id == competition_id).order_by(Competitor.id)
    )
    return result.scalars().all()


async def active_map_pool(db) -> List[str]:
    result = await db.execute(
        select(GameMap).where(GameMap.position.is_not(None)).order_by(GameMap.position)
    )
    return [game_map.name for game_map in result.scalars().all()]


# =====================================
# SEASON START
# =====================================
async def bump_season_number(ctx: GameContext):
    ctx.profile.season += 1
    ctx.db.add(ctx.profile)
    logger.info("📅 Season %d begins on %s", ctx.profile.season, ctx.today)


async def schedule_next_season_start(ctx: GameContext) -> Calendar:
    return await schedule(ctx.db, add_years(ctx.today, 1), CalendarEntry.SEASON_START)


async def create_competitions(ctx: GameContext) -> List[Competition]:
    """One competition per tier and participating federation for the current season."""
    db = ctx.db
    created = []

    result = await db.execute(select(Tier).order_by(Tier.id))
    for tier in result.scalars().all():
        league = await db.get(League, tier.league_id)
        result = await db.execute(
            select(Federation)
            .join(LeagueFederationLink, LeagueFederationLink.federation_id == Federation.id)
            .where(LeagueFederationLink.league_id == league.id)
            .order_by(Federation.id)
        )
        federations = result.scalars().all()
        items = autofill.items_for(tier.slug, autofill_config.ON_SEASON_START)

        for federation in federations:
            teams: List[Team] = []
            for item in items:
                teams.extend(await autofill.parse(db, item, tier, federation, ctx.profile.season))

            competition = Competition(season=ctx.profile.season, tier_id=tier.id, federation_id=federation.id)
            db.add(competition)
            await db.flush()

            seen = set()
            for team in teams:
                if team.id in seen or len(seen) >= tier.size:
                    continue
                seen.add(team.id)
                db.add(Competitor(competition_id=competition.id, team_id=team.id))

            # triggered tiers are started by the tier that feeds them
            if not tier.trigger_offset_days:
                await schedule(
                    db,
                    ctx.today + timedelta(days=league.start_offset_days),
                    CalendarEntry.COMPETITION_START,
                    CompetitionRef(competition_id=competition.id),
                )
            created.append(competition)

    logger.info("🏆 Created %d competitions for season %d", len(created), ctx.profile.season)
    return created


async def on_season_start(ctx: GameContext, entry: Calendar):
    # only a new career that starts on a team gets welcomed
    if ctx.profile.season == 0 and ctx.profile.team_id is not None:
        player = await ctx.user_player()
        await mail_service.send_template(
            ctx, "welcome", ctx.profile.team_id,
            season=ctx.profile.season + 1, player=player.name if player else ctx.profile.name,
        )
    await schedule_next_season_start(ctx)
    await bump_season_number(ctx)
    await create_competitions(ctx)
    await economy_service.sponsorship_check(ctx)
    await economy_service.sync_tiers(ctx)
    await economy_service.sync_wages(ctx)
    await ctx.db.commit()


# =====================================
# COMPETITION START
# =====================================
async def create_matchdays(ctx: GameContext, bracket_matches: List[dict], tournament: Tournament,
                           competition: Competition, tier: Tier, league: League,
                           map_name: Optional[str] = None, map_pool: Optional[List[str]] = None) -> List[Match]:
    """
    Create (or refresh) Match rows and their calendar entries for a batch of
    bracket matches. Existing rows are found by bracket id and get their new
    competitors and status instead of being duplicated.
    """
    db = ctx.db
    competitors = {competitor.id: competitor for competitor in await load_competitors(db, competition.id)}
    total_rounds = tournament.total_rounds
    touched = []

    for bracket_match in bracket_matches:
        sides = []
        for seed in bracket_match["p"]:
            competitor = competitors.get(tournament.get_competitor_by_seed(seed))
            if competitor is not None:
                sides.append((seed, competitor))

        if BYE in bracket_match["p"]:
            status = MatchStatus.COMPLETED
        else:
            status = [MatchStatus.LOCKED, MatchStatus.WAITING, MatchStatus.READY][len(sides)]

        user_involved = ctx.profile.team_id is not None and any(
            competitor.team_id == ctx.profile.team_id for _, competitor in sides
        )
        entry_type = CalendarEntry.MATCHDAY_USER if user_involved else CalendarEntry.MATCHDAY_NPC
        payload = match_key(bracket_match["id"])

        result = await db.execute(
            select(Match).where(Match.competition_id == competition.id, Match.payload == payload)
        )
        match = result.scalars().first()

        if match is not None:
            # a played match keeps its result
            if match.status != MatchStatus.COMPLETED:
                match.status = status
                db.add(match)
            result = await db.execute(select(MatchCompetitor.team_id).where(MatchCompetitor.match_id == match.id))
            known = set(result.scalars().all())
            for seed, competitor in sides:
                if competitor.team_id not in known:
                    db.add(MatchCompetitor(match_id=match.id, team_id=competitor.team_id, seed=seed))

            entry = await find_entry(db, MATCHDAY_TYPES, MatchRef(match_id=match.id))
            if entry is not None and not entry.completed and entry.type != entry_type:
                entry.type = entry_type
                db.add(entry)
            touched.append(match)
            continue

        weekday = roll(MATCHDAY_WEIGHTS[league.slug], ctx.rng)
        match_date = matchday_date(ctx.today, bracket_match["id"]["r"], weekday)
        match = Match(
            competition_id=competition.id,
            payload=payload,
            round=bracket_match["id"]["r"],
            total_rounds=total_rounds,
            status=status,
            date=match_date,
        )
        db.add(match)
        await db.flush()

        for seed, competitor in sides:
            db.add(MatchCompetitor(match_id=match.id, team_id=competitor.team_id, seed=seed))

        num_games = games_for_round(tier.slug, total_rounds, match.round)
        maps = [map_name] if map_name else []
        if map_pool and num_games > len(maps):
            maps += sample([m for m in map_pool if m not in maps], num_games - len(maps), ctx.rng)
        for num in range(1, num_games + 1):
            game_map = maps[num - 1] if num - 1 < len(maps) else (map_name or "tba")
            db.add(Game(match_id=match.id, num=num, map=game_map))

        if status != MatchStatus.COMPLETED:
            await schedule(db, match_date, entry_type, MatchRef(match_id=match.id))
        touched.append(match)

    return touched


async def on_competition_start(ctx: GameContext, entry: Calendar):
    db = ctx.db
    payload = decode_payload(entry.type, entry.payload)
    competition = await db.get(Competition, payload.competition_id)
    if competition is None or competition.status != CompetitionStatus.SCHEDULED:
        logger.warning("Competition %s is missing or already started; skipping start", payload.competition_id)
        return

    tier, league, federation = await load_structure(db, competition)
    competitors = await load_competitors(db, competition.id)

    # late entrants (e.g. playoffs seeded from this season's standings)
    taken = {competitor.team_id for competitor in competitors}
    for item in autofill.items_for(tier.slug, autofill_config.ON_COMPETITION_START):
        for team in await autofill.parse(db, item, tier, federation, ctx.profile.season):
            if team.id in taken or len(taken) >= tier.size:
                continue
            taken.add(team.id)
            db.add(Competitor(competition_id=competition.id, team_id=team.id))
    await db.flush()
    competitors = await load_competitors(db, competition.id)

    if len(competitors) < 2:
        logger.warning("%s - %s has %d competitors; closing it without matches",
                       federation.name, tier.name, len(competitors))
        competition.status = CompetitionStatus.COMPLETED
        db.add(competition)
        await db.commit()
        return

    tournament = Tournament(tier.size, tier.group_size)
    competitor_ids = [competitor.id for competitor in competitors]
    ctx.rng.shuffle(competitor_ids)
    tournament.add_competitors(competitor_ids)
    tournament.start()

    map_pool = await active_map_pool(db)
    matches: List[Match] = []
    for _, bracket_matches in tournament.rounds().items():
        map_name = pluck(map_pool, rng=ctx.rng) if map_pool else None
        matches += await create_matchdays(ctx, bracket_matches, tournament, competition, tier, league,
                                          map_name=map_name, map_pool=map_pool)

    if matches:
        await schedule(db, max(match.date for match in matches), CalendarEntry.COMPETITION_END,
                       CompetitionRef(competition_id=competition.id))

    competition.status = CompetitionStatus.STARTED
    competition.tournament = tournament.dumps()
    db.add(competition)

    for competitor in competitors:
        competitor.seed = tournament.get_seed(competitor.id)
        competitor.group = tournament.get_group_by_competitor_id(competitor.id)
        db.add(competitor)

    await db.commit()
    logger.info("🚩 Started %s - %s with %d teams (%d matches)",
                federation.name, tier.name, len(competitors), len(matches))


async def on_competition_end(ctx: GameContext, entry: Calendar):
    payload = decode_payload(entry.type, entry.payload)
    competition = await ctx.db.get(Competition, payload.competition_id)
    if competition is None:
        return
    tier, _, federation = await load_structure(ctx.db, competition)
    logger.info("🏁 %s - %s reached its last matchday (status: %s)",
                federation.name, tier.name, competition.status.value)


# =====================================
# RESULTS
# =====================================
async def trigger_next_competition(ctx: GameContext, competition: Competition, tier: Tier):
    """Schedule the start of the competition this one feeds, unless already scheduled."""
    db = ctx.db
    result = await db.execute(select(Federation).where(Federation.slug == FEDERATION_WORLD))
    world = result.scalars().first()
    federation_ids = [competition.federation_id] + ([world.id] if world else [])

    result = await db.execute(
        select(Competition)
        .join(Tier, Tier.id == Competition.tier_id)
        .where(
            Competition.season == competition.season,
            Tier.slug == tier.trigger_tier_slug,
            Competition.federation_id.in_(federation_ids),
        )
        .order_by(Competition.id)
    )
    triggered = result.scalars().first()
    if triggered is None:
        logger.warning("No %s competition to trigger for season %d", tier.trigger_tier_slug, competition.season)
        return

    triggered_tier = await db.get(Tier, triggered.tier_id)
    start = ctx.today + timedelta(days=triggered_tier.trigger_offset_days or 0)
    ref = CompetitionRef(competition_id=triggered.id)
    result = await db.execute(
        select(Calendar).where(
            Calendar.type == CalendarEntry.COMPETITION_START,
            Calendar.payload == encode_payload(ref),
            Calendar.date >= ctx.today,
            Calendar.date <= start,
        )
    )
    if result.scalars().first() is not None:
        return

    await schedule(db, start, CalendarEntry.COMPETITION_START, ref)
    logger.info("⏭️ %s finished; %s starts on %s", tier.name, triggered_tier.name, start)


def award_matches(award: dict, position: int) -> bool:
    if award.get("end") is None:
        return position == award["start"]
    return award["start"] < position <= award["end"]


async def send_user_award(ctx: GameContext, competition: Competition, tier: Tier, competitors: List[Competitor]):
    if ctx.profile.team_id is None:
        return

    mine = next((c for c in competitors if c.team_id == ctx.profile.team_id), None)
    if mine is None or mine.position is None:
        return

    awards = [award for award in AWARDS if award["target"] == tier.slug and award_matches(award, mine.position)]
    if not awards:
        return

    team = await ctx.db.get(Team, mine.team_id)
    await mail_service.send_template(
        ctx, f"award_{awards[0]['type']}", team.id,
        competition=tier.name, season=competition.season, team=team.name, position=mine.position,
    )


async def distribute_prize_pool(ctx: GameContext, competition: Competition, tier: Tier,
                                competitors: List[Competitor]) -> Dict[int, int]:
    """Pay each placed team its share of the tier's prize pool. Returns {team_id: prize}."""
    pool = PRIZE_POOL.get(tier.slug)
    if not pool or not pool["total"]:
        return {}

    distribution = pool["distribution"]
    payouts = {}
    for competitor in competitors:
        position = competitor.position
        if not position or position > len(distribution):
            continue
        prize = pool["total"] * distribution[position - 1] // 100
        if prize > 0:
            payouts[competitor.team_id] = prize

    for team_id, prize in payouts.items():
        await ctx.db.execute(update(Team).where(Team.id == team_id).values(earnings=Team.earnings + prize))

    logger.info("💰 Paid out %d prizes for %s (season %d)", len(payouts), tier.name, competition.season)
    return payouts


async def _score_match(db, tournament: Tournament, competitors: Dict[int, Competitor], match: Match) -> bool:
    result = await db.execute(select(MatchCompetitor).where(MatchCompetitor.match_id == match.id))
    sides = result.scalars().all()
    if len(sides) < 2 or any(side.score is None for side in sides):
        return False

    bracket_id = json.loads(match.payload)
    bracket_match = tournament.base.find_match(bracket_id)
    if bracket_match is None or bracket_match["m"] is not None:
        return False

    score_by_team = {side.team_id: side.score for side in sides}
    scores = []
    for seed in bracket_match["p"]:
        competitor = competitors.get(tournament.get_competitor_by_seed(seed))
        if competitor is None or competitor.team_id not in score_by_team:
            return False
        scores.append(score_by_team[competitor.team_id])
    return tournament.score(bracket_id, scores)


async def record_match_results(ctx: GameContext) -> int:
    """
    Feed today's completed matches into their tournaments, open the next
    bracket round when it becomes playable and close finished competitions.
    Returns how many matches were recorded.
    """
    db = ctx.db
    result = await db.execute(
        select(Match)
        .where(Match.date == ctx.today, Match.status == MatchStatus.COMPLETED, Match.competition_id.is_not(None))
        .order_by(Match.id)
    )
    by_competition: Dict[int, List[Match]] = defaultdict(list)
    for match in result.scalars().all():
        by_competition[match.competition_id].append(match)

    recorded = 0
    for competition_id, matches in by_competition.items():
        competition = await db.get(Competition, competition_id)
        if competition is None or not competition.tournament or competition.status != CompetitionStatus.STARTED:
            continue

        tier, league, _ = await load_structure(db, competition)
        tournament = Tournament.loads(competition.tournament)
        competitors = {competitor.id: competitor for competitor in await load_competitors(db, competition.id)}

        scored = 0
        for match in matches:
            if await _score_match(db, tournament, competitors, match):
                scored += 1
        if not scored:
            continue
        recorded += scored

        if tournament.brackets and not tournament.is_done():
            new_round = tournament.current_round()
            if new_round and all(m["m"] is None for m in new_round if BYE not in m["p"]):
                map_pool = await active_map_pool(db)
                map_name = pluck(map_pool, rng=ctx.rng) if map_pool else None
                await create_matchdays(ctx, new_round, tournament, competition, tier, league,
                                       map_name=map_name, map_pool=map_pool)

        # standings, prizes and the saved bracket land together or not at all
        async with atomic(db):
            for competitor in competitors.values():
                seed = tournament.get_seed(competitor.id)
                row = tournament.results_for(seed) if seed else None
                if row is None:
                    continue
                competitor.position = row["gpos"] or row["pos"]
                competitor.win = row["wins"]
                competitor.loss = row["losses"]
                competitor.draw = row["draws"]
                db.add(competitor)

            if tournament.is_done():
                competition.status = CompetitionStatus.COMPLETED
                if tier.trigger_tier_slug:
                    await trigger_next_competition(ctx, competition, tier)
                await send_user_award(ctx, competition, tier, list(competitors.values()))
                await distribute_prize_pool(ctx, competition, tier, list(competitors.values()))

            competition.tournament = tournament.dumps()
            db.add(competition)

    return recorded


async def standings(db, competition_id: int) -> List[Competitor]:
    result = await db.execute(
        select(Competitor)
        .where(Competitor.competition_id == competition_id)
        .order_by(Competitor.position.is_(None), Competitor.position, Competitor.id)
    )
    return result.scalars().all()
