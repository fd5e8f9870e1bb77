# clutchline_backend/core/autofill_config.py
# Seeding rules for every tier. Each item tells the autofill service which
# teams to place in a tier, either at season start or when the competition starts.
#
# Entry fields:
#   action  - include | exclude | fallback
#   league  - league slug the source competition belongs to
#   target  - tier slug of the source competition (or prestige level for fallbacks)
#   start   - 1-based first position; negative means "last N"
#   end     - last position (inclusive); omitted means "to the end"
#   season  - season offset (-1 = last season, 0 = this season); omitted on
#             fallbacks means "pick teams by prestige"
#   federation - force the source federation instead of the competition's own

from clutchline_backend.core.competition_config import (
    DOMESTIC_FEDERATIONS,
    LEAGUE_DOMESTIC,
    LEAGUE_PRO,
    TIER_ADVANCED,
    TIER_ADVANCED_PLAYOFFS,
    TIER_CUP,
    TIER_INTERMEDIATE,
    TIER_INTERMEDIATE_PLAYOFFS,
    TIER_MAIN,
    TIER_MAIN_PLAYOFFS,
    TIER_OPEN,
    TIER_OPEN_PLAYOFFS,
    TIER_PRO,
    TIER_PRO_PLAYOFFS,
)

ON_SEASON_START = "season_start"
ON_COMPETITION_START = "competition_start"


def _include(league, target, start, end=None, season=-1, federation=None):
    return {"action": "include", "league": league, "target": target, "start": start,
            "end": end, "season": season, "federation": federation}


def _fallback(league, target, start, end=None, season=None, federation=None):
    return {"action": "fallback", "league": league, "target": target, "start": start,
            "end": end, "season": season, "federation": federation}


def _playoffs(regular_tier, playoffs_tier, league=LEAGUE_DOMESTIC):
    # playoffs are created empty at season start and filled from this
    # season's regular standings once the regular season triggers them
    return [
        {"tier": playoffs_tier, "on": ON_SEASON_START, "entries": []},
        {"tier": playoffs_tier, "on": ON_COMPETITION_START,
         "entries": [_include(league, regular_tier, 1, 8, season=0)]},
    ]


AUTOFILL_ITEMS = [
    # --- Open: bottom of the pyramid, relegated teams drop in from intermediate
    {"tier": TIER_OPEN, "on": ON_SEASON_START, "entries": [
        _include(LEAGUE_DOMESTIC, TIER_OPEN_PLAYOFFS, 3, 8),
        _include(LEAGUE_DOMESTIC, TIER_OPEN, 9, 20),
        _include(LEAGUE_DOMESTIC, TIER_INTERMEDIATE, -2),
        _fallback(LEAGUE_DOMESTIC, TIER_OPEN, 1),
    ]},
    *_playoffs(TIER_OPEN, TIER_OPEN_PLAYOFFS),

    # --- Intermediate
    {"tier": TIER_INTERMEDIATE, "on": ON_SEASON_START, "entries": [
        _include(LEAGUE_DOMESTIC, TIER_OPEN_PLAYOFFS, 1, 2),
        _include(LEAGUE_DOMESTIC, TIER_INTERMEDIATE_PLAYOFFS, 3, 8),
        _include(LEAGUE_DOMESTIC, TIER_INTERMEDIATE, 9, 18),
        _include(LEAGUE_DOMESTIC, TIER_MAIN, -2),
        _fallback(LEAGUE_DOMESTIC, TIER_INTERMEDIATE, 1),
    ]},
    *_playoffs(TIER_INTERMEDIATE, TIER_INTERMEDIATE_PLAYOFFS),

    # --- Main
    {"tier": TIER_MAIN, "on": ON_SEASON_START, "entries": [
        _include(LEAGUE_DOMESTIC, TIER_INTERMEDIATE_PLAYOFFS, 1, 2),
        _include(LEAGUE_DOMESTIC, TIER_MAIN_PLAYOFFS, 3, 8),
        _include(LEAGUE_DOMESTIC, TIER_MAIN, 9, 18),
        _include(LEAGUE_DOMESTIC, TIER_ADVANCED, -2),
        _fallback(LEAGUE_DOMESTIC, TIER_MAIN, 1),
    ]},
    *_playoffs(TIER_MAIN, TIER_MAIN_PLAYOFFS),

    # --- Advanced: top of the domestic pyramid
    {"tier": TIER_ADVANCED, "on": ON_SEASON_START, "entries": [
        _include(LEAGUE_DOMESTIC, TIER_MAIN_PLAYOFFS, 1, 2),
        _include(LEAGUE_DOMESTIC, TIER_ADVANCED_PLAYOFFS, 1, 8),
        _include(LEAGUE_DOMESTIC, TIER_ADVANCED, 9, 18),
        _fallback(LEAGUE_DOMESTIC, TIER_ADVANCED, 1),
    ]},
    *_playoffs(TIER_ADVANCED, TIER_ADVANCED_PLAYOFFS),

    # --- Pro: last season's top 8 keep their spot, the rest qualify through
    # this season's advanced playoffs in every federation
    {"tier": TIER_PRO, "on": ON_SEASON_START, "entries": [
        _include(LEAGUE_PRO, TIER_PRO, 1, 8),
        *[_fallback(LEAGUE_DOMESTIC, TIER_ADVANCED, 1, 2, federation=federation)
          for federation in DOMESTIC_FEDERATIONS],
    ]},
    {"tier": TIER_PRO, "on": ON_COMPETITION_START, "entries": [
        _include(LEAGUE_DOMESTIC, TIER_ADVANCED_PLAYOFFS, 1, 2, season=0, federation=federation)
        for federation in DOMESTIC_FEDERATIONS
    ]},
    *_playoffs(TIER_PRO, TIER_PRO_PLAYOFFS, league=LEAGUE_PRO),

    # --- Cup: open draw seeded purely by prestige
    {"tier": TIER_CUP, "on": ON_SEASON_START, "entries": [
        _fallback(LEAGUE_DOMESTIC, TIER_ADVANCED, 1, 8),
        _fallback(LEAGUE_DOMESTIC, TIER_MAIN, 1, 8),
        _fallback(LEAGUE_DOMESTIC, TIER_INTERMEDIATE, 1, 8),
        _fallback(LEAGUE_DOMESTIC, TIER_OPEN, 1, 8),
    ]},
]
