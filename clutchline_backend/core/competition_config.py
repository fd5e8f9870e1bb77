# clutchline_backend/core/competition_config.py
# Static world data for the competitive circuit: federations, leagues, tiers,
# match scheduling weights, prize pools, awards and wage bands.

# =====================================
# FEDERATIONS
# =====================================
FEDERATION_AMERICAS = "americas"
FEDERATION_ASIA = "asia"
FEDERATION_EUROPA = "europa"
FEDERATION_OCEANIA = "oceania"
FEDERATION_WORLD = "world"

FEDERATIONS = [
    {"name": "Americas", "slug": FEDERATION_AMERICAS},
    {"name": "Asia", "slug": FEDERATION_ASIA},
    {"name": "Europa", "slug": FEDERATION_EUROPA},
    {"name": "Oceania", "slug": FEDERATION_OCEANIA},
    {"name": "World", "slug": FEDERATION_WORLD},
]

# Federations that own teams (the world federation only hosts events).
DOMESTIC_FEDERATIONS = [FEDERATION_AMERICAS, FEDERATION_ASIA, FEDERATION_EUROPA, FEDERATION_OCEANIA]

# =====================================
# LEAGUES & TIERS
# =====================================
LEAGUE_DOMESTIC = "esl"
LEAGUE_PRO = "espl"
LEAGUE_CUP = "cup"

TIER_OPEN = "league:open"
TIER_OPEN_PLAYOFFS = "league:open:playoffs"
TIER_INTERMEDIATE = "league:intermediate"
TIER_INTERMEDIATE_PLAYOFFS = "league:intermediate:playoffs"
TIER_MAIN = "league:main"
TIER_MAIN_PLAYOFFS = "league:main:playoffs"
TIER_ADVANCED = "league:advanced"
TIER_ADVANCED_PLAYOFFS = "league:advanced:playoffs"
TIER_PRO = "league:pro"
TIER_PRO_PLAYOFFS = "league:pro:playoffs"
TIER_CUP = "league:cup"

# Global prestige ordering. A team's `tier` and `prestige` are indexes into this list.
PRESTIGE = [TIER_OPEN, TIER_INTERMEDIATE, TIER_MAIN, TIER_ADVANCED]

LEAGUES = [
    {
        "name": "Esports League",
        "slug": LEAGUE_DOMESTIC,
        "start_offset_days": 60,
        "federations": DOMESTIC_FEDERATIONS,
        "tiers": [
            {"name": "Open Division", "slug": TIER_OPEN, "size": 20, "group_size": 20,
             "trigger_tier_slug": TIER_OPEN_PLAYOFFS},
            {"name": "Open Division Playoffs", "slug": TIER_OPEN_PLAYOFFS, "size": 8, "group_size": None,
             "trigger_offset_days": 7},
            {"name": "Intermediate Division", "slug": TIER_INTERMEDIATE, "size": 20, "group_size": 20,
             "trigger_tier_slug": TIER_INTERMEDIATE_PLAYOFFS},
            {"name": "Intermediate Division Playoffs", "slug": TIER_INTERMEDIATE_PLAYOFFS, "size": 8,
             "group_size": None, "trigger_offset_days": 7},
            {"name": "Main Division", "slug": TIER_MAIN, "size": 20, "group_size": 20,
             "trigger_tier_slug": TIER_MAIN_PLAYOFFS},
            {"name": "Main Division Playoffs", "slug": TIER_MAIN_PLAYOFFS, "size": 8, "group_size": None,
             "trigger_offset_days": 7},
            {"name": "Advanced Division", "slug": TIER_ADVANCED, "size": 20, "group_size": 20,
             "trigger_tier_slug": TIER_ADVANCED_PLAYOFFS},
            {"name": "Advanced Division Playoffs", "slug": TIER_ADVANCED_PLAYOFFS, "size": 8,
             "group_size": None, "trigger_offset_days": 7},
        ],
    },
    {
        "name": "Esports Pro League",
        "slug": LEAGUE_PRO,
        "start_offset_days": 280,
        "federations": [FEDERATION_WORLD],
        "tiers": [
            {"name": "Pro League", "slug": TIER_PRO, "size": 16, "group_size": 4,
             "trigger_tier_slug": TIER_PRO_PLAYOFFS},
            {"name": "Pro League Playoffs", "slug": TIER_PRO_PLAYOFFS, "size": 8, "group_size": None,
             "trigger_offset_days": 7},
        ],
    },
    {
        "name": "Esports Cup",
        "slug": LEAGUE_CUP,
        "start_offset_days": 90,
        "federations": DOMESTIC_FEDERATIONS,
        "tiers": [
            {"name": "Cup", "slug": TIER_CUP, "size": 32, "group_size": None},
        ],
    },
]

# Tiers that decide a team's prestige index at the start of a season.
DOMESTIC_TIERS = list(PRESTIGE)

# =====================================
# MATCH SCHEDULING
# =====================================
# Weekday weights per league (0 = Sunday ... 6 = Saturday).
MATCHDAY_WEIGHTS = {
    LEAGUE_DOMESTIC: {5: 20, 6: "auto", 0: "auto"},
    LEAGUE_PRO: {5: 20, 6: "auto", 0: "auto"},
    LEAGUE_CUP: {3: 50, 4: "auto"},
}

# Best-of per round, indexed by rounds remaining (0 = final).
TIER_MATCH_CONFIG = {
    TIER_OPEN_PLAYOFFS: [3, 3],
    TIER_INTERMEDIATE_PLAYOFFS: [3, 3],
    TIER_MAIN_PLAYOFFS: [3, 3],
    TIER_ADVANCED_PLAYOFFS: [3, 3],
    TIER_PRO: [3],
    TIER_PRO_PLAYOFFS: [5, 3, 3],
    TIER_CUP: [3],
}

DEFAULT_GAMES_PER_MATCH = 1

# =====================================
# PRIZES & AWARDS
# =====================================
PRIZE_POOL = {
    TIER_OPEN: {"total": 5000, "distribution": [50, 35, 15]},
    TIER_INTERMEDIATE: {"total": 15000, "distribution": [50, 35, 15]},
    TIER_MAIN: {"total": 30000, "distribution": [50, 35, 15]},
    TIER_ADVANCED: {"total": 70000, "distribution": [50, 35, 15]},
    TIER_PRO: {"total": 250000, "distribution": [40, 25, 15, 10, 5, 5]},
    TIER_PRO_PLAYOFFS: {"total": 1000000, "distribution": [50, 30, 20]},
    TIER_CUP: {"total": 20000, "distribution": [50, 30, 20]},
}

AWARD_CHAMPION = "champion"
AWARD_PROMOTION = "promotion"
AWARD_QUALIFY = "qualify"

# `start` only: exact position. `start` + `end`: position in (start, end].
AWARDS = [
    {"target": TIER_OPEN_PLAYOFFS, "type": AWARD_CHAMPION, "start": 1},
    {"target": TIER_OPEN_PLAYOFFS, "type": AWARD_PROMOTION, "start": 1, "end": 2},
    {"target": TIER_INTERMEDIATE_PLAYOFFS, "type": AWARD_CHAMPION, "start": 1},
    {"target": TIER_INTERMEDIATE_PLAYOFFS, "type": AWARD_PROMOTION, "start": 1, "end": 2},
    {"target": TIER_MAIN_PLAYOFFS, "type": AWARD_CHAMPION, "start": 1},
    {"target": TIER_MAIN_PLAYOFFS, "type": AWARD_PROMOTION, "start": 1, "end": 2},
    {"target": TIER_ADVANCED_PLAYOFFS, "type": AWARD_CHAMPION, "start": 1},
    {"target": TIER_ADVANCED_PLAYOFFS, "type": AWARD_QUALIFY, "start": 1, "end": 2},
    {"target": TIER_PRO_PLAYOFFS, "type": AWARD_CHAMPION, "start": 1},
    {"target": TIER_CUP, "type": AWARD_CHAMPION, "start": 1},
]

# Paid to the user's team for every match it wins.
WIN_AWARD_AMOUNT = 100

# =====================================
# RATINGS
# =====================================
# Starting Elo by prestige.
ELO_RATINGS = {
    TIER_OPEN: 1000,
    TIER_INTERMEDIATE: 1250,
    TIER_MAIN: 1500,
    TIER_ADVANCED: 1750,
}

# =====================================
# ECONOMY
# =====================================
# Wage bands per tier: `percent` is the roll weight, wages are drawn from
# [low, high] and the transfer cost is wages * multiplier.
PLAYER_WAGES = {
    TIER_MAIN: [
        {"percent": 100, "low": 500, "high": 1500, "multiplier": 2},
    ],
    TIER_ADVANCED: [
        {"percent": 20, "low": 1000, "high": 5000, "multiplier": 2},
        {"percent": 80, "low": 5000, "high": 10000, "multiplier": 4},
    ],
}

SPONSOR_REQUIREMENT_PLACEMENT = "placement"
SPONSOR_BONUS_PLACEMENT = "placement"

# Sponsor contract terms keyed by sponsor slug.
#   tiers        - prestige tiers the sponsor is willing to back
#   requirements - league placement that must not be exceeded
#   bonuses      - payout for finishing above a placement
#   tournament   - tier slug of the event the sponsor invites its teams to
SPONSOR_CONTRACTS = {
    "hyperdrive": {
        "tiers": [TIER_OPEN, TIER_INTERMEDIATE],
        "amount": 500,
        "frequency": 4,
        "requirements": [{"type": SPONSOR_REQUIREMENT_PLACEMENT, "condition": 18}],
        "bonuses": [{"type": SPONSOR_BONUS_PLACEMENT, "condition": 4, "amount": 2500}],
        "tournament": None,
    },
    "voltline": {
        "tiers": [TIER_MAIN, TIER_ADVANCED],
        "amount": 2500,
        "frequency": 2,
        "requirements": [{"type": SPONSOR_REQUIREMENT_PLACEMENT, "condition": 12}],
        "bonuses": [{"type": SPONSOR_BONUS_PLACEMENT, "condition": 3, "amount": 15000}],
        "tournament": TIER_CUP,
    },
}

SPONSORS = [
    {"name": "Hyperdrive Energy", "slug": "hyperdrive"},
    {"name": "Voltline Peripherals", "slug": "voltline"},
]

# =====================================
# MAP POOL
# =====================================
MAP_POOL = ["de_ancient", "de_anubis", "de_dust2", "de_inferno", "de_mirage", "de_nuke", "de_train", "de_vertigo"]
