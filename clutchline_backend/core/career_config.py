# clutchline_backend/core/career_config.py
# Tuning tables for the user player's career: transfer negotiation, scouting
# offers and contract reviews. Percentages are 0-100 roll chances.

from clutchline_backend.core.competition_config import (
    TIER_ADVANCED,
    TIER_INTERMEDIATE,
    TIER_MAIN,
    TIER_OPEN,
)

ROLE_RIFLER = "rifler"
ROLE_SNIPER = "sniper"

# =====================================
# TRANSFER NEGOTIATION
# =====================================
TRANSFER_SETTINGS = {
    # how long teams and players take to respond
    "RESPONSE_MIN_DAYS": 1,
    "RESPONSE_MAX_DAYS": 3,

    # percent added per dollar offered over the player's wages
    "PBX_PLAYER_HIGHBALL_MODIFIER": 0.01,

    # is the player willing to lower their wages?
    "PBX_PLAYER_LOWBALL_OFFER": 10,

    # is the player willing to move to another federation?
    "PBX_PLAYER_RELOCATE": 20,

    # percent added per dollar offered over the selling price
    "PBX_TEAM_HIGHBALL_MODIFIER": 0.01,

    # is the team willing to lower their fee?
    "PBX_TEAM_LOWBALL_OFFER": 10,

    # is the team willing to sell a player it did not list?
    "PBX_TEAM_SELL_UNLISTED": 10,

    # base chance a player takes an offer that matches their wages
    "PBX_PLAYER_ACCEPT": 75,

    # how much of the asking price a buying team bids (min, max multiplier)
    "BID_COST_RANGE": (0.9, 1.25),

    # pay rise offered on top of the current wages (min, max multiplier)
    "BID_WAGES_RANGE": (1.0, 1.3),

    # days the user has to answer an offer
    "OFFER_EXPIRY_DAYS": 7,
}

# =====================================
# SCOUTING OFFERS FOR THE USER PLAYER
# =====================================
USER_OFFER_SETTINGS = {
    "TEAMLESS_OFFER_COOLDOWN_DAYS": 10,
    "TEAM_OFFER_COOLDOWN_DAYS": 50,
    "TEAMLESS_MAX_PENDING_OFFERS": 3,

    # days between scouting checks
    "SCOUTING_INTERVAL_DAYS": 7,

    # contracted players get no offers before this many matches on record
    "MIN_MATCHES_BEFORE_OFFERS": 3,

    # the signal blends recent and lifetime K/D
    "RECENT_MATCHES": 20,
    "SIGNAL_RECENT_WEIGHT": 0.8,
    "SIGNAL_LIFETIME_WEIGHT": 0.2,

    # K/D mapped onto 0..1 (floor -> 0, ceiling -> 1)
    "SIGNAL_KD_FLOOR": 0.6,
    "SIGNAL_KD_CEILING": 1.4,

    # share of the signal coming from the team's recent form
    "SIGNAL_TEAM_FORM_WEIGHT": 0.2,

    # minimum signal to receive an offer from N tiers above
    "UPWARD_SIGNAL_THRESHOLDS": {1: 0.65, 2: 0.85},

    # below this signal, offers from one tier down become likely
    "DOWNWARD_SIGNAL_THRESHOLD": 0.35,
    "POOR_SIGNAL_DOWN_WEIGHT_MULT": 4,

    # tier weights for lateral / upward / downward offers
    "TIER_WEIGHTS": {"lateral": 60, "up": 25, "down": 15},

    # chance of an offer per scouting check, before modifiers
    "BASE_OFFER_PBX": 35,
    "TEAMLESS_OFFER_PBX_MULT": 1.5,
    "BENCHED_OFFER_PBX_MULT": 1.4,
    "LISTED_OFFER_PBX_MULT": 1.6,

    # contracts with more than this many days left make teams hesitant
    "LONG_CONTRACT_DAYS": 365,
    "LONG_CONTRACT_PBX_MULT": 0.5,

    # chance an offer comes from outside the player's federation, by target tier
    "CROSS_FEDERATION_PBX_BY_TIER": {
        TIER_OPEN: 2,
        TIER_INTERMEDIATE: 4,
        TIER_MAIN: 8,
        TIER_ADVANCED: 15,
    },

    # contract terms by tier
    "CONTRACT_YEARS_WEIGHTS": {
        TIER_OPEN: {1: 85, 2: 15},
        TIER_INTERMEDIATE: {1: 70, 2: 30},
        TIER_MAIN: {1: 50, 2: 50},
        TIER_ADVANCED: {2: 80, 3: 20},
    },

    # snipers are in lower demand and wait longer between offers
    "ROLE_OFFER_TUNING": {
        ROLE_RIFLER: {"pbx_mult": 1.0, "cooldown_mult_team": 1.0, "cooldown_mult_teamless": 1.0},
        ROLE_SNIPER: {"pbx_mult": 0.55, "cooldown_mult_team": 1.6, "cooldown_mult_teamless": 1.6},
    },
}

# =====================================
# CONTRACT REVIEWS
# =====================================
PLAYER_CONTRACT_SETTINGS = {
    # days between contract reviews
    "REVIEW_INTERVAL_DAYS": 7,
    "REVIEW_MIN_MATCHES_LAST_30_DAYS": 3,

    # bench evaluation
    "BENCH_MIN_LEAGUE_MATCHES": 7,
    "BENCH_KD_MIN_BY_TIER": {
        TIER_OPEN: 0.90,
        TIER_INTERMEDIATE: 0.95,
        TIER_MAIN: 1.00,
        TIER_ADVANCED: 1.05,
    },
    "BENCH_PBX_BY_TIER": {
        TIER_OPEN: 30,
        TIER_INTERMEDIATE: 35,
        TIER_MAIN: 50,
        TIER_ADVANCED: 65,
    },

    # kick evaluation (early termination)
    "KICK_MIN_LEAGUE_MATCHES": 6,
    "KICK_WINDOW_DAYS": 90,
    "KICK_KD_MAX_BY_TIER": {
        TIER_OPEN: 0.70,
        TIER_INTERMEDIATE: 0.75,
        TIER_MAIN: 0.80,
        TIER_ADVANCED: 0.90,
    },
    "KICK_PBX_BY_TIER": {
        TIER_OPEN: 50,
        TIER_INTERMEDIATE: 20,
        TIER_MAIN: 25,
        TIER_ADVANCED: 30,
    },

    # team form scales bench/kick chances: (min win rate, multiplier)
    "FORM_WINDOW_MATCHES": 5,
    "FORM_MULTIPLIERS": [(0.6, 0.5), (0.4, 1.0), (0.0, 1.5)],

    # extension
    "EXTENSION_EVAL_DAYS_BEFORE_END": 30,
    "EXTENSION_MIN_MATCHES": 7,
    "EXTENSION_PLAYER_OK_KD_BY_TIER": {
        TIER_OPEN: 1.00,
        TIER_INTERMEDIATE: 1.00,
        TIER_MAIN: 1.05,
        TIER_ADVANCED: 1.10,
    },
    "EXTENSION_PLAYER_GOOD_KD_BONUS": 0.10,
    "EXTENSION_TEAM_GOOD_WIN_RATE": 0.5,
    "EXTENSION_PBX_GOOD_TEAM_GOOD_PLAYER": 85,
    "EXTENSION_PBX_BAD_TEAM_GOOD_PLAYER": 45,
    "EXTENSION_PBX_GOOD_TEAM_OK_PLAYER": 55,
    "EXTENSION_PBX_BAD_TEAM_OK_PLAYER": 20,
    "EXTENSION_DECLINE_PBX_EVEN_IF_GOOD": 10,

    # bench victims must be within this much XP of the weakest starter
    "BENCH_VICTIM_XP_TOLERANCE": 50,

    # starters per team
    "STARTERS": 5,
}
