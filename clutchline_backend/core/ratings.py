# clutchline_backend/core/ratings.py
# Elo helpers used by the match simulator and the post-match rating update.

# Rating gap that makes one side ten times as likely to win.
ELO_SCALE = 400

# Maximum rating change for a single match.
ELO_K_FACTOR = 32

# Actual score per result, as the Elo formula expects it.
ELO_SCORE = {
    "win": 1.0,
    "draw": 0.5,
    "loss": 0.0,
}


def elo_win_probability(rating: float, opponent: float, scale: float = ELO_SCALE) -> float:
    """Expected score of `rating` against `opponent`."""
    return 1 / (1 + 10 ** ((opponent - rating) / scale))


def elo_delta(rating: float, opponent: float, actual: float, k_factor: float = ELO_K_FACTOR) -> float:
    """Points gained (or lost, when negative) after one match."""
    return k_factor * (actual - elo_win_probability(rating, opponent))
