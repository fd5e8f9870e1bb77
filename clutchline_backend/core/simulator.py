# clutchline_backend/core/simulator.py
# Match score simulator and per-player stat lines.

import logging
import random
from typing import Dict, List, Optional, Sequence

from clutchline_backend.core.chance import weighted_choice
from clutchline_backend.core.ratings import elo_win_probability

logger = logging.getLogger(__name__)

# Final round scores
SCORE_WIN = 16
SCORE_DRAW = 15
SCORE_LOSE_LOW = 0
SCORE_LOSE_HIGH = 14

# Rating gap that makes the stronger side ten times as likely to win.
SIMULATION_SCALING_FACTOR = 400

# Draw weight (in percent) per prestige level of the weaker side.
DRAW_PBX_BY_PRESTIGE = [12, 10, 8, 6]

DRAW = "draw"


def get_match_result(team_id: int, scores: Dict[int, int]) -> str:
    """'win', 'draw' or 'loss' for `team_id` given {team_id: score}."""
    own = scores[team_id]
    other = next(score for key, score in scores.items() if key != team_id)
    if own > other:
        return "win"
    if own == other:
        return "draw"
    return "loss"


class Score:
    """
    Simulates one match between two teams.

    `mode` only applies when `user_team_id` plays: "win"/"lose" force the
    result, "draw" forces a draw when draws are allowed.
    """

    def __init__(self, allow_draw: bool = False, mode: str = "default",
                 user_team_id: Optional[int] = None, rng: Optional[random.Random] = None):
        self.allow_draw = allow_draw
        self.mode = mode
        self.user_team_id = user_team_id
        self.rng = rng or random.Random()

    @staticmethod
    def team_rating(team, players: Sequence) -> float:
        """Elo adjusted by the squad's average experience."""
        if not players:
            return team.elo
        average_xp = sum(player.xp for player in players) / len(players)
        return team.elo + average_xp / 10 + team.prestige + team.tier

    def _scores(self, winner_id: int, loser_id: int) -> Dict[int, int]:
        return {winner_id: SCORE_WIN, loser_id: self.rng.randint(SCORE_LOSE_LOW, SCORE_LOSE_HIGH)}

    def generate(self, home, home_players: Sequence, away, away_players: Sequence) -> Dict[int, int]:
        user_plays = self.user_team_id in (home.id, away.id)
        if user_plays and self.mode in ("win", "lose"):
            user, other = (home, away) if home.id == self.user_team_id else (away, home)
            if self.mode == "win":
                return self._scores(user.id, other.id)
            return self._scores(other.id, user.id)
        if user_plays and self.mode == DRAW and self.allow_draw:
            return {home.id: SCORE_DRAW, away.id: SCORE_DRAW}

        home_pbx = elo_win_probability(
            self.team_rating(home, home_players),
            self.team_rating(away, away_players),
            SIMULATION_SCALING_FACTOR,
        )
        draw_pbx = 0
        if self.allow_draw:
            weakest = min(home.prestige, away.prestige)
            draw_pbx = DRAW_PBX_BY_PRESTIGE[min(max(weakest, 0), len(DRAW_PBX_BY_PRESTIGE) - 1)]

        outcome = weighted_choice(
            {home.id: home_pbx * (100 - draw_pbx), away.id: (1 - home_pbx) * (100 - draw_pbx), DRAW: draw_pbx},
            self.rng,
        )
        if outcome == DRAW:
            return {home.id: SCORE_DRAW, away.id: SCORE_DRAW}
        if outcome == home.id:
            return self._scores(home.id, away.id)
        return self._scores(away.id, home.id)

    def player_lines(self, players: Sequence, result: str, rounds: int) -> List[dict]:
        """Kills/deaths for each player of one side over `rounds` rounds."""
        lines = []
        swing = {"win": 0.08, "draw": 0.0, "loss": -0.08}[result]
        for player in players:
            skill = min(player.xp, 1000) / 1000
            kills_per_round = 0.55 + 0.3 * skill + swing
            deaths_per_round = 0.75 - 0.15 * skill - swing
            lines.append({
                "player_id": player.id,
                "kills": max(0, round(rounds * kills_per_round * self.rng.uniform(0.6, 1.4))),
                "deaths": max(1, round(rounds * deaths_per_round * self.rng.uniform(0.7, 1.3))),
            })
        return lines
