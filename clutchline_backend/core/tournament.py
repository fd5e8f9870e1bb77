# clutchline_backend/core/tournament.py
# Bracket and group-stage engine behind every competition.
#
# Seeds are 1-based positions in the competitor list. A match id is a small
# dict {"s": section, "r": round, "m": match} so it can be stored as JSON and
# matched back against Match.payload.

import json
import math
from typing import Dict, List, Optional

# Seed slot with no competitor behind it (bracket padding).
BYE = -1

# Seed not decided yet (waiting on an earlier round).
TBD = 0


def match_key(match_id: dict) -> str:
    """Stable JSON form of a match id, used as the calendar/match payload."""
    return json.dumps({"s": match_id["s"], "r": match_id["r"], "m": match_id["m"]}, sort_keys=True)


def round_robin(seeds: List[int]) -> List[List[tuple]]:
    """
    Single-cycle round robin using the circle method.
    Odd groups get a dummy bye slot; pairings against it are skipped.
    """
    slots = list(seeds)
    if len(slots) % 2 != 0:
        slots.append(None)

    half = len(slots) // 2
    rounds = []
    for r in range(len(slots) - 1):
        pairs = []
        for i in range(half):
            home = slots[i]
            away = slots[-i - 1]
            if home is None or away is None:
                continue
            # alternate sides so the fixed slot is not always home
            pairs.append((home, away) if r % 2 == 0 else (away, home))
        rounds.append(pairs)

        # Rotate (keep the first slot fixed)
        slots = [slots[0]] + [slots[-1]] + slots[1:-1]
    return rounds


def bracket_order(size: int) -> List[int]:
    """Seed order of the first bracket round so 1 and 2 can only meet in the final."""
    order = [1, 2]
    while len(order) < size:
        total = len(order) * 2 + 1
        order = [s for seed in order for s in (seed, total - seed)]
    return order[:size]


class _Stage:
    """Shared bookkeeping for both tournament formats."""

    kind = ""

    def __init__(self, num_players: int, matches: Optional[List[dict]] = None):
        if num_players < 2:
            raise ValueError(f"a tournament needs at least 2 players, got {num_players}")
        self.num_players = num_players
        self.matches = matches if matches is not None else self._build()

    def _build(self) -> List[dict]:
        raise NotImplementedError

    # --- lookups ---
    def find_match(self, match_id: dict) -> Optional[dict]:
        key = match_key(match_id)
        for match in self.matches:
            if match_key(match["id"]) == key:
                return match
        return None

    def rounds(self) -> Dict[int, List[dict]]:
        grouped: Dict[int, List[dict]] = {}
        for match in self.matches:
            grouped.setdefault(match["id"]["r"], []).append(match)
        return dict(sorted(grouped.items()))

    @property
    def total_rounds(self) -> int:
        return max((match["id"]["r"] for match in self.matches), default=0)

    @staticmethod
    def is_bye(match: dict) -> bool:
        return BYE in match["p"]

    def is_playable(self, match: dict) -> bool:
        return not self.is_bye(match) and TBD not in match["p"]

    def is_done(self) -> bool:
        return all(match["m"] is not None for match in self.matches if not self.is_bye(match))

    def current_round(self) -> List[dict]:
        """Matches of the earliest round that still has an unscored match."""
        for _, matches in self.rounds().items():
            if any(match["m"] is None and not self.is_bye(match) for match in matches):
                return matches
        return []

    # --- mutation ---
    def score(self, match_id: dict, scores: List[int]) -> bool:
        match = self.find_match(match_id)
        if match is None or not self.is_playable(match):
            return False
        if len(scores) != 2 or any(s is None or s < 0 for s in scores):
            return False
        match["m"] = [int(scores[0]), int(scores[1])]
        return True

    def results(self) -> List[dict]:
        raise NotImplementedError

    def result_for(self, seed: int) -> Optional[dict]:
        for result in self.results():
            if result["seed"] == seed:
                return result
        return None

    def state(self) -> dict:
        return {"kind": self.kind, "num_players": self.num_players, "matches": self.matches}


class GroupStage(_Stage):
    """
    Round-robin groups. `group_size` is the number of players per group;
    values below 2, or not smaller than the field, mean one single group.
    """

    kind = "groups"

    def __init__(self, num_players: int, group_size: Optional[int] = None, matches: Optional[List[dict]] = None):
        self.group_size = group_size
        self.groups = self.partition(num_players, group_size)
        super().__init__(num_players, matches)

    @staticmethod
    def partition(num_players: int, group_size: Optional[int]) -> List[List[int]]:
        seeds = list(range(1, num_players + 1))
        if not group_size or group_size < 2 or group_size >= num_players:
            return [seeds]

        count = math.ceil(num_players / group_size)
        groups: List[List[int]] = [[] for _ in range(count)]
        # snake draft keeps the top seeds spread out
        for i, seed in enumerate(seeds):
            row, col = divmod(i, count)
            groups[col if row % 2 == 0 else count - 1 - col].append(seed)
        return groups

    def _build(self) -> List[dict]:
        matches = []
        for group_number, seeds in enumerate(self.groups, start=1):
            for round_number, pairs in enumerate(round_robin(seeds), start=1):
                for match_number, (home, away) in enumerate(pairs, start=1):
                    matches.append({
                        "id": {"s": group_number, "r": round_number, "m": match_number},
                        "p": [home, away],
                        "m": None,
                    })
        return matches

    def group_of(self, seed: int) -> Optional[int]:
        for group_number, seeds in enumerate(self.groups, start=1):
            if seed in seeds:
                return group_number
        return None

    def results(self) -> List[dict]:
        table = {
            seed: {"seed": seed, "grp": self.group_of(seed), "wins": 0, "draws": 0, "losses": 0,
                   "for": 0, "against": 0, "pts": 0, "pos": None, "gpos": None}
            for seed in range(1, self.num_players + 1)
        }

        for match in self.matches:
            if match["m"] is None:
                continue
            (a, b), (sa, sb) = match["p"], match["m"]
            table[a]["for"] += sa
            table[a]["against"] += sb
            table[b]["for"] += sb
            table[b]["against"] += sa
            if sa > sb:
                table[a]["wins"] += 1
                table[b]["losses"] += 1
            elif sb > sa:
                table[b]["wins"] += 1
                table[a]["losses"] += 1
            else:
                table[a]["draws"] += 1
                table[b]["draws"] += 1

        for row in table.values():
            row["pts"] = row["wins"] * 3 + row["draws"]

        def rank_key(row):
            return (-row["pts"], -(row["for"] - row["against"]), -row["for"], row["seed"])

        for seeds in self.groups:
            ranked = sorted((table[seed] for seed in seeds), key=rank_key)
            for pos, row in enumerate(ranked, start=1):
                row["pos"] = pos

        overall = sorted(table.values(), key=lambda row: (row["pos"],) + rank_key(row))
        for gpos, row in enumerate(overall, start=1):
            row["gpos"] = gpos

        return sorted(table.values(), key=lambda row: row["gpos"])


class Duel(_Stage):
    """
    Single-elimination bracket. The field is padded to a power of two with
    BYE slots; bye matches advance the real seed at construction time.
    """

    kind = "brackets"

    def _build(self) -> List[dict]:
        size = 2 ** math.ceil(math.log2(self.num_players))
        order = [seed if seed <= self.num_players else BYE for seed in bracket_order(size)]

        matches = []
        rounds = int(math.log2(size))
        for round_number in range(1, rounds + 1):
            for match_number in range(1, size // (2 ** round_number) + 1):
                if round_number == 1:
                    players = [order[2 * match_number - 2], order[2 * match_number - 1]]
                else:
                    players = [TBD, TBD]
                matches.append({
                    "id": {"s": 1, "r": round_number, "m": match_number},
                    "p": players,
                    "m": None,
                })
        self.matches = matches

        for match in [m for m in matches if m["id"]["r"] == 1 and self.is_bye(m)]:
            winner = match["p"][0] if match["p"][1] == BYE else match["p"][1]
            self._advance(match, winner)
        return matches

    def _next_slot(self, match: dict):
        round_number, match_number = match["id"]["r"], match["id"]["m"]
        if round_number >= self.total_rounds:
            return None, None
        target = self.find_match({"s": 1, "r": round_number + 1, "m": math.ceil(match_number / 2)})
        return target, (match_number - 1) % 2

    def _advance(self, match: dict, winner: int):
        target, slot = self._next_slot(match)
        if target is not None:
            target["p"][slot] = winner

    def score(self, match_id: dict, scores: List[int]) -> bool:
        match = self.find_match(match_id)
        if match is None or not self.is_playable(match):
            return False
        if len(scores) != 2 or scores[0] == scores[1]:
            # eliminations need a winner
            return False
        target, _ = self._next_slot(match)
        if target is not None and target["m"] is not None:
            # the next round is already decided
            return False
        if not super().score(match_id, scores):
            return False
        a, b = match["p"]
        self._advance(match, a if scores[0] > scores[1] else b)
        return True

    def results(self) -> List[dict]:
        rows = {
            seed: {"seed": seed, "grp": None, "wins": 0, "draws": 0, "losses": 0,
                   "reached": 0, "champion": False, "pos": None, "gpos": None}
            for seed in range(1, self.num_players + 1)
        }

        for match in self.matches:
            for seed in match["p"]:
                if seed > 0:
                    rows[seed]["reached"] = max(rows[seed]["reached"], match["id"]["r"])
            if match["m"] is None:
                continue
            (a, b), (sa, sb) = match["p"], match["m"]
            winner, loser = (a, b) if sa > sb else (b, a)
            rows[winner]["wins"] += 1
            rows[loser]["losses"] += 1
            if match["id"]["r"] == self.total_rounds:
                rows[winner]["champion"] = True

        ranked = sorted(
            rows.values(),
            key=lambda row: (not row["champion"], -row["reached"], -row["wins"], row["seed"]),
        )
        for pos, row in enumerate(ranked, start=1):
            row["pos"] = pos
            row["gpos"] = pos
        return ranked


class Tournament:
    """
    Competitor-aware wrapper around a GroupStage or Duel.

    Competitors are stored by id in seeding order; seed N is competitors[N - 1].
    The wrapper is plain data in and out (save/restore) so the owning
    competition can persist it as JSON.
    """

    def __init__(self, size: int, group_size: Optional[int] = None):
        self.size = size
        self.group_size = group_size
        self.competitors: List[int] = []
        self.base: Optional[_Stage] = None

    @property
    def brackets(self) -> bool:
        return isinstance(self.base, Duel)

    @property
    def groups(self) -> bool:
        return isinstance(self.base, GroupStage)

    def add_competitors(self, competitor_ids: List[int]):
        if self.base is not None:
            raise ValueError("cannot add competitors to a started tournament")
        for competitor_id in competitor_ids:
            if len(self.competitors) >= self.size:
                break
            if competitor_id not in self.competitors:
                self.competitors.append(competitor_id)

    def start(self):
        num_players = min(self.size, len(self.competitors))
        if self.group_size is not None:
            self.base = GroupStage(num_players, self.group_size)
        else:
            self.base = Duel(num_players)
        return self

    # --- competitor/seed mapping ---
    def get_competitor_by_seed(self, seed: int) -> Optional[int]:
        if seed is None or seed < 1 or seed > len(self.competitors):
            return None
        return self.competitors[seed - 1]

    def get_seed(self, competitor_id: int) -> Optional[int]:
        if competitor_id not in self.competitors:
            return None
        return self.competitors.index(competitor_id) + 1

    def get_group_by_competitor_id(self, competitor_id: int) -> Optional[int]:
        seed = self.get_seed(competitor_id)
        if seed is None or not self.groups:
            return None
        return self.base.group_of(seed)

    # --- delegation ---
    def _require_started(self) -> _Stage:
        if self.base is None:
            raise ValueError("tournament has not started")
        return self.base

    @property
    def matches(self) -> List[dict]:
        return self._require_started().matches

    @property
    def total_rounds(self) -> int:
        return self._require_started().total_rounds

    def rounds(self) -> Dict[int, List[dict]]:
        return self._require_started().rounds()

    def current_round(self) -> List[dict]:
        return self._require_started().current_round()

    def is_done(self) -> bool:
        return self.base is not None and self.base.is_done()

    def score(self, match_id: dict, scores: List[int]) -> bool:
        return self._require_started().score(match_id, scores)

    def results_for(self, seed: int) -> Optional[dict]:
        return self._require_started().result_for(seed)

    def standings(self) -> List[dict]:
        """Results with the competitor id attached to each row."""
        rows = []
        for row in self._require_started().results():
            rows.append(dict(row, competitor_id=self.get_competitor_by_seed(row["seed"])))
        return rows

    # --- persistence ---
    def save(self) -> dict:
        return {
            "size": self.size,
            "group_size": self.group_size,
            "competitors": list(self.competitors),
            "base": self.base.state() if self.base is not None else None,
        }

    @classmethod
    def restore(cls, data: dict) -> "Tournament":
        tournament = cls(data["size"], data.get("group_size"))
        tournament.competitors = list(data.get("competitors") or [])
        base = data.get("base")
        if base:
            if base["kind"] == GroupStage.kind:
                tournament.base = GroupStage(base["num_players"], tournament.group_size, base["matches"])
            else:
                tournament.base = Duel(base["num_players"], base["matches"])
        return tournament

    def dumps(self) -> str:
        return json.dumps(self.save())

    @classmethod
    def loads(cls, raw: str) -> "Tournament":
        return cls.restore(json.loads(raw))
