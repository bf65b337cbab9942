from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from protocol import Choice, determine_outcome
from rps_errors import InvalidStateError

logger = logging.getLogger("rps.scoreboard")


def score_round(revealed: Sequence[tuple[str, Choice]]) -> dict[str, int]:
    """Round-robin scoring of one round.

    Every unordered pair of players is compared once. The pairwise winner
    gets +1, the loser and both sides of a tie get 0. A player's delta is
    the number of pairings they won, so Rock/Rock/Scissors yields 1/1/0.
    """
    for name, choice in revealed:
        if choice is Choice.EMPTY:
            raise InvalidStateError(f"player '{name}' has not revealed a choice")

    deltas: dict[str, int] = {name: 0 for name, _ in revealed}
    if len(deltas) != len(revealed):
        raise InvalidStateError("duplicate player name in round")

    for i in range(len(revealed)):
        name_i, choice_i = revealed[i]
        for j in range(i + 1, len(revealed)):
            name_j, choice_j = revealed[j]
            outcome = determine_outcome(choice_i, choice_j)
            if outcome == "first_win":
                deltas[name_i] += 1
            elif outcome == "second_win":
                deltas[name_j] += 1
    return deltas


@dataclass(frozen=True)
class RoundRecord:
    round_no: int
    choices: dict[str, Choice]
    deltas: dict[str, int]
    finished_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def winner(self) -> str | None:
        # Informational only; None when the top delta is shared.
        if not self.deltas:
            return None
        best = max(self.deltas.values())
        leaders = [name for name, delta in self.deltas.items() if delta == best]
        return leaders[0] if len(leaders) == 1 else None


@dataclass
class ScoreBoard:
    _scores: dict[str, int] = field(default_factory=dict)

    @classmethod
    def for_players(cls, names: Iterable[str]) -> "ScoreBoard":
        return cls(_scores={name: 0 for name in names})

    def apply(self, deltas: Mapping[str, int]) -> None:
        # Validate everything first so a bad delta leaves the table untouched.
        for name, delta in deltas.items():
            if name not in self._scores:
                raise InvalidStateError(f"unknown player '{name}'")
            if delta < 0:
                raise InvalidStateError(f"negative score delta {delta} for '{name}'")
        for name, delta in deltas.items():
            self._scores[name] += delta
        logger.debug("Applied deltas %s", dict(deltas))

    def get(self, name: str) -> int:
        return self._scores[name]

    def names(self) -> list[str]:
        return list(self._scores)

    def as_dict(self) -> dict[str, int]:
        return dict(self._scores)

    def format_table(self) -> str:
        if not self._scores:
            return "(no players)"

        lines = ["The game score so far is:"]
        for name, score in self._scores.items():
            lines.append(f"- {name}: {score}")
        return "\n".join(lines)
