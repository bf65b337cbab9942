from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from commit_reveal import Commitment
from rps_errors import MalformedInputError

Outcome = Literal["first_win", "second_win", "tie"]


class Choice(str, Enum):
    ROCK = "rock"
    PAPER = "paper"
    SCISSORS = "scissors"
    # Not yet revealed.
    EMPTY = ""


MOVES: tuple[Choice, ...] = (Choice.ROCK, Choice.PAPER, Choice.SCISSORS)

# winner -> loser; cyclic, so it cannot be expressed as an ordering.
BEATS: dict[Choice, Choice] = {
    Choice.ROCK: Choice.SCISSORS,
    Choice.SCISSORS: Choice.PAPER,
    Choice.PAPER: Choice.ROCK,
}


def is_valid_move(value: str) -> bool:
    return value.strip().lower() in {m.value for m in MOVES}


def parse_choice(value: str) -> Choice:
    """Map a revealed string to a move, case-insensitively.

    Raises MalformedInputError for anything outside rock|paper|scissors,
    including the empty string.
    """
    normalized = value.strip().lower()
    for move in MOVES:
        if move.value == normalized:
            return move
    raise MalformedInputError("choice", value, "must be rock|paper|scissors")


def beats(a: Choice, b: Choice) -> bool:
    return BEATS.get(a) is b


def determine_outcome(first: Choice, second: Choice) -> Outcome:
    if beats(first, second):
        return "first_win"
    if beats(second, first):
        return "second_win"
    return "tie"


@dataclass
class PlayerEntry:
    name: str
    commitment: Commitment
    revealed_choice: Choice = Choice.EMPTY

    @property
    def is_revealed(self) -> bool:
        return self.revealed_choice is not Choice.EMPTY
