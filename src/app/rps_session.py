from __future__ import annotations

import logging
from enum import Enum

from commit_reveal import Commitment, reveal as verify_reveal
from protocol import Choice, PlayerEntry, parse_choice
from rps_errors import InvalidStateError, MalformedInputError, RevealMismatchError
from scoreboard import RoundRecord, ScoreBoard, score_round

logger = logging.getLogger("rps.session")

MIN_PLAYERS = 2


class PlayerState(str, Enum):
    AWAITING_COMMIT = "awaiting_commit"
    AWAITING_REVEAL = "awaiting_reveal"
    REVEALED = "revealed"


class PlayerEvent(str, Enum):
    COMMITTED = "committed"
    REVEAL_ACCEPTED = "reveal_accepted"


# {current_state: {event: next_state}}
TRANSITIONS = {
    PlayerState.AWAITING_COMMIT: {
        PlayerEvent.COMMITTED: PlayerState.AWAITING_REVEAL,
    },
    PlayerState.AWAITING_REVEAL: {
        PlayerEvent.REVEAL_ACCEPTED: PlayerState.REVEALED,
    },
    PlayerState.REVEALED: {},
}


class PlayerStateMachine:
    """Tracks one player's progress through a single round."""

    def __init__(self, name: str):
        self.name = name
        self.current_state = PlayerState.AWAITING_COMMIT

    def can_transition(self, event: PlayerEvent) -> bool:
        return event in TRANSITIONS.get(self.current_state, {})

    def transition(self, event: PlayerEvent) -> PlayerState:
        """
        Execute a state transition.

        Raises:
            InvalidStateError: If the event is not allowed in the current state
        """
        if not self.can_transition(event):
            raise InvalidStateError(
                f"Invalid transition for '{self.name}': {event.value} from {self.current_state.value}"
            )
        self.current_state = TRANSITIONS[self.current_state][event]
        return self.current_state


class Round:
    """Commit and reveal bookkeeping for one round."""

    def __init__(self, round_no: int, players: list[str], used_commitments: set[Commitment] | None = None):
        self.round_no = round_no
        self.players = list(players)
        self.entries: dict[str, PlayerEntry] = {}
        self.machines = {name: PlayerStateMachine(name) for name in self.players}
        # Shared with the session so an opened commitment cannot be replayed.
        self.used_commitments = used_commitments if used_commitments is not None else set()

    def state_of(self, name: str) -> PlayerState:
        return self._machine(name).current_state

    @property
    def all_committed(self) -> bool:
        return all(m.current_state is not PlayerState.AWAITING_COMMIT for m in self.machines.values())

    @property
    def all_revealed(self) -> bool:
        return all(m.current_state is PlayerState.REVEALED for m in self.machines.values())

    def commit(self, name: str, commitment: Commitment) -> PlayerEntry:
        machine = self._machine(name)
        if not machine.can_transition(PlayerEvent.COMMITTED):
            raise InvalidStateError(f"'{name}' has already committed this round")
        if commitment in self.used_commitments:
            raise MalformedInputError("commitment", commitment.hex(), "already used this session, pick a new salt")
        machine.transition(PlayerEvent.COMMITTED)
        self.used_commitments.add(commitment)
        entry = PlayerEntry(name=name, commitment=commitment)
        self.entries[name] = entry
        logger.info("Round %d: commitment recorded for '%s'", self.round_no, name)
        return entry

    def reveal(self, name: str, choice: str, salt: str) -> Choice:
        """
        Check a reveal against the stored commitment and lock in the move.

        Raises:
            InvalidStateError: Not every player has committed yet, or this
                player is not awaiting a reveal.
            MalformedInputError: The choice is not rock|paper|scissors.
            RevealMismatchError: (choice, salt) does not hash to the commitment.
        """
        if not self.all_committed:
            raise InvalidStateError("reveals are not accepted until every player has committed")
        machine = self._machine(name)
        if not machine.can_transition(PlayerEvent.REVEAL_ACCEPTED):
            raise InvalidStateError(f"'{name}' is not awaiting a reveal ({machine.current_state.value})")

        parsed = parse_choice(choice)
        entry = self.entries[name]
        if not verify_reveal(entry.commitment, choice, salt):
            logger.warning("Round %d: reveal mismatch for '%s'", self.round_no, name)
            raise RevealMismatchError(name)

        machine.transition(PlayerEvent.REVEAL_ACCEPTED)
        entry.revealed_choice = parsed
        logger.info("Round %d: '%s' revealed %s", self.round_no, name, parsed.value)
        return parsed

    def revealed_choices(self) -> list[tuple[str, Choice]]:
        # Unrevealed players show up as EMPTY so the scorer can refuse them.
        result = []
        for name in self.players:
            entry = self.entries.get(name)
            result.append((name, entry.revealed_choice if entry else Choice.EMPTY))
        return result

    def _machine(self, name: str) -> PlayerStateMachine:
        try:
            return self.machines[name]
        except KeyError:
            raise InvalidStateError(f"unknown player '{name}'") from None


class Session:
    """Owns the players, the score table and the in-memory round history."""

    def __init__(self, min_players: int = MIN_PLAYERS):
        self.min_players = min_players
        self.players: list[str] = []
        self.scoreboard = ScoreBoard()
        self.history: list[RoundRecord] = []
        self.current_round: Round | None = None
        self._started = False
        self.used_commitments: set[Commitment] = set()

    def register(self, name: str) -> str:
        if self._started:
            raise InvalidStateError("players cannot join after the first round has started")
        cleaned = name.strip()
        if not cleaned:
            raise MalformedInputError("name", name, "must not be empty")
        if cleaned in self.players:
            raise MalformedInputError("name", name, "already taken")
        self.players.append(cleaned)
        logger.debug("Registered player '%s'", cleaned)
        return cleaned

    def start_round(self) -> Round:
        if len(self.players) < self.min_players:
            raise InvalidStateError(f"need at least {self.min_players} players, have {len(self.players)}")
        if self.current_round is not None:
            raise InvalidStateError(f"round {self.current_round.round_no} has not been scored")
        if not self._started:
            self.scoreboard = ScoreBoard.for_players(self.players)
            self._started = True
        self.current_round = Round(len(self.history) + 1, self.players, self.used_commitments)
        logger.info("Round %d started with %d players", self.current_round.round_no, len(self.players))
        return self.current_round

    def commit(self, name: str, commitment: Commitment) -> PlayerEntry:
        return self._require_round().commit(name, commitment)

    def reveal(self, name: str, choice: str, salt: str) -> Choice:
        return self._require_round().reveal(name, choice, salt)

    def finish_round(self) -> RoundRecord:
        round_ = self._require_round()
        revealed = round_.revealed_choices()
        deltas = score_round(revealed)
        self.scoreboard.apply(deltas)
        record = RoundRecord(round_no=round_.round_no, choices=dict(revealed), deltas=deltas)
        self.history.append(record)
        self.current_round = None
        logger.info("Round %d scored: %s", record.round_no, deltas)
        return record

    def _require_round(self) -> Round:
        if self.current_round is None:
            raise InvalidStateError("no round in progress")
        return self.current_round
