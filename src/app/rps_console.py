from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, TypeVar

from commit_reveal import Commitment
from rps_errors import MalformedInputError, RetryLimitExceededError, RevealMismatchError
from rps_session import Round, Session
from scoreboard import RoundRecord

logger = logging.getLogger("rps.console")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    # None means keep asking forever.
    max_attempts: int | None = None

    def allows(self, attempt: int) -> bool:
        return self.max_attempts is None or attempt < self.max_attempts


@dataclass(frozen=True)
class GameConfig:
    rounds: int = 1
    min_players: int = 2
    retry: RetryPolicy = RetryPolicy()


class Console:
    """Prompts on an injectable input/output pair (``input``/``print`` by default)."""

    def __init__(
        self,
        input_fn: Callable[[str], str] | None = None,
        output_fn: Callable[[str], None] | None = None,
        retry: RetryPolicy = RetryPolicy(),
    ):
        self.input_fn = input_fn or input
        self.output_fn = output_fn or print
        self.retry = retry

    def show(self, text: str) -> None:
        self.output_fn(text)

    def ask(self, prompt: str, parse: Callable[[str], T]) -> T:
        """Prompt until ``parse`` accepts the answer or the retry policy gives up."""
        attempt = 0
        while True:
            raw = self.input_fn(prompt).strip()
            attempt += 1
            try:
                return parse(raw)
            except MalformedInputError as exc:
                logger.warning("%s", exc)
                self.show(f"❌ {exc.reason}. Please try again.")
                if not self.retry.allows(attempt):
                    raise RetryLimitExceededError(exc.field, raw, attempt) from exc


def parse_player_count(min_players: int) -> Callable[[str], int]:
    def parse(raw: str) -> int:
        try:
            count = int(raw)
        except ValueError:
            raise MalformedInputError("player count", raw, "not a whole number") from None
        if count < min_players:
            raise MalformedInputError("player count", raw, f"at least {min_players} players are needed")
        return count

    return parse


def collect_players(session: Session, console: Console) -> None:
    count = console.ask("Enter number of players: ", parse_player_count(session.min_players))
    for _ in range(count):
        console.ask("Enter your name: ", session.register)


def collect_commitments(round_: Round, console: Console) -> None:
    for name in round_.players:
        commitment = console.ask(
            f"{name}, enter the commit hash of your choice (rock, paper, scissors) with salt: ",
            Commitment.from_hex,
        )
        round_.commit(name, commitment)

    console.show("Commit hashes:")
    for name in round_.players:
        console.show(f"- {name}: {round_.entries[name].commitment.hex()}")


def collect_reveals(round_: Round, console: Console) -> None:
    for name in round_.players:
        attempt = 0
        while True:
            choice = console.input_fn(f"{name}, please reveal the choice: ").strip()
            salt = console.input_fn("also please reveal the salt: ").strip()
            attempt += 1
            try:
                round_.reveal(name, choice, salt)
                break
            except MalformedInputError as exc:
                logger.warning("%s", exc)
                console.show(f"❌ {exc.reason}. Please try again.")
                if not console.retry.allows(attempt):
                    raise RetryLimitExceededError("reveal", choice, attempt) from exc
            except RevealMismatchError as exc:
                console.show("❌ Choice and salt do not match your commitment. Please try again.")
                if not console.retry.allows(attempt):
                    raise RetryLimitExceededError("reveal", choice, attempt) from exc


def format_round_summary(record: RoundRecord) -> str:
    played = ", ".join(f"{name}={choice.value}" for name, choice in record.choices.items())
    winner = record.winner or "tie"
    return f"Round {record.round_no}: {played} -> winner: {winner}"


def run_game(config: GameConfig, console: Console) -> Session:
    session = Session(min_players=config.min_players)
    collect_players(session, console)

    for _ in range(config.rounds):
        round_ = session.start_round()
        if config.rounds > 1:
            console.show(f"🎮 Round {round_.round_no} of {config.rounds}")
        collect_commitments(round_, console)
        collect_reveals(round_, console)
        record = session.finish_round()
        console.show(format_round_summary(record))

    console.show(session.scoreboard.format_table())
    return session
