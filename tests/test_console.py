from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
APP_DIR = ROOT / "src" / "app"
sys.path.insert(0, str(APP_DIR))

from commit_reveal import commit  # type: ignore[import-not-found]  # noqa: E402
from rps_console import Console, GameConfig, RetryPolicy, parse_player_count, run_game  # type: ignore[import-not-found]  # noqa: E402
from rps_errors import RetryLimitExceededError  # type: ignore[import-not-found]  # noqa: E402


class ScriptedIO:
    def __init__(self, answers: list[str]):
        self.answers = list(answers)
        self.prompts: list[str] = []
        self.output: list[str] = []

    def input(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.answers.pop(0)

    def print(self, text: str) -> None:
        self.output.append(text)


def _console(io: ScriptedIO, max_attempts: int | None = None) -> Console:
    return Console(input_fn=io.input, output_fn=io.print, retry=RetryPolicy(max_attempts=max_attempts))


def test_retry_policy() -> None:
    assert RetryPolicy().allows(10_000)
    assert RetryPolicy(max_attempts=2).allows(1)
    assert not RetryPolicy(max_attempts=2).allows(2)


def test_ask_reprompts_until_valid() -> None:
    io = ScriptedIO(["one", "1", " 3 "])
    assert _console(io).ask("count: ", parse_player_count(2)) == 3
    assert len(io.prompts) == 3
    assert sum(line.startswith("❌") for line in io.output) == 2


def test_ask_gives_up_with_bounded_policy() -> None:
    io = ScriptedIO(["x", "y", "4"])
    with pytest.raises(RetryLimitExceededError) as exc_info:
        _console(io, max_attempts=2).ask("count: ", parse_player_count(2))
    assert exc_info.value.attempts == 2
    assert io.answers == ["4"]


def test_run_game_three_players() -> None:
    answers = [
        "1",  # rejected, fewer than two players
        "3",
        "alice", "bob", "alice", "carol",  # duplicate name re-prompted
        commit("rock", "s1").hex(),
        "not-a-hash",
        commit("Rock", "s2").hex(),
        commit("scissors", "s3").hex(),
        "rock", "wrong-salt",  # mismatch re-prompted
        "rock", "s1",
        "Rock", "s2",
        "lizard", "s3",  # unknown move re-prompted
        "scissors", "s3",
    ]
    io = ScriptedIO(answers)
    session = run_game(GameConfig(), _console(io))

    assert io.answers == []
    assert session.scoreboard.as_dict() == {"alice": 1, "bob": 1, "carol": 0}
    assert io.output[-1] == "The game score so far is:\n- alice: 1\n- bob: 1\n- carol: 0"
    assert "Commit hashes:" in io.output
    assert f"- alice: {commit('rock', 's1').hex()}" in io.output
    assert "Round 1: alice=rock, bob=rock, carol=scissors -> winner: tie" in io.output


def test_run_game_multiple_rounds_recommits_each_round() -> None:
    answers = ["2", "ann", "ben"]
    for n, (a, b) in enumerate([("paper", "rock"), ("paper", "scissors")], start=1):
        answers += [commit(a, f"a{n}").hex(), commit(b, f"b{n}").hex(), a, f"a{n}", b, f"b{n}"]
    io = ScriptedIO(answers)
    session = run_game(GameConfig(rounds=2), _console(io))

    assert session.scoreboard.as_dict() == {"ann": 1, "ben": 1}
    assert [r.winner for r in session.history] == ["ann", "ben"]
    assert "🎮 Round 2 of 2" in io.output


def test_reveal_retry_limit() -> None:
    answers = [
        "2", "ann", "ben",
        commit("rock", "a").hex(), commit("paper", "b").hex(),
        "rock", "nope",
        "rock", "still-nope",
    ]
    io = ScriptedIO(answers)
    with pytest.raises(RetryLimitExceededError):
        run_game(GameConfig(retry=RetryPolicy(max_attempts=2)), _console(io, max_attempts=2))


def test_replayed_commitment_is_reprompted() -> None:
    answers = ["2", "ann", "ben"]
    answers += [commit("rock", "a1").hex(), commit("paper", "b1").hex(), "rock", "a1", "paper", "b1"]
    answers += [
        commit("rock", "a1").hex(),  # already opened in round 1
        commit("rock", "a2").hex(),
        commit("paper", "b2").hex(),
        "rock", "a2", "paper", "b2",
    ]
    io = ScriptedIO(answers)
    session = run_game(GameConfig(rounds=2), _console(io))

    assert io.answers == []
    assert "❌ already used this session, pick a new salt. Please try again." in io.output
    assert session.scoreboard.as_dict() == {"ann": 0, "ben": 2}
