from __future__ import annotations

import argparse
import logging

from commit_reveal import Commitment, commit, generate_salt, reveal
from protocol import is_valid_move, parse_choice
from rps_console import Console, GameConfig, RetryPolicy, run_game
from rps_errors import InvalidStateError, MalformedInputError
from rps_logging import setup_logging

logger = logging.getLogger("rps.cli")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="rps")
    sub = parser.add_subparsers(dest="cmd", required=True)

    play = sub.add_parser("play", help="Run an interactive commit-reveal game on this terminal")
    play.add_argument("--rounds", type=_positive_int, default=1, help="Number of rounds to play (default 1)")
    play.add_argument(
        "--max-attempts",
        type=_positive_int,
        default=None,
        help="Give up after this many invalid answers to one prompt (default: keep asking)",
    )
    play.add_argument("--log-file", default=None, help="Also write JSON log lines to this file")
    play.add_argument("--verbose", action="store_true", help="Log at DEBUG level")

    commit_cmd = sub.add_parser("commit", help="Print the commitment for a choice and salt")
    commit_cmd.add_argument("--choice", required=True, help="rock|paper|scissors")
    commit_cmd.add_argument("--salt", default=None, help="Salt to use (a fresh one is generated if omitted)")

    verify = sub.add_parser("verify", help="Check a choice and salt against a commitment")
    verify.add_argument("--commitment", required=True, help="64 hex characters")
    verify.add_argument("--choice", required=True)
    verify.add_argument("--salt", required=True)

    args = parser.parse_args(argv)

    if args.cmd == "commit":
        # The reveal prompts strip answers, so the committed text must be stripped too.
        choice = args.choice.strip()
        if not is_valid_move(choice):
            raise SystemExit("--choice must be rock|paper|scissors")
        salt = args.salt.strip() if args.salt is not None else generate_salt()
        print(f"commitment: {commit(choice, salt).hex()}")
        if args.salt is None:
            print(f"salt:       {salt}")
            print("Keep the salt secret until the reveal phase, and use a new one every round.")
        return 0

    if args.cmd == "verify":
        try:
            expected = Commitment.from_hex(args.commitment)
            parse_choice(args.choice)
        except MalformedInputError as exc:
            print(f"error: {exc}")
            return 2
        if reveal(expected, args.choice.strip(), args.salt.strip()):
            print("ok")
            return 0
        print("mismatch")
        return 1

    if args.cmd == "play":
        setup_logging(log_file_path=args.log_file, level=logging.DEBUG if args.verbose else logging.WARNING)
        config = GameConfig(rounds=args.rounds, retry=RetryPolicy(max_attempts=args.max_attempts))
        console = Console(retry=config.retry)
        try:
            run_game(config, console)
        except KeyboardInterrupt:
            logger.warning("Interrupted, no final scores")
            return 130
        except EOFError:
            logger.error("Input closed before the game finished")
            return 1
        except MalformedInputError as exc:
            logger.error("Giving up: %s", exc)
            return 1
        except InvalidStateError:
            logger.critical("Game aborted on a protocol violation", exc_info=True)
            return 1
        return 0

    raise SystemExit("unhandled command")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not a whole number") from None
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


if __name__ == "__main__":
    raise SystemExit(main())
