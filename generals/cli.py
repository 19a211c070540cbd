"""
Generals CLI - Command-line interface for the engine.

Usage:
    generals presets [--name NAME] [--player player2]   Show built-in formations
    generals replay <file> [--index N] [--reveal]        Print the board at a point of a replay
    generals verify <file>                               Re-check every challenge in a replay
    generals serve [--host H] [--port P]                 Run the HTTP API
"""

import argparse
import sys

from .config import EngineConfig, configure_logging
from .engine_core.board import Board, Player
from .engine_core.setup import place_setup, validate_setup
from .errors import GeneralsError, InvariantViolation, ReplayDivergence


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Generals - Game of the Generals rules engine",
        prog="generals",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Presets command
    presets_parser = subparsers.add_parser("presets", help="Show built-in formations")
    presets_parser.add_argument("--name", help="Only show this formation")
    presets_parser.add_argument(
        "--player", choices=[p.value for p in Player], default=Player.PLAYER1.value,
        help="Side to lay the formation out for",
    )

    # Replay command
    replay_parser = subparsers.add_parser("replay", help="Print the board at a point of a replay")
    replay_parser.add_argument("replay_file", help="Path to a replay JSON file")
    replay_parser.add_argument(
        "--index", "-n", type=int, default=None,
        help="Show the board after this move (-1 for the start; default: the end)",
    )
    replay_parser.add_argument("--reveal", action="store_true", help="Show every piece")
    replay_parser.add_argument("--verify", action="store_true", help="Check challenges while replaying")

    # Verify command
    verify_parser = subparsers.add_parser("verify", help="Re-check every challenge in a replay")
    verify_parser.add_argument("replay_file", help="Path to a replay JSON file")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true")

    args = parser.parse_args(argv)

    if args.command == "presets":
        cmd_presets(args)
    elif args.command == "replay":
        cmd_replay(args)
    elif args.command == "verify":
        cmd_verify(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_presets(args):
    """Print built-in formations."""
    from .presets import get_preset, list_presets

    player = Player(args.player)
    try:
        presets = [get_preset(args.name)] if args.name else list_presets()
    except KeyError as e:
        print(f"Error: {e.args[0]}")
        sys.exit(1)

    for preset in presets:
        placements = preset.for_player(player)
        validation = validate_setup(placements, player)
        print(f"{preset.name} - {preset.description}")
        print(place_setup(Board.empty(), placements, player).render())
        if not validation.valid:
            for error in validation.errors:
                print(f"  ! {error}")
        print()


def cmd_replay(args):
    """Print the board at one point of a replay file."""
    from .replay_file import load_replay_file

    try:
        replay = load_replay_file(args.replay_file)
        log = replay.replay_log()
        index = len(log) - 1 if args.index is None else args.index
        board = log.board_at(index, verify=args.verify)
    except GeneralsError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except ReplayDivergence as e:
        print(f"Divergence: {e}")
        sys.exit(2)
    except (IndexError, InvariantViolation) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"{replay.player1_username} (+) vs {replay.player2_username} (-)")
    if index >= 0:
        event = log.events[index]
        line = f"Move {index + 1}/{len(log)}: {event.move_type.value} {event.origin} -> {event.target}"
        winner = event.challenge_result.winner.value if event.challenge_result else None
        if winner == "tie":
            line += " (tie)"
        elif winner is not None:
            line += f" ({winner} wins)"
        print(line)
    else:
        print(f"Start of game ({len(log)} moves)")
    print(board.render(hide_unrevealed=not args.reveal))

    meta = replay.game_metadata
    if index == len(log) - 1 and meta.reason:
        outcome = "draw" if meta.is_draw else "win"
        print(f"Result: {outcome} by {meta.reason}")


def cmd_verify(args):
    """Re-run combat for every challenge in a replay file."""
    from .replay_file import load_replay_file

    try:
        replay = load_replay_file(args.replay_file)
        log = replay.replay_log()
        log.verify()
        final = log.final_board
    except GeneralsError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except ReplayDivergence as e:
        print(f"Divergence: {e}")
        sys.exit(2)
    except InvariantViolation as e:
        print(f"Error: {e}")
        sys.exit(1)

    challenges = sum(1 for e in log.events if e.is_challenge)
    print(f"OK: {len(log)} moves, {challenges} challenges consistent with the rules")
    print(f"Pieces left: player1={final.count(Player.PLAYER1)} player2={final.count(Player.PLAYER2)}")


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    config = EngineConfig.from_env()
    configure_logging(config)
    uvicorn.run(
        "generals.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
