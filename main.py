"""Liminal Transit: terminal player and API launcher."""

import argparse
import asyncio
import logging

from liminal_transit.catalog import InvalidChoiceError
from liminal_transit.config import build_enhancer, load_config
from liminal_transit.engine import NarrativeEngine
from liminal_transit.enhancer import NoopEnhancer
from liminal_transit.narrative import RESTART_MARKER


def _print_choices(choices) -> None:
    for number, choice in enumerate(choices, 1):
        extra = f" [{choice.time_limit}s]" if choice.time_limit else ""
        print(f"  {number}. {choice.text}{extra}")


def _read_choice(choices):
    """Prompt until a valid number or choice id is entered. None means quit."""
    while True:
        raw = input("> ").strip()
        if raw.lower() in ("q", "quit", "exit"):
            return None
        if raw.isdigit() and 1 <= int(raw) <= len(choices):
            return choices[int(raw) - 1].id
        if any(c.id == raw for c in choices):
            return raw
        print(f"Pick 1-{len(choices)}, or q to quit.")


async def play(engine: NarrativeEngine, seed: str | None) -> None:
    session = engine.create_session(seed)
    print(f"[seed: {session.seed}]")
    print(f"You are {session.world.player_role}, bound for {session.world.destination}.")
    print(session.opening_text)

    while not engine.is_ended(session):
        choices = engine.list_choices(session)
        print()
        _print_choices(choices)
        choice_id = _read_choice(choices)
        if choice_id is None:
            return
        try:
            result = await engine.resolve_choice(session, choice_id)
        except InvalidChoiceError as e:
            print(e)
            continue
        session = result.session
        print()
        print(result.narrative_text)

    again = input(f"{RESTART_MARKER} [y/N] ").strip().lower()
    if again == "y":
        await play(engine, None)


def main():
    parser = argparse.ArgumentParser(description="Liminal Transit")
    parser.add_argument("--seed", default=None,
                        help="Story seed (default: a fresh random seed)")
    parser.add_argument("--serve", action="store_true",
                        help="Run the HTTP API instead of the terminal player")
    parser.add_argument("--host", default=None, help="API host (default: HOST or 127.0.0.1)")
    parser.add_argument("--port", type=int, default=None, help="API port (default: PORT or 13013)")
    parser.add_argument("--offline", action="store_true",
                        help="Disable text enhancement even if configured")
    args = parser.parse_args()

    config = load_config()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    enhancer = NoopEnhancer() if args.offline else build_enhancer(config)
    engine = NarrativeEngine(enhancer, enhance_timeout=config.enhancer_timeout)

    if args.serve:
        import uvicorn

        from liminal_transit.app import create_app

        host = args.host or config.host
        port = args.port or config.port
        print(f"Starting API on http://{host}:{port}/api ...")
        uvicorn.run(create_app(engine), host=host, port=port)
        return

    try:
        asyncio.run(play(engine, args.seed))
    except (KeyboardInterrupt, EOFError):
        print("\nShutting down...")


if __name__ == "__main__":
    main()
