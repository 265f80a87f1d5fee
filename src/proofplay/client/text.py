"""Interactive text client for playing against a proof engine."""

import asyncio
import logging

from proofplay.client.presenter import TextPresenter, format_sessions, format_timeline
from proofplay.config import Settings, get_settings
from proofplay.context import AppContext, create_context
from proofplay.core.errors import GameError, RemoteFailure
from proofplay.game.session import GameConfig, GameMode

logger = logging.getLogger(__name__)

HELP_TEXT = """
Available commands:
  /new [normal|untimed] [formula] [ruleset] [theorem]
                       - Start a new game
  /rule <expr> <rule> [context]
                       - Apply a rule to a sub-expression
  /prev, /next         - Step through the proof history
  /goto <index>        - Replay a timeline state (or select it in theorem mode)
  /timeline            - Show the proof history
  /theorem             - Enter or leave theorem mode
  /select <index>      - Toggle a timeline state in the theorem selection
  /submit              - Create a theorem from the selected range
  /rules               - List the rules of the game
  /games               - List open games
  /switch <index>      - Switch to another game
  /delete [index]      - Delete a game (the current one by default)
  /restart             - Restart the current game
  /home                - Leave a finished game
  /dismiss             - Close the victory/defeat prompt
  /pause               - Pause or resume the countdown
  /timer               - Show the remaining time
  /notifications       - Show every notification so far
  /help                - Show this help
  quit/exit            - Disconnect
"""

# Commands that take at least this many arguments
REQUIRED_ARGS = {
    "rule": 2,
    "goto": 1,
    "select": 1,
    "switch": 1,
}

INT_ARGS = {"goto", "select", "switch", "delete"}


def parse_command(user_input: str) -> dict | None:
    """Parse user input into a command dict.

    Returns None for quit commands.
    """
    text = user_input.strip()

    if text.lower() in ("quit", "exit"):
        return None

    if not text.startswith("/"):
        print("Commands start with /, type /help for the list")
        return {"_skip": True}

    parts = text[1:].split()
    if not parts:
        return {"_skip": True}
    cmd = parts[0].lower()
    args = parts[1:]

    if cmd == "help":
        print(HELP_TEXT)
        return {"_skip": True}

    if len(args) < REQUIRED_ARGS.get(cmd, 0):
        print(f"Usage: /{cmd} needs {REQUIRED_ARGS[cmd]} argument(s), see /help")
        return {"_skip": True}

    if cmd in INT_ARGS and args:
        try:
            args = [int(args[0])]
        except ValueError:
            print("Index must be a number")
            return {"_skip": True}

    return {"command": cmd, "args": args}


def parse_game_config(args: list[str]) -> GameConfig:
    """Build a game configuration from /new arguments."""
    mode = GameMode.NORMAL
    if args and args[0].upper() in GameMode.__members__:
        mode = GameMode[args[0].upper()]
    formula_id = int(args[1]) if len(args) > 1 else 0
    rule_set = args[2] if len(args) > 2 else "default"
    use_theorem = len(args) > 3 and args[3].lower() in ("theorem", "yes", "true", "1")
    return GameConfig(mode=mode, rule_set=rule_set, formula_id=formula_id, use_theorem=use_theorem)


async def dispatch(ctx: AppContext, command: dict) -> None:
    """Run one parsed command against the controller."""
    controller = ctx.controller
    cmd = command["command"]
    args = command["args"]

    if cmd == "new":
        await controller.new_game(parse_game_config(args))
    elif cmd == "rule":
        context = args[2] if len(args) > 2 else 0
        await controller.apply_rule(args[0], args[1], context)
    elif cmd in ("prev", "previous"):
        await controller.previous()
    elif cmd == "next":
        await controller.next()
    elif cmd == "goto":
        await controller.timeline_click(args[0])
    elif cmd == "timeline":
        session = ctx.game_state.current()
        if session is not None:
            print(format_timeline(session.timeline, controller.selection))
    elif cmd == "theorem":
        active = controller.toggle_theorem_mode()
        print("Theorem mode on, select two states" if active else "Theorem mode off")
    elif cmd == "select":
        if not controller.theorem_mode:
            print("Enter theorem mode with /theorem first")
        elif not controller.select_for_theorem(args[0]):
            print("Selection unchanged")
    elif cmd == "submit":
        await controller.submit_theorem()
    elif cmd == "rules":
        await controller.rules_list()
    elif cmd in ("games", "list"):
        print(format_sessions(ctx.game_state))
    elif cmd == "switch":
        await controller.switch_game(args[0])
    elif cmd == "delete":
        await controller.delete_game(args[0] if args else None)
    elif cmd == "restart":
        await controller.restart_game()
    elif cmd == "home":
        await controller.go_home()
    elif cmd == "dismiss":
        await controller.dismiss_outcome()
    elif cmd == "pause":
        state = controller.toggle_pause()
        if state is not None:
            print(f"[TIMER] {state.value}")
    elif cmd == "timer":
        session = ctx.game_state.current()
        if session is not None and session.countdown is not None:
            print(f"[TIMER] {session.countdown} left")
        else:
            print("[TIMER] No countdown")
    elif cmd == "notifications":
        if not ctx.notifications.entries:
            print("No notifications.")
        for notification in ctx.notifications.entries:
            print(f"{notification.created_at:%H:%M:%S} {notification}")
    else:
        print(f"Unknown command: /{cmd}")
        print("Type /help for available commands")


async def main(settings: Settings | None = None):
    """Run the text client until the player quits."""
    settings = settings or get_settings()
    ctx = create_context(settings, presenter=TextPresenter())

    print(f"Proof engine at {settings.server_uri}")
    print("Type /help for commands, /new to start a game")
    print("-" * 60)

    try:
        while True:
            try:
                user_input = await asyncio.to_thread(input, "> ")
            except EOFError:
                break

            if not user_input.strip():
                continue

            command = parse_command(user_input)
            if command is None:
                print("Disconnecting...")
                break
            if command.get("_skip"):
                continue

            try:
                await dispatch(ctx, command)
            except RemoteFailure:
                # Already reported through the presenter
                pass
            except (GameError, ValueError) as e:
                print(f"[ERROR] {e}")
    except KeyboardInterrupt:
        print("\nDisconnected")
    finally:
        await ctx.close()


def run(settings: Settings | None = None):
    """Run the text client synchronously."""
    asyncio.run(main(settings))


if __name__ == "__main__":
    run()
