"""Development runner with hot reload.

Watches all .py files in the project directory and restarts the HTTP API
(or the Telegram bot) when any change is detected.

Usage:
    python dev.py          # HTTP API
    python dev.py bot      # Telegram bot
"""
import sys

from watchfiles import run_process


def _run_server():
    from server import main
    main()


def _run_bot():
    from main import main
    main()


if __name__ == "__main__":
    target = _run_bot if sys.argv[1:] == ["bot"] else _run_server
    name = "bot" if target is _run_bot else "API server"
    print(f"Dev mode: watching for .py changes, {name} will restart automatically.")
    run_process(
        ".",
        target=target,
        watch_filter=lambda change, path: path.endswith(".py"),
    )
