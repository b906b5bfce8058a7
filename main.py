"""
Order-support agent entry point.

Runs the chat agent in the terminal against the mock order store. The
HTTP transport lives outside this repository; it only needs
``SupportAgent.handle_message``.

Usage:
    Console mode:     python main.py console
    With LLM backend: python main.py console --llm
    Scenario:         python main.py scenario track
"""

import logging
import sys

from src.config import settings

logger = logging.getLogger(__name__)


def _run_console_mode(extra_args: list[str]) -> None:
    """Start the interactive console demo."""
    from console_demo import main as console_main

    console_main(extra_args)


def _run_scenario_mode(extra_args: list[str]) -> None:
    """Auto-play one scripted scenario."""
    from console_demo import main as console_main

    if not extra_args:
        raise SystemExit("Usage: python main.py scenario <name>")
    console_main(["--scenario", *extra_args])


if __name__ == "__main__":
    logger.info(
        "Starting %s support agent (llm provider: %s)",
        settings.store.name, settings.model.llm_provider,
    )
    mode = sys.argv[1] if len(sys.argv) > 1 else "console"
    if mode == "scenario":
        _run_scenario_mode(sys.argv[2:])
    elif mode == "console":
        _run_console_mode(sys.argv[2:])
    else:
        raise SystemExit(f"Unknown mode {mode!r}; expected 'console' or 'scenario'")
