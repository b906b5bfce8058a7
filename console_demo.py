"""
Offline console demo: chat with the order-support agent in the terminal.

Runs the real analyzer, resolver, fallback policy and response generator
against the mock order store. No network calls unless ``--llm`` is given
and an LLM provider is configured.

Usage:
    python console_demo.py
    python console_demo.py --customer CUST-002
    python console_demo.py --scenario track
"""

import argparse
import asyncio
import uuid
from typing import Optional

from src.agents.support_agent import SupportAgent
from src.config import settings
from src.schemas.conversation_schema import ChatResponse
from src.tools import orders as order_store
from src.tools.message_log import InMemoryMessageLog

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


class ConsoleSession:
    """Drives one chat session between a terminal user and the SupportAgent."""

    # Pre-scripted scenarios for --scenario flag: (customer, messages)
    SCENARIOS: dict[str, tuple[str, list[str]]] = {
        "cancel": ("CUST-001", [
            "I want to cancel my iPhone",
            "yes",
            "where is my MacBook?",
        ]),
        "track": ("CUST-001", [
            "track order",
            "the Apple Watch",
        ]),
        "return": ("CUST-002", [
            "I'd like to return my order",
            "yes please",
        ]),
        "undo": ("CUST-001", [
            "cancel ORD-12348",
            "actually undo that",
        ]),
        "frustrated": ("CUST-001", [
            "This is RIDICULOUS, my package is still not here!!",
            "still nothing, this is the worst service ever",
        ]),
        "escalation": ("CUST-001", [
            "cancel my order",
            "hmm",
            "whatever",
            "cancel ORD-12345",
        ]),
    }

    MAX_INPUT_LENGTH = 1000

    def __init__(self, customer_id: str = "CUST-001", use_llm: bool = False) -> None:
        self.customer_id = customer_id
        self.session_id = f"console-{uuid.uuid4().hex[:8]}"
        self.agent = SupportAgent.from_settings() if use_llm else SupportAgent()
        self.log = InMemoryMessageLog()

    def agent_say(self, response: ChatResponse) -> None:
        color = RED if response.escalate_to_human else GREEN
        print(f"{color}{BOLD}[{settings.store.assistant_name}]{RESET} {color}{response.message}{RESET}")

    def system_log(self, response: ChatResponse) -> None:
        actions = ", ".join(f"{a.type.value}:{a.order_id}" for a in response.actions) or "none"
        confidence = f"{response.confidence:.2f}" if response.confidence is not None else "-"
        print(
            f"{DIM}  >> intent={response.intent} source={response.source.value} "
            f"state={response.state} success={response.success} "
            f"confidence={confidence} follow_up={response.is_follow_up} actions={actions}{RESET}"
        )

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  ORDER SUPPORT AGENT - {title}{RESET}")
        print(f"{BOLD}  Store: {settings.store.name} | Customer: {self.customer_id}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        self._print_orders()

    def _print_orders(self) -> None:
        for order in order_store.get_customer_orders(self.customer_id):
            print(f"{DIM}  {order.describe()} - {order.status.value}{RESET}")

    async def process(self, text: str) -> ChatResponse:
        self.log.log_customer_message(self.session_id, self.customer_id, text)
        response = await self.agent.handle_message(
            text,
            customer_id=self.customer_id,
            session_id=self.session_id,
            orders=order_store.get_customer_orders(self.customer_id),
        )
        self.log.log_response(self.session_id, self.customer_id, response)
        self.agent_say(response)
        self.system_log(response)
        return response

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        self._banner(f"Scenario: {scenario}")
        for step in self.SCENARIOS[scenario][1]:
            print(f"\n{BLUE}[Customer] {RESET}{step}")
            await self.process(step)
        self._summary(f"Scenario '{scenario}' complete.")

    async def run(self) -> None:
        self._banner("Console Demo (type 'quit' to exit)")
        while True:
            user_input = (await asyncio.to_thread(input, f"\n{BLUE}[Customer] {RESET}")).strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                break
            if len(user_input) > self.MAX_INPUT_LENGTH:
                print(f"{YELLOW}That message is too long, please keep it shorter.{RESET}")
                continue
            response = await self.process(user_input)
            if response.handoff is not None and response.handoff.reason.value != "already_escalated":
                print(f"{DIM}  >> handoff: {response.handoff.model_dump_json()}{RESET}")
        self._summary("Session ended.")

    def _summary(self, title: str) -> None:
        session = self.agent.sessions.peek(self.session_id)
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {title}{RESET}")
        if session is not None:
            print(f"{DIM}  State trace: {' -> '.join(session.dialogue.get_state_trace())}{RESET}")
        print(f"{DIM}  Transcript turns: {len(self.log.get_transcript(self.session_id))}{RESET}")
        print(f"{DIM}  Agent stats: {self.agent.get_stats()}{RESET}")
        self._print_orders()
        print(f"{BOLD}{'=' * 60}{RESET}")


async def _main(customer: Optional[str], scenario: Optional[str], use_llm: bool) -> None:
    if scenario:
        customer = customer or ConsoleSession.SCENARIOS[scenario][0]
    session = ConsoleSession(customer or "CUST-001", use_llm=use_llm)
    session.agent.start()
    try:
        if scenario:
            await session.run_scenario(scenario)
        else:
            await session.run()
    finally:
        await session.agent.close()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Offline order-support console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    parser.add_argument(
        "--customer",
        choices=order_store.list_customers(),
        default=None,
        help="Mock customer whose orders the session uses",
    )
    parser.add_argument(
        "--llm",
        action="store_true",
        help="Use the configured LLM provider for fallback replies",
    )
    args = parser.parse_args(argv)
    asyncio.run(_main(args.customer, args.scenario, args.llm))


if __name__ == "__main__":
    main()
