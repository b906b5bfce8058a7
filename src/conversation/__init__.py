from src.conversation.guardrails import GuardrailPipeline
from src.conversation.state_machine import (
    DialogueState,
    DialogueStateMachine,
    DialogueTrigger,
    InvalidTransitionError,
)

__all__ = [
    "DialogueStateMachine",
    "DialogueState",
    "DialogueTrigger",
    "InvalidTransitionError",
    "GuardrailPipeline",
]
