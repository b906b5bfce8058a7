from src.agents.escalation_agent import EscalationAgent
from src.agents.support_agent import SupportAgent

__all__ = ["SupportAgent", "EscalationAgent"]
