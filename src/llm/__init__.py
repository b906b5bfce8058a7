from src.llm.client import (
    CompletionError,
    CompletionService,
    build_completion_service,
    complete_with_timeout,
)

__all__ = [
    "CompletionError",
    "CompletionService",
    "build_completion_service",
    "complete_with_timeout",
]
