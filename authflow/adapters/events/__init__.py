"""Flow event logger adapters."""

from .console import ConsoleFlowEventLogger

__all__ = ["ConsoleFlowEventLogger"]
