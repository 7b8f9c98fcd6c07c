"""
Console event logger adapter - Implements FlowEventLogger protocol.

This module provides a logging-based implementation of the domain's event
port. Every flow event becomes one INFO record tagged with its flow id.
"""

import logging

from authflow.domain.models import FlowContext

logger = logging.getLogger(__name__)


class ConsoleFlowEventLogger:
    """
    Implements FlowEventLogger protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def log_event(self, event: str, flow: FlowContext) -> None:
        """
        Log a flow event at INFO level.

        Args:
            event: Fully qualified event name
            flow: Flow the event belongs to
        """
        logger.info("[FLOW] Event: %s Flow: %s Begin: %d", event, flow.flow_id, flow.flow_begin_time)

    def log_error(self, error: Exception, flow: FlowContext) -> None:
        kind = getattr(error, "kind", None)
        name = kind.value if kind is not None else type(error).__name__
        logger.warning("[FLOW] Error: %s View: %s Flow: %s", name, flow.view_name, flow.flow_id)
