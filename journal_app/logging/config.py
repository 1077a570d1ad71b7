"""
Centralized logging configuration for the trade journal.

This module provides standardized logging configuration using structlog
for all components. All logging throughout the journal should use this
configuration to ensure consistent formatting and structured logging.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer(default=str))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_ledger_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for ledger appends and cost-basis recomputation.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger bound to the ledger subsystem
    """
    return get_logger(name).bind(
        subsystem="ledger",
        audit_trail=True
    )


def get_risk_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for risk guard decisions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger bound to the risk subsystem
    """
    return get_logger(name).bind(
        subsystem="risk_guard",
        audit_trail=True
    )


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger specifically configured for plan lifecycle transitions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for state transitions
    """
    return get_logger(name).bind(
        subsystem="state_machine",
        audit_trail=True
    )


def log_risk_decision(
    logger: FilteringBoundLogger,
    check_name: str,
    passed: bool,
    plan_id: Optional[str],
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a risk guard decision with standardized format.

    Args:
        logger: Structlog logger instance
        check_name: Name of the discipline check being evaluated
        passed: Whether the check passed or failed
        plan_id: ID of the plan being evaluated (None before creation)
        reason: Detailed reason for the decision
        context: Additional context data
    """
    bound_logger = logger.bind(
        check_name=check_name,
        check_result="PASS" if passed else "FAIL",
        plan_id=plan_id,
        reason=reason,
        record_type="risk_decision"
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if passed:
        bound_logger.info("Risk check passed")
    else:
        bound_logger.warning("Risk check failed")


def log_state_transition(
    logger: FilteringBoundLogger,
    plan_id: str,
    from_state: Optional[str],
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a plan lifecycle transition with standardized format.

    Args:
        logger: Structlog logger instance
        plan_id: ID of the plan transitioning
        from_state: Current state (None when the plan is being created)
        to_state: Target state
        trigger: Operation that triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        plan_id=plan_id,
        from_state=from_state or "none",
        to_state=to_state,
        trigger=trigger,
        record_type="state_transition"
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("State transition")


def log_admin_action(
    logger: FilteringBoundLogger,
    action: str,
    plan_id: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log an administrative action that bypasses the lifecycle rules.

    Administrative actions are logged at warning level so they stand apart
    from ordinary transitions in the audit trail.

    Args:
        logger: Structlog logger instance
        action: Administrative action name (e.g. "admin_delete")
        plan_id: ID of the affected plan
        context: Additional context data
    """
    bound_logger = logger.bind(
        action=action,
        plan_id=plan_id,
        record_type="admin_action"
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.warning("Administrative action")
