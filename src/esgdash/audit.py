"""Audit logging for submission and catalog operations.

Emits structured log events that can be consumed by Splunk, Elasticsearch,
or any log aggregator that supports JSON or key=value format.

Configure via config.yaml:
    logging:
      enabled: true  # set to false to disable audit logging
      level: INFO
      format: json  # or 'splunk' for key=value format
      file: /var/log/esgdash/audit.log  # optional

Nothing here is persisted; the submission row keeps only the latest
reviewer and comment.
"""

from typing import Any

import structlog

# Module state
_logger: structlog.stdlib.BoundLogger | None = None
_enabled: bool = True


def configure(enabled: bool = True) -> None:
    """Configure the audit logger.

    Args:
        enabled: Whether audit logging is enabled.
    """
    global _enabled
    _enabled = enabled


def _get_logger() -> structlog.stdlib.BoundLogger:
    """Get or create the audit logger."""
    global _logger
    if _logger is None:
        _logger = structlog.get_logger("audit")
    return _logger


def _emit(
    event_type: str,
    action: str,
    **kwargs: Any,
) -> None:
    """Emit an audit log event.

    Args:
        event_type: Category of event (submission, catalog, site)
        action: Specific action (created, approved, rejected, etc.)
        **kwargs: Additional event-specific fields
    """
    if not _enabled:
        return

    logger = _get_logger()
    logger.info(
        f"{event_type}.{action}",
        event_type=event_type,
        action=action,
        **kwargs,
    )


# Submission events
def log_submission_created(
    submission_id: int,
    site_id: int,
    period_start: str,
    period_end: str,
    status: str,
    user: str | None = None,
) -> None:
    """Log a new submission (draft or pending)."""
    _emit(
        "submission",
        "created",
        submission_id=submission_id,
        site_id=site_id,
        period_start=period_start,
        period_end=period_end,
        status=status,
        user=user or "system",
    )


def log_submission_approved(
    submission_id: int,
    reviewer: str | None = None,
) -> None:
    """Log a submission approval."""
    _emit(
        "submission",
        "approved",
        submission_id=submission_id,
        user=reviewer or "system",
    )


def log_submission_rejected(
    submission_id: int,
    reason: str,
    reviewer: str | None = None,
) -> None:
    """Log a submission rejection."""
    _emit(
        "submission",
        "rejected",
        submission_id=submission_id,
        reason=reason,
        user=reviewer or "system",
    )


# Catalog events
def log_catalog_change(
    entity: str,
    action: str,
    entity_id: int,
    name: str,
    user: str | None = None,
) -> None:
    """Log a category or parameter change (created, updated, deleted)."""
    _emit(
        "catalog",
        f"{entity}_{action}",
        entity_id=entity_id,
        name=name,
        user=user or "system",
    )


# Site events
def log_site_change(
    action: str,
    site_id: int,
    name: str,
    user: str | None = None,
) -> None:
    """Log a site creation or deletion."""
    _emit(
        "site",
        action,
        site_id=site_id,
        name=name,
        user=user or "system",
    )
