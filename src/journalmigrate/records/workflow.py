"""
Review workflow construction and stage transitions.

Workflows are never mutated in place: every operation returns an updated
copy so callers can decide when to persist it.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from journalmigrate.exceptions import ValidationError
from journalmigrate.records.models import ReviewStage, ReviewWorkflow

logger = logging.getLogger(__name__)

DEFAULT_REVIEW_STAGES: tuple[dict[str, str | bool], ...] = (
    {
        "id": "data_verification",
        "name": "Data Verification",
        "description": "Verify all trade data is accurate and complete",
        "required": True,
    },
    {
        "id": "analysis_review",
        "name": "Analysis Review",
        "description": "Review technical and fundamental analysis",
        "required": True,
    },
    {
        "id": "execution_review",
        "name": "Execution Review",
        "description": "Review trade execution and timing",
        "required": True,
    },
    {
        "id": "lessons_learned",
        "name": "Lessons Learned",
        "description": "Document key takeaways and improvements",
        "required": False,
    },
)


def create_default_workflow(trade_id: str, *, now: datetime | None = None) -> ReviewWorkflow:
    """
    Build a fresh workflow with the default stages, all incomplete.

    Args:
        trade_id: ID of the trade under review.
        now: Start timestamp (defaults to the current UTC time).
    """
    stages = [
        ReviewStage(**definition, completed=False, notes="")
        for definition in DEFAULT_REVIEW_STAGES
    ]
    return ReviewWorkflow(
        trade_id=trade_id,
        stages=stages,
        overall_progress=0.0,
        started_at=now or datetime.now(UTC),
    )


def calculate_progress(stages: list[ReviewStage]) -> float:
    """Percentage of completed stages; an empty workflow has no progress."""
    if not stages:
        return 0.0
    completed = sum(1 for stage in stages if stage.completed)
    return completed / len(stages) * 100


def is_review_complete(workflow: ReviewWorkflow) -> bool:
    return bool(workflow.stages) and all(stage.completed for stage in workflow.stages)


def update_stage(
    workflow: ReviewWorkflow,
    stage_id: str,
    completed: bool,
    notes: str | None = None,
    *,
    now: datetime | None = None,
) -> ReviewWorkflow:
    """
    Set the completion state (and optionally the note) of one stage.

    Recomputes overall progress. The workflow's completed_at is set the
    first time every stage is complete and never overwritten afterwards.

    Raises:
        ValidationError: If stage_id does not name a stage in the workflow.
    """
    timestamp = now or datetime.now(UTC)
    updated = workflow.model_copy(deep=True)

    for stage in updated.stages:
        if stage.id == stage_id:
            break
    else:
        raise ValidationError(
            f"Unknown review stage '{stage_id}'",
            record_id=workflow.trade_id,
            field="stages",
        )

    if completed and not stage.completed:
        stage.completed_at = timestamp
    elif not completed:
        stage.completed_at = None
    stage.completed = completed
    if notes is not None:
        stage.notes = notes

    return _refresh(updated, timestamp)


def mark_review_complete(
    workflow: ReviewWorkflow,
    *,
    now: datetime | None = None,
) -> ReviewWorkflow:
    """
    Complete the review.

    Every required stage must already be complete; remaining optional
    stages are marked complete so that progress reaches 100.

    Raises:
        ValidationError: If any required stage is incomplete.
    """
    missing = [stage.id for stage in workflow.stages if stage.required and not stage.completed]
    if missing:
        raise ValidationError(
            f"Cannot complete review: required stages incomplete: {', '.join(missing)}",
            record_id=workflow.trade_id,
            field="stages",
        )

    timestamp = now or datetime.now(UTC)
    updated = workflow.model_copy(deep=True)
    for stage in updated.stages:
        if not stage.completed:
            stage.completed = True
            stage.completed_at = timestamp
    logger.debug("Review for trade %s marked complete", workflow.trade_id)
    return _refresh(updated, timestamp)


def _refresh(workflow: ReviewWorkflow, timestamp: datetime) -> ReviewWorkflow:
    workflow.overall_progress = calculate_progress(workflow.stages)
    if is_review_complete(workflow) and workflow.completed_at is None:
        workflow.completed_at = timestamp
    return workflow


__all__ = [
    "DEFAULT_REVIEW_STAGES",
    "create_default_workflow",
    "calculate_progress",
    "is_review_complete",
    "update_stage",
    "mark_review_complete",
]
