"""
Task Plan Model

The structured output of plan generation: an ordered list of browser
actions, each with its parameters. A plan is an immutable value handed
to exactly one requester.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Step(BaseModel):
    """A single browser action (e.g., navigate, click, type)."""

    model_config = ConfigDict(frozen=True)

    action: str = Field(
        ...,
        min_length=1,
        description="Browser action to perform (e.g., 'navigate', 'click', 'type')"
    )
    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Parameters for the action (e.g., url, selector, text)"
    )


class TaskPlan(BaseModel):
    """
    Ordered browser-automation plan.

    `steps` must be present but may be empty.
    """

    model_config = ConfigDict(frozen=True)

    steps: list[Step] = Field(
        ...,
        description="Steps in execution order"
    )
