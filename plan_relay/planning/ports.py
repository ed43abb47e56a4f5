"""
Plan Generator Port

The relay only depends on this interface. The LangChain-backed adapter
lives in plan_relay.planning.llm_generator; tests inject their own.
"""

from abc import ABC, abstractmethod

from plan_relay.planning.models import TaskPlan


class PlanGenerator(ABC):
    """Turns a natural-language command into a TaskPlan."""

    @abstractmethod
    async def generate(self, command: str) -> TaskPlan:
        """
        Generate a plan for a command.

        Args:
            command: Free-text instruction from the client

        Returns:
            The generated TaskPlan

        Raises:
            GenerationError: If the plan could not be produced
        """
        ...
