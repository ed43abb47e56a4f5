# Plan Generation
# Turns a natural-language command into a structured browser-automation plan

from plan_relay.planning.models import Step, TaskPlan
from plan_relay.planning.ports import PlanGenerator
from plan_relay.planning.llm_generator import LLMPlanGenerator
from plan_relay.planning.factory import create_plan_generator

__all__ = [
    "Step",
    "TaskPlan",
    "PlanGenerator",
    "LLMPlanGenerator",
    "create_plan_generator",
]
