"""
Plan Generator Factory

Constructs the plan generator at startup. A construction failure (missing
credential, missing provider package) puts the relay in degraded mode:
the server keeps accepting connections and answers plan requests with
"service unavailable".
"""

import logging

from plan_relay.config import RelaySettings
from plan_relay.llm import create_llm_from_settings
from plan_relay.planning.llm_generator import LLMPlanGenerator
from plan_relay.planning.ports import PlanGenerator

logger = logging.getLogger(__name__)


def create_plan_generator(settings: RelaySettings) -> PlanGenerator | None:
    """
    Create the LangChain plan generator described by the settings.

    Returns:
        The generator, or None if the model could not be constructed
    """
    try:
        llm = create_llm_from_settings(settings)
    except (ImportError, ValueError) as e:
        logger.error(f"Plan generator unavailable, running in degraded mode: {e}")
        return None
    except Exception as e:
        logger.error(f"Unexpected error creating plan generator: {e}")
        return None

    logger.info(f"Plan generator ready (model: {settings.llm_model})")
    return LLMPlanGenerator(llm, timeout_seconds=settings.plan_timeout)
