"""Stage selection for the scripted interview flow."""
from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

from config.prompt_config import InterviewerPrompt, PromptPolicies, SessionStage

logger = logging.getLogger(__name__)

INTRO = "intro"
APPROACH_PROBE = "approach_probe"
EDGE_CASES = "edge_cases"
WRAP = "wrap"

APPROACH_PROBE_AFTER_MINUTES = 3

# Position used when a canonical stage is missing from the configured flow.
_FALLBACK_INDEX: Dict[str, int] = {INTRO: 0, APPROACH_PROBE: 1, EDGE_CASES: 2, WRAP: -1}


def stage_name_for(
    policies: PromptPolicies,
    elapsed_minutes: int,
    *,
    has_problem: bool,
    has_code: bool,
) -> str:
    """Name of the stage for the given time and context; wrap-up wins over everything."""

    if elapsed_minutes >= policies.wrap_up_at_minutes:
        return WRAP
    if not has_problem or not has_code:
        return INTRO
    if elapsed_minutes >= policies.edge_cases_after_minutes:
        return EDGE_CASES
    if elapsed_minutes >= APPROACH_PROBE_AFTER_MINUTES:
        return APPROACH_PROBE
    return INTRO


def find_stage(flow: Sequence[SessionStage], name: str) -> Optional[SessionStage]:
    for stage in flow:
        if stage.stage == name:
            return stage
    return None


def resolve_stage(flow: Sequence[SessionStage], name: str) -> SessionStage:
    """Return the named stage, or the stage at its canonical position."""

    if not flow:
        raise ValueError("Session flow is empty")
    stage = find_stage(flow, name)
    if stage is not None:
        return stage
    index = _FALLBACK_INDEX.get(name, 0)
    if index >= len(flow):
        index = len(flow) - 1
    fallback = flow[index]
    logger.warning("Stage '%s' not configured; falling back to '%s'", name, fallback.stage)
    return fallback


def select_stage(
    prompt: InterviewerPrompt,
    elapsed_minutes: int,
    *,
    has_problem: bool,
    has_code: bool,
) -> SessionStage:
    name = stage_name_for(prompt.policies, elapsed_minutes, has_problem=has_problem, has_code=has_code)
    return resolve_stage(prompt.session_flow, name)


__all__ = [
    "APPROACH_PROBE",
    "APPROACH_PROBE_AFTER_MINUTES",
    "EDGE_CASES",
    "INTRO",
    "WRAP",
    "find_stage",
    "resolve_stage",
    "select_stage",
    "stage_name_for",
]
