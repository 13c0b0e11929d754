"""Housing search stage machine."""
from core.stages.machine import (
    EMPTY_PROPERTY_ID,
    TRANSITIONS,
    ContractDetails,
    StageTransition,
    StageTransitionRequest,
    TransitionAction,
    allowed_targets,
    parse_stage,
    plan_transition,
)

__all__ = [
    'EMPTY_PROPERTY_ID', 'TRANSITIONS', 'ContractDetails', 'StageTransition',
    'StageTransitionRequest', 'TransitionAction', 'allowed_targets',
    'parse_stage', 'plan_transition',
]
