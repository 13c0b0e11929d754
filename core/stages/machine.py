#!/usr/bin/env python3
"""
Housing Search Stage Machine.

All legal stage moves live in TRANSITIONS. plan_transition() is the only
place guards are evaluated: it takes the current stage plus the requested
move and either returns a StageTransition describing what to apply or
raises. HousingSearch.change_stage() applies the returned plan in one step,
so a rejected request never leaves a half-updated search behind.

    AwaitingAgreements -> Searching            (both agreements signed)
    Searching          -> Paused | UnderContract
    Paused             -> Searching            (resume)
    UnderContract      -> Searching | Closed   (fell through | closing)
    Closed             -> Searching | MovedIn  (fell through | move-in)
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Union

from core.enums import HousingSearchStage, parse_enum
from core.exceptions import StageTransitionException, ValidationException
from core.scorer.models import to_decimal

Stage = HousingSearchStage

# Placeholder for a contract whose property is not (yet) on file
EMPTY_PROPERTY_ID = uuid.UUID(int=0)

TRANSITIONS: Dict[HousingSearchStage, FrozenSet[HousingSearchStage]] = {
    Stage.AWAITING_AGREEMENTS: frozenset({Stage.SEARCHING}),
    Stage.SEARCHING: frozenset({Stage.PAUSED, Stage.UNDER_CONTRACT}),
    Stage.PAUSED: frozenset({Stage.SEARCHING}),
    Stage.UNDER_CONTRACT: frozenset({Stage.SEARCHING, Stage.CLOSED}),
    Stage.CLOSED: frozenset({Stage.SEARCHING, Stage.MOVED_IN}),
    Stage.MOVED_IN: frozenset(),
}


class TransitionAction(str, Enum):
    """What applying a transition does beyond changing the stage."""
    START_SEARCHING = "start_searching"
    PAUSE = "pause"
    RESUME = "resume"
    PUT_UNDER_CONTRACT = "put_under_contract"
    CONTRACT_FELL_THROUGH = "contract_fell_through"
    RECORD_CLOSING = "record_closing"
    RECORD_MOVED_IN = "record_moved_in"


@dataclass(frozen=True)
class ContractDetails:
    price: Decimal
    property_id: Optional[uuid.UUID] = None
    expected_closing_date: Optional[datetime] = None


@dataclass(frozen=True)
class StageTransitionRequest:
    """A caller's request to move a housing search to another stage."""
    new_stage: Union[str, HousingSearchStage]
    reason: Optional[str] = None
    contract: Optional[ContractDetails] = None
    closing_date: Optional[datetime] = None
    moved_in_date: Optional[datetime] = None


@dataclass(frozen=True)
class StageTransition:
    """A validated plan; apply it without further checks."""
    action: TransitionAction
    from_stage: HousingSearchStage
    to_stage: HousingSearchStage
    reason: Optional[str] = None
    contract: Optional[ContractDetails] = None
    closing_date: Optional[datetime] = None
    moved_in_date: Optional[datetime] = None


def parse_stage(raw: Union[str, HousingSearchStage, None]) -> HousingSearchStage:
    stage = parse_enum(HousingSearchStage, raw)
    if stage is None:
        valid = ", ".join(s.value for s in HousingSearchStage)
        raise ValidationException(f"Invalid stage '{raw}'. Valid stages: {valid}")
    return stage


def allowed_targets(current: HousingSearchStage) -> List[HousingSearchStage]:
    return sorted(TRANSITIONS.get(current, frozenset()), key=lambda s: list(Stage).index(s))


def _check_legal(current: HousingSearchStage, target: HousingSearchStage) -> None:
    if target in TRANSITIONS.get(current, frozenset()):
        return
    targets = allowed_targets(current)
    valid = ", ".join(s.value for s in targets) if targets else "none"
    raise StageTransitionException(
        f"Cannot transition from {current.value} to {target.value}. Valid transitions: {valid}",
        from_stage=current,
        to_stage=target,
    )


def _validated_contract(contract: Optional[ContractDetails]) -> ContractDetails:
    if contract is None:
        raise ValidationException("Contract details are required to go under contract.")

    price = to_decimal(contract.price, "Contract price")
    if price is None or price <= 0:
        raise ValidationException("Contract price must be greater than zero.")

    return ContractDetails(
        price=price,
        property_id=contract.property_id or EMPTY_PROPERTY_ID,
        expected_closing_date=contract.expected_closing_date,
    )


def plan_transition(
    current: HousingSearchStage,
    request: StageTransitionRequest,
    broker_agreement_signed: bool = False,
    community_rules_signed: bool = False,
) -> StageTransition:
    """
    Validate a stage change and describe how to apply it.

    Args:
        current: Stage the search is in now
        request: Requested target stage and its payload
        broker_agreement_signed: Gate for AwaitingAgreements -> Searching
        community_rules_signed: Gate for AwaitingAgreements -> Searching

    Returns: StageTransition plan

    Raises:
        ValidationException: unparseable stage name or missing/invalid payload
        StageTransitionException: the pair is not in TRANSITIONS
    """
    target = parse_stage(request.new_stage)
    _check_legal(current, target)

    plan = dict(from_stage=current, to_stage=target, reason=request.reason)

    if target == Stage.SEARCHING:
        if current == Stage.AWAITING_AGREEMENTS:
            missing = []
            if not broker_agreement_signed:
                missing.append("Broker agreement must be signed before searching.")
            if not community_rules_signed:
                missing.append("Community rules must be signed before searching.")
            if missing:
                raise ValidationException.from_errors(missing)
            return StageTransition(action=TransitionAction.START_SEARCHING, **plan)
        if current == Stage.PAUSED:
            return StageTransition(action=TransitionAction.RESUME, **plan)
        # UnderContract or Closed
        return StageTransition(action=TransitionAction.CONTRACT_FELL_THROUGH, **plan)

    if target == Stage.PAUSED:
        return StageTransition(action=TransitionAction.PAUSE, **plan)

    if target == Stage.UNDER_CONTRACT:
        return StageTransition(
            action=TransitionAction.PUT_UNDER_CONTRACT,
            contract=_validated_contract(request.contract),
            **plan,
        )

    if target == Stage.CLOSED:
        if request.closing_date is None:
            raise ValidationException("Closing date is required to close.")
        return StageTransition(
            action=TransitionAction.RECORD_CLOSING,
            closing_date=request.closing_date,
            **plan,
        )

    # MovedIn is the only remaining legal target
    if request.moved_in_date is None:
        raise ValidationException("Move-in date is required to record a move-in.")
    return StageTransition(
        action=TransitionAction.RECORD_MOVED_IN,
        moved_in_date=request.moved_in_date,
        **plan,
    )
