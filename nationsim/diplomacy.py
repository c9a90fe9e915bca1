"""Diplomatic proposals and their resolution."""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .types import (
    ActionType, ActionStatus, DiplomaticAction, NotificationType,
    RelationLevel, RELATION_VALUE,
)
from . import trade, warfare

if TYPE_CHECKING:
    from .nation import Nation
    from .world import World

logger = logging.getLogger(__name__)

REJECTION_PENALTY = 10


@dataclass
class DiplomacyLedger:
    actions: list[DiplomaticAction] = field(default_factory=list)

    def get(self, action_id: str) -> DiplomaticAction | None:
        for action in self.actions:
            if action.id == action_id:
                return action
        return None

    def pending_for(self, nation_id: str) -> list[DiplomaticAction]:
        return [a for a in self.actions if a.recipient == nation_id and a.pending]

    def history_for(self, nation_id: str) -> list[DiplomaticAction]:
        return [a for a in self.actions if nation_id in (a.sender, a.recipient)]

    def to_dict(self) -> dict:
        return {"actions": [a.to_dict() for a in self.actions]}

    @classmethod
    def from_dict(cls, data: dict) -> DiplomacyLedger:
        return cls(actions=[DiplomaticAction.from_dict(a) for a in data.get("actions", [])])


def _resolvable(world: World, nation: Nation, action_id: str) -> DiplomaticAction | None:
    action = world.diplomacy.get(action_id)
    if action is None or action.recipient != nation.id or not action.pending:
        return None
    return action


def propose(world: World, sender: Nation, recipient_id: str,
            action_type: ActionType | str,
            terms: dict[str, Any] | None = None) -> DiplomaticAction | None:
    recipient = world.get_nation(recipient_id)
    if recipient is None or recipient.id == sender.id:
        return None
    try:
        action_type = ActionType(action_type)
    except ValueError:
        return None

    action = DiplomaticAction(
        id=world.next_id("da"),
        sender=sender.id,
        recipient=recipient.id,
        type=action_type,
        terms=dict(terms or {}),
        proposed_at=world.year,
    )
    world.diplomacy.actions.append(action)
    sender.diplomatic_actions.append(action.id)
    recipient.diplomatic_actions.append(action.id)
    logger.debug("%s proposed %s to %s (%s)", sender.name, action_type.value,
                 recipient.name, action.id)
    return action


def accept(world: World, nation: Nation, action_id: str) -> bool:
    action = _resolvable(world, nation, action_id)
    if action is None:
        return False

    action.status = ActionStatus.ACCEPTED
    action.accepted_at = world.year
    proposer = world.get_nation(action.sender)

    if action.type == ActionType.ALLIANCE:
        allied = RELATION_VALUE[RelationLevel.ALLIANCE]
        nation.set_relation(action.sender, allied)
        if proposer is not None:
            proposer.set_relation(nation.id, allied)
            nation.treaties[proposer.id] = ActionType.ALLIANCE.value
            proposer.treaties[nation.id] = ActionType.ALLIANCE.value

    elif action.type == ActionType.TRADE_AGREEMENT:
        route = trade.create_route(world, nation, action.sender,
                                   action.terms.get("resource", ""),
                                   action.terms.get("amount", 0))
        if route is not None:
            world.notify(NotificationType.TRADE_ESTABLISHED,
                         f"{nation.name} and {proposer.name} signed a "
                         f"{route.resource.value} trade agreement.")
        else:
            logger.info("Trade agreement %s accepted but no route could be opened", action.id)

    elif action.type == ActionType.PEACE_TREATY:
        warfare.end_war(world, nation, action.sender)

    logger.debug("%s accepted %s", nation.name, action.id)
    return True


def reject(world: World, nation: Nation, action_id: str) -> bool:
    action = _resolvable(world, nation, action_id)
    if action is None:
        return False

    action.status = ActionStatus.REJECTED
    action.rejected_at = world.year

    nation.set_relation(action.sender, nation.relation_with(action.sender) - REJECTION_PENALTY)
    proposer = world.get_nation(action.sender)
    if proposer is not None:
        proposer.set_relation(nation.id, proposer.relation_with(nation.id) - REJECTION_PENALTY)

    logger.debug("%s rejected %s", nation.name, action.id)
    return True
