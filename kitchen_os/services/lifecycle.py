"""
Kitchen item lifecycle

    NEW -> PREPARING -> READY -> SERVED
             ^           |
             +-----------+   undo (operator taps a ready item again)

Any item not yet ready may be voided. SERVED and VOIDED are final. Requesting
the status an item already has is a no-op, which keeps the status endpoint
idempotent.
"""

from typing import Dict, FrozenSet, Iterable, List, Mapping, TypeVar

from kitchen_os.core.exceptions import InvalidTransitionError
from kitchen_os.models.order_item import ItemStatus

K = TypeVar("K")

ITEM_TRANSITIONS: Dict[ItemStatus, FrozenSet[ItemStatus]] = {
    ItemStatus.NEW: frozenset({ItemStatus.PREPARING, ItemStatus.VOIDED}),
    ItemStatus.PREPARING: frozenset({ItemStatus.READY, ItemStatus.VOIDED}),
    ItemStatus.READY: frozenset({ItemStatus.PREPARING, ItemStatus.SERVED}),
    ItemStatus.SERVED: frozenset(),
    ItemStatus.VOIDED: frozenset(),
}

# Statuses a kitchen terminal may request through the item status endpoint
KITCHEN_SETTABLE_STATUSES = frozenset({ItemStatus.PREPARING, ItemStatus.READY})


def can_transition(current: ItemStatus, target: ItemStatus) -> bool:
    """Check if an item may move from ``current`` to ``target``"""
    current, target = ItemStatus(current), ItemStatus(target)
    return current == target or target in ITEM_TRANSITIONS[current]


def transition(current: ItemStatus, target: ItemStatus) -> ItemStatus:
    """Validate a status change and return the resulting status"""
    current, target = ItemStatus(current), ItemStatus(target)
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)
    return target


def is_undo(current: ItemStatus, target: ItemStatus) -> bool:
    """The single backward edge: READY back to PREPARING"""
    return ItemStatus(current) == ItemStatus.READY and ItemStatus(target) == ItemStatus.PREPARING


def toggle_target(current: ItemStatus) -> ItemStatus:
    """Status a tap on an item requests: ready items go back to preparing"""
    if ItemStatus(current) == ItemStatus.READY:
        return ItemStatus.PREPARING
    return ItemStatus.READY


def all_marked(statuses: Iterable[ItemStatus]) -> bool:
    """True iff every item on the ticket is READY"""
    return all(ItemStatus(s) == ItemStatus.READY for s in statuses)


def mark_all_ready_plan(statuses: Mapping[K, ItemStatus]) -> List[K]:
    """Item ids that must move to READY for the whole ticket to be ready.

    Empty when every item is already READY, so repeating "mark all ready"
    issues no further mutations.
    """
    return [item_id for item_id, s in statuses.items() if ItemStatus(s) != ItemStatus.READY]
