"""
Truck lifecycle state machine.

Every code path that changes ``Truck.state`` goes through ``transition_truck``
so that illegal moves are rejected in one place.
"""
import logging

from django.utils import timezone

from dispatch_core.exceptions import InvalidTransition
from fleet.models import Truck

logger = logging.getLogger(__name__)

ACTIVE = Truck.STATE_ACTIVE
INACTIVE = Truck.STATE_INACTIVE
MAINTENANCE = Truck.STATE_MAINTENANCE
IN_TRANSIT = Truck.STATE_IN_TRANSIT
DISCHARGING = Truck.STATE_DISCHARGING
ASSIGNED = Truck.STATE_ASSIGNED

ALLOWED_TRANSITIONS = {
    ACTIVE: {ASSIGNED, IN_TRANSIT, MAINTENANCE, INACTIVE},
    ASSIGNED: {ACTIVE, IN_TRANSIT, DISCHARGING, MAINTENANCE, INACTIVE},
    IN_TRANSIT: {ACTIVE, ASSIGNED, DISCHARGING, MAINTENANCE, INACTIVE},
    DISCHARGING: {ACTIVE, ASSIGNED, IN_TRANSIT, MAINTENANCE, INACTIVE},
    MAINTENANCE: {ACTIVE, INACTIVE},
    INACTIVE: {ACTIVE, MAINTENANCE},
}


def can_transition(current: str, new_state: str) -> bool:
    if current == new_state:
        return True
    return new_state in ALLOWED_TRANSITIONS.get(current, set())


def transition_truck(truck: Truck, new_state: str) -> Truck:
    """
    Move ``truck`` to ``new_state`` if the transition table allows it.

    Moving to the current state is a no-op. Raises InvalidTransition otherwise.
    """
    if new_state not in ALLOWED_TRANSITIONS:
        raise InvalidTransition(
            f"Invalid state. Must be one of {list(ALLOWED_TRANSITIONS)}"
        )
    if truck.state == new_state:
        return truck
    if not can_transition(truck.state, new_state):
        logger.warning(f"Rejected truck {truck.plate} transition {truck.state} -> {new_state}")
        raise InvalidTransition(f"Truck {truck.plate} cannot go from {truck.state} to {new_state}")

    previous = truck.state
    truck.state = new_state
    truck.updated_at = timezone.now()
    update_fields = ['state', 'updated_at']
    # A driver's hold on the truck ends when it leaves the assigned state
    if new_state != ASSIGNED and truck.selected_by_id is not None:
        truck.selected_by = None
        update_fields.append('selected_by')
    truck.save(update_fields=update_fields)
    logger.info(f"Truck {truck.plate} moved {previous} -> {new_state}")
    return truck


def mark_truck_assigned(truck: Truck) -> Truck:
    return transition_truck(truck, ASSIGNED)


def mark_truck_discharging(truck: Truck) -> Truck:
    return transition_truck(truck, DISCHARGING)


def release_truck(truck: Truck) -> Truck:
    return transition_truck(truck, ACTIVE)


def change_truck_state(truck: Truck, new_state: str) -> Truck:
    """
    Administrative override. Refuses to release a truck that is still
    carrying an open assignment.
    """
    if new_state == ACTIVE and truck.has_open_assignment:
        raise InvalidTransition(f"Truck {truck.plate} still has an open assignment")
    return transition_truck(truck, new_state)


def select_truck(truck: Truck, driver) -> Truck:
    """
    A driver claims an idle truck before the dispatcher loads it. Only that
    driver can then be dispatched with it.
    """
    if not driver.is_driver:
        raise InvalidTransition('Only drivers can select a truck')
    if truck.state != ACTIVE:
        raise InvalidTransition(f"Truck {truck.plate} is not available")
    transition_truck(truck, ASSIGNED)
    truck.selected_by = driver
    truck.save(update_fields=['selected_by'])
    logger.info(f"Truck {truck.plate} selected by driver {driver.pk}")
    return truck
