"""
Fuel dispatch ledger.

Keeps every assignment's remaining fuel equal to its loaded fuel minus the
fuel recorded on its discharges, and keeps the completion flag and the truck
state in step with those discharges. Each public function is one atomic
transaction: either every write it makes is committed or none is.
"""
import logging
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from accounts.models import User
from assignment.models import Assignment, Discharge
from customers.models import Customer
from dispatch_core.exceptions import (
    AssignmentConflict,
    ConflictOnDelete,
    InsufficientFuel,
    InvalidRange,
)
from fleet.models import Truck
from fleet.services.status_services import (
    mark_truck_assigned,
    mark_truck_discharging,
    release_truck,
)

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


def discharge_total(start_marker, end_marker) -> Decimal:
    """Quantity delivered between two meter readings. Raises InvalidRange."""
    start_marker = Decimal(start_marker)
    end_marker = Decimal(end_marker)
    if start_marker < ZERO:
        raise ValidationError({'start_marker': ['Start marker cannot be negative.']})
    if end_marker <= start_marker:
        raise InvalidRange()
    return end_marker - start_marker


def _lock_assignment(assignment_id) -> Assignment:
    assignment = (
        Assignment.objects.select_for_update()
        .filter(pk=assignment_id)
        .first()
    )
    if assignment is None:
        raise NotFound('Assignment not found')
    return assignment


def _lock_truck(truck_id) -> Truck:
    return Truck.objects.select_for_update().get(pk=truck_id)


def _adjust_remaining(assignment: Assignment, delta: Decimal):
    """
    Subtract ``delta`` gallons from the assignment, refusing to go negative.

    The guard lives in the UPDATE itself so that two concurrent discharges
    cannot both pass a stale read of the remaining fuel.
    """
    if delta == ZERO:
        return
    updated = (
        Assignment.objects
        .filter(pk=assignment.pk, total_remaining__gte=delta)
        .update(total_remaining=F('total_remaining') - delta, updated_at=timezone.now())
    )
    if not updated:
        logger.warning(f"Assignment {assignment.pk}: rejected decrement of {delta} gal")
        raise InsufficientFuel()


def _settle(assignment: Assignment) -> Assignment:
    """
    Re-derive ``is_completed`` from the current discharges and apply the
    truck side effects of the change.
    """
    was_completed = assignment.is_completed
    assignment.refresh_from_db()
    discharges = list(assignment.discharges.all())
    completed = bool(discharges) and all(d.is_recorded for d in discharges)

    if completed != assignment.is_completed:
        assignment.is_completed = completed
        assignment.save(update_fields=['is_completed', 'updated_at'])

    truck = _lock_truck(assignment.truck_id)
    if completed and not was_completed:
        release_truck(truck)
        logger.info(f"Assignment {assignment.pk} completed; truck {truck.plate} released")
    elif not completed and truck.state == Truck.STATE_DISCHARGING:
        mark_truck_assigned(truck)

    return assignment


def _write_reading(discharge: Discharge, start_marker, end_marker, total: Decimal, notes: Optional[str]):
    discharge.start_marker = Decimal(start_marker)
    discharge.end_marker = Decimal(end_marker)
    discharge.total_discharged = total
    discharge.recorded_at = timezone.now()
    update_fields = ['start_marker', 'end_marker', 'total_discharged', 'recorded_at', 'updated_at']
    if notes is not None:
        discharge.notes = notes
        update_fields.append('notes')
    discharge.save(update_fields=update_fields)


def create_assignment(
    *,
    truck_id,
    driver_id,
    total_loaded,
    customer_ids: Iterable,
    fuel_type: Optional[str] = None,
    notes: str = '',
    date=None,
) -> Assignment:
    """
    Dispatch a loaded truck: create the assignment, one empty discharge per
    customer, and mark the truck as assigned.
    """
    customer_ids = list(customer_ids)
    total_loaded = Decimal(total_loaded)
    if total_loaded <= ZERO:
        raise ValidationError({'total_loaded': ['Loaded fuel must be greater than zero.']})
    if not customer_ids:
        raise ValidationError({'customers': ['Select at least one customer.']})
    if len(set(customer_ids)) != len(customer_ids):
        raise ValidationError({'customers': ['Customers must not repeat.']})

    with transaction.atomic():
        truck = Truck.objects.select_for_update().filter(pk=truck_id).first()
        if truck is None:
            raise NotFound('Truck not found')
        driver = User.objects.filter(pk=driver_id).first()
        if driver is None:
            raise NotFound('Driver not found')

        if not driver.is_driver:
            raise ValidationError({'driver': ['The selected user is not a driver.']})
        if not driver.can_sign_in:
            raise ValidationError({'driver': ['The driver is not available.']})
        if truck.has_open_assignment:
            raise AssignmentConflict(f"Truck {truck.plate} already has an open assignment")
        if truck.state not in (Truck.STATE_ACTIVE, Truck.STATE_ASSIGNED):
            raise AssignmentConflict(f"Truck {truck.plate} is not available ({truck.state})")
        if truck.selected_by_id is not None and truck.selected_by_id != driver.pk:
            raise AssignmentConflict(f"Truck {truck.plate} is held by another driver")
        if total_loaded > truck.capacity:
            raise ValidationError({'total_loaded': ['Load exceeds the truck capacity.']})
        if fuel_type and fuel_type != truck.fuel_type:
            raise ValidationError({'fuel_type': [f"Truck {truck.plate} carries {truck.fuel_type}."]})

        customers = Customer.objects.in_bulk(customer_ids)
        missing = [pk for pk in customer_ids if pk not in customers]
        if missing:
            raise ValidationError({'customers': [f"Unknown customers: {missing}"]})

        assignment = Assignment.objects.create(
            truck=truck,
            driver=driver,
            fuel_type=truck.fuel_type,
            total_loaded=total_loaded,
            total_remaining=total_loaded,
            is_completed=False,
            notes=notes or '',
            date=date or timezone.localdate(),
        )
        Discharge.objects.bulk_create([
            Discharge(assignment=assignment, customer=customers[pk])
            for pk in customer_ids
        ])
        mark_truck_assigned(truck)
        if truck.selected_by_id is not None:
            truck.selected_by = None
            truck.save(update_fields=['selected_by'])

    logger.info(
        f"Assignment {assignment.pk} created: truck {truck.plate}, driver {driver.pk}, "
        f"{total_loaded} gal for {len(customer_ids)} customers"
    )
    return assignment


def record_discharge(
    *,
    assignment_id,
    customer_id,
    start_marker,
    end_marker,
    notes: Optional[str] = None,
) -> Tuple[Discharge, Assignment]:
    """
    Record the first meter reading for a customer's discharge.
    """
    total = discharge_total(start_marker, end_marker)

    with transaction.atomic():
        assignment = _lock_assignment(assignment_id)
        discharge = (
            Discharge.objects.select_for_update()
            .filter(assignment=assignment, customer_id=customer_id)
            .first()
        )
        if discharge is None:
            raise NotFound('Customer is not part of this assignment')
        if discharge.is_recorded:
            raise AssignmentConflict('This discharge was already recorded; submit a correction instead')
        if total > assignment.total_remaining:
            logger.warning(
                f"Assignment {assignment.pk}: discharge of {total} gal exceeds "
                f"remaining {assignment.total_remaining} gal"
            )
            raise InsufficientFuel()

        _write_reading(discharge, start_marker, end_marker, total, notes)
        _adjust_remaining(assignment, total)
        assignment = _settle(assignment)

    logger.info(
        f"Discharge {discharge.pk} recorded: {total} gal to customer {customer_id}, "
        f"assignment {assignment.pk} remaining {assignment.total_remaining} gal"
    )
    return discharge, assignment


def correct_discharge(
    *,
    discharge_id,
    start_marker,
    end_marker,
    notes: Optional[str] = None,
) -> Tuple[Discharge, Assignment]:
    """
    Replace the meter readings of a discharge.

    Only the difference between the new and the previous quantity is applied
    to the assignment.
    """
    new_total = discharge_total(start_marker, end_marker)

    with transaction.atomic():
        discharge = Discharge.objects.select_for_update().filter(pk=discharge_id).first()
        if discharge is None:
            raise NotFound('Discharge not found')
        assignment = _lock_assignment(discharge.assignment_id)

        delta = new_total - discharge.total_discharged
        if delta > ZERO and delta > assignment.total_remaining:
            logger.warning(
                f"Assignment {assignment.pk}: correction needs {delta} gal more, "
                f"only {assignment.total_remaining} gal remaining"
            )
            raise InsufficientFuel()

        _write_reading(discharge, start_marker, end_marker, new_total, notes)
        _adjust_remaining(assignment, delta)
        assignment = _settle(assignment)

    logger.info(
        f"Discharge {discharge.pk} corrected by {delta} gal; "
        f"assignment {assignment.pk} remaining {assignment.total_remaining} gal"
    )
    return discharge, assignment


def delete_discharge(discharge_id) -> Assignment:
    """
    Remove a customer that was never served from an assignment.
    """
    with transaction.atomic():
        discharge = Discharge.objects.select_for_update().filter(pk=discharge_id).first()
        if discharge is None:
            raise NotFound('Discharge not found')
        if discharge.is_recorded:
            raise ConflictOnDelete('Cannot delete a discharge that has already been completed')

        assignment = _lock_assignment(discharge.assignment_id)
        if assignment.discharges.count() <= 1:
            raise ConflictOnDelete('An assignment must keep at least one discharge')

        discharge.delete()
        assignment = _settle(assignment)

    logger.info(f"Discharge {discharge_id} removed from assignment {assignment.pk}")
    return assignment


def complete_assignment(assignment_id) -> Assignment:
    """
    Confirm that every discharge of an assignment has been recorded.
    """
    with transaction.atomic():
        assignment = _lock_assignment(assignment_id)
        pending = assignment.discharges.filter(total_discharged=0).count()
        if pending:
            raise AssignmentConflict(f"{pending} discharge(s) are still pending")
        return _settle(assignment)


def start_discharge(assignment_id) -> Assignment:
    """
    The driver arrived at a customer and starts pumping.
    """
    with transaction.atomic():
        assignment = _lock_assignment(assignment_id)
        if assignment.is_completed:
            raise AssignmentConflict('Assignment is already completed')
        mark_truck_discharging(_lock_truck(assignment.truck_id))
    return assignment
