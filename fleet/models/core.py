from decimal import Decimal

from django.core.validators import MinLengthValidator, MinValueValidator
from django.db import models


class Truck(models.Model):
    """
    Model representing a fuel truck in the fleet.
    """
    STATE_ACTIVE = 'active'
    STATE_INACTIVE = 'inactive'
    STATE_MAINTENANCE = 'maintenance'
    STATE_IN_TRANSIT = 'in_transit'
    STATE_DISCHARGING = 'discharging'
    STATE_ASSIGNED = 'assigned'

    STATE_CHOICES = [
        (STATE_ACTIVE, 'Active'),
        (STATE_INACTIVE, 'Inactive'),
        (STATE_MAINTENANCE, 'Maintenance'),
        (STATE_IN_TRANSIT, 'In Transit'),
        (STATE_DISCHARGING, 'Discharging'),
        (STATE_ASSIGNED, 'Assigned'),
    ]

    # States a truck may be registered in; every other state is reached through transitions
    INITIAL_STATES = (STATE_ACTIVE, STATE_INACTIVE, STATE_MAINTENANCE)

    FUEL_TYPE_CHOICES = [
        ('diesel_b5', 'Diesel B5'),
        ('gasoline_90', 'Gasoline 90'),
        ('gasoline_95', 'Gasoline 95'),
        ('lpg', 'LPG'),
        ('electric', 'Electric'),
    ]

    plate = models.CharField(max_length=7, unique=True, validators=[MinLengthValidator(6)])
    fuel_type = models.CharField(max_length=20, choices=FUEL_TYPE_CHOICES, default='diesel_b5')
    capacity = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text="Tank capacity in gallons"
    )
    state = models.CharField(max_length=20, choices=STATE_CHOICES, default=STATE_ACTIVE)
    selected_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='selected_trucks',
        help_text="Driver holding this truck before it is dispatched"
    )

    # Additional specifications
    brand = models.CharField(max_length=50, blank=True)
    model = models.CharField(max_length=50, blank=True)
    year = models.PositiveIntegerField(null=True, blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.plate} ({self.state})"

    @property
    def is_available(self):
        """Check if the truck can take a new assignment."""
        return self.state == self.STATE_ACTIVE

    @property
    def has_open_assignment(self):
        return self.assignments.filter(is_completed=False).exists()

    class Meta:
        ordering = ['plate']
        indexes = [
            models.Index(fields=['state']),
        ]
