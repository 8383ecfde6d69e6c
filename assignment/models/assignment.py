from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from accounts.models import User
from fleet.models import Truck


class Assignment(models.Model):
    """
    A truck + driver dispatch carrying a fixed fuel load to a set of customers.

    ``total_remaining`` and ``is_completed`` are owned by the ledger service and
    must never be written from request data.
    """
    truck = models.ForeignKey(Truck, on_delete=models.PROTECT, related_name='assignments')
    driver = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='assignments',
        limit_choices_to={'role': User.ROLE_DRIVER}
    )
    fuel_type = models.CharField(max_length=20, choices=Truck.FUEL_TYPE_CHOICES)

    total_loaded = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text="Gallons loaded at dispatch"
    )
    total_remaining = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Gallons not yet accounted for by recorded discharges"
    )
    is_completed = models.BooleanField(default=False)

    date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['truck', 'is_completed']),
            models.Index(fields=['driver', 'is_completed']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_remaining__gte=0),
                name='assignment_remaining_not_negative',
            ),
        ]

    def __str__(self):
        return f"Assignment #{self.id} to Truck {self.truck.plate}"

    @property
    def total_discharged(self):
        return self.total_loaded - self.total_remaining
