from django.db import models

from assignment.models.assignment import Assignment
from customers.models import Customer


class Discharge(models.Model):
    """
    Fuel delivered to one customer within an assignment.

    Rows are created empty when the assignment is dispatched and filled in
    once the driver reads the meter at the customer's site.
    """
    assignment = models.ForeignKey(Assignment, on_delete=models.CASCADE, related_name='discharges')
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='discharges')

    start_marker = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    end_marker = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_discharged = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    notes = models.TextField(blank=True)
    recorded_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['assignment', 'customer'], name='one_discharge_per_customer'),
            models.CheckConstraint(
                condition=models.Q(total_discharged=0) | models.Q(end_marker__gt=models.F('start_marker')),
                name='discharge_markers_ordered',
            ),
        ]

    def __str__(self):
        return f"Discharge for {self.customer.company_name} in Assignment {self.assignment_id}"

    @property
    def is_recorded(self):
        return self.total_discharged > 0
