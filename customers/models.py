from django.core.validators import MinLengthValidator
from django.db import models


class Customer(models.Model):
    """A company that receives fuel discharges."""
    company_name = models.CharField(max_length=100, validators=[MinLengthValidator(2)])
    tax_id = models.CharField(
        max_length=11,
        unique=True,
        validators=[MinLengthValidator(11)],
        help_text="11-digit taxpayer registration number"
    )
    address = models.CharField(max_length=255, validators=[MinLengthValidator(5)])

    contact_name = models.CharField(max_length=100, blank=True)
    contact_phone = models.CharField(max_length=32, blank=True)
    contact_email = models.EmailField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['company_name']

    def __str__(self):
        return f"{self.company_name} ({self.tax_id})"
