from django.core.validators import MinLengthValidator
from django.db import models


class User(models.Model):
    """
    A person operating the dispatch system: an administrator or a driver.

    Authentication itself is delegated to the identity provider; the
    ``identity_subject`` links the provider's user id to this record.
    """
    ROLE_ADMIN = 'admin'
    ROLE_DRIVER = 'driver'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_DRIVER, 'Driver'),
    ]

    STATE_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('suspended', 'Suspended'),
        ('deleted', 'Deleted'),
        ('assigned', 'Assigned'),
    ]
    SIGN_IN_STATES = ('active', 'assigned')

    dni = models.CharField(max_length=12, unique=True, validators=[MinLengthValidator(8)])
    name = models.CharField(max_length=50, validators=[MinLengthValidator(2)])
    lastname = models.CharField(max_length=50, validators=[MinLengthValidator(2)])
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_DRIVER)
    state = models.CharField(max_length=20, choices=STATE_CHOICES, default='active')
    identity_subject = models.CharField(
        max_length=128,
        unique=True,
        null=True,
        blank=True,
        help_text="User id issued by the identity provider"
    )

    license_number = models.CharField(max_length=32, blank=True)
    license_type = models.CharField(max_length=16, blank=True)
    license_expiry = models.DateField(null=True, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    address = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name', 'lastname']
        indexes = [
            models.Index(fields=['role', 'state']),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.role})"

    @property
    def full_name(self):
        return f"{self.name} {self.lastname}"

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_driver(self):
        return self.role == self.ROLE_DRIVER

    @property
    def can_sign_in(self):
        return self.state in self.SIGN_IN_STATES

    # DRF treats whatever the authenticator returns as request.user
    @property
    def is_authenticated(self):
        return True

    @property
    def is_anonymous(self):
        return False
