import logging

from django.conf import settings
from rest_framework import authentication, exceptions

from .identity import IdentityProviderClient, IdentityProviderError
from .models import User

logger = logging.getLogger(__name__)


class IdentityHeaderAuthentication(authentication.BaseAuthentication):
    """
    Authenticate requests forwarded by the trusted identity gateway.

    The gateway verifies the session with the identity provider and passes the
    verified subject id in the ``X-Identity-Subject`` header.
    """
    keyword = 'IdentitySubject'

    def authenticate(self, request):
        subject = request.META.get(settings.IDENTITY_SUBJECT_HEADER)
        if not subject:
            return None

        try:
            user = User.objects.get(identity_subject=subject)
        except User.DoesNotExist:
            logger.warning(f"Unknown identity subject {subject!r}")
            raise exceptions.AuthenticationFailed('No user is registered for this identity')

        if not user.can_sign_in:
            logger.warning(f"User {user.pk} rejected: state is {user.state}")
            raise exceptions.AuthenticationFailed('User account is not active')

        client = IdentityProviderClient()
        if client.enabled:
            try:
                claimed_role = client.get_role(subject)
            except IdentityProviderError as e:
                logger.error(f"Could not verify role claim for {subject!r}: {e}")
                raise exceptions.AuthenticationFailed('Identity provider unavailable')
            if claimed_role != user.role:
                logger.warning(
                    f"Role mismatch for user {user.pk}: provider={claimed_role} local={user.role}"
                )
                raise exceptions.AuthenticationFailed('Role claim does not match the user record')

        return user, subject

    def authenticate_header(self, request):
        return self.keyword
