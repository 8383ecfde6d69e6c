"""
Role-based capability checks.

``authorize`` is the single decision point; the DRF permission classes below
only translate a request into an (action, resource) pair and ask it.
"""
from rest_framework import permissions

# Actions a driver may perform on records they own
DRIVER_OWN_ACTIONS = {
    'assignment': {'view', 'start_discharge'},
    'discharge': {'view', 'record', 'correct'},
}
# Actions a driver may perform on any record of the kind
DRIVER_SHARED_ACTIONS = {
    'truck': {'view', 'select_truck'},
    'customer': {'view'},
}
# Collection-level actions a driver may start; object checks narrow them down
DRIVER_COLLECTION_ACTIONS = {'view', 'record', 'correct', 'start_discharge', 'select_truck'}
# Writes a driver may only make while the assignment is still open
OPEN_ASSIGNMENT_ACTIONS = {'record', 'correct', 'start_discharge'}


def _kind(resource):
    return resource._meta.model_name


def _owning_assignment(resource):
    kind = _kind(resource)
    if kind == 'assignment':
        return resource
    if kind == 'discharge':
        return resource.assignment
    return None


def authorize(user, action, resource=None):
    """
    Return True when ``user`` may perform ``action`` on ``resource``.

    ``resource`` is a model instance, or None for collection-level checks
    (listing, creating).
    """
    if user is None or not getattr(user, 'can_sign_in', False):
        return False
    if user.is_admin:
        return True
    if not user.is_driver:
        return False

    if resource is None:
        return action in DRIVER_COLLECTION_ACTIONS

    kind = _kind(resource)
    if kind == 'user':
        return action == 'view' and resource.pk == user.pk
    if action in DRIVER_SHARED_ACTIONS.get(kind, ()):
        return True
    if action in DRIVER_OWN_ACTIONS.get(kind, ()):
        assignment = _owning_assignment(resource)
        if assignment is None or assignment.driver_id != user.pk:
            return False
        if action in OPEN_ASSIGNMENT_ACTIONS and assignment.is_completed:
            return False
        return True
    return False


class IsActiveMember(permissions.BasePermission):
    """Any signed-in user whose account is usable."""
    message = 'Authentication required'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and getattr(user, 'can_sign_in', False))


class CapabilityPermission(IsActiveMember):
    """
    Map a viewset action onto ``authorize``.

    Views may declare ``capability_map = {'<viewset action>': '<capability>'}``;
    anything unmapped falls back to view/create/update/delete by HTTP method.
    """
    message = 'You do not have permission to perform this action'

    METHOD_CAPABILITIES = {
        'POST': 'create',
        'PUT': 'update',
        'PATCH': 'update',
        'DELETE': 'delete',
    }

    def _capability(self, request, view):
        mapping = getattr(view, 'capability_map', {})
        action = getattr(view, 'action', None)
        if action in mapping:
            return mapping[action]
        if request.method in permissions.SAFE_METHODS:
            return 'view'
        return self.METHOD_CAPABILITIES.get(request.method, 'update')

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return authorize(request.user, self._capability(request, view))

    def has_object_permission(self, request, view, obj):
        return authorize(request.user, self._capability(request, view), obj)
