"""
Role-based permission classes.

Roles: admin, hr, viewer (read-only staff), employee and
prospective_employee (self-service only).
"""

from rest_framework.permissions import BasePermission, SAFE_METHODS


ROLE_ADMIN = 'admin'
ROLE_HR = 'hr'
ROLE_VIEWER = 'viewer'
ROLE_EMPLOYEE = 'employee'
ROLE_PROSPECTIVE = 'prospective_employee'

STAFF_ROLES = (ROLE_ADMIN, ROLE_HR)
READ_ROLES = (ROLE_ADMIN, ROLE_HR, ROLE_VIEWER)

# API key scopes, ``<verb>:<resource>``. ``*`` grants every scope.
API_KEY_SCOPES = (
    'read:employees', 'write:employees', 'delete:employees',
    'read:licenses', 'write:licenses',
    'read:documents', 'write:documents',
    'read:reports',
    'read:audits',
    'manage:api_keys',
)
ALL_SCOPES = '*'


def _role(user):
    if not user or not user.is_authenticated:
        return None
    if user.is_superuser:
        return ROLE_ADMIN
    return getattr(user, 'role', None)


def is_hr_staff(user):
    return _role(user) in STAFF_ROLES


def can_read_all(user):
    return _role(user) in READ_ROLES


class IsAdmin(BasePermission):
    message = 'Administrator access required.'

    def has_permission(self, request, view):
        return _role(request.user) == ROLE_ADMIN


class IsHRStaff(BasePermission):
    message = 'HR access required.'

    def has_permission(self, request, view):
        return is_hr_staff(request.user)


class IsHRStaffOrReadOnly(BasePermission):
    """HR staff may write; viewers may only read."""

    message = 'HR access required.'

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return can_read_all(request.user)
        return is_hr_staff(request.user)


class IsHRStaffOrSelf(BasePermission):
    """
    HR staff get full access, viewers read-only access, and employees
    access only records that belong to their own Employee profile.
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if is_hr_staff(user):
            return True
        if can_read_all(user):
            return request.method in SAFE_METHODS
        return getattr(user, 'employee', None) is not None

    def has_object_permission(self, request, view, obj):
        user = request.user
        if is_hr_staff(user):
            return True
        if can_read_all(user):
            return request.method in SAFE_METHODS
        employee = getattr(user, 'employee', None)
        if employee is None:
            return False
        owner_id = obj.pk if obj.__class__.__name__ == 'Employee' else getattr(obj, 'employee_id', None)
        return owner_id == employee.pk


def required_scope(method, resource):
    if method in SAFE_METHODS:
        return f'read:{resource}'
    if method == 'DELETE' and f'delete:{resource}' in API_KEY_SCOPES:
        return f'delete:{resource}'
    return f'write:{resource}'


class HasApiKeyScope(BasePermission):
    """
    Limits API-key requests to the scopes granted to the key. Views declare
    the resource they expose with ``api_key_resource``; session requests
    pass through to the role checks.
    """

    message = 'API key does not grant the required scope.'

    def has_permission(self, request, view):
        api_key = request.auth
        if not hasattr(api_key, 'has_scope'):
            return True
        resource = getattr(view, 'api_key_resource', None)
        return resource is not None and api_key.has_scope(required_scope(request.method, resource))
