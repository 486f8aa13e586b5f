from rest_framework.permissions import BasePermission
from web_portal.models import AdminAccount, AdminLoginSession
from control_panel.models import StallLoginSession

METHOD_ACTIONS = {
    'GET': 'read',
    'HEAD': 'read',
    'OPTIONS': 'read',
    'POST': 'create',
    'PUT': 'update',
    'PATCH': 'update',
    'DELETE': 'delete',
}


class IsSuperAdmin(BasePermission):
    message = 'Only a super admin can manage admins and permissions.'

    def has_permission(self, request, view):
        user = request.user
        if not isinstance(user, AdminAccount):
            return False
        return user.is_active and user.is_super_admin


class HasModulePermission(BasePermission):
    """
    Checks the session's permission snapshot. The module comes from the
    view's ``permission_module``; the action follows the HTTP method unless
    the view maps it in ``permission_actions``.
    """

    def has_permission(self, request, view):
        session = request.auth
        if not isinstance(session, AdminLoginSession):
            return False

        module = getattr(view, 'permission_module', None)
        overrides = getattr(view, 'permission_actions', None) or {}
        action = overrides.get(request.method) or METHOD_ACTIONS.get(request.method, 'read')

        if session.has_permission(module, action):
            return True
        self.message = f"You do not have permission to {action} {str(module).replace('_', ' ')}."
        return False


class IsStallSession(BasePermission):
    message = 'A stall login is required.'

    def has_permission(self, request, view):
        return isinstance(request.auth, StallLoginSession)
