from django.conf import settings
from rest_framework import exceptions
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken
from web_portal.models import AdminLoginSession
from control_panel.models import StallLoginSession


def _new_token(principal, principal_id, lifetime=None):
    token = AccessToken()
    token["principal"] = principal
    token[api_settings.USER_ID_CLAIM] = principal_id
    if lifetime:
        token.set_exp(lifetime=lifetime)
    return token


def create_admin_session_token(admin):
    """Returns (encoded token, jti) for a fresh admin session."""
    token = _new_token("admin", admin.pk)
    token["username"] = admin.username
    token["role"] = admin.role
    return str(token), token[api_settings.JTI_CLAIM]


def create_stall_session_token(stall):
    token = _new_token("stall", stall.pk, lifetime=settings.STALL_TOKEN_LIFETIME)
    token["counter_name"] = stall.counter_name
    return str(token), token[api_settings.JTI_CLAIM]


class SessionJWTAuthentication(JWTAuthentication):
    """
    Validates the bearer token, then loads the live session row it names.
    A logged-out session makes the token unusable even before it expires.
    """
    principal = None

    def load_session(self, jti, principal_id):
        raise NotImplementedError

    def authenticate(self, request):
        header = self.get_header(request)
        if header is None:
            return None

        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None

        validated_token = self.get_validated_token(raw_token)
        if validated_token.get("principal") != self.principal:
            raise exceptions.AuthenticationFailed(f"A {self.principal} session token is required")

        principal_id = validated_token.get(api_settings.USER_ID_CLAIM)
        jti = validated_token.get(api_settings.JTI_CLAIM)
        if not principal_id or not jti:
            raise exceptions.AuthenticationFailed("Token missing session claims")

        session = self.load_session(jti, principal_id)
        if session is None:
            raise exceptions.AuthenticationFailed("Session has ended. Please login again.")
        return session


class AdminJWTAuthentication(SessionJWTAuthentication):
    principal = "admin"

    def load_session(self, jti, principal_id):
        session = (
            AdminLoginSession.objects.select_related("admin")
            .filter(token_jti=jti, admin_id=principal_id, is_logged_out=False)
            .first()
        )
        if session is None:
            return None
        if not session.admin.is_active:
            raise exceptions.AuthenticationFailed("Account is deactivated")
        return (session.admin, session)


class StallJWTAuthentication(SessionJWTAuthentication):
    principal = "stall"

    def load_session(self, jti, principal_id):
        session = (
            StallLoginSession.objects.select_related("stall")
            .filter(token_jti=jti, stall_id=principal_id, is_logged_out=False)
            .first()
        )
        if session is None:
            return None
        return (session.stall, session)
