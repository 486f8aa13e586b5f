from loguru import logger
from web_portal.models import AdminAccount, AdminActivityLog
from utils.Api.core_utils import client_ip
from utils.log_file.log import make_serializable


def record_admin_activity(request, action: str, description: str, payload=None, user=None):
    """Write one audit row for a mutating admin action. Never raises."""
    user = user or getattr(request, 'user', None)
    try:
        AdminActivityLog.objects.create(
            user=user if isinstance(user, AdminAccount) else None,
            action=action,
            description=description,
            ip_address=client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', '')[:500],
            request_data=make_serializable(payload if payload is not None else request.data),
        )
    except Exception as exc:
        logger.warning("Failed to record admin activity {}: {}", action, exc)
