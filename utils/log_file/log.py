import json
from datetime import datetime
from pathlib import Path
from loguru import logger
from django.conf import settings
from django.core.files.uploadedfile import UploadedFile


MASKED_KEYS = {"password", "new_password", "verification_password", "confirm_password"}
DEFAULT_CHANNEL = "mela_backend"

logger.remove()


def clean_old_logs(log_path: Path):
    if log_path.suffix == ".log":
        log_path.unlink(missing_ok=True)
    elif log_path.suffix == ".zip":
        try:
            file_age_days = (datetime.now() - datetime.fromtimestamp(log_path.stat().st_mtime)).days
            if file_age_days > 30:
                log_path.unlink(missing_ok=True)
        except FileNotFoundError:
            pass


def make_serializable(data):
    if isinstance(data, dict) or hasattr(data, "lists"):
        return {
            k: "*****" if k in MASKED_KEYS else make_serializable(v)
            for k, v in dict(data.items()).items()
        }

    if isinstance(data, (list, tuple)):
        return [make_serializable(item) for item in data]

    if isinstance(data, UploadedFile):
        return {
            "file_name": data.name,
            "type_hint": "DjangoUploadedFile",
        }

    try:
        json.dumps(data)
        return data
    except (TypeError, ValueError):
        return str(data)


active_loggers = {}


def get_or_create_logger(channel: str):
    if channel in active_loggers:
        return active_loggers[channel]

    channel_log_dir = Path(settings.API_LOG_DIRECTORY) / channel / "api_calls"
    channel_log_dir.mkdir(parents=True, exist_ok=True)
    current_date = datetime.now().strftime("%Y_%m_%d")
    log_file_path = channel_log_dir / f"api_log_{current_date}.log"

    channel_logger = logger.bind(channel=channel)

    channel_logger.add(sink=str(log_file_path), rotation="00:00", retention=clean_old_logs, compression="zip", level="INFO",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
        filter=lambda record: record["extra"].get("channel") == channel
    )

    active_loggers[channel] = channel_logger
    return channel_logger


def _principal_label(request):
    user = getattr(request, "user", None)
    if user is None:
        return "guest_user"
    if hasattr(user, "username"):
        return f"admin:{user.id}"
    if hasattr(user, "counter_name"):
        return f"stall:{user.id}"
    return "guest_user"


def save_api_log(request, endpoint_source: str, input_payload, output_response, service_type=None, channel=DEFAULT_CHANNEL):
    try:
        user_agent_header = request.META.get("HTTP_USER_AGENT", "")
        log_entry = {
            "event_time": datetime.now().isoformat(),
            "response_status": output_response.get("status", "unknown") if isinstance(output_response, dict) else "unknown",
            "source_endpoint": endpoint_source,
            "path": request.path if hasattr(request, "path") else None,
            "method": getattr(request, "method", None),
            "remote_addr": request.META.get("REMOTE_ADDR"),
            "user_agent": user_agent_header[:200],
            "principal": _principal_label(request),
            "category": service_type,
            "request_data": make_serializable(input_payload),
            "response_data": make_serializable(output_response),
        }
        api_logger = get_or_create_logger(channel)

        is_error = False
        if isinstance(output_response, str):
            error_keywords = ["exception", "traceback", "internal server", "error"]
            if any(keyword in output_response.lower() for keyword in error_keywords):
                is_error = True
        elif isinstance(output_response, dict):
            if str(output_response.get("status", "")).lower() in ["error", "fail", "failed"]:
                is_error = True

        serialized_log = json.dumps(log_entry, indent=2, ensure_ascii=False, default=str)

        if is_error:
            api_logger.error(serialized_log)
        else:
            api_logger.info(serialized_log)

    except Exception as unexpected_error:
        logger.opt(exception=unexpected_error).warning("API logging failed for {}", endpoint_source)
