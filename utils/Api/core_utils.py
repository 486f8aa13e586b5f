from rest_framework.response import Response
from rest_framework import status
from django.utils.timezone import localtime
from django.core.exceptions import ValidationError
from datetime import datetime, timedelta
from user_agents import parse
from validation.superadmin_validation import add_serial_numbers


def enforce_required_fields(payload, mandatory: list):
    absent = [key for key in mandatory if payload.get(key) in (None, '', [])]
    if absent:
        return Response(
            {
                "status": "fail",
                "message": f"Required fields missing: {', '.join(absent)}",
                "missing": absent
            },
            status=status.HTTP_400_BAD_REQUEST
        )
    return None


def validate_paging_inputs(page, size):
    """Validate and sanitize pagination parameters"""
    errors = []
    page, size = str(page or ''), str(size or '')

    if not page.isdigit() or int(page) < 1:
        errors.append("page_number must be a positive integer")

    if not size.isdigit() or int(size) < 1:
        errors.append("page_size must be a positive integer")

    if errors:
        return Response(
            {
                "status": "fail",
                "message": "Invalid pagination parameters",
                "details": errors
            },
            status=status.HTTP_400_BAD_REQUEST
        )
    return None


def paginate_rows(request, rows, default_size=50, order="desc"):
    """
    Returns (error_response, page_payload). Without page_number in the query
    string every row is returned on a single page.
    """
    page = request.query_params.get('page_number')
    size = request.query_params.get('page_size')

    if page is None and size is None:
        return None, {
            "total_pages": 1,
            "current_page": 1,
            "total_items": len(rows),
            "results": rows,
        }

    error = validate_paging_inputs(page or '1', size or str(default_size))
    if error:
        return error, None

    paged = add_serial_numbers(rows, int(page or 1), int(size or default_size), order=order)
    return None, {
        "total_pages": paged["total_pages"],
        "current_page": paged["current_page"],
        "total_items": paged["total_items"],
        "results": paged["results"],
    }


def apply_date_range_filter(request_data, queryset, date_field='created_at'):
    """
    Apply today/week/month/year/custom date filter
    """
    filter_type = request_data.get('filter_type')
    start = request_data.get('start_date')
    end = request_data.get('end_date')

    if not filter_type and not (start and end):
        return queryset

    today = localtime().date()

    try:
        if filter_type == 'today':
            start_dt = localtime().replace(hour=0, minute=0, second=0, microsecond=0)
            end_dt = start_dt + timedelta(days=1)
            return queryset.filter(**{f"{date_field}__gte": start_dt, f"{date_field}__lt": end_dt})

        elif filter_type == 'week':
            week_start = today - timedelta(days=today.weekday())
            return queryset.filter(**{f"{date_field}__date__gte": week_start})

        elif filter_type == 'month':
            month_start = today.replace(day=1)
            return queryset.filter(**{f"{date_field}__date__gte": month_start})

        elif filter_type == 'year':
            year_start = today.replace(month=1, day=1)
            return queryset.filter(**{f"{date_field}__date__gte": year_start})

        elif start and end:
            s = datetime.strptime(start, "%Y-%m-%d").date()
            e = datetime.strptime(end, "%Y-%m-%d").date()
            return queryset.filter(**{f"{date_field}__date__gte": s, f"{date_field}__date__lte": e})

    except (ValueError, TypeError):
        raise ValidationError("Invalid date format. Expected YYYY-MM-DD.")

    return queryset


def client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('HTTP_X_REAL_IP') or request.META.get('REMOTE_ADDR')


def extract_device_information(request) -> dict:
    """
    Parses the User-Agent header into operating system, browser and
    device class details for the login session row.
    """
    parsed_ua = parse(request.META.get("HTTP_USER_AGENT", ""))
    return {
        "operating_system": parsed_ua.os.family,
        "os_version": parsed_ua.os.version_string,
        "device_model": parsed_ua.device.family,
        "browser_name": parsed_ua.browser.family,
        "is_mobile_device": parsed_ua.is_mobile,
        "is_tablet_device": parsed_ua.is_tablet,
        "is_desktop": parsed_ua.is_pc,
    }
