import re
from django.db.models.functions import Length
from django.utils import timezone


def validate_mobile_format(mobile):
    """Indian mobile numbers: exactly ten digits."""
    return bool(re.fullmatch(r'\d{10}', str(mobile or '').strip()))


def digits_only(value):
    return re.sub(r'\D', '', str(value or ''))


def generate_receipt_number(prefix, model, field='receipt_number'):
    """
    Next number of the form PREFIX-YYYYMMDD-NNNN, counting within the day.
    Call inside the transaction that saves the row.
    """
    day_part = timezone.localdate().strftime('%Y%m%d')
    stem = f"{prefix}-{day_part}-"
    last = (
        model.objects.select_for_update()
        .filter(**{f"{field}__startswith": stem})
        .order_by(Length(field).desc(), f"-{field}")
        .values_list(field, flat=True)
        .first()
    )
    sequence = int(last.rsplit('-', 1)[-1]) + 1 if last else 1
    return f"{stem}{sequence:04d}"
