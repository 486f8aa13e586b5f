import json
import os
from datetime import datetime
from openpyxl import Workbook
from openpyxl.styles import Font
from django.conf import settings


def export_rows_to_excel(rows, column_mapping, file_prefix, sheet_title="Export"):
    """
    Writes dict rows to an .xlsx under MEDIA_ROOT/downloads and returns its
    media URL. column_mapping maps row keys to header labels, in order.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title[:31]

    headers = list(column_mapping.values())
    fields = list(column_mapping.keys())
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for record in rows:
        row_data = []
        for field in fields:
            val = record.get(field, '') if isinstance(record, dict) else getattr(record, field, '')

            if isinstance(val, bool):
                val = 'Yes' if val else 'No'

            if isinstance(val, (dict, list)):
                val = json.dumps(val, ensure_ascii=False)

            row_data.append(str(val) if val is not None else '')
        ws.append(row_data)

    for index, header in enumerate(headers, start=1):
        ws.column_dimensions[ws.cell(row=1, column=index).column_letter].width = max(12, len(header) + 4)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    filename = f"{file_prefix}_{timestamp}.xlsx"
    export_folder = os.path.join(settings.MEDIA_ROOT, 'downloads')
    os.makedirs(export_folder, exist_ok=True)

    save_path = os.path.join(export_folder, filename)
    wb.save(save_path)

    return f"{settings.MEDIA_URL}downloads/{filename}"


def flatten_responses(responses, labels):
    """Answers keyed by field id become one column per field label."""
    flat = {}
    for field_id, label in labels.items():
        value = (responses or {}).get(str(field_id), '')
        flat[label] = ', '.join(value) if isinstance(value, list) else value
    return flat
