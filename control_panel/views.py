from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count, Max, ProtectedError, Q, Sum
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from control_panel.models import *
from control_panel.serializer import *
from control_panel import ledger
from web_portal.models import AdminAccount
from authentication.customjwt_auth import *
from authentication.permissions import *
from utils.Api.collection_cache import get_or_fetch, invalidate
from utils.Api.core_utils import *
from utils.Api.user_activity_record import record_admin_activity
from utils.excel_files.export_excel import export_rows_to_excel, flatten_responses
from utils.helpers import digits_only, generate_receipt_number, validate_mobile_format
from utils.log_file.log import save_api_log
from validation.superadmin_validation import *
