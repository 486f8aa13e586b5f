import os
import uuid

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.db import transaction
from django.utils import timezone
from PIL import Image, UnidentifiedImageError
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from web_portal.models import *
from .serializers import *
from authentication.customjwt_auth import *
from authentication.permissions import *
from utils.Api.collection_cache import get_or_fetch, invalidate
from utils.Api.core_utils import *
from utils.Api.user_activity_record import record_admin_activity
from utils.log_file.log import save_api_log
from validation.superadmin_validation import *
