from django.urls import path
from web_portal.APIs.admin_session.admin_session import *
from web_portal.APIs.admin_management.admin_manage import *
from web_portal.APIs.programs.program import *
from web_portal.APIs.team.team_roster import *
from web_portal.APIs.photo_gallery.gallery import *


urlpatterns = [
    # Admin session
    path('admin/login/', AdminSignInView.as_view()),
    path('admin/session/', AdminSessionView.as_view()),
    path('admin/logout/', AdminSignOutView.as_view()),

    # Super admin only
    path('admin/manage-admins/', AdminManageView.as_view()),
    path('admin/permissions/', AdminPermissionView.as_view()),

    path('programs/', ProgramManageView.as_view()),
    path('team/', TeamMemberView.as_view()),
    path('photos/', PhotoGalleryView.as_view()),

    # Public site
    path('public/programs/', PublicProgramListView.as_view()),
    path('public/photos/', PublicPhotoListView.as_view()),
]
