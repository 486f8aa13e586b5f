from django.conf import settings
from django.conf.urls.static import static
from django.urls import include, path


urlpatterns = [
    path('api/', include('web_portal.urls')),
    path('api/', include('control_panel.urls')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
