"""
URL configuration for _eprofos project.
"""
from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from rest_framework import permissions
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

schema_view = get_schema_view(
    openapi.Info(
        title="EPROFOS REST API",
        default_version='v1',
        description="API du back-office EPROFOS (catalogue, sessions, alternance)",
    ),
    public=False,
    permission_classes=[permissions.IsAdminUser],
)

urlpatterns = [
    # Administration Django
    path('admin/', admin.site.urls),

    # Back-office
    path('', include('apps.core.urls')),
    path('accounts/', include('apps.accounts.urls')),
    path('training/', include('apps.training.urls')),
    path('alternance/', include('apps.alternance.urls')),

    # API
    path('api/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('api/training/', include('apps.training.api.urls')),
    path('api/alternance/', include('apps.alternance.api.urls')),
    path('api/docs/', schema_view.with_ui('swagger', cache_timeout=0), name='api-docs'),
]

# Servir les fichiers media en développement
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
