from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from django.http import HttpResponse

def index(request):
    return HttpResponse("Welcome to the SocialNet API!")

urlpatterns = [
    path('', index),
    path('admin/', admin.site.urls),
    path('api/auth/', include('authentication.urls')),
    path('api/feed/', include('feed.urls')),
    path('api/friends/', include('friends.urls')),
    path('api/users/', include('friends.user_urls')),
    path('api/chat/', include('chat.urls')),
    path('api/notifications/', include('notifications.urls')),
]


if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
