from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),

    path('api/children/', include('children.urls')),
    path('api/vaccines/', include('immunization.urls.vaccines')),
    path('api/vaccinations/', include('immunization.urls.vaccinations')),
    path('api/schedules/', include('appointments.urls.schedules')),
    path('api/appointments/', include('appointments.urls.appointments')),
    path('api/notifications/', include('notifications.urls')),
]
