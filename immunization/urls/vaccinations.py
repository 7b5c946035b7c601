from django.urls import path
from .. import views

urlpatterns = [
    path('child/<int:child_id>/', views.child_vaccinations, name='child_vaccinations'),
    path('upcoming/', views.upcoming_vaccinations, name='upcoming_vaccinations'),
    path('delayed/', views.delayed_vaccinations, name='delayed_vaccinations'),
    path('stats/', views.vaccination_stats, name='vaccination_stats'),
    path('<int:dose_id>/', views.update_vaccination, name='update_vaccination'),
]
