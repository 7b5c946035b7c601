from django.urls import path
from .. import views

urlpatterns = [
    path('', views.appointment_list, name='appointment_list'),
    path('pending/', views.pending_appointments, name='appointment_pending'),
    path('today/', views.today_appointments, name='appointment_today'),
    path('<int:appointment_id>/', views.appointment_detail, name='appointment_detail'),
]
