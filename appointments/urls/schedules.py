from django.urls import path
from .. import views

urlpatterns = [
    path('', views.publish_schedule, name='schedule_publish'),
    path('available/', views.available_doctors, name='schedule_available'),
    path('my-schedule/', views.my_schedule, name='my_schedule'),
    path('doctor/<int:doctor_id>/', views.doctor_schedule, name='doctor_schedule'),
    path('<int:schedule_id>/', views.delete_schedule, name='schedule_delete'),
    path('<int:schedule_id>/slots/', views.add_slots, name='schedule_add_slots'),
    path('<int:schedule_id>/book/<int:slot_id>/', views.slot_booking, name='slot_booking'),
]
