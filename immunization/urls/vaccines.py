from django.urls import path
from .. import views

urlpatterns = [
    path('', views.vaccine_list, name='vaccine_list'),
    path('<int:vaccine_id>/', views.vaccine_detail, name='vaccine_detail'),
]
