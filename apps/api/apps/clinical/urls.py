"""
Clinical URLs - appointment lifecycle.
"""
from django.urls import path

from .views import AppointmentAuditLogListView, AppointmentStatusView

urlpatterns = [
    path('appointments/<str:code>/status', AppointmentStatusView.as_view(), name='appointment-status'),
    path('appointments/<str:code>/audit-logs', AppointmentAuditLogListView.as_view(), name='appointment-audit-logs'),
]
