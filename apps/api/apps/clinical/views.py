"""
Appointment status endpoints.
"""
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.clinical.exceptions import AppointmentNotFound, AppointmentStatusError
from apps.clinical.models import Appointment, AppointmentAuditLog
from apps.clinical.permissions import AppointmentAuditLogPermission, AppointmentStatusPermission
from apps.clinical.serializers import (
    AppointmentAuditLogSerializer,
    AppointmentStatusSerializer,
    AppointmentStatusUpdateSerializer,
)
from apps.clinical.services import update_appointment_status
from apps.core.observability.correlation import bind_user


def error_response(error: AppointmentStatusError):
    return Response({'error': error.as_dict()}, status=error.http_status)


class BindUserMixin:
    """Expose the JWT-authenticated user to request-scoped logging."""

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        if request.user and request.user.is_authenticated:
            bind_user(request.user)


class AppointmentStatusView(BindUserMixin, APIView):
    """
    PATCH /api/v1/appointments/{code}/status

    Request body:
    {
        "status": "CHECKED_IN",
        "reason_code": "PATIENT_REQUEST",  # Required for CANCELLED
        "notes": "Arrived early"  # Optional, replaces appointment notes
    }

    Returns:
        200: Updated appointment status
        400: Malformed body or missing reason code
        404: Unknown appointment code
        409: Transition not allowed or outside its time window
        500: Treatment plan items could not be updated (nothing changed)
    """
    permission_classes = [AppointmentStatusPermission]

    def patch(self, request, code):
        serializer = AppointmentStatusUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {
                    'error': {
                        'code': 'VALIDATION_ERROR',
                        'message': 'Invalid status update request',
                        'details': serializer.errors,
                    }
                },
                status=status.HTTP_400_BAD_REQUEST
            )

        data = serializer.validated_data
        try:
            appointment = update_appointment_status(
                code,
                data['status'],
                reason_code=data.get('reason_code'),
                notes=data.get('notes'),
                user=request.user,
            )
        except AppointmentStatusError as e:
            return error_response(e)

        appointment = (
            Appointment.objects
            .select_related('patient', 'employee')
            .get(pk=appointment.pk)
        )
        return Response(AppointmentStatusSerializer(appointment).data, status=status.HTTP_200_OK)


class AppointmentAuditLogListView(BindUserMixin, generics.ListAPIView):
    """
    GET /api/v1/appointments/{code}/audit-logs

    Audit trail of one appointment, newest first.
    """
    permission_classes = [AppointmentAuditLogPermission]
    serializer_class = AppointmentAuditLogSerializer

    def get_queryset(self):
        return (
            AppointmentAuditLog.objects
            .filter(appointment__appointment_code=self.kwargs['code'])
            .select_related('performed_by')
            .order_by('-created_at')
        )

    def list(self, request, *args, **kwargs):
        if not Appointment.objects.filter(appointment_code=kwargs['code']).exists():
            return error_response(AppointmentNotFound(kwargs['code']))
        return super().list(request, *args, **kwargs)
