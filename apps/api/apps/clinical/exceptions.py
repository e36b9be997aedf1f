"""
Appointment lifecycle errors.

Every error carries a stable ``code``, a human readable ``message`` and a
``details`` dict; views render the three as the API error envelope.
"""


class AppointmentStatusError(Exception):
    """Base class for rejected or failed status updates."""
    code = 'APPOINTMENT_STATUS_ERROR'
    http_status = 400

    def __init__(self, message, details=None, code=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if code:
            self.code = code

    def as_dict(self):
        return {
            'code': self.code,
            'message': self.message,
            'details': self.details,
        }


class AppointmentNotFound(AppointmentStatusError):
    code = 'APPOINTMENT_NOT_FOUND'
    http_status = 404

    def __init__(self, appointment_code):
        super().__init__(
            f'Appointment not found: {appointment_code}',
            details={'appointment_code': appointment_code},
        )
        self.appointment_code = appointment_code


class IllegalTransition(AppointmentStatusError):
    """The requested status is not reachable from the current one."""
    code = 'INVALID_STATUS_TRANSITION'
    http_status = 409

    def __init__(self, current_status, requested_status, allowed=(), message=None):
        self.current_status = str(current_status)
        self.requested_status = str(requested_status)
        self.allowed = sorted(str(status) for status in allowed)
        if message is None:
            message = (
                f'Cannot transition from {self.current_status} to {self.requested_status}. '
                f'Allowed: {", ".join(self.allowed) or "none (terminal status)"}'
            )
        super().__init__(
            message,
            details={
                'current_status': self.current_status,
                'requested_status': self.requested_status,
                'allowed_statuses': self.allowed,
            },
        )


class RuleViolation(AppointmentStatusError):
    """
    The transition is structurally legal but breaks a time-window or
    compliance rule.
    """
    http_status = 409

    # Rules that describe a malformed request rather than a conflict
    BAD_REQUEST_RULES = frozenset({'reason_code_required'})

    def __init__(self, rule, message, details=None):
        super().__init__(message, details=details, code=rule.upper())
        self.rule = rule
        if rule in self.BAD_REQUEST_RULES:
            self.http_status = 400


class CascadeFailure(AppointmentStatusError):
    """Writing linked treatment-plan items failed; the update is rolled back."""
    code = 'PLAN_ITEM_SYNC_FAILED'
    http_status = 500


class AggregationFailure(Exception):
    """Phase/plan roll-up failed. Never reaches the caller."""
