class DomainError(Exception):
    """Erro genérico da camada de domínio.

    Cada subclasse carrega um ``code`` estável, usado pela camada HTTP para
    escolher o status e montar o corpo da resposta.
    """

    code = "DOMAIN_ERROR"
    default_message = "Domain rule violated"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    """Dados inválidos para a operação solicitada."""

    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class SchedulingError(DomainError):
    """Regras de agendamento foram violadas."""


class PatientNotFoundError(DomainError):
    code = "PATIENT_NOT_FOUND"
    default_message = "Patient not found"


class PastAppointmentError(SchedulingError):
    code = "PAST_APPOINTMENT"
    default_message = "Cannot schedule an appointment in the past"


class AppointmentConflictError(SchedulingError):
    code = "APPOINTMENT_CONFLICT"
    default_message = "There is already an appointment at this time"


class AppointmentNotFoundError(DomainError):
    code = "APPOINTMENT_NOT_FOUND"
    default_message = "Appointment not found"


class AppointmentNotEditableError(SchedulingError):
    code = "APPOINTMENT_NOT_EDITABLE"
    default_message = "Completed appointments cannot be changed"


class InvalidAppointmentTimeError(SchedulingError):
    code = "INVALID_APPOINTMENT_TIME"
    default_message = "Start time must be before end time"


class UserNotFoundError(DomainError):
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class InvalidResetTokenError(DomainError):
    code = "INVALID_RESET_TOKEN"
    default_message = "Invalid reset token"


class ResetTokenExpiredError(DomainError):
    code = "RESET_TOKEN_EXPIRED"
    default_message = "Reset token has expired"


class EmailAlreadyExistsError(DomainError):
    code = "EMAIL_ALREADY_EXISTS"
    default_message = "Email already registered"


class InvalidCredentialsError(DomainError):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class AccessDeniedError(DomainError):
    code = "ACCESS_DENIED"
    default_message = "Access denied"


class CannotDeactivateAdminError(DomainError):
    code = "CANNOT_DEACTIVATE_ADMIN"
    default_message = "Administrators cannot deactivate themselves"


class ResetCodeInUseError(DomainError):
    code = "RESET_CODE_IN_USE"
    default_message = "Reset code already in use"
