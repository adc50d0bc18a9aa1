"""
Error variants raised by the service layer.

Views map these by type (and ``kind`` for logging) instead of inspecting
message text.  Messages are user facing and kept in Portuguese.
"""


class ServiceError(Exception):
    kind = 'internal'

    def __init__(self, message: str = ''):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    kind = 'not_found'


class BusinessRuleError(ServiceError):
    kind = 'business_rule'


class InvalidQueryError(ServiceError):
    kind = 'invalid'


class ConsultationNotFound(NotFoundError):
    def __init__(self, message: str = 'Consulta não encontrada'):
        super().__init__(message)


class PatientNotFound(NotFoundError):
    def __init__(self, message: str = 'Paciente não encontrado'):
        super().__init__(message)
