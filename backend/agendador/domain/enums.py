from enum import Enum


class Perfil(str, Enum):
    PROFISSIONAL = "PROFISSIONAL"
    ADMIN = "ADMIN"


class StatusConsulta(str, Enum):
    AGENDADO = "AGENDADO"
    REALIZADO = "REALIZADO"
    CANCELADO = "CANCELADO"


class AcaoAuditoria(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class EntidadeAuditoria(str, Enum):
    PATIENT = "PATIENT"
