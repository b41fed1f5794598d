"""Camada de domínio do sistema de agendamento da clínica."""

from .enums import AcaoAuditoria, EntidadeAuditoria, Perfil, StatusConsulta
from .entities import Usuario, Paciente, Consulta, ConsultaDetalhada, TokenRedefinicao
from .services import AgendamentoService, RedefinicaoSenhaService, PacienteService, UsuarioService
from .exceptions import DomainError, SchedulingError, ValidationError

__all__ = [
    "AcaoAuditoria",
    "EntidadeAuditoria",
    "Perfil",
    "StatusConsulta",
    "Usuario",
    "Paciente",
    "Consulta",
    "ConsultaDetalhada",
    "TokenRedefinicao",
    "AgendamentoService",
    "RedefinicaoSenhaService",
    "PacienteService",
    "UsuarioService",
    "DomainError",
    "SchedulingError",
    "ValidationError",
]
