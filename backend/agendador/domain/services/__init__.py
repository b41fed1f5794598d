from .scheduling_service import AgendamentoService
from .password_reset_service import RedefinicaoSenhaService
from .patient_service import PacienteService
from .user_service import UsuarioService

__all__ = [
    "AgendamentoService",
    "RedefinicaoSenhaService",
    "PacienteService",
    "UsuarioService",
]
