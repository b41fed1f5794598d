from .user import Usuario
from .patient import Paciente
from .appointment import Consulta, ConsultaDetalhada
from .password_reset import TokenRedefinicao

__all__ = [
    "Usuario",
    "Paciente",
    "Consulta",
    "ConsultaDetalhada",
    "TokenRedefinicao",
]
