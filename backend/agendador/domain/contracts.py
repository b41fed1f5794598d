"""Contratos dos colaboradores usados pelos serviços de domínio.

Os serviços conversam apenas com estes protocolos; as implementações
concretas (SQLite, passlib, SMTP, JWT) ficam fora do pacote ``domain``.
"""
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol

from .entities import Consulta, Paciente, TokenRedefinicao, Usuario
from .enums import AcaoAuditoria, EntidadeAuditoria, StatusConsulta


class _NaoInformado:
    """Marca campos ausentes em atualizações parciais (``None`` limpa o campo)."""

    def __repr__(self) -> str:
        return "NAO_INFORMADO"

    def __bool__(self) -> bool:
        return False


NAO_INFORMADO: Any = _NaoInformado()


class RepositorioConsultas(Protocol):
    def criar(
        self,
        usuario_id: str,
        paciente_id: str,
        inicio: datetime,
        fim: datetime,
        observacoes: Optional[str] = None,
    ) -> Consulta:
        """Persiste uma consulta AGENDADO.

        Deve ser atômico com a verificação de conflito: se outra consulta
        ativa do mesmo usuário sobrepuser o intervalo no momento da escrita,
        levanta ``AppointmentConflictError``.
        """
        ...

    def buscar_por_id(self, consulta_id: str) -> Optional[Consulta]: ...

    def buscar_por_id_e_usuario(self, consulta_id: str, usuario_id: str) -> Optional[Consulta]: ...

    def listar_por_usuario_e_periodo(self, usuario_id: str, inicio: datetime, fim: datetime) -> List[Consulta]:
        """Consultas com ``inicio`` dentro de [inicio, fim], em ordem crescente."""
        ...

    def buscar_conflitante(
        self,
        usuario_id: str,
        inicio: datetime,
        fim: datetime,
        excluir_id: Optional[str] = None,
    ) -> Optional[Consulta]: ...

    def atualizar(
        self,
        consulta_id: str,
        *,
        inicio: Optional[datetime] = None,
        fim: Optional[datetime] = None,
        observacoes: Any = NAO_INFORMADO,
    ) -> Consulta: ...

    def atualizar_status(self, consulta_id: str, status: StatusConsulta) -> Consulta: ...


class RepositorioPacientes(Protocol):
    def criar(self, paciente: Paciente) -> Paciente: ...

    def buscar_por_id(self, paciente_id: str) -> Optional[Paciente]: ...

    def buscar_por_id_e_usuario(self, paciente_id: str, usuario_id: str) -> Optional[Paciente]: ...

    def buscar_por_ids(self, paciente_ids: Iterable[str]) -> List[Paciente]: ...

    def listar_por_usuario(self, usuario_id: str) -> List[Paciente]: ...

    def atualizar(
        self,
        paciente_id: str,
        *,
        nome: Optional[str] = None,
        telefone: Any = NAO_INFORMADO,
        observacoes: Any = NAO_INFORMADO,
    ) -> Paciente: ...

    def remover(self, paciente_id: str) -> None: ...

    def desativar(self, paciente_id: str, quando: datetime) -> None: ...

    def contar_consultas(self, paciente_id: str) -> int: ...


class RepositorioUsuarios(Protocol):
    def criar(self, usuario: Usuario) -> Usuario: ...

    def buscar_por_email(self, email: str) -> Optional[Usuario]: ...

    def buscar_por_id(self, usuario_id: str) -> Optional[Usuario]: ...

    def listar(self) -> List[Usuario]: ...

    def atualizar_senha(self, usuario_id: str, senha_hash: str) -> None: ...

    def desativar(self, usuario_id: str, quando: datetime) -> None: ...


class RepositorioTokens(Protocol):
    def criar(self, usuario_id: str, token: str, expira_em: datetime) -> TokenRedefinicao:
        """Grava o código; levanta ``ResetCodeInUseError`` se ele já existir."""
        ...

    def buscar_por_token(self, token: str) -> Optional[TokenRedefinicao]: ...

    def marcar_usado(self, token_id: str, quando: datetime) -> bool:
        """Consome o código. Devolve ``False`` se ele já tinha sido usado."""
        ...

    def remover_por_usuario(self, usuario_id: str) -> None: ...


class ServicoAuditoria(Protocol):
    def registrar(
        self,
        usuario_id: str,
        acao: AcaoAuditoria,
        entidade: EntidadeAuditoria,
        entidade_id: str,
        detalhes: Optional[Dict[str, Any]] = None,
    ) -> None: ...


class ServicoHash(Protocol):
    def gerar(self, senha: str) -> str: ...

    def verificar(self, senha: str, senha_hash: str) -> bool: ...


class ServicoToken(Protocol):
    """Emite credenciais bearer opacas vinculadas a um id de usuário."""

    def gerar(self, usuario_id: str) -> str: ...

    def verificar(self, token: str) -> Optional[str]: ...


class ServicoEmail(Protocol):
    def enviar_codigo_redefinicao(self, destinatario: str, codigo: str) -> None:
        """Entrega o código; falhas são sinalizadas com exceção."""
        ...
