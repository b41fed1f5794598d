from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Optional
import logging

from ..contracts import NAO_INFORMADO, RepositorioPacientes, ServicoAuditoria
from ..entities import Paciente
from ..enums import AcaoAuditoria, EntidadeAuditoria
from ..exceptions import PatientNotFoundError, ValidationError
from ..relogio import Relogio, agora_utc

logger = logging.getLogger(__name__)

REMOVIDO = "deleted"
DESATIVADO = "deactivated"


@dataclass
class PacienteService:
    """Cadastro de pacientes de cada profissional, com trilha de auditoria."""

    pacientes: RepositorioPacientes
    auditoria: ServicoAuditoria
    relogio: Relogio = agora_utc

    def criar(
        self,
        usuario_id: str,
        nome: str,
        telefone: Optional[str] = None,
        observacoes: Optional[str] = None,
    ) -> Paciente:
        paciente = self.pacientes.criar(Paciente.novo(usuario_id, nome, telefone, observacoes))
        self.auditoria.registrar(
            usuario_id,
            AcaoAuditoria.CREATE,
            EntidadeAuditoria.PATIENT,
            paciente.id,
            {"nome": paciente.nome, "telefone": paciente.telefone, "observacoes": paciente.observacoes},
        )
        return paciente

    def listar(self, usuario_id: str) -> List[Paciente]:
        return self.pacientes.listar_por_usuario(usuario_id)

    def obter(self, usuario_id: str, paciente_id: str) -> Paciente:
        paciente = self.pacientes.buscar_por_id_e_usuario(paciente_id, usuario_id)
        if not paciente:
            raise PatientNotFoundError()
        return paciente

    def atualizar(
        self,
        usuario_id: str,
        paciente_id: str,
        nome: Optional[str] = None,
        telefone: Any = NAO_INFORMADO,
        observacoes: Any = NAO_INFORMADO,
    ) -> Paciente:
        anterior = self.obter(usuario_id, paciente_id)
        if nome is not None:
            nome = nome.strip()
            if len(nome) < 2:
                raise ValidationError("Name must be at least 2 characters")
        paciente = self.pacientes.atualizar(
            paciente_id,
            nome=nome,
            telefone=telefone,
            observacoes=observacoes,
        )
        self.auditoria.registrar(
            usuario_id,
            AcaoAuditoria.UPDATE,
            EntidadeAuditoria.PATIENT,
            paciente.id,
            {
                "telefone_anterior": anterior.telefone,
                "observacoes_anteriores": anterior.observacoes,
                "telefone_novo": paciente.telefone,
                "observacoes_novas": paciente.observacoes,
            },
        )
        return paciente

    def remover(self, usuario_id: str, paciente_id: str) -> str:
        """Remove o paciente, ou apenas o desativa se ele já tiver consultas.

        Devolve ``"deleted"`` ou ``"deactivated"``.
        """
        paciente = self.obter(usuario_id, paciente_id)

        if self.pacientes.contar_consultas(paciente_id) > 0:
            self.pacientes.desativar(paciente_id, self.relogio())
            self.auditoria.registrar(
                usuario_id,
                AcaoAuditoria.UPDATE,
                EntidadeAuditoria.PATIENT,
                paciente_id,
                {"nome": paciente.nome},
            )
            logger.info("Paciente %s desativado (possui consultas)", paciente_id)
            return DESATIVADO

        self.pacientes.remover(paciente_id)
        self.auditoria.registrar(
            usuario_id,
            AcaoAuditoria.DELETE,
            EntidadeAuditoria.PATIENT,
            paciente_id,
            {"nome": paciente.nome, "telefone": paciente.telefone, "observacoes": paciente.observacoes},
        )
        return REMOVIDO
