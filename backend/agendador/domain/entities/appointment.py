from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import uuid

from ..enums import StatusConsulta
from ..exceptions import InvalidAppointmentTimeError
from ..relogio import agora_utc, como_utc


@dataclass
class Consulta:
    _id: str
    _usuario_id: str
    _paciente_id: str
    _inicio: datetime
    _fim: datetime
    _status: StatusConsulta = StatusConsulta.AGENDADO
    _observacoes: Optional[str] = None
    _criada_em: datetime = field(default_factory=agora_utc)
    _atualizada_em: datetime = field(default_factory=agora_utc)

    @property
    def id(self) -> str:
        return self._id

    @property
    def usuario_id(self) -> str:
        return self._usuario_id

    @property
    def paciente_id(self) -> str:
        return self._paciente_id

    @property
    def inicio(self) -> datetime:
        return self._inicio

    @property
    def fim(self) -> datetime:
        return self._fim

    @property
    def status(self) -> StatusConsulta:
        return self._status

    @property
    def observacoes(self) -> Optional[str]:
        return self._observacoes

    @property
    def criada_em(self) -> datetime:
        return self._criada_em

    @property
    def atualizada_em(self) -> datetime:
        return self._atualizada_em

    @property
    def editavel(self) -> bool:
        return self._status != StatusConsulta.REALIZADO

    @staticmethod
    def nova(
        usuario_id: str,
        paciente_id: str,
        inicio: datetime,
        fim: datetime,
        observacoes: Optional[str] = None,
    ) -> "Consulta":
        inicio, fim = como_utc(inicio), como_utc(fim)
        if inicio >= fim:
            raise InvalidAppointmentTimeError()
        return Consulta(
            _id=str(uuid.uuid4()),
            _usuario_id=usuario_id,
            _paciente_id=paciente_id,
            _inicio=inicio,
            _fim=fim,
            _observacoes=observacoes,
        )


@dataclass(frozen=True)
class ConsultaDetalhada:
    """Consulta acompanhada do nome do paciente, como é devolvida aos clientes."""

    id: str
    paciente_id: str
    paciente_nome: str
    inicio: datetime
    fim: datetime
    status: StatusConsulta
    observacoes: Optional[str] = None

    @staticmethod
    def de(consulta: Consulta, paciente_nome: str) -> "ConsultaDetalhada":
        return ConsultaDetalhada(
            id=consulta.id,
            paciente_id=consulta.paciente_id,
            paciente_nome=paciente_nome,
            inicio=consulta.inicio,
            fim=consulta.fim,
            status=consulta.status,
            observacoes=consulta.observacoes,
        )
