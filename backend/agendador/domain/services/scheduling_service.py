from __future__ import annotations
from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional
import logging

from ..contracts import NAO_INFORMADO, RepositorioConsultas, RepositorioPacientes
from ..entities import Consulta, ConsultaDetalhada
from ..enums import StatusConsulta
from ..exceptions import (
    AppointmentConflictError,
    AppointmentNotEditableError,
    AppointmentNotFoundError,
    InvalidAppointmentTimeError,
    PastAppointmentError,
    PatientNotFoundError,
)
from ..relogio import Relogio, agora_utc, como_utc

logger = logging.getLogger(__name__)

PACIENTE_DESCONHECIDO = "Unknown"

_FIM_DO_DIA = time(23, 59, 59, 999000)


@dataclass
class AgendamentoService:
    """Regras de negócio de agendamentos.

    Garante que não existam duas consultas ativas sobrepostas para o mesmo
    usuário, que nenhuma consulta seja marcada no passado e que consultas
    REALIZADO nunca mais mudem. Consultas CANCELADO não ocupam horário.
    """

    consultas: RepositorioConsultas
    pacientes: RepositorioPacientes
    relogio: Relogio = agora_utc

    def criar(
        self,
        usuario_id: str,
        paciente_id: str,
        inicio: datetime,
        fim: datetime,
        observacoes: Optional[str] = None,
    ) -> ConsultaDetalhada:
        paciente = self.pacientes.buscar_por_id_e_usuario(paciente_id, usuario_id)
        if not paciente:
            raise PatientNotFoundError()

        inicio, fim = como_utc(inicio), como_utc(fim)
        # apenas o início é comparado com o instante atual
        if inicio < self.relogio():
            raise PastAppointmentError()

        if self.consultas.buscar_conflitante(usuario_id, inicio, fim):
            raise AppointmentConflictError()

        consulta = self.consultas.criar(usuario_id, paciente_id, inicio, fim, observacoes)
        logger.info("Consulta %s criada para o paciente %s", consulta.id, paciente_id)
        return ConsultaDetalhada.de(consulta, paciente.nome)

    def obter(self, usuario_id: str, consulta_id: str) -> ConsultaDetalhada:
        return self._detalhar(self._obter(usuario_id, consulta_id))

    def atualizar(
        self,
        usuario_id: str,
        consulta_id: str,
        inicio: Optional[datetime] = None,
        fim: Optional[datetime] = None,
        observacoes: Any = NAO_INFORMADO,
    ) -> ConsultaDetalhada:
        """Altera horário e/ou observações.

        ``inicio``/``fim`` ausentes mantêm o valor atual. ``observacoes=None``
        limpa o texto; omitir o argumento preserva o existente. O conflito só
        é verificado novamente quando algum dos horários foi informado.
        """
        existente = self._obter(usuario_id, consulta_id)
        if not existente.editavel:
            raise AppointmentNotEditableError()

        novo_inicio = como_utc(inicio) if inicio is not None else existente.inicio
        novo_fim = como_utc(fim) if fim is not None else existente.fim
        if novo_inicio >= novo_fim:
            raise InvalidAppointmentTimeError()

        muda_horario = inicio is not None or fim is not None
        if muda_horario and self.consultas.buscar_conflitante(
            usuario_id, novo_inicio, novo_fim, excluir_id=consulta_id
        ):
            raise AppointmentConflictError()

        consulta = self.consultas.atualizar(
            consulta_id,
            inicio=novo_inicio if inicio is not None else None,
            fim=novo_fim if fim is not None else None,
            observacoes=observacoes,
        )
        return self._detalhar(consulta)

    def atualizar_status(self, usuario_id: str, consulta_id: str, status: StatusConsulta) -> ConsultaDetalhada:
        existente = self._obter(usuario_id, consulta_id)
        # bloqueia tanto "realizar de novo" quanto cancelar uma consulta realizada
        if not existente.editavel:
            raise AppointmentNotEditableError()

        consulta = self.consultas.atualizar_status(consulta_id, status)
        logger.info("Consulta %s: %s -> %s", consulta_id, existente.status.value, consulta.status.value)
        return self._detalhar(consulta)

    def listar_do_dia(self, usuario_id: str, dia: date) -> List[ConsultaDetalhada]:
        inicio = datetime.combine(dia, time.min, tzinfo=timezone.utc)
        fim = datetime.combine(dia, _FIM_DO_DIA, tzinfo=timezone.utc)
        consultas = self.consultas.listar_por_usuario_e_periodo(usuario_id, inicio, fim)

        ids = list(dict.fromkeys(c.paciente_id for c in consultas))
        nomes: Dict[str, str] = {p.id: p.nome for p in self.pacientes.buscar_por_ids(ids)} if ids else {}
        return [ConsultaDetalhada.de(c, nomes.get(c.paciente_id, PACIENTE_DESCONHECIDO)) for c in consultas]

    def datas_com_consultas(self, usuario_id: str, mes: str) -> List[date]:
        """Dias (UTC) do mês ``AAAA-MM`` que têm ao menos uma consulta."""
        ano, numero = (int(parte) for parte in mes.split("-")[:2])
        ultimo_dia = monthrange(ano, numero)[1]
        inicio = datetime(ano, numero, 1, tzinfo=timezone.utc)
        fim = datetime.combine(date(ano, numero, ultimo_dia), _FIM_DO_DIA, tzinfo=timezone.utc)

        consultas = self.consultas.listar_por_usuario_e_periodo(usuario_id, inicio, fim)
        return sorted({como_utc(c.inicio).date() for c in consultas})

    def _obter(self, usuario_id: str, consulta_id: str) -> Consulta:
        consulta = self.consultas.buscar_por_id_e_usuario(consulta_id, usuario_id)
        if not consulta:
            raise AppointmentNotFoundError()
        return consulta

    def _detalhar(self, consulta: Consulta) -> ConsultaDetalhada:
        paciente = self.pacientes.buscar_por_id(consulta.paciente_id)
        return ConsultaDetalhada.de(consulta, paciente.nome if paciente else PACIENTE_DESCONHECIDO)
