from datetime import date, datetime, timedelta

import pytest

from agendador.domain import StatusConsulta
from agendador.domain.exceptions import (
    AppointmentConflictError,
    AppointmentNotEditableError,
    AppointmentNotFoundError,
    InvalidAppointmentTimeError,
    PastAppointmentError,
    PatientNotFoundError,
)
from agendador.domain.services.scheduling_service import PACIENTE_DESCONHECIDO

from conftest import AGORA, horario


def test_cria_consulta_com_nome_do_paciente(store, profissional, paciente):
    consulta = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10), "retorno")
    assert consulta.status == StatusConsulta.AGENDADO
    assert consulta.paciente_nome == "João Lima"
    assert consulta.observacoes == "retorno"


def test_nao_permite_sobreposicao(store, profissional, paciente):
    store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    with pytest.raises(AppointmentConflictError):
        store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9, 30), horario(20, 10, 30))


def test_intervalos_que_se_tocam_nao_conflitam(store, profissional, paciente):
    store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    seguinte = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 10), horario(20, 11))
    anterior = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 8), horario(20, 9))
    assert seguinte.inicio == horario(20, 10)
    assert anterior.fim == horario(20, 9)


def test_conflito_considera_apenas_o_proprio_profissional(store, profissional, paciente):
    outro, _ = store.contas.registrar("Bruno Reis", "bruno@clinica.com", "senha123")
    paciente_outro = store.cadastro_pacientes.criar(outro.id, "Maria Alves")
    store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    consulta = store.agendamentos.criar(outro.id, paciente_outro.id, horario(20, 9), horario(20, 10))
    assert consulta.paciente_nome == "Maria Alves"


def test_horario_de_consulta_cancelada_fica_livre(store, profissional, paciente):
    primeira = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    store.agendamentos.atualizar_status(profissional.id, primeira.id, StatusConsulta.CANCELADO)
    nova = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    assert nova.status == StatusConsulta.AGENDADO


def test_inicio_no_passado_e_rejeitado_mesmo_com_fim_futuro(store, profissional, paciente):
    with pytest.raises(PastAppointmentError):
        store.agendamentos.criar(profissional.id, paciente.id, AGORA - timedelta(minutes=1), AGORA + timedelta(hours=1))


def test_inicio_igual_ao_instante_atual_e_aceito(store, profissional, paciente):
    consulta = store.agendamentos.criar(profissional.id, paciente.id, AGORA, AGORA + timedelta(minutes=30))
    assert consulta.inicio == AGORA


def test_paciente_de_outro_profissional_nao_existe(store, paciente):
    outro, _ = store.contas.registrar("Bruno Reis", "bruno@clinica.com", "senha123")
    with pytest.raises(PatientNotFoundError):
        store.agendamentos.criar(outro.id, paciente.id, horario(20, 9), horario(20, 10))


def test_horario_sem_fuso_e_tratado_como_utc(store, profissional, paciente):
    consulta = store.agendamentos.criar(
        profissional.id, paciente.id, datetime(2026, 1, 20, 9, 0), datetime(2026, 1, 20, 10, 0)
    )
    assert consulta.inicio == horario(20, 9)


def test_inicio_igual_ao_fim_e_invalido(store, profissional, paciente):
    with pytest.raises(InvalidAppointmentTimeError):
        store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 9))


def test_remarcar_para_horario_ocupado(store, profissional, paciente):
    store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    segunda = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 11), horario(20, 12))
    with pytest.raises(AppointmentConflictError):
        store.agendamentos.atualizar(profissional.id, segunda.id, inicio=horario(20, 9, 30), fim=horario(20, 11, 30))


def test_remarcar_sobre_o_proprio_horario(store, profissional, paciente):
    consulta = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    remarcada = store.agendamentos.atualizar(profissional.id, consulta.id, fim=horario(20, 10, 30))
    assert remarcada.inicio == horario(20, 9)
    assert remarcada.fim == horario(20, 10, 30)


def test_remarcar_com_apenas_um_horario_que_inverte_o_intervalo(store, profissional, paciente):
    consulta = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    with pytest.raises(InvalidAppointmentTimeError):
        store.agendamentos.atualizar(profissional.id, consulta.id, inicio=horario(20, 10))


def test_observacoes_omitidas_sao_preservadas_e_none_limpa(store, profissional, paciente):
    consulta = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10), "jejum")
    remarcada = store.agendamentos.atualizar(profissional.id, consulta.id, inicio=horario(20, 8))
    assert remarcada.observacoes == "jejum"
    limpa = store.agendamentos.atualizar(profissional.id, consulta.id, observacoes=None)
    assert limpa.observacoes is None


def test_consulta_cancelada_aceita_novas_observacoes_sem_checar_conflito(store, profissional, paciente):
    cancelada = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    store.agendamentos.atualizar_status(profissional.id, cancelada.id, StatusConsulta.CANCELADO)
    store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))

    editada = store.agendamentos.atualizar(profissional.id, cancelada.id, observacoes="paciente desistiu")
    assert editada.status == StatusConsulta.CANCELADO
    assert editada.observacoes == "paciente desistiu"


def test_consulta_realizada_nao_muda_mais(store, profissional, paciente):
    consulta = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    store.agendamentos.atualizar_status(profissional.id, consulta.id, StatusConsulta.REALIZADO)

    with pytest.raises(AppointmentNotEditableError):
        store.agendamentos.atualizar(profissional.id, consulta.id, observacoes="x")
    with pytest.raises(AppointmentNotEditableError):
        store.agendamentos.atualizar_status(profissional.id, consulta.id, StatusConsulta.CANCELADO)
    with pytest.raises(AppointmentNotEditableError):
        store.agendamentos.atualizar_status(profissional.id, consulta.id, StatusConsulta.REALIZADO)

    assert store.agendamentos.obter(profissional.id, consulta.id).status == StatusConsulta.REALIZADO


def test_cancelada_pode_ser_marcada_como_realizada(store, profissional, paciente):
    consulta = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    store.agendamentos.atualizar_status(profissional.id, consulta.id, StatusConsulta.CANCELADO)
    realizada = store.agendamentos.atualizar_status(profissional.id, consulta.id, StatusConsulta.REALIZADO)
    assert realizada.status == StatusConsulta.REALIZADO


def test_consulta_de_outro_profissional_nao_e_encontrada(store, profissional, paciente):
    consulta = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    outro, _ = store.contas.registrar("Bruno Reis", "bruno@clinica.com", "senha123")
    with pytest.raises(AppointmentNotFoundError):
        store.agendamentos.obter(outro.id, consulta.id)
    with pytest.raises(AppointmentNotFoundError):
        store.agendamentos.atualizar_status(outro.id, consulta.id, StatusConsulta.CANCELADO)


def test_agenda_do_dia_em_ordem_e_com_paciente_removido(store, profissional, paciente):
    maria = store.cadastro_pacientes.criar(profissional.id, "Maria Alves")
    store.agendamentos.criar(profissional.id, paciente.id, horario(20, 14), horario(20, 15))
    store.agendamentos.criar(profissional.id, maria.id, horario(20, 9), horario(20, 10))
    store.agendamentos.criar(profissional.id, paciente.id, horario(21, 9), horario(21, 10))
    # remoção direta no repositório: a consulta fica sem paciente
    store.pacientes.remover(maria.id)

    dia = store.agendamentos.listar_do_dia(profissional.id, date(2026, 1, 20))
    assert [c.inicio for c in dia] == [horario(20, 9), horario(20, 14)]
    assert [c.paciente_nome for c in dia] == [PACIENTE_DESCONHECIDO, "João Lima"]


def test_agenda_do_dia_inclui_canceladas(store, profissional, paciente):
    consulta = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    store.agendamentos.atualizar_status(profissional.id, consulta.id, StatusConsulta.CANCELADO)
    dia = store.agendamentos.listar_do_dia(profissional.id, date(2026, 1, 20))
    assert [c.status for c in dia] == [StatusConsulta.CANCELADO]


def test_dias_com_consultas_no_mes(store, profissional, paciente, relogio):
    relogio.instante = horario(1, 0)
    for dia, hora in ((20, 9), (5, 9), (20, 14), (31, 23)):
        store.agendamentos.criar(profissional.id, paciente.id, horario(dia, hora), horario(dia, hora, 30))

    assert store.agendamentos.datas_com_consultas(profissional.id, "2026-01") == [
        date(2026, 1, 5),
        date(2026, 1, 20),
        date(2026, 1, 31),
    ]
    assert store.agendamentos.datas_com_consultas(profissional.id, "2026-02") == []


def test_cenario_de_um_dia_de_atendimento(store, profissional, paciente):
    a = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    with pytest.raises(AppointmentConflictError):
        store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9, 30), horario(20, 10, 30))
    b = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 10), horario(20, 11))

    store.agendamentos.atualizar_status(profissional.id, a.id, StatusConsulta.CANCELADO)
    c = store.agendamentos.criar(profissional.id, paciente.id, horario(20, 9, 30), horario(20, 10))

    dia = store.agendamentos.listar_do_dia(profissional.id, date(2026, 1, 20))
    assert [x.id for x in dia] == [a.id, c.id, b.id]
    assert [x.status for x in dia] == [StatusConsulta.CANCELADO, StatusConsulta.AGENDADO, StatusConsulta.AGENDADO]
