import threading

import pytest

from agendador.db import de_texto, para_texto
from agendador.domain import StatusConsulta
from agendador.domain.exceptions import AppointmentConflictError, AppointmentNotFoundError, ResetCodeInUseError
from agendador.storage import Store

from conftest import horario


def test_texto_de_instante_preserva_ordem():
    cedo, tarde = horario(20, 9, 59), horario(20, 10)
    assert para_texto(cedo) < para_texto(tarde)
    assert de_texto(para_texto(tarde)) == tarde


def test_repositorio_recusa_sobreposicao_mesmo_sem_checagem_previa(store, profissional, paciente):
    store.consultas.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    with pytest.raises(AppointmentConflictError):
        store.consultas.criar(profissional.id, paciente.id, horario(20, 9, 45), horario(20, 11))


def test_remarcacao_no_repositorio_recusa_sobreposicao(store, profissional, paciente):
    store.consultas.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10))
    segunda = store.consultas.criar(profissional.id, paciente.id, horario(20, 11), horario(20, 12))
    with pytest.raises(AppointmentConflictError):
        store.consultas.atualizar(segunda.id, inicio=horario(20, 9, 30))
    assert store.consultas.buscar_por_id(segunda.id).inicio == horario(20, 11)


def test_status_de_consulta_inexistente(store):
    with pytest.raises(AppointmentNotFoundError):
        store.consultas.atualizar_status("nao-existe", StatusConsulta.CANCELADO)


def test_agendamentos_concorrentes_no_mesmo_horario(db, relogio, email, profissional, paciente):
    # cada thread usa sua própria instância, como requisições simultâneas
    lojas = [Store(db, relogio=relogio, email=email) for _ in range(8)]
    barreira = threading.Barrier(len(lojas))
    criadas, conflitos, outros = [], [], []

    def agendar(loja):
        barreira.wait()
        try:
            criadas.append(loja.agendamentos.criar(profissional.id, paciente.id, horario(20, 9), horario(20, 10)))
        except AppointmentConflictError:
            conflitos.append(1)
        except Exception as err:  # noqa: BLE001
            outros.append(err)

    threads = [threading.Thread(target=agendar, args=(loja,)) for loja in lojas]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outros == []
    assert len(criadas) == 1
    assert len(conflitos) == len(lojas) - 1
    assert len(_consultas_gravadas(db, profissional.id)) == 1


def _consultas_gravadas(db, usuario_id):
    with db.conexao() as conn:
        return conn.execute("SELECT id FROM consultas WHERE usuario_id = ?", (usuario_id,)).fetchall()


def test_codigo_de_redefinicao_repetido_e_recusado(store, profissional):
    store.tokens.criar(profissional.id, "123456", horario(20, 9))
    with pytest.raises(ResetCodeInUseError):
        store.tokens.criar(profissional.id, "123456", horario(20, 9))


def test_codigo_so_e_consumido_uma_vez(store, profissional):
    token = store.tokens.criar(profissional.id, "123456", horario(20, 9))
    assert store.tokens.marcar_usado(token.id, horario(15, 12)) is True
    assert store.tokens.marcar_usado(token.id, horario(15, 13)) is False
    assert store.tokens.buscar_por_token("123456").usado_em == horario(15, 12)
