# -*- coding: utf-8 -*-
import os
import sys
from datetime import datetime, timedelta, timezone
from typing import List, Tuple

# Adiciona o diretório backend ao Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from agendador import config
from agendador.db import Database
from agendador.domain import Perfil
from agendador.storage import Store

AGORA = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class RelogioFixo:
    """Relógio controlado pelos testes."""

    def __init__(self, instante: datetime = AGORA) -> None:
        self.instante = instante

    def __call__(self) -> datetime:
        return self.instante

    def avancar(self, **kwargs) -> None:
        self.instante += timedelta(**kwargs)


class EmailFalso:
    def __init__(self) -> None:
        self.enviados: List[Tuple[str, str]] = []

    def enviar_codigo_redefinicao(self, destinatario: str, codigo: str) -> None:
        self.enviados.append((destinatario, codigo))

    @property
    def ultimo_codigo(self) -> str:
        return self.enviados[-1][1]


class EmailQuebrado:
    def enviar_codigo_redefinicao(self, destinatario: str, codigo: str) -> None:
        raise ConnectionError("SMTP indisponível")


@pytest.fixture(autouse=True)
def sem_admin_configurado(monkeypatch):
    monkeypatch.setattr(config, "ADMIN_EMAIL", None)
    monkeypatch.setattr(config, "ADMIN_PASSWORD", None)


@pytest.fixture
def relogio() -> RelogioFixo:
    return RelogioFixo()


@pytest.fixture
def email() -> EmailFalso:
    return EmailFalso()


@pytest.fixture
def db(tmp_path) -> Database:
    return Database(str(tmp_path / "agendador_test.db"))


@pytest.fixture
def store(db, relogio, email) -> Store:
    return Store(db, relogio=relogio, email=email)


@pytest.fixture
def profissional(store):
    usuario, _ = store.contas.registrar("Ana Souza", "ana@clinica.com", "senha123")
    return usuario


@pytest.fixture
def admin(store):
    usuario, _ = store.contas.registrar("Admin", "admin@clinica.com", "admin123", perfil=Perfil.ADMIN)
    return usuario


@pytest.fixture
def paciente(store, profissional):
    return store.cadastro_pacientes.criar(profissional.id, "João Lima", "11 99999-0000")


def horario(dia: int, hora: int, minuto: int = 0) -> datetime:
    """Instante UTC em janeiro de 2026."""
    return datetime(2026, 1, dia, hora, minuto, tzinfo=timezone.utc)
