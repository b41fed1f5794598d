"""Fonte de tempo do domínio.

Os serviços recebem um ``Relogio`` (qualquer callable sem argumentos que
devolve um ``datetime`` com fuso) para que as regras possam ser testadas com
horários fixos.
"""
from datetime import datetime, timezone
from typing import Callable

Relogio = Callable[[], datetime]


def agora_utc() -> datetime:
    return datetime.now(timezone.utc)


def como_utc(instante: datetime) -> datetime:
    # datetimes sem fuso são tratados como UTC
    if instante.tzinfo is None:
        return instante.replace(tzinfo=timezone.utc)
    return instante.astimezone(timezone.utc)
