from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import uuid

from ..exceptions import ValidationError
from ..relogio import agora_utc


@dataclass(frozen=True)
class Paciente:
    id: str
    usuario_id: str
    nome: str
    telefone: Optional[str] = None
    observacoes: Optional[str] = None
    desativado_em: Optional[datetime] = None
    criado_em: datetime = field(default_factory=agora_utc)

    @property
    def ativo(self) -> bool:
        return self.desativado_em is None

    @staticmethod
    def novo(
        usuario_id: str,
        nome: str,
        telefone: Optional[str] = None,
        observacoes: Optional[str] = None,
    ) -> "Paciente":
        if not nome or len(nome.strip()) < 2:
            raise ValidationError("Name must be at least 2 characters")
        return Paciente(
            id=str(uuid.uuid4()),
            usuario_id=usuario_id,
            nome=nome.strip(),
            telefone=(telefone or "").strip() or None,
            observacoes=observacoes,
        )
