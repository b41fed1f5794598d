from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import uuid

from ..enums import Perfil
from ..exceptions import ValidationError
from ..relogio import agora_utc


@dataclass
class Usuario:
    _id: str
    _nome: str
    _email: str
    _senha_hash: str
    _perfil: Perfil = Perfil.PROFISSIONAL
    _desativado_em: Optional[datetime] = None
    _criado_em: datetime = field(default_factory=agora_utc)

    @property
    def id(self) -> str:
        return self._id

    @property
    def nome(self) -> str:
        return self._nome

    @property
    def email(self) -> str:
        return self._email

    @property
    def senha_hash(self) -> str:
        return self._senha_hash

    @property
    def perfil(self) -> Perfil:
        return self._perfil

    @property
    def desativado_em(self) -> Optional[datetime]:
        return self._desativado_em

    @property
    def criado_em(self) -> datetime:
        return self._criado_em

    @property
    def ativo(self) -> bool:
        return self._desativado_em is None

    @property
    def administrador(self) -> bool:
        return self._perfil == Perfil.ADMIN

    @staticmethod
    def normalizar_email(email: str) -> str:
        return (email or "").lower().strip()

    @staticmethod
    def novo(nome: str, email: str, senha_hash: str, perfil: Perfil = Perfil.PROFISSIONAL) -> "Usuario":
        if not nome or len(nome.strip()) < 2:
            raise ValidationError("Name must be at least 2 characters")
        return Usuario(
            _id=str(uuid.uuid4()),
            _nome=nome.strip(),
            _email=Usuario.normalizar_email(email),
            _senha_hash=senha_hash,
            _perfil=perfil,
        )
