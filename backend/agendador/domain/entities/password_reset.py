from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import uuid

from ..relogio import agora_utc


@dataclass(frozen=True)
class TokenRedefinicao:
    """Código de uso único para redefinição de senha.

    ``usado_em`` nulo indica que o código ainda não foi consumido; tokens
    consumidos permanecem gravados e nunca voltam a ser aceitos.
    """

    id: str
    usuario_id: str
    token: str
    expira_em: datetime
    usado_em: Optional[datetime] = None
    criado_em: datetime = field(default_factory=agora_utc)

    @property
    def usado(self) -> bool:
        return self.usado_em is not None

    def expirado(self, agora: datetime) -> bool:
        return self.expira_em < agora

    @staticmethod
    def novo(usuario_id: str, token: str, expira_em: datetime) -> "TokenRedefinicao":
        return TokenRedefinicao(
            id=str(uuid.uuid4()),
            usuario_id=usuario_id,
            token=token,
            expira_em=expira_em,
        )
