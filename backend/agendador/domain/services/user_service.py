from __future__ import annotations
from dataclasses import dataclass
from typing import List, Tuple
import logging

from ..contracts import RepositorioUsuarios, ServicoHash, ServicoToken
from ..entities import Usuario
from ..enums import Perfil
from ..exceptions import (
    AccessDeniedError,
    CannotDeactivateAdminError,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    UserNotFoundError,
)
from ..relogio import Relogio, agora_utc

logger = logging.getLogger(__name__)


@dataclass
class UsuarioService:
    """Contas de profissionais: cadastro, login e administração."""

    usuarios: RepositorioUsuarios
    hash: ServicoHash
    tokens: ServicoToken
    relogio: Relogio = agora_utc

    def registrar(self, nome: str, email: str, senha: str, perfil: Perfil = Perfil.PROFISSIONAL) -> Tuple[Usuario, str]:
        if self.usuarios.buscar_por_email(email):
            raise EmailAlreadyExistsError()
        usuario = self.usuarios.criar(Usuario.novo(nome, email, self.hash.gerar(senha), perfil=perfil))
        logger.info("Usuário %s registrado (%s)", usuario.id, usuario.perfil.value)
        return usuario, self.tokens.gerar(usuario.id)

    def autenticar(self, email: str, senha: str) -> Tuple[Usuario, str]:
        usuario = self.usuarios.buscar_por_email(email)
        if not usuario or not usuario.ativo:
            raise InvalidCredentialsError()
        if not self.hash.verificar(senha, usuario.senha_hash):
            raise InvalidCredentialsError()
        return usuario, self.tokens.gerar(usuario.id)

    def listar(self, solicitante_id: str) -> List[Usuario]:
        self._exigir_admin(solicitante_id)
        return self.usuarios.listar()

    def desativar(self, solicitante_id: str, alvo_id: str) -> None:
        self._exigir_admin(solicitante_id)
        if solicitante_id == alvo_id:
            raise CannotDeactivateAdminError()
        if not self.usuarios.buscar_por_id(alvo_id):
            raise UserNotFoundError()
        self.usuarios.desativar(alvo_id, self.relogio())
        logger.info("Usuário %s desativado por %s", alvo_id, solicitante_id)

    def _exigir_admin(self, solicitante_id: str) -> Usuario:
        solicitante = self.usuarios.buscar_por_id(solicitante_id)
        if not solicitante or not solicitante.ativo or not solicitante.administrador:
            raise AccessDeniedError()
        return solicitante
