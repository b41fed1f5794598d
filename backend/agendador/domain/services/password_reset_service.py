from __future__ import annotations
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable
import logging
import secrets

from ..contracts import RepositorioTokens, RepositorioUsuarios, ServicoEmail, ServicoHash
from ..exceptions import InvalidResetTokenError, ResetCodeInUseError, ResetTokenExpiredError, UserNotFoundError
from ..relogio import Relogio, agora_utc

logger = logging.getLogger(__name__)

MENSAGEM_SOLICITACAO = "If this email exists, a reset code will be sent"
MENSAGEM_REDEFINICAO = "Password reset successfully"

VALIDADE_CODIGO = timedelta(minutes=15)


def codigo_seguro() -> str:
    """Código de 6 dígitos uniforme em [100000, 999999], gerado por CSPRNG."""
    return str(100000 + secrets.randbelow(900000))


@dataclass
class RedefinicaoSenhaService:
    """Emissão e consumo de códigos de redefinição de senha.

    A solicitação responde sempre com a mesma mensagem, exista ou não o e-mail.
    Cada nova solicitação invalida os códigos anteriores do usuário, e um
    código consumido nunca volta a ser aceito.
    """

    usuarios: RepositorioUsuarios
    tokens: RepositorioTokens
    hash: ServicoHash
    email: ServicoEmail
    relogio: Relogio = agora_utc
    gerador_codigo: Callable[[], str] = codigo_seguro

    def solicitar(self, email: str) -> str:
        usuario = self.usuarios.buscar_por_email(email)
        if not usuario:
            return MENSAGEM_SOLICITACAO

        self.tokens.remover_por_usuario(usuario.id)

        codigo = self._gravar_codigo(usuario.id)

        try:
            self.email.enviar_codigo_redefinicao(usuario.email, codigo)
        except Exception:  # noqa: BLE001
            # o código já está gravado e continua válido mesmo sem o e-mail
            logger.exception("Falha ao enviar código de redefinição para o usuário %s", usuario.id)

        return MENSAGEM_SOLICITACAO

    def redefinir(self, email: str, codigo: str, nova_senha: str) -> str:
        usuario = self.usuarios.buscar_por_email(email)
        if not usuario:
            raise UserNotFoundError()

        token = self.tokens.buscar_por_token(codigo)
        if not token or token.usuario_id != usuario.id:
            raise InvalidResetTokenError()

        # a checagem de uso vem antes da de expiração: código usado e vencido é "inválido"
        if token.usado:
            raise InvalidResetTokenError()

        agora = self.relogio()
        if token.expirado(agora):
            raise ResetTokenExpiredError()

        if not self.tokens.marcar_usado(token.id, agora):
            raise InvalidResetTokenError()

        self.usuarios.atualizar_senha(usuario.id, self.hash.gerar(nova_senha))
        logger.info("Senha redefinida para o usuário %s", usuario.id)
        return MENSAGEM_REDEFINICAO

    def _gravar_codigo(self, usuario_id: str) -> str:
        # códigos são únicos na tabela; sorteia de novo até a gravação ser aceita
        expira_em = self.relogio() + VALIDADE_CODIGO
        while True:
            codigo = self.gerador_codigo()
            try:
                self.tokens.criar(usuario_id, codigo, expira_em)
            except ResetCodeInUseError:
                logger.debug("Código de redefinição repetido; sorteando outro")
                continue
            return codigo
