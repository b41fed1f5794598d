from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from jose import JWTError, jwt
from passlib.context import CryptContext

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class HashPasslib:
    """Hash de senhas com passlib."""

    def __init__(self, context: CryptContext = pwd_context) -> None:
        self.context = context

    def gerar(self, senha: str) -> str:
        return self.context.hash(senha)

    def verificar(self, senha: str, senha_hash: str) -> bool:
        try:
            return self.context.verify(senha, senha_hash)
        except (ValueError, TypeError) as err:
            logger.warning("Hash de senha ilegível: %s", err)
            return False


class TokenJWT:
    """Credencial bearer: JWT HS256 com o id do usuário em ``sub``."""

    def __init__(self, segredo: str, expira_minutos: int) -> None:
        self.segredo = segredo
        self.validade = timedelta(minutes=expira_minutos)

    def gerar(self, usuario_id: str) -> str:
        agora = datetime.now(timezone.utc)
        claims = {"sub": usuario_id, "iat": int(agora.timestamp()), "exp": int((agora + self.validade).timestamp())}
        return jwt.encode(claims, self.segredo, algorithm=ALGORITHM)

    def verificar(self, token: str) -> Optional[str]:
        try:
            claims = jwt.decode(token, self.segredo, algorithms=[ALGORITHM])
        except JWTError:
            return None
        return claims.get("sub")
