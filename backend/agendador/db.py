from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional
import logging
import sqlite3

from .config import DB_PATH
from .domain.relogio import como_utc

logger = logging.getLogger(__name__)

# largura fixa em UTC: a ordem lexicográfica coincide com a cronológica
_FORMATO_INSTANTE = "%Y-%m-%dT%H:%M:%S.%fZ"

_ESQUEMA = """
CREATE TABLE IF NOT EXISTS usuarios (
    id TEXT PRIMARY KEY,
    nome TEXT NOT NULL,
    email TEXT UNIQUE NOT NULL,
    senha_hash TEXT NOT NULL,
    perfil TEXT NOT NULL,
    desativado_em TEXT,
    criado_em TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS pacientes (
    id TEXT PRIMARY KEY,
    usuario_id TEXT NOT NULL,
    nome TEXT NOT NULL,
    telefone TEXT,
    observacoes TEXT,
    desativado_em TEXT,
    criado_em TEXT NOT NULL,
    atualizado_em TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_pacientes_usuario ON pacientes (usuario_id);

CREATE TABLE IF NOT EXISTS consultas (
    id TEXT PRIMARY KEY,
    usuario_id TEXT NOT NULL,
    paciente_id TEXT NOT NULL,
    inicio TEXT NOT NULL,
    fim TEXT NOT NULL,
    status TEXT NOT NULL,
    observacoes TEXT,
    criada_em TEXT NOT NULL,
    atualizada_em TEXT NOT NULL,
    CHECK (inicio < fim)
);
CREATE INDEX IF NOT EXISTS idx_consultas_usuario_inicio ON consultas (usuario_id, inicio);
CREATE INDEX IF NOT EXISTS idx_consultas_paciente ON consultas (paciente_id);

CREATE TABLE IF NOT EXISTS tokens_redefinicao (
    id TEXT PRIMARY KEY,
    usuario_id TEXT NOT NULL,
    token TEXT UNIQUE NOT NULL,
    expira_em TEXT NOT NULL,
    usado_em TEXT,
    criado_em TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_tokens_usuario ON tokens_redefinicao (usuario_id);

CREATE TABLE IF NOT EXISTS auditoria (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    usuario_id TEXT NOT NULL,
    acao TEXT NOT NULL,
    entidade TEXT NOT NULL,
    entidade_id TEXT NOT NULL,
    detalhes TEXT,
    criado_em TEXT NOT NULL
);
"""


def para_texto(instante: Optional[datetime]) -> Optional[str]:
    if instante is None:
        return None
    return como_utc(instante).strftime(_FORMATO_INSTANTE)


def de_texto(valor: Optional[str]) -> Optional[datetime]:
    if valor is None:
        return None
    return datetime.strptime(valor, _FORMATO_INSTANTE).replace(tzinfo=timezone.utc)


class Database:
    def __init__(self, path: str = DB_PATH) -> None:
        self.path = path
        self._ensure()

    def _connect(self) -> sqlite3.Connection:
        # autocommit: as transações são abertas explicitamente em ``transacao``
        conn = sqlite3.connect(self.path, timeout=30, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure(self) -> None:
        with self.conexao() as conn:
            conn.executescript(_ESQUEMA)
        logger.debug("Esquema verificado em %s", self.path)

    @contextmanager
    def conexao(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transacao(self) -> Iterator[sqlite3.Connection]:
        """Transação que reserva o lock de escrita já no início.

        Com ``BEGIN IMMEDIATE`` duas transações de escrita nunca intercalam a
        leitura de verificação e a escrita: a segunda espera a primeira
        terminar e então enxerga o que ela gravou.
        """
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()
