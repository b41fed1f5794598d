from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
import json
import logging
import sqlite3

from . import config
from .db import Database, de_texto, para_texto
from .domain import (
    AgendamentoService,
    PacienteService,
    Perfil,
    RedefinicaoSenhaService,
    StatusConsulta,
    UsuarioService,
)
from .domain.contracts import NAO_INFORMADO, ServicoEmail, ServicoHash, ServicoToken
from .domain.entities import Consulta, Paciente, TokenRedefinicao, Usuario
from .domain.enums import AcaoAuditoria, EntidadeAuditoria
from .domain.exceptions import (
    AppointmentConflictError,
    AppointmentNotFoundError,
    PatientNotFoundError,
    ResetCodeInUseError,
)
from .domain.relogio import Relogio, agora_utc
from .email_service import criar_servico_email
from .security import HashPasslib, TokenJWT

logger = logging.getLogger(__name__)


def _usuario(row: sqlite3.Row) -> Usuario:
    return Usuario(
        _id=row["id"],
        _nome=row["nome"],
        _email=row["email"],
        _senha_hash=row["senha_hash"],
        _perfil=Perfil(row["perfil"]),
        _desativado_em=de_texto(row["desativado_em"]),
        _criado_em=de_texto(row["criado_em"]),
    )


def _paciente(row: sqlite3.Row) -> Paciente:
    return Paciente(
        id=row["id"],
        usuario_id=row["usuario_id"],
        nome=row["nome"],
        telefone=row["telefone"],
        observacoes=row["observacoes"],
        desativado_em=de_texto(row["desativado_em"]),
        criado_em=de_texto(row["criado_em"]),
    )


def _consulta(row: sqlite3.Row) -> Consulta:
    return Consulta(
        _id=row["id"],
        _usuario_id=row["usuario_id"],
        _paciente_id=row["paciente_id"],
        _inicio=de_texto(row["inicio"]),
        _fim=de_texto(row["fim"]),
        _status=StatusConsulta(row["status"]),
        _observacoes=row["observacoes"],
        _criada_em=de_texto(row["criada_em"]),
        _atualizada_em=de_texto(row["atualizada_em"]),
    )


def _token(row: sqlite3.Row) -> TokenRedefinicao:
    return TokenRedefinicao(
        id=row["id"],
        usuario_id=row["usuario_id"],
        token=row["token"],
        expira_em=de_texto(row["expira_em"]),
        usado_em=de_texto(row["usado_em"]),
        criado_em=de_texto(row["criado_em"]),
    )


class UsuariosSQLite:
    def __init__(self, db: Database) -> None:
        self.db = db

    def criar(self, usuario: Usuario) -> Usuario:
        with self.db.conexao() as conn:
            conn.execute(
                """
                INSERT INTO usuarios (id, nome, email, senha_hash, perfil, desativado_em, criado_em)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    usuario.id,
                    usuario.nome,
                    usuario.email,
                    usuario.senha_hash,
                    usuario.perfil.value,
                    para_texto(usuario.desativado_em),
                    para_texto(usuario.criado_em),
                ),
            )
        return usuario

    def buscar_por_email(self, email: str) -> Optional[Usuario]:
        with self.db.conexao() as conn:
            row = conn.execute(
                "SELECT * FROM usuarios WHERE email = ?", (Usuario.normalizar_email(email),)
            ).fetchone()
        return _usuario(row) if row else None

    def buscar_por_id(self, usuario_id: str) -> Optional[Usuario]:
        with self.db.conexao() as conn:
            row = conn.execute("SELECT * FROM usuarios WHERE id = ?", (usuario_id,)).fetchone()
        return _usuario(row) if row else None

    def listar(self) -> List[Usuario]:
        with self.db.conexao() as conn:
            rows = conn.execute("SELECT * FROM usuarios ORDER BY criado_em DESC").fetchall()
        return [_usuario(r) for r in rows]

    def atualizar_senha(self, usuario_id: str, senha_hash: str) -> None:
        with self.db.conexao() as conn:
            conn.execute("UPDATE usuarios SET senha_hash = ? WHERE id = ?", (senha_hash, usuario_id))

    def desativar(self, usuario_id: str, quando: datetime) -> None:
        with self.db.conexao() as conn:
            conn.execute("UPDATE usuarios SET desativado_em = ? WHERE id = ?", (para_texto(quando), usuario_id))


class PacientesSQLite:
    def __init__(self, db: Database) -> None:
        self.db = db

    def criar(self, paciente: Paciente) -> Paciente:
        with self.db.conexao() as conn:
            conn.execute(
                """
                INSERT INTO pacientes (id, usuario_id, nome, telefone, observacoes, desativado_em, criado_em, atualizado_em)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    paciente.id,
                    paciente.usuario_id,
                    paciente.nome,
                    paciente.telefone,
                    paciente.observacoes,
                    para_texto(paciente.desativado_em),
                    para_texto(paciente.criado_em),
                    para_texto(paciente.criado_em),
                ),
            )
        return paciente

    def buscar_por_id(self, paciente_id: str) -> Optional[Paciente]:
        with self.db.conexao() as conn:
            row = conn.execute("SELECT * FROM pacientes WHERE id = ?", (paciente_id,)).fetchone()
        return _paciente(row) if row else None

    def buscar_por_id_e_usuario(self, paciente_id: str, usuario_id: str) -> Optional[Paciente]:
        with self.db.conexao() as conn:
            row = conn.execute(
                "SELECT * FROM pacientes WHERE id = ? AND usuario_id = ?", (paciente_id, usuario_id)
            ).fetchone()
        return _paciente(row) if row else None

    def buscar_por_ids(self, paciente_ids: Iterable[str]) -> List[Paciente]:
        ids = list(paciente_ids)
        if not ids:
            return []
        marcadores = ", ".join("?" for _ in ids)
        with self.db.conexao() as conn:
            rows = conn.execute(f"SELECT * FROM pacientes WHERE id IN ({marcadores})", ids).fetchall()
        return [_paciente(r) for r in rows]

    def listar_por_usuario(self, usuario_id: str) -> List[Paciente]:
        # ativos primeiro, depois por nome
        with self.db.conexao() as conn:
            rows = conn.execute(
                """
                SELECT * FROM pacientes WHERE usuario_id = ?
                ORDER BY desativado_em IS NOT NULL, desativado_em, nome COLLATE NOCASE
                """,
                (usuario_id,),
            ).fetchall()
        return [_paciente(r) for r in rows]

    def atualizar(
        self,
        paciente_id: str,
        *,
        nome: Optional[str] = None,
        telefone: Any = NAO_INFORMADO,
        observacoes: Any = NAO_INFORMADO,
    ) -> Paciente:
        campos: Dict[str, Any] = {}
        if nome is not None:
            campos["nome"] = nome
        if telefone is not NAO_INFORMADO:
            campos["telefone"] = telefone
        if observacoes is not NAO_INFORMADO:
            campos["observacoes"] = observacoes
        campos["atualizado_em"] = para_texto(agora_utc())

        atribuicoes = ", ".join(f"{coluna} = ?" for coluna in campos)
        with self.db.conexao() as conn:
            conn.execute(f"UPDATE pacientes SET {atribuicoes} WHERE id = ?", (*campos.values(), paciente_id))
            row = conn.execute("SELECT * FROM pacientes WHERE id = ?", (paciente_id,)).fetchone()
        if not row:
            raise PatientNotFoundError()
        return _paciente(row)

    def remover(self, paciente_id: str) -> None:
        with self.db.conexao() as conn:
            conn.execute("DELETE FROM pacientes WHERE id = ?", (paciente_id,))

    def desativar(self, paciente_id: str, quando: datetime) -> None:
        with self.db.conexao() as conn:
            conn.execute(
                "UPDATE pacientes SET desativado_em = ?, atualizado_em = ? WHERE id = ?",
                (para_texto(quando), para_texto(quando), paciente_id),
            )

    def contar_consultas(self, paciente_id: str) -> int:
        with self.db.conexao() as conn:
            (total,) = conn.execute("SELECT COUNT(*) FROM consultas WHERE paciente_id = ?", (paciente_id,)).fetchone()
        return total


class ConsultasSQLite:
    """Consultas em SQLite.

    ``criar`` e ``atualizar`` (com mudança de horário) repetem a busca de
    conflito dentro de uma transação ``BEGIN IMMEDIATE``, de modo que duas
    gravações concorrentes sobrepostas para o mesmo usuário nunca são ambas
    aceitas.
    """

    _SQL_CONFLITO = """
        SELECT * FROM consultas
        WHERE usuario_id = ?
          AND status != ?
          AND inicio < ?
          AND fim > ?
          AND (? IS NULL OR id != ?)
        ORDER BY inicio
        LIMIT 1
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def criar(
        self,
        usuario_id: str,
        paciente_id: str,
        inicio: datetime,
        fim: datetime,
        observacoes: Optional[str] = None,
    ) -> Consulta:
        consulta = Consulta.nova(usuario_id, paciente_id, inicio, fim, observacoes)
        with self.db.transacao() as conn:
            if self._conflitante(conn, usuario_id, consulta.inicio, consulta.fim):
                raise AppointmentConflictError()
            conn.execute(
                """
                INSERT INTO consultas (id, usuario_id, paciente_id, inicio, fim, status, observacoes, criada_em, atualizada_em)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    consulta.id,
                    consulta.usuario_id,
                    consulta.paciente_id,
                    para_texto(consulta.inicio),
                    para_texto(consulta.fim),
                    consulta.status.value,
                    consulta.observacoes,
                    para_texto(consulta.criada_em),
                    para_texto(consulta.atualizada_em),
                ),
            )
        return consulta

    def buscar_por_id(self, consulta_id: str) -> Optional[Consulta]:
        with self.db.conexao() as conn:
            return self._buscar(conn, consulta_id)

    def buscar_por_id_e_usuario(self, consulta_id: str, usuario_id: str) -> Optional[Consulta]:
        with self.db.conexao() as conn:
            row = conn.execute(
                "SELECT * FROM consultas WHERE id = ? AND usuario_id = ?", (consulta_id, usuario_id)
            ).fetchone()
        return _consulta(row) if row else None

    def listar_por_usuario_e_periodo(self, usuario_id: str, inicio: datetime, fim: datetime) -> List[Consulta]:
        with self.db.conexao() as conn:
            rows = conn.execute(
                """
                SELECT * FROM consultas
                WHERE usuario_id = ? AND inicio >= ? AND inicio <= ?
                ORDER BY inicio ASC
                """,
                (usuario_id, para_texto(inicio), para_texto(fim)),
            ).fetchall()
        return [_consulta(r) for r in rows]

    def buscar_conflitante(
        self,
        usuario_id: str,
        inicio: datetime,
        fim: datetime,
        excluir_id: Optional[str] = None,
    ) -> Optional[Consulta]:
        with self.db.conexao() as conn:
            return self._conflitante(conn, usuario_id, inicio, fim, excluir_id)

    def atualizar(
        self,
        consulta_id: str,
        *,
        inicio: Optional[datetime] = None,
        fim: Optional[datetime] = None,
        observacoes: Any = NAO_INFORMADO,
    ) -> Consulta:
        with self.db.transacao() as conn:
            atual = self._buscar(conn, consulta_id)
            if not atual:
                raise AppointmentNotFoundError()

            campos: Dict[str, Any] = {}
            if inicio is not None or fim is not None:
                novo_inicio = inicio if inicio is not None else atual.inicio
                novo_fim = fim if fim is not None else atual.fim
                if self._conflitante(conn, atual.usuario_id, novo_inicio, novo_fim, consulta_id):
                    raise AppointmentConflictError()
                if inicio is not None:
                    campos["inicio"] = para_texto(inicio)
                if fim is not None:
                    campos["fim"] = para_texto(fim)
            if observacoes is not NAO_INFORMADO:
                campos["observacoes"] = observacoes
            campos["atualizada_em"] = para_texto(agora_utc())

            atribuicoes = ", ".join(f"{coluna} = ?" for coluna in campos)
            conn.execute(f"UPDATE consultas SET {atribuicoes} WHERE id = ?", (*campos.values(), consulta_id))
            return self._buscar(conn, consulta_id)

    def atualizar_status(self, consulta_id: str, status: StatusConsulta) -> Consulta:
        with self.db.conexao() as conn:
            cur = conn.execute(
                "UPDATE consultas SET status = ?, atualizada_em = ? WHERE id = ?",
                (status.value, para_texto(agora_utc()), consulta_id),
            )
            if cur.rowcount == 0:
                raise AppointmentNotFoundError()
            return self._buscar(conn, consulta_id)

    def _buscar(self, conn: sqlite3.Connection, consulta_id: str) -> Optional[Consulta]:
        row = conn.execute("SELECT * FROM consultas WHERE id = ?", (consulta_id,)).fetchone()
        return _consulta(row) if row else None

    def _conflitante(
        self,
        conn: sqlite3.Connection,
        usuario_id: str,
        inicio: datetime,
        fim: datetime,
        excluir_id: Optional[str] = None,
    ) -> Optional[Consulta]:
        row = conn.execute(
            self._SQL_CONFLITO,
            (
                usuario_id,
                StatusConsulta.CANCELADO.value,
                para_texto(fim),
                para_texto(inicio),
                excluir_id,
                excluir_id,
            ),
        ).fetchone()
        return _consulta(row) if row else None


class TokensSQLite:
    def __init__(self, db: Database) -> None:
        self.db = db

    def criar(self, usuario_id: str, token: str, expira_em: datetime) -> TokenRedefinicao:
        novo = TokenRedefinicao.novo(usuario_id, token, expira_em)
        with self.db.conexao() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO tokens_redefinicao (id, usuario_id, token, expira_em, usado_em, criado_em)
                    VALUES (?, ?, ?, ?, NULL, ?)
                    """,
                    (novo.id, novo.usuario_id, novo.token, para_texto(novo.expira_em), para_texto(novo.criado_em)),
                )
            except sqlite3.IntegrityError as err:
                if "tokens_redefinicao.token" not in str(err):
                    raise
                raise ResetCodeInUseError() from err
        return novo

    def buscar_por_token(self, token: str) -> Optional[TokenRedefinicao]:
        with self.db.conexao() as conn:
            row = conn.execute("SELECT * FROM tokens_redefinicao WHERE token = ?", (token,)).fetchone()
        return _token(row) if row else None

    def marcar_usado(self, token_id: str, quando: datetime) -> bool:
        # condicional: entre requisições simultâneas só uma consome o código
        with self.db.conexao() as conn:
            cur = conn.execute(
                "UPDATE tokens_redefinicao SET usado_em = ? WHERE id = ? AND usado_em IS NULL",
                (para_texto(quando), token_id),
            )
            return cur.rowcount == 1

    def remover_por_usuario(self, usuario_id: str) -> None:
        with self.db.conexao() as conn:
            conn.execute("DELETE FROM tokens_redefinicao WHERE usuario_id = ?", (usuario_id,))


class AuditoriaSQLite:
    def __init__(self, db: Database) -> None:
        self.db = db

    def registrar(
        self,
        usuario_id: str,
        acao: AcaoAuditoria,
        entidade: EntidadeAuditoria,
        entidade_id: str,
        detalhes: Optional[Dict[str, Any]] = None,
    ) -> None:
        with self.db.conexao() as conn:
            conn.execute(
                """
                INSERT INTO auditoria (usuario_id, acao, entidade, entidade_id, detalhes, criado_em)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    usuario_id,
                    acao.value,
                    entidade.value,
                    entidade_id,
                    json.dumps(detalhes, default=str) if detalhes is not None else None,
                    para_texto(agora_utc()),
                ),
            )

    def listar_por_entidade(self, entidade_id: str) -> List[Dict[str, Any]]:
        with self.db.conexao() as conn:
            rows = conn.execute(
                "SELECT * FROM auditoria WHERE entidade_id = ? ORDER BY id", (entidade_id,)
            ).fetchall()
        return [
            {
                "usuario_id": r["usuario_id"],
                "acao": AcaoAuditoria(r["acao"]),
                "entidade": EntidadeAuditoria(r["entidade"]),
                "detalhes": json.loads(r["detalhes"]) if r["detalhes"] else None,
            }
            for r in rows
        ]


class Store:
    """Repositórios SQLite e serviços de domínio já conectados entre si."""

    def __init__(
        self,
        db: Database,
        *,
        relogio: Relogio = agora_utc,
        email: Optional[ServicoEmail] = None,
        hash: Optional[ServicoHash] = None,
        tokens_acesso: Optional[ServicoToken] = None,
    ) -> None:
        self.db = db
        self.usuarios = UsuariosSQLite(db)
        self.pacientes = PacientesSQLite(db)
        self.consultas = ConsultasSQLite(db)
        self.tokens = TokensSQLite(db)
        self.auditoria = AuditoriaSQLite(db)

        self.hash = hash or HashPasslib()
        self.tokens_acesso = tokens_acesso or TokenJWT(config.JWT_SECRET, config.JWT_EXPIRES_MINUTES)
        self.email = email or criar_servico_email()

        self.agendamentos = AgendamentoService(self.consultas, self.pacientes, relogio=relogio)
        self.cadastro_pacientes = PacienteService(self.pacientes, self.auditoria, relogio=relogio)
        self.contas = UsuarioService(self.usuarios, self.hash, self.tokens_acesso, relogio=relogio)
        self.redefinicao = RedefinicaoSenhaService(
            self.usuarios, self.tokens, self.hash, self.email, relogio=relogio
        )
        self._seed()

    def usuario_por_token(self, token: str) -> Optional[Usuario]:
        usuario_id = self.tokens_acesso.verificar(token)
        if not usuario_id:
            return None
        return self.usuarios.buscar_por_id(usuario_id)

    def _seed(self) -> None:
        if not (config.ADMIN_EMAIL and config.ADMIN_PASSWORD):
            return
        if self.usuarios.buscar_por_email(config.ADMIN_EMAIL):
            return
        self.contas.registrar(config.ADMIN_NAME, config.ADMIN_EMAIL, config.ADMIN_PASSWORD, perfil=Perfil.ADMIN)
        logger.info("Conta administrativa %s criada", config.ADMIN_EMAIL)


_store: Optional[Store] = None


def get_store() -> Store:
    global _store
    if _store is None:
        _store = Store(Database(config.DB_PATH))
    return _store
