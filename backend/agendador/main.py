from datetime import date
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .domain import StatusConsulta, Usuario
from .domain.contracts import NAO_INFORMADO
from .domain.exceptions import (
    AccessDeniedError,
    AppointmentConflictError,
    AppointmentNotFoundError,
    DomainError,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    InvalidResetTokenError,
    PatientNotFoundError,
    UserNotFoundError,
)
from .schemas import (
    AgendamentoRequest,
    AtualizarConsultaRequest,
    AtualizarStatusRequest,
    ConsultaListaOut,
    ConsultaOut,
    ErroOut,
    LoginRequest,
    LoginResponse,
    MensagemResponse,
    PacienteCreate,
    PacienteListaOut,
    PacienteOut,
    PacienteUpdate,
    RedefinirSenhaRequest,
    RegistroRequest,
    RemocaoPacienteOut,
    SolicitarRedefinicaoRequest,
    TokenResponse,
    UsuarioOut,
)
from .storage import Store, get_store

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Agendador", version="1.0.0", description="API para sistema de agendamento de consultas")
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api = APIRouter(prefix="/api/v1", responses={400: {"model": ErroOut}, 404: {"model": ErroOut}, 409: {"model": ErroOut}})

# demais erros de domínio viram 400
_STATUS_POR_ERRO = (
    (PatientNotFoundError, status.HTTP_404_NOT_FOUND),
    (AppointmentNotFoundError, status.HTTP_404_NOT_FOUND),
    (UserNotFoundError, status.HTTP_404_NOT_FOUND),
    (AppointmentConflictError, status.HTTP_409_CONFLICT),
    (EmailAlreadyExistsError, status.HTTP_409_CONFLICT),
    (InvalidCredentialsError, status.HTTP_401_UNAUTHORIZED),
    (AccessDeniedError, status.HTTP_403_FORBIDDEN),
)


@app.exception_handler(DomainError)
async def _handle_domain_error(request: Request, err: DomainError) -> JSONResponse:
    codigo = next((s for tipo, s in _STATUS_POR_ERRO if isinstance(err, tipo)), status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=codigo, content={"error": err.code, "message": err.message})


@app.exception_handler(RequestValidationError)
async def _handle_validation_error(request: Request, err: RequestValidationError) -> JSONResponse:
    erros = err.errors()
    mensagem = erros[0].get("msg", "Invalid input") if erros else "Invalid input"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "VALIDATION_ERROR", "message": mensagem},
    )


@app.exception_handler(Exception)
async def _handle_unexpected_error(request: Request, err: Exception) -> JSONResponse:
    logger.exception("Erro inesperado em %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "INTERNAL_ERROR", "message": "An unexpected error occurred"},
    )


def _extract_token(auth_header: Optional[str]) -> Optional[str]:
    if not auth_header:
        return None
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1]
    return auth_header


def get_usuario(
    auth: Optional[str] = Header(default=None, alias="Authorization"),
    store: Store = Depends(get_store),
) -> Usuario:
    token = _extract_token(auth)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing authentication token")
    user = store.usuario_por_token(token)
    if not user or not user.ativo:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing authentication token")
    return user


# --- autenticação ---


@api.post("/auth/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def registrar(payload: RegistroRequest, store: Store = Depends(get_store)):
    _, token = store.contas.registrar(payload.nome, payload.email, payload.senha)
    return TokenResponse(token=token)


@api.post("/auth/login", response_model=LoginResponse)
def login(payload: LoginRequest, store: Store = Depends(get_store)):
    usuario, token = store.contas.autenticar(payload.email, payload.senha)
    return LoginResponse(token=token, usuario=UsuarioOut.model_validate(usuario))


@api.post("/auth/forgot-password", response_model=MensagemResponse)
def solicitar_redefinicao(payload: SolicitarRedefinicaoRequest, store: Store = Depends(get_store)):
    return MensagemResponse(message=store.redefinicao.solicitar(payload.email))


@api.post("/auth/reset-password", response_model=MensagemResponse)
def redefinir_senha(payload: RedefinirSenhaRequest, store: Store = Depends(get_store)):
    try:
        mensagem = store.redefinicao.redefinir(payload.email, payload.codigo, payload.nova_senha)
    except UserNotFoundError as err:
        # mesma resposta de código inválido: não revela se o e-mail está cadastrado
        raise InvalidResetTokenError() from err
    return MensagemResponse(message=mensagem)


@api.get("/me", response_model=UsuarioOut)
def me(usuario=Depends(get_usuario)):
    return UsuarioOut.model_validate(usuario)


# --- pacientes ---


@api.post("/patients", response_model=PacienteOut, status_code=status.HTTP_201_CREATED)
def criar_paciente(payload: PacienteCreate, usuario=Depends(get_usuario), store: Store = Depends(get_store)):
    paciente = store.cadastro_pacientes.criar(usuario.id, payload.nome, payload.telefone, payload.observacoes)
    return PacienteOut.model_validate(paciente)


@api.get("/patients", response_model=List[PacienteListaOut])
def listar_pacientes(usuario=Depends(get_usuario), store: Store = Depends(get_store)):
    return [PacienteListaOut.model_validate(p) for p in store.cadastro_pacientes.listar(usuario.id)]


@api.get("/patients/{paciente_id}", response_model=PacienteOut)
def obter_paciente(paciente_id: str, usuario=Depends(get_usuario), store: Store = Depends(get_store)):
    return PacienteOut.model_validate(store.cadastro_pacientes.obter(usuario.id, paciente_id))


@api.put("/patients/{paciente_id}", response_model=PacienteOut)
def atualizar_paciente(
    paciente_id: str,
    payload: PacienteUpdate,
    usuario=Depends(get_usuario),
    store: Store = Depends(get_store),
):
    informados = payload.model_fields_set
    paciente = store.cadastro_pacientes.atualizar(
        usuario.id,
        paciente_id,
        nome=payload.nome,
        telefone=payload.telefone if "telefone" in informados else NAO_INFORMADO,
        observacoes=payload.observacoes if "observacoes" in informados else NAO_INFORMADO,
    )
    return PacienteOut.model_validate(paciente)


@api.delete("/patients/{paciente_id}", response_model=RemocaoPacienteOut)
def remover_paciente(paciente_id: str, usuario=Depends(get_usuario), store: Store = Depends(get_store)):
    return RemocaoPacienteOut(acao=store.cadastro_pacientes.remover(usuario.id, paciente_id))


# --- consultas ---


@api.post("/appointments", response_model=ConsultaOut, status_code=status.HTTP_201_CREATED)
def agendar(payload: AgendamentoRequest, usuario=Depends(get_usuario), store: Store = Depends(get_store)):
    return store.agendamentos.criar(usuario.id, payload.paciente_id, payload.inicio, payload.fim, payload.observacoes)


@api.get("/appointments", response_model=List[ConsultaListaOut])
def listar_consultas(
    dia: date = Query(alias="date"),
    usuario=Depends(get_usuario),
    store: Store = Depends(get_store),
):
    return store.agendamentos.listar_do_dia(usuario.id, dia)


@api.get("/appointments/dates", response_model=List[date])
def datas_com_consultas(
    mes: str = Query(alias="month", pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    usuario=Depends(get_usuario),
    store: Store = Depends(get_store),
):
    return store.agendamentos.datas_com_consultas(usuario.id, mes)


@api.get("/appointments/{consulta_id}", response_model=ConsultaOut)
def obter_consulta(consulta_id: str, usuario=Depends(get_usuario), store: Store = Depends(get_store)):
    return store.agendamentos.obter(usuario.id, consulta_id)


@api.put("/appointments/{consulta_id}", response_model=ConsultaOut)
def atualizar_consulta(
    consulta_id: str,
    payload: AtualizarConsultaRequest,
    usuario=Depends(get_usuario),
    store: Store = Depends(get_store),
):
    return store.agendamentos.atualizar(
        usuario.id,
        consulta_id,
        inicio=payload.inicio,
        fim=payload.fim,
        observacoes=payload.observacoes if "observacoes" in payload.model_fields_set else NAO_INFORMADO,
    )


@api.patch("/appointments/{consulta_id}/status", response_model=ConsultaOut)
def atualizar_status(
    consulta_id: str,
    payload: AtualizarStatusRequest,
    usuario=Depends(get_usuario),
    store: Store = Depends(get_store),
):
    return store.agendamentos.atualizar_status(usuario.id, consulta_id, StatusConsulta(payload.status))


# --- administração ---


@api.get("/admin/users", response_model=List[UsuarioOut])
def listar_usuarios(usuario=Depends(get_usuario), store: Store = Depends(get_store)):
    return [UsuarioOut.model_validate(u) for u in store.contas.listar(usuario.id)]


@api.delete("/admin/users/{usuario_id}", status_code=status.HTTP_204_NO_CONTENT)
def desativar_usuario(usuario_id: str, usuario=Depends(get_usuario), store: Store = Depends(get_store)):
    store.contas.desativar(usuario.id, usuario_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


app.include_router(api)


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("agendador.main:app", host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())
