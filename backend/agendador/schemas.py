from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, model_validator

from .domain import Perfil, StatusConsulta, Usuario
from .domain.relogio import como_utc


# e-mails são comparados sempre em minúsculas
Email = Annotated[EmailStr, AfterValidator(Usuario.normalizar_email)]


class RegistroRequest(BaseModel):
    nome: str = Field(min_length=2)
    email: Email
    senha: str = Field(min_length=6)


class LoginRequest(BaseModel):
    email: Email
    senha: str


class UsuarioOut(BaseModel):
    id: str
    nome: str
    email: str
    perfil: Perfil
    desativado_em: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    token: str


class LoginResponse(TokenResponse):
    usuario: UsuarioOut


class SolicitarRedefinicaoRequest(BaseModel):
    email: Email


class RedefinirSenhaRequest(BaseModel):
    email: Email
    codigo: str = Field(pattern=r"^\d{6}$")
    nova_senha: str = Field(min_length=6)


class MensagemResponse(BaseModel):
    message: str


class PacienteCreate(BaseModel):
    nome: str = Field(min_length=2)
    telefone: Optional[str] = None
    observacoes: Optional[str] = None


class PacienteUpdate(BaseModel):
    """Campos omitidos não mudam; ``null`` em telefone/observações limpa o valor."""

    nome: Optional[str] = Field(default=None, min_length=2)
    telefone: Optional[str] = None
    observacoes: Optional[str] = None


class PacienteOut(BaseModel):
    id: str
    nome: str
    telefone: Optional[str] = None
    observacoes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PacienteListaOut(PacienteOut):
    ativo: bool


class RemocaoPacienteOut(BaseModel):
    acao: Literal["deleted", "deactivated"]


class AgendamentoRequest(BaseModel):
    paciente_id: str
    inicio: datetime
    fim: datetime
    observacoes: Optional[str] = None

    @model_validator(mode="after")
    def _intervalo(self) -> "AgendamentoRequest":
        if como_utc(self.inicio) >= como_utc(self.fim):
            raise ValueError("Start time must be before end time")
        return self


class AtualizarConsultaRequest(BaseModel):
    """Campos omitidos não mudam; ``observacoes: null`` limpa o texto."""

    inicio: Optional[datetime] = None
    fim: Optional[datetime] = None
    observacoes: Optional[str] = None

    @model_validator(mode="after")
    def _intervalo(self) -> "AtualizarConsultaRequest":
        if self.inicio and self.fim and como_utc(self.inicio) >= como_utc(self.fim):
            raise ValueError("Start time must be before end time")
        return self


class AtualizarStatusRequest(BaseModel):
    status: Literal["REALIZADO", "CANCELADO"]


class ConsultaListaOut(BaseModel):
    id: str
    paciente_id: str
    paciente_nome: str
    inicio: datetime
    fim: datetime
    status: StatusConsulta

    model_config = ConfigDict(from_attributes=True)


class ConsultaOut(ConsultaListaOut):
    observacoes: Optional[str] = None


class ErroOut(BaseModel):
    error: str
    message: str
