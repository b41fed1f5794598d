import pytest

from agendador.domain import Perfil
from agendador.domain.exceptions import (
    AccessDeniedError,
    CannotDeactivateAdminError,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    UserNotFoundError,
)


def test_registro_e_login(store):
    usuario, token = store.contas.registrar("Ana Souza", " Ana@Clinica.com", "senha123")
    assert usuario.email == "ana@clinica.com"
    assert usuario.perfil == Perfil.PROFISSIONAL
    assert usuario.senha_hash != "senha123"
    assert store.usuario_por_token(token).id == usuario.id

    logado, _ = store.contas.autenticar("ana@clinica.com", "senha123")
    assert logado.id == usuario.id


def test_email_duplicado(store, profissional):
    with pytest.raises(EmailAlreadyExistsError):
        store.contas.registrar("Outra Ana", "ANA@clinica.com", "senha123")


def test_senha_errada_e_email_desconhecido(store, profissional):
    with pytest.raises(InvalidCredentialsError):
        store.contas.autenticar(profissional.email, "errada")
    with pytest.raises(InvalidCredentialsError):
        store.contas.autenticar("ninguem@clinica.com", "senha123")


def test_token_invalido_nao_identifica_usuario(store):
    assert store.usuario_por_token("nao-e-um-jwt") is None


def test_admin_lista_usuarios(store, admin, profissional):
    ids = {u.id for u in store.contas.listar(admin.id)}
    assert ids == {admin.id, profissional.id}


def test_profissional_nao_administra(store, admin, profissional):
    with pytest.raises(AccessDeniedError):
        store.contas.listar(profissional.id)
    with pytest.raises(AccessDeniedError):
        store.contas.desativar(profissional.id, admin.id)


def test_usuario_desativado_nao_entra(store, admin, profissional):
    store.contas.desativar(admin.id, profissional.id)
    assert not store.usuarios.buscar_por_id(profissional.id).ativo
    with pytest.raises(InvalidCredentialsError):
        store.contas.autenticar(profissional.email, "senha123")


def test_admin_nao_desativa_a_si_mesmo(store, admin):
    with pytest.raises(CannotDeactivateAdminError):
        store.contas.desativar(admin.id, admin.id)


def test_desativar_usuario_inexistente(store, admin):
    with pytest.raises(UserNotFoundError):
        store.contas.desativar(admin.id, "nao-existe")
