"""Tests for role-based visibility."""
from types import SimpleNamespace

import pytest

from database.models import UserRole
from services.role_gate import (
    can_manage,
    can_manage_dependents,
    can_view,
    parse_role,
    visible_user_ids,
    visible_users,
)


def _user(user_id, role):
    return SimpleNamespace(id=user_id, tipo_usuario=role)


@pytest.fixture
def population():
    return [
        _user(1, UserRole.GESTOR),
        _user(2, UserRole.SOCIO),
        _user(3, UserRole.CLIENTE),
        _user(4, UserRole.CLIENTE),
        _user(5, UserRole.DEPENDENTE),
        _user(6, "gestor"),
    ]


@pytest.mark.parametrize("role", [UserRole.CLIENTE, UserRole.DEPENDENTE])
def test_cliente_and_dependente_see_only_themselves(population, role):
    viewer = _user(99, role)
    assert visible_user_ids(viewer, population) == {99}


def test_gestor_sees_everyone(population):
    viewer = population[0]
    assert visible_user_ids(viewer, population) == {1, 2, 3, 4, 5, 6}


def test_socio_sees_self_clients_and_dependents(population):
    viewer = population[1]
    assert visible_user_ids(viewer, population) == {2, 3, 4, 5}


@pytest.mark.parametrize("role", [None, "", "administrador", 42])
def test_unknown_role_fails_closed(population, role):
    viewer = _user(3, role)
    assert visible_user_ids(viewer, population) == {3}
    assert not can_view(viewer, population[3])


def test_viewer_is_first_and_listed_once(population):
    viewer = population[1]
    result = visible_users(viewer, population + [population[2]])
    assert result[0] is viewer
    assert len(result) == len({user.id for user in result})


def test_manage_excludes_self():
    gestor = _user(1, UserRole.GESTOR)
    cliente = _user(3, UserRole.CLIENTE)
    assert can_view(gestor, gestor)
    assert not can_manage(gestor, gestor)
    assert can_manage(gestor, cliente)
    assert not can_manage(cliente, gestor)


def test_string_roles_are_parsed():
    assert parse_role(" Socio ") == UserRole.SOCIO
    assert parse_role("unknown") is None


def test_dependent_management_roles():
    assert can_manage_dependents("gestor")
    assert can_manage_dependents(UserRole.SOCIO)
    assert not can_manage_dependents("cliente")
    assert not can_manage_dependents(None)
