"""Tests for goal resolution and macro targets."""
from database import models
from services.goals import GoalResolver, get_goals, upsert_goals


def test_missing_goals_fall_back_to_defaults():
    resolver = GoalResolver(2000, 2500)
    assert resolver.resolve(None).as_dict() == {"calorias_diarias": 2000, "agua_diaria_ml": 2500, "peso_objetivo": None}

    row = models.Goal(usuario_id=1, calorias_diarias=0, agua_diaria_ml=None, peso_objetivo=70.0)
    goals = resolver.resolve(row)
    assert goals.calorias_diarias == 2000
    assert goals.agua_diaria_ml == 2500
    assert goals.peso_objetivo == 70.0


def test_macro_targets_split():
    resolver = GoalResolver(2000, 2000)
    assert resolver.macro_targets(2000) == {"protein": 150, "carbs": 225, "fat": 56}
    assert resolver.macro_targets(0) == {"protein": 0, "carbs": 0, "fat": 0}


def test_upsert_keeps_one_row_and_stores_zero_as_null(db, users):
    upsert_goals(db, users.cliente, calorias_diarias=1800, agua_diaria_ml=3000)
    upsert_goals(db, users.cliente, calorias_diarias=0, agua_diaria_ml=2200, peso_objetivo=72)

    assert db.query(models.Goal).filter(models.Goal.usuario_id == users.cliente).count() == 1
    row = db.get(models.Goal, users.cliente)
    assert row.calorias_diarias is None

    goals = get_goals(db, users.cliente)
    assert goals.calorias_diarias == 2000
    assert goals.agua_diaria_ml == 2200
    assert goals.peso_objetivo == 72
