"""Tests for goal percentages, trends, hydration statistics and insights."""
import pytest

from services.derived_metrics import (
    ACHIEVEMENT_RULES,
    INSIGHT_RULES,
    InsightContext,
    all_goals_streak,
    SUCCESS,
    WARNING,
    compute_trend,
    derive,
    engagement_level,
    evaluate_achievements,
    evaluate_insights,
    hydration_stats,
    nutrition_consistency,
    percentage_of_goal,
    progress_percentage,
    trend_line,
    user_level,
    weight_progress,
)
from services.goals import GoalValues


def _ids(insights):
    return [insight.id for insight in insights]


def test_percentage_of_goal_is_absent_for_zero_or_missing_goal():
    assert percentage_of_goal(1500, 0) is None
    assert percentage_of_goal(1500, None) is None
    assert percentage_of_goal(1500, -10) is None


def test_percentage_over_goal_is_not_clamped_but_progress_is():
    pct = percentage_of_goal(2500, 2000)
    assert pct == pytest.approx(125)
    assert progress_percentage(pct) == 100
    assert progress_percentage(None) == 0
    assert progress_percentage(-5) == 0


def test_calorie_rule_bands_around_goal():
    def ids_for(calories):
        ctx = InsightContext(calorias_hoje=calories, meta_calorias=2000, registros_nutricao_30_dias=20)
        return _ids(evaluate_insights(ctx, limit=13))

    assert "calories-low" in ids_for(900)
    assert "calories-below-goal" in ids_for(1200)
    assert "calories-perfect" in ids_for(1800)
    assert "calories-high" in ids_for(2500)
    assert "calories-above-goal" in ids_for(2700)
    assert not {"calories-high", "calories-above-goal"} & set(ids_for(2000))


def test_exceeded_water_goal_is_success_without_low_warning():
    ctx = InsightContext(agua_hoje=2500, meta_agua=2000, registros_nutricao_30_dias=20)
    insights = evaluate_insights(ctx, limit=13)
    by_id = {insight.id: insight for insight in insights}

    assert by_id["hydration-goal-exceeded"].category == SUCCESS
    assert "hydration-low" not in by_id
    assert ctx.water_pct == pytest.approx(125)


def test_rules_with_zero_goal_are_skipped():
    ctx = InsightContext(calorias_hoje=100, agua_hoje=100, meta_calorias=None, meta_agua=None, registros_nutricao_30_dias=20)
    ids = _ids(evaluate_insights(ctx, limit=13))
    assert not [i for i in ids if i.startswith("calories") or i.startswith("hydration")]


def test_insights_sorted_by_priority_and_capped():
    ctx = InsightContext(
        calorias_hoje=500,
        agua_hoje=300,
        meta_calorias=2000,
        meta_agua=2000,
        proteinas_media_7d=20,
    )
    everything = evaluate_insights(ctx, limit=13)
    priorities = [insight.priority for insight in everything]
    assert priorities == sorted(priorities, reverse=True)

    capped = evaluate_insights(ctx, limit=3)
    assert _ids(capped) == ["hydration-low", "calories-low", "engagement-low"]
    assert all(insight.category == WARNING for insight in capped)


def test_default_cap_comes_from_settings():
    ctx = InsightContext(calorias_hoje=500, agua_hoje=300, meta_calorias=2000, meta_agua=2000, proteinas_media_7d=20)
    assert len(evaluate_insights(ctx)) == 3


def test_weight_change_category_depends_on_direction():
    gain = evaluate_insights(InsightContext(pesos=[80.0, 81.5], registros_nutricao_30_dias=20), limit=13)
    loss = evaluate_insights(InsightContext(pesos=[81.5, 80.0], registros_nutricao_30_dias=20), limit=13)
    small = evaluate_insights(InsightContext(pesos=[80.0, 80.5], registros_nutricao_30_dias=20), limit=13)

    assert {i.id: i.category for i in gain}["weight-change"] == "info"
    assert {i.id: i.category for i in loss}["weight-change"] == SUCCESS
    assert "weight-change" not in _ids(small)


def test_every_rule_is_registered_once():
    names = [rule.__name__ for rule in INSIGHT_RULES]
    assert len(names) == len(set(names)) == 13


def test_trend_line_interpolates_short_series_and_fits_long_ones():
    assert trend_line([80, 82]) == [80, 82]
    assert trend_line([1, 5, 3]) == [1, 2, 3]
    assert trend_line([1, 2, 3, 4, 5]) == pytest.approx([1, 2, 3, 4, 5])


def test_weight_trend_ignores_unlogged_days():
    aggregates = [
        {"data": "2024-01-01", "peso_kg": 80.0, "registros": 1},
        {"data": "2024-01-02", "peso_kg": 0.0, "registros": 0},
        {"data": "2024-01-03", "peso_kg": 79.0, "registros": 1},
    ]
    trend = compute_trend(aggregates, "peso_kg")
    assert trend.latest == 79.0
    assert trend.day_over_day == pytest.approx(-1.0)
    assert trend.period_over_period == pytest.approx(-1.0)


def test_hydration_stats_streak_and_average():
    aggregates = [
        {"data": "2024-01-01", "quantidade_ml": 2100, "registros": 3},
        {"data": "2024-01-02", "quantidade_ml": 500, "registros": 1},
        {"data": "2024-01-03", "quantidade_ml": 2000, "registros": 4},
        {"data": "2024-01-04", "quantidade_ml": 2400, "registros": 5},
    ]
    stats = hydration_stats(aggregates, 2000)
    assert stats["dias_meta_atingida"] == 3
    assert stats["sequencia"] == 2
    assert stats["media"] == 1750
    assert stats["dias"][1]["percentual_meta"] == 25


def test_engagement_levels():
    assert engagement_level(50) == "Alto"
    assert engagement_level(20) == "Médio"
    assert engagement_level(19) == "Baixo"


def test_derive_on_empty_inputs_does_not_raise():
    metrics = derive({}, None)
    assert metrics.percentages == {"calorias": None, "agua": None}
    assert metrics.progress == {"calorias": 0.0, "agua": 0.0}
    assert metrics.weight_change is None
    assert metrics.engagement == "Baixo"


def test_derive_uses_summary_for_today_and_counts():
    summary = {
        "calorias_hoje": 2500,
        "agua_hoje": 2500,
        "registros_peso_30_dias": 10,
        "registros_nutricao_30_dias": 30,
        "registros_agua_30_dias": 20,
    }
    metrics = derive({}, GoalValues(2000, 2000), summary, limit=13)
    ids = _ids(metrics.insights)

    assert metrics.percentages["calorias"] == pytest.approx(125)
    assert metrics.progress["calorias"] == 100
    assert "calories-high" in ids
    assert "hydration-goal-exceeded" in ids
    assert "consistency-excellent" in ids
    assert "engagement-high" in ids
    assert metrics.engagement == "Alto"
    assert "insights" in metrics.as_dict()


def test_derive_reads_a_plain_list_as_the_nutrition_series():
    metrics = derive([{"data": "2024-01-01", "calorias": 500, "registros": 1}], {"calorias_diarias": 2000})
    assert metrics.percentages["calorias"] == pytest.approx(25)
    assert metrics.trends["peso_kg"].latest is None
    assert "calories-low" in _ids(metrics.insights)


@pytest.mark.parametrize("aggregates", [42, "nutricao", {"nutricao": "x"}, {"nutricao": [None, 3]}])
def test_derive_degrades_on_malformed_aggregates(aggregates):
    metrics = derive(aggregates, {"calorias_diarias": 2000}, summary=["not", "a", "mapping"])
    assert metrics.trends["calorias"].latest is None
    assert metrics.engagement == "Baixo"


def test_achievement_table_links_to_existing_ids():
    ids = {rule.id for rule in ACHIEVEMENT_RULES}
    assert len(ids) == len(ACHIEVEMENT_RULES) == 15
    assert all(rule.next_id in ids for rule in ACHIEVEMENT_RULES if rule.next_id)


def test_achievements_unlock_by_counter_and_add_up_to_a_level():
    report = evaluate_achievements({
        "registros_nutricao": 8,
        "registros_peso": 10,
        "sequencia_hidratacao": 3,
        "consistencia_nutricional": 0,
        "sequencia_metas": 0,
    })
    unlocked = {achievement.id for achievement in report.unlocked}

    assert unlocked == {"first_step", "first_week", "hydration_starter", "weight_tracker"}
    assert report.level.total_xp == 10 + 25 + 20 + 40
    assert report.level.level == 1
    assert report.level.current_xp == 95
    hero = next(a for a in report.achievements if a.id == "hydration_hero")
    assert hero.progress == pytest.approx(42.9)


def test_user_level_titles():
    assert user_level(0).title == "Iniciante"
    assert user_level(250).level == 3
    assert user_level(250).current_xp == 50
    assert user_level(5000).title == "Imortal"


def test_nutrition_consistency_counts_days_near_the_calorie_goal():
    days = [
        {"data": "2024-01-01", "calorias": 1600, "registros": 2},
        {"data": "2024-01-02", "calorias": 1500, "registros": 1},
        {"data": "2024-01-03", "calorias": 0, "registros": 0},
        {"data": "2024-01-04", "calorias": 2400, "registros": 3},
    ]
    assert nutrition_consistency(days, 2000) == 2
    assert nutrition_consistency(days, None) == 0


def test_all_goals_streak_counts_back_from_the_latest_day():
    nutrition = [
        {"data": "2024-01-01", "calorias": 1900},
        {"data": "2024-01-02", "calorias": 1000},
        {"data": "2024-01-03", "calorias": 1700},
        {"data": "2024-01-04", "calorias": 2100},
    ]
    hydration = [
        {"data": "2024-01-01", "quantidade_ml": 2000},
        {"data": "2024-01-02", "quantidade_ml": 2000},
        {"data": "2024-01-03", "quantidade_ml": 1600},
        {"data": "2024-01-04", "quantidade_ml": 1800},
    ]
    assert all_goals_streak(nutrition, hydration, 2000, 2000) == 2
    assert all_goals_streak(nutrition, hydration, 0, 2000) == 0


def test_weight_progress_compares_distance_to_target():
    assert weight_progress([85.0, 82.0], 78.0) == 1
    assert weight_progress([80.0, 82.0], 78.0) == 0
    assert weight_progress([80.0], 78.0) == 0


def test_derive_exposes_achievements():
    aggregates = {
        "nutricao": [{"data": "2024-01-01", "calorias": 2000, "registros": 1}],
        "hidratacao": [{"data": "2024-01-01", "quantidade_ml": 2000, "registros": 1}],
    }
    summary = {"registros_nutricao_30_dias": 7, "registros_peso_30_dias": 0, "registros_agua_30_dias": 1}
    achievements = derive(aggregates, GoalValues(2000, 2000), summary).as_dict()["achievements"]

    assert achievements["counters"]["sequencia_metas"] == 1
    assert achievements["counters"]["consistencia_nutricional"] == 1
    assert achievements["unlocked_count"] == 2
    assert achievements["level"]["total_xp"] == 35
