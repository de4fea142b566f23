"""Derived metrics: goal percentages, trends, insight triggers and achievements.

Everything here is computed from daily aggregates, resolved goals and the
dashboard summary. Missing inputs degrade to zero or to an omitted value;
nothing in this module raises on bad data.

Insights come from a fixed rule table. Every rule is evaluated on its own
and every match produces one insight; the list is then ordered by priority
(highest first, table order for ties) and cut to the configured limit.
A second table holds achievements. Each row compares one progress counter
with a requirement, and unlocked rows add XP towards the user level.
"""

import math
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, List, Mapping, Optional, Sequence

import numpy as np

from core.config import settings
from core.logger import get_logger
from services.aggregator import logged_days, entry_count
from services.collectors import Domain

logger = get_logger("services.derived_metrics")

SUCCESS = "success"
WARNING = "warning"
INFO = "info"

# Below this many points the trend line is a straight interpolation
# between the first and last point instead of a least-squares fit.
MIN_POINTS_FOR_FIT = 5


def _number(value) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _optional_number(value) -> Optional[float]:
    if value is None:
        return None
    number = _number(value)
    return number if number else None


def percentage_of_goal(value, goal) -> Optional[float]:
    """`value / goal * 100`, unclamped; None when there is no usable goal."""
    goal_number = _number(goal)
    if goal_number <= 0:
        return None
    return _number(value) / goal_number * 100


def progress_percentage(percentage: Optional[float]) -> float:
    """Clamp a goal percentage to [0, 100] for progress bars."""
    if percentage is None:
        return 0.0
    return max(0.0, min(100.0, percentage))


@dataclass(frozen=True)
class Trend:
    """Latest value and deltas of one metric over a window.

    Attributes:
        latest: Most recent value, or None with no data.
        day_over_day: Latest minus the previous point.
        period_over_period: Latest minus the first point of the window.
        line: Trend line with one value per point.
    """

    latest: Optional[float] = None
    day_over_day: Optional[float] = None
    period_over_period: Optional[float] = None
    line: List[float] = field(default_factory=list)


def trend_line(values: Sequence[float]) -> List[float]:
    """Fitted straight line through `values` (evenly spaced points)."""
    points = [_number(v) for v in values]
    n = len(points)
    if n < 2:
        return [round(p, 2) for p in points]
    if n < MIN_POINTS_FOR_FIT:
        first, last = points[0], points[-1]
        return [round(first + (last - first) * i / (n - 1), 2) for i in range(n)]
    x = np.arange(n, dtype=float)
    slope, intercept = np.polyfit(x, np.asarray(points, dtype=float), 1)
    return [round(float(slope * i + intercept), 2) for i in range(n)]


def compute_trend(aggregates: Sequence[dict], field_name: str, only_logged: bool = True) -> Trend:
    """Trend of `field_name` across the aggregates.

    With `only_logged` the zero-filled days are ignored, which is what a
    weight series needs.
    """
    days = logged_days(aggregates) if only_logged else list(aggregates)
    points = [_number(day.get(field_name)) for day in days]
    if not points:
        return Trend()
    if len(points) == 1:
        return Trend(latest=points[0], line=trend_line(points))
    return Trend(
        latest=points[-1],
        day_over_day=points[-1] - points[-2],
        period_over_period=points[-1] - points[0],
        line=trend_line(points),
    )


def hydration_stats(aggregates: Sequence[dict], goal) -> dict:
    """Weekly hydration card numbers: average, days on goal and streak."""
    goal_number = _number(goal)
    days = []
    for day in aggregates:
        amount = _number(day.get("quantidade_ml"))
        pct = percentage_of_goal(amount, goal_number)
        days.append({
            "data": day.get("data"),
            "quantidade": round(amount),
            "percentual_meta": round(pct) if pct is not None else None,
            "atingiu_meta": goal_number > 0 and amount >= goal_number,
        })

    streak = 0
    for day in reversed(days):
        if not day["atingiu_meta"]:
            break
        streak += 1

    total_days = len(days)
    return {
        "dias": days,
        "total_dias": total_days,
        "dias_com_registro": sum(1 for day in days if day["quantidade"] > 0),
        "media": round(sum(day["quantidade"] for day in days) / total_days) if total_days else 0,
        "dias_meta_atingida": sum(1 for day in days if day["atingiu_meta"]),
        "sequencia": streak,
    }


def engagement_level(total_records) -> str:
    total = _number(total_records)
    if total >= 50:
        return "Alto"
    if total >= 20:
        return "Médio"
    return "Baixo"


@dataclass(frozen=True)
class Insight:
    id: str
    category: str
    title: str
    message: str
    priority: int

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class InsightContext:
    """Flat view of everything the insight rules look at."""

    calorias_hoje: float = 0.0
    agua_hoje: float = 0.0
    meta_calorias: Optional[float] = None
    meta_agua: Optional[float] = None
    peso_atual: Optional[float] = None
    meta_peso: Optional[float] = None
    pesos: List[float] = field(default_factory=list)
    proteinas_media_7d: Optional[float] = None
    registros_peso_30_dias: int = 0
    registros_nutricao_30_dias: int = 0
    registros_agua_30_dias: int = 0

    @property
    def total_registros(self) -> int:
        return self.registros_peso_30_dias + self.registros_nutricao_30_dias + self.registros_agua_30_dias

    @property
    def calorie_pct(self) -> Optional[float]:
        return percentage_of_goal(self.calorias_hoje, self.meta_calorias)

    @property
    def water_pct(self) -> Optional[float]:
        return percentage_of_goal(self.agua_hoje, self.meta_agua)


InsightRule = Callable[[InsightContext], Optional[Insight]]


def _hydration_low(ctx):
    pct = ctx.water_pct
    if pct is not None and pct < 50:
        return Insight(
            "hydration-low", WARNING, "Hidratação Insuficiente",
            f"Você consumiu apenas {round(ctx.agua_hoje)}ml de água hoje. "
            f"Tente beber mais para atingir sua meta de {round(ctx.meta_agua)}ml.",
            9,
        )


def _calories_low(ctx):
    pct = ctx.calorie_pct
    if pct is not None and pct < 50:
        return Insight(
            "calories-low", WARNING, "Calorias Baixas",
            f"Você consumiu apenas {pct:.0f}% da sua meta calórica hoje. "
            "Considere fazer uma refeição nutritiva.",
            8,
        )


def _calories_above_goal(ctx):
    pct = ctx.calorie_pct
    if pct is not None and pct > 130:
        return Insight(
            "calories-above-goal", WARNING, "Calorias Acima da Meta",
            f"Você já consumiu {round(ctx.calorias_hoje)} calorias hoje, "
            f"superando sua meta de {round(ctx.meta_calorias)}.",
            8,
        )


def _engagement_low(ctx):
    if ctx.total_registros < 10:
        return Insight(
            "engagement-low", WARNING, "Baixo Engajamento",
            "Você tem poucos registros nos últimos 30 dias. "
            "Tente registrar suas refeições e atividades mais frequentemente.",
            7,
        )


def _calories_high(ctx):
    pct = ctx.calorie_pct
    if pct is not None and 120 < pct <= 130:
        return Insight(
            "calories-high", INFO, "Meta Calórica Superada",
            f"Você já atingiu {pct:.0f}% da sua meta. "
            "Considere atividades físicas ou ajustar as próximas refeições.",
            6,
        )


def _weight_change(ctx):
    if len(ctx.pesos) < 2:
        return None
    latest, previous = ctx.pesos[-1], ctx.pesos[-2]
    if not latest or not previous:
        return None
    change = latest - previous
    if abs(change) < 1:
        return None
    if change > 0:
        return Insight(
            "weight-change", INFO, "Peso Aumentou",
            f"Variação de {abs(change):.1f}kg desde o último registro. Monitore sua alimentação.",
            5,
        )
    return Insight(
        "weight-change", SUCCESS, "Peso Diminuiu",
        f"Variação de {abs(change):.1f}kg desde o último registro. Ótimo progresso!",
        5,
    )


def _calories_below_goal(ctx):
    pct = ctx.calorie_pct
    if pct is not None and 50 <= pct < 70:
        return Insight(
            "calories-below-goal", INFO, "Calorias Abaixo da Meta",
            f"Você consumiu {round(ctx.calorias_hoje)} de {round(ctx.meta_calorias)} calorias hoje. "
            "Certifique-se de estar comendo o suficiente.",
            5,
        )


def _protein_low(ctx):
    if ctx.proteinas_media_7d is not None and ctx.proteinas_media_7d < 50:
        return Insight(
            "protein-low", INFO, "Aumente as Proteínas",
            f"Sua média de proteínas ({ctx.proteinas_media_7d:.0f}g) está baixa. "
            "Inclua mais carnes magras, ovos ou leguminosas.",
            4,
        )


def _weight_near_goal(ctx):
    if ctx.peso_atual and ctx.meta_peso and abs(ctx.peso_atual - ctx.meta_peso) < 2:
        return Insight(
            "weight-near-goal", SUCCESS, "Peso Próximo da Meta!",
            "Você está muito próximo da sua meta de peso. Continue assim!",
            4,
        )


def _calories_perfect(ctx):
    pct = ctx.calorie_pct
    if pct is not None and 80 <= pct <= 100:
        return Insight(
            "calories-perfect", SUCCESS, "Perfeito!",
            "Você está no caminho certo com suas calorias hoje. Continue assim!",
            3,
        )


def _hydration_goal_exceeded(ctx):
    pct = ctx.water_pct
    if pct is not None and pct >= 100:
        return Insight(
            "hydration-goal-exceeded", SUCCESS, "Meta de Hidratação Atingida!",
            f"Parabéns! Você bebeu {round(ctx.agua_hoje)}ml hoje ({pct:.0f}% da meta).",
            2,
        )


def _consistency_excellent(ctx):
    if ctx.registros_nutricao_30_dias >= 25:
        return Insight(
            "consistency-excellent", SUCCESS, "Consistência Incrível!",
            f"{ctx.registros_nutricao_30_dias} registros nos últimos 30 dias. Você é um exemplo!",
            1,
        )


def _engagement_high(ctx):
    if ctx.total_registros > 50:
        return Insight(
            "engagement-high", SUCCESS, "Excelente Engajamento!",
            "Parabéns! Você está muito ativo no registro de suas atividades nutricionais.",
            1,
        )


INSIGHT_RULES: List[InsightRule] = [
    _hydration_low,
    _calories_low,
    _calories_above_goal,
    _engagement_low,
    _calories_high,
    _weight_change,
    _calories_below_goal,
    _protein_low,
    _weight_near_goal,
    _calories_perfect,
    _hydration_goal_exceeded,
    _consistency_excellent,
    _engagement_high,
]


def evaluate_insights(ctx: InsightContext, limit: Optional[int] = None) -> List[Insight]:
    """Run every rule, order matches by priority and keep the top `limit`."""
    matches = []
    for rule in INSIGHT_RULES:
        insight = rule(ctx)
        if insight is not None:
            matches.append(insight)
    matches.sort(key=lambda insight: insight.priority, reverse=True)
    if limit is None:
        limit = settings.insight_limit
    return matches[:max(limit, 0)]


def _goal_value(goals, name: str):
    if goals is None:
        return None
    if isinstance(goals, Mapping):
        return goals.get(name)
    return getattr(goals, name, None)


def _series(aggregates, domain: Domain) -> List[dict]:
    """Daily aggregates of one domain.

    A plain sequence is taken as the nutrition series; anything that is
    neither a mapping nor a sequence yields an empty series.
    """
    if not aggregates:
        return []
    if isinstance(aggregates, Mapping):
        series = aggregates.get(domain)
        if series is None:
            series = aggregates.get(domain.value)
    elif isinstance(aggregates, (list, tuple)):
        series = aggregates if domain is Domain.NUTRITION else None
    else:
        series = None
    if not isinstance(series, (list, tuple)):
        return []
    return [day for day in series if isinstance(day, Mapping)]


def build_context(aggregates, goals, summary: Optional[Mapping] = None) -> InsightContext:
    """Flatten aggregates, goals and the optional summary for the rules.

    Summary values win over what can be read off the aggregates: the summary
    knows about "today" and the last 30 days even when the charted window
    is shorter.
    """
    summary = summary if isinstance(summary, Mapping) else {}
    nutrition = _series(aggregates, Domain.NUTRITION)
    weight = _series(aggregates, Domain.WEIGHT)
    hydration = _series(aggregates, Domain.HYDRATION)

    pesos = [_number(day.get("peso_kg")) for day in logged_days(weight)]
    recent_nutrition = logged_days(nutrition)[-7:]
    protein_avg = None
    if recent_nutrition:
        protein_avg = sum(_number(day.get("proteinas")) for day in recent_nutrition) / len(recent_nutrition)

    calories_today = summary.get("calorias_hoje")
    if calories_today is None:
        calories_today = nutrition[-1].get("calorias") if nutrition else 0
    water_today = summary.get("agua_hoje")
    if water_today is None:
        water_today = hydration[-1].get("quantidade_ml") if hydration else 0

    peso_atual = summary.get("peso_atual")
    if peso_atual is None and pesos:
        peso_atual = pesos[-1]
    if not pesos and summary.get("peso_atual") and summary.get("ultimo_peso"):
        pesos = [_number(summary["ultimo_peso"]), _number(summary["peso_atual"])]

    def _count(key: str, series: List[dict]) -> int:
        value = summary.get(key)
        return int(_number(value)) if value is not None else entry_count(series)

    return InsightContext(
        calorias_hoje=_number(calories_today),
        agua_hoje=_number(water_today),
        meta_calorias=_optional_number(_goal_value(goals, "calorias_diarias") or summary.get("meta_calorias")),
        meta_agua=_optional_number(_goal_value(goals, "agua_diaria_ml") or summary.get("meta_agua")),
        peso_atual=_optional_number(peso_atual),
        meta_peso=_optional_number(_goal_value(goals, "peso_objetivo") or summary.get("meta_peso")),
        pesos=pesos,
        proteinas_media_7d=protein_avg,
        registros_peso_30_dias=_count("registros_peso_30_dias", weight),
        registros_nutricao_30_dias=_count("registros_nutricao_30_dias", nutrition),
        registros_agua_30_dias=_count("registros_agua_30_dias", hydration),
    )


# Achievements

BRONZE = "bronze"
SILVER = "silver"
GOLD = "gold"
PLATINUM = "platinum"
LEGENDARY = "legendary"

XP_PER_LEVEL = 100
# Share of a goal that counts as "met" for nutrition consistency and goal streaks.
GOAL_MET_RATIO = 0.8

LEVEL_TITLES = {
    1: "Iniciante",
    2: "Explorador",
    3: "Dedicado",
    4: "Disciplinado",
    5: "Expert",
    6: "Mestre",
    7: "Campeão",
    8: "Lenda",
    9: "Ícone",
    10: "Imortal",
}


@dataclass(frozen=True)
class AchievementRule:
    """One row of the achievement table.

    `metric` names the progress counter compared against `requirement`.
    """

    id: str
    title: str
    description: str
    kind: str
    tier: str
    metric: str
    requirement: int
    xp: int
    next_id: Optional[str] = None


ACHIEVEMENT_RULES: List[AchievementRule] = [
    AchievementRule("first_step", "Primeiro Passo", "Registre sua primeira refeição",
                    "milestone", BRONZE, "registros_nutricao", 1, 10, "first_week"),
    AchievementRule("first_week", "Primeira Semana", "Complete 7 dias de registros",
                    "consistency", BRONZE, "registros_nutricao", 7, 25, "hydration_starter"),
    AchievementRule("hydration_starter", "Iniciante da Hidratação", "Atinja a meta de água por 3 dias seguidos",
                    "hydration", BRONZE, "sequencia_hidratacao", 3, 20, "hydration_hero"),
    AchievementRule("hydration_hero", "Herói da Hidratação", "Atinja a meta de água por 7 dias seguidos",
                    "hydration", SILVER, "sequencia_hidratacao", 7, 50, "hydration_master"),
    AchievementRule("calorie_tracker", "Contador de Calorias", "Atinja sua meta calórica por 10 dias",
                    "nutrition", SILVER, "consistencia_nutricional", 10, 50, "calorie_master"),
    AchievementRule("weight_tracker", "Monitor de Peso", "Registre peso por 10 dias no mês",
                    "weight", SILVER, "registros_peso", 10, 40, "weight_warrior"),
    AchievementRule("calorie_master", "Mestre das Calorias", "Atinja sua meta calórica por 20 dias",
                    "nutrition", GOLD, "consistencia_nutricional", 20, 100, "nutrition_legend"),
    AchievementRule("weight_warrior", "Guerreiro do Peso", "Registre peso por 20 dias no mês",
                    "weight", GOLD, "registros_peso", 20, 80, "consistency_king"),
    AchievementRule("goal_crusher", "Destruidor de Metas", "Atinja todas as metas por 5 dias seguidos",
                    "streak", GOLD, "sequencia_metas", 5, 120, "perfect_week"),
    AchievementRule("hydration_master", "Mestre da Hidratação", "Atinja a meta de água por 14 dias seguidos",
                    "hydration", PLATINUM, "sequencia_hidratacao", 14, 150, "hydration_legend"),
    AchievementRule("consistency_king", "Rei da Consistência", "Complete 30 dias de registros",
                    "consistency", PLATINUM, "registros_nutricao", 30, 200, "health_legend"),
    AchievementRule("perfect_week", "Semana Perfeita", "Atinja todas as metas por 7 dias seguidos",
                    "streak", PLATINUM, "sequencia_metas", 7, 250, "health_legend"),
    AchievementRule("nutrition_legend", "Lenda da Nutrição", "Atinja sua meta calórica por 50 dias",
                    "nutrition", LEGENDARY, "consistencia_nutricional", 50, 500),
    AchievementRule("hydration_legend", "Lenda da Hidratação", "Atinja a meta de água por 30 dias seguidos",
                    "hydration", LEGENDARY, "sequencia_hidratacao", 30, 500),
    AchievementRule("health_legend", "Lenda da Saúde", "Atinja todas as metas por 14 dias seguidos",
                    "streak", LEGENDARY, "sequencia_metas", 14, 1000),
]


def nutrition_consistency(nutrition: Sequence[dict], calorie_goal) -> int:
    """Logged days whose calories reached 80% of the goal."""
    goal = _number(calorie_goal)
    if goal <= 0:
        return 0
    return sum(
        1 for day in logged_days(nutrition)
        if _number(day.get("calorias")) >= goal * GOAL_MET_RATIO
    )


def weight_progress(pesos: Sequence[float], target) -> int:
    """1 when the latest weight is closer to the target than the first one."""
    goal = _number(target)
    if len(pesos) < 2 or goal <= 0 or not pesos[0] or not pesos[-1]:
        return 0
    return 1 if abs(pesos[-1] - goal) < abs(pesos[0] - goal) else 0


def _by_day(series: Sequence[dict]) -> Dict[date, dict]:
    days = {}
    for day in series:
        try:
            days[date.fromisoformat(str(day.get("data")))] = day
        except ValueError:
            continue
    return days


def all_goals_streak(nutrition: Sequence[dict], hydration: Sequence[dict], calorie_goal, water_goal) -> int:
    """Consecutive days, back from the latest charted day, with both goals met.

    A goal counts as met at 80%; a day missing from either series ends the
    streak.
    """
    calories, water = _number(calorie_goal), _number(water_goal)
    if calories <= 0 or water <= 0:
        return 0
    nutrition_days, hydration_days = _by_day(nutrition), _by_day(hydration)
    if not nutrition_days or not hydration_days:
        return 0

    day = max(max(nutrition_days), max(hydration_days))
    streak = 0
    while day in nutrition_days and day in hydration_days:
        if _number(nutrition_days[day].get("calorias")) < calories * GOAL_MET_RATIO:
            break
        if _number(hydration_days[day].get("quantidade_ml")) < water * GOAL_MET_RATIO:
            break
        streak += 1
        day -= timedelta(days=1)
    return streak


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    kind: str
    tier: str
    requirement: int
    current: int
    unlocked: bool
    xp: int
    progress: float
    next_id: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class UserLevel:
    level: int
    title: str
    total_xp: int
    current_xp: int
    xp_for_next_level: int = XP_PER_LEVEL


def user_level(total_xp: int) -> UserLevel:
    """Level from accumulated XP: one level per 100 XP, titles stop at 10."""
    total = max(int(total_xp), 0)
    level = total // XP_PER_LEVEL + 1
    return UserLevel(
        level=level,
        title=LEVEL_TITLES[min(level, max(LEVEL_TITLES))],
        total_xp=total,
        current_xp=total % XP_PER_LEVEL,
    )


@dataclass(frozen=True)
class AchievementReport:
    counters: Dict[str, int]
    achievements: List[Achievement]
    level: UserLevel

    @property
    def unlocked(self) -> List[Achievement]:
        return [achievement for achievement in self.achievements if achievement.unlocked]

    def as_dict(self) -> dict:
        return {
            "counters": dict(self.counters),
            "achievements": [achievement.as_dict() for achievement in self.achievements],
            "unlocked_count": len(self.unlocked),
            "level": asdict(self.level),
        }


def evaluate_achievements(counters: Mapping[str, int]) -> AchievementReport:
    """Check every achievement against the progress counters and total the XP."""
    achievements = []
    for rule in ACHIEVEMENT_RULES:
        current = int(_number(counters.get(rule.metric)))
        achievements.append(Achievement(
            id=rule.id,
            title=rule.title,
            description=rule.description,
            kind=rule.kind,
            tier=rule.tier,
            requirement=rule.requirement,
            current=current,
            unlocked=current >= rule.requirement,
            xp=rule.xp,
            progress=round(min(current / rule.requirement * 100, 100.0), 1),
            next_id=rule.next_id,
        ))
    total_xp = sum(achievement.xp for achievement in achievements if achievement.unlocked)
    return AchievementReport(counters=dict(counters), achievements=achievements, level=user_level(total_xp))


def achievement_counters(
    ctx: InsightContext,
    nutrition: Sequence[dict],
    hydration: Sequence[dict],
    hydration_streak: int,
) -> Dict[str, int]:
    return {
        "registros_nutricao": ctx.registros_nutricao_30_dias,
        "registros_peso": ctx.registros_peso_30_dias,
        "sequencia_hidratacao": hydration_streak,
        "consistencia_nutricional": nutrition_consistency(nutrition, ctx.meta_calorias),
        "sequencia_metas": all_goals_streak(nutrition, hydration, ctx.meta_calorias, ctx.meta_agua),
        "progresso_peso": weight_progress(ctx.pesos, ctx.meta_peso),
    }


@dataclass(frozen=True)
class DerivedMetrics:
    percentages: Dict[str, Optional[float]]
    progress: Dict[str, float]
    trends: Dict[str, Trend]
    hydration: dict
    weight_change: Optional[float]
    engagement: str
    insights: List[Insight]
    achievements: AchievementReport

    def as_dict(self) -> dict:
        return {
            "percentages": dict(self.percentages),
            "progress": dict(self.progress),
            "trends": {name: asdict(trend) for name, trend in self.trends.items()},
            "hydration": self.hydration,
            "weight_change": self.weight_change,
            "engagement": self.engagement,
            "insights": [insight.as_dict() for insight in self.insights],
            "achievements": self.achievements.as_dict(),
        }


def derive(
    aggregates,
    goals=None,
    summary: Optional[Mapping] = None,
    limit: Optional[int] = None,
) -> DerivedMetrics:
    """Layer goal comparisons, trends and insights over daily aggregates.

    Args:
        aggregates: Mapping of `Domain` (or its value) to daily aggregates;
            a plain list is read as the nutrition series.
        goals: `GoalValues` or a mapping with the same keys; None means no goals.
        summary: Optional dashboard summary (today's totals, 30-day counts).
        limit: Insight cap; defaults to the configured limit.

    Returns:
        A `DerivedMetrics`; empty inputs yield empty or zero values.
    """
    ctx = build_context(aggregates, goals, summary)
    nutrition = _series(aggregates, Domain.NUTRITION)
    weight = _series(aggregates, Domain.WEIGHT)
    hydration = _series(aggregates, Domain.HYDRATION)

    percentages = {"calorias": ctx.calorie_pct, "agua": ctx.water_pct}
    progress = {name: progress_percentage(value) for name, value in percentages.items()}
    trends = {
        "calorias": compute_trend(nutrition, "calorias"),
        "proteinas": compute_trend(nutrition, "proteinas"),
        "peso_kg": compute_trend(weight, "peso_kg"),
        "quantidade_ml": compute_trend(hydration, "quantidade_ml", only_logged=False),
    }

    hydration_summary = hydration_stats(hydration, ctx.meta_agua)
    counters = achievement_counters(ctx, nutrition, hydration, hydration_summary["sequencia"])

    return DerivedMetrics(
        percentages=percentages,
        progress=progress,
        trends=trends,
        hydration=hydration_summary,
        weight_change=trends["peso_kg"].period_over_period,
        engagement=engagement_level(ctx.total_registros),
        insights=evaluate_insights(ctx, limit),
        achievements=evaluate_achievements(counters),
    )
