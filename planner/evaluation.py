# planner/evaluation.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .config import RangeTable, ScoringConfig
from .model import DAYS, Day, Timetable, Timeslot
from .weeks import runs_in_week

INFEASIBLE = -1

DIMENSIONS = ("day_length", "day_start", "day_end", "consecutive_classes", "gap", "preference")


@dataclass(frozen=True)
class Conflict:
    week: int
    day: Day
    first: Timeslot
    second: Timeslot


@dataclass
class EvaluationResult:
    score: int
    totals: Dict[str, int] = field(default_factory=dict)
    conflict: Optional[Conflict] = None

    @property
    def feasible(self) -> bool:
        return self.conflict is None


def lookup_delta(table: RangeTable, value: int) -> int:
    """Gana la primera entrada cuyo rango contiene `value`; sin coincidencia suma 0."""
    for entry in table:
        if entry.contains(value):
            return entry.delta
    return 0


def _score_day(slots: List[Timeslot], scoring: ScoringConfig, totals: Dict[str, int]):
    """
    Acumula en `totals` los deltas de un día.

    `slots` debe venir ordenado por inicio. Devuelve el primer par que se
    solapa, o None si el día es factible.
    """
    prev = None
    block_minutes = block_size = 0
    for ts in slots:
        if prev is not None:
            if prev.end.minutes > ts.start.minutes:
                return prev, ts
            gap = ts.start.minutes - prev.end.minutes
            totals["gap"] += lookup_delta(scoring.gap, gap)
            if gap <= scoring.block_gap_minutes:
                block_minutes += ts.duration
                block_size += 1
                prev = ts
                continue
            if block_size > 1:
                totals["consecutive_classes"] += lookup_delta(scoring.consecutive_classes, block_minutes)
        block_minutes, block_size = ts.duration, 1
        prev = ts
    if block_size > 1:
        totals["consecutive_classes"] += lookup_delta(scoring.consecutive_classes, block_minutes)

    # Un día con una sola clase no suma nada en las tablas de día
    if not slots:
        totals["day_length"] += lookup_delta(scoring.day_length, 0)
        totals["day_start"] += lookup_delta(scoring.day_start, 0)
        totals["day_end"] += lookup_delta(scoring.day_end, 0)
    elif len(slots) > 1:
        first_start = slots[0].start.minutes
        last_end = slots[-1].end.minutes
        totals["day_length"] += lookup_delta(scoring.day_length, last_end - first_start)
        totals["day_start"] += lookup_delta(scoring.day_start, first_start)
        totals["day_end"] += lookup_delta(scoring.day_end, last_end)
    return None


def evaluate_detailed(timetable: Timetable, scoring: ScoringConfig, n_weeks: int = 14) -> EvaluationResult:
    """
    Simula cada semana lectiva 1..n_weeks y suma los deltas de cada día,
    hueco y bloque contiguo. El primer solapamiento encontrado vuelve
    infactible todo el horario.
    """
    totals = dict.fromkeys(DIMENSIONS, 0)
    genes = list(timetable.courses.values())
    preference = sum(scoring.preference_bonus(g.course, g.index) for g in genes)
    if not scoring.repeat_preference_per_week:
        totals["preference"] += preference

    for week in range(1, n_weeks + 1):
        if scoring.repeat_preference_per_week:
            totals["preference"] += preference

        by_day: Dict[Day, List[Timeslot]] = {day: [] for day in DAYS}
        for gene in genes:
            for ts in gene.timeslots:
                if runs_in_week(ts.weeks, week):
                    by_day[ts.day].append(ts)

        for day in DAYS:
            slots = sorted(by_day[day], key=lambda ts: ts.start.minutes)
            overlap = _score_day(slots, scoring, totals)
            if overlap is not None:
                return EvaluationResult(INFEASIBLE, totals, Conflict(week, day, *overlap))

    return EvaluationResult(sum(totals.values()), totals)


def evaluate(timetable: Timetable, scoring: ScoringConfig, n_weeks: int = 14) -> int:
    """Aptitud de un horario, o INFEASIBLE (-1) si dos clases elegidas se solapan."""
    return evaluate_detailed(timetable, scoring, n_weeks).score


def score_population(population: Sequence[Timetable], scoring: ScoringConfig, n_weeks: int = 14) -> List[int]:
    return [evaluate(t, scoring, n_weeks) for t in population]


def timeslots_conflict(a: Timeslot, b: Timeslot, n_weeks: int = 14) -> bool:
    """True si `a` y `b` se solapan un mismo día en alguna semana simulada."""
    if a.day != b.day:
        return False
    if a.start.minutes >= b.end.minutes or b.start.minutes >= a.end.minutes:
        return False
    shared = set(a.weeks).intersection(b.weeks)
    return any(1 <= w <= n_weeks for w in shared)
