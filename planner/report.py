# planner/report.py
import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .config import ScoringConfig
from .domains import CourseDomains
from .encoding import timetable_to_dict
from .evaluation import INFEASIBLE, evaluate
from .model import DAYS, Timetable
from .operators import rank_key
from .weeks import format_weeks, runs_in_week

PRECISIONS = {"30m": 30, "1h": 60}


@dataclass
class PopulationReport:
    failures: int
    successes: int
    mean_score: Optional[float]   # None si ningún individuo es factible
    best_score: Optional[int]
    best_timetable: Optional[Timetable]

    def as_row(self) -> Dict[str, Any]:
        return {
            "failures": self.failures,
            "successes": self.successes,
            "mean_score": self.mean_score,
            "best_score": self.best_score,
        }


def analyze_population(population: Sequence[Timetable], scores: Sequence[int]) -> PopulationReport:
    arr = np.asarray(scores, dtype=int)
    feasible = arr[arr != INFEASIBLE]
    mean = float(feasible.mean()) if feasible.size else None

    best_pos = None
    for pos, score in enumerate(scores):
        # comparación estricta: gana el primero que alcanza el máximo
        if best_pos is None or rank_key(score) > rank_key(scores[best_pos]):
            best_pos = pos

    return PopulationReport(
        failures=int(arr.size - feasible.size),
        successes=int(feasible.size),
        mean_score=mean,
        best_score=None if best_pos is None else int(scores[best_pos]),
        best_timetable=None if best_pos is None else population[best_pos],
    )


EARLY_START = 10 * 60 + 30     # 10:30
LATE_END = 17 * 60 + 30        # 17:30
LONG_BLOCK = 4 * 60
BLOCK_JOIN_GAP = 120


@dataclass
class TimetableAnalysis:
    days_with_classes: int
    average_gap: int
    long_blocks: int
    early_starts: int
    late_ends: int

    def as_row(self) -> Dict[str, Any]:
        return asdict(self)


def analyze_timetable(timetable: Timetable) -> TimetableAnalysis:
    """
    Resumen legible de la forma semanal de un horario.

    No filtra por semana lectiva. Un bloque junta clases separadas por
    hasta 2h y es largo si pasa de 4h; `average_gap` va en minutos.
    """
    by_day: Dict[Any, list] = {}
    for ts in timetable.all_timeslots():
        by_day.setdefault(ts.day, []).append(ts)

    gaps = []
    long_blocks = early = late = 0
    for slots in by_day.values():
        slots.sort(key=lambda ts: ts.start.minutes)
        if slots[0].start.minutes < EARLY_START:
            early += 1
        if max(ts.end.minutes for ts in slots) > LATE_END:
            late += 1

        block_start = slots[0].start.minutes
        block_end = slots[0].end.minutes
        for prev, cur in zip(slots, slots[1:]):
            gaps.append(cur.start.minutes - prev.end.minutes)
            if cur.start.minutes - block_end <= BLOCK_JOIN_GAP:
                block_end = max(block_end, cur.end.minutes)
                continue
            if block_end - block_start > LONG_BLOCK:
                long_blocks += 1
            block_start, block_end = cur.start.minutes, cur.end.minutes
        if block_end - block_start > LONG_BLOCK:
            long_blocks += 1

    return TimetableAnalysis(
        days_with_classes=len(by_day),
        average_gap=int(round(float(np.mean(gaps)))) if gaps else 0,
        long_blocks=long_blocks,
        early_starts=early,
        late_ends=late,
    )


def occupancy_grid(timetable: Timetable, precision: str = "30m", week: Optional[int] = None) -> np.ndarray:
    """Matriz booleana [día][franja]; una franja está ocupada si alguna clase la toca."""
    step = PRECISIONS[precision]
    grid = np.zeros((len(DAYS), 24 * 60 // step), dtype=bool)
    for ts in timetable.all_timeslots():
        if week is not None and not runs_in_week(ts.weeks, week):
            continue
        first = ts.start.minutes // step
        last = -(-ts.end.minutes // step)
        grid[DAYS.index(ts.day), first:last] = True
    return grid


def render_grid(
    timetable: Timetable,
    precision: str = "30m",
    week: Optional[int] = None,
    show_days: bool = False,
) -> str:
    grid = occupancy_grid(timetable, precision, week)
    lines = []
    for day, row in zip(DAYS, grid):
        cells = "".join("X" if busy else " " for busy in row)
        lines.append(f"{day.value} |{cells}|" if show_days else cells)
    return "\n".join(lines)


def timetable_to_dataframe(timetable: Timetable) -> pd.DataFrame:
    data = []
    for course, gene in timetable.courses.items():
        for ts in gene.timeslots:
            data.append(
                {
                    "Course": course,
                    "Index": gene.index,
                    "Type": ts.type.value,
                    "Day": ts.day.value,
                    "Start": str(ts.start),
                    "End": str(ts.end),
                    "Weeks": format_weeks(ts.weeks),
                    "_day": DAYS.index(ts.day),
                    "_start": ts.start.minutes,
                }
            )
    columns = ["Course", "Index", "Type", "Day", "Start", "End", "Weeks"]
    if not data:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame(data).sort_values(["_day", "_start"], kind="stable")
    return df[columns].reset_index(drop=True)


def history_to_dataframe(history: List[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame(history)


def index_swap_analysis(
    timetable: Timetable,
    domains: CourseDomains,
    scoring: ScoringConfig,
    n_weeks: int = 14,
) -> pd.DataFrame:
    """Puntaje del horario al reemplazar el índice de un curso por cada alternativa."""
    base = evaluate(timetable, scoring, n_weeks)
    rows = []
    for course, gene in timetable.courses.items():
        for candidate in domains.get(course, []):
            swapped = Timetable(courses=dict(timetable.courses))
            swapped.courses[course] = candidate
            score = evaluate(swapped, scoring, n_weeks)
            feasible = score != INFEASIBLE and base != INFEASIBLE
            rows.append(
                {
                    "course": course,
                    "index": candidate.index,
                    "current": candidate.index == gene.index,
                    "score": score,
                    "delta": score - base if feasible else None,
                }
            )
    return pd.DataFrame(rows, columns=["course", "index", "current", "score", "delta"])


def export_outputs(
    out_dir: Path,
    best: Timetable,
    best_score: int,
    history: pd.DataFrame,
    metrics: Dict[str, Any],
) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)
    timetable_to_dataframe(best).to_csv(out_dir / "schedule.csv", index=False)
    if not history.empty:
        history.to_csv(out_dir / "history.csv", index=False)
    pd.DataFrame([metrics]).to_csv(out_dir / "metrics.csv", index=False)
    payload = {"score": best_score, "indices": timetable_to_dict(best)}
    (out_dir / "best_timetable.json").write_text(json.dumps(payload, indent=2), encoding="utf-8")
