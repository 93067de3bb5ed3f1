"""
Alternativa exhaustiva a la búsqueda genética.

Recorre los cursos en profundidad, primero los más restringidos (menos
candidatos). Una asignación parcial se abandona en cuanto una de sus
franjas choca con otra ya colocada, así que solo se puntúan horarios sin
conflictos, con el mismo evaluador que usa la búsqueda genética.
"""
import heapq
import logging
from typing import List, Sequence, Tuple

from .config import ScoringConfig
from .domains import CourseDomains
from .evaluation import INFEASIBLE, evaluate, timeslots_conflict
from .exceptions import UnsatisfiableCourseError
from .model import CourseIndexSchedule, Timetable, Timeslot

logger = logging.getLogger(__name__)


class BranchAndBoundSolver:
    def __init__(self, domains: CourseDomains, course_codes: Sequence[str], scoring: ScoringConfig, n_weeks: int = 14):
        for code in course_codes:
            if not domains.get(code):
                raise UnsatisfiableCourseError(code)
        self.domains = domains
        self.course_codes = list(course_codes)
        self.scoring = scoring
        self.n_weeks = n_weeks
        self.leaves = 0
        self.pruned = 0

    def _clashes(self, candidate: CourseIndexSchedule, placed: List[Timeslot]) -> bool:
        seen = list(placed)
        for ts in candidate.timeslots:
            if any(timeslots_conflict(ts, other, self.n_weeks) for other in seen):
                return True
            seen.append(ts)
        return False

    def solve(self, top_k: int = 1) -> List[Tuple[int, Timetable]]:
        """Los `top_k` mejores pares (puntaje, horario), el mejor primero; vacío si nada es factible."""
        order = sorted(self.course_codes, key=lambda c: len(self.domains[c]))
        heap: List[Tuple[int, int, Timetable]] = []
        self.leaves = self.pruned = 0

        def recurse(depth: int, chosen: dict, placed: List[Timeslot]):
            if depth == len(order):
                timetable = Timetable(courses={c: chosen[c] for c in self.course_codes})
                score = evaluate(timetable, self.scoring, self.n_weeks)
                if score == INFEASIBLE:
                    return
                self.leaves += 1
                # (puntaje, -seq): a igual puntaje sobrevive el horario encontrado primero
                heapq.heappush(heap, (score, -self.leaves, timetable))
                if len(heap) > top_k:
                    heapq.heappop(heap)
                return

            course = order[depth]
            for candidate in self.domains[course]:
                if self._clashes(candidate, placed):
                    self.pruned += 1
                    continue
                chosen[course] = candidate
                recurse(depth + 1, chosen, placed + list(candidate.timeslots))
                del chosen[course]

        recurse(0, {}, [])
        logger.info("Ramificación y poda: %d horarios completos, %d ramas podadas", self.leaves, self.pruned)
        return [(score, t) for score, _, t in sorted(heap, key=lambda e: (-e[0], -e[1]))]
