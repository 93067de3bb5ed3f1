import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .config import PlannerConfig
from .domains import CourseDomains
from .evaluation import score_population
from .exceptions import UnsatisfiableCourseError
from .initial_population import build_initial_population
from .model import Population, Timetable
from .operators import next_generation, rank_key
from .report import analyze_population

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    best: Timetable
    best_score: int
    population: Population
    scores: List[int]
    history: List[Dict[str, Any]] = field(default_factory=list)


class GeneticSolver:
    def __init__(
        self,
        domains: CourseDomains,
        course_codes: Sequence[str],
        cfg: PlannerConfig,
        rng: Optional[random.Random] = None,
    ):
        for code in course_codes:
            if not domains.get(code):
                raise UnsatisfiableCourseError(code)
        self.domains = domains
        self.course_codes = list(course_codes)
        self.cfg = cfg
        # Un solo generador por corrida; el orden de los sorteos fija la reproducibilidad
        self.rng = rng if rng is not None else random.Random(cfg.seed)
        self.history: List[Dict[str, Any]] = []

    def evaluate(self, population: Sequence[Timetable]) -> List[int]:
        return score_population(population, self.cfg.scoring, self.cfg.n_weeks)

    def initial_population(self) -> Population:
        return build_initial_population(self.domains, self.course_codes, self.cfg.population_size, self.rng)

    def step(self, population: Sequence[Timetable], scores: Sequence[int], mutation_probability: float) -> Population:
        return next_generation(
            population,
            scores,
            self.domains,
            self.course_codes,
            self.rng,
            mutation_probability=mutation_probability,
            population_size=self.cfg.population_size,
            elite_size=self.cfg.elite_size,
        )

    def _record(self, gen: int, mutation: Optional[float], population: Population, scores: List[int]):
        report = analyze_population(population, scores)
        row = {"gen": gen, "mutation": mutation, **report.as_row()}
        self.history.append(row)
        return report

    def evolve(self, generations: Optional[int] = None, population: Optional[Population] = None) -> SearchResult:
        """
        Ejecuta un número fijo de generaciones tras la generación 0.

        La generación 0 es `population` si se pasa, si no una aleatoria.
        Devuelve el mejor horario visto; a igual puntaje se queda con el
        primero.
        """
        generations = self.cfg.generations if generations is None else generations
        if population is None:
            population = self.initial_population()
        scores = self.evaluate(population)
        report = self._record(0, None, population, scores)
        best, best_score = report.best_timetable, report.best_score

        for gen in range(1, generations + 1):
            mutation = self.cfg.mutation_for_generation(gen)
            population = self.step(population, scores, mutation)
            scores = self.evaluate(population)
            report = self._record(gen, mutation, population, scores)

            if rank_key(report.best_score) > rank_key(best_score):
                best, best_score = report.best_timetable, report.best_score

            if gen % 5 == 0 or gen == generations:
                logger.info(
                    "Gen %d: mejor=%d media=%s infactibles=%d/%d",
                    gen,
                    best_score,
                    "n/a" if report.mean_score is None else f"{report.mean_score:.2f}",
                    report.failures,
                    len(population),
                )

        return SearchResult(best=best, best_score=best_score, population=population, scores=scores, history=self.history)
