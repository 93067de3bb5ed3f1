import random
from typing import List, Sequence, Tuple

from .domains import CourseDomains
from .encoding import timetable_key
from .evaluation import INFEASIBLE
from .initial_population import random_gene
from .model import Population, Timetable

DEFAULT_ELITE_SIZE = 6


def rank_key(score: int) -> Tuple[bool, int]:
    # los infactibles quedan debajo de cualquier puntaje factible
    return (score != INFEASIBLE, score)


def rank_population(population: Sequence[Timetable], scores: Sequence[int]) -> List[Tuple[Timetable, int]]:
    """Individuos con su puntaje, el mejor primero; a igual puntaje se mantiene el orden."""
    ranked = list(zip(population, scores))
    ranked.sort(key=lambda pair: rank_key(pair[1]), reverse=True)
    return ranked


def unique_elites(ranked: Sequence[Tuple[Timetable, int]]) -> List[Tuple[Timetable, int]]:
    """Colapsa individuos con la misma asignación de genes y conserva el mejor clasificado."""
    seen = set()
    unique = []
    for timetable, score in ranked:
        key = timetable_key(timetable)
        if key in seen:
            continue
        seen.add(key)
        unique.append((timetable, score))
    return unique


def select_parents(
    population: Sequence[Timetable],
    scores: Sequence[int],
    elite_size: int = DEFAULT_ELITE_SIZE,
) -> List[Timetable]:
    """Los `elite_size` mejores individuos distintos; menos si falta diversidad."""
    ranked = rank_population(population, scores)
    return [t for t, _ in unique_elites(ranked)[:elite_size]]


def breed_child(
    parents: Sequence[Timetable],
    domains: CourseDomains,
    course_codes: Sequence[str],
    mutation_probability: float,
    rng: random.Random,
) -> Timetable:
    """
    Cruce uniforme con mutación: cada curso, de forma independiente, muta a
    un candidato al azar o hereda el gen de un padre elegido al azar.
    """
    child = Timetable()
    for code in course_codes:
        if rng.random() < mutation_probability or not parents:
            child.courses[code] = random_gene(domains[code], rng)
        else:
            parent = rng.choice(parents)
            child.courses[code] = parent.courses[code]
    return child


def next_generation(
    population: Sequence[Timetable],
    scores: Sequence[int],
    domains: CourseDomains,
    course_codes: Sequence[str],
    rng: random.Random,
    mutation_probability: float,
    population_size: int,
    elite_size: int = DEFAULT_ELITE_SIZE,
) -> Population:
    parents = select_parents(population, scores, elite_size)
    return [
        breed_child(parents, domains, course_codes, mutation_probability, rng)
        for _ in range(population_size)
    ]
