# planner/initial_population.py
import random
from typing import Sequence

from .domains import CourseDomains
from .model import CourseIndexSchedule, Population, Timetable


def random_gene(candidates: Sequence[CourseIndexSchedule], rng: random.Random) -> CourseIndexSchedule:
    return rng.choice(candidates)


def build_random_timetable(
    domains: CourseDomains,
    course_codes: Sequence[str],
    rng: random.Random,
) -> Timetable:
    timetable = Timetable()
    for code in course_codes:
        timetable.courses[code] = random_gene(domains[code], rng)
    return timetable


def build_initial_population(
    domains: CourseDomains,
    course_codes: Sequence[str],
    pop_size: int,
    rng: random.Random,
) -> Population:
    return [build_random_timetable(domains, course_codes, rng) for _ in range(pop_size)]
