"""
Codificación y decodificación de horarios.

La identidad de un horario es su asignación de genes: el índice elegido
por curso. Las franjas no se serializan; al decodificar se buscan de
nuevo en los dominios de cada curso.
"""
from typing import Any, Dict, Mapping, Tuple

from .domains import CourseDomains
from .exceptions import PlannerError
from .model import Timetable

TimetableKey = Tuple[Tuple[str, str], ...]


def timetable_key(timetable: Timetable) -> TimetableKey:
    """Clave canónica: pares (curso, índice) ordenados."""
    return tuple(sorted((course, gene.index) for course, gene in timetable.courses.items()))


def timetable_to_dict(timetable: Timetable) -> Dict[str, str]:
    return {course: gene.index for course, gene in timetable.courses.items()}


def timetable_from_dict(assignment: Mapping[str, Any], domains: CourseDomains) -> Timetable:
    timetable = Timetable()
    for course, index in assignment.items():
        candidates = {c.index: c for c in domains.get(course, [])}
        index = str(index)
        if index not in candidates:
            raise PlannerError(
                f"El índice {index} no es candidato del curso {course}",
                details={"course": course, "index": index},
            )
        timetable.courses[course] = candidates[index]
    return timetable


def describe_timetable(timetable: Timetable) -> str:
    return ", ".join(f"{course} {gene.index}" for course, gene in timetable.courses.items())
