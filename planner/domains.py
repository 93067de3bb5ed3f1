# planner/domains.py
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from .data_loader import ClassRecord, CourseRecord, IndexRecord, select_courses
from .exceptions import ScheduleConflictError
from .model import CourseIndexSchedule, Day, MeetingType, Time, Timeslot
from .weeks import parse_teaching_weeks

logger = logging.getLogger(__name__)

CourseDomains = Dict[str, List[CourseIndexSchedule]]


@dataclass
class RejectedIndex:
    course: str
    index: str
    reason: str


@dataclass
class DomainBundle:
    domains: CourseDomains
    rejected: List[RejectedIndex] = field(default_factory=list)

    def candidates(self, course: str) -> List[CourseIndexSchedule]:
        return self.domains.get(course, [])


def meeting_weeks(meeting: ClassRecord, n_weeks: int = 14, empty_weeks_as_all: bool = False) -> Tuple[int, ...]:
    """
    Semanas lectivas de una sesión del catálogo.

    Una lista `weeks` no vacía manda sobre el texto de `remarks`. Sin
    ninguna semana la sesión nunca cuenta, salvo que `empty_weeks_as_all`
    la trate como presente todas las semanas del semestre.
    """
    if meeting.weeks:
        weeks = sorted(set(meeting.weeks))
    else:
        weeks = parse_teaching_weeks(meeting.remarks)
        if meeting.remarks and not weeks:
            logger.warning("Semanas lectivas ilegibles %r en %s %s", meeting.remarks, meeting.day.value, meeting.type.value)
    if not weeks and empty_weeks_as_all:
        weeks = list(range(1, n_weeks + 1))
    return tuple(weeks)


def normalize_index(
    course: str,
    index: IndexRecord,
    n_weeks: int = 14,
    empty_weeks_as_all: bool = False,
) -> CourseIndexSchedule:
    # (día, inicio, fin) -> (tipo, semanas)
    slots: Dict[Tuple[Day, Time, Time], Tuple[MeetingType, set]] = {}
    for meeting in index.classes:
        start = Time(meeting.timeFrom.hour, meeting.timeFrom.minute)
        end = Time(meeting.timeTo.hour, meeting.timeTo.minute)
        key = (meeting.day, start, end)
        weeks = meeting_weeks(meeting, n_weeks, empty_weeks_as_all)

        if key in slots:
            seen_type, seen_weeks = slots[key]
            if seen_type != meeting.type:
                raise ScheduleConflictError(
                    course,
                    index.index,
                    f"El índice {index.index} de {course} tiene {seen_type.value} y {meeting.type.value} "
                    f"ambos el {meeting.day.value} {start}-{end}",
                )
            # Misma sesión repetida (p. ej. una fila por grupo de semanas)
            seen_weeks.update(weeks)
            continue
        slots[key] = (meeting.type, set(weeks))

    timeslots = tuple(
        Timeslot(day=day, start=start, end=end, type=mtype, weeks=tuple(sorted(weeks)))
        for (day, start, end), (mtype, weeks) in slots.items()
    )
    return CourseIndexSchedule(course=course, index=index.index, timeslots=timeslots)


def build_course_domains(
    catalog: Sequence[CourseRecord],
    course_codes: Sequence[str],
    n_weeks: int = 14,
    empty_weeks_as_all: bool = False,
) -> DomainBundle:
    """
    Índices candidatos por curso solicitado.

    Los índices inconsistentes se descartan y se listan en `rejected`; un
    curso ausente del catálogo queda con la lista vacía.
    """
    bundle = DomainBundle(domains={code: [] for code in course_codes})
    for record in select_courses(catalog, course_codes):
        for index in record.indices:
            try:
                schedule = normalize_index(record.course, index, n_weeks, empty_weeks_as_all)
            except ScheduleConflictError as exc:
                logger.warning("Índice descartado: %s", exc.message)
                bundle.rejected.append(RejectedIndex(record.course, index.index, exc.message))
                continue
            bundle.domains[record.course].append(schedule)

    for code, candidates in bundle.domains.items():
        logger.debug("Curso %s: %d índices candidatos", code, len(candidates))
    return bundle
