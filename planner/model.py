# planner/model.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple

CourseCode = str
IndexId = str


class Day(str, Enum):
    MON = "MON"
    TUE = "TUE"
    WED = "WED"
    THU = "THU"
    FRI = "FRI"
    SAT = "SAT"
    SUN = "SUN"


# Orden fijo de los días
DAYS: Tuple[Day, ...] = tuple(Day)


class MeetingType(str, Enum):
    LEC = "LEC"
    TUT = "TUT"
    LAB = "LAB"
    LEC_STUDIO = "LEC/STUDIO"
    STUDIO = "STUDIO"
    SEM = "SEM"


@dataclass(frozen=True, order=True)
class Time:
    hour: int
    minute: int

    @property
    def minutes(self) -> int:
        return self.hour * 60 + self.minute

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class Timeslot:
    day: Day
    start: Time
    end: Time
    type: MeetingType
    weeks: Tuple[int, ...] = ()   # ascendente, sin duplicados

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"La franja debe empezar antes de terminar: {self.start}-{self.end}")
        if any(b <= a for a, b in zip(self.weeks, self.weeks[1:])):
            raise ValueError(f"Las semanas lectivas deben ser estrictamente ascendentes: {self.weeks}")

    @property
    def duration(self) -> int:
        return self.end.minutes - self.start.minutes


@dataclass(frozen=True)
class CourseIndexSchedule:
    # Un valor de "gen": un índice del curso con sus franjas normalizadas
    course: CourseCode
    index: IndexId
    timeslots: Tuple[Timeslot, ...]


@dataclass
class Timetable:
    courses: Dict[CourseCode, CourseIndexSchedule] = field(default_factory=dict)

    def index_of(self, course: CourseCode) -> IndexId:
        return self.courses[course].index

    def all_timeslots(self) -> List[Timeslot]:
        return [ts for gene in self.courses.values() for ts in gene.timeslots]


Population = List[Timetable]
