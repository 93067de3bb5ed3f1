# planner/data_loader.py
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, model_validator

from .exceptions import CatalogValidationError
from .model import Day, MeetingType


class TimeRecord(BaseModel):
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)


class ClassRecord(BaseModel):
    type: MeetingType
    day: Day
    timeFrom: TimeRecord
    timeTo: TimeRecord
    venue: str = ""
    weeks: Optional[List[int]] = None
    remarks: str = ""

    @model_validator(mode="after")
    def validate_window(self) -> "ClassRecord":
        start = self.timeFrom.hour * 60 + self.timeFrom.minute
        end = self.timeTo.hour * 60 + self.timeTo.minute
        if start >= end:
            raise ValueError("timeFrom debe ser anterior a timeTo")
        if self.weeks is not None and any(w < 1 for w in self.weeks):
            raise ValueError("weeks debe contener enteros positivos")
        return self


class IndexRecord(BaseModel):
    index: str = Field(min_length=1)
    classes: List[ClassRecord]


class CourseRecord(BaseModel):
    course: str = Field(min_length=1)
    indices: List[IndexRecord]


_CATALOG = TypeAdapter(List[CourseRecord])


def parse_catalog(data: Any) -> List[CourseRecord]:
    try:
        catalog = _CATALOG.validate_python(data)
    except ValidationError as exc:
        raise CatalogValidationError(
            f"Catálogo de horarios inválido: {exc.error_count()} error(es)",
            details={"errors": exc.errors(include_url=False)},
        ) from exc

    seen = set()
    for record in catalog:
        if record.course in seen:
            raise CatalogValidationError(f"Curso duplicado en el catálogo: {record.course}")
        seen.add(record.course)

        # El par (curso, índice) identifica un gen: no puede repetirse
        indices = set()
        for index in record.indices:
            if index.index in indices:
                raise CatalogValidationError(
                    f"Índice duplicado {index.index} en el curso {record.course}",
                    details={"course": record.course, "index": index.index},
                )
            indices.add(index.index)
    return catalog


def load_catalog(path: str) -> List[CourseRecord]:
    catalog_path = Path(path)
    try:
        data = json.loads(catalog_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise CatalogValidationError(f"No se encontró el catálogo: {catalog_path}") from exc
    except json.JSONDecodeError as exc:
        raise CatalogValidationError(f"El catálogo no es JSON válido: {exc}") from exc
    return parse_catalog(data)


def select_courses(catalog: Sequence[CourseRecord], codes: Sequence[str]) -> List[CourseRecord]:
    """Registros de los códigos pedidos, en el orden pedido; los desconocidos se omiten."""
    by_code: Dict[str, CourseRecord] = {c.course: c for c in catalog}
    return [by_code[code] for code in codes if code in by_code]
