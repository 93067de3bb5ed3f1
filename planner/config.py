"""
Configuración del planificador.

Los parámetros de ejecución y las tablas de puntuación viven en dataclasses
con valores por defecto; un archivo YAML sobrescribe cualquier subconjunto,
de modo que una corrida se reproduce solo con su archivo de configuración.
"""
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class RangeEntry:
    """Rango inclusivo [low, high] en minutos; None deja ese lado abierto."""
    low: Optional[int]
    high: Optional[int]
    delta: int

    def contains(self, value: int) -> bool:
        if self.low is not None and value < self.low:
            return False
        if self.high is not None and value > self.high:
            return False
        return True


RangeTable = List[RangeEntry]


def _table(*rows) -> RangeTable:
    return [RangeEntry(low, high, delta) for low, high, delta in rows]


# Reglas históricas del planificador, ajustadas a mano
DEFAULT_DAY_LENGTH = _table((0, 0, 120))          # día libre
DEFAULT_DAY_START = _table((11 * 60, None, 40))    # primera clase a las 11:00 o después
DEFAULT_DAY_END = _table(
    (1, 14 * 60 - 1, 60),                          # termina antes de las 14:00
    (14 * 60, 17 * 60 - 1, 30),                    # termina antes de las 17:00
)
DEFAULT_CONSECUTIVE = _table(
    (None, 180, 40),                               # bloque de hasta 3h
    (181, 240, 20),                                # bloque de hasta 4h
)
DEFAULT_GAP: RangeTable = []


def _coerce(name: str, caster: Callable[[Any], Any], value: Any) -> Any:
    try:
        return caster(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Valor inválido para '{name}': {value!r}", details={"key": name}) from exc


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or isinstance(value, float) and not value.is_integer():
        raise ValueError(value)
    return int(value)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "yes", "si", "sí", "1"):
            return True
        if text in ("false", "no", "0", ""):
            return False
        raise ValueError(value)
    if value is None:
        return False
    return bool(value)


def _as_courses(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (str, int)):
        return [str(value)]
    if not isinstance(value, (list, tuple)):
        raise TypeError(value)
    return [str(code) for code in value]


def _as_schedule(value: Any) -> Optional[List[float]]:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        raise TypeError(value)
    return [float(rate) for rate in value]


def _as_seed(value: Any) -> Union[int, str]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if value is None:
        raise TypeError(value)
    return str(value)


@dataclass
class ScoringConfig:
    day_length: RangeTable = field(default_factory=lambda: list(DEFAULT_DAY_LENGTH))
    day_start: RangeTable = field(default_factory=lambda: list(DEFAULT_DAY_START))
    day_end: RangeTable = field(default_factory=lambda: list(DEFAULT_DAY_END))
    consecutive_classes: RangeTable = field(default_factory=lambda: list(DEFAULT_CONSECUTIVE))
    gap: RangeTable = field(default_factory=lambda: list(DEFAULT_GAP))
    # curso -> {índice -> bono}
    preferred_indices: Dict[str, Dict[str, int]] = field(default_factory=dict)
    repeat_preference_per_week: bool = True
    block_gap_minutes: int = 30

    TABLES = ("day_length", "day_start", "day_end", "consecutive_classes", "gap")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoringConfig":
        if not isinstance(data, dict):
            raise ConfigurationError("'scoring' debe ser un mapeo")
        cfg = cls()
        for key, value in data.items():
            if key in cls.TABLES:
                setattr(cfg, key, parse_range_table(key, value))
            elif key == "preferred_indices":
                cfg.preferred_indices = _coerce(key, _as_preferences, value)
            elif key == "repeat_preference_per_week":
                cfg.repeat_preference_per_week = _coerce(key, _as_bool, value)
            elif key == "block_gap_minutes":
                cfg.block_gap_minutes = _coerce(key, _as_int, value)
        return cfg

    def preference_bonus(self, course: str, index: str) -> int:
        return self.preferred_indices.get(course, {}).get(index, 0)


def _as_preferences(value: Any) -> Dict[str, Dict[str, int]]:
    return {
        str(course): {str(idx): _as_int(bonus) for idx, bonus in (table or {}).items()}
        for course, table in (value or {}).items()
    }


def parse_range_table(name: str, rows: Any) -> RangeTable:
    """
    Acepta una lista de mapeos ``{min, max, delta}`` o de ternas
    ``[min, max, delta]``; un límite ausente o null queda abierto.
    """
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise ConfigurationError(f"La tabla de puntuación '{name}' debe ser una lista")
    table: RangeTable = []
    for row in rows:
        if isinstance(row, dict):
            low, high, delta = row.get("min"), row.get("max"), row.get("delta")
        elif isinstance(row, (list, tuple)) and len(row) == 3:
            low, high, delta = row
        else:
            raise ConfigurationError(f"Entrada inválida en la tabla '{name}': {row!r}")
        if delta is None:
            raise ConfigurationError(f"Entrada sin delta en la tabla '{name}': {row!r}")
        low = None if low is None else _coerce(name, _as_int, low)
        high = None if high is None else _coerce(name, _as_int, high)
        if low is not None and high is not None and low > high:
            raise ConfigurationError(f"Rango vacío {low}..{high} en la tabla '{name}'")
        table.append(RangeEntry(low, high, _coerce(name, _as_int, delta)))
    return table


@dataclass
class PlannerConfig:
    # Selección
    courses: List[str] = field(default_factory=list)

    # Algoritmo genético
    population_size: int = 200
    generations: int = 100
    mutation_rate: float = 0.1
    mutation_schedule: Optional[List[float]] = None
    elite_size: int = 6
    seed: Union[int, str] = 42

    # Semestre
    n_weeks: int = 14
    empty_weeks_as_all: bool = False

    # Salida
    grid_precision: str = "30m"

    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    # Conversión de cada clave leída del YAML
    CASTERS = {
        "courses": _as_courses,
        "population_size": _as_int,
        "generations": _as_int,
        "mutation_rate": float,
        "mutation_schedule": _as_schedule,
        "elite_size": _as_int,
        "seed": _as_seed,
        "n_weeks": _as_int,
        "empty_weeks_as_all": _as_bool,
        "grid_precision": str,
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlannerConfig":
        merged = {k: v for k, v in asdict(cls()).items() if k != "scoring"}
        for k, v in data.items():
            if k in merged:
                merged[k] = _coerce(k, cls.CASTERS[k], v)
        cfg = cls(**merged, scoring=ScoringConfig.from_dict(data.get("scoring") or {}))
        cfg.validate()
        return cfg

    def validate(self) -> None:
        if self.population_size < 1:
            raise ConfigurationError("population_size debe ser >= 1")
        if self.generations < 0:
            raise ConfigurationError("generations debe ser >= 0")
        if self.elite_size < 1:
            raise ConfigurationError("elite_size debe ser >= 1")
        if self.n_weeks < 1:
            raise ConfigurationError("n_weeks debe ser >= 1")
        rates = [self.mutation_rate] + list(self.mutation_schedule or [])
        if any(not 0.0 <= r <= 1.0 for r in rates):
            raise ConfigurationError("las probabilidades de mutación deben estar en [0, 1]")
        if self.grid_precision not in ("30m", "1h"):
            raise ConfigurationError("grid_precision debe ser '30m' o '1h'")

    def mutation_for_generation(self, generation: int) -> float:
        """Probabilidad de mutación de una generación criada (base 1); el último valor del plan se repite."""
        if not self.mutation_schedule:
            return self.mutation_rate
        pos = min(generation - 1, len(self.mutation_schedule) - 1)
        return self.mutation_schedule[max(pos, 0)]


def _load_yaml(path: Path) -> Any:
    if not path.exists():
        return {}
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def load_config(path: str = "config.yaml") -> PlannerConfig:
    data = _load_yaml(Path(path))
    if not isinstance(data, dict):
        raise ConfigurationError("config.yaml debe contener un objeto mapeo")
    return PlannerConfig.from_dict(data)
