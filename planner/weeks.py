"""
Anotaciones de semanas lectivas.

Cada fila del horario trae un comentario libre como ``"Teaching Wk1-3,5,7-13"``.
El parser es de todo o nada: un token mal formado descarta la anotación
entera y el resultado es una lista vacía.
"""
from typing import List, Sequence

WEEK_PREFIX = "Teaching Wk"


def _parse_week(token: str) -> int:
    token = token.strip()
    if not token.isdigit():
        raise ValueError(f"token de semana inválido {token!r}")
    week = int(token)
    if week < 1:
        raise ValueError(f"la semana debe ser >= 1, se recibió {week}")
    return week


def parse_teaching_weeks(text: str) -> List[int]:
    """
    Convierte ``"Teaching Wk..."`` en una lista ascendente de semanas sin duplicados.

    Devuelve [] si falta el prefijo, el cuerpo está vacío o algún token
    está mal formado.
    """
    if not text or not text.startswith(WEEK_PREFIX):
        return []
    body = text[len(WEEK_PREFIX):]
    if not body.strip():
        return []

    weeks = set()
    try:
        for part in body.split(","):
            if "-" in part:
                bounds = part.split("-")
                if len(bounds) != 2:
                    return []
                start, end = _parse_week(bounds[0]), _parse_week(bounds[1])
                if start > end:
                    return []
                weeks.update(range(start, end + 1))
            else:
                weeks.add(_parse_week(part))
    except ValueError:
        return []
    return sorted(weeks)


def week_index(weeks: Sequence[int], week: int) -> int:
    """Búsqueda binaria sobre semanas ascendentes; posición de `week` o -1."""
    lo, hi = 0, len(weeks) - 1
    while lo <= hi:
        mid = (lo + hi) // 2
        if weeks[mid] == week:
            return mid
        if weeks[mid] < week:
            lo = mid + 1
        else:
            hi = mid - 1
    return -1


def runs_in_week(weeks: Sequence[int], week: int) -> bool:
    return week_index(weeks, week) != -1


def format_weeks(weeks: Sequence[int]) -> str:
    """Inversa de parse_teaching_weeks: (1, 2, 3, 5) -> 'Teaching Wk1-3,5'."""
    if not weeks:
        return ""
    parts = []
    start = prev = weeks[0]
    for w in list(weeks[1:]) + [None]:
        if w is not None and w == prev + 1:
            prev = w
            continue
        parts.append(str(start) if start == prev else f"{start}-{prev}")
        if w is not None:
            start = prev = w
    return WEEK_PREFIX + ",".join(parts)
