class PlannerError(Exception):
    """Clase base de los errores del planificador."""
    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class CatalogValidationError(PlannerError):
    """El catálogo de horarios está mal formado."""


class ScheduleConflictError(PlannerError):
    """Dos sesiones de un índice comparten franja pero no tipo."""
    def __init__(self, course: str, index: str, message: str):
        super().__init__(message, details={"course": course, "index": index})
        self.course = course
        self.index = index


class UnsatisfiableCourseError(PlannerError):
    """Un curso solicitado no tiene ningún índice candidato."""
    def __init__(self, course: str):
        super().__init__(f"El curso {course} no tiene índices candidatos", details={"course": course})
        self.course = course


class ConfigurationError(PlannerError):
    """La configuración del planificador es inválida."""
