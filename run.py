import argparse
import logging
import time
from pathlib import Path

from planner.config import load_config
from planner.data_loader import load_catalog
from planner.domains import build_course_domains
from planner.encoding import describe_timetable
from planner.evaluation import evaluate_detailed
from planner.exhaustive import BranchAndBoundSolver
from planner.ga import GeneticSolver
from planner.report import (
    analyze_timetable,
    export_outputs,
    history_to_dataframe,
    index_swap_analysis,
    render_grid,
)


def print_result(best, cfg, title: str):
    result = evaluate_detailed(best, cfg.scoring, cfg.n_weeks)
    print("\n--- " + title + " ---")
    print(f"Puntaje: {result.score}")
    print("Índices: " + describe_timetable(best))
    print("Desglose: " + ", ".join(f"{k}={v}" for k, v in result.totals.items()))
    print("Resumen: " + ", ".join(f"{k}={v}" for k, v in analyze_timetable(best).as_row().items()))
    print()
    print(render_grid(best, cfg.grid_precision, show_days=True))


def main():
    parser = argparse.ArgumentParser(description="Elige un índice por curso para obtener el mejor horario semanal")
    parser.add_argument("--config", default="config.yaml", help="Ruta al archivo de configuración")
    parser.add_argument("--catalog", default="data/courses.json", help="Catálogo de horarios (JSON)")
    parser.add_argument("--courses", nargs="*", help="Códigos de curso (sobrescribe la configuración)")
    parser.add_argument("--generations", type=int, help="Generaciones a ejecutar (sobrescribe la configuración)")
    parser.add_argument("--seed", help="Semilla aleatoria (sobrescribe la configuración)")
    parser.add_argument("--out_dir", default="outputs", help="Directorio de salida para CSV/JSON")
    parser.add_argument("--exhaustive", action="store_true", help="Usa ramificación y poda en lugar de la búsqueda genética")
    parser.add_argument("--log-level", default="INFO", help="Nivel de logging")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg = load_config(args.config)
    if args.courses:
        cfg.courses = list(args.courses)
    if args.generations is not None:
        cfg.generations = args.generations
    if args.seed is not None:
        cfg.seed = int(args.seed) if args.seed.isdigit() else args.seed
    cfg.validate()

    print("Cargando catálogo...")
    catalog = load_catalog(args.catalog)
    bundle = build_course_domains(catalog, cfg.courses, cfg.n_weeks, cfg.empty_weeks_as_all)
    for rej in bundle.rejected:
        print(f"Descartado {rej.course} índice {rej.index}: {rej.reason}")

    start = time.perf_counter()
    if args.exhaustive:
        solver = BranchAndBoundSolver(bundle.domains, cfg.courses, cfg.scoring, cfg.n_weeks)
        ranked = solver.solve(top_k=3)
        elapsed = time.perf_counter() - start
        if not ranked:
            print("No existe un horario sin conflictos para estos cursos")
            return
        for rank, (score, timetable) in enumerate(ranked, start=1):
            print(f"#{rank} puntaje={score}: {describe_timetable(timetable)}")
        best_score, best = ranked[0]
        history = history_to_dataframe([])
    else:
        print(f"Generaciones: {cfg.generations} | Población: {cfg.population_size}")
        solver = GeneticSolver(bundle.domains, cfg.courses, cfg)
        result = solver.evolve()
        elapsed = time.perf_counter() - start
        best, best_score = result.best, result.best_score
        history = history_to_dataframe(result.history)

    print_result(best, cfg, "MEJOR HORARIO")
    print(f"Tiempo: {elapsed:.2f}s")

    swaps = index_swap_analysis(best, bundle.domains, cfg.scoring, cfg.n_weeks)
    print("\nAnálisis de cambio de índice:")
    print(swaps.to_string(index=False))

    metrics = {
        "best_score": best_score,
        "time_sec": elapsed,
        "generations_ran": max(len(history) - 1, 0),
        "rejected_indices": len(bundle.rejected),
        **analyze_timetable(best).as_row(),
    }
    out_dir = Path(args.out_dir)
    export_outputs(out_dir, best, best_score, history, metrics)
    print(f"Resultados guardados en {out_dir}/")


if __name__ == "__main__":
    main()
