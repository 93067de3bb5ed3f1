import json
import tempfile
import unittest
from pathlib import Path

import pandas as pd

from planner.config import PlannerConfig, RangeEntry, ScoringConfig, load_config, parse_range_table
from planner.data_loader import load_catalog, parse_catalog, select_courses
from planner.encoding import describe_timetable, timetable_from_dict, timetable_key, timetable_to_dict
from planner.evaluation import INFEASIBLE
from planner.exceptions import CatalogValidationError, ConfigurationError, PlannerError
from planner.model import CourseIndexSchedule, Day, MeetingType, Time, Timeslot, Timetable
from planner.report import (
    analyze_population,
    analyze_timetable,
    export_outputs,
    history_to_dataframe,
    index_swap_analysis,
    occupancy_grid,
    render_grid,
    timetable_to_dataframe,
)

WEEKS = tuple(range(1, 14))


def slot(day, start, end, mtype=MeetingType.LEC, weeks=WEEKS):
    return Timeslot(Day(day), Time(*start), Time(*end), mtype, weeks)


def gene(course, index, *slots):
    return CourseIndexSchedule(course, index, tuple(slots))


def raw_course(code, *indices):
    return {
        "course": code,
        "indices": [
            {
                "index": idx,
                "classes": [
                    {
                        "type": "LEC",
                        "day": day,
                        "timeFrom": {"hour": h, "minute": 0},
                        "timeTo": {"hour": h + 1, "minute": 0},
                        "venue": "LT1",
                        "remarks": "Teaching Wk1-13",
                    }
                ],
            }
            for idx, day, h in indices
        ],
    }


class ConfigTests(unittest.TestCase):
    def test_defaults(self):
        cfg = PlannerConfig()
        self.assertEqual(cfg.elite_size, 6)
        self.assertEqual(cfg.n_weeks, 14)
        self.assertFalse(cfg.empty_weeks_as_all)
        self.assertTrue(cfg.scoring.repeat_preference_per_week)
        self.assertEqual(cfg.scoring.day_length, [RangeEntry(0, 0, 120)])

    def test_from_dict_overrides(self):
        cfg = PlannerConfig.from_dict(
            {
                "courses": ["SC2001"],
                "population_size": 50,
                "seed": "abcdefghijklmnopqrstuvwxyz",
                "unknown_key": 1,
                "scoring": {
                    "gap": [{"min": 0, "max": 60, "delta": 4}, [61, None, -3]],
                    "preferred_indices": {"SC2001": {10234: 15}},
                    "repeat_preference_per_week": False,
                },
            }
        )
        self.assertEqual(cfg.courses, ["SC2001"])
        self.assertEqual(cfg.population_size, 50)
        self.assertEqual(cfg.seed, "abcdefghijklmnopqrstuvwxyz")
        self.assertEqual(cfg.scoring.gap, [RangeEntry(0, 60, 4), RangeEntry(61, None, -3)])
        self.assertEqual(cfg.scoring.preference_bonus("SC2001", "10234"), 15)
        self.assertFalse(cfg.scoring.repeat_preference_per_week)
        # las tablas no tocadas conservan sus valores por defecto
        self.assertEqual(cfg.scoring.day_start, ScoringConfig().day_start)

    def test_invalid_values(self):
        with self.assertRaises(ConfigurationError):
            PlannerConfig.from_dict({"mutation_rate": 1.5})
        with self.assertRaises(ConfigurationError):
            PlannerConfig.from_dict({"population_size": 0})
        with self.assertRaises(ConfigurationError):
            parse_range_table("gap", [{"min": 10, "max": 5, "delta": 1}])
        with self.assertRaises(ConfigurationError):
            parse_range_table("gap", [{"min": 10}])
        with self.assertRaises(ConfigurationError):
            parse_range_table("gap", {"min": 10})

    def test_yaml_values_are_coerced(self):
        cfg = PlannerConfig.from_dict(
            {
                "courses": None,
                "population_size": "200",
                "mutation_rate": "0.25",
                "empty_weeks_as_all": "false",
                "seed": 7,
                "scoring": {"block_gap_minutes": "45"},
            }
        )
        self.assertEqual(cfg.courses, [])
        self.assertEqual(cfg.population_size, 200)
        self.assertEqual(cfg.mutation_rate, 0.25)
        self.assertFalse(cfg.empty_weeks_as_all)
        self.assertEqual(cfg.seed, 7)
        self.assertEqual(cfg.scoring.block_gap_minutes, 45)
        self.assertEqual(PlannerConfig.from_dict({"courses": "SC2001"}).courses, ["SC2001"])

    def test_bad_types_raise_configuration_error(self):
        for data in (
            {"population_size": "many"},
            {"generations": [1, 2]},
            {"courses": {"SC2001": 1}},
            {"mutation_schedule": "fast"},
            {"empty_weeks_as_all": "maybe"},
            {"scoring": {"gap": [["a", 10, 1]]}},
            {"scoring": {"preferred_indices": {"SC2001": {"1": "lots"}}}},
            {"scoring": ["not", "a", "mapping"]},
        ):
            with self.assertRaises(ConfigurationError, msg=repr(data)):
                PlannerConfig.from_dict(data)

    def test_mutation_schedule(self):
        cfg = PlannerConfig(mutation_rate=0.2)
        self.assertEqual(cfg.mutation_for_generation(3), 0.2)
        cfg.mutation_schedule = [0.0, 0.1, 0.3]
        self.assertEqual([cfg.mutation_for_generation(g) for g in (1, 2, 3, 9)], [0.0, 0.1, 0.3, 0.3])

    def test_load_yaml(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.yaml"
            path.write_text(
                "courses: [SC2001, SC2005]\n"
                "generations: 5\n"
                "scoring:\n"
                "  day_start:\n"
                "    - {min: 600, max: null, delta: 10}\n",
                encoding="utf-8",
            )
            cfg = load_config(str(path))
            self.assertEqual(cfg.courses, ["SC2001", "SC2005"])
            self.assertEqual(cfg.generations, 5)
            self.assertEqual(cfg.scoring.day_start, [RangeEntry(600, None, 10)])

            path.write_text("- just\n- a list\n", encoding="utf-8")
            with self.assertRaises(ConfigurationError):
                load_config(str(path))

            self.assertEqual(load_config(str(Path(tmp) / "missing.yaml")).generations, 100)


class CatalogTests(unittest.TestCase):
    def test_parse_valid_catalog(self):
        catalog = parse_catalog([raw_course("SC2001", ("1", "MON", 9), ("2", "TUE", 9))])
        self.assertEqual(catalog[0].course, "SC2001")
        self.assertEqual(catalog[0].indices[1].classes[0].day, Day.TUE)
        self.assertEqual(catalog[0].indices[0].classes[0].type, MeetingType.LEC)

    def test_rejects_malformed_entries(self):
        bad_hour = raw_course("SC2001", ("1", "MON", 9))
        bad_hour["indices"][0]["classes"][0]["timeTo"]["hour"] = 24
        bad_day = raw_course("SC2001", ("1", "XYZ", 9))
        reversed_window = raw_course("SC2001", ("1", "MON", 9))
        reversed_window["indices"][0]["classes"][0]["timeTo"] = {"hour": 8, "minute": 0}
        missing_field = raw_course("SC2001", ("1", "MON", 9))
        del missing_field["indices"][0]["classes"][0]["day"]
        bad_weeks = raw_course("SC2001", ("1", "MON", 9))
        bad_weeks["indices"][0]["classes"][0]["weeks"] = [0, 1]
        repeated_index = raw_course("SC2001", ("1", "MON", 9), ("1", "TUE", 9))
        for data in (bad_hour, bad_day, reversed_window, missing_field, bad_weeks, repeated_index):
            with self.assertRaises(CatalogValidationError):
                parse_catalog([data])

    def test_rejects_duplicate_courses(self):
        with self.assertRaises(CatalogValidationError):
            parse_catalog([raw_course("SC2001", ("1", "MON", 9)), raw_course("SC2001", ("2", "TUE", 9))])

    def test_repeated_index_names_course_and_index(self):
        with self.assertRaises(CatalogValidationError) as ctx:
            parse_catalog([raw_course("A", ("1", "MON", 9), ("2", "WED", 9), ("1", "TUE", 9))])
        self.assertEqual(ctx.exception.details, {"course": "A", "index": "1"})

    def test_load_catalog_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "courses.json"
            path.write_text(json.dumps([raw_course("SC2005", ("7", "FRI", 14))]), encoding="utf-8")
            catalog = load_catalog(str(path))
            self.assertEqual(catalog[0].indices[0].index, "7")

            path.write_text("{not json", encoding="utf-8")
            with self.assertRaises(CatalogValidationError):
                load_catalog(str(path))
            with self.assertRaises(CatalogValidationError):
                load_catalog(str(Path(tmp) / "missing.json"))

    def test_select_courses_keeps_request_order(self):
        catalog = parse_catalog([raw_course("A", ("1", "MON", 9)), raw_course("B", ("1", "TUE", 9))])
        self.assertEqual([c.course for c in select_courses(catalog, ["B", "Z", "A"])], ["B", "A"])


class EncodingTests(unittest.TestCase):
    def setUp(self):
        self.domains = {
            "SC2005": [gene("SC2005", "1", slot("MON", (9, 0), (10, 0))), gene("SC2005", "2")],
            "SC2001": [gene("SC2001", "7", slot("TUE", (9, 0), (10, 0)))],
        }

    def test_key_is_order_independent(self):
        a = Timetable({"SC2005": self.domains["SC2005"][0], "SC2001": self.domains["SC2001"][0]})
        b = Timetable({"SC2001": self.domains["SC2001"][0], "SC2005": self.domains["SC2005"][0]})
        self.assertEqual(timetable_key(a), timetable_key(b))
        self.assertEqual(timetable_key(a), (("SC2001", "7"), ("SC2005", "1")))
        self.assertEqual(describe_timetable(a), "SC2005 1, SC2001 7")

    def test_from_dict(self):
        tt = timetable_from_dict({"SC2005": "2", "SC2001": 7}, self.domains)
        self.assertIs(tt.courses["SC2005"], self.domains["SC2005"][1])
        self.assertEqual(timetable_to_dict(tt), {"SC2005": "2", "SC2001": "7"})
        with self.assertRaises(PlannerError):
            timetable_from_dict({"SC2005": "9"}, self.domains)


class ReportTests(unittest.TestCase):
    def setUp(self):
        self.domains = {
            "SC2001": [
                gene("SC2001", "1", slot("MON", (9, 0), (10, 0))),
                gene("SC2001", "2", slot("MON", (10, 0), (11, 0))),
            ],
            "SC2005": [gene("SC2005", "5", slot("MON", (10, 30), (11, 30), MeetingType.TUT))],
        }
        self.best = Timetable({"SC2001": self.domains["SC2001"][0], "SC2005": self.domains["SC2005"][0]})

    def test_analyze_population(self):
        population = [Timetable(), Timetable(), Timetable(), Timetable()]
        report = analyze_population(population, [10, INFEASIBLE, 30, 30])
        self.assertEqual((report.failures, report.successes), (1, 3))
        self.assertAlmostEqual(report.mean_score, 70 / 3)
        self.assertEqual(report.best_score, 30)
        self.assertIs(report.best_timetable, population[2])

    def test_analyze_timetable(self):
        tt = Timetable(
            {
                "SC2001": gene(
                    "SC2001",
                    "1",
                    slot("MON", (8, 0), (10, 0)),
                    slot("MON", (10, 30), (12, 30), MeetingType.TUT),
                    slot("MON", (13, 0), (14, 0), MeetingType.LAB),
                ),
                "SC2005": gene("SC2005", "5", slot("WED", (16, 0), (18, 0))),
            }
        )
        analysis = analyze_timetable(tt)
        self.assertEqual(
            analysis.as_row(),
            {"days_with_classes": 2, "average_gap": 30, "long_blocks": 1, "early_starts": 1, "late_ends": 1},
        )
        empty = analyze_timetable(Timetable())
        self.assertEqual((empty.days_with_classes, empty.average_gap, empty.long_blocks), (0, 0, 0))

    def test_analyze_population_without_feasible_members(self):
        population = [Timetable(), Timetable()]
        report = analyze_population(population, [INFEASIBLE, INFEASIBLE])
        self.assertIsNone(report.mean_score)
        self.assertEqual(report.best_score, INFEASIBLE)
        self.assertIs(report.best_timetable, population[0])

    def test_grid_marks_touched_buckets(self):
        grid = occupancy_grid(self.best, "30m")
        self.assertEqual(grid.shape, (7, 48))
        self.assertEqual(list(grid[0].nonzero()[0]), [18, 19, 21, 22])
        self.assertFalse(grid[1:].any())

        hourly = occupancy_grid(self.best, "1h")
        self.assertEqual(hourly.shape, (7, 24))
        self.assertEqual(list(hourly[0].nonzero()[0]), [9, 10, 11])

        short = Timetable({"X": gene("X", "1", slot("FRI", (9, 0), (9, 20)))})
        self.assertEqual(list(occupancy_grid(short)[4].nonzero()[0]), [18])

    def test_grid_for_one_week(self):
        tt = Timetable({"X": gene("X", "1", slot("TUE", (8, 0), (9, 0), weeks=(2,)))})
        self.assertTrue(occupancy_grid(tt, week=2).any())
        self.assertFalse(occupancy_grid(tt, week=3).any())

    def test_render_grid(self):
        lines = render_grid(self.best).split("\n")
        self.assertEqual(len(lines), 7)
        self.assertTrue(all(len(line) == 48 for line in lines))
        self.assertEqual(lines[0][18:23], "XX XX")
        labelled = render_grid(self.best, "1h", show_days=True).split("\n")
        self.assertTrue(labelled[0].startswith("MON |"))
        self.assertEqual(len(labelled[6]), len("SUN |") + 24 + 1)

    def test_timetable_dataframe(self):
        df = timetable_to_dataframe(self.best)
        self.assertEqual(list(df.columns), ["Course", "Index", "Type", "Day", "Start", "End", "Weeks"])
        self.assertEqual(list(df["Course"]), ["SC2001", "SC2005"])
        self.assertEqual(df.iloc[1]["Start"], "10:30")
        self.assertEqual(df.iloc[0]["Weeks"], "Teaching Wk1-13")
        self.assertTrue(timetable_to_dataframe(Timetable()).empty)

    def test_index_swap_analysis(self):
        df = index_swap_analysis(self.best, self.domains, ScoringConfig())
        self.assertEqual(len(df), 3)
        current = df[df["current"]]
        self.assertTrue((current["delta"] == 0).all())
        swapped = df[(df["course"] == "SC2001") & (df["index"] == "2")].iloc[0]
        self.assertEqual(swapped["score"], INFEASIBLE)
        self.assertTrue(pd.isna(swapped["delta"]))

    def test_export_outputs(self):
        history = history_to_dataframe([{"gen": 0, "best_score": 5}])
        with tempfile.TemporaryDirectory() as tmp:
            out = Path(tmp) / "out"
            export_outputs(out, self.best, 5, history, {"best_score": 5})
            for name in ("schedule.csv", "history.csv", "metrics.csv", "best_timetable.json"):
                self.assertTrue((out / name).exists(), name)
            payload = json.loads((out / "best_timetable.json").read_text(encoding="utf-8"))
            self.assertEqual(payload, {"score": 5, "indices": {"SC2001": "1", "SC2005": "5"}})
            self.assertEqual(len(pd.read_csv(out / "schedule.csv")), 2)


if __name__ == "__main__":
    unittest.main()
