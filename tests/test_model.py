from __future__ import annotations

from pathlib import Path
import unittest

from shrinker.model import RunPlan, jar_reference, name_no_type, quote_path


class ReferenceFormattingTests(unittest.TestCase):
    def test_quote_and_filters(self) -> None:
        self.assertEqual(quote_path(Path("/a b/c.jar")), "'/a b/c.jar'")
        self.assertEqual(jar_reference("/a.jar"), "'/a.jar'")
        self.assertEqual(jar_reference("/a.jar", ["!x", "", "!y"]), "'/a.jar'(!x,!y)")

    def test_name_no_type(self) -> None:
        self.assertEqual(name_no_type("app-1.0.jar"), "app-1.0")
        self.assertEqual(name_no_type("classes"), "classes")


class RunPlanTests(unittest.TestCase):
    def test_first_registration_wins(self) -> None:
        plan = RunPlan()
        self.assertTrue(plan.add_injar(Path("/a.jar")))
        self.assertFalse(plan.add_libraryjar(Path("/a.jar")))
        self.assertFalse(plan.stage_library(Path("/a.jar")))
        self.assertTrue(plan.add_libraryjar("/b.jar"))
        self.assertFalse(plan.add_injar(Path("/b.jar")))
        self.assertEqual(plan.arguments, ["-injars", "'/a.jar'", "-libraryjars", "'/b.jar'"])
        self.assertEqual(plan.input_files, [Path("/a.jar")])

    def test_outjars_need_pending_injars(self) -> None:
        plan = RunPlan()
        self.assertFalse(plan.add_outjar(Path("/out.jar")))
        plan.add_injar(Path("/in.jar"))
        self.assertTrue(plan.add_outjar(Path("/out.jar"), ["!x"]))
        self.assertFalse(plan.add_outjar(Path("/again.jar")))
        self.assertEqual(plan.arguments, ["-injars", "'/in.jar'", "-outjars", "'/out.jar'(!x)"])
        self.assertTrue(plan.has_injars)


if __name__ == "__main__":
    unittest.main()
