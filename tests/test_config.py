from __future__ import annotations

from pathlib import Path
import tempfile
import textwrap
import unittest

from shrinker.cli import load_build_file
from shrinker.config import ExclusionRule, InclusionRule, ShrinkerConfig
from shrinker.model import Dependency, Project

from tests.support import make_project


class ProjectMappingTests(unittest.TestCase):
    def test_defaults_follow_basedir(self) -> None:
        root = Path("/work/app")
        project = Project.from_mapping(
            {"project": {"group_id": "com.example", "artifact_id": "app", "version": "2.1"}},
            root=root,
        )
        self.assertEqual(project.basedir, root)
        self.assertEqual(project.build_directory, root / "target")
        self.assertEqual(project.output_directory, root / "target" / "classes")
        self.assertEqual(project.final_name, "app-2.1")
        self.assertEqual(project.packaging, "jar")
        self.assertEqual(project.artifacts, [])

    def test_modules_and_dependencies(self) -> None:
        root = Path("/work/app")
        project = Project.from_mapping(
            {
                "project": {
                    "group_id": "com.example",
                    "artifact_id": "app",
                    "packaging": "WAR",
                    "modules": {"com.example:common": "../common/target/classes"},
                },
                "dependencies": [
                    {"group_id": "g", "artifact_id": "a", "version": "1", "file": "libs/a-1.jar"},
                    {"group_id": "g", "artifact_id": "t", "version": "1", "scope": "test", "classifier": "tests"},
                ],
                "tool_artifacts": [{"group_id": "p", "artifact_id": "proguard", "version": "6", "depth": 2}],
            },
            root=root,
        )
        self.assertEqual(project.packaging, "war")
        self.assertEqual(project.module_output("com.example:common"), root / "../common/target/classes")
        self.assertEqual(project.artifacts[0].file, root / "libs" / "a-1.jar")
        self.assertEqual(str(project.artifacts[1]), "g:t:jar:tests:1:test")
        self.assertEqual([item.artifact_id for item in project.compile_artifacts()], ["a"])
        self.assertEqual(project.tool_artifacts[0].depth, 2)

    def test_missing_coordinates_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Project.from_mapping({"project": {"artifact_id": "app"}}, root=Path("/work"))
        with self.assertRaises(ValueError):
            Project.from_mapping({}, root=Path("/work"))
        with self.assertRaises(ValueError):
            Dependency.from_mapping({"group_id": "g"}, base=Path("/work"))


class ShrinkerConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.project = make_project(self.root)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_defaults(self) -> None:
        config = ShrinkerConfig.from_mapping({}, project=self.project)
        self.assertEqual(config.output_directory, self.project.build_directory)
        self.assertEqual(config.injar, "app-1.0.jar")
        self.assertEqual(config.proguard_include, self.root / "proguard.conf")
        self.assertTrue(config.obfuscate)
        self.assertTrue(config.include_dependency)
        self.assertEqual(config.attach_artifact_classifier, "small")
        self.assertEqual(config.main_class, "proguard.ProGuard")
        self.assertEqual(config.mapping_file, self.project.build_directory / "proguard_map.txt")
        self.assertEqual(config.library_staging_dir, self.project.build_directory / "tempLibraryjars")
        self.assertTrue(config.use_artifact_classifier())

    def test_rules_and_options(self) -> None:
        config = ShrinkerConfig.from_mapping(
            {
                "options": ["-dontoptimize", " -keep class * "],
                "libs": "rt.jar",
                "inclusions": [{"artifact_id": "core", "library": True, "filter": "!**.txt"}],
                "exclusions": [{"group_id": "org.junit"}],
                "attach_artifact_classifier": "",
                "proguard_include": "",
            },
            project=self.project,
        )
        self.assertEqual(config.options, ("-dontoptimize", "-keep class *"))
        self.assertEqual(config.libs, ("rt.jar",))
        self.assertEqual(config.inclusions, (InclusionRule(artifact_id="core", library=True, filter="!**.txt"),))
        self.assertEqual(config.exclusions, (ExclusionRule(group_id="org.junit"),))
        self.assertIsNone(config.attach_artifact_classifier)
        self.assertFalse(config.use_artifact_classifier())
        self.assertIsNone(config.proguard_include)

    def test_unknown_option_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            ShrinkerConfig.from_mapping({"obfuscation": False}, project=self.project)

    def test_booleans_are_strict(self) -> None:
        with self.assertRaises(TypeError):
            ShrinkerConfig.from_mapping({"attach": "yes"}, project=self.project)
        with self.assertRaises(TypeError):
            ShrinkerConfig.from_mapping({"inclusions": [{"artifact_id": "a", "library": 1}]}, project=self.project)


class BuildFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_toml_build_file(self) -> None:
        build_file = self.root / "shrinker.toml"
        build_file.write_text(
            textwrap.dedent(
                """
                [project]
                group_id = "com.example"
                artifact_id = "app"
                version = "1.0"

                [[dependencies]]
                group_id = "g"
                artifact_id = "a"
                version = "1"
                file = "libs/a-1.jar"

                [proguard]
                attach = true
                options = ["-dontwarn"]

                [[proguard.exclusions]]
                artifact_id = "a"
                """
            )
        )

        project, config = load_build_file(build_file)

        self.assertEqual(project.basedir, self.root.resolve())
        self.assertEqual(project.artifacts[0].file, self.root.resolve() / "libs" / "a-1.jar")
        self.assertTrue(config.attach)
        self.assertEqual(config.options, ("-dontwarn",))
        self.assertEqual(config.exclusions, (ExclusionRule(artifact_id="a"),))

    def test_directory_of_build_files_is_merged(self) -> None:
        config_dir = self.root / "build"
        config_dir.mkdir()
        (config_dir / "10-project.toml").write_text(
            '[project]\ngroup_id = "com.example"\nartifact_id = "app"\nversion = "1.0"\n'
        )
        (config_dir / "20-proguard.yaml").write_text("proguard:\n  obfuscate: false\n  max_memory: 1g\n")

        project, config = load_build_file(config_dir)

        self.assertEqual(project.basedir, config_dir.resolve())
        self.assertFalse(config.obfuscate)
        self.assertEqual(config.max_memory, "1g")


if __name__ == "__main__":
    unittest.main()
