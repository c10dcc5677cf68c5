from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from shrinker.classpath import ClasspathResolver
from shrinker.errors import ResolutionError
from shrinker.model import LocationSource

from tests.support import make_dependency, make_jar, make_project, messages, quiet_console


class ClasspathResolverTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.module_dir = self.root / "sibling" / "target" / "classes"
        self.module_dir.mkdir(parents=True)
        self.project = make_project(self.root, modules={"g:sibling": self.module_dir})
        self.console = quiet_console()
        self.resolver = ClasspathResolver(self.project, self.console)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_classifier_artifact_resolves_to_its_file(self) -> None:
        dependency = make_dependency(self.root, "sibling", classifier="tests")
        location = self.resolver.resolve(dependency)
        self.assertEqual(location.path, dependency.file)
        self.assertIs(location.source, LocationSource.CLASSIFIER)

    def test_classifier_artifact_without_file_fails(self) -> None:
        dependency = make_dependency(self.root, "lib", create=False, classifier="tests", file=None)
        with self.assertRaises(ResolutionError):
            self.resolver.resolve(dependency)

    def test_sibling_module_resolves_to_output_directory(self) -> None:
        dependency = make_dependency(self.root, "sibling")
        location = self.resolver.resolve(dependency)
        self.assertEqual(location.path, self.module_dir)
        self.assertIs(location.source, LocationSource.MODULE)
        self.assertTrue(location.is_directory)

    def test_priority_directory_wins_over_dependency_file(self) -> None:
        priority_dir = self.root / "WEB-INF" / "lib"
        bundled = make_jar(priority_dir / "lib-1.0.jar", {"Lib.class": "x"})
        make_jar(priority_dir / "lib-core-1.0.jar", {"Core.class": "x"})
        dependency = make_dependency(self.root, "lib")

        location = self.resolver.resolve(dependency, priority_dir)

        self.assertEqual(location.path, bundled)
        self.assertIs(location.source, LocationSource.PRIORITY)
        self.console.warn.assert_not_called()

    def test_several_priority_candidates_warn_and_use_first(self) -> None:
        priority_dir = self.root / "WEB-INF" / "lib"
        first = make_jar(priority_dir / "lib-1.0.jar", {"Lib.class": "1"})
        make_jar(priority_dir / "lib-2.0.jar", {"Lib.class": "2"})
        dependency = make_dependency(self.root, "lib")

        location = self.resolver.resolve(dependency, priority_dir)

        self.assertEqual(location.path, first)
        warnings = messages(self.console.warn)
        self.assertEqual(len(warnings), 1)
        self.assertIn("lib-1.0.jar, lib-2.0.jar", warnings[0])

    def test_dependency_file_used_when_priority_directory_has_no_match(self) -> None:
        priority_dir = self.root / "WEB-INF" / "lib"
        priority_dir.mkdir(parents=True)
        dependency = make_dependency(self.root, "lib")
        location = self.resolver.resolve(dependency, priority_dir)
        self.assertEqual(location.path, dependency.file)
        self.assertIs(location.source, LocationSource.DEPENDENCY)

    def test_missing_dependency_file_requires_resolution(self) -> None:
        dependency = make_dependency(self.root, "ghost", create=False)
        with self.assertRaises(ResolutionError) as ctx:
            self.resolver.resolve(dependency)
        self.assertIn("Dependency Resolution Required", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
