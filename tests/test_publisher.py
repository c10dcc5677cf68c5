from __future__ import annotations

from pathlib import Path
import json
import tempfile
import unittest

from shrinker.errors import ConfigurationError
from shrinker.lifecycle import ArtifactLayout
from shrinker.publisher import ArtifactPublisher, BuildOutputs

from tests.support import make_config, make_jar, make_project, messages, quiet_console


class ArtifactPublisherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.project = make_project(self.root)
        self.output = make_jar(self.project.build_directory / "app-1.0-small.jar", {"A.class": "a"})
        self.console = quiet_console()
        self.outputs = BuildOutputs()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _publisher(self, **overrides):
        config = make_config(self.project, **overrides)
        return ArtifactPublisher(config=config, project=self.project, console=self.console, outputs=self.outputs), config

    def _layout(self, *, same_artifact: bool = False) -> ArtifactLayout:
        return ArtifactLayout(
            in_jar=self.project.build_directory / "app-1.0.jar",
            in_jar_present=True,
            out_jar=self.output,
            outjar_name=self.output.name,
            same_artifact=same_artifact,
        )

    def test_nothing_attached_without_attach(self) -> None:
        publisher, _ = self._publisher()
        self.assertEqual(publisher.publish(self._layout(), self.output), [])
        self.assertEqual(self.outputs.attached, [])

    def test_missing_map_warns_and_primary_attach_proceeds(self) -> None:
        publisher, _ = self._publisher(attach=True, attach_map=True)

        attached = publisher.publish(self._layout(), self.output)

        self.assertEqual([(item.type, item.classifier, item.file) for item in attached], [("jar", "small", self.output)])
        self.assertIn("Cannot attach proguard map artifact as file does not exist.", messages(self.console.warn))

    def test_map_and_seed_are_attached(self) -> None:
        publisher, config = self._publisher(attach=True, attach_map=True, attach_seed=True)
        config.mapping_file.write_text("a -> b\n")
        config.seed_file.write_text("app.Main\n")

        attached = publisher.publish(self._layout(), self.output)

        self.assertEqual(
            [(item.type, item.classifier) for item in attached],
            [
                ("jar", "small"),
                ("txt", "small-map"),
                ("txt", "small-seed"),
                ("txt", "proguard-map"),
                ("txt", "proguard-seed"),
            ],
        )
        self.console.warn.assert_not_called()

    def test_same_artifact_is_not_attached_again(self) -> None:
        publisher, config = self._publisher(attach=True, append_classifier=False, attach_map=True)
        config.mapping_file.write_text("a -> b\n")

        attached = publisher.publish(self._layout(same_artifact=True), self.output)

        self.assertEqual([(item.type, item.classifier) for item in attached], [("txt", "map"), ("txt", "proguard-map")])

    def test_classifierless_attach_colliding_with_packaging_is_rejected(self) -> None:
        publisher, _ = self._publisher(attach=True, attach_artifact_classifier=None)
        with self.assertRaises(ConfigurationError):
            publisher.validate(self._layout())

        publisher, _ = self._publisher(attach=True, attach_artifact_classifier=None, attach_artifact_type="aar")
        publisher.validate(self._layout())

    def test_empty_map_classifier_is_rejected(self) -> None:
        publisher, _ = self._publisher(attach=True, attach_map=True, attach_map_artifact_classifier=None)
        with self.assertRaises(ConfigurationError):
            publisher.validate(self._layout())

    def test_outputs_serialize_as_json(self) -> None:
        self.outputs.attach("jar", "small", self.output)
        self.outputs.attach("txt", None, Path("map.txt"))
        self.assertEqual(
            json.loads(self.outputs.serialize()),
            [
                {"type": "jar", "classifier": "small", "file": str(self.output)},
                {"type": "txt", "classifier": None, "file": "map.txt"},
            ],
        )


if __name__ == "__main__":
    unittest.main()
