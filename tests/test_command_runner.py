from __future__ import annotations

from pathlib import Path
import sys
import unittest

from core.command_runner import CommandError, RecordingCommandRunner, SubprocessCommandRunner


class SubprocessCommandRunnerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = SubprocessCommandRunner()

    def test_captures_output(self) -> None:
        result = self.runner.run([sys.executable, "-c", "print('hello')"])
        self.assertEqual(result.returncode, 0)
        self.assertEqual(result.stdout.strip(), "hello")
        self.assertFalse(result.streamed)

    def test_streams_merged_lines(self) -> None:
        lines = []
        script = "import sys; print('one'); sys.stderr.write('two\\n'); sys.stderr.flush(); print('three')"
        result = self.runner.run([sys.executable, "-u", "-c", script], on_output=lines.append)
        self.assertEqual(sorted(lines), ["one", "three", "two"])
        self.assertTrue(result.streamed)
        self.assertEqual(sorted(result.stdout.splitlines()), ["one", "three", "two"])

    def test_failure_raises_unless_unchecked(self) -> None:
        command = [sys.executable, "-c", "import sys; print('bad'); sys.exit(4)"]
        with self.assertRaises(CommandError) as ctx:
            self.runner.run(command, on_output=lambda line: None)
        self.assertEqual(ctx.exception.result.returncode, 4)
        self.assertIn("already streamed", str(ctx.exception))

        result = self.runner.run(command, check=False)
        self.assertEqual(result.returncode, 4)
        self.assertEqual(result.stdout.strip(), "bad")

    def test_environment_is_merged(self) -> None:
        result = self.runner.run(
            [sys.executable, "-c", "import os; print(os.environ['SHRINKER_TEST_VALUE'])"],
            env={"SHRINKER_TEST_VALUE": "42"},
        )
        self.assertEqual(result.stdout.strip(), "42")

    def test_undecodable_bytes_are_replaced(self) -> None:
        script = "import sys; sys.stdout.buffer.write(b'Note: \\xff\\xfe bad\\n'); sys.stdout.flush()"

        captured = self.runner.run([sys.executable, "-c", script])
        self.assertTrue(captured.stdout.startswith("Note: "))
        self.assertTrue(captured.stdout.rstrip().endswith(" bad"))

        lines = []
        streamed = self.runner.run([sys.executable, "-c", script], on_output=lines.append)
        self.assertEqual(len(lines), 1)
        self.assertTrue(lines[0].startswith("Note: "))
        self.assertEqual(streamed.stdout, lines[0])


class RecordingCommandRunnerTests(unittest.TestCase):
    def test_records_and_formats_commands(self) -> None:
        runner = RecordingCommandRunner()
        runner.run(["java", "-cp", "proguard jar.jar", "proguard.ProGuard"], note="proguard")
        runner.run(["echo", "hi"], cwd=Path("/tmp/work"))

        formatted = list(runner.iter_formatted(workspace=Path("/ws")))

        self.assertEqual(
            formatted,
            [
                "[dry-run] proguard (cwd=/ws) java -cp 'proguard jar.jar' proguard.ProGuard",
                "[dry-run] (cwd=/tmp/work) echo hi",
            ],
        )

    def test_replays_scripted_output_and_status(self) -> None:
        runner = RecordingCommandRunner(returncode=2, output=["a", "b"])
        seen = []
        with self.assertRaises(CommandError):
            runner.run(["tool"], on_output=seen.append)
        self.assertEqual(seen, ["a", "b"])
        self.assertEqual(runner.run(["tool"], check=False).stdout, "a\nb")


if __name__ == "__main__":
    unittest.main()
