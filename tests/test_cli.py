import contextlib
import io
import json
import logging
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from csv_partial_cache.__main__ import main

STATUS_CSV = "code,name,description\n100,Continue,Keep going\n101,Switching Protocols,Upgrade\n"


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        root = Path(self._tmp.name)
        self.csv_path = root / "status.csv"
        self.csv_path.write_text(STATUS_CSV, encoding="utf-8")
        self.config_path = root / "config.yaml"
        self.config_path.write_text(
            f"cache:\n  path: {json.dumps(str(self.csv_path))}\n  key_column: code\n  cached_columns: [name]\n"
            "logging:\n  level: warning\n",
            encoding="utf-8",
        )

        env = {k: v for k, v in os.environ.items() if not k.startswith("CSVPC__")}
        env_patcher = mock.patch.dict(os.environ, env, clear=True)
        env_patcher.start()
        self.addCleanup(env_patcher.stop)

        root_logger = logging.getLogger()
        saved_handlers, saved_level = list(root_logger.handlers), root_logger.level

        def restore() -> None:
            for handler in list(root_logger.handlers):
                root_logger.removeHandler(handler)
            for handler in saved_handlers:
                root_logger.addHandler(handler)
            root_logger.setLevel(saved_level)

        self.addCleanup(restore)

    def _run(self, *argv: str) -> tuple[int, str]:
        stdout = io.StringIO()
        args = ["csv-partial-cache", "--config", str(self.config_path), *argv]
        with mock.patch.object(sys, "argv", args), contextlib.redirect_stdout(stdout):
            with self.assertRaises(SystemExit) as ctx:
                main()
        return ctx.exception.code, stdout.getvalue()

    def test_find_prints_full_row(self) -> None:
        code, out = self._run("find", "101")

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), {"code": "101", "name": "Switching Protocols", "description": "Upgrade"})

    def test_find_sorted(self) -> None:
        code, out = self._run("find", "--sorted", "100")

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["name"], "Continue")

    def test_missing_key_exits_with_one(self) -> None:
        code, out = self._run("find", "999")

        self.assertEqual(code, 1)
        self.assertEqual(out, "")

    def test_stats(self) -> None:
        code, out = self._run("stats")

        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertEqual(payload["rows"], 2)
        self.assertEqual(payload["columns"], ["code", "name", "description"])

    def test_unknown_cached_column_exits_with_one(self) -> None:
        self.config_path.write_text(
            self.config_path.read_text(encoding="utf-8").replace("[name]", "[nope]"),
            encoding="utf-8",
        )

        code, _ = self._run("stats")

        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
