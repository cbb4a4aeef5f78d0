import asyncio
import logging
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from csv_partial_cache.config import ConfigLoadRequest, YamlConfigLoader
from csv_partial_cache.errors import ConfigError
from csv_partial_cache.logging import init_logging
from csv_partial_cache.config.models import LoggingSettings
from csv_partial_cache.models import OffsetWidth

CONFIG_YAML = """\
cache:
  path: data/status.csv
  key_column: code
  cached_columns: [name]
  offset_width: 32
  fetch_policy: shared_lock
  dialect:
    delimiter: ";"
logging:
  level: debug
"""


class YamlConfigLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.yaml_path = Path(self._tmp.name) / "config.yaml"
        env = {k: v for k, v in os.environ.items() if not k.startswith("CSVPC__")}
        patcher = mock.patch.dict(os.environ, env, clear=True)
        patcher.start()
        self.addCleanup(patcher.stop)

    def _load(self):
        request = ConfigLoadRequest(yaml_path=str(self.yaml_path), dotenv_path=None)
        return asyncio.run(YamlConfigLoader().load(request))

    def test_loads_yaml_with_defaults(self) -> None:
        self.yaml_path.write_text(CONFIG_YAML, encoding="utf-8")

        config = self._load()

        self.assertEqual(config.cache.path, "data/status.csv")
        self.assertEqual(config.cache.offset_width, OffsetWidth.U32)
        self.assertEqual(config.cache.fetch_policy, "shared_lock")
        self.assertEqual(config.cache.dialect.delimiter, ";")
        self.assertEqual(config.cache.dialect.quotechar, '"')
        self.assertEqual(config.cache.encoding, "utf-8")
        self.assertEqual(config.cache.effective_columns(), ("code", "name"))
        self.assertEqual(config.logging.file.path, "")

    def test_environment_overrides_yaml(self) -> None:
        self.yaml_path.write_text(CONFIG_YAML, encoding="utf-8")
        os.environ["CSVPC__CACHE__PATH"] = "/srv/other.csv"
        os.environ["CSVPC__LOGGING__FILE__PATH"] = "logs/app.log"

        config = self._load()

        self.assertEqual(config.cache.path, "/srv/other.csv")
        self.assertEqual(config.logging.file.path, "logs/app.log")

    def test_dotenv_values_are_applied(self) -> None:
        self.yaml_path.write_text(CONFIG_YAML, encoding="utf-8")
        dotenv_path = Path(self._tmp.name) / ".env"
        dotenv_path.write_text("CSVPC__CACHE__ENCODING=latin-1\n", encoding="utf-8")

        request = ConfigLoadRequest(yaml_path=str(self.yaml_path), dotenv_path=str(dotenv_path))
        config = asyncio.run(YamlConfigLoader().load(request))

        self.assertEqual(config.cache.encoding, "latin-1")

    def test_unknown_key_is_config_error(self) -> None:
        self.yaml_path.write_text(CONFIG_YAML + "extra: 1\n", encoding="utf-8")

        with self.assertRaises(ConfigError):
            self._load()

    def test_invalid_fetch_policy_is_config_error(self) -> None:
        self.yaml_path.write_text(CONFIG_YAML.replace("shared_lock", "unguarded"), encoding="utf-8")

        with self.assertRaises(ConfigError):
            self._load()

    def test_missing_file_is_config_error(self) -> None:
        with self.assertRaises(ConfigError):
            self._load()

    def test_non_mapping_yaml_is_config_error(self) -> None:
        self.yaml_path.write_text("- a\n- b\n", encoding="utf-8")

        with self.assertRaises(ConfigError):
            self._load()


class InitLoggingTests(unittest.TestCase):
    def setUp(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level

        def restore() -> None:
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)

        self.addCleanup(restore)

    def test_invalid_level_is_rejected(self) -> None:
        with self.assertRaises(ConfigError):
            init_logging(LoggingSettings(level="loud"))

    def test_file_handler_is_added(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_path = Path(tmp) / "logs" / "app.log"
            settings = LoggingSettings.model_validate({"level": "info", "file": {"path": str(log_path)}})

            init_logging(settings)
            logging.getLogger("csv_partial_cache.test").info("hello")
            for handler in logging.getLogger().handlers:
                handler.flush()

            self.assertIn("hello", log_path.read_text(encoding="utf-8"))
            for handler in list(logging.getLogger().handlers):
                logging.getLogger().removeHandler(handler)
                handler.close()


if __name__ == "__main__":
    unittest.main()
