import os, json, logging, tempfile
from pathlib import Path
import unittest as test
from unittest.mock import patch

import yaml

from collabfolders import config
from collabfolders.exceptions import ConfigurationError

tmpdir = tempfile.TemporaryDirectory(prefix="_test_config.")

def tearDownModule():
    tmpdir.cleanup()

class TestMergeConfig(test.TestCase):

    def test_merge(self):
        defs = {"issuerid": "owncloud", "records": {"backend": "fsbased", "db_root_dir": "/tmp"},
                "share_permissions": 31}
        over = {"records": {"backend": "mongo"}, "loglevel": "DEBUG"}

        out = config.merge_config(over, defs)
        self.assertEqual(out['issuerid'], "owncloud")
        self.assertEqual(out['records'], {"backend": "mongo", "db_root_dir": "/tmp"})
        self.assertEqual(out['share_permissions'], 31)
        self.assertEqual(out['loglevel'], "DEBUG")

        # inputs are not changed
        self.assertEqual(defs['records']['backend'], "fsbased")
        self.assertNotIn('loglevel', defs)

    def test_merge_replaces_nonmapping(self):
        out = config.merge_config({"records": "none"}, {"records": {"backend": "inmem"}})
        self.assertEqual(out['records'], "none")

class TestLoadConfig(test.TestCase):

    def setUp(self):
        self.data = {
            "issuerid": "owncloud",
            "issuers": { "owncloud": { "baseurl": "https://cloud.example.edu/" } }
        }

    def test_load_yaml(self):
        path = Path(tmpdir.name) / "cfg.yml"
        with open(path, 'w') as fd:
            yaml.safe_dump(self.data, fd)
        self.assertEqual(config.load_from_file(path), self.data)

    def test_load_json(self):
        path = Path(tmpdir.name) / "cfg.json"
        with open(path, 'w') as fd:
            json.dump(self.data, fd)
        self.assertEqual(config.load_from_file(str(path)), self.data)

    def test_load_empty(self):
        path = Path(tmpdir.name) / "empty.yml"
        path.write_text("")
        self.assertEqual(config.load_from_file(path), {})

    def test_load_errors(self):
        with self.assertRaises(ConfigurationError):
            config.load_from_file(Path(tmpdir.name) / "missing.yml")

        path = Path(tmpdir.name) / "bad.json"
        path.write_text("{ goob")
        with self.assertRaises(ConfigurationError):
            config.load_from_file(path)

        path = Path(tmpdir.name) / "list.yml"
        path.write_text("- a\n- b\n")
        with self.assertRaises(ConfigurationError):
            config.load_from_file(path)

    def test_resolve(self):
        path = Path(tmpdir.name) / "env.yml"
        with open(path, 'w') as fd:
            yaml.safe_dump(self.data, fd)

        with patch.dict(os.environ, {config.CONFIG_FILE_ENV_VAR: str(path)}):
            self.assertEqual(config.resolve_configuration(), self.data)

        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ConfigurationError):
                config.resolve_configuration()
            self.assertEqual(config.resolve_configuration(str(path)), self.data)

class TestConfigureLog(test.TestCase):

    def setUp(self):
        self.rootlog = logging.getLogger()
        self.handlers = list(self.rootlog.handlers)
        self.level = self.rootlog.level

    def tearDown(self):
        for h in list(self.rootlog.handlers):
            if h not in self.handlers:
                self.rootlog.removeHandler(h)
                h.close()
        self.rootlog.setLevel(self.level)

    def test_configure_file(self):
        cfg = { "logdir": tmpdir.name, "logfile": "test.log", "loglevel": "DEBUG" }
        log = config.configure_log(config=cfg)
        self.assertEqual(log.level, logging.DEBUG)

        logging.getLogger("collabfolders").debug("hello")
        self.assertTrue((Path(tmpdir.name) / "test.log").is_file())

    def test_bad_level(self):
        with self.assertRaises(ConfigurationError):
            config.configure_log(level="GOOBER", addstderr=True)


if __name__ == '__main__':
    test.main()
