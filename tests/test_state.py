import glob
import json
import os
import stat
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from envfile.models import EnvRecord, LoadOutcome, PersistOutcome
from envfile.state import load_state, merge_env, save_state


class LoadStateTests(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.temp_dir.name, "envfile.json")

    def tearDown(self):
        self.temp_dir.cleanup()

    def _write(self, content: str) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(content)

    def test_missing_file_is_empty_and_not_found(self):
        result = load_state(self.path)
        self.assertEqual(result.record.env, {})
        self.assertFalse(result.found)
        self.assertEqual(result.outcome, LoadOutcome.MISSING)

    def test_loads_env_mapping(self):
        self._write('{"env":{"A":"1","EMPTY":""}}')
        result = load_state(self.path)
        self.assertTrue(result.found)
        self.assertEqual(result.outcome, LoadOutcome.LOADED)
        self.assertEqual(result.record.env, {"A": "1", "EMPTY": ""})

    def test_missing_or_null_env_field_is_empty_record(self):
        for content in ("{}", '{"env":null}', "null", '{"other":1}'):
            with self.subTest(content=content):
                self._write(content)
                result = load_state(self.path)
                self.assertTrue(result.found)
                self.assertEqual(result.record.env, {})

    def test_corrupt_content_is_logged_and_treated_as_absent(self):
        for content in ("not json{", "[]", '{"env":[]}', '{"env":{"A":1}}', ""):
            with self.subTest(content=content):
                self._write(content)
                with self.assertLogs("envfile.state", level="DEBUG") as logs:
                    result = load_state(self.path)
                self.assertFalse(result.found)
                self.assertEqual(result.outcome, LoadOutcome.CORRUPT)
                self.assertEqual(result.record.env, {})
                self.assertIn("Error parsing envfile", logs.output[0])

    def test_deeply_nested_json_is_corrupt(self):
        self._write("[" * 200000)
        result = load_state(self.path)
        self.assertFalse(result.found)
        self.assertEqual(result.outcome, LoadOutcome.CORRUPT)
        self.assertEqual(result.record.env, {})

    def test_unreadable_path_is_treated_as_absent(self):
        os.mkdir(self.path)
        result = load_state(self.path)
        self.assertFalse(result.found)
        self.assertEqual(result.outcome, LoadOutcome.UNREADABLE)


class SaveStateTests(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.temp_dir.name, "envfile.json")

    def tearDown(self):
        self.temp_dir.cleanup()

    def _read(self) -> str:
        with open(self.path, "r", encoding="utf-8") as f:
            return f.read()

    def test_writes_compact_sorted_json(self):
        outcome = save_state(self.path, EnvRecord({"B": "2", "A": "1"}))
        self.assertEqual(outcome, PersistOutcome.WRITTEN)
        self.assertEqual(self._read(), '{"env":{"A":"1","B":"2"}}')

    def test_empty_record_omits_env_field(self):
        save_state(self.path, EnvRecord())
        self.assertEqual(self._read(), "{}")

    def test_roundtrip_preserves_values(self):
        record = EnvRecord({"PATH": "/usr/bin:/bin", "EMPTY": "", "UNICODE": "héllo", "EQ": "a=b"})
        save_state(self.path, record)
        loaded = load_state(self.path)
        self.assertEqual(loaded.record, record)

    @unittest.skipIf(os.name != "posix", "POSIX permissions only")
    def test_file_is_private_to_owner(self):
        save_state(self.path, EnvRecord({"TOKEN": "secret"}))
        mode = stat.S_IMODE(os.stat(self.path).st_mode)
        self.assertEqual(mode, 0o600)

    def test_overwrites_previous_content_and_leaves_no_temp_files(self):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("garbage that is longer than the new record")
        save_state(self.path, EnvRecord({"A": "1"}))
        self.assertEqual(json.loads(self._read()), {"env": {"A": "1"}})
        self.assertEqual(glob.glob(os.path.join(self.temp_dir.name, ".envfile-*")), [])

    def test_creates_missing_parent_directory(self):
        nested = os.path.join(self.temp_dir.name, "a", "b", "envfile.json")
        self.assertEqual(save_state(nested, EnvRecord({"A": "1"})), PersistOutcome.WRITTEN)
        self.assertTrue(os.path.exists(nested))

    def test_serialize_failure_leaves_file_untouched(self):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write('{"env":{"A":"1"}}')
        outcome = save_state(self.path, EnvRecord({"A": "1", "B": 2}))
        self.assertEqual(outcome, PersistOutcome.SERIALIZE_FAILED)
        self.assertEqual(self._read(), '{"env":{"A":"1"}}')

    def test_write_failure_is_reported(self):
        blocker = os.path.join(self.temp_dir.name, "not-a-dir")
        with open(blocker, "w") as f:
            f.write("x")
        outcome = save_state(os.path.join(blocker, "envfile.json"), EnvRecord({"A": "1"}))
        self.assertEqual(outcome, PersistOutcome.WRITE_FAILED)


class MergeEnvTests(unittest.TestCase):
    def test_incoming_wins_and_untouched_keys_survive(self):
        prev = EnvRecord({"A": "1", "B": "2"})
        merged = merge_env(prev, {"B": "3", "C": "4"})
        self.assertEqual(merged.env, {"A": "1", "B": "3", "C": "4"})

    def test_does_not_mutate_inputs(self):
        prev = EnvRecord({"A": "1"})
        incoming = {"A": "2"}
        merge_env(prev, incoming)
        self.assertEqual(prev.env, {"A": "1"})
        self.assertEqual(incoming, {"A": "2"})

    def test_no_existing_record(self):
        self.assertEqual(merge_env(None, {"A": "1"}).env, {"A": "1"})

    def test_precedence_over_several_cases(self):
        cases = [
            ({}, {"X": "1"}),
            ({"X": "1"}, {"X": ""}),
            ({"X": "1", "Y": "2"}, {"Z": "3"}),
            ({"X": "1", "Y": "2"}, {"X": "9", "Y": "8"}),
        ]
        for prev, incoming in cases:
            with self.subTest(prev=prev, incoming=incoming):
                merged = merge_env(EnvRecord(dict(prev)), incoming)
                for key, value in incoming.items():
                    self.assertEqual(merged.env[key], value)
                for key in set(prev) - set(incoming):
                    self.assertEqual(merged.env[key], prev[key])
                self.assertEqual(set(merged.env), set(prev) | set(incoming))


if __name__ == "__main__":
    unittest.main()
