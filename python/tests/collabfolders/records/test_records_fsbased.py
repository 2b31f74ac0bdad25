import os, json, tempfile
from pathlib import Path
import unittest as test

from collabfolders.records import fsbased, base, create_record_store
from collabfolders.exceptions import RecordStoreException

class TestFSBasedRecordBackend(test.TestCase):

    def setUp(self):
        self.outdir = tempfile.TemporaryDirectory(prefix="_test_records.", dir=".")
        self.be = fsbased.FSBasedRecordBackend(self.outdir.name)
        self.key = {"cmid": "42", "userid": "u1"}

    def tearDown(self):
        self.outdir.cleanup()

    def test_ctor(self):
        with self.assertRaises(RecordStoreException):
            fsbased.FSBasedRecordBackend(os.path.join(self.outdir.name, "goober"))

    def test_insert_get(self):
        self.assertIsNone(self.be.get_record("links", self.key))
        self.be.insert_record("links", {"cmid": "42", "userid": "u1", "link": "a"})

        recfile = Path(self.outdir.name) / "links" / "cmid-42_userid-u1.json"
        self.assertTrue(recfile.is_file())
        with open(recfile) as fd:
            self.assertEqual(json.load(fd)['link'], "a")

        self.assertEqual(self.be.get_record("links", self.key),
                         {"cmid": "42", "userid": "u1", "link": "a"})
        self.assertIsNone(self.be.get_record("links", {"cmid": "42", "groupid": "u1"}))

    def test_update(self):
        self.be.insert_record("links", {"cmid": "42", "userid": "u1", "link": "a"})
        self.be.update_record("links", {"key": self.key, "foldername": "P"})
        self.be.update_record("links", {"key": self.key, "link": "b"})
        self.assertEqual(self.be.get_record("links", self.key),
                         {"cmid": "42", "userid": "u1", "link": "b", "foldername": "P"})

        with self.assertRaises(RecordStoreException):
            self.be.update_record("links", {"key": {"cmid": "43", "userid": "u1"}, "link": "x"})

    def test_odd_ids(self):
        key = {"cmid": "42", "userid": "nist0/u1"}
        self.be.insert_record("links", dict(key, link="a"))
        self.assertEqual(self.be.get_record("links", key)['link'], "a")
        self.assertEqual(len(os.listdir(Path(self.outdir.name) / "links")), 1)

    def test_corrupted(self):
        (Path(self.outdir.name) / "links").mkdir()
        (Path(self.outdir.name) / "links" / "cmid-42_userid-u1.json").write_text("{ goob")
        with self.assertRaises(RecordStoreException):
            self.be.get_record("links", self.key)

    def test_delete(self):
        self.assertFalse(self.be.delete_record("links", self.key))
        self.be.insert_record("links", {"cmid": "42", "userid": "u1", "link": "a"})
        self.assertTrue(self.be.delete_record("links", self.key))
        self.assertIsNone(self.be.get_record("links", self.key))

    def test_store(self):
        store = base.AccessRecordStore(self.be)
        ctx = base.AccessContext(42, "u1")
        store.set_foldername(ctx, "Project")
        store.set_link(ctx, "https://cloud.example.edu/index.php/apps/files/?dir=Project")
        store.set_link(ctx, "https://cloud.example.edu/index.php/apps/files/?dir=Project2")
        self.assertEqual(store.get_link(ctx),
                         "https://cloud.example.edu/index.php/apps/files/?dir=Project2")
        self.assertEqual(store.get_foldername(ctx), "Project")
        self.assertEqual(len(os.listdir(Path(self.outdir.name) / base.LINK_TABLE)), 1)

class TestCreateFSBasedStore(test.TestCase):

    def setUp(self):
        self.outdir = tempfile.TemporaryDirectory(prefix="_test_records.", dir=".")

    def tearDown(self):
        self.outdir.cleanup()

    def test_create(self):
        store = create_record_store({"backend": "fsbased", "working_dir": self.outdir.name,
                                     "db_root_dir": "records"})
        self.assertIsInstance(store.backend, fsbased.FSBasedRecordBackend)
        self.assertTrue((Path(self.outdir.name) / "records").is_dir())

        store = create_record_store({"working_dir": self.outdir.name})
        self.assertIsInstance(store.backend, fsbased.FSBasedRecordBackend)
        self.assertTrue((Path(self.outdir.name) / "dbfiles").is_dir())


if __name__ == '__main__':
    test.main()
