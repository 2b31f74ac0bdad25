"""
An implementation of the record storage interface that persists records as JSON files on disk.
Each table is a directory below the storage root, and each record is a file in it named after
the record's key.
"""
import os, json, fcntl
from pathlib import Path
from collections import OrderedDict
from collections.abc import Mapping, MutableMapping
from typing import Optional
from urllib.parse import quote

from . import base

def _read_json(path: Path):
    with open(path) as fd:
        fcntl.flock(fd, fcntl.LOCK_SH)
        try:
            return json.load(fd, object_pairs_hook=OrderedDict)
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)

def _write_json(data, path: Path):
    with open(path, 'a') as fd:
        fcntl.flock(fd, fcntl.LOCK_EX)
        try:
            fd.truncate(0)
            json.dump(data, fd, indent=4, separators=(',', ': '))
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)

class FSBasedRecordBackend(base.RecordBackend):
    """
    a RecordBackend in which the records are persisted to flat files on disk.
    """

    def __init__(self, dbroot: str):
        """
        :param str dbroot:  the directory to store the records under; it must already exist
        :raises RecordStoreException:  if ``dbroot`` does not exist as a directory
        """
        self._root = Path(dbroot)
        if not self._root.is_dir():
            raise base.RecordStoreException("FSBasedRecordBackend: %s: does not exist as a directory"
                                            % dbroot)

    def _recpath(self, table, key) -> Path:
        return self._root / table / (quote(base.key_id(key), safe='')+".json")

    def _read_rec(self, path):
        if not path.is_file():
            return None
        try:
            return _read_json(path)
        except ValueError as ex:
            raise base.RecordStoreException(str(path)+": Unable to read record as JSON: "+str(ex))
        except IOError as ex:
            raise base.RecordStoreException(str(path)+": file locking error: "+str(ex), ex)

    def _write_rec(self, path, data):
        try:
            path.parent.mkdir(exist_ok=True)
            _write_json(data, path)
        except (IOError, TypeError, ValueError) as ex:
            raise base.RecordStoreException(str(path)+": Unable to write record: "+str(ex), ex)

    def get_record(self, table: str, key: Mapping) -> Optional[MutableMapping]:
        return self._read_rec(self._recpath(table, key))

    def insert_record(self, table: str, record: Mapping):
        key = OrderedDict((k, record[k]) for k in ("cmid", "userid", "groupid") if k in record)
        self._write_rec(self._recpath(table, key), record)

    def update_record(self, table: str, record: Mapping):
        key = record.get("key")
        if not key:
            raise base.RecordStoreException("update_record(): record is missing its key")
        path = self._recpath(table, key)
        rec = self._read_rec(path)
        if rec is None:
            raise base.RecordStoreException("update_record(): record not found: "+str(key))
        rec.update((k, v) for k, v in record.items() if k != "key")
        self._write_rec(path, rec)

    def delete_record(self, table: str, key: Mapping) -> bool:
        path = self._recpath(table, key)
        if not path.exists():
            return False
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as ex:
            raise base.RecordStoreException(str(path)+": Unable to delete record: "+str(ex), ex)
        return True
