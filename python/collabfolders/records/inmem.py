"""
An implementation of the record storage interface that keeps records in memory.  This is
intended for testing and single-process use.
"""
from copy import deepcopy
from collections.abc import Mapping, MutableMapping
from typing import Optional

from . import base

class InMemoryRecordBackend(base.RecordBackend):
    """
    a RecordBackend in which the records are held in a dictionary of lists, keyed by table name
    """

    def __init__(self, dbdata: MutableMapping=None):
        """
        :param dict dbdata:  the dictionary to store records in; if not provided, an empty one
                             is created.  Providing one allows tests to inspect the stored records.
        """
        if dbdata is None:
            dbdata = {}
        self._db = dbdata

    def _find(self, table, key):
        for rec in self._db.get(table, []):
            if base.matches(rec, key):
                return rec
        return None

    def get_record(self, table: str, key: Mapping) -> Optional[MutableMapping]:
        out = self._find(table, key)
        return deepcopy(out) if out is not None else None

    def insert_record(self, table: str, record: Mapping):
        self._db.setdefault(table, []).append(deepcopy(record))

    def update_record(self, table: str, record: Mapping):
        key = record.get("key")
        if not key:
            raise base.RecordStoreException("update_record(): record is missing its key")
        rec = self._find(table, key)
        if rec is None:
            raise base.RecordStoreException("update_record(): record not found: "+str(key))
        rec.update(deepcopy({k: v for k, v in record.items() if k != "key"}))

    def delete_record(self, table: str, key: Mapping) -> bool:
        rec = self._find(table, key)
        if rec is None:
            return False
        self._db[table].remove(rec)
        return True
