"""
An implementation of the record storage interface that uses a MongoDB database as its backend
store
"""
import re
from collections.abc import Mapping, MutableMapping
from typing import Optional

from pymongo import MongoClient

from . import base

_dburl_re = re.compile(r"^mongodb://(\w+(:\S+)?@)?\w+(\.\w+)*(:\d+)?/\w+(\?\w.*)?$")

class MongoRecordBackend(base.RecordBackend):
    """
    a RecordBackend using a MongoDB database as the backend store.  Each table is a collection
    in the database.
    """

    def __init__(self, dburl: str):
        """
        create the backend with its connector to the MongoDB database

        :param str dburl:  the URL of MongoDB database in the form,
                           'mongodb://USER:PW@HOST:PORT/DBNAME'
        :raises ValueError:  if the URL is not of the expected form
        """
        if not _dburl_re.match(dburl):
            raise ValueError("MongoRecordBackend: Bad dburl format (need "
                             "'mongodb://[USER:PASS@]HOST[:PORT]/DBNAME'): "+dburl)
        self._dburl = dburl
        self._mngocli = None
        self._native = None

    def connect(self):
        """
        establish a connection to the database.  This will set the native property to the pymongo
        database object.
        """
        self._mngocli = MongoClient(self._dburl)
        self._native = self._mngocli.get_database()

    def disconnect(self):
        """
        close the connection to the database.
        """
        if self._mngocli:
            try:
                self._mngocli.close()
            finally:
                self._mngocli = None
                self._native = None

    @property
    def native(self):
        """
        the native pymongo database object.  Accessing this property will implicitly connect
        this backend to the underlying MongoDB database.
        """
        if self._native is None:
            self.connect()
        return self._native

    @staticmethod
    def _filter(key: Mapping) -> Mapping:
        # a user's record must not match a group's record and vice versa
        out = dict(key)
        for prop in ("userid", "groupid"):
            if prop not in out:
                out[prop] = None
        return out

    def get_record(self, table: str, key: Mapping) -> Optional[MutableMapping]:
        try:
            return self.native[table].find_one(self._filter(key), {'_id': False})
        except Exception as ex:
            raise base.RecordStoreException("Failed to retrieve record for %s: %s" %
                                            (base.key_id(key), str(ex)), ex)

    def insert_record(self, table: str, record: Mapping):
        try:
            self.native[table].insert_one(dict(record))
        except Exception as ex:
            raise base.RecordStoreException("Failed to insert record: "+str(ex), ex)

    def update_record(self, table: str, record: Mapping):
        key = record.get("key")
        if not key:
            raise base.RecordStoreException("update_record(): record is missing its key")
        updates = {k: v for k, v in record.items() if k != "key"}
        try:
            result = self.native[table].update_one(self._filter(key), {"$set": updates})
        except Exception as ex:
            raise base.RecordStoreException("Failed to update record for %s: %s" %
                                            (base.key_id(key), str(ex)), ex)
        if result.matched_count == 0:
            raise base.RecordStoreException("update_record(): record not found: "+str(key))

    def delete_record(self, table: str, key: Mapping) -> bool:
        try:
            result = self.native[table].delete_one(self._filter(key))
        except Exception as ex:
            raise base.RecordStoreException("Failed to delete record for %s: %s" %
                                            (base.key_id(key), str(ex)), ex)
        return result.deleted_count > 0
