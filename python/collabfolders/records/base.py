"""
The base classes for persisting the per-context state of collaborative folder access.

An access record is keyed by an :py:class:`AccessContext`, the combination of an activity
instance and either a user or a group.  It holds up to two independently settable fields:
``link``, the browser URL of the folder after its owner renamed it, and ``foldername``, the name
chosen for it.  The :py:class:`AccessRecordStore` provides the upsert semantics over a storage
backend that implements the four primitive record operations of :py:class:`RecordBackend`.
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, MutableMapping
from typing import Optional

from ..exceptions import RecordStoreException

LINK = "link"
FOLDERNAME = "foldername"
FIELDS = (LINK, FOLDERNAME)

LINK_TABLE = "collaborativefolders_link"

class AccessContext:
    """
    the scope of an access record:  an activity instance together with the user or the group it
    concerns.
    """

    def __init__(self, cmid, userid: str=None, groupid=None):
        """
        :param cmid:          the identifier of the activity instance
        :param str  userid:   the identifier of the user the record applies to
        :param     groupid:   the identifier of the group the record applies to
        :raises ValueError:  if neither a userid nor a groupid is provided
        """
        if cmid is None or cmid == '':
            raise ValueError("AccessContext: cmid is required")
        if not userid and groupid is None:
            raise ValueError("AccessContext: either userid or groupid is required")
        self.cmid = cmid
        self.userid = userid
        self.groupid = groupid

    def key(self) -> Mapping:
        """
        return the record key for this context as a dictionary
        """
        out = {"cmid": str(self.cmid)}
        if self.userid:
            out["userid"] = str(self.userid)
        if self.groupid is not None:
            out["groupid"] = str(self.groupid)
        return out

    def id(self) -> str:
        """
        return a string that uniquely identifies this context (suitable as a file name or lock key)
        """
        return key_id(self.key())

    def __eq__(self, other):
        return isinstance(other, AccessContext) and self.key() == other.key()

    def __hash__(self):
        return hash(self.id())

    def __repr__(self):
        return f"AccessContext({self.id()})"

class RecordBackend(ABC):
    """
    the storage interface for access records.  A record is a dictionary containing the key
    properties of its context plus any stored fields.  Implementations do not coordinate
    concurrent writers.
    """

    @abstractmethod
    def get_record(self, table: str, key: Mapping) -> Optional[MutableMapping]:
        """
        return the record matching all of the properties in the given key, or None if it does
        not exist.
        :raises RecordStoreException:  if the storage could not be read
        """
        raise NotImplementedError()

    @abstractmethod
    def insert_record(self, table: str, record: Mapping):
        """
        save a new record.
        :raises RecordStoreException:  if the storage could not be written
        """
        raise NotImplementedError()

    @abstractmethod
    def update_record(self, table: str, record: Mapping):
        """
        update an existing record.  Only the properties in ``record`` are changed; any others
        already stored are left intact.  The record to update is identified by its ``key``
        property.
        :raises RecordStoreException:  if the storage could not be written
        """
        raise NotImplementedError()

    @abstractmethod
    def delete_record(self, table: str, key: Mapping) -> bool:
        """
        remove the record matching the given key
        :return:  True if a record was deleted, False if it did not exist
        """
        raise NotImplementedError()

class AccessRecordStore:
    """
    the store of per-context access state.  Writes are upserts:  the first write for a context
    creates its record with only the given field populated; later writes change only the
    field being written.
    """

    def __init__(self, backend: RecordBackend, table: str=LINK_TABLE, log: logging.Logger=None):
        if not log:
            log = logging.getLogger("collabfolders").getChild("records")
        self.log = log
        self.backend = backend
        self.table = table

    @staticmethod
    def _check_field(field: str):
        if field not in FIELDS:
            raise ValueError(f"Not a supported access record field: {field}")

    def get_entry(self, field: str, context: AccessContext):
        """
        return the value of a field in the record for the given context, or None if it has not
        been set.
        :raises ValueError:  if ``field`` is not a supported field name
        """
        self._check_field(field)
        rec = self.backend.get_record(self.table, context.key())
        if not rec:
            return None
        return rec.get(field)

    def set_entry(self, field: str, context: AccessContext, value):
        """
        save the value of a field in the record for the given context
        :raises ValueError:  if ``field`` is not a supported field name
        """
        self._check_field(field)
        key = context.key()
        rec = self.backend.get_record(self.table, key)
        if rec is None:
            rec = dict(key)
            rec[field] = value
            self.backend.insert_record(self.table, rec)
            self.log.debug("Created access record for %s", context.id())
        else:
            self.backend.update_record(self.table, {"key": key, field: value})
            self.log.debug("Updated %s in access record for %s", field, context.id())

    def delete_entries(self, context: AccessContext) -> bool:
        """
        remove the record for the given context
        :return:  True if a record existed and was removed
        """
        out = self.backend.delete_record(self.table, context.key())
        if out:
            self.log.info("Removed access record for %s", context.id())
        return out

    def get_link(self, context: AccessContext) -> Optional[str]:
        return self.get_entry(LINK, context)

    def set_link(self, context: AccessContext, link: str):
        self.set_entry(LINK, context, link)

    def get_foldername(self, context: AccessContext) -> Optional[str]:
        return self.get_entry(FOLDERNAME, context)

    def set_foldername(self, context: AccessContext, name: str):
        self.set_entry(FOLDERNAME, context, name)

def matches(record: Mapping, key: Mapping) -> bool:
    """
    return True if the record's properties match all of the properties in the given key
    """
    return all(record.get(k) == v for k, v in key.items()) and \
           all(k in key for k in ("userid", "groupid") if record.get(k) is not None)

def key_id(key: Mapping) -> str:
    """
    return a string that uniquely identifies a record key
    """
    return "_".join(f"{k}-{v}" for k, v in sorted(key.items()))
