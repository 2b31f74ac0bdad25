"""
Persistence of the per-context access state of collaborative folders.

The :py:class:`~collabfolders.records.base.AccessRecordStore` is used together with one of the
storage backends provided in this package:

``inmem``
    :py:class:`~collabfolders.records.inmem.InMemoryRecordBackend` -- records are kept in memory
``fsbased``
    :py:class:`~collabfolders.records.fsbased.FSBasedRecordBackend` -- records are JSON files
``mongo``
    :py:class:`~collabfolders.records.mongo.MongoRecordBackend` -- records are kept in MongoDB

:py:func:`create_record_store` selects the backend according to the configuration.
"""
import os, logging
from collections.abc import Mapping

from .base import (AccessContext, AccessRecordStore, RecordBackend, LINK, FOLDERNAME, FIELDS,
                   LINK_TABLE)
from .inmem import InMemoryRecordBackend
from .fsbased import FSBasedRecordBackend
from ..exceptions import ConfigurationError

DEF_BACKEND = "fsbased"

def create_record_store(config: Mapping, log: logging.Logger=None) -> AccessRecordStore:
    """
    create an AccessRecordStore using the backend specified in the configuration.  The
    configuration supports the following parameters:

    ``backend``
        (str) _optional_.  the type of backend to use: "inmem", "fsbased" (default), or "mongo"
    ``db_root_dir``
        (str) _optional_.  for the fsbased backend, the directory where records are written.  A
        relative path is taken to be relative to ``working_dir``; the default is "dbfiles" under
        ``working_dir``.
    ``working_dir``
        (str) _optional_.  the base directory for a relative ``db_root_dir``; default: "."
    ``db_url``
        (str) _required for mongo_.  the URL of the MongoDB database, of the form
        ``mongodb://[USER:PASS@]HOST[:PORT]/DBNAME``

    :raises ConfigurationError:  if the backend type is not recognized or a required parameter
                                 is missing
    """
    backend = config.get("backend") or DEF_BACKEND

    if backend == "fsbased":
        wdir = config.get('working_dir', '.')
        dbdir = config.get('db_root_dir')
        if not dbdir:
            dbdir = os.path.join(wdir, "dbfiles")
        elif not os.path.isabs(dbdir):
            dbdir = os.path.join(wdir, dbdir)
        if not os.path.exists(dbdir):
            os.makedirs(dbdir)
        store = FSBasedRecordBackend(dbdir)

    elif backend == "mongo":
        from .mongo import MongoRecordBackend
        dburl = config.get('db_url')
        if not dburl:
            raise ConfigurationError("Missing required configuration parameter: db_url")
        store = MongoRecordBackend(dburl)

    elif backend == "inmem":
        store = InMemoryRecordBackend()

    else:
        raise ConfigurationError("Unsupported record backend type: "+backend)

    return AccessRecordStore(store, config.get('table', LINK_TABLE), log)
