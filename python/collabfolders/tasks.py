"""
Background jobs for provisioning collaborative folders ahead of user access.

When a collaborative folder activity is created, a :py:class:`FolderCreationTask` creates its
folders in the system account's file space:  one folder named after the activity instance and,
when the activity is run in group mode, one subfolder per group.  Folders are later shared with
users (see :py:meth:`collabfolders.access.FolderAccess.share_and_rename`) using the paths given by
:py:func:`folder_path_for`.
"""
import logging
from collections import OrderedDict
from typing import Iterable

from .access import FolderAccess
from .exceptions import FolderCreationError
from . import messages

TOLERATED_CODES = (201, 405)

def folder_path_for(cmid, groupid=None) -> str:
    """
    return the path of the folder for an activity instance in the system account's file space.
    If ``groupid`` is given, the path of the group's subfolder is returned.
    """
    if groupid is None:
        return f"/{cmid}"
    return f"/{cmid}/{groupid}"

def shared_folder_name(cmid, groupid=None) -> str:
    """
    return the name under which a folder first appears in a user's file space after it is
    shared:  the final component of its path in the system account's space.
    """
    if groupid is None:
        return str(cmid)
    return str(groupid)

class FolderCreationTask:
    """
    a job that creates the folders for an activity instance.  Folders that already exist are
    left in place, so the task can be re-run safely.
    """

    def __init__(self, access: FolderAccess, log: logging.Logger=None):
        if not log:
            log = logging.getLogger("collabfolders").getChild("tasks")
        self.log = log
        self.access = access

    def execute(self, cmid, groupids: Iterable=None):
        """
        create the folders for the given activity instance.  All folders are attempted before
        any failures are reported.

        :param        cmid:  the identifier of the activity instance
        :param    groupids:  the identifiers of the groups participating in the activity if it is
                             run in group mode; if None or empty, only the activity's folder is
                             created.
        :raises FolderCreationError:  if any folder could not be created
        :raises SocketError:  if a connection to the WebDAV server could not be opened
        """
        paths = [folder_path_for(cmid)]
        if groupids:
            paths.extend(folder_path_for(cmid, g) for g in groupids)

        failures = OrderedDict()
        for path in paths:
            code = self.access.create_folder(path)
            if code in TOLERATED_CODES:
                self.log.debug("Folder %s ready (%s)", path, code)
            else:
                failures[path] = code

        if failures:
            msg = " ".join(messages.get_string('notcreated', p) +
                          messages.get_string('unexpectedcode', c) for p, c in failures.items())
            self.log.error("Folder creation for %s incomplete: %s", cmid, msg)
            raise FolderCreationError(msg, failures)

        self.log.info("Created %d folder(s) for activity %s", len(paths), cmid)
