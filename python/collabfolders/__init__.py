"""
collabfolders:  provisioning of collaborative folders in an ownCloud-style file-sync server

This package manages folders in a remote file-sync server on behalf of the groups of users
participating in a learning activity.  Folders are created ahead of time by a privileged system
account and are later shared privately with each participant, who names the folder as it should
appear in their own storage.

This package includes the following components:

:py:mod:`access`
    the folder access orchestrator that drives the create/share/rename workflow
:py:mod:`session`
    the manager of the authenticated system-account session used for privileged remote calls
:py:mod:`records`
    the store that remembers, per activity and user, the folder link and name reached so far
:py:mod:`clients`
    thin adapters to the remote server's OAuth2, WebDAV, and OCS sharing APIs
:py:mod:`tasks`
    the background task that creates the folders for an activity instance
:py:mod:`sim`
    simulated remote collaborators useful for testing

Folder Access Workflow
======================

A folder for an activity instance moves through the following states for each user:

  NOT_SHARED  -->  SHARED  -->  RENAMED

The folder is first created by the system account (see
:py:meth:`~collabfolders.access.FolderAccess.create_folder`).  When a user first requests access,
the folder is shared with that user's remote account and then renamed, within the user's storage,
to the name the user chose (see :py:meth:`~collabfolders.access.FolderAccess.share_and_rename`).
The resulting link into the remote server's browser interface is saved to the
:py:class:`~collabfolders.records.AccessRecordStore` so that it can be displayed later.
"""
from .exceptions import CollabFoldersException, ConfigurationError

try:
    from .version import __version__
except ImportError:
    __version__ = "(unset)"
