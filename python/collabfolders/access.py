"""
The workflow that takes a collaborative folder from "not yet created" to "shared with and named
by its owner."

The :py:class:`FolderAccess` orchestrator combines the remote operations needed for this:

  *  folders are created ahead of time (typically by a background job; see
     :py:mod:`collabfolders.tasks`) as the system account with :py:meth:`FolderAccess.create_folder`
  *  when a user first requests access, the folder is shared privately with the user's remote
     account (:py:meth:`FolderAccess.share`) and then renamed within the user's own file space to
     the name the user chose (:py:meth:`FolderAccess.rename`).  The resulting browser link is
     saved so that later requests can go directly to the folder.

:py:meth:`FolderAccess.share_and_rename` is the primary entry point that performs the last two
steps.  Expected failures (sharing rejected, folder not movable, user not logged in) are not
raised; they are returned as :py:class:`AccessResult` objects carrying a message suitable for
display.
"""
import logging, posixpath, threading
from collections.abc import Mapping
from copy import deepcopy

from .session import RemoteSession, RemoteSessionManager
from .records import AccessRecordStore, AccessContext, create_record_store
from .clients.oauth2 import UserSession
from .clients.ocs import SHARE_TYPE_USER, STATUS_OK
from .exceptions import *
from . import messages

FILES_APP_PATH = "index.php/apps/files/?dir="
SHARE_EXISTS_CODE = 403
KEYLOCK_STRIPES = 64

TYPE_SHARE = "share"
TYPE_RENAME = "rename"

class ShareOutcome:
    """
    the result of a request to share a folder with a user.  An instance is truthy if the folder
    is (now) shared with the user.
    """
    __slots__ = ("success", "already_existed")

    def __init__(self, success: bool, already_existed: bool=False):
        self.success = success
        self.already_existed = already_existed

    def __bool__(self):
        return self.success

    def __repr__(self):
        return f"ShareOutcome(success={self.success}, already_existed={self.already_existed})"

class AccessResult:
    """
    the outcome of a rename or share-and-rename request.  If ``status`` is True, ``content`` is
    the link to the folder; otherwise it is an error message.  For failed share-and-rename
    requests, ``type`` indicates which phase failed ("share" or "rename").
    """
    __slots__ = ("status", "content", "type")

    def __init__(self, status: bool, content: str, type: str=None):
        self.status = status
        self.content = content
        self.type = type

    def to_dict(self) -> Mapping:
        out = {"status": self.status, "content": self.content}
        if self.type:
            out["type"] = self.type
        return out

    def __bool__(self):
        return self.status

    def __repr__(self):
        return f"AccessResult({self.to_dict()})"

class FolderAccess:
    """
    the orchestrator of the remote folder operations needed to give users access to their
    collaborative folders.

    This class supports the following configuration parameters:

    ``share_permissions``
        (int) _optional_.  the OCS permission bits to grant when sharing a folder with a user.
        If not set, the server's default permissions apply.
    """

    def __init__(self, session: RemoteSession, store: AccessRecordStore, log: logging.Logger=None,
                 config: Mapping=None):
        """
        initialize the orchestrator

        :param RemoteSession    session:  the system account's session with the remote server
        :param AccessRecordStore  store:  the store for saving access state
        :param Logger               log:  the Logger to use; if not provided, "collabfolders" is used
        :param dict              config:  the orchestrator's configuration
        """
        if not log:
            log = logging.getLogger("collabfolders")
        self.log = log
        self.cfg = deepcopy(config) if config else {}
        self.session = session
        self.store = store

        self._keylocks = [threading.Lock() for i in range(KEYLOCK_STRIPES)]

    @classmethod
    def from_config(cls, config: Mapping, log: logging.Logger=None):
        """
        create an orchestrator with a remote session and record store built from the given
        configuration (as loaded by :py:func:`~collabfolders.config.resolve_configuration`).
        :raises ConfigurationError:  if the remote session cannot be established or the record
                                     storage is misconfigured
        """
        if not log:
            log = logging.getLogger("collabfolders")
        session = RemoteSessionManager(config, log=log.getChild("session")).acquire()
        store = create_record_store(config.get('records', {}), log.getChild("records"))
        return cls(session, store, log, config)

    def _lock_for(self, context: AccessContext) -> threading.Lock:
        # a fixed pool:  distinct contexts may share a lock, but one context always gets the same
        return self._keylocks[hash(context.id()) % len(self._keylocks)]

    def make_link(self, name: str) -> str:
        """
        return the browser link to the folder with the given name in a user's file space
        """
        return self.session.baseurl + FILES_APP_PATH + name

    def create_folder(self, path: str) -> int:
        """
        create a folder as the system account.  The remote status code is returned as is:  201
        indicates that the folder was created, 405 that it already exists.

        :raises SocketError:  if the connection to the WebDAV server could not be opened
        :raises RemoteCommError:  if the connection is lost during the request
        """
        wd = self.session.webdav_client(log=self.log.getChild("webdav"))
        if not wd.open():
            raise SocketError(messages.get_string('socketerror'), self.session.webdav.host)
        try:
            code = wd.mkcol(path)
        finally:
            wd.close()
        self.log.debug("MKCOL %s: %s", path, code)
        return code

    def share(self, path: str, userid: str) -> ShareOutcome:
        """
        share a folder privately with a user.  Sharing a folder that is already shared with the
        user succeeds.

        :param str   path:  the path of the folder in the system account's file space
        :param str userid:  the remote account identifier of the user to share with
        """
        params = {
            "path": path,
            "shareType": SHARE_TYPE_USER,
            "shareWith": userid
        }
        if self.cfg.get('share_permissions') is not None:
            params['permissions'] = self.cfg['share_permissions']

        try:
            resp = self.session.ocs_client(self.log.getChild("ocs")).call('create_share', params)
        except (RemoteServiceError, ValueError) as ex:
            self.log.warning("Failed to share %s with %s: %s", path, userid, str(ex))
            return ShareOutcome(False)

        if resp.meta.status == STATUS_OK:
            self.log.info("Shared %s with %s", path, userid)
            return ShareOutcome(True)
        if resp.meta.code == SHARE_EXISTS_CODE:
            self.log.info("%s is already shared with %s", path, userid)
            return ShareOutcome(True, True)

        self.log.warning("Share of %s with %s rejected: %s", path, userid, str(resp.meta))
        return ShareOutcome(False)

    def rename(self, old_path: str, new_name: str, context: AccessContext,
               user: UserSession) -> AccessResult:
        """
        rename a shared folder within the user's own file space and save the resulting link for
        the given context.

        :param str         old_path:  the current path of the folder in the user's file space
        :param str         new_name:  the new name for the folder
        :param AccessContext context:  the context to save the folder link under
        :param UserSession     user:  the user's login at the remote server
        """
        if not user.is_logged_in():
            return AccessResult(False, messages.get_string('usernotloggedin'))

        # a group context's link is shared by all members, so it says nothing about this user's
        # own file space
        link = self.make_link(new_name)
        if context.userid and str(context.userid) == str(user.userid) and \
           self.store.get_link(context) == link:
            self.log.debug("%s already renamed to %s", old_path, new_name)
            return AccessResult(True, link)

        wd = self.session.webdav_client(token_source=user, log=self.log.getChild("webdav"))
        if not wd.open():
            return AccessResult(False, messages.get_string('socketerror'))
        try:
            dest = posixpath.join(posixpath.dirname(old_path.rstrip('/')) or '/', new_name)
            code = wd.move(old_path, dest, False)
        except RemoteCommError as ex:
            self.log.warning("Failed to move %s: %s", old_path, str(ex))
            return AccessResult(False, messages.get_string('socketerror'))
        except RemoteServiceError as ex:
            self.log.warning("Failed to move %s: %s", old_path, str(ex))
            return AccessResult(False, messages.get_string('webdaverror', ex.code or "(none)"))
        finally:
            wd.close()

        if code != 201:
            self.log.warning("Move of %s to %s failed with status %s", old_path, new_name, code)
            return AccessResult(False, messages.get_string('webdaverror', code))

        with self._lock_for(context):
            self.store.set_link(context, link)
        self.log.info("%s renamed to %s for %s", old_path, new_name, context.id())
        return AccessResult(True, link)

    def share_and_rename(self, share_path: str, rename_path: str, new_name: str,
                         context: AccessContext, user: UserSession) -> AccessResult:
        """
        share a folder with a user and rename it within the user's file space.  If the share
        fails, the rename is not attempted.

        :param str      share_path:  the path of the folder in the system account's file space
        :param str     rename_path:  the path the shared folder appears under in the user's space
        :param str        new_name:  the name the user chose for the folder
        :param AccessContext context:  the context to save the folder link under
        :param UserSession     user:  the user's login at the remote server
        :return:  the result; on failure, its ``type`` indicates the phase that failed
        """
        remoteid = user.remote_account_id()
        if not remoteid:
            return AccessResult(False, messages.get_string('usernotloggedin'), TYPE_SHARE)

        if not self.share(share_path, remoteid):
            return AccessResult(False, messages.get_string('ocserror'), TYPE_SHARE)

        res = self.rename(rename_path, new_name, context, user)
        if res.status:
            return res
        return AccessResult(False, res.content, TYPE_RENAME)

    def reset_access(self, context: AccessContext) -> bool:
        """
        forget the saved access state for the given context so that the user can regain access
        to the folder.  Remote shares are left in place.

        :return:  True if there was saved state to remove
        """
        with self._lock_for(context):
            return self.store.delete_entries(context)
