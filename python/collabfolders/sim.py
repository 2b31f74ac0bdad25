"""
Simulated implementations of the remote file-sync server collaborators, for testing the
collaborative folder workflows without a live server.

A :py:class:`SimRemoteServer` keeps an in-memory folder tree for each account and the set of
private shares.  A :py:class:`SimRemoteSession` can stand in for a
:py:class:`~collabfolders.session.RemoteSession`:  its WebDAV and OCS clients operate on the
simulated server and return the status codes a real ownCloud server would.  All requests are
recorded in :py:attr:`SimRemoteServer.calls`.
"""
import logging, posixpath
from collections import namedtuple

from .clients.oauth2 import AccessToken
from .clients.ocs import OCSResponse, OCSMeta, STATUS_OK
from .exceptions import *

SYSTEM_ACCOUNT = "system"

SimEndpoint = namedtuple("SimEndpoint", "scheme host port transport path")

class SimRemoteServer:
    """
    the simulated state of a file-sync server
    """

    def __init__(self, system_account: str=SYSTEM_ACCOUNT):
        self.system_account = system_account
        self.folders = {system_account: set()}
        self.shares = set()
        self.calls = []

    def _space(self, account):
        return self.folders.setdefault(account, set())

    def calls_to(self, op: str):
        """
        return the recorded requests for the given operation
        """
        return [c for c in self.calls if c[0] == op]

    def mkcol(self, account: str, path: str) -> int:
        self.calls.append(("mkcol", account, path))
        path = _norm(path)
        space = self._space(account)
        if path in space:
            return 405
        parent = posixpath.dirname(path)
        if parent != '/' and parent not in space:
            return 409
        space.add(path)
        return 201

    def move(self, account: str, src: str, dest: str, overwrite: bool=False) -> int:
        self.calls.append(("move", account, src, dest))
        src = _norm(src)
        dest = _norm(dest)
        space = self._space(account)
        if src not in space:
            return 404
        if dest in space and not overwrite:
            return 412
        moved = set(p for p in space if p == src or p.startswith(src+'/'))
        space.difference_update(moved)
        space.update(dest + p[len(src):] for p in moved)
        return 201

    def share(self, path: str, userid: str) -> OCSResponse:
        self.calls.append(("share", self.system_account, path, userid))
        path = _norm(path)
        if path not in self._space(self.system_account):
            return OCSResponse(OCSMeta("failure", 404, "Wrong path, file/folder doesn't exist"))
        if (path, userid) in self.shares:
            return OCSResponse(OCSMeta("failure", 403, "Path already shared with this user"))
        self.shares.add((path, userid))
        self._space(userid).add('/' + posixpath.basename(path))
        return OCSResponse(OCSMeta(STATUS_OK, 100, "OK"))

def _norm(path):
    path = '/' + path.strip('/')
    return path

class SimTokenSource:
    """
    a token source for a simulated account.  If ``user_id`` is None, the source behaves as if
    the account's login has expired.
    """

    def __init__(self, user_id: str=None, token: str="simtoken"):
        self.user_id = user_id
        self.token = token

    def get_accesstoken(self) -> AccessToken:
        if not self.user_id:
            raise RemoteClientError("Simulated login has expired", 401)
        return AccessToken(self.token, user_id=self.user_id)

    def get_token(self) -> str:
        return self.get_accesstoken().token

    def is_logged_in(self) -> bool:
        return bool(self.user_id)

class SimWebDAVClient:
    """
    a WebDAV client that operates on a :py:class:`SimRemoteServer` as a given account
    """

    def __init__(self, server: SimRemoteServer, account: str, can_open: bool=True):
        self.server = server
        self.account = account
        self.can_open = can_open
        self.opened = False
        self.open_count = 0
        self.close_count = 0

    def is_open(self) -> bool:
        return self.opened

    def open(self) -> bool:
        self.open_count += 1
        self.opened = self.can_open
        return self.opened

    def close(self):
        self.close_count += 1
        self.opened = False

    def _require_open(self):
        if not self.opened:
            raise SocketError("WebDAV connection is not open")

    def mkcol(self, path: str) -> int:
        self._require_open()
        return self.server.mkcol(self.account, path)

    def move(self, src: str, dest: str, overwrite: bool=False) -> int:
        self._require_open()
        return self.server.move(self.account, src, dest, overwrite)

class SimOCSClient:
    """
    an OCS client that shares folders on a :py:class:`SimRemoteServer`.  If ``fail`` is set, every
    call raises it instead.
    """

    def __init__(self, server: SimRemoteServer, fail: Exception=None):
        self.server = server
        self.fail = fail

    def call(self, operation: str, params) -> OCSResponse:
        if self.fail:
            raise self.fail
        if operation != 'create_share':
            raise ValueError(f"Unsupported simulated OCS operation: {operation}")
        return self.server.share(params['path'], params['shareWith'])

class SimRemoteSession:
    """
    a stand-in for a :py:class:`~collabfolders.session.RemoteSession` connected to a
    :py:class:`SimRemoteServer`.

    :param SimRemoteServer server:  the simulated server
    :param str            baseurl:  the base URL for folder links
    :param bool          can_open:  if False, WebDAV connections will fail to open
    :param Exception     ocs_fail:  if set, the OCS client raises this on every call
    """

    def __init__(self, server: SimRemoteServer=None, baseurl: str="https://cloud.example.edu/",
                 can_open: bool=True, ocs_fail: Exception=None):
        if server is None:
            server = SimRemoteServer()
        self.server = server
        self.baseurl = baseurl
        self.issuer_id = "sim"
        self.webdav = SimEndpoint("https", "cloud.example.edu", 443, "ssl://", "/remote.php/webdav/")
        self.token_source = SimTokenSource(server.system_account)
        self.can_open = can_open
        self.ocs_fail = ocs_fail
        self.webdav_clients = []

    def webdav_client(self, token_source=None, log: logging.Logger=None) -> SimWebDAVClient:
        account = self.server.system_account
        if token_source is not None:
            account = token_source.get_accesstoken().user_id
        out = SimWebDAVClient(self.server, account, self.can_open)
        self.webdav_clients.append(out)
        return out

    def ocs_client(self, log: logging.Logger=None) -> SimOCSClient:
        return SimOCSClient(self.server, self.ocs_fail)
