"""
This module provides a client class, :py:class:`OwnCloudWebDAVClient`, designed to perform the
WebDAV operations needed to provision folders in an ownCloud-style file-sync server.  It leverages
the ``webdav3.client`` package to carry out the WebDAV requests.

Unlike the ``webdav3`` client, the operations in this client report the remote server's HTTP
status code rather than raising exceptions for error responses; this allows callers to decide
which responses to tolerate (e.g. 405 when creating a folder that already exists).  Failures to
reach the server at all are raised as :py:class:`~collabfolders.exceptions.RemoteCommError`.
"""
import logging

from webdav3 import client as wd3c
from webdav3.exceptions import WebDavException
from webdav3.urn import Urn

from ..exceptions import *

AUTH_BEARER = "bearer"
TRANSPORT_SSL = "ssl://"
TRANSPORT_PLAIN = ""

class OwnCloudWebDAVClient:
    """
    A client for the file-sync server's WebDAV interface that authenticates with OAuth2 bearer
    tokens.  A connection is set up with :py:meth:`open` (which obtains a fresh token from the
    token source) and must be released with :py:meth:`close`.

    :param str       server:  the host name of the WebDAV server
    :param str     authmode:  the authentication method; only "bearer" is supported
    :param str    transport:  "ssl://" for an encrypted connection or "" for plain HTTP
    :param    token_source:   an object with a ``get_token()`` method returning the bearer token
                              to authenticate with
    :param str     basepath:  the path of the WebDAV root collection on the server
    :param int         port:  the port to connect to; if not given, the default for the transport
                              is used
    :param str    ca_bundle:  the path to a CA certificate bundle used to verify the server's
                              site certificate
    :param Logger       log:  the Logger to use for log messages

    :raises ConfigurationError:  if an unsupported authentication mode is requested or no token
                                 source is given
    """

    def __init__(self, server: str, authmode: str=AUTH_BEARER, transport: str=TRANSPORT_PLAIN,
                 token_source=None, basepath: str='/', port: int=None, ca_bundle: str=None,
                 log: logging.Logger=None):
        if not log:
            log = logging.getLogger("webdavcli")
        self.log = log

        if authmode != AUTH_BEARER:
            raise ConfigurationError(f"OwnCloudWebDAVClient: unsupported authentication mode: {authmode}")
        if not token_source:
            raise ConfigurationError("OwnCloudWebDAVClient: token source required for bearer authentication")
        if not server:
            raise ConfigurationError("OwnCloudWebDAVClient: server host name required")

        self.server = server
        self.transport = transport
        if not port:
            port = 443 if transport == TRANSPORT_SSL else 80
        self.port = port
        self.basepath = basepath or '/'
        self._tokensrc = token_source
        self._verify = ca_bundle or True
        self.wdcli = None

    @property
    def hostname(self) -> str:
        """
        the base URL of the WebDAV server (not including the root collection path)
        """
        scheme = "https" if self.transport == TRANSPORT_SSL else "http"
        return f"{scheme}://{self.server}:{self.port}"

    def is_open(self) -> bool:
        """
        return True if a connection is currently open
        """
        return self.wdcli is not None

    def open(self) -> bool:
        """
        set up a connection to the WebDAV server.  A token is obtained from the token source and
        the server is contacted to ensure that it is reachable.

        :return:  True if the connection was opened, False otherwise
        """
        if self.wdcli:
            return True

        try:
            token = self._tokensrc.get_token()
        except RemoteServiceError as ex:
            self.log.warning("Unable to obtain WebDAV access token: %s", str(ex))
            return False

        cli = wd3c.Client({
            'webdav_hostname': self.hostname,
            'webdav_root': self.basepath,
            'webdav_token': token
        })
        cli.verify = self._verify

        try:
            cli.check()
        except (wd3c.NoConnection, wd3c.ConnectionException) as ex:
            self.log.warning("Unable to connect to WebDAV server at %s: %s", self.hostname, str(ex))
            self._close_client(cli)
            return False
        except WebDavException as ex:
            # the server responded, so the connection is usable
            self.log.debug("WebDAV server check returned error: %s", str(ex))

        self.wdcli = cli
        return True

    def close(self):
        """
        release the current connection.  Nothing happens if the connection is not open.
        """
        if self.wdcli:
            try:
                self._close_client(self.wdcli)
            finally:
                self.wdcli = None

    def _close_client(self, cli):
        sess = getattr(cli, 'session', None)
        if sess:
            sess.close()

    def mkcol(self, path: str) -> int:
        """
        create a collection (folder) with the given path

        :return:  the HTTP status code returned by the server (201 when created)
        :raises SocketError:  if the connection is not open
        :raises RemoteCommError:  if the server could not be reached
        """
        return self._execute('mkdir', Urn(path, directory=True).quote())

    def move(self, src: str, dest: str, overwrite: bool=False) -> int:
        """
        move (or rename) a resource

        :param str       src:  the path of the resource to move
        :param str      dest:  the path to move the resource to
        :param bool overwrite: if True, an existing resource at ``dest`` will be replaced
        :return:  the HTTP status code returned by the server (201 when moved)
        :raises SocketError:  if the connection is not open
        :raises RemoteCommError:  if the server could not be reached
        """
        self._require_open()
        headers = [
            "Destination: " + self.wdcli.get_url(Urn(dest).quote()),
            "Overwrite: " + ("T" if overwrite else "F")
        ]
        return self._execute('move', Urn(src).quote(), headers)

    def _require_open(self):
        if not self.wdcli:
            raise SocketError("WebDAV connection is not open", self.hostname)

    def _execute(self, action, path, headers=None) -> int:
        self._require_open()
        try:
            resp = self.wdcli.execute_request(action, path, headers_ext=headers)
            return resp.status_code
        except (wd3c.NoConnection, wd3c.ConnectionException) as ex:
            raise RemoteCommError(f"Failed to {action} {path}: {str(ex)}", ep=path) from ex
        except wd3c.RemoteResourceNotFound:
            return 404
        except wd3c.MethodNotSupported:
            return 405
        except wd3c.NotEnoughSpace:
            return 507
        except wd3c.ResponseErrorCode as ex:
            return ex.code
        except WebDavException as ex:
            raise UnexpectedRemoteResponse(f"Failed to {action} {path}: {str(ex)}", path) from ex
