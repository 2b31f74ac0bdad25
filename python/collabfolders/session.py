"""
The management of the authenticated session used for privileged calls to the remote file-sync
server.

All folder provisioning is done on behalf of a trusted *system account* that has been authorized
against a configured OAuth2 issuer.  The :py:class:`RemoteSessionManager` resolves the configured
issuer, checks that its system account is connected, obtains the account's token source, and
determines the WebDAV and OCS endpoints; the result is captured in an immutable
:py:class:`RemoteSession`.  Any shortcoming in the configuration is reported as a
:py:class:`~collabfolders.exceptions.ConfigurationError` at this point so that the calling
workflow can be aborted before any remote folder operation is attempted.
"""
import logging, threading
from collections import namedtuple
from collections.abc import Mapping
from copy import deepcopy
from typing import List
from urllib.parse import urlparse

from .clients.oauth2 import IssuerRegistry, Issuer, OAuth2Client, REQUIRED_ENDPOINTS
from .clients.webdav import OwnCloudWebDAVClient, TRANSPORT_SSL, TRANSPORT_PLAIN
from .clients.ocs import OCSClient
from .exceptions import *
from . import messages

WebDAVEndpoint = namedtuple("WebDAVEndpoint", "scheme host port transport path")

_default_ports = {
    "https": (TRANSPORT_SSL, 443),
    "http":  (TRANSPORT_PLAIN, 80)
}

def parse_webdav_endpoint(url: str) -> WebDAVEndpoint:
    """
    determine the connection parameters for a WebDAV endpoint URL.  The transport and default
    port are derived from the URL's scheme; an explicit port in the URL overrides the default.

    :param str url:  the WebDAV endpoint URL
    :rtype: WebDAVEndpoint
    :raises ConfigurationError:  if the URL is missing, unparseable, or does not use http(s)
    """
    if not url:
        raise ConfigurationError(messages.get_string('endpointmissing', 'webdav'),
                                 ConfigurationError.REASON_ENDPOINT)
    try:
        ep = urlparse(url)
        port = ep.port
    except ValueError as ex:
        raise ConfigurationError(messages.get_string('endpointunparseable', 'webdav'),
                                 ConfigurationError.REASON_ENDPOINT) from ex

    scheme = (ep.scheme or '').lower()
    if scheme not in _default_ports or not ep.hostname:
        raise ConfigurationError(messages.get_string('endpointunparseable', 'webdav'),
                                 ConfigurationError.REASON_ENDPOINT)

    transport, defport = _default_ports[scheme]
    return WebDAVEndpoint(scheme, ep.hostname, port or defport, transport, ep.path or '/')

class RemoteSession:
    """
    an authenticated session with the remote file-sync server for the trusted system account.  A
    session is read-only after construction and can be shared by concurrent callers.
    """
    __slots__ = ("_issuer", "_client", "_webdav", "_ocsurl", "_cabundle")

    def __init__(self, issuer: Issuer, client: OAuth2Client, webdav: WebDAVEndpoint, ocs_url: str,
                 ca_bundle: str=None):
        """
        :param Issuer          issuer:  the issuer the system account is registered with
        :param OAuth2Client    client:  the system account's token source
        :param WebDAVEndpoint  webdav:  the parsed WebDAV endpoint
        :param str            ocs_url:  the base URL of the OCS sharing API
        :param str          ca_bundle:  a CA certificate bundle for verifying the server
        """
        object.__setattr__(self, "_issuer", issuer)
        object.__setattr__(self, "_client", client)
        object.__setattr__(self, "_webdav", webdav)
        object.__setattr__(self, "_ocsurl", ocs_url)
        object.__setattr__(self, "_cabundle", ca_bundle)

    def __setattr__(self, name, value):
        raise AttributeError(f"RemoteSession is immutable: cannot set {name}")

    @property
    def issuer_id(self) -> str:
        """the identifier of the issuer this session was established with"""
        return self._issuer.id

    @property
    def issuer(self) -> Issuer:
        return self._issuer

    @property
    def token_source(self) -> OAuth2Client:
        """the system account's cached bearer-token source"""
        return self._client

    @property
    def webdav(self) -> WebDAVEndpoint:
        return self._webdav

    @property
    def sharing_url(self) -> str:
        return self._ocsurl

    @property
    def baseurl(self) -> str:
        """the base URL of the file-sync server's browser interface (ending in a slash)"""
        return self._issuer.baseurl

    def webdav_client(self, token_source=None, log: logging.Logger=None) -> OwnCloudWebDAVClient:
        """
        create a new (unopened) WebDAV client for this session's server.

        :param token_source:  the token source to authenticate with; if not provided, the system
                              account's token source is used.
        """
        if not token_source:
            token_source = self._client
        return OwnCloudWebDAVClient(self._webdav.host, "bearer", self._webdav.transport,
                                    token_source, self._webdav.path, self._webdav.port,
                                    self._cabundle, log)

    def ocs_client(self, log: logging.Logger=None) -> OCSClient:
        """
        create a client for the OCS sharing API that acts as the system account
        """
        return OCSClient(self._ocsurl, self._client, self._cabundle, log)

class RemoteSessionManager:
    """
    a factory for the system account's :py:class:`RemoteSession`.  The session is established on
    the first call to :py:meth:`acquire` and cached for subsequent calls.

    This class supports the following configuration parameters:

    ``issuerid``
        (str) _required_.  the identifier of the OAuth2 issuer to use to access the file-sync server
    ``issuers``
        (dict) _optional_.  the configured issuers, keyed by identifier (see
        :py:class:`~collabfolders.clients.oauth2.Issuer`).  This is required unless an
        :py:class:`~collabfolders.clients.oauth2.IssuerRegistry` is provided at construction.
    ``ca_bundle``
        (str) _optional_.  the path to a CA certificate bundle used to verify the server's site
        certificate
    """

    def __init__(self, config: Mapping, issuers: IssuerRegistry=None, log: logging.Logger=None):
        if not log:
            log = logging.getLogger("collabfolders").getChild("session")
        self.log = log
        self.cfg = deepcopy(config)
        if not issuers:
            issuers = IssuerRegistry(self.cfg.get('issuers', {}), self.log.getChild("oauth2"))
        self.issuers = issuers
        self._session = None
        self._lock = threading.Lock()

    def acquire(self) -> RemoteSession:
        """
        return the authenticated session for the system account, establishing it if necessary.

        :raises ConfigurationError:  if the issuer or system account is not properly configured
                                     or the system account cannot be authenticated.  The
                                     ``reason`` attribute distinguishes the cause.
        """
        with self._lock:
            if not self._session:
                self._session = self._establish()
            return self._session

    def _establish(self) -> RemoteSession:
        issuerid = self.cfg.get('issuerid')
        if not issuerid:
            raise ConfigurationError(messages.get_string('noissuer'),
                                     ConfigurationError.REASON_NO_ISSUER)
        try:
            issuer = self.issuers.get_issuer(issuerid)
        except IssuerNotFound as ex:
            self.log.error("Configured issuer no longer exists: %s", issuerid)
            raise ConfigurationError(messages.get_string('issuernotfound', issuerid),
                                     ConfigurationError.REASON_ISSUER_NOT_FOUND) from ex

        if not issuer.system_account_connected():
            raise ConfigurationError(messages.get_string('notconnected', issuer.name),
                                     ConfigurationError.REASON_NOT_CONNECTED)

        try:
            client = issuer.get_system_session()
        except RemoteServiceError as ex:
            self.log.error("System account token exchange failed: %s", str(ex))
            client = None
        if not client:
            raise ConfigurationError(messages.get_string('technicalnotloggedin'),
                                     ConfigurationError.REASON_TOKEN_EXCHANGE)

        webdav = parse_webdav_endpoint(issuer.endpoint_url('webdav'))
        ocsurl = issuer.endpoint_url('ocs')
        if not ocsurl:
            raise ConfigurationError(messages.get_string('endpointmissing', 'ocs'),
                                     ConfigurationError.REASON_ENDPOINT)

        self.log.info("Remote session established with %s (%s)", issuer.name, webdav.host)
        return RemoteSession(issuer, client, webdav, ocsurl,
                             self.cfg.get('ca_bundle') or issuer.cfg.get('ca_bundle'))

    def suitable_issuers(self) -> List[Issuer]:
        """
        return the configured issuers that implement all of the endpoints required for managing
        collaborative folders
        """
        return [i for i in self.issuers.issuers() if i.has_required_endpoints(REQUIRED_ENDPOINTS)]

    def validate_issuer(self, issuerid: str=None):
        """
        check whether the given issuer (or the configured one) is usable for managing collaborative
        folders.  No remote calls are made.

        :return:  a 2-tuple of a state label and an explanatory message.  The state will be one of
                  "without" (no issuer selected), "invalid" (the issuer is not registered or lacks
                  required endpoints), "notconnected" (no system account is connected), or "valid".
        """
        if not issuerid:
            issuerid = self.cfg.get('issuerid')
        if not issuerid:
            return ("without", messages.get_string('issuervalidation_without'))

        try:
            issuer = self.issuers.get_issuer(issuerid)
        except IssuerNotFound:
            return ("invalid", messages.get_string('issuervalidation_invalid', issuerid))

        if not issuer.has_required_endpoints(REQUIRED_ENDPOINTS):
            return ("invalid", messages.get_string('issuervalidation_invalid', issuer.name))
        if not issuer.system_account_connected():
            return ("notconnected", messages.get_string('issuervalidation_notconnected', issuer.name))
        return ("valid", messages.get_string('issuervalidation_valid', issuer.name))
