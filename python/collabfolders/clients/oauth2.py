"""
This module provides the OAuth2 support used to authenticate to the remote file-sync server.  An
:py:class:`Issuer` represents a configured OAuth2 identity provider together with the endpoints
of the file-sync server it protects; the :py:class:`IssuerRegistry` looks up issuers by their
identifiers.  An :py:class:`OAuth2Client` is a bearer-token source: it exchanges a stored refresh
token for access tokens at the issuer's token endpoint and caches the result until it expires.

Tokens are obtained for two kinds of identities:  the trusted *system account*, whose refresh
token is part of the issuer's configuration, and end users, represented by a
:py:class:`UserSession`, whose tokens result from their own (externally handled) login.
"""
import logging, time, threading
from copy import deepcopy
from collections.abc import Mapping
from typing import List

import jwt
import requests

from ..exceptions import *

REQUIRED_ENDPOINTS = ("token", "webdav", "ocs")
DEF_EXPIRY_LEEWAY = 30     # seconds

def decode_claims(id_token: str) -> Mapping:
    """
    return the claim set encoded into a JWT identity token.  The signature is not verified as
    the token was received directly from the issuer's token endpoint.  An empty dictionary is
    returned if the token cannot be decoded.
    """
    try:
        return jwt.decode(id_token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return {}

class AccessToken:
    """
    a bearer token issued by an OAuth2 token endpoint along with the information about the
    identity it was issued to.
    """

    def __init__(self, token: str, expires: float=None, user_id: str=None, claims: Mapping=None,
                 refresh_token: str=None):
        """
        :param str          token:  the bearer token string
        :param float      expires:  the epoch time when the token expires; None means unknown
        :param str        user_id:  the identifier of the remote account the token was issued to
        :param dict        claims:  any other claims about the identity
        :param str  refresh_token:  the (new) refresh token returned with the access token
        """
        self.token = token
        self.expires = expires
        self.user_id = user_id
        self.claims = claims or {}
        self.refresh_token = refresh_token

    @classmethod
    def from_response(cls, data: Mapping, now: float=None):
        """
        create an AccessToken from the JSON data returned by a token endpoint.  The remote account
        identifier is taken from the ``user_id`` property (as returned by ownCloud) or else from
        the claims in an accompanying ``id_token``.
        """
        if now is None:
            now = time.time()

        expires = None
        if data.get('expires_in'):
            try:
                expires = now + int(data['expires_in'])
            except (TypeError, ValueError):
                expires = None

        claims = {}
        if data.get('id_token'):
            claims = decode_claims(data['id_token'])
        user_id = data.get('user_id') or claims.get('preferred_username') or claims.get('sub')

        return cls(data.get('access_token'), expires, user_id, claims, data.get('refresh_token'))

    def expired(self, leeway: int=DEF_EXPIRY_LEEWAY, now: float=None) -> bool:
        """
        return True if this token has expired or is about to expire within ``leeway`` seconds
        """
        if self.expires is None:
            return False
        if now is None:
            now = time.time()
        return now + leeway >= self.expires

class OAuth2Client:
    """
    a source of bearer tokens for a single identity.  Tokens are obtained by exchanging a refresh
    token at the issuer's token endpoint and are cached until they expire.  A client can be shared
    between threads.
    """

    def __init__(self, token_url: str, client_id: str, client_secret: str, refresh_token: str=None,
                 accesstoken: AccessToken=None, ca_bundle: str=None, log: logging.Logger=None):
        """
        initialize the client

        :param str       token_url:  the issuer's token endpoint URL
        :param str       client_id:  the identifier this application is registered with at the issuer
        :param str   client_secret:  the secret shared with the issuer for ``client_id``
        :param str   refresh_token:  the refresh token to exchange for access tokens
        :param AccessToken accesstoken:  an initial (possibly still valid) access token
        :param str       ca_bundle:  a CA certificate bundle for verifying the issuer's site cert
        :param Logger          log:  the Logger to use; if not provided, "oauth2cli" is used
        """
        if not log:
            log = logging.getLogger("oauth2cli")
        self.log = log
        self.token_url = token_url
        self._clientauth = (client_id, client_secret)
        self._refresh = refresh_token
        self._token = accesstoken
        self._verify = ca_bundle or True
        self._lock = threading.Lock()

    def get_accesstoken(self) -> AccessToken:
        """
        return a currently valid access token, exchanging the refresh token for a new one if
        necessary.
        :raises RemoteServiceError:  if a new token is needed but cannot be obtained
        """
        with self._lock:
            if not self._token or self._token.expired():
                self._token = self._exchange()
            return self._token

    def get_token(self) -> str:
        """
        return a currently valid bearer token string
        """
        return self.get_accesstoken().token

    def is_logged_in(self) -> bool:
        """
        return True if a valid access token is available (or can be obtained)
        """
        try:
            return bool(self.get_accesstoken().token)
        except RemoteServiceError as ex:
            self.log.warning("Unable to obtain access token: %s", str(ex))
            return False

    def _exchange(self) -> AccessToken:
        if not self._refresh:
            raise RemoteClientError("No refresh token available for token exchange", 0, self.token_url)
        data = {
            'grant_type': 'refresh_token',
            'refresh_token': self._refresh
        }

        try:
            response = requests.post(self.token_url, data=data, auth=self._clientauth,
                                     verify=self._verify)
        except requests.RequestException as ex:
            self.log.error("Error during token exchange: %s", str(ex))
            raise RemoteCommError("Communication failure during token exchange: "+str(ex),
                                  self.token_url) from ex

        err_msg = None
        if response.status_code >= 400 and response.text:
            try:
                err_msg = response.json().get('error_description') or response.json().get('error')
            except ValueError:
                pass

        if response.status_code >= 500:
            raise RemoteServerError(response.status_code, self.token_url, response.text, err_msg)
        elif response.status_code >= 400:
            if not err_msg:
                err_msg = "Token exchange rejected (%d): %s" % (response.status_code, response.reason)
            raise RemoteClientError(err_msg, response.status_code, self.token_url, response.text)

        try:
            tok = AccessToken.from_response(response.json())
        except (ValueError, AttributeError) as ex:
            raise UnexpectedRemoteResponse("Token response could not be decoded as JSON: "+str(ex),
                                           self.token_url, response.text, response.status_code) from ex
        if not tok.token:
            raise UnexpectedRemoteResponse("Token exchange failure: empty access token",
                                           self.token_url, response.text, response.status_code)

        if tok.refresh_token:
            self._refresh = tok.refresh_token
        self.log.debug("Access token obtained for %s", tok.user_id or "(unknown user)")
        return tok

class Issuer:
    """
    a configured OAuth2 identity provider along with the endpoints of the file-sync server that
    accepts its tokens.

    This class supports the following configuration parameters:

    ``name``
        (str) _optional_.  a display name for the issuer; defaults to the issuer's identifier
    ``baseurl``
        (str) _required_.  the base URL of the file-sync server's browser interface
    ``client_id``
        (str) _required_.  the OAuth2 client identifier registered for this application
    ``client_secret``
        (str) _required_.  the OAuth2 client secret registered for this application
    ``endpoints``
        (dict) _required_.  the endpoint URLs by kind; this should include ``token`` (the OAuth2
        token endpoint), ``webdav`` (the WebDAV file-transfer endpoint), and ``ocs`` (the OCS
        file sharing API endpoint).
    ``system_account``
        (dict) _optional_.  the connected system account, given as ``username`` and
        ``refresh_token`` sub-parameters.  If not provided, the system account is considered
        not connected.
    ``ca_bundle``
        (str) _optional_.  the path to a CA certificate bundle for verifying the server's site
        certificate.
    """

    def __init__(self, id: str, config: Mapping, log: logging.Logger=None):
        if not log:
            log = logging.getLogger("oauth2cli").getChild(id)
        self.log = log
        self._id = id
        self.cfg = deepcopy(config)

    @property
    def id(self) -> str:
        """the identifier for this issuer"""
        return self._id

    @property
    def name(self) -> str:
        """the display name for this issuer"""
        return self.cfg.get('name', self._id)

    @property
    def baseurl(self) -> str:
        """the base URL of the file-sync server, ending with a slash"""
        out = self.cfg.get('baseurl', '')
        if out and not out.endswith('/'):
            out += '/'
        return out

    def endpoint_url(self, kind: str) -> str:
        """
        return the URL for the endpoint of the given kind, or None if it is not defined
        """
        return self.cfg.get('endpoints', {}).get(kind) or None

    def has_required_endpoints(self, required=REQUIRED_ENDPOINTS) -> bool:
        """
        return True if this issuer defines URLs for all of the given endpoint kinds
        """
        return all(self.endpoint_url(k) for k in required)

    def system_account_connected(self) -> bool:
        """
        return True if a system account has been authorized against this issuer
        """
        return bool(self.cfg.get('system_account', {}).get('refresh_token'))

    def make_client(self, refresh_token: str=None, accesstoken: AccessToken=None,
                    log: logging.Logger=None) -> OAuth2Client:
        """
        create a token source for an identity registered with this issuer
        """
        if not log:
            log = self.log
        return OAuth2Client(self.endpoint_url('token'), self.cfg.get('client_id'),
                            self.cfg.get('client_secret'), refresh_token, accesstoken,
                            self.cfg.get('ca_bundle'), log)

    def get_system_session(self) -> OAuth2Client:
        """
        return a token source for the connected system account.  An initial token exchange is
        done to ensure that the account's authorization is still valid.
        :raises RemoteServiceError:  if the token exchange fails or this issuer has no token
                                     endpoint
        """
        if not self.endpoint_url('token'):
            raise RemoteClientError(f"{self._id}: issuer has no token endpoint")
        acct = self.cfg.get('system_account', {})
        cli = self.make_client(acct.get('refresh_token'), log=self.log.getChild("system"))
        tok = cli.get_accesstoken()
        self.log.info("System account %s authenticated", tok.user_id or acct.get('username', ''))
        return cli

class IssuerRegistry:
    """
    a lookup for the configured OAuth2 issuers.  The configuration is a dictionary mapping issuer
    identifiers to the issuer configurations (see :py:class:`Issuer`).
    """

    def __init__(self, issuers: Mapping, log: logging.Logger=None):
        if not log:
            log = logging.getLogger("oauth2cli")
        self.log = log
        self._issuers = deepcopy(issuers) if issuers else {}

    def get_issuer(self, id: str) -> Issuer:
        """
        return the issuer with the given identifier
        :raises IssuerNotFound:  if no issuer with that identifier is registered
        """
        if id not in self._issuers:
            raise IssuerNotFound(id)
        return Issuer(id, self._issuers[id], self.log.getChild(id))

    def issuer_ids(self) -> List[str]:
        """
        return the identifiers of the registered issuers
        """
        return list(self._issuers.keys())

    def issuers(self) -> List[Issuer]:
        """
        return all of the registered issuers
        """
        return [self.get_issuer(id) for id in self.issuer_ids()]

class UserSession:
    """
    the remote-server login of an end user.  The session pairs the user's local identifier with
    the token source obtained when the user logged into the file-sync server.  The remote account
    identifier is resolved from the claims of the user's access token.
    """

    def __init__(self, userid: str, client: OAuth2Client=None):
        """
        :param str           userid:  the local identifier of the end user
        :param OAuth2Client  client:  the user's token source, or None if the user has not
                                      logged into the remote server
        """
        self._userid = userid
        self._client = client

    @property
    def userid(self) -> str:
        """the local identifier of the end user"""
        return self._userid

    def is_logged_in(self) -> bool:
        """
        return True if the user currently has a usable login at the remote server
        """
        return self._client is not None and self._client.is_logged_in()

    def get_accesstoken(self) -> AccessToken:
        """
        return the user's current access token
        :raises RemoteClientError:  if the user has not logged in
        """
        if self._client is None:
            raise RemoteClientError(f"{self._userid}: user is not logged into the remote server")
        return self._client.get_accesstoken()

    def get_token(self) -> str:
        """
        return the user's current bearer token string
        """
        return self.get_accesstoken().token

    def remote_account_id(self) -> str:
        """
        return the user's account identifier on the remote server, or None if it cannot be
        determined (e.g. because the user is not logged in).
        """
        try:
            return self.get_accesstoken().user_id
        except RemoteServiceError:
            return None
