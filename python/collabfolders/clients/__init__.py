"""
Clients for accessing the remote file-sync server's APIs
"""
from .oauth2 import Issuer, IssuerRegistry, OAuth2Client, AccessToken, UserSession
from .webdav import OwnCloudWebDAVClient
from .ocs import OCSClient, OCSResponse
