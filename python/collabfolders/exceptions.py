"""
Customized exceptions that allow code to handle error conditions
"""

class CollabFoldersException(Exception):
    """
    an exception indicating a problem provisioning or accessing collaborative folders.

    This class serves as a base class for all exceptions raised in this code
    """

    def __init__(self, message: str=None):
        if not message:
            message = "Unspecified problem managing collaborative folders"
        super(CollabFoldersException, self).__init__(message)


class ConfigurationError(CollabFoldersException):
    """
    an exception indicating that the system is not configured well enough to access the remote
    server.  This is usually not recoverable without the intervention of an administrator.

    The ``reason`` attribute distinguishes the particular cause; it will be one of the ``REASON_*``
    class constants or None if the cause is unspecified.
    """
    REASON_NO_ISSUER = "no_issuer"
    REASON_ISSUER_NOT_FOUND = "issuer_not_found"
    REASON_NOT_CONNECTED = "not_connected"
    REASON_TOKEN_EXCHANGE = "token_exchange"
    REASON_ENDPOINT = "endpoint"

    def __init__(self, message: str=None, reason: str=None):
        """
        create the exception

        :param str message:  an explanation of the problem
        :param str  reason:  a label identifying the cause of the problem
        """
        if not message:
            message = "Collaborative folders are not configured correctly"
            if reason:
                message += f" ({reason})"
        super(ConfigurationError, self).__init__(message)
        self.reason = reason


class IssuerNotFound(CollabFoldersException):
    """
    an exception indicating that a requested OAuth2 issuer is not (or is no longer) registered.
    """

    def __init__(self, issuerid: str, message: str=None):
        if not message:
            message = f"{issuerid}: OAuth2 issuer not found"
        super(IssuerNotFound, self).__init__(message)
        self.issuerid = issuerid


class RemoteServiceError(CollabFoldersException):
    """
    an exception indicating an error occurred while accessing a remote service endpoint (the
    file-sync server's WebDAV, OCS or OAuth2 endpoints).

    This class serves as a base class for more specific service access errors.
    """

    def __init__(self, message: str=None, ep: str=None, code: int=0, resptext: str=None):
        """
        create the exception

        :param str message:  an explanation of the cause of the error
        :param str ep:       the service endpoint that was being accessed
        :param int code:     the HTTP response code that was returned (if service responded)
        :param str resptext: the erroroneous response body that was returned, as text (if service responded)
        """
        if not message:
            message = "Error accessing remote service"
            if ep:
                message += f" at {ep}"
            if code:
                message += f" ({str(code)})"
            if resptext:
                message += f"; unhandlable response:\n{resptext}"
        super(RemoteServiceError, self).__init__(message)
        self.ep = ep
        self.code = code or 0
        self.response = resptext


class RemoteCommError(RemoteServiceError):
    """
    an error indicating a failure communicating with the remote service.  This error typically
    covers network related errors, like failures to connect, dropped connection, DNS errors, etc.
    Typically, the remote service did not get a chance to respond directly to the request.
    """
    def __init__(self, message: str=None, ep: str=None):
        if not message:
            message = "Remote service communication failure"
            if ep:
                message += f" while accessing {ep}"
        super(RemoteCommError, self).__init__(message, ep)


class SocketError(RemoteCommError):
    """
    an error indicating that a connection to the remote WebDAV service could not be opened.
    Callers may choose to retry the failed operation later.
    """
    def __init__(self, message: str=None, ep: str=None):
        if not message:
            message = "The WebDAV socket could not be opened"
            if ep:
                message += f": {ep}"
        super(SocketError, self).__init__(message, ep)


class RemoteServerError(RemoteServiceError):
    """
    an error indicating a server-side error during a request to the remote service.  This error
    is typically the fault of the remote server (i.e. code >= 500) and not due to improper use of
    the service by the client.
    """

    def __init__(self, code: int=0, ep: str=None, resptext: str=None, message: str=None):
        if not message:
            message = "Unexpected remote server error"
            if ep:
                message += f" while accessing {ep}"
            if code:
                message += f": HTTP code: {str(code)}"
        super(RemoteServerError, self).__init__(message, ep, code, resptext)


class UnexpectedRemoteResponse(RemoteServerError):
    """
    an error that indicates that the remote service responded with unexpected or erroneous
    content.  The code may reflect a successful operation, but the returned content cannot be
    processed (e.g. due to format errors).
    """

    def __init__(self, message: str=None, ep: str=None, resptext: str=None, code: int=0):
        if not message:
            message = "Unexpected content returned from remote service"
            if ep:
                message += f" while accessing {ep}"
            if resptext:
                message += f"; unhandlable response:\n{resptext}"
        super(UnexpectedRemoteResponse, self).__init__(code, ep, resptext, message)


class RemoteClientError(RemoteServiceError):
    """
    an error indicating a client-side error during a request to the remote service.  This error
    typically indicates that the client is using the service improperly, such as providing bad
    input data or bad credentials (i.e. code >= 400, < 500).
    """

    def __init__(self, message: str=None, code: int=0, ep: str=None, resptext: str=None):
        if not message:
            message = "Bad request made to remote service"
            if code:
                message += f" ({str(code)})"
            if ep:
                message += f" at {ep}"
        super(RemoteClientError, self).__init__(message, ep, code, resptext)


class RemoteResourceNotFound(RemoteClientError):
    """
    an error indicating that the resource requested from the remote service does not exist.
    This exception typically captures a 404 response.
    """

    def __init__(self, ep: str=None, message: str=None, resptext: str=None, code: int=404):
        if not message:
            message = "Requested resource not found"
            if ep:
                message += f": {ep}"
        super(RemoteResourceNotFound, self).__init__(message, code, ep, resptext)


class RecordStoreException(CollabFoldersException):
    """
    an exception indicating a failure reading or writing access records to the backend storage
    """
    def __init__(self, message: str=None, cause: Exception=None):
        if not message:
            message = "Access record storage failure"
            if cause:
                message += ": " + str(cause)
        super(RecordStoreException, self).__init__(message)
        self.cause = cause


class FolderCreationError(CollabFoldersException):
    """
    an exception indicating that one or more folders for an activity instance could not be
    created.  The ``failures`` attribute maps each failed folder path to the status code received.
    """
    def __init__(self, message: str=None, failures=None):
        if failures is None:
            failures = {}
        if not message:
            message = "Failed to create folders: " + ", ".join(failures.keys())
        super(FolderCreationError, self).__init__(message)
        self.failures = failures
