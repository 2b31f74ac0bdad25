"""
This module provides a client class, :py:class:`OCSClient`, for the file-sync server's OCS file
sharing API (as implemented by ownCloud and Nextcloud).  The client is used by the system account
to share folders privately with end users.

OCS responses carry their own status information in a ``meta`` element, separate from the HTTP
status code:

.. code-block:: xml

   <ocs>
     <meta>
       <status>failure</status>
       <statuscode>403</statuscode>
       <message>Path already shared with this user</message>
     </meta>
     <data/>
   </ocs>

:py:meth:`OCSClient.call` parses this into an :py:class:`OCSResponse`.
"""
import logging
from collections import OrderedDict
from collections.abc import Mapping
from urllib.parse import urljoin

import requests
from lxml import etree

from ..exceptions import *

SHARE_TYPE_USER = 0
SHARE_TYPE_GROUP = 1
SHARE_TYPE_PUBLIC = 3

PERM_READ   = 1
PERM_UPDATE = 2
PERM_CREATE = 4
PERM_DELETE = 8
PERM_SHARE  = 16
PERM_ALL    = 31

STATUS_OK = "ok"

# operation name -> (HTTP method, path template, required params, optional params)
_operations = {
    'create_share': ('POST', 'shares', ('path', 'shareType', 'shareWith'),
                     ('permissions', 'publicUpload', 'password', 'expireDate')),
    'get_shares':   ('GET', 'shares', (), ('path', 'reshares', 'subfiles', 'shared_with_me')),
    'delete_share': ('DELETE', 'shares/{share_id}', ('share_id',), ())
}

class OCSMeta:
    """
    the status information from an OCS response
    """
    def __init__(self, status: str=None, code: int=0, message: str=None):
        self.status = status
        self.code = code
        self.message = message

    def __str__(self):
        return f"{self.status} ({self.code}): {self.message or ''}"

class OCSResponse:
    """
    a parsed OCS response.  The ``meta`` property holds an :py:class:`OCSMeta`; ``data`` is a list
    of the elements returned in the response's ``data`` element, each converted to a dictionary.
    """
    def __init__(self, meta: OCSMeta, data=None, httpcode: int=0):
        self.meta = meta
        self.data = data or []
        self.httpcode = httpcode

    @classmethod
    def parse(cls, content, httpcode: int=0):
        """
        parse the XML content of an OCS response
        :raises ValueError:  if the content is not an OCS response
        """
        if isinstance(content, str):
            content = content.encode('utf-8')
        try:
            root = etree.fromstring(content)
        except etree.XMLSyntaxError as ex:
            raise ValueError("OCS response is not well-formed XML: "+str(ex)) from ex

        metael = root.find('meta')
        if root.tag != "ocs" or metael is None:
            raise ValueError("Response is not an OCS response: missing ocs/meta element")

        code = metael.findtext('statuscode') or metael.findtext('code') or '0'
        try:
            code = int(code)
        except ValueError as ex:
            raise ValueError("OCS response has non-integer status code: "+code) from ex
        meta = OCSMeta(metael.findtext('status'), code, metael.findtext('message'))

        data = []
        datael = root.find('data')
        if datael is not None:
            elements = datael.findall('element')
            if not elements and len(datael) > 0:
                elements = [datael]
            data = [_element_to_dict(el) for el in elements]

        return cls(meta, data, httpcode)

def _element_to_dict(el) -> Mapping:
    out = OrderedDict()
    for child in el:
        if len(child) > 0:
            out[child.tag] = _element_to_dict(child)
        else:
            out[child.tag] = child.text
    return out

class OCSClient:
    """
    a client for the OCS file sharing API

    :param str   endpoint:  the base URL of the sharing API (e.g.
                            ``https://cloud.example.edu/ocs/v1.php/apps/files_sharing/api/v1/``)
    :param  token_source:   an object with a ``get_token()`` method returning the bearer token to
                            authenticate with
    :param str  ca_bundle:  the path to a CA certificate bundle used to verify the server's site
                            certificate
    :param Logger     log:  the Logger to use; if not provided, "ocscli" is used
    """

    def __init__(self, endpoint: str, token_source, ca_bundle: str=None, log: logging.Logger=None):
        if not log:
            log = logging.getLogger("ocscli")
        self.log = log

        if not endpoint:
            raise ConfigurationError("OCSClient: Missing required endpoint URL")
        if not endpoint.endswith('/'):
            endpoint += '/'
        self.base_url = endpoint
        self._tokensrc = token_source
        self._verify = ca_bundle or True

    def call(self, operation: str, params: Mapping) -> OCSResponse:
        """
        call an operation of the sharing API

        :param str operation:  the name of the operation; one of "create_share", "get_shares",
                               or "delete_share"
        :param dict   params:  the parameters for the operation
        :raises ValueError:  if the operation is not recognized or a required parameter is missing
        :raises RemoteCommError:  if the server could not be reached
        :raises RemoteServerError:  if the server responded with a server error
        :raises UnexpectedRemoteResponse:  if the response could not be parsed as an OCS response
        """
        if operation not in _operations:
            raise ValueError(f"Unrecognized OCS operation: {operation}")
        method, template, required, optional = _operations[operation]

        missing = [p for p in required if params.get(p) is None]
        if missing:
            raise ValueError(f"{operation}: missing required parameters: {', '.join(missing)}")

        path = template.format(**params)
        args = OrderedDict((k, params[k]) for k in required + optional
                           if params.get(k) is not None and '{'+k+'}' not in template)

        kw = {}
        if method == 'GET':
            kw['params'] = args
        elif args:
            kw['data'] = args
        return self._handle_request(method, path, **kw)

    def _handle_request(self, method, path, **kwargs) -> OCSResponse:
        url = urljoin(self.base_url, path)
        headers = {
            'OCS-APIRequest': 'true',
            'Authorization': 'Bearer ' + self._tokensrc.get_token()
        }

        try:
            response = requests.request(method, url, headers=headers, verify=self._verify, **kwargs)
        except requests.RequestException as ex:
            raise RemoteCommError(str(ex), url) from ex

        try:
            out = OCSResponse.parse(response.content, response.status_code)
        except ValueError as ex:
            if response.status_code >= 500:
                raise RemoteServerError(response.status_code, url, response.text) from ex
            raise UnexpectedRemoteResponse("Unparseable OCS response: "+str(ex), url, response.text,
                                           response.status_code) from ex

        self.log.debug("%s %s: %s", method, path, str(out.meta))
        return out
