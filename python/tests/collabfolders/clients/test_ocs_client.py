import unittest as test
from unittest.mock import patch, Mock

import requests

from collabfolders.clients import ocs
from collabfolders.exceptions import *

ocsurl = "https://cloud.example.edu/ocs/v1.php/apps/files_sharing/api/v1"

ok_resp = """<?xml version="1.0"?>
<ocs>
 <meta>
  <status>ok</status>
  <statuscode>100</statuscode>
  <message/>
 </meta>
 <data>
  <id>17</id>
  <share_type>0</share_type>
  <share_with>alice</share_with>
  <path>/42</path>
 </data>
</ocs>
"""

exists_resp = """<?xml version="1.0"?>
<ocs>
 <meta>
  <status>failure</status>
  <statuscode>403</statuscode>
  <message>Path already shared with this user</message>
 </meta>
 <data/>
</ocs>
"""

list_resp = """<?xml version="1.0"?>
<ocs>
 <meta><status>ok</status><statuscode>100</statuscode></meta>
 <data>
  <element><id>17</id><share_with>alice</share_with></element>
  <element><id>18</id><share_with>bob</share_with></element>
 </data>
</ocs>
"""

def mock_response(code, content):
    resp = Mock()
    resp.status_code = code
    resp.content = content.encode('utf-8')
    resp.text = content
    return resp

class TestOCSResponse(test.TestCase):

    def test_parse_ok(self):
        resp = ocs.OCSResponse.parse(ok_resp, 200)
        self.assertEqual(resp.meta.status, "ok")
        self.assertEqual(resp.meta.code, 100)
        self.assertEqual(resp.httpcode, 200)
        self.assertEqual(len(resp.data), 1)
        self.assertEqual(resp.data[0]['share_with'], "alice")

    def test_parse_failure(self):
        resp = ocs.OCSResponse.parse(exists_resp)
        self.assertEqual(resp.meta.status, "failure")
        self.assertEqual(resp.meta.code, 403)
        self.assertEqual(resp.meta.message, "Path already shared with this user")
        self.assertEqual(resp.data, [])

    def test_parse_list(self):
        resp = ocs.OCSResponse.parse(list_resp)
        self.assertEqual([d['id'] for d in resp.data], ["17", "18"])

    def test_parse_bad(self):
        for content in ["", "<html><body>Oops</body></html>", "{\"ocs\": {}}",
                        "<ocs><meta><statuscode>x</statuscode></meta></ocs>"]:
            with self.assertRaises(ValueError):
                ocs.OCSResponse.parse(content)

class TestOCSClient(test.TestCase):

    def setUp(self):
        self.tokens = Mock()
        self.tokens.get_token.return_value = "abc"
        self.cli = ocs.OCSClient(ocsurl, self.tokens)

    def test_ctor(self):
        self.assertEqual(self.cli.base_url, ocsurl + '/')
        with self.assertRaises(ConfigurationError):
            ocs.OCSClient(None, self.tokens)

    @patch('requests.request')
    def test_create_share(self, mock_req):
        mock_req.return_value = mock_response(200, ok_resp)
        resp = self.cli.call('create_share', {"path": "/42", "shareType": ocs.SHARE_TYPE_USER,
                                              "shareWith": "alice", "permissions": ocs.PERM_ALL})
        self.assertEqual(resp.meta.status, ocs.STATUS_OK)

        args, kw = mock_req.call_args
        self.assertEqual(args[0], "POST")
        self.assertEqual(args[1], ocsurl + "/shares")
        self.assertEqual(kw['headers']['OCS-APIRequest'], "true")
        self.assertEqual(kw['headers']['Authorization'], "Bearer abc")
        self.assertEqual(dict(kw['data']), {"path": "/42", "shareType": 0, "shareWith": "alice",
                                            "permissions": 31})
        self.assertNotIn('params', kw)

    @patch('requests.request')
    def test_get_and_delete(self, mock_req):
        mock_req.return_value = mock_response(200, list_resp)
        resp = self.cli.call('get_shares', {"path": "/42"})
        self.assertEqual(len(resp.data), 2)
        args, kw = mock_req.call_args
        self.assertEqual(args[0], "GET")
        self.assertEqual(dict(kw['params']), {"path": "/42"})

        mock_req.return_value = mock_response(200, ok_resp)
        self.cli.call('delete_share', {"share_id": 17})
        args, kw = mock_req.call_args
        self.assertEqual(args[0], "DELETE")
        self.assertEqual(args[1], ocsurl + "/shares/17")
        self.assertNotIn('data', kw)

    def test_bad_calls(self):
        with self.assertRaises(ValueError):
            self.cli.call('update_share', {})
        with self.assertRaises(ValueError):
            self.cli.call('create_share', {"path": "/42"})

    @patch('requests.request')
    def test_remote_errors(self, mock_req):
        params = {"path": "/42", "shareType": 0, "shareWith": "alice"}

        mock_req.return_value = mock_response(200, exists_resp)
        self.assertEqual(self.cli.call('create_share', params).meta.code, 403)

        mock_req.return_value = mock_response(502, "<html>Bad Gateway</html>")
        with self.assertRaises(RemoteServerError) as cm:
            self.cli.call('create_share', params)
        self.assertEqual(cm.exception.code, 502)

        mock_req.return_value = mock_response(200, "not xml")
        with self.assertRaises(UnexpectedRemoteResponse):
            self.cli.call('create_share', params)

        mock_req.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(RemoteCommError):
            self.cli.call('create_share', params)


if __name__ == '__main__':
    test.main()
