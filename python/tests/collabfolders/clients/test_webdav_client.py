import unittest as test
from unittest.mock import patch, Mock

from webdav3 import exceptions as wd3e

from collabfolders.clients import webdav as wd
from collabfolders.exceptions import *

def mock_token_source(token="abc"):
    out = Mock()
    out.get_token.return_value = token
    return out

class TestOwnCloudWebDAVClient(test.TestCase):

    def setUp(self):
        self.tokens = mock_token_source()
        self.cli = wd.OwnCloudWebDAVClient("cloud.example.edu", "bearer", "ssl://", self.tokens,
                                           "/remote.php/webdav/")

    def test_ctor(self):
        self.assertEqual(self.cli.server, "cloud.example.edu")
        self.assertEqual(self.cli.port, 443)
        self.assertEqual(self.cli.hostname, "https://cloud.example.edu:443")
        self.assertFalse(self.cli.is_open())

        cli = wd.OwnCloudWebDAVClient("cloud.example.edu", "bearer", "", self.tokens)
        self.assertEqual(cli.port, 80)
        self.assertEqual(cli.hostname, "http://cloud.example.edu:80")
        self.assertEqual(cli.basepath, "/")

        cli = wd.OwnCloudWebDAVClient("cloud.example.edu", "bearer", "ssl://", self.tokens, port=8443)
        self.assertEqual(cli.hostname, "https://cloud.example.edu:8443")

    def test_ctor_errors(self):
        with self.assertRaises(ConfigurationError):
            wd.OwnCloudWebDAVClient("cloud.example.edu", "basic", "ssl://", self.tokens)
        with self.assertRaises(ConfigurationError):
            wd.OwnCloudWebDAVClient("cloud.example.edu", "bearer", "ssl://", None)
        with self.assertRaises(ConfigurationError):
            wd.OwnCloudWebDAVClient("", "bearer", "ssl://", self.tokens)

    @patch('collabfolders.clients.webdav.wd3c.Client')
    def test_open_close(self, mock_client):
        wdcli = mock_client.return_value
        self.assertTrue(self.cli.open())
        self.assertTrue(self.cli.is_open())

        opts = mock_client.call_args[0][0]
        self.assertEqual(opts['webdav_hostname'], "https://cloud.example.edu:443")
        self.assertEqual(opts['webdav_root'], "/remote.php/webdav/")
        self.assertEqual(opts['webdav_token'], "abc")
        wdcli.check.assert_called_once()

        # already open
        self.assertTrue(self.cli.open())
        self.assertEqual(mock_client.call_count, 1)

        self.cli.close()
        self.assertFalse(self.cli.is_open())
        wdcli.session.close.assert_called_once()
        self.cli.close()

    @patch('collabfolders.clients.webdav.wd3c.Client')
    def test_open_fails(self, mock_client):
        mock_client.return_value.check.side_effect = wd3e.NoConnection("cloud.example.edu")
        self.assertFalse(self.cli.open())
        self.assertFalse(self.cli.is_open())
        mock_client.return_value.session.close.assert_called_once()

        self.tokens.get_token.side_effect = RemoteClientError("expired", 401)
        mock_client.reset_mock()
        self.assertFalse(self.cli.open())
        self.assertEqual(mock_client.call_count, 0)

    @patch('collabfolders.clients.webdav.wd3c.Client')
    def test_open_with_error_response(self, mock_client):
        mock_client.return_value.check.side_effect = \
            wd3e.ResponseErrorCode("https://cloud.example.edu/", 401, "Unauthorized")
        self.assertTrue(self.cli.open())

    def test_ops_require_open(self):
        with self.assertRaises(SocketError):
            self.cli.mkcol("/42")
        with self.assertRaises(SocketError):
            self.cli.move("/42", "/Project")

    @patch('collabfolders.clients.webdav.wd3c.Client')
    def test_mkcol(self, mock_client):
        wdcli = mock_client.return_value
        wdcli.execute_request.return_value = Mock(status_code=201)
        self.cli.open()

        self.assertEqual(self.cli.mkcol("/42"), 201)
        args, kw = wdcli.execute_request.call_args
        self.assertEqual(args[0], "mkdir")
        self.assertEqual(args[1], "/42/")

        wdcli.execute_request.side_effect = wd3e.MethodNotSupported("mkdir", "cloud.example.edu")
        self.assertEqual(self.cli.mkcol("/42"), 405)

        wdcli.execute_request.side_effect = wd3e.ResponseErrorCode("/42", 409, "Conflict")
        self.assertEqual(self.cli.mkcol("/42/7"), 409)

        wdcli.execute_request.side_effect = wd3e.NotEnoughSpace()
        self.assertEqual(self.cli.mkcol("/43"), 507)

        wdcli.execute_request.side_effect = wd3e.NoConnection("cloud.example.edu")
        with self.assertRaises(RemoteCommError):
            self.cli.mkcol("/44")

    @patch('collabfolders.clients.webdav.wd3c.Client')
    def test_move(self, mock_client):
        wdcli = mock_client.return_value
        wdcli.execute_request.return_value = Mock(status_code=201)
        wdcli.get_url.side_effect = lambda p: "https://cloud.example.edu:443/remote.php/webdav" + p
        self.cli.open()

        self.assertEqual(self.cli.move("/7", "/My Project"), 201)
        args, kw = wdcli.execute_request.call_args
        self.assertEqual(args[0], "move")
        self.assertEqual(args[1], "/7")
        self.assertEqual(kw['headers_ext'][0],
                         "Destination: https://cloud.example.edu:443/remote.php/webdav/My%20Project")
        self.assertEqual(kw['headers_ext'][1], "Overwrite: F")

        self.cli.move("/7", "/Project", True)
        self.assertEqual(wdcli.execute_request.call_args[1]['headers_ext'][1], "Overwrite: T")

        wdcli.execute_request.side_effect = wd3e.RemoteResourceNotFound("/7")
        self.assertEqual(self.cli.move("/7", "/Project"), 404)


if __name__ == '__main__':
    test.main()
