import unittest as test

from collabfolders import sim
from collabfolders.exceptions import *

class TestSimRemoteServer(test.TestCase):

    def setUp(self):
        self.server = sim.SimRemoteServer()

    def test_mkcol(self):
        self.assertEqual(self.server.mkcol("system", "/42"), 201)
        self.assertEqual(self.server.mkcol("system", "42/"), 405)
        self.assertEqual(self.server.mkcol("system", "/42/7"), 201)
        self.assertEqual(self.server.mkcol("system", "/43/7"), 409)
        self.assertEqual(len(self.server.calls_to("mkcol")), 4)

    def test_share_and_move(self):
        self.server.mkcol("system", "/42")
        self.server.mkcol("system", "/42/7")
        self.assertEqual(self.server.share("/42", "alice").meta.status, "ok")
        self.assertEqual(self.server.share("/42", "alice").meta.code, 403)
        self.assertEqual(self.server.share("/43", "alice").meta.code, 404)
        self.assertEqual(self.server.folders["alice"], {"/42"})

        self.server.folders["alice"].add("/42/7")
        self.assertEqual(self.server.move("alice", "/42", "/Project"), 201)
        self.assertEqual(self.server.folders["alice"], {"/Project", "/Project/7"})
        self.assertEqual(self.server.move("alice", "/42", "/Other"), 404)
        self.server.folders["alice"].add("/Other")
        self.assertEqual(self.server.move("alice", "/Project", "/Other"), 412)
        self.assertEqual(self.server.move("alice", "/Project", "/Other", True), 201)

class TestSimClients(test.TestCase):

    def test_webdav(self):
        server = sim.SimRemoteServer()
        cli = sim.SimWebDAVClient(server, "system")
        with self.assertRaises(SocketError):
            cli.mkcol("/42")
        self.assertTrue(cli.open())
        self.assertEqual(cli.mkcol("/42"), 201)
        cli.close()
        self.assertFalse(cli.is_open())

        cli = sim.SimWebDAVClient(server, "system", can_open=False)
        self.assertFalse(cli.open())

    def test_session(self):
        sess = sim.SimRemoteSession()
        self.assertEqual(sess.webdav_client().account, "system")
        self.assertEqual(sess.webdav_client(sim.SimTokenSource("bob")).account, "bob")
        with self.assertRaises(ValueError):
            sess.ocs_client().call("delete_share", {"share_id": 1})

    def test_token_source(self):
        self.assertEqual(sim.SimTokenSource("bob").get_accesstoken().user_id, "bob")
        self.assertFalse(sim.SimTokenSource().is_logged_in())
        with self.assertRaises(RemoteClientError):
            sim.SimTokenSource().get_token()


if __name__ == '__main__':
    test.main()
