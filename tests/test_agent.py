import os
import unittest
from unittest import mock

import paramiko

from fake_servers import FakeAgent
from ssh_builder import AgentAuth, AgentUnavailableError, Builder
from ssh_builder.agent import open_agent, open_default_agent


class AgentTests(unittest.TestCase):
    def test_unset_socket(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(AgentUnavailableError):
                open_default_agent()

    def test_lists_identities_on_open(self) -> None:
        keys = [paramiko.ECDSAKey.generate(), paramiko.ECDSAKey.generate()]
        with FakeAgent(keys) as fake:
            agent = open_agent(fake.path)
            try:
                self.assertEqual(
                    [k.asbytes() for k in agent.get_keys()],
                    [k.asbytes() for k in keys],
                )
                self.assertFalse(agent.closed)
            finally:
                agent.close()
            self.assertTrue(agent.closed)
            self.assertEqual(agent.get_keys(), ())

    def test_default_agent_appends_auth_method(self) -> None:
        with FakeAgent([paramiko.ECDSAKey.generate()]) as fake:
            with mock.patch.dict(os.environ, {"SSH_AUTH_SOCK": fake.path}):
                builder = Builder.create().with_password("pw").with_default_agent()
            try:
                self.assertEqual(builder.get_errors(), [])
                self.assertEqual([m.name for m in builder.auth_methods], ["password", "publickey"])
                self.assertIsInstance(builder.auth_methods[-1], AgentAuth)
            finally:
                builder.close()
            self.assertTrue(builder.auth_methods[-1].agent.closed)

    def test_agent_without_identities_rejects(self) -> None:
        with FakeAgent() as fake:
            agent = open_agent(fake.path)
            try:
                with self.assertRaises(paramiko.AuthenticationException):
                    AgentAuth(agent).authenticate(mock.Mock(), "root")
            finally:
                agent.close()

    def test_refresh_sees_keys_added_after_open(self) -> None:
        first = paramiko.ECDSAKey.generate()
        second = paramiko.ECDSAKey.generate()
        with FakeAgent([first]) as fake:
            agent = open_agent(fake.path)
            try:
                fake.keys.append(second)
                self.assertEqual(len(agent.get_keys()), 1)
                refreshed = agent.refresh_keys()
                self.assertEqual([k.asbytes() for k in refreshed], [first.asbytes(), second.asbytes()])
                self.assertIs(agent.get_keys(), refreshed)
            finally:
                agent.close()

    def test_refresh_after_close_is_rejected(self) -> None:
        with FakeAgent([paramiko.ECDSAKey.generate()]) as fake:
            agent = open_agent(fake.path)
            agent.close()
            with self.assertRaises(paramiko.AuthenticationException):
                AgentAuth(agent).authenticate(mock.Mock(), "root")

    def test_signing_failure_counts_as_rejection(self) -> None:
        with FakeAgent([paramiko.ECDSAKey.generate()]) as fake:
            agent = open_agent(fake.path)
            transport = mock.Mock()
            transport.auth_publickey.side_effect = paramiko.SSHException("key cannot be used for signing")
            transport.is_active.return_value = True
            try:
                with self.assertRaises(paramiko.AuthenticationException) as ctx:
                    AgentAuth(agent).authenticate(transport, "root")
            finally:
                agent.close()
        self.assertIn("key cannot be used for signing", str(ctx.exception))

    def test_signing_failure_on_dead_transport_propagates(self) -> None:
        with FakeAgent([paramiko.ECDSAKey.generate()]) as fake:
            agent = open_agent(fake.path)
            transport = mock.Mock()
            transport.auth_publickey.side_effect = paramiko.SSHException("key cannot be used for signing")
            transport.is_active.return_value = False
            try:
                with self.assertRaises(paramiko.SSHException) as ctx:
                    AgentAuth(agent).authenticate(transport, "root")
            finally:
                agent.close()
        self.assertNotIsInstance(ctx.exception, paramiko.AuthenticationException)


if __name__ == "__main__":
    unittest.main()
