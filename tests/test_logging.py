import logging
import unittest

from ssh_builder import Builder
from ssh_builder.utils.logging import get_logger


class LoggingTests(unittest.TestCase):
    def test_get_logger_returns_named_logger(self) -> None:
        logger = get_logger("ssh_builder.test")
        self.assertIsInstance(logger, logging.Logger)
        self.assertEqual(logger.name, "ssh_builder.test")

    def test_build_errors_are_logged(self) -> None:
        with self.assertLogs("ssh_builder.builder", level="WARNING") as captured:
            Builder.create().with_known_hosts_files("/missing/known_hosts")
        self.assertTrue(any("Build error recorded" in line for line in captured.output))

    def test_insecure_policy_is_logged(self) -> None:
        with self.assertLogs("ssh_builder.builder", level="WARNING") as captured:
            Builder.create().with_insecure_ignore_host_key()
        self.assertTrue(any("Host key verification disabled" in line for line in captured.output))

    def test_password_is_never_logged(self) -> None:
        with self.assertLogs("ssh_builder", level="DEBUG") as captured:
            logging.getLogger("ssh_builder").debug("start")
            Builder.create().with_password("hunter2").with_known_hosts_files("/missing")
        self.assertFalse(any("hunter2" in line for line in captured.output))


if __name__ == "__main__":
    unittest.main()
