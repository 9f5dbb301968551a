import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from core.config import Config
from ui.console_logger import ConsoleLogger
from ui.dashboard import Dashboard
from ui.log_utils import _mask, clear_logs, write_cli_log, write_request_log


class LogUtilsTest(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name) / "logs"

    def tearDown(self):
        self._tmp.cleanup()

    def test_write_cli_log(self):
        log_file = self.root / "proxy.log"
        write_cli_log("FORWARD", "https://ae01.alicdn.com/x.png", log_file=log_file, status=200)
        write_cli_log("STARTUP", "Proxy started", log_file=log_file)
        lines = log_file.read_text().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].endswith("FORWARD: https://ae01.alicdn.com/x.png status=200"))
        self.assertTrue(lines[1].endswith("STARTUP: Proxy started"))

    def test_write_request_log_redacts(self):
        path = write_request_log(
            "GET",
            "/proxy",
            {"cookie": "session=0123456789abcdef", "authorization": "short", "accept": "image/*"},
            "https://ae01.alicdn.com/x.png",
            log_root=self.root,
        )
        payload = json.loads(path.read_text())
        self.assertEqual(path.parent, self.root / "incoming")
        self.assertEqual(payload["headers"]["cookie"], "sessio...cdef")
        self.assertEqual(payload["headers"]["authorization"], "***")
        self.assertEqual(payload["headers"]["accept"], "image/*")
        self.assertEqual(payload["url"], "https://ae01.alicdn.com/x.png")

    def test_clear_logs(self):
        write_cli_log("X", "y", log_file=self.root / "proxy.log")
        clear_logs(self.root)
        self.assertFalse(self.root.exists())
        clear_logs(self.root)

    def test_mask(self):
        self.assertEqual(_mask("abc"), "***")
        self.assertEqual(_mask("sk-ant-0123456789"), "sk-ant...6789")


@mock.patch("ui.dashboard.write_cli_log")
class DashboardTest(unittest.TestCase):

    def test_counts(self, write_log):
        dashboard = Dashboard(Config())
        dashboard.log_forwarded("https://ae01.alicdn.com/x.png", 200)
        dashboard.log_rejected("target_not_allowed", "https://evil.com/", "Target is not in the allow-list")
        dashboard.log_error("https://ae01.alicdn.com/y.png", 504, "Upstream did not respond within 10s")
        dashboard.log_decode_anomaly("100%", "Malformed escape sequence at offset 3")
        self.assertEqual(dashboard._counts, {"forwarded": 1, "rejected": 1, "failed": 1})
        self.assertEqual(len(dashboard._fetches), 1)
        self.assertEqual(len(dashboard._errors), 2)
        self.assertEqual(
            [c.args[0] for c in write_log.call_args_list],
            ["FORWARD", "REJECT", "ERROR", "DECODE"],
        )

    def test_layout_builds(self, write_log):
        dashboard = Dashboard(Config())
        for i in range(15):
            dashboard.log_forwarded(f"https://ae01.alicdn.com/{i}.png", 200 if i % 2 else 404)
        self.assertEqual(len(dashboard._fetches), 10)
        self.assertIsNotNone(dashboard._build_layout())


@mock.patch("ui.console_logger.write_cli_log")
class ConsoleLoggerTest(unittest.TestCase):

    def test_writes_cli_log(self, write_log):
        logger = ConsoleLogger(quiet=True)
        logger.log_forwarded("https://ae01.alicdn.com/x.png", 200)
        logger.log_error("https://ae01.alicdn.com/[x].png", 502, "Upstream connection error: [Errno -2]")
        write_log.assert_any_call("FORWARD", "https://ae01.alicdn.com/x.png", status=200)
        self.assertEqual(write_log.call_count, 2)
