"""
Tests for data models.
"""

import unittest

from src.scunet_auth.core.exceptions import Cancelled, PortalBusy
from src.scunet_auth.models import (
    AuthOutcome,
    Credentials,
    LOGIN,
    LOGOUT,
    PortalResponse,
    ResponseStatus,
    ServiceType,
)


class TestServiceType(unittest.TestCase):
    """Test service type lookups."""

    def test_lookup(self):
        self.assertEqual(ServiceType.lookup("CHINAMOBILE"), ServiceType.CHINA_MOBILE)
        self.assertEqual(ServiceType.lookup("chinamobile"), ServiceType.CHINA_MOBILE)
        self.assertEqual(ServiceType.lookup("中国移动"), ServiceType.CHINA_MOBILE)
        self.assertEqual(ServiceType.lookup("cmcc"), ServiceType.CHINA_MOBILE)
        self.assertEqual(ServiceType.lookup(" edunet "), ServiceType.CAMPUS_NET)
        self.assertIsNone(ServiceType.lookup("cisco"))
        self.assertIsNone(ServiceType.lookup(None))

    def test_display_names(self):
        self.assertEqual(ServiceType.display_names(), ["校园网", "中国电信", "中国移动", "中国联通"])
        self.assertEqual(ServiceType.from_display_name("中国联通").backend_value, "CHINAUNICOM")
        self.assertIsNone(ServiceType.from_backend_value("中国联通"))


class TestCredentials(unittest.TestCase):
    """Test credentials immutability."""

    def test_extra_is_a_private_copy(self):
        extra = {"isp": "cmcc"}
        credentials = Credentials("u1", "p1", extra)
        extra["isp"] = "unicom"

        self.assertEqual(credentials.extra["isp"], "cmcc")
        with self.assertRaises(TypeError):
            credentials.extra["isp"] = "telecom"

    def test_service(self):
        self.assertEqual(Credentials("u1", "p1", {"isp": "cmcc"}).service, ServiceType.CHINA_MOBILE)
        self.assertEqual(Credentials("u1", "p1", {"service": "中国电信"}).service, ServiceType.CHINA_TELECOM)
        self.assertIsNone(Credentials("u1", "p1").service)


class TestAuthOutcome(unittest.TestCase):
    """Test outcome rendering."""

    def test_messages(self):
        self.assertEqual(AuthOutcome.succeeded(LOGIN).message, "登录成功")
        self.assertEqual(AuthOutcome.succeeded(LOGOUT, already=True).message, "注销成功")
        self.assertEqual(
            AuthOutcome.failed(LOGIN, PortalBusy("稍后再试")).message,
            "登录失败: [portal_busy] 稍后再试",
        )
        self.assertEqual(
            AuthOutcome.failed(LOGOUT, Cancelled("context cancelled")).message,
            "注销失败: [cancelled] context cancelled",
        )

    def test_data(self):
        handles = {"userIndex": "abc"}
        outcome = AuthOutcome.succeeded(LOGIN, data=handles)
        handles["userIndex"] = "changed"

        self.assertEqual(outcome.data, {"userIndex": "abc"})
        self.assertEqual(AuthOutcome.failed(LOGIN, PortalBusy("稍后再试")).data, {})

    def test_response_ok(self):
        self.assertTrue(PortalResponse(ResponseStatus.ALREADY_AUTHENTICATED).ok)
        self.assertFalse(PortalResponse(ResponseStatus.PORTAL_ERROR).ok)


if __name__ == "__main__":
    unittest.main()
