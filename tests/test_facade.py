"""
End-to-end tests for the authenticator and the string facade.

Runs full login/logout calls against simulated portals.
"""

import json
import threading
import time
from unittest.mock import patch

import pytest
import requests

from src.scunet_auth import facade
from src.scunet_auth.core.context import AuthContext
from src.scunet_auth.core.exceptions import CredentialsRejected, ErrorKind, InvalidInput
from src.scunet_auth.models import LOGIN
from src.scunet_auth.services import Authenticator


LOGIN_URL = "http://192.168.2.135/eportal/InterFace.do?method=login"
LOGOUT_URL = "http://192.168.2.135/eportal/InterFace.do?method=logoutByUserIdAndPass"
CHECK_URL = "http://www.msftconnecttest.com/connecttest.txt"
DETECT_URL = "http://123.123.123.123/"
PORTAL_URL = "http://192.168.2.135/eportal/index.jsp"
USER_INDEX = "3961386234343565363133353937323439643534"


def login_posts(requests_mock):
    return [r for r in requests_mock.request_history if r.method == "POST" and "method=login" in r.url]


class TestParseExtra:
    """Test extra parameter decoding."""

    @pytest.mark.parametrize("mapping", [
        {},
        {"isp": "cmcc"},
        {"service": "中国移动", "userIndex": "abc"},
        {"quote": "a\"b", "empty": ""},
    ])
    def test_round_trip(self, mapping):
        assert json.loads(json.dumps(facade.parse_extra(json.dumps(mapping)))) == mapping

    @pytest.mark.parametrize("text", [None, "null"])
    def test_empty(self, text):
        assert facade.parse_extra(text) == {}

    @pytest.mark.parametrize("text", ["", "  ", "{bad", "[]", '"cmcc"', '{"isp": 1}', '{"isp": {"nested": "x"}}'])
    def test_invalid(self, text):
        with pytest.raises(InvalidInput):
            facade.parse_extra(text)


class TestAuthenticator:
    """Test input validation."""

    @pytest.mark.parametrize("username", ["", "   ", None, 42])
    def test_empty_username(self, config, username):
        with pytest.raises(InvalidInput):
            Authenticator(config).login(AuthContext(), username, "p1")

    def test_extra_must_be_flat_strings(self, config):
        with pytest.raises(InvalidInput):
            Authenticator.validate("u1", "p1", {"isp": ["cmcc"]})
        with pytest.raises(InvalidInput):
            Authenticator.validate("u1", "p1", ["isp"])

    def test_validate_builds_credentials(self):
        credentials = Authenticator.validate(" u1 ", None, None)

        assert credentials.username == "u1"
        assert credentials.password == ""
        assert dict(credentials.extra) == {}

    def test_credentials_hide_password(self):
        assert "s3cret" not in repr(Authenticator.validate("u1", "s3cret", {}))

    def test_login_raises_classified_error(self, config, captive_network, load_fixture):
        captive_network.post(LOGIN_URL, text=load_fixture("ruijie_login_wrong_password.json"))

        with pytest.raises(CredentialsRejected):
            Authenticator(config).login(None, "u1", "wrongpw", {})

    def test_invalid_input_makes_no_request(self, config, requests_mock):
        with pytest.raises(InvalidInput):
            Authenticator(config).login(AuthContext(), "", "p1")
        assert not requests_mock.called


@pytest.mark.integration
class TestFacade:
    """Test the string boundary against simulated portals."""

    def test_login_success(self, config, captive_network, load_fixture):
        captive_network.post(LOGIN_URL, text=load_fixture("ruijie_login_success.json"))

        result = facade.login("u1", "p1", '{"isp":"cmcc"}', config=config)

        assert result == "登录成功"
        assert len(login_posts(captive_network)) == 1

    def test_login_wrong_password(self, config, captive_network, load_fixture):
        """Test a rejection fails after a single login request."""
        captive_network.post(LOGIN_URL, text=load_fixture("ruijie_login_wrong_password.json"))

        result = facade.login("u1", "wrongpw", "{}", config=config)

        assert result.startswith("登录失败: ")
        assert "[credentials_rejected]" in result
        assert "wrongpw" not in result
        assert len(login_posts(captive_network)) == 1

    def test_login_already_authenticated(self, config, online_network):
        assert facade.login("u1", "p1", "{}", config=config) == "登录成功"
        assert online_network.call_count == 1

    def test_login_retries_transient_failure(self, config, captive_network, load_fixture):
        captive_network.post(LOGIN_URL, [
            {"exc": requests.exceptions.ConnectTimeout("timed out")},
            {"status_code": 503},
            {"text": load_fixture("ruijie_login_success.json")},
        ])

        outcome = facade.run(LOGIN, "u1", "p1", {}, config=config)

        assert outcome.success
        assert outcome.attempts == 3
        assert len(login_posts(captive_network)) == 3

    def test_login_returns_user_index(self, config, captive_network, load_fixture):
        captive_network.post(LOGIN_URL, text=load_fixture("ruijie_login_success.json"))

        outcome = facade.run(LOGIN, "u1", "p1", {}, config=config)

        assert outcome.success
        assert outcome.data == {"userIndex": USER_INDEX}

    def test_login_accepted_before_reply_lost(self, config, requests_mock, load_fixture):
        """Test a retry finds the network online after a timed-out login went through."""
        requests_mock.get(CHECK_URL, [
            {"status_code": 302, "headers": {"Location": DETECT_URL}},
            {"text": "Microsoft Connect Test"},
        ])
        requests_mock.get(DETECT_URL, [
            {"text": load_fixture("ruijie_redirect.html")},
            {"text": "<html><body>online</body></html>"},
        ])
        requests_mock.get(PORTAL_URL, text=load_fixture("ruijie_portal.html"))
        requests_mock.post(LOGIN_URL, exc=requests.exceptions.ReadTimeout("read timed out"))

        outcome = facade.run(LOGIN, "u1", "p1", {}, config=config)

        assert outcome.success
        assert outcome.already
        assert outcome.attempts == 2
        assert outcome.message == "登录成功"
        assert len(login_posts(requests_mock)) == 1

    def test_login_network_failure_exhausts_attempts(self, config, captive_network):
        captive_network.post(LOGIN_URL, exc=requests.exceptions.ConnectionError("unreachable"))

        outcome = facade.run(LOGIN, "u1", "p1", {}, config=config)

        assert not outcome.success
        assert outcome.error_kind == ErrorKind.NETWORK
        assert len(login_posts(captive_network)) == config.max_attempts
        assert outcome.message.startswith("登录失败: [network_error]")

    def test_login_cancelled_mid_call(self, config, captive_network):
        def hanging(request, context):
            time.sleep(1.0)
            return "{}"

        captive_network.post(LOGIN_URL, text=hanging)
        ctx = AuthContext(timeout=30)
        threading.Timer(0.2, ctx.cancel).start()

        start = time.monotonic()
        result = facade.login("u1", "p1", "{}", config=config, ctx=ctx)

        assert result.startswith("登录失败: [cancelled]")
        assert time.monotonic() - start < 0.9

    def test_malformed_extra(self, config, requests_mock):
        result = facade.login("u1", "p1", "{not json", config=config)

        assert result.startswith("解析额外信息失败: ")
        assert not requests_mock.called

    @pytest.mark.parametrize("extra", ["", "   "])
    def test_blank_extra(self, config, requests_mock, extra):
        result = facade.login("u1", "p1", extra, config=config)

        assert result.startswith("解析额外信息失败: ")
        assert not requests_mock.called

    def test_empty_username(self, config, requests_mock):
        assert facade.login("", "p1", "{}", config=config).startswith("登录失败: [invalid_input]")

    def test_unexpected_error(self, config):
        with patch("src.scunet_auth.facade.Authenticator") as authenticator:
            authenticator.return_value.login.side_effect = RuntimeError("boom")

            result = facade.login("u1", "p1", "{}", config=config)

        assert result == "登录失败: [protocol_error] unexpected error: boom"

    def test_logout_success(self, config, online_network, load_fixture):
        online_network.post(LOGOUT_URL, text=load_fixture("ruijie_logout_success.json"))

        assert facade.logout("u1", "p1", "{}", config=config) == "注销成功"
        assert online_network.last_request.method == "POST"

    def test_logout_when_unauthenticated(self, config, captive_network):
        assert facade.logout("u1", "p1", config=config) == "注销成功"
        assert not any(r.method == "POST" for r in captive_network.request_history)

    def test_logout_network_failure(self, config, online_network):
        online_network.post(LOGOUT_URL, exc=requests.exceptions.ConnectionError("unreachable"))

        result = facade.logout("u1", "p1", "{}", config=config)

        assert result.startswith("注销失败: [network_error]")

    def test_logout_malformed_extra(self, config, requests_mock):
        assert facade.logout("u1", "p1", "[", config=config).startswith("解析额外信息失败: ")
