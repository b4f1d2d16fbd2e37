"""
Tests for portal helper functions.

Tests redirect detection, JSON/JSONP parsing and redaction.
"""

import pytest
import requests

from src.scunet_auth.portal import helpers


def make_response(status_code=200, body=b"", headers=None, url="http://123.123.123.123/"):
    response = requests.Response()
    response.status_code = status_code
    response._content = body
    response.headers.update(headers or {})
    response.url = url
    return response


class TestRedirects:
    """Test redirect target detection."""

    def test_location_header(self):
        response = make_response(302, headers={"Location": "/eportal/index.jsp?a=1"})
        assert helpers.find_redirect_target(response) == "http://123.123.123.123/eportal/index.jsp?a=1"

    def test_location_ignored_without_redirect_status(self):
        response = make_response(200, headers={"Location": "http://elsewhere/"})
        assert helpers.find_redirect_target(response) == ""

    def test_javascript_redirect(self, load_fixture):
        response = make_response(body=load_fixture("ruijie_redirect.html").encode("utf-8"))
        target = helpers.find_redirect_target(response)

        assert target.startswith("http://192.168.2.135/eportal/index.jsp?")
        assert "wlanuserip=10.132.45.17" in target

    def test_meta_refresh(self):
        body = b'<meta http-equiv="refresh" content="0; url=http://10.0.0.1/portal">'
        assert helpers.find_redirect_target(make_response(body=body)) == "http://10.0.0.1/portal"

    def test_plain_page(self):
        assert helpers.find_redirect_target(make_response(body=b"Microsoft Connect Test")) == ""


class TestDecoding:
    """Test body decoding and parsing."""

    def test_decode_gbk_without_charset(self):
        response = make_response(body="密码错误".encode("gbk"))
        assert helpers.decode_text(response) == "密码错误"

    def test_decode_declared_charset(self):
        response = make_response(
            body="已经在线".encode("gb2312"),
            headers={"Content-Type": "text/html; charset=GB2312"},
        )
        assert helpers.decode_text(response) == "已经在线"

    def test_parse_json(self):
        assert helpers.parse_json('{"result": "success"}') == {"result": "success"}

    def test_parse_jsonp(self):
        assert helpers.parse_json('dr1003({"result":1,"msg":"ok"});') == {"result": 1, "msg": "ok"}

    @pytest.mark.parametrize("text", ["", "<html></html>", "[1, 2]", "dr1003(not json)"])
    def test_parse_json_rejects(self, text):
        assert helpers.parse_json(text) is None

    def test_try_decode_base64(self):
        assert helpers.try_decode_base64("bGRhcCBhdXRoIGVycm9y") == "ldap auth error"
        assert helpers.try_decode_base64("认证成功") is None
        assert helpers.try_decode_base64("abc") is None
        assert helpers.try_decode_base64(None) is None

    def test_split_url(self):
        parts = helpers.split_url("http://10.0.0.1:801/eportal/?a=1&b=2")
        assert parts == {"base_url": "http://10.0.0.1:801", "path": "/eportal/", "query": "a=1&b=2"}
        assert helpers.parse_query(parts["query"]) == {"a": "1", "b": "2"}

    def test_extract_error_hint(self):
        assert helpers.extract_error_hint("<script>alert('账号或密码错误')</script>") == "账号或密码错误"
        assert helpers.extract_error_hint('<p class="login-error"> Bad   user </p>') == "Bad user"
        assert helpers.extract_error_hint("<p>fine</p>") == ""


class TestRedaction:
    """Test secrets are kept out of logs."""

    def test_mask_value(self):
        assert helpers.mask_value("2021141460001") == "20***01"
        assert helpers.mask_value("abc") == "***"
        assert helpers.mask_value("") == ""

    def test_sanitize(self):
        assert helpers.sanitize("userId=u1&password=s3cret", "s3cret") == "userId=u1&password=***"
        assert len(helpers.sanitize("x" * 5000)) == 2048
        assert helpers.sanitize(None) == ""

    def test_contains_marker_case_insensitive(self):
        assert helpers.contains_marker("LDAP Auth Error", ("ldap auth error",))
        assert not helpers.contains_marker("", ("x",))
