"""
Unit tests for the My Studio HTTP client and its error mapping.
"""

import logging
import unittest
from unittest.mock import MagicMock, patch

import requests

from youkoso.core.credentials import Credential, Secret
from youkoso.core.errors import ApiError, AuthRejected, AuthUnreachable
from youkoso.core.session import ApiRequest, Session
from youkoso.integrations.my_studio_client import MyStudioClient

REQUEST = 'youkoso.integrations.my_studio_client.requests.Session.request'


def _response(status_code=200, payload=None, reason="OK"):
    resp = MagicMock()
    resp.status_code = status_code
    resp.reason = reason
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


class TestAuthenticate(unittest.TestCase):

    def setUp(self):
        self.client = MyStudioClient(base_url="https://example.test/Api/v2/")
        self.credential = Credential.create("me@studio.com", "hunter2", "42")

    @patch(REQUEST)
    def test_two_step_login(self, mock_request):
        mock_request.side_effect = [
            _response(payload={"status": "Success", "msg": "Logged in"}),
            _response(payload={"status": "Success", "msg": "attendance-token"}),
        ]

        session = self.client.authenticate(self.credential)

        self.assertEqual(session.token.reveal(), "attendance-token")
        self.assertIsNone(session.expires_at)
        self.assertEqual(mock_request.call_count, 2)

        login_args, login_kwargs = mock_request.call_args_list[0]
        self.assertEqual(login_args, ("POST", "https://example.test/Api/v2/login"))
        self.assertEqual(login_kwargs["json"], {
            "email": "me@studio.com",
            "password": "hunter2",
            "from_page": "attendance",
        })

        token_args, token_kwargs = mock_request.call_args_list[1]
        self.assertEqual(token_args[1], "https://example.test/Api/v2/generateStudioAttendanceToken")
        self.assertEqual(token_kwargs["json"], {
            "company_id": "42",
            "email": "me@studio.com",
            "from_page": "attendance",
        })

    @patch(REQUEST)
    def test_secrets_not_logged(self, mock_request):
        mock_request.side_effect = [
            _response(payload={"status": "Success", "msg": "Logged in"}),
            _response(payload={"status": "Success", "msg": "attendance-token"}),
        ]
        with self.assertLogs("youkoso.integrations.my_studio_client", level=logging.DEBUG) as logs:
            self.client.authenticate(self.credential)

        output = "\n".join(logs.output)
        self.assertNotIn("hunter2", output)
        self.assertNotIn("attendance-token", output)

    @patch(REQUEST)
    def test_failed_envelope_is_rejection(self, mock_request):
        mock_request.return_value = _response(payload={"status": "Failed", "msg": "Invalid password"})

        with self.assertRaises(AuthRejected) as ctx:
            self.client.authenticate(self.credential)

        self.assertIn("Invalid password", str(ctx.exception))
        self.assertEqual(mock_request.call_count, 1)

    @patch(REQUEST)
    def test_connection_error_is_unreachable(self, mock_request):
        mock_request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(AuthUnreachable):
            self.client.authenticate(self.credential)

    @patch(REQUEST)
    def test_timeout_is_unreachable(self, mock_request):
        mock_request.side_effect = requests.Timeout("slow")
        with self.assertRaises(AuthUnreachable):
            self.client.authenticate(self.credential)

    @patch(REQUEST)
    def test_server_error_is_unreachable(self, mock_request):
        mock_request.return_value = _response(502, reason="Bad Gateway")
        with self.assertRaises(AuthUnreachable):
            self.client.authenticate(self.credential)

    @patch(REQUEST)
    def test_client_error_is_rejection(self, mock_request):
        mock_request.return_value = _response(403, reason="Forbidden")
        with self.assertRaises(AuthRejected):
            self.client.authenticate(self.credential)

    @patch(REQUEST)
    def test_missing_token_is_api_error(self, mock_request):
        mock_request.side_effect = [
            _response(payload={"status": "Success", "msg": "Logged in"}),
            _response(payload={"status": "Success"}),
        ]
        with self.assertRaises(ApiError) as ctx:
            self.client.authenticate(self.credential)
        self.assertIn("'msg'", ctx.exception.message)


class TestCall(unittest.TestCase):

    def setUp(self):
        self.client = MyStudioClient(base_url="https://example.test/Api/v2")
        self.session = Session(token=Secret("attendance-token"))

    @patch(REQUEST)
    def test_bearer_header_sent(self, mock_request):
        mock_request.return_value = _response(payload={"status": "Success", "msg": []})

        result = self.client.call(self.session, ApiRequest("/getStudents", json={"page": 1}))

        self.assertEqual(result["msg"], [])
        args, kwargs = mock_request.call_args
        self.assertEqual(args, ("POST", "https://example.test/Api/v2/getStudents"))
        self.assertEqual(kwargs["headers"], {"Authorization": "Bearer attendance-token"})
        self.assertEqual(kwargs["json"], {"page": 1})
        self.assertEqual(kwargs["timeout"], self.client.timeout)

    @patch(REQUEST)
    def test_unauthorized(self, mock_request):
        mock_request.return_value = _response(401, reason="Unauthorized")
        with self.assertRaises(ApiError) as ctx:
            self.client.call(self.session, ApiRequest("/getStudents"))
        self.assertTrue(ctx.exception.is_unauthorized)
        self.assertFalse(ctx.exception.transient)

    @patch(REQUEST)
    def test_service_unavailable_is_transient(self, mock_request):
        mock_request.return_value = _response(503, reason="Service Unavailable")
        with self.assertRaises(ApiError) as ctx:
            self.client.call(self.session, ApiRequest("/getStudents"))
        self.assertTrue(ctx.exception.transient)
        self.assertEqual(ctx.exception.status_code, 503)

    @patch(REQUEST)
    def test_missing_status_field(self, mock_request):
        mock_request.return_value = _response(payload={"msg": "hello"})
        with self.assertRaises(ApiError) as ctx:
            self.client.call(self.session, ApiRequest("/getStudents"))
        self.assertEqual(
            ctx.exception.message,
            "Missing or invalid field 'status' in response from call to "
            "https://example.test/Api/v2/getStudents."
        )

    @patch(REQUEST)
    def test_unrecognized_status(self, mock_request):
        mock_request.return_value = _response(payload={"status": "Maybe"})
        with self.assertRaises(ApiError) as ctx:
            self.client.call(self.session, ApiRequest("/getStudents"))
        self.assertIn("'Maybe'", ctx.exception.message)

    @patch(REQUEST)
    def test_failed_envelope_is_permanent(self, mock_request):
        mock_request.return_value = _response(payload={"status": "Failed", "msg": "No such class"})
        with self.assertRaises(ApiError) as ctx:
            self.client.call(self.session, ApiRequest("/getClass"))
        self.assertFalse(ctx.exception.transient)
        self.assertIn("No such class", ctx.exception.message)

    @patch(REQUEST)
    def test_invalid_json(self, mock_request):
        mock_request.return_value = _response(payload=ValueError("not json"))
        with self.assertRaises(ApiError) as ctx:
            self.client.call(self.session, ApiRequest("/getStudents"))
        self.assertEqual(ctx.exception.status_code, 200)

    def test_close_and_repr(self):
        with patch.object(self.client.session, "close") as mock_close:
            with self.client:
                pass
        mock_close.assert_called_once()
        self.assertIn("example.test", repr(self.client))


if __name__ == '__main__':
    unittest.main()
