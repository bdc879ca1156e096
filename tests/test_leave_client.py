from __future__ import annotations

import json
import unittest
from datetime import date

import httpx

from productivity.errors import ExternalServiceError
from productivity.services.leave_client import (
    LeaveRecord,
    LeaveResponse,
    LeaveServiceClient,
    parse_leave_payload,
)


class LeaveServiceClientTests(unittest.TestCase):
    def test_posts_multipart_form_and_parses_records(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            request.read()
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "data": [
                        {"email": "ada@example.com", "nad_count": 2, "requests": 1},
                        {"email": "ben@example.com", "nad_count": "1.5"},
                    ],
                    "nad_hour_rate": 7.5,
                },
            )

        client = LeaveServiceClient(
            "https://leave.example.com/api",
            token="secret",
            transport=httpx.MockTransport(handler),
        )
        result = client.get_leave(date(2024, 1, 1), date(2024, 1, 28), ["Ada@Example.com", "ben@example.com"])

        self.assertEqual(len(seen), 1)
        request = seen[0]
        self.assertEqual(request.method, "POST")
        self.assertTrue(request.headers["content-type"].startswith("multipart/form-data"))
        body = request.content.decode()
        self.assertIn('name="action"', body)
        self.assertIn("get_nad_by_date_range", body)
        self.assertIn('name="token"', body)
        self.assertIn('"email_list": ["ada@example.com", "ben@example.com"]', body)
        self.assertIn('"blab_only": 1', body)

        self.assertEqual(result.nad_hour_rate, 7.5)
        self.assertEqual(
            [(item.email, item.nad_count, item.requests) for item in result.nad_data],
            [("ada@example.com", 2.0, 1), ("ben@example.com", 1.5, 0)],
        )

    def test_http_error_becomes_external_service_error(self) -> None:
        client = LeaveServiceClient(
            "https://leave.example.com/api",
            transport=httpx.MockTransport(lambda request: httpx.Response(503, text="down")),
        )

        with self.assertRaises(ExternalServiceError):
            client.get_leave(date(2024, 1, 1), date(2024, 1, 7), ["ada@example.com"])

    def test_timeout_becomes_external_service_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = LeaveServiceClient("https://leave.example.com/api", transport=httpx.MockTransport(handler))

        with self.assertRaises(ExternalServiceError):
            client.get_leave(date(2024, 1, 1), date(2024, 1, 7), ["ada@example.com"])

    def test_invalid_json_becomes_external_service_error(self) -> None:
        client = LeaveServiceClient(
            "https://leave.example.com/api",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>")),
        )

        with self.assertRaises(ExternalServiceError):
            client.get_leave(date(2024, 1, 1), date(2024, 1, 7), ["ada@example.com"])


class LeavePayloadTests(unittest.TestCase):
    def test_nad_data_shape_is_accepted(self) -> None:
        result = parse_leave_payload({"nad_data": [{"email": "a@example.com", "nad_count": 1}]})

        self.assertEqual(result.nad_data, (LeaveRecord("a@example.com", 1.0, 0),))
        self.assertIsNone(result.nad_hour_rate)

    def test_failure_status_and_malformed_records_are_rejected(self) -> None:
        with self.assertRaises(ExternalServiceError):
            parse_leave_payload({"status": False, "message": "no token"})
        with self.assertRaises(ExternalServiceError):
            parse_leave_payload({"data": [{"nad_count": 1}]})
        with self.assertRaises(ExternalServiceError):
            parse_leave_payload({"data": [{"email": "a@example.com", "nad_count": "many"}]})
        with self.assertRaises(ExternalServiceError):
            parse_leave_payload({"data": [{"email": "a@example.com", "nad_count": "nan"}]})
        with self.assertRaises(ExternalServiceError):
            parse_leave_payload({"data": [{"email": "a@example.com", "nad_count": 1}], "nad_hour_rate": "inf"})
        with self.assertRaises(ExternalServiceError):
            parse_leave_payload(["not", "an", "object"])

    def test_totals_are_keyed_by_normalized_email(self) -> None:
        response = LeaveResponse(
            nad_data=(LeaveRecord("Ada@Example.com ", 2.0), LeaveRecord("ada@example.com", 1.0)),
        )

        totals = response.totals_by_email(default_hour_rate=8.0)

        self.assertEqual(list(totals), ["ada@example.com"])
        self.assertEqual(totals["ada@example.com"].nad_count, 3.0)
        self.assertEqual(totals["ada@example.com"].nad_hours, 24.0)

    def test_data_field_is_json_encoded(self) -> None:
        client = LeaveServiceClient("https://leave.example.com/api")

        form = client._form(date(2024, 1, 1), date(2024, 1, 7), ["b@example.com", "a@example.com", ""])

        self.assertEqual(form["action"], "get_nad_by_date_range")
        self.assertNotIn("token", form)
        self.assertEqual(
            json.loads(form["data"]),
            {
                "start_date": "2024-01-01",
                "end_date": "2024-01-07",
                "blab_only": 1,
                "email_list": ["a@example.com", "b@example.com"],
            },
        )


if __name__ == "__main__":
    unittest.main()
