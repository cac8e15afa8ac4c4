import json
import unittest

import requests

from fridgevision_backend.services.errors import ApiError, ConfigError, ParseError
from fridgevision_backend.services.llm import (
    TRUNCATION_SUFFIX,
    GeminiClient,
    GeminiSettings,
    text_part,
    truncate_raw_llm_output,
)


def _response(status: int, payload) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.encoding = "utf-8"
    response._content = json.dumps(payload).encode("utf-8")
    return response


def _gemini_text(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class _StubSession:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, dict]] = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class _UnreachableSession:
    """Fails like urllib3 does, quoting the full request URL."""

    def post(self, url, **kwargs):
        prepared = requests.Request("POST", url, params=kwargs.get("params")).prepare()
        raise requests.ConnectionError(
            f"Max retries exceeded with url: {prepared.url} (connection refused)"
        )


class GeminiClientTests(unittest.TestCase):
    def _client(self, session, **settings):
        return GeminiClient(
            GeminiSettings(base_url="https://gemini.test/v1beta", **settings),
            session=session,  # type: ignore[arg-type]
        )

    def test_posts_single_turn_request(self):
        session = _StubSession(_response(200, _gemini_text("hello")))
        client = self._client(session, timeout=12)

        result = client.generate_content(
            api_key="key-123",
            model="gemini-2.5-flash",
            parts=[text_part("hi")],
            generation_config={"temperature": 0.4, "maxOutputTokens": 1024},
        )

        self.assertEqual(result.raw_text, "hello")
        self.assertEqual(len(session.calls), 1)
        url, kwargs = session.calls[0]
        self.assertEqual(
            url, "https://gemini.test/v1beta/models/gemini-2.5-flash:generateContent"
        )
        self.assertEqual(kwargs["headers"], {"x-goog-api-key": "key-123"})
        self.assertEqual(kwargs["timeout"], 12)
        self.assertEqual(
            kwargs["json"],
            {
                "contents": [{"parts": [{"text": "hi"}]}],
                "generationConfig": {"temperature": 0.4, "maxOutputTokens": 1024},
            },
        )

    def test_concatenates_text_parts(self):
        payload = {
            "candidates": [
                {"content": {"parts": [{"text": "[1, "}, {"text": "2]"}]}}
            ]
        }
        client = self._client(_StubSession(_response(200, payload)))

        result = client.generate_content(api_key="k", model="m", parts=[])

        self.assertEqual(result.raw_text, "[1, 2]")
        self.assertEqual(result.extract_json("[", what="model"), [1, 2])

    def test_non_success_status_raises_api_error_with_upstream_message(self):
        session = _StubSession(
            _response(
                403,
                {
                    "error": {
                        "code": 403,
                        "message": "API key not valid",
                        "status": "PERMISSION_DENIED",
                    }
                },
            )
        )
        client = self._client(session)

        with self.assertRaises(ApiError) as ctx:
            client.generate_content(api_key="bad", model="m", parts=[])

        self.assertIn("API key not valid", str(ctx.exception))
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.code, "PERMISSION_DENIED")

    def test_non_success_status_without_json_body(self):
        response = requests.Response()
        response.status_code = 500
        response.encoding = "utf-8"
        response._content = b"<html>oops</html>"
        client = self._client(_StubSession(response))

        with self.assertRaises(ApiError) as ctx:
            client.generate_content(api_key="k", model="m", parts=[])

        self.assertEqual(str(ctx.exception), "API request failed: 500")

    def test_network_failure_raises_api_error(self):
        client = self._client(
            _StubSession(requests.ConnectionError("connection refused"))
        )

        with self.assertRaises(ApiError) as ctx:
            client.generate_content(api_key="k", model="m", parts=[], what="vision model")

        self.assertIsNone(ctx.exception.status_code)
        self.assertIn("vision model", str(ctx.exception))

    def test_network_failure_log_does_not_leak_api_key(self):
        client = self._client(_UnreachableSession())

        with self.assertLogs("fridgevision_backend.services.llm", level="ERROR") as logs:
            with self.assertRaises(ApiError) as ctx:
                client.generate_content(api_key="AIzaSECRET123", model="m", parts=[])

        self.assertNotIn("AIzaSECRET123", "\n".join(logs.output))
        self.assertNotIn("AIzaSECRET123", str(ctx.exception))

    def test_parts_that_are_not_a_list_raise_parse_error(self):
        payload = {"candidates": [{"content": {"parts": 5}}]}
        client = self._client(_StubSession(_response(200, payload)))

        with self.assertRaises(ParseError):
            client.generate_content(api_key="k", model="m", parts=[])

    def test_missing_text_raises_parse_error(self):
        client = self._client(_StubSession(_response(200, {"candidates": []})))

        with self.assertRaises(ParseError):
            client.generate_content(api_key="k", model="m", parts=[])

    def test_missing_key_raises_config_error_without_request(self):
        session = _StubSession()
        client = self._client(session)

        with self.assertRaises(ConfigError):
            client.generate_content(api_key="  ", model="m", parts=[])
        self.assertEqual(session.calls, [])

    def test_fallback_key_is_used_when_caller_has_none(self):
        session = _StubSession(_response(200, _gemini_text("ok")))
        client = self._client(session, fallback_api_key="env-key")

        client.generate_content(api_key=None, model="m", parts=[])

        self.assertEqual(session.calls[0][1]["headers"], {"x-goog-api-key": "env-key"})


class TruncateRawLLMOutputTests(unittest.TestCase):
    def test_returns_none_for_absent_text(self):
        self.assertIsNone(truncate_raw_llm_output(None))
        self.assertIsNone(truncate_raw_llm_output(""))

    def test_does_not_truncate_when_under_limit(self):
        text = "short text"
        self.assertEqual(truncate_raw_llm_output(text, limit_bytes=100), text)

    def test_truncates_when_over_limit(self):
        result = truncate_raw_llm_output("a" * 50, limit_bytes=20)
        self.assertTrue(result.endswith(TRUNCATION_SUFFIX))
        self.assertLessEqual(len(result.encode("utf-8")), 20)


if __name__ == "__main__":
    unittest.main()
