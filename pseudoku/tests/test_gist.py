#!/usr/bin/env python3
"""
GIST PUBLISHING TESTS
=====================
Payload layout, GitHub error relaying and gist URL validation.
"""

import json
import unittest
from unittest import mock

import requests

from pseudoku.auth.gist import (
    GIST_FILENAME,
    GistClient,
    GistReference,
    build_gist_payload,
    parse_gist_url,
)
from pseudoku.core.codec import decode_export
from pseudoku.core.errors import FormatError, PublishError

EXPORT = decode_export({
    "challengeId": "42",
    "proof": "deadbeef",
    "publicInputs": ["42"],
    "timeInMs": 83_456,
    "timestamp": "2025-01-01T12:00:00.000Z",
})


def response(status, body):
    resp = mock.Mock(ok=200 <= status < 300, status_code=status, reason="Unauthorized")
    resp.json.return_value = body
    return resp


class TestGistPayload(unittest.TestCase):

    def test_single_proof_file(self):
        payload = build_gist_payload(EXPORT)
        self.assertEqual(payload["description"], "Pseudoku Zero-Knowledge Proof - Solved in 83s")
        self.assertTrue(payload["public"])
        self.assertEqual(list(payload["files"]), [GIST_FILENAME])
        content = payload["files"][GIST_FILENAME]["content"]
        self.assertEqual(json.loads(content)["challengeId"], "42")

    def test_custom_description_and_visibility(self):
        payload = build_gist_payload(EXPORT, "my proof", public=False)
        self.assertEqual(payload["description"], "my proof")
        self.assertFalse(payload["public"])


class TestGistClient(unittest.TestCase):
    """Test create_gist / fetch_export against a mocked requests session"""

    def setUp(self):
        self.session = mock.Mock(spec=requests.Session)
        self.client = GistClient(token="ghp_token", api_url="https://api.github.test/",
                                 session=self.session)

    def test_create_gist(self):
        self.session.post.return_value = response(201, {
            "id": "abc123", "html_url": "https://gist.github.com/alice/abc123"})
        reference = self.client.create_gist(EXPORT)
        self.assertEqual(reference, GistReference("https://gist.github.com/alice/abc123", "abc123"))
        args, kwargs = self.session.post.call_args
        self.assertEqual(args[0], "https://api.github.test/gists")
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer ghp_token")
        self.assertIn(GIST_FILENAME, kwargs["json"]["files"])

    def test_github_error_message_relayed(self):
        self.session.post.return_value = response(401, {"message": "Bad credentials"})
        with self.assertRaises(PublishError) as ctx:
            self.client.create_gist(EXPORT)
        self.assertEqual(str(ctx.exception), "Failed to create gist: Bad credentials")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_network_error(self):
        self.session.post.side_effect = requests.ConnectionError("offline")
        with self.assertRaises(PublishError):
            self.client.create_gist(EXPORT)

    def test_malformed_success_body(self):
        not_json = response(201, None)
        not_json.json.side_effect = ValueError("no json")
        bodies = {
            "not json": not_json,
            "missing html_url": response(201, {"id": "abc123"}),
            "missing id": response(201, {"html_url": "https://gist.github.com/alice/abc123"}),
            "array": response(201, ["abc123"]),
        }
        for name, reply in bodies.items():
            with self.subTest(body=name):
                self.session.post.return_value = reply
                with self.assertRaises(PublishError) as ctx:
                    self.client.create_gist(EXPORT)
                self.assertEqual(ctx.exception.status_code, 201)

    def test_token_required(self):
        client = GistClient(session=self.session)
        with self.assertRaises(PublishError) as ctx:
            client.create_gist(EXPORT)
        self.assertEqual(str(ctx.exception), "Please enter a GitHub Personal Access Token")
        self.session.post.assert_not_called()

    def test_fetch_export(self):
        self.session.get.return_value = response(200, {
            "files": {GIST_FILENAME: {"content": EXPORT.to_json()}}})
        self.assertEqual(self.client.fetch_export("abc123"), EXPORT)
        self.assertEqual(self.session.get.call_args[0][0], "https://api.github.test/gists/abc123")

    def test_fetch_export_without_proof_file(self):
        self.session.get.return_value = response(200, {"files": {"notes.md": {"content": "hi"}}})
        with self.assertRaises(FormatError):
            self.client.fetch_export("abc123")

    def test_fetch_malformed_body(self):
        not_json = response(200, None)
        not_json.json.side_effect = ValueError("no json")
        self.session.get.return_value = not_json
        with self.assertRaises(PublishError):
            self.client.fetch_export("abc123")

        for body in ({"files": ["pseudoku_proof.json"]}, {"files": {GIST_FILENAME: "text"}},
                     {"files": {GIST_FILENAME: {"content": 5}}}, ["files"]):
            with self.subTest(body=body):
                self.session.get.return_value = response(200, body)
                with self.assertRaises(FormatError):
                    self.client.fetch_export("abc123")

    def test_fetch_missing_gist(self):
        self.session.get.return_value = response(404, {"message": "Not Found"})
        with self.assertRaises(PublishError) as ctx:
            self.client.fetch_export("abc123")
        self.assertEqual(ctx.exception.status_code, 404)


class TestGistUrl(unittest.TestCase):

    def test_valid(self):
        reference = parse_gist_url(" https://gist.github.com/alice/0a1b2c3d ")
        self.assertEqual(reference.id, "0a1b2c3d")
        self.assertEqual(reference.url, "https://gist.github.com/alice/0a1b2c3d")

    def test_invalid(self):
        for url in ("", "https://github.com/alice/0a1b", "http://gist.github.com/alice/0a1b",
                    "https://gist.github.com/0a1b", "https://gist.github.com/alice/xyz"):
            with self.subTest(url=url):
                with self.assertRaises(FormatError):
                    parse_gist_url(url)


if __name__ == '__main__':
    unittest.main(verbosity=2)
