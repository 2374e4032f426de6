"""Shared test fixtures."""

import json

import httpx
import pytest

from cardmaker.services import card_generator
from cardmaker.services.anki_connect import AnkiConnect


class FakeModel:
    """Stands in for the language model: returns queued replies and records prompts."""

    def __init__(self):
        self.replies = []
        self.prompts = []

    async def complete(self, prompt):
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeAnkiConnect:
    """An AnkiConnect endpoint behind httpx.MockTransport.

    ``add_failures`` maps the 1-based index of an addNote call to the response
    it should get, as (status_code, body).
    """

    def __init__(self):
        self.requests = []
        self.add_failures = {}
        self.sync_response = (200, {"result": None, "error": None})
        self.adds = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append(payload)
        action = payload["action"]

        if action == "addNote":
            self.adds += 1
            if self.adds in self.add_failures:
                status, body = self.add_failures[self.adds]
                return httpx.Response(status, json=body)
            return httpx.Response(200, json={"result": 1000 + self.adds, "error": None})
        if action == "sync":
            status, body = self.sync_response
            return httpx.Response(status, json=body)
        if action == "version":
            return httpx.Response(200, json={"result": 6, "error": None})
        return httpx.Response(200, json={"result": None, "error": f"unsupported action {action}"})

    def actions(self):
        return [r["action"] for r in self.requests]

    def notes(self):
        return [r["params"]["note"] for r in self.requests if r["action"] == "addNote"]

    def client(self) -> AnkiConnect:
        return AnkiConnect(url="http://anki.test", transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_model(monkeypatch):
    model = FakeModel()
    monkeypatch.setattr(card_generator, "_complete", model.complete)
    return model


@pytest.fixture
def fake_anki():
    return FakeAnkiConnect()
