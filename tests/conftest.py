"""Shared fixtures: an in-memory backend behind httpx.MockTransport.

The fake backend is the source of truth for plan activation, like the real
one: creating a plan deactivates every other plan.
"""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from bibleapp.api.client import ApiClient

BASE_URL = "http://testserver"
TOKEN = "test-token"


@dataclass
class Hold:
    """Keeps one matching request open until released."""

    method: str
    path: str
    arrived: asyncio.Event = field(default_factory=asyncio.Event)
    release: asyncio.Event = field(default_factory=asyncio.Event)


class FakeBackend:
    def __init__(self) -> None:
        self.identity: dict | None = {"id": "u1", "email": "reader@example.com", "name": "Reader", "picture": ""}
        self.plans: list[dict] = []
        self.plan_finished = False
        self.verse = {
            "day": 1,
            "reference": "John 3:16-18",
            "title": "God's Love",
            "text": "For God so loved the world. He gave his only Son. Whoever believes will live.",
        }
        self.calls: list[tuple[str, str]] = []
        self.chat_requests: list[dict] = []
        self.usage: tuple[int, int] | None = None
        self._failures: dict[tuple[str, str], tuple[int, dict | None]] = {}
        self._failures_after_apply: dict[tuple[str, str], tuple[int, dict | None]] = {}
        self._network_errors: set[tuple[str, str]] = set()
        self._holds: list[Hold] = []
        self._next_id = 1
        self._clock = datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)

    # --- test controls ---

    def fail(self, method: str, path: str, status: int, body: dict | None = None) -> None:
        self._failures[(method, path)] = (status, body)

    def fail_after_applying(self, method: str, path: str, status: int, body: dict | None = None) -> None:
        """Apply the request, then answer with an error status anyway."""
        self._failures_after_apply[(method, path)] = (status, body)

    def clear_failure(self, method: str, path: str) -> None:
        self._failures.pop((method, path), None)
        self._failures_after_apply.pop((method, path), None)

    def network_error(self, method: str, path: str) -> None:
        self._network_errors.add((method, path))

    def hold(self, method: str, path: str) -> Hold:
        hold = Hold(method, path)
        self._holds.append(hold)
        return hold

    def add_plan(self, topic: str, duration_days: int = 7, is_active: bool = False) -> dict:
        if is_active:
            for plan in self.plans:
                plan["is_active"] = False
        self._clock += timedelta(minutes=1)
        plan = {
            "id": f"p{self._next_id}",
            "topic": topic,
            "duration_days": duration_days,
            "created_at": self._clock.isoformat(),
            "is_active": is_active,
        }
        self._next_id += 1
        self.plans.append(plan)
        return plan

    def calls_to(self, method: str, path: str) -> int:
        return sum(1 for call in self.calls if call == (method, path))

    # --- transport ---

    async def handler(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        self.calls.append((method, path))

        for hold in self._holds:
            if (hold.method, hold.path) == (method, path):
                self._holds.remove(hold)
                hold.arrived.set()
                await hold.release.wait()
                break

        if (method, path) in self._network_errors:
            raise httpx.ConnectError("connection refused", request=request)
        if (method, path) in self._failures:
            status, body = self._failures[(method, path)]
            return httpx.Response(status, json=body if body is not None else {"error": "Internal server error"})

        response = self._route(request, method, path)
        if (method, path) in self._failures_after_apply:
            status, body = self._failures_after_apply[(method, path)]
            return httpx.Response(status, json=body if body is not None else {"error": "Internal server error"})
        return response

    def _route(self, request: httpx.Request, method: str, path: str) -> httpx.Response:
        if (method, path) == ("GET", "/identity"):
            if self.identity is None:
                return httpx.Response(401, json={"error": "Authorization token required", "code": "not_authenticated"})
            return httpx.Response(200, json=self.identity)

        if (method, path) == ("POST", "/session/end"):
            self.identity = None
            return httpx.Response(200, json={"message": "Logged out successfully"})

        if (method, path) == ("GET", "/plans"):
            return httpx.Response(200, json=[dict(plan) for plan in self.plans])

        if (method, path) == ("POST", "/plans"):
            body = json.loads(request.content)
            plan = self.add_plan(body["topic"], body["duration_days"], is_active=True)
            return httpx.Response(201, json=dict(plan))

        if (method, path) == ("GET", "/plans/today"):
            active = next((plan for plan in self.plans if plan["is_active"]), None)
            if active is None:
                return httpx.Response(404, json={"error": "No active reading plan found for today.", "code": "no_active_plan"})
            if self.plan_finished:
                return httpx.Response(200, json={"error": "Your reading plan is finished!", "code": "plan_finished"})
            verse = dict(self.verse)
            if request.url.params.get("content") == "false":
                verse.pop("text", None)
            return httpx.Response(200, json=verse)

        if (method, path) == ("POST", "/chat"):
            body = json.loads(request.content)
            self.chat_requests.append(body)
            answer = {"answer": f"About {body['verse']['reference']}: {body['question']}"}
            if self.usage is not None:
                answer["usage_today"], answer["daily_limit"] = self.usage
            return httpx.Response(200, json=answer)

        if (method, path) == ("POST", "/chat/reset"):
            return httpx.Response(200, json={"message": "Chat history has been reset."})

        if path.startswith("/plans/"):
            parts = path.strip("/").split("/")
            plan = next((plan for plan in self.plans if plan["id"] == parts[1]), None)
            if plan is None:
                return httpx.Response(404, json={"error": "Plan not found"})
            if method == "POST" and len(parts) == 3 and parts[2] == "activate":
                for other in self.plans:
                    other["is_active"] = other["id"] == plan["id"]
                return httpx.Response(200, json=dict(plan))
            if method == "DELETE" and len(parts) == 2:
                self.plans.remove(plan)
                return httpx.Response(204)

        return httpx.Response(404, json={"error": f"No route for {method} {path}"})


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def client(backend):
    return ApiClient(base_url=BASE_URL, token=TOKEN, transport=httpx.MockTransport(backend.handler))
