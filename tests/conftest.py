"""Shared fixtures: a scripted stand-in for the model gateway."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Type

import pytest

from quickscore.services.gateway import GatewayError


@dataclass
class GatewayCall:
    prompt: str
    output_schema: Type
    media: List[str]
    temperature: float


@dataclass
class FakeGateway:
    """
    Replays canned records per output schema, in order.

    The last queued item for a schema is reused once the queue runs dry.
    Exceptions in the queue are raised instead of returned.
    """
    responses: Dict[Type, List[Any]] = field(default_factory=dict)
    calls: List[GatewayCall] = field(default_factory=list)
    healthy: bool = True

    def queue(self, schema: Type, *items):
        self.responses.setdefault(schema, []).extend(items)
        return self

    async def generate(self, prompt, *, output_schema, media=(), temperature=0.2):
        self.calls.append(GatewayCall(prompt, output_schema, list(media), temperature))
        queued = self.responses.get(output_schema)
        if not queued:
            raise GatewayError(f"No canned response for {output_schema.__name__}")
        item = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def health_check(self) -> dict:
        if self.healthy:
            return {"status": "healthy", "model": "fake-model"}
        return {"status": "unhealthy", "model": "fake-model", "error": "offline"}

    def schemas_called(self) -> List[str]:
        return [call.output_schema.__name__ for call in self.calls]


@pytest.fixture
def gateway():
    return FakeGateway()
