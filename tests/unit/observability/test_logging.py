"""Unit tests for structlog configuration, processors and correlation context."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Iterator

import pytest
import structlog
from structlog.testing import capture_logs

from evstore.observability import (
    CorrelationContext,
    CorrelationProcessor,
    JsonLoggerFactory,
    RequestContext,
    get_logger,
)


@pytest.fixture
def restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def clear_context() -> Iterator[None]:
    CorrelationContext.clear()
    yield
    CorrelationContext.clear()


class TestRequestContext:
    def test_new_generates_correlation_id(self) -> None:
        a, b = RequestContext.new(), RequestContext.new()
        assert a.correlation_id and a.correlation_id != b.correlation_id

    def test_set_get_clear(self) -> None:
        ctx = RequestContext.new(tenant_id="t-1")
        CorrelationContext.set(ctx)
        assert CorrelationContext.get() is ctx
        CorrelationContext.clear()
        assert CorrelationContext.get() is None

    def test_get_or_new_stores_context(self) -> None:
        ctx = CorrelationContext.get_or_new()
        assert CorrelationContext.get() is ctx

    def test_context_is_task_local(self) -> None:
        async def worker(tenant: str) -> str | None:
            CorrelationContext.set(RequestContext.new(tenant_id=tenant))
            await asyncio.sleep(0)
            ctx = CorrelationContext.get()
            return ctx.tenant_id if ctx else None

        async def run() -> list[str | None]:
            return list(await asyncio.gather(worker("a"), worker("b")))

        assert asyncio.run(run()) == ["a", "b"]


class TestCorrelationProcessor:
    def _process(self, event_dict: dict[str, Any]) -> dict[str, Any]:
        return CorrelationProcessor()(None, "info", event_dict)

    def test_no_context_leaves_event_untouched(self) -> None:
        assert self._process({"event": "x"}) == {"event": "x"}

    def test_injects_context_fields(self) -> None:
        CorrelationContext.set(
            RequestContext(correlation_id="c-1", tenant_id="t-1", causation_id="cause-1")
        )
        out = self._process({"event": "x"})
        assert out["correlation_id"] == "c-1"
        assert out["tenant_id"] == "t-1"
        assert out["causation_id"] == "cause-1"

    def test_bound_values_win(self) -> None:
        CorrelationContext.set(RequestContext(correlation_id="c-1", tenant_id="t-1"))
        out = self._process({"event": "x", "tenant_id": "explicit"})
        assert out["tenant_id"] == "explicit"


class TestGetLogger:
    def test_binds_initial_values(self) -> None:
        with capture_logs() as logs:
            get_logger("evstore.test", component="store").info("hello", n=1)
        assert logs == [{"component": "store", "n": 1, "event": "hello", "log_level": "info"}]


class TestJsonLoggerFactory:
    def test_emits_json_with_correlation(
        self, restore_logging: None, capsys: pytest.CaptureFixture[str]
    ) -> None:
        JsonLoggerFactory.configure(level="DEBUG", json_output=True)
        CorrelationContext.set(RequestContext(correlation_id="c-42", tenant_id="t-9"))
        structlog.get_logger("evstore.factory_test").info("event_store.ready", answer=42)

        line = capsys.readouterr().err.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["event"] == "event_store.ready"
        assert payload["answer"] == 42
        assert payload["correlation_id"] == "c-42"
        assert payload["tenant_id"] == "t-9"
        assert payload["level"] == "info"
        assert "timestamp" in payload

    def test_level_name_sets_root_level(self, restore_logging: None) -> None:
        JsonLoggerFactory.configure(level="warning", json_output=False)
        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_name_falls_back_to_info(self, restore_logging: None) -> None:
        JsonLoggerFactory.configure(level="chatty")
        assert logging.getLogger().level == logging.INFO
