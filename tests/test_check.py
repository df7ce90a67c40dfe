"""Tests for HealthCheck — construction, timestamps, evaluation."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone

import pytest

from healthpoint.health.check import CheckResult, HealthCheck, ProbeResult, parse_probe_result
from healthpoint.health.enums import STATUS_CODES, Status, TimeFormat
from healthpoint.health.errors import ConfigurationError, ValidationError

INSTANT = datetime(2023, 10, 15, 13, 14, 15, tzinfo=timezone.utc)

RESULT_KEYS = {"status", "statusCode", "timestamp", "processTime", "uptime"}


# ── Status table ─────────────────────────────────────────────────────────────


class TestStatusCodes:
    def test_table(self) -> None:
        assert STATUS_CODES[Status.HEALTHY] == 200
        assert STATUS_CODES[Status.UNHEALTHY] == 503
        assert STATUS_CODES[Status.UNKNOWN] == 500
        assert Status.UNHEALTHY.code == 503

    def test_table_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            STATUS_CODES[Status.HEALTHY] = 204  # type: ignore[index]


# ── Construction ─────────────────────────────────────────────────────────────


class TestConstruction:
    def test_defaults(self) -> None:
        check = HealthCheck()
        assert check.description is None
        assert check.time_format is TimeFormat.ISO
        assert callable(check.probe)
        assert check.probe().status == Status.HEALTHY

    def test_initial_state_is_unevaluated(self) -> None:
        check = HealthCheck()
        assert check.last_status is None
        assert check.last_status_code is None
        assert not check.is_healthy()
        assert not check.is_unhealthy()
        assert not check.is_unknown()

    def test_description(self) -> None:
        check = HealthCheck(description="Test Health Check")
        assert check.description == "Test Health Check"

    def test_rejects_non_string_description(self) -> None:
        with pytest.raises(ConfigurationError):
            HealthCheck(description=123)  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", ["calendar", TimeFormat.CALENDAR])
    def test_time_format(self, value) -> None:
        assert HealthCheck(time_format=value).time_format is TimeFormat.CALENDAR

    def test_rejects_unknown_time_format(self) -> None:
        with pytest.raises(ConfigurationError, match="iso, utc, unix, calendar"):
            HealthCheck(time_format="invalid_format")

    def test_rejects_non_callable_probe(self) -> None:
        with pytest.raises(ConfigurationError):
            HealthCheck(probe="non_function")  # type: ignore[arg-type]

    def test_rejects_probe_requiring_arguments(self) -> None:
        def needs_arg(x):
            return None

        with pytest.raises(ConfigurationError, match="no arguments"):
            HealthCheck(probe=needs_arg)

    def test_probe_with_defaults_is_accepted(self) -> None:
        def probe(status="unknown"):
            return {"status": status}

        assert HealthCheck(probe=probe).probe() == {"status": "unknown"}


# ── Timestamps ───────────────────────────────────────────────────────────────


class TestRenderTimestamp:
    def test_iso_default(self) -> None:
        assert HealthCheck().render_timestamp(INSTANT) == "2023-10-15T13:14:15.000Z"

    def test_iso_milliseconds(self) -> None:
        instant = INSTANT.replace(microsecond=123_999)
        assert HealthCheck().render_timestamp(instant) == "2023-10-15T13:14:15.123Z"

    def test_utc(self) -> None:
        check = HealthCheck(time_format=TimeFormat.UTC)
        assert check.render_timestamp(INSTANT) == "Sun, 15 Oct 2023 13:14:15 GMT"

    def test_unix(self) -> None:
        check = HealthCheck(time_format=TimeFormat.UNIX)
        assert check.render_timestamp(INSTANT) == 1697375655

    def test_calendar_is_string(self) -> None:
        check = HealthCheck(time_format=TimeFormat.CALENDAR)
        rendered = check.render_timestamp(INSTANT)
        assert isinstance(rendered, str)
        assert rendered

    def test_naive_instant_is_utc(self) -> None:
        naive = INSTANT.replace(tzinfo=None)
        assert HealthCheck().render_timestamp(naive) == "2023-10-15T13:14:15.000Z"

    def test_defaults_to_now(self) -> None:
        check = HealthCheck(time_format=TimeFormat.UNIX)
        before = int(time.time())
        rendered = check.render_timestamp()
        assert before <= rendered <= int(time.time())


# ── Probe result parsing ─────────────────────────────────────────────────────


class TestParseProbeResult:
    def test_none_is_healthy(self) -> None:
        assert parse_probe_result(None) == (Status.HEALTHY, None)

    def test_mapping_keys(self) -> None:
        assert parse_probe_result({"status": "Unknown", "statusCode": 500}) == (Status.UNKNOWN, 500)
        assert parse_probe_result({"status_code": 503}) == (Status.HEALTHY, 503)

    def test_rejects_unsupported_type(self) -> None:
        with pytest.raises(ValidationError, match="unsupported"):
            parse_probe_result(42)

    @pytest.mark.parametrize("code", ["503", 503.0, True, 42, 600])
    def test_rejects_bad_codes(self, code) -> None:
        with pytest.raises(ValidationError):
            parse_probe_result(ProbeResult(status=Status.HEALTHY, status_code=code))


# ── Evaluation ───────────────────────────────────────────────────────────────


class TestEvaluate:
    @pytest.mark.asyncio
    async def test_default_probe_is_healthy(self, make_check) -> None:
        check = make_check()
        result = await check.evaluate()

        assert check.is_healthy()
        assert check.last_status is Status.HEALTHY
        assert check.last_status_code == 200
        assert result.status is Status.HEALTHY
        assert result.status_code == 200

    @pytest.mark.asyncio
    async def test_unhealthy(self, make_check) -> None:
        check = make_check(status="unhealthy")
        result = await check.evaluate()

        assert check.is_unhealthy()
        assert not check.is_healthy()
        assert not check.is_unknown()
        assert result.status_code == 503

    @pytest.mark.asyncio
    async def test_unknown(self, make_check) -> None:
        check = make_check(status=Status.UNKNOWN)
        await check.evaluate()
        assert check.is_unknown()
        assert check.last_status_code == 500

    @pytest.mark.asyncio
    async def test_status_is_case_insensitive(self, make_check) -> None:
        check = make_check(status="UNHEALTHY")
        await check.evaluate()
        assert check.last_status is Status.UNHEALTHY

    @pytest.mark.asyncio
    async def test_empty_status_defaults_to_healthy(self, make_check) -> None:
        check = make_check(probe=lambda: {"statusCode": None})
        await check.evaluate()
        assert check.is_healthy()
        assert check.last_status_code == 200

    @pytest.mark.asyncio
    async def test_async_probe(self, make_check) -> None:
        async def probe() -> ProbeResult:
            await asyncio.sleep(0.01)
            return ProbeResult(status=Status.UNKNOWN)

        check = make_check(probe=probe)
        await check.evaluate()
        assert check.is_unknown()

    @pytest.mark.asyncio
    async def test_explicit_code_overrides_table(self, make_check) -> None:
        check = make_check(status=Status.HEALTHY, status_code=503)
        result = await check.evaluate()

        assert check.is_healthy()
        assert check.last_status_code == 503
        assert result.status_code == 503
        assert result.code_overridden is True

    @pytest.mark.asyncio
    async def test_explicit_code_matching_table(self, make_check) -> None:
        result = await make_check(status=Status.UNHEALTHY, status_code=503).evaluate()
        assert result.status_code == 503
        assert result.code_overridden is False

    @pytest.mark.asyncio
    async def test_raising_probe_is_unhealthy(self, make_check) -> None:
        def probe():
            raise ConnectionError("database unreachable")

        check = make_check(probe=probe)
        result = await check.evaluate()

        assert check.is_unhealthy()
        assert result.status_code == 503
        assert result.code_overridden is False

    @pytest.mark.asyncio
    async def test_rejecting_async_probe_is_unhealthy(self, make_check) -> None:
        async def probe():
            await asyncio.sleep(0)
            raise TimeoutError("slow upstream")

        check = make_check(probe=probe)
        await check.evaluate()
        assert check.is_unhealthy()
        assert check.last_status_code == 503

    @pytest.mark.asyncio
    async def test_invalid_status_propagates(self, make_check) -> None:
        check = make_check(status="unexpected_status")
        with pytest.raises(ValidationError, match="unexpected_status"):
            await check.evaluate()
        assert check.last_status is None

    @pytest.mark.asyncio
    async def test_invalid_status_keeps_previous_state(self, make_check) -> None:
        outcomes = iter(["unhealthy", "bogus"])
        check = make_check(probe=lambda: {"status": next(outcomes)})

        await check.evaluate()
        with pytest.raises(ValidationError):
            await check.evaluate()
        assert check.is_unhealthy()

    @pytest.mark.asyncio
    async def test_state_overwritten_each_evaluation(self, make_check) -> None:
        outcomes = iter([Status.UNHEALTHY, Status.HEALTHY])
        check = make_check(probe=lambda: ProbeResult(status=next(outcomes)))

        await check.evaluate()
        assert check.is_unhealthy()
        await check.evaluate()
        assert check.is_healthy()
        assert check.last_status_code == 200


# ── Result record ────────────────────────────────────────────────────────────


class TestResultRecord:
    @pytest.mark.asyncio
    async def test_default_record(self, make_check) -> None:
        result = await make_check().evaluate()
        data = result.to_dict()

        assert set(data) == RESULT_KEYS
        assert data["status"] == "healthy"
        assert data["statusCode"] == 200
        assert isinstance(data["timestamp"], str)
        assert data["timestamp"].endswith("Z")
        assert 0 <= data["processTime"] < 1
        assert data["uptime"] == 42.5

    @pytest.mark.asyncio
    async def test_empty_description_omitted(self, make_check) -> None:
        result = await make_check(description="").evaluate()
        assert "description" not in result.to_dict()

    @pytest.mark.asyncio
    async def test_record_with_description(self, make_check) -> None:
        check = make_check(description="Test Unhealthy Check", status="unhealthy")
        data = (await check.evaluate()).to_dict()

        assert set(data) == RESULT_KEYS | {"description"}
        assert data["description"] == "Test Unhealthy Check"
        assert data["status"] == "unhealthy"
        assert data["statusCode"] == 503

    @pytest.mark.asyncio
    async def test_unix_timestamp(self, make_check) -> None:
        result = await make_check(time_format=TimeFormat.UNIX).evaluate()
        assert isinstance(result.timestamp, int)
        assert 0 < result.timestamp <= int(time.time())

    @pytest.mark.asyncio
    async def test_process_time_bounded_by_probe_duration(self, make_check) -> None:
        async def probe() -> None:
            await asyncio.sleep(0.05)

        check = make_check(probe=probe)
        started = time.perf_counter()
        result = await check.evaluate()
        elapsed = time.perf_counter() - started

        assert 0.04 <= result.process_time <= elapsed

    def test_to_dict_omits_missing_description(self) -> None:
        result = CheckResult(
            status=Status.UNKNOWN, status_code=500, timestamp=1697375655,
            process_time=0.0, uptime=1.0,
        )
        assert "description" not in result.to_dict()
