"""Step definitions for feed BDD scenarios."""

import pytest
from pytest_bdd import given, parsers, then, when

from dashfeed.client import FeedClient
from dashfeed.config import FeedConfig
from dashfeed.core.models import PLACEHOLDER, FilterCriteria
from tests.helpers import FakeSessionFactory, log_frame, metrics_frame


@pytest.fixture
def errors() -> list[str]:
    return []


# === Background Steps ===
@given("a feed client", target_fixture="client")
def step_feed_client(errors: list[str]) -> FeedClient:
    client = FeedClient(session_factory=FakeSessionFactory())
    client.subscribe("feed_error", errors.append)
    return client


@given(parsers.parse("a feed client keeping {capacity:d} log lines"), target_fixture="client")
def step_feed_client_with_capacity(capacity: int) -> FeedClient:
    return FeedClient(FeedConfig(log_capacity=capacity), session_factory=FakeSessionFactory())


# === Frame Steps ===
@when(parsers.parse("the feed sends a metrics frame with cpu usage {cpu:d}"))
def step_metrics_frame(client: FeedClient, cpu: int) -> None:
    client.dispatch_frame(metrics_frame(cpu))


@when("the feed sends a malformed frame")
def step_malformed_frame(client: FeedClient) -> None:
    client.dispatch_frame('{"type": "metrics", "data": {"system": ')


@when(parsers.parse('the feed sends an error frame "{message}"'))
def step_error_frame(client: FeedClient, message: str) -> None:
    client.dispatch_frame({"type": "error", "message": message})


@when(parsers.parse('the feed sends a frame of type "{kind}"'))
def step_unknown_frame(client: FeedClient, kind: str) -> None:
    client.dispatch_frame({"type": kind})


@when(parsers.parse('the feed sends the log line "{message}" from "{service}"'))
def step_log_line(client: FeedClient, message: str, service: str) -> None:
    client.dispatch_frame(log_frame(message, service=service))


@when(parsers.parse('the feed sends {count:d} log lines from "{service}"'))
def step_log_lines(client: FeedClient, count: int, service: str) -> None:
    for i in range(1, count + 1):
        client.dispatch_frame(log_frame(f"line {i}", service=service))


@when("the logs are cleared")
def step_clear_logs(client: FeedClient) -> None:
    client.clear_logs()


# === Snapshot Assertions ===
@then(parsers.parse("the current snapshot has cpu usage {cpu:d}"))
def step_snapshot_cpu(client: FeedClient, cpu: int) -> None:
    assert client.current_snapshot()["system"]["cpu"]["usage"] == cpu


@then("the disk total shows the placeholder")
def step_disk_placeholder(client: FeedClient) -> None:
    assert client.current_snapshot()["system"]["disk"]["total"] == PLACEHOLDER


@then("no feed error is shown")
def step_no_error(client: FeedClient, errors: list[str]) -> None:
    assert client.connection_status().error is None
    assert errors == []


@then(parsers.parse('the feed error is "{message}"'))
def step_feed_error(client: FeedClient, errors: list[str], message: str) -> None:
    assert client.connection_status().error == message
    assert errors == [message]


# === Log Assertions ===
@then(parsers.parse('the newest log line has severity "{severity}"'))
def step_newest_severity(client: FeedClient, severity: str) -> None:
    *_, newest = client.current_logs()
    assert newest.severity.value == severity


@then(parsers.parse("the buffer holds lines {first:d} to {last:d} in arrival order"))
def step_buffer_window(client: FeedClient, first: int, last: int) -> None:
    messages = [record.message for record in client.current_logs()]
    assert messages == [f"line {i}" for i in range(first, last + 1)]


@then(parsers.parse('filtering by "{value}" shows {count:d} line from "{source}"'))
def step_filter_one_source(client: FeedClient, value: str, count: int, source: str) -> None:
    records = list(client.current_logs(FilterCriteria(source_or_level=value)))
    assert [r.source for r in records] == [source] * count


@then(parsers.parse('filtering by "{value}" shows {count:d} lines'))
def step_filter_count(client: FeedClient, value: str, count: int) -> None:
    assert len(list(client.current_logs(FilterCriteria(source_or_level=value)))) == count
