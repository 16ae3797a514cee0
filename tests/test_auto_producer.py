"""Tests for the event-driven batching producer."""

import pytest
from conftest import TOPIC_ARN, FakeSNSClient, wait_until
from pydantic import ValidationError

from autosns.config import AutoProducerOptions
from autosns.events import FLUSH_EVENT, EventEmitter
from autosns.producer import AutoSNSProducer


@pytest.fixture
def emitter():
    return EventEmitter()


def make_producer(client, emitter, **options):
    producer = AutoSNSProducer(client, emitter, {"topic_arn": TOPIC_ARN, "event_name": "MyEvent", **options})
    return producer


def test_service_name():
    assert AutoSNSProducer.service_name("MyEvent") == "AutoSNSProducer:MyEvent"


def test_name_defaults_to_event_name(sns_client, emitter):
    producer = make_producer(sns_client, emitter)

    assert producer.options.name == "MyEvent"
    assert producer.sns_producer.options.name == "MyEvent"


def test_emitted_events_are_published_on_flush(emitter):
    client = FakeSNSClient(response=lambda entries: {"Successful": [], "Failed": []})
    producer = make_producer(client, emitter, batch_size=10)

    emitter.emit("MyEvent", {"foo": "bar"})
    emitter.emit("MyEvent", {"foo": "baz"})
    assert producer.flush() is True

    assert client.entries == [[{"Id": "0", "Message": '{"foo":"bar"}'}, {"Id": "1", "Message": '{"foo":"baz"}'}]]


def test_custom_serializer(sns_client, emitter):
    producer = make_producer(sns_client, emitter, serializer=lambda event: f"Custom: {event['foo']}")

    emitter.emit("MyEvent", {"foo": "bar"})
    producer.flush()

    assert sns_client.entries[0][0]["Message"] == "Custom: bar"


def test_custom_prepare_entry(sns_client, emitter):
    producer = make_producer(sns_client, emitter, prepare_entry=lambda event, index: {"Id": f"custom-{index}", "Message": "x"})

    emitter.emit("MyEvent", {"foo": "bar"})
    producer.flush()

    assert sns_client.entries[0][0]["Id"] == "custom-0"


def test_flush_on_empty_buffer_makes_no_calls(sns_client, emitter):
    producer = make_producer(sns_client, emitter)

    assert producer.flush() is True
    assert sns_client.calls == []


def test_size_trigger_dispatches_without_flush(sns_client, emitter):
    producer = make_producer(sns_client, emitter, batch_size=3)

    for i in range(3):
        producer.add(i)

    assert wait_until(lambda: len(sns_client.calls) == 1)
    producer.flush()
    assert [len(entries) for entries in sns_client.entries] == [3]


def test_timer_publishes_buffer(sns_client, emitter):
    producer = make_producer(sns_client, emitter, max_batch_interval_ms=20)
    producer.on_start()
    try:
        producer.add("tick")
        assert wait_until(lambda: len(sns_client.calls) == 1)
    finally:
        producer.on_stop()
        producer.close()


def test_stop_flushes_remaining_message_before_returning(sns_client, emitter):
    producer = make_producer(sns_client, emitter, max_batch_interval_ms=60000)
    producer.on_start()
    producer.add("last")

    assert producer.on_stop() is True

    assert sns_client.entries == [[{"Id": "0", "Message": '"last"'}]]
    assert producer.in_flight() == 0
    assert not producer.batcher.is_running()


def test_stop_waits_for_slow_publishes(emitter):
    client = FakeSNSClient(delay=0.1)
    producer = make_producer(client, emitter, batch_size=2)
    producer.on_start()
    producer.add(1)
    producer.add(2)
    producer.add(3)

    producer.on_stop()

    assert sorted(len(entries) for entries in client.entries) == [1, 2]
    assert producer.get_stats()["sender"]["total_batches_published"] == 2


def test_automatic_flush_swallows_publish_error(emitter, log_records):
    error = RuntimeError("endpoint down")
    client = FakeSNSClient(error=error)
    producer = make_producer(client, emitter)

    producer.add("a")
    assert producer.flush() is True

    producer.add("b")
    producer.flush()

    assert len(client.calls) == 2
    errors = [record for record in log_records if record["level"].name == "ERROR"]
    assert len(errors) == 2
    assert all(record["exception"].value is error for record in errors)


def test_manual_publish_propagates_error(emitter):
    error = RuntimeError("endpoint down")
    producer = make_producer(FakeSNSClient(error=error), emitter)

    with pytest.raises(RuntimeError) as excinfo:
        producer.publish_batch(["a", "b"])

    assert excinfo.value is error


def test_manual_publish_bypasses_buffer(sns_client, emitter):
    producer = make_producer(sns_client, emitter)
    producer.add("buffered")

    producer.publish_batch([str(i) for i in range(12)])

    assert len(sns_client.calls) == 2
    assert producer.batcher.size() == 1


def test_flush_event_flushes_every_producer(emitter):
    first_client, second_client = FakeSNSClient(), FakeSNSClient()
    first = make_producer(first_client, emitter, event_name="First")
    second = make_producer(second_client, emitter, event_name="Second")

    emitter.emit("First", 1)
    emitter.emit("Second", 2)
    emitter.emit(FLUSH_EVENT)

    assert len(first_client.calls) == 1
    assert len(second_client.calls) == 1
    assert first.in_flight() == 0 and second.in_flight() == 0


def test_close_cancels_subscriptions(sns_client, emitter):
    producer = make_producer(sns_client, emitter)

    producer.close()

    assert emitter.listener_count("MyEvent") == 0
    assert emitter.listener_count(FLUSH_EVENT) == 0


def test_context_manager_runs_lifecycle(sns_client, emitter):
    with make_producer(sns_client, emitter) as producer:
        assert producer.batcher.is_running()
        producer.add("x")

    assert not producer.batcher.is_running()
    assert len(sns_client.calls) == 1
    assert emitter.listener_count("MyEvent") == 0
    assert emitter.listener_count(FLUSH_EVENT) == 0


def test_start_logs_configuration(sns_client, emitter, log_records):
    producer = make_producer(sns_client, emitter, batch_size=5, max_batch_interval_ms=2000)
    producer.on_start()
    producer.on_stop()

    start = next(record for record in log_records if record["message"].startswith("Starting message batcher"))
    assert start["extra"]["batchSize"] == 5
    assert start["extra"]["maxBatchIntervalMs"] == 2000
    assert start["extra"]["context"] == "AutoSNSProducer:MyEvent"


@pytest.mark.parametrize(
    "options",
    [
        {"batch_size": 0},
        {"max_batch_size": 0},
        {"max_batch_interval_ms": 0},
        {"topic_arn": ""},
        {"unknown": True},
    ],
)
def test_invalid_options_fail_at_construction(sns_client, emitter, options):
    with pytest.raises(ValidationError):
        make_producer(sns_client, emitter, **options)


def test_options_from_environment(monkeypatch):
    monkeypatch.setenv("AUTOSNS_TOPIC_ARN", TOPIC_ARN)
    monkeypatch.setenv("AUTOSNS_BATCH_SIZE", "25")
    monkeypatch.setenv("AUTOSNS_MAX_BATCH_INTERVAL_MS", "not-a-number")
    monkeypatch.setenv("AUTOSNS_VERBOSE_BEGINNING", "false")

    options = AutoProducerOptions.from_env(event_name="Orders")

    assert options.topic_arn == TOPIC_ARN
    assert options.batch_size == 25
    assert options.max_batch_interval_ms == 10000
    assert options.verbose_beginning is False
    assert options.name == "Orders"


def test_unserializable_message_on_automatic_flush_is_logged(sns_client, emitter, log_records):
    def serializer(message):
        if message == "bad":
            raise TypeError("cannot encode")
        return message

    producer = make_producer(sns_client, emitter, serializer=serializer)

    producer.add("bad")
    assert producer.flush() is True

    producer.add("good")
    producer.flush()

    errors = [record for record in log_records if record["level"].name == "ERROR"]
    assert len(errors) == 1
    assert isinstance(errors[0]["exception"].value, TypeError)
    assert errors[0]["extra"]["messageCount"] == 1
    assert sns_client.entries == [[{"Id": "0", "Message": "good"}]]
    assert producer.get_stats()["sender"]["total_publish_errors"] == 1
