# tests/test_core.py
from __future__ import annotations

import logging

import pytest
from botocore.exceptions import NoRegionError, ProfileNotFound

from ddb_bootstrap.config import CopyJobConfig, ExecutorSettings
from ddb_bootstrap.constants import (
    EXIT_CONFIGURATION,
    EXIT_DESTINATION_PROFILE_MISSING,
    EXIT_EXECUTION_FAULT,
    EXIT_FAILURE,
    EXIT_OK,
    EXIT_SECTION_OUT_OF_RANGE,
)
from ddb_bootstrap.core import run_copy_job
from ddb_bootstrap.errors import BootstrapError, ErrorKind
from ddb_bootstrap.job import JobState
from ddb_bootstrap.transfer.scanner import TransferStats

SETTINGS = ExecutorSettings(max_connections=10, core_pool_size=4, keep_alive_ms=200)


def _config(**kw):
    base = dict(source_table="src", destination_table="dst")
    base.update(kw)
    return CopyJobConfig(**base)


# --- Test doubles ---------------------------------------------------------------

class RecordingScanner:
    """Producer double capturing its constructor arguments."""

    instances: list["RecordingScanner"] = []
    behaviour = None  # callable(consumer) run inside pipe

    def __init__(self, client, read_throughput, table, executor, section,
                 total_segments, consistent_read):
        self.args = dict(
            client=client, read_throughput=read_throughput, table=table,
            executor=executor, section=section, total_segments=total_segments,
            consistent_read=consistent_read,
        )
        RecordingScanner.instances.append(self)

    def pipe(self, consumer):
        if RecordingScanner.behaviour is not None:
            RecordingScanner.behaviour(consumer)
        return TransferStats(segments_scanned=1)


class RecordingConsumer:
    instances: list["RecordingConsumer"] = []

    def __init__(self, client, table, write_throughput, executor):
        self.args = dict(client=client, table=table, write_throughput=write_throughput,
                         executor=executor)
        RecordingConsumer.instances.append(self)


@pytest.fixture
def doubles():
    RecordingScanner.instances = []
    RecordingScanner.behaviour = None
    RecordingConsumer.instances = []
    yield RecordingScanner, RecordingConsumer
    RecordingScanner.behaviour = None


def _run(config, client, doubles, **kw):
    scanner_cls, consumer_cls = doubles
    built = []

    def factory(ctx):
        built.append(ctx)
        return client

    outcome = run_copy_job(
        config,
        settings=SETTINGS,
        client_factory=factory,
        scanner_factory=scanner_cls,
        consumer_factory=consumer_cls,
        report=False,
        **kw,
    )
    return outcome, built


# --- Planning and delegation ------------------------------------------------------

def test_rates_from_capacity_and_ratios(fake_dynamodb, doubles):
    fake_dynamodb.add_table("src", read=100, write=5)
    fake_dynamodb.add_table("dst", read=5, write=200)

    outcome, built = _run(
        _config(read_throughput_ratio=0.5, write_throughput_ratio=0.25), fake_dynamodb, doubles,
    )

    assert outcome.ok and outcome.exit_code == EXIT_OK
    assert outcome.job.read_throughput == 50.0
    assert outcome.job.write_throughput == 50.0
    assert outcome.job.total_segments == 10
    assert len(built) == 2

    scanner = doubles[0].instances[0]
    consumer = doubles[1].instances[0]
    assert scanner.args["read_throughput"] == 50.0
    assert scanner.args["table"] == "src"
    assert scanner.args["total_segments"] == 10
    assert consumer.args["write_throughput"] == 50.0
    assert consumer.args["table"] == "dst"


def test_fixed_rate_overrides_capacity(fake_dynamodb, doubles):
    fake_dynamodb.add_table("src", read=100)
    fake_dynamodb.add_table("dst", write=300)

    outcome, _ = _run(_config(throughput_rate=75), fake_dynamodb, doubles)
    assert outcome.job.read_throughput == 75.0
    assert outcome.job.write_throughput == 75.0


def test_on_demand_source_falls_back_to_default_segments(fake_dynamodb, doubles, caplog):
    fake_dynamodb.add_table("src", on_demand=True)
    fake_dynamodb.add_table("dst", write=100)

    with caplog.at_level(logging.WARNING):
        outcome, _ = _run(_config(), fake_dynamodb, doubles)

    assert outcome.ok
    assert outcome.job.total_segments == 10
    assert outcome.job.segment_plan.fallback
    assert outcome.job.read_throughput is None
    assert "defaulting to 10" in caplog.text
    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]


def test_pools_sized_from_segments_and_writer_limit(fake_dynamodb, doubles):
    fake_dynamodb.add_table("src", read=60)
    fake_dynamodb.add_table("dst")

    outcome, _ = _run(_config(max_write_threads=3), fake_dynamodb, doubles)

    assert outcome.job.read_pool.max_pool_size == 6
    assert outcome.job.read_pool.core_pool_size == 4
    assert outcome.job.write_pool.max_pool_size == 3
    assert outcome.job.write_pool.core_pool_size == 2

    scanner = doubles[0].instances[0]
    consumer = doubles[1].instances[0]
    assert scanner.args["executor"] is not consumer.args["executor"]
    assert scanner.args["executor"].spec == outcome.job.read_pool
    assert consumer.args["executor"].spec == outcome.job.write_pool


def test_section_and_consistency_handed_to_scanner(fake_dynamodb, doubles):
    fake_dynamodb.add_table("src", read=100)
    fake_dynamodb.add_table("dst")

    _run(_config(section=2, total_sections=3, consistent_scan=True), fake_dynamodb, doubles)

    args = doubles[0].instances[0].args
    assert (args["section"].index, args["section"].total_sections) == (2, 3)
    assert args["consistent_read"] is True


def test_pools_released_after_success(fake_dynamodb, doubles):
    fake_dynamodb.add_table("src", read=20)
    fake_dynamodb.add_table("dst")
    _run(_config(), fake_dynamodb, doubles)

    executor = doubles[0].instances[0].args["executor"]
    with pytest.raises(RuntimeError):
        executor.submit(lambda: None)


# --- Failure mapping --------------------------------------------------------------

def test_cross_account_missing_destination_profile_contacts_nothing(fake_dynamodb, doubles):
    fake_dynamodb.add_table("src")
    fake_dynamodb.add_table("dst")

    outcome, built = _run(
        _config(cross_account=True, source_account_profile="prod"), fake_dynamodb, doubles,
    )

    assert outcome.state is JobState.FAILED
    assert outcome.failed_in is JobState.INITIALIZING
    assert outcome.exit_code == EXIT_DESTINATION_PROFILE_MISSING
    assert built == []
    assert fake_dynamodb.describe_calls == []
    assert doubles[0].instances == []


def test_section_out_of_range_aborts_before_pools(fake_dynamodb, doubles):
    fake_dynamodb.add_table("src", read=30)   # 3 segments
    fake_dynamodb.add_table("dst")

    outcome, _ = _run(_config(section=0, total_sections=4), fake_dynamodb, doubles)

    assert outcome.error.kind is ErrorKind.SECTION_OUT_OF_RANGE
    assert outcome.exit_code == EXIT_SECTION_OUT_OF_RANGE
    assert outcome.failed_in is JobState.POOL_BUILDING
    assert outcome.job is None
    assert doubles[0].instances == []


def test_missing_table_fails_in_planning(fake_dynamodb, doubles):
    fake_dynamodb.add_table("src")

    outcome, _ = _run(_config(), fake_dynamodb, doubles)
    assert outcome.failed_in is JobState.PLANNING
    assert outcome.exit_code == EXIT_CONFIGURATION


def test_execution_fault_is_reported_with_context(fake_dynamodb, doubles, caplog):
    fake_dynamodb.add_table("src", read=100)
    fake_dynamodb.add_table("dst")

    def explode(_consumer):
        raise BootstrapError(ErrorKind.EXECUTION, "segment 4 failed")

    doubles[0].behaviour = explode
    with caplog.at_level(logging.ERROR):
        outcome, _ = _run(_config(), fake_dynamodb, doubles)

    assert outcome.state is JobState.FAILED
    assert outcome.failed_in is JobState.DELEGATING
    assert outcome.exit_code == EXIT_EXECUTION_FAULT
    assert "src -> dst" in caplog.text
    assert "10 segments" in caplog.text

    executor = doubles[0].instances[0].args["executor"]
    with pytest.raises(RuntimeError):
        executor.submit(lambda: None)


def test_unexpected_exception_wrapped_as_execution(fake_dynamodb, doubles):
    fake_dynamodb.add_table("src", read=100)
    fake_dynamodb.add_table("dst")

    def explode(_consumer):
        raise OSError("connection reset")

    doubles[0].behaviour = explode
    outcome, _ = _run(_config(), fake_dynamodb, doubles)
    assert outcome.error.kind is ErrorKind.EXECUTION
    assert "connection reset" in outcome.error.message
    assert outcome.exit_code == EXIT_EXECUTION_FAULT


def test_interrupt_during_transfer(fake_dynamodb, doubles):
    fake_dynamodb.add_table("src", read=100)
    fake_dynamodb.add_table("dst")

    def interrupt(_consumer):
        raise KeyboardInterrupt

    doubles[0].behaviour = interrupt
    outcome, _ = _run(_config(), fake_dynamodb, doubles)
    assert outcome.error.kind is ErrorKind.INTERRUPTED
    assert outcome.exit_code == EXIT_FAILURE


def test_injected_logger_receives_diagnostics(fake_dynamodb, doubles, caplog):
    fake_dynamodb.add_table("src", on_demand=True)
    fake_dynamodb.add_table("dst", on_demand=True)
    sink = logging.getLogger("test.copyjob")

    with caplog.at_level(logging.INFO, logger="test.copyjob"):
        _run(_config(), fake_dynamodb, doubles, log=sink)

    names = {r.name for r in caplog.records if r.name.startswith("test.")}
    assert names == {"test.copyjob"}
    assert "unpaced" in caplog.text


# --- End to end with the real producer/consumer -----------------------------------

def test_end_to_end_copy(fake_dynamodb):
    fake_dynamodb.add_table("src", items=180, read=40)
    fake_dynamodb.add_table("dst", write=1000)

    outcome = run_copy_job(
        _config(throughput_rate=1_000_000),
        settings=SETTINGS,
        client_factory=lambda ctx: fake_dynamodb,
        report=False,
    )

    assert outcome.ok
    assert outcome.stats.items_written == 180
    assert outcome.stats.segments_scanned == 4
    assert len(fake_dynamodb.written["dst"]) == 180


@pytest.mark.parametrize("error", [
    ProfileNotFound(profile="nope"),
    NoRegionError(),
])
def test_client_creation_failure_is_configuration_error(fake_dynamodb, doubles, error):
    fake_dynamodb.add_table("src")
    fake_dynamodb.add_table("dst")

    def factory(ctx):
        raise error

    outcome = run_copy_job(
        _config(cross_account=True, source_account_profile="nope",
                destination_account_profile="nope2"),
        settings=SETTINGS,
        client_factory=factory,
        scanner_factory=doubles[0],
        consumer_factory=doubles[1],
        report=False,
    )

    assert outcome.state is JobState.FAILED
    assert outcome.failed_in is JobState.INITIALIZING
    assert outcome.exit_code == EXIT_CONFIGURATION
    assert "source DynamoDB client" in outcome.error.message
    assert fake_dynamodb.describe_calls == []
