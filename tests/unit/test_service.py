import asyncio
import io
import os
import signal

import pytest

from cardano_launcher.process_utils import pid_is_running
from cardano_launcher.service import (
    STATUS_CHANGED,
    ServiceExitStatus,
    ServiceStatus,
    StartService,
    setup_service,
)

Started = ServiceStatus.STARTED
Stopping = ServiceStatus.STOPPING
Stopped = ServiceStatus.STOPPED


@pytest.mark.asyncio
async def test_start_and_stop_continuous_command(mock_logger, events_of):
    service = setup_service(StartService("cat"), mock_logger)
    events = events_of(service)

    pid = await service.start()
    assert isinstance(pid, int) and pid > 0
    assert service.get_process() is not None
    assert events == [Started]

    result = await service.stop(2)
    assert result == ServiceExitStatus(exe="cat", code=0, signal=None, err=None)
    assert events == [Started, Stopping, Stopped]
    assert service.get_process() is None
    assert not pid_is_running(pid)
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


@pytest.mark.asyncio
async def test_command_that_exits_by_itself(mock_logger, events_of):
    service = setup_service(StartService("echo", ["test echo"]), mock_logger)
    events = events_of(service)

    await service.start()
    result = await service.wait_for_exit()

    assert result.exe == "echo"
    assert result.code == 0
    assert result.signal is None
    assert events == [Started, Stopped]


@pytest.mark.asyncio
async def test_stopping_an_already_stopped_command(mock_logger, events_of):
    service = setup_service(StartService("echo", ["test echo"]), mock_logger)
    events = events_of(service)

    await service.start()
    await asyncio.sleep(1)
    result = await service.stop(2)

    assert result == ServiceExitStatus(exe="echo", code=0)
    assert events == [Started, Stopped]


@pytest.mark.asyncio
async def test_command_killed_after_stop_timeout(mock_logger, events_of):
    service = setup_service(StartService("sleep", ["4"]), mock_logger)
    events = events_of(service)

    pid = await service.start()
    result = await service.stop(2)

    assert result == ServiceExitStatus(exe="sleep", code=None, signal="SIGKILL", err=None)
    assert events == [Started, Stopping, Stopped]
    assert not pid_is_running(pid)
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


@pytest.mark.asyncio
async def test_process_terminated_externally(mock_logger, events_of):
    service = setup_service(StartService("cat"), mock_logger)
    events = events_of(service)

    pid = await service.start()
    os.kill(pid, signal.SIGTERM)
    result = await service.wait_for_exit()

    assert result == ServiceExitStatus(exe="cat", signal="SIGTERM")
    assert events == [Started, Stopped]


@pytest.mark.asyncio
async def test_sigterm_used_when_clean_shutdown_unsupported(mock_logger):
    service = setup_service(StartService("sleep", ["10"], supports_clean_shutdown=False), mock_logger)

    await service.start()
    assert service.get_process().stdin is None
    result = await service.stop(2)

    assert result.signal == "SIGTERM"
    assert result.code is None


@pytest.mark.asyncio
async def test_start_is_idempotent(mock_logger, events_of):
    service = setup_service(StartService("cat"), mock_logger)
    events = events_of(service)

    first = await service.start()
    second = await service.start()

    assert first == second
    assert events == [Started]
    await service.stop(2)


@pytest.mark.asyncio
async def test_concurrent_starts_spawn_once(mock_logger, events_of):
    service = setup_service(StartService("cat"), mock_logger)
    events = events_of(service)

    pids = await asyncio.gather(service.start(), service.start(), service.start())

    assert len(set(pids)) == 1
    assert events == [Started]
    spawn_logs = [log for log in mock_logger.by_severity("info") if "trying to start" in log.msg]
    assert len(spawn_logs) == 1
    await service.stop(2)


@pytest.mark.asyncio
async def test_stop_is_idempotent(mock_logger, events_of):
    service = setup_service(StartService("cat"), mock_logger)
    events = events_of(service)

    await service.start()
    results = await asyncio.gather(service.stop(2), service.stop(2), service.stop(2))
    later = await service.stop(2)

    assert all(result == later for result in results)
    assert later.code == 0
    assert events == [Started, Stopping, Stopped]


@pytest.mark.asyncio
async def test_stop_without_start_never_spawns(mock_logger, events_of):
    service = setup_service(StartService("cat"), mock_logger)
    events = events_of(service)

    result = await service.stop(2)
    pid = await service.start()

    assert result == ServiceExitStatus(exe="cat")
    assert not result.has_exited
    assert pid is None
    assert service.get_process() is None
    assert events == []


@pytest.mark.asyncio
async def test_stop_while_spawn_pending(mock_logger, events_of):
    service = setup_service(StartService("cat"), mock_logger)
    events = events_of(service)

    service.start()
    result = await service.stop(2)

    assert result.code == 0
    assert events == [Started, Stopping, Stopped]


@pytest.mark.asyncio
async def test_bogus_command(mock_logger, events_of):
    service = setup_service(StartService("xyzzy"), mock_logger)
    events = events_of(service)

    pid = await service.start()
    result = await service.wait_for_exit()

    assert pid is None
    assert result.exe == "xyzzy"
    assert result.code is None
    assert result.signal is None
    assert isinstance(result.err, OSError)
    assert events == [Started, Stopped]
    assert len(mock_logger.by_severity("error")) == 1

    with pytest.raises(OSError):
        await service.start()
    assert await service.stop(2) == result


@pytest.mark.asyncio
async def test_stop_from_started_listener_keeps_order(mock_logger):
    service = setup_service(StartService("cat"), mock_logger)
    events = []
    stops = []

    def on_status(status):
        events.append(status)
        if status is Started:
            stops.append(service.stop(2))

    service.events.on(STATUS_CHANGED, on_status)
    await service.start()
    result = await stops[0]

    assert result.code == 0
    assert events == [Started, Stopping, Stopped]


@pytest.mark.asyncio
async def test_output_forwarded_to_sink(mock_logger):
    sink = io.BytesIO()
    service = setup_service(StartService("sh", ["-c", "echo out; echo err >&2"]), mock_logger, output=sink)

    await service.start()
    await service.wait_for_exit()
    await asyncio.sleep(0.2)

    output = sink.getvalue()
    assert b"out\n" in output
    assert b"err\n" in output


@pytest.mark.asyncio
async def test_environment_and_cwd_passed_to_child(mock_logger, tmp_path):
    sink = io.StringIO()
    config = StartService("sh", ["-c", 'echo "$LAUNCHER_TEST_VAR"; pwd'], cwd=str(tmp_path), env={"LAUNCHER_TEST_VAR": "hello"})
    service = setup_service(config, mock_logger, output=sink)

    await service.start()
    result = await service.wait_for_exit()
    await asyncio.sleep(0.2)

    assert result.code == 0
    lines = sink.getvalue().splitlines()
    assert lines[0] == "hello"
    assert os.path.realpath(lines[1]) == os.path.realpath(str(tmp_path))


@pytest.mark.asyncio
async def test_nonzero_exit_code_recorded(mock_logger):
    service = setup_service(StartService("sh", ["-c", "exit 7"]), mock_logger)

    await service.start()
    result = await service.wait_for_exit()

    assert result.code == 7
    assert result.describe() == "sh exited with status 7"


@pytest.mark.asyncio
async def test_failing_logger_does_not_break_service(events_of):
    class ExplodingLogger:
        def debug(self, message, payload=None):
            raise RuntimeError("log sink closed")

        info = debug
        error = debug

    service = setup_service(StartService("cat"), ExplodingLogger())
    events = events_of(service)

    await service.start()
    result = await service.stop(2)

    assert result.code == 0
    assert events == [Started, Stopping, Stopped]
