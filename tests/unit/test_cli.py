import asyncio
from pathlib import Path

import pytest

from cardano_launcher import cli
from cardano_launcher.api import Api
from cardano_launcher.backends import ByronNodeConfig, JormungandrConfig
from cardano_launcher.errors import LaunchError
from cardano_launcher.events import EventEmitter
from cardano_launcher.launcher import EXIT_EVENT, LauncherExitStatus
from cardano_launcher.service_helpers import ServiceExitStatus
from cardano_launcher.service_runner import read_lock_owner, state_dir_lock

_WALLET = ServiceExitStatus(exe="wallet", code=0)
_NODE = ServiceExitStatus(exe="node", signal="SIGTERM")


def test_parser_positionals_and_options():
    args = cli.build_parser().parse_args(
        ["jormungandr", "self", "cfg", "state", "--api-port", "8090", "--node-arg=--log-level", "--node-arg", "info"]
    )

    assert args.backend == "jormungandr"
    assert args.network == "self"
    assert args.config_dir == Path("cfg")
    assert args.state_dir == Path("state")
    assert args.api_port == 8090
    assert args.extra_args == ["--log-level", "info"]
    assert args.stop_timeout is None


def test_parser_rejects_unknown_backend(capsys):
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["shelley", "mainnet", "cfg", "state"])


def test_node_config_from_args():
    parser = cli.build_parser()

    jormungandr = cli.node_config_from_args(parser.parse_args(["jormungandr", "self", "cfg", "state"]))
    byron = cli.node_config_from_args(parser.parse_args(["byron", "testnet", "cfg", "state", "--node-arg=-v"]))

    assert jormungandr == JormungandrConfig(configuration_dir="cfg", network="self")
    assert isinstance(byron, ByronNodeConfig)
    assert byron.network == "testnet"
    assert byron.extra_args == ("-v",)


def test_exit_code_for():
    assert cli.exit_code_for(LauncherExitStatus(wallet=_WALLET, node=_NODE, requested=True)) == 0
    assert cli.exit_code_for(LauncherExitStatus(wallet=_WALLET, node=_NODE, requested=False)) == 1
    assert cli.exit_code_for(None) == 1


def test_main_reports_unknown_network(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)

    code = cli.main(["jormungandr", "nonesuch", str(tmp_path), str(tmp_path / "state")])

    assert code == 2


def test_main_runs_launcher_under_lock(tmp_path, monkeypatch):
    captured = {}

    async def fake_run_launcher(launch_config, lock):
        captured["config"] = launch_config
        captured["lock_held"] = lock.held
        return 0

    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(cli, "run_launcher", fake_run_launcher)

    code = cli.main(
        ["byron", "mainnet", str(tmp_path), str(tmp_path / "state"), "--log-file", str(tmp_path / "logs" / "out.log")]
    )

    assert code == 0
    config = captured["config"]
    assert config.network_name == "mainnet"
    assert captured["lock_held"]
    assert config.child_process_log_write_stream.closed
    assert (tmp_path / "logs" / "out.log").exists()


class _FailingLauncher:
    stop_requested = False

    def __init__(self, *args, **kwargs):
        self.events = EventEmitter()

    async def start(self):
        raise LaunchError("fake-node exited with status 1")

    def request_stop(self):
        self.stop_requested = True


class _InterruptedLauncher(_FailingLauncher):
    async def start(self):
        self.request_stop()
        raise LaunchError("fake-wallet exited with status 0")


class _RunningLauncher(_FailingLauncher):
    async def start(self):
        asyncio.get_running_loop().call_soon(
            self.events.emit, EXIT_EVENT, LauncherExitStatus(wallet=_WALLET, node=_NODE, requested=True)
        )
        return Api(port=8090)


def test_run_launcher_returns_one_on_launch_failure(monkeypatch):
    monkeypatch.setattr(cli, "Launcher", _FailingLauncher)

    assert asyncio.run(cli.run_launcher(object())) == 1


def test_run_launcher_returns_zero_when_stopped_during_start(monkeypatch):
    monkeypatch.setattr(cli, "Launcher", _InterruptedLauncher)

    assert asyncio.run(cli.run_launcher(object())) == 0


def test_run_launcher_records_api_port_in_lock(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "Launcher", _RunningLauncher)

    with state_dir_lock(tmp_path) as lock:
        code = asyncio.run(cli.run_launcher(object(), lock))
        owner = read_lock_owner(lock.lock_path)

    assert code == 0
    assert owner["api_port"] == 8090


@pytest.mark.parametrize(
    "option",
    [["--api-port", "0"], ["--api-port", "70000"], ["--stop-timeout", "-1"]],
)
def test_main_rejects_out_of_range_options(tmp_path, monkeypatch, option):
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(cli, "run_async_service", lambda *args, **kwargs: pytest.fail("launcher must not run"))

    code = cli.main(["jormungandr", "self", str(tmp_path), str(tmp_path / "state"), *option])

    assert code == 2
