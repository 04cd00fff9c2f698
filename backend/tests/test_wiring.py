"""Binding the auth capability into the build and job factories."""

import pytest
from structlog.testing import capture_logs

from dockyard.bootstrap import configure_server
from dockyard.constants import EXECUTOR_CLEANUP_TASK
from dockyard.exceptions import WiringError
from dockyard.plugins.shutdown import ShutdownCoordinator
from dockyard.wiring import TokenIssuer
from dockyard.wiring import wire_services


@pytest.fixture
def server(server_config, fake_auth):
    server = configure_server(server_config)
    server.plugins.expose("auth", fake_auth)
    return server


def test_public_uri_recorded_on_both_factories(server, build_factory, job_factory):
    wire_services(server)

    assert build_factory.api_uri == "https://api.example"
    assert job_factory.api_uri == "https://api.example"


def test_build_token_is_temporal_scoped_with_expiry(server, build_factory, fake_auth):
    wire_services(server)

    token = build_factory.token_gen("b1", {}, "gh", 3600)

    assert token == "signed-token"
    fake_auth.generate_profile.assert_called_once_with("b1", "gh", ["temporal"], {})
    fake_auth.generate_token.assert_called_once_with(fake_auth.generate_profile.return_value, 3600)


def test_build_token_generator_shared_with_executor(server, build_factory):
    wire_services(server)

    assert build_factory.executor.token_gen is build_factory.token_gen


def test_user_token_is_user_scoped_without_expiry(server, job_factory, fake_auth):
    wire_services(server)

    job_factory.token_gen("alice", {"pipelineId": 1}, "gh")

    fake_auth.generate_profile.assert_called_once_with("alice", "gh", ["user"], {"pipelineId": 1})
    fake_auth.generate_token.assert_called_once_with(fake_auth.generate_profile.return_value)
    assert job_factory.executor.user_token_gen is job_factory.token_gen


def test_wiring_twice_fails_loudly(server):
    wire_services(server)

    with pytest.raises(WiringError, match="already attached"):
        wire_services(server)


def test_missing_factory_is_reported(server_config, fake_auth):
    from dataclasses import replace

    server = configure_server(replace(server_config, factories={}))
    server.plugins.expose("auth", fake_auth)

    with pytest.raises(WiringError, match="build_factory"):
        wire_services(server)


@pytest.mark.asyncio
async def test_cleanup_task_drains_job_factory(server, job_factory):
    coordinator = ShutdownCoordinator()
    wire_services(server, shutdown=coordinator)

    (task,) = coordinator.tasks
    assert task.taskname == EXECUTOR_CLEANUP_TASK
    job_factory.clean_up.assert_not_called()

    with capture_logs() as entries:
        await task.task()

    job_factory.clean_up.assert_awaited_once()
    assert {"event": "completed clean up tasks", "log_level": "info"} in entries


class TestTokenIssuer:
    def test_unattached_issuer_refuses_to_mint(self):
        issuer = TokenIssuer()

        with pytest.raises(WiringError, match="never attached"):
            issuer.build_token("b1", {}, "gh")

    def test_attach_requires_a_capability(self):
        with pytest.raises(WiringError):
            TokenIssuer().attach_auth(None)

    def test_build_token_defaults_to_no_expiry(self, fake_auth):
        issuer = TokenIssuer()
        issuer.attach_auth(fake_auth)

        issuer.build_token("b2", None, None)

        fake_auth.generate_token.assert_called_once_with(fake_auth.generate_profile.return_value, None)
