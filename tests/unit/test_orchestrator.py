"""Unit tests for FirmwareUpdateOrchestrator."""

import asyncio
from unittest.mock import MagicMock

import pytest

from fwupdater.exceptions import DeviceUnreachable, InstallError, TransportError
from fwupdater.models.device import DeviceMode, InstallAction
from fwupdater.models.outcome import LoopOutcome, OutcomeEnum
from fwupdater.models.status import StageEnum
from fwupdater.services.cancellation import CancellationToken
from fwupdater.services.orchestrator import FirmwareUpdateOrchestrator
from fwupdater.services.probe import DeviceProbe

BOOTLOADER = DeviceMode.BOOTLOADER
PENDING = DeviceMode.UPDATE_PENDING
NORMAL = DeviceMode.NORMAL


def _make_orchestrator(sleep, settle_delay=2.0, on_stage=None):
    return FirmwareUpdateOrchestrator(
        probe=DeviceProbe(backoff=0),
        settle_delay=settle_delay,
        sleep=sleep,
        on_stage=on_stage,
    )


@pytest.mark.unit
class TestOrchestratorScenarios:
    """End-to-end loop scenarios against a scripted device."""

    @pytest.mark.asyncio
    async def test_full_sequence_completes(self, make_session, fake_sleep):
        """[bootloader, bootloader, update-pending, normal] → Completed."""
        # Arrange
        session = make_session(probes=[BOOTLOADER, BOOTLOADER, PENDING, NORMAL])
        orchestrator = _make_orchestrator(fake_sleep)

        # Act
        outcome = await orchestrator.run(session, CancellationToken())

        # Assert
        assert outcome == LoopOutcome.completed()
        stats = orchestrator.last_stats
        assert stats.actions == [
            InstallAction.INSTALL_BOOTLOADER_FIRMWARE,
            InstallAction.INSTALL_BOOTLOADER_FIRMWARE,
            InstallAction.INSTALL_PENDING_UPDATE,
        ]
        assert stats.settles == 3
        assert fake_sleep.await_count == 3
        fake_sleep.assert_awaited_with(2.0)
        assert session.calls == [
            "probe", "install_mcu",
            "probe", "install_mcu",
            "probe", "install_final_firmware",
            "probe",
        ]

    @pytest.mark.asyncio
    async def test_distinct_actions_run_in_mode_order(self, make_session, fake_sleep):
        session = make_session(probes=[BOOTLOADER, PENDING, NORMAL])
        orchestrator = _make_orchestrator(fake_sleep)

        outcome = await orchestrator.run(session, CancellationToken())

        assert outcome.is_completed
        assert session.install_calls == ["install_mcu", "install_final_firmware"]
        assert orchestrator.last_stats.installs == 2

    @pytest.mark.asyncio
    async def test_disconnect_during_install_is_suppressed(self, make_session, fake_sleep):
        """update-pending + DeviceUnreachable, then normal → Completed."""
        session = make_session(
            probes=[PENDING, NORMAL],
            installs=[DeviceUnreachable("device rebooted")],
        )
        orchestrator = _make_orchestrator(fake_sleep)

        outcome = await orchestrator.run(session, CancellationToken())

        assert outcome.result == OutcomeEnum.COMPLETED
        assert outcome.error is None
        assert orchestrator.last_stats.suppressed_errors == 1

    @pytest.mark.asyncio
    async def test_disconnect_followed_by_one_settle_and_one_probe(
        self, make_session, fake_sleep
    ):
        session = make_session(
            probes=[PENDING, NORMAL],
            installs=[DeviceUnreachable("device rebooted")],
        )
        orchestrator = _make_orchestrator(fake_sleep)

        await orchestrator.run(session, CancellationToken())

        # Never an immediate re-invocation of the same install
        assert session.calls == ["probe", "install_final_firmware", "probe"]
        assert fake_sleep.await_count == 1

    @pytest.mark.asyncio
    async def test_fatal_install_error_short_circuits(self, make_session, fake_sleep):
        """bootloader + InstallError("flash rejected") → Failed, no more probes."""
        session = make_session(
            probes=[BOOTLOADER, NORMAL],
            installs=[InstallError("flash rejected")],
        )
        orchestrator = _make_orchestrator(fake_sleep)

        outcome = await orchestrator.run(session, CancellationToken())

        assert outcome == LoopOutcome.failed("flash rejected")
        assert session.calls == ["probe", "install_mcu"]
        fake_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fatal_error_after_suppressed_disconnect(self, make_session, fake_sleep):
        session = make_session(
            probes=[BOOTLOADER, PENDING, NORMAL],
            installs=[DeviceUnreachable("reboot"), InstallError("signature mismatch")],
        )
        orchestrator = _make_orchestrator(fake_sleep)

        outcome = await orchestrator.run(session, CancellationToken())

        assert outcome.result == OutcomeEnum.FAILED
        assert outcome.error == "signature mismatch"
        assert session.probe_calls == 2

    @pytest.mark.asyncio
    async def test_probe_failures_are_absorbed(self, make_session, fake_sleep):
        session = make_session(
            probes=[
                TransportError("no device"),
                BOOTLOADER,
                TransportError("re-enumerating"),
                TransportError("re-enumerating"),
                NORMAL,
            ]
        )
        orchestrator = _make_orchestrator(fake_sleep)

        outcome = await orchestrator.run(session, CancellationToken())

        assert outcome.is_completed
        assert orchestrator.last_stats.probes == 2
        assert session.probe_calls == 5

    @pytest.mark.asyncio
    async def test_already_normal_completes_without_install(self, make_session, fake_sleep):
        session = make_session(probes=[NORMAL])
        orchestrator = _make_orchestrator(fake_sleep)

        outcome = await orchestrator.run(session, CancellationToken())

        assert outcome.is_completed
        assert session.install_calls == []
        fake_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_long_sequence_does_not_grow_stack(self, make_session, fake_sleep):
        probes = [BOOTLOADER] * 2000 + [NORMAL]
        session = make_session(probes=probes)
        orchestrator = _make_orchestrator(fake_sleep)

        outcome = await orchestrator.run(session, CancellationToken())

        assert outcome.is_completed
        assert orchestrator.last_stats.installs == 2000


@pytest.mark.unit
class TestOrchestratorCancellation:
    """Test cancellation at each suspension point."""

    @pytest.mark.asyncio
    async def test_cancel_while_probing_yields_no_outcome(self, make_session, fake_sleep):
        # Arrange - empty probe script: device never answers
        session = make_session(probes=[])
        token = CancellationToken()
        orchestrator = _make_orchestrator(fake_sleep)
        task = asyncio.create_task(orchestrator.run(session, token))
        await session.probe_pending.wait()

        # Act
        token.cancel()
        outcome = await task

        # Assert
        assert outcome is None
        assert session.calls == ["probe"]

    @pytest.mark.asyncio
    async def test_cancel_while_settling(self, make_session):
        session = make_session(probes=[BOOTLOADER, NORMAL])
        token = CancellationToken()
        orchestrator = FirmwareUpdateOrchestrator(
            probe=DeviceProbe(backoff=0), settle_delay=3600
        )
        task = asyncio.create_task(orchestrator.run(session, token))
        while not session.install_calls:
            await asyncio.sleep(0)
        await asyncio.sleep(0)

        token.cancel()
        outcome = await task

        assert outcome is None
        assert session.calls == ["probe", "install_mcu"]
        assert orchestrator.last_stats.settles == 0

    @pytest.mark.asyncio
    async def test_cancel_while_installing(self, make_session, fake_sleep):
        session = make_session(probes=[BOOTLOADER, NORMAL])
        started = asyncio.Event()

        async def slow_install():
            session.calls.append("install_mcu")
            started.set()
            await asyncio.sleep(3600)

        session.install_mcu = slow_install
        token = CancellationToken()
        orchestrator = _make_orchestrator(fake_sleep)
        task = asyncio.create_task(orchestrator.run(session, token))
        await started.wait()

        token.cancel()
        outcome = await task

        assert outcome is None
        assert session.calls == ["probe", "install_mcu"]
        fake_sleep.assert_not_awaited()


@pytest.mark.unit
class TestOrchestratorStages:
    """Test stage notifications."""

    @pytest.mark.asyncio
    async def test_stage_callback_sequence(self, make_session, fake_sleep):
        session = make_session(probes=[PENDING, NORMAL])
        on_stage = MagicMock()
        orchestrator = _make_orchestrator(fake_sleep, on_stage=on_stage)

        await orchestrator.run(session, CancellationToken())

        stages = [c.args[0] for c in on_stage.call_args_list]
        assert stages == [
            StageEnum.PROBING,
            StageEnum.INSTALLING,
            StageEnum.SETTLING,
            StageEnum.PROBING,
        ]

    @pytest.mark.asyncio
    async def test_no_callback_is_fine(self, make_session, fake_sleep):
        session = make_session(probes=[NORMAL])
        orchestrator = _make_orchestrator(fake_sleep)

        assert (await orchestrator.run(session, CancellationToken())).is_completed
