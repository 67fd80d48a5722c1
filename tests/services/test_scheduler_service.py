from unittest.mock import Mock

from apscheduler.triggers.cron import CronTrigger

from linkaudit.services.scheduler_service import JOB_ID, SchedulerService, _parse_schedule


def test_parse_schedule():
    assert isinstance(_parse_schedule("0 8 * * *"), CronTrigger)
    assert _parse_schedule(None) is None
    assert _parse_schedule("   ") is None
    assert _parse_schedule("not a cron") is None
    assert _parse_schedule(42) is None


def test_start_without_schedule_does_nothing():
    factory = Mock()
    service = SchedulerService(run_callback=Mock(), schedule=None, scheduler_factory=factory)

    assert service.start() is False
    assert service.running is False
    factory.assert_not_called()


def test_start_registers_cron_job():
    sched = Mock()
    service = SchedulerService(run_callback=Mock(), schedule="0 8 * * *", scheduler_factory=Mock(return_value=sched))

    assert service.start() is True
    assert service.running is True
    sched.start.assert_called_once()
    _, kwargs = sched.add_job.call_args
    assert kwargs["id"] == JOB_ID
    assert isinstance(kwargs["trigger"], CronTrigger)

    # idempotent
    assert service.start() is True
    sched.add_job.assert_called_once()


def test_shutdown():
    sched = Mock()
    service = SchedulerService(run_callback=Mock(), schedule="0 8 * * *", scheduler_factory=Mock(return_value=sched))
    service.start()
    service.shutdown(wait=False)

    sched.shutdown.assert_called_once_with(wait=False)
    assert service.running is False
    service.shutdown()


def test_scheduled_run_swallows_crash():
    callback = Mock(side_effect=RuntimeError("boom"))
    service = SchedulerService(run_callback=callback, schedule="0 8 * * *")
    assert service._execute_scheduled_run() is None
    callback.assert_called_once()


def test_scheduled_run_returns_result():
    callback = Mock(return_value={"success": False, "error": "sitemap down"})
    service = SchedulerService(run_callback=callback, schedule="0 8 * * *")
    assert service._execute_scheduled_run() == {"success": False, "error": "sitemap down"}
