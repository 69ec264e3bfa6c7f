"""Tests for the scheduled auto-backup service."""

from datetime import datetime, timedelta

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from core.backup import BackupWriteError
from services.auto_backup import AutoBackupService


@pytest.fixture
def service(db):
    return AutoBackupService(db, interval_hours=24, scheduler=BackgroundScheduler(timezone="UTC"))


def test_backs_up_when_none_exist(service, db):
    assert service.should_backup() is True

    path = service.check_and_perform_backup()

    assert path is not None and path.exists()
    assert len(db.list_backups()) == 1


def test_waits_for_interval(service, db):
    service.perform_backup()
    last = service.last_backup_at()

    assert service.should_backup(last + timedelta(hours=1)) is False
    assert service.check_and_perform_backup(last + timedelta(hours=1)) is None
    assert service.should_backup(last + timedelta(hours=25)) is True
    assert len(db.list_backups()) == 1


def test_failure_is_recorded_not_raised(service, db, monkeypatch):
    def fail(compressed=None):
        raise BackupWriteError("disk full")

    monkeypatch.setattr(db, "create_backup", fail)

    assert service.perform_backup() is None
    assert service.last_error == "disk full"
    assert service.is_backing_up is False


def test_start_registers_hourly_job(service, db):
    service.start()
    try:
        job = service.scheduler.get_job(AutoBackupService.JOB_ID)
        assert job is not None
        assert job.trigger.interval == timedelta(hours=1)
        assert len(db.list_backups()) == 1
    finally:
        service.shutdown()

    assert not service.scheduler.running


def test_aware_now_is_accepted(service):
    service.perform_backup()
    later = datetime.now().astimezone() + timedelta(days=2)

    assert service.should_backup(later) is True
