# services/auto_backup.py

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import config
from core.backup import BackupError
from core.database import DatabaseError, DatabaseManager

logger = logging.getLogger(__name__)

class AutoBackupService:
    """
    Автоматическое резервное копирование.

    Раз в час проверяет возраст последней копии и создаёт новую,
    если прошло больше interval_hours. Хранение последних копий
    ограничивает BackupManager.
    """

    JOB_ID = 'auto_backup'

    def __init__(self, db: DatabaseManager, interval_hours: Optional[int] = None,
                 scheduler: Optional[BackgroundScheduler] = None):
        self.db = db
        self.interval = timedelta(hours=interval_hours or config.backup.interval_hours)
        self.scheduler = scheduler or BackgroundScheduler(timezone=config.timezone)
        self.is_backing_up = False
        self.last_error: Optional[str] = None

    def last_backup_at(self) -> Optional[datetime]:
        backups = self.db.list_backups()
        if not backups:
            return None
        return datetime.fromisoformat(backups[0]['created'])

    def should_backup(self, now: Optional[datetime] = None) -> bool:
        last_backup = self.last_backup_at()
        if last_backup is None:
            return True

        now = now or datetime.now()
        if now.tzinfo is not None:
            now = now.astimezone().replace(tzinfo=None)
        return now - last_backup >= self.interval

    def perform_backup(self) -> Optional[Path]:
        self.is_backing_up = True
        self.last_error = None
        try:
            backup_path = self.db.create_backup()
            logger.info("Auto-backup completed successfully")
            return backup_path
        except (BackupError, DatabaseError) as e:
            self.last_error = str(e)
            logger.error(f"Auto-backup failed: {e}")
            return None
        finally:
            self.is_backing_up = False

    def check_and_perform_backup(self, now: Optional[datetime] = None) -> Optional[Path]:
        if self.is_backing_up:
            return None
        if self.should_backup(now):
            return self.perform_backup()
        return None

    def start(self) -> None:
        """Запуск планировщика и немедленная проверка"""
        self.scheduler.add_job(
            self.check_and_perform_backup,
            IntervalTrigger(hours=1),
            id=self.JOB_ID,
            replace_existing=True
        )
        self.scheduler.start()
        logger.info("Auto-backup scheduler started")
        self.check_and_perform_backup()

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Auto-backup scheduler stopped")
