#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyGrow v1.0 - Configuration
Настройки хранилища, резервного копирования, логирования и временной зоны

Все значения читаются из переменных окружения при импорте модуля.

Версия: 1.0.0
Дата: 2026-10-19
"""

import os
import sys
from pathlib import Path
from typing import Dict, Any, List
from dataclasses import dataclass
from enum import Enum

import pytz

class Environment(Enum):
    """Среды выполнения"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"

class LogLevel(Enum):
    """Уровни логирования"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ('1', 'true', 'yes')

# ===== SECTIONS =====

@dataclass
class DatabaseConfig:
    """Файл данных и каталог резервных копий"""
    path: Path
    backup_dir: Path
    max_backups: int = 7

@dataclass
class BackupConfig:
    """Автоматическое резервное копирование"""
    auto_backup: bool = True
    interval_hours: int = 24
    compressed: bool = False

@dataclass
class LoggingConfig:
    level: LogLevel = LogLevel.INFO
    to_file: bool = True
    file: Path = Path('logs') / 'dailygrow.log'
    format: str = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

# ===== APP CONFIG =====

class AppConfig:
    """Конфигурация приложения"""

    def __init__(self):
        self.environment = Environment(os.getenv('ENVIRONMENT', 'development'))
        self._load_config()
        self._validate_config()

    def _load_config(self):
        self.data_dir = Path(os.getenv('DATA_DIR', 'data'))
        self.export_dir = Path(os.getenv('EXPORT_DIR', 'exports'))
        self.backup_dir = Path(os.getenv('BACKUP_DIR', 'backups'))
        self.log_dir = Path(os.getenv('LOG_DIR', 'logs'))

        # Границы календарных дней считаются в этой зоне
        self.timezone_name = os.getenv('TIMEZONE', 'UTC')

        self.database = DatabaseConfig(
            path=self.data_dir / 'dailygrow.json',
            backup_dir=self.backup_dir,
            max_backups=int(os.getenv('MAX_BACKUPS', 7))
        )

        self.backup = BackupConfig(
            auto_backup=_env_flag('AUTO_BACKUP', True),
            interval_hours=int(os.getenv('BACKUP_INTERVAL_HOURS', 24)),
            compressed=_env_flag('BACKUP_COMPRESSED', False)
        )

        self.logging = LoggingConfig(
            level=LogLevel(os.getenv('LOG_LEVEL', 'INFO').upper()),
            to_file=_env_flag('LOG_TO_FILE', True),
            file=self.log_dir / f"dailygrow_{self.environment.value}.log"
        )
        if os.getenv('LOG_FORMAT'):
            self.logging.format = os.getenv('LOG_FORMAT')

    def _validate_config(self):
        """Проверка значений; все ошибки собираются в одно исключение"""
        errors: List[str] = []

        try:
            self.timezone = pytz.timezone(self.timezone_name)
        except pytz.UnknownTimeZoneError:
            self.timezone = pytz.utc
            errors.append(f"TIMEZONE '{self.timezone_name}' не является известной временной зоной")

        if self.database.max_backups < 1:
            errors.append("MAX_BACKUPS должен быть положительным числом")

        if self.backup.interval_hours < 1:
            errors.append("BACKUP_INTERVAL_HOURS должен быть положительным числом")

        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"• {error}" for error in errors))

    def ensure_directories(self):
        for directory in (self.data_dir, self.export_dir, self.backup_dir, self.log_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def get_logging_config(self) -> Dict[str, Any]:
        """Словарь для logging.config.dictConfig"""
        level = self.logging.level.value
        handlers: Dict[str, Dict[str, Any]] = {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'default',
                'level': level,
                'stream': sys.stdout
            }
        }
        if self.logging.to_file:
            handlers['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'formatter': 'default',
                'level': level,
                'filename': str(self.logging.file),
                'maxBytes': self.logging.max_bytes,
                'backupCount': self.logging.backup_count,
                'encoding': 'utf-8'
            }

        names = list(handlers)
        return {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {'format': self.logging.format, 'datefmt': '%Y-%m-%d %H:%M:%S'}
            },
            'handlers': handlers,
            'loggers': {
                '': {'level': level, 'handlers': names, 'propagate': False},
                # Планировщик пишет о каждом запуске задачи
                'apscheduler': {'level': 'WARNING', 'handlers': names, 'propagate': False}
            }
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'environment': self.environment.value,
            'timezone': self.timezone_name,
            'data_file': str(self.database.path),
            'backup_dir': str(self.database.backup_dir),
            'max_backups': self.database.max_backups,
            'auto_backup': self.backup.auto_backup,
            'backup_interval_hours': self.backup.interval_hours,
            'log_level': self.logging.level.value,
            'log_file': str(self.logging.file) if self.logging.to_file else None
        }

# Глобальный экземпляр конфигурации
config = AppConfig()

__all__ = [
    'config',
    'AppConfig',
    'Environment',
    'LogLevel',
    'DatabaseConfig',
    'BackupConfig',
    'LoggingConfig'
]
