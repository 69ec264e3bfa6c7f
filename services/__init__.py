# services/__init__.py

"""
Модуль сервисов DailyGrow

Статистика, экспорт/импорт данных и автоматическое резервное копирование
поверх core.database.DatabaseManager.
"""

from .auto_backup import AutoBackupService
from .data_export import ExportFormat, export_data, import_from_csv
from .statistics import StatsPeriod, overall_period_rate, overall_streak, period_range

__all__ = [
    'AutoBackupService',
    'ExportFormat',
    'export_data',
    'import_from_csv',
    'StatsPeriod',
    'overall_period_rate',
    'overall_streak',
    'period_range'
]
