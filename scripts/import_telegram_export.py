#!/usr/bin/env python3
"""
Импорт истории чата из экспорта Telegram Desktop (result.json).

Использование:
    python scripts/import_telegram_export.py --file result.json
    python scripts/import_telegram_export.py --file result.json --dry-run -v
    python scripts/import_telegram_export.py --file result.json --chat-id -1001234567890
"""

import argparse
import sys

from sueta.config import settings
from sueta.database import build_engine, init_db
from sueta.logging_config import setup_logging
from sueta.services.conversation_store import SQLConversationStore
from sueta.services.errors import SuetaError
from sueta.services.import_service import TelegramExportImporter


def print_stats(stats, dry_run: bool) -> None:
    print("=== Статистика импорта ===")
    print(f"Всего обработано: {stats.total}")
    print(f"Пользовательских сообщений: {stats.user_messages}")
    print(f"Служебных сообщений: {stats.service_messages}")
    print(f"Пропущено: {stats.skipped}")
    print(f"Дубликатов: {stats.duplicates}")
    print(f"Ошибок: {stats.errors}")
    if dry_run:
        print("*** РЕЖИМ ПРОБНОГО ЗАПУСКА - ДАННЫЕ НЕ СОХРАНЕНЫ ***")
    else:
        print("*** ИМПОРТ ЗАВЕРШЕН ***")


def main() -> int:
    parser = argparse.ArgumentParser(description="Импорт экспорта Telegram в базу")
    parser.add_argument("--file", required=True, help="Путь к JSON файлу с экспортом Telegram")
    parser.add_argument("--dry-run", action="store_true", help="Только показать статистику, не сохранять в БД")
    parser.add_argument("-v", "--verbose", action="store_true", help="Подробный вывод")
    parser.add_argument("--no-db", action="store_true", help="Не подключаться к БД (только проверка парсинга)")
    parser.add_argument("--chat-id", type=int, default=None, help="ID чата вместо указанного в экспорте")
    parser.add_argument("--bot-user-id", type=int, default=None, help="user id бота, его сообщения помечаются как ответы бота")
    args = parser.parse_args()

    setup_logging(settings.log_level)
    dry_run = args.dry_run or args.no_db

    store = None
    if not args.no_db:
        engine = build_engine(settings.database_url, settings.db_statement_timeout_ms)
        init_db(engine)
        store = SQLConversationStore(engine)

    importer = TelegramExportImporter(
        store,
        name_variants=settings.bot_name_variants,
        dry_run=dry_run,
        verbose=args.verbose,
        bot_user_id=args.bot_user_id,
    )
    try:
        stats = importer.import_file(args.file, chat_id=args.chat_id)
    except (OSError, ValueError, SuetaError) as e:
        print(f"Ошибка импорта: {e}", file=sys.stderr)
        return 1
    finally:
        if store is not None:
            store.close()

    print_stats(stats, dry_run)
    return 0


if __name__ == "__main__":
    sys.exit(main())
