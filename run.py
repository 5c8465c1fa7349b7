#!/usr/bin/env python3
"""
Точка входа для запуска бота.
- Фиксирует рабочую директорию на папку проекта (важно для относительных путей: ./bot.db и т.п.)
- Подключает src в sys.path
- Грузит переменные из .env (python-dotenv)
- Запускает main() через asyncio.run() с корректной обработкой сигналов
"""
import os
import sys
import signal
import asyncio
import contextlib
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent
os.chdir(BASE_DIR)

sys.path.insert(0, str(BASE_DIR / "src"))
load_dotenv(dotenv_path=BASE_DIR / ".env")

from chat_cleaner.main import main  # noqa: E402


async def _run():
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()

    for sig in (signal.SIGINT, signal.SIGTERM):
        # на Windows add_signal_handler не поддерживается
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    task = asyncio.create_task(main())
    stopper = asyncio.create_task(stop.wait())
    done, pending = await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)

    if task in done:
        stopper.cancel()
        # падение фонового цикла/поллинга валит весь процесс
        task.result()
        return

    task.cancel()
    with contextlib.suppress(asyncio.CancelledError, asyncio.TimeoutError):
        await asyncio.wait_for(task, timeout=10)


if __name__ == "__main__":
    asyncio.run(_run())
