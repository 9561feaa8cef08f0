"""
Backend startup script
Sets the Windows event loop policy before uvicorn starts (Playwright
needs the Proactor loop there).
"""
import asyncio
import sys

if sys.platform == 'win32':
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

import uvicorn

from autocart.core.logging_config import setup_logger


def main():
    setup_logger('autocart')
    uvicorn.run(
        "autocart.backend.main:app",
        host="127.0.0.1",
        port=8000,
        log_level="info",
    )


if __name__ == "__main__":
    main()
