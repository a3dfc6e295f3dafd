"""Diagnostics command for notesync CLI."""

import asyncio

from ...core.config import Config
from ...services import DiagnosticsReport, run_diagnostics
from ...store import NoteStore


def handle_diagnose(args, config: Config) -> None:
    """Run store diagnostics and print the report."""
    asyncio.run(_handle_diagnose_async(config))


async def _handle_diagnose_async(config: Config) -> None:
    async with NoteStore(config) as store:
        report = await run_diagnostics(store)
    _print_report(config, report)


def _print_report(config: Config, report: DiagnosticsReport) -> None:
    print("notesync Diagnostics")
    print("=" * 50)
    print(f"Store: {config.db_path}")
    print(f"Read/Write: {'OK' if report.readable and report.writable else 'FAILED'}")
    if report.free_bytes is not None:
        print(f"Available disk space: {report.free_bytes} bytes")
    if report.file_size is not None:
        print(f"File size: {report.file_size} bytes")
    for name, value in report.settings.items():
        print(f"{name}: {value}")
    print(f"Test write: {'OK' if report.write_ok else 'FAILED'}")

    if report.problems:
        print()
        print("Problems:")
        for problem in report.problems:
            print(f"  - {problem}")
