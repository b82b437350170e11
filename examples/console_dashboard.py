"""Terminal dashboard tailing a live feed.

Run with:
    python examples/console_dashboard.py [ws://host:port/ws/logs] [filter]

The optional filter is a service name or a severity (error, warn, ...).
"""

import asyncio
import logging
import sys

from dashfeed import FeedClient, FeedConfig, FilterCriteria, LogBufferHandler
from dashfeed.core.models import ConnectionStatus, LogRecord


def main() -> None:
    url = sys.argv[1] if len(sys.argv) > 1 else "ws://localhost:3001/ws/logs"
    criteria = FilterCriteria(source_or_level=sys.argv[2] if len(sys.argv) > 2 else "all")
    asyncio.run(run(FeedConfig(url=url), criteria))


async def run(config: FeedConfig, criteria: FilterCriteria) -> None:
    client = FeedClient(config)
    logging.getLogger("dashfeed").addHandler(
        LogBufferHandler(client.logs, source="dashboard", level=logging.WARNING)
    )

    def on_status(status: ConnectionStatus) -> None:
        indicator = "LIVE" if status.live else status.state.value.upper()
        suffix = f" ({status.error})" if status.error else ""
        print(f"[{indicator}]{suffix}")

    def on_log(record: LogRecord) -> None:
        if criteria.matches(record):
            stamp = record.timestamp.strftime("%H:%M:%S")
            print(f"{stamp} {record.severity.value:<5} {record.source:<14} {record.message}")

    def on_snapshot(snapshot) -> None:
        system = snapshot.get("system", {})
        cpu = system.get("cpu", {}).get("usage", 0)
        ram = system.get("ram", {}).get("percentage", 0)
        print(f"-- cpu {cpu}%  ram {ram}%")

    client.subscribe("status_change", on_status)
    client.subscribe("log_append", on_log)
    client.subscribe("model_change", on_snapshot)

    async with client:
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            pass


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
