"""Demo feed server pushing simulated metrics and log lines.

Run with:
    python examples/demo_feed_server.py

Then point a client at ws://localhost:3001/ws/logs.
"""

import asyncio
import json
import random
from datetime import UTC, datetime

from websockets.asyncio.server import ServerConnection, serve
from websockets.exceptions import ConnectionClosed

HOST = "localhost"
PORT = 3001

SERVICES = ["n8n", "n8n-worker-1", "n8n-worker-2", "redis", "postgres"]
MESSAGES = [
    "Workflow execution started: Invoice Processing",
    "Processing job 12345",
    "Connected clients: 5",
    "Rate limit approaching for API calls",
    "Job completed successfully",
    "Error: connection to upstream timed out",
    "debug: cache hit ratio 0.93",
]


def _snapshot() -> dict:
    ram_total = 16384
    ram_used = random.randint(4000, 15000)
    return {
        "system": {
            "disk": {"total": "100G", "used": "61G", "available": "39G", "percentage": 61},
            "ram": {
                "total": ram_total,
                "used": ram_used,
                "free": ram_total - ram_used,
                "percentage": round(ram_used / ram_total * 100),
            },
            "cpu": {"usage": round(random.uniform(2, 95), 1)},
        },
        "redisQueues": {
            "queues": {
                "waiting": random.randint(0, 40),
                "active": random.randint(0, 8),
                "completed": random.randint(1000, 2000),
                "failed": random.randint(0, 5),
                "delayed": 0,
                "paused": 0,
                "total": 0,
            },
            "memoryPerQueue": {},
        },
        "alerts": [],
    }


async def _stream_metrics(ws: ServerConnection) -> None:
    while True:
        await ws.send(json.dumps({"type": "metrics", "data": _snapshot()}))
        await asyncio.sleep(2)


async def _stream_logs(ws: ServerConnection) -> None:
    while True:
        await ws.send(
            json.dumps(
                {
                    "type": "log",
                    "timestamp": datetime.now(UTC).isoformat(),
                    "service": random.choice(SERVICES),
                    "message": random.choice(MESSAGES),
                }
            )
        )
        await asyncio.sleep(random.uniform(0.05, 0.6))


async def handler(ws: ServerConnection) -> None:
    streams: dict[str, asyncio.Task[None]] = {}
    try:
        async for raw in ws:
            action = json.loads(raw).get("action", "")
            if action == "start_monitoring" and "metrics" not in streams:
                await ws.send(json.dumps({"type": "connected"}))
                streams["metrics"] = asyncio.create_task(_stream_metrics(ws))
            elif action == "start_logs" and "logs" not in streams:
                streams["logs"] = asyncio.create_task(_stream_logs(ws))
            elif action == "stop_monitoring" and "metrics" in streams:
                streams.pop("metrics").cancel()
            elif action == "stop_logs" and "logs" in streams:
                streams.pop("logs").cancel()
    except ConnectionClosed:
        pass
    finally:
        for task in streams.values():
            task.cancel()


async def main() -> None:
    async with serve(handler, HOST, PORT) as server:
        print(f"Demo feed on ws://{HOST}:{PORT}/ws/logs")
        await server.serve_forever()


if __name__ == "__main__":
    asyncio.run(main())
