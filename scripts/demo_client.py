#!/usr/bin/env python3
"""
Demo Client - Browser Extension Stand-in

Connects to the relay the way the browser extension does:
1. Receives CONNECTION_ESTABLISHED with its client id
2. Sends INIT (optionally with a session id) and receives SESSION_INIT
3. Reports a BROWSER_STATE snapshot
4. Sends each command typed on stdin as ANALYZE_TASK and prints the TASK_PLAN

Usage:
    python scripts/demo_client.py [--url ws://localhost:3000/ws] [--session my-session]
"""

import argparse
import asyncio
import json

import websockets


def print_plan(data: dict) -> None:
    steps = data.get("plan", {}).get("steps", [])
    print(f"\n📋 TASK_PLAN {data.get('taskId')} ({len(steps)} steps)")
    for i, step in enumerate(steps, 1):
        params = ", ".join(f"{k}={v!r}" for k, v in step.get("params", {}).items())
        print(f"   {i}. {step['action']}({params})")


async def receive_loop(ws) -> None:
    """Print every frame the relay sends."""
    async for raw in ws:
        data = json.loads(raw)
        msg_type = data.get("type")

        if msg_type == "TASK_PLAN":
            print_plan(data)
        elif msg_type == "ERROR":
            task = f" (task {data['taskId']})" if "taskId" in data else ""
            print(f"\n❌ ERROR{task}: {data.get('error')}")
        else:
            print(f"\n📨 {msg_type}: {data}")


async def read_commands(ws) -> None:
    """Send each line typed on stdin as an ANALYZE_TASK."""
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, input, "command> ")
        line = line.strip()
        if not line:
            continue
        if line in ("quit", "exit"):
            break
        await ws.send(json.dumps({"type": "ANALYZE_TASK", "task": line}))


async def main(url: str, session_id: str | None) -> None:
    print("=" * 70)
    print("🧭 PLAN RELAY DEMO CLIENT")
    print("=" * 70)
    print(f"Relay URL: {url}")

    async with websockets.connect(url) as ws:
        greeting = json.loads(await ws.recv())
        print(f"\n✅ Connected as {greeting.get('clientId')}")

        init = {"type": "INIT"}
        if session_id:
            init["sessionId"] = session_id
        await ws.send(json.dumps(init))
        await ws.send(json.dumps({
            "type": "BROWSER_STATE",
            "state": {"url": "about:blank", "title": "Demo client"},
        }))

        receiver = asyncio.create_task(receive_loop(ws))
        try:
            await read_commands(ws)
        except (EOFError, KeyboardInterrupt):
            pass
        finally:
            receiver.cancel()

    print("\n👋 Disconnected")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Interactive Plan Relay client")
    parser.add_argument("--url", default="ws://localhost:3000/ws")
    parser.add_argument("--session", default=None, help="Session id to send with INIT")
    args = parser.parse_args()

    try:
        asyncio.run(main(args.url, args.session))
    except KeyboardInterrupt:
        pass
