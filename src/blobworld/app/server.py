from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..config import SimulationConfig
from ..exceptions import PersistenceError, TickError
from ..sim.core.persistence import load_state, save_state
from ..sim.core.world import World

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1):
        self.config = config
        self.world = World(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.tick = 0
        self.speed_multiplier = 1.0
        self.last_error: str | None = None
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque()
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return not self.world.state.paused

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._loop())

    async def toggle_pause(self) -> bool:
        async with self._lock:
            return self.world.state.toggle_pause()

    async def set_running(self, running: bool) -> None:
        async with self._lock:
            if running:
                self.world.state.resume()
            else:
                self.world.state.pause()

    async def save(self, directory: Path) -> Path:
        async with self._lock:
            return save_state(self.world, directory)

    async def load(self, directory: Path) -> None:
        async with self._lock:
            load_state(self.world, directory)
        await self._broadcast_snapshot()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(1.0 / (60.0 * self.speed_multiplier))
            if not self.running:
                continue
            if await self.advance() and self.tick % self.broadcast_interval == 0:
                await self._broadcast_snapshot()

    async def advance(self) -> bool:
        """Run one tick. A failed tick pauses the simulation and is kept in ``last_error``."""
        async with self._lock:
            try:
                self.world.step(self.tick)
            except TickError as exc:
                logger.exception("tick %d failed; simulation paused", self.tick)
                self.world.state.pause()
                self.last_error = str(exc)
                return False
            self.last_error = None
            self.tick += 1
        return True

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.world.snapshot(self.tick)
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics),
                "agents": snapshot.agents,
                "food": snapshot.food,
                "arena": asdict(snapshot.arena),
                "metadata": asdict(snapshot.metadata),
            },
        }
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(payload))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.tick > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.tick
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        queued = self._serialize_snapshot()
        async with self._queue_lock:
            self._snapshot_queue.append(queued)
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await self._send_pending_snapshots(client)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)


app = FastAPI(title="Blobworld Simulation")
controller = SimulationController(SimulationConfig())


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.on_event("shutdown")
async def _shutdown() -> None:
    controller.world.close()


@app.get("/api/status")
async def status() -> JSONResponse:
    snapshot = controller.world.snapshot(controller.tick)
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "generation": controller.world.state.generation,
            "best_fitness": controller.world.state.best_fitness,
            "population": len(controller.world.agents),
            "metrics": asdict(snapshot.metrics),
            "error": controller.last_error,
        }
    )


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    await controller.set_running(True)
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    await controller.set_running(False)
    return JSONResponse({"running": False})


@app.post("/api/control/toggle")
async def toggle_simulation() -> JSONResponse:
    paused = await controller.toggle_pause()
    return JSONResponse({"running": not paused})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.post("/api/state/save")
async def save_simulation() -> JSONResponse:
    try:
        target = await controller.save(Path(controller.config.save_dir))
    except PersistenceError as exc:
        logger.error("save failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return JSONResponse({"saved": str(target), "generation": controller.world.state.generation})


@app.post("/api/state/load")
async def load_simulation() -> JSONResponse:
    try:
        await controller.load(Path(controller.config.save_dir))
    except PersistenceError as exc:
        logger.error("load failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return JSONResponse(
        {"generation": controller.world.state.generation, "best_fitness": controller.world.state.best_fitness}
    )


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
    await controller._send_pending_snapshots(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                continue
            if payload.get("type") == "ack":
                tick = payload.get("tick")
                if isinstance(tick, int):
                    await controller.acknowledge(tick)
    except WebSocketDisconnect:
        controller.clients.discard(websocket)
        controller._client_last_sent.pop(websocket, None)


__all__ = ["app", "controller"]
