"""
FastAPI control API for the cart automation
Start / stop a run, read the persisted state and manage the processed
product list. The state lives in the same SQLite database the CLI uses,
so a run started from a terminal can be stopped here.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from autocart import __version__
from autocart.backend.models import AutomationStatus, ProcessedResponse, StartRequest, StateResponse
from autocart.core.config import AutoCartConfig
from autocart.main import build_coordinator
from autocart.runner import AutoCartRunner
from autocart.state.coordinator import Coordinator, CoordinatorClient

logger = logging.getLogger(__name__)

RunnerFactory = Callable[[], AutoCartRunner]


def create_app(coordinator: Coordinator, runner_factory: Optional[RunnerFactory] = None) -> FastAPI:
    """
    Build the API over `coordinator`. Without a runner factory, start only
    flips the persisted state (a browser elsewhere picks it up).
    """
    app = FastAPI(title="autocart API", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    client = CoordinatorClient(coordinator)
    tasks: Dict[str, asyncio.Task] = {}

    def browser_active() -> bool:
        task = tasks.get('run')
        return task is not None and not task.done()

    async def drive_browser():
        runner = runner_factory()
        try:
            await runner.run(already_started=True)
        except Exception as e:
            logger.error(f"API: browser run failed: {e}")
        finally:
            await runner.close()

    @app.get("/")
    async def root():
        return {"message": "autocart API is running", "version": __version__}

    @app.get("/api/state", response_model=StateResponse)
    async def get_state():
        state = await client.get_state()
        return StateResponse(
            **state.model_dump(),
            processed_products=len(coordinator.tracker),
            browser_active=browser_active(),
        )

    @app.post("/api/automation/start", response_model=AutomationStatus)
    async def start_automation(request: StartRequest):
        """Start a run (clears the processed list)"""
        if browser_active():
            raise HTTPException(status_code=409, detail="A run is already in progress")

        state = await client.start(request.keyword)
        if runner_factory is not None:
            # Run automation in background
            tasks['run'] = asyncio.create_task(drive_browser())
        return AutomationStatus(success=True, state=state.model_dump())

    @app.post("/api/automation/stop", response_model=AutomationStatus)
    async def stop_automation():
        state = await client.stop()
        return AutomationStatus(success=True, state=state.model_dump())

    @app.get("/api/processed", response_model=ProcessedResponse)
    async def list_processed():
        product_ids = coordinator.tracker.processed_ids()
        return ProcessedResponse(count=len(product_ids), product_ids=product_ids)

    @app.delete("/api/processed")
    async def clear_processed():
        return {"success": True, "cleared": await client.clear_processed()}

    @app.get("/api/config")
    async def get_config() -> Dict[str, Any]:
        return await client.get_config()

    @app.get("/api/logs")
    async def get_logs() -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in coordinator.activity_log.entries()]

    @app.websocket("/ws/events")
    async def websocket_events(websocket: WebSocket):
        """Real-time STATE_UPDATE and LOG messages"""
        await websocket.accept()
        unsubscribe = coordinator.subscribe(websocket.send_json)
        try:
            while True:
                # Keep connection alive
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            unsubscribe()

    @app.on_event("shutdown")
    async def shutdown_event():
        """Stop a background run on shutdown"""
        if browser_active():
            await client.stop()
            task = tasks['run']
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.info("API: background run cancelled")

    return app


def build_default_app() -> FastAPI:
    config = AutoCartConfig.from_env()
    coordinator = build_coordinator(config)
    return create_app(coordinator, runner_factory=lambda: AutoCartRunner(coordinator, config))


app = build_default_app()
