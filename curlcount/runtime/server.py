from __future__ import annotations
import asyncio
import json
import logging
from dataclasses import asdict
from typing import Optional, Set

from fastapi import FastAPI, File, HTTPException, UploadFile, WebSocket, WebSocketDisconnect, status
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from curlcount.common.errors import EmptyDataError, InvalidStateError, MalformedInputError
from curlcount.common.events import EventType, PoseLabel
from curlcount.counter.classifier import PoseClassifier
from curlcount.counter.samples import dumps_samples, export_filename, loads_samples
from curlcount.counter.session import RepSessionManager
from curlcount.runtime.schemas import FrameMessage
from curlcount.training.trainer import save_model, train_classifier

log = logging.getLogger(__name__)


def _conflict(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


def create_app(manager: Optional[RepSessionManager] = None) -> FastAPI:
    app = FastAPI(title="curlcount")
    mgr = manager or RepSessionManager()
    app.state.manager = mgr
    ws_clients: Set[WebSocket] = set()

    async def broadcast(obj: dict):
        dead = []
        for ws in list(ws_clients):
            try:
                await ws.send_text(json.dumps(obj))
            except Exception:
                dead.append(ws)
        for d in dead:
            ws_clients.discard(d)

    # let the manager push rep/feedback events to all WS clients
    def _sink(ev: dict):
        try:
            asyncio.get_running_loop().create_task(broadcast(ev))
        except RuntimeError:
            log.debug("no running loop; dropped %s event", ev.get("type"))

    mgr.set_event_sink(_sink)

    @app.get("/health")
    async def health():
        return {"status": "ok", "model_ready": mgr.classifier.is_ready}

    @app.get("/sessions/current")
    async def current():
        return JSONResponse(asdict(mgr.status()))

    # Workout

    @app.post("/workout/start")
    async def workout_start(username: str):
        try:
            sid = mgr.start_workout(username)
        except InvalidStateError as e:
            raise _conflict(e)
        return {"workout_id": sid, "username": mgr.username}

    @app.post("/workout/stop")
    async def workout_stop():
        try:
            summary = mgr.stop_workout()
        except InvalidStateError as e:
            raise _conflict(e)
        return asdict(summary)

    # Sample collection

    @app.post("/collect/start")
    async def collect_start(label: Optional[PoseLabel] = None):
        try:
            mgr.start_collecting(label)
        except InvalidStateError as e:
            raise _conflict(e)
        return {"collecting": True, "label": mgr.collector.label.value}

    @app.post("/collect/stop")
    async def collect_stop():
        try:
            n = mgr.stop_collecting()
        except InvalidStateError as e:
            raise _conflict(e)
        return {"collecting": False, "samples": n}

    @app.post("/collect/label")
    async def collect_label(label: PoseLabel):
        try:
            mgr.set_label(label)
        except InvalidStateError as e:
            raise _conflict(e)
        return {"label": mgr.collector.label.value}

    @app.get("/collect/export")
    async def collect_export():
        try:
            samples = mgr.export_samples()
        except EmptyDataError as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
        filename = export_filename(samples.label)
        return Response(
            content=dumps_samples(samples),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    # Leaderboard / training

    @app.get("/leaderboard")
    async def leaderboard(limit: Optional[int] = None):
        return [asdict(e) for e in mgr.leaderboard.top(limit)]

    @app.post("/train")
    async def train(up: UploadFile = File(...), down: UploadFile = File(...)):
        try:
            up_set = loads_samples(await up.read())
            down_set = loads_samples(await down.read())
            model, report = await asyncio.to_thread(train_classifier, up_set, down_set)
        except EmptyDataError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        except MalformedInputError as e:
            raise HTTPException(status_code=422, detail=str(e))
        save_model(model, mgr.settings.model_path)
        mgr.set_classifier(PoseClassifier(model))
        return report.to_dict()

    # Websockets

    @app.websocket("/ws/landmarks")
    async def ws_landmarks(ws: WebSocket):
        await ws.accept()
        ws_clients.add(ws)
        try:
            while True:
                raw = await ws.receive_text()
                try:
                    msg = FrameMessage.model_validate_json(raw)
                except ValidationError:
                    log.debug("dropped malformed frame message")
                    continue
                if msg.type == "landmarks":
                    if mgr.collector.is_collecting:
                        n = mgr.submit_frame(msg.landmarks)
                        await ws.send_text(json.dumps({"type": "samples", "count": n}))
                    else:
                        mgr.push_landmarks(msg.landmarks, msg.frame_ts())
                elif msg.pose is not None:
                    mgr.push_label(PoseLabel(msg.pose), msg.frame_ts())
        except WebSocketDisconnect:
            pass
        finally:
            ws_clients.discard(ws)

    @app.websocket("/ws/leaderboard")
    async def ws_leaderboard(ws: WebSocket):
        await ws.accept()
        loop = asyncio.get_running_loop()

        def _push(entries):
            payload = {"type": EventType.LEADERBOARD.value, "entries": [asdict(e) for e in entries]}
            asyncio.run_coroutine_threadsafe(ws.send_text(json.dumps(payload)), loop)

        unsubscribe = mgr.leaderboard.subscribe(_push)
        try:
            while True:
                await ws.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            unsubscribe()

    return app
