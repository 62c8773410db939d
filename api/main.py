# Local live view: camera frames + pose feedback over a WebSocket.

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
import cv2
import logging
import json
import base64
import asyncio
from typing import Dict

from fastapi.middleware.cors import CORSMiddleware

from posecoach.config import CAMERA_ID, FRAME_DELAY_S, HOST, JPEG_QUALITY, PORT
from posecoach.session import DetectionSession
from posecoach.templates import list_templates
from posecoach.types import PoseMode

logger = logging.getLogger(__name__)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Connection manager for WebSockets
class ConnectionManager:
    def __init__(self, session_factory=DetectionSession, capture_factory=cv2.VideoCapture):
        self.active_connections: Dict[str, WebSocket] = {}
        self.processing_tasks: Dict[str, asyncio.Task] = {}
        self.sessions: Dict[str, DetectionSession] = {}
        self.session_factory = session_factory
        self.capture_factory = capture_factory

    async def connect(self, websocket: WebSocket, client_id: str):
        await websocket.accept()
        self.active_connections[client_id] = websocket

    def disconnect(self, client_id: str):
        if client_id in self.active_connections:
            del self.active_connections[client_id]
        if client_id in self.processing_tasks:
            self.processing_tasks[client_id].cancel()
            del self.processing_tasks[client_id]
        self.sessions.pop(client_id, None)

    async def start_processing(self, client_id: str, mode: str, pose_id=None):
        # Switching target on a running session keeps the loaded model
        session = self.sessions.get(client_id)
        task = self.processing_tasks.get(client_id)
        if session is not None and task is not None and not task.done():
            session.set_target(mode, pose_id)
            return

        session = self.session_factory(mode=mode, template_id=pose_id)
        self.sessions[client_id] = session
        task = asyncio.create_task(self.process_frames(client_id, session))
        self.processing_tasks[client_id] = task

    async def process_frames(self, client_id: str, session: DetectionSession):
        """Stream camera frames to the client and run detection at the session's cadence"""
        if client_id not in self.active_connections:
            return

        websocket = self.active_connections[client_id]

        # Open a webcam for this client
        cap = self.capture_factory(CAMERA_ID)
        if not cap.isOpened():
            await websocket.send_json({"error": "Could not open webcam"})
            return

        pending = set()
        try:
            session.start()
            while client_id in self.active_connections:
                ret, frame = cap.read()
                if not ret:
                    await asyncio.sleep(0.01)
                    continue

                # Flip frame horizontally for a mirror view
                frame = cv2.flip(frame, 1)

                if session.due():
                    task = asyncio.create_task(session.tick(frame))
                    pending.add(task)
                    task.add_done_callback(pending.discard)

                _, buffer = cv2.imencode('.jpg', frame, [cv2.IMWRITE_JPEG_QUALITY, JPEG_QUALITY])
                frame_base64 = base64.b64encode(buffer).decode('utf-8')

                await websocket.send_json({
                    "frame": frame_base64,
                    "feedback": session.latest.to_dict() if session.latest else None,
                })

                # Small delay to control frame rate
                await asyncio.sleep(FRAME_DELAY_S)

        except (WebSocketDisconnect, RuntimeError):
            logger.info("Client %s went away", client_id)
        finally:
            for task in pending:
                task.cancel()
            cap.release()
            # The worker thread outlives a cancelled tick; release the model after it
            await session.aclose()
            if self.sessions.get(client_id) is session:
                del self.sessions[client_id]


manager = ConnectionManager()


@app.websocket("/ws/{client_id}")
async def websocket_endpoint(websocket: WebSocket, client_id: str):
    await manager.connect(websocket, client_id)
    try:
        while True:
            data = await websocket.receive_text()
            try:
                json_data = json.loads(data)
            except json.JSONDecodeError:
                continue
            if not isinstance(json_data, dict):
                continue
            if json_data.get("command") == "stop":
                manager.disconnect(client_id)
                break
            if "mode" in json_data or "pose_id" in json_data:
                try:
                    await manager.start_processing(
                        client_id,
                        json_data.get("mode", PoseMode.FITNESS.value),
                        json_data.get("pose_id"),
                    )
                except (KeyError, ValueError) as e:
                    await websocket.send_json({"error": str(e)})
    except WebSocketDisconnect:
        manager.disconnect(client_id)


@app.get("/poses")
async def poses():
    """Reference pose catalog, in display order"""
    return JSONResponse([t.to_dict() for t in list_templates()])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=HOST, port=PORT)
