"""FastAPI server exposing quiz sessions to hosts and participants."""

from __future__ import annotations

import asyncio
import logging

from fastapi import Depends, FastAPI, HTTPException, Response, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
import uvicorn

from livequiz.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION
from livequiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from livequiz.constants.quiz_constants import EVENT_KEEPALIVE_SECONDS, EVENT_QUEUE_MAXSIZE
from livequiz.core.errors import InvalidStateError, NotFoundError
from livequiz.core.events import QuizEvent
from livequiz.core.markdown_math_renderer import renderer
from livequiz.core.quiz_manager import QuizManager
from livequiz.server.schemas import (
    ConnectedPayload,
    NicknamePayload,
    QuestionPayload,
    QuizSummary,
    SessionCreatedResponse,
    SessionPayload,
    event_payload,
    question_payload,
    quiz_summary,
    session_payload,
)

logger = logging.getLogger(__name__)

_UNKNOWN_SESSION_CLOSE_CODE = 4404
_SLOW_CLIENT_CLOSE_CODE = 1008


class WebSocketSink:
    """Event sink that hands events from session threads to one WebSocket.

    The broadcaster calls the sink while a session lock is held, so the sink
    only schedules the payload onto the connection's event loop. A client
    that falls ``maxsize`` events behind has its stream closed.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int = EVENT_QUEUE_MAXSIZE) -> None:
        self._loop = loop
        self._maxsize = maxsize
        # one extra slot keeps room for the None end-of-stream marker
        self._queue: asyncio.Queue[dict[str, object] | None] = asyncio.Queue(maxsize=maxsize + 1)
        self._closed = False
        self.overflowed = False

    def __call__(self, event: QuizEvent) -> None:
        self._loop.call_soon_threadsafe(self._enqueue, event_payload(event))

    def _enqueue(self, payload: dict[str, object]) -> None:
        if self._closed:
            return
        if self._queue.qsize() >= self._maxsize:
            logger.warning(
                "Event stream client is %d events behind (%s #%s dropped); closing it",
                self._maxsize,
                payload["type"],
                payload["sequence"],
            )
            self.overflowed = True
            while not self._queue.empty():
                self._queue.get_nowait()
            self.close()
            return
        self._queue.put_nowait(payload)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def next_payload(self, timeout: float) -> dict[str, object] | None:
        """Return the next message to send, a keepalive after ``timeout`` idle
        seconds, or None once the stream is closed."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return {"type": "keepalive"}


async def _watch_disconnect(websocket: WebSocket, sink: WebSocketSink) -> None:
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        sink.close()


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def create_api_app(quiz_manager: QuizManager, keepalive_seconds: float = EVENT_KEEPALIVE_SECONDS) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, description=APP_ABOUT_TEXT)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.get("/quizzes")
    def list_quizzes(
        owner: str | None = None,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[QuizSummary]:
        return [quiz_summary(quiz) for quiz in manager.list_quizzes(owner)]

    @app.post("/quizzes/{quiz_id}/sessions", status_code=201)
    def create_session(
        quiz_id: int,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> SessionCreatedResponse:
        try:
            session_id = manager.create_session(quiz_id)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return SessionCreatedResponse(session_id=session_id)

    @app.get("/sessions/{session_id}")
    def get_session(
        session_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> SessionPayload:
        try:
            snapshot = manager.get_session_snapshot(session_id)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return session_payload(snapshot)

    @app.post("/sessions/{session_id}/start")
    def start_session(
        session_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> SessionPayload:
        try:
            snapshot = manager.start_session(session_id)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except InvalidStateError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return session_payload(snapshot)

    @app.get("/sessions/{session_id}/question")
    def get_question(
        session_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> QuestionPayload:
        try:
            running = manager.get_running_question(session_id)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        if running is None:
            raise HTTPException(status_code=409, detail="Session is not running.")
        fragment = renderer.render_fragment(running.question.text)
        return question_payload(session_id, running, fragment)

    @app.post("/sessions/{session_id}/participants")
    def add_participant(
        session_id: str,
        payload: NicknamePayload,
        response: Response,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            admitted = manager.add_participant(session_id, payload.nickname)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        response.status_code = 201 if admitted else 400
        return {"admitted": admitted, "nickname": payload.nickname.strip()}

    @app.post("/sessions/{session_id}/participants/{nickname}/answers/{answer_id}")
    def submit_answer(
        session_id: str,
        nickname: str,
        answer_id: int,
        response: Response,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            accepted = manager.submit_answer(session_id, nickname, answer_id)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        response.status_code = 202 if accepted else 400
        return {"accepted": accepted}

    @app.websocket("/sessions/{session_id}/events")
    async def session_events(websocket: WebSocket, session_id: str) -> None:
        sink = WebSocketSink(asyncio.get_running_loop())
        try:
            subscription = await run_in_threadpool(quiz_manager.subscribe, session_id, sink)
        except NotFoundError:
            await websocket.close(code=_UNKNOWN_SESSION_CLOSE_CODE)
            return

        watcher: asyncio.Task[None] | None = None
        try:
            await websocket.accept()
            snapshot = await run_in_threadpool(quiz_manager.get_session_snapshot, session_id)
            connected = ConnectedPayload(session=session_payload(snapshot))
            await websocket.send_json(connected.model_dump(mode="json"))
            watcher = asyncio.create_task(_watch_disconnect(websocket, sink))
            while True:
                payload = await sink.next_payload(keepalive_seconds)
                if payload is None:
                    break
                await websocket.send_json(payload)
            if sink.overflowed:
                await websocket.close(code=_SLOW_CLIENT_CLOSE_CODE)
        except WebSocketDisconnect:
            pass
        finally:
            subscription.cancel()
            if watcher is not None:
                watcher.cancel()
        logger.debug("Event stream client of session %s disconnected", session_id)

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API with uvicorn until the process is stopped."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
