"""Request/response channel to the remote proof engine."""

import asyncio
import logging
from typing import Any

import websockets
from pydantic import ValidationError

from proofplay.client.messages import ClientRequest, RequestName, ServerResponse, build_path
from proofplay.core.result import Result

logger = logging.getLogger(__name__)


class Transport:
    """Sends a named command to the proof engine and returns its payload.

    Implementations never raise for a failed request: the reply status,
    connection problems and malformed replies all come back as Result.err.
    """

    async def send(self, request: RequestName, *params: Any) -> Result[dict[str, Any]]:
        raise NotImplementedError

    async def close(self) -> None:
        """Release the underlying connection, if any."""


class WebSocketTransport(Transport):
    """Transport speaking JSON over a single WebSocket connection.

    Each request is one message {"request": name, "path": path}, answered by
    one ServerResponse message. Requests are serialized, and the connection is
    dropped after a timeout, so replies cannot be matched with the wrong
    request.
    """

    def __init__(self, uri: str, timeout: float = 10.0):
        self.uri = uri
        self.timeout = timeout
        self._websocket = None
        self._lock = asyncio.Lock()

    async def send(self, request: RequestName, *params: Any) -> Result[dict[str, Any]]:
        message = ClientRequest(request=request, path=build_path(*params))
        async with self._lock:
            try:
                websocket = await self._connect()
                await websocket.send(message.model_dump_json())
                raw = await asyncio.wait_for(websocket.recv(), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"{request.value} timed out after {self.timeout}s")
                # A late reply must not be read as the answer to the next request
                await self._discard()
                return Result.err(f"No reply from server for {request.value}")
            except websockets.exceptions.ConnectionClosed:
                logger.warning(f"Connection closed during {request.value}")
                self._websocket = None
                return Result.err("Connection closed by server")
            except websockets.exceptions.WebSocketException as e:
                logger.error(f"WebSocket error during {request.value}: {e}")
                await self._discard()
                return Result.err(f"Could not talk to server at {self.uri}: {e}")
            except OSError as e:
                logger.error(f"Could not reach server at {self.uri}: {e}")
                self._websocket = None
                return Result.err(f"Could not connect to server at {self.uri}")

        try:
            response = ServerResponse.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Invalid reply to {request.value}: {e}")
            return Result.err(f"Invalid reply from server for {request.value}")

        logger.debug(f"{request.value}{message.path} -> {response.status}")
        if not response.is_success:
            return Result.err(response.message or f"{request.value} failed")
        return Result.ok(response.data)

    async def close(self) -> None:
        await self._discard()

    async def _discard(self) -> None:
        websocket, self._websocket = self._websocket, None
        if websocket is not None:
            await websocket.close()

    async def _connect(self):
        if self._websocket is None:
            logger.info(f"Connecting to {self.uri}")
            self._websocket = await websockets.connect(self.uri)
        return self._websocket
