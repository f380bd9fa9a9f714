from fastapi import Depends, FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from flippeer.broker import WEBSOCKET_PATH
from flippeer.broker.models import (
    CloseAction,
    ConnectAction,
    ErrorEvent,
    PeerResponse,
    PeersResponse,
    SendAction,
    client_frame_adapter,
)
from flippeer.broker.registry import Broker, Outbound, UnknownPeer


class ServerState:
    def __init__(self) -> None:
        self.broker = Broker()
        self.sockets: dict[str, WebSocket] = {}

    async def send_all(self, outbound: list[Outbound]) -> None:
        for peer_id, frame in outbound:
            try:
                websocket = self.sockets[peer_id]
            except KeyError:
                # Peer disconnected, its own cleanup handles the rest.
                continue

            try:
                await websocket.send_text(frame.model_dump_json())
            except WebSocketDisconnect:
                # Dead socket, only its own handler unregisters it.
                continue


def get_server_state() -> ServerState:
    """Dependency that provides the server state"""
    return server_state


app = FastAPI()
server_state = ServerState()


@app.get("/api/peers")
async def get_peers(
    state: ServerState = Depends(get_server_state),
) -> PeersResponse:
    return PeersResponse(peers=sorted(state.broker.peers))


@app.get("/api/peers/{peer_id}")
async def get_peer(
    peer_id: str,
    state: ServerState = Depends(get_server_state),
) -> PeerResponse:
    try:
        connected_to = state.broker.linked_peer(peer_id)
    except UnknownPeer:
        raise HTTPException(status_code=404, detail=f"Peer {peer_id} not found")

    return PeerResponse(id=peer_id, connected_to=connected_to)


@app.websocket(WEBSOCKET_PATH)
async def peer_socket(
    websocket: WebSocket,
    state: ServerState = Depends(get_server_state),
) -> None:
    await websocket.accept()

    peer_id, outbound = state.broker.register()
    state.sockets[peer_id] = websocket
    print(f"Registered peer {peer_id}")

    await state.send_all(outbound)

    try:
        while True:
            text = await websocket.receive_text()

            try:
                frame = client_frame_adapter.validate_json(text)
            except ValidationError as e:
                error = ErrorEvent(detail=f"Invalid frame: {e.error_count()} error(s)")
                await websocket.send_text(error.model_dump_json())
                continue

            if isinstance(frame, ConnectAction):
                outbound = state.broker.connect(peer_id, frame.target)
            elif isinstance(frame, SendAction):
                outbound = state.broker.relay(peer_id, frame.payload)
            elif isinstance(frame, CloseAction):
                outbound = state.broker.close(peer_id)

            await state.send_all(outbound)

    except WebSocketDisconnect:
        pass

    finally:
        del state.sockets[peer_id]
        outbound = state.broker.unregister(peer_id)
        print(f"Unregistered peer {peer_id}")
        await state.send_all(outbound)
