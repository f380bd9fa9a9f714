import requests
from requests import Response

from flippeer.broker.models import PeerResponse, PeersResponse
from flippeer.config import get_broker_api_url


class BrokerAPIClient:
    """
    API Client for the broker's peer listing.

    Connecting and relaying happens over the websocket, see `WebSocketTransport`.
    """

    def __init__(self, server_url: str | None = None) -> None:
        self.server_url = (server_url or get_broker_api_url()).rstrip("/")

    def _get(self, path: str) -> Response:
        response = requests.get(f"{self.server_url}{path}", timeout=10)
        response.raise_for_status()
        return response

    def list_peers(self) -> list[str]:
        response = self._get("/api/peers")
        return PeersResponse.model_validate_json(response.text).peers

    def get_peer(self, peer_id: str) -> PeerResponse | None:
        try:
            response = self._get(f"/api/peers/{peer_id}")
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                return None
            raise

        return PeerResponse.model_validate_json(response.text)

    def is_available(self, peer_id: str) -> bool:
        peer = self.get_peer(peer_id)
        return peer is not None and peer.connected_to is None
