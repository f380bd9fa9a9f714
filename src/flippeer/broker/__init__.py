# Number of random bytes in a generated peer id.
PEER_ID_BYTES = 6

# Path of the websocket endpoint on the broker server.
WEBSOCKET_PATH = "/ws"
