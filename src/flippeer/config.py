import os
from dotenv import load_dotenv

load_dotenv()


def get_broker_url() -> str:
    return os.getenv("FLIPPEER_BROKER_URL", "ws://localhost:9000/ws")


def get_broker_api_url() -> str:
    return os.getenv("FLIPPEER_BROKER_API_URL", "http://localhost:9000")


def get_invite_base_url() -> str:
    return os.getenv("FLIPPEER_INVITE_BASE_URL", "http://localhost:9000/")


class BrokerServerConfig:
    def __init__(self) -> None:
        self.host = os.getenv("FLIPPEER_BROKER_HOST", "0.0.0.0")
        self.port = int(os.getenv("FLIPPEER_BROKER_PORT", "9000"))
