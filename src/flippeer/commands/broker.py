import uvicorn
from typing import Optional

from flippeer.config import BrokerServerConfig


def run_broker(host: Optional[str], port: Optional[int]) -> None:
    config = BrokerServerConfig()

    uvicorn.run(
        "flippeer.broker.server:app",
        host=host or config.host,
        port=port or config.port,
    )
