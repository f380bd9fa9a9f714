from typing import Optional
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

OPPONENT_PARAM = "opponent"


def build_invite_link(base_url: str, peer_id: str) -> str:
    """Link that pre-fills `peer_id` as the opponent for whoever opens it."""
    parts = urlsplit(base_url)

    query = parse_qs(parts.query, keep_blank_values=True)
    query[OPPONENT_PARAM] = [peer_id]

    return urlunsplit(parts._replace(query=urlencode(query, doseq=True)))


def parse_invite_link(url: str) -> Optional[str]:
    query = parse_qs(urlsplit(url).query)

    try:
        peer_id = query[OPPONENT_PARAM][0].strip()
    except (KeyError, IndexError):
        return None

    return peer_id or None
