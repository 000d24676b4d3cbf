"""Innertube client identities presented to the player endpoint."""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .models import PLAYER_PARAMS, THIRD_PARTY_EMBED_URL


@dataclass(frozen=True)
class ClientIdentity:
    """Immutable description of a simulated client.

    The ``with_*`` methods never mutate; each returns a copy with one field
    overridden, so the canonical identities below can be shared freely.
    """
    name: str
    client_name: str
    client_version: str
    client_id: int
    user_agent: Optional[str] = None
    client_fields: Mapping[str, Any] = field(default_factory=dict)
    root_fields: Mapping[str, Any] = field(default_factory=dict)
    third_party_embed_url: Optional[str] = None
    signature_timestamp: Optional[int] = None

    def __post_init__(self) -> None:
        # Canonical identities are shared, so the field maps are read-only views
        object.__setattr__(self, "client_fields", MappingProxyType(dict(self.client_fields)))
        object.__setattr__(self, "root_fields", MappingProxyType(dict(self.root_fields)))

    def with_client_field(self, key: str, value: Any) -> "ClientIdentity":
        return replace(self, client_fields={**self.client_fields, key: value})

    def with_root_field(self, key: str, value: Any) -> "ClientIdentity":
        return replace(self, root_fields={**self.root_fields, key: value})

    def with_third_party_embed_url(self, url: str) -> "ClientIdentity":
        return replace(self, third_party_embed_url=url)

    def with_playback_signature_timestamp(self, timestamp: Optional[int]) -> "ClientIdentity":
        return replace(self, signature_timestamp=timestamp)

    def to_payload(self) -> Dict[str, Any]:
        """Render the JSON body for a player request."""
        client: Dict[str, Any] = {
            "clientName": self.client_name,
            "clientVersion": self.client_version,
            "hl": "en",
            "gl": "US",
        }
        if self.user_agent:
            client["userAgent"] = self.user_agent
        client.update(self.client_fields)

        context: Dict[str, Any] = {"client": client}
        if self.third_party_embed_url:
            context["thirdParty"] = {"embedUrl": self.third_party_embed_url}

        payload: Dict[str, Any] = {"context": context}
        if self.signature_timestamp is not None:
            payload["playbackContext"] = {
                "contentPlaybackContext": {"signatureTimestamp": self.signature_timestamp}
            }
        payload.update(self.root_fields)
        return payload

    def request_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-YouTube-Client-Name": str(self.client_id),
            "X-YouTube-Client-Version": self.client_version,
        }
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        return headers


ANDROID = ClientIdentity(
    name="android",
    client_name="ANDROID",
    client_version="20.10.38",
    client_id=3,
    user_agent="com.google.android.youtube/20.10.38 (Linux; U; Android 11) gzip",
    client_fields={"androidSdkVersion": 30, "osName": "Android", "osVersion": "11"},
)

WEB = ClientIdentity(
    name="web",
    client_name="WEB",
    client_version="2.20250312.04.00",
    client_id=1,
    user_agent=(
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
)

TV_EMBEDDED = ClientIdentity(
    name="tv_embedded",
    client_name="TVHTML5_SIMPLY_EMBEDDED_PLAYER",
    client_version="2.0",
    client_id=85,
    client_fields={"clientScreen": "EMBED"},
    third_party_embed_url="https://www.youtube.com",
)

CLIENT_IDENTITIES: Dict[str, ClientIdentity] = {
    identity.name: identity for identity in (ANDROID, WEB, TV_EMBEDDED)
}

CLIENT_CHOICES: Tuple[str, ...] = tuple(CLIENT_IDENTITIES)


def default_identity() -> ClientIdentity:
    """Identity every resolution starts with: embedded Android plus bypass params."""
    return (
        ANDROID.with_client_field("clientScreen", "EMBED")
        .with_third_party_embed_url(THIRD_PARTY_EMBED_URL)
        .with_root_field("params", PLAYER_PARAMS)
    )


def embedded_web_identity() -> ClientIdentity:
    """Identity used after the player endpoint rejects the default payload."""
    return WEB.with_client_field("clientScreen", "EMBED").with_third_party_embed_url(THIRD_PARTY_EMBED_URL)


def get_identity(name: str) -> ClientIdentity:
    try:
        return CLIENT_IDENTITIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown client identity '{name}'. Choose from: {', '.join(CLIENT_CHOICES)}"
        ) from None
