"""
Broadcast result model built from the platform's creation response.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class BroadcastResult(BaseModel):
    """A created live broadcast plus the information surfaced to operators."""

    broadcast_id: str = Field(..., description="YouTube broadcast (video) ID")
    title: str
    description: str = ""
    scheduled_start_time: Optional[str] = None
    privacy_status: Optional[str] = None
    life_cycle_status: Optional[str] = None
    recording_status: Optional[str] = None
    # Every ingestion key on the account. The API does not tell which one a
    # broadcast will use until a stream is bound to it.
    stream_keys: List[str] = Field(default_factory=list)
    thumbnails: Dict[str, str] = Field(default_factory=dict)

    @property
    def share_url(self) -> str:
        return f"https://youtube.com/live/{self.broadcast_id}?feature=share"

    @property
    def embed_url(self) -> str:
        return f"https://youtube.com/embed/{self.broadcast_id}"

    @classmethod
    def from_api(cls, response: Dict[str, Any], stream_keys: Optional[List[str]] = None) -> "BroadcastResult":
        """Build a result from a ``liveBroadcasts.insert`` response."""
        snippet = response.get("snippet", {})
        status = response.get("status", {})
        return cls(
            broadcast_id=response["id"],
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            scheduled_start_time=snippet.get("scheduledStartTime"),
            privacy_status=status.get("privacyStatus"),
            life_cycle_status=status.get("lifeCycleStatus"),
            recording_status=status.get("recordingStatus"),
            stream_keys=list(stream_keys or []),
        )
