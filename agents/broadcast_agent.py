"""
Per-fire unit of work: create a scheduled broadcast and publish it.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from models.broadcast import BroadcastResult
from models.stream import StreamDefinition
from publishers.base import PublishError
from publishers.registry import PublisherResolver
from tools.youtube_tools import YouTubeAPIError, YouTubeLiveClient
from utils import create_result_dict, handle_step_error, safe_log_text, stream_logger
from utils.error_utils import ConfigurationError

# Setup logging
logger = logging.getLogger(__name__)


def local_now() -> datetime:
    return datetime.now().astimezone()


class BroadcastAgent:
    """Creates one live broadcast per invocation and optionally publishes it."""

    def __init__(
        self,
        client: Optional[YouTubeLiveClient],
        publishers: Optional[PublisherResolver] = None,
        dry_run: bool = False,
        publish_enabled: bool = False,
        clock: Callable[[], datetime] = local_now,
        logger: Optional[logging.Logger] = None
    ):
        self.client = client
        self.publishers = publishers or PublisherResolver()
        self.dry_run = dry_run
        self.publish_enabled = publish_enabled
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self.broadcasts_created = 0
        self.failures = 0
        self._stats_lock = threading.Lock()

    def scheduled_start_time(self, stream: StreamDefinition) -> str:
        """Now plus the stream's start delay, as an RFC 3339 local timestamp."""
        start = self.clock() + timedelta(seconds=stream.start_delay)
        return start.isoformat(timespec="seconds")

    def build_broadcast_body(self, stream: StreamDefinition) -> Dict[str, Any]:
        """Build the ``liveBroadcasts.insert`` payload for a stream."""
        details = stream.content_details
        return {
            "snippet": {
                "title": stream.title,
                "description": stream.description,
                "scheduledStartTime": self.scheduled_start_time(stream),
            },
            "status": {
                "privacyStatus": stream.privacy_level,
                "selfDeclaredMadeForKids": details.made_for_kids,
            },
            "contentDetails": {
                "enableClosedCaptions": details.enable_closed_captions,
                "closedCaptionsType": details.closed_captions_type,
                "enableAutoStart": details.enable_auto_start,
                "enableAutoStop": details.enable_auto_stop,
                "enableDvr": details.enable_dvr,
                "enableEmbed": details.enable_embed,
                "recordFromStart": details.record_from_start,
            },
        }

    def create_and_publish(self, stream: StreamDefinition) -> Dict[str, Any]:
        """
        Run the full workflow for one stream.

        Workflow: Build → Create → Stream keys → Thumbnails → Publish

        Errors are logged with the stream's name and recorded in the returned
        result; nothing is raised, so one failing stream never affects the
        scheduler or other streams.

        Returns:
            Workflow execution result
        """
        log = stream_logger(self.logger, stream.name)
        errors = []
        result = create_result_dict(
            False,
            errors,
            stream_name=stream.name,
            dry_run=self.dry_run,
            steps_completed=[],
            broadcast_id=None,
            stream_keys=[],
            thumbnails={},
            published=False
        )

        try:
            body = self.build_broadcast_body(stream)
            result["steps_completed"].append("build")

            if self.dry_run:
                log.info(
                    "would have created LiveBroadcast resource, but is dry-run "
                    f"(title: {safe_log_text(body['snippet']['title'])}, "
                    f"description: {safe_log_text(body['snippet']['description'])}, "
                    f"scheduledStart: {body['snippet']['scheduledStartTime']}, "
                    f"privacyLevel: {body['status']['privacyStatus']})"
                )
                result["success"] = True
                return result

            # Step 1: Create the broadcast
            try:
                response = self.client.insert_broadcast(body)
            except YouTubeAPIError as e:
                handle_step_error(f"failed to create a live broadcast: {e}", errors, log)
                self._count("failures")
                return result
            result["steps_completed"].append("create")
            result["broadcast_id"] = response.get("id")
            self._count("broadcasts_created")

            # Step 2: Candidate stream keys
            stream_keys = []
            try:
                stream_keys = self.client.list_stream_keys()
                result["steps_completed"].append("stream_keys")
            except YouTubeAPIError as e:
                handle_step_error(f"failed to get owned streams: {e}", errors, log)
            result["stream_keys"] = stream_keys

            broadcast = BroadcastResult.from_api(response, stream_keys=stream_keys)
            log.info(
                f"created live scheduled broadcast '{safe_log_text(broadcast.title)}' "
                f"(scheduledStart: {broadcast.scheduled_start_time}, currentStatus: {broadcast.recording_status}, "
                f"validStreamKeys: {broadcast.stream_keys}, shareableLink: {broadcast.share_url}, "
                f"embedableLink: {broadcast.embed_url})"
            )

            # Step 3: Thumbnails
            if stream.thumbnails is not None:
                broadcast.thumbnails = self._upload_thumbnails(broadcast.broadcast_id, stream, errors, log)
                result["thumbnails"] = dict(broadcast.thumbnails)
                result["steps_completed"].append("thumbnails")

            # Step 4: Publish
            if self.publish_enabled:
                result["published"] = self._publish(broadcast, stream, errors, log)
                if result["published"]:
                    result["steps_completed"].append("publish")

            result["success"] = len(errors) == 0
            return result

        except Exception as e:
            handle_step_error(f"unexpected error in broadcast workflow: {e}", errors, log)
            self._count("failures")
            return result

    def _upload_thumbnails(self, broadcast_id: str, stream: StreamDefinition, errors, log) -> Dict[str, str]:
        """Upload every configured size; failed sizes are left out of the returned set."""
        uploaded = {}
        for size, path in stream.thumbnails.present():
            try:
                response = self.client.set_thumbnail(broadcast_id, path)
            except YouTubeAPIError as e:
                handle_step_error(f"failed to upload {size} thumbnail {path}: {e}", errors, log)
                continue

            items = response.get("items") or [{}]
            uploaded[size] = items[0].get(size, {}).get("url", path)
            log.debug(f"uploaded {size} thumbnail for broadcast {broadcast_id}")

        return uploaded

    def _publish(self, broadcast: BroadcastResult, stream: StreamDefinition, errors, log) -> bool:
        if stream.publisher is None:
            log.warning(
                "no publisher config specified for stream. skipping stream publish. "
                "don't worry, the Youtube livestream was still created"
            )
            return False

        try:
            publisher = self.publishers.get(stream)
        except (ConfigurationError, PublishError) as e:
            handle_step_error(f"unable to publish using provided publisher config: {e}", errors, log)
            return False

        try:
            publisher.publish(broadcast, stream)
        except PublishError as e:
            handle_step_error(f"unable to publish Youtube Live Broadcast to publish target: {e}", errors, log)
            return False

        log.info(f"published stream to publish target using the {publisher.name} publisher")
        return True

    def _count(self, counter: str) -> None:
        with self._stats_lock:
            setattr(self, counter, getattr(self, counter) + 1)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "broadcasts_created": self.broadcasts_created,
            "failures": self.failures,
            "dry_run": self.dry_run,
            "publish_enabled": self.publish_enabled,
        }
