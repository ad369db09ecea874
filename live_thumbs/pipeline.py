"""
Thumbnail update pipeline and its polling loop.

One cycle: fetch manifest -> resolve latest segment -> extract frame ->
composite overlays -> encode -> publish. The loop runs one cycle, waits
for it to settle, then arms a single timer for the next one, so cycles
never overlap and the real period is interval + processing time.
"""

import asyncio
import inspect
import logging
from datetime import datetime
from enum import Enum

from .collaborators import FrameEncoder, FrameExtractor, ImageFetcher, PlatformClient, PublishResult, Publisher
from .config import MAX_BACKOFF, validate_interval
from .errors import EncodeError, ManifestError, NetworkError, NotLiveError, NotLoadedError, UploadFailure
from .manifest import resolve_latest_segment_url
from .overlays import OverlayCompositor
from .surface import FrameSurface

logger = logging.getLogger(__name__)


class ManagerState(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    LOOPING = "looping"
    STOPPED = "stopped"


class FailurePolicy(str, Enum):
    """What the loop does when a cycle raises."""

    HALT = "halt"  # stop scheduling, report the error on the handle
    RETRY = "retry"  # keep going with exponential backoff


class LoopHandle:
    """
    Cancellation token for one running loop.

    Returned by ThumbnailManager.loop() and accepted by stop(). Once the
    loop ends, either cancelled or halted by an error, `done` is True and
    `error` holds the exception that ended it, if any.
    """

    def __init__(self, interval, event_loop):
        self.interval = interval
        self.error = None
        self.cycles = 0
        self.failures = 0  # consecutive, reset by a successful cycle
        self._event_loop = event_loop
        self._finished = event_loop.create_future()
        self._cancelled = False
        self._timer = None
        self._task = None

    @property
    def cancelled(self):
        return self._cancelled

    @property
    def done(self):
        return self._finished.done()

    @property
    def in_flight(self):
        return self._task is not None and not self._task.done()

    def cancel(self):
        """Prevent any future cycle. A cycle already running is not interrupted."""
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if not self.in_flight:
            self._finish()

    async def wait(self):
        """Wait until the loop has ended and return its error, or None."""
        await self._finished
        return self.error

    def _finish(self, error=None):
        if error is not None:
            self.error = error
        if not self._finished.done():
            self._finished.set_result(None)


class ThumbnailManager:
    """
    Loads a stream and keeps its thumbnail updated.

    Args:
        client: Platform client (get_stream_info, fetch_manifest, set_thumbnail)
        frame_extractor: async segment_url -> BGR frame
        fetch_image: async url -> decoded image, used by image overlays
        encode_frame: surface -> bytes, sync or async
        publish: async (stream_id, bytes) -> result with `success`;
            defaults to client.set_thumbnail
        overlays: OverlaySpec list drawn on every cycle
        failure_policy: FailurePolicy applied when a looped cycle fails
    """

    def __init__(self, client: PlatformClient, frame_extractor: FrameExtractor, fetch_image: ImageFetcher,
                 encode_frame: FrameEncoder, publish: Publisher | None = None,
                 overlays=(), failure_policy=FailurePolicy.HALT, max_backoff=MAX_BACKOFF):
        self.client = client
        self.frame_extractor = frame_extractor
        self.compositor = OverlayCompositor(fetch_image)
        self.encode_frame = encode_frame
        self.publish = publish or client.set_thumbnail
        self.overlays = tuple(overlays)
        self.failure_policy = FailurePolicy(failure_policy)
        self.max_backoff = max_backoff

        self.session = None
        self.state = ManagerState.UNLOADED
        self.last_result = None  # PublishResult of the latest update
        self._handle = None
        self._update_lock = asyncio.Lock()

    @property
    def handle(self):
        return self._handle

    async def load(self, stream_id):
        """Fetch stream metadata and replace the current session."""
        self.session = await self.client.get_stream_info(stream_id)
        live_loop = self._handle is not None and not self._handle.done
        self.state = ManagerState.LOOPING if live_loop else ManagerState.LOADED
        logger.info("Loaded stream %s (%s)", self.session.id, self.session.title)
        return self.session

    def _require_session(self):
        if self.session is None:
            raise NotLoadedError("Video info is not loaded. Did you forget to call load()?")
        return self.session

    async def capture_frame(self):
        """Fetch a fresh manifest and extract the latest frame of the stream."""
        session = self._require_session()

        if not session.is_live_content:
            raise NotLiveError(f"Not a live stream: {session.id}")

        if not session.manifest_url:
            raise ManifestError("no manifest url")

        # Segments are ephemeral, so the manifest is never cached
        response = await self.client.fetch_manifest(session.manifest_url)
        if not response.ok:
            raise NetworkError(f"Manifest fetch failed (HTTP {response.status})")

        segment_url = resolve_latest_segment_url(response.text)
        logger.debug("Latest segment: %s", segment_url)

        return await self.frame_extractor(segment_url)

    async def render(self):
        """Capture a frame and composite the overlays onto it."""
        session = self._require_session()
        frame = await self.capture_frame()
        surface = FrameSurface(frame)
        await self.compositor.apply(surface, self.overlays, session.metadata)
        return surface

    async def update(self):
        """
        Run one full cycle and return the encoded thumbnail.

        A failed upload is logged and does not raise; its outcome is kept
        on `last_result`. Every other failure propagates. Concurrent calls
        are serialized.
        """
        async with self._update_lock:
            session = self._require_session()
            surface = await self.render()

            data = self.encode_frame(surface)
            if inspect.isawaitable(data):
                data = await data
            if not data:
                raise EncodeError("Could not get image buffer")

            try:
                result = await self.publish(session.id, data)
            except UploadFailure as e:
                result = PublishResult(False, str(e))
            self.last_result = result

            if not result.success:
                logger.error("Could not upload thumbnail: %s", getattr(result, "message", "") or "unknown error")
            else:
                logger.info("Thumbnail updated at %s", datetime.now().strftime("%H:%M:%S"))
            return data

    def loop(self, interval_seconds):
        """
        Start updating every `interval_seconds` (>= 5), measured from the
        end of one cycle to the start of the next.

        The first cycle starts immediately. Must be called from a running
        event loop. Any previous loop of this manager is stopped first.
        """
        validate_interval(interval_seconds)
        self._require_session()
        event_loop = asyncio.get_running_loop()

        if self._handle is not None:
            self.stop(self._handle)

        handle = LoopHandle(interval_seconds, event_loop)
        self._handle = handle
        self.state = ManagerState.LOOPING
        self._start_cycle(handle)
        return handle

    def stop(self, handle=None):
        """Cancel the armed timer. Idempotent; a running cycle finishes normally."""
        handle = handle or self._handle
        if handle is None:
            return

        handle.cancel()
        if handle is self._handle:
            self._handle = None
            if self.state == ManagerState.LOOPING:
                self.state = ManagerState.STOPPED

    def _start_cycle(self, handle):
        handle._timer = None
        if handle.cancelled:
            handle._finish()
            return
        handle._task = handle._event_loop.create_task(self._run_cycle(handle))

    async def _run_cycle(self, handle):
        try:
            await self.update()
        except asyncio.CancelledError:
            handle._finish()
            raise
        except Exception as e:
            handle.failures += 1
            if self.failure_policy == FailurePolicy.HALT:
                logger.error("Thumbnail loop terminated: %s", e, exc_info=e)
                self._halt(handle, e)
                return
            delay = min(handle.interval * 2 ** handle.failures, self.max_backoff)
            logger.warning("Update failed (%s), retrying in %.0fs", e, delay)
        else:
            handle.cycles += 1
            handle.failures = 0
            delay = handle.interval

        if handle.cancelled:
            handle._finish()
            return

        # Armed only after the cycle settled, so cycles never overlap
        handle._timer = handle._event_loop.call_later(delay, self._start_cycle, handle)

    def _halt(self, handle, error):
        handle._cancelled = True
        handle._finish(error)
        if handle is self._handle:
            self._handle = None
            self.state = ManagerState.STOPPED
