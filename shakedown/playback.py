"""
Playback Coordinator

Single owner of "now playing" across two sources with different transports:

  local     a track sequence played by a local audio engine (``LocalSource``)
  external  an externally hosted video driven by reference (``VideoSource``)

At most one source is active at any instant. Loading a show onto either
source first stops the active one and waits for that teardown to finish
before starting the new one. Every transport command runs under one
``asyncio.Lock``, so overlapping requests are applied one after another.

State machine (``PlaybackSession.kind``):

    Idle ──load_local──▶ LocalActive {show, index, status}
    Idle ──load_external─▶ ExternalActive {show, reference, status}
    any  ──stop/unload──▶ Idle

Observers receive one ``PlaybackEvent`` per state change. Commands that
leave the state unchanged emit nothing.

Usage:
    coordinator = PlaybackCoordinator(local_source, video_source, history)
    unsubscribe = coordinator.subscribe(render)
    await coordinator.load_local(show)
    await coordinator.next()
"""

import asyncio
from typing import Callable, List, NamedTuple, Optional, Protocol, runtime_checkable

from loguru import logger

from .exceptions import InvalidStateError, OutOfRangeError
from .history import ListeningHistory
from .models import PlaybackSession, Show, SourceKind, Track, TransportStatus


# ---------------------------------------------------------------------------
# Collaborator contracts
# ---------------------------------------------------------------------------

@runtime_checkable
class LocalSource(Protocol):
    """Local audio engine playing one track at a time."""

    async def start(self, track: Track) -> None: ...

    async def pause(self) -> None: ...

    async def resume(self) -> None: ...

    async def stop(self) -> None: ...


@runtime_checkable
class VideoSource(Protocol):
    """Externally hosted video surface. Treated as opaque."""

    async def start(self, reference: str) -> None: ...

    async def stop(self) -> None: ...

    async def pause(self) -> None: ...

    async def resume(self) -> None: ...

    async def seek(self, seconds: float) -> None: ...

    def is_ready(self) -> bool: ...


class PlaybackEvent(NamedTuple):
    """State change delivered to observers."""

    previous: PlaybackSession
    current: PlaybackSession


Observer = Callable[[PlaybackEvent], None]


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------

class PlaybackCoordinator:
    """
    Arbitrates playback between the local and external sources.

    A collaborator that raises during a command propagates to the caller
    and the session stays at the last committed state. Replacing a session
    commits in two steps (teardown to Idle, then activation), so a new source
    that fails to start leaves the coordinator Idle: the old source is
    already released and observers have seen the teardown event.
    """

    def __init__(
        self,
        local_source: LocalSource,
        video_source: VideoSource,
        history: Optional[ListeningHistory] = None,
    ) -> None:
        self.local_source = local_source
        self.video_source = video_source
        self.history = history
        self._session = PlaybackSession()
        self._observers: List[Observer] = []
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def session(self) -> PlaybackSession:
        return self._session

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer``; returns a callable that unregisters it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _commit(self, session: PlaybackSession) -> None:
        previous = self._session
        if session == previous:
            return
        self._session = session
        logger.debug(
            f"Playback: {previous.kind.value}/{previous.status.value} -> "
            f"{session.kind.value}/{session.status.value} (index {session.index})"
        )
        event = PlaybackEvent(previous, session)
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception as exc:  # noqa: BLE001
                logger.warning(f"Playback observer {observer!r} failed: {exc}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def active_kind(self) -> SourceKind:
        return self._session.kind

    @property
    def current_show(self) -> Optional[Show]:
        return self._session.show

    @property
    def current_track(self) -> Optional[Track]:
        return self._session.current_track

    def has_active_source(self) -> bool:
        return not self._session.is_idle

    def is_playing(self, index: Optional[int] = None) -> bool:
        """
        True while playing. With ``index``, true only when that local
        track is the one playing.
        """
        s = self._session
        if s.status is not TransportStatus.PLAYING:
            return False
        if index is None:
            return True
        return s.kind is SourceKind.LOCAL and s.index == index

    def current_position(self) -> Optional[int]:
        """Current local track index, or None when no local show is loaded."""
        s = self._session
        return s.index if s.kind is SourceKind.LOCAL else None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_local(self, show: Show, start_index: int = 0, autoplay: bool = True) -> None:
        """Make ``show``'s track sequence the active source, starting at ``start_index``."""
        async with self._lock:
            _check_index(show, start_index)
            s = self._session

            if s.kind is SourceKind.LOCAL and s.show is not None and s.show.identifier == show.identifier:
                if autoplay:
                    await self._start_local_track(show, start_index)
                    return
                if s.status is not TransportStatus.STOPPED:
                    await self.local_source.stop()
                self._commit(s.model_copy(update={
                    "index": start_index, "status": TransportStatus.STOPPED,
                }))
                return

            if not s.is_idle:
                await self._teardown()

            status = TransportStatus.STOPPED
            if autoplay:
                await self.local_source.start(show.tracks[start_index])
                status = TransportStatus.PLAYING
            self._commit(PlaybackSession(
                kind=SourceKind.LOCAL, status=status, show=show, index=start_index,
            ))
            if self.history is not None:
                self.history.record_played(show)
            logger.info(f"Playback: loaded {show.identifier} locally ({show.track_count} tracks)")

    async def load_external(self, show: Show, reference: Optional[str] = None, autoplay: bool = True) -> None:
        """Make the external video for ``show`` the active source."""
        async with self._lock:
            ref = reference or show.metadata.video_url or show.identifier
            if not self.video_source.is_ready():
                raise InvalidStateError("External video source is not ready")

            if not self._session.is_idle:
                await self._teardown()

            status = TransportStatus.STOPPED
            if autoplay:
                await self.video_source.start(ref)
                status = TransportStatus.PLAYING
            self._commit(PlaybackSession(
                kind=SourceKind.EXTERNAL, status=status, show=show, reference=ref,
            ))
            if self.history is not None:
                self.history.record_played(show)
            logger.info(f"Playback: loaded {show.identifier} as external video {ref}")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def play(self) -> None:
        async with self._lock:
            await self._play(self._require_active("play"))

    async def pause(self) -> None:
        async with self._lock:
            await self._pause(self._require_active("pause"))

    async def toggle_play_pause(self) -> None:
        async with self._lock:
            s = self._require_active("toggle")
            if s.status is TransportStatus.PLAYING:
                await self._pause(s)
            else:
                await self._play(s)

    async def stop(self) -> None:
        """Stop and release the active source; Idle afterwards."""
        async with self._lock:
            if self._session.is_idle:
                return
            await self._teardown()

    async def unload(self) -> None:
        await self.stop()

    async def seek(self, seconds: float) -> None:
        """Seek within the external video."""
        async with self._lock:
            s = self._require_active("seek")
            if s.kind is not SourceKind.EXTERNAL:
                raise InvalidStateError("seek is only supported for the external source")
            await self.video_source.seek(seconds)

    async def next(self) -> None:
        """
        Advance one track. Past the last track playback stops and the index
        stays on the last track.
        """
        async with self._lock:
            s = self._require_local("next")
            last = s.show.track_count - 1
            if s.index < last:
                await self._start_local_track(s.show, s.index + 1)
                if self.history is not None:
                    self.history.mark_partial(s.show)
                return

            if s.status is TransportStatus.STOPPED:
                return
            await self.local_source.stop()
            self._commit(s.model_copy(update={"status": TransportStatus.STOPPED}))
            if self.history is not None:
                self.history.mark_completed(s.show)
            logger.info(f"Playback: finished {s.show.identifier}")

    async def track_finished(self) -> None:
        """Called by the local engine when a track plays to its end."""
        await self.next()

    async def previous(self) -> None:
        """Step back one track; no-op on the first track."""
        async with self._lock:
            s = self._require_local("previous")
            if s.index == 0:
                return
            await self._start_local_track(s.show, s.index - 1)

    async def select_track(self, index: int) -> None:
        """Jump to ``index`` in the loaded local show."""
        async with self._lock:
            s = self._require_local("select_track")
            _check_index(s.show, index)
            await self._start_local_track(s.show, index)

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _source_for(self, kind: SourceKind):
        return self.local_source if kind is SourceKind.LOCAL else self.video_source

    async def _play(self, s: PlaybackSession) -> None:
        if s.status is TransportStatus.PLAYING:
            return
        if s.status is TransportStatus.PAUSED:
            await self._source_for(s.kind).resume()
        elif s.kind is SourceKind.LOCAL:
            await self.local_source.start(s.show.tracks[s.index])
        else:
            await self.video_source.start(s.reference)
        self._commit(s.model_copy(update={"status": TransportStatus.PLAYING}))

    async def _pause(self, s: PlaybackSession) -> None:
        if s.status is not TransportStatus.PLAYING:
            return
        await self._source_for(s.kind).pause()
        self._commit(s.model_copy(update={"status": TransportStatus.PAUSED}))

    def _require_active(self, command: str) -> PlaybackSession:
        s = self._session
        if s.is_idle:
            raise InvalidStateError(f"Cannot {command}: nothing is loaded")
        return s

    def _require_local(self, command: str) -> PlaybackSession:
        s = self._require_active(command)
        if s.kind is not SourceKind.LOCAL:
            raise InvalidStateError(f"Cannot {command}: the active source is not local")
        return s

    async def _start_local_track(self, show: Show, index: int) -> None:
        await self.local_source.start(show.tracks[index])
        self._commit(self._session.model_copy(update={
            "index": index, "status": TransportStatus.PLAYING,
        }))

    async def _teardown(self) -> None:
        s = self._session
        logger.debug(f"Playback: tearing down {s.kind.value} source")
        await self._source_for(s.kind).stop()
        self._commit(PlaybackSession())


def _check_index(show: Show, index: int) -> None:
    if not 0 <= index < show.track_count:
        raise OutOfRangeError(index, show.track_count)
