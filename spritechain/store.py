"""
Frame store: the session's ordered collection of generated frames.
"""

import time
import uuid
from typing import Callable, Iterator, List, Optional

from spritechain.models import AnimationState, GeneratedFrame


def now_ms() -> int:
    return int(time.time() * 1000)


class FrameStore:
    """
    Append-only (plus delete-by-id) list of frames in insertion order.

    Timestamps are strictly increasing across the store, so ordering a state's
    frames by timestamp is the same as ordering them by insertion.
    """

    def __init__(self, clock: Callable[[], int] = now_ms):
        self._frames: List[GeneratedFrame] = []
        self._clock = clock
        self._last_timestamp: Optional[int] = None

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[GeneratedFrame]:
        return iter(list(self._frames))

    def _next_timestamp(self) -> int:
        ts = int(self._clock())
        if self._last_timestamp is not None and ts <= self._last_timestamp:
            ts = self._last_timestamp + 1
        self._last_timestamp = ts
        return ts

    def _new_id(self) -> str:
        while True:
            frame_id = uuid.uuid4().hex[:9]
            if self.get(frame_id) is None:
                return frame_id

    def add(self, state: AnimationState, image: str) -> GeneratedFrame:
        frame = GeneratedFrame(id=self._new_id(), state=state, image=image,
                               timestamp=self._next_timestamp())
        self._frames.append(frame)
        return frame

    def delete(self, frame_id: str) -> bool:
        """Remove exactly the frame with this id; False if it was not present."""
        for i, frame in enumerate(self._frames):
            if frame.id == frame_id:
                del self._frames[i]
                return True
        return False

    def get(self, frame_id: str) -> Optional[GeneratedFrame]:
        return next((f for f in self._frames if f.id == frame_id), None)

    def frames(self, state: Optional[AnimationState] = None) -> List[GeneratedFrame]:
        """Frames in timestamp order, optionally limited to one state"""
        selected = [f for f in self._frames if state is None or f.state is state]
        return sorted(selected, key=lambda f: f.timestamp)

    def count(self, state: AnimationState) -> int:
        return sum(1 for f in self._frames if f.state is state)

    def latest(self, state: AnimationState) -> Optional[GeneratedFrame]:
        frames = self.frames(state)
        return frames[-1] if frames else None

    @property
    def base_frame(self) -> Optional[GeneratedFrame]:
        """Earliest Idle frame still present"""
        idle = self.frames(AnimationState.IDLE)
        return idle[0] if idle else None

    def has_base(self) -> bool:
        return self.base_frame is not None

    def clear(self) -> None:
        self._frames.clear()
