"""
Sequence orchestrator: decides what to generate and in which order.

Owns the frame store and the in-flight flag. Every generation action runs the
same pipeline (backend call, background matting, centering, append) and
animation sequences are strictly chained: each cleaned frame becomes the
motion reference for the next request.
"""

from pathlib import Path
from typing import Callable, List, Optional

from spritechain.client import GenerationClient
from spritechain.errors import OrchestratorBusyError, SpriteChainError
from spritechain.imaging import (
    DEFAULT_TOLERANCE,
    center_sprite,
    decode_image,
    generate_sprite_sheet,
    remove_background,
)
from spritechain.logging_config import get_logger
from spritechain.models import AnimationState, GeneratedFrame, SpriteConfig
from spritechain.store import FrameStore

logger = get_logger("orchestrator")

ConfirmFn = Callable[[str], bool]

MAX_SEQUENCE_FRAMES = 12
MIN_SHEET_COLUMNS = 1
MAX_SHEET_COLUMNS = 20
DEFAULT_SHEET_COLUMNS = 6
MIN_FPS = 1
MAX_FPS = 24
DEFAULT_FPS = 8
SHEET_FILENAME = "sprite_sheet.png"

NEW_BASE_PROMPT = ("Generating a new base character will allow you to start fresh. "
                   "The old frames will remain until you delete them. Continue?")
NEW_CONFIG_PROMPT = ("Existing frames were generated from the current character design. "
                     "Switch to the new design anyway?")
NO_BASE_MESSAGE = "Generate a base (Idle) sprite first"


class SpriteOrchestrator:
    """
    Drives generation for one character session.

    Usage:
        orchestrator = SpriteOrchestrator(GenerationClient(api_key), config)
        orchestrator.generate_base()
        orchestrator.generate_sequence(AnimationState.WALK, 4)
        orchestrator.export_sheet("output/sprite_sheet.png")

    Failures of an action are recorded in `error` (a user-facing message)
    rather than raised; the action returns None or the frames it managed
    to add before the failure.
    """

    def __init__(self, client: GenerationClient, config: Optional[SpriteConfig] = None,
                 store: Optional[FrameStore] = None, confirm: Optional[ConfirmFn] = None,
                 tolerance: float = DEFAULT_TOLERANCE):
        self.client = client
        self.config = config or SpriteConfig()
        self.store = store if store is not None else FrameStore()
        self.confirm = confirm
        self.tolerance = tolerance
        self.busy = False
        self.error: Optional[str] = None

    # ------------------------------------------------------------------
    # Action plumbing
    # ------------------------------------------------------------------

    def _ask(self, message: str, confirm: Optional[ConfirmFn]) -> bool:
        # No callback means nobody can consent, which counts as a refusal
        ask = confirm or self.confirm
        return bool(ask and ask(message))

    def _begin(self, action: str) -> None:
        if self.busy:
            raise OrchestratorBusyError(action)
        self.busy = True
        self.error = None

    def _fail(self, context: str, exc: SpriteChainError) -> None:
        self.error = exc.message
        logger.error(f"{context}: {exc}")

    def postprocess(self, raw_image: str) -> str:
        """Matte the background, then center the content"""
        return center_sprite(remove_background(raw_image, self.tolerance))

    # ------------------------------------------------------------------
    # Generation actions
    # ------------------------------------------------------------------

    def generate_base(self, confirm: Optional[ConfirmFn] = None) -> Optional[GeneratedFrame]:
        """Generate a new Idle base frame; asks first if one already exists."""
        if self.busy:
            raise OrchestratorBusyError("generate_base")
        self.error = None
        if self.store.has_base() and not self._ask(NEW_BASE_PROMPT, confirm):
            logger.info("New base generation cancelled")
            return None

        self._begin("generate_base")
        try:
            raw = self.client.generate_base(self.config)
            frame = self.store.add(AnimationState.IDLE, self.postprocess(raw))
            logger.info(f"Base frame {frame.id} added")
            return frame
        except SpriteChainError as e:
            self._fail("Failed to generate sprite", e)
            return None
        finally:
            self.busy = False

    def generate_action(self, state: AnimationState) -> Optional[GeneratedFrame]:
        """Append one frame to `state`, continuing from its latest frame."""
        if self.busy:
            raise OrchestratorBusyError("generate_action")
        base = self.store.base_frame
        if base is None:
            self.error = NO_BASE_MESSAGE
            logger.warning(f"{state.value} frame requested without a base frame")
            return None

        self._begin("generate_action")
        try:
            previous = self.store.latest(state)
            # A single frame has no foreknowledge of a longer run
            index = total = self.store.count(state) + 1
            raw = self.client.generate_action(
                base.image, self.config, state, index, total,
                previous.image if previous else None,
            )
            frame = self.store.add(state, self.postprocess(raw))
            logger.info(f"{state.value} frame {index} added ({frame.id})")
            return frame
        except SpriteChainError as e:
            self._fail("Failed to generate animation frame", e)
            return None
        finally:
            self.busy = False

    def generate_sequence(self, state: AnimationState, count: int) -> List[GeneratedFrame]:
        """
        Generate `count` chained frames for `state`.

        Requests are issued one at a time; each waits for the previous frame
        to be generated and cleaned because that frame is its motion anchor.
        A failure stops the batch and keeps the frames already added.

        Returns:
            Frames added by this batch, in order
        """
        if not 1 <= count <= MAX_SEQUENCE_FRAMES:
            raise ValueError(f"count must be between 1 and {MAX_SEQUENCE_FRAMES}, got {count}")
        if self.busy:
            raise OrchestratorBusyError("generate_sequence")
        base = self.store.base_frame
        if base is None:
            self.error = NO_BASE_MESSAGE
            logger.warning(f"{state.value} sequence requested without a base frame")
            return []

        self._begin("generate_sequence")
        created: List[GeneratedFrame] = []
        try:
            existing = self.store.count(state)
            previous = self.store.latest(state)
            motion_anchor = previous.image if previous else None
            total = existing + count

            logger.info(f"Generating {state.value} sequence: frames {existing + 1}..{total}")
            for index in range(existing + 1, total + 1):
                raw = self.client.generate_action(base.image, self.config, state,
                                                  index, total, motion_anchor)
                frame = self.store.add(state, self.postprocess(raw))
                created.append(frame)
                motion_anchor = frame.image
                logger.info(f"  [{index}/{total}] {state.value} frame {frame.id} added")
        except SpriteChainError as e:
            self._fail(f"Failed to generate sequence after {len(created)}/{count} frames", e)
        finally:
            self.busy = False
        return created

    # ------------------------------------------------------------------
    # Session management
    # ------------------------------------------------------------------

    def delete_frame(self, frame_id: str) -> bool:
        removed = self.store.delete(frame_id)
        if removed:
            logger.info(f"Frame {frame_id} deleted")
        else:
            logger.warning(f"Frame {frame_id} not found")
        return removed

    def set_config(self, config: SpriteConfig, confirm: Optional[ConfirmFn] = None) -> bool:
        """Switch the character design; needs consent once a base frame exists."""
        if config == self.config:
            return True
        if self.busy:
            raise OrchestratorBusyError("set_config")
        if self.store.has_base() and not self._ask(NEW_CONFIG_PROMPT, confirm):
            logger.info("Config change declined, keeping current design")
            return False
        self.config = config
        return True

    def animation_frames(self, state: AnimationState) -> List[str]:
        """Images of one state in playback order"""
        return [f.image for f in self.store.frames(state)]

    # ------------------------------------------------------------------
    # Sheet and file export
    # ------------------------------------------------------------------

    def build_sheet(self, columns: int = DEFAULT_SHEET_COLUMNS) -> str:
        """Composite every frame in the store; empty string when there are none."""
        if not MIN_SHEET_COLUMNS <= columns <= MAX_SHEET_COLUMNS:
            raise ValueError(f"columns must be between {MIN_SHEET_COLUMNS} and "
                             f"{MAX_SHEET_COLUMNS}, got {columns}")
        return generate_sprite_sheet([f.image for f in self.store.frames()], columns)

    def export_sheet(self, path=SHEET_FILENAME, columns: int = DEFAULT_SHEET_COLUMNS) -> Optional[Path]:
        sheet = self.build_sheet(columns)
        if not sheet:
            logger.warning("No frames to export")
            return None
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        decode_image(sheet).save(path, format="PNG")
        logger.info(f"Sprite sheet saved: {path}")
        return path

    def export_frame(self, frame_id: str, directory=".") -> Optional[Path]:
        frame = self.store.get(frame_id)
        if frame is None:
            return None
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{frame.state.slug}_{frame.id}.png"
        decode_image(frame.image).save(path, format="PNG")
        return path

    def export_animation(self, state: AnimationState, path, fps: int = DEFAULT_FPS) -> Optional[Path]:
        """Write a looping GIF of one state's frames at `fps`."""
        if not MIN_FPS <= fps <= MAX_FPS:
            raise ValueError(f"fps must be between {MIN_FPS} and {MAX_FPS}, got {fps}")
        images = [decode_image(src) for src in self.animation_frames(state)]
        if not images:
            return None
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        images[0].save(path, format="GIF", save_all=True, append_images=images[1:],
                       duration=round(1000 / fps), loop=0, disposal=2)
        logger.info(f"{state.value} animation saved: {path} ({len(images)} frames @ {fps} fps)")
        return path
