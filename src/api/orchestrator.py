"""Interaction state machine for the exhibit page.

The orchestrator is the only owner of the page state. Callers drive it
through its operations (edit_draft, submit, reset, attach_signboard,
export) and never assign fields directly.

    IDLE --submit--> LOADING --success--> RESULT --reset--> IDLE
                        |
                        +--failure--> FAILED (form editable, submit again)
"""

import asyncio
import logging
from typing import Protocol

from src.api.sse_models import (
    CompleteEvent,
    FailedEvent,
    OrchestratorEvent,
    StatusEvent,
)
from src.api.status_rotator import StatusRotator
from src.chains.exhibit_generator import ExhibitData, GenerationError, UserInput
from src.ui.signboard import SignboardView
from src.ui.state import InteractionState, Phase
from src.ui.utils import (
    EXPORT_BUSY_LABEL,
    EXPORT_LABEL,
    GENERATION_ERROR_MESSAGE,
    LOADING_MESSAGES,
)

logger = logging.getLogger(__name__)


class ExhibitGenerator(Protocol):
    async def agenerate(self, user_input: UserInput) -> ExhibitData: ...


class SignboardExporter(Protocol):
    async def export_as_image(self, view: SignboardView, suggested_file_name: str) -> bool: ...


class ExhibitOrchestrator:
    """Owns the interaction state, the input draft and the loading timer.

    Only one generation may be in flight. The status rotation timer lives
    exactly as long as the LOADING phase.
    """

    _EventQueue = asyncio.Queue[OrchestratorEvent]

    def __init__(
        self,
        generator: ExhibitGenerator,
        exporter: SignboardExporter,
        *,
        status_messages: tuple[str, ...] = LOADING_MESSAGES,
        rotation_interval: float = 2.5,
        generation_timeout: float | None = None,
        export_timeout: float | None = None,
        error_message: str = GENERATION_ERROR_MESSAGE,
    ) -> None:
        self._generator = generator
        self._exporter = exporter
        self._generation_timeout = generation_timeout
        self._export_timeout = export_timeout
        self._error_message = error_message

        self._state = InteractionState.idle()
        self._draft = UserInput()
        self._rotator = StatusRotator(
            status_messages,
            interval=rotation_interval,
            on_tick=self._on_status_tick,
        )
        self._task: asyncio.Task[None] | None = None
        self._signboard: SignboardView | None = None
        self._export_label = EXPORT_LABEL
        self._exporting = False
        self._subscribers: set[ExhibitOrchestrator._EventQueue] = set()

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def draft(self) -> UserInput:
        """A copy of the input draft."""
        return self._draft.model_copy()

    @property
    def status_message(self) -> str | None:
        """Current loading message, or None outside LOADING."""
        if not self._state.is_loading:
            return None
        return self._rotator.message

    @property
    def status_index(self) -> int | None:
        if not self._state.is_loading:
            return None
        return self._rotator.index

    @property
    def is_rotating(self) -> bool:
        return self._rotator.is_running

    @property
    def signboard(self) -> SignboardView | None:
        """The signboard view currently on screen, if any."""
        return self._signboard

    @property
    def export_label(self) -> str:
        return self._export_label

    @property
    def is_exporting(self) -> bool:
        return self._exporting

    def edit_draft(
        self,
        *,
        name: str | None = None,
        hobby: str | None = None,
        worry: str | None = None,
    ) -> bool:
        """Update draft fields. Rejected while a generation is in flight.

        Returns:
            True if the draft was updated.
        """
        if self._state.is_loading:
            logger.debug("Draft edit rejected while loading")
            return False
        changes = {
            key: value
            for key, value in {"name": name, "hobby": hobby, "worry": worry}.items()
            if value is not None
        }
        self._draft = self._draft.model_copy(update=changes)
        return True

    def submit(self) -> asyncio.Task[None] | None:
        """Start generating an exhibit from the current draft.

        Must be called from inside a running event loop.

        Returns:
            The generation task, or None if the submission was rejected
            because a generation is in flight or a field is blank.
        """
        if self._state.is_loading:
            logger.debug("Submit rejected: generation already in flight")
            return None
        if not self._draft.is_complete:
            logger.debug("Submit rejected: draft has blank fields")
            return None

        user_input = self._draft.model_copy()
        self._detach_signboard()
        self._state = InteractionState.loading()
        self._rotator.start()
        self._task = asyncio.get_running_loop().create_task(
            self._run_generation(user_input)
        )
        logger.info("Exhibit generation started")
        return self._task

    async def _run_generation(self, user_input: UserInput) -> None:
        try:
            data = await asyncio.wait_for(
                self._generator.agenerate(user_input),
                timeout=self._generation_timeout,
            )
        except GenerationError:
            logger.warning("Exhibit generation failed")
            self._leave_loading(InteractionState.failed(self._error_message))
        except TimeoutError:
            logger.warning(f"Exhibit generation timed out after {self._generation_timeout}s")
            self._leave_loading(InteractionState.failed(self._error_message))
        except asyncio.CancelledError:
            logger.info("Exhibit generation cancelled")
            self._leave_loading(InteractionState.idle())
            raise
        except Exception:
            logger.exception("Unexpected error during exhibit generation")
            self._leave_loading(InteractionState.failed(self._error_message))
        else:
            logger.info("Exhibit generation completed")
            self._leave_loading(InteractionState.succeeded(data))

    def _leave_loading(self, new_state: InteractionState) -> None:
        # Every exit from LOADING goes through here.
        self._rotator.stop()
        self._state = new_state
        self._task = None
        if new_state.phase is Phase.RESULT:
            self._publish(CompleteEvent())
        elif new_state.phase is Phase.FAILED:
            self._publish(FailedEvent(error=self._error_message))

    def _on_status_tick(self, index: int, message: str) -> None:
        if not self._state.is_loading:
            return
        self._publish(StatusEvent(index=index, message=message))

    def reset(self) -> bool:
        """Discard the current result ("make another"). The draft is kept.

        Also dismisses a FAILED banner. Rejected while loading.

        Returns:
            True if the state returned to IDLE.
        """
        if self._state.phase not in (Phase.RESULT, Phase.FAILED):
            logger.debug(f"Reset rejected in phase {self._state.phase.value}")
            return False
        self._detach_signboard()
        self._state = InteractionState.idle()
        logger.info("Exhibit reset")
        return True

    def attach_signboard(self, view: SignboardView) -> bool:
        """Register the signboard view that was just rendered and mount it.

        Any previously attached view is unmounted. Only accepted in RESULT for
        the data currently held.

        Returns:
            True if the view was attached.
        """
        if self._state.phase is not Phase.RESULT or view.data is not self._state.result:
            logger.debug("Signboard attach rejected: view does not match current result")
            return False
        if self._signboard is not view:
            self._detach_signboard()
            view.mount()
            self._signboard = view
        return True

    def _detach_signboard(self) -> None:
        if self._signboard is not None:
            self._signboard.unmount()
            self._signboard = None

    async def export(self, file_name: str) -> bool:
        """Export the signboard on screen as an image.

        The export label shows the in-progress text until the export
        settles. The interaction state is never changed.

        Args:
            file_name: Suggested file name for the image.

        Returns:
            True if the exporter produced the file.
        """
        view = self._signboard
        if view is None or self._state.phase is not Phase.RESULT:
            logger.debug("Export rejected: no signboard on screen")
            return False
        if self._exporting:
            logger.debug("Export rejected: export already in flight")
            return False

        self._exporting = True
        self._export_label = EXPORT_BUSY_LABEL
        try:
            success = await asyncio.wait_for(
                self._exporter.export_as_image(view, file_name),
                timeout=self._export_timeout,
            )
        except TimeoutError:
            logger.warning(f"Signboard export timed out after {self._export_timeout}s")
            success = False
        finally:
            self._export_label = EXPORT_LABEL
            self._exporting = False

        if not success:
            logger.warning(f"Signboard export failed: {file_name}")
        return bool(success)

    def current_event(self) -> OrchestratorEvent | None:
        """Event describing the current state, for late subscribers."""
        if self._state.is_loading:
            return StatusEvent(index=self._rotator.index, message=self._rotator.message)
        if self._state.phase is Phase.RESULT:
            return CompleteEvent()
        if self._state.phase is Phase.FAILED:
            return FailedEvent(error=self._error_message)
        return None

    def subscribe(self) -> "ExhibitOrchestrator._EventQueue":
        """Register a queue that receives every published event."""
        queue: ExhibitOrchestrator._EventQueue = asyncio.Queue()
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: "ExhibitOrchestrator._EventQueue") -> None:
        self._subscribers.discard(queue)

    def _publish(self, event: OrchestratorEvent) -> None:
        for queue in self._subscribers:
            queue.put_nowait(event)

    async def aclose(self) -> None:
        """Cancel an in-flight generation and stop timers."""
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self._state.is_loading:
            # Cancelled before the task body ran.
            self._leave_loading(InteractionState.idle())
        self._rotator.stop()
        self._detach_signboard()
