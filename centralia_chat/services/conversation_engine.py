"""
Conversation engine: the state machine behind the chat assistant.

States: idle -> loading -> streaming -> (idle | awaiting_confirmation |
awaiting_data | error). Every operation that talks to the agent runs one
turn: it opens a streaming call, applies events in arrival order and stops
at the first terminal event.

Each turn carries a generation number. Starting a new session or loading
another one bumps the generation, so events that arrive later for an
abandoned turn are dropped instead of touching the active conversation.
"""

from __future__ import annotations

from collections.abc import Callable

from centralia.protocol.elements import ButtonsElement, InteractiveElement
from centralia.protocol.events import (
    DataRequest,
    DoneEvent,
    ErrorEvent,
    InteractiveEvent,
    NeedsConfirmationEvent,
    NeedsDataEvent,
    PendingAction,
    StreamEvent,
    TokenEvent,
    ToolStartEvent,
)
from centralia.transport.base import (
    OutgoingMessage,
    StreamingTransport,
    TransportError,
    TransportRequest,
)
from centralia.utils.logger import get_logger
from centralia_chat.domain.entities.message import Message, MessageRole
from centralia_chat.domain.entities.session import Session
from centralia_chat.domain.errors import ChatError, ConversationBusyError, SessionNotFoundError
from centralia_chat.domain.repositories.session_repository import SessionRepository
from centralia_chat.domain.value_objects.conversation_status import ConversationStatus, GateKind
from centralia_chat.services.gates import DataCollectionGate, GateSlot, PendingActionGate
from centralia_chat.services.titles import TITLE_MAX_LENGTH, generate_title

logger = get_logger(__name__)

Listener = Callable[["ConversationEngine"], None]

DEFAULT_TITLE = "Nova conversa"
CANCEL_MESSAGE = "Operação cancelada. Como posso ajudar?"
INCOMPLETE_STREAM_MESSAGE = "A conexão foi encerrada antes do fim da resposta."
SESSION_DELETED_MESSAGE = "Esta conversa foi excluída. A próxima mensagem inicia uma nova conversa."


class ConversationEngine:
    def __init__(
        self,
        transport: StreamingTransport,
        repository: SessionRepository,
        *,
        default_title: str = DEFAULT_TITLE,
        cancel_message: str = CANCEL_MESSAGE,
        title_max_length: int = TITLE_MAX_LENGTH,
    ) -> None:
        self._transport = transport
        self._repo = repository
        self._default_title = default_title
        self._cancel_message = cancel_message
        self._title_max_length = title_max_length

        self._status = ConversationStatus.IDLE
        self._session: Session | None = None
        self._messages: list[Message] = []
        self._buffer: list[str] = []
        self._pending_elements: list[InteractiveElement] = []
        self._gates = GateSlot()
        self._error: str | None = None
        self._generation = 0
        self._listeners: list[Listener] = []

    @property
    def status(self) -> ConversationStatus:
        return self._status

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def session_id(self) -> str | None:
        return self._session.session_id if self._session else None

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def streaming_text(self) -> str:
        return "".join(self._buffer)

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def gate_kind(self) -> GateKind:
        return self._gates.kind

    @property
    def pending_action(self) -> PendingAction | None:
        return self._gates.pending_action

    @property
    def data_request(self) -> DataRequest | None:
        return self._gates.data_request

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def accepts_input(self) -> bool:
        return not self._status.in_flight and not self._gates.is_open

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called after every state change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:  # noqa: BLE001
                logger.exception("Conversation listener failed")

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _ensure_accepting_input(self) -> None:
        if self._status.in_flight:
            raise ConversationBusyError("Aguarde a resposta atual terminar")
        if self._gates.is_open:
            raise ConversationBusyError(
                f"Conversa aguardando {self._gates.kind.value}; resolva antes de enviar"
            )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def send_message(self, text: str) -> None:
        """Send a user message and run the turn to its terminal event."""
        if not text.strip():
            return
        await self._send_user_message(display=text, payload=text)

    async def answer_buttons(self, message_index: int, element_index: int, value: str) -> None:
        """Answer a buttons element: the label is shown, the value is sent."""
        self._ensure_accepting_input()
        message = self._messages[message_index]
        element = message.interactive[element_index]
        if not isinstance(element, ButtonsElement):
            raise ValueError(f"Element {element_index} is {element.type}, not buttons")

        answered = element.answer(value)
        option = answered.option(value)
        elements = list(message.interactive)
        elements[element_index] = answered
        self._messages[message_index] = message.with_interactive(elements)

        label = option.label if option else value
        await self._send_user_message(display=label, payload=value)

    async def confirm(self) -> None:
        await self._resolve_pending_action(confirmed=True)

    async def reject(self) -> None:
        await self._resolve_pending_action(confirmed=False)

    async def submit_data(self, values: dict[str, object]) -> dict[str, str]:
        """Submit the open data request.

        Returns per-field errors without contacting the agent when validation
        fails, otherwise an empty dict once the resumed turn has finished.
        """
        if self._status.in_flight:
            raise ConversationBusyError("Aguarde a resposta atual terminar")
        gate = self._gates.data_gate()
        errors = gate.validate(values)
        if errors:
            return errors

        self._gates.close()
        generation = self._begin_turn()
        self._notify()
        request = TransportRequest(
            messages=[DataCollectionGate.submission_message(dict(values))],
            session_id=self.session_id,
        )
        await self._run_turn(generation, request)
        return {}

    async def cancel_data_request(self) -> None:
        """Close the data request locally and acknowledge the cancellation."""
        self._gates.data_gate()
        self._gates.close()
        message = Message(role=MessageRole.ASSISTANT, content=self._cancel_message, session_id=self.session_id)
        self._messages.append(message)
        self._status = ConversationStatus.IDLE
        self._notify()
        await self._persist(message)

    def start_new_session(self) -> None:
        """Reset to an empty conversation; the old session stays persisted."""
        self._generation += 1
        self._reset(session=None, messages=[])
        logger.info("Started a new conversation")

    async def load_session(self, session_id: str) -> None:
        """Replace the conversation with a stored session.

        Raises ``SessionNotFoundError`` when the session no longer exists.
        """
        self._generation += 1
        generation = self._generation
        try:
            session = await self._repo.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            messages = await self._repo.get_messages(session_id)
        except ChatError:
            if self._is_current(generation) and self._status.in_flight:
                self._buffer = []
                self._pending_elements = []
                self._status = ConversationStatus.IDLE
                self._notify()
            raise

        if not self._is_current(generation):
            logger.debug(f"Discarding superseded load of session {session_id}")
            return
        self._reset(session=session, messages=messages)
        logger.info(f"Loaded session {session_id} with {len(messages)} message(s)")

    def resume(self, session: Session, messages: list[Message], generation: int) -> bool:
        """Adopt a stored session if nothing happened since ``generation``."""
        pristine = (
            self._is_current(generation)
            and self._session is None
            and not self._messages
            and self._status is ConversationStatus.IDLE
        )
        if not pristine:
            return False
        self._reset(session=session, messages=messages)
        return True

    async def add_message(self, message: Message) -> None:
        """Append an externally produced message and persist it.

        Tool messages stay in memory only.
        """
        self._messages.append(message)
        self._notify()
        if not message.persistable:
            logger.debug("Skipping persistence of tool message")
            return

        if self._session is None:
            if message.role is MessageRole.USER and message.content.strip():
                title = generate_title(message.content, self._title_max_length)
            else:
                title = self._default_title
            session = await self._repo.create(title)
            if self._session is None:
                self._session = session
                self._notify()
        await self._persist(message, strict=True)

    def clear_error(self) -> None:
        if self._status is ConversationStatus.ERROR:
            self._status = ConversationStatus.IDLE
            self._error = None
            self._notify()

    # ------------------------------------------------------------------
    # Turn machinery
    # ------------------------------------------------------------------

    def _reset(self, session: Session | None, messages: list[Message]) -> None:
        self._gates.close()
        self._session = session
        self._messages = list(messages)
        self._buffer = []
        self._pending_elements = []
        self._error = None
        self._status = ConversationStatus.IDLE
        self._notify()

    def _begin_turn(self) -> int:
        self._generation += 1
        self._status = ConversationStatus.LOADING
        self._error = None
        self._buffer = []
        self._pending_elements = []
        return self._generation

    async def _send_user_message(self, display: str, payload: str) -> None:
        self._ensure_accepting_input()
        generation = self._begin_turn()
        message = Message(role=MessageRole.USER, content=display, session_id=self.session_id)
        self._messages.append(message)
        self._notify()

        if self._session is None:
            try:
                session = await self._repo.create(generate_title(display, self._title_max_length))
            except ChatError as e:
                if self._is_current(generation):
                    self._fail(f"Não foi possível criar a conversa: {e}")
                return
            if not self._is_current(generation):
                return
            self._session = session
            logger.info(f"Created session {session.session_id} title={session.title!r}")

        await self._persist(message)
        if not self._is_current(generation) or self._status is ConversationStatus.ERROR:
            return
        request = TransportRequest(
            messages=[OutgoingMessage(role=MessageRole.USER.value, content=payload)],
            session_id=self.session_id,
        )
        await self._run_turn(generation, request)

    async def _resolve_pending_action(self, confirmed: bool) -> None:
        if self._status.in_flight:
            raise ConversationBusyError("Aguarde a resposta atual terminar")
        gate: PendingActionGate = self._gates.confirmation_gate()
        # Closed before the call: a failed resumption leaves no gate open.
        self._gates.close()
        generation = self._begin_turn()
        self._notify()
        logger.info(
            f"{'Confirming' if confirmed else 'Rejecting'} action "
            f"{gate.action.action_type} token={gate.action.id}"
        )
        request = TransportRequest(session_id=self.session_id, confirmation=gate.resumption(confirmed))
        await self._run_turn(generation, request)

    async def _run_turn(self, generation: int, request: TransportRequest) -> None:
        logger.debug(f"Turn {generation} started session_id={request.session_id}")
        events = self._transport.stream(request)
        try:
            async for event in events:
                if not self._is_current(generation):
                    logger.debug(f"Ignoring {event.type} event of abandoned turn {generation}")
                    return
                if await self._apply(event, generation):
                    logger.debug(f"Turn {generation} ended with {event.type}")
                    return
            if self._is_current(generation):
                self._fail(INCOMPLETE_STREAM_MESSAGE)
        except TransportError as e:
            if self._is_current(generation):
                self._fail(str(e))
            else:
                logger.debug(f"Transport error of abandoned turn {generation}: {e}")
        except Exception as e:
            logger.exception(f"Turn {generation} failed: {type(e).__name__}: {e!r}")
            if self._is_current(generation):
                self._fail(f"{type(e).__name__}: {e}")
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()

    async def _apply(self, event: StreamEvent, generation: int) -> bool:
        """Apply one event; returns True when the event ends the turn."""
        if isinstance(event, TokenEvent):
            if self._status is ConversationStatus.LOADING:
                self._status = ConversationStatus.STREAMING
            self._buffer.append(event.text)
            self._notify()
            return False

        if isinstance(event, ToolStartEvent):
            logger.info(f"Agent tool started: {event.name}")
            return False

        if isinstance(event, InteractiveEvent):
            self._pending_elements.extend(event.elements)
            self._notify()
            return False

        if isinstance(event, NeedsConfirmationEvent):
            message = self._commit_buffer(event.message)
            self._gates.open(PendingActionGate(event.pending_action))
            self._status = ConversationStatus.AWAITING_CONFIRMATION
            self._notify()
            await self._persist(message)
            return True

        if isinstance(event, NeedsDataEvent):
            message = self._commit_buffer(event.message)
            self._gates.open(DataCollectionGate(event.data_request))
            self._status = ConversationStatus.AWAITING_DATA
            self._notify()
            await self._persist(message)
            return True

        if isinstance(event, DoneEvent):
            message = self._commit_buffer()
            self._status = ConversationStatus.IDLE
            self._notify()
            await self._persist(message)
            if event.session_id and self._session is None and self._status is ConversationStatus.IDLE:
                await self._attach_session(event.session_id, generation)
            return True

        if isinstance(event, ErrorEvent):
            self._fail(event.message)
            return True

        logger.debug(f"Ignoring unsupported event {event!r}")
        return False

    def _commit_buffer(self, trailing: str = "") -> Message | None:
        text = "".join(self._buffer)
        content = "\n\n".join(part for part in (text, trailing) if part)
        elements = self._pending_elements
        self._buffer = []
        self._pending_elements = []
        if not content and not elements:
            return None
        message = Message(
            role=MessageRole.ASSISTANT,
            content=content,
            interactive=elements,
            session_id=self.session_id,
        )
        self._messages.append(message)
        return message

    def _fail(self, error: str) -> None:
        logger.warning(f"Conversation error: {error}")
        self._buffer = []
        self._pending_elements = []
        self._error = error
        self._status = ConversationStatus.ERROR
        self._notify()

    async def _attach_session(self, session_id: str, generation: int) -> None:
        try:
            session = await self._repo.get(session_id)
        except ChatError as e:
            logger.error(f"Could not fetch session {session_id} returned by the agent: {e}")
            return
        if session is None:
            logger.warning(f"Agent returned unknown session {session_id}")
            return
        if self._is_current(generation) and self._session is None:
            self._session = session
            self._notify()

    async def _persist(self, message: Message | None, *, strict: bool = False) -> None:
        if message is None or not message.persistable or self._session is None:
            return
        session_id = self._session.session_id
        try:
            stored = await self._repo.append_message(
                session_id,
                role=message.role,
                content=message.content,
                tool_calls=message.tool_calls,
                interactive=message.interactive or None,
            )
        except SessionNotFoundError:
            self._drop_deleted_session(session_id, fail=not strict)
            if strict:
                raise
            return
        except ChatError as e:
            if strict:
                raise
            logger.error(f"Failed to persist {message.role.value} message in session {session_id}: {e}")
            return

        for index, current in enumerate(self._messages):
            if current is message:
                self._messages[index] = stored
                break

    def _drop_deleted_session(self, session_id: str, *, fail: bool) -> None:
        """Detach a session removed from the store; the next send creates a new one."""
        logger.warning(f"Session {session_id} no longer exists in the store")
        if self._session is None or self._session.session_id != session_id:
            return
        self._session = None
        self._gates.close()
        if fail:
            self._fail(SESSION_DELETED_MESSAGE)
        else:
            self._notify()
