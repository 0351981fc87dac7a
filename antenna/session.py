"""Session aggregate: the phase/turn state machine driven by server pushes."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager

import structlog

from .cards import CardTable
from .commands import (
    AcceptAppointment,
    Action,
    Comment,
    Command,
    EndStorytelling,
    PassAppointment,
    Queue,
    Seat,
    StartGame,
    Withdraw,
)
from .errors import NotYourTurnError
from .log_store import EventLogStore, LogEntry
from .messages import (
    AppointmentAccept,
    AppointmentPass,
    AssemblyUpdate,
    GameEnd,
    GameplayProgress,
    LogBatch,
    RoomState,
    Start,
)
from .roster import Roster
from .selection import SelectionAccumulator
from .snapshot import (
    AppointmentPanel,
    AssemblyPanel,
    Connectivity,
    GameplayPanel,
    SessionSnapshot,
    SlotView,
)
from .status import GameEndSummary, GameplayStatus, Phase, RoomInfo
from .timer import Scheduler, TimerReconciler

log = structlog.get_logger(__name__)

APPOINTMENT_TIME_LIMIT_SEC = 30.0

SnapshotListener = Callable[[SessionSnapshot], None]


class Session:
    """Reconciled local view of one joined room.

    All mutation goes through the `on_*` handlers (one per inbound message
    type) and the intent methods. Handlers never raise for out-of-order or
    out-of-range input: the latest server push always wins and the local
    phase is overwritten to match it.
    """

    def __init__(
        self,
        *,
        self_id: int,
        room_id: int,
        scheduler: Scheduler,
        send: Callable[[Command], None],
        clock: Callable[[], float] = time.monotonic,
        room: RoomInfo | None = None,
        own_profile_ids: Sequence[int] = (),
        cards: CardTable | None = None,
    ):
        self.self_id = self_id
        self.room_id = room_id
        self.room = room
        self.own_profile_ids = tuple(own_profile_ids)
        self.cards = cards
        self.phase = Phase.ASSEMBLY
        self.roster = Roster()
        self.self_seat_index: int | None = None
        self.server_self_index: int | None = None
        self.log = EventLogStore()
        self.timer = TimerReconciler(scheduler, clock=clock, on_tick=self._on_timer_tick)
        self.selection = SelectionAccumulator(self._send)
        self.appointment_holder: int | None = None
        self.gameplay: GameplayStatus | None = None
        self.game_end: GameEndSummary | None = None
        self.last_error: str | None = None
        self.connectivity = Connectivity.CONNECTING
        self._send_command = send
        self._listeners: list[SnapshotListener] = []
        self._batch_depth = 0
        self._log = log.bind(room_id=room_id, self_id=self_id)

    # ------------------------------------------------------------------
    # Derived state

    @property
    def holder(self) -> int | None:
        """Seat holding the turn (or the appointment), if any."""
        if self.phase is Phase.APPOINTMENT:
            return self.appointment_holder
        if self.phase is Phase.GAMEPLAY and self.gameplay is not None:
            return self.gameplay.holder
        return None

    @property
    def storyteller(self) -> int | None:
        if self.phase is Phase.GAMEPLAY and self.gameplay is not None:
            return self.gameplay.storyteller
        return None

    @property
    def can_act(self) -> bool:
        """Whether the local user is the holder during the selection step."""
        return (
            self.phase is Phase.GAMEPLAY
            and self.gameplay is not None
            and self.gameplay.is_selection
            and self.self_seat_index is not None
            and self.gameplay.holder == self.self_seat_index
        )

    @property
    def is_storyteller(self) -> bool:
        return self.self_seat_index is not None and self.storyteller == self.self_seat_index

    @property
    def is_room_creator(self) -> bool:
        return self.room is not None and self.room.creator_id == self.self_id

    @property
    def can_start(self) -> bool:
        return self.phase is Phase.ASSEMBLY and self.is_room_creator and self.roster.all_seated

    # ------------------------------------------------------------------
    # Snapshot publication

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a snapshot listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @contextmanager
    def batch(self) -> Iterator["Session"]:
        """Apply several mutations and publish a single snapshot afterwards."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
        if self._batch_depth == 0:
            self.publish()

    def publish(self) -> SessionSnapshot:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot

    def snapshot(self) -> SessionSnapshot:
        """Build the immutable view of the current state."""
        holder = self.holder
        storyteller = self.storyteller
        slots = tuple(
            SlotView(
                seat_index=index,
                creator_id=slot.creator_id,
                creator_nickname=slot.creator_nickname,
                profile_id=slot.profile_id,
                seated=slot.seated,
                race=slot.race,
                description=slot.description,
                stats=slot.stats,
                is_self=index == self.self_seat_index,
                is_holder=index == holder,
                is_storyteller=index == storyteller,
            )
            for index, slot in enumerate(self.roster)
        )

        assembly = None
        if self.phase is Phase.ASSEMBLY:
            self_slot = self.roster.slot(self.self_seat_index)
            self_seated = self_slot is not None and self_slot.seated
            assembly = AssemblyPanel(
                self_seated=self_seated,
                offered_profile_ids=() if self_seated else self.own_profile_ids,
                is_room_creator=self.is_room_creator,
                can_start=self.can_start,
            )

        appointment = None
        if self.phase is Phase.APPOINTMENT and self.appointment_holder is not None:
            appointment = AppointmentPanel(
                holder=self.appointment_holder,
                is_self_holder=self.appointment_holder == self.self_seat_index,
            )

        gameplay = None
        if self.phase is Phase.GAMEPLAY and self.gameplay is not None:
            hand = self.gameplay.hand
            hand_cards = self.cards.describe(hand) if self.cards is not None else [
                {"name": name, "definition": None} for name in hand
            ]
            gameplay = GameplayPanel(
                status=self.gameplay,
                storyteller=storyteller,
                can_act=self.can_act,
                is_storyteller=self.is_storyteller,
                keyword_text=self.gameplay.keyword_text(),
                pending_selection=self.selection.pending(),
                hand_cards=tuple(hand_cards),
            )

        return SessionSnapshot(
            self_id=self.self_id,
            room_id=self.room_id,
            room=self.room,
            phase=self.phase,
            connectivity=self.connectivity,
            roster=slots,
            self_seat_index=self.self_seat_index,
            holder=holder,
            storyteller=storyteller,
            timer_seconds=self.timer.display,
            assembly=assembly,
            appointment=appointment,
            gameplay=gameplay,
            game_end=self.game_end if self.phase is Phase.GAME_END else None,
            log=self.log.entries,
            last_error=self.last_error,
        )

    def _on_timer_tick(self, _shown: int | None) -> None:
        if self._batch_depth == 0:
            self.publish()

    # ------------------------------------------------------------------
    # Inbound handlers

    def on_room_state(self, message: RoomState) -> None:
        """Adopt a full snapshot; local partial state is discarded, not merged."""
        self.room = message.room
        self.log.append([LogEntry.synthesized(message.room.notice())])
        if message.players is not None:
            self._replace_roster(message.players)
        if message.my_index is not None:
            self._record_server_index(message.my_index)

        self.selection.reset()
        self.appointment_holder = None
        self.gameplay = None
        if message.phase is not Phase.GAME_END:
            self.game_end = None
        self.phase = message.phase

        if message.phase is Phase.APPOINTMENT and message.appointment_status is not None:
            self.appointment_holder = message.appointment_status.holder
            self.timer.set_timer(message.appointment_status.timer)
        elif message.phase is Phase.GAMEPLAY and message.gameplay_status is not None:
            self._apply_gameplay(message.gameplay_status)
        else:
            self.timer.set_timer(None)
        self._log.info("room_state_applied", phase=self.phase.value, players=len(self.roster))

    def on_assembly_update(self, message: AssemblyUpdate) -> None:
        self._replace_roster(message.players)
        if self.phase is not Phase.ASSEMBLY:
            self._log.info("phase_overwritten", previous=self.phase.value, phase=Phase.ASSEMBLY.value)
        self.phase = Phase.ASSEMBLY
        self.appointment_holder = None
        self.gameplay = None
        self.selection.reset()
        self.timer.set_timer(None)

    def on_log(self, message: LogBatch) -> None:
        added = self.log.append(message.entries)
        self._log.debug("log_appended", received=len(message.entries), added=len(added))

    def on_start(self, message: Start) -> None:
        if message.my_index is not None:
            self._record_server_index(message.my_index)
        self.phase = Phase.APPOINTMENT
        self.gameplay = None
        self.game_end = None
        self.selection.reset()
        self.appointment_holder = message.holder
        self.timer.set_timer(APPOINTMENT_TIME_LIMIT_SEC)
        self._log.info("appointment_started", holder=message.holder)

    def on_appointment_pass(self, message: AppointmentPass) -> None:
        self.phase = Phase.APPOINTMENT
        self.gameplay = None
        self.game_end = None
        self.selection.reset()
        self.appointment_holder = message.next_holder
        self.timer.set_timer(APPOINTMENT_TIME_LIMIT_SEC)
        self._log.info("appointment_passed", prev_holder=message.prev_holder, holder=message.next_holder)

    def on_appointment_accept(self, message: AppointmentAccept) -> None:
        self._apply_gameplay(message.gameplay_status)
        self._log.info("gameplay_started", prev_holder=message.prev_holder, holder=message.gameplay_status.holder)

    def on_gameplay_progress(self, message: GameplayProgress) -> None:
        self._apply_gameplay(message.gameplay_status)

    def on_game_end(self, message: GameEnd) -> None:
        self.phase = Phase.GAME_END
        self.game_end = message.summary
        self.gameplay = None
        self.appointment_holder = None
        self.selection.reset()
        self.timer.set_timer(None)
        self._log.info("game_ended")

    def on_server_error(self, reason: str) -> None:
        """Record a rejection sent by the server in reply to one of our commands."""
        self.last_error = reason
        self._log.warning("server_rejected_command", reason=reason)

    def clear_error(self) -> None:
        self.last_error = None

    def set_connectivity(self, status: Connectivity) -> None:
        if status is self.connectivity:
            return
        self.connectivity = status
        self._log.info("connectivity_changed", status=status.value)
        if self._batch_depth == 0:
            self.publish()

    def _replace_roster(self, roster: Roster) -> None:
        self.roster = roster
        self.self_seat_index = roster.seat_of(self.self_id)

    def _record_server_index(self, my_index: int) -> None:
        self.server_self_index = my_index
        if self.self_seat_index is not None and self.self_seat_index != my_index:
            self._log.warning("seat_index_mismatch", derived=self.self_seat_index, server=my_index)

    def _apply_gameplay(self, status: GameplayStatus) -> None:
        previous = self.gameplay
        self.phase = Phase.GAMEPLAY
        self.appointment_holder = None
        self.gameplay = status
        if previous is None or previous.turn_key() != status.turn_key() or not self.can_act:
            self.selection.reset()
        self.timer.set_timer(status.timer)

    # ------------------------------------------------------------------
    # Intents

    def choose_arena(self, index: int) -> Action | None:
        self._require_selection_turn()
        return self.selection.choose_arena(index)

    def choose_hand(self, index: int) -> Action | None:
        self._require_selection_turn()
        return self.selection.choose_hand(index)

    def choose_target(self, seat_index: int | None) -> Action | None:
        self._require_selection_turn()
        return self.selection.choose_target(seat_index)

    def seat(self, profile_id: int) -> None:
        self._send(Seat(profile_id=profile_id))

    def withdraw(self) -> None:
        self._send(Withdraw())

    def request_start(self) -> None:
        """Ask the server to start; the phase only changes once it confirms."""
        self._send(StartGame())

    def accept_appointment(self) -> None:
        self._send(AcceptAppointment())

    def pass_appointment(self) -> None:
        self._send(PassAppointment())

    def queue(self) -> None:
        self._send(Queue())

    def comment(self, text: str) -> None:
        self._send(Comment(text=text))

    def end_storytelling(self) -> None:
        self._send(EndStorytelling())

    def send(self, command: Command) -> None:
        """Send an already-built command."""
        self._send(command)

    def _require_selection_turn(self) -> None:
        if not self.can_act:
            gameplay = self.gameplay
            raise NotYourTurnError(
                self.self_seat_index,
                gameplay.holder if gameplay is not None else None,
                gameplay.step if gameplay is not None else None,
            )

    def _send(self, command: Command) -> None:
        self._send_command(command)
        self._log.info("command_sent", command=command.command_type)

    # ------------------------------------------------------------------

    def teardown(self) -> None:
        """Cancel pending work and drop listeners; the session is unusable afterwards."""
        self._listeners.clear()
        self.selection.reset()
        self.timer.cancel()
        self._log.info("session_closed")
