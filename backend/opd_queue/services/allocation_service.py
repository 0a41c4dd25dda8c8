"""
Token allocation engine.

Holds the doctor registry, the token registry and the shared waiting list,
and is the only place where slot membership changes. The engine is
synchronous and unsynchronized: callers exposing it to concurrent requests
must serialize access to one instance.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from ..exceptions import (
    AllocationError,
    CapacityExceeded,
    DoctorNotFound,
    DuplicateDoctor,
    EmergencyPreemptionDenied,
    ErrorKind,
    InvalidDelay,
    SlotNotFound,
    TokenNotFound,
)
from ..models.doctor import DoctorSchedule, parse_time, format_time
from ..models.requests import AllocateRequest, EmergencyRequest, DoctorCreate
from ..models.results import (
    AllocationResult,
    CancellationResult,
    EmergencyResult,
    DelayResult,
    RegistrationResult,
    DoctorSummary,
    EngineStatus,
)
from ..models.slot import Slot
from ..models.token import Token, TokenSource, TokenStatus

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_token_id() -> str:
    return str(uuid.uuid4())


class AllocationEngine:
    """Allocates, cancels, preempts and delays consultation tokens."""

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
        emergency_adjustment: int = 5,
    ):
        self.doctors: Dict[str, DoctorSchedule] = {}
        self.tokens: Dict[str, Token] = {}
        self.waiting_list: List[Token] = []
        self.emergency_adjustment = emergency_adjustment
        self._clock = clock or _utcnow
        self._new_id = id_factory or _new_token_id

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_doctor(self, schedule: DoctorSchedule) -> RegistrationResult:
        """Register a doctor's schedule; ids are unique for the engine's lifetime."""
        if schedule.doctor_id in self.doctors:
            exc = DuplicateDoctor(schedule.doctor_id)
            logger.warning("Registration rejected: %s", exc.message)
            return RegistrationResult.failure(exc, doctor_id=schedule.doctor_id)

        self.doctors[schedule.doctor_id] = schedule
        logger.info(
            "Registered %s (%s) with %d slots",
            schedule.doctor_id, schedule.name, len(schedule.slots)
        )
        return RegistrationResult(
            success=True,
            message="Doctor registered",
            doctor_id=schedule.doctor_id,
            slot_count=len(schedule.slots),
        )

    def register_doctor(self, request: DoctorCreate) -> RegistrationResult:
        return self.add_doctor(DoctorSchedule(**request.model_dump()))

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------

    def allocate_token(self, request: AllocateRequest) -> AllocationResult:
        """Place a token in the requested slot, a nearby slot, or the waiting list."""
        try:
            doctor = self._require_doctor(request.doctor_id)
            slot = self._require_slot(doctor, request.slot_time)
        except AllocationError as exc:
            logger.warning("Allocation rejected: %s", exc.message)
            return AllocationResult.failure(exc)

        token = self._issue_token(
            patient_id=request.patient_id,
            patient_name=request.patient_name,
            doctor_id=doctor.doctor_id,
            slot_time=slot.slot_time,
            source=request.source,
            adjustment=request.priority,
        )

        if slot.can_allocate():
            self._place(doctor, slot, token)
            self.tokens[token.id] = token
            logger.info("Token %s allocated to %s %s", token.id, doctor.doctor_id, slot.slot_time)
            return AllocationResult(
                success=True,
                token=token.snapshot(),
                message="Token allocated successfully",
            )

        alternative = self._find_alternative_slot(doctor, slot.slot_time)
        if alternative is not None:
            self._place(doctor, alternative, token)
            self.tokens[token.id] = token
            logger.info(
                "Slot %s %s full, token %s moved to %s",
                doctor.doctor_id, slot.slot_time, token.id, alternative.slot_time
            )
            return AllocationResult(
                success=True,
                token=token.snapshot(),
                reassigned=True,
                message=f"Original slot full. Allocated to {alternative.slot_time}",
            )

        token.status = TokenStatus.WAITING
        self.waiting_list.append(token)
        self.tokens[token.id] = token
        # Position is in the shared list, not per doctor
        position = len(self.waiting_list)
        logger.info("All slots of %s full, token %s waiting at %d", doctor.doctor_id, token.id, position)
        return AllocationResult(
            success=False,
            token=token.snapshot(),
            message="All slots full. Added to waiting list",
            error=ErrorKind.ALL_SLOTS_FULL,
            waiting_position=position,
        )

    def _find_alternative_slot(self, doctor: DoctorSchedule, slot_time: str) -> Optional[Slot]:
        """First open slot after ``slot_time``, else the nearest open one before it."""
        index = doctor.slot_index(slot_time)
        if index < 0:
            return None

        for slot in doctor.slots[index + 1:]:
            if slot.can_allocate():
                return slot

        for slot in reversed(doctor.slots[:index]):
            if slot.can_allocate():
                return slot

        return None

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel_token(self, token_id: str, reason: Optional[str] = "No reason") -> CancellationResult:
        """Cancel a token and hand its place to the best waiting token of that doctor."""
        try:
            token = self.tokens.get(token_id)
            if token is None:
                raise TokenNotFound(token_id)
            doctor = self._require_doctor(token.doctor_id)
        except AllocationError as exc:
            logger.warning("Cancellation rejected: %s", exc.message)
            return CancellationResult.failure(exc, token_id=token_id)

        if token.status == TokenStatus.WAITING:
            self._remove_from_waiting_list(token)
            token.cancel(reason, self._clock())
            logger.info("Waiting token %s cancelled", token.id)
            return CancellationResult(success=True, message="Token cancelled", token_id=token.id)

        if token.status != TokenStatus.ALLOCATED:
            return CancellationResult(
                success=True,
                message=f"Token already {token.status.value}",
                token_id=token.id,
            )

        slot = doctor.get_slot(token.slot_time)
        slot.remove_token(token.id)
        token.cancel(reason, self._clock())
        self._update_estimated_times(doctor, slot)
        logger.info("Token %s cancelled from %s %s", token.id, doctor.doctor_id, slot.slot_time)

        reallocated = self._reallocate_from_waiting_list(doctor, slot)
        return CancellationResult(
            success=True,
            message="Token cancelled",
            token_id=token.id,
            reallocated=reallocated.snapshot() if reallocated else None,
        )

    def _reallocate_from_waiting_list(self, doctor: DoctorSchedule, slot: Slot) -> Optional[Token]:
        if not self.waiting_list or not slot.can_allocate():
            return None

        # Stable sort keeps waiting-list order among equal scores
        candidates = sorted(
            (t for t in self.waiting_list if t.doctor_id == doctor.doctor_id),
            key=lambda t: t.priority,
            reverse=True,
        )
        if not candidates:
            return None

        token = candidates[0]
        self._remove_from_waiting_list(token)
        self._place(doctor, slot, token)
        logger.info("Waiting token %s reallocated to %s %s", token.id, doctor.doctor_id, slot.slot_time)
        return token

    def _remove_from_waiting_list(self, token: Token) -> None:
        for index, waiting in enumerate(self.waiting_list):
            if waiting is token:
                del self.waiting_list[index]
                return

    # ------------------------------------------------------------------
    # Emergencies
    # ------------------------------------------------------------------

    def insert_emergency_token(self, request: EmergencyRequest) -> EmergencyResult:
        """Admit an emergency, moving the lowest-priority occupant out if every slot is full."""
        try:
            doctor = self._require_doctor(request.doctor_id)
            preferred = None
            if request.preferred_slot is not None:
                # An unknown label is treated as no preference
                preferred = doctor.get_slot(request.preferred_slot)
                if preferred is None:
                    logger.info(
                        "Preferred slot %s not found for %s, using first open slot",
                        request.preferred_slot, doctor.doctor_id
                    )
            if not doctor.slots:
                raise SlotNotFound(doctor.doctor_id)

            anchor = preferred if preferred is not None else doctor.slots[0]
            token = self._issue_token(
                patient_id=request.patient_id,
                patient_name=request.patient_name,
                doctor_id=doctor.doctor_id,
                slot_time=anchor.slot_time,
                source=TokenSource.PRIORITY,
                adjustment=self.emergency_adjustment,
            )

            if preferred is not None and preferred.can_allocate():
                target = preferred
            else:
                target = self._first_open_slot(doctor)

            if target is None:
                return self._force_insert(doctor, token, anchor)
        except AllocationError as exc:
            logger.warning("Emergency rejected: %s", exc.message)
            return EmergencyResult.failure(exc)

        self._place(doctor, target, token)
        self.tokens[token.id] = token
        logger.info("Emergency token %s inserted at %s %s", token.id, doctor.doctor_id, target.slot_time)
        return EmergencyResult(
            success=True,
            token=token.snapshot(),
            message="Emergency token inserted",
        )

    def _first_open_slot(self, doctor: DoctorSchedule) -> Optional[Slot]:
        for slot in doctor.slots:
            if slot.can_allocate():
                return slot
        return None

    def _force_insert(self, doctor: DoctorSchedule, token: Token, target: Slot) -> EmergencyResult:
        """Evict the lowest-scored occupant of ``target`` if ``token`` outranks it.

        Raises EmergencyPreemptionDenied before touching any state otherwise.
        """
        occupants = [t for t in target.tokens_by_priority() if t.status == TokenStatus.ALLOCATED]
        if not occupants:
            raise EmergencyPreemptionDenied(f"Slot {target.slot_time} has no occupant to move")

        lowest = occupants[-1]
        if token.priority <= lowest.priority:
            raise EmergencyPreemptionDenied(
                f"No occupant of slot {target.slot_time} ranks below priority {token.priority}"
            )

        target.remove_token(lowest.id)
        self._update_estimated_times(doctor, target)

        alternative = self._find_alternative_slot(doctor, target.slot_time)
        if alternative is not None:
            self._place(doctor, alternative, lowest)
            displaced_to = alternative.slot_time
            logger.info("Token %s moved from %s to %s", lowest.id, target.slot_time, displaced_to)
        else:
            lowest.status = TokenStatus.WAITING
            lowest.estimated_time = None
            self.waiting_list.append(lowest)
            displaced_to = None
            logger.info("Token %s moved from %s to the waiting list", lowest.id, target.slot_time)

        self._place(doctor, target, token)
        self.tokens[token.id] = token
        logger.info("Emergency token %s inserted at %s %s by preemption", token.id, doctor.doctor_id, target.slot_time)
        return EmergencyResult(
            success=True,
            token=token.snapshot(),
            message="Emergency token inserted by moving lower priority patient",
            displaced_patient_id=lowest.patient_id,
            displaced_token_id=lowest.id,
            displaced_to=displaced_to,
        )

    # ------------------------------------------------------------------
    # Delays
    # ------------------------------------------------------------------

    def add_delay(self, doctor_id: str, slot_time: str, delay_minutes: int) -> DelayResult:
        """Delay a slot and every later slot of the same doctor by ``delay_minutes``."""
        try:
            doctor = self._require_doctor(doctor_id)
            index = doctor.slot_index(slot_time)
            if index < 0:
                raise SlotNotFound(doctor_id, slot_time)
            if delay_minutes < 0:
                raise InvalidDelay(f"Delay must not be negative, got {delay_minutes}")
        except AllocationError as exc:
            logger.warning("Delay rejected: %s", exc.message)
            return DelayResult.failure(exc)

        for slot in doctor.slots[index:]:
            slot.add_delay(delay_minutes)

        for slot in doctor.slots:
            self._update_estimated_times(doctor, slot)

        affected = len(doctor.slots) - index
        logger.info("Delay of %d min applied to %d slots of %s from %s", delay_minutes, affected, doctor_id, slot_time)
        return DelayResult(
            success=True,
            message=f"Delay of {delay_minutes} minutes added",
            affected_slots=affected,
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def list_doctors(self) -> List[DoctorSummary]:
        return [
            DoctorSummary(
                doctor_id=d.doctor_id,
                name=d.name,
                allocated=d.allocated,
                capacity=d.total_capacity,
                utilization=d.utilization,
            )
            for d in self.doctors.values()
        ]

    def get_status(self) -> EngineStatus:
        return EngineStatus(
            total_doctors=len(self.doctors),
            total_tokens=len(self.tokens),
            waiting_list=len(self.waiting_list),
            doctors=self.list_doctors(),
        )

    def get_token(self, token_id: str) -> Optional[Token]:
        token = self.tokens.get(token_id)
        return token.snapshot() if token else None

    def get_doctor(self, doctor_id: str) -> Optional[DoctorSchedule]:
        doctor = self.doctors.get(doctor_id)
        return doctor.model_copy(deep=True) if doctor else None

    def waiting_tokens(self) -> List[Token]:
        return [t.snapshot() for t in self.waiting_list]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_doctor(self, doctor_id: str) -> DoctorSchedule:
        doctor = self.doctors.get(doctor_id)
        if doctor is None:
            raise DoctorNotFound(doctor_id)
        return doctor

    def _require_slot(self, doctor: DoctorSchedule, slot_time: str) -> Slot:
        slot = doctor.get_slot(slot_time)
        if slot is None:
            raise SlotNotFound(doctor.doctor_id, slot_time)
        return slot

    def _issue_token(self, **fields) -> Token:
        return Token.issue(token_id=self._new_id(), created_at=self._clock(), **fields)

    def _place(self, doctor: DoctorSchedule, slot: Slot, token: Token) -> None:
        """Bind ``token`` to ``slot``. Every slot membership gain goes through here."""
        if not slot.can_allocate():
            raise CapacityExceeded(f"Slot {slot.slot_time} of {doctor.doctor_id} is at full capacity")
        token.status = TokenStatus.ALLOCATED
        token.slot_time = slot.slot_time
        slot.add_token(token)
        self._update_estimated_times(doctor, slot)

    def _update_estimated_times(self, doctor: DoctorSchedule, slot: Slot) -> None:
        base = parse_time(slot.slot_time)
        for index, token in enumerate(slot.tokens):
            token.estimated_time = format_time(
                base + index * doctor.avg_consultation_time + slot.delay_minutes
            )
