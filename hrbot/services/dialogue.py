"""Registration dialogue: per-user state machine collecting identity fields.

Linear happy path:
    waiting_lastName -> waiting_firstName -> waiting_middleName ->
    waiting_departmentId -> waiting_positionId -> waiting_phone -> confirming_data

From confirming_data the user either confirms (verification runs and the state
is cleared) or opens the edit menu (choosing_edit_field), picks one field
(editing_*) and, after a valid value, lands back on confirming_data.

The transition functions are pure; RegistrationDialogue binds them to a
SessionStore keyed by Telegram user id and renders prompts.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum

from hrbot.services.errors import InvalidTransitionError, ValidationError
from hrbot.services.localizer import t
from hrbot.services.phone import validate_phone_input
from hrbot.services.session_store import SessionStore

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2
NO_MIDDLE_NAME = "-"

_INTEGER_PATTERN = re.compile(r"^\d+$")


class Step(str, Enum):
    """Dialogue step tags."""

    WAITING_LAST_NAME = "waiting_lastName"
    WAITING_FIRST_NAME = "waiting_firstName"
    WAITING_MIDDLE_NAME = "waiting_middleName"
    WAITING_DEPARTMENT_ID = "waiting_departmentId"
    WAITING_POSITION_ID = "waiting_positionId"
    WAITING_PHONE = "waiting_phone"
    CONFIRMING_DATA = "confirming_data"
    CHOOSING_EDIT_FIELD = "choosing_edit_field"
    EDITING_LAST_NAME = "editing_lastName"
    EDITING_FIRST_NAME = "editing_firstName"
    EDITING_MIDDLE_NAME = "editing_middleName"
    EDITING_DEPARTMENT_ID = "editing_departmentId"
    EDITING_POSITION_ID = "editing_positionId"
    EDITING_PHONE = "editing_phone"


class FormField(str, Enum):
    """Form fields in collection order."""

    LAST_NAME = "lastName"
    FIRST_NAME = "firstName"
    MIDDLE_NAME = "middleName"
    DEPARTMENT_ID = "departmentId"
    POSITION_ID = "positionId"
    PHONE = "phone"


_LINEAR_STEPS = [
    Step.WAITING_LAST_NAME,
    Step.WAITING_FIRST_NAME,
    Step.WAITING_MIDDLE_NAME,
    Step.WAITING_DEPARTMENT_ID,
    Step.WAITING_POSITION_ID,
    Step.WAITING_PHONE,
]
_EDIT_STEPS = [
    Step.EDITING_LAST_NAME,
    Step.EDITING_FIRST_NAME,
    Step.EDITING_MIDDLE_NAME,
    Step.EDITING_DEPARTMENT_ID,
    Step.EDITING_POSITION_ID,
    Step.EDITING_PHONE,
]

_WAITING_FIELD = dict(zip(_LINEAR_STEPS, FormField))
_EDITING_FIELD = dict(zip(_EDIT_STEPS, FormField))
_EDIT_STEP_BY_FIELD = dict(zip(FormField, _EDIT_STEPS))

_FIELD_ATTRS = {
    FormField.LAST_NAME: "last_name",
    FormField.FIRST_NAME: "first_name",
    FormField.MIDDLE_NAME: "middle_name",
    FormField.DEPARTMENT_ID: "department_id",
    FormField.POSITION_ID: "position_id",
    FormField.PHONE: "phone",
}

_PROMPT_KEYS = {
    FormField.LAST_NAME: "registration.prompt_last_name",
    FormField.FIRST_NAME: "registration.prompt_first_name",
    FormField.MIDDLE_NAME: "registration.prompt_middle_name",
    FormField.DEPARTMENT_ID: "registration.prompt_department_id",
    FormField.POSITION_ID: "registration.prompt_position_id",
    FormField.PHONE: "registration.prompt_phone",
}


@dataclass(frozen=True)
class RegistrationForm:
    """Identity fields collected so far (None until entered)."""

    last_name: str | None = None
    first_name: str | None = None
    middle_name: str | None = None
    department_id: int | None = None
    position_id: int | None = None
    phone: str | None = None

    def with_value(self, form_field: FormField, value) -> "RegistrationForm":
        return replace(self, **{_FIELD_ATTRS[form_field]: value})

    @property
    def display_name(self) -> str:
        parts = [self.last_name, self.first_name, self.middle_name]
        return " ".join(p for p in parts if p)

    def to_payload(self) -> dict:
        """JSON-safe snapshot for audit entries."""
        return {
            "lastName": self.last_name,
            "firstName": self.first_name,
            "middleName": self.middle_name,
            "departmentId": self.department_id,
            "positionId": self.position_id,
            "phone": self.phone,
        }


@dataclass(frozen=True)
class RegistrationState:
    """Dialogue state of one Telegram user."""

    step: Step = Step.WAITING_LAST_NAME
    form: RegistrationForm = field(default_factory=RegistrationForm)
    processing: bool = False
    """Set once confirmation started; a second confirm is ignored."""


def start_state() -> RegistrationState:
    return RegistrationState()


def field_for_step(step: Step) -> FormField | None:
    """Field collected by a waiting_* or editing_* step, None otherwise."""
    return _WAITING_FIELD.get(step) or _EDITING_FIELD.get(step)


def parse_field(form_field: FormField, text: str):
    """Validate raw text for a form field.

    Returns:
        Parsed value: str for names, None for an absent middle name,
        int for department/position, canonical digits for phone

    Raises:
        ValidationError: With the localizer key of the re-prompt
    """
    value = (text or "").strip()

    if form_field in (FormField.LAST_NAME, FormField.FIRST_NAME):
        if len(value) < MIN_NAME_LENGTH:
            raise ValidationError("errors.name_too_short")
        return value

    if form_field == FormField.MIDDLE_NAME:
        if value == NO_MIDDLE_NAME:
            return None
        if not value:
            raise ValidationError("errors.middle_name_empty")
        return value

    if form_field in (FormField.DEPARTMENT_ID, FormField.POSITION_ID):
        if not _INTEGER_PATTERN.match(value):
            raise ValidationError("errors.invalid_number")
        return int(value)

    return validate_phone_input(value)


def apply_input(state: RegistrationState, text: str) -> RegistrationState:
    """Apply a text message to the current step.

    waiting_* steps advance linearly; editing_* steps return to confirming_data.

    Raises:
        ValidationError: Input rejected, state must stay unchanged
        InvalidTransitionError: Current step does not accept text
    """
    form_field = field_for_step(state.step)
    if form_field is None:
        raise InvalidTransitionError(f"Step {state.step.value} does not accept text")

    form = state.form.with_value(form_field, parse_field(form_field, text))

    if state.step in _WAITING_FIELD:
        index = _LINEAR_STEPS.index(state.step)
        next_step = (
            _LINEAR_STEPS[index + 1] if index + 1 < len(_LINEAR_STEPS) else Step.CONFIRMING_DATA
        )
    else:
        next_step = Step.CONFIRMING_DATA

    return replace(state, step=next_step, form=form)


def begin_edit(state: RegistrationState) -> RegistrationState:
    if state.step != Step.CONFIRMING_DATA or state.processing:
        raise InvalidTransitionError(f"Cannot edit from {state.step.value}")
    return replace(state, step=Step.CHOOSING_EDIT_FIELD)


def choose_edit_field(state: RegistrationState, form_field: FormField) -> RegistrationState:
    if state.step != Step.CHOOSING_EDIT_FIELD:
        raise InvalidTransitionError(f"Cannot choose a field from {state.step.value}")
    return replace(state, step=_EDIT_STEP_BY_FIELD[form_field])


def back_to_confirmation(state: RegistrationState) -> RegistrationState:
    if state.step != Step.CHOOSING_EDIT_FIELD:
        raise InvalidTransitionError(f"Cannot go back from {state.step.value}")
    return replace(state, step=Step.CONFIRMING_DATA)


class ReplyMarkup(str, Enum):
    """Keyboard the handler layer should attach to a reply."""

    NONE = "none"
    CONFIRM = "confirm"
    EDIT_MENU = "edit_menu"


@dataclass
class DialogueReply:
    text: str
    markup: ReplyMarkup = ReplyMarkup.NONE
    state: RegistrationState | None = None


def render_summary(form: RegistrationForm) -> str:
    return t(
        "registration.summary",
        last_name=form.last_name or "",
        first_name=form.first_name or "",
        middle_name=form.middle_name or t("registration.no_middle_name"),
        department_id=form.department_id if form.department_id is not None else "",
        position_id=form.position_id if form.position_id is not None else "",
        phone=form.phone or "",
    )


def render_prompt(state: RegistrationState) -> DialogueReply:
    """Prompt for the current step, with the keyboard it needs."""
    if state.step == Step.CONFIRMING_DATA:
        return DialogueReply(render_summary(state.form), ReplyMarkup.CONFIRM, state)
    if state.step == Step.CHOOSING_EDIT_FIELD:
        return DialogueReply(t("registration.choose_field"), ReplyMarkup.EDIT_MENU, state)
    return DialogueReply(t(_PROMPT_KEYS[field_for_step(state.step)]), ReplyMarkup.NONE, state)


class RegistrationDialogue:
    """Dialogue entry point bound to a per-user session store."""

    def __init__(self, store: SessionStore[int, RegistrationState] | None = None):
        self.store = store if store is not None else SessionStore()

    def get_state(self, user_id: int) -> RegistrationState | None:
        return self.store.get(user_id)

    def start(self, user_id: int, greeting_key: str = "registration.welcome") -> DialogueReply:
        """Start (or restart) the dialogue at the first step."""
        state = start_state()
        self.store.set(user_id, state)
        prompt = render_prompt(state)
        return DialogueReply(f"{t(greeting_key)}\n\n{prompt.text}", prompt.markup, state)

    def reset(self, user_id: int) -> DialogueReply:
        self.store.delete(user_id)
        logger.info("Registration reset by user %s", user_id)
        return self.start(user_id, greeting_key="registration.reset")

    def handle_text(self, user_id: int, text: str) -> DialogueReply:
        """Advance the dialogue with a free-text message."""
        state = self.store.get(user_id)
        if state is None:
            return DialogueReply(t("registration.no_session"))
        if state.processing:
            return DialogueReply(t("registration.already_processing"), state=state)

        try:
            new_state = apply_input(state, text)
        except ValidationError as e:
            logger.debug("User %s: invalid input at %s (%s)", user_id, state.step.value, e.message_key)
            prompt = render_prompt(state)
            return DialogueReply(f"{t(e.message_key)}\n{prompt.text}", prompt.markup, state)
        except InvalidTransitionError:
            prompt = render_prompt(state)
            return DialogueReply(t("registration.use_buttons"), prompt.markup, state)

        self.store.set(user_id, new_state)
        logger.debug("User %s: %s -> %s", user_id, state.step.value, new_state.step.value)
        return render_prompt(new_state)

    def _apply(self, user_id: int, transition, *args) -> DialogueReply:
        state = self.store.get(user_id)
        if state is None:
            return DialogueReply(t("registration.no_session"))
        try:
            new_state = transition(state, *args)
        except InvalidTransitionError:
            return DialogueReply(t("registration.action_unavailable"), state=state)
        self.store.set(user_id, new_state)
        return render_prompt(new_state)

    def request_edit(self, user_id: int) -> DialogueReply:
        return self._apply(user_id, begin_edit)

    def choose_field(self, user_id: int, form_field: FormField) -> DialogueReply:
        return self._apply(user_id, choose_edit_field, form_field)

    def back(self, user_id: int) -> DialogueReply:
        return self._apply(user_id, back_to_confirmation)

    def begin_confirmation(self, user_id: int) -> RegistrationState | None:
        """Mark the state as processing and return it, or None if confirm is not allowed.

        Returns None when there is no state, the user is not on confirming_data,
        or a previous confirm is still being processed.
        """
        state = self.store.get(user_id)
        if state is None or state.step != Step.CONFIRMING_DATA or state.processing:
            return None
        processing = replace(state, processing=True)
        self.store.set(user_id, processing)
        return processing

    def finish(self, user_id: int, state: RegistrationState) -> None:
        """Clear the state after verification exits (any outcome).

        Only the state returned by begin_confirmation is removed; a dialogue
        restarted by /start or /reset in the meantime is kept.
        """
        if self.store.get(user_id) is state:
            self.store.delete(user_id)


__all__ = [
    "Step",
    "FormField",
    "RegistrationForm",
    "RegistrationState",
    "ReplyMarkup",
    "DialogueReply",
    "RegistrationDialogue",
    "start_state",
    "field_for_step",
    "parse_field",
    "apply_input",
    "begin_edit",
    "choose_edit_field",
    "back_to_confirmation",
    "render_prompt",
    "render_summary",
]
