# modules/form_controller.py

# =========================================
# Necessary imports and utilities
# =========================================

from __future__ import annotations

import logging
import random
import string

from dataclasses import dataclass, field
from datetime    import date, datetime
from enum        import Enum
from typing      import Any, Callable, Dict, List, NamedTuple, Optional, Set, Union

from modules.transport      import Transport, TransportError
from utils.forms_schema     import FormVariant
from utils.global_variables import DATE_FORMAT, FAILURE_MESSAGE, SUCCESS_MESSAGE, TIME_FORMAT
from utils.normalize        import capitalize_words, format_cpf, norm_key, only_digits
from utils.validators       import is_valid_cpf, is_valid_email

logger = logging.getLogger(__name__)


# =========================================
# Field identifiers and enumerations
# =========================================

class Field(str, Enum):
    """Single-valued fields. Values are the collector's column names."""

    FULL_NAME = "fullName"
    EMAIL = "email"
    BIRTHPLACE = "naturalidade"
    CPF = "cpf"
    BIRTH_DATE = "birthDate"
    PURPOSE = "objetivo"
    APPLICATION_MODE = "aplicador"
    APPLICATOR_NAME = "nomeAplicador"
    ACTIVITY_CHOICE = "escolhaAtividade"
    BEHAVIOR_FRACTAL = "fractalComportamento"
    FINAL_FEEDBACK = "feedbackFinal"

    def __str__(self) -> str:
        return self.value


class AnswerPart(str, Enum):
    TEXT = "resposta"
    RANK = "importancia"
    JUSTIFICATION = "justificativa"


class AnswerKey(NamedTuple):
    """Identifies one cell of the ranked-answers table."""

    part: AnswerPart
    index: int

    def __str__(self) -> str:
        return f"{self.part.value}{self.index}"


FieldKey = Union[Field, AnswerKey]


class _Choice(str, Enum):

    @classmethod
    def coerce(cls, value: Any):
        """
        Accept a member, its value, or its lowercase name; empty means unset.

        Raises `ValueError` for anything else.
        """
        if value is None or isinstance(value, cls):
            return value
        text = norm_key(value)
        if not text:
            return None
        for member in cls:
            if text in (norm_key(member.value), member.name.lower()):
                return member
        raise ValueError(f"{value!r} is not a valid {cls.__name__}")


class Rank(_Choice):
    HIGH = "Maior importância"
    MEDIUM = "Média importância"
    LOW = "Menor importância"

    @property
    def weight(self) -> int:
        """Number written in the paper version of the table (3, 2, 1)."""
        return {"HIGH": 3, "MEDIUM": 2, "LOW": 1}[self.name]


class ApplicationMode(_Choice):
    SELF = "auto"
    ASSISTED = "assistida"


class ActivityChoice(_Choice):
    SELF = "propria"
    APPLICATOR = "aplicador"


class FormStatus(Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class SubmitStatus(Enum):
    IGNORED = "ignored"
    INVALID = "invalid"
    FAILED = "failed"
    SENT = "sent"


ANSWER_COUNT = 3

RANK_ORDER = (Rank.HIGH, Rank.MEDIUM, Rank.LOW)

_ENUM_FIELDS = {
    Field.APPLICATION_MODE: ApplicationMode,
    Field.ACTIVITY_CHOICE: ActivityChoice,
}

_REQUIRED_MESSAGES = {
    Field.BIRTHPLACE: "Naturalidade é obrigatória",
    Field.BIRTH_DATE: "Data de nascimento é obrigatória",
    Field.PURPOSE: "Objetivo é obrigatório",
    Field.APPLICATION_MODE: "Selecione o tipo de aplicação",
    Field.APPLICATOR_NAME: "Nome do aplicador é obrigatório",
    Field.ACTIVITY_CHOICE: "Escolha da atividade é obrigatória",
    Field.BEHAVIOR_FRACTAL: "Fractal de comportamento é obrigatório",
    Field.FINAL_FEEDBACK: "Feedback final é obrigatório",
}

_ANSWER_MESSAGES = {
    AnswerPart.TEXT: "Resposta é obrigatória",
    AnswerPart.RANK: "Hierarquia é obrigatória",
    AnswerPart.JUSTIFICATION: "Justificativa é obrigatória",
}

_ATTRS = {
    Field.FULL_NAME: "full_name",
    Field.EMAIL: "email",
    Field.BIRTHPLACE: "birthplace",
    Field.CPF: "cpf",
    Field.BIRTH_DATE: "birth_date",
    Field.PURPOSE: "purpose",
    Field.APPLICATION_MODE: "application_mode",
    Field.APPLICATOR_NAME: "applicator_name",
    Field.ACTIVITY_CHOICE: "activity_choice",
    Field.BEHAVIOR_FRACTAL: "behavior_fractal",
    Field.FINAL_FEEDBACK: "final_feedback",
}

_ANSWER_ATTRS = {
    AnswerPart.TEXT: "text",
    AnswerPart.RANK: "rank",
    AnswerPart.JUSTIFICATION: "justification",
}


def as_field_key(key: Any) -> FieldKey:
    """Accept a `Field`, an `AnswerKey`, or a column name such as "email"."""
    if isinstance(key, AnswerKey):
        return key
    return Field(key)


def all_field_keys() -> List[FieldKey]:
    """Every key the form knows, in display order."""
    keys: List[FieldKey] = [f for f in Field if f is not Field.FINAL_FEEDBACK]
    for i in range(ANSWER_COUNT):
        keys.extend(AnswerKey(part, i) for part in AnswerPart)
    keys.append(Field.FINAL_FEEDBACK)
    return keys


# =========================================
# Data models
# =========================================

@dataclass
class RankedAnswer:
    text: str = ""
    rank: Optional[Rank] = None
    justification: str = ""


def _empty_answers() -> List[RankedAnswer]:
    return [RankedAnswer() for _ in range(ANSWER_COUNT)]


@dataclass
class FormRecord:
    """The questionnaire being filled in, plus its timing metadata."""

    form_id: str = ""
    response_id: str = ""
    start_time: str = ""
    end_time: str = ""
    completion_seconds: int = 0
    application_date: str = ""
    full_name: str = ""
    email: str = ""
    birthplace: str = ""
    cpf: str = ""
    birth_date: Optional[date] = None
    purpose: str = ""
    application_mode: Optional[ApplicationMode] = None
    applicator_name: str = ""
    activity_choice: Optional[ActivityChoice] = None
    behavior_fractal: str = ""
    answers: List[RankedAnswer] = field(default_factory=_empty_answers)
    final_feedback: str = ""

    def to_payload(self) -> Dict[str, Any]:
        """
        Serialize the record with the collector's column names.

        Enum members become their values, unset values become "" and the birth
        date is sent as ISO `YYYY-MM-DD`, as a browser date input would.
        """
        return {
            "formId": self.form_id,
            "respostaId": self.response_id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "completionTimeSeconds": self.completion_seconds,
            "dataAplicacao": self.application_date,
            "fullName": self.full_name,
            "email": self.email,
            "naturalidade": self.birthplace,
            "cpf": self.cpf,
            "birthDate": self.birth_date.isoformat() if self.birth_date else "",
            "objetivo": self.purpose,
            "aplicador": self.application_mode.value if self.application_mode else "",
            "nomeAplicador": self.applicator_name,
            "escolhaAtividade": self.activity_choice.value if self.activity_choice else "",
            "fractalComportamento": self.behavior_fractal,
            "respostas": [
                {
                    "resposta": a.text,
                    "importancia": a.rank.value if a.rank else "",
                    "justificativa": a.justification,
                }
                for a in self.answers
            ],
            "feedbackFinal": self.final_feedback,
        }


@dataclass
class SubmissionOutcome:
    status: SubmitStatus
    errors: Dict[FieldKey, str] = field(default_factory=dict)
    payload: Optional[Dict[str, Any]] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is SubmitStatus.SENT


# =========================================
# Controller
# =========================================

def generate_response_id(now: datetime) -> str:
    """Epoch milliseconds plus a 6-character base36 suffix, e.g. "1729300000000-k3x9q2"."""
    alphabet = string.ascii_lowercase + string.digits
    suffix = "".join(random.choices(alphabet, k=6))
    return f"{int(now.timestamp() * 1000)}-{suffix}"


def _parse_birth_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


class FormController:
    """
    Owns one FormRecord and every rule applied to it while it is filled in.

    The rendering layer only reads `record`, `visible_errors()`,
    `available_ranks()` and `submitting`, and reports user input through
    `update_field`, `set_answer_rank`, `blur` and `submit`. User mistakes
    never raise; they are kept in `errors`.

    State machine
    -------------
    EDITING -> submit() -> EDITING (errors found)
                        -> SUBMITTING -> SUBMITTED (terminal)
                                      -> EDITING (transport failed, retry allowed)
    """

    def __init__(
        self,
        variant: FormVariant,
        transport: Transport,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.variant = variant
        self.transport = transport
        self._clock = clock or datetime.now
        self.record = FormRecord(form_id=variant.form_id)
        self.errors: Dict[FieldKey, str] = {}
        self.touched: Set[FieldKey] = set()
        self.submitting = False
        self.status = FormStatus.EDITING
        self._started_at = self._clock()

    # ---------- lifecycle ----------

    def initialize(self) -> None:
        now = self._clock()
        self.record = FormRecord(form_id=self.variant.form_id)
        self.record.response_id = generate_response_id(now)
        self.record.start_time = now.strftime(TIME_FORMAT)
        self._started_at = now
        self.errors = {}
        self.touched = set()
        self.submitting = False
        self.status = FormStatus.EDITING
        logger.info("Form %s started (response %s)", self.variant.form_id, self.record.response_id)

    # ---------- field updates ----------

    def update_field(self, key: FieldKey, value: Any) -> bool:
        """
        Store a user-typed value, applying the field's transformation.

        Returns False when the value is rejected (a CPF longer than 11 digits),
        in which case nothing changes.
        """
        key = as_field_key(key)
        if isinstance(key, AnswerKey):
            answer = self._answer(key.index)
            if key.part is AnswerPart.RANK:
                self.set_answer_rank(key.index, value)
                return True
            setattr(answer, _ANSWER_ATTRS[key.part], str(value or ""))
        elif key is Field.FULL_NAME:
            self.record.full_name = capitalize_words(value)
        elif key is Field.CPF:
            digits = only_digits(value)
            if len(digits) > 11:
                return False
            self.record.cpf = format_cpf(digits)
        elif key is Field.BIRTH_DATE:
            self.record.birth_date = _parse_birth_date(value)
        elif key in _ENUM_FIELDS:
            try:
                choice = _ENUM_FIELDS[key].coerce(value)
            except ValueError:
                # unknown options leave the field unset so validation reports it
                logger.debug("Ignoring unknown %s value %r", key, value)
                choice = None
            setattr(self.record, _ATTRS[key], choice)
            if key is Field.APPLICATION_MODE:
                # the applicator name is only required for assisted sessions
                self._refresh_if_touched(Field.APPLICATOR_NAME)
        else:
            setattr(self.record, _ATTRS[key], str(value or ""))

        if key in self.touched:
            self._refresh_error(key)
        return True

    def set_answer_rank(self, index: int, value: Any) -> None:
        """
        Assign a rank to one answer, taking it away from any other answer.

        At most one answer holds a given rank at any time.
        """
        rank = Rank.coerce(value)
        target = self._answer(index)
        for i, other in enumerate(self.record.answers):
            if i != index and rank is not None and other.rank is rank:
                other.rank = None
                self._refresh_if_touched(AnswerKey(AnswerPart.RANK, i))
        target.rank = rank
        self._refresh_if_touched(AnswerKey(AnswerPart.RANK, index))

    @property
    def used_ranks(self) -> Set[Rank]:
        return {a.rank for a in self.record.answers if a.rank is not None}

    def available_ranks(self, index: int) -> List[Rank]:
        """Ranks free for answer `index`, including the one it already holds."""
        own = self._answer(index).rank
        taken = {a.rank for i, a in enumerate(self.record.answers) if i != index}
        return [r for r in RANK_ORDER if r not in taken or r is own]

    # ---------- validation ----------

    def validate_field(self, key: FieldKey) -> Optional[str]:
        key = as_field_key(key)
        r = self.record

        if isinstance(key, AnswerKey):
            answer = self._answer(key.index)
            value = getattr(answer, _ANSWER_ATTRS[key.part])
            if key.part is AnswerPart.RANK:
                return None if value is not None else _ANSWER_MESSAGES[key.part]
            return None if value.strip() else _ANSWER_MESSAGES[key.part]

        if key is Field.FULL_NAME:
            if not r.full_name.strip():
                return "Nome completo é obrigatório"
            if len(r.full_name.split()) < 2:
                return "Digite o nome completo com pelo menos duas palavras"
            return None

        if key is Field.EMAIL:
            if not r.email.strip():
                return "Email é obrigatório"
            return None if is_valid_email(r.email) else "Email inválido"

        if key is Field.CPF:
            if not r.cpf.strip():
                return "CPF é obrigatório"
            return None if is_valid_cpf(r.cpf) else "CPF inválido"

        if key is Field.APPLICATOR_NAME and r.application_mode is not ApplicationMode.ASSISTED:
            return None

        if key is Field.BEHAVIOR_FRACTAL and not self.variant.require_behavior_fractal:
            return None

        value = getattr(r, _ATTRS[key])
        if value is None or (isinstance(value, str) and not value.strip()):
            return _REQUIRED_MESSAGES[key]
        return None

    def validate_all(self) -> Dict[FieldKey, str]:
        """Error message per failing field; empty when the form can be sent."""
        errors: Dict[FieldKey, str] = {}
        for key in all_field_keys():
            message = self.validate_field(key)
            if message:
                errors[key] = message
        return errors

    def blur(self, key: FieldKey) -> None:
        """
        Mark `key` as touched.

        The first blur only arms the field; from the second on, its error is
        recomputed and stored.
        """
        key = as_field_key(key)
        if key in self.touched:
            self._refresh_error(key)
        else:
            self.touched.add(key)

    def visible_errors(self) -> Dict[FieldKey, str]:
        """Stored errors of touched fields."""
        return {k: v for k, v in self.errors.items() if k in self.touched}

    # ---------- submission ----------

    def submit(self) -> SubmissionOutcome:
        if self.submitting or self.status is FormStatus.SUBMITTED:
            logger.debug("Submit ignored for %s: already %s", self.record.response_id, self.status.value)
            return SubmissionOutcome(SubmitStatus.IGNORED)

        errors = self.validate_all()
        self.errors = dict(errors)
        self.touched.update(all_field_keys())
        if errors:
            logger.info(
                "Form %s has %d invalid field(s): %s",
                self.record.response_id, len(errors), ", ".join(str(k) for k in errors),
            )
            return SubmissionOutcome(SubmitStatus.INVALID, errors=errors)

        self.submitting = True
        self.status = FormStatus.SUBMITTING
        payload = self._finalize()

        try:
            self.transport(payload)
        except TransportError as exc:
            logger.warning("Submission %s failed: %s", self.record.response_id, exc)
            return SubmissionOutcome(SubmitStatus.FAILED, payload=payload, message=FAILURE_MESSAGE)
        finally:
            # any transport failure hands the form back for another attempt
            self.submitting = False
            self.status = FormStatus.EDITING

        self.status = FormStatus.SUBMITTED
        logger.info(
            "Submission %s sent (%ss)", self.record.response_id, self.record.completion_seconds,
        )
        return SubmissionOutcome(SubmitStatus.SENT, payload=payload, message=SUCCESS_MESSAGE)

    # ---------- internals ----------

    def _finalize(self) -> Dict[str, Any]:
        now = self._clock()
        elapsed = (now - self._started_at).total_seconds()
        self.record.end_time = now.strftime(TIME_FORMAT)
        # clock adjustments must not produce a negative duration
        self.record.completion_seconds = max(0, int(elapsed))
        self.record.application_date = now.strftime(DATE_FORMAT)
        return self.record.to_payload()

    def _answer(self, index: int) -> RankedAnswer:
        if not 0 <= index < ANSWER_COUNT:
            raise IndexError(f"answer index {index} out of range 0..{ANSWER_COUNT - 1}")
        return self.record.answers[index]

    def _refresh_error(self, key: FieldKey) -> None:
        message = self.validate_field(key)
        if message:
            self.errors[key] = message
        else:
            self.errors.pop(key, None)

    def _refresh_if_touched(self, key: FieldKey) -> None:
        if key in self.touched:
            self._refresh_error(key)
