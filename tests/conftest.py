"""Pytest configuration and shared fixtures."""

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List

import pytest

from modules.form_controller import (
    ActivityChoice,
    AnswerKey,
    AnswerPart,
    ApplicationMode,
    Field,
    FormController,
    Rank,
)
from modules.transport import TransportError
from utils.forms_schema import FormVariant

VALID_CPF = "52998224725"


class FakeClock:
    """Deterministic clock; `advance` moves it forward."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingTransport:
    """Collects payloads; raises TransportError while `fail` is set."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.fail = False

    def __call__(self, payload: Dict[str, Any]) -> None:
        self.calls.append(payload)
        if self.fail:
            raise TransportError("network unreachable")


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def forms_dir(project_root: Path) -> Path:
    """Return the directory holding the form definitions."""
    return project_root / "forms"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 17, 14, 5, 30))


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def friends_variant() -> FormVariant:
    """Variant that requires the behaviour-fractal label."""
    return FormVariant(
        form_id="pergunta2",
        title="Amigos",
        activity_prompt="Cite três aspectos que seus amigos pensam de você.",
        endpoint_url="https://collector.example/exec",
        require_behavior_fractal=True,
    )


@pytest.fixture
def lottery_variant() -> FormVariant:
    """Variant without the behaviour-fractal requirement."""
    return FormVariant(
        form_id="pergunta3",
        title="Mega-Sena",
        activity_prompt="Cite as 3 primeiras coisas que faria com o dinheiro.",
        endpoint_url="https://collector.example/exec",
    )


@pytest.fixture
def controller(lottery_variant: FormVariant, transport: RecordingTransport, clock: FakeClock) -> FormController:
    ctrl = FormController(lottery_variant, transport, clock=clock)
    ctrl.initialize()
    return ctrl


def fill_valid(ctrl: FormController) -> None:
    """Populate every required field with valid values."""
    ctrl.update_field(Field.FULL_NAME, "maria silva")
    ctrl.update_field(Field.EMAIL, "maria@example.com")
    ctrl.update_field(Field.BIRTHPLACE, "Fortaleza")
    ctrl.update_field(Field.CPF, VALID_CPF)
    ctrl.update_field(Field.BIRTH_DATE, date(1990, 3, 12))
    ctrl.update_field(Field.PURPOSE, "Conhecer melhor meus padrões")
    ctrl.update_field(Field.APPLICATION_MODE, ApplicationMode.SELF)
    ctrl.update_field(Field.ACTIVITY_CHOICE, ActivityChoice.SELF)
    ctrl.update_field(Field.BEHAVIOR_FRACTAL, "Amizade")
    for i, rank in enumerate((Rank.HIGH, Rank.MEDIUM, Rank.LOW)):
        ctrl.update_field(AnswerKey(AnswerPart.TEXT, i), f"Resposta {i + 1}")
        ctrl.set_answer_rank(i, rank)
        ctrl.update_field(AnswerKey(AnswerPart.JUSTIFICATION, i), f"Porque {i + 1}")
    ctrl.update_field(Field.FINAL_FEEDBACK, "Me senti tranquila.")


@pytest.fixture
def filled_controller(controller: FormController) -> FormController:
    """A controller whose form passes every validation rule."""
    fill_valid(controller)
    return controller
