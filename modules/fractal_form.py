# modules/fractal_form.py

# =========================================
# Necessary imports and utilities
# =========================================

from __future__ import annotations

import html

import pandas as pd
import streamlit as st

from dataclasses import dataclass
from datetime    import date
from pathlib     import Path
from typing      import Any, Dict, List, Optional, Tuple

from modules.form_controller import (
    ANSWER_COUNT,
    ActivityChoice,
    AnswerKey,
    AnswerPart,
    ApplicationMode,
    Field,
    FieldKey,
    FormController,
    FormStatus,
    Rank,
    SubmissionOutcome,
    SubmitStatus,
)
from modules.transport       import SheetsTransport
from utils.data_management   import load_form_variant
from utils.forms_schema      import FormVariant
from utils.global_variables  import (
    FOOTER_LINES,
    REDIRECT_URL,
    SCROLL_FLAG,
    SIGNATURES,
    SUBMIT_SPINNER_TEXT,
    SUCCESS_MESSAGE,
)
from utils.normalize         import slugify
from streamlit_scroll_to_top import scroll_to_here


# =========================================
# Labels
# =========================================

FIELD_LABELS: Dict[Field, str] = {
    Field.FULL_NAME: "Nome Completo",
    Field.EMAIL: "E-mail",
    Field.BIRTHPLACE: "Naturalidade",
    Field.CPF: "CPF",
    Field.BIRTH_DATE: "Data de nascimento",
    Field.PURPOSE: "Qual é o seu objetivo de participar deste programa?",
    Field.APPLICATION_MODE: "Tipo de aplicação",
    Field.APPLICATOR_NAME: "Nome do Aplicador",
    Field.ACTIVITY_CHOICE: "Escolha da Atividade",
    Field.BEHAVIOR_FRACTAL: "Fractal de Comportamento (Atividade)",
    Field.FINAL_FEEDBACK: "Reflexão final",
}

_PART_LABELS = {
    AnswerPart.TEXT: "Resposta",
    AnswerPart.RANK: "Hierarquia",
    AnswerPart.JUSTIFICATION: "Justificativa",
}

_MODE_LABELS = {
    "": "Selecione uma opção",
    ApplicationMode.SELF.value: "Auto Aplicação",
    ApplicationMode.ASSISTED.value: "Aplicação Assistida",
}

_CHOICE_LABELS = {
    ActivityChoice.SELF.value: "A Própria Pessoa",
    ActivityChoice.APPLICATOR.value: "O Aplicador",
}


def field_label(key: FieldKey) -> str:
    if isinstance(key, AnswerKey):
        return f"{_PART_LABELS[key.part]} {key.index + 1}"
    return FIELD_LABELS[key]

def _rank_label(value: str) -> str:
    if not value:
        return "Selecione"
    rank = Rank(value)
    return f"{rank.weight} - {rank.value}"

def _rank_options(ctrl: FormController, index: int) -> List[str]:
    """Blank entry plus the ranks answer `index` may still take."""
    return [""] + [r.value for r in ctrl.available_ranks(index)]


# =========================================
# Session keys
# =========================================

@dataclass
class FormKeys:
    slug: str
    controller_key: str
    signature_key: str
    outcome_key: str

    def widget(self, key: FieldKey) -> str:
        return f"{self.slug}__w__{key}"


def _build_keys(variant: FormVariant) -> FormKeys:
    """
    Build the Streamlit session-state keys for one form variant.

    Every key shares the variant slug as prefix, so both forms can be open in
    the same browser session without colliding.
    """
    slug = slugify(variant.form_id)
    return FormKeys(
        slug=slug,
        controller_key=f"{slug}__controller",
        signature_key=f"{slug}__signature",
        outcome_key=f"{slug}__outcome",
    )

def _compute_signature(variant: FormVariant) -> Tuple[Any, ...]:
    """Structural identity of a variant; a change restarts the session's form."""
    return (variant.form_id, variant.endpoint_url, variant.require_behavior_fractal)


# =========================================
# Public API
# =========================================

def render_fractal_form(form_ref: str | Path | Dict[str, Any]) -> None:
    """
    Draw a "Fractal de Comportamento" questionnaire and drive its controller.

    Parameters
    ----------
    form_ref:
        Path to the variant JSON under `forms/`, a raw JSON string, or an
        already-parsed mapping.

    Behavior
    --------
    1. Loads the variant and finds (or creates) its `FormController` in
       `st.session_state`. A new controller is initialized when none exists or
       the variant signature changed.
    2. If the form was already accepted, shows the thank-you screen and
       redirects; nothing else is drawn.
    3. Otherwise draws every section. Widgets report changes through
       `on_change` callbacks that call `update_field` followed by `blur`.
    4. The submit button calls `submit()` and reruns the script so the outcome
       (errors, failure or success) is drawn from state.
    """
    variant = load_form_variant(form_ref)
    keys = _build_keys(variant)
    ctrl = _ensure_controller(variant, keys)

    _scroll_to_top_if_needed()

    if ctrl.status is FormStatus.SUBMITTED:
        _render_submitted(variant)
        return

    st.markdown(f"### {variant.title}")
    _render_outcome(st.session_state.get(keys.outcome_key))

    st.text_input("Hora Inicial", value=ctrl.record.start_time, disabled=True)

    _render_identity(ctrl, keys)
    _render_application(ctrl, keys)
    _render_instructions(variant)
    _render_answers_table(ctrl, keys, variant)
    _render_closing(ctrl, keys, variant)
    _render_acknowledgement()

    if st.button("Enviar", use_container_width=True, disabled=ctrl.submitting):
        with st.spinner(SUBMIT_SPINNER_TEXT):
            outcome = ctrl.submit()
        if outcome.status is not SubmitStatus.IGNORED:
            st.session_state[keys.outcome_key] = outcome
        if outcome.status is SubmitStatus.INVALID:
            st.session_state[SCROLL_FLAG] = True
        st.rerun()


# =========================
# Internals
# =========================

def _ensure_controller(variant: FormVariant, keys: FormKeys) -> FormController:
    signature = _compute_signature(variant)
    need_init = (keys.controller_key not in st.session_state) or (
        st.session_state.get(keys.signature_key) != signature
    )
    if need_init:
        transport = SheetsTransport(variant.endpoint_url)
        ctrl = FormController(variant, transport)
        ctrl.initialize()
        st.session_state[keys.controller_key] = ctrl
        st.session_state[keys.signature_key] = signature
        st.session_state.pop(keys.outcome_key, None)
        _sync_widgets(ctrl, keys)
    return st.session_state[keys.controller_key]

def _widget_value(ctrl: FormController, key: FieldKey) -> Any:
    """Controller value in the shape the widget for `key` expects."""
    r = ctrl.record
    if isinstance(key, AnswerKey):
        answer = r.answers[key.index]
        if key.part is AnswerPart.RANK:
            return answer.rank.value if answer.rank else ""
        if key.part is AnswerPart.TEXT:
            return answer.text
        return answer.justification
    if key is Field.BIRTH_DATE:
        return r.birth_date
    if key is Field.APPLICATION_MODE:
        return r.application_mode.value if r.application_mode else ""
    if key is Field.ACTIVITY_CHOICE:
        return r.activity_choice.value if r.activity_choice else None
    return r.to_payload()[key.value]

def _sync_widgets(ctrl: FormController, keys: FormKeys) -> None:
    """
    Write the controller's values back into the widget states.

    The controller is the single source of truth: capitalized names,
    formatted CPFs and ranks taken over by another row must show up in the
    widgets on the next run.
    """
    for f in Field:
        st.session_state[keys.widget(f)] = _widget_value(ctrl, f)
    for i in range(ANSWER_COUNT):
        for part in AnswerPart:
            k = AnswerKey(part, i)
            st.session_state[keys.widget(k)] = _widget_value(ctrl, k)

def _on_change(ctrl: FormController, keys: FormKeys, key: FieldKey) -> None:
    ctrl.update_field(key, st.session_state.get(keys.widget(key)))
    ctrl.blur(key)
    _sync_widgets(ctrl, keys)

def _callback(ctrl: FormController, keys: FormKeys, key: FieldKey) -> Dict[str, Any]:
    return {"key": keys.widget(key), "on_change": _on_change, "args": (ctrl, keys, key)}

def _render_error(ctrl: FormController, key: FieldKey) -> None:
    message = ctrl.visible_errors().get(key)
    if message:
        st.markdown(
            f"<p class='field-error'>{html.escape(message)}</p>",
            unsafe_allow_html=True,
        )

def _section(title: str) -> None:
    st.markdown(f"<div class='section-title'>{html.escape(title)}</div>", unsafe_allow_html=True)

def _scroll_to_top_if_needed() -> None:
    if st.session_state.get(SCROLL_FLAG):
        st.session_state[SCROLL_FLAG] = False
        k = st.session_state.get("_scroll_exec_counter", 0)
        st.session_state["_scroll_exec_counter"] = k + 1
        # scrolls until Y=0 (top). single key forces execution with each failed submit
        scroll_to_here(0, key=f"top_{k}")

def _render_outcome(outcome: Optional[SubmissionOutcome]) -> None:
    """
    Show the result of the last submit attempt above the form.

    Validation failures are listed in a table so the respondent can find the
    missing fields, as the scale forms do for unanswered items.
    """
    if outcome is None:
        return
    if outcome.status is SubmitStatus.FAILED:
        st.error(outcome.message)
    elif outcome.status is SubmitStatus.INVALID and outcome.errors:
        st.warning("Ainda faltam respostas. Confira os campos abaixo.")
        rows = [{"Campo": field_label(k), "Mensagem": msg} for k, msg in outcome.errors.items()]
        st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)

def _render_identity(ctrl: FormController, keys: FormKeys) -> None:
    with st.container(border=True):
        _section("IDENTIDADE")

        st.text_input(FIELD_LABELS[Field.FULL_NAME] + " *", **_callback(ctrl, keys, Field.FULL_NAME))
        _render_error(ctrl, Field.FULL_NAME)

        st.text_input(FIELD_LABELS[Field.EMAIL] + " *", **_callback(ctrl, keys, Field.EMAIL))
        _render_error(ctrl, Field.EMAIL)

        st.text_input(FIELD_LABELS[Field.BIRTHPLACE] + " *", **_callback(ctrl, keys, Field.BIRTHPLACE))
        _render_error(ctrl, Field.BIRTHPLACE)

        st.text_input(
            FIELD_LABELS[Field.CPF] + " *",
            max_chars=14,
            placeholder="000.000.000-00",
            **_callback(ctrl, keys, Field.CPF),
        )
        _render_error(ctrl, Field.CPF)

        st.date_input(
            FIELD_LABELS[Field.BIRTH_DATE] + " *",
            min_value=date(1900, 1, 1),
            max_value=date.today(),
            format="DD/MM/YYYY",
            **_callback(ctrl, keys, Field.BIRTH_DATE),
        )
        _render_error(ctrl, Field.BIRTH_DATE)

        st.text_area(FIELD_LABELS[Field.PURPOSE] + " *", **_callback(ctrl, keys, Field.PURPOSE))
        _render_error(ctrl, Field.PURPOSE)

def _render_application(ctrl: FormController, keys: FormKeys) -> None:
    with st.container(border=True):
        _section("REGISTRO DE APLICAÇÃO")

        col1, col2 = st.columns(2)
        with col1:
            st.selectbox(
                FIELD_LABELS[Field.APPLICATION_MODE] + " *",
                options=list(_MODE_LABELS.keys()),
                format_func=lambda v: _MODE_LABELS[v],
                **_callback(ctrl, keys, Field.APPLICATION_MODE),
            )
            _render_error(ctrl, Field.APPLICATION_MODE)
        with col2:
            if ctrl.record.application_mode is ApplicationMode.ASSISTED:
                st.text_input(
                    FIELD_LABELS[Field.APPLICATOR_NAME] + " *",
                    **_callback(ctrl, keys, Field.APPLICATOR_NAME),
                )
                _render_error(ctrl, Field.APPLICATOR_NAME)

        st.radio(
            FIELD_LABELS[Field.ACTIVITY_CHOICE] + " *",
            options=list(_CHOICE_LABELS.keys()),
            format_func=lambda v: _CHOICE_LABELS[v],
            **_callback(ctrl, keys, Field.ACTIVITY_CHOICE),
        )
        _render_error(ctrl, Field.ACTIVITY_CHOICE)

def _render_instructions(variant: FormVariant) -> None:
    if not variant.instructions:
        return
    with st.container(border=True):
        _section("INSTRUÇÕES")
        paragraphs = "".join(f"<p>{html.escape(p)}</p>" for p in variant.instructions)
        st.markdown(f"<div class='instructions-box'>{paragraphs}</div>", unsafe_allow_html=True)

def _render_answers_table(ctrl: FormController, keys: FormKeys, variant: FormVariant) -> None:
    """
    Draw the three-row table of answers, rank and justification.

    The rank selectbox of each row offers only the ranks not held by the other
    rows; picking a rank held elsewhere is still possible through the
    controller, which clears it from the previous row.
    """
    with st.container(border=True):
        _section("QUADRO DE REGISTRO DE DADOS")

        if variant.require_behavior_fractal:
            st.text_input(
                FIELD_LABELS[Field.BEHAVIOR_FRACTAL] + " *",
                **_callback(ctrl, keys, Field.BEHAVIOR_FRACTAL),
            )
            _render_error(ctrl, Field.BEHAVIOR_FRACTAL)
        else:
            st.markdown(f"**{FIELD_LABELS[Field.BEHAVIOR_FRACTAL]}**")

        st.markdown(html.escape(variant.activity_prompt))
        st.caption(
            "(1) Escreva as suas respostas. "
            "(2) Releia as respostas, identifique a de maior importância (3), "
            "a de média importância (2) e a de menor importância (1). "
            "(3) Justifique cada resposta."
        )

        for i in range(ANSWER_COUNT):
            st.markdown(f"<span class='row-badge'>#{i + 1}</span>", unsafe_allow_html=True)
            c_text, c_rank, c_just = st.columns([3, 2, 3])

            text_key = AnswerKey(AnswerPart.TEXT, i)
            rank_key = AnswerKey(AnswerPart.RANK, i)
            just_key = AnswerKey(AnswerPart.JUSTIFICATION, i)

            with c_text:
                st.text_input("(1) Resposta", **_callback(ctrl, keys, text_key))
                _render_error(ctrl, text_key)
            with c_rank:
                st.selectbox(
                    "(2) Hierarquia",
                    options=_rank_options(ctrl, i),
                    format_func=_rank_label,
                    **_callback(ctrl, keys, rank_key),
                )
                _render_error(ctrl, rank_key)
            with c_just:
                st.text_area("(3) Justificativa", height=68, **_callback(ctrl, keys, just_key))
                _render_error(ctrl, just_key)

        _render_ranking_summary(ctrl)

def _render_ranking_summary(ctrl: FormController) -> None:
    ranked = [a for a in ctrl.record.answers if a.rank is not None and a.text.strip()]
    if not ranked:
        return
    df = pd.DataFrame(
        [{"Hierarquia": a.rank.weight, "Resposta": a.text, "Justificativa": a.justification} for a in ranked]
    ).sort_values("Hierarquia", ascending=False)
    with st.expander("Resumo da hierarquia"):
        st.dataframe(df, hide_index=True, use_container_width=True)

def _render_closing(ctrl: FormController, keys: FormKeys, variant: FormVariant) -> None:
    with st.container(border=True):
        _section("CHEGAMOS AO FINAL")
        label = variant.final_prompt or FIELD_LABELS[Field.FINAL_FEEDBACK]
        st.text_area(label + " *", height=128, **_callback(ctrl, keys, Field.FINAL_FEEDBACK))
        _render_error(ctrl, Field.FINAL_FEEDBACK)

def _render_acknowledgement() -> None:
    with st.container(border=True):
        _section("NOSSO AGRADECIMENTO")
        st.markdown(
            "Desde já agradecemos a seu empenho e participação neste projeto "
            "inteiramente DEDICADO A VOCÊ!"
        )
        cols = st.columns(len(SIGNATURES))
        for col, (name, crp) in zip(cols, SIGNATURES):
            with col:
                st.markdown(f"**{name}**  \n{crp}")

    footer = "<br>".join(html.escape(line) for line in FOOTER_LINES)
    st.markdown(f"<div class='form-footer'>{footer}</div>", unsafe_allow_html=True)

def _render_submitted(variant: FormVariant) -> None:
    target = variant.redirect_url or REDIRECT_URL
    st.success(SUCCESS_MESSAGE)
    st.markdown(
        f'<meta http-equiv="refresh" content="3; url={html.escape(target, quote=True)}">',
        unsafe_allow_html=True,
    )
    st.link_button("Voltar ao site", target, use_container_width=True)
