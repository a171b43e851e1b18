# utils/forms_schema.py

# =========================================
# Necessary Imports
# =========================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# =========================================
# Data Models
# =========================================

@dataclass
class FormVariant:
    """
    Normalized description of one "Fractal de Comportamento" questionnaire.

    The two published forms share every rule; what changes between them is
    captured here instead of in separate code paths.

    Attributes
    ----------
    form_id:
        Identifier sent to the collector as `formId` (e.g. "pergunta2").
    title:
        Display name of the form.
    activity_prompt:
        The task shown above the ranked-answers table.
    endpoint_url:
        Google Apps Script web-app URL that receives the submissions.
    require_behavior_fractal:
        Whether the behaviour-fractal label is a required field.
    instructions:
        Paragraphs shown in the INSTRUÇÕES section.
    final_prompt:
        Question shown above the closing reflection.
    redirect_url:
        Page opened after a successful submission (falls back to the app
        default when missing).
    page:
        Streamlit page script that renders the form, used by the welcome page
        to navigate to it.
    """

    form_id: str
    title: str
    activity_prompt: str
    endpoint_url: str
    require_behavior_fractal: bool = False
    instructions: List[str] = field(default_factory=list)
    final_prompt: str = ""
    redirect_url: Optional[str] = None
    page: Optional[str] = None


# =========================================
# Form Schemas
# =========================================

def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "sim", "yes", "s", "y"}
    return bool(value)

def forms_schema(obj: Dict[str, Any]) -> FormVariant:
    """
    Normalize a raw form definition (loaded from JSON or dict) into a
    `FormVariant`.

    Accepts Portuguese or English key names ("titulo"/"title",
    "atividade"/"activity_prompt", "endpoint"/"url", ...). Missing texts fall
    back to empty strings; a missing `form_id` falls back to "formulario".

    Parameters
    ----------
    obj:
        The raw mapping describing the form.

    Returns
    -------
    FormVariant
        The normalized variant.
    """
    form_id = str(obj.get("form_id") or obj.get("formId") or obj.get("id") or "formulario")
    title = str(obj.get("title") or obj.get("titulo") or obj.get("name") or form_id)

    prompt = obj.get("activity_prompt") or obj.get("atividade") or obj.get("pergunta") or ""
    endpoint = obj.get("endpoint_url") or obj.get("endpoint") or obj.get("url") or ""

    # Instructions: accept a single string (split on blank lines) or a list
    instr_raw = obj.get("instructions") or obj.get("instrucoes") or []
    if isinstance(instr_raw, str):
        instructions = [p.strip() for p in instr_raw.split("\n\n") if p.strip()]
    else:
        instructions = [str(p).strip() for p in instr_raw if str(p).strip()]

    required = obj.get("require_behavior_fractal")
    if required is None:
        required = obj.get("exige_fractal", False)

    final_prompt = obj.get("final_prompt") or obj.get("pergunta_final") or ""
    redirect = obj.get("redirect_url") or obj.get("redirecionamento")
    page = obj.get("page") or obj.get("pagina")

    return FormVariant(
        form_id=form_id,
        title=title,
        activity_prompt=str(prompt).strip(),
        endpoint_url=str(endpoint).strip(),
        require_behavior_fractal=_as_bool(required),
        instructions=instructions,
        final_prompt=str(final_prompt).strip(),
        redirect_url=str(redirect).strip() if redirect else None,
        page=str(page).strip() if page else None,
    )
