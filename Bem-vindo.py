# Bem-vindo.py

# =========================================
# Necessary imports and utilities
# =========================================

import streamlit as st

from utils.data_management  import discover_forms, load_form_variant
from utils.design           import inject_custom_css
from utils.global_variables import FORMS_DIR
from utils.log              import setup_logging

# =========================================
# Page configuration
# =========================================

st.set_page_config(
    page_title="Lifenergy | Fractal de Comportamento",
    page_icon="🧭",
    layout="centered"
)

setup_logging()

# Custom CSS injection
inject_custom_css()

# =========================================
# Page drawing
# =========================================

# Page title and description
st.title("Lifenergy")

st.markdown(
    "<h3 style='color:#0d9488;'>Fractal de Comportamento</h3>",
    unsafe_allow_html=True
)

st.markdown(
    """
    <p style='text-align: justify;'>
    Cada atividade apresenta uma situação do dia a dia. Escreva três respostas,
    organize-as em ordem de importância e justifique cada uma delas.
    Reserve um momento tranquilo, sem interrupções, para responder.
    </p>
    """,
    unsafe_allow_html=True
)

st.divider()

# Sub-section title
st.markdown(
    "<h4>Atividades disponíveis</h4>",
    unsafe_allow_html=True
)

forms = discover_forms(FORMS_DIR)
if not forms:
    st.info("Nenhum formulário .json encontrado no diretório informado.")
    st.stop()

# Buttons for navigation
cols = st.columns(len(forms))
for col, (label, path) in zip(cols, forms):
    variant = load_form_variant(path)
    with col:
        if st.button(label, use_container_width=True, disabled=not variant.page):
            st.switch_page(variant.page)
