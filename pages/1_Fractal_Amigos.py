# pages/1_Fractal_Amigos.py

# =========================================
# Necessary imports and utilities
# =========================================

import streamlit as st

from pathlib import Path

from modules.fractal_form   import render_fractal_form
from utils.design           import inject_custom_css
from utils.global_variables import FORMS_DIR
from utils.log              import setup_logging

# =========================================
# Page configuration
# =========================================

st.set_page_config(
    page_title="Fractal | Amigos",
    page_icon="🤝",
    layout="centered"
)

setup_logging()

inject_custom_css()

# =========================================
# Page drawing
# =========================================

st.title("Lifenergy")

render_fractal_form(Path(__file__).resolve().parents[1] / FORMS_DIR / "pergunta2.json")
