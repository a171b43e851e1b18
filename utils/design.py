# utils/design.py

# =========================================
# Necessary imports and utilities
# =========================================

import streamlit as st

from pathlib import Path

# =========================================
# Custom CSS injection
# =========================================

def inject_custom_css():
    css_path = Path(__file__).resolve().parents[1] / "assets" / "style.css"
    if css_path.exists():
        # forçar UTF-8 para não dar UnicodeDecodeError no Windows
        with open(css_path, encoding="utf-8") as f:
            css = f.read()
        st.markdown(f"<style>{css}</style>", unsafe_allow_html=True)

    inject_fractal_form_css()

def inject_fractal_form_css():
    """Injeta o CSS dos formulários Fractal (tabela de respostas e erros), apenas uma vez."""
    key = "_styles_fractal_forms"
    if not st.session_state.get(key):
        st.markdown("""
        <style>
        .section-title{
            color:#0f766e;
            font-weight:600;
            font-size:1.25rem;
            margin:.5rem 0 1rem 0;
        }
        .instructions-box{
            background:#f0fdfa;
            color:#115e59;
            border-radius:8px;
            padding:1rem;
        }
        .row-badge{
            display:inline-block;
            background:#0d9488;
            color:#fff;
            border-radius:10px;
            padding:2px 10px;
            font-weight:700;
            min-width:2.4rem;
            text-align:center;
        }
        .field-error{ color:#ef4444; font-size:.85rem; margin:-.5rem 0 .5rem 0; }
        .form-footer{ text-align:center; font-size:.85rem; color:#4b5563; }
        </style>
        """, unsafe_allow_html=True)
        st.session_state[key] = True
