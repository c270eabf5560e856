import streamlit as st
from constants.general_constants import Role
from utils.session import require_login, show_user_sidebar
from components.registrations.progress_view import render_registration_progress
from components.registrations.registration_form import render_registration_form


st.title("Block Registrations")

# --- Login Check ---
caller = require_login()
show_user_sidebar(caller)

if caller.role == Role.VENDOR:
    render_registration_progress(caller)
else:
    tab1, tab2 = st.tabs(["Progress", "Register Block"])
    with tab1:
        render_registration_progress(caller)
    with tab2:
        render_registration_form(caller)
