import streamlit as st
from utils.session import require_login, show_user_sidebar
from components.transactions.transaction_form import render_transaction_form
from components.transactions.transaction_history import render_transaction_history
from components.common.toggle import toggle_button


st.title("Work Transactions")

# --- Login Check ---
caller = require_login()
show_user_sidebar(caller)

tab1, tab2 = st.tabs(["New Transaction", "History"])

with tab1:
    render_transaction_form(caller)

with tab2:
    if toggle_button("show_history", "Show Transactions", "Hide Transactions"):
        render_transaction_history(caller)
