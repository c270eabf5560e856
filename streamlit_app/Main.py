import streamlit as st
from db.orm_session import get_store
from services.master_data_services import get_section_name
from utils.session import get_caller_context, show_user_sidebar

st.set_page_config(page_title="Plantation Operations", layout="wide")

# Sign-in is handled upstream; it leaves user_id, role, section_id and vendor_id in session_state
caller = get_caller_context()

if not caller:
    st.title("Plantation Operations")
    st.info("Please sign in to continue.")
    st.stop()

show_user_sidebar(caller)

st.title("Plantation Operations")
st.write(f"Welcome, **{caller.display_name or 'friend'}**!")

if caller.section_id:
    with get_store() as store:
        st.caption(f"Section: {get_section_name(store, caller.section_id)}")

st.markdown("Use the sidebar to record work transactions or follow block registration progress.")
