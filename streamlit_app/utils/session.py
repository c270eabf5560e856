import streamlit as st
from typing import Optional
from pydantic import ValidationError
from schemas.caller_schemas import CallerContext


def get_caller_context() -> Optional[CallerContext]:
    """
    Caller built from the keys the login collaborator leaves in session_state:
    user_id, role, section_id, vendor_id, display_name.
    """
    if "user_id" not in st.session_state:
        return None
    try:
        return CallerContext(
            user_id=st.session_state["user_id"],
            role=st.session_state.get("role"),
            section_id=st.session_state.get("section_id"),
            vendor_id=st.session_state.get("vendor_id"),
            display_name=st.session_state.get("display_name"),
        )
    except ValidationError as e:
        st.error("Your account is not set up correctly. Contact an administrator.")
        st.caption(str(e))
        return None

def require_login() -> CallerContext:
    caller = get_caller_context()
    if caller is None:
        st.warning("Please sign in.")
        st.stop()
    return caller

def show_user_sidebar(caller: CallerContext) -> None:
    with st.sidebar:
        st.markdown(f"**{caller.display_name or f'User #{caller.user_id}'}**")
        st.caption(caller.role.value)
