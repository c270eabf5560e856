import streamlit as st
from datetime import date
from pydantic import ValidationError
from db.orm_session import get_store
from schemas.caller_schemas import CallerContext
from schemas.registration_schemas import RegistrationCreate
from services.master_data_services import list_activity_types, list_blocks
from services.registration_services import register_block_activity
from utils.errors import SubmissionError


def render_registration_form(caller: CallerContext):
    """Registers a block for an activity in a target month."""
    st.subheader("Register Block Activity")

    with get_store() as store:
        blocks = list_blocks(store, caller)
        activities = list_activity_types(store, caller)

    if not blocks:
        st.info("No blocks available to register.")
        return

    with st.form("registration_form", clear_on_submit=True):
        block = st.selectbox(
            "Block",
            options=blocks,
            format_func=lambda b: f"{b['code']} ({b['area_ha']:g} ha, {b['crop_category'] or '-'})",
        )
        activity = st.selectbox("Activity", options=activities, format_func=lambda a: a["name"])
        target_month = st.text_input("Target Month (YYYY-MM)", value=date.today().strftime("%Y-%m"))
        execution_number = st.number_input("Execution Number", min_value=1, step=1, value=1)
        target_area = st.number_input("Target Area (ha, 0 = whole block)", min_value=0.0, step=0.1)
        submitted = st.form_submit_button("Register")

    if not submitted:
        return

    try:
        data = RegistrationCreate(
            block_id=block["id"],
            activity_type_id=activity["id"],
            target_month=target_month.strip(),
            execution_number=int(execution_number),
            target_area=target_area or None,
        )
        with get_store() as store:
            registration = register_block_activity(store, data, caller)
    except ValidationError as e:
        st.error(f"Invalid registration: {e.errors()[0]['msg']}")
        return
    except SubmissionError as e:
        st.error(e.message)
        return

    st.success(
        f"Block {block['code']} registered for {activity['name']} "
        f"({registration.target_area:g} ha, {registration.target_month})."
    )
