import streamlit as st
import pandas as pd
from constants.general_constants import RegistrationStatus, STATUS_COLOR_MAP
from components.common.refresh_tools import refresh_cache
from db.orm_session import get_store
from schemas.caller_schemas import CallerContext
from services.master_data_services import get_blocks, get_section_name, list_activity_types
from services.registration_services import list_registrations, remaining_area


@st.cache_data(ttl=60)
def load_progress(caller_json: str, activity_type_id, open_only: bool) -> pd.DataFrame:
    caller = CallerContext.model_validate_json(caller_json)
    with get_store() as store:
        registrations = list_registrations(store, caller, activity_type_id=activity_type_id, open_only=open_only)
        blocks = get_blocks(store, sorted({r.block_id for r in registrations}))
        sections = {sid: get_section_name(store, sid) for sid in {r.section_id for r in registrations}}

    return pd.DataFrame([{
        "Section": sections.get(r.section_id),
        "Block": blocks.get(r.block_id, {}).get("code"),
        "Activity ID": r.activity_type_id,
        "Execution": r.execution_number,
        "Crop": r.crop_category,
        "Month": r.target_month,
        "Target (ha)": r.target_area,
        "Done (ha)": r.completed_area,
        "Remaining (ha)": remaining_area(r),
        "Progress (%)": r.percent_complete,
        "Status": r.status.value,
    } for r in registrations])

def _color_status(value):
    return f"color: {STATUS_COLOR_MAP.get(value, 'inherit')}"

def render_registration_progress(caller: CallerContext):
    """Role-scoped table of block registrations and how far each has progressed."""
    st.subheader("Registration Progress")

    with get_store() as store:
        activities = list_activity_types(store, caller)
    names = {a["id"]: a["name"] for a in activities}

    col1, col2 = st.columns([0.7, 0.3])
    with col1:
        activity_id = st.selectbox(
            "Activity",
            options=[None] + list(names),
            format_func=lambda i: "All activities" if i is None else names[i],
        )
    with col2:
        open_only = st.checkbox("Open registrations only", value=True)

    if refresh_cache(load_progress, label="Refresh Progress", key="refresh_progress"):
        st.rerun()

    df = load_progress(caller.model_dump_json(), activity_id, open_only)
    if df.empty:
        st.info("No registrations to display.")
        return

    df["Activity"] = df.pop("Activity ID").map(names)
    totals = df[["Target (ha)", "Done (ha)"]].sum()
    done = (df["Status"] == RegistrationStatus.COMPLETED.value).sum()

    col1, col2, col3 = st.columns(3)
    col1.metric("Registrations", len(df))
    col2.metric("Completed", int(done))
    col3.metric("Area Done", f"{totals['Done (ha)']:,.2f} / {totals['Target (ha)']:,.2f} ha")

    st.dataframe(df.style.map(_color_status, subset=["Status"]), hide_index=True, width='stretch')
