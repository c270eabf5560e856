import streamlit as st
import pandas as pd
import time
from datetime import date
from constants.general_constants import Condition, ErrorKind, RollbackOutcome, WorkerMode
from db.orm_session import get_store
from schemas.caller_schemas import CallerContext
from services.master_data_services import (
    get_blocks,
    list_activity_types,
    list_stages,
    list_vendor_workers,
    list_vendors,
)
from services.material_services import available_alternatives, resolve_materials
from services.registration_services import list_registrations, remaining_area
from services.transaction_services import TransactionSubmissionEngine
from utils.state_manager import StateManager


def _submission_kind(activity: dict) -> str:
    if activity["requires_yield"]:
        return "harvest"
    if activity["allows_multiple_execution"]:
        return "weeding"
    return "standard"

def _render_material_lines(lines, total_area: float) -> list[dict]:
    """Editable dosage per material line; returns the entries the user kept."""
    entries = []
    for line in lines:
        col1, col2, col3 = st.columns([0.5, 0.25, 0.25])
        with col1:
            label = f"{line.material_code} - {line.material_name}"
            if line.alternative_option:
                label += f" ({line.alternative_option})"
            keep = st.checkbox(label, value=line.selected, disabled=line.required, key=f"mat_sel_{line.rule_id}")
        with col2:
            dosage = st.number_input(
                f"Dosage ({line.unit}/ha)",
                min_value=0.0,
                value=float(line.dosage_per_ha),
                step=0.1,
                key=f"mat_dose_{line.rule_id}",
            )
        line = line.with_dosage(dosage, total_area)
        with col3:
            st.metric("Total", f"{line.quantity:,.2f} {line.unit}")
        if keep or line.required:
            entries.append({"material_id": line.material_id, "dosage_per_ha": line.dosage_per_ha, "unit": line.unit})
    return entries

def render_transaction_form(caller: CallerContext):
    """
    Vendor work transaction entry.

    - Vendor, activity and execution round pick which open registrations are offered
    - Area worked per selected block, capped at the remaining area
    - Workers as a head count or picked by name
    - Materials resolved from the dosage rules for the blocks' crop category
    - On submit, hands the request to TransactionSubmissionEngine and shows the result
    """
    st.subheader("Record Work Transaction")

    with get_store() as store:
        vendors = list_vendors(store, caller)
        activities = list_activity_types(store, caller)

    if not vendors or not activities:
        st.info("No vendors or activities available for your account.")
        return

    col1, col2, col3 = st.columns(3)
    with col1:
        work_date = st.date_input("Work Date", value=date.today(), max_value=date.today())
    with col2:
        vendor = st.selectbox("Vendor", options=vendors, format_func=lambda v: f"{v['code']} - {v['name']}")
    with col3:
        activity = st.selectbox("Activity", options=activities, format_func=lambda a: a["name"])

    kind = _submission_kind(activity)
    execution_number = 1
    if kind == "weeding":
        execution_number = st.selectbox("Round", options=list(range(1, activity["max_execution"] + 1)))

    with get_store() as store:
        registrations = list_registrations(
            store, caller, activity_type_id=activity["id"], execution_number=execution_number, open_only=True
        )
        blocks = get_blocks(store, sorted({r.block_id for r in registrations}))

    if not registrations:
        st.info(f"No open registrations for {activity['name']}.")
        return

    def block_label(reg):
        code = blocks.get(reg.block_id, {}).get("code", f"#{reg.block_id}")
        return f"{code} ({reg.target_month}, {remaining_area(reg):g} ha left)"

    df = pd.DataFrame([{
        "Block": blocks.get(r.block_id, {}).get("code"),
        "Month": r.target_month,
        "Target (ha)": r.target_area,
        "Done (ha)": r.completed_area,
        "Remaining (ha)": remaining_area(r),
        "Status": r.status.value,
    } for r in registrations])
    st.dataframe(df, hide_index=True, width='stretch')

    selected = st.multiselect("Blocks Worked", options=registrations, format_func=block_label)
    allocations = []
    for reg in selected:
        area = st.number_input(
            f"Area worked on {block_label(reg)}",
            min_value=0.0,
            max_value=float(remaining_area(reg)),
            value=float(remaining_area(reg)),
            step=0.1,
            key=f"area_{reg.id}",
        )
        allocations.append({"registration_id": reg.id, "area_worked": area})
    total_area = sum(a["area_worked"] for a in allocations)

    st.markdown("#### Workers")
    mode = st.radio("Worker Entry", options=list(WorkerMode), horizontal=True,
                    format_func=lambda m: "Head count" if m == WorkerMode.MANUAL else "Pick names")
    if mode == WorkerMode.MANUAL:
        workers = {"mode": mode.value, "count": st.number_input("Number of Workers", min_value=0, step=1)}
    else:
        with get_store() as store:
            vendor_workers = list_vendor_workers(store, vendor["id"])
        picked = st.multiselect("Workers", options=vendor_workers, format_func=lambda w: f"{w['worker_code']} - {w['name']}")
        workers = {"mode": mode.value, "worker_ids": [w["id"] for w in picked]}

    request = {
        "kind": kind,
        "date": work_date,
        "vendor_id": vendor["id"],
        "activity_type_id": activity["id"],
        "allocations": allocations,
        "workers": workers,
    }
    if kind == "weeding":
        request["execution_number"] = execution_number

    if activity["requires_condition"]:
        condition = st.radio("Field Condition", options=list(Condition), horizontal=True, format_func=lambda c: c.value)
        request["condition"] = condition.value

    if kind == "harvest":
        col1, col2 = st.columns(2)
        with col1:
            request["estimated_yield"] = st.number_input("Estimated Yield (tons)", min_value=0.0, step=0.1)
        with col2:
            request["actual_yield"] = st.number_input("Actual Yield (tons)", min_value=0.0, step=0.1)

    if activity["records_variety"]:
        default_variety = selected[0].variety if selected else ""
        request["variety_override"] = st.text_input("Variety", value=default_variety or "").strip() or None

    if selected:
        st.markdown("#### Materials")
        with get_store() as store:
            stages = list_stages(store)
            stage = st.selectbox("Stage", options=[None] + stages,
                                 format_func=lambda s: "Any stage" if s is None else s["name"])
            lines = resolve_materials(
                store,
                activity["id"],
                selected[0].crop_category,
                stage_id=stage["id"] if stage else None,
                total_area=total_area,
            )
            alternatives = available_alternatives(lines)
            if alternatives:
                alternative = st.selectbox("Alternative", options=alternatives)
                lines = resolve_materials(
                    store,
                    activity["id"],
                    selected[0].crop_category,
                    stage_id=stage["id"] if stage else None,
                    alternative=alternative,
                    total_area=total_area,
                )
        if lines:
            request["materials"] = _render_material_lines(lines, total_area)
        else:
            st.caption("No material rules for this activity and crop category.")

    request["note"] = st.text_area("Note").strip() or None

    st.markdown(f"**Total Area:** {total_area:g} ha")

    if st.button("Submit Transaction"):
        submit_log = StateManager.get_or_create("transactions", "engine", "submit_log", dict)
        with get_store() as store:
            engine = TransactionSubmissionEngine(store, submit_log=submit_log)
            result = engine.submit(request, caller)

        if result.success:
            st.success(f"Transaction {result.transaction.code} saved ({result.transaction.total_area:g} ha).")
            time.sleep(1.5)
            st.rerun()
        elif result.error_kind == ErrorKind.ROLLBACK_FAILED:
            st.error(result.message)
            st.warning("Send this message to an administrator so the leftover rows can be removed.")
        else:
            st.error(result.message)
            if result.rollback == RollbackOutcome.ROLLED_BACK:
                st.caption("The partial transaction was removed.")
