import streamlit as st
import pandas as pd
from db.orm_session import get_store
from schemas.caller_schemas import CallerContext
from services.master_data_services import get_blocks
from services.registration_services import find_registration
from services.transaction_services import get_transaction_record, list_transactions


def render_transaction_history(caller: CallerContext, limit: int = 50):
    st.subheader("Recent Transactions")

    with get_store() as store:
        headers = list_transactions(store, caller, limit=limit)

    if not headers:
        st.info("No transactions recorded yet.")
        return

    df = pd.DataFrame(headers)[["code", "date", "execution_number", "condition", "total_area", "total_workers", "note"]]
    st.dataframe(df, hide_index=True, width='stretch')

    chosen = st.selectbox("Transaction Details", options=[None] + headers,
                          format_func=lambda h: "Select a transaction..." if h is None else h["code"])
    if chosen is None:
        return

    with get_store() as store:
        record = get_transaction_record(store, chosen["id"])
        registrations = [find_registration(store, a.registration_id) for a in record.allocations]
        blocks = get_blocks(store, [r.block_id for r in registrations])

    st.markdown("#### Blocks")
    st.dataframe(pd.DataFrame([{
        "Block": blocks.get(r.block_id, {}).get("code"),
        "Area Worked (ha)": a.area_worked,
        "Registration Progress (%)": r.percent_complete,
    } for a, r in zip(record.allocations, registrations)]), hide_index=True, width='stretch')

    if record.materials:
        st.markdown("#### Materials")
        st.dataframe(pd.DataFrame([m.model_dump() for m in record.materials]), hide_index=True, width='stretch')

    st.markdown("#### Workers")
    st.dataframe(pd.DataFrame([w.model_dump() for w in record.workers]), hide_index=True, width='stretch')
