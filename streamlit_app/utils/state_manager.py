import streamlit as st
from typing import Any, Callable


class StateManager:
    """Namespaced st.session_state keys: '<scope>:<id>:<key>'."""

    @staticmethod
    def get_or_create(scope: str, id_: str, key: str, factory: Callable[[], Any]):
        full_key = f"{scope}:{id_}:{key}"
        if full_key not in st.session_state:
            st.session_state[full_key] = factory()
        return st.session_state[full_key]
