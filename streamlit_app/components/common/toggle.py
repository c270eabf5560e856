import streamlit as st


def toggle_button(state_key: str, label_off: str, label_on: str) -> bool:
    """
    Button flipping a boolean session state key; returns the current value.
    """
    st.session_state.setdefault(state_key, False)

    def _toggle():
        st.session_state[state_key] = not st.session_state[state_key]

    st.button(
        label_on if st.session_state[state_key] else label_off,
        key=f"toggle_btn_{state_key}",
        on_click=_toggle,
    )
    return st.session_state[state_key]
