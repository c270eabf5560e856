import streamlit as st


def refresh_cache(*loaders, label: str = "Refresh", key: str = "refresh_button") -> bool:
    """
    Renders a refresh button. When clicked, clears the given st.cache_data
    loaders, or the whole data cache when none are given.
    """
    clicked = st.button(label, key=key)
    if clicked:
        if loaders:
            for loader in loaders:
                loader.clear()
        else:
            st.cache_data.clear()
    return clicked
