import streamlit as st

from app_types import Decision

FLASH_KEY = "flash_messages"


class StreamlitDialog:
    """
    Dialog collaborator for the Streamlit pages.

    Streamlit cannot block on a modal, so pages ask for confirmation with
    their own button (inside a popover) and build the dialog with the answer
    already known. Alerts are queued and shown after the next rerun.
    """

    def __init__(self, confirmed: bool = False):
        self.confirmed = confirmed

    def confirm(self, title: str, message: str) -> Decision:
        return Decision.CONFIRMED if self.confirmed else Decision.CANCELLED

    def alert(self, title: str, message: str) -> None:
        st.session_state.setdefault(FLASH_KEY, []).append((title, message))


def show_flash_messages():
    """Renders and clears the alerts queued by StreamlitDialog."""
    for title, message in st.session_state.pop(FLASH_KEY, []):
        st.warning(f"**{title}:** {message}")
