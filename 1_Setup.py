import random
from datetime import datetime

import streamlit as st

import session_service
from app_types import Gender
from constants import (
    DEFAULT_GAMES_PER_MATCH,
    DEFAULT_LEVEL,
    DEFAULT_NUM_ROUNDS,
    GAMES_PER_MATCH_OPTIONS,
    LEVEL_OPTIONS,
    ROUND_OPTIONS,
)
from database import PlayerDB
from exceptions import DatabaseError
from logger import setup_logging
from player_service import create_roster_dataframe, dataframe_to_selection, search_players
from session_logic import MatchSession, SessionManager
from utils import StreamlitDialog, show_flash_messages

setup_logging()

# Random words for default session names
RANDOM_WORDS = [
    "Phoenix", "Dragon", "Tiger", "Eagle", "Falcon", "Hawk", "Wolf", "Lion",
    "Thunder", "Lightning", "Storm", "Blaze", "Frost", "Shadow", "Star", "Moon",
]


def generate_session_name():
    """Generates a session name using a random word and timestamp."""
    word = random.choice(RANDOM_WORDS)
    timestamp = datetime.now().strftime("%m%d-%H%M")
    return f"{word}-{timestamp}"


def load_registry():
    """Loads the player registry once per browser session."""
    try:
        st.session_state.player_table = PlayerDB.get_all_players()
        st.session_state.is_recorded = True
    except DatabaseError as e:
        st.session_state.player_table = {}
        st.session_state.is_recorded = False
        st.session_state.registry_error = str(e)


st.set_page_config(layout="wide", page_title="Rotation Setup")

st.title("🏸 Badminton Rotation Scheduler")

if "player_table" not in st.session_state:
    load_registry()

if st.session_state.get("registry_error"):
    st.error(
        f"{st.session_state.registry_error}. Players added now are kept for this session only."
    )

if "session" not in st.session_state:
    st.session_state.session = MatchSession(
        players=st.session_state.player_table,
        selected_ids=[],
        is_recorded=st.session_state.is_recorded,
    )
    st.session_state.current_session_name = generate_session_name()

session = st.session_state.session
session_name = st.session_state.current_session_name

show_flash_messages()

# --- Saved Sessions ---
existing_sessions = [s for s in SessionManager.list_sessions() if s != session_name]
if existing_sessions:
    with st.expander("Saved Sessions", expanded=False):
        for saved_name in existing_sessions:
            col1, col2, col3 = st.columns([3, 1, 1])
            with col1:
                st.markdown(f"**{saved_name}**")
            with col2:
                if st.button("▶️ Resume", key=f"resume_{saved_name}", use_container_width=True):
                    loaded = session_service.load_session(
                        saved_name, st.session_state.player_table, st.session_state.is_recorded
                    )
                    if loaded:
                        st.session_state.session = loaded
                        st.session_state.current_session_name = saved_name
                        st.rerun()
                    else:
                        st.error(f"Failed to load session '{saved_name}'")
            with col3:
                if st.button("🗑️ Delete", key=f"delete_{saved_name}", use_container_width=True):
                    SessionManager.clear(saved_name)
                    st.rerun()

st.caption(f"Session: {session_name}")

if st.session_state.is_recorded:
    with st.expander("Resume From Cloud", expanded=False):
        cloud_name = st.text_input("Session name", key="cloud_session_name")
        if st.button("Load", key="cloud_load_btn") and cloud_name:
            try:
                loaded = session_service.load_session(
                    cloud_name.strip(), st.session_state.player_table, is_recorded=True
                )
            except DatabaseError as e:
                loaded = None
                st.error(str(e))
            if loaded:
                st.session_state.session = loaded
                st.session_state.current_session_name = cloud_name.strip()
                st.rerun()
            else:
                st.warning(f"No stored session named '{cloud_name}'")

# --- Player Selection ---
st.subheader("1. Select Players")

roster_df = create_roster_dataframe(session.player_pool, session.selected_ids)
edited_df = st.data_editor(
    roster_df,
    column_config={
        "Selected": st.column_config.CheckboxColumn("Selected", default=False),
        "Score": st.column_config.NumberColumn("Score", format="%.1f"),
        "id": None,  # Hidden
    },
    disabled=["Player Name", "Gender", "Level", "Score", "id"],
    hide_index=True,
    use_container_width=True,
    key="roster_editor",
)

if st.button("✅ Confirm Selection"):
    session_service.update_selection(
        session, session_name, StreamlitDialog(), dataframe_to_selection(edited_df)
    )
    st.rerun()

st.markdown(f"**Active Players:** {len(session.selected_ids)}")

col_add, col_new, col_edit, col_remove = st.columns(4)

with col_add:
    with st.expander("🔍 Add Existing Player", expanded=False):
        query = st.text_input("Search by name", key="search_player")
        for match in search_players(session.player_pool, query, set(session.selected_ids)):
            if st.button(f"Add {match.name}", key=f"add_existing_{match.id}"):
                session_service.add_existing_player(session, session_name, StreamlitDialog(), match)
                st.rerun()

with col_new:
    with st.expander("➕ New Player", expanded=False):
        new_name = st.text_input("Player Name", key="new_player_name")
        new_gender = st.selectbox("Gender", options=[g.value for g in Gender], key="new_player_gender")
        new_level = st.selectbox(
            "Level", options=LEVEL_OPTIONS, index=LEVEL_OPTIONS.index(DEFAULT_LEVEL), key="new_player_level"
        )
        if st.button("Add Player", key="new_player_btn"):
            added = session_service.add_new_player(
                session, session_name, StreamlitDialog(), new_name, Gender(new_gender), new_level
            )
            if added:
                st.rerun()
            show_flash_messages()

with col_edit:
    with st.expander("✏️ Edit Player", expanded=False):
        if session.player_pool:
            edit_id = st.selectbox(
                "Player",
                options=list(session.player_pool.keys()),
                format_func=lambda pid: session.player_pool[pid].name,
                key="edit_player_select",
            )
            edit_target = session.player_pool[edit_id]
            edit_name = st.text_input("Name", value=edit_target.name, key=f"edit_name_{edit_id}")
            edit_gender = st.selectbox(
                "Gender",
                options=[g.value for g in Gender],
                index=[g for g in Gender].index(edit_target.gender),
                key=f"edit_gender_{edit_id}",
            )
            if st.button("Save", key="edit_player_btn"):
                session_service.edit_player(
                    session, session_name, StreamlitDialog(), edit_id, edit_name, Gender(edit_gender)
                )
                st.rerun()
        else:
            st.info("No players yet.")

with col_remove:
    with st.expander("➖ Remove Player", expanded=False):
        if session.selected_ids:
            remove_id = st.selectbox(
                "Player",
                options=session.selected_ids,
                format_func=lambda pid: session.player_pool[pid].name,
                key="remove_player_select",
            )
            with st.popover("Remove"):
                st.write(f"Are you sure you want delete {session.player_pool[remove_id].name}?")
                if st.button("Yes, remove", key="remove_player_btn", type="primary"):
                    session_service.remove_player(
                        session, session_name, StreamlitDialog(confirmed=True), remove_id
                    )
                    st.rerun()
        else:
            st.info("No players selected.")

# --- Schedule Generation ---
st.subheader("2. Generate Schedule")

col_gpm, col_rounds = st.columns(2)
with col_gpm:
    games_per_match = st.radio(
        "Games Per Match",
        GAMES_PER_MATCH_OPTIONS,
        index=GAMES_PER_MATCH_OPTIONS.index(session.games_per_match or DEFAULT_GAMES_PER_MATCH),
        horizontal=True,
        disabled=session.has_schedule,
    )
with col_rounds:
    num_rounds = st.radio(
        "Rounds",
        ROUND_OPTIONS,
        index=ROUND_OPTIONS.index(session.num_rounds or DEFAULT_NUM_ROUNDS),
        horizontal=True,
        disabled=session.has_schedule,
    )

if session.has_schedule:
    st.info("A schedule already exists for this session.")
    if st.button("Go to Games", type="primary"):
        st.switch_page("pages/2_Session.py")
elif st.button("🚀 Generate Schedule", type="primary"):
    generated = session_service.generate_schedule(
        session, session_name, StreamlitDialog(), num_rounds, games_per_match
    )
    if generated:
        st.switch_page("pages/2_Session.py")

if session.error_message:
    st.error(session.error_message)
