import streamlit as st

import session_service
from app_types import GameStatus, GameType, PairSide, SlotLocation
from standings_service import create_standings_dataframe
from utils import StreamlitDialog, show_flash_messages

STATUS_LABELS = {
    GameStatus.AWAITING: "⏳ Awaiting",
    GameStatus.IN_PLAY: "🟢 In Play",
    GameStatus.FINISHED: "🏁 Finished",
}

st.set_page_config(initial_sidebar_state="collapsed", layout="wide")

# --- Page Entry Logic ---
if "session" not in st.session_state or "current_session_name" not in st.session_state:
    st.error("No active session found. Please start or resume a session.")
    st.switch_page("1_Setup.py")

session = st.session_state.session
session_name = st.session_state.current_session_name
st.title(f"🏸 {session_name}")

show_flash_messages()


def player_label(player_id, conflicted, active):
    player = session.player_pool[player_id]
    marker = "🔴 " if player_id in conflicted else ""
    busy = " (on court)" if player_id in active else ""
    return f"{marker}{player.name} · {player.score:.1f}{busy}"


def render_game(round_index, game_index, round_number=None, key_prefix="r"):
    """Renders one game card with swap buttons, status toggle and score entry."""
    game = session.schedule[round_index].games[game_index]
    conflicted = session.conflicts.player_ids
    active = session.active_player_ids
    key = f"{key_prefix}_{round_index}_{game_index}"

    with st.container(border=True):
        title = f"Game {game_index + 1}"
        if round_number is not None:
            title = f"Round {round_number} · {title}"
        if game.game_type == GameType.SINGLES:
            title += " (Singles)"
        st.markdown(f"**{title}** · {STATUS_LABELS[game.status]}")

        cols = st.columns(2)
        for col, side in zip(cols, (PairSide.A, PairSide.B)):
            pair = game.pair(side)
            with col:
                st.caption(f"Side {side.value} · strength {pair.strength:.1f}")
                for slot, player_id in ((1, pair.p1), (2, pair.p2)):
                    if player_id is None:
                        continue
                    location = SlotLocation(round_index, game_index, side, slot)
                    selected = session.swap_source == location
                    if st.button(
                        player_label(player_id, conflicted, active),
                        key=f"{key}_{side.value}{slot}",
                        type="primary" if selected else "secondary",
                        use_container_width=True,
                    ):
                        session_service.handle_swap_selection(
                            session, session_name, StreamlitDialog(), location
                        )
                        st.rerun()

        if game.status == GameStatus.FINISHED:
            st.markdown(f"### {game.score_a} : {game.score_b}")

        col_toggle, col_score = st.columns([1, 2])
        with col_toggle:
            toggle_label = {
                GameStatus.AWAITING: "▶️ Start",
                GameStatus.IN_PLAY: "⏸️ Back to queue",
                GameStatus.FINISHED: "↩️ Reopen",
            }[game.status]
            if st.button(toggle_label, key=f"{key}_toggle"):
                session_service.toggle_game(session, session_name, round_index, game_index)
                st.rerun()
        with col_score:
            if game.status != GameStatus.FINISHED:
                with st.popover("Enter Score"):
                    score_a = st.selectbox(
                        "Side A games",
                        list(range(session.games_per_match + 1)),
                        key=f"{key}_score",
                    )
                    st.caption(f"Side B: {session.games_per_match - score_a}")
                    if st.button("Save Score", key=f"{key}_save"):
                        session_service.enter_score(
                            session, session_name, StreamlitDialog(), round_index, game_index, score_a
                        )
                        st.rerun()


if not session.has_schedule:
    st.info("No schedule yet. Generate one on the setup page.")
    if st.button("Back to Setup"):
        st.switch_page("1_Setup.py")
    st.stop()

conflicts = session.conflicts
if conflicts.has_conflicts:
    st.error(conflicts.message)
    for (a, b), rounds in conflicts.repeated_pairs.items():
        names = f"{session.player_pool[a].name} & {session.player_pool[b].name}"
        st.caption(f"{names}: rounds {', '.join(str(r) for r in rounds)}")

if session.swap_source is not None:
    source = session.swap_source
    game = session.schedule[source.round_index].games[source.game_index]
    pair = game.pair(source.side)
    source_id = pair.p1 if source.slot == 1 else pair.p2
    col_msg, col_cancel = st.columns([4, 1])
    with col_msg:
        st.info(f"Swapping **{session.player_pool[source_id].name}**: select a player in the same round.")
    with col_cancel:
        if st.button("Cancel swap"):
            session.cancel_swap()
            st.rerun()

col1, col2 = st.columns([2, 1])

with col1:
    view_mode = st.segmented_control(
        "View", ["Rounds", "Active", "Queue"], default="Rounds", key="view_mode"
    )

    if view_mode == "Active":
        refs = session.active_games()
        if not refs:
            st.info("No games in play.")
        for ref in refs:
            render_game(ref.round_index, ref.game_index, ref.round_number, key_prefix="active")
    elif view_mode == "Queue":
        refs = session.queued_games()
        if not refs:
            st.info("No games ready to start.")
        for ref in refs:
            render_game(ref.round_index, ref.game_index, ref.round_number, key_prefix="queue")
    else:
        tabs = st.tabs([f"Round {r.round_number}" for r in session.schedule])
        for round_index, (tab, round_) in enumerate(zip(tabs, session.schedule)):
            with tab:
                for game_index in range(len(round_.games)):
                    render_game(round_index, game_index)

with col2:
    st.header("Standings")
    st.dataframe(create_standings_dataframe(session.get_standings()), use_container_width=True)

# --- Session Management in Sidebar ---
with st.sidebar:
    st.header("Manage Session")
    st.markdown(f"**Games per match:** {session.games_per_match}  \n**Rounds:** {session.num_rounds}")

    with st.expander("🔁 Substitute Player", expanded=False):
        scheduled = session.scheduled_player_ids
        candidates = [
            pid
            for pid in session.player_pool
            if pid not in session.selected_ids and pid not in scheduled
        ]
        if session.selected_ids and candidates:
            old_id = st.selectbox(
                "Replace",
                options=session.selected_ids,
                format_func=lambda pid: session.player_pool[pid].name,
                key="sub_old",
            )
            new_id = st.selectbox(
                "With",
                options=candidates,
                format_func=lambda pid: session.player_pool[pid].name,
                key="sub_new",
            )
            st.caption(
                f"Replace {session.player_pool[old_id].name} with {session.player_pool[new_id].name}?"
            )
            if st.button("Confirm Replacement", key="sub_btn"):
                session_service.substitute_player(
                    session, session_name, StreamlitDialog(confirmed=True), old_id, session.player_pool[new_id]
                )
                st.rerun()
        else:
            st.info("No players available to substitute.")

    with st.popover("🗑️ Reset Schedule"):
        st.write("Are you sure? This will delete the current schedule from the cloud.")
        if st.button("Yes, reset", key="reset_btn"):
            session_service.reset_schedule(session, session_name, StreamlitDialog(confirmed=True))
            st.switch_page("1_Setup.py")

    with st.popover("🏁 Finalize Session"):
        st.write(
            "This will calculate player stats, update their history, "
            "and clear the current list. Are you sure?"
        )
        if st.button("Yes, finalize", key="finalize_btn", type="primary"):
            new_ratings = session_service.finalize_session(
                session, session_name, StreamlitDialog(confirmed=True)
            )
            if new_ratings is not None:
                st.switch_page("1_Setup.py")
            st.rerun()
