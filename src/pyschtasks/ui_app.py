from __future__ import annotations

from typing import Optional

import pandas as pd
import streamlit as st

from pyschtasks import core
from pyschtasks.errors import TaskError


st.set_page_config(page_title="Scheduled Tasks", layout="wide")
st.title("Windows Task Scheduler")
st.caption("Browse and manage scheduled tasks")

DISPLAY_COLS = [
    "task_name",
    "status",
    "schedule_type",
    "next_run_time",
    "last_run_time",
    "last_result",
    "author",
]

DETAIL_COLS = [
    "task_to_run",
    "start_in",
    "comment",
    "run_as_user",
    "scheduled_task_state",
    "schedule",
    "start_time",
    "start_date",
    "end_date",
    "days",
    "months",
]

ADD_SCHEDULES = {
    "Daily": core.create_daily_task,
    "Weekly": core.create_weekly_task,
    "Once": core.create_once_task,
    "On start": core.create_on_start_task,
    "On logon": core.create_on_logon_task,
}


def get_tasks() -> pd.DataFrame:
    """Return the task snapshot from session state, reloading when invalidated."""
    ss = st.session_state
    if ss.get("tasks_snapshot") is None or ss.get("invalidate_tasks") is True:
        ss["tasks_snapshot"] = core.query_tasks(verbose=True)
        ss["invalidate_tasks"] = False
    return ss["tasks_snapshot"]


def _require_selection(action: str) -> Optional[str]:
    if not st.session_state.get("selected_task"):
        st.warning(f"Select a task in the table to {action}.")
        return None
    return st.session_state["selected_task"]


def _action(label: str, verb: str, done: str, func) -> None:
    if st.button(label, use_container_width=True):
        name = _require_selection(verb)
        if name:
            try:
                func(name)
                st.success(f"{done} '{name}'")
                st.session_state["invalidate_tasks"] = True
            except TaskError as e:
                st.error(str(e))


col1, col2, col3, col4, col5, col6, col7 = st.columns([1, 1, 1, 1, 1, 1, 1])
with col1:
    if st.button("Refresh", type="primary"):
        st.session_state["invalidate_tasks"] = True
with col2:
    _action("Run", "run", "Started", core.run_task)
with col3:
    _action("End", "stop", "Stopped", core.end_task)
with col4:
    _action("Enable", "enable", "Enabled", core.enable_task)
with col5:
    _action("Disable", "disable", "Disabled", core.disable_task)
with col6:
    if st.button("Delete", use_container_width=True):
        name = _require_selection("delete")
        if name:
            st.session_state["confirm_delete_name"] = name
with col7:
    if st.button("Add", use_container_width=True):
        st.session_state["show_add_form"] = True


def _render_add_form() -> None:
    st.subheader("Add Scheduled Task")
    name = st.text_input("Name", placeholder="my-task")
    task_run = st.text_input("Task to run", placeholder=r"C:\path\to\job.py")
    script = st.text_input("Interpreter (empty: run directly)", value="")
    exec_path = st.text_input("Start in (empty: project root)", value="")
    schedule = st.selectbox("Schedule", options=list(ADD_SCHEDULES), index=0)
    start_time = st.text_input("Start time [HH:MM]", placeholder="12:00").strip() or None
    days = None
    if schedule == "Weekly":
        days = st.multiselect(
            "Days",
            options=["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
        ) or ["Monday"]

    col_ok, col_cancel = st.columns(2)
    with col_ok:
        create_clicked = st.button("Create", type="primary", use_container_width=True)
    with col_cancel:
        cancel_clicked = st.button("Cancel", use_container_width=True)

    if cancel_clicked:
        st.session_state["show_add_form"] = False
        st.rerun()

    if create_clicked:
        kwargs = {"script": script or None, "exec_path": exec_path or None}
        if schedule in ("Daily", "Weekly", "Once"):
            kwargs["start_time"] = start_time
        if days:
            kwargs["days"] = days
        try:
            ADD_SCHEDULES[schedule](name, task_run, **kwargs)
            st.success(f"Task '{name}' created")
            st.session_state["show_add_form"] = False
            st.session_state["invalidate_tasks"] = True
            st.rerun()
        except TaskError as e:
            st.error(str(e))


def _render_confirm_delete() -> None:
    name = st.session_state.get("confirm_delete_name")
    if not name:
        return
    st.warning(f"Delete task '{name}'? This cannot be undone.")
    col_yes, col_no = st.columns(2)
    with col_yes:
        if st.button("Yes, delete", type="primary", use_container_width=True):
            try:
                core.delete_task(name)
                st.success(f"Deleted '{name}'")
                st.session_state["confirm_delete_name"] = None
                st.session_state["selected_task"] = None
                st.session_state["invalidate_tasks"] = True
                st.rerun()
            except TaskError as e:
                st.error(str(e))
    with col_no:
        if st.button("Cancel", use_container_width=True):
            st.session_state["confirm_delete_name"] = None
            st.rerun()


try:
    tasks = get_tasks()
except TaskError as e:
    st.error(str(e))
    st.stop()

if tasks.empty:
    st.info("No tasks found or access denied.")
    st.stop()

df = tasks[[c for c in DISPLAY_COLS if c in tasks.columns]]

st.dataframe(
    df,
    use_container_width=True,
    hide_index=True,
    selection_mode="single-row",
    key="tasks_table",
    on_select="rerun",
)

selected_name: Optional[str] = None
sel_state = st.session_state.get("tasks_table")
rows_sel = None
if isinstance(sel_state, dict):
    rows_sel = (sel_state.get("selection") or {}).get("rows")
elif sel_state is not None and hasattr(sel_state, "selection"):
    rows_sel = sel_state.selection.rows
if rows_sel:
    idx = rows_sel[0]
    if 0 <= idx < len(df):
        selected_name = str(df.iloc[idx]["task_name"]).strip()
st.session_state["selected_task"] = selected_name

if selected_name:
    st.subheader(f"Details: {selected_name}")
    row = tasks.iloc[rows_sel[0]]
    with st.container(border=True):
        details = {c: row[c] for c in DETAIL_COLS if c in tasks.columns}
        st.table(pd.DataFrame({"field": list(details), "value": list(details.values())}))

if st.session_state.get("show_add_form"):
    _render_add_form()

if st.session_state.get("confirm_delete_name"):
    _render_confirm_delete()
