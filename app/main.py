"""
Streamlit Frontend for Cashbook

The daily screen for whoever closes the register.

DESIGN PRINCIPLES:
1. Profit and discrepancy update as the figures are typed
2. A save always says whether the day balanced
3. Deleting asks first
4. Clear error messages when stored data cannot be read

Records are listed newest first. Every edit or delete passes the
on-screen index to the flow, which maps it back to a stored position.
"""

from datetime import datetime, time, timezone

import streamlit as st

from cashbook.audit import configure_logging
from cashbook.config import get_settings, validate_all_settings
from cashbook.models.record import BASE_FIELD_NAMES, ReconciliationRecord
from cashbook.orchestrator import (
    DeletionNotConfirmedError,
    ReconciliationFlow,
    create_app_components,
)
from cashbook.services.storage import StorageCorruptionError, StorageError
from cashbook.validation import InvalidNumericInputError
from cashbook.validation.validator import FIELD_LABELS


st.set_page_config(
    page_title="Cashbook",
    page_icon="🧾",
    layout="centered",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .balanced {
        color: #28a745;
        font-weight: bold;
    }
    .unbalanced {
        color: #dc3545;
        font-weight: bold;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def get_components() -> ReconciliationFlow:
    """Create the flow and read the stored records once (cached)."""
    configure_logging(debug=get_settings().app.debug_mode)
    flow, _ = create_app_components(use_storage=True)
    flow.load()
    return flow


def main():
    """Main application entry point."""
    try:
        flow = get_components()
    except StorageCorruptionError as e:
        st.error(
            "❌ The saved records could not be read, so nothing was loaded "
            "and nothing will be overwritten."
        )
        st.code(str(e))
        st.info(
            f"Back up and repair the file at "
            f"`{get_settings().storage.slot_path}`, then reload this page."
        )
        st.stop()
    except StorageError as e:
        st.error("❌ Storage could not be set up, so nothing can be saved.")
        st.code(str(e))
        st.info("Check the CASHBOOK_STORAGE_* settings, then reload this page.")
        st.stop()

    st.sidebar.title("🧾 Cashbook")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["➕ New Count", "📚 History", "⚙️ Settings"],
        index=0,
    )

    if page == "➕ New Count":
        render_new_count_page(flow)
    elif page == "📚 History":
        render_history_page(flow)
    elif page == "⚙️ Settings":
        render_settings_page()


def amount_inputs(prefix: str, defaults: dict) -> dict:
    """Five number inputs laid out in two columns."""
    values = {}
    col1, col2 = st.columns(2)
    for i, name in enumerate(BASE_FIELD_NAMES):
        column = col1 if i % 2 == 0 else col2
        with column:
            values[name] = st.number_input(
                FIELD_LABELS[name],
                value=float(defaults.get(name, 0)),
                step=0.01,
                format="%.2f",
                key=f"{prefix}_{name}",
            )
    return values


def status_line(discrepancy, balanced: bool) -> str:
    if balanced:
        return '<p class="balanced">The figures balance!</p>'
    return f'<p class="unbalanced">Discrepancy: {discrepancy:,.2f}</p>'


def render_new_count_page(flow: ReconciliationFlow):
    """Render the data-entry page with a live preview."""
    st.title("➕ New Count")

    count_date = st.date_input("Date", value=datetime.now().date())
    values = amount_inputs("new", {})

    preview = flow.preview(**values)
    st.metric("Profit for the day", f"{preview.profit:,.2f}")
    st.markdown(status_line(preview.discrepancy, preview.is_balanced), unsafe_allow_html=True)

    if st.button("💾 Save Count", type="primary"):
        try:
            _, record, balanced, message = flow.submit(
                values,
                date=datetime.combine(count_date, time.min, tzinfo=timezone.utc),
            )
        except InvalidNumericInputError as e:
            st.error(f"❌ {e}")
            return
        except StorageError as e:
            st.error(f"❌ The count was not saved: {e}")
            return

        if balanced:
            st.success(message)
        else:
            st.warning(message)


def render_record_details(record: ReconciliationRecord):
    col1, col2 = st.columns(2)
    for i, name in enumerate(BASE_FIELD_NAMES):
        column = col1 if i % 2 == 0 else col2
        column.markdown(f"**{FIELD_LABELS[name]}:** {getattr(record, name):,.2f}")
    col2.markdown(
        status_line(record.discrepancy, record.is_balanced),
        unsafe_allow_html=True,
    )


def render_history_page(flow: ReconciliationFlow):
    """Render the saved records, newest first."""
    st.title("📚 History")

    if "editing" not in st.session_state:
        st.session_state.editing = None
    if "pending_delete" not in st.session_state:
        st.session_state.pending_delete = None

    records = flow.list_for_display()
    if not records:
        st.info("No counts saved yet. Use 'New Count' to add the first one.")
        return

    for display_index, record in enumerate(records):
        marker = "✅" if record.is_balanced else "⚠️"
        title = f"{marker} {record.date:%d %B %Y} · Profit {record.profit:,.2f}"

        with st.expander(title):
            render_record_details(record)

            col1, col2 = st.columns(2)
            if col1.button("✏️ Edit", key=f"edit_{record.id}"):
                st.session_state.editing = display_index
                st.session_state.pending_delete = None
            if col2.button("🗑️ Delete", key=f"delete_{record.id}"):
                st.session_state.pending_delete = display_index
                st.session_state.editing = None

            if st.session_state.editing == display_index:
                render_edit_form(flow, display_index)
            if st.session_state.pending_delete == display_index:
                render_delete_confirmation(flow, display_index)


def render_edit_form(flow: ReconciliationFlow, display_index: int):
    current = flow.load_for_edit(display_index)

    with st.form(key=f"edit_form_{display_index}"):
        values = amount_inputs(f"edit_{display_index}", current.model_dump())
        col1, col2 = st.columns(2)
        save = col1.form_submit_button("Save Changes", type="primary")
        cancel = col2.form_submit_button("Cancel")

    if cancel:
        st.session_state.editing = None
        st.rerun()

    if save:
        try:
            _, _, message = flow.submit_edit(display_index, values)
        except (InvalidNumericInputError, StorageError) as e:
            st.error(f"❌ The record was not updated: {e}")
            return
        st.session_state.editing = None
        st.toast(message)
        st.rerun()


def render_delete_confirmation(flow: ReconciliationFlow, display_index: int):
    st.warning("Are you sure? This record will be permanently deleted.")
    col1, col2 = st.columns(2)

    if col1.button("Delete", key=f"confirm_delete_{display_index}", type="primary"):
        try:
            flow.delete(display_index, confirmed=True)
        except (DeletionNotConfirmedError, StorageError) as e:
            st.error(f"❌ The record was not deleted: {e}")
            return
        st.session_state.pending_delete = None
        st.toast("Record deleted")
        st.rerun()

    if col2.button("Cancel", key=f"cancel_delete_{display_index}"):
        st.session_state.pending_delete = None
        st.rerun()


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    status = validate_all_settings()
    for name, key in [("Storage", "storage"), ("Application", "app")]:
        if status.get(key, False):
            st.success(f"✅ {name} settings OK")
        else:
            st.error(f"❌ {name} - {status.get(f'{key}_error', 'Not configured')}")

    if status.get("storage"):
        storage = get_settings().storage
        st.markdown(f"**Backend:** {storage.backend}")
        st.markdown(f"**Records file:** `{storage.slot_path}`")
        st.markdown(f"**Audit log:** `{storage.audit_log_path}`")

    st.markdown("---")
    st.markdown(
        "Configuration is read from `CASHBOOK_*` environment variables "
        "or a `.env` file."
    )


if __name__ == "__main__":
    main()
