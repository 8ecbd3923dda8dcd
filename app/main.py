"""
Streamlit Frontend for FinFlow

The screens people use every day: a monthly dashboard, the transaction
list, and settings for budgets, categories and backups.

DESIGN PRINCIPLES:
1. The page only renders; every change goes through the LedgerStore
2. Refusals are shown in plain language, exactly as the store words them
3. Destructive actions need an explicit confirmation
4. Everything shown is derived from the ledger on each run

The store lives in `st.session_state`, so each browser session owns
exactly one.
"""

import calendar
from datetime import date
from decimal import Decimal
from typing import Optional

import streamlit as st
from pydantic import ValidationError

from finflow.config import validate_all_settings
from finflow.models import (
    CURRENCY_LABELS,
    ICON_OPTIONS,
    BudgetStatus,
    Category,
    CategoryDraft,
    Currency,
    SortKey,
    SortOrder,
    Transaction,
    TransactionDraft,
    TransactionQuery,
    TransactionType,
    TypeFilter,
)
from finflow.orchestrator import create_app_components
from finflow.queries import (
    build_budget_overview,
    build_dashboard,
    category_display,
    escape_for_markdown,
    format_currency,
    sort_and_filter,
    unbudgeted_categories,
)
from finflow.rules import MutationRefusedError
from finflow.serialization import (
    CSV_FILENAME,
    NothingToExportError,
    backup_filename,
    export_backup,
    export_transactions_csv,
)
from finflow.store import LedgerStore


# Page configuration
st.set_page_config(
    page_title="FinFlow",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .warning-box {
        padding: 16px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .error-box {
        padding: 16px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


STATUS_ICONS = {
    BudgetStatus.ON_TRACK: "🟢",
    BudgetStatus.WARNING: "🟡",
    BudgetStatus.OVER_BUDGET: "🔴",
}


def get_store() -> LedgerStore:
    """Get or create this session's store."""
    if "store" not in st.session_state:
        store, _ = create_app_components(use_storage=True)
        st.session_state.store = store
    return st.session_state.store


def money(store: LedgerStore, amount: Decimal) -> str:
    return escape_for_markdown(format_currency(amount, store.currency))


def main():
    """Main application entry point."""
    store = get_store()

    st.sidebar.title("💰 FinFlow")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "📋 Transactions", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    render_period_picker(store)

    if page == "📊 Dashboard":
        render_dashboard_page(store)
    elif page == "📋 Transactions":
        render_transactions_page(store)
    elif page == "⚙️ Settings":
        render_settings_page(store)


def render_period_picker(store: LedgerStore):
    """Month selector shared by the dashboard and the transaction list."""
    period = store.period
    today = date.today()
    years = sorted(
        {today.year, period.year}
        | {t.transaction_date.year for t in store.transactions}
    )

    year = st.sidebar.selectbox("Year", years, index=years.index(period.year))
    month = st.sidebar.selectbox(
        "Month",
        list(range(1, 13)),
        index=period.month - 1,
        format_func=lambda m: calendar.month_name[m],
    )
    if (year, month) != (period.year, period.month):
        store.select_period(year, month)
        st.rerun()


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard_page(store: LedgerStore):
    view = build_dashboard(store.transactions, store.categories, store.budgets, store.period)
    categories = store.categories

    st.title(f"📊 {view.period.label}")

    col1, col2, col3 = st.columns(3)
    col1.metric("Total Income", format_currency(view.totals.income, store.currency))
    col2.metric("Total Expenses", format_currency(view.totals.expense, store.currency))
    col3.metric("Balance", format_currency(view.totals.balance, store.currency))

    st.markdown("### Monthly Budget Goals")
    if not view.budget_cards:
        st.info("No budget goals yet. Set one below or in Settings.")

    columns = st.columns(4)
    for index, card in enumerate(view.budget_cards):
        with columns[index % 4]:
            st.markdown(
                f"**{category_display(card.category, categories)}** "
                f"{STATUS_ICONS[card.status]}"
            )
            st.progress(min(float(card.progress) / 100, 1.0))
            st.caption(
                f"{money(store, card.spent)} of {money(store, card.budget)} "
                f"({card.progress:.0f}%)"
            )
            if card.is_over:
                st.caption(f"Over by {money(store, -card.remaining)}")
            if st.button("Remove goal", key=f"remove_goal_{card.category}"):
                store.remove_budget(card.category)
                st.rerun()

    if view.has_unbudgeted_categories:
        render_add_goal_form(store)

    if view.budget_summary:
        summary = view.budget_summary
        st.markdown("### Budget Summary")
        st.progress(min(float(summary.progress) / 100, 1.0))
        st.markdown(
            f"{STATUS_ICONS[summary.status]} Spent {money(store, summary.total_spent)} "
            f"of {money(store, summary.total_budget)}, "
            f"{money(store, summary.remaining)} remaining"
        )

    st.markdown("### Expense Breakdown")
    if view.expense_breakdown:
        st.bar_chart(
            [{"category": s.name, "amount": float(s.value)} for s in view.expense_breakdown],
            x="category",
            y="amount",
        )
    else:
        st.info("No expenses recorded for this month.")

    st.markdown("### Income vs Expense")
    if len(view.trend) < 2:
        st.info("Add more transactions to see a monthly trend.")
    else:
        st.bar_chart(
            [
                {"month": b.month, "income": float(b.income), "expense": float(b.expense)}
                for b in view.trend
            ],
            x="month",
            y=["income", "expense"],
        )


def render_add_goal_form(store: LedgerStore):
    options = unbudgeted_categories(store.categories, store.budgets)
    with st.expander("➕ Add budget goal"):
        with st.form("add_goal", clear_on_submit=True):
            category = st.selectbox(
                "Category",
                options,
                format_func=lambda c: c.display,
            )
            amount = st.number_input("Monthly budget", min_value=0.0, step=100.0)
            if st.form_submit_button("Save goal", type="primary"):
                try:
                    store.set_budget(category.value, Decimal(f"{amount:.2f}"))
                    st.rerun()
                except MutationRefusedError as e:
                    st.error(str(e))


# =============================================================================
# TRANSACTIONS
# =============================================================================

def render_transaction_form(store: LedgerStore, existing: Optional[Transaction] = None):
    """Add form, or edit form when `existing` is given."""
    prefix = f"edit_{existing.id}" if existing else "add"

    transaction_type = st.radio(
        "Type",
        list(TransactionType),
        index=list(TransactionType).index(existing.type) if existing else 1,
        format_func=lambda t: t.value.title(),
        horizontal=True,
        key=f"{prefix}_type",
    )
    options = [c for c in store.categories if c.type == transaction_type]
    keys = [c.value for c in options]

    with st.form(f"{prefix}_form", clear_on_submit=existing is None):
        category = st.selectbox(
            "Category",
            options,
            index=keys.index(existing.category) if existing and existing.category in keys else 0,
            format_func=lambda c: c.display,
        )
        amount = st.number_input(
            "Amount",
            min_value=0.0,
            value=float(existing.amount) if existing else 0.0,
            step=1.0,
            format="%.2f",
        )
        transaction_date = st.date_input(
            "Date",
            value=existing.transaction_date if existing else date.today(),
        )
        description = st.text_input(
            "Description",
            value=existing.description if existing else "",
        )

        if not st.form_submit_button("Save" if existing else "Add Transaction", type="primary"):
            return

        try:
            draft = TransactionDraft(
                type=transaction_type,
                category=category.value if category else "",
                amount=Decimal(f"{amount:.2f}"),
                transaction_date=transaction_date,
                description=description,
            )
            if existing:
                store.edit_transaction(Transaction(id=existing.id, **draft.model_dump()))
                st.session_state.editing = None
            else:
                store.add_transaction(draft)
            st.rerun()
        except ValidationError:
            st.error("Please fill in every field with a positive amount.")
        except MutationRefusedError as e:
            st.error(str(e))


def render_transaction_filters(store: LedgerStore) -> TransactionQuery:
    if st.button("Reset filters"):
        for key in ("search", "category_filter", "type_filter", "sort_key", "sort_order"):
            st.session_state.pop(key, None)
        st.rerun()

    col1, col2, col3, col4, col5 = st.columns([3, 2, 2, 2, 2])
    search = col1.text_input("Search description", key="search")
    category_filter = col2.selectbox(
        "Category",
        [None] + [c.value for c in store.categories],
        format_func=lambda v: "All" if v is None else category_display(v, store.categories),
        key="category_filter",
    )
    type_filter = col3.selectbox(
        "Type", list(TypeFilter), format_func=lambda t: t.value.title(), key="type_filter"
    )
    sort_key = col4.selectbox(
        "Sort by",
        list(SortKey),
        format_func=lambda k: "Newest" if k == SortKey.NONE else k.value.title(),
        key="sort_key",
    )
    sort_order = col5.selectbox(
        "Order",
        list(SortOrder),
        index=1,
        format_func=lambda o: "Ascending" if o == SortOrder.ASC else "Descending",
        key="sort_order",
        disabled=sort_key == SortKey.NONE,
    )
    return TransactionQuery(
        search_text=search,
        category_filter=category_filter,
        type_filter=type_filter,
        sort_key=sort_key,
        sort_order=sort_order,
    )


def render_transactions_page(store: LedgerStore):
    st.title(f"📋 Transactions, {store.period.label}")

    with st.expander("➕ Add Transaction"):
        render_transaction_form(store)

    query = render_transaction_filters(store)
    categories = store.categories
    transactions = sort_and_filter(store.period_transactions(), query, categories)

    try:
        st.download_button(
            "⬇️ Export to CSV",
            export_transactions_csv(transactions, categories),
            file_name=CSV_FILENAME,
            mime="text/csv",
        )
    except NothingToExportError as e:
        st.caption(str(e))

    if not transactions:
        st.info("No transactions match." if query.is_active else "No transactions this month.")
        return

    for t in transactions:
        sign = "+" if t.type == TransactionType.INCOME else "-"
        col1, col2, col3, col4 = st.columns([5, 2, 1, 1])
        col1.markdown(
            f"**{escape_for_markdown(t.description)}**  \n"
            f"{category_display(t.category, categories)} · {t.transaction_date:%d %b %Y}"
        )
        col2.markdown(f"{sign}{money(store, t.amount)}")
        if col3.button("✏️", key=f"edit_{t.id}"):
            st.session_state.editing = t.id
        if col4.button("🗑️", key=f"delete_{t.id}"):
            st.session_state.pending_delete = t.id

        if st.session_state.get("editing") == t.id:
            render_transaction_form(store, existing=t)

        if st.session_state.get("pending_delete") == t.id:
            st.warning(f"Delete '{t.description}'? This cannot be undone.")
            yes, no = st.columns(2)
            if yes.button("Yes, delete", key=f"confirm_delete_{t.id}"):
                store.delete_transaction(t.id)
                st.session_state.pending_delete = None
                st.rerun()
            if no.button("Cancel", key=f"cancel_delete_{t.id}"):
                st.session_state.pending_delete = None
                st.rerun()


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_page(store: LedgerStore):
    st.title("⚙️ Settings")

    currencies = list(Currency)
    currency = st.selectbox(
        "Currency",
        currencies,
        index=currencies.index(store.currency),
        format_func=lambda c: CURRENCY_LABELS[c],
    )
    if currency != store.currency:
        store.set_currency(currency)
        st.rerun()

    st.markdown("---")
    render_budget_editor(store)
    st.markdown("---")
    render_category_manager(store)
    st.markdown("---")
    render_backup_section(store)
    st.markdown("---")
    render_danger_zone(store)
    st.markdown("---")
    render_status_section(store)


def render_budget_editor(store: LedgerStore):
    overview = build_budget_overview(store.transactions, store.categories, store.budgets)
    st.markdown(f"### Budget Goals ({overview.period.label})")
    st.caption("Set monthly spending limits for your expense categories. 0 means no goal.")

    with st.form("budget_editor"):
        amounts = {}
        for row in overview.rows:
            col1, col2 = st.columns([3, 2])
            amounts[row.category] = col1.number_input(
                category_display(row.category, store.categories),
                min_value=0.0,
                value=float(row.budget),
                step=100.0,
                key=f"budget_{row.category}",
            )
            col2.caption(
                f"Spent {money(store, row.spent)} {STATUS_ICONS[row.status]}"
            )
        if st.form_submit_button("Save Budgets", type="primary"):
            try:
                store.replace_budgets({k: Decimal(f"{v:.2f}") for k, v in amounts.items()})
                st.success("Budgets saved.")
            except MutationRefusedError as e:
                st.error(str(e))


def render_category_manager(store: LedgerStore):
    st.markdown("### Categories")

    with st.expander("➕ Add Category"):
        with st.form("add_category", clear_on_submit=True):
            label = st.text_input("Name")
            category_type = st.radio(
                "Type",
                list(TransactionType),
                format_func=lambda t: t.value.title(),
                horizontal=True,
            )
            icon = st.selectbox("Icon", ICON_OPTIONS)
            if st.form_submit_button("Add", type="primary"):
                try:
                    store.add_category(CategoryDraft(label=label, type=category_type, icon=icon))
                    st.rerun()
                except ValidationError:
                    st.error("Please enter a category name.")

    for category_type in TransactionType:
        st.markdown(f"**{category_type.value.title()}**")
        for category in [c for c in store.categories if c.type == category_type]:
            render_category_row(store, category)


def render_category_row(store: LedgerStore, category: Category):
    col1, col2, col3 = st.columns([4, 1, 1])
    badge = " · default" if category.is_default else ""
    col1.markdown(f"{category.display}{badge}")

    if col2.button("✏️", key=f"edit_cat_{category.value}"):
        st.session_state.editing_category = category.value
    if not category.is_default and col3.button("🗑️", key=f"delete_cat_{category.value}"):
        st.session_state.pending_category_delete = category.value

    if st.session_state.get("editing_category") == category.value:
        with st.form(f"edit_cat_form_{category.value}"):
            label = st.text_input("Name", value=category.label)
            icons = list(ICON_OPTIONS)
            icon = st.selectbox(
                "Icon",
                icons,
                index=icons.index(category.icon) if category.icon in icons else 0,
            )
            if st.form_submit_button("Save", type="primary"):
                try:
                    store.edit_category(Category(
                        value=category.value,
                        label=label,
                        type=category.type,
                        icon=icon,
                        is_default=category.is_default,
                    ))
                    st.session_state.editing_category = None
                    st.rerun()
                except ValidationError:
                    st.error("Please enter a category name.")
                except MutationRefusedError as e:
                    st.error(str(e))

    if st.session_state.get("pending_category_delete") != category.value:
        return

    if store.is_category_in_use(category.value):
        render_merge_form(store, category)
        return

    st.warning(f"Delete '{category.label}'? Its budget goal is removed too.")
    yes, no = st.columns(2)
    if yes.button("Yes, delete", key=f"confirm_cat_{category.value}"):
        try:
            store.delete_category(category.value)
        except MutationRefusedError as e:
            st.error(str(e))
        st.session_state.pending_category_delete = None
        st.rerun()
    if no.button("Cancel", key=f"cancel_cat_{category.value}"):
        st.session_state.pending_category_delete = None
        st.rerun()


def render_merge_form(store: LedgerStore, category: Category):
    """In-use categories are merged away instead of deleted."""
    targets = [
        c for c in store.categories
        if c.type == category.type and c.value != category.value
    ]
    st.markdown(
        f'<div class="warning-box">{category.display} still has transactions. '
        "Merge it into another category to delete it.</div>",
        unsafe_allow_html=True,
    )
    with st.form(f"merge_{category.value}"):
        target = st.selectbox("Move transactions to", targets, format_func=lambda c: c.display)
        confirmed = st.checkbox("I understand this cannot be undone")
        if st.form_submit_button("Merge and delete", type="primary"):
            if not confirmed:
                st.error("Please confirm the merge first.")
                return
            try:
                moved = store.merge_categories(category.value, target.value)
                st.session_state.pending_category_delete = None
                st.success(f"Moved {moved} transaction(s) to {target.label}.")
            except MutationRefusedError as e:
                st.error(str(e))


def render_backup_section(store: LedgerStore):
    st.markdown("### Backup & Restore")

    st.download_button(
        "⬇️ Download Backup",
        export_backup(store.snapshot()),
        file_name=backup_filename(),
        mime="application/json",
    )

    uploaded = st.file_uploader("Import Backup", type=["json"])
    if uploaded is None:
        return

    confirmed = st.checkbox("Importing will overwrite all your current data.")
    if st.button("Restore Backup", disabled=not confirmed):
        result = store.restore(uploaded.getvalue())
        if result.success:
            st.success("Backup restored successfully!")
            for warning in result.warnings:
                st.warning(warning)
        else:
            st.markdown(
                '<div class="error-box">Failed to import backup. The file may be '
                "corrupted or in the wrong format.</div>",
                unsafe_allow_html=True,
            )
            with st.expander(f"{result.error_count} problem(s) found"):
                for issue in result.issues:
                    st.markdown(f"- `{issue.field}`: {issue.message}")


def render_danger_zone(store: LedgerStore):
    st.markdown("### Reset")
    st.caption("Deletes all transactions, custom categories and budget goals.")
    confirmed = st.checkbox("I want to delete all my data")
    if st.button("Reset to Defaults", disabled=not confirmed):
        store.reset_to_defaults()
        st.success("All data reset.")
        st.rerun()


def render_status_section(store: LedgerStore):
    st.markdown("### Configuration")
    status = validate_all_settings()
    for name, key in (("Storage", "storage"), ("Application", "app")):
        if status.get(key, False):
            st.success(f"✅ {name} settings loaded")
        else:
            st.error(f"❌ {name} - {status.get(f'{key}_error', 'Not configured')}")

    with st.expander("Recent activity"):
        for event in store.audit_logger.recent_events(limit=10):
            st.markdown(f"- {event.timestamp:%H:%M:%S} {event.description}")


if __name__ == "__main__":
    main()
