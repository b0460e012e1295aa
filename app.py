import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import List, Optional

from sov_engine.charts import chart_for_view
from sov_engine.config import COLOR_SCHEMES, DEFAULT_COLOR_SCHEME, normalize_chart_config, normalize_column_config
from sov_engine.errors import ConfigurationError
from sov_engine.export import records_to_csv, records_to_frame, records_to_tsv, view_payload, view_to_tsv
from sov_engine.filters import FILTER_DIMENSIONS, normalize_filters
from sov_engine.records import cell_text
from sov_engine.session import EngineSession, IngestProgress, SourceFile
from sov_engine.table import sort_records

alt.data_transformers.disable_max_rows()

VIEW_LABELS = {
    "sov": "Share of Voice",
    "ad_type": "Ad Type by Brand",
    "media_type": "Media Type by Brand",
    "trend": "Trend",
    "crosstab": "SOV Table",
}
FILTER_LABELS = {
    "file_names": "File Name",
    "brands": "Brand",
    "years": "Year",
    "ad_types": "Ad Type",
    "media_types": "Media Type",
    "months": "Month",
}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(active: dict) -> str:
    chips = []
    for dim, label in FILTER_LABELS.items():
        values = active.get(dim) or []
        chips.append(f"{label}: All" if not values else f"{label}: {len(values)} selected")
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def reset_filter_widgets():
    # stored multiselect state would otherwise win over the new defaults
    for dim in FILTER_DIMENSIONS:
        st.session_state.pop(f"filter_{dim}", None)


def get_engine() -> EngineSession:
    if "engine" not in st.session_state:
        st.session_state["engine"] = EngineSession()
    return st.session_state["engine"]


# ---------- UI setup ----------
st.set_page_config(page_title="SOV Transformer", layout="wide")
inject_base_styles()
st.title("Excel Data Transformer")
st.caption("Reshape wide brand x period impression exports and explore share of voice.")

engine = get_engine()

with st.sidebar:
    st.markdown("### Columns in source files")
    include_brand = st.checkbox("Brand", value=engine.column_config.include_brand)
    include_media_type = st.checkbox("Media Type", value=engine.column_config.include_media_type)
    include_ad_type = st.checkbox("Ad Type", value=engine.column_config.include_ad_type)
    try:
        engine.set_column_config(
            normalize_column_config(
                {"include_brand": include_brand, "include_media_type": include_media_type, "include_ad_type": include_ad_type}
            )
        )
    except ConfigurationError as exc:
        st.warning(str(exc))

    st.markdown("---")
    st.markdown("### Chart settings")
    with st.expander("Advanced settings", expanded=False):
        sov_max = st.slider("SOV: max brands", min_value=2, max_value=30, value=engine.chart_config.sov_max_brands)
        ad_max = st.slider("Ad Type: max brands", min_value=2, max_value=30, value=engine.chart_config.ad_type_max_brands)
        media_max = st.slider("Media Type: max brands", min_value=2, max_value=30, value=engine.chart_config.media_type_max_brands)
        min_pct = st.slider("Minimum SOV % to show", 0.0, 10.0, engine.chart_config.min_percentage, 0.5)
        granularity = st.radio("Period granularity", ["month", "year"], horizontal=True)
        display_mode = st.radio("SOV table values", ["percentage", "value"], horizontal=True)
        color_scheme = st.selectbox("Color scheme", list(COLOR_SCHEMES), index=list(COLOR_SCHEMES).index(DEFAULT_COLOR_SCHEME))
    engine.set_chart_config(
        normalize_chart_config(
            {
                "sov_max_brands": sov_max,
                "ad_type_max_brands": ad_max,
                "media_type_max_brands": media_max,
                "min_percentage": min_pct,
                "period_granularity": granularity,
                "display_mode": display_mode,
            }
        )
    )

    if engine.records:
        st.markdown("---")
        st.markdown("### Chart filters")
        options = engine.filter_options()
        active = engine.filters.to_dict()
        selected = {}
        for dim in FILTER_DIMENSIONS:
            choices = getattr(options, dim)
            if not choices:
                continue
            default = [v for v in active.get(dim, []) if v in choices]
            selected[dim] = st.multiselect(FILTER_LABELS[dim], options=choices, default=default, key=f"filter_{dim}")
        btn_cols = st.columns(2)
        if btn_cols[0].button("Select all"):
            engine.select_all_filters()
            reset_filter_widgets()
            st.rerun()
        if btn_cols[1].button("Clear"):
            engine.clear_filters()
            reset_filter_widgets()
            st.rerun()
        new_filters = normalize_filters(selected)
        if new_filters != engine.filters:
            engine.set_filters(new_filters)


# ----- Upload -----
with card("Upload files"):
    uploads = st.file_uploader("Excel exports", type=["xlsx", "xls", "csv"], accept_multiple_files=True)
    if uploads and st.button("Process files"):
        progress = st.progress(0.0)

        def on_progress(event: IngestProgress):
            done = (event.file_index + event.rows_done / max(1, event.rows_total)) / max(1, event.file_count)
            progress.progress(min(1.0, done), text=f"{event.file_name}: {event.rows_done}/{event.rows_total} rows")

        sources = [SourceFile(name=u.name, content=u.getvalue()) for u in uploads]
        for result in engine.ingest_batch(sources, on_progress=on_progress):
            if result.ok:
                st.success(f"{result.file_name}: {result.records_added:,} rows added")
            else:
                st.error(f"{result.file_name}: {result.error}")

    if engine.uploaded_files:
        files_df = pd.DataFrame(
            [{"File": u.name, "Rows added": u.rows_added, "Uploaded": u.uploaded_at.strftime("%Y-%m-%d %H:%M")} for u in engine.uploaded_files]
        )
        st.dataframe(files_df, hide_index=True, use_container_width=True)
        rm_cols = st.columns([3, 1, 1])
        to_remove = rm_cols[0].selectbox("File", engine.file_names(), key="file_to_remove")
        if rm_cols[1].button("Remove file") and to_remove:
            engine.remove_file(to_remove)
            st.rerun()
        if rm_cols[2].button("Clear all"):
            engine.clear()
            st.rerun()

if not engine.records:
    st.info("Upload one or more exports to get started.")
    st.stop()

st.markdown(f"<div class='chip-row'>{format_filter_summary(engine.filters.to_dict())}</div>", unsafe_allow_html=True)


def render_view(view: str):
    result = engine.aggregate(view)
    payload = view_payload(view, result, engine.chart_config.display_mode)
    if not payload.get("rows"):
        st.info("No data for the current filters.")
        return
    chart = chart_for_view(view, result, color_scheme)
    if chart is not None:
        st.altair_chart(chart, use_container_width=True)
    st.dataframe(pd.DataFrame(payload["rows"]), hide_index=True, use_container_width=True)
    st.download_button(
        "Copy chart data (TSV)",
        data=view_to_tsv(view, result, engine.chart_config.display_mode).encode("utf-8"),
        file_name=f"{view}.tsv",
        mime="text/tab-separated-values",
        key=f"dl_{view}",
    )


views: List[str] = engine.available_views()
tabs = st.tabs([VIEW_LABELS[v] for v in views])
for tab, view in zip(tabs, views):
    with tab:
        render_view(view)


# ----- Records table -----
with card("Transformed data"):
    keys = engine.record_keys()
    ctl = st.columns([2, 1, 1, 1])
    sort_key: Optional[str] = ctl[0].selectbox("Sort by", ["(none)"] + keys, index=0)
    if sort_key != "(none)" and sort_key != engine.table.sort.key:
        engine.sort_table(sort_key)
    if ctl[1].button("Flip order") and engine.table.sort.key:
        engine.sort_table(engine.table.sort.key)
    page_size = ctl[2].selectbox("Rows per page", [25, 50, 100, 250], index=1)
    if page_size != engine.table.page_size:
        engine.table.set_page_size(page_size)
    page_count = engine.table_page().page_count
    page_no = ctl[3].number_input("Page", min_value=1, max_value=page_count, value=min(engine.table.page, page_count))
    engine.table.set_page(int(page_no))

    page = engine.indexed_table_page()
    st.caption(f"{page.total_items:,} rows · page {page.page} of {page.page_count}")
    shown = records_to_frame([r for _, r in page.items], engine.column_config, engine.display_names)
    shown.index = [i for i, _ in page.items]
    edited = st.data_editor(
        shown,
        hide_index=True,
        use_container_width=True,
        num_rows="fixed",
        key=f"records_editor_{st.session_state.get('editor_rev', 0)}",
    )
    key_for_column = {engine.display_name(k): k for k in keys}
    changes = [
        (index, key_for_column[col], cell_text(edited.at[index, col]))
        for index in shown.index
        for col in shown.columns
        if cell_text(edited.at[index, col]) != cell_text(shown.at[index, col])
    ]
    if changes:
        try:
            for index, key, value in changes:
                engine.edit_cell(index, key, value)
        except ConfigurationError as exc:
            st.warning(str(exc))
        else:
            # fresh editor so its pending edits are not replayed on the new data
            st.session_state["editor_rev"] = st.session_state.get("editor_rev", 0) + 1
            st.rerun()

    ordered = sort_records(engine.records, engine.table.sort)
    dl_cols = st.columns(2)
    dl_cols[0].download_button(
        "Download CSV",
        data=records_to_csv(ordered, engine.column_config, engine.display_names),
        file_name="transformed.csv",
        mime="text/csv",
    )
    dl_cols[1].download_button(
        "Copy all data (TSV)",
        data=records_to_tsv(ordered, engine.column_config, engine.display_names).encode("utf-8"),
        file_name="transformed.tsv",
        mime="text/tab-separated-values",
    )

with card("Bulk edit"):
    edit_cols = st.columns(3)
    old_name = edit_cols[0].selectbox("File name to replace", engine.file_names(), key="bulk_old")
    new_name = edit_cols[1].text_input("New file name", "")
    if edit_cols[2].button("Apply") and old_name:
        try:
            count = engine.rename_file(old_name, new_name)
            st.success(f'Updated all rows with file name "{old_name}" to "{new_name.strip()}" ({count:,} rows)')
        except ConfigurationError as exc:
            st.warning(str(exc))

    col_cols = st.columns(3)
    header_key = col_cols[0].selectbox("Column header", engine.record_keys(), key="header_key")
    header_name = col_cols[1].text_input("Display name", engine.display_name(header_key))
    if col_cols[2].button("Rename column"):
        engine.rename_column(header_key, header_name)
        st.rerun()
