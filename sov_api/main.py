from __future__ import annotations

import logging
import math
from dataclasses import asdict
from typing import List

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, File, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from sov_api.schemas import (
    CellEditRequest,
    ChartConfigModel,
    ChartFiltersModel,
    ColumnConfigModel,
    FilterOptionsResponse,
    IngestResultModel,
    RenameColumnRequest,
    RenameFileRequest,
    TableRequest,
    UploadResponse,
    ViewRequest,
)
from sov_engine.charts import chart_for_view, to_vega_spec
from sov_engine.config import normalize_chart_config, normalize_column_config
from sov_engine.errors import EngineError, RecordIndexError
from sov_engine.export import records_to_csv, records_to_tsv, view_payload, view_to_tsv
from sov_engine.filters import normalize_filters
from sov_engine.session import VIEWS, EngineSession, SourceFile
from sov_engine.table import sort_records


app = FastAPI(title="SOV Transformer API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_session = EngineSession()


def get_session() -> EngineSession:
    return _session


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _engine_error(exc: EngineError) -> JSONResponse:
    return _error(exc, 404 if isinstance(exc, RecordIndexError) else 400)


def _record_rows(session: EngineSession, pairs) -> List[dict]:
    return [{"index": i, **r.to_dict(session.column_config)} for i, r in pairs]


@app.post("/files", response_model=UploadResponse)
async def upload_files(files: List[UploadFile] = File(...), session: EngineSession = Depends(get_session)):
    try:
        sources = [SourceFile(name=f.filename or "upload", content=await f.read()) for f in files]
        results = await session.ingest_batch_async(sources)
        return _json(
            {
                "results": [IngestResultModel(**asdict(r)).model_dump() for r in results],
                "total_records": len(session.records),
            }
        )
    except EngineError as exc:
        return _engine_error(exc)
    except Exception as exc:
        logger.exception("upload_files failed")
        return _error(exc, 500)


@app.get("/files")
def list_files(session: EngineSession = Depends(get_session)):
    return _json({"files": [asdict(u) for u in session.uploaded_files]})


@app.delete("/files/{file_name}")
def remove_file(file_name: str, session: EngineSession = Depends(get_session)):
    try:
        removed = session.remove_file(file_name)
        return _json({"removed": removed, "total_records": len(session.records)})
    except Exception as exc:
        logger.exception("remove_file failed")
        return _error(exc, 500)


@app.post("/files/rename")
def rename_file(body: RenameFileRequest, session: EngineSession = Depends(get_session)):
    try:
        updated = session.rename_file(body.old_name, body.new_name)
        return _json({"updated": updated})
    except EngineError as exc:
        return _engine_error(exc)
    except Exception as exc:
        logger.exception("rename_file failed")
        return _error(exc, 500)


@app.delete("/records")
def clear_records(session: EngineSession = Depends(get_session)):
    session.clear()
    return _json({"total_records": 0})


@app.patch("/records/{index}")
def edit_cell(index: int, body: CellEditRequest, session: EngineSession = Depends(get_session)):
    try:
        record = session.edit_cell(index, body.column, body.value)
        return _json({"index": index, "record": record.to_dict(session.column_config)})
    except EngineError as exc:
        return _engine_error(exc)
    except Exception as exc:
        logger.exception("edit_cell failed")
        return _error(exc, 500)


@app.put("/config/columns")
def set_column_config(body: ColumnConfigModel, session: EngineSession = Depends(get_session)):
    try:
        session.set_column_config(normalize_column_config(body.model_dump()))
        return _json(asdict(session.column_config))
    except EngineError as exc:
        return _engine_error(exc)


@app.put("/config/chart")
def set_chart_config(body: ChartConfigModel, session: EngineSession = Depends(get_session)):
    session.set_chart_config(normalize_chart_config(body.model_dump()))
    return _json(asdict(session.chart_config))


@app.put("/config/column-names")
def rename_column(body: RenameColumnRequest, session: EngineSession = Depends(get_session)):
    try:
        session.rename_column(body.key, body.display_name)
        return _json({"display_names": session.display_names})
    except EngineError as exc:
        return _engine_error(exc)


@app.get("/meta/filters", response_model=FilterOptionsResponse)
def meta_filters(session: EngineSession = Depends(get_session)):
    try:
        opts = asdict(session.filter_options())
        return _json({**opts, "active": session.filters.to_dict(), "views": session.available_views()})
    except Exception as exc:
        logger.exception("meta_filters failed")
        return _error(exc, 500)


@app.put("/filters")
def set_filters(body: ChartFiltersModel, session: EngineSession = Depends(get_session)):
    session.set_filters(normalize_filters(body.model_dump()))
    return _json({"active": session.filters.to_dict()})


@app.post("/filters/select-all")
def select_all_filters(session: EngineSession = Depends(get_session)):
    session.select_all_filters()
    return _json({"active": session.filters.to_dict()})


@app.post("/views/{view}")
def view(view: str, body: ViewRequest, session: EngineSession = Depends(get_session)):
    if view not in VIEWS:
        return JSONResponse(status_code=404, content={"error": f"Unknown view: {view}", "type": "NotFound"})
    try:
        filters = normalize_filters(body.filters.model_dump()) if body.filters is not None else None
        config = normalize_chart_config(body.config.model_dump()) if body.config is not None else session.chart_config
        result = session.aggregate(view, filters, config)
        payload = view_payload(view, result, config.display_mode)
        if body.include_chart:
            chart = chart_for_view(view, result, body.color_scheme)
            payload["chart"] = to_vega_spec(chart) if chart is not None else None
        return _json(payload)
    except EngineError as exc:
        return _engine_error(exc)
    except Exception as exc:
        logger.exception("view %s failed", view)
        return _error(exc, 500)


@app.post("/table")
def table(body: TableRequest, session: EngineSession = Depends(get_session)):
    try:
        if body.page_size is not None:
            session.table.set_page_size(body.page_size)
        if body.sort_key:
            session.sort_table(body.sort_key)
        else:
            session.table.set_page(body.page)
        page = session.indexed_table_page()
        session.table.set_page(page.page)
        return _json(
            {
                "columns": [session.display_name(k) for k in session.record_keys()],
                "rows": _record_rows(session, page.items),
                "page": page.page,
                "page_size": page.page_size,
                "page_count": page.page_count,
                "total_items": page.total_items,
                "sort": asdict(session.table.sort),
            }
        )
    except Exception as exc:
        logger.exception("table failed")
        return _error(exc, 500)


@app.get("/export/records")
def export_records(session: EngineSession = Depends(get_session)):
    csv_bytes = records_to_csv(session.records, session.column_config, session.display_names)
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": "attachment; filename=records.csv"})


@app.get("/export/records.tsv")
def export_records_tsv(session: EngineSession = Depends(get_session)):
    text = records_to_tsv(sort_records(session.records, session.table.sort), session.column_config, session.display_names)
    return PlainTextResponse(text)


@app.post("/export/{view}")
def export_view(view: str, body: ViewRequest, session: EngineSession = Depends(get_session)):
    if view not in VIEWS:
        return JSONResponse(status_code=404, content={"error": f"Unknown view: {view}", "type": "NotFound"})
    filters = normalize_filters(body.filters.model_dump()) if body.filters is not None else None
    config = normalize_chart_config(body.config.model_dump()) if body.config is not None else session.chart_config
    result = session.aggregate(view, filters, config)
    return PlainTextResponse(view_to_tsv(view, result, config.display_mode))
