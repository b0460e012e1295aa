from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ColumnConfigModel(BaseModel):
    include_brand: bool = True
    include_media_type: bool = True
    include_ad_type: bool = True


class ChartConfigModel(BaseModel):
    sov_max_brands: int = 10
    ad_type_max_brands: int = 10
    media_type_max_brands: int = 10
    min_percentage: float = 0.0
    period_granularity: str = "month"
    display_mode: str = "percentage"


class ChartFiltersModel(BaseModel):
    file_names: List[str] = Field(default_factory=list)
    brands: List[str] = Field(default_factory=list)
    years: List[str] = Field(default_factory=list)
    ad_types: List[str] = Field(default_factory=list)
    media_types: List[str] = Field(default_factory=list)
    months: List[str] = Field(default_factory=list)


class ViewRequest(BaseModel):
    filters: Optional[ChartFiltersModel] = None
    config: Optional[ChartConfigModel] = None
    color_scheme: str = "new-heritage-red"
    include_chart: bool = True


class TableRequest(BaseModel):
    sort_key: Optional[str] = None
    page: int = 1
    page_size: Optional[int] = None


class CellEditRequest(BaseModel):
    column: str
    value: str = ""


class RenameFileRequest(BaseModel):
    old_name: str
    new_name: str


class RenameColumnRequest(BaseModel):
    key: str
    display_name: str = ""


class IngestResultModel(BaseModel):
    file_name: str
    records_added: int = 0
    error: Optional[str] = None


class UploadResponse(BaseModel):
    results: List[IngestResultModel]
    total_records: int


class FilterOptionsResponse(BaseModel):
    file_names: List[str]
    brands: List[str]
    years: List[str]
    ad_types: List[str]
    media_types: List[str]
    months: List[str]
    active: Dict[str, List[str]] = Field(default_factory=dict)
    views: List[str] = Field(default_factory=list)
