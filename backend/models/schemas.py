from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire (matches the browser client)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ── AI settings ────────────────────────────────────────
class AiProvider(str, Enum):
    GEMINI = "gemini"
    OLLAMA = "ollama"
    OPENAI = "openai"

class GeminiSettings(CamelModel):
    api_key: str = ""

class OllamaSettings(CamelModel):
    server_url: str = "http://localhost:11434"
    model: str = ""

class OpenAiSettings(CamelModel):
    api_key: str = ""

class AiSettings(CamelModel):
    provider: AiProvider = AiProvider.GEMINI
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    ollama: OllamaSettings = Field(default_factory=OllamaSettings)
    openai: OpenAiSettings = Field(default_factory=OpenAiSettings)
    verbose_logging: bool = False

class SettingsResponse(CamelModel):
    settings: AiSettings
    is_configured: bool

class OllamaUrl(CamelModel):
    url: str


# ── Bill data ──────────────────────────────────────────
class ConfidenceScores(CamelModel):
    """Per-field confidence, 0.0–1.0.  A missing key means "no signal", not zero."""
    overall: float
    account_name: Optional[float] = None
    account_number: float
    service_address: Optional[float] = None
    statement_date: Optional[float] = None
    total_current_charges: float
    due_date: float

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "allow"   # providers may score fields beyond the named ones

class UsageChartDataPointValue(CamelModel):
    year: str
    value: float
    confidence: float = 1.0

class UsageChartDataPoint(CamelModel):
    month: str
    usage: List[UsageChartDataPointValue] = []

class UsageChart(CamelModel):
    title: str
    unit: str
    data: List[UsageChartDataPoint] = []

class LineItem(CamelModel):
    description: str
    amount: float   # signed; credits keep whatever sign the bill printed

class BillData(CamelModel):
    account_name: Optional[str] = None
    account_number: str
    service_address: Optional[str] = None
    statement_date: Optional[str] = None
    service_period_start: Optional[str] = None
    service_period_end: Optional[str] = None
    total_current_charges: float
    due_date: str
    confidence_scores: ConfidenceScores
    usage_charts: List[UsageChart] = []
    line_items: List[LineItem] = []


# ── Review ─────────────────────────────────────────────
class ReviewCell(CamelModel):
    chart_index: int
    data_index: int
    year_index: int
    confidence: float

class ReviewSummary(CamelModel):
    threshold: float
    fields: List[str] = []
    cells: List[ReviewCell] = []
    needs_review: bool = False


# ── Analysis ───────────────────────────────────────────
class AnalyzeRequest(CamelModel):
    image_data: str                      # base64 data URI from camera / upload
    settings: Optional[AiSettings] = None

class AnalysisResult(CamelModel):
    provider: AiProvider
    data: BillData
    raw: Any                             # untouched provider JSON, for diagnostics
    review: ReviewSummary


# ── Edits ──────────────────────────────────────────────
class FieldEdit(CamelModel):
    kind: Literal["field"] = "field"
    field: str
    value: Any = None

class ChartCellEdit(CamelModel):
    kind: Literal["chartCell"] = "chartCell"
    chart_index: int
    data_index: int
    year_index: int
    value: Any

class MonthEdit(CamelModel):
    kind: Literal["month"] = "month"
    chart_index: int
    data_index: int
    month: str

BillEdit = Annotated[Union[FieldEdit, ChartCellEdit, MonthEdit], Field(discriminator="kind")]

class EditRequest(CamelModel):
    data: BillData
    edit: BillEdit


# ── History ────────────────────────────────────────────
class AnalysisRecord(CamelModel):
    id: str
    timestamp: str          # human readable, e.g. "3/14/2026, 9:05:12 AM"
    raw_timestamp: str      # ISO-8601, sortable
    data: BillData
    image_path: Optional[str] = None
    thumbnail_path: Optional[str] = None

class HistoryCreate(CamelModel):
    data: BillData
    image_src: Optional[str] = None
