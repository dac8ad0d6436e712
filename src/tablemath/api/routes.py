"""API routes for tablemath."""

from typing import Optional
from pydantic import BaseModel, Field
from fastapi import APIRouter, HTTPException

from ..engine import RecalcResult
from ..index.models import NamedVariable
from ..preview import RenderedCell
from ..storage import TableMathSettings

router = APIRouter()


def get_service():
    """Get the global service instance."""
    from .app import get_service as _get_service

    return _get_service()


class EvaluateRequest(BaseModel):
    """Evaluate one formula against an ad-hoc table."""

    formula: str
    rows: list[list[str]] = Field(default_factory=list)
    row: int = 0
    col: int = 0


class EvaluateResponse(BaseModel):
    """Result of a formula evaluation."""

    formula: str
    value: Optional[float] = None
    display: Optional[str] = None


class RecalculateRequest(BaseModel):
    """Recalculate a document; its text is read from the vault when omitted."""

    text: Optional[str] = None
    cursor_line: int = 0
    silent: bool = False


class TableUpdateModel(BaseModel):
    start_line: int
    end_line: int
    lines: list[str]
    cached: bool = False


class RecalculateResponse(BaseModel):
    """Outcome of a document recalculation."""

    document: str
    skipped: bool
    cursor_scoped: bool
    processed_tables: int
    index_saved: bool
    variables: dict[str, NamedVariable] = Field(default_factory=dict)
    tables: list[TableUpdateModel] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: RecalcResult) -> "RecalculateResponse":
        return cls(
            document=result.document,
            skipped=result.skipped,
            cursor_scoped=result.cursor_scoped,
            processed_tables=result.processed_count,
            index_saved=result.index_saved,
            variables=result.variables,
            tables=[
                TableUpdateModel(
                    start_line=t.start_line,
                    end_line=t.end_line,
                    lines=t.lines,
                    cached=t.cached,
                )
                for t in result.tables
            ],
        )


class PreviewRequest(BaseModel):
    """Cell texts of a table as currently displayed."""

    rows: list[list[str]]


class PreviewResponse(BaseModel):
    rows: list[list[RenderedCell]]


class IndexRebuildResponse(BaseModel):
    documents_recalculated: int
    documents_indexed: int


# Health


@router.get("/health")
async def health_check():
    """Health check endpoint with configuration status."""
    from ..config import settings

    return {
        "status": "ok",
        "service": "tablemath",
        "config": {
            "precision": settings.precision,
            "locale": settings.locale,
            "index_path": str(settings.index_path),
            "vault_configured": settings.vault_path.exists(),
        },
    }


# Index endpoints


@router.get("/index")
async def get_index():
    """Return every published variable, grouped by document."""
    service = get_service()
    return service.index.to_dict()


@router.get("/index/{document}", response_model=dict[str, NamedVariable])
async def get_document_variables(document: str):
    """Return the variables one document publishes."""
    service = get_service()
    variables = service.index.get_document(document)
    if variables is None:
        raise HTTPException(status_code=404, detail=f"Document {document!r} is not indexed")
    return variables


@router.post("/index/rebuild", response_model=IndexRebuildResponse)
async def rebuild_index():
    """Recalculate every document in the vault."""
    service = get_service()
    count = await service.index_all()
    return IndexRebuildResponse(
        documents_recalculated=count,
        documents_indexed=len(service.index.documents()),
    )


# Formula endpoints


@router.post("/evaluate", response_model=EvaluateResponse)
async def evaluate_formula(request: EvaluateRequest):
    """Evaluate a formula; value and display are null when it has no value."""
    service = get_service()
    value, display = service.evaluate(request.formula, request.rows, request.row, request.col)
    return EvaluateResponse(formula=request.formula, value=value, display=display)


@router.post("/documents/{document}/recalculate", response_model=RecalculateResponse)
async def recalculate_document(document: str, request: RecalculateRequest):
    """Recalculate a document from the given text or from the vault."""
    service = get_service()

    if request.text is not None:
        result = await service.recalculate_text(
            document, request.text, request.cursor_line, request.silent
        )
    else:
        result = await service.recalculate_document(document, silent=request.silent)
        if result is None:
            raise HTTPException(
                status_code=404,
                detail=f"Document {document!r} is unreadable or has no formulas",
            )

    return RecalculateResponse.from_result(result)


@router.post("/preview", response_model=PreviewResponse)
async def preview_table(request: PreviewRequest):
    """Compute display values for a rendered table."""
    service = get_service()
    return PreviewResponse(rows=service.preview(request.rows))


# Settings endpoints


@router.get("/settings", response_model=TableMathSettings)
async def get_settings():
    """Current display options."""
    service = get_service()
    return service.options


@router.put("/settings", response_model=TableMathSettings)
async def update_settings(options: TableMathSettings):
    """Update display options (precision 0-10, locale tag)."""
    service = get_service()
    return await service.update_settings(options)
