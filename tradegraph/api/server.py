"""
Trade Graph: Read-Only API Server
=================================

Serves the visible trade network (nodes, links, layout hints) to a rendering
client. Every request carries the full display configuration and filter
state; the engine rebuilds only when the display configuration changes.

Endpoints:
- GET /health                  -> Pipeline status
- GET /api/v1/graph            -> Visible graph + layout hints
- GET /api/v1/nodes/{node_id}  -> Selection summary for one node
- GET /api/v1/report           -> Last build report

Usage:
    uvicorn tradegraph.api.server:app --reload
"""
import os
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..contracts.base import Error, ErrorCode
from ..contracts.graph import DisplayConfig, FilterState
from ..engine import EngineConfig, PipelineStatus, TradeGraphEngine
from ..ingestion import HttpRowSource, source_for
from ..normalization import NormalizationConfig
from .mapper import map_view_to_dto


DATA_PATH_ENV = "TRADEGRAPH_DATA_PATH"


class HealthResponse(BaseModel):
    status: str
    pipeline: str


class NodeSummaryResponse(BaseModel):
    id: str
    name: str
    type: str
    transaction_count: int
    total_value: float
    sample_names: List[str]
    variant_count: int
    overflow_count: int
    tooltip: str


def default_data_path() -> str:
    return os.environ.get(DATA_PATH_ENV, os.path.join(os.getcwd(), "data", "Data.csv"))


def create_app(engine: Optional[TradeGraphEngine] = None, data_path: Optional[str] = None) -> FastAPI:
    """
    Build the API application.

    With an injected engine the source is not loaded at startup; the caller
    owns the engine's data.
    """
    autoload = engine is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if autoload:
            try:
                normalization = NormalizationConfig.from_env()
            except (OSError, ValueError) as e:
                print(f"[!] Invalid normalization config: {e}")
                raise
            app.state.engine_config = EngineConfig(normalization=normalization)
            app.state.engine = TradeGraphEngine(app.state.engine_config)

            location = data_path or default_data_path()
            print(f"[*] Loading trade data from: {location}")
            source = source_for(location, app.state.engine_config.source)
            if isinstance(source, HttpRowSource):
                result = await app.state.engine.load_source_async(source)
            else:
                result = app.state.engine.load_source(source)
            if result.is_success:
                print(f"[*] Loaded {result.row_count} rows.")
            else:
                # Server stays up and reports the terminal state per request
                print(f"[!] Source unavailable: {result.error.message}")
        yield
        print("[*] Shutting down trade graph server.")

    app = FastAPI(
        title="Trade Network Graph API",
        version="0.1.0",
        description="Read-only trade network graph and layout parameters",
        lifespan=lifespan
    )
    # Replaced at startup when the engine is not injected
    app.state.engine_config = EngineConfig()
    app.state.engine = engine or TradeGraphEngine(app.state.engine_config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET"],  # read-only
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        return HealthResponse(status="online", pipeline=app.state.engine.status.value)

    @app.get("/api/v1/graph")
    async def get_graph(
        display_mode: str = "full",
        product_display_mode: str = "hsCode",
        hs_code_level: str = "category",
        threshold: int = Query(1, ge=1),
        search: str = "",
        focus: Optional[str] = None,
        width: float = Query(960.0, gt=0),
        height: float = Query(640.0, gt=0),
        seed: Optional[int] = None,
    ):
        try:
            display_config = DisplayConfig.from_strings(
                display_mode, product_display_mode, hs_code_level
            )
        except ValueError as e:
            raise HTTPException(
                status_code=422,
                detail=Error.create(ErrorCode.INVALID_CONFIGURATION, str(e)).to_dict()
            )

        engine: TradeGraphEngine = app.state.engine
        engine.set_display_config(display_config)
        engine.set_filter_state(FilterState(
            min_transaction_threshold=threshold,
            search_term=search,
            focus_entity_id=focus or None,
        ))

        view = engine.view(width=width, height=height, seed=seed)
        metrics = engine.visible_metrics() if view.status == PipelineStatus.READY else None
        dto = map_view_to_dto(view, metrics)
        if view.status == PipelineStatus.SOURCE_UNAVAILABLE:
            return JSONResponse(status_code=503, content=dto)
        return dto

    @app.get("/api/v1/nodes/{node_id:path}", response_model=NodeSummaryResponse)
    async def get_node(node_id: str):
        result = app.state.engine.node_summary(node_id)
        if result.is_failure:
            raise HTTPException(status_code=404, detail=result.error.message)
        summary = result.value
        return NodeSummaryResponse(**summary.to_dict(), tooltip=summary.format_tooltip())

    @app.get("/api/v1/report")
    async def get_report():
        engine: TradeGraphEngine = app.state.engine
        report = engine.build_report
        return {
            "status": engine.status.value,
            "report": report.to_dict() if report else None,
            "diagnostics": [e.to_dict() for e in report.diagnostics()] if report else [],
            "metrics": engine.observability.metrics.summary(),
        }

    return app


app = create_app()
