"""REST API adapter for the database engine.

Endpoints:
    POST /execute - Execute a statement
    POST /execute/batch - Execute statements in order in one session
    POST /session - Open a session
    DELETE /session/{session_id} - Close a session (rolls back)
    GET /health - Health check
    GET /stats - Engine statistics

Each session keeps its own active database and transaction, so a client
that uses BEGIN TRANSACTION should open a session and pass its id.

Usage:
    from lite_dbms.adapters.inbound.rest_api import create_app
    from lite_dbms.application import DatabaseEngine

    db = DatabaseEngine(data_dir="/path/to/data")
    db.start()

    app = create_app(db)
    # Run with uvicorn: uvicorn app:app --host 0.0.0.0 --port 8000

References:
    - FastAPI documentation: https://fastapi.tiangolo.com/
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from lite_dbms import __version__
from lite_dbms.application import DatabaseEngine, ExecutionResult, SessionNotFoundError
from lite_dbms.infrastructure.config import Config, get_config
from lite_dbms.infrastructure.logging import get_logger, setup_logging_from_config
from lite_dbms.infrastructure.metrics import setup_metrics
from lite_dbms.infrastructure.tracing import setup_tracing

logger = get_logger(__name__)


class StatementRequest(BaseModel):
    """Request model for statement execution."""

    statement: str = Field(..., description="Statement to execute")
    session_id: int | None = Field(None, description="Optional session ID")


class BatchRequest(BaseModel):
    """Request model for batch execution."""

    statements: list[str] = Field(..., description="Statements to execute in order")
    session_id: int | None = Field(None, description="Optional session ID")


class StatementResponse(BaseModel):
    """Response model for statement execution."""

    success: bool = Field(..., description="Whether the statement succeeded")
    message: str = Field("", description="Status or error message")
    output: str = Field("", description="Full text output, rows included")
    error: str | None = Field(None, description="Error category on failure")
    rows: list[dict[str, Any]] = Field(default_factory=list, description="Result rows")
    columns: list[str] = Field(default_factory=list, description="Column names")
    affected_rows: int = Field(0, description="Number of affected rows")


class SessionResponse(BaseModel):
    """Response model for session creation."""

    session_id: int = Field(..., description="The created session ID")


class StatsResponse(BaseModel):
    """Response model for engine statistics."""

    started: bool = Field(..., description="Whether the engine is started")
    data_dir: str = Field(..., description="Data directory path")
    read_your_writes: bool = Field(..., description="Transaction read mode")
    sessions: int = Field(..., description="Number of open sessions")
    databases: int = Field(0, description="Number of databases in the catalog")
    transactions: dict[str, int] = Field(default_factory=dict, description="Transaction stats")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")


def _result_to_response(result: ExecutionResult) -> StatementResponse:
    """Convert ExecutionResult to StatementResponse."""
    return StatementResponse(
        success=result.success,
        message=result.message,
        output=str(result),
        error=result.error.value if result.error else None,
        rows=[dict(zip(row.columns, row.values)) for row in result.rows],
        columns=result.columns,
        affected_rows=result.affected_rows,
    )


def create_app(db: DatabaseEngine) -> FastAPI:
    """Create a FastAPI application for the database engine.

    Args:
        db: The database engine to use.

    Returns:
        A configured FastAPI application.
    """
    app = FastAPI(
        title="Lite DBMS API",
        description="REST API for executing statements against the flat-file engine",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def require_started() -> None:
        if not db.is_started:
            raise HTTPException(status_code=503, detail="Database not started")

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy" if db.is_started else "unhealthy",
            version=__version__,
        )

    @app.get("/stats", response_model=StatsResponse, tags=["Stats"])
    async def get_stats() -> StatsResponse:
        """Get engine statistics."""
        require_started()
        stats = db.get_stats()
        return StatsResponse(
            started=stats["started"],
            data_dir=stats["data_dir"],
            read_your_writes=stats["read_your_writes"],
            sessions=stats["sessions"],
            databases=stats.get("databases", 0),
            transactions=stats.get("transactions", {}),
        )

    @app.post("/execute", response_model=StatementResponse, tags=["Statements"])
    async def execute_statement(request: StatementRequest) -> StatementResponse:
        """Execute one statement in the given (or default) session."""
        require_started()
        try:
            result = db.execute(request.statement, request.session_id)
        except SessionNotFoundError:
            raise HTTPException(status_code=404, detail=f"Session {request.session_id} not found")
        return _result_to_response(result)

    @app.post("/execute/batch", response_model=list[StatementResponse], tags=["Statements"])
    async def execute_batch(request: BatchRequest) -> list[StatementResponse]:
        """Execute statements in order in one session."""
        require_started()
        try:
            results = db.execute_many(request.statements, request.session_id)
        except SessionNotFoundError:
            raise HTTPException(status_code=404, detail=f"Session {request.session_id} not found")
        return [_result_to_response(r) for r in results]

    @app.post("/session", response_model=SessionResponse, tags=["Sessions"])
    async def create_session() -> SessionResponse:
        """Open a new session."""
        require_started()
        return SessionResponse(session_id=db.create_session())

    @app.delete("/session/{session_id}", tags=["Sessions"])
    async def close_session(session_id: int) -> dict[str, str]:
        """Close a session, rolling back its open transaction."""
        require_started()
        try:
            db.close_session(session_id)
        except SessionNotFoundError:
            raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
        return {"message": f"Session {session_id} closed"}

    return app


def run_server(
    db: DatabaseEngine,
    host: str = "0.0.0.0",
    port: int = 8000,
) -> None:
    """Run the REST API server.

    Args:
        db: The database engine.
        host: Host to bind to.
        port: Port to bind to.
    """
    import uvicorn

    app = create_app(db)
    uvicorn.run(app, host=host, port=port)


def main(config: Config | None = None) -> None:
    """Start the engine and serve it with the configured observability."""
    config = config or get_config()
    setup_logging_from_config(config.observability)
    setup_tracing(
        service_name=config.observability.otel_service_name,
        otlp_endpoint=config.observability.otel_endpoint,
    )
    metrics = setup_metrics(port=config.server.metrics_port)

    with DatabaseEngine(config=config, metrics=metrics) as db:
        logger.info("server_starting", host=config.server.host, port=config.server.port)
        run_server(db, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
