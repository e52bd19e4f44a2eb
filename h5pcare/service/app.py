"""FastAPI application entrypoint for h5pcare service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .. import __version__
from ..aggregator import AnalysisReport
from ..errors import InputError, MainLibraryError
from ..inputs import PackageFacts
from ..orchestrator import Caretaker


class PackageRequest(BaseModel):
    """Pre-computed facts of one unpacked H5P package."""

    manifest: Dict[str, Any]
    content: Dict[str, Any]
    libraries: Dict[str, Any] = Field(default_factory=dict)
    media: Dict[str, Any] = Field(default_factory=dict)
    accessibility: Dict[str, Any] = Field(default_factory=dict)


class AnalyzeRequest(PackageRequest):
    include_raw: bool = False
    include_tree: Optional[bool] = None


class HealthResponse(BaseModel):
    status: str
    version: str


def _default_caretaker() -> Caretaker:
    return Caretaker()


def create_app(
    caretaker_factory: Callable[[], Caretaker] = _default_caretaker,
) -> FastAPI:
    """Create the FastAPI application exposing h5pcare operations."""

    app = FastAPI(title="H5P Caretaker Service", version=__version__)

    async def get_caretaker() -> Caretaker:
        # One caretaker per request keeps runs independent.
        return caretaker_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    @app.post("/analyze")
    async def analyze(
        payload: AnalyzeRequest,
        caretaker: Caretaker = Depends(get_caretaker),
    ) -> Dict[str, Any]:
        facts = _to_facts(payload)

        def _run_analyze() -> AnalysisReport:
            return caretaker.analyze(
                facts,
                include_raw=payload.include_raw,
                include_tree=payload.include_tree,
            )

        loop = asyncio.get_running_loop()
        report = await loop.run_in_executor(None, _run_analyze)
        return report.to_dict()

    @app.post("/tree")
    async def tree(
        payload: PackageRequest,
        caretaker: Caretaker = Depends(get_caretaker),
    ) -> Dict[str, Any]:
        facts = _to_facts(payload)
        loop = asyncio.get_running_loop()
        content_tree = await loop.run_in_executor(None, caretaker.build_tree, facts)
        return content_tree.to_view()

    @app.exception_handler(MainLibraryError)
    async def main_library_handler(_: Any, exc: MainLibraryError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(InputError)
    async def input_error_handler(_: Any, exc: InputError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    return app


def _to_facts(payload: PackageRequest) -> PackageFacts:
    data = {
        "manifest": payload.manifest,
        "content": payload.content,
        "libraries": payload.libraries,
        "media": payload.media,
        "accessibility": payload.accessibility,
    }
    return PackageFacts.from_dict(data)


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    try:
        import uvicorn
    except ModuleNotFoundError as exc:
        raise RuntimeError(
            "uvicorn is required to run the service. Install it with `pip install uvicorn`."
        ) from exc

    app = create_app()
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
