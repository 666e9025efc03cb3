"""
Section Engine HTTP API (FastAPI)
"""
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Optional
from dotenv import load_dotenv

from api.api_schemas import (
    FieldOrderRequest,
    FieldOrderResponse,
    GenerateSectionRequest,
    GenerateSectionResponse,
    ResolvePromptRequest,
    ResolvePromptResponse,
    SectionPayload,
    SuggestionRequest,
    SuggestionResponse,
)
from core.config import setup_logging
from sectionEngine.dependency_graph import validate_prompt_refs
from sectionEngine.engine import ContentEngine
from sectionEngine.exceptions import CycleDetected, MissingPromptTemplateError, UnknownFieldError, UnknownOutputTypeError
from sectionEngine.prompt_template import resolve_prompt

# Load environment variables
load_dotenv()

logger = setup_logging("SectionEngine")

_engine: Optional[ContentEngine] = None


def get_engine() -> ContentEngine:
    """Process-wide engine, created on first request"""
    global _engine
    if _engine is None:
        _engine = ContentEngine()
    return _engine


def create_app() -> FastAPI:
    app = FastAPI(
        title="Section Engine API",
        description="Form-driven structured content generation",
        version="1.0.0"
    )

    # Configurar CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CycleDetected)
    async def cycle_handler(request: Request, exc: CycleDetected):
        return JSONResponse(status_code=422, content={"detail": str(exc), "fields": exc.fields})

    @app.exception_handler(UnknownFieldError)
    async def unknown_field_handler(request: Request, exc: UnknownFieldError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(UnknownOutputTypeError)
    async def unknown_output_type_handler(request: Request, exc: UnknownOutputTypeError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(MissingPromptTemplateError)
    async def missing_prompt_handler(request: Request, exc: MissingPromptTemplateError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.get("/health")
    async def health(engine: ContentEngine = Depends(get_engine)):
        """Health check"""
        return {
            "status": "healthy",
            "fields": len(engine.catalog),
            "output_types": engine.registry.list(),
            "ledger": {
                "calls": len(engine.ledger.entries),
                "total_cost": engine.ledger.total_cost
            }
        }

    @app.get("/output-types")
    async def output_types(engine: ContentEngine = Depends(get_engine)):
        """Registered output types with their drivers and item fields"""
        return {"output_types": engine.registry.describe()}

    @app.post("/fields/order", response_model=FieldOrderResponse)
    async def field_order(request: FieldOrderRequest, engine: ContentEngine = Depends(get_engine)):
        """Evaluation order of the catalog (or a subset)"""
        if request.field_keys:
            for key in request.field_keys:
                engine.catalog.get(key)
        order = engine.resolve_order(request.field_keys, request.prompt_overrides)
        return FieldOrderResponse(order=order)

    @app.post("/fields/resolve-prompt", response_model=ResolvePromptResponse)
    async def resolve_field_prompt(request: ResolvePromptRequest, engine: ContentEngine = Depends(get_engine)):
        """Substitute {{field}} references with the current form values"""
        if request.template is not None:
            resolved = resolve_prompt(request.template, request.values)
            template = request.template
        elif request.field_key:
            resolved = engine.resolve_field_prompt(request.field_key, request.values)
            template = engine.catalog.get(request.field_key).prompt
        else:
            raise HTTPException(status_code=400, detail="Provide either 'template' or 'field_key'")

        return ResolvePromptResponse(
            prompt=resolved.prompt,
            unresolved_keys=sorted(resolved.unresolved_keys),
            is_complete=resolved.is_complete,
            warnings=validate_prompt_refs(template, engine.catalog)
        )

    @app.post("/fields/{field_key}/suggestions", response_model=SuggestionResponse)
    async def field_suggestions(field_key: str, request: SuggestionRequest, engine: ContentEngine = Depends(get_engine)):
        """AI suggested values for one field"""
        try:
            result = await engine.suggest_field_values(field_key, request.values, request.prompt_override)
        except (UnknownFieldError, CycleDetected):
            raise
        except Exception as e:
            logger.error(f"❌ [API] Suggestions for '{field_key}' failed: {e}")
            raise HTTPException(status_code=500, detail="Failed to generate suggestions.")

        return SuggestionResponse(
            field_key=field_key,
            suggestions=result.suggestions,
            unresolved_keys=result.unresolved_keys
        )

    @app.post("/generate/{output_type}", response_model=GenerateSectionResponse)
    async def generate(output_type: str, request: GenerateSectionRequest, engine: ContentEngine = Depends(get_engine)):
        """Generate every section of one output type"""
        result = await engine.generate_section(
            output_type,
            request.context,
            drivers=request.section_drivers,
            directives=request.instruction_directives,
            exclude_drivers=request.excluded_drivers,
            prompt_template=request.prompt_template
        )

        sections = [
            SectionPayload(
                position=r.position,
                name=r.driver.name,
                description=r.driver.description,
                status=r.status,
                items=r.items,
                error=r.failure.reason if r.failure else None
            )
            for r in result.results
            if request.include_empty or r.items or r.failed
        ]

        return GenerateSectionResponse(
            output_type=result.output_type,
            sections=sections,
            failed_drivers=[r.driver.name for r in result.failed()],
            excluded_drivers=result.excluded_drivers,
            total_cost=result.cost.total_cost,
            total_input_tokens=result.cost.total_input_tokens,
            total_output_tokens=result.cost.total_output_tokens,
            duration_ms=result.duration_ms
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info("🚀 Starting Section Engine API on http://localhost:8000")
    uvicorn.run(app, host="0.0.0.0", port=8000)
