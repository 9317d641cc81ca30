"""
InternBot API - FastAPI Backend
Credential verification, internship search, applications and run control
for the dashboard. All browser work goes through the single shared session.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import AppConfig, config
from api.logging_config import logger, log_application, log_ai_request, log_browser_event

from ai.answer_generator import AnswerGenerator, FALLBACK_MESSAGES
from core.answer_store import AnswerStore
from core.browser import BrowserSessionManager
from core.event_log import EventLog
from core.exceptions import EXCEPTION_CATEGORIES, AutomationError, RunAlreadyActive, Unauthenticated
from core.extractor import ListingExtractor
from core.models import AnswerTemplate, RunConfiguration
from core.orchestrator import JobOrchestrator
from core.submitter import ApplicationSubmitter
from core.verifier import AuthenticationVerifier


# === Services ===

@dataclass
class Services:
    """Everything the endpoints need, wired around one browser session."""
    session: BrowserSessionManager
    verifier: AuthenticationVerifier
    extractor: ListingExtractor
    submitter: ApplicationSubmitter
    orchestrator: JobOrchestrator
    event_log: EventLog
    answers: AnswerStore
    generator: AnswerGenerator


def build_services(app_config: Optional[AppConfig] = None) -> Services:
    app_config = app_config or config
    session = BrowserSessionManager(app_config)
    extractor = ListingExtractor(session, app_config)
    submitter = ApplicationSubmitter(session, app_config)
    event_log = EventLog()
    return Services(
        session=session,
        verifier=AuthenticationVerifier(session, app_config),
        extractor=extractor,
        submitter=submitter,
        orchestrator=JobOrchestrator(session, extractor, submitter, event_log, app_config),
        event_log=event_log,
        answers=AnswerStore(),
        generator=AnswerGenerator(app_config),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


async def shutdown_services(services: Services):
    """Stop any run, let the in-flight application finish, then close the browser."""
    await services.orchestrator.stop_run()
    await services.orchestrator.wait_idle()
    await services.session.close_session()
    log_browser_event("closed", "shutdown")


# === Lifespan Management ===

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    logger.info("Starting InternBot API...")
    missing = config.validate()
    if missing:
        logger.warning(f"Optional settings missing: {', '.join(missing)}")

    yield

    logger.info("Shutting down InternBot API...")
    await shutdown_services(app.state.services)
    logger.info("Browser session closed")


# Initialize FastAPI app
app = FastAPI(
    title="InternBot API",
    description="Automated internship applications on Internshala",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if config.DEBUG else None,
    redoc_url="/redoc" if config.DEBUG else None,
)
app.state.services = build_services()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=config.CORS_ALLOW_CREDENTIALS,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["Content-Type"],
)


# === Request Logging Middleware ===

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests."""
    start_time = datetime.now()
    response = await call_next(request)
    duration = (datetime.now() - start_time).total_seconds() * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({duration:.2f}ms)")
    return response


# === Error Handlers ===

def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {field} {first.get('msg', '')}".strip()
    else:
        message = "Invalid request"
    return error_response(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Unauthenticated)
async def unauthenticated_handler(request: Request, exc: Unauthenticated):
    return error_response(status.HTTP_401_UNAUTHORIZED, str(exc))


@app.exception_handler(AutomationError)
async def automation_error_handler(request: Request, exc: AutomationError):
    logger.error(f"{request.url.path} failed ({exc.category.value}): {exc}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


def result_status(result) -> int:
    """Engine results from an exception path are served as 500."""
    if result.failure in EXCEPTION_CATEGORIES:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_200_OK


# === Pydantic Models with Validation ===

class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class VerifyCredentialsRequest(CamelModel):
    email: str = Field(..., min_length=1, max_length=254)
    password: str = Field(..., min_length=1, max_length=256)


class SearchRequest(CamelModel):
    keywords: str = Field(default="", max_length=200)
    location: str = Field(default="", max_length=100)
    remote_only: bool = Field(default=False, alias="remoteOnly")
    min_stipend: int = Field(default=0, ge=0, alias="minStipend")


class RunStartRequest(SearchRequest):
    email: str = Field(default="", max_length=254)


class AnswerModel(CamelModel):
    question: str = Field(..., max_length=500)
    answer: str = Field(default="", max_length=5000)


class ApplyRequest(CamelModel):
    internship_url: str = Field(..., min_length=1, max_length=500, alias="internshipUrl")
    answers: List[AnswerModel] = Field(default_factory=list)


class AnswersUpdateRequest(CamelModel):
    answers: List[AnswerModel]


class GenerateForTemplateRequest(CamelModel):
    keywords: str = Field(default="", max_length=200)
    skills_summary: str = Field(default="", max_length=2000, alias="skillsSummary")


class GenerateAnswerRequest(GenerateForTemplateRequest):
    question: str = Field(..., min_length=1, max_length=500)


class AnalyzeResumeRequest(CamelModel):
    resume_text: str = Field(..., min_length=1, alias="resumeText")


def to_templates(answers: List[AnswerModel]) -> List[AnswerTemplate]:
    return [AnswerTemplate(question=a.question, answer=a.answer) for a in answers]


# === API Endpoints ===

@app.get("/health")
async def health():
    """Liveness check."""
    return {"status": "ok", "timestamp": datetime.now().isoformat()}


@app.get("/api/status")
async def get_status(services: Services = Depends(get_services)):
    return {
        "isLoggedIn": services.session.authenticated,
        "browserActive": services.session.is_active,
        "running": services.orchestrator.is_running,
    }


@app.post("/api/verify-credentials")
async def verify_credentials(request: VerifyCredentialsRequest, services: Services = Depends(get_services)):
    """Log in to Internshala on the shared browser session."""
    if services.orchestrator.is_running:
        raise HTTPException(status_code=409, detail="Stop the running automation before logging in again")

    log_browser_event("login", request.email)
    try:
        result = await services.verifier.verify(request.email, request.password)
    except AutomationError as e:
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Login failed: {e}")

    if result.success:
        services.event_log.success("Credentials verified")
    else:
        services.event_log.error(f"Login failed: {result.message}")
    return JSONResponse(status_code=result_status(result), content=result.to_dict())


@app.post("/api/search-internships")
async def search_internships(request: SearchRequest, services: Services = Depends(get_services)):
    result = await services.extractor.search(
        request.keywords,
        location=request.location,
        remote_only=request.remote_only,
        min_stipend=request.min_stipend,
    )
    return JSONResponse(status_code=result_status(result), content=result.to_dict())


@app.post("/api/apply-internship")
async def apply_internship(request: ApplyRequest, services: Services = Depends(get_services)):
    if services.orchestrator.is_running:
        raise HTTPException(status_code=409, detail="An automation run is in progress")

    result = await services.submitter.apply(request.internship_url, to_templates(request.answers))
    log_application(
        "manual",
        request.internship_url,
        result.status.value,
        error=None if result.success else result.message,
    )
    return JSONResponse(status_code=result_status(result), content=result.to_dict())


@app.post("/api/logout")
async def logout(services: Services = Depends(get_services)):
    await shutdown_services(services)
    services.event_log.info("Logged out")
    return {"success": True, "message": "Logged out successfully"}


# === Run Control ===

@app.post("/api/run/start")
async def start_run(request: RunStartRequest, services: Services = Depends(get_services)):
    run_config = RunConfiguration(
        keywords=request.keywords,
        location=request.location,
        remote_only=request.remote_only,
        min_stipend=request.min_stipend,
        email=request.email,
    )
    try:
        await services.orchestrator.start_run(run_config, services.answers.list())
    except RunAlreadyActive as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"success": True, "message": "Automation started"}


@app.post("/api/run/stop")
async def stop_run(services: Services = Depends(get_services)):
    if not services.orchestrator.is_running:
        return {"success": True, "message": "No automation running"}
    await services.orchestrator.stop_run()
    return {"success": True, "message": "Automation stopping after the current application"}


@app.get("/api/jobs")
async def list_jobs(services: Services = Depends(get_services)):
    orchestrator = services.orchestrator
    return {
        "running": orchestrator.is_running,
        "jobs": [job.to_dict() for job in orchestrator.jobs()],
        "stats": orchestrator.stats(),
    }


@app.post("/api/jobs/reset")
async def reset_jobs(services: Services = Depends(get_services)):
    try:
        services.orchestrator.reset()
    except RunAlreadyActive as e:
        raise HTTPException(status_code=409, detail=str(e))
    services.event_log.info("Job list cleared")
    return {"success": True, "message": "Jobs cleared"}


@app.get("/api/logs")
async def get_logs(since: int = 0, services: Services = Depends(get_services)):
    if since < 0:
        raise HTTPException(status_code=400, detail="since must be >= 0")
    return services.event_log.to_dict(since)


# === Answers & Generation ===

@app.get("/api/answers")
async def get_answers(services: Services = Depends(get_services)):
    return {"answers": [a.to_dict() for a in services.answers.list()]}


@app.put("/api/answers")
async def update_answers(request: AnswersUpdateRequest, services: Services = Depends(get_services)):
    answers = services.answers.replace(to_templates(request.answers))
    return {"success": True, "answers": [a.to_dict() for a in answers]}


@app.post("/api/answers/{index}/generate")
async def generate_for_template(
    index: int,
    request: GenerateForTemplateRequest,
    services: Services = Depends(get_services),
):
    """Draft the answer for template ``index`` and store it."""
    try:
        template = services.answers.get(index)
    except IndexError:
        raise HTTPException(status_code=404, detail=f"No answer template at index {index}")

    answer = await services.generator.generate(template.question, request.keywords, request.skills_summary)
    if answer in FALLBACK_MESSAGES:
        log_ai_request("generate_answer", error=answer)
        return {"success": False, "answer": answer}

    services.answers.set_answer(index, answer)
    log_ai_request("generate_answer")
    services.event_log.success(f'Generated AI answer for: "{template.question[:20]}..."')
    return {"success": True, "answer": answer}


@app.post("/api/generate-answer")
async def generate_answer(request: GenerateAnswerRequest, services: Services = Depends(get_services)):
    answer = await services.generator.generate(request.question, request.keywords, request.skills_summary)
    failed = answer in FALLBACK_MESSAGES
    log_ai_request("generate_answer", error=answer if failed else None)
    return {"success": not failed, "answer": answer}


@app.post("/api/analyze-resume")
async def analyze_resume(request: AnalyzeResumeRequest, services: Services = Depends(get_services)):
    summary = await services.generator.analyze_resume(request.resume_text)
    failed = summary in FALLBACK_MESSAGES
    log_ai_request("analyze_resume", error=summary if failed else None)
    return {"success": not failed, "summary": summary}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
