from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from installment_automation.core.config import settings
from installment_automation.core.exceptions import (
    AutomationError,
    DomainRuleError,
    FieldError,
    NotFoundError,
    ValidationError,
)
from installment_automation.routers import agencies, installments, jobs, notifications

OPENAPI_TAGS = [
    {"name": "Jobs", "description": "Trigger the automation job and inspect its run ledger."},
    {"name": "Installments", "description": "Record payments and query installments."},
    {"name": "Agencies", "description": "Per-agency automation settings."},
    {"name": "Notifications", "description": "In-app notifications for agency staff."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Installment lifecycle automation: overdue transitions in each agency's "
        "time zone, commission recalculation and deduplicated payment reminders."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, exc: AutomationError) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error_response(400, exc)


@app.exception_handler(DomainRuleError)
async def domain_rule_error_handler(request: Request, exc: DomainRuleError) -> JSONResponse:
    return _error_response(400, exc)


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(404, exc)


@app.exception_handler(AutomationError)
async def automation_error_handler(request: Request, exc: AutomationError) -> JSONResponse:
    return _error_response(500, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    field_errors = [
        FieldError(
            field=".".join(str(part) for part in err["loc"] if part != "body"),
            message=err["msg"],
        )
        for err in exc.errors()
    ]
    return _error_response(400, ValidationError("Invalid request data", field_errors))


app.include_router(jobs.router, prefix="/v1/jobs", tags=["Jobs"])
app.include_router(installments.router, prefix="/v1/installments", tags=["Installments"])
app.include_router(agencies.router, prefix="/v1/agencies", tags=["Agencies"])
app.include_router(notifications.router, prefix="/v1/notifications", tags=["Notifications"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "domain": settings.APP_DOMAIN,
        "status": "running",
    }
