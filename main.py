import logging
from contextlib import asynccontextmanager
from typing import Iterator, Optional

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

import aggregation
from auth import SESSION_COOKIE, create_session_token, current_identity, optional_identity, verify_id_token
from config import Settings, get_settings
from database import ensure_indexes, get_db, get_reports_collection, reset_client
from eligibility import check_eligibility
from errors import InvalidInput, NoiseReportError
from log import configure_logging
from reports import submit_report, update_report
from schemas import ReportCreate, ReportUpdate, SessionRequest
from store import ReportStore
from upstream import AddressResolver, Geocoder

APP_NAME = "Noise Report API"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings)
    try:
        ensure_indexes(get_reports_collection(settings))
    except PyMongoError as exc:
        logger.warning("Could not ensure report indexes: %s", exc)
    yield
    reset_client()


app = FastAPI(title=APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Error handling ----------

@app.exception_handler(NoiseReportError)
async def noise_report_error_handler(request: Request, exc: NoiseReportError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{field}: {first.get('msg')}" if field else "Invalid data provided"
    return JSONResponse(status_code=400, content=InvalidInput(message).to_dict())


# ---------- Dependencies ----------

def get_store(settings: Settings = Depends(get_settings)) -> ReportStore:
    return ReportStore(get_reports_collection(settings))


def get_geocoder(settings: Settings = Depends(get_settings)) -> Iterator[Geocoder]:
    geocoder = Geocoder(settings)
    try:
        yield geocoder
    finally:
        geocoder.close()


def get_resolver(settings: Settings = Depends(get_settings)) -> Iterator[AddressResolver]:
    resolver = AddressResolver(settings)
    try:
        yield resolver
    finally:
        resolver.close()


# ---------- Basic routes ----------

@app.get("/")
def root():
    return {"message": f"{APP_NAME} running"}


@app.get("/health")
def health(settings: Settings = Depends(get_settings)):
    info = {
        "backend": "running",
        "database": "disconnected",
    }
    try:
        get_db(settings).command("ping")
        info["database"] = "connected"
    except PyMongoError as e:
        info["database"] = f"error: {str(e)[:80]}"
    return info


# ---------- Session endpoints ----------

@app.post("/api/auth")
def create_session(body: SessionRequest, response: Response, settings: Settings = Depends(get_settings)):
    identity = verify_id_token(body.idToken, settings)
    token = create_session_token(identity, settings)
    response.set_cookie(
        SESSION_COOKIE,
        token,
        httponly=True,
        secure=True,
        samesite="lax",
        max_age=settings.session_expire_minutes * 60,
        path="/",
    )
    return {"status": "success", "token": token}


@app.get("/api/auth")
def session_status(identity: Optional[str] = Depends(optional_identity)):
    if not identity:
        return {"isAuthenticated": False, "user": None}
    return {"isAuthenticated": True, "user": {"uid": identity}}


@app.delete("/api/auth")
def delete_session(response: Response):
    response.delete_cookie(SESSION_COOKIE, path="/")
    return {"status": "success", "message": "Signed out successfully."}


# ---------- Address lookup ----------

@app.get("/api/address")
def search_address(keyword: Optional[str] = None, resolver: AddressResolver = Depends(get_resolver)):
    if not keyword:
        raise InvalidInput("Keyword is required")
    return {"addresses": resolver.search(keyword)}


# ---------- Report endpoints ----------

@app.get("/api/report")
def list_reports(
    address: Optional[str] = None,
    checkEligibility: Optional[str] = None,
    identity: Optional[str] = Depends(optional_identity),
    store: ReportStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    if checkEligibility == "true":
        return check_eligibility(identity, store, settings).model_dump(exclude_none=True)
    if address:
        return aggregation.reports_for_address(store, address)
    raise InvalidInput('Invalid request. Provide "address" or "checkEligibility".')


@app.post("/api/report", status_code=201)
def create_report(
    body: ReportCreate,
    identity: str = Depends(current_identity),
    store: ReportStore = Depends(get_store),
    geocoder: Geocoder = Depends(get_geocoder),
    settings: Settings = Depends(get_settings),
):
    report = submit_report(identity, body, store, geocoder, settings)
    return report.owned()


@app.get("/api/report/latest")
def latest_reports(
    limit: int = Query(5, ge=1),
    store: ReportStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    return aggregation.latest_reports(store, min(limit, settings.latest_limit_max))


@app.get("/api/report/my")
def my_reports(identity: str = Depends(current_identity), store: ReportStore = Depends(get_store)):
    return aggregation.submitter_history(store, identity)


@app.get("/api/report/summary")
def report_summary(address: Optional[str] = None, store: ReportStore = Depends(get_store)):
    if address is not None:
        summary = aggregation.address_summary(store, address)
        return summary.model_dump() if summary else {}
    return [s.model_dump() for s in aggregation.address_summaries(store)]


@app.get("/api/report/locations")
def report_locations(store: ReportStore = Depends(get_store), geocoder: Geocoder = Depends(get_geocoder)):
    return [p.model_dump() for p in aggregation.locations(store, geocoder)]


@app.put("/api/report/{report_id}")
def edit_report(
    report_id: str,
    body: ReportUpdate,
    identity: str = Depends(current_identity),
    store: ReportStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    report = update_report(identity, report_id, body, store, settings)
    return {"message": "Report updated successfully", "report": report.owned()}


@app.get("/api/ranking")
def quietest_ranking(store: ReportStore = Depends(get_store)):
    return [s.model_dump() for s in aggregation.ranking(store)]
