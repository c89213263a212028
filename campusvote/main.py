# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from campusvote.config import CORS_ORIGINS, LOG_LEVEL
from campusvote.database.connection import MongoConnector
from campusvote.errors import CampusVoteError
from campusvote.routes.auth_routes import admin_router as admin_auth_router
from campusvote.routes.auth_routes import router as auth_router
from campusvote.routes.election_routes import router as election_router
from campusvote.routes.grievance_routes import router as grievance_router
from campusvote.routes.house_routes import router as house_router
from campusvote.routes.result_routes import router as result_router
from campusvote.routes.society_routes import router as society_router
from campusvote.routes.user_routes import router as user_router
from campusvote.routes.vote_routes import vote_router

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests attach an in-memory database before startup
    if getattr(app.state, "db", None) is None:
        app.state.db = MongoConnector().db
    yield


app = FastAPI(title="CampusVote - University Elections API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Cache-Control"],
)


@app.exception_handler(CampusVoteError)
async def campusvote_error_handler(request: Request, exc: CampusVoteError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    # Record-level invariants that fail after request parsing
    message = "; ".join(err["msg"] for err in exc.errors())
    logger.warning(f"Rejected invalid record on {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"detail": message})


app.include_router(auth_router)
app.include_router(admin_auth_router)
app.include_router(user_router)
app.include_router(house_router)
app.include_router(society_router)
app.include_router(election_router)
app.include_router(vote_router)
app.include_router(result_router)
app.include_router(grievance_router)


@app.get("/api/status", tags=["Root"])
def server_status():
    return {"status": "success", "message": "Server is running"}


@app.get("/", tags=["Root"])
def read_root():
    return {"message": "Welcome to the CampusVote API"}


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)
