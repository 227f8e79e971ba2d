import os
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, DatabaseError, OperationalError
import uvicorn

load_dotenv()

import api.v1.models  # noqa: F401  registers tables on Base.metadata
from api.v1.responses.success_response import success_response
from api.v1.utils.database import Base, engine
from api.v1.utils.exceptions import AppError
from api.v1.utils.logger import setup_logger
from api.v1.middleware.logging_middleware import LoggingMiddleware
from api.v1.routes.auth import auth
from api.v1.routes.dashboard import dashboard
from api.v1.routes.transactions import transactions
from api.v1.routes.user import user
from starlette.exceptions import HTTPException as StarletteHTTPException
from api.v1.middleware.exception_handler import (
    validation_exception_handler,
    app_error_handler,
    integrity_error_handler,
    database_error_handler,
    operational_error_handler,
    starlette_http_exception_handler,
    general_exception_handler,
)

setup_logger()


# create database tables

Base.metadata.create_all(bind=engine)

app: FastAPI = FastAPI(
    debug=os.environ.get("DEBUG") == "True",
    docs_url="/docs",
    redoc_url=None,
    title="Personal Finance Tracker API",
)

app.add_middleware(LoggingMiddleware)

# Exception middleware

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(StarletteHTTPException, starlette_http_exception_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)
app.add_exception_handler(OperationalError, operational_error_handler)
app.add_exception_handler(DatabaseError, database_error_handler)
app.add_exception_handler(Exception, general_exception_handler)

# cors middleware

origins = os.environ.get("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# routes

for router in (auth, dashboard, transactions, user):
    app.include_router(router, prefix="/api/v1")


@app.get("/")
async def index():
    return success_response(message="Welcome to the personal finance tracker API")


# start server

if __name__ == "__main__":
    uvicorn.run(app, port=int(os.environ.get("SERVER_PORT", 5001)), reload=False)
