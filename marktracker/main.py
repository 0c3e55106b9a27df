import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from marktracker.core import config
from marktracker.core.exceptions import MarkTrackerError, ServerError
from marktracker.database import dispose_engine, init_db
from marktracker.routes import auth_routes, bootstrap_routes, complaint_routes, mark_routes, user_routes

NOT_FOUND_TEXT = '404 Not Found: The requested resource was not found on this server.'
UNMATCHED_ROUTE_STATUSES = (404, 405)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
)

app = FastAPI(title='Student Mark Tracker API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        init_db()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL.')


@app.on_event('shutdown')
def close_database() -> None:
    dispose_engine()


@app.exception_handler(MarkTrackerError)
async def handle_app_error(request: Request, exc: MarkTrackerError):
    return JSONResponse(status_code=exc.status_code, content={'message': exc.message})


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={'message': 'Invalid data', 'errors': jsonable_encoder(exc.errors())},
    )


@app.exception_handler(SQLAlchemyError)
async def handle_store_error(request: Request, exc: SQLAlchemyError):
    logger.exception('Store error on %s %s', request.method, request.url.path)
    error = ServerError()
    return JSONResponse(status_code=error.status_code, content={'message': error.message})


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    error = ServerError()
    return JSONResponse(status_code=error.status_code, content={'message': error.message})


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException):
    # Unknown paths and unsupported methods both fall through to the 404 page.
    if exc.status_code in UNMATCHED_ROUTE_STATUSES:
        return PlainTextResponse(NOT_FOUND_TEXT, status_code=404)
    return JSONResponse(
        status_code=exc.status_code,
        content={'message': exc.detail},
        headers=getattr(exc, 'headers', None),
    )


@app.get('/')
def root():
    return {'status': 'Student Mark Tracker API Running'}


app.include_router(auth_routes.router, prefix='/api/auth')
app.include_router(user_routes.router, prefix='/api')
app.include_router(mark_routes.router, prefix='/api')
app.include_router(complaint_routes.router, prefix='/api')
app.include_router(bootstrap_routes.router, prefix='/api')


if __name__ == '__main__':
    import uvicorn

    uvicorn.run('marktracker.main:app', host=config.HOST, port=config.PORT)
