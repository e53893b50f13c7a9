import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shortlinks import crud, schemas, url_utils
from shortlinks.config import Settings
from shortlinks.database import Database, get_db

logger = logging.getLogger("shortlinks")

PACKAGE_DIR = Path(__file__).parent
templates = Jinja2Templates(directory=PACKAGE_DIR / "templates")

NOT_FOUND_MESSAGE = "Link tidak ditemukan."
SERVER_ERROR_MESSAGE = "Terjadi kesalahan pada server."
API_ERROR_MESSAGE = "Kesalahan server."
EXHAUSTED_MESSAGE = "Gagal membuat kode unik, silakan coba lagi."


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    database = Database(settings.sqlalchemy_url(), pool_size=settings.pool_size)
    database.create_all()
    app.state.database = database
    try:
        yield
    finally:
        database.dispose()


def render_form(request: Request, short_url=None, error=None, title="", status_code=200):
    return templates.TemplateResponse(
        request,
        "index.html",
        {"short_url": short_url, "error": error, "title": title},
        status_code=status_code,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Shortlinks",
        description="Short links with an interstitial page and a click counter.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.mount("/static", StaticFiles(directory=PACKAGE_DIR / "static"), name="static")

    # Health check (useful for uptime monitors & load balancers)
    @app.get("/health", response_model=schemas.HealthOut, include_in_schema=False)
    def health():
        return {"status": "ok", "env": settings.environment}

    @app.get("/", include_in_schema=False)
    def index(request: Request):
        return render_form(request)

    @app.post("/shorten", include_in_schema=False)
    def shorten(
        request: Request,
        url: str | None = Form(None),
        title: str | None = Form(None),
        db: Session = Depends(get_db),
    ):
        entered_title = title or ""
        base = settings.public_base_url(str(request.base_url))
        try:
            original_url, link_title = url_utils.prepare_link(url, title, base)
        except url_utils.InvalidURL as exc:
            return render_form(request, error=exc.message, title=entered_title)

        try:
            link = crud.create_link(db, original_url, link_title)
        except crud.CodeSpaceExhausted:
            return render_form(request, error=EXHAUSTED_MESSAGE, title=entered_title, status_code=500)
        except SQLAlchemyError:
            logger.exception("Failed to shorten %s", original_url)
            return render_form(request, error=SERVER_ERROR_MESSAGE, title=entered_title, status_code=500)

        logger.info("Created link %s -> %s", link.code, link.original_url)
        return render_form(request, short_url=f"{base}/{link.code}", title=link.title)

    # Must stay above /{code}, which would otherwise swallow it.
    @app.get("/api/continue/{code}", response_model=schemas.ContinueOut, response_model_exclude_none=True)
    def continue_to_target(code: str, db: Session = Depends(get_db)):
        try:
            link = crud.get_link(db, code)
        except SQLAlchemyError:
            logger.exception("Failed to resolve %s", code)
            return schemas.ContinueOut(success=False, message=API_ERROR_MESSAGE)
        if not link:
            return schemas.ContinueOut(success=False, message=NOT_FOUND_MESSAGE)

        # read before the increment commit expires the instance
        url = link.original_url
        try:
            crud.increment_clicks(db, link.id)
        except SQLAlchemyError:
            logger.exception("Failed to increment click for %s", code)
        return schemas.ContinueOut(success=True, url=url)

    @app.get("/{code}", include_in_schema=False)
    def interstitial(code: str, request: Request, db: Session = Depends(get_db)):
        try:
            link = crud.get_link(db, code)
        except SQLAlchemyError:
            logger.exception("Failed to resolve %s", code)
            return PlainTextResponse(SERVER_ERROR_MESSAGE, status_code=500)
        if not link:
            return PlainTextResponse(NOT_FOUND_MESSAGE, status_code=404)
        # The target URL is only handed out by /api/continue.
        return templates.TemplateResponse(
            request,
            "redirect.html",
            {"code": link.code, "title": link.title or url_utils.FALLBACK_TITLE},
        )

    return app


def run() -> None:
    port = app.state.settings.port
    logger.info("Server listening on port %s", port)
    uvicorn.run(app, host="0.0.0.0", port=port)


app = create_app()

if __name__ == "__main__":
    run()
