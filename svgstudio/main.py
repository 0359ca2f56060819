import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from svgstudio.errors import SvgStudioError
from svgstudio.routes import router
from svgstudio.session import registry
from svgstudio.ws import ws_endpoint

logger = logging.getLogger("svgstudio")


@asynccontextmanager
async def lifespan(_: FastAPI):
    load_dotenv()
    registry.start_cleanup()
    yield
    registry.stop_cleanup()


app = FastAPI(title="SvgStudio", lifespan=lifespan)


@app.exception_handler(SvgStudioError)
async def svgstudio_error_handler(request: Request, exc: SvgStudioError) -> JSONResponse:
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.add_api_websocket_route("/ws", ws_endpoint)
