from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from dotenv import load_dotenv
import json
import traceback

load_dotenv()

from peep.core.config import settings
from peep.routes import functions
from peep.utils.logger import safe_print

# Custom JSON encoder that preserves Unicode characters (emojis)
class UnicodeJSONResponse(JSONResponse):
    def render(self, content) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            indent=None,
            separators=(",", ":"),
        ).encode("utf-8")


app = FastAPI(
    title="Peep Push Relay",
    description="Server-side functions for the Peep app",
    version="1.0.0",
    openapi_tags=[
        {"name": "Functions", "description": "Server-side functions triggered by the backend"},
    ],
    default_response_class=UnicodeJSONResponse
)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests"""
    safe_print(f"[{request.method}] {request.url.path} from {request.client.host if request.client else 'Unknown'}")
    response = await call_next(request)
    safe_print(f"[{request.method}] {request.url.path} - Status: {response.status_code}")
    return response

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return UnicodeJSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return UnicodeJSONResponse(
        status_code=422,
        content={"success": False, "error": "Invalid payload", "detail": jsonable_errors(exc)},
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    traceback.print_exc()
    return UnicodeJSONResponse(
        status_code=500,
        content={"success": False, "error": f"Internal server error: {str(exc)}"},
    )

def jsonable_errors(exc: RequestValidationError):
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()]


app.include_router(functions.router, prefix="/functions/v1", tags=["Functions"])

@app.get("/api/health")
async def health_check():
    return {"status": "healthy"}

# Run uvicorn server when file is executed directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
