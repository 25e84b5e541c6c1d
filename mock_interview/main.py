from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from mock_interview.config import settings
from mock_interview.utils.logging import configure_logging
from mock_interview.routers.resume import router as resume_router
from mock_interview.routers.interview import router as interview_router
from mock_interview.utils.audit import auditor
from mock_interview.services.llm_service import llm_service


configure_logging()
auditor.configure(settings.analytics_path)
app = FastAPI(title="Mock Interview Backend", version="0.1.0")

# CORS
app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.cors_allow_origins,
	# Wildcard origins require credentials to be False
	allow_credentials=False if settings.cors_allow_origins == ["*"] else True,
	allow_methods=["*"],
	allow_headers=["*"],
	max_age=3600,
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
	# Missing or malformed request fields are a client error, reported as 400
	missing = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()]
	detail = "Missing or invalid fields: " + ", ".join(m for m in missing if m) if any(missing) else "Invalid request body"
	return JSONResponse(status_code=400, content={"detail": detail})


@app.get("/health")
async def health() -> JSONResponse:
	return JSONResponse({
		"status": "ok",
		"version": app.version,
		"llm": {"provider": settings.llm_provider, "enabled": llm_service.enabled}
	})


# Routers
app.include_router(resume_router, prefix="/api", tags=["resume"])
app.include_router(interview_router, prefix="/api", tags=["interview"])


if __name__ == "__main__":
	import uvicorn

	uvicorn.run("mock_interview.main:app", host=settings.host, port=settings.port)
