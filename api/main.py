from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import FileResponse

from api.config import APP_NAME, APP_VERSION, Settings, load_settings
from api.routers.metadata import router as metadata_router
from api.services.metadata import MetadataExtractor, TagSource, WorkerSource
from api.services.sources import ExifToolSource, PillowSource


STATIC_DIR = Path(__file__).parent / "static"


def create_app(
	primary: Optional[WorkerSource] = None,
	secondary: Optional[TagSource] = None,
	file_selector=None,
	settings: Optional[Settings] = None,
) -> FastAPI:
	settings = settings or load_settings()
	if primary is None:
		primary = ExifToolSource(settings.exiftool_path)
	if secondary is None:
		secondary = PillowSource()

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		try:
			yield
		finally:
			# the exiftool process outlives us unless stopped here
			primary.stop()

	app = FastAPI(title=APP_NAME, version=APP_VERSION, lifespan=lifespan)
	app.state.extractor = MetadataExtractor(primary, secondary)
	app.state.file_selector = file_selector

	# Routers
	app.include_router(metadata_router)

	@app.get("/", include_in_schema=False)
	def index():
		return FileResponse(STATIC_DIR / "index.html")

	@app.get("/health")
	def health():
		return {"status": "ok"}

	return app


if __name__ == "__main__":
	# Headless host without a window: uvicorn api.main:create_app --factory --port 8765
	import uvicorn

	from api.logging_config import setup_logging

	settings = load_settings()
	setup_logging(settings.log_level)
	uvicorn.run("api.main:create_app", factory=True, host=settings.host, port=settings.port, log_config=None)
