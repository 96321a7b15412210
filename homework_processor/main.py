import os
import io
import logging
from fastapi import FastAPI, UploadFile, File, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from .adapters import ContentProcessingError, UnsupportedFileTypeError
from .service import HomeworkProcessor

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Homework Grader Processor",
    description="Rasterizes homework uploads into a single image for grading",
    version="0.1.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", str(50 * 1024 * 1024)))
processor = HomeworkProcessor(upload_dir=UPLOAD_DIR, max_file_size=MAX_UPLOAD_SIZE)


@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": "Homework Grader Processor",
        "status": "running",
        "version": "0.1.0"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}


@app.post("/process")
async def process_file(
    file: UploadFile = File(...),
    save_file: bool = False,
):
    """
    Rasterize an uploaded PDF or image.

    Args:
        file: The file to process
        save_file: Whether to keep the original upload on disk

    Returns:
        The stitched base64 JPEG and its metadata
    """
    try:
        contents = await file.read()
        file_obj = io.BytesIO(contents)

        return await processor.process_file(
            file=file_obj,
            filename=file.filename,
            mime_type=file.content_type,
            save_file=save_file,
        )

    except UnsupportedFileTypeError as e:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=str(e)
        )
    except ContentProcessingError as e:
        logger.error(f"Error processing file {file.filename}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Failed to process file: {str(e)}"
        )
    finally:
        await file.close()


if __name__ == "__main__":
    import uvicorn
    import argparse

    parser = argparse.ArgumentParser(description="Homework Grader Processor")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8002, help="Port to listen on")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args()

    uvicorn.run(
        "homework_processor.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info"
    )
