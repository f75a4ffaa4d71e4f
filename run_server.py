import logging
import os

import uvicorn

if __name__ == "__main__":
    logging.basicConfig(
        level=os.environ.get("CONFLICT_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    print("Starting Conflict Ingestion API Server...")
    print("Docs available at: http://localhost:8000/docs")

    uvicorn.run(
        "conflict_ingestion.api.server:app",
        host="0.0.0.0",
        port=int(os.environ.get("CONFLICT_PORT", "8000")),
        reload=os.environ.get("CONFLICT_RELOAD", "") == "1"
    )
