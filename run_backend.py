#!/usr/bin/env python
"""Script to run the task service with uvicorn."""
import uvicorn

from task_api.config import DEBUG, HOST, PORT

if __name__ == "__main__":
    uvicorn.run(
        "task_api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG
    )
