#!/usr/bin/env python3
"""Run script for the WorkOps backend."""

import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()

if __name__ == "__main__":
    uvicorn.run(
        "workops.api.app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "5000")),
        reload=os.getenv("DEBUG", "False").lower() == "true",
    )
