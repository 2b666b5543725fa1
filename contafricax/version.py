import os

# Build metadata passed via environment at build/deploy time
APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
GIT_COMMIT = os.getenv("GIT_COMMIT", "unknown")
BUILD_TIME = os.getenv("BUILD_TIME", "unknown")

__all__ = ["APP_VERSION", "GIT_COMMIT", "BUILD_TIME"]
