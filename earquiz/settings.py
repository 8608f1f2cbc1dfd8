import os

WORK_DIR = os.getenv("WORK_DIR", "/tmp/earquiz")
FFMPEG_BIN = os.getenv("FFMPEG_BIN", "ffmpeg")
FFMPEG_TIMEOUT = int(os.getenv("FFMPEG_TIMEOUT", "600"))
MAX_FILE_MB = int(os.getenv("MAX_FILE_MB", "200"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
