import os
import tempfile

# keep app.log out of the working tree
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="bcompass-logs-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")
