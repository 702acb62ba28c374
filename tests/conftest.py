import os
import tempfile

# Keep log files out of /app/data while the config module is imported.
os.environ.setdefault("CPF_TRACKER_DATA_DIR", tempfile.mkdtemp(prefix="cpf-tracker-tests-"))
