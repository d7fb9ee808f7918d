import os

from utils.env_utils import get_env, get_env_int

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# --- Knowledge Base ---
KNOWLEDGE_BASE_PATH = get_env(
    "DIAGNOSIS_KNOWLEDGE_BASE_PATH",
    os.path.join(PROJECT_ROOT, "data", "knowledge_base", "diseases.json"),
)

# --- Embedding Settings ---
# all-MiniLM-L6-v2 mean-pools token vectors; we L2-normalize on top.
EMBEDDING_MODEL = get_env("DIAGNOSIS_EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2")
EMBEDDING_DEVICE = get_env("DIAGNOSIS_EMBEDDING_DEVICE")
EMBEDDING_BATCH_SIZE = get_env_int("DIAGNOSIS_EMBEDDING_BATCH_SIZE", 32)
EMBEDDING_CACHE_DIR = get_env("DIAGNOSIS_EMBEDDING_CACHE_DIR")  # None disables the disk cache

# --- Diagnosis Settings ---
TOP_K_DIAGNOSES = 3

# --- Vital-sign thresholds (all strict) ---
HIGH_FEVER_F = 103.0
LOW_SPO2 = 90
LOW_SYSTOLIC = 90
HIGH_SYSTOLIC = 180
TACHYCARDIA_PULSE = 120
BRADYCARDIA_PULSE = 50

# --- Logging ---
LOG_LEVEL = get_env("DIAGNOSIS_LOG_LEVEL", "INFO")
LOG_FORMAT = get_env("DIAGNOSIS_LOG_FORMAT", "console")  # "json" in production
