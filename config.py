# show-engine/config.py

import os
import logging
logger = logging.getLogger(__name__)

# --- Project Root Directory ---
# This assumes config.py is in the project's root directory (e.g., show-engine/)
PROJECT_ROOT_DIR = os.path.dirname(os.path.abspath(__file__))

# --- Core Directory Names (relative to project root) ---
BUNDLES_DIR_NAME = "bundles"

# --- Full Absolute Paths (derived from above) ---
BUNDLES_DIR = os.path.join(PROJECT_ROOT_DIR, BUNDLES_DIR_NAME)

# --- Tempo Defaults ---
DEFAULT_BPM = 120.0

# --- Tap Tempo ---
TAP_HISTORY_LIMIT = 8
MIN_TAP_INTERVAL_MS = 80
MAX_TAP_INTERVAL_MS = 3000

# --- Quantized Scheduler ---
DEFAULT_QUANTIZE_GRID = "1/4n"  # wire name, see QuantizeGrid
DEFAULT_LOOK_AHEAD_MS = 100
DEFAULT_JITTER_BUDGET_MS = 5

# How often the CLI polls for due actions
RELEASE_POLL_INTERVAL_MS = 10

def resolve_bundle_path(bundle_path):
    """
    Locate a bundle file given on the command line.

    Absolute paths are used as given. Relative paths are looked up in
    BUNDLES_DIR first, then under the project root. If neither exists the
    path is returned unchanged so the caller reports the original name.
    """
    if os.path.isabs(bundle_path):
        return bundle_path

    path_in_bundles_dir = os.path.join(BUNDLES_DIR, bundle_path)
    if os.path.exists(path_in_bundles_dir):
        return path_in_bundles_dir

    path_in_project_root = os.path.join(PROJECT_ROOT_DIR, bundle_path)
    if os.path.exists(path_in_project_root):
        return path_in_project_root

    logger.debug(f"CONFIG: Bundle '{bundle_path}' not found in {BUNDLES_DIR} or project root")
    return bundle_path
