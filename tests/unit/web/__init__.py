"""Unit tests for ctrlboard web route modules.

Each route module has a corresponding test file that mounts only its
router on a bare FastAPI app and drives it through TestClient.
"""
