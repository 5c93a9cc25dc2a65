"""
Tests for web_ui.py - upload handling
"""

import sys
import os
import io
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'scripts'))

from web_ui import discard_upload, save_upload


class _Upload(io.BytesIO):
    """Stand-in for a Streamlit UploadedFile."""

    def __init__(self, name: str, data: bytes):
        super().__init__(data)
        self.name = name


class TestUploads:
    """Tests for save_upload and discard_upload."""

    def test_save_sanitizes_name(self):
        path = save_upload(_Upload("../../etc/audit export.json", b"[]"))
        try:
            assert path.name == "etc_audit_export.json"
            assert path.read_bytes() == b"[]"
        finally:
            discard_upload(path)

    def test_discard_removes_file(self):
        path = save_upload(_Upload("export.csv", b"AuditData\n"))
        discard_upload(path)
        assert not path.exists()

    def test_discard_tolerates_missing_and_none(self):
        discard_upload(None)
        discard_upload(Path("/nonexistent/sharing_audit_uploads/export.json"))
